# tests/conftest.py

"""Shared pytest setup: keep every test off the real database and settings files."""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="flipfinder-tests-")

# Must run before config is imported anywhere
os.environ["FLIPFINDER_DB_PATH"] = os.path.join(_TMP_DIR, "flipfinder.db")
os.environ["FLIPFINDER_SETTINGS_PATH"] = os.path.join(_TMP_DIR, "settings.json")
os.environ["FLIPFINDER_LOG_PATH"] = os.path.join(_TMP_DIR, "proxy.log")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789")
