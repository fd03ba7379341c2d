"""
Centralized Configuration Settings for FlipFinder Proxy

All configuration values are consolidated here for easy management.
Both the proxy server (routes, upstream adapters, quota) and the
scanner side (pipeline thresholds, local settings store) read from here.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, List

from dotenv import load_dotenv

# ============================================================
# ENVIRONMENT LOADING
# ============================================================
# Try .env in project root first, then one level up
env_path = Path(__file__).parent.parent / ".env"
if not env_path.exists():
    env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
    print(f"[CONFIG] Loaded .env from {env_path}")

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent
DB_PATH = Path(os.getenv("FLIPFINDER_DB_PATH", str(BASE_DIR / "flipfinder.db")))
LOG_PATH = Path(os.getenv("FLIPFINDER_LOG_PATH", str(BASE_DIR / "proxy.log")))
SETTINGS_PATH = Path(os.getenv("FLIPFINDER_SETTINGS_PATH", str(BASE_DIR / "settings.json")))

# ============================================================
# SERVER SETTINGS
# ============================================================
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

# Origins allowed to call the proxy (extension + marketing site)
ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "chrome-extension://*,https://flipfinder.pro"
    ).split(",")
    if origin.strip()
]

# Base URL the scanner uses to reach the proxy
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{PORT}")

# ============================================================
# API KEYS & CREDENTIALS (server-held, never sent to clients)
# ============================================================
EBAY_APP_ID = os.getenv("EBAY_APP_ID") or os.getenv("EBAY_CLIENT_ID")
if not EBAY_APP_ID or EBAY_APP_ID == "YOUR_EBAY_APP_ID_HERE":
    print("[CONFIG] WARNING: EBAY_APP_ID not set - sold item search disabled")
    EBAY_APP_ID = None

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")

JWT_SECRET = os.getenv("JWT_SECRET", "")
if not JWT_SECRET:
    print("[CONFIG] WARNING: JWT_SECRET not set - login tokens cannot be issued")

JWT_ALGORITHM = "HS256"
TOKEN_TTL_DAYS = int(os.getenv("TOKEN_TTL_DAYS", "30"))

# ============================================================
# LANGUAGE MODEL SETTINGS
# ============================================================
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai").lower()
MODEL_TITLE = os.getenv("MODEL_TITLE", "gpt-4o-mini")    # Title enhancement + classifier
MODEL_VISION = os.getenv("MODEL_VISION", "gpt-4o")       # Image analysis
MODEL_CLAUDE = os.getenv("MODEL_CLAUDE", "claude-3-5-haiku-20241022")

if LLM_PROVIDER == "openai" and not OPENAI_API_KEY and ANTHROPIC_API_KEY:
    print("[CONFIG] WARNING: LLM_PROVIDER=openai but OPENAI_API_KEY not set! Falling back to Claude")
    LLM_PROVIDER = "claude"

# ============================================================
# UPSTREAM ENDPOINTS
# ============================================================
EBAY_FINDING_URL = "https://svcs.ebay.com/services/search/FindingService/v1"
EBAY_REQUEST_TIMEOUT = 10.0

# The pipeline itself enforces no timeout on proxy calls
PROXY_TIMEOUT = None


# ============================================================
# PIPELINE SETTINGS
# ============================================================
@dataclass
class PipelineConfig:
    """Thresholds for extraction, dedup and the enrichment cascade"""
    min_results: int = 3              # A stage with this many comps ends the cascade
    search_limit: int = 3             # Comps requested per search
    title_min_length: int = 5         # Title candidates must be longer than this
    fingerprint_text_chars: int = 50  # Visible text folded into the fingerprint
    fingerprint_max_input: int = 100  # Normalized input is cut to this
    fingerprint_length: int = 20      # Hex chars kept from the digest


PIPELINE = PipelineConfig()

# Listing tracker is wiped on this interval (seconds)
CLEAR_CACHE_INTERVAL = 300

# Badge tiers (profit in whole currency units)
LOW_PROFIT_CEILING = 20
GOOD_PROFIT_CEILING = 50


# ============================================================
# QUOTA SETTINGS
# ============================================================
@dataclass
class QuotaConfig:
    """Per-subscriber monthly usage limits"""
    monthly_limit: int = int(os.getenv("MONTHLY_API_LIMIT", "1000"))
    warn_ratio: float = 0.9
    plan_limits: Dict[str, int] = field(default_factory=lambda: {
        "free": 50,
        "pro": 1000,
        "business": 10000,
    })

    def limit_for(self, plan: str) -> int:
        return self.plan_limits.get((plan or "").lower(), self.monthly_limit)


QUOTA = QuotaConfig()


# ============================================================
# DATABASE SETTINGS
# ============================================================
@dataclass
class DatabaseConfig:
    """SQLite settings for subscriber and usage tables"""
    wal_mode: bool = True
    busy_timeout: int = 5000     # 5 second timeout
    synchronous: str = "NORMAL"


DATABASE = DatabaseConfig()


# ============================================================
# LOCAL (SCANNER) SETTINGS DEFAULTS
# ============================================================
# Written to the key-value store on first run
DEFAULT_SETTINGS: Dict[str, Any] = {
    "enabled": True,
    "minProfitThreshold": 10,
    "showNegativeProfits": True,
    "apiUsageCount": 0,
}


# ============================================================
# RESELLABILITY KEYWORDS
# ============================================================
# Checked first: any match means the post is not a resellable product
NON_RESELLABLE_KEYWORDS = [
    'hiring', 'employees', 'job', 'work', 'employment',
    'hair removal', 'massage', 'service', 'repair',
    'missing', 'lost', 'found', 'reward',
    'rent', 'rental', 'lease', 'roommate', 'room for',
    'tutoring', 'lessons', 'teaching', 'coaching',
    'cleaning', 'handyman', 'contractor', 'babysitting',
    'dog walking', 'pet sitting', 'lawn care', 'snow removal',
]

# Checked second: brand/category terms that are clearly physical goods
RESELLABLE_KEYWORDS = [
    'iphone', 'samsung', 'apple', 'laptop', 'computer',
    'camera', 'canon', 'nikon', 'sony', 'xbox', 'playstation',
    'nintendo', 'shoes', 'nike', 'adidas', 'jordan',
    'watch', 'rolex', 'jewelry', 'ring', 'necklace',
    'furniture', 'chair', 'table', 'couch', 'tv',
    'tablet', 'ipad', 'headphones', 'speakers',
]
