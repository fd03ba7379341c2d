"""
Configuration package for FlipFinder Proxy.

Everything lives in config/settings.py; import from here.
"""

from .settings import (
    # Paths
    BASE_DIR,
    DB_PATH,
    LOG_PATH,
    SETTINGS_PATH,

    # Server
    HOST,
    PORT,
    DEBUG_MODE,
    ALLOWED_ORIGINS,
    API_BASE_URL,

    # API Keys
    EBAY_APP_ID,
    OPENAI_API_KEY,
    ANTHROPIC_API_KEY,
    JWT_SECRET,
    JWT_ALGORITHM,
    TOKEN_TTL_DAYS,

    # Models
    LLM_PROVIDER,
    MODEL_TITLE,
    MODEL_VISION,
    MODEL_CLAUDE,

    # Upstream
    EBAY_FINDING_URL,
    EBAY_REQUEST_TIMEOUT,
    PROXY_TIMEOUT,

    # Pipeline
    PipelineConfig,
    PIPELINE,
    CLEAR_CACHE_INTERVAL,
    LOW_PROFIT_CEILING,
    GOOD_PROFIT_CEILING,

    # Quota
    QuotaConfig,
    QUOTA,

    # Database
    DatabaseConfig,
    DATABASE,

    # Local settings
    DEFAULT_SETTINGS,

    # Keywords
    NON_RESELLABLE_KEYWORDS,
    RESELLABLE_KEYWORDS,
)
