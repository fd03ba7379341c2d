# Routes package for the FlipFinder proxy
from .api import router as api_router, verify_subscription
from .auth import router as auth_router

__all__ = [
    'api_router', 'verify_subscription',
    'auth_router',
]
