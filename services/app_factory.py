import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from config import (
    ALLOWED_ORIGINS,
    ANTHROPIC_API_KEY,
    DEBUG_MODE,
    EBAY_APP_ID,
    LLM_PROVIDER,
    OPENAI_API_KEY,
)
from database import Database
from routes import api_router, auth_router
from services.accounts import AccountService
from services.app_state import AppState
from services.clients import create_anthropic_client, create_http_client, create_openai_client
from services.error_handler import setup_error_handlers
from services.llm import LanguageModel

logger = logging.getLogger(__name__)


def build_app_state(db: Optional[Database] = None) -> AppState:
    """Wire the default production state from config."""
    db = db or Database()
    llm = LanguageModel(
        provider=LLM_PROVIDER,
        openai_client=create_openai_client(OPENAI_API_KEY) if LLM_PROVIDER == "openai" else None,
        anthropic_client=create_anthropic_client(ANTHROPIC_API_KEY) if LLM_PROVIDER == "claude" else None,
    )
    return AppState(
        db=db,
        accounts=AccountService(db),
        llm=llm,
        ebay_app_id=EBAY_APP_ID,
        http_client=create_http_client(),
        debug_mode=DEBUG_MODE,
    )


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Passing ``state`` lets tests inject fake upstream clients and a
    throwaway database.
    """
    state = state or build_app_state()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        logger.info("[STARTUP] FlipFinder proxy starting...")
        logger.info(f"[STARTUP] LLM provider: {state.llm.provider} (available={state.llm.available})")
        logger.info(f"[STARTUP] eBay search: {'enabled' if state.ebay_app_id else 'DISABLED'}")

        yield

        logger.info("[SHUTDOWN] FlipFinder proxy shutting down...")
        logger.info(f"[SHUTDOWN] Total requests: {state.stats['total_requests']}")
        await state.aclose()

    app = FastAPI(
        title="FlipFinder Proxy",
        description="Sold-listing search and AI product identification for marketplace flipping",
        lifespan=lifespan,
    )

    # Routes read state from here
    app.state.app_state = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o for o in ALLOWED_ORIGINS if "*" not in o],
        allow_origin_regex=r"chrome-extension://.*" if any("chrome-extension" in o for o in ALLOWED_ORIGINS) else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    setup_error_handlers(app, debug=state.debug_mode)

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "llm_available": state.llm.available,
            "ebay_configured": bool(state.ebay_app_id),
            "total_requests": state.stats["total_requests"],
        }

    app.include_router(auth_router)
    app.include_router(api_router)

    return app

