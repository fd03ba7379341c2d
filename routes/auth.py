"""
Auth Routes - exchange a subscription key for a bearer token
"""

import logging

from fastapi import APIRouter, Request

from routes.api import read_json, require_str
from services.app_state import get_app_state_from_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(request: Request):
    """Returns {token, user: {email, plan, expiresAt}}; 401 on a bad key."""
    app_state = get_app_state_from_request(request)
    body = await read_json(request)
    email = require_str(body, "email")
    subscription_key = require_str(body, "subscriptionKey")

    return app_state.accounts.login(email, subscription_key)
