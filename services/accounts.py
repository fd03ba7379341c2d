"""
Subscriber accounts, bearer tokens and usage quota.

The proxy gate runs in a fixed order on every protected call:
1. Bearer token present and valid (JWT signed with JWT_SECRET)   -> else 401
2. Subscription behind the token active and not expired           -> else 403
3. Monthly usage below the plan limit                             -> else 429

Usage is only counted after the upstream call succeeded.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import jwt

from config import JWT_SECRET, JWT_ALGORITHM, TOKEN_TTL_DAYS, QUOTA, QuotaConfig
from database import Database
from services.exceptions import (
    AuthenticationError,
    SubscriptionInactiveError,
    QuotaExceededError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


def parse_bearer(authorization: Optional[str]) -> str:
    """Pull the token out of an Authorization header value."""
    if not authorization:
        raise AuthenticationError("No authorization token provided")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("No authorization token provided")
    return token.strip()


class AccountService:
    """Login, token verification and quota accounting for the proxy."""

    def __init__(
        self,
        db: Database,
        secret: Optional[str] = None,
        quota: Optional[QuotaConfig] = None,
        token_ttl_days: int = TOKEN_TTL_DAYS,
    ):
        self.db = db
        self.secret = secret if secret is not None else JWT_SECRET
        self.quota = quota or QUOTA
        self.token_ttl_days = token_ttl_days

    # ============================================================
    # Tokens
    # ============================================================

    def issue_token(self, subscriber: Dict[str, Any]) -> str:
        if not self.secret:
            raise ConfigurationError("JWT secret not configured", config_key="JWT_SECRET")

        expires = datetime.now(timezone.utc) + timedelta(days=self.token_ttl_days)
        payload = {
            "userId": subscriber["user_id"],
            "email": subscriber["email"],
            "plan": subscriber.get("plan") or "pro",
            "exp": expires,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> Dict[str, Any]:
        if not self.secret:
            raise ConfigurationError("JWT secret not configured", config_key="JWT_SECRET")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Authorization token expired", cause=e)
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid authorization token", cause=e)

        if not claims.get("userId"):
            raise AuthenticationError("Invalid authorization token")
        return claims

    # ============================================================
    # Login
    # ============================================================

    def login(self, email: str, subscription_key: str) -> Dict[str, Any]:
        """Exchange an email + subscription key for a bearer token."""
        subscriber = self.db.verify_subscription_key(email, subscription_key)
        if not subscriber:
            logger.warning(f"[AUTH] Login rejected for {email}")
            raise AuthenticationError("Invalid subscription")

        token = self.issue_token(subscriber)
        logger.info(f"[AUTH] Login OK: {subscriber['email']} ({subscriber['plan']})")

        expires_at = subscriber.get("expires_at")
        return {
            "token": token,
            "user": {
                "email": subscriber["email"],
                "plan": subscriber["plan"],
                # Milliseconds since epoch, the extension compares against Date.now()
                "expiresAt": int(expires_at * 1000) if expires_at else None,
            },
        }

    # ============================================================
    # Gate
    # ============================================================

    def is_subscription_active(self, subscriber: Optional[Dict[str, Any]]) -> bool:
        if not subscriber or not subscriber.get("active"):
            return False
        expires_at = subscriber.get("expires_at")
        return expires_at is None or expires_at > time.time()

    def check_usage(self, user_id: str, plan: str) -> Dict[str, Any]:
        current = self.db.get_monthly_usage(user_id)
        limit = self.quota.limit_for(plan)
        return {"exceeded": current >= limit, "current": current, "limit": limit}

    def authorize(self, authorization: Optional[str]) -> Dict[str, Any]:
        """
        Run the full gate for an Authorization header.

        Returns the token claims merged with the subscriber's plan.
        Raises AuthenticationError, SubscriptionInactiveError or
        QuotaExceededError in that order of precedence.
        """
        token = parse_bearer(authorization)
        claims = self.decode_token(token)
        user_id = claims["userId"]

        subscriber = self.db.get_subscriber(user_id)
        if not self.is_subscription_active(subscriber):
            logger.info(f"[AUTH] Inactive subscription: {user_id}")
            raise SubscriptionInactiveError(user_id)

        usage = self.check_usage(user_id, subscriber.get("plan"))
        if usage["exceeded"]:
            logger.info(f"[QUOTA] {user_id} at {usage['current']}/{usage['limit']}")
            raise QuotaExceededError(usage["current"], usage["limit"])

        return {**claims, "plan": subscriber.get("plan"), "usage": usage}

    def record_usage(self, user_id: str, api_type: str) -> int:
        count = self.db.increment_usage(user_id, api_type)
        logger.debug(f"[QUOTA] {user_id} used {api_type} (count this month: {count})")
        return count
