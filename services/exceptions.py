"""
Custom Exception Hierarchy for FlipFinder Proxy

Structured exceptions shared by the proxy server (mapped to HTTP status
codes by services/error_handler.py) and the scanner side (raised by the
proxy client and classified by the enrichment pipeline).

Usage:
    from services.exceptions import (
        ProxyException,
        QuotaExceededError,
        NetworkFailure,
    )

    try:
        items = await client.search(query)
    except QuotaExceededError:
        ...  # stop further stages for this listing
    except NetworkFailure:
        ...  # treat the stage as zero results
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """Error categories the pipeline uses to pick fallback vs. abort"""
    AUTH_FAILED = "auth_failed"
    SUBSCRIPTION_INACTIVE = "subscription_inactive"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_FAILED = "upstream_failed"
    NETWORK = "network"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


# Kinds that stop further stage attempts for a listing
HALTING_KINDS = frozenset({
    ErrorKind.AUTH_FAILED,
    ErrorKind.SUBSCRIPTION_INACTIVE,
    ErrorKind.QUOTA_EXCEEDED,
})


class ProxyException(Exception):
    """
    Base exception for all FlipFinder errors.

    All custom exceptions inherit from this class so a single handler can
    turn any of them into an ``{error, code}`` JSON body.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: str = "PROXY_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    @property
    def halts_pipeline(self) -> bool:
        return self.kind in HALTING_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# ============================================================
# Request Validation
# ============================================================

class ValidationError(ProxyException):
    """Request body is missing a field or has a bad value."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================================
# Access Gate (auth -> subscription -> quota)
# ============================================================

class AuthenticationError(ProxyException):
    """Bearer token missing, malformed, expired or forged."""

    kind = ErrorKind.AUTH_FAILED

    def __init__(self, message: str = "Invalid authorization token", cause: Optional[Exception] = None):
        super().__init__(message, code="AUTH_FAILED", cause=cause)


class SubscriptionInactiveError(ProxyException):
    """Token is valid but the subscription behind it is not active."""

    kind = ErrorKind.SUBSCRIPTION_INACTIVE

    def __init__(self, user_id: Optional[str] = None):
        details = {"user_id": user_id} if user_id else None
        super().__init__(
            "Subscription expired or inactive",
            code="SUBSCRIPTION_INACTIVE",
            details=details,
        )


class QuotaExceededError(ProxyException):
    """Monthly API usage limit reached."""

    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, current: Optional[int] = None, limit: Optional[int] = None):
        details = {}
        if current is not None:
            details["current"] = current
        if limit is not None:
            details["limit"] = limit
        super().__init__(
            "API usage limit exceeded",
            code="QUOTA_EXCEEDED",
            details=details,
        )


# ============================================================
# Upstream Service Errors
# ============================================================

class UpstreamServiceError(ProxyException):
    """A third-party API (or the proxy itself, seen from the client) failed."""

    kind = ErrorKind.UPSTREAM_FAILED

    def __init__(
        self,
        service: str,
        message: str,
        code: str = "UPSTREAM_ERROR",
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        details["service"] = service
        super().__init__(message, code, details, cause)


class EbayAPIError(UpstreamServiceError):
    """Error communicating with the eBay Finding API."""

    def __init__(
        self,
        message: str = "eBay API request failed",
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        details = {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(
            service="ebay",
            message=message,
            code="EBAY_API_ERROR",
            details=details,
            cause=cause,
        )


class LanguageModelError(UpstreamServiceError):
    """Error communicating with the language model provider."""

    def __init__(
        self,
        message: str = "AI request failed",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        details = {}
        if model:
            details["model"] = model
        super().__init__(
            service=provider or "llm",
            message=message,
            code="LLM_ERROR",
            details=details,
            cause=cause,
        )


# ============================================================
# Client-side Transport Errors
# ============================================================

class NetworkFailure(ProxyException):
    """Request to the proxy could not be completed or returned garbage."""

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str = "Network request failed",
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        details = {"status_code": status_code} if status_code else None
        super().__init__(message, code="NETWORK_FAILURE", details=details, cause=cause)


# ============================================================
# Configuration Errors
# ============================================================

class ConfigurationError(ProxyException):
    """Configuration is invalid or missing."""

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details,
        )


class MissingAPIKeyError(ConfigurationError):
    """Required API key is missing."""

    def __init__(self, service: str):
        super().__init__(
            message=f"Missing API key for {service}",
            config_key=f"{service.upper()}_API_KEY",
        )
        self.code = "MISSING_API_KEY"
