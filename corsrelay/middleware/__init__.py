"""Middleware package: error hierarchy, auth, and request ID."""

from corsrelay.middleware.auth import ServiceKeyAuthMiddleware
from corsrelay.middleware.error_handler import (
    AuthenticationError,
    InvalidRequestBodyError,
    NoHealthyProxyError,
    RelayError,
    register_error_handlers,
)
from corsrelay.middleware.request_id import RequestIdMiddleware

__all__ = [
    "AuthenticationError",
    "InvalidRequestBodyError",
    "NoHealthyProxyError",
    "RelayError",
    "RequestIdMiddleware",
    "ServiceKeyAuthMiddleware",
    "register_error_handlers",
]
