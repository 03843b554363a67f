"""API package."""

from storefront.api.dependencies import get_caller, get_services, require_caller
from storefront.api.middleware import LoggingMiddleware, RateLimitMiddleware
from storefront.api.routes import router

__all__ = [
    "router",
    "get_caller",
    "get_services",
    "require_caller",
    "LoggingMiddleware",
    "RateLimitMiddleware",
]
