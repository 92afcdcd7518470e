"""
API Middleware.
"""

from .rate_limit import RateLimitMiddleware

__all__ = ["RateLimitMiddleware"]
