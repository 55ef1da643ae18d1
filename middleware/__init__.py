"""HTTP middleware for the reference relay."""

from .correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
