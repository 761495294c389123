"""
Shared core package.

Provides settings, logging, correlation context and HTTP client helpers.
"""

from .config import BaseAppConfig
from .request_context import CORRELATION_HEADER, CorrelationContext, CorrelationIdFilter

__all__ = [
    "BaseAppConfig",
    "CORRELATION_HEADER",
    "CorrelationContext",
    "CorrelationIdFilter",
]
