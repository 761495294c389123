"""
Core logic package.

Provides the soft deadline, synthetic event building and exceptions.
"""

from .deadline import (
    CancellationToken,
    SoftDeadline,
    get_cancellation_token,
    use_cancellation_token,
)
from .event_builder import V1ProxyEventBuilder

__all__ = [
    "CancellationToken",
    "SoftDeadline",
    "V1ProxyEventBuilder",
    "get_cancellation_token",
    "use_cancellation_token",
]
