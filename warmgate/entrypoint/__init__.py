"""
Lambda entry point - keep-alive fan-out, application traffic dispatch and
CodeDeploy lifecycle hooks.
"""

from .config import EntryPointConfig
from .core.deadline import CancellationToken, get_cancellation_token, use_cancellation_token
from .main import LambdaEntryPoint

__all__ = [
    "CancellationToken",
    "EntryPointConfig",
    "LambdaEntryPoint",
    "get_cancellation_token",
    "use_cancellation_token",
]
