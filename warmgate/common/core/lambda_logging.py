"""
Lambda Logging Utilities

Provides robust logging for short-lived Lambda environments.
Ensures logs are flushed before the Lambda execution context freezes.
"""

import functools
import logging


def flush_logs(func):
    """
    Decorator for Lambda handlers that flushes every root handler afterwards.

    Usage:
        @flush_logs
        def handler(event, context):
            logger.info("This will be flushed before the environment freezes")
            return {"statusCode": 200}
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        finally:
            for handler in logging.getLogger().handlers:
                try:
                    handler.flush()
                except (OSError, ValueError):
                    # Closed stream; nothing left to flush.
                    continue

    return wrapper
