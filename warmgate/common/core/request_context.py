"""
Correlation context management.

The Lambda runtime reuses one process for many invocations, so the current
correlation id is plain process state owned by a CorrelationContext instance.
It is overwritten at the top of every application invocation and read lazily
by log enrichment at emission time.
"""

import logging
import uuid
from typing import Callable, List, Mapping, Optional

CORRELATION_HEADER = "mh-correlation-id"

logger = logging.getLogger("warmgate.request_context")


class CorrelationContext:
    """Holds the correlation id of the invocation currently being served."""

    def __init__(self, header_name: str = CORRELATION_HEADER):
        self.header_name = header_name
        self._current: Optional[str] = None
        self._subscribers: List[Callable[[str], None]] = []

    @property
    def current(self) -> Optional[str]:
        """Get the current correlation id."""
        return self._current

    def subscribe(self, callback: Callable[[str], None]) -> None:
        """Register a callback receiving every newly resolved id."""
        self._subscribers.append(callback)

    def resolve(self, headers: Optional[Mapping[str, str]]) -> str:
        """
        Resolve the correlation id for a new invocation and make it current.

        Args:
            headers: Inbound request headers (may be None)

        Returns:
            The caller-supplied id when present and non-empty, otherwise a
            freshly generated UUID4 string
        """
        correlation_id = (headers or {}).get(self.header_name)
        if not correlation_id:
            correlation_id = str(uuid.uuid4())

        self._current = correlation_id
        for callback in self._subscribers:
            callback(correlation_id)
        return correlation_id

    def clear(self) -> None:
        """Clear the current correlation id."""
        self._current = None


class CorrelationIdFilter(logging.Filter):
    """
    Copies the current correlation id onto each record.

    Registered once per handler; the id is read when the record is emitted,
    not when the filter is created.
    """

    def __init__(self, context: CorrelationContext):
        super().__init__()
        self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = self.context.current
        return True


def install_correlation_filter(
    context: CorrelationContext, target: Optional[logging.Logger] = None
) -> CorrelationIdFilter:
    """
    Attach a CorrelationIdFilter to every handler of the target logger.

    Handlers that already carry a filter for the same context are skipped,
    so calling this more than once is harmless.
    """
    target = target or logging.getLogger()
    correlation_filter = CorrelationIdFilter(context)
    for handler in target.handlers:
        if any(
            isinstance(f, CorrelationIdFilter) and f.context is context for f in handler.filters
        ):
            continue
        handler.addFilter(correlation_filter)
    logger.debug("Correlation filter installed on %d handler(s)", len(target.handlers))
    return correlation_filter
