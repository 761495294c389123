"""
Where: warmgate/entrypoint/core/deadline.py
What: Soft execution-time budget and cooperative cancellation token.
Why: Let the backing host abort and answer before the platform's hard timeout
kills the process mid-response.
"""

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, List, Optional

from .exceptions import DeadlineExceededError

logger = logging.getLogger("warmgate.deadline")

DEFAULT_SOFT_DEADLINE_RATIO = 0.75

# Token of the invocation currently being forwarded to the backing host.
# Mangum runs the ASGI app on the calling thread, so tasks it creates inherit this.
_cancellation_token_var: ContextVar[Optional["CancellationToken"]] = ContextVar(
    "cancellation_token", default=None
)


class CancellationToken:
    """
    Thread-safe cooperative cancellation signal.

    Cancelling never interrupts running code; holders poll ``cancelled``,
    block on ``wait()`` or register callbacks.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], Any]] = []
        self.reason: Optional[str] = None
        self.deadline_seconds: Optional[float] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._run_callback(callback)

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Call ``callback`` once on cancellation (immediately if already cancelled)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run_callback(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; returns True when cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise DeadlineExceededError(self.deadline_seconds or 0.0)

    @staticmethod
    def _run_callback(callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cancellation callback failed")


def get_cancellation_token() -> Optional[CancellationToken]:
    """Get the cancellation token of the invocation being served, if any."""
    return _cancellation_token_var.get()


@contextmanager
def use_cancellation_token(token: CancellationToken) -> Iterator[CancellationToken]:
    """Make ``token`` the current cancellation token for the enclosed block."""
    reset = _cancellation_token_var.set(token)
    try:
        yield token
    finally:
        _cancellation_token_var.reset(reset)


def remaining_budget_ms(context: Any) -> Optional[float]:
    """Remaining time before the platform's hard deadline, from a Lambda context."""
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    return float(get_remaining())


def soft_deadline_seconds(
    remaining_ms: float, ratio: float = DEFAULT_SOFT_DEADLINE_RATIO
) -> float:
    """Soft deadline, in seconds from now, for the given remaining budget."""
    return max(remaining_ms, 0.0) * ratio / 1000.0


class SoftDeadline:
    """
    Arms a timer that cancels a token at ``ratio`` of the remaining budget.

    Usage:
        with SoftDeadline(context.get_remaining_time_in_millis()) as token:
            return host(event, context)

    With an unknown budget (``remaining_ms=None``) the token never fires.
    """

    def __init__(
        self,
        remaining_ms: Optional[float],
        ratio: float = DEFAULT_SOFT_DEADLINE_RATIO,
        token: Optional[CancellationToken] = None,
    ):
        self.token = token or CancellationToken()
        self.seconds = (
            soft_deadline_seconds(remaining_ms, ratio) if remaining_ms is not None else None
        )
        self._timer: Optional[threading.Timer] = None
        self._scope = None

    def __enter__(self) -> CancellationToken:
        if self.seconds is not None:
            self.token.deadline_seconds = self.seconds
            self._timer = threading.Timer(self.seconds, self._expire)
            self._timer.daemon = True
            self._timer.start()
        self._scope = use_cancellation_token(self.token)
        return self._scope.__enter__()

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._scope.__exit__(exc_type, exc_val, exc_tb)
        return False

    def _expire(self) -> None:
        logger.warning(
            "Soft deadline reached, signalling cancellation to the backing host",
            extra={"deadline_seconds": self.seconds},
        )
        self.token.cancel("deadline")
