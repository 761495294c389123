"""
Custom exception classes.

Represent errors raised around invocation dispatch and deployment verification.
"""


class WarmgateError(Exception):
    """Base exception class for the entry point."""

    pass


class ManifestLoadError(WarmgateError):
    """Raised when the smoke test manifest is missing or unparseable."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to load smoke test manifest {path}: {cause}")


class LambdaInvocationError(WarmgateError):
    """Raised when a Lambda invocation fails or returns a function error."""

    def __init__(self, function_name: str, detail: str):
        self.function_name = function_name
        self.detail = detail
        super().__init__(f"Lambda invocation failed for {function_name}: {detail}")


class ProbeDispatchError(WarmgateError):
    """Raised when a smoke test probe cannot be delivered to its target."""

    def __init__(self, method: str, path: str, cause: Exception):
        self.method = method
        self.path = path
        self.cause = cause
        super().__init__(f"Probe {method} {path} failed: {cause}")


class PrewarmInvocationError(WarmgateError):
    """A single keep-alive invocation of the fan-out failed."""

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Keep-alive invocation {index} failed: {cause}")


class DeadlineExceededError(WarmgateError):
    """Raised inside the backing host once the soft deadline has passed."""

    def __init__(self, deadline_seconds: float):
        self.deadline_seconds = deadline_seconds
        super().__init__(f"Soft deadline of {deadline_seconds:.3f}s exceeded")


class InvalidGateTransition(WarmgateError):
    """Raised on a deployment gate state change the state machine does not allow."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid deployment gate transition: {current} -> {target}")
