"""
Inbound invocation models and the long-lived process state.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from warmgate.common.core.request_context import CorrelationContext

# Control headers
CONCURRENCY_HEADER = "__CONCURRENCY__"
KEEP_ALIVE_HEADER = "__KEEP_ALIVE_INVOCATION__"
CONTROL_HEADERS = (CONCURRENCY_HEADER, KEEP_ALIVE_HEADER)


@dataclass
class InvocationEvent:
    """
    Read-only view over a raw Lambda event.

    An empty or missing ``httpMethod`` marks a control invocation.
    """

    http_method: str
    path: str
    headers: Dict[str, str]
    body: Optional[str]
    authorizer_claims: Optional[Dict[str, Any]]
    raw: Dict[str, Any] = field(repr=False)

    @classmethod
    def from_dict(cls, event: Optional[Dict[str, Any]]) -> "InvocationEvent":
        event = event if isinstance(event, dict) else {}
        # Keep-alive payloads from older callers use "Headers".
        headers = event.get("headers")
        if headers is None:
            headers = event.get("Headers")
        request_context = event.get("requestContext") or {}
        authorizer = request_context.get("authorizer") or {}
        return cls(
            http_method=event.get("httpMethod") or "",
            path=event.get("path") or "",
            headers=dict(headers) if isinstance(headers, dict) else {},
            body=event.get("body"),
            authorizer_claims=authorizer.get("claims"),
            raw=event,
        )

    @property
    def is_control(self) -> bool:
        return not self.http_method

    @property
    def has_control_header(self) -> bool:
        return any(name in self.headers for name in CONTROL_HEADERS)


@dataclass
class ProcessState:
    """
    State that outlives a single invocation.

    Owned by the entry point for the lifetime of the execution environment.
    Assumes at most one application invocation in flight per process; relaxing
    that requires call-scoped values instead of this object.
    """

    warm: bool = False
    correlation: CorrelationContext = field(default_factory=CorrelationContext)
