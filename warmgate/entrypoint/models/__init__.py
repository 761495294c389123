"""
Data model definitions package.

Aggregates Pydantic models and dataclasses for use in other modules.
"""

from .aws_v1 import APIGatewayProxyEvent, APIGatewayProxyResponse
from .deployment import (
    DeploymentHookEvent,
    GateState,
    LifecycleStatus,
    ProbeRequest,
    ProbeResult,
    SmokeTest,
    TargetMode,
)
from .invocation import (
    CONCURRENCY_HEADER,
    CONTROL_HEADERS,
    KEEP_ALIVE_HEADER,
    InvocationEvent,
    ProcessState,
)

__all__ = [
    "APIGatewayProxyEvent",
    "APIGatewayProxyResponse",
    "CONCURRENCY_HEADER",
    "CONTROL_HEADERS",
    "DeploymentHookEvent",
    "GateState",
    "InvocationEvent",
    "KEEP_ALIVE_HEADER",
    "LifecycleStatus",
    "ProbeRequest",
    "ProbeResult",
    "ProcessState",
    "SmokeTest",
    "TargetMode",
]
