"""
Deployment verification models.

Smoke test manifest entries, probe requests and the CodeDeploy lifecycle hook
contract.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Manifest keys are matched case-insensitively (Path, path, PATH).
_MANIFEST_KEYS = {
    "path": "path",
    "method": "method",
    "body": "body",
    "responsepattern": "responsePattern",
    "noproxy": "noProxy",
}


class LifecycleStatus(str, Enum):
    """Status values accepted by PutLifecycleEventHookExecutionStatus."""

    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


class TargetMode(str, Enum):
    """Where smoke test probes are sent."""

    # Invoke the candidate version through the Lambda API.
    DIRECT = "Direct"
    # Call the live base URL once traffic has shifted.
    PUBLIC_ENDPOINT = "PublicEndpoint"


class GateState(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    REPORTED = "Reported"


class SmokeTest(BaseModel):
    """A single smoke test manifest entry."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: str
    method: str
    body: Optional[str] = None
    response_pattern: str = Field(alias="responsePattern")
    no_proxy: bool = Field(default=False, alias="noProxy")

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {_MANIFEST_KEYS.get(str(key).lower(), key): value for key, value in data.items()}
        return data

    @field_validator("method")
    @classmethod
    def upper_method(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("body", mode="before")
    @classmethod
    def serialize_body(cls, value: Any) -> Any:
        # Structured bodies are sent as JSON.
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


@dataclass
class ProbeRequest:
    """Outbound request produced from a smoke test."""

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


@dataclass
class ProbeResult:
    """Outcome of a single smoke test."""

    test: SmokeTest
    probe: Optional[ProbeRequest]
    passed: bool
    error: Optional[str] = None


class DeploymentHookEvent(BaseModel):
    """CodeDeploy lifecycle hook invocation payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    deployment_id: str = Field(alias="DeploymentId", min_length=1)
    hook_execution_id: str = Field(alias="LifecycleEventHookExecutionId", min_length=1)
