import os
import threading
from typing import Any, Dict, List

import pytest

from warmgate.entrypoint.config import EntryPointConfig

# boto3 clients are created in some tests; never let them find real credentials.
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_EC2_METADATA_DISABLED"] = "true"


class FakeLambdaContext:
    """Minimal stand-in for the Lambda context object."""

    def __init__(self, remaining_ms: float = 30000):
        self.remaining_ms = remaining_ms
        self.function_name = "orders-api"
        self.aws_request_id = "req-1"

    def get_remaining_time_in_millis(self) -> float:
        return self.remaining_ms


class RecordingInvoker:
    """LambdaInvoker double recording every call."""

    def __init__(self, response: str = "{}", error: Exception = None):
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def invoke(self, function_name: str, payload: Any) -> str:
        with self._lock:
            self.calls.append({"function_name": function_name, "payload": payload})
        if self.error is not None:
            raise self.error
        return self.response


class RecordingHost:
    """BackingHost double recording forwarded events."""

    def __init__(self, response: Dict[str, Any] = None):
        self.response = response or {"statusCode": 200, "body": "pong"}
        self.events: List[Dict[str, Any]] = []

    def __call__(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        self.events.append(event)
        return self.response


@pytest.fixture
def config():
    return EntryPointConfig(
        _env_file=None,
        AWS_LAMBDA_FUNCTION_NAME="orders-api",
        VERSION_TO_TEST="orders-api:42",
        API_BASE_URL="https://api.example.com/prod/",
        AWS_REGION="eu-west-1",
    )


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def invoker():
    return RecordingInvoker()


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def make_invoker():
    return RecordingInvoker


@pytest.fixture
def make_context():
    return FakeLambdaContext
