import logging
import uuid
from typing import Any, Dict, Optional

from warmgate.entrypoint.models.aws_v1 import (
    APIGatewayProxyEvent,
    ApiGatewayRequestContext,
)
from warmgate.entrypoint.models.deployment import ProbeRequest

logger = logging.getLogger("warmgate.event_builder")

PING_HEADERS = {"Host": "localhost"}


class V1ProxyEventBuilder:
    """API Gateway V1 (REST API) compatible event builder for synthetic requests."""

    def build(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build an API Gateway Lambda Proxy Integration-compatible event object.

        Relative paths are made absolute; the event's path is what the host's
        router matches on.
        """
        if not path.startswith("/"):
            path = f"/{path}"
        headers = dict(headers or {})

        event_model = APIGatewayProxyEvent(
            resource=path,
            path=path,
            httpMethod=method.upper(),
            headers=headers,
            multiValueHeaders={key: [value] for key, value in headers.items()},
            requestContext=ApiGatewayRequestContext(
                requestId=str(uuid.uuid4()),
                path=path,
            ),
            body=body if body else None,
            isBase64Encoded=False,
        )

        return event_model.model_dump(exclude_none=True, by_alias=True)

    def build_ping(self, health_path: str) -> Dict[str, Any]:
        """Synthetic GET that forces the host through full initialization."""
        return self.build("GET", health_path, PING_HEADERS)

    def build_probe(self, probe: ProbeRequest) -> Dict[str, Any]:
        """Event delivering a smoke test probe straight to a function version."""
        return self.build(probe.method, probe.path, probe.headers, probe.body)
