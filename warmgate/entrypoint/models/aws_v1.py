# warmgate/entrypoint/models/aws_v1.py

"""
API Gateway REST API (v1) proxy integration payloads.

Reference: https://docs.aws.amazon.com/apigateway/latest/developerguide/set-up-lambda-proxy-integrations.html#api-gateway-simple-proxy-for-lambda-input-format

Synthetic events (keep-alive pings, smoke test probes) are built from these
models so the ASGI adapter recognises them as REST API proxy events; only the
fields the adapter reads are modeled.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ApiGatewayIdentity(BaseModel):
    # Synthetic requests originate inside the function itself.
    sourceIp: str = "127.0.0.1"
    userAgent: Optional[str] = None


class ApiGatewayRequestContext(BaseModel):
    identity: ApiGatewayIdentity = Field(default_factory=ApiGatewayIdentity)
    requestId: str
    stage: str = "prod"
    path: Optional[str] = None
    protocol: str = "HTTP/1.1"


class APIGatewayProxyEvent(BaseModel):
    """
    Inbound proxy event.

    Dump with model_dump(exclude_none=True) before handing it to a host.
    """

    resource: str
    path: str
    httpMethod: str
    headers: Dict[str, str]
    multiValueHeaders: Dict[str, List[str]]
    queryStringParameters: Optional[Dict[str, str]] = None
    multiValueQueryStringParameters: Optional[Dict[str, List[str]]] = None
    requestContext: ApiGatewayRequestContext
    body: Optional[str] = None
    isBase64Encoded: bool = False


class APIGatewayProxyResponse(BaseModel):
    """Proxy integration response; the defaults are the empty success answer to a warm ping."""

    statusCode: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    isBase64Encoded: bool = False
