import logging
from typing import Optional

import boto3
import httpx
import urllib3
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest

from .config import BaseAppConfig

logger = logging.getLogger(__name__)

# Rewritten by proxies and load balancers on the way to API Gateway.
UNSIGNED_HEADERS = {"connection", "accept-encoding", "user-agent", "content-length"}


class AwsSigV4Auth(httpx.Auth):
    """
    httpx auth flow signing requests with AWS Signature Version 4.

    Used against IAM-protected API Gateway stages (service ``execute-api``).
    """

    requires_request_body = True

    def __init__(self, region: str, service: str = "execute-api", session=None):
        self.region = region
        self.service = service
        self.session = session or boto3.Session()

    def auth_flow(self, request: httpx.Request):
        credentials = self.session.get_credentials()
        if credentials is None:
            raise RuntimeError("No AWS credentials available for SigV4 signing")

        headers = {
            key: value
            for key, value in request.headers.items()
            if key.lower() not in UNSIGNED_HEADERS
        }
        aws_request = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=request.content,
            headers=headers,
        )
        SigV4Auth(credentials.get_frozen_credentials(), self.service, self.region).add_auth(
            aws_request
        )
        for key, value in aws_request.headers.items():
            request.headers[key] = value
        yield request


class HttpClientFactory:
    """
    HTTP Client Factory for centralized SSL verification handling.
    """

    def __init__(self, config: BaseAppConfig):
        self.config = config

    def configure_global_settings(self):
        """
        Configure global settings like urllib3 warnings.
        """
        if not self.config.VERIFY_SSL:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.debug("InsecureRequestWarning disabled (VERIFY_SSL=False)")

    def create_sync_client(
        self, base_url: str = "", sign_region: Optional[str] = None, **kwargs
    ) -> httpx.Client:
        """
        Create an httpx.Client with configured SSL verification.

        Args:
            base_url: Base URL relative request paths are joined under
            sign_region: When set, requests are SigV4 signed for this region
            **kwargs: Additional arguments for httpx.Client
        """
        verify = kwargs.pop("verify", None)

        # If verify is not explicitly provided, use config default
        if verify is None:
            verify = self.config.VERIFY_SSL

        if sign_region:
            kwargs.setdefault("auth", AwsSigV4Auth(region=sign_region))
        # Avoid leaking host HTTP(S)_PROXY/NO_PROXY into probe calls unless explicitly requested.
        kwargs.setdefault("trust_env", False)

        return httpx.Client(base_url=base_url, verify=verify, **kwargs)
