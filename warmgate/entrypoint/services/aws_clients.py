"""
AWS client wrappers.

LambdaInvoker sends synchronous invocations through the Lambda API (fan-out,
direct smoke test probes). StatusReporter reports lifecycle hook results to
CodeDeploy.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from warmgate.entrypoint.config import EntryPointConfig
from warmgate.entrypoint.core.exceptions import LambdaInvocationError
from warmgate.entrypoint.models.deployment import LifecycleStatus

logger = logging.getLogger("warmgate.aws_clients")


def create_client(service_name: str, config: EntryPointConfig, read_timeout: float = 60.0):
    """Create a boto3 client with standard retries and the configured region."""
    return boto3.client(
        service_name,
        region_name=config.AWS_REGION,
        config=BotoConfig(
            read_timeout=read_timeout,
            retries={"mode": "standard", "max_attempts": config.AWS_MAX_ATTEMPTS},
        ),
    )


class LambdaInvoker:
    def __init__(self, client):
        """
        Args:
            client: boto3 Lambda client
        """
        self.client = client

    def invoke(self, function_name: str, payload: Union[Dict[str, Any], str]) -> str:
        """
        Invoke a function synchronously (RequestResponse) and return its payload.

        Args:
            function_name: Function name, ARN or qualified ARN
            payload: JSON-serializable payload or an already encoded string

        Returns:
            Response payload decoded as UTF-8

        Raises:
            LambdaInvocationError: API failure or a function error payload
        """
        if not isinstance(payload, str):
            payload = json.dumps(payload)

        try:
            response = self.client.invoke(
                FunctionName=function_name,
                InvocationType="RequestResponse",
                Payload=payload.encode("utf-8"),
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                f"Lambda invocation failed for function '{function_name}'",
                extra={
                    "function_name": function_name,
                    "error_type": type(e).__name__,
                    "error_detail": str(e),
                },
            )
            raise LambdaInvocationError(function_name, str(e)) from e

        body = response["Payload"].read().decode("utf-8")
        function_error = response.get("FunctionError")
        if function_error:
            raise LambdaInvocationError(function_name, f"{function_error}: {body}")
        return body


class StatusReporter:
    """Reports lifecycle hook results to the deployment orchestrator."""

    def __init__(self, client):
        """
        Args:
            client: boto3 CodeDeploy client
        """
        self.client = client

    def report(
        self,
        deployment_id: str,
        hook_execution_id: str,
        status: LifecycleStatus,
    ) -> Optional[str]:
        logger.info(
            "Reporting lifecycle hook status %s",
            status.value,
            extra={"deployment_id": deployment_id, "hook_execution_id": hook_execution_id},
        )
        response = self.client.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=hook_execution_id,
            status=status.value,
        )
        return response.get("lifecycleEventHookExecutionId")
