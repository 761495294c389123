"""
Entry point configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults. The camel-case names
(LambdaToInvoke, ApiBaseUrl, VersionToTest) are still accepted for stacks
deployed before the upper-case names existed.
"""

from pydantic import AliasChoices, Field
from warmgate.common.core.config import BaseAppConfig


class EntryPointConfig(BaseAppConfig):
    """
    Configuration management for the Lambda entry point.
    """

    # Lambda runtime (set by the platform)
    AWS_LAMBDA_FUNCTION_NAME: str = Field(default="", description="Current function name")
    AWS_LAMBDA_FUNCTION_VERSION: str = Field(
        default="$LATEST", description="Current function version"
    )
    AWS_REGION: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
        description="Region for AWS clients and request signing",
    )

    # Targets
    LAMBDA_TO_INVOKE: str = Field(
        default="",
        validation_alias=AliasChoices("LAMBDA_TO_INVOKE", "LambdaToInvoke"),
        description="Function invoked for fan-out (defaults to the current function)",
    )
    API_BASE_URL: str = Field(
        default="",
        validation_alias=AliasChoices("API_BASE_URL", "ApiBaseUrl"),
        description="Public endpoint base URL for post-traffic probing",
    )
    VERSION_TO_TEST: str = Field(
        default="",
        validation_alias=AliasChoices("VERSION_TO_TEST", "VersionToTest"),
        description="Qualified function ARN/name probed by the pre-traffic hook",
    )
    PRE_HOOK_TRIGGER: str = Field(
        default="", description="Set on hook functions; defers building the backing host"
    )

    # Control traffic
    ENABLE_CONCURRENCY_FANOUT: bool = Field(
        default=True, description="Honor the __CONCURRENCY__ header"
    )
    HEALTH_CHECK_PATH: str = Field(default="/ping", description="Synthetic ping path")
    KEEP_ALIVE_PAUSE_MS: int = Field(
        default=75, ge=0, description="Pause on keep-alive invocations (milliseconds)"
    )
    PREWARM_JOIN_TIMEOUT: float = Field(
        default=10.0, gt=0, description="Max wait for the fan-out to finish (seconds)"
    )
    PREWARM_MAX_WORKERS: int = Field(default=32, ge=1, description="Fan-out thread pool size")

    # Application traffic
    SOFT_DEADLINE_RATIO: float = Field(
        default=0.75, gt=0, le=1, description="Share of the remaining budget before cancelling"
    )

    # Deployment gate
    ENABLE_DEPLOYMENT_GATE: bool = Field(default=True, description="Run smoke tests in hooks")
    SMOKE_TEST_MANIFEST_PATH: str = Field(
        default="smoketests.json", description="Smoke test manifest file path"
    )
    PROBE_TIMEOUT: float = Field(default=30.0, gt=0, description="Per probe timeout (seconds)")
    SIGN_PUBLIC_REQUESTS: bool = Field(
        default=True, description="SigV4 sign post-traffic probes (IAM protected APIs)"
    )
    AWS_MAX_ATTEMPTS: int = Field(default=3, ge=1, description="botocore retry attempts")

    @property
    def target_function_name(self) -> str:
        """Function invoked for fan-out."""
        return self.LAMBDA_TO_INVOKE or self.AWS_LAMBDA_FUNCTION_NAME

    @property
    def defer_host_startup(self) -> bool:
        return bool(self.PRE_HOOK_TRIGGER)
