"""
Lambda entry point assembly.

A consuming application builds one LambdaEntryPoint at import time and
exposes its three handlers:

    entry_point = LambdaEntryPoint(create_app)
    handler = entry_point.handler
    pre_traffic_hook = entry_point.pre_traffic_hook
    post_traffic_hook = entry_point.post_traffic_hook

The instance lives as long as the execution environment and owns the
process state (warm flag, correlation context).
"""

import logging
from functools import cached_property
from typing import Any, Callable, Dict, Optional

import httpx

from warmgate.common.core.http_client import HttpClientFactory
from warmgate.common.core.lambda_logging import flush_logs
from warmgate.common.core.logging_config import setup_logging
from warmgate.common.core.request_context import install_correlation_filter

from .config import EntryPointConfig
from .models.deployment import LifecycleStatus, TargetMode
from .models.invocation import ProcessState
from .services.aws_clients import LambdaInvoker, StatusReporter, create_client
from .services.backing_host import AppFactory, BackingHost, MangumHost
from .services.deployment_gate import DeploymentGateController
from .services.dispatcher import InvocationDispatcher
from .services.prewarmer import WarmPoolPrewarmer
from .services.smoke_tests import DirectTarget, PublicEndpointTarget, SmokeTestRunner

logger = logging.getLogger("warmgate.main")


class LambdaEntryPoint:
    """
    Wires the dispatcher and the deployment gate.

    Args:
        app_factory: Builds the ASGI application served for application traffic
        config: Settings (read from the environment when omitted)
        host: Backing host to use instead of wrapping ``app_factory`` with Mangum
        lambda_client: boto3 Lambda client (created on first use when omitted)
        codedeploy_client: boto3 CodeDeploy client (created on first use when omitted)
        http_client: httpx.Client for post-traffic probes (created on first use when omitted)
        on_correlation_id: Called with each resolved correlation id
        configure_logging: Apply setup_logging() from LOG_CONFIG_PATH
    """

    def __init__(
        self,
        app_factory: Optional[AppFactory] = None,
        config: Optional[EntryPointConfig] = None,
        *,
        host: Optional[BackingHost] = None,
        lambda_client: Any = None,
        codedeploy_client: Any = None,
        http_client: Optional[httpx.Client] = None,
        on_correlation_id: Optional[Callable[[str], None]] = None,
        configure_logging: bool = True,
    ):
        self.config = config or EntryPointConfig()
        if configure_logging:
            setup_logging(self.config.LOG_CONFIG_PATH, self.config.LOG_LEVEL)

        self.state = ProcessState()
        install_correlation_filter(self.state.correlation)
        if on_correlation_id is not None:
            self.state.correlation.subscribe(on_correlation_id)

        if host is None:
            if app_factory is None:
                raise ValueError("Either app_factory or host must be provided")
            # Hook functions never serve application traffic; don't build the app up front.
            host = MangumHost(app_factory, eager=not self.config.defer_host_startup)
        self.host = host

        self._lambda_client = lambda_client
        self._codedeploy_client = codedeploy_client
        self._http_client = http_client

        self.handler = flush_logs(self._handle)
        self.pre_traffic_hook = flush_logs(self._pre_traffic_hook)
        self.post_traffic_hook = flush_logs(self._post_traffic_hook)

    # ===========================================
    # Lazily created clients and services
    # ===========================================

    @cached_property
    def lambda_invoker(self) -> LambdaInvoker:
        client = self._lambda_client or create_client(
            "lambda", self.config, read_timeout=self.config.PROBE_TIMEOUT
        )
        return LambdaInvoker(client)

    @cached_property
    def status_reporter(self) -> StatusReporter:
        client = self._codedeploy_client or create_client("codedeploy", self.config)
        return StatusReporter(client)

    @cached_property
    def http_client(self) -> httpx.Client:
        if self._http_client is not None:
            return self._http_client
        factory = HttpClientFactory(self.config)
        factory.configure_global_settings()
        return factory.create_sync_client(
            base_url=self.config.API_BASE_URL,
            sign_region=self.config.AWS_REGION if self.config.SIGN_PUBLIC_REQUESTS else None,
            timeout=self.config.PROBE_TIMEOUT,
        )

    @cached_property
    def dispatcher(self) -> InvocationDispatcher:
        prewarmer = WarmPoolPrewarmer(
            self.lambda_invoker,
            self.config.target_function_name,
            join_timeout=self.config.PREWARM_JOIN_TIMEOUT,
            max_workers=self.config.PREWARM_MAX_WORKERS,
        )
        return InvocationDispatcher(self.host, prewarmer, self.state, self.config)

    @cached_property
    def deployment_gate(self) -> DeploymentGateController:
        runner = SmokeTestRunner(
            {
                TargetMode.DIRECT: DirectTarget(self.lambda_invoker, self.config.VERSION_TO_TEST),
                TargetMode.PUBLIC_ENDPOINT: PublicEndpointTarget(
                    lambda: self.http_client, timeout=self.config.PROBE_TIMEOUT
                ),
            }
        )
        return DeploymentGateController(
            runner,
            self.status_reporter,
            self.config.SMOKE_TEST_MANIFEST_PATH,
            enabled=self.config.ENABLE_DEPLOYMENT_GATE,
        )

    # ===========================================
    # Lambda handlers
    # ===========================================

    def _handle(self, event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
        return self.dispatcher.handle(event, context)

    def _pre_traffic_hook(self, event: Dict[str, Any], context: Any = None) -> str:
        logger.info(
            f"PreHook. Version {self.config.AWS_LAMBDA_FUNCTION_VERSION}",
            extra={"version_to_test": self.config.VERSION_TO_TEST},
        )
        status: LifecycleStatus = self.deployment_gate.pre_traffic_hook(event)
        return status.value

    def _post_traffic_hook(self, event: Dict[str, Any], context: Any = None) -> str:
        logger.info(
            f"PostHook. Version {self.config.AWS_LAMBDA_FUNCTION_VERSION}",
            extra={"api_base_url": self.config.API_BASE_URL},
        )
        status: LifecycleStatus = self.deployment_gate.post_traffic_hook(event)
        return status.value
