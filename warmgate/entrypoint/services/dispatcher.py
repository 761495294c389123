"""
Invocation Dispatcher

Single entry point for every invocation. Control invocations (no HTTP
method) drive warm-pool fan-out and keep-alive pings; application traffic is
correlation-stamped and forwarded to the backing host under a soft deadline.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from warmgate.entrypoint.config import EntryPointConfig
from warmgate.entrypoint.core.deadline import (
    SoftDeadline,
    remaining_budget_ms,
    soft_deadline_seconds,
)
from warmgate.entrypoint.core.event_builder import V1ProxyEventBuilder
from warmgate.entrypoint.models.aws_v1 import APIGatewayProxyResponse
from warmgate.entrypoint.models.invocation import (
    CONCURRENCY_HEADER,
    KEEP_ALIVE_HEADER,
    InvocationEvent,
    ProcessState,
)
from warmgate.entrypoint.services.backing_host import BackingHost
from warmgate.entrypoint.services.prewarmer import WarmPoolPrewarmer

logger = logging.getLogger("warmgate.dispatcher")


def parse_concurrency(value: Any) -> Optional[int]:
    """Parse the __CONCURRENCY__ header; None when it is not an integer."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class InvocationDispatcher:
    def __init__(
        self,
        host: BackingHost,
        prewarmer: WarmPoolPrewarmer,
        state: ProcessState,
        config: EntryPointConfig,
        event_builder: Optional[V1ProxyEventBuilder] = None,
        sleep=time.sleep,
    ):
        self.host = host
        self.prewarmer = prewarmer
        self.state = state
        self.config = config
        self.event_builder = event_builder or V1ProxyEventBuilder()
        self._sleep = sleep

    def handle(self, event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
        invocation = InvocationEvent.from_dict(event)
        if invocation.is_control:
            return self._handle_control(invocation, context)
        return self._handle_application(invocation, context)

    def _handle_control(self, invocation: InvocationEvent, context: Any) -> Dict[str, Any]:
        # Control traffic has no caller; its logs must not carry the last request's id.
        self.state.correlation.clear()
        headers = invocation.headers

        if CONCURRENCY_HEADER in headers and self.config.ENABLE_CONCURRENCY_FANOUT:
            concurrency = parse_concurrency(headers[CONCURRENCY_HEADER])
            if concurrency is None:
                logger.warning(
                    "Ignoring malformed concurrency header",
                    extra={"value": headers[CONCURRENCY_HEADER]},
                )
            else:
                self.prewarmer.prewarm(max(concurrency - 1, 0), timeout=self._join_timeout(context))

        if KEEP_ALIVE_HEADER in headers:
            # Best effort against the platform reusing this environment for a
            # sibling keep-alive call; it does not guarantee distinct environments.
            self._sleep(self.config.KEEP_ALIVE_PAUSE_MS / 1000.0)

        if not self.state.warm and not invocation.has_control_header:
            logger.info("Customer affected by coldstart")

        logger.info(json.dumps(invocation.raw, default=str))

        if self.state.warm:
            logger.info("ping")
            return APIGatewayProxyResponse().model_dump()

        logger.info("Keep-alive invocation")
        ping_event = self.event_builder.build_ping(self.config.HEALTH_CHECK_PATH)
        return self._forward(ping_event, context)

    def _handle_application(self, invocation: InvocationEvent, context: Any) -> Dict[str, Any]:
        correlation = self.state.correlation
        correlation_id = correlation.resolve(invocation.headers)

        event = invocation.raw
        if invocation.headers.get(correlation.header_name) != correlation_id:
            event = dict(event)
            event["headers"] = {**invocation.headers, correlation.header_name: correlation_id}

        return self._forward(event, context)

    def _forward(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        try:
            with SoftDeadline(remaining_budget_ms(context), self.config.SOFT_DEADLINE_RATIO):
                return self.host(event, context)
        finally:
            self.state.warm = True

    def _join_timeout(self, context: Any) -> Optional[float]:
        # Leave the rest of the budget for the synthetic ping.
        remaining = remaining_budget_ms(context)
        if remaining is None:
            return None
        return soft_deadline_seconds(remaining, self.config.SOFT_DEADLINE_RATIO)
