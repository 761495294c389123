"""
Where: warmgate/entrypoint/services/deployment_gate.py
What: Pre/post-traffic lifecycle hooks around the smoke test runner.
Why: CodeDeploy only consumes the reported status, so every hook run ends in
exactly one status report and never in a raised exception.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from warmgate.entrypoint.core.exceptions import InvalidGateTransition
from warmgate.entrypoint.models.deployment import (
    DeploymentHookEvent,
    GateState,
    LifecycleStatus,
    SmokeTest,
    TargetMode,
)
from warmgate.entrypoint.services.aws_clients import StatusReporter
from warmgate.entrypoint.services.smoke_tests import SmokeTestRunner, load_manifest

logger = logging.getLogger("warmgate.deployment_gate")

_TRANSITIONS = {
    GateState.IDLE: {GateState.RUNNING},
    GateState.RUNNING: {GateState.SUCCEEDED, GateState.FAILED},
    GateState.SUCCEEDED: {GateState.REPORTED},
    GateState.FAILED: {GateState.REPORTED},
    GateState.REPORTED: set(),
}


class HookExecution:
    """State machine of a single hook invocation."""

    def __init__(self, hook: str, deployment_id: str, hook_execution_id: str):
        self.hook = hook
        self.deployment_id = deployment_id
        self.hook_execution_id = hook_execution_id
        self.state = GateState.IDLE
        self.history: List[GateState] = [GateState.IDLE]

    def transition(self, target: GateState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidGateTransition(self.state.value, target.value)
        logger.debug(
            f"{self.hook}: {self.state.value} -> {target.value}",
            extra={"deployment_id": self.deployment_id},
        )
        self.state = target
        self.history.append(target)

    def finish(self, status: LifecycleStatus) -> None:
        self.transition(
            GateState.SUCCEEDED if status is LifecycleStatus.SUCCEEDED else GateState.FAILED
        )

    @property
    def status(self) -> Optional[LifecycleStatus]:
        if GateState.SUCCEEDED in self.history:
            return LifecycleStatus.SUCCEEDED
        if GateState.FAILED in self.history:
            return LifecycleStatus.FAILED
        return None


class DeploymentGateController:
    def __init__(
        self,
        runner: SmokeTestRunner,
        reporter: StatusReporter,
        manifest_path: str,
        manifest_loader: Callable[[str], List[SmokeTest]] = load_manifest,
        enabled: bool = True,
    ):
        self.runner = runner
        self.reporter = reporter
        self.manifest_path = manifest_path
        self.manifest_loader = manifest_loader
        self.enabled = enabled
        self.last_execution: Optional[HookExecution] = None

    def pre_traffic_hook(self, event: Dict[str, Any]) -> LifecycleStatus:
        """Verify the candidate version directly; no live endpoint reaches it yet."""
        return self._run_hook("PreTraffic", event, TargetMode.DIRECT)

    def post_traffic_hook(self, event: Dict[str, Any]) -> LifecycleStatus:
        """Verify through the live endpoint once traffic has shifted."""
        return self._run_hook("PostTraffic", event, TargetMode.PUBLIC_ENDPOINT)

    def _run_hook(self, hook: str, event: Dict[str, Any], mode: TargetMode) -> LifecycleStatus:
        try:
            deployment = DeploymentHookEvent.model_validate(event or {})
        except ValidationError as e:
            # Without both ids there is nothing to report against.
            logger.error(f"{hook} hook received an invalid deployment event: {e}")
            return LifecycleStatus.FAILED

        execution = HookExecution(hook, deployment.deployment_id, deployment.hook_execution_id)
        self.last_execution = execution
        execution.transition(GateState.RUNNING)

        status = LifecycleStatus.FAILED
        try:
            status = self._verify(hook, mode)
        except Exception as e:
            logger.error(
                f"{hook} verification failed: {e}",
                exc_info=True,
                extra={"deployment_id": deployment.deployment_id},
            )
            status = LifecycleStatus.FAILED
        finally:
            execution.finish(status)
            self._report(execution)

        return execution.status

    def _verify(self, hook: str, mode: TargetMode) -> LifecycleStatus:
        if not self.enabled:
            logger.warning(f"{hook}: deployment gate disabled, skipping smoke tests")
            return LifecycleStatus.SUCCEEDED

        tests = self.manifest_loader(self.manifest_path)
        return self.runner.run(tests, mode)

    def _report(self, execution: HookExecution) -> None:
        status = execution.status
        try:
            self.reporter.report(execution.deployment_id, execution.hook_execution_id, status)
        except Exception:
            # The orchestrator times the hook out when no status arrives.
            logger.exception(
                "Failed to report lifecycle hook status",
                extra={
                    "deployment_id": execution.deployment_id,
                    "hook_execution_id": execution.hook_execution_id,
                    "status": status.value,
                },
            )
            return
        execution.transition(GateState.REPORTED)
