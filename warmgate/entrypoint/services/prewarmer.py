"""
Warm Pool Prewarmer

Fans out keep-alive invocations of the function so the platform has to
bring up additional execution environments. Each invocation is synchronous
and pauses briefly on arrival, so the environments stay busy long enough to
overlap. Pre-warming is advisory: failures are logged, never raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional

from warmgate.entrypoint.core.exceptions import PrewarmInvocationError
from warmgate.entrypoint.models.invocation import KEEP_ALIVE_HEADER
from warmgate.entrypoint.services.aws_clients import LambdaInvoker

logger = logging.getLogger("warmgate.prewarmer")

KEEP_ALIVE_PAYLOAD = {"headers": {KEEP_ALIVE_HEADER: "1"}}


class WarmPoolPrewarmer:
    def __init__(
        self,
        invoker: LambdaInvoker,
        function_name: str,
        join_timeout: float = 10.0,
        max_workers: int = 32,
    ):
        self.invoker = invoker
        self.function_name = function_name
        self.join_timeout = join_timeout
        self.max_workers = max_workers

    def prewarm(self, count: int, timeout: Optional[float] = None) -> None:
        """
        Issue ``count`` concurrent keep-alive invocations and wait for them.

        Args:
            count: Number of additional environments to populate
            timeout: Join timeout in seconds (defaults to join_timeout)
        """
        if count < 0:
            raise ValueError(f"prewarm count must not be negative: {count}")
        if count == 0:
            return

        timeout = self.join_timeout if timeout is None else min(timeout, self.join_timeout)
        logger.info(
            "Concurrency %d",
            count,
            extra={"function_name": self.function_name, "join_timeout": timeout},
        )

        executor = ThreadPoolExecutor(
            max_workers=min(count, self.max_workers), thread_name_prefix="prewarm"
        )
        try:
            futures = {
                executor.submit(self._invoke_one, index): index for index in range(count)
            }
            done, not_done = wait(futures, timeout=timeout)
        finally:
            # Calls still running past the join timeout are abandoned, not awaited.
            executor.shutdown(wait=False, cancel_futures=True)

        failed = 0
        for future in done:
            error = future.exception()
            if error is not None:
                failed += 1
                logger.warning(str(PrewarmInvocationError(futures[future], error)))

        logger.info(
            "Pre-warm finished",
            extra={
                "requested": count,
                "succeeded": len(done) - failed,
                "failed": failed,
                "unfinished": len(not_done),
            },
        )

    def _invoke_one(self, index: int) -> str:
        logger.debug("Invoke %d", index)
        return self.invoker.invoke(self.function_name, KEEP_ALIVE_PAYLOAD)
