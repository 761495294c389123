"""
Backing request-processing host.

The host turns a Lambda proxy event into a response. Any callable with the
Lambda handler signature qualifies; MangumHost adapts an ASGI application
produced by a caller-supplied factory.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Protocol

from mangum import Mangum

logger = logging.getLogger("warmgate.backing_host")

AppFactory = Callable[[], Any]


class BackingHost(Protocol):
    def __call__(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        ...


class MangumHost:
    """
    ASGI application behind the Mangum adapter.

    Args:
        app_factory: Builds the ASGI app (routes, middleware, dependency wiring)
        eager: Build at construction; otherwise on the first request
    """

    def __init__(self, app_factory: AppFactory, eager: bool = True):
        self.app_factory = app_factory
        self._handler: Optional[Mangum] = None
        self._lock = threading.Lock()
        if eager:
            self._build()

    @property
    def started(self) -> bool:
        return self._handler is not None

    def _build(self) -> Mangum:
        with self._lock:
            if self._handler is None:
                logger.info("Building backing host")
                # lifespan="off" disables ASGI lifespan events which aren't needed in Lambda
                self._handler = Mangum(self.app_factory(), lifespan="off")
        return self._handler

    def __call__(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        return self._build()(event, context)
