"""
Services package.

Provides the dispatcher, pre-warming, smoke testing and deployment gate logic.
"""

from .aws_clients import LambdaInvoker, StatusReporter
from .backing_host import BackingHost, MangumHost
from .deployment_gate import DeploymentGateController
from .dispatcher import InvocationDispatcher
from .prewarmer import WarmPoolPrewarmer
from .smoke_tests import DirectTarget, PublicEndpointTarget, SmokeTestRunner, load_manifest

__all__ = [
    "BackingHost",
    "DeploymentGateController",
    "DirectTarget",
    "InvocationDispatcher",
    "LambdaInvoker",
    "MangumHost",
    "PublicEndpointTarget",
    "SmokeTestRunner",
    "StatusReporter",
    "WarmPoolPrewarmer",
    "load_manifest",
]
