"""Assistant core: classification, routing and dispatch."""

from .capabilities import (
    CloudCapability,
    CloudFailure,
    CloudResult,
    CloudSuccess,
    ConnectivityCapability,
    FailureKind,
    OnDeviceCapability,
)
from .classifier import QueryClassifier
from .orchestrator import Orchestrator, ProcessingState
from .router import Router
from .schemas import (
    AIMode,
    AssistantResponse,
    IntentCategory,
    ProfileSnapshot,
    Provider,
    Query,
    RoutingDecision,
    RoutingReason,
)
from .sensitivity import SensitivityFilter

__all__ = [
    "AIMode",
    "AssistantResponse",
    "CloudCapability",
    "CloudFailure",
    "CloudResult",
    "CloudSuccess",
    "ConnectivityCapability",
    "FailureKind",
    "IntentCategory",
    "OnDeviceCapability",
    "Orchestrator",
    "ProcessingState",
    "ProfileSnapshot",
    "Provider",
    "Query",
    "QueryClassifier",
    "Router",
    "RoutingDecision",
    "RoutingReason",
    "SensitivityFilter",
]
