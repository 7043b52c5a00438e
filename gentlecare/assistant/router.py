"""
The Router - where does this query get answered?

Ordered guards, first match wins:

  1. mode on_device           → ON_DEVICE  (user preference)
  2. mode cloud               → CLOUD if online, else ON_DEVICE
  3. sensitive query          → ON_DEVICE  (privacy)
  4. offline                  → ON_DEVICE  (network unavailable)
  5. intent classification    → ON_DEVICE / CLOUD / HYBRID

Steps 3-5 only run in hybrid mode. An explicit cloud preference is not
overridden by the sensitivity filter.

Connectivity is an injected capability, asked once per decision.
No LLM calls here.
"""

from __future__ import annotations
import logging
from typing import Optional

from .capabilities import ConnectivityCapability
from .classifier import QueryClassifier
from .schemas import (
    AIMode,
    IntentCategory,
    ProfileSnapshot,
    Provider,
    RoutingDecision,
    RoutingReason,
)
from .sensitivity import SensitivityFilter

logger = logging.getLogger(__name__)


INTENT_ROUTES = {
    IntentCategory.SIMPLE: (Provider.ON_DEVICE, RoutingReason.SIMPLE_QUERY),
    IntentCategory.REMINDER: (Provider.ON_DEVICE, RoutingReason.SIMPLE_QUERY),
    IntentCategory.MEDICAL_ADVICE: (Provider.CLOUD, RoutingReason.COMPLEX_QUERY),
    IntentCategory.EMOTIONAL_SUPPORT: (Provider.CLOUD, RoutingReason.COMPLEX_QUERY),
    IntentCategory.COMPLEX: (Provider.CLOUD, RoutingReason.COMPLEX_QUERY),
    IntentCategory.HEALTH_ANALYSIS: (Provider.HYBRID, RoutingReason.NEEDS_PREPROCESSING),
}


class Router:
    """Rule-based provider selection."""

    def __init__(
        self,
        connectivity: ConnectivityCapability,
        classifier: Optional[QueryClassifier] = None,
        sensitivity: Optional[SensitivityFilter] = None,
        default_mode: AIMode = AIMode.HYBRID,
    ):
        self.connectivity = connectivity
        self.classifier = classifier or QueryClassifier()
        self.sensitivity = sensitivity or SensitivityFilter()
        self.default_mode = default_mode

    def resolve_mode(self, profile: Optional[ProfileSnapshot]) -> AIMode:
        if profile is not None and profile.preferred_ai_mode is not None:
            return profile.preferred_ai_mode
        return self.default_mode

    def route(self, query: str, profile: Optional[ProfileSnapshot] = None) -> RoutingDecision:
        mode = self.resolve_mode(profile)

        # 1-2. Explicit preference
        if mode == AIMode.ON_DEVICE:
            return RoutingDecision(
                provider=Provider.ON_DEVICE,
                reason=RoutingReason.USER_PREFERENCE,
            )

        connected = self.connectivity.is_connected()

        if mode == AIMode.CLOUD:
            if connected:
                return RoutingDecision(
                    provider=Provider.CLOUD,
                    reason=RoutingReason.USER_PREFERENCE,
                )
            return RoutingDecision(
                provider=Provider.ON_DEVICE,
                reason=RoutingReason.NETWORK_UNAVAILABLE,
            )

        # 3. Privacy
        hits = self.sensitivity.matches(query)
        if hits:
            logger.debug("Sensitive terms %s, keeping on device", hits)
            return RoutingDecision(
                provider=Provider.ON_DEVICE,
                reason=RoutingReason.PRIVACY_SENSITIVE,
            )

        # 4. Network
        if not connected:
            return RoutingDecision(
                provider=Provider.ON_DEVICE,
                reason=RoutingReason.NETWORK_UNAVAILABLE,
            )

        # 5. Intent
        intent, why = self.classifier.explain(query)
        provider, reason = INTENT_ROUTES[intent]
        logger.debug("Classified as %s (%s)", intent.value, why)
        return RoutingDecision(provider=provider, reason=reason, intent=intent)
