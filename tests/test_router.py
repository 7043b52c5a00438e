"""
Tests for the Router - ordered routing guards
"""

import logging

import pytest

from gentlecare.assistant.connectivity import StaticConnectivity
from gentlecare.assistant.router import Router
from gentlecare.assistant.schemas import (
    AIMode,
    IntentCategory,
    ProfileSnapshot,
    Provider,
    RoutingReason,
)


class CountingConnectivity(StaticConnectivity):
    def __init__(self, connected: bool):
        super().__init__(connected)
        self.checks = 0

    def is_connected(self) -> bool:
        self.checks += 1
        return super().is_connected()


def profile_with(mode):
    return ProfileSnapshot(first_name="Rosa", preferred_ai_mode=mode)


QUERIES = [
    "",
    "hola",
    "cual es mi contrasena del banco",
    "tengo ansiedad y no puedo dormir",
    "cual es el promedio de mi presion",
    "uno dos tres cuatro cinco seis siete ocho nueve diez",
]


class TestUserPreference:

    @pytest.mark.parametrize("query", QUERIES)
    @pytest.mark.parametrize("connected", [True, False])
    def test_on_device_mode_always_on_device(self, query, connected):
        router = Router(connectivity=StaticConnectivity(connected))
        decision = router.route(query, profile_with(AIMode.ON_DEVICE))
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.USER_PREFERENCE

    def test_on_device_mode_skips_connectivity_check(self):
        probe = CountingConnectivity(True)
        Router(connectivity=probe).route("hola", profile_with(AIMode.ON_DEVICE))
        assert probe.checks == 0

    def test_cloud_mode_online(self):
        router = Router(connectivity=StaticConnectivity(True))
        decision = router.route("hola", profile_with(AIMode.CLOUD))
        assert decision.provider == Provider.CLOUD
        assert decision.reason == RoutingReason.USER_PREFERENCE

    @pytest.mark.parametrize("query", QUERIES)
    def test_cloud_mode_offline_falls_to_device(self, query):
        """Scenario D: explicit cloud but no network."""
        router = Router(connectivity=StaticConnectivity(False))
        decision = router.route(query, profile_with(AIMode.CLOUD))
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.NETWORK_UNAVAILABLE

    def test_cloud_mode_not_overridden_by_sensitivity(self):
        """Explicit cloud preference bypasses the sensitivity filter."""
        router = Router(connectivity=StaticConnectivity(True))
        decision = router.route("cual es mi contrasena del banco", profile_with(AIMode.CLOUD))
        assert decision.provider == Provider.CLOUD
        assert decision.reason == RoutingReason.USER_PREFERENCE


class TestHybridRouting:

    def test_no_profile_defaults_to_hybrid(self, router):
        assert router.resolve_mode(None) == AIMode.HYBRID

    def test_profile_without_mode_uses_default(self):
        router = Router(connectivity=StaticConnectivity(True), default_mode=AIMode.CLOUD)
        assert router.resolve_mode(profile_with(None)) == AIMode.CLOUD

    def test_scenario_a_emotional_goes_to_cloud(self, router):
        decision = router.route("tengo ansiedad y no puedo dormir")
        assert decision.provider == Provider.CLOUD
        assert decision.reason == RoutingReason.COMPLEX_QUERY
        assert decision.intent == IntentCategory.EMOTIONAL_SUPPORT

    def test_scenario_b_sensitive_stays_on_device(self, router):
        decision = router.route("cual es mi contrasena del banco")
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.PRIVACY_SENSITIVE
        assert decision.intent is None

    def test_sensitive_hits_logged(self, router, caplog):
        with caplog.at_level(logging.DEBUG, logger="gentlecare.assistant.router"):
            router.route("cual es mi contrasena del banco")
        assert "contrasena" in caplog.text
        assert "banco" in caplog.text

    @pytest.mark.parametrize("query", [
        "tengo ansiedad y no puedo dormir",
        "cual es el promedio de mi presion",
        "uno dos tres cuatro cinco seis siete ocho nueve diez",
        "hola",
    ])
    def test_scenario_c_offline_before_classification(self, query):
        router = Router(connectivity=StaticConnectivity(False))
        decision = router.route(query)
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.NETWORK_UNAVAILABLE

    def test_sensitive_checked_before_network(self):
        router = Router(connectivity=StaticConnectivity(False))
        decision = router.route("mi password")
        assert decision.reason == RoutingReason.PRIVACY_SENSITIVE

    @pytest.mark.parametrize("query", [
        "mi password por favor",
        "debo tomar algo con mi tarjeta",
        "numero de seguro social y promedio",
    ])
    def test_sensitive_always_on_device_in_hybrid(self, router, query):
        decision = router.route(query, profile_with(AIMode.HYBRID))
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.PRIVACY_SENSITIVE

    def test_scenario_f_empty_query(self, router):
        decision = router.route("")
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.SIMPLE_QUERY
        assert decision.intent == IntentCategory.SIMPLE

    def test_reminder_stays_on_device(self, router):
        decision = router.route("a que hora es mi cita")
        assert decision.provider == Provider.ON_DEVICE
        assert decision.reason == RoutingReason.SIMPLE_QUERY

    def test_medical_goes_to_cloud(self, router):
        decision = router.route("es seguro mezclar estas pastillas")
        assert decision.provider == Provider.CLOUD
        assert decision.reason == RoutingReason.COMPLEX_QUERY

    def test_long_query_goes_to_cloud(self, router):
        decision = router.route("uno dos tres cuatro cinco seis siete ocho nueve diez")
        assert decision.provider == Provider.CLOUD
        assert decision.intent == IntentCategory.COMPLEX

    def test_health_analysis_goes_hybrid(self, router):
        decision = router.route("cual es el promedio de mi presion")
        assert decision.provider == Provider.HYBRID
        assert decision.reason == RoutingReason.NEEDS_PREPROCESSING

    def test_connectivity_asked_once_per_decision(self):
        probe = CountingConnectivity(True)
        router = Router(connectivity=probe)
        router.route("hola")
        router.route("tengo ansiedad")
        assert probe.checks == 2

    def test_connectivity_change_between_decisions(self):
        probe = StaticConnectivity(True)
        router = Router(connectivity=probe)
        assert router.route("tengo ansiedad").provider == Provider.CLOUD
        probe.connected = False
        assert router.route("tengo ansiedad").provider == Provider.ON_DEVICE
