"""
Shared fakes for the assistant tests.
"""

from datetime import datetime

import pytest

from gentlecare.assistant.capabilities import CloudFailure, CloudSuccess, FailureKind
from gentlecare.assistant.connectivity import StaticConnectivity
from gentlecare.assistant.router import Router
from gentlecare.assistant.schemas import (
    AppointmentSummary,
    MedicationSummary,
    ProfileSnapshot,
)


class FakeOnDevice:
    """Records every call in order."""

    def __init__(self, reply: str = "respuesta local"):
        self.reply = reply
        self.calls: list[tuple] = []

    async def process(self, query, profile):
        self.calls.append(("process", query))
        return self.reply

    async def build_context(self, profile):
        self.calls.append(("build_context",))
        return "contexto del paciente"

    async def personalize(self, text, profile):
        self.calls.append(("personalize", text))
        return f"Hola. {text}"


class FakeCloud:
    """Returns a fixed CloudResult and records what it was asked."""

    def __init__(self, result=None):
        self.result = result or CloudSuccess(text="respuesta de la nube")
        self.calls: list[tuple] = []

    async def chat(self, query, context, profile):
        self.calls.append(("chat", query, context))
        return self.result


@pytest.fixture
def on_device():
    return FakeOnDevice()


@pytest.fixture
def cloud():
    return FakeCloud()


@pytest.fixture
def failing_cloud():
    return FakeCloud(CloudFailure(kind=FailureKind.NETWORK, message="connection refused"))


@pytest.fixture
def online():
    return StaticConnectivity(True)


@pytest.fixture
def offline():
    return StaticConnectivity(False)


@pytest.fixture
def router(online):
    return Router(connectivity=online)


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 17, 9, 30)


@pytest.fixture
def profile(fixed_now):
    return ProfileSnapshot(
        first_name="Rosa",
        last_name="Garcia",
        age=78,
        medical_conditions=["hipertension", "diabetes tipo 2"],
        allergies=["penicilina"],
        active_medications=[
            MedicationSummary(
                name="Losartan",
                dose="50 mg",
                next_dose_at=datetime(2026, 10, 17, 11, 45),
            ),
            MedicationSummary(name="Metformina", dose="850 mg"),
        ],
        upcoming_appointments=[
            AppointmentSummary(
                doctor_name="Dra. Lopez",
                starts_at=datetime(2026, 10, 18, 10, 0),
                location="Clinica Norte",
            ),
        ],
    )
