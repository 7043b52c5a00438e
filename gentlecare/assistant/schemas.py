"""
Pydantic schemas for the assistant core.

Value objects only. The core reads a ProfileSnapshot, produces a
RoutingDecision per query and hands back an AssistantResponse.
Nothing here is persisted by the core itself.
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AIMode(str, Enum):
    """User-selected preference for where answers are produced."""
    ON_DEVICE = "on_device"
    CLOUD = "cloud"
    HYBRID = "hybrid"


class Provider(str, Enum):
    """Where an answer was (or will be) produced. Exactly three variants."""
    ON_DEVICE = "on_device"
    CLOUD = "cloud"
    HYBRID = "hybrid"

    @property
    def is_private(self) -> bool:
        return self is Provider.ON_DEVICE


class RoutingReason(str, Enum):
    USER_PREFERENCE = "user_preference"
    PRIVACY_SENSITIVE = "privacy_sensitive"
    NETWORK_UNAVAILABLE = "network_unavailable"
    SIMPLE_QUERY = "simple_query"
    COMPLEX_QUERY = "complex_query"
    NEEDS_PREPROCESSING = "needs_preprocessing"


class IntentCategory(str, Enum):
    SIMPLE = "simple"
    REMINDER = "reminder"
    MEDICAL_ADVICE = "medical_advice"
    EMOTIONAL_SUPPORT = "emotional_support"
    HEALTH_ANALYSIS = "health_analysis"
    COMPLEX = "complex"


class Query(BaseModel):
    """One user turn."""
    model_config = ConfigDict(frozen=True)

    text: str
    is_voice_input: bool = False


class MedicationSummary(BaseModel):
    """An active medication as seen by the assistant."""
    model_config = ConfigDict(frozen=True)

    name: str
    dose: str = Field(description="Formatted dose, e.g. '10 mg'")
    next_dose_at: Optional[datetime] = None


class AppointmentSummary(BaseModel):
    """An upcoming appointment as seen by the assistant."""
    model_config = ConfigDict(frozen=True)

    doctor_name: str
    starts_at: datetime
    location: str = ""


class ProfileSnapshot(BaseModel):
    """Read-only view of the care recipient, supplied by the caller."""
    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str = ""
    age: int = Field(default=0, ge=0)
    medical_conditions: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    active_medications: list[MedicationSummary] = Field(default_factory=list)
    upcoming_appointments: list[AppointmentSummary] = Field(default_factory=list)
    preferred_ai_mode: Optional[AIMode] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class RoutingDecision(BaseModel):
    """Output of the Routing Engine. Produced fresh per query."""
    model_config = ConfigDict(frozen=True)

    provider: Provider
    reason: RoutingReason
    intent: Optional[IntentCategory] = Field(
        default=None,
        description="Classifier output, set only when the classifier decided the route",
    )


class AssistantResponse(BaseModel):
    """What the orchestrator hands back for one query.

    `provider` is the provider that actually produced `content`; it differs
    from `decision.provider` when the cloud path failed and the on-device
    fallback answered instead.
    """
    model_config = ConfigDict(frozen=True)

    content: str
    provider: Provider
    processing_time: float = Field(ge=0.0, description="Seconds")
    was_privacy_preserving: bool
    decision: RoutingDecision
    fell_back: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_privacy_flag(cls, data: Any) -> Any:
        if isinstance(data, dict) and "was_privacy_preserving" not in data:
            provider = data.get("provider")
            if provider is not None:
                data = dict(data)
                data["was_privacy_preserving"] = Provider(provider).is_private
        return data

    @model_validator(mode="after")
    def _check_privacy_flag(self) -> "AssistantResponse":
        if self.was_privacy_preserving != self.provider.is_private:
            raise ValueError(
                "was_privacy_preserving must be true exactly when provider is on_device"
            )
        return self
