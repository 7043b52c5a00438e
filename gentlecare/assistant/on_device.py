"""
On-device responder.

Answers from the profile alone: next medication, next appointment, where
to find vital signs. Anything else gets a gentle suggestion to ask the
doctor or caregiver. Also builds the patient context paragraph for the
hybrid path and personalizes cloud answers with a greeting.

Nothing here touches the network and nothing here raises.
"""

from __future__ import annotations
from datetime import datetime
from typing import Callable, Optional

from .schemas import AppointmentSummary, MedicationSummary, ProfileSnapshot


FALLBACK_NAME = "amigo"

MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
    "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


def greeting_for(moment: datetime) -> str:
    """Time-of-day greeting."""
    if moment.hour < 12:
        return "Buenos dias"
    if moment.hour < 18:
        return "Buenas tardes"
    return "Buenas noches"


def time_until(target: datetime, now: datetime) -> Optional[str]:
    """'en 2h 15m', 'en 40 minutos' or 'ahora'. None if target is past."""
    seconds = int((target - now).total_seconds())
    if seconds < 0:
        return None
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"en {hours}h {minutes}m"
    if minutes > 0:
        return f"en {minutes} minutos"
    return "ahora"


def relative_date(target: datetime, now: datetime) -> str:
    days = (target.date() - now.date()).days
    clock = target.strftime("%H:%M")
    if days == 0:
        return f"Hoy a las {clock}"
    if days == 1:
        return f"Manana a las {clock}"
    if 0 < days <= 7:
        return f"En {days} dias"
    return f"{target.day} de {MONTHS_ES[target.month - 1]} de {target.year}"


class OnDeviceAssistant:
    """Rule-based local answers. Implements OnDeviceCapability."""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        fallback_name: str = FALLBACK_NAME,
    ):
        self.clock = clock
        self.fallback_name = fallback_name

    def _next_medication(
        self, profile: Optional[ProfileSnapshot], now: datetime
    ) -> Optional[tuple[MedicationSummary, str]]:
        if profile is None or not profile.active_medications:
            return None
        med = profile.active_medications[0]
        if med.next_dose_at is None:
            return None
        when = time_until(med.next_dose_at, now)
        if when is None:
            return None
        return med, when

    def _next_appointment(
        self, profile: Optional[ProfileSnapshot], now: datetime
    ) -> Optional[AppointmentSummary]:
        if profile is None:
            return None
        upcoming = sorted(
            (a for a in profile.upcoming_appointments if a.starts_at > now),
            key=lambda a: a.starts_at,
        )
        return upcoming[0] if upcoming else None

    def reply(self, query: str, profile: Optional[ProfileSnapshot]) -> str:
        now = self.clock()
        name = profile.first_name if profile is not None else self.fallback_name
        prefix = f"{greeting_for(now)}, {name}."
        lowered = query.lower()

        if "proxima" in lowered and "medic" in lowered:
            found = self._next_medication(profile, now)
            if found:
                med, when = found
                return f"{prefix} Tu proxima medicina es {med.name} {med.dose}, {when}."
            return f"{prefix} No tienes medicamentos programados proximamente."

        if "cita" in lowered:
            apt = self._next_appointment(profile, now)
            if apt:
                where = f" en {apt.location}" if apt.location else ""
                return (
                    f"{prefix} Tu proxima cita es con {apt.doctor_name}, "
                    f"{relative_date(apt.starts_at, now)}{where}."
                )
            return f"{prefix} No tienes citas programadas."

        if "signos" in lowered or "vitales" in lowered:
            return (
                f"{prefix} Puedo ver tus signos vitales en la seccion de Salud. "
                f"Toca el boton de Salud en el menu inferior."
            )

        return (
            f"{prefix} Entiendo tu pregunta. Para obtener una respuesta mas completa, "
            f"te recomiendo consultar con tu medico o cuidador."
        )

    async def process(self, query: str, profile: Optional[ProfileSnapshot]) -> str:
        return self.reply(query, profile)

    async def build_context(self, profile: Optional[ProfileSnapshot]) -> str:
        """Short patient summary handed to the cloud model on the hybrid path."""
        if profile is None:
            return ""

        parts = [f"Paciente: {profile.full_name}, {profile.age} anos. "]
        if profile.medical_conditions:
            parts.append(f"Condiciones: {', '.join(profile.medical_conditions)}. ")
        if profile.allergies:
            parts.append(f"Alergias: {', '.join(profile.allergies)}. ")
        meds = [f"{m.name} {m.dose}" for m in profile.active_medications]
        if meds:
            parts.append(f"Medicamentos: {', '.join(meds)}. ")
        return "".join(parts)

    async def personalize(self, text: str, profile: Optional[ProfileSnapshot]) -> str:
        if profile is None:
            return text
        return f"{greeting_for(self.clock())}, {profile.first_name}. {text}"
