"""
Sensitivity Filter - confidential-data guard.

Flags queries that mention passwords, cards, bank details or social
security numbers. A flagged query in hybrid mode never leaves the device.

Plain lower-cased substring containment, no word boundaries: "ssn"
inside a longer word still matches. Deterministic, no LLM calls.
"""

from __future__ import annotations
from typing import Iterable, Optional


# Spanish terms first, English equivalents after
SENSITIVE_TERMS = (
    "contrasena",
    "contraseña",
    "password",
    "tarjeta",
    "banco",
    "ssn",
    "seguro social",
    "credit card",
    "bank account",
    "social security",
)


class SensitivityFilter:
    """Denylist matcher over the whole query."""

    def __init__(self, terms: Optional[Iterable[str]] = None):
        source = SENSITIVE_TERMS if terms is None else terms
        self.terms = tuple(t.lower() for t in source if t)

    def matches(self, query: str) -> list[str]:
        """Return every denylist term found in the query, in denylist order."""
        lowered = query.lower()
        return [t for t in self.terms if t in lowered]

    def is_sensitive(self, query: str) -> bool:
        lowered = query.lower()
        return any(t in lowered for t in self.terms)
