"""
Query Classifier - keyword intent buckets.

Keyword sets are tested in a fixed priority order and the first set with
any hit wins:

  1. medical_advice
  2. emotional_support
  3. health_analysis
  4. reminder

A query phrased as both medical and emotional is medical_advice because
that set is checked first. Queries with no hit fall back to a word-count
rule: under `simple_word_limit` whitespace-separated words is simple,
anything longer is complex.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .schemas import IntentCategory


@dataclass(frozen=True)
class KeywordSet:
    """Substring keywords that map a query to one intent category."""
    category: IntentCategory
    keywords: tuple[str, ...]

    def hit(self, lowered: str) -> Optional[str]:
        for kw in self.keywords:
            if kw in lowered:
                return kw
        return None


MEDICAL_KEYWORDS = (
    "debo tomar", "es seguro", "efecto secundario", "interaccion",
    "sintoma", "doctor", "medicina", "tratamiento", "enfermedad",
)

EMOTIONAL_KEYWORDS = (
    "siento", "ansioso", "ansiedad", "preocupado", "miedo", "solo",
    "ayudame", "estresado", "triste", "deprimido",
)

ANALYSIS_KEYWORDS = (
    "tendencia", "promedio", "historial", "comparar", "analizar",
)

REMINDER_KEYWORDS = (
    "recordar", "cuando", "proxima", "horario", "cita",
)

# Checked in this order, first hit wins
DEFAULT_KEYWORD_SETS = (
    KeywordSet(IntentCategory.MEDICAL_ADVICE, MEDICAL_KEYWORDS),
    KeywordSet(IntentCategory.EMOTIONAL_SUPPORT, EMOTIONAL_KEYWORDS),
    KeywordSet(IntentCategory.HEALTH_ANALYSIS, ANALYSIS_KEYWORDS),
    KeywordSet(IntentCategory.REMINDER, REMINDER_KEYWORDS),
)

SIMPLE_WORD_LIMIT = 10


def word_count(query: str) -> int:
    return len(query.split())


class QueryClassifier:
    """Maps free text to an IntentCategory. Pure: same input, same output."""

    def __init__(
        self,
        keyword_sets: Optional[Sequence[KeywordSet]] = None,
        simple_word_limit: int = SIMPLE_WORD_LIMIT,
    ):
        self.keyword_sets = tuple(keyword_sets or DEFAULT_KEYWORD_SETS)
        self.simple_word_limit = simple_word_limit

    @classmethod
    def from_keywords(
        cls,
        overrides: Mapping[str, Sequence[str]],
        simple_word_limit: int = SIMPLE_WORD_LIMIT,
    ) -> "QueryClassifier":
        """Build a classifier with some keyword lists replaced, keeping priority order."""
        sets = []
        for default in DEFAULT_KEYWORD_SETS:
            words = overrides.get(default.category.value)
            if words is None:
                sets.append(default)
            else:
                sets.append(KeywordSet(default.category, tuple(w.lower() for w in words)))
        return cls(sets, simple_word_limit)

    def explain(self, query: str) -> tuple[IntentCategory, str]:
        """Classify and say why: the matching keyword, or the word count."""
        lowered = query.lower()

        for kset in self.keyword_sets:
            kw = kset.hit(lowered)
            if kw is not None:
                return kset.category, f"keyword '{kw}'"

        words = word_count(query)
        if words < self.simple_word_limit:
            return IntentCategory.SIMPLE, f"{words} words"
        return IntentCategory.COMPLEX, f"{words} words"

    def classify(self, query: str) -> IntentCategory:
        return self.explain(query)[0]
