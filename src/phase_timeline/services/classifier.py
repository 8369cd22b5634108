"""Phase classification of freeform section labels.

Labels are matched against an ordered keyword table (see
``domain.phases.PhaseTable``). The table is configuration data, so projects
with different terminology can swap it without touching this module.
"""

import re
import logging
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple

from ..domain import CanonicalPhase, PhaseTable, Task
from .labels import extract_label


logger = logging.getLogger(__name__)


class KeywordMatch(Enum):
    """How keywords are located inside a label."""
    SUBSTRING = "substring"  # plain containment
    WORD = "word"            # keyword must begin at a word boundary


NUMBER_WORDS = {"one": 1, "two": 2, "three": 3, "four": 4}

NUMERIC_PHASE_RE = re.compile(
    r"\b(?:phase|step|stage)\s*[-#:]?\s*(\d+|one|two|three|four)\b"
)


class PhaseClassifier:
    """Maps labels onto canonical phases.

    Matching order: exact phase name, ordered keyword rules, numeric
    ``phase <n>`` fallback, catch-all labels, then Other.
    """

    def __init__(self,
                 table: Optional[PhaseTable] = None,
                 keyword_match: KeywordMatch = KeywordMatch.SUBSTRING,
                 numeric_fallback: bool = True):
        self.table = table or PhaseTable.default()
        self.keyword_match = KeywordMatch(keyword_match)
        self.numeric_fallback = numeric_fallback
        self._exact: Dict[str, CanonicalPhase] = {}
        for rule in self.table.rules:
            name = rule.phase.value.lower()
            self._exact[name] = rule.phase
            self._exact[f"{name} phase"] = rule.phase
        self._patterns: Tuple[Tuple[CanonicalPhase, Pattern], ...] = tuple(
            (rule.phase, self._compile(rule.keywords))
            for rule in self.table.rules
            if rule.keywords
        )

    def _compile(self, keywords: Tuple[str, ...]) -> Pattern:
        alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
        if self.keyword_match is KeywordMatch.WORD:
            return re.compile(rf"(?<![a-z0-9])(?:{alternatives})")
        return re.compile(rf"(?:{alternatives})")

    def classify(self, label: str) -> CanonicalPhase:
        """Classify a raw label. Never fails for unrecognised text."""
        if not isinstance(label, str):
            raise TypeError(f"label must be a string, not {type(label).__name__}")

        normalized = label.strip().lower()
        if not normalized:
            return CanonicalPhase.OTHER

        exact = self._exact.get(normalized)
        if exact is not None:
            return exact

        for phase, pattern in self._patterns:
            if pattern.search(normalized):
                return phase

        if self.numeric_fallback:
            phase = self._numeric_phase(normalized)
            if phase is not None:
                return phase

        if normalized in self.table.catch_all_labels:
            return self.table.catch_all_phase

        logger.debug("No phase mapping for label %r", label)
        return CanonicalPhase.OTHER

    def classify_task(self, task: Task) -> CanonicalPhase:
        return self.classify(extract_label(task))

    def _numeric_phase(self, normalized: str) -> Optional[CanonicalPhase]:
        match = NUMERIC_PHASE_RE.search(normalized)
        if not match:
            return None
        token = match.group(1)
        number = NUMBER_WORDS.get(token)
        if number is None:
            number = int(token)
        return self.table.numeric_phases.get(number)


_default_classifier = PhaseClassifier()


def classify(label: str) -> CanonicalPhase:
    """Classify ``label`` with the built-in keyword table."""
    return _default_classifier.classify(label)
