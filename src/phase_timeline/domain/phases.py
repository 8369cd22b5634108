"""Canonical delivery phases and the keyword table used to recognise them."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from enum import Enum


class CanonicalPhase(Enum):
    """Delivery phases in their expected chronological order, plus Other."""
    ONBOARDING = "Onboarding"
    DESIGN = "Design"
    DEVELOPMENT = "Development"
    LAUNCH = "Launch"
    OTHER = "Other"

    @classmethod
    def ordered(cls) -> Tuple["CanonicalPhase", ...]:
        """The four canonical phases, Onboarding first."""
        return (cls.ONBOARDING, cls.DESIGN, cls.DEVELOPMENT, cls.LAUNCH)

    @property
    def index(self) -> int:
        return list(CanonicalPhase).index(self)

    @property
    def is_canonical(self) -> bool:
        return self is not CanonicalPhase.OTHER

    @classmethod
    def from_name(cls, name: str) -> "CanonicalPhase":
        """Look a phase up by value or member name, case-insensitively.

        Raises:
            ValueError: if ``name`` is not a phase.
        """
        wanted = name.strip().lower()
        for phase in cls:
            if wanted in (phase.value.lower(), phase.name.lower()):
                return phase
        raise ValueError(f"Unknown phase: {name!r}")


DEFAULT_PHASE_KEYWORDS: Dict[CanonicalPhase, Tuple[str, ...]] = {
    CanonicalPhase.ONBOARDING: (
        "onboarding", "on-boarding", "project start",
        "kickoff", "kick-off", "kick off",
        "orientation", "setup", "discovery", "initiation", "briefing",
        "intake", "requirement", "requirements", "information gathering",
        "research", "welcome", "introduction", "intro", "getting started",
        "strategy", "planning", "scoping", "scope definition",
        "contract", "agreement", "preparation",
    ),
    CanonicalPhase.DESIGN: (
        "design", "mockup", "mock-up", "mock", "ui", "ux",
        "wireframe", "wireframing", "prototype", "prototyping",
        "visual", "concept", "layout", "comps", "creative", "graphic",
        "sketch", "draft", "revision", "branding", "style guide",
        "artboard", "artwork", "illustration", "blueprint",
    ),
    CanonicalPhase.DEVELOPMENT: (
        "development", "dev", "develop", "code", "coding", "programming",
        "implementation", "implementing", "build", "building",
        "construction", "engineering", "technical", "frontend", "front-end",
        "backend", "back-end", "feature", "functionality", "integration",
        "api", "database", "cms", "software", "sprint",
        "testing", "test", "qa", "quality assurance", "validation",
        "verification", "bug fixing", "fixes", "debugging",
    ),
    CanonicalPhase.LAUNCH: (
        "launch", "go-live", "go live", "deploy", "deployment", "release",
        "publish", "publishing", "rollout", "live", "shipping", "delivery",
        "handover", "handoff", "completion", "complete", "final",
        "finalization", "finishing", "finished", "approval", "review",
        "post-launch", "maintenance", "support", "training",
    ),
}

DEFAULT_CATCH_ALL_LABELS: Tuple[str, ...] = ("unsorted",)

DEFAULT_NUMERIC_PHASES: Dict[int, CanonicalPhase] = {
    1: CanonicalPhase.ONBOARDING,
    2: CanonicalPhase.DESIGN,
    3: CanonicalPhase.DEVELOPMENT,
    4: CanonicalPhase.LAUNCH,
}


@dataclass(frozen=True)
class PhaseRule:
    """One row of the classification table."""
    phase: CanonicalPhase
    keywords: Tuple[str, ...]

    def __post_init__(self):
        cleaned = tuple(k.strip().lower() for k in self.keywords if k and k.strip())
        object.__setattr__(self, "keywords", cleaned)


@dataclass(frozen=True)
class PhaseTable:
    """Ordered keyword rules plus the fallbacks applied when none match.

    Rules are consulted in order; the first phase whose keywords match a label
    wins, so the order resolves labels that mention several phases.
    """
    rules: Tuple[PhaseRule, ...]
    numeric_phases: Mapping[int, CanonicalPhase] = field(
        default_factory=lambda: dict(DEFAULT_NUMERIC_PHASES)
    )
    catch_all_labels: Tuple[str, ...] = DEFAULT_CATCH_ALL_LABELS
    catch_all_phase: CanonicalPhase = CanonicalPhase.ONBOARDING

    def keywords_for(self, phase: CanonicalPhase) -> Tuple[str, ...]:
        for rule in self.rules:
            if rule.phase is phase:
                return rule.keywords
        return ()

    @classmethod
    def default(cls) -> "PhaseTable":
        return cls(rules=tuple(
            PhaseRule(phase, DEFAULT_PHASE_KEYWORDS[phase])
            for phase in CanonicalPhase.ordered()
        ))

    @classmethod
    def from_mapping(cls,
                     keywords: Mapping[str, Iterable[str]],
                     extend_defaults: bool = False,
                     catch_all_labels: Optional[Iterable[str]] = None) -> "PhaseTable":
        """Build a table from ``{"Design": ["mockup", ...], ...}``.

        Phases are always kept in canonical order. With ``extend_defaults``
        the given keywords are added to the built-in ones instead of
        replacing them.

        Raises:
            ValueError: for unknown phase names or the Other phase.
        """
        overrides: Dict[CanonicalPhase, List[str]] = {}
        for name, words in keywords.items():
            phase = CanonicalPhase.from_name(name)
            if not phase.is_canonical:
                raise ValueError("Keywords cannot be assigned to the Other phase")
            overrides[phase] = list(words or [])

        rules = []
        for phase in CanonicalPhase.ordered():
            words: List[str] = []
            if extend_defaults or phase not in overrides:
                words.extend(DEFAULT_PHASE_KEYWORDS[phase])
            words.extend(overrides.get(phase, []))
            rules.append(PhaseRule(phase, tuple(words)))

        labels = tuple(l.strip().lower() for l in (catch_all_labels or DEFAULT_CATCH_ALL_LABELS))
        return cls(rules=tuple(rules), catch_all_labels=labels)
