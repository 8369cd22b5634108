"""Domain models for Phase Timeline."""

from .task import Task
from .project import ProjectRecord
from .phases import (
    CanonicalPhase,
    PhaseRule,
    PhaseTable,
    DEFAULT_PHASE_KEYWORDS,
)

__all__ = [
    "Task",
    "ProjectRecord",
    "CanonicalPhase",
    "PhaseRule",
    "PhaseTable",
    "DEFAULT_PHASE_KEYWORDS",
]
