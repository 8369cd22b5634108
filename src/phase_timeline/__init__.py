"""Phase Timeline - delivery phase duration analytics for project task feeds."""

__version__ = "0.1.0"

from .domain import (
    Task,
    ProjectRecord,
    CanonicalPhase,
    PhaseTable,
)
from .services import (
    classify,
    extract_label,
    compute_project_durations,
    summarize,
    sort_items,
)

__all__ = [
    "Task",
    "ProjectRecord",
    "CanonicalPhase",
    "PhaseTable",
    "classify",
    "extract_label",
    "compute_project_durations",
    "summarize",
    "sort_items",
    "__version__",
]
