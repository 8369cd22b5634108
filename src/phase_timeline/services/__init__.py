"""Timeline analytics services for Phase Timeline."""

from .labels import extract_label, is_subtask
from .classifier import PhaseClassifier, KeywordMatch, classify
from .durations import (
    DurationCalculator,
    DurationOrigin,
    PhaseDuration,
    ProjectDurationSummary,
    assign_phases,
    compute_project_durations,
)
from .statistics import StatisticsSummary, summarize
from .sorting import SortKey, SortField, SortDirection, sort_items
from .comparison import (
    ProjectComparator,
    ComparisonReport,
    PhaseEntry,
    PhaseMetric,
    phase_ranking,
)

__all__ = [
    "extract_label",
    "is_subtask",
    "PhaseClassifier",
    "KeywordMatch",
    "classify",
    "DurationCalculator",
    "DurationOrigin",
    "PhaseDuration",
    "ProjectDurationSummary",
    "assign_phases",
    "compute_project_durations",
    "StatisticsSummary",
    "summarize",
    "SortKey",
    "SortField",
    "SortDirection",
    "sort_items",
    "ProjectComparator",
    "ComparisonReport",
    "PhaseEntry",
    "PhaseMetric",
    "phase_ranking",
]
