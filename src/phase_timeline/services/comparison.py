"""Cross-project comparison of overall and per-phase durations.

This is the analytics behind the project duration chart and the phase
comparison view: it runs the duration calculator over many projects, drops
what cannot be compared and summarizes the rest.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import ConfigModel
from ..domain import CanonicalPhase, ProjectRecord
from ..utils.datetime import Clock
from .durations import DurationCalculator, PhaseDuration, ProjectDurationSummary
from .sorting import SortKey, sort_items
from .statistics import StatisticsSummary, summarize


logger = logging.getLogger(__name__)


class PhaseMetric(Enum):
    """Which phase duration a comparison looks at."""
    TOTAL = "total"
    INCREMENTAL = "incremental"
    SPAN = "span"

    def value_of(self, duration: PhaseDuration) -> int:
        if self is PhaseMetric.INCREMENTAL:
            return duration.incremental_days
        if self is PhaseMetric.SPAN:
            return duration.span_days
        return duration.total_days


@dataclass
class PhaseEntry:
    """One project's result for one phase."""
    project_name: str
    phase_duration: PhaseDuration

    @property
    def total_days(self) -> int:
        return self.phase_duration.total_days

    @property
    def in_progress(self) -> bool:
        return self.phase_duration.in_progress


@dataclass
class ComparisonReport:
    """Result of comparing a set of projects."""
    projects: List[ProjectDurationSummary] = field(default_factory=list)
    phases: Dict[CanonicalPhase, List[PhaseEntry]] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)  # on the skip list
    without_data: List[str] = field(default_factory=list)  # no valid completed tasks
    without_completion: List[str] = field(default_factory=list)  # no completion task
    sort_key: Optional[SortKey] = None

    @property
    def project_statistics(self) -> StatisticsSummary:
        """Statistics over overall durations of comparable projects."""
        return summarize(
            p.overall_duration_days for p in self.projects
            if p.overall_duration_days and p.overall_duration_days > 0
        )

    def phase_statistics(self, phase: CanonicalPhase,
                         metric: PhaseMetric = PhaseMetric.TOTAL) -> StatisticsSummary:
        """Statistics over one phase; zero durations count as no data."""
        values = [metric.value_of(e.phase_duration) for e in self.phases.get(phase, [])]
        return summarize(v for v in values if v > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'projects': [p.to_dict() for p in self.projects],
            'project_statistics': self.project_statistics.to_dict(),
            'phases': {
                phase.value: {
                    'entries': [
                        {'project_name': e.project_name, **e.phase_duration.to_dict()}
                        for e in entries
                    ],
                    'statistics': self.phase_statistics(phase).to_dict(),
                }
                for phase, entries in self.phases.items()
            },
            'skipped': self.skipped,
            'without_data': self.without_data,
            'without_completion': self.without_completion,
            'sort_key': str(self.sort_key) if self.sort_key else None,
        }


def should_skip_project(name: str, skip_list: Iterable[str]) -> bool:
    """Case-insensitive skip-list match."""
    lowered = (name or "").lower()
    return any(lowered == skip.lower() for skip in skip_list)


class ProjectComparator:
    """Computes and orders duration summaries for many projects."""

    def __init__(self, config: Optional[ConfigModel] = None,
                 clock: Optional[Clock] = None,
                 calculator: Optional[DurationCalculator] = None):
        self.config = config or ConfigModel()
        self.calculator = calculator or DurationCalculator.from_config(self.config, clock=clock)

    def compare(self, projects: Iterable[ProjectRecord],
                sort_key: Optional[Any] = None) -> ComparisonReport:
        """Compare ``projects``, sorted by ``sort_key`` (config default when None)."""
        if projects is None:
            raise TypeError("projects must be an iterable of ProjectRecord, not None")
        key = sort_key if isinstance(sort_key, SortKey) else SortKey.parse(sort_key or self.config.default_sort)

        report = ComparisonReport(sort_key=key)
        rows = []
        phase_entries: Dict[CanonicalPhase, List[PhaseEntry]] = {}

        for project in projects:
            if should_skip_project(project.name, self.config.skip_projects):
                logger.debug("Skipping project %r (skip list)", project.name)
                report.skipped.append(project.name)
                continue

            summary = self.calculator.compute(project.tasks, project.name, project.created)
            if summary is None:
                report.without_data.append(project.name)
                continue

            for duration in summary.per_phase:
                phase_entries.setdefault(duration.phase, []).append(
                    PhaseEntry(project.name, duration)
                )

            if not summary.is_comparable:
                logger.debug("Project %r excluded from comparison: no completion task", project.name)
                report.without_completion.append(project.name)
                continue
            rows.append(self._row(project, summary))

        report.projects = [row["summary"] for row in sort_items(rows, key)]
        report.phases = {
            phase: sort_items(phase_entries[phase], "duration-asc")
            for phase in CanonicalPhase.ordered()
            if phase in phase_entries
        }
        logger.info(
            "Compared %d projects (%d skipped, %d without data, %d without completion)",
            len(report.projects), len(report.skipped),
            len(report.without_data), len(report.without_completion),
        )
        return report

    def _row(self, project: ProjectRecord, summary: ProjectDurationSummary) -> Dict[str, Any]:
        row = {str(k).lower(): v for k, v in project.custom_fields.items()}
        row.update({
            "name": summary.project_name,
            "duration": summary.overall_duration_days,
            "created": summary.created,
            "completed": summary.completed,
            "summary": summary,
        })
        return row


def phase_ranking(report: ComparisonReport, phase: CanonicalPhase,
                  metric: PhaseMetric = PhaseMetric.TOTAL,
                  descending: bool = False) -> List[Tuple[str, int, bool]]:
    """``(project, days, in_progress)`` rows for one phase, ordered by ``metric``."""
    rows = [
        {"name": e.project_name, "duration": metric.value_of(e.phase_duration), "in_progress": e.in_progress}
        for e in report.phases.get(phase, [])
    ]
    ordered = sort_items(rows, "duration-desc" if descending else "duration-asc")
    return [(r["name"], r["duration"], r["in_progress"]) for r in ordered]
