"""Per-phase and per-project duration calculation.

Given every task of one project, this module works out how long each
canonical phase took and what each phase added on top of the phases before
it. Phases with open tasks are measured up to the evaluation time supplied
by the injected clock.

Two corrections keep the numbers comparable across projects:
- durations are rounded to whole days and never reported negative
- an earlier phase may not end on or after the project's first Launch
  completion (``clamp_to_launch``)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..config import ConfigModel
from ..domain import CanonicalPhase, Task
from ..utils.datetime import Clock, days_between, ensure_aware, now_utc, to_iso_string
from .classifier import KeywordMatch, PhaseClassifier
from .labels import is_subtask


logger = logging.getLogger(__name__)


class DurationOrigin(Enum):
    """Where a phase's total duration is measured from."""
    PROJECT = "project"  # earliest activity in the project, totals are cumulative
    PHASE = "phase"      # the phase's own first activity


@dataclass
class PhaseDuration:
    """Duration of one canonical phase within one project."""
    phase: CanonicalPhase
    total_days: int
    incremental_days: int
    task_count: int
    first_activity_at: Optional[datetime]
    last_activity_at: Optional[datetime]
    in_progress: bool
    span_days: int = 0  # last activity - this phase's first activity
    completion_span_days: int = 0  # first to last completion within the phase
    clamped: bool = False
    resolved: bool = True

    @property
    def name(self) -> str:
        return self.phase.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'phase': self.phase.value,
            'total_days': self.total_days,
            'incremental_days': self.incremental_days,
            'task_count': self.task_count,
            'first_activity_at': to_iso_string(self.first_activity_at),
            'last_activity_at': to_iso_string(self.last_activity_at),
            'in_progress': self.in_progress,
            'span_days': self.span_days,
            'completion_span_days': self.completion_span_days,
            'clamped': self.clamped,
            'resolved': self.resolved,
        }


@dataclass
class ProjectDurationSummary:
    """Duration results for one project."""
    project_name: str
    overall_duration_days: Optional[int]
    per_phase: List[PhaseDuration] = field(default_factory=list)
    created: Optional[datetime] = None
    completed: Optional[datetime] = None

    @property
    def is_comparable(self) -> bool:
        """True when the project has a completion task to measure against."""
        return self.completed is not None and self.overall_duration_days is not None

    def phase(self, phase: CanonicalPhase) -> Optional[PhaseDuration]:
        for duration in self.per_phase:
            if duration.phase is phase:
                return duration
        return None

    @property
    def in_progress_phases(self) -> List[CanonicalPhase]:
        return [d.phase for d in self.per_phase if d.in_progress]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_name': self.project_name,
            'overall_duration_days': self.overall_duration_days,
            'per_phase': [d.to_dict() for d in self.per_phase],
            'created': to_iso_string(self.created),
            'completed': to_iso_string(self.completed),
        }


def assign_phases(tasks: Iterable[Task],
                  classifier: Optional[PhaseClassifier] = None) -> Dict[str, CanonicalPhase]:
    """Map task ids to the phase their label classifies into."""
    classifier = classifier or PhaseClassifier()
    return {task.id: classifier.classify_task(task) for task in tasks}


class DurationCalculator:
    """Computes ``ProjectDurationSummary`` values for task sets."""

    def __init__(self,
                 classifier: Optional[PhaseClassifier] = None,
                 clock: Optional[Clock] = None,
                 clamp_to_launch: bool = True,
                 duration_origin: DurationOrigin = DurationOrigin.PROJECT,
                 ignore_subtasks: bool = False):
        self.classifier = classifier or PhaseClassifier()
        self.clock = clock or now_utc
        self.clamp_to_launch = clamp_to_launch
        self.duration_origin = DurationOrigin(duration_origin)
        self.ignore_subtasks = ignore_subtasks

    @classmethod
    def from_config(cls, config: Optional[ConfigModel] = None,
                    clock: Optional[Clock] = None) -> "DurationCalculator":
        """Build a calculator from a ``ConfigModel`` (defaults when None)."""
        if config is None:
            config = ConfigModel()
        classifier = PhaseClassifier(
            table=config.build_phase_table(),
            keyword_match=KeywordMatch(config.keyword_match),
            numeric_fallback=config.numeric_fallback,
        )
        return cls(
            classifier=classifier,
            clock=clock,
            clamp_to_launch=config.clamp_to_launch,
            duration_origin=DurationOrigin(config.duration_origin),
            ignore_subtasks=config.ignore_subtasks,
        )

    def group_by_phase(self, tasks: Iterable[Task]) -> Dict[CanonicalPhase, List[Task]]:
        """Group tasks by canonical phase, in canonical order. Other is dropped."""
        grouped: Dict[CanonicalPhase, List[Task]] = defaultdict(list)
        for task in tasks:
            phase = self.classifier.classify_task(task)
            if phase.is_canonical:
                grouped[phase].append(task)

        result = {}
        for phase in CanonicalPhase.ordered():
            phase_tasks = grouped.get(phase)
            if not phase_tasks:
                continue
            if self.ignore_subtasks:
                main_tasks = [t for t in phase_tasks if not is_subtask(t)]
                phase_tasks = main_tasks or phase_tasks
            result[phase] = phase_tasks
        return result

    def compute(self,
                tasks: Iterable[Task],
                project_name: str = "",
                created: Optional[datetime] = None) -> Optional[ProjectDurationSummary]:
        """Compute durations for one project.

        Returns None when the project has no completed task with a valid
        completion timestamp.
        """
        if tasks is None:
            raise TypeError("tasks must be an iterable of Task, not None")
        tasks = list(tasks)
        now = ensure_aware(self.clock())

        if not any(task.has_valid_completion for task in tasks):
            logger.debug("Project %r has no valid completed tasks; skipping", project_name)
            return None

        grouped = self.group_by_phase(tasks)
        launch_boundary = self._launch_boundary(grouped.get(CanonicalPhase.LAUNCH, []))

        phase_created = [t.created_at for ts in grouped.values() for t in ts if t.created_at]
        origin = min(phase_created) if phase_created else None

        per_phase = []
        for phase, phase_tasks in grouped.items():
            duration = self._phase_duration(phase, phase_tasks, now, launch_boundary, origin)
            if duration is not None:
                per_phase.append(duration)
        per_phase = self._with_incremental_days(per_phase)

        all_created = [t.created_at for t in tasks if t.created_at]
        earliest = min(all_created) if all_created else None

        completion = self._completion_time(grouped.get(CanonicalPhase.LAUNCH, []))
        overall = None
        if completion is not None and earliest is not None:
            overall = days_between(earliest, completion)
        else:
            logger.debug("Project %r has no completion task", project_name)

        return ProjectDurationSummary(
            project_name=project_name,
            overall_duration_days=overall,
            per_phase=per_phase,
            created=ensure_aware(created) or earliest,
            completed=completion,
        )

    def _launch_boundary(self, launch_tasks: List[Task]) -> Optional[datetime]:
        """Earliest Launch completion, the point earlier phases may not reach."""
        completions = [t.completed_at for t in launch_tasks if t.has_valid_completion]
        return min(completions) if completions else None

    def _completion_time(self, launch_tasks: List[Task]) -> Optional[datetime]:
        completions = [t.completed_at for t in launch_tasks if t.has_valid_completion]
        return max(completions) if completions else None

    def _phase_duration(self,
                        phase: CanonicalPhase,
                        tasks: List[Task],
                        now: datetime,
                        launch_boundary: Optional[datetime],
                        origin: Optional[datetime]) -> Optional[PhaseDuration]:
        """Measure one phase, or None when none of its tasks has a creation time.

        Only completed non-Launch phases are clamped to the Launch boundary.
        A phase with open tasks always runs to ``now``, even past the boundary.
        """
        created_times = [t.created_at for t in tasks if t.created_at]
        if not created_times:
            logger.debug("No valid creation timestamps for phase %s", phase.value)
            return None
        first = min(created_times)

        completions = sorted(t.completed_at for t in tasks if t.has_valid_completion)
        completion_span = days_between(completions[0], completions[-1]) if len(completions) > 1 else 0

        in_progress = any(not t.completed for t in tasks)
        if in_progress:
            last = now
        else:
            last = completions[-1] if completions else None

        clamped = False
        if (self.clamp_to_launch and not in_progress and last is not None
                and launch_boundary is not None and phase is not CanonicalPhase.LAUNCH
                and last >= launch_boundary):
            clamped = True
            before_launch = [c for c in completions if c < launch_boundary]
            last = before_launch[-1] if before_launch else None
            logger.debug(
                "Clamped %s end to %s (launch boundary %s)",
                phase.value, to_iso_string(last), to_iso_string(launch_boundary),
            )

        if last is None:
            return PhaseDuration(
                phase=phase,
                total_days=0,
                incremental_days=0,
                task_count=len(tasks),
                first_activity_at=first,
                last_activity_at=None,
                in_progress=in_progress,
                completion_span_days=completion_span,
                clamped=clamped,
                resolved=False,
            )

        start = origin if self.duration_origin is DurationOrigin.PROJECT and origin else first
        return PhaseDuration(
            phase=phase,
            total_days=days_between(start, last),
            incremental_days=0,
            task_count=len(tasks),
            first_activity_at=first,
            last_activity_at=last,
            in_progress=in_progress,
            span_days=days_between(first, last),
            completion_span_days=completion_span,
            clamped=clamped,
        )

    def _with_incremental_days(self, durations: List[PhaseDuration]) -> List[PhaseDuration]:
        """Fill in incremental days, ordering resolved phases chronologically.

        Each phase adds what it extends beyond the longest total seen so far,
        so the increments never sum to more than the largest total.
        """
        chronological = sorted(
            (d for d in durations if d.resolved),
            key=lambda d: (d.first_activity_at, d.phase.index),
        )
        incremental = {}
        previous_total = 0
        for duration in chronological:
            incremental[duration.phase] = max(0, duration.total_days - previous_total)
            previous_total = max(previous_total, duration.total_days)

        return [
            replace(d, incremental_days=incremental.get(d.phase, 0))
            for d in durations
        ]


def compute_project_durations(tasks: Iterable[Task],
                              project_name: str = "",
                              created: Optional[datetime] = None,
                              clock: Optional[Clock] = None,
                              config: Optional[ConfigModel] = None) -> Optional[ProjectDurationSummary]:
    """Compute a project's duration summary with the given (or default) config."""
    calculator = DurationCalculator.from_config(config, clock=clock)
    return calculator.compute(tasks, project_name=project_name, created=created)
