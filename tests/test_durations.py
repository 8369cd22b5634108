"""Tests for per-phase duration calculation."""

import pytest

from phase_timeline.config import ConfigModel
from phase_timeline.domain import CanonicalPhase, Task
from phase_timeline.services.durations import (
    DurationCalculator,
    DurationOrigin,
    assign_phases,
    compute_project_durations,
)
from phase_timeline.utils.datetime import frozen_clock

from conftest import day, make_task


@pytest.fixture
def calculator(frozen_now):
    return DurationCalculator(clock=frozen_clock(frozen_now))


class TestScenario:
    """Design and Development finished, Launch still open."""

    def test_totals_and_increments(self, calculator, scenario_tasks):
        summary = calculator.compute(scenario_tasks, "Acme")

        design = summary.phase(CanonicalPhase.DESIGN)
        assert design.total_days == 10
        assert design.incremental_days == 10
        assert not design.in_progress

        development = summary.phase(CanonicalPhase.DEVELOPMENT)
        assert development.total_days == 40
        assert development.incremental_days == 30
        assert development.span_days == 30

    def test_open_phase_runs_to_now(self, calculator, scenario_tasks, frozen_now):
        summary = calculator.compute(scenario_tasks, "Acme")
        launch = summary.phase(CanonicalPhase.LAUNCH)
        assert launch.in_progress
        assert launch.last_activity_at == frozen_now
        assert launch.total_days == 100
        assert summary.in_progress_phases == [CanonicalPhase.LAUNCH]

    def test_open_phase_grows_with_clock(self, scenario_tasks):
        early = DurationCalculator(clock=frozen_clock(day(100))).compute(scenario_tasks)
        later = DurationCalculator(clock=frozen_clock(day(110))).compute(scenario_tasks)
        assert later.phase(CanonicalPhase.LAUNCH).total_days == \
            early.phase(CanonicalPhase.LAUNCH).total_days + 10
        # Finished phases are unaffected
        assert later.phase(CanonicalPhase.DESIGN) == early.phase(CanonicalPhase.DESIGN)

    def test_no_completion_task_is_not_comparable(self, calculator, scenario_tasks):
        summary = calculator.compute(scenario_tasks, "Acme")
        assert summary.overall_duration_days is None
        assert summary.completed is None
        assert not summary.is_comparable

    def test_increments_sum_to_final_total(self, calculator, scenario_tasks):
        summary = calculator.compute(scenario_tasks)
        assert sum(d.incremental_days for d in summary.per_phase) == \
            summary.phase(CanonicalPhase.LAUNCH).total_days

    def test_phases_in_canonical_order(self, calculator, scenario_tasks):
        summary = calculator.compute(list(reversed(scenario_tasks)))
        assert [d.phase for d in summary.per_phase] == [
            CanonicalPhase.DESIGN, CanonicalPhase.DEVELOPMENT, CanonicalPhase.LAUNCH,
        ]

    def test_deterministic(self, calculator, scenario_tasks):
        assert calculator.compute(scenario_tasks) == calculator.compute(scenario_tasks)


class TestCompletion:
    """Overall duration and the completion task."""

    def test_overall_duration_uses_latest_launch_completion(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(10)),
            make_task(2, "Launch", day(20), day(30)),
            make_task(3, "Launch", day(20), day(35)),
        ]
        summary = calculator.compute(tasks, "Acme")
        assert summary.overall_duration_days == 35
        assert summary.completed == day(35)
        assert summary.created == day(0)
        assert summary.is_comparable

    def test_explicit_created_is_kept(self, calculator):
        tasks = [make_task(1, "Launch", day(5), day(15))]
        summary = calculator.compute(tasks, created=day(-3))
        assert summary.created == day(-3)
        assert summary.overall_duration_days == 10

    def test_no_completed_tasks_yields_none(self, calculator):
        tasks = [make_task(1, "Design", day(0)), make_task(2, "Launch", day(3))]
        assert calculator.compute(tasks) is None

    def test_empty_project_yields_none(self, calculator):
        assert calculator.compute([]) is None

    def test_none_is_contract_violation(self, calculator):
        with pytest.raises(TypeError):
            calculator.compute(None)


class TestLaunchBoundary:
    """Earlier phases may not end at or after the first Launch completion."""

    def test_clamps_to_earlier_completion(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(5)),
            make_task(2, "Design", day(1), day(50)),
            make_task(3, "Launch", day(20), day(30)),
        ]
        design = calculator.compute(tasks).phase(CanonicalPhase.DESIGN)
        assert design.clamped
        assert design.last_activity_at == day(5)
        assert design.total_days == 5

    def test_unresolved_when_nothing_precedes_boundary(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(50)),
            make_task(2, "Launch", day(20), day(30)),
        ]
        summary = calculator.compute(tasks)
        design = summary.phase(CanonicalPhase.DESIGN)
        assert not design.resolved
        assert design.total_days == 0
        assert design.incremental_days == 0
        # Launch is measured against the project origin, not the unresolved phase
        launch = summary.phase(CanonicalPhase.LAUNCH)
        assert launch.incremental_days == launch.total_days == 30

    def test_clamp_can_be_disabled(self, frozen_now):
        tasks = [
            make_task(1, "Design", day(0), day(50)),
            make_task(2, "Launch", day(20), day(30)),
        ]
        calculator = DurationCalculator(clock=frozen_clock(frozen_now), clamp_to_launch=False)
        design = calculator.compute(tasks).phase(CanonicalPhase.DESIGN)
        assert not design.clamped
        assert design.total_days == 50

    def test_open_phase_is_never_clamped(self, calculator, frozen_now):
        tasks = [
            make_task(1, "Development", day(0)),
            make_task(2, "Launch", day(20), day(30)),
        ]
        development = calculator.compute(tasks).phase(CanonicalPhase.DEVELOPMENT)
        assert development.in_progress
        assert not development.clamped
        assert development.last_activity_at == frozen_now


class TestIncrementalDays:
    """Increments never add up to more than the final phase total."""

    def test_overlapping_phases(self, calculator):
        # Development starts after Design but finishes first
        tasks = [
            make_task(1, "Design", day(0), day(7)),
            make_task(2, "Development", day(2), day(4)),
            make_task(3, "Launch", day(3), day(8)),
        ]
        summary = calculator.compute(tasks)
        totals = [d.total_days for d in summary.per_phase]
        increments = [d.incremental_days for d in summary.per_phase]
        assert totals == [7, 4, 8]
        assert increments == [7, 0, 1]
        assert sum(increments) <= summary.phase(CanonicalPhase.LAUNCH).total_days

    def test_out_of_order_phases(self, calculator):
        # Launch work starts before Design in canonical order
        tasks = [
            make_task(1, "Launch", day(0), day(20)),
            make_task(2, "Design", day(5), day(12)),
            make_task(3, "Development", day(6), day(9)),
        ]
        summary = calculator.compute(tasks)
        launch = summary.phase(CanonicalPhase.LAUNCH)
        assert launch.incremental_days == 20
        assert summary.phase(CanonicalPhase.DESIGN).incremental_days == 0
        assert summary.phase(CanonicalPhase.DEVELOPMENT).incremental_days == 0
        assert sum(d.incremental_days for d in summary.per_phase) <= launch.total_days

    def test_clamped_phase(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(5)),
            make_task(2, "Design", day(1), day(50)),
            make_task(3, "Development", day(3), day(20)),
            make_task(4, "Launch", day(10), day(30)),
        ]
        summary = calculator.compute(tasks)
        assert summary.phase(CanonicalPhase.DESIGN).clamped
        assert [d.incremental_days for d in summary.per_phase] == [5, 15, 10]
        assert sum(d.incremental_days for d in summary.per_phase) <= \
            summary.phase(CanonicalPhase.LAUNCH).total_days

    def test_unresolved_phase_adds_nothing(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(50)),
            make_task(2, "Development", day(2), day(12)),
            make_task(3, "Launch", day(20), day(30)),
        ]
        summary = calculator.compute(tasks)
        assert not summary.phase(CanonicalPhase.DESIGN).resolved
        increments = [d.incremental_days for d in summary.per_phase]
        assert increments == [0, 12, 18]
        assert sum(increments) <= summary.phase(CanonicalPhase.LAUNCH).total_days


class TestDataQuality:
    """Bad or out-of-order data never produces negative or crashing results."""

    def test_completion_before_creation_is_zero(self, calculator):
        tasks = [make_task(1, "Design", day(10), day(5))]
        design = calculator.compute(tasks).phase(CanonicalPhase.DESIGN)
        assert design.total_days == 0
        assert design.span_days == 0

    def test_all_values_non_negative(self, calculator):
        tasks = [
            make_task(1, "Design", day(30), day(31)),
            make_task(2, "Development", day(0), day(2)),
            make_task(3, "Launch", day(15), day(12)),
        ]
        for duration in calculator.compute(tasks).per_phase:
            assert duration.total_days >= 0
            assert duration.incremental_days >= 0
            assert duration.span_days >= 0

    def test_unparseable_timestamps_are_ignored(self, calculator):
        tasks = [
            Task(id="1", name="a", created_at="garbage", completed=True,
                 completed_at="2024-01-05", raw_section_label="Design"),
            make_task(2, "Design", day(0), day(10)),
            Task(id="3", name="b", created_at=day(0), completed=True,
                 completed_at="not a date", raw_section_label="Launch"),
        ]
        summary = calculator.compute(tasks)
        assert summary.phase(CanonicalPhase.DESIGN).total_days == 10
        # The Launch task's completion is unusable, so there is no completion task
        assert summary.completed is None

    def test_phase_without_creation_times_is_omitted(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(10)),
            Task(id="2", name="x", created_at=None, raw_section_label="Development"),
        ]
        summary = calculator.compute(tasks)
        assert summary.phase(CanonicalPhase.DEVELOPMENT) is None

    def test_other_phase_is_not_reported(self, calculator):
        tasks = [
            make_task(1, "Design", day(0), day(10)),
            make_task(2, "Misc", day(0), day(90)),
        ]
        summary = calculator.compute(tasks)
        assert [d.phase for d in summary.per_phase] == [CanonicalPhase.DESIGN]


class TestOptions:
    """Duration origin and subtask handling."""

    def test_phase_origin(self, frozen_now, scenario_tasks):
        calculator = DurationCalculator(clock=frozen_clock(frozen_now),
                                        duration_origin=DurationOrigin.PHASE)
        summary = calculator.compute(scenario_tasks)
        assert summary.phase(CanonicalPhase.DESIGN).total_days == 10
        assert summary.phase(CanonicalPhase.DEVELOPMENT).total_days == 30

    def test_ignore_subtasks(self, frozen_now):
        tasks = [
            make_task(1, "Design", day(0), day(10), name="Homepage mock"),
            make_task(2, "Design", day(0), day(20), name="- export icons"),
        ]
        with_subtasks = DurationCalculator(clock=frozen_clock(frozen_now)).compute(tasks)
        without = DurationCalculator(clock=frozen_clock(frozen_now),
                                     ignore_subtasks=True).compute(tasks)
        assert with_subtasks.phase(CanonicalPhase.DESIGN).total_days == 20
        assert without.phase(CanonicalPhase.DESIGN).total_days == 10
        assert without.phase(CanonicalPhase.DESIGN).task_count == 1

    def test_all_subtask_phase_keeps_its_tasks(self, frozen_now):
        tasks = [make_task(1, "Design", day(0), day(7), name="- only subtask")]
        calculator = DurationCalculator(clock=frozen_clock(frozen_now), ignore_subtasks=True)
        assert calculator.compute(tasks).phase(CanonicalPhase.DESIGN).total_days == 7

    def test_from_config(self, frozen_now, scenario_tasks):
        config = ConfigModel(duration_origin="phase", clamp_to_launch=False)
        summary = compute_project_durations(
            scenario_tasks, "Acme", clock=frozen_clock(frozen_now), config=config,
        )
        assert summary.project_name == "Acme"
        assert summary.phase(CanonicalPhase.DEVELOPMENT).total_days == 30

    def test_assign_phases(self):
        tasks = [
            make_task(1, "Wireframes", day(0)),
            make_task(2, None, day(0), name="QA: smoke test"),
            make_task(3, None, day(0), name="Call client"),
            make_task(4, "Misc", day(0)),
        ]
        assert assign_phases(tasks) == {
            "1": CanonicalPhase.DESIGN,
            "2": CanonicalPhase.DEVELOPMENT,
            "3": CanonicalPhase.ONBOARDING,
            "4": CanonicalPhase.OTHER,
        }

    def test_to_dict(self, calculator, scenario_tasks):
        data = calculator.compute(scenario_tasks, "Acme").to_dict()
        assert data["project_name"] == "Acme"
        assert data["per_phase"][0]["phase"] == "Design"
        assert data["per_phase"][2]["in_progress"] is True
