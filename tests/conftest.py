"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from phase_timeline.config import Config  # noqa: E402
from phase_timeline.domain import Task  # noqa: E402


DAY0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def day(n: float) -> datetime:
    """Timestamp ``n`` days after DAY0."""
    return DAY0 + timedelta(days=n)


def make_task(task_id, label, created, completed=None, name=None):
    """Task in section ``label``; ``completed`` is a timestamp or None for open."""
    return Task(
        id=str(task_id),
        name=name or f"Task {task_id}",
        created_at=created,
        completed=completed is not None,
        completed_at=completed,
        raw_section_label=label,
    )


@pytest.fixture(autouse=True)
def reset_config():
    """Keep the configuration singleton from leaking between tests."""
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def frozen_now():
    return day(100)


@pytest.fixture
def scenario_tasks():
    """Design done, Development done, Launch still open."""
    return [
        make_task(1, "Design", day(0), day(10)),
        make_task(2, "Development", day(10), day(40)),
        make_task(3, "Launch", day(40)),
    ]
