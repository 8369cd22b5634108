"""Label extraction for task records.

Tasks arrive with a section name when the feed provides one; otherwise the
section is often encoded in the task name itself ("Design: homepage" or
"[Launch] DNS switch").
"""

import re

from ..domain import Task


UNSORTED_LABEL = "Unsorted"

COLON_PREFIX_RE = re.compile(r"^([^:]+):")
BRACKET_PREFIX_RE = re.compile(r"^\[([^\]]+)\]")

SUBTASK_PREFIXES = ("-", "*", "  ", "\t")
SUBTASK_MARKERS = ("subtask", "sub-task")


def extract_label(task: Task) -> str:
    """Return the raw phase/section label for ``task``.

    Resolution order, first match wins: explicit section label, a
    ``"<label>: ..."`` name prefix, a ``"[<label>] ..."`` name prefix, and
    finally ``"Unsorted"``. Always returns a non-empty string.
    """
    if task.raw_section_label and task.raw_section_label.strip():
        return task.raw_section_label.strip()

    name = task.name or ""

    match = COLON_PREFIX_RE.match(name)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = BRACKET_PREFIX_RE.match(name)
    if match and match.group(1).strip():
        return match.group(1).strip()

    return UNSORTED_LABEL


def is_subtask(task: Task) -> bool:
    """Heuristic for subtasks exported as top-level tasks."""
    name = task.name or ""
    if name.startswith(SUBTASK_PREFIXES):
        return True
    lowered = name.lower()
    return any(marker in lowered for marker in SUBTASK_MARKERS)
