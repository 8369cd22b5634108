"""Task record consumed by the timeline analytics engine."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from datetime import datetime

from ..utils.datetime import parse_timestamp, to_iso_string


@dataclass(frozen=True)
class Task:
    """Immutable task as delivered by the task feed.

    Timestamps are normalized to aware UTC datetimes; values that cannot be
    parsed become None so a single bad record never aborts an analysis run.
    ``completed_at`` is only kept for completed tasks.
    """

    id: str
    name: str = ""
    created_at: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    raw_section_label: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "name", self.name or "")
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        completed_at = parse_timestamp(self.completed_at) if self.completed else None
        object.__setattr__(self, "completed_at", completed_at)

    @property
    def has_valid_completion(self) -> bool:
        return self.completed and self.completed_at is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": to_iso_string(self.created_at),
            "completed": self.completed,
            "completed_at": to_iso_string(self.completed_at),
            "section": self.raw_section_label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create a Task from a feed record.

        Understands both this package's own keys and the task feed's export
        shape (``gid``, ``section`` or ``memberships[].section.name``).
        """
        section = data.get("section", data.get("raw_section_label"))
        if isinstance(section, dict):
            section = section.get("name")
        if not section:
            for membership in data.get("memberships") or []:
                member_section = (membership or {}).get("section") or {}
                if member_section.get("name"):
                    section = member_section["name"]
                    break

        return cls(
            id=data.get("id", data.get("gid", "")),
            name=data.get("name", ""),
            created_at=data.get("created_at", data.get("created")),
            completed=bool(data.get("completed", False)),
            completed_at=data.get("completed_at", data.get("completed_date")),
            raw_section_label=section if isinstance(section, str) else None,
        )
