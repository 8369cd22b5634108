"""Project record as supplied by the project registry."""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime

from .task import Task
from ..utils.datetime import parse_timestamp, to_iso_string


@dataclass
class ProjectRecord:
    """A project's identity, registry metadata and full task set."""

    name: str
    tasks: List[Task] = field(default_factory=list)
    gid: Optional[str] = None
    created: Optional[datetime] = None

    # Registry fields that are useful as categorical sort keys
    custom_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Post-initialization setup."""
        self.created = parse_timestamp(self.created)
        self.tasks = list(self.tasks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "gid": self.gid,
            "created_at": to_iso_string(self.created),
            "custom_fields": self.custom_fields,
            "tasks": [task.to_dict() for task in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectRecord":
        """Create a ProjectRecord from an export entry."""
        return cls(
            name=data.get("name", ""),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or [] if isinstance(t, dict)],
            gid=data.get("gid", data.get("id")),
            created=data.get("created_at", data.get("created")),
            custom_fields=_custom_fields(data.get("custom_fields")),
        )


def _custom_fields(raw: Any) -> Dict[str, Any]:
    """Flatten feed custom fields (``[{"name", "display_value"}, ...]``) to a dict."""
    if not raw:
        return {}
    if isinstance(raw, dict):
        return dict(raw)

    fields = {}
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        value = entry.get("display_value")
        if value is None:
            value = entry.get("text_value", entry.get("number_value"))
        fields[entry["name"]] = value
    return fields
