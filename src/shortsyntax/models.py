from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class Tag:
    id: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tag:
        return cls(id=str(data["id"]), title=str(data["title"]))


@dataclass(frozen=True)
class Project:
    id: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(id=str(data["id"]), title=str(data["title"]))


@dataclass(frozen=True)
class Task:
    """The fields of a task the short syntax parser reads."""

    title: Any
    tag_ids: Optional[List[str]] = None
    parent_id: str | None = None
    issue_id: str | None = None
    time_spent_on_day: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "tagIds": list(self.tag_ids) if self.tag_ids is not None else None,
            "parentId": self.parent_id,
            "issueId": self.issue_id,
            "timeSpentOnDay": dict(self.time_spent_on_day),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a Task from host (camelCase) or snake_case keys."""
        tag_ids = _pick(data, "tagIds", "tag_ids")
        return cls(
            title=data.get("title"),
            tag_ids=list(tag_ids) if tag_ids is not None else None,
            parent_id=_pick(data, "parentId", "parent_id"),
            issue_id=_pick(data, "issueId", "issue_id"),
            time_spent_on_day=dict(_pick(data, "timeSpentOnDay", "time_spent_on_day") or {}),
        )


@dataclass(frozen=True)
class TaskChanges:
    title: str | None = None
    tag_ids: Optional[List[str]] = None
    time_spent_on_day: Optional[Dict[str, int]] = None
    time_estimate: int | None = None
    planned_at: int | None = None

    def merge(self, other: TaskChanges) -> TaskChanges:
        """Overlay the fields set on ``other`` onto a copy of ``self``."""
        updates = {
            name: value
            for name, value in other.__dict__.items()
            if value is not None
        }
        return replace(self, **updates)

    def is_empty(self) -> bool:
        return all(value is None for value in self.__dict__.values())

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.title is not None:
            result["title"] = self.title
        if self.tag_ids is not None:
            result["tagIds"] = list(self.tag_ids)
        if self.time_spent_on_day is not None:
            result["timeSpentOnDay"] = dict(self.time_spent_on_day)
        if self.time_estimate is not None:
            result["timeEstimate"] = self.time_estimate
        if self.planned_at is not None:
            result["plannedAt"] = self.planned_at
        return result


@dataclass(frozen=True)
class ParseResult:
    task_changes: TaskChanges
    new_tag_titles: List[str] = field(default_factory=list)
    # Reminder extraction is disabled; always None.
    remind_at: int | None = None
    project_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskChanges": self.task_changes.to_dict(),
            "newTagTitles": list(self.new_tag_titles),
            "remindAt": self.remind_at,
            "projectId": self.project_id,
        }
