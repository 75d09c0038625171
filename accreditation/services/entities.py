"""
Typed entities consumed by the progress / linking engine.

Persistence hands back records in whatever shape its query produced:
ORM rows with lazy relationships, or plain mappings with joined
sub-objects nested under ``owner`` / ``section`` / ``collaborators``.
Everything is normalized into the dataclasses below before it reaches the
hierarchy builder or the aggregator, so those never depend on how a row
was fetched.

Usage:
    from accreditation.services.entities import TaskRecord, SectionNode

    task = TaskRecord.from_row({"id": "t1", "section_id": "s1", "status": "40"})
    node = SectionNode.from_model(section_row)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from accreditation.utils.helpers import parse_date


def _as_int(value: Any, default: int = 0) -> int:
    """Coerce numeric-looking values ("2", 2.0) to int; anything else -> default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return default


def _as_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class ProfileRef:
    """A contributor reference (owner, supervisor, collaborator)."""

    id: str
    name: str = ""
    email: str | None = None
    role: str = "member"
    is_user: bool = True

    @classmethod
    def from_row(cls, row: Mapping | None) -> ProfileRef | None:
        if not row or row.get("id") is None:
            return None
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            email=row.get("email"),
            role=row.get("role") or "member",
            is_user=bool(row.get("is_user", True)),
        )

    @classmethod
    def from_model(cls, profile) -> ProfileRef | None:
        if profile is None:
            return None
        return cls(
            id=str(profile.id),
            name=profile.name or "",
            email=profile.email,
            role=profile.role or "member",
            is_user=bool(profile.is_user),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_user": self.is_user,
        }


@dataclass(frozen=True)
class SectionRef:
    """The owning-section reference carried by a resolved task."""

    id: str
    number: str = ""
    title: str = ""
    level: int = 0

    @classmethod
    def from_row(cls, row: Mapping | None) -> SectionRef | None:
        if not row or row.get("id") is None:
            return None
        return cls(
            id=str(row["id"]),
            number=str(row.get("number") or ""),
            title=row.get("title") or "",
            level=_as_int(row.get("level")),
        )

    @classmethod
    def from_model(cls, section) -> SectionRef | None:
        if section is None:
            return None
        return cls(
            id=str(section.id),
            number=section.number or "",
            title=section.title or "",
            level=_as_int(section.level),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "number": self.number, "title": self.title, "level": self.level}


@dataclass
class TaskRecord:
    """A task resolved with its owner, collaborators and section reference."""

    id: str
    title: str
    section_id: str | None
    status: int = 0
    blocked: bool = False
    blocked_reason: str | None = None
    description: str = ""
    owner_id: str | None = None
    supervisor_id: str | None = None
    start_date: date | None = None
    due_date: date | None = None
    owner: ProfileRef | None = None
    section: SectionRef | None = None
    collaborators: list[ProfileRef] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping) -> TaskRecord:
        """Build from a flat or joined mapping (``owner``/``section`` nested)."""
        collaborators = []
        seen = set()
        owner_id = _as_str(row.get("owner_id"))
        for raw in row.get("collaborators") or []:
            # Joined collaborator rows sometimes arrive wrapped as {"user": {...}}
            ref = ProfileRef.from_row(raw.get("user") if "user" in raw else raw)
            if ref is None or ref.id in seen or ref.id == owner_id:
                continue
            seen.add(ref.id)
            collaborators.append(ref)
        blocked = bool(row.get("blocked", False))
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            section_id=_as_str(row.get("section_id")),
            status=_as_int(row.get("status")),
            blocked=blocked,
            blocked_reason=row.get("blocked_reason") if blocked else None,
            description=row.get("description") or "",
            owner_id=owner_id,
            supervisor_id=_as_str(row.get("supervisor_id")),
            start_date=parse_date(row.get("start_date")),
            due_date=parse_date(row.get("due_date")),
            owner=ProfileRef.from_row(row.get("owner")),
            section=SectionRef.from_row(row.get("section")),
            collaborators=collaborators,
        )

    @classmethod
    def from_model(cls, task) -> TaskRecord:
        owner_id = _as_str(task.owner_id)
        collaborators = []
        seen = set()
        for profile in task.collaborators:
            if profile.id in seen or profile.id == owner_id:
                continue
            seen.add(profile.id)
            collaborators.append(ProfileRef.from_model(profile))
        return cls(
            id=str(task.id),
            title=task.title or "",
            section_id=_as_str(task.section_id),
            status=_as_int(task.status),
            blocked=bool(task.blocked),
            blocked_reason=task.blocked_reason if task.blocked else None,
            description=task.description or "",
            owner_id=owner_id,
            supervisor_id=_as_str(task.supervisor_id),
            start_date=task.start_date,
            due_date=task.due_date,
            owner=ProfileRef.from_model(task.owner),
            section=SectionRef.from_model(task.section),
            collaborators=collaborators,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "section_id": self.section_id,
            "owner_id": self.owner_id,
            "supervisor_id": self.supervisor_id,
            "status": self.status,
            "blocked": self.blocked,
            "blocked_reason": self.blocked_reason,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "owner": self.owner.to_dict() if self.owner else None,
            "section": self.section.to_dict() if self.section else None,
            "collaborators": [c.to_dict() for c in self.collaborators],
        }


@dataclass
class SectionNode:
    """A report-outline node. ``children`` and the counters are derived."""

    id: str
    number: str
    title: str
    level: int
    parent_id: str | None = None
    sort_order: int = 0
    description: str = ""
    documents_expected: int = 0
    documents_uploaded: int = 0
    children: list[SectionNode] = field(default_factory=list)
    progress: int = 0
    tasks_total: int = 0
    tasks_open: int = 0
    next_deadline: date | None = None

    @classmethod
    def from_row(cls, row: Mapping) -> SectionNode:
        return cls(
            id=str(row["id"]),
            number=str(row.get("number") or ""),
            title=row.get("title") or "",
            level=_as_int(row.get("level")),
            parent_id=_as_str(row.get("parent_id")),
            sort_order=_as_int(row.get("sort_order")),
            description=row.get("description") or "",
            documents_expected=_as_int(row.get("documents_expected")),
            documents_uploaded=_as_int(row.get("documents_uploaded")),
        )

    @classmethod
    def from_model(cls, section) -> SectionNode:
        return cls(
            id=str(section.id),
            number=section.number or "",
            title=section.title or "",
            level=_as_int(section.level),
            parent_id=_as_str(section.parent_id),
            sort_order=_as_int(section.sort_order),
            description=section.description or "",
            documents_expected=_as_int(section.documents_expected),
            documents_uploaded=_as_int(section.documents_uploaded),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "level": self.level,
            "number": self.number,
            "title": self.title,
            "description": self.description,
            "sort_order": self.sort_order,
            "progress": self.progress,
            "tasks_total": self.tasks_total,
            "tasks_open": self.tasks_open,
            "documents_expected": self.documents_expected,
            "documents_uploaded": self.documents_uploaded,
            "next_deadline": self.next_deadline.isoformat() if self.next_deadline else None,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class GroupNode:
    """A planning-hierarchy node. Stats are filled by the aggregator."""

    id: str
    number: str
    title: str
    level: int
    parent_id: str | None = None
    sort_order: int = 0
    description: str = ""
    owner_id: str | None = None
    owner: ProfileRef | None = None
    is_fixed: bool = False
    children: list[GroupNode] = field(default_factory=list)
    task_count: int = 0
    completed_count: int = 0
    blocked_count: int = 0
    progress: int = 0
    linked_tasks: list[TaskRecord] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping) -> GroupNode:
        return cls(
            id=str(row["id"]),
            number=str(row.get("number") or ""),
            title=row.get("title") or "",
            level=_as_int(row.get("level")),
            parent_id=_as_str(row.get("parent_id")),
            sort_order=_as_int(row.get("sort_order")),
            description=row.get("description") or "",
            owner_id=_as_str(row.get("owner_id")),
            owner=ProfileRef.from_row(row.get("owner")),
            is_fixed=bool(row.get("is_fixed", False)),
        )

    @classmethod
    def from_model(cls, group) -> GroupNode:
        return cls(
            id=str(group.id),
            number=group.number or "",
            title=group.title or "",
            level=_as_int(group.level),
            parent_id=_as_str(group.parent_id),
            sort_order=_as_int(group.sort_order),
            description=group.description or "",
            owner_id=_as_str(group.owner_id),
            owner=ProfileRef.from_model(group.owner),
            is_fixed=bool(group.is_fixed),
        )

    def to_dict(self, include_tasks: bool = False) -> dict:
        d = {
            "id": self.id,
            "parent_id": self.parent_id,
            "level": self.level,
            "number": self.number,
            "title": self.title,
            "description": self.description,
            "owner_id": self.owner_id,
            "owner": self.owner.to_dict() if self.owner else None,
            "is_fixed": self.is_fixed,
            "sort_order": self.sort_order,
            "task_count": self.task_count,
            "completed_count": self.completed_count,
            "blocked_count": self.blocked_count,
            "progress": self.progress,
            "children": [c.to_dict(include_tasks=include_tasks) for c in self.children],
        }
        if include_tasks:
            d["linked_tasks"] = [t.to_dict() for t in self.linked_tasks]
        return d


@dataclass(frozen=True)
class GroupTaskLink:
    """Association (group_id, task_id)."""

    group_id: str
    task_id: str

    @classmethod
    def from_row(cls, row: Mapping) -> GroupTaskLink:
        return cls(group_id=str(row["group_id"]), task_id=str(row["task_id"]))
