"""
Report outline models: Section (L1-L3), Task, Profile.

Sections form a self-referential tree of at most three levels. Each Task
belongs to exactly one Section. Profiles are contributors referenced by
tasks (owner, supervisor, collaborators); they are managed elsewhere and
only read here.
"""

import uuid
from datetime import datetime, timezone

from accreditation.models import db


__all__ = [
    "Profile",
    "Section",
    "Task",
    "TaskCollaborator",
]


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class Profile(db.Model):
    """A contributor. ``is_user`` is False for external people without a login."""

    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    role = db.Column(
        db.String(30), nullable=False, default="member",
        comment="admin | supervisor | coordinator | member",
    )
    is_user = db.Column(db.Boolean, nullable=False, default=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    can_create_tasks = db.Column(db.Boolean, nullable=False, default=False)
    can_edit_tasks = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_user": self.is_user,
        }

    def __repr__(self) -> str:
        return f"<Profile {self.id}: {self.name}>"


class Section(db.Model):
    """
    A node of the report outline. Self-referential tree.

    L1 = chapter, L2 = standard, L3 = criterion. Progress and task
    counters are derived at read time and never stored.
    """

    __tablename__ = "sections"
    __table_args__ = (
        db.CheckConstraint("level BETWEEN 1 AND 3", name="ck_sections_level"),
        db.Index("idx_sections_parent", "parent_id"),
        db.Index("idx_sections_level_sort", "level", "sort_order"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    parent_id = db.Column(
        db.String(36), db.ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=True, comment="NULL for L1 roots",
    )
    level = db.Column(db.Integer, nullable=False, comment="1 | 2 | 3")
    number = db.Column(db.String(20), nullable=False, comment="Dotted decimal, e.g. 2.3.1")
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    documents_expected = db.Column(db.Integer, nullable=False, default=0)
    documents_uploaded = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    children = db.relationship(
        "Section",
        backref=db.backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )
    tasks = db.relationship(
        "Task", back_populates="section", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
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
            "documents_expected": self.documents_expected,
            "documents_uploaded": self.documents_uploaded,
        }

    def __repr__(self) -> str:
        return f"<Section {self.number}: {self.title}>"


class TaskCollaborator(db.Model):
    """Ordered association Task -> Profile (collaborators besides the owner)."""

    __tablename__ = "task_collaborators"
    __table_args__ = (
        db.UniqueConstraint("task_id", "profile_id", name="uq_task_collaborator"),
    )

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    profile_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    profile = db.relationship("Profile", lazy="joined")


class Task(db.Model):
    """
    The atomic unit of work. ``status`` is the progress value 0-100.

    ``blocked_reason`` is only meaningful while ``blocked`` is True; the
    service layer clears it when a task is unblocked.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        db.CheckConstraint("status BETWEEN 0 AND 100", name="ck_tasks_status_range"),
        db.Index("idx_tasks_section", "section_id"),
        db.Index("idx_tasks_due_date", "due_date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    section_id = db.Column(
        db.String(36), db.ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True,
    )
    supervisor_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True,
    )
    status = db.Column(db.Integer, nullable=False, default=0, comment="Progress 0-100")
    blocked = db.Column(db.Boolean, nullable=False, default=False)
    blocked_reason = db.Column(db.Text, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    section = db.relationship("Section", back_populates="tasks", lazy="joined")
    owner = db.relationship("Profile", foreign_keys=[owner_id], lazy="joined")
    supervisor = db.relationship("Profile", foreign_keys=[supervisor_id], lazy="joined")
    collaborator_links = db.relationship(
        "TaskCollaborator",
        order_by="TaskCollaborator.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def collaborators(self) -> list:
        return [link.profile for link in self.collaborator_links if link.profile is not None]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "section_id": self.section_id,
            "title": self.title,
            "description": self.description,
            "owner_id": self.owner_id,
            "supervisor_id": self.supervisor_id,
            "status": self.status,
            "blocked": self.blocked,
            "blocked_reason": self.blocked_reason,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
