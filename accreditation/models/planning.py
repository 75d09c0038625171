"""
Planning models: Group (project phase L1-L3) and GroupTask links.

Groups form a hierarchy independent of the report outline. Tasks are not
owned by groups; they are attached through ``group_tasks`` rows. A task
may be linked to at most one group at a time (``uq_group_tasks_task``).
"""

import uuid
from datetime import datetime, timezone

from accreditation.models import db


__all__ = [
    "Group",
    "GroupTask",
]


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class Group(db.Model):
    """
    A node of the planning hierarchy. Self-referential tree.

    ``is_fixed`` marks seeded phases that may be edited but never deleted.
    Stats (task_count, progress, ...) are computed from links at read time.
    """

    __tablename__ = "plan_groups"
    __table_args__ = (
        db.CheckConstraint("level BETWEEN 1 AND 3", name="ck_plan_groups_level"),
        db.Index("idx_plan_groups_parent", "parent_id"),
        db.Index("idx_plan_groups_level_sort", "level", "sort_order"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    parent_id = db.Column(
        db.String(36), db.ForeignKey("plan_groups.id", ondelete="CASCADE"),
        nullable=True, comment="NULL for L1 phases",
    )
    level = db.Column(db.Integer, nullable=False, comment="1 | 2 | 3")
    number = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=True)
    owner_id = db.Column(
        db.String(36), db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True,
    )
    is_fixed = db.Column(db.Boolean, nullable=False, default=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    owner = db.relationship("Profile", lazy="joined")
    children = db.relationship(
        "Group",
        backref=db.backref("parent", remote_side=[id]),
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )
    task_links = db.relationship(
        "GroupTask",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "level": self.level,
            "number": self.number,
            "title": self.title,
            "description": self.description,
            "owner_id": self.owner_id,
            "is_fixed": self.is_fixed,
            "sort_order": self.sort_order,
        }

    def __repr__(self) -> str:
        return f"<Group {self.number}: {self.title}>"


class GroupTask(db.Model):
    """Link row (group_id, task_id). No payload, never updated."""

    __tablename__ = "group_tasks"
    __table_args__ = (
        db.UniqueConstraint("group_id", "task_id", name="uq_group_tasks_pair"),
        db.UniqueConstraint("task_id", name="uq_group_tasks_task"),
    )

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(
        db.String(36), db.ForeignKey("plan_groups.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {"group_id": self.group_id, "task_id": self.task_id}
