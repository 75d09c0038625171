"""
SQL persistence collaborator.

Implements the read/write contract the engine consumes:

  read:  list_sections, list_groups, list_tasks, list_group_task_links,
         list_profiles, get_group, get_task, find_link_for_task
  write: create_group, update_group, delete_group, insert_link,
         delete_link, update_task

Every method returns normalized entities (services.entities), never ORM
rows, so callers cannot lean on lazy relationships or session state.
Writes commit immediately; callers re-read and rebuild after each one.

Database failures roll the session back and surface as PersistenceError.
They are never retried or swallowed here.

Usage:
    from accreditation.services.repository import SqlRepository

    repo = SqlRepository()              # binds to db.session
    groups = repo.list_groups()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from accreditation.core.exceptions import ConflictError, NotFoundError, PersistenceError
from accreditation.models import db
from accreditation.models.planning import Group, GroupTask
from accreditation.models.report import Profile, Section, Task
from accreditation.services.entities import (
    GroupNode,
    GroupTaskLink,
    ProfileRef,
    SectionNode,
    TaskRecord,
)

logger = logging.getLogger(__name__)

# Fields a caller may change through update_group / update_task.
GROUP_MUTABLE_FIELDS = ("number", "title", "description", "owner_id", "sort_order")
TASK_MUTABLE_FIELDS = (
    "title", "description", "owner_id", "supervisor_id", "status",
    "blocked", "blocked_reason", "start_date", "due_date",
)


class SqlRepository:
    """Persistence collaborator backed by a SQLAlchemy session."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    @contextmanager
    def _guard(self, operation: str, *, write: bool = False):
        try:
            yield
            if write:
                self.session.commit()
        except (NotFoundError, ConflictError):
            if write:
                self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Repository operation %s failed: %s", operation, exc)
            raise PersistenceError(operation, exc) from exc

    # ── Reads ────────────────────────────────────────────────────────────

    def list_sections(self) -> list[SectionNode]:
        with self._guard("list_sections"):
            rows = self.session.scalars(
                select(Section).order_by(Section.level, Section.sort_order)
            ).all()
            return [SectionNode.from_model(r) for r in rows]

    def list_groups(self) -> list[GroupNode]:
        with self._guard("list_groups"):
            rows = self.session.scalars(
                select(Group).order_by(Group.level, Group.sort_order)
            ).all()
            return [GroupNode.from_model(r) for r in rows]

    def list_tasks(self) -> list[TaskRecord]:
        with self._guard("list_tasks"):
            rows = self.session.scalars(
                select(Task).order_by(Task.due_date, Task.title)
            ).unique().all()
            return [TaskRecord.from_model(r) for r in rows]

    def list_group_task_links(self) -> list[GroupTaskLink]:
        with self._guard("list_group_task_links"):
            rows = self.session.execute(
                select(GroupTask.group_id, GroupTask.task_id).order_by(GroupTask.id)
            ).all()
            return [GroupTaskLink(group_id=g, task_id=t) for g, t in rows]

    def list_profiles(self) -> list[ProfileRef]:
        with self._guard("list_profiles"):
            rows = self.session.scalars(
                select(Profile).where(Profile.is_active.is_(True)).order_by(Profile.name)
            ).all()
            return [ProfileRef.from_model(r) for r in rows]

    def get_group(self, group_id: str) -> GroupNode | None:
        with self._guard("get_group"):
            row = self.session.get(Group, group_id)
            return GroupNode.from_model(row) if row else None

    def get_task(self, task_id: str) -> TaskRecord | None:
        with self._guard("get_task"):
            row = self.session.get(Task, task_id)
            return TaskRecord.from_model(row) if row else None

    def find_link_for_task(self, task_id: str) -> GroupTaskLink | None:
        with self._guard("find_link_for_task"):
            row = self.session.execute(
                select(GroupTask.group_id, GroupTask.task_id)
                .where(GroupTask.task_id == task_id)
                .limit(1)
            ).first()
            return GroupTaskLink(group_id=row[0], task_id=row[1]) if row else None

    # ── Group writes ─────────────────────────────────────────────────────

    def create_group(self, data: dict) -> GroupNode:
        with self._guard("create_group", write=True):
            group = Group(
                parent_id=data.get("parent_id"),
                level=data["level"],
                number=data["number"],
                title=data["title"],
                description=data.get("description"),
                owner_id=data.get("owner_id"),
                is_fixed=bool(data.get("is_fixed", False)),
                sort_order=data.get("sort_order", 0),
            )
            self.session.add(group)
            self.session.flush()
            node = GroupNode.from_model(group)
        logger.info("Group created id=%s number=%s level=%s", node.id, node.number, node.level)
        return node

    def update_group(self, group_id: str, patch: dict) -> GroupNode:
        with self._guard("update_group", write=True):
            group = self.session.get(Group, group_id)
            if group is None:
                raise NotFoundError("Group", group_id)
            for attr in GROUP_MUTABLE_FIELDS:
                if attr in patch:
                    setattr(group, attr, patch[attr])
            self.session.flush()
            node = GroupNode.from_model(group)
        logger.info("Group updated id=%s fields=%s", group_id, sorted(patch))
        return node

    def delete_group(self, group_id: str) -> None:
        with self._guard("delete_group", write=True):
            group = self.session.get(Group, group_id)
            if group is None:
                raise NotFoundError("Group", group_id)
            if group.is_fixed:
                raise ConflictError("Group", "is_fixed", "true")
            self.session.delete(group)
        logger.info("Group deleted id=%s (sub-groups and links cascade)", group_id)

    # ── Link writes ──────────────────────────────────────────────────────

    def insert_link(self, group_id: str, task_id: str) -> None:
        try:
            with self._guard("insert_link", write=True):
                self.session.add(GroupTask(group_id=group_id, task_id=task_id))
                self.session.flush()
        except PersistenceError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise ConflictError("GroupTask", "task_id", task_id) from exc.__cause__
            raise
        logger.info("Task %s linked to group %s", task_id, group_id)

    def delete_link(self, group_id: str, task_id: str) -> bool:
        with self._guard("delete_link", write=True):
            removed = (
                self.session.query(GroupTask)
                .filter(GroupTask.group_id == group_id, GroupTask.task_id == task_id)
                .delete(synchronize_session=False)
            )
        if removed:
            logger.info("Task %s unlinked from group %s", task_id, group_id)
        return bool(removed)

    # ── Task writes ──────────────────────────────────────────────────────

    def update_task(self, task_id: str, patch: dict) -> TaskRecord:
        with self._guard("update_task", write=True):
            task = self.session.get(Task, task_id)
            if task is None:
                raise NotFoundError("Task", task_id)
            for attr in TASK_MUTABLE_FIELDS:
                if attr in patch:
                    setattr(task, attr, patch[attr])
            self.session.flush()
            record = TaskRecord.from_model(task)
        logger.info("Task updated id=%s fields=%s", task_id, sorted(patch))
        return record
