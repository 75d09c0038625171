"""
Task-Link Registry: many-to-many Task ↔ Group associations.

A task is owned by exactly one Section; the planning view re-groups tasks
through links to Groups. Rules:

  - link_task is idempotent: the same (group, task) pair twice is one link.
  - A task belongs to at most one group. Linking it to a second group
    raises ConflictError; unlink it first.
  - unlink_task on a missing link is a no-op.
  - Available tasks = all tasks minus every linked task, then filtered.

The registry holds no state of its own; every call goes to the repository
so callers always see what was last committed.
"""

from __future__ import annotations

import logging
from enum import Enum

from accreditation.core.exceptions import ConflictError, NotFoundError, ValidationError
from accreditation.services.hierarchy import ancestor_chain
from accreditation.services.progress import clamp, task_order

logger = logging.getLogger(__name__)


class StatusBucket(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value) -> StatusBucket | None:
        """Accept None/"" /"all" as no filter; raise ValidationError otherwise."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in ("", "all"):
            return None
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(
                f"Unknown status filter {value!r}",
                details={"status": [b.value for b in cls]},
            ) from None

    def matches(self, status: int) -> bool:
        status = clamp(status)
        if self is StatusBucket.NOT_STARTED:
            return status == 0
        if self is StatusBucket.COMPLETED:
            return status == 100
        return 0 < status < 100


def filter_tasks(tasks, search=None, status_bucket=None, section_id=None, sections=None) -> list:
    """Filter task records; all given filters must match.

    search         case-insensitive substring over title, section number
                   and section title
    status_bucket  StatusBucket (or its string value)
    section_id     a level-1 section; matches tasks owned by it or by any
                   of its descendants
    sections       flat SectionNode list, needed for section_id and for
                   searching tasks that carry no section reference
    """
    sections = list(sections or [])
    by_id = {s.id: s for s in sections}
    bucket = StatusBucket.parse(status_bucket)

    if section_id:
        root = by_id.get(section_id)
        if root is None or root.level != 1:
            raise ValidationError(
                "Section filter must be a level-1 section",
                details={"section_id": section_id},
            )

    needle = (search or "").strip().lower()
    result = []
    for task in tasks:
        if bucket is not None and not bucket.matches(task.status):
            continue

        if section_id:
            chain = ancestor_chain(sections, task.section_id)
            if not chain or chain[-1] != section_id:
                continue

        if needle:
            ref = task.section or by_id.get(task.section_id)
            haystack = [task.title or ""]
            if ref is not None:
                haystack.extend([ref.number or "", ref.title or ""])
            if not any(needle in h.lower() for h in haystack):
                continue

        result.append(task)
    return result


class TaskLinkRegistry:
    """Link bookkeeping on top of a persistence collaborator."""

    def __init__(self, repository):
        self.repo = repository

    def require_group(self, group_id):
        group = self.repo.get_group(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)
        return group

    def link_task(self, group_id: str, task_id: str) -> bool:
        """Link ``task_id`` to ``group_id``. Returns False if it already was."""
        self.require_group(group_id)
        if self.repo.get_task(task_id) is None:
            raise NotFoundError("Task", task_id)

        existing = self.repo.find_link_for_task(task_id)
        if existing is not None:
            if existing.group_id == group_id:
                logger.debug("Task %s already linked to group %s", task_id, group_id)
                return False
            raise ConflictError("Task", "group_id", existing.group_id)

        self.repo.insert_link(group_id, task_id)
        return True

    def ensure_linkable(self, task_ids) -> list:
        """Check that every task exists and sits in no group yet.

        Returns the ids de-duplicated in their given order. Nothing is written.
        """
        wanted = list(dict.fromkeys(str(t) for t in task_ids or []))
        for task_id in wanted:
            if self.repo.get_task(task_id) is None:
                raise NotFoundError("Task", task_id)
            existing = self.repo.find_link_for_task(task_id)
            if existing is not None:
                raise ConflictError("Task", "group_id", existing.group_id)
        return wanted

    def unlink_task(self, group_id: str, task_id: str) -> bool:
        """Remove the link if present. Returns whether anything was removed."""
        removed = self.repo.delete_link(group_id, task_id)
        if not removed:
            logger.debug("Unlink no-op: task %s not linked to group %s", task_id, group_id)
        return removed

    def tasks_of(self, group_id: str) -> list:
        """Resolved tasks linked to exactly this group, by due date then title."""
        self.require_group(group_id)
        wanted = {link.task_id for link in self.repo.list_group_task_links() if link.group_id == group_id}
        if not wanted:
            return []
        tasks = [t for t in self.repo.list_tasks() if t.id in wanted]
        return sorted(tasks, key=task_order)

    def all_linked_task_ids(self) -> set:
        return {link.task_id for link in self.repo.list_group_task_links()}

    def available_tasks(self, search=None, status_bucket=None, section_id=None, limit=None) -> list:
        """Tasks not linked to any group, filtered for the link picker."""
        linked = self.all_linked_task_ids()
        pool = [t for t in self.repo.list_tasks() if t.id not in linked]
        needs_sections = bool(section_id) or bool(search)
        sections = self.repo.list_sections() if needs_sections else []
        matched = filter_tasks(pool, search, status_bucket, section_id, sections)
        matched.sort(key=task_order)
        if limit is not None:
            if limit < 1:
                raise ValidationError("limit must be a positive integer", details={"limit": limit})
            matched = matched[:limit]
        return matched
