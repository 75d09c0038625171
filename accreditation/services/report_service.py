"""
Report service: the section outline and the tasks behind it.

Business context:
    The accreditation report is a three-level outline of Sections. Each
    section owns tasks; a section is only as ready as its least advanced
    task (bottleneck policy), and the report headline is the plain mean of
    the level-1 sections.

Task updates are validated here before they reach the repository:
    - status is an integer in 0..100
    - a blocked task needs a reason; unblocking clears the reason
    - dates are ISO (YYYY-MM-DD) or DD.MM.YYYY; due_date >= start_date
"""

import logging
from datetime import date

from accreditation.core.exceptions import NotFoundError, ValidationError
from accreditation.services.hierarchy import build_hierarchy, iter_tree
from accreditation.services.progress import annotate_section_tree, compute_report_progress, task_order
from accreditation.services.status_classifier import (
    DEADLINE_APPROACHING_DAYS,
    DEADLINE_SOON_DAYS,
    describe_task,
)
from accreditation.utils.helpers import clean_text, parse_bool, parse_date_input

logger = logging.getLogger(__name__)


def build_section_tree(repo, today: date | None = None) -> list:
    """Fresh section tree with progress and task counters on every node."""
    roots = build_hierarchy(repo.list_sections())
    annotate_section_tree(roots, repo.list_tasks(), today)
    return roots


def get_report(repo, today: date | None = None) -> dict:
    """Section tree plus report-level headline figures."""
    roots = build_section_tree(repo, today)
    nodes = list(iter_tree(roots))
    return {
        "sections": [r.to_dict() for r in roots],
        "summary": {
            "progress": compute_report_progress(roots),
            "sections_total": len(nodes),
            "tasks_total": sum(n.tasks_total for n in nodes),
            "tasks_open": sum(n.tasks_open for n in nodes),
            "documents_expected": sum(n.documents_expected for n in nodes),
            "documents_uploaded": sum(n.documents_uploaded for n in nodes),
        },
    }


def get_section_tasks(
    repo,
    section_id: str,
    today: date | None = None,
    *,
    soon_days: int = DEADLINE_SOON_DAYS,
    approaching_days: int = DEADLINE_APPROACHING_DAYS,
) -> dict:
    """Tasks owned directly by one section, each with both classifications."""
    sections = repo.list_sections()
    section = next((s for s in sections if s.id == section_id), None)
    if section is None:
        raise NotFoundError("Section", section_id)

    owned = sorted((t for t in repo.list_tasks() if t.section_id == section_id), key=task_order)
    annotate_section_tree([section], owned, today)

    items = []
    for task in owned:
        item = task.to_dict()
        item.update(describe_task(task, today, soon_days=soon_days, approaching_days=approaching_days))
        items.append(item)

    payload = section.to_dict()
    payload.pop("children", None)
    return {"section": payload, "tasks": items}


def _parse_status(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("Status must be an integer", details={"status": value})
    try:
        status = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Status must be an integer", details={"status": value}) from None
    if status != value and not isinstance(value, str):
        raise ValidationError("Status must be an integer", details={"status": value})
    if not 0 <= status <= 100:
        raise ValidationError("Status must be between 0 and 100", details={"status": status})
    return status


def update_task(repo, task_id: str, data: dict):
    """Apply a partial update to a task after validating it."""
    current = repo.get_task(task_id)
    if current is None:
        raise NotFoundError("Task", task_id)

    patch = {}
    if "title" in data:
        title = clean_text(data["title"])
        if not title:
            raise ValidationError("Title is required", details={"title": "required"})
        patch["title"] = title
    if "description" in data:
        patch["description"] = data["description"] or None
    for key in ("owner_id", "supervisor_id"):
        if key in data:
            patch[key] = data[key] or None

    if "status" in data:
        patch["status"] = _parse_status(data["status"])

    blocked = parse_bool(data["blocked"]) if "blocked" in data else current.blocked
    if blocked:
        reason = clean_text(data.get("blocked_reason", current.blocked_reason))
        if not reason:
            raise ValidationError(
                "A blocked task needs a reason", details={"blocked_reason": "required"}
            )
        patch["blocked"] = True
        patch["blocked_reason"] = reason
    elif "blocked" in data or "blocked_reason" in data:
        patch["blocked"] = False
        patch["blocked_reason"] = None

    for key in ("start_date", "due_date"):
        if key in data:
            try:
                patch[key] = parse_date_input(data[key])
            except ValueError as exc:
                raise ValidationError(str(exc), details={key: data[key]}) from None

    start = patch.get("start_date", current.start_date)
    due = patch.get("due_date", current.due_date)
    if start and due and due < start:
        raise ValidationError(
            "Due date cannot be before start date",
            details={"start_date": start.isoformat(), "due_date": due.isoformat()},
        )

    if not patch:
        return current
    return repo.update_task(task_id, patch)
