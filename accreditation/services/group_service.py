"""
Planning service: project-phase groups and the plan view.

Business context:
    Groups re-organise report tasks into a three-level planning hierarchy
    ("project phases"). Level-1 phases are seeded as fixed groups: they can
    be renamed but never deleted. Sub-groups are created under an existing
    group; their level, number and sort position are derived from the
    parent and the current siblings.

Every read rebuilds the group tree from the repository; nothing derived is
kept between calls.

Usage:
    from accreditation.services import group_service
    from accreditation.services.repository import SqlRepository

    plan = group_service.get_plan(SqlRepository())
"""

import logging

from accreditation.core.exceptions import ConflictError, NotFoundError, ValidationError
from accreditation.services.hierarchy import MAX_LEVEL, build_hierarchy, find_node, flatten_ids
from accreditation.services.numbering import next_number, next_sort_order
from accreditation.services.progress import (
    annotate_group_tree,
    compute_plan_progress,
    group_status,
    status_breakdown,
)
from accreditation.services.task_links import TaskLinkRegistry
from accreditation.utils.helpers import clean_text

logger = logging.getLogger(__name__)

# Default level-1 phases created by `flask seed-plan`.
DEFAULT_PHASES: list[dict] = [
    {"title": "Preparation", "description": "Committee setup, timeline and evidence inventory."},
    {"title": "Self-Evaluation", "description": "Criteria analysis and data collection per section."},
    {"title": "Report Writing", "description": "Drafting and internal review of every report section."},
    {"title": "Submission & Site Visit", "description": "Final approval, submission and visit logistics."},
]

EDITABLE_FIELDS = ("number", "title", "description", "owner_id")


def _clean_title(value) -> str:
    title = clean_text(value)
    if not title:
        raise ValidationError("Title is required", details={"title": "required"})
    return title


# ── Plan view ────────────────────────────────────────────────────────────────


def build_group_tree(repo) -> list:
    """Fresh group tree with linked tasks and stats on every node."""
    roots = build_hierarchy(repo.list_groups())
    annotate_group_tree(roots, repo.list_group_task_links(), repo.list_tasks())
    return roots


def _group_payload(node, include_tasks: bool) -> dict:
    payload = node.to_dict(include_tasks=include_tasks)
    payload["status"] = group_status(node)
    payload["children"] = [_group_payload(c, include_tasks) for c in node.children]
    return payload


def get_plan(repo, include_tasks: bool = False) -> dict:
    """Group tree plus the plan top-line (level-1 counters only)."""
    roots = build_group_tree(repo)
    summary = compute_plan_progress(roots)
    return {
        "groups": [_group_payload(r, include_tasks) for r in roots],
        "summary": summary.to_dict(),
    }


def get_group_detail(repo, group_id: str) -> dict:
    """One group with its linked tasks and status breakdown."""
    roots = build_group_tree(repo)
    node = find_node(roots, group_id)
    if node is None:
        detached = repo.get_group(group_id)
        if detached is None:
            raise NotFoundError("Group", group_id)
        # Exists but unreachable from a level-1 root: no tree stats.
        logger.warning("Group %s is not attached to the plan tree", group_id)
        return {"group": detached.to_dict(), "tasks": [], "breakdown": status_breakdown([])}
    return {
        "group": _group_payload(node, include_tasks=False),
        "tasks": [t.to_dict() for t in node.linked_tasks],
        "breakdown": status_breakdown(node.linked_tasks),
    }


# ── Mutations ────────────────────────────────────────────────────────────────


def create_group(repo, data: dict):
    """Create a group under ``data["parent_id"]`` (or a level-1 group without one).

    Number and sort order are derived from the siblings unless ``number``
    is given explicitly. Optional ``task_ids`` are checked before the group
    is written and linked right after it.
    """
    title = _clean_title(data.get("title"))
    parent_id = data.get("parent_id") or None

    parent = None
    if parent_id:
        parent = repo.get_group(parent_id)
        if parent is None:
            raise NotFoundError("Group", parent_id)
        level = parent.level + 1
    else:
        level = 1

    if level > MAX_LEVEL:
        raise ValidationError(
            f"Groups cannot be nested deeper than level {MAX_LEVEL}",
            details={"parent_id": parent_id, "level": level},
        )

    siblings = [
        g for g in repo.list_groups()
        if g.level == level and (g.parent_id or None) == parent_id
    ]
    task_ids = data.get("task_ids") or []
    if not isinstance(task_ids, list):
        raise ValidationError("task_ids must be a list", details={"task_ids": task_ids})
    registry = TaskLinkRegistry(repo)
    task_ids = registry.ensure_linkable(task_ids)

    number = data.get("number")
    if number is not None and not isinstance(number, str):
        raise ValidationError("Number must be a string", details={"number": number})
    number = clean_text(number) or next_number(
        parent.number if parent else None, [g.number for g in siblings]
    )

    node = repo.create_group({
        "parent_id": parent_id,
        "level": level,
        "number": number,
        "title": title,
        "description": data.get("description") or None,
        "owner_id": data.get("owner_id") or None,
        "is_fixed": False,
        "sort_order": next_sort_order([g.sort_order for g in siblings]),
    })

    try:
        for task_id in task_ids:
            registry.link_task(node.id, task_id)
    except (ConflictError, NotFoundError):
        # A task was linked elsewhere in the meantime: drop the new group.
        repo.delete_group(node.id)
        raise
    return node


def update_group(repo, group_id: str, data: dict):
    """Update editable fields. Fixed groups are editable too."""
    patch = {k: data[k] for k in EDITABLE_FIELDS if k in data}
    if "title" in patch:
        patch["title"] = _clean_title(patch["title"])
    if "number" in patch:
        number = clean_text(patch["number"])
        if not number:
            raise ValidationError("Number cannot be empty", details={"number": "required"})
        patch["number"] = number
    for key in ("description", "owner_id"):
        if key in patch and not patch[key]:
            patch[key] = None
    if not patch:
        node = repo.get_group(group_id)
        if node is None:
            raise NotFoundError("Group", group_id)
        return node
    return repo.update_group(group_id, patch)


def delete_group(repo, group_id: str) -> list:
    """Delete a non-fixed group; sub-groups and their links go with it.

    Returns the ids removed (the group first, then its descendants).
    """
    node = find_node(build_hierarchy(repo.list_groups()), group_id)
    removed = flatten_ids(node) if node is not None else [group_id]
    repo.delete_group(group_id)
    if len(removed) > 1:
        logger.info("Deleting group %s also removed %d sub-group(s)", group_id, len(removed) - 1)
    return removed


def seed_fixed_groups(repo, phases=None) -> int:
    """Create the fixed level-1 phases that do not exist yet (by title).

    Returns the number of groups created.
    """
    phases = phases or DEFAULT_PHASES
    existing = [g for g in repo.list_groups() if g.level == 1]
    titles = {g.title.lower() for g in existing}
    numbers = [g.number for g in existing]
    orders = [g.sort_order for g in existing]

    created = 0
    for phase in phases:
        if phase["title"].lower() in titles:
            continue
        number = next_number(None, numbers)
        sort_order = next_sort_order(orders)
        repo.create_group({
            "parent_id": None,
            "level": 1,
            "number": number,
            "title": phase["title"],
            "description": phase.get("description"),
            "is_fixed": True,
            "sort_order": sort_order,
        })
        numbers.append(number)
        orders.append(sort_order)
        titles.add(phase["title"].lower())
        created += 1

    logger.info("Seeded %d fixed phase group(s)", created)
    return created
