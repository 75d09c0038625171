"""
Progress Aggregation Engine

Two policies, one per hierarchy:

  Sections: bottleneck policy
    section.progress = min(status of tasks owned directly by the section)
    0 when the section owns no task. Not rolled up from child sections:
    a section is only as ready as its weakest deliverable.

  Groups: mean policy over linked tasks
    task_count      = |linked|
    completed_count = |{t : t.status == 100}|
    blocked_count   = |{t : t.blocked}|
    progress        = round_half_up(sum(status) / task_count), 0 when empty
    Only tasks linked to that exact group count; children are not folded in.

Headline figures:
    report progress = unweighted mean of level-1 section progress
    plan progress   = 100 * Σ completed / Σ task_count over level-1 groups only

Every function returns 0 on empty input; nothing here divides by zero or
produces NaN. Out-of-range inputs are clamped rather than propagated.

Usage:
    from accreditation.services.progress import (
        compute_section_progress, compute_group_stats,
        annotate_section_tree, annotate_group_tree,
    )
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date

from accreditation.services.hierarchy import iter_tree

logger = logging.getLogger(__name__)


# ── Numeric helpers ─────────────────────────────────────────────────────────

def clamp(value, low: int = 0, high: int = 100) -> int:
    """Clamp to [low, high]; None and non-numbers count as ``low``."""
    try:
        value = int(value)
    except OverflowError:
        return high if value > 0 else low
    except (TypeError, ValueError):
        return low
    return max(low, min(high, value))


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer-exact round(numerator / denominator) with .5 rounded up.

    Returns 0 when the denominator is not positive. Both arguments are
    non-negative in every caller.
    """
    if denominator <= 0:
        return 0
    numerator = max(0, numerator)
    return (2 * numerator + denominator) // (2 * denominator)


# ── Section policy ──────────────────────────────────────────────────────────

def compute_section_progress(section, tasks) -> int:
    """Bottleneck progress: minimum status of tasks owned by ``section``."""
    statuses = [clamp(t.status) for t in tasks if t.section_id == section.id]
    if not statuses:
        return 0
    return min(statuses)


def compute_report_progress(level1_sections) -> int:
    """Unweighted mean of level-1 section progress values."""
    values = [clamp(s.progress) for s in level1_sections]
    if not values:
        return 0
    return round_half_up(sum(values), len(values))


def annotate_section_tree(roots, tasks, today: date | None = None) -> list:
    """Fill progress and task counters on every node of a built section tree.

    ``tasks_open`` counts tasks below 100%. ``next_deadline`` is the earliest
    due date among open tasks (overdue ones included), or None.
    """
    by_section = defaultdict(list)
    for task in tasks:
        by_section[task.section_id].append(task)

    for node in iter_tree(roots):
        owned = by_section.get(node.id, [])
        node.progress = compute_section_progress(node, owned)
        node.tasks_total = len(owned)
        open_tasks = [t for t in owned if clamp(t.status) < 100]
        node.tasks_open = len(open_tasks)
        due_dates = [t.due_date for t in open_tasks if t.due_date is not None]
        node.next_deadline = min(due_dates) if due_dates else None
    return roots


# ── Group policy ────────────────────────────────────────────────────────────

@dataclass
class GroupStats:
    task_count: int = 0
    completed_count: int = 0
    blocked_count: int = 0
    progress: int = 0

    def __post_init__(self):
        # Negative counts never reach the UI.
        self.task_count = max(0, int(self.task_count or 0))
        self.completed_count = max(0, min(int(self.completed_count or 0), self.task_count))
        self.blocked_count = max(0, min(int(self.blocked_count or 0), self.task_count))
        self.progress = clamp(self.progress)

    def to_dict(self) -> dict:
        return {
            "task_count": self.task_count,
            "completed_count": self.completed_count,
            "blocked_count": self.blocked_count,
            "progress": self.progress,
        }


def compute_group_stats(group, linked_tasks) -> GroupStats:
    """Mean-policy statistics over the tasks linked to ``group``."""
    linked_tasks = list(linked_tasks)
    statuses = [clamp(t.status) for t in linked_tasks]
    count = len(statuses)
    return GroupStats(
        task_count=count,
        completed_count=sum(1 for s in statuses if s == 100),
        blocked_count=sum(1 for t in linked_tasks if t.blocked),
        progress=round_half_up(sum(statuses), count),
    )


@dataclass
class PlanSummary:
    total_tasks: int = 0
    completed_tasks: int = 0
    progress: int = 0

    def to_dict(self) -> dict:
        return {
            "total_tasks": self.total_tasks,
            "completed_tasks": self.completed_tasks,
            "progress": self.progress,
        }


def compute_plan_progress(level1_groups) -> PlanSummary:
    """Top-line plan figure from level-1 group counters only.

    Level-2/3 groups are not summed in; their links only count here if
    they sit directly on a level-1 group.
    """
    total = sum(max(0, g.task_count or 0) for g in level1_groups)
    completed = sum(max(0, g.completed_count or 0) for g in level1_groups)
    return PlanSummary(
        total_tasks=total,
        completed_tasks=completed,
        progress=clamp(round_half_up(100 * completed, total)),
    )


def task_order(task):
    return (task.due_date is None, task.due_date or date.max, task.title.lower())


def annotate_group_tree(roots, links, tasks) -> list:
    """Attach linked tasks and stats to every node of a built group tree.

    Links to unknown tasks are skipped; duplicate link rows count once.
    """
    tasks_by_id = {t.id: t for t in tasks}
    linked_ids = defaultdict(list)
    seen = set()
    for link in links:
        pair = (link.group_id, link.task_id)
        if pair in seen:
            continue
        seen.add(pair)
        if link.task_id not in tasks_by_id:
            logger.debug("Link %s -> %s references an unknown task", *pair)
            continue
        linked_ids[link.group_id].append(link.task_id)

    for node in iter_tree(roots):
        node.linked_tasks = sorted(
            (tasks_by_id[tid] for tid in linked_ids.get(node.id, [])),
            key=task_order,
        )
        stats = compute_group_stats(node, node.linked_tasks)
        node.task_count = stats.task_count
        node.completed_count = stats.completed_count
        node.blocked_count = stats.blocked_count
        node.progress = stats.progress
    return roots


# ── Card / panel summaries ──────────────────────────────────────────────────

def group_status(group) -> str:
    """Card status for a group from its computed stats.

    not_started | blocked | completed | on_track | in_progress | at_risk
    """
    if not group.task_count:
        return "not_started"
    if group.blocked_count > 0:
        return "blocked"
    if group.progress == 100:
        return "completed"
    if group.progress == 0:
        return "not_started"
    if group.progress >= 75:
        return "on_track"
    if group.progress >= 25:
        return "in_progress"
    return "at_risk"


def status_breakdown(tasks) -> dict:
    """Counts shown on a group's detail panel.

    ``not_started`` excludes blocked tasks; ``in_progress`` and ``completed``
    are by status only.
    """
    tasks = list(tasks)
    statuses = [clamp(t.status) for t in tasks]
    return {
        "total": len(tasks),
        "completed": sum(1 for s in statuses if s == 100),
        "blocked": sum(1 for t in tasks if t.blocked),
        "in_progress": sum(1 for s in statuses if 0 < s < 100),
        "not_started": sum(1 for t, s in zip(tasks, statuses) if s == 0 and not t.blocked),
        "progress": round_half_up(sum(statuses), len(statuses)),
    }
