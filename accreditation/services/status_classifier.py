"""
Task State Classifier

Two independent axes describe a task on a card:

  Progress tier (drives the progress-bar gradient):
    blocked          → Blocked
    75 ≤ status      → Completing
    50 ≤ status < 75 → Advanced
    25 ≤ status < 50 → Active
    status < 25      → Planned

  Deadline tier (drives the border accent / badge), first match wins:
    blocked                → Blocked
    status == 100          → Done
    status == 0            → NoLabel (badge suppressed)
    no due date            → NoLabel
    due < today            → Overdue
    days until due ≤ 7     → DeadlineSoon
    days until due > 14    → InProgress
    otherwise (8..14 days) → Approaching

Both mappings are fixed lookup tables; nothing is computed from colours.

Usage:
    from accreditation.services.status_classifier import (
        classify_progress, classify_deadline, progress_style,
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

DEADLINE_SOON_DAYS = 7
DEADLINE_APPROACHING_DAYS = 14


class ProgressTier(str, Enum):
    BLOCKED = "blocked"
    PLANNED = "planned"
    ACTIVE = "active"
    ADVANCED = "advanced"
    COMPLETING = "completing"


class DeadlineTier(str, Enum):
    BLOCKED = "blocked"
    DONE = "done"
    OVERDUE = "overdue"
    DEADLINE_SOON = "deadline_soon"
    APPROACHING = "approaching"
    IN_PROGRESS = "in_progress"
    NO_LABEL = "no_label"


@dataclass(frozen=True)
class ProgressStyle:
    """Display descriptor for a progress tier: label plus two-stop gradient."""

    tier: ProgressTier
    label: str
    gradient_start: str
    gradient_end: str

    @property
    def chart_color(self) -> str:
        return self.gradient_end

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "label": self.label,
            "gradient_start": self.gradient_start,
            "gradient_end": self.gradient_end,
            "chart_color": self.chart_color,
        }


PROGRESS_STYLES: dict[ProgressTier, ProgressStyle] = {
    ProgressTier.BLOCKED: ProgressStyle(ProgressTier.BLOCKED, "Blocked", "#EF4444", "#DC2626"),
    ProgressTier.COMPLETING: ProgressStyle(ProgressTier.COMPLETING, "Completing", "#7CB342", "#4CAF50"),
    ProgressTier.ADVANCED: ProgressStyle(ProgressTier.ADVANCED, "Advanced", "#D4E157", "#9ACD32"),
    ProgressTier.ACTIVE: ProgressStyle(ProgressTier.ACTIVE, "Active", "#FFF8DC", "#F5E050"),
    ProgressTier.PLANNED: ProgressStyle(ProgressTier.PLANNED, "Planned", "#FFFDF0", "#FFF8DC"),
}

DEADLINE_LABELS: dict[DeadlineTier, str] = {
    DeadlineTier.BLOCKED: "Blocked",
    DeadlineTier.DONE: "Done",
    DeadlineTier.OVERDUE: "Overdue",
    DeadlineTier.DEADLINE_SOON: "Deadline Soon",
    DeadlineTier.APPROACHING: "Approaching Deadline",
    DeadlineTier.IN_PROGRESS: "In Progress",
    DeadlineTier.NO_LABEL: "",
}


def classify_progress(status: int, blocked: bool = False) -> ProgressTier:
    """Map a 0-100 progress value and the blocked flag to a ProgressTier."""
    if blocked:
        return ProgressTier.BLOCKED
    if status >= 75:
        return ProgressTier.COMPLETING
    if status >= 50:
        return ProgressTier.ADVANCED
    if status >= 25:
        return ProgressTier.ACTIVE
    return ProgressTier.PLANNED


def progress_style(status: int, blocked: bool = False) -> ProgressStyle:
    return PROGRESS_STYLES[classify_progress(status, blocked)]


def days_until(due: date, today: date) -> int:
    """Whole days from today to due; negative when due is in the past."""
    if isinstance(due, datetime):
        due = due.date()
    if isinstance(today, datetime):
        today = today.date()
    return (due - today).days


def classify_deadline(
    task,
    today: date | None = None,
    *,
    soon_days: int = DEADLINE_SOON_DAYS,
    approaching_days: int = DEADLINE_APPROACHING_DAYS,
) -> DeadlineTier:
    """Classify a task's deadline urgency.

    ``task`` is anything with ``blocked``, ``status`` and ``due_date``
    attributes (a TaskRecord or a Task row). Comparison is date-only.
    """
    if task.blocked:
        return DeadlineTier.BLOCKED
    if task.status == 100:
        return DeadlineTier.DONE
    if task.status == 0:
        return DeadlineTier.NO_LABEL
    if task.due_date is None:
        return DeadlineTier.NO_LABEL

    today = today or date.today()
    remaining = days_until(task.due_date, today)
    if remaining < 0:
        return DeadlineTier.OVERDUE
    if remaining <= soon_days:
        return DeadlineTier.DEADLINE_SOON
    if remaining > approaching_days:
        return DeadlineTier.IN_PROGRESS
    return DeadlineTier.APPROACHING


def describe_task(task, today: date | None = None, **deadline_kwargs) -> dict:
    """Both classifications for one task, ready to merge into an API payload."""
    deadline = classify_deadline(task, today, **deadline_kwargs)
    return {
        "progress_tier": progress_style(task.status, task.blocked).to_dict(),
        "deadline_tier": {
            "tier": deadline.value,
            "label": DEADLINE_LABELS[deadline],
        },
    }
