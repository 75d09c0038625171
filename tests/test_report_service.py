"""Tests: report service: section tree, section tasks, task updates."""

from datetime import date, timedelta

import pytest

from accreditation.core.exceptions import NotFoundError, ValidationError
from accreditation.services import report_service


@pytest.fixture()
def outline(make_section, make_task):
    s1 = make_section("1", "Mission", documents_expected=3, documents_uploaded=1)
    s11 = make_section("1.1", "Vision", parent=s1)
    s2 = make_section("2", "Curriculum")
    make_task(s1, "Draft mission", status=80)
    make_task(s1, "Board approval", status=100)
    make_task(s11, "Survey", status=10)
    make_task(s2, "Course matrix", status=30)
    return {"s1": s1, "s11": s11, "s2": s2}


def test_report_tree_and_headline(repo, outline):
    report = report_service.get_report(repo)
    mission, curriculum = report["sections"]
    assert mission["progress"] == 80
    assert mission["children"][0]["progress"] == 10
    assert curriculum["progress"] == 30
    assert report["summary"]["progress"] == 55          # mean(80, 30)
    assert report["summary"]["tasks_total"] == 4
    assert report["summary"]["tasks_open"] == 3
    assert report["summary"]["documents_expected"] == 3


def test_empty_report(repo):
    report = report_service.get_report(repo)
    assert report["sections"] == []
    assert report["summary"]["progress"] == 0


def test_section_tasks_are_classified(repo, make_section, make_task, today):
    s = make_section("1")
    make_task(s, "Late", status=40, due_date=today - timedelta(days=1))
    make_task(s, "Soon", status=40, due_date=today + timedelta(days=3))
    make_task(s, "Blocked", status=40, blocked=True, blocked_reason="Waiting on IT")

    payload = report_service.get_section_tasks(repo, s.id, today)
    tiers = {t["title"]: t["deadline_tier"]["tier"] for t in payload["tasks"]}
    assert tiers == {"Late": "overdue", "Soon": "deadline_soon", "Blocked": "blocked"}
    assert payload["section"]["progress"] == 40
    assert "children" not in payload["section"]


def test_section_tasks_exclude_child_sections(repo, outline):
    payload = report_service.get_section_tasks(repo, outline["s1"].id)
    assert {t["title"] for t in payload["tasks"]} == {"Draft mission", "Board approval"}


def test_section_tasks_unknown_section(repo):
    with pytest.raises(NotFoundError):
        report_service.get_section_tasks(repo, "missing")


# ── update_task ──────────────────────────────────────────────────────────────


@pytest.fixture()
def task(make_section, make_task):
    return make_task(make_section("1"), "Draft", status=10)


def test_update_status(repo, task):
    assert report_service.update_task(repo, task.id, {"status": 55}).status == 55
    assert report_service.update_task(repo, task.id, {"status": "60"}).status == 60


@pytest.mark.parametrize("bad", [-1, 101, "abc", 12.5, None, True])
def test_status_must_be_integer_in_range(repo, task, bad):
    with pytest.raises(ValidationError):
        report_service.update_task(repo, task.id, {"status": bad})


def test_blocking_requires_reason(repo, task):
    with pytest.raises(ValidationError):
        report_service.update_task(repo, task.id, {"blocked": True})
    record = report_service.update_task(repo, task.id, {"blocked": True, "blocked_reason": " Waiting "})
    assert (record.blocked, record.blocked_reason) == (True, "Waiting")


def test_unblocking_clears_reason(repo, task):
    report_service.update_task(repo, task.id, {"blocked": True, "blocked_reason": "Waiting"})
    record = report_service.update_task(repo, task.id, {"blocked": False})
    assert (record.blocked, record.blocked_reason) == (False, None)


def test_dates_are_parsed_and_ordered(repo, task):
    record = report_service.update_task(repo, task.id, {"start_date": "2026-03-01", "due_date": "15.04.2026"})
    assert (record.start_date, record.due_date) == (date(2026, 3, 1), date(2026, 4, 15))
    with pytest.raises(ValidationError):
        report_service.update_task(repo, task.id, {"due_date": "2026-02-01"})
    with pytest.raises(ValidationError):
        report_service.update_task(repo, task.id, {"due_date": "someday"})


def test_update_unknown_task(repo):
    with pytest.raises(NotFoundError):
        report_service.update_task(repo, "missing", {"status": 5})


@pytest.mark.parametrize("patch", [
    {"title": 5},
    {"title": ["Draft"]},
    {"blocked": True, "blocked_reason": 42},
])
def test_non_string_text_fields_are_rejected(repo, task, patch):
    with pytest.raises(ValidationError):
        report_service.update_task(repo, task.id, patch)
