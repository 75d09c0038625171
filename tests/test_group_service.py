"""
Tests: planning service: plan view, group CRUD, seeding.

Exercised against the SQL repository with ORM-built fixtures.
"""

import pytest

from accreditation.core.exceptions import ConflictError, NotFoundError, ValidationError
from accreditation.services import group_service
from accreditation.services.group_service import DEFAULT_PHASES


def test_create_subgroup_derives_level_number_and_order(repo, make_group):
    phase = make_group("2", "Self-Evaluation", is_fixed=True)
    make_group("2.1", parent=phase)
    make_group("2.9", parent=phase, sort_order=9)

    node = group_service.create_group(repo, {"parent_id": phase.id, "title": "  Data collection "})
    assert node.level == 2
    assert node.number == "2.10"
    assert node.sort_order == 10
    assert node.title == "Data collection"
    assert node.is_fixed is False


def test_first_child_gets_dot_one(repo, make_group):
    phase = make_group("3")
    node = group_service.create_group(repo, {"parent_id": phase.id, "title": "Drafting"})
    assert (node.number, node.sort_order) == ("3.1", 1)


def test_explicit_number_is_kept(repo, make_group):
    phase = make_group("1")
    node = group_service.create_group(repo, {"parent_id": phase.id, "title": "X", "number": "1.7"})
    assert node.number == "1.7"


def test_root_group_gets_bare_number(repo, make_group):
    make_group("1")
    make_group("2")
    assert group_service.create_group(repo, {"title": "Extra"}).number == "3"


def test_cannot_nest_below_level_three(repo, make_group):
    l1 = make_group("1")
    l2 = make_group("1.1", parent=l1)
    l3 = make_group("1.1.1", parent=l2)
    with pytest.raises(ValidationError):
        group_service.create_group(repo, {"parent_id": l3.id, "title": "Too deep"})


def test_create_requires_title_and_existing_parent(repo):
    with pytest.raises(ValidationError):
        group_service.create_group(repo, {"title": "   "})
    with pytest.raises(NotFoundError):
        group_service.create_group(repo, {"parent_id": "missing", "title": "Orphan"})


def test_create_with_task_ids_links_them(repo, make_group, make_section, make_task):
    phase = make_group("1")
    task = make_task(make_section("1"), "Draft")
    node = group_service.create_group(repo, {"parent_id": phase.id, "title": "Sub", "task_ids": [task.id]})
    detail = group_service.get_group_detail(repo, node.id)
    assert [t["id"] for t in detail["tasks"]] == [task.id]


def test_update_fixed_group_is_allowed(repo, make_group):
    fixed = make_group("1", "Preparation", is_fixed=True)
    node = group_service.update_group(repo, fixed.id, {"title": "Preparation & Planning", "is_fixed": False})
    assert node.title == "Preparation & Planning"
    assert node.is_fixed is True


def test_update_validation(repo, make_group):
    g = make_group("1")
    with pytest.raises(ValidationError):
        group_service.update_group(repo, g.id, {"title": ""})
    with pytest.raises(ValidationError):
        group_service.update_group(repo, g.id, {"number": " "})
    with pytest.raises(NotFoundError):
        group_service.update_group(repo, "missing", {})


def test_delete_fixed_group_is_refused(repo, make_group):
    fixed = make_group("1", is_fixed=True)
    with pytest.raises(ConflictError):
        group_service.delete_group(repo, fixed.id)


def test_delete_reports_removed_subtree(repo, make_group):
    root = make_group("1", is_fixed=True)
    sub = make_group("1.1", parent=root)
    leaf = make_group("1.1.1", parent=sub)
    sub_id, leaf_id = sub.id, leaf.id
    assert group_service.delete_group(repo, sub_id) == [sub_id, leaf_id]
    assert repo.get_group(leaf_id) is None


def test_plan_view_stats_and_summary(repo, make_group, make_section, make_task, make_link):
    s = make_section("1")
    g1 = make_group("1", is_fixed=True)
    g2 = make_group("2", is_fixed=True)
    g11 = make_group("1.1", parent=g1)

    statuses = [0, 50, 100, 100]
    for i, status in enumerate(statuses):
        t = make_task(s, f"T{i}", status=status, blocked=(i == 1), blocked_reason="wait")
        make_link(g1, t)
    make_link(g2, make_task(s, "Other", status=20))
    make_link(g11, make_task(s, "Nested", status=100))

    plan = group_service.get_plan(repo)
    first = plan["groups"][0]
    assert (first["task_count"], first["completed_count"], first["blocked_count"], first["progress"]) == (4, 2, 1, 63)
    assert first["status"] == "blocked"
    assert first["children"][0]["progress"] == 100
    assert first["children"][0]["status"] == "completed"
    # level-1 counters only: 2 completed of 5
    assert plan["summary"] == {"total_tasks": 5, "completed_tasks": 2, "progress": 40}


def test_plan_can_embed_linked_tasks(repo, make_group, make_section, make_task, make_link):
    g = make_group("1")
    make_link(g, make_task(make_section("1"), "Draft"))
    plan = group_service.get_plan(repo, include_tasks=True)
    assert plan["groups"][0]["linked_tasks"][0]["title"] == "Draft"


def test_group_detail_breakdown(repo, make_group, make_section, make_task, make_link):
    g = make_group("1")
    s = make_section("1")
    make_link(g, make_task(s, "A", status=0))
    make_link(g, make_task(s, "B", status=0, blocked=True, blocked_reason="x"))
    make_link(g, make_task(s, "C", status=60))
    detail = group_service.get_group_detail(repo, g.id)
    assert detail["breakdown"]["not_started"] == 1
    assert detail["breakdown"]["blocked"] == 1
    assert detail["breakdown"]["in_progress"] == 1
    with pytest.raises(NotFoundError):
        group_service.get_group_detail(repo, "missing")


def test_seed_fixed_groups_is_idempotent(repo):
    assert group_service.seed_fixed_groups(repo) == len(DEFAULT_PHASES)
    assert group_service.seed_fixed_groups(repo) == 0

    groups = repo.list_groups()
    assert [g.number for g in groups] == [str(i) for i in range(1, len(DEFAULT_PHASES) + 1)]
    assert all(g.is_fixed and g.level == 1 for g in groups)


def test_create_with_taken_task_writes_nothing(repo, make_group, make_section, make_task, make_link):
    phase = make_group("1")
    other = make_group("2")
    free = make_task(make_section("1"), "Draft")
    taken = make_task(make_section("2"), "Review")
    make_link(other, taken)
    phase_id, free_id = phase.id, free.id

    with pytest.raises(ConflictError):
        group_service.create_group(
            repo, {"parent_id": phase_id, "title": "New", "task_ids": [free_id, taken.id]}
        )
    assert len(repo.list_groups()) == 2
    assert repo.find_link_for_task(free_id) is None


def test_create_with_unknown_task_writes_nothing(repo, make_group):
    phase = make_group("1")
    with pytest.raises(NotFoundError):
        group_service.create_group(repo, {"parent_id": phase.id, "title": "New", "task_ids": ["missing"]})
    assert len(repo.list_groups()) == 1


def test_create_task_ids_must_be_a_list(repo, make_group):
    phase = make_group("1")
    with pytest.raises(ValidationError):
        group_service.create_group(repo, {"parent_id": phase.id, "title": "New", "task_ids": "t1"})


@pytest.mark.parametrize("data", [{"title": 5}, {"title": "Sub", "number": 7}])
def test_create_rejects_non_string_text(repo, make_group, data):
    phase = make_group("1")
    with pytest.raises(ValidationError):
        group_service.create_group(repo, {"parent_id": phase.id, **data})
    assert len(repo.list_groups()) == 1


def test_update_rejects_non_string_text(repo, make_group):
    g = make_group("1")
    with pytest.raises(ValidationError):
        group_service.update_group(repo, g.id, {"title": 5})
    with pytest.raises(ValidationError):
        group_service.update_group(repo, g.id, {"number": 12})
