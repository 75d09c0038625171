"""Tests: planning blueprint endpoints (groups and task links)."""

import pytest


@pytest.fixture()
def setup(make_section, make_task, make_group):
    s1 = make_section("1", "Mission")
    s2 = make_section("2", "Curriculum")
    return {
        "s1": s1,
        "s2": s2,
        "t1": make_task(s1, "Draft mission", status=100),
        "t2": make_task(s2, "Course matrix", status=50),
        "t3": make_task(s2, "Syllabus audit", status=0),
        "g1": make_group("1", "Preparation", is_fixed=True),
        "g2": make_group("2", "Writing", is_fixed=True),
    }


def test_plan_endpoint(client, setup, make_link):
    make_link(setup["g1"], setup["t1"])
    make_link(setup["g1"], setup["t2"])
    res = client.get("/api/v1/plan")
    assert res.status_code == 200
    data = res.get_json()
    assert data["groups"][0]["progress"] == 75
    assert data["summary"] == {"total_tasks": 2, "completed_tasks": 1, "progress": 50}


def test_create_subgroup(client, setup):
    res = client.post("/api/v1/groups", json={"parent_id": setup["g1"].id, "title": "Kick-off"})
    assert res.status_code == 201
    body = res.get_json()
    assert (body["level"], body["number"], body["is_fixed"]) == (2, "1.1", False)


def test_create_group_requires_title(client, setup):
    res = client.post("/api/v1/groups", json={"parent_id": setup["g1"].id})
    assert res.status_code == 400


def test_create_group_too_deep_422(client, setup, make_group):
    l2 = make_group("1.1", parent=setup["g1"])
    l3 = make_group("1.1.1", parent=l2)
    res = client.post("/api/v1/groups", json={"parent_id": l3.id, "title": "Too deep"})
    assert res.status_code == 422


def test_update_group(client, setup):
    res = client.put(f"/api/v1/groups/{setup['g1'].id}", json={"description": "Committee setup"})
    assert res.status_code == 200
    assert res.get_json()["description"] == "Committee setup"


def test_delete_fixed_group_409(client, setup):
    res = client.delete(f"/api/v1/groups/{setup['g1'].id}")
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_STATE"


def test_delete_subgroup(client, setup, make_group):
    sub = make_group("1.1", parent=setup["g1"])
    sub_id = sub.id
    res = client.delete(f"/api/v1/groups/{sub_id}")
    assert res.status_code == 200
    assert res.get_json()["deleted"] == [sub_id]
    assert client.delete(f"/api/v1/groups/{sub_id}").status_code == 404


def test_link_and_list_tasks(client, setup):
    g1, t1 = setup["g1"], setup["t1"]
    first = client.post(f"/api/v1/groups/{g1.id}/tasks", json={"task_id": t1.id})
    again = client.post(f"/api/v1/groups/{g1.id}/tasks", json={"task_id": t1.id})
    assert first.status_code == 201
    assert again.status_code == 200
    assert again.get_json()["created"] is False

    res = client.get(f"/api/v1/groups/{g1.id}/tasks")
    data = res.get_json()
    assert [t["id"] for t in data["tasks"]] == [t1.id]
    assert data["breakdown"]["completed"] == 1


def test_link_requires_task_id(client, setup):
    res = client.post(f"/api/v1/groups/{setup['g1'].id}/tasks", json={})
    assert res.status_code == 400


def test_link_to_second_group_409(client, setup, make_link):
    make_link(setup["g1"], setup["t1"])
    res = client.post(f"/api/v1/groups/{setup['g2'].id}/tasks", json={"task_id": setup["t1"].id})
    assert res.status_code == 409


def test_link_unknown_task_404(client, setup):
    res = client.post(f"/api/v1/groups/{setup['g1'].id}/tasks", json={"task_id": "missing"})
    assert res.status_code == 404


def test_unlink_is_idempotent(client, setup, make_link):
    make_link(setup["g1"], setup["t1"])
    url = f"/api/v1/groups/{setup['g1'].id}/tasks/{setup['t1'].id}"
    assert client.delete(url).get_json()["removed"] is True
    res = client.delete(url)
    assert res.status_code == 200
    assert res.get_json()["removed"] is False


def test_available_tasks(client, setup, make_link):
    make_link(setup["g1"], setup["t1"])
    g2 = setup["g2"].id

    res = client.get(f"/api/v1/groups/{g2}/available-tasks")
    assert res.status_code == 200
    titles = {t["title"] for t in res.get_json()["items"]}
    assert titles == {"Course matrix", "Syllabus audit"}

    res = client.get(f"/api/v1/groups/{g2}/available-tasks?status=not_started&search=syll")
    assert [t["title"] for t in res.get_json()["items"]] == ["Syllabus audit"]

    res = client.get(f"/api/v1/groups/{g2}/available-tasks?section_id={setup['s1'].id}")
    assert res.get_json()["items"] == []


def test_available_tasks_bad_filters(client, setup, make_section):
    child = make_section("2.1", parent=setup["s2"])
    g = setup["g1"].id
    assert client.get(f"/api/v1/groups/{g}/available-tasks?section_id={child.id}").status_code == 422
    assert client.get(f"/api/v1/groups/{g}/available-tasks?status=paused").status_code == 422
    assert client.get("/api/v1/groups/missing/available-tasks").status_code == 404


def test_available_tasks_respects_limit(client, app, setup):
    g = setup["g1"].id
    res = client.get(f"/api/v1/groups/{g}/available-tasks?limit=1")
    body = res.get_json()
    assert len(body["items"]) == 1
    assert body["total"] == 3
    assert app.config["AVAILABLE_TASKS_LIMIT"] == 20


@pytest.mark.parametrize("limit", ["-1", "0", "abc"])
def test_available_tasks_bad_limit_400(client, setup, limit):
    g = setup["g1"].id
    res = client.get(f"/api/v1/groups/{g}/available-tasks?limit={limit}")
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


def test_create_group_non_string_title_422(client, setup):
    res = client.post("/api/v1/groups", json={"parent_id": setup["g1"].id, "title": 5})
    assert res.status_code == 422


def test_create_group_with_taken_task_leaves_no_group(client, setup, make_link):
    make_link(setup["g2"], setup["t1"])
    res = client.post(
        "/api/v1/groups",
        json={"parent_id": setup["g1"].id, "title": "Kick-off", "task_ids": [setup["t1"].id]},
    )
    assert res.status_code == 409
    plan = client.get("/api/v1/plan").get_json()
    assert [g["children"] for g in plan["groups"]] == [[], []]
