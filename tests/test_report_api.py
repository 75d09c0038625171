"""Tests: report blueprint endpoints."""

from datetime import date, timedelta


def test_get_report(client, make_section, make_task):
    s1 = make_section("1", "Mission")
    make_task(s1, "Draft", status=40)
    res = client.get("/api/v1/report")
    assert res.status_code == 200
    data = res.get_json()
    assert data["sections"][0]["number"] == "1"
    assert data["sections"][0]["progress"] == 40
    assert data["summary"]["progress"] == 40


def test_section_tasks_endpoint(client, make_section, make_task):
    s = make_section("1")
    make_task(s, "Soon", status=50, due_date=date.today() + timedelta(days=2))
    res = client.get(f"/api/v1/sections/{s.id}/tasks")
    assert res.status_code == 200
    (task,) = res.get_json()["tasks"]
    assert task["progress_tier"]["tier"] == "advanced"
    assert task["deadline_tier"] == {"tier": "deadline_soon", "label": "Deadline Soon"}


def test_section_tasks_unknown_section_404(client):
    res = client.get("/api/v1/sections/missing/tasks")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_patch_task(client, make_section, make_task):
    task = make_task(make_section("1"), "Draft", status=0)
    res = client.patch(f"/api/v1/tasks/{task.id}", json={"status": 75, "due_date": "2026-06-30"})
    assert res.status_code == 200
    body = res.get_json()
    assert body["status"] == 75
    assert body["due_date"] == "2026-06-30"


def test_patch_task_validation_422(client, make_section, make_task):
    task = make_task(make_section("1"), "Draft")
    res = client.patch(f"/api/v1/tasks/{task.id}", json={"status": 150})
    assert res.status_code == 422
    body = res.get_json()
    assert body["code"] == "ERR_VALIDATION_RULE"
    assert body["details"] == {"status": 150}


def test_patch_blocked_without_reason_422(client, make_section, make_task):
    task = make_task(make_section("1"), "Draft")
    res = client.patch(f"/api/v1/tasks/{task.id}", json={"blocked": True})
    assert res.status_code == 422


def test_patch_requires_body(client, make_section, make_task):
    task = make_task(make_section("1"), "Draft")
    res = client.patch(f"/api/v1/tasks/{task.id}", json={})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"


def test_profiles_endpoint(client, make_profile):
    make_profile("Ayse", role="coordinator")
    res = client.get("/api/v1/profiles")
    assert res.status_code == 200
    assert res.get_json()["items"][0]["role"] == "coordinator"


def test_patch_non_string_title_422(client, make_section, make_task):
    task = make_task(make_section("1"), "Draft")
    res = client.patch(f"/api/v1/tasks/{task.id}", json={"title": 5})
    assert res.status_code == 422
