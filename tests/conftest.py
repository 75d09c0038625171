"""
Shared pytest fixtures for the accreditation tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - repo: SqlRepository bound to the test session
    - make_profile / make_section / make_task / make_group / make_link:
      ORM factories; every row is committed so repository rollbacks in
      error paths cannot wipe test data.
"""

from datetime import date

import pytest

from accreditation import create_app
from accreditation.models import db as _db
from accreditation.models.planning import Group, GroupTask
from accreditation.models.report import Profile, Section, Task, TaskCollaborator
from accreditation.services.repository import SqlRepository


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def repo():
    return SqlRepository(_db.session)


# ── ORM factories ────────────────────────────────────────────────────────


def _save(obj):
    _db.session.add(obj)
    _db.session.commit()
    return obj


@pytest.fixture()
def make_profile():
    def _make(name="Ayse Demir", role="member", email=None, **kw):
        return _save(Profile(name=name, role=role, email=email, **kw))
    return _make


@pytest.fixture()
def make_section():
    def _make(number, title=None, parent=None, sort_order=None, **kw):
        level = number.count(".") + 1
        return _save(Section(
            number=number,
            title=title or f"Section {number}",
            level=level,
            parent_id=parent.id if parent is not None else None,
            sort_order=sort_order if sort_order is not None else int(number.rsplit(".", 1)[-1]),
            **kw,
        ))
    return _make


@pytest.fixture()
def make_task():
    def _make(section, title="Task", status=0, blocked=False, blocked_reason=None,
              due_date=None, start_date=None, owner=None, collaborators=(), **kw):
        task = Task(
            section_id=section.id,
            title=title,
            status=status,
            blocked=blocked,
            blocked_reason=blocked_reason if blocked else None,
            due_date=due_date,
            start_date=start_date,
            owner_id=owner.id if owner is not None else None,
            **kw,
        )
        _save(task)
        for pos, profile in enumerate(collaborators):
            _db.session.add(TaskCollaborator(task_id=task.id, profile_id=profile.id, position=pos))
        if collaborators:
            _db.session.commit()
        return task
    return _make


@pytest.fixture()
def make_group():
    def _make(number, title=None, parent=None, is_fixed=False, sort_order=None, **kw):
        return _save(Group(
            number=number,
            title=title or f"Phase {number}",
            level=number.count(".") + 1,
            parent_id=parent.id if parent is not None else None,
            is_fixed=is_fixed,
            sort_order=sort_order if sort_order is not None else int(number.rsplit(".", 1)[-1]),
            **kw,
        ))
    return _make


@pytest.fixture()
def make_link():
    def _make(group, task):
        return _save(GroupTask(group_id=group.id, task_id=task.id))
    return _make


@pytest.fixture()
def today():
    return date(2026, 3, 10)
