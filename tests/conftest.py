"""Shared test fixtures for the Taskboard tests."""

import os
from datetime import date
from types import SimpleNamespace

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from fastapi.testclient import TestClient

from taskboard import auth, crud, database, models
from taskboard.main import app

PASSWORD = "secret123"


@pytest.fixture
def db():
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    return TestClient(app)


def make_task(db, owner, assignee, title, **fields):
    return crud.create_task(
        db,
        company_id=owner.company_id,
        creator_id=owner.id,
        assigned_user_id=assignee.id,
        title=title,
        **fields,
    )


@pytest.fixture
def beat(db):
    """Company "beat": admin John, member Paul, four tasks (two for Paul, one done)."""
    company = crud.create_company(db, "Beat", "beat")
    john = crud.create_user(db, company.id, "John", "john@beat.com", PASSWORD, role="admin")
    paul = crud.create_user(db, company.id, "Paul", "paul@beat.com", PASSWORD)

    t1 = make_task(db, john, paul, "Write lyrics", status="done", priority="high",
                   progress=100, due_date=date(2026, 3, 1))
    t2 = make_task(db, john, paul, "Tune guitar", status="in_progress", priority="low",
                   progress=45, due_date=date(2026, 1, 15))
    t3 = make_task(db, john, john, "Book studio", priority="high", due_date=date(2026, 2, 1))
    t4 = make_task(db, john, john, "Plan tour")

    return SimpleNamespace(company=company, john=john, paul=paul, tasks=[t1, t2, t3, t4])


@pytest.fixture
def other(db):
    """A second company with its own admin and one task."""
    company = crud.create_company(db, "Stones", "stones")
    mick = crud.create_user(db, company.id, "Mick", "mick@stones.com", PASSWORD, role="admin")
    task = make_task(db, mick, mick, "Rehearse")
    return SimpleNamespace(company=company, mick=mick, task=task)


def auth_headers(user):
    return {"Authorization": f"Bearer {auth.create_access_token(user)}"}
