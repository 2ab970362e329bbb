"""Tests for dashboard statistics and admin user management."""

from datetime import date
from decimal import Decimal

import pytest
from passlib.hash import bcrypt

from taskboard import admin, models, schemas
from taskboard.errors import Conflict, Forbidden

from conftest import PASSWORD


def _task(task_id, assigned_user_id, status="pending", priority="medium", progress=0, due_date=None):
    return models.Task(
        id=task_id, company_id=1, creator_id=1, assigned_user_id=assigned_user_id,
        title=f"task {task_id}", status=status, priority=priority,
        progress=progress, due_date=due_date,
    )


def _team_entry(stats, user_id):
    return next(entry for entry in stats["team"] if entry["user"]["id"] == user_id)


# === round_half_up ===


@pytest.mark.parametrize("value,expected", [
    (72.5, 73), (0.5, 1), (2.5, 3), (33.333, 33), (66.6667, 67),
    (Decimal(2300) / Decimal(40), 58),
])
def test_round_half_up(value, expected):
    assert admin.round_half_up(value) == expected


# === compute_stats ===


def test_user_without_tasks_gets_zero_rates():
    users = [models.User(id=1, name="Solo")]
    stats = admin.compute_stats([], users)
    assert stats["total_tasks"] == 0
    assert stats["team"] == [{
        "user": {"id": 1, "name": "Solo"},
        "total": 0, "completed": 0, "completion_rate": 0, "avg_progress": 0,
    }]
    assert stats["by_priority"] == {}
    assert stats["by_status"] == {}
    assert stats["upcoming"] == []


def test_counts_only_present_categories():
    tasks = [_task(1, 1, priority="high"), _task(2, 1, priority="high", status="done")]
    stats = admin.compute_stats(tasks, [models.User(id=1, name="A")])
    assert stats["by_priority"] == {"high": 2}
    assert stats["by_status"] == {"pending": 1, "done": 1}


def test_rates_round_exact_halves_up():
    """23 of 40 done is exactly 57.5%, which must round to 58."""
    tasks = [_task(i, 1, status="done" if i <= 23 else "pending") for i in range(1, 41)]
    stats = admin.compute_stats(tasks, [models.User(id=1, name="A")])
    assert stats["team"][0]["completion_rate"] == 58


def test_avg_progress_rounds_exact_halves_up():
    tasks = [_task(1, 1, progress=57), _task(2, 1, progress=58)]
    stats = admin.compute_stats(tasks, [models.User(id=1, name="A")])
    assert stats["team"][0]["avg_progress"] == 58


def test_upcoming_is_sorted_capped_and_skips_undated():
    tasks = [_task(i, 1, due_date=date(2026, 1, 10 - i)) for i in range(1, 8)]
    tasks.append(_task(50, 1))
    stats = admin.compute_stats(tasks, [models.User(id=1, name="A")])
    upcoming = stats["upcoming"]
    assert len(upcoming) == 5
    assert all(t.due_date is not None for t in upcoming)
    dates = [t.due_date for t in upcoming]
    assert dates == sorted(dates)
    assert dates[0] == date(2026, 1, 3)


# === dashboard ===


def test_dashboard_team_entry_for_paul(db, beat):
    stats = admin.dashboard(db, beat.john)
    paul = _team_entry(stats, beat.paul.id)
    assert paul["user"] == {"id": beat.paul.id, "name": "Paul"}
    assert paul["total"] == 2
    assert paul["completed"] == 1
    assert paul["completion_rate"] == 50
    assert paul["avg_progress"] == 73  # mean of 100 and 45


def test_dashboard_totals(db, beat, other):
    stats = admin.dashboard(db, beat.john)
    assert stats["total_tasks"] == 4
    assert stats["by_priority"] == {"high": 2, "low": 1, "medium": 1}
    assert stats["by_status"] == {"done": 1, "in_progress": 1, "pending": 2}
    assert [t.title for t in stats["upcoming"]] == ["Tune guitar", "Book studio", "Write lyrics"]
    john = _team_entry(stats, beat.john.id)
    assert (john["total"], john["completed"], john["completion_rate"]) == (2, 0, 0)


def test_dashboard_requires_admin(db, beat):
    with pytest.raises(Forbidden):
        admin.dashboard(db, beat.paul)


# === tasks and users ===


def test_list_company_tasks_attaches_people(db, beat, other):
    result = admin.list_company_tasks(db, beat.john)
    assert len(result) == 4
    assert all(t.company_id == beat.company.id for t in result)
    assert result[0].assignee.name == "Paul"
    assert result[0].creator.name == "John"


def test_list_company_users_ordered_by_name(db, beat, other):
    george = admin.create_company_user(
        db, beat.john, schemas.UserCreate(name="George", email="george@beat.com", password=PASSWORD),
    )
    names = [u.name for u in admin.list_company_users(db, beat.john)]
    assert names == ["George", "John", "Paul"]
    assert george.role == "member"


def test_members_cannot_manage_users(db, beat):
    with pytest.raises(Forbidden):
        admin.list_company_users(db, beat.paul)
    with pytest.raises(Forbidden):
        admin.create_company_user(
            db, beat.paul, schemas.UserCreate(name="Ringo", email="ringo@beat.com", password=PASSWORD),
        )


def test_create_user_hashes_password_and_keeps_role(db, beat):
    created = admin.create_company_user(
        db, beat.john,
        schemas.UserCreate(name="Ringo", email="ringo@beat.com", password=PASSWORD, role="admin"),
    )
    assert created.company_id == beat.company.id
    assert created.role == "admin"
    assert created.hashed_password != PASSWORD
    assert bcrypt.verify(PASSWORD, created.hashed_password)


def test_create_user_rejects_duplicate_email(db, beat, other):
    with pytest.raises(Conflict):
        admin.create_company_user(
            db, beat.john, schemas.UserCreate(name="Mick", email="mick@stones.com", password=PASSWORD),
        )
