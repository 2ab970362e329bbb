"""Company-wide views for administrators: dashboard statistics, every task
and user of the company, and user creation."""

import logging
from collections import Counter, defaultdict
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from . import crud, models, policy, schemas
from .errors import Conflict

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5


def round_half_up(value) -> int:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _member_stats(user, tasks):
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == "done")
    if total:
        # Exact ratios, a float turns 57.5 into 57.4999...
        completion_rate = round_half_up(Decimal(completed * 100) / Decimal(total))
        avg_progress = round_half_up(Decimal(sum(t.progress for t in tasks)) / Decimal(total))
    else:
        completion_rate = avg_progress = 0
    return {
        "user": {"id": user.id, "name": user.name},
        "total": total,
        "completed": completed,
        "completion_rate": completion_rate,
        "avg_progress": avg_progress,
    }


def compute_stats(tasks, users):
    """Build the dashboard payload from a company's tasks and users.

    Every user gets a team entry, including those with no tasks. Only
    priorities and statuses that occur are counted.
    """
    by_assignee = defaultdict(list)
    for task in tasks:
        by_assignee[task.assigned_user_id].append(task)

    dated = [t for t in tasks if t.due_date is not None]
    upcoming = sorted(dated, key=lambda t: (t.due_date, t.id))[:UPCOMING_LIMIT]

    return {
        "total_tasks": len(tasks),
        "by_priority": dict(Counter(t.priority for t in tasks)),
        "by_status": dict(Counter(t.status for t in tasks)),
        "team": [_member_stats(user, by_assignee.get(user.id, [])) for user in users],
        "upcoming": upcoming,
    }


def dashboard(db: Session, actor: models.User):
    policy.ensure_admin(actor)
    tasks = crud.get_company_tasks(db, actor.company_id)
    users = crud.get_company_users(db, actor.company_id)
    return compute_stats(tasks, users)


def list_company_tasks(db: Session, actor: models.User):
    policy.ensure_admin(actor)
    return crud.get_company_tasks(db, actor.company_id)


def list_company_users(db: Session, actor: models.User):
    policy.ensure_admin(actor)
    return crud.get_company_users(db, actor.company_id, order_by_name=True)


def create_company_user(db: Session, actor: models.User, user: schemas.UserCreate):
    policy.ensure_admin(actor)
    if crud.get_user_by_email(db, user.email):
        raise Conflict("Email already registered")
    role = user.role.value if user.role else schemas.Role.member.value
    created = crud.create_user(
        db,
        company_id=actor.company_id,
        name=user.name,
        email=user.email,
        password=user.password,
        role=role,
    )
    logger.info("Admin %s created %s %s in company %s", actor.id, role, created.id, actor.company_id)
    return created
