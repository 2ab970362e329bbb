"""Data access. Every task and user read takes a company id and filters on it
inside the query, so rows from other tenants are never loaded."""

import logging

from passlib.hash import bcrypt
from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from . import config, models
from .errors import Conflict

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.using(rounds=config.BCRYPT_ROUNDS).hash(password)


def _commit(db: Session, conflict_message: str):
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise Conflict(conflict_message) from exc


# COMPANIES

def get_company_by_slug(db: Session, slug: str):
    return db.query(models.Company).filter(models.Company.slug == slug).first()


def company_has_admin(db: Session, company_id: int) -> bool:
    return db.query(
        exists().where(models.User.company_id == company_id, models.User.role == "admin")
    ).scalar()


def create_company(db: Session, name: str, slug: str):
    db_company = models.Company(name=name, slug=slug)
    db.add(db_company)
    # Flush so a concurrent registration for the same slug fails here
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("A company with this name is already registered.") from exc
    return db_company


# USERS

def create_user(db: Session, company_id: int, name: str, email: str, password: str, role: str = "member"):
    db_user = models.User(
        company_id=company_id,
        name=name,
        email=email,
        hashed_password=hash_password(password),
        role=role,
    )
    db.add(db_user)
    _commit(db, "Email already registered")
    db.refresh(db_user)
    return db_user


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_id(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_company_user(db: Session, company_id: int, user_id: int):
    return db.query(models.User).filter(
        models.User.company_id == company_id,
        models.User.id == user_id,
    ).first()


def get_company_users(db: Session, company_id: int, order_by_name: bool = False):
    q = db.query(models.User).filter(models.User.company_id == company_id)
    if order_by_name:
        q = q.order_by(models.User.name, models.User.id)
    else:
        q = q.order_by(models.User.id)
    return q.all()


# TASKS

def _task_query(db: Session, company_id: int):
    return (
        db.query(models.Task)
        .options(joinedload(models.Task.assignee), joinedload(models.Task.creator))
        .filter(models.Task.company_id == company_id)
    )


def by_due_date(q):
    """Due date ascending, undated tasks last, ties by id."""
    return q.order_by(models.Task.due_date.is_(None), models.Task.due_date, models.Task.id)


def get_company_task(db: Session, company_id: int, task_id: int):
    return _task_query(db, company_id).filter(models.Task.id == task_id).first()


def get_company_tasks(db: Session, company_id: int, assigned_user_id=None, status=None, priority=None):
    q = _task_query(db, company_id)
    if assigned_user_id is not None:
        q = q.filter(models.Task.assigned_user_id == assigned_user_id)
    if status:
        q = q.filter(models.Task.status == status)
    if priority:
        q = q.filter(models.Task.priority == priority)
    return by_due_date(q).all()


def create_task(db: Session, company_id: int, creator_id: int, assigned_user_id: int, **fields):
    db_task = models.Task(
        company_id=company_id,
        creator_id=creator_id,
        assigned_user_id=assigned_user_id,
        **fields,
    )
    db.add(db_task)
    _commit(db, "Task could not be saved")
    return get_company_task(db, company_id, db_task.id)


def update_task(db: Session, task: models.Task, changes: dict):
    for field, value in changes.items():
        setattr(task, field, value)
    _commit(db, "Task could not be saved")
    db.refresh(task)
    return get_company_task(db, task.company_id, task.id)


def delete_task(db: Session, task: models.Task):
    db.delete(task)
    db.commit()
