"""Task CRUD on behalf of an authenticated user."""

import logging

from sqlalchemy.orm import Session

from . import crud, models, policy, schemas
from .errors import NotFound

logger = logging.getLogger(__name__)


def _enum_value(value):
    return getattr(value, "value", value)


def _find_task(db: Session, actor: models.User, task_id: int, action: str) -> models.Task:
    # Another company's task id looks exactly like a missing one
    task = crud.get_company_task(db, actor.company_id, task_id)
    if task is None:
        raise NotFound("Task not found")
    policy.ensure_task_access(actor, task, action)
    return task


def list_tasks(db: Session, actor: models.User, status=None, priority=None):
    assigned_user_id = None if policy.is_admin(actor) else actor.id
    return crud.get_company_tasks(
        db,
        actor.company_id,
        assigned_user_id=assigned_user_id,
        status=_enum_value(status),
        priority=_enum_value(priority),
    )


def create_task(db: Session, actor: models.User, task: schemas.TaskCreate):
    data = task.model_dump()
    target_id = data.pop("assigned_user_id")
    if target_id is None:
        target_id = actor.id
    assignee = policy.authorize_assignment(db, actor, target_id)
    data["status"] = _enum_value(data["status"])
    data["priority"] = _enum_value(data["priority"])
    created = crud.create_task(
        db,
        company_id=actor.company_id,
        creator_id=actor.id,
        assigned_user_id=assignee.id,
        **data,
    )
    logger.info("User %s created task %s for user %s", actor.id, created.id, assignee.id)
    return created


def get_task(db: Session, actor: models.User, task_id: int):
    return _find_task(db, actor, task_id, "view")


def update_task(db: Session, actor: models.User, task_id: int, task_update: schemas.TaskUpdate):
    task = _find_task(db, actor, task_id, "update")
    changes = task_update.model_dump(exclude_unset=True)
    if "assigned_user_id" in changes:
        target_id = changes.pop("assigned_user_id")
        if target_id is not None:
            changes["assigned_user_id"] = policy.authorize_assignment(db, actor, target_id).id
    for field in ("status", "priority"):
        if field in changes:
            changes[field] = _enum_value(changes[field])
    return crud.update_task(db, task, changes)


def delete_task(db: Session, actor: models.User, task_id: int):
    task = _find_task(db, actor, task_id, "delete")
    crud.delete_task(db, task)
    logger.info("User %s deleted task %s", actor.id, task_id)
