"""Authorization rules for tasks and company users.

Every task mutation goes through these checks:

* ``can_assign`` decides whether the actor may name ``target_user_id`` as
  assignee. Anyone may assign to themselves, only admins to others.
* ``resolve_assignee`` turns the id into a user of the actor's company. Ids
  from other companies and ids that do not exist are rejected the same way.
* ``can_access_task`` decides whether the actor may read, change or delete a
  task that is already known to belong to their company.

``ensure_admin`` guards the admin endpoints.
"""

import logging

from sqlalchemy.orm import Session

from . import crud, models
from .errors import Forbidden, ValidationError

logger = logging.getLogger(__name__)

ADMIN = "admin"


def is_admin(actor: models.User) -> bool:
    return actor.role == ADMIN


def can_assign(actor: models.User, target_user_id: int) -> bool:
    return target_user_id == actor.id or is_admin(actor)


def can_access_task(actor: models.User, task: models.Task) -> bool:
    return is_admin(actor) or task.assigned_user_id == actor.id


def resolve_assignee(db: Session, actor: models.User, target_user_id: int) -> models.User:
    assignee = crud.get_company_user(db, actor.company_id, target_user_id)
    if assignee is None:
        raise ValidationError(
            "Invalid assignee.",
            {"assigned_user_id": "No such user in this company."},
        )
    return assignee


def ensure_admin(actor: models.User):
    if not is_admin(actor):
        logger.warning("User %s denied admin access", actor.id)
        raise Forbidden("Access restricted to administrators.")


def authorize_assignment(db: Session, actor: models.User, target_user_id: int) -> models.User:
    if not can_assign(actor, target_user_id):
        logger.warning("User %s tried to assign a task to user %s", actor.id, target_user_id)
        raise Forbidden("Only administrators can assign tasks to other users.")
    return resolve_assignee(db, actor, target_user_id)


def ensure_task_access(actor: models.User, task: models.Task, action: str = "access"):
    if not can_access_task(actor, task):
        logger.warning("User %s denied %s on task %s", actor.id, action, task.id)
        raise Forbidden(f"Not authorized to {action} this task.")
