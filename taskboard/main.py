from typing import Optional

from fastapi import FastAPI, Depends, Path, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import admin, auth, config, database, models, schemas, tasks
from .database import get_db
from .errors import TaskboardError, Unauthenticated, ValidationError

config.configure_logging()

models.Base.metadata.create_all(bind=database.engine)

app = FastAPI(title="Taskboard API")


@app.exception_handler(TaskboardError)
async def handle_taskboard_error(request: Request, exc: TaskboardError):
    content = {"detail": exc.message}
    if getattr(exc, "fields", None):
        content["errors"] = exc.fields
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.get("/health")
def health():
    return {"status": "ok"}


# AUTH
@app.post("/register", response_model=schemas.AuthResponse)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    user, company = auth.register(db, payload)
    return {"token": auth.create_access_token(user), "user": user, "company": company}


@app.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = auth.authenticate_user(db, payload.email, payload.password)
    return {"token": auth.create_access_token(user), "user": user, "company": user.company}


@app.get("/me", response_model=schemas.UserOut)
def me(current_user: models.User = Depends(auth.get_current_user)):
    return current_user


# TASKS
def _filter_value(enum, name: str, value: Optional[str]):
    # Empty query params mean no filter
    if not value:
        return None
    try:
        return enum(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum)
        raise ValidationError("Invalid filter.", {name: f"Must be one of: {allowed}."}) from None


@app.get("/tasks", response_model=list[schemas.TaskOut])
def get_tasks(status: Optional[str] = None, priority: Optional[str] = None,
              current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return tasks.list_tasks(
        db, current_user,
        status=_filter_value(schemas.TaskStatus, "status", status),
        priority=_filter_value(schemas.TaskPriority, "priority", priority),
    )


@app.post("/tasks", response_model=schemas.TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(task: schemas.TaskCreate, current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return tasks.create_task(db, current_user, task)


@app.get("/tasks/{task_id}", response_model=schemas.TaskOut)
def get_task_details(
    task_id: int = Path(...),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    return tasks.get_task(db, current_user, task_id)


@app.put("/tasks/{task_id}", response_model=schemas.TaskOut)
def update_task(task_id: int, task_update: schemas.TaskUpdate, current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return tasks.update_task(db, current_user, task_id, task_update)


@app.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    tasks.delete_task(db, current_user, task_id)
    return None


# ADMIN
@app.get("/admin/dashboard", response_model=schemas.DashboardOut)
def admin_dashboard(current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return admin.dashboard(db, current_user)


@app.get("/admin/tasks", response_model=list[schemas.TaskOut])
def admin_tasks(current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return admin.list_company_tasks(db, current_user)


@app.get("/admin/users", response_model=list[schemas.UserOut])
def admin_users(current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return admin.list_company_users(db, current_user)


@app.post("/admin/users", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def admin_create_user(user: schemas.UserCreate, current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    return admin.create_company_user(db, current_user, user)
