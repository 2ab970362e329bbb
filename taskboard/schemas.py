from datetime import date, datetime
from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Role(str, Enum):
    admin = "admin"
    member = "member"


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    done = "done"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# AUTH

class RegisterRequest(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    password: str = Field(min_length=6)
    company_name: NonEmptyStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class CompanyOut(BaseModel):
    id: int
    name: str
    slug: str
    class Config:
        from_attributes = True


class UserOut(BaseModel):
    id: int
    company_id: int
    name: str
    email: EmailStr
    role: Role
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut
    company: CompanyOut


# ADMIN USERS

class UserCreate(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    password: str = Field(min_length=6)
    role: Optional[Role] = None


# TASKS

class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr
    class Config:
        from_attributes = True


class TaskBase(BaseModel):
    description: Optional[str] = None
    due_date: Optional[date] = None
    assigned_user_id: Optional[int] = None


class TaskCreate(TaskBase):
    title: NonEmptyStr
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    progress: int = Field(default=0, ge=0, le=100)
    hours_worked: float = Field(default=0, ge=0)


class TaskUpdate(TaskBase):
    """Partial update: only the fields present in the request body change."""

    title: Optional[NonEmptyStr] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    hours_worked: Optional[float] = Field(default=None, ge=0)

    @field_validator("title", "status", "priority", "progress", "hours_worked")
    @classmethod
    def not_null(cls, value):
        # Only runs for fields sent explicitly
        if value is None:
            raise ValueError("may not be null")
        return value


class TaskOut(BaseModel):
    id: int
    company_id: int
    creator_id: int
    assigned_user_id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date] = None
    progress: int
    hours_worked: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignee: Optional[UserSummary] = None
    creator: Optional[UserSummary] = None
    class Config:
        from_attributes = True


# DASHBOARD

class MemberRef(BaseModel):
    id: int
    name: str
    class Config:
        from_attributes = True


class TeamMemberStats(BaseModel):
    user: MemberRef
    total: int
    completed: int
    completion_rate: int
    avg_progress: int


class DashboardOut(BaseModel):
    total_tasks: int
    by_priority: Dict[TaskPriority, int]
    by_status: Dict[TaskStatus, int]
    team: List[TeamMemberStats]
    upcoming: List[TaskOut]
