"""HTTP client for the Taskboard API.

The session (token, user, company) is an explicit object handed to the
client. It persists to a JSON file and is cleared whenever the API answers
401, so an expired token is never reused.

Error responses are raised as the classes in ``taskboard.errors``. A 422
with per-field errors becomes ``ValidationError``; a 422 without them
(duplicate email, company that already has an admin) becomes ``Conflict``.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from . import config
from .errors import error_for_status

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = os.path.join(os.path.expanduser("~"), ".taskboard", "session.json")


@dataclass
class Session:
    path: str = DEFAULT_SESSION_PATH
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    company: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def set_auth(self, token: str, user: Dict[str, Any], company: Dict[str, Any]):
        self.token = token
        self.user = user
        self.company = company
        self.save()

    def load(self) -> "Session":
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return self
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return self
        self.token = data.get("token")
        self.user = data.get("user")
        self.company = data.get("company")
        return self

    def save(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"token": self.token, "user": self.user, "company": self.company}, fh)

    def clear(self):
        self.token = None
        self.user = None
        self.company = None
        if os.path.exists(self.path):
            os.remove(self.path)


class TaskboardClient:
    def __init__(self, session: Session, base_url: str = None, http: httpx.Client = None):
        self.session = session
        self.http = http or httpx.Client(
            base_url=base_url or config.API_BASE_URL,
            timeout=config.CLIENT_TIMEOUT,
            headers={"Accept": "application/json"},
        )

    def _request(self, method: str, url: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        response = self.http.request(method, url, headers=headers, **kwargs)
        if response.status_code == 401:
            self.session.clear()
        if response.is_error:
            raise self._error(response)
        if response.status_code == 204:
            return None
        return response.json()

    @staticmethod
    def _error(response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail", response.reason_phrase)
        fields = body.get("errors")
        if isinstance(detail, list):
            # FastAPI request validation: [{"loc": [...], "msg": ...}, ...]
            fields = {str(item["loc"][-1]): item["msg"] for item in detail}
            detail = "Validation failed"
        return error_for_status(response.status_code, detail, fields)

    # AUTH
    def register(self, name: str, email: str, password: str, company_name: str):
        data = self._request("POST", "/register", json={
            "name": name, "email": email, "password": password, "company_name": company_name,
        })
        self.session.set_auth(data["token"], data["user"], data["company"])
        return data

    def login(self, email: str, password: str):
        data = self._request("POST", "/login", json={"email": email, "password": password})
        self.session.set_auth(data["token"], data["user"], data["company"])
        return data

    def logout(self):
        self.session.clear()

    def me(self):
        return self._request("GET", "/me")

    # TASKS
    def list_tasks(self, status: str = None, priority: str = None) -> List[dict]:
        params = {k: v for k, v in {"status": status, "priority": priority}.items() if v}
        return self._request("GET", "/tasks", params=params)

    def create_task(self, **payload):
        return self._request("POST", "/tasks", json=payload)

    def get_task(self, task_id: int):
        return self._request("GET", f"/tasks/{task_id}")

    def update_task(self, task_id: int, **payload):
        return self._request("PUT", f"/tasks/{task_id}", json=payload)

    def delete_task(self, task_id: int):
        return self._request("DELETE", f"/tasks/{task_id}")

    # ADMIN
    def dashboard(self):
        return self._request("GET", "/admin/dashboard")

    def admin_tasks(self) -> List[dict]:
        return self._request("GET", "/admin/tasks")

    def company_users(self) -> List[dict]:
        return self._request("GET", "/admin/users")

    def create_user(self, name: str, email: str, password: str, role: str = None):
        payload = {"name": name, "email": email, "password": password}
        if role:
            payload["role"] = role
        return self._request("POST", "/admin/users", json=payload)


# UI ROUTES

@dataclass
class Route:
    pattern: str
    requires_auth: bool = False
    requires_admin: bool = False
    redirect: Optional[str] = None
    regex: Any = field(init=False, repr=False)

    def __post_init__(self):
        self.regex = re.compile("^" + re.sub(r":(\w+)", r"(?P<\1>[^/]+)", self.pattern) + "$")


ROUTES = [
    Route("/login"),
    Route("/register"),
    Route("/", redirect="/dashboard"),
    Route("/dashboard", requires_auth=True),
    Route("/tasks", requires_auth=True),
    Route("/tasks/create", requires_auth=True),
    Route("/tasks/:id/edit", requires_auth=True),
    Route("/profile", requires_auth=True),
    Route("/admin", requires_auth=True, requires_admin=True),
]


def match_route(path: str) -> Optional[Route]:
    for route in ROUTES:
        if route.regex.match(path):
            return route
    return None


def guard(path: str, session: Session) -> Optional[str]:
    """Return where to redirect before showing ``path``, or None to allow it."""
    route = match_route(path)
    if route is None:
        return None
    if route.redirect:
        return route.redirect
    if route.requires_auth and not session.is_authenticated:
        return "/login"
    if route.requires_admin and not session.is_admin:
        return "/dashboard"
    return None
