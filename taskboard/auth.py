import logging
import re
import unicodedata
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from . import config, crud, database, models, schemas
from .errors import Conflict, Unauthenticated, ValidationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")


def verify_password(plain_password, hashed_password):
    return bcrypt.verify(plain_password, hashed_password)


def authenticate_user(db: Session, email: str, password: str):
    user = crud.get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %s", email)
        raise Unauthenticated("Invalid credentials")
    return user


def create_access_token(user: models.User, expires_delta: timedelta = None):
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user.id), "cid": user.company_id, "exp": expire}
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> int:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        return int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Could not validate credentials") from exc


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(database.get_db),
):
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Not authenticated")
    user = crud.get_user_by_id(db, decode_access_token(credentials.credentials))
    if user is None:
        raise Unauthenticated("Could not validate credentials")
    return user


def register(db: Session, data: schemas.RegisterRequest):
    """Create the first admin of a company, creating the company when new.

    A company that already has an admin does not accept further
    registrations; its admin has to add users instead.
    """
    slug = slugify(data.company_name)
    if not slug:
        raise ValidationError(
            "Invalid company name.",
            {"company_name": "Must contain letters or digits."},
        )
    if crud.get_user_by_email(db, data.email):
        raise Conflict("Email already registered")

    company = crud.get_company_by_slug(db, slug)
    if company is not None and crud.company_has_admin(db, company.id):
        raise Conflict("This company already has an administrator. Ask them for access.")
    if company is None:
        company = crud.create_company(db, data.company_name, slug)
        logger.info("Registered company %s (%s)", company.id, slug)

    user = crud.create_user(
        db,
        company_id=company.id,
        name=data.name,
        email=data.email,
        password=data.password,
        role="admin",
    )
    logger.info("Registered admin %s for company %s", user.id, company.id)
    return user, company
