"""Tests for registration, login and access tokens."""

from datetime import timedelta

import pytest
from pydantic import ValidationError as SchemaError

from taskboard import auth, crud, models, schemas
from taskboard.errors import Conflict, Unauthenticated, ValidationError

from conftest import PASSWORD


def _registration(email="ringo@beat.com", company_name="Beat"):
    return schemas.RegisterRequest(name="Ringo", email=email, password=PASSWORD, company_name=company_name)


@pytest.mark.parametrize("name,slug", [
    ("Beat", "beat"),
    ("  Minha Empresa  ", "minha-empresa"),
    ("Café & Co.", "cafe-co"),
    ("a__b--c", "a-b-c"),
])
def test_slugify(name, slug):
    assert auth.slugify(name) == slug


# === register ===


def test_first_registration_creates_company_and_admin(db):
    user, company = auth.register(db, _registration(company_name="New Band"))
    assert company.slug == "new-band"
    assert company.name == "New Band"
    assert user.role == "admin"
    assert user.company_id == company.id


def test_second_admin_for_same_slug_is_rejected(db, beat):
    with pytest.raises(Conflict):
        auth.register(db, _registration(company_name="BEAT"))
    assert crud.get_user_by_email(db, "ringo@beat.com") is None


def test_registration_joins_company_without_admin(db):
    company = crud.create_company(db, "Quiet", "quiet")
    crud.create_user(db, company.id, "Member", "member@quiet.com", PASSWORD)
    user, joined = auth.register(db, _registration(company_name="Quiet"))
    assert joined.id == company.id
    assert user.role == "admin"


def test_duplicate_email_is_rejected(db, beat):
    with pytest.raises(Conflict):
        auth.register(db, _registration(email="paul@beat.com", company_name="Elsewhere"))
    assert crud.get_company_by_slug(db, "elsewhere") is None


def test_company_name_without_letters_is_rejected(db):
    with pytest.raises(ValidationError):
        auth.register(db, _registration(company_name="!!!"))


def test_short_password_fails_schema():
    with pytest.raises(SchemaError):
        schemas.RegisterRequest(name="x", email="x@beat.com", password="123", company_name="Beat")


# === login ===


def test_authenticate_user(db, beat):
    assert auth.authenticate_user(db, "paul@beat.com", PASSWORD).id == beat.paul.id


@pytest.mark.parametrize("email,password", [("paul@beat.com", "wrong-pass"), ("nobody@beat.com", PASSWORD)])
def test_authenticate_user_rejects_bad_credentials(db, beat, email, password):
    with pytest.raises(Unauthenticated):
        auth.authenticate_user(db, email, password)


# === tokens ===


def test_token_round_trip(db, beat):
    token = auth.create_access_token(beat.paul)
    assert auth.decode_access_token(token) == beat.paul.id


def test_expired_token_is_rejected(db, beat):
    token = auth.create_access_token(beat.paul, expires_delta=timedelta(seconds=-1))
    with pytest.raises(Unauthenticated):
        auth.decode_access_token(token)


def test_garbage_token_is_rejected():
    with pytest.raises(Unauthenticated):
        auth.decode_access_token("not-a-jwt")


def test_deleting_company_cascades(db, beat):
    company_id = beat.company.id
    db.delete(db.get(models.Company, company_id))
    db.commit()
    assert db.query(models.User).filter(models.User.company_id == company_id).count() == 0
    assert db.query(models.Task).filter(models.Task.company_id == company_id).count() == 0
