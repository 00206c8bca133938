"""User Schemas — field validation at the API boundary."""

import pytest
from pydantic import ValidationError

from userhub.schemas.user import UserCreate, UserUpdate


def test_create_strips_name_and_lowercases_email():
    user = UserCreate(name="  Ada ", email="Ada@Example.COM")
    assert user.name == "Ada"
    assert user.email == "ada@example.com"


@pytest.mark.parametrize("email", ["ada", "ada@", "@example.com", "ada@example", "a b@x.io"])
def test_create_rejects_malformed_email(email):
    with pytest.raises(ValidationError):
        UserCreate(name="Ada", email=email)


def test_create_rejects_whitespace_name():
    with pytest.raises(ValidationError, match="name cannot be empty"):
        UserCreate(name="   ", email="ada@example.com")


def test_create_rejects_long_name():
    with pytest.raises(ValidationError):
        UserCreate(name="x" * 101, email="ada@example.com")


def test_update_requires_one_field():
    with pytest.raises(ValidationError, match="at least one"):
        UserUpdate()


def test_update_keeps_unset_fields_none():
    update = UserUpdate(email="NEW@example.com")
    assert update.model_dump(exclude_none=True) == {"email": "new@example.com"}
