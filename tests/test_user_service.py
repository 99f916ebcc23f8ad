import pytest

from cinema.core.security import create_access_token, decode_access_token, verify_password
from cinema.models import UserRole
from cinema.services import (
    AuthenticationError,
    InvalidPasswordError,
    NotFoundError,
    UserAlreadyExistsError,
    UserService,
)


@pytest.mark.asyncio
async def test_register_hashes_password(db):
    user = await UserService.register(db, "Jane@Example.com", "secret-pass", "Jane Doe")

    assert user.email == "jane@example.com"
    assert user.role == UserRole.USER
    assert user.password_hash != "secret-pass"
    assert verify_password("secret-pass", user.password_hash)


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(db, user):
    with pytest.raises(UserAlreadyExistsError):
        await UserService.register(db, "JOHN@example.com", "another-pass")


@pytest.mark.asyncio
async def test_register_race_on_same_email(db, other_db, user, monkeypatch):
    """The pre-check passed in both requests; the unique index decides"""
    async def not_found(db, email):
        return None

    monkeypatch.setattr(UserService, "get_by_email", staticmethod(not_found))

    with pytest.raises(UserAlreadyExistsError):
        await UserService.register(other_db, "john@example.com", "another-pass")


@pytest.mark.asyncio
async def test_authenticate(db, user):
    assert (await UserService.authenticate(db, "john@example.com", "password123")).id == user.id

    with pytest.raises(AuthenticationError):
        await UserService.authenticate(db, "john@example.com", "wrong")


@pytest.mark.asyncio
async def test_disabled_user_cannot_log_in(db, user):
    await UserService.update_user(db, user.id, {"is_active": False})

    with pytest.raises(AuthenticationError):
        await UserService.authenticate(db, "john@example.com", "password123")


def test_access_token_round_trip():
    token = create_access_token(42, "ADMIN")

    payload = decode_access_token(token)

    assert payload["sub"] == "42"
    assert payload["role"] == "ADMIN"
    assert decode_access_token("not.a.token") is None


@pytest.mark.asyncio
async def test_update_profile(db, user):
    updated = await UserService.update_profile(db, user.id, {"full_name": "John Q. Doe", "phone_number": "+1 555-0100"})

    assert updated.full_name == "John Q. Doe"
    assert updated.phone_number == "+1 555-0100"
    assert updated.email == "john@example.com"


@pytest.mark.asyncio
async def test_update_profile_unknown_user(db):
    with pytest.raises(NotFoundError):
        await UserService.update_profile(db, 9999, {"full_name": "Nobody"})


@pytest.mark.asyncio
async def test_change_password(db, user):
    await UserService.change_password(db, user.id, "password123", "new-password-1")

    assert (await UserService.authenticate(db, "john@example.com", "new-password-1")).id == user.id
    with pytest.raises(AuthenticationError):
        await UserService.authenticate(db, "john@example.com", "password123")


@pytest.mark.asyncio
async def test_change_password_checks_current_password(db, user):
    with pytest.raises(InvalidPasswordError):
        await UserService.change_password(db, user.id, "wrong-password", "new-password-1")

    assert verify_password("password123", user.password_hash)
