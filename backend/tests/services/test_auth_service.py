"""Tests for the credential lifecycle operations."""

from __future__ import annotations

import asyncio
import uuid

import pytest

from credvault.core import errors
from credvault.core.security import SessionTokenIssuer
from credvault.db.session import get_sessionmaker
from credvault.schemas.user import ProfileUpdate
from credvault.services import auth_service, password_reset_service, user_service

pytestmark = pytest.mark.asyncio


async def _register_ann(session, issuer: SessionTokenIssuer) -> auth_service.AuthResult:
    return await auth_service.register_user(
        session, issuer, name="Ann", email="ann@x.com", password="secret1"
    )


async def test_register_returns_profile_and_token(session, issuer) -> None:
    result = await _register_ann(session, issuer)

    assert result.user.email == "ann@x.com"
    assert result.user.name == "Ann"
    assert "hashed_password" not in result.user.model_dump()
    assert issuer.verify(result.session.value) == result.user.id

    stored = await user_service.get_user(session, result.user.id)
    assert stored.hashed_password and stored.hashed_password != "secret1"


async def test_register_duplicate_email_conflicts(session, issuer) -> None:
    await _register_ann(session, issuer)
    with pytest.raises(errors.ConflictError):
        await auth_service.register_user(
            session, issuer, name="Ann Two", email="ANN@x.com", password="secret2"
        )


@pytest.mark.parametrize(
    ("name", "email", "password"),
    [
        ("", "ann@x.com", "secret1"),
        ("Ann", None, "secret1"),
        ("Ann", "ann@x.com", "   "),
        ("Ann", "ann@x.com", "short"),
        ("Ann", "not-an-email", "secret1"),
        ("Ann", "ann@x.com", "p" * 73),
    ],
)
async def test_register_validation_has_no_side_effects(
    session, issuer, name, email, password
) -> None:
    with pytest.raises(errors.ValidationError):
        await auth_service.register_user(
            session, issuer, name=name, email=email, password=password
        )
    assert await user_service.get_user_by_email(session, "ann@x.com") is None


async def test_login_paths(session, issuer) -> None:
    registered = await _register_ann(session, issuer)

    with pytest.raises(errors.AuthenticationError):
        await auth_service.login_user(
            session, issuer, email="ann@x.com", password="wrongpw"
        )
    with pytest.raises(errors.NotFoundError):
        await auth_service.login_user(
            session, issuer, email="nobody@x.com", password="secret1"
        )
    with pytest.raises(errors.ValidationError):
        await auth_service.login_user(session, issuer, email="ann@x.com", password="")

    result = await auth_service.login_user(
        session, issuer, email=" Ann@X.com ", password="secret1"
    )
    assert issuer.verify(result.session.value) == registered.user.id


async def test_check_session(session, issuer) -> None:
    result = await _register_ann(session, issuer)

    assert auth_service.check_session(issuer, result.session.value) is True
    assert auth_service.check_session(issuer, None) is False
    assert auth_service.check_session(issuer, "garbage") is False


async def test_logout_expires_cookie() -> None:
    cookie = auth_service.logout_user()
    assert cookie.value == ""
    assert cookie.expires_at.timestamp() == 0


async def test_get_profile_unknown_user(session) -> None:
    with pytest.raises(errors.NotFoundError):
        await auth_service.get_profile(session, uuid.uuid4())


async def test_update_profile_merges_supplied_fields(session, issuer) -> None:
    result = await _register_ann(session, issuer)
    user_id = result.user.id

    updated = await auth_service.update_profile(
        session, user_id, ProfileUpdate(phone="555-0100", bio="Farmer")
    )
    assert updated.phone == "555-0100"
    assert updated.bio == "Farmer"
    assert updated.name == "Ann"
    assert updated.photo == result.user.photo

    updated = await auth_service.update_profile(
        session, user_id, ProfileUpdate.model_validate({"bio": "", "name": None, "email": "x@y.com"})
    )
    assert updated.bio == ""
    assert updated.name == "Ann"
    assert updated.phone == "555-0100"
    assert updated.email == "ann@x.com"

    with pytest.raises(errors.ValidationError):
        await auth_service.update_profile(session, user_id, ProfileUpdate(name="  "))


async def test_change_password(session, issuer) -> None:
    result = await _register_ann(session, issuer)
    user_id = result.user.id

    with pytest.raises(errors.AuthenticationError):
        await auth_service.change_password(
            session, user_id, old_password="wrong1", new_password="newpw1"
        )
    await auth_service.login_user(session, issuer, email="ann@x.com", password="secret1")

    with pytest.raises(errors.ValidationError):
        await auth_service.change_password(
            session, user_id, old_password="secret1", new_password=None
        )

    await auth_service.change_password(
        session, user_id, old_password="secret1", new_password="newpw1"
    )
    with pytest.raises(errors.AuthenticationError):
        await auth_service.login_user(
            session, issuer, email="ann@x.com", password="secret1"
        )
    await auth_service.login_user(session, issuer, email="ann@x.com", password="newpw1")


async def test_forgot_and_reset_password(session, issuer, notifier) -> None:
    await _register_ann(session, issuer)

    await auth_service.forgot_password(session, notifier, email="ann@x.com")

    assert len(notifier.sent) == 1
    email = notifier.sent[0]
    assert email.recipient == "ann@x.com"
    assert "http://frontend.test/resetpassword/" in email.html_body
    secret = email.reset_secret

    await auth_service.reset_password(session, token=secret, new_password="newpw")

    with pytest.raises(errors.AuthenticationError):
        await auth_service.login_user(
            session, issuer, email="ann@x.com", password="secret1"
        )
    await auth_service.login_user(session, issuer, email="ann@x.com", password="newpw")

    with pytest.raises(errors.AuthenticationError):
        await auth_service.reset_password(session, token=secret, new_password="other1")


async def test_forgot_password_unknown_email(session, notifier) -> None:
    with pytest.raises(errors.NotFoundError):
        await auth_service.forgot_password(session, notifier, email="ghost@x.com")
    assert notifier.sent == []


async def test_failed_delivery_keeps_token_valid(session, issuer, notifier) -> None:
    result = await _register_ann(session, issuer)
    notifier.fail = True

    with pytest.raises(errors.DeliveryError) as excinfo:
        await auth_service.forgot_password(session, notifier, email="ann@x.com")
    assert excinfo.value.retryable

    record = await password_reset_service.get_token_for_user(session, result.user.id)
    assert record is not None

    await auth_service.reset_password(
        session, token=notifier.sent[0].reset_secret, new_password="newpw"
    )
    await auth_service.login_user(session, issuer, email="ann@x.com", password="newpw")


async def test_reset_validation_leaves_token_usable(session, issuer, notifier) -> None:
    await _register_ann(session, issuer)
    await auth_service.forgot_password(session, notifier, email="ann@x.com")
    secret = notifier.sent[0].reset_secret

    with pytest.raises(errors.ValidationError):
        await auth_service.reset_password(session, token=secret, new_password="")

    await auth_service.reset_password(session, token=secret, new_password="newpw")


async def test_concurrent_registrations_create_one_user(session, issuer) -> None:
    sessionmaker = get_sessionmaker()

    async def attempt(n: int) -> str:
        async with sessionmaker() as own_session:
            try:
                await auth_service.register_user(
                    own_session,
                    issuer,
                    name=f"Ann {n}",
                    email="ann@x.com",
                    password="secret1",
                )
            except errors.ConflictError:
                return "conflict"
            return "ok"

    results = await asyncio.gather(*(attempt(n) for n in range(4)))

    assert sorted(results) == ["conflict", "conflict", "conflict", "ok"]
    assert await user_service.get_user_by_email(session, "ann@x.com") is not None


async def test_register_rejects_overlong_name(session, issuer) -> None:
    with pytest.raises(errors.ValidationError):
        await auth_service.register_user(
            session, issuer, name="A" * 121, email="ann@x.com", password="secret1"
        )
    assert await user_service.get_user_by_email(session, "ann@x.com") is None


@pytest.mark.parametrize(
    "changes",
    [{"name": "A" * 121}, {"phone": "5" * 33}, {"photo": "https://x/" + "p" * 2048}],
)
async def test_update_profile_rejects_overlong_fields(
    session, issuer, changes
) -> None:
    result = await _register_ann(session, issuer)

    with pytest.raises(errors.ValidationError):
        await auth_service.update_profile(
            session, result.user.id, ProfileUpdate(**changes)
        )
    assert await auth_service.get_profile(session, result.user.id) == result.user


async def test_names_are_stored_trimmed(session, issuer) -> None:
    result = await auth_service.register_user(
        session, issuer, name="  Ann  ", email="ann@x.com", password="secret1"
    )
    assert result.user.name == "Ann"

    updated = await auth_service.update_profile(
        session, result.user.id, ProfileUpdate(name="  Annie ")
    )
    assert updated.name == "Annie"
