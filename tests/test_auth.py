"""Tests for the authentication collaborator."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from services.auth import (
    SESSION_USER_KEY,
    AuthError,
    AuthService,
    ClientAuth,
    User,
    validate_credentials,
)


@pytest.fixture
def service() -> AuthService:
    # Minimum bcrypt cost keeps the suite fast.
    return AuthService(rounds=4)


@pytest.mark.parametrize(
    ("email", "password", "confirm", "message"),
    [
        ("", "secret1", None, "Please enter email and password."),
        ("a@b.co", "", None, "Please enter email and password."),
        ("a@b.co", "short", None, "Password must be at least 6 characters."),
        ("a@b.co", "secret1", "secret2", "Passwords do not match."),
    ],
)
def test_form_validation_messages(email: str, password: str, confirm: Optional[str], message: str) -> None:
    with pytest.raises(AuthError) as exc_info:
        validate_credentials(email, password, confirm)

    assert str(exc_info.value) == message


def test_valid_form_passes() -> None:
    validate_credentials("a@b.co", "secret1", "secret1")
    validate_credentials("a@b.co", "secret1")


def test_passwords_are_stored_as_bcrypt_hashes(service: AuthService) -> None:
    user = service.register("farmer@example.com", "secret1")

    credential = service._credentials["farmer@example.com"]
    assert credential.password_hash.startswith(b"$2b$04$")
    assert b"secret1" not in credential.password_hash
    assert service.get_user(user.uid) == user


def test_sign_up_signs_in_and_rejects_duplicates(service: AuthService) -> None:
    auth = ClientAuth(service, {})

    user = auth.sign_up("Farmer@Example.com", "secret1")

    assert user.email == "farmer@example.com"
    assert auth.current_user == user
    with pytest.raises(AuthError, match="already in use"):
        auth.sign_up("farmer@example.com", "another1")


def test_sign_in_checks_password(service: AuthService) -> None:
    auth = ClientAuth(service, {})
    user = auth.sign_up("farmer@example.com", "secret1")
    auth.sign_out()
    assert auth.current_user is None

    with pytest.raises(AuthError, match="Invalid email or password."):
        auth.sign_in("farmer@example.com", "wrong-pass")
    with pytest.raises(AuthError, match="Invalid email or password."):
        auth.sign_in("nobody@example.com", "secret1")
    with pytest.raises(AuthError, match="Invalid email or password."):
        auth.sign_in("farmer@example.com", "x" * 100)

    assert auth.sign_in("farmer@example.com", "secret1") == user


def test_overlong_password_is_rejected_at_sign_up(service: AuthService) -> None:
    with pytest.raises(AuthError, match="at most 72 bytes"):
        service.register("farmer@example.com", "x" * 73)


def test_badly_formatted_email_is_rejected(service: AuthService) -> None:
    with pytest.raises(AuthError, match="badly formatted"):
        ClientAuth(service, {}).sign_up("farmer", "secret1")


def test_signed_in_user_is_kept_per_client(service: AuthService) -> None:
    first_session: Dict[str, str] = {}
    second_session: Dict[str, str] = {}
    first = ClientAuth(service, first_session)
    second = ClientAuth(service, second_session)

    user = first.sign_up("farmer@example.com", "secret1")

    assert first_session == {SESSION_USER_KEY: user.uid}
    assert second.current_user is None

    second.sign_in("farmer@example.com", "secret1")
    second.sign_out()

    assert second.current_user is None
    assert first.current_user == user


def test_unknown_uid_in_session_reads_as_signed_out(service: AuthService) -> None:
    auth = ClientAuth(service, {SESSION_USER_KEY: "stale-uid"})

    assert auth.current_user is None


def test_subscribers_see_user_changes_until_unsubscribed(service: AuthService) -> None:
    auth = ClientAuth(service, {})
    seen: List[Optional[User]] = []

    subscription = auth.subscribe(seen.append)
    user = auth.sign_up("farmer@example.com", "secret1")
    auth.sign_out()
    subscription.unsubscribe()
    auth.sign_in("farmer@example.com", "secret1")

    assert seen == [None, user, None]
