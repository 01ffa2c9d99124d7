from __future__ import annotations

from datetime import timedelta

import pytest

from agrigenius.services.auth import (
    INVALID_CREDENTIALS_TEXT,
    login_error_message,
    validate_login_form,
)
from agrigenius.services.errors import AuthFailure, InvalidCredentials, NotAuthenticated


def test_sign_in_with_registered_account(auth, identity):
    assert auth.sign_in("Farmer@Example.com", "secret123") == identity


def test_wrong_password_is_invalid_credentials(auth, identity):
    with pytest.raises(InvalidCredentials) as excinfo:
        auth.sign_in("farmer@example.com", "nope-nope")
    assert login_error_message(excinfo.value) == INVALID_CREDENTIALS_TEXT == "Error: Invalid Credentials"


def test_unknown_email_is_invalid_credentials(auth):
    with pytest.raises(InvalidCredentials):
        auth.sign_in("nobody@example.com", "secret123")


def test_duplicate_and_weak_signups(auth, identity):
    with pytest.raises(AuthFailure) as duplicate:
        auth.sign_up("farmer@example.com", "Asha", "secret123")
    assert "auth/email-already-in-use" in login_error_message(duplicate.value)

    with pytest.raises(AuthFailure) as weak:
        auth.sign_up("new@example.com", "Ravi", "123")
    assert str(weak.value).startswith("auth/weak-password")


def test_token_round_trip(auth, identity):
    token = auth.issue_token(identity)

    assert auth.identity_from_token(token) == identity


def test_expired_or_garbage_tokens_are_rejected(auth, identity):
    expired = auth.issue_token(identity, expires_delta=timedelta(minutes=-5))

    for token in (expired, "not-a-token"):
        with pytest.raises(NotAuthenticated):
            auth.identity_from_token(token)


def test_validate_login_form():
    assert validate_login_form("", "pw") == "Please enter email and password."
    assert validate_login_form("a@b.c", "pw") is None
    assert validate_login_form("a@b.c", "pw", name="", register=True) == "Please fill in all fields."
    assert validate_login_form("a@b.c", "pw", name="Asha", register=True) is None
