"""Sign-in, sign-up and access tokens."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.engine import Engine
from sqlmodel import select

from agrigenius.core.config import settings
from agrigenius.core.context import Identity
from agrigenius.db.session import get_session
from agrigenius.models import Account, UserProfile
from agrigenius.services.errors import AuthFailure, InvalidCredentials, NotAuthenticated
from agrigenius.services.gateway import translate_db_errors

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

INVALID_CREDENTIALS_TEXT = "Error: Invalid Credentials"


def login_error_message(exc: Exception) -> str:
    """Text shown on the login form for a failed sign-in or sign-up."""
    if isinstance(exc, InvalidCredentials) or "auth/invalid-credential" in str(exc):
        return INVALID_CREDENTIALS_TEXT
    return str(exc)


def validate_login_form(email: str, password: str, name: str | None = None, register: bool = False) -> str | None:
    """Client-side checks run before contacting the auth backend."""
    if register:
        if not name or not email or not password:
            return "Please fill in all fields."
        return None
    if not email or not password:
        return "Please enter email and password."
    return None


class AuthService:
    """Credential checks against the account table plus JWT issuance."""

    def __init__(self, bind: Engine | None = None) -> None:
        self.bind = bind

    def sign_up(self, email: str, name: str, password: str, language: str = "en") -> Identity:
        email = email.strip().lower()
        if len(password) < settings.min_password_length:
            raise AuthFailure(
                f"auth/weak-password: Password should be at least {settings.min_password_length} characters"
            )
        with translate_db_errors(), get_session(self.bind) as session:
            existing = session.exec(select(Account).where(Account.email == email)).first()
            if existing:
                raise AuthFailure("auth/email-already-in-use")

            uid = uuid.uuid4().hex
            session.add(Account(uid=uid, email=email, password_hash=pwd_context.hash(password)))
            # Every new identity starts with a default profile.
            session.add(UserProfile(uid=uid, name=name, email=email, language=language))
            session.commit()
        logger.info("Registered account %s", uid)
        return Identity(uid=uid, email=email)

    def sign_in(self, email: str, password: str) -> Identity:
        email = email.strip().lower()
        with translate_db_errors(), get_session(self.bind) as session:
            account = session.exec(select(Account).where(Account.email == email)).first()
        if account is None or account.disabled or not pwd_context.verify(password, account.password_hash):
            logger.info("Rejected sign-in for %s", email)
            raise InvalidCredentials()
        return Identity(uid=account.uid, email=account.email)

    def issue_token(self, identity: Identity, expires_delta: timedelta | None = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        claims = {"sub": identity.uid, "email": identity.email, "exp": expire}
        return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def identity_from_token(self, token: str) -> Identity:
        try:
            claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except JWTError as exc:
            raise NotAuthenticated("Invalid or expired token") from exc
        uid = claims.get("sub")
        if not uid:
            raise NotAuthenticated("Token carries no subject")
        return Identity(uid=uid, email=claims.get("email", ""))


__all__ = [
    "AuthService",
    "INVALID_CREDENTIALS_TEXT",
    "login_error_message",
    "validate_login_form",
]
