"""Account sign-up and sign-in.

Every entry point returns an ``AuthResult``; the HTTP layer decides what to
do with it (set a cookie, redirect, or answer 401/409). Storage failures
still raise ``StoreUnavailable``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional
from urllib.parse import urlsplit

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.app import models
from taskboard.app.auth import hash_password, verify_password
from taskboard.app.core.errors import StoreUnavailable
from taskboard.app.services.google_oauth import OAuthProfile

logger = logging.getLogger(__name__)

HOME = "/"
LOGIN_PAGE = "/login"


class AuthFailure(StrEnum):
    MISSING_FIELDS = "missing_fields"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_EXISTS = "user_exists"
    SIGNUP_DISABLED = "signup_disabled"
    OAUTH_FAILED = "oauth_failed"


@dataclass(frozen=True)
class AuthResult:
    ok: bool
    user: Optional[models.User] = None
    next_location: Optional[str] = None
    reason: Optional[AuthFailure] = None

    @classmethod
    def success(cls, user: models.User, next_location: str = HOME) -> AuthResult:
        return cls(ok=True, user=user, next_location=next_location)

    @classmethod
    def failure(cls, reason: AuthFailure) -> AuthResult:
        return cls(ok=False, reason=reason)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def safe_next_location(target: Optional[str], base_url: str = "") -> str:
    """Keep post-login navigation on this site and never send users back to the login page."""
    target = (target or "").strip()
    if base_url and target.startswith(base_url):
        target = target[len(base_url):]
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or target.startswith("//"):
        return HOME
    if not target.startswith("/"):
        target = "/" + target
    if target.rstrip("/") == LOGIN_PAGE:
        return HOME
    return target


def _find_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    try:
        return db.query(models.User).filter(models.User.id == str(user_id)).first()
    except SQLAlchemyError as exc:
        raise StoreUnavailable("Account storage is unavailable", cause=exc) from exc


def sign_up(db: Session, name: Optional[str], email: Optional[str], password: Optional[str]) -> AuthResult:
    email = normalize_email(email)
    if not email or not password:
        return AuthResult.failure(AuthFailure.MISSING_FIELDS)
    try:
        if _find_by_email(db, email) is not None:
            return AuthResult.failure(AuthFailure.USER_EXISTS)
        user = models.User(
            name=(name or "").strip() or "User",
            email=email,
            password_hash=hash_password(password),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        return AuthResult.failure(AuthFailure.USER_EXISTS)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("sign_up failed", extra={"op": "signup"})
        raise StoreUnavailable("Account storage is unavailable", cause=exc) from exc

    logger.info("User signed up", extra={"user": user.id, "op": "signup"})
    return AuthResult.success(user)


def sign_in_with_credentials(db: Session, email: Optional[str], password: Optional[str]) -> AuthResult:
    email = normalize_email(email)
    if not email or not password:
        return AuthResult.failure(AuthFailure.MISSING_FIELDS)
    try:
        user = _find_by_email(db, email)
    except SQLAlchemyError as exc:
        raise StoreUnavailable("Account storage is unavailable", cause=exc) from exc

    # Same answer for unknown email and wrong password.
    if user is None or not verify_password(password, user.password_hash or ""):
        return AuthResult.failure(AuthFailure.INVALID_CREDENTIALS)
    logger.info("User signed in", extra={"user": user.id, "op": "login"})
    return AuthResult.success(user)


def sign_in_with_oauth_profile(
    db: Session, profile: OAuthProfile, next_location: str = HOME
) -> AuthResult:
    """Link the OAuth profile to the account with the same email, creating it if missing."""
    email = normalize_email(profile.email)
    if not email or not profile.email_verified:
        return AuthResult.failure(AuthFailure.OAUTH_FAILED)
    try:
        user = _find_by_email(db, email)
        if user is None:
            user = models.User(
                name=profile.name or "User",
                email=email,
                image=profile.image,
                password_hash="",
            )
            db.add(user)
            logger.info("Creating account from Google profile", extra={"op": "oauth"})
        elif profile.image and not user.image:
            user.image = profile.image
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("OAuth account linking failed", extra={"op": "oauth"})
        raise StoreUnavailable("Account storage is unavailable", cause=exc) from exc

    return AuthResult.success(user, safe_next_location(next_location))
