from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from assetflow.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    get_password_hash,
    verify_password,
)

from . import models

logger = logging.getLogger(__name__)


def _normalise_email(value: str) -> str:
    return value.strip().lower()


def get_user_by_email(db: Session, *, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == _normalise_email(email))
        .first()
    )


def create_user(
    db: Session,
    *,
    email: str,
    full_name: str,
    password: str,
    role: models.AccountRole = models.AccountRole.USER,
) -> models.User:
    email = _normalise_email(email)
    if get_user_by_email(db, email=email):
        raise ValueError(f"User with email {email!r} already exists.")

    user = models.User(
        email=email,
        full_name=full_name.strip(),
        role=role,
        is_active=True,
        hashed_password=get_password_hash(password),
    )
    db.add(user)
    db.flush()
    return user


def authenticate_user(db: Session, *, email: str, password: str) -> Optional[models.User]:
    """
    Password login by email.

    Returns the user on success, or None for unknown, inactive or
    mismatched credentials.
    """
    user = get_user_by_email(db, email=email)
    if not user or not user.is_active:
        logger.info("Login rejected", extra={"email": _normalise_email(email)})
        return None
    if not verify_password(password, user.hashed_password):
        logger.info("Login rejected", extra={"user_id": user.id})
        return None

    user.last_login_at = datetime.now(timezone.utc)
    db.flush()
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """
    Create a JWT access token for the user.

    Returns (token_string, expires_in_seconds).
    """
    expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role.value if hasattr(user.role, "value") else str(user.role),
    }
    access_token = create_access_token(data=payload, expires_delta=expires_delta)
    return access_token, int(expires_delta.total_seconds())
