from __future__ import annotations

import logging
import types
from typing import Optional

import bcrypt

# Newer bcrypt wheels no longer ship ``__about__``; Passlib reads the version
# from there, so provide it to keep the backend check quiet.
if not hasattr(bcrypt, "__about__"):
    bcrypt.__about__ = types.SimpleNamespace(__version__=bcrypt.__version__)

from fastapi import Depends, Request
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import DEFAULT_ADMIN_PASSWORD, settings
from .database import get_db
from .errors import InvalidCredentialsError, UnauthenticatedError
from .models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).one_or_none()


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user:
        logger.info("Sign-in rejected for unknown account %s", email)
        raise InvalidCredentialsError("Akun tidak terdaftar")
    if not verify_password(password, user.password_hash):
        logger.info("Sign-in rejected for %s: wrong password", email)
        raise InvalidCredentialsError("Password tidak valid")
    return user


def sign_in(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def sign_out(request: Request) -> None:
    request.session.clear()


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = db.get(User, user_id)
    if user is None:
        # Stale cookie for a deleted account
        request.session.clear()
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise UnauthenticatedError()
    return user


def ensure_admin_user(db: Session) -> Optional[User]:
    """Create the bootstrap account on an empty user table."""
    if db.query(User.id).first() is not None:
        return None
    if settings.environment != "development" and settings.admin_password == DEFAULT_ADMIN_PASSWORD:
        raise RuntimeError("Set AGENDA_ADMIN_PASSWORD before starting outside development")
    admin = User(
        email=settings.admin_email.lower(),
        name=settings.admin_name,
        password_hash=hash_password(settings.admin_password),
    )
    db.add(admin)
    db.flush()
    logger.warning("Created bootstrap user %s; change its password", admin.email)
    return admin
