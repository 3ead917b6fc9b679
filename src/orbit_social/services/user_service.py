"""Account helpers: registration, credential checks and password changes."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orbit_social.core import security
from orbit_social.db.time import utcnow
from orbit_social.models import Comment, Follow, Like, User
from orbit_social.schemas.user import RegisterRequest
from orbit_social.services import counters

__all__ = [
    "AccountDeactivatedError",
    "InvalidCredentialsError",
    "RegistrationConflictError",
    "authenticate",
    "change_password",
    "delete_account",
    "get_user_by_login",
    "register_user",
    "touch_last_login",
]

EMAIL_TAKEN = "This email is already registered. Please use a different email or try logging in."
USERNAME_TAKEN = "This username is already taken. Please choose a different username."


class RegistrationConflictError(ValueError):
    """Email or username already belongs to another account."""


class InvalidCredentialsError(ValueError):
    """Unknown identifier or wrong password."""


class AccountDeactivatedError(ValueError):
    """The account exists but has been disabled by an administrator."""


def _looks_like_email(identifier: str) -> bool:
    return "@" in identifier and "." in identifier


def get_user_by_login(db: Session, identifier: str) -> User | None:
    """Resolve an email address or username (optionally prefixed with ``@``)."""
    identifier = identifier.strip()
    if _looks_like_email(identifier):
        return db.execute(
            select(User).where(func.lower(User.email) == identifier.lower())
        ).scalars().first()
    username = identifier.lstrip("@").lower()
    return db.execute(
        select(User).where(func.lower(User.username) == username)
    ).scalars().first()


def register_user(db: Session, payload: RegisterRequest) -> User:
    """Create a new account.

    Raises:
        RegistrationConflictError: If the email or username is taken.
    """
    email = payload.email.lower()
    if db.execute(select(User.id).where(func.lower(User.email) == email)).first():
        raise RegistrationConflictError(EMAIL_TAKEN)
    if db.execute(select(User.id).where(func.lower(User.username) == payload.username)).first():
        raise RegistrationConflictError(USERNAME_TAKEN)

    user = User(
        email=email,
        username=payload.username,
        full_name=payload.full_name,
        password_hash=security.hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as err:
        # Lost a race with a concurrent registration.
        db.rollback()
        message = EMAIL_TAKEN if "email" in str(err.orig).lower() else USERNAME_TAKEN
        raise RegistrationConflictError(message) from err
    db.refresh(user)
    return user


def authenticate(db: Session, identifier: str, password: str) -> User:
    """Return the account matching the credentials and stamp ``last_login``.

    Raises:
        InvalidCredentialsError: If the identifier or password is wrong.
        AccountDeactivatedError: If the credentials are right but the account is disabled.
    """
    user = get_user_by_login(db, identifier)
    if user is None or not security.verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid email/username or password")
    if not user.is_active:
        raise AccountDeactivatedError(
            "Your account has been deactivated. Please contact support."
        )
    touch_last_login(db, user)
    return user


def touch_last_login(db: Session, user: User) -> User:
    """Record the current time as the user's last login."""
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """Replace the user's password after checking the current one.

    Raises:
        InvalidCredentialsError: If ``current_password`` does not match.
    """
    if not security.verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect")
    user.password_hash = security.hash_password(new_password)
    db.commit()


def delete_account(db: Session, user: User) -> None:
    """Delete an account and everything it owns.

    Rows owned by the account are removed by the database cascade, but counters
    on other users and posts are denormalized, so they are corrected here first.
    """
    followed = db.execute(select(Follow.following_id).where(Follow.follower_id == user.id))
    for following_id in followed.scalars().all():
        counters.adjust_follow_counts(db, user.id, following_id, -1)

    followers = db.execute(select(Follow.follower_id).where(Follow.following_id == user.id))
    for follower_id in followers.scalars().all():
        counters.adjust_follow_counts(db, follower_id, user.id, -1)

    liked = db.execute(select(Like.post_id).where(Like.user_id == user.id))
    for post_id in liked.scalars().all():
        counters.decrement_like_count(db, post_id)

    commented = db.execute(select(Comment.post_id).where(Comment.user_id == user.id))
    for post_id in commented.scalars().all():
        counters.decrement_comment_count(db, post_id)

    db.delete(user)
    db.commit()
