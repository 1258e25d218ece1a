"""User accounts: registration, login, email verification, password reset.

Verification and reset tokens have the same token + expiry shape as
invitations and are cleared once consumed. Requests keyed by an email
address (resend, forgot password) say nothing about whether it exists.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AccessDeniedError,
    DomainValidationError,
    ProblemDetailError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from app.core.logging import log_operation
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.services.email import EmailDispatcher
from app.services.tokens import is_expired, issue_token

logger = logging.getLogger(__name__)


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


async def _ensure_unique(
    db: AsyncSession, username: str | None, email: str | None, exclude: User | None = None
) -> None:
    if username:
        stmt = select(User.id).where(func.lower(User.username) == username.lower())
        if exclude is not None:
            stmt = stmt.where(User.id != exclude.id)
        if (await db.execute(stmt)).first() is not None:
            raise ResourceAlreadyExistsError("Username already exists.")
    if email:
        stmt = select(User.id).where(func.lower(User.email) == email.strip().lower())
        if exclude is not None:
            stmt = stmt.where(User.id != exclude.id)
        if (await db.execute(stmt)).first() is not None:
            raise ResourceAlreadyExistsError("Email already exists.")


@log_operation("Register User")
async def register(
    db: AsyncSession, username: str, email: str, password: str, mailer: EmailDispatcher
) -> User:
    await _ensure_unique(db, username, email)

    token, expiry = issue_token(settings.VERIFICATION_TOKEN_TTL_HOURS)
    user = User(
        username=username,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        enabled=False,
        verification_token=token,
        verification_token_expiry=expiry,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise ResourceAlreadyExistsError("Username or email already exists.") from exc

    logger.info("Registered user %s", user.id)
    mailer.send_verification_email(user.email, token)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> str:
    """Return an access token for valid, verified credentials."""
    user = await get_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise ProblemDetailError(
            status=401, title="Unauthorized", detail="Invalid email or password."
        )
    if not user.enabled:
        raise AccessDeniedError("Account email is not verified.")

    logger.info("User %s logged in", user.id)
    return create_access_token(user.id, user.email)


@log_operation("Update User")
async def update_user(
    db: AsyncSession,
    user: User,
    username: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> User:
    await _ensure_unique(db, username, email, exclude=user)

    if username:
        user.username = username
    if email:
        user.email = email.strip().lower()
    if password:
        if verify_password(password, user.password_hash):
            raise DomainValidationError("The new password cannot be the same as the current one.")
        user.password_hash = hash_password(password)

    await db.flush()
    return user


@log_operation("Verify Account")
async def verify_account(db: AsyncSession, token: str) -> User:
    result = await db.execute(select(User).where(User.verification_token == token))
    user = result.scalar_one_or_none()
    if user is None:
        raise ResourceNotFoundError("Invalid verification token.")
    if is_expired(user.verification_token_expiry):
        raise ResourceNotFoundError("Verification token has expired.")

    user.enabled = True
    user.verification_token = None
    user.verification_token_expiry = None
    await db.flush()
    return user


async def resend_verification(db: AsyncSession, email: str, mailer: EmailDispatcher) -> None:
    user = await get_by_email(db, email)
    if user is None or user.enabled:
        return

    token, expiry = issue_token(settings.VERIFICATION_TOKEN_TTL_HOURS)
    user.verification_token = token
    user.verification_token_expiry = expiry
    await db.flush()
    mailer.send_verification_email(user.email, token)


async def request_password_reset(db: AsyncSession, email: str, mailer: EmailDispatcher) -> None:
    user = await get_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for unknown address")
        return

    token, expiry = issue_token(settings.PASSWORD_RESET_TOKEN_TTL_HOURS)
    user.reset_password_token = token
    user.reset_password_token_expiry = expiry
    await db.flush()
    mailer.send_password_reset_email(user.email, token)


@log_operation("Reset Password")
async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    result = await db.execute(select(User).where(User.reset_password_token == token))
    user = result.scalar_one_or_none()
    if user is None:
        raise ResourceNotFoundError("Invalid password reset token.")
    if is_expired(user.reset_password_token_expiry):
        raise ResourceNotFoundError("Password reset token has expired.")
    if verify_password(new_password, user.password_hash):
        raise DomainValidationError("The new password cannot be the same as the current one.")

    user.password_hash = hash_password(new_password)
    user.reset_password_token = None
    user.reset_password_token_expiry = None
    await db.flush()
