"""Authentication endpoints: registration, login, verification, password reset."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_mailer
from app.schemas.common import MessageResponse
from app.schemas.user import (
    EmailRequest,
    LoginRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserRegister,
    UserResponse,
)
from app.services import users
from app.services.email import EmailDispatcher

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: UserRegister,
    db: AsyncSession = Depends(get_db),
    mailer: EmailDispatcher = Depends(get_mailer),
):
    """Create a disabled account and send the verification email."""
    return await users.register(db, body.username, body.email, body.password, mailer)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    token = await users.authenticate(db, body.email, body.password)
    return TokenResponse(access_token=token)


@router.get("/verify", response_model=MessageResponse)
async def verify_account(token: str = Query(...), db: AsyncSession = Depends(get_db)):
    await users.verify_account(db, token)
    return MessageResponse(message="Account verified successfully.")


@router.post("/resend-verification", response_model=MessageResponse, status_code=202)
async def resend_verification(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailDispatcher = Depends(get_mailer),
):
    await users.resend_verification(db, body.email, mailer)
    return MessageResponse(
        message="If the account exists and is not yet verified, a new email has been sent."
    )


@router.post("/forgot-password", response_model=MessageResponse, status_code=202)
async def forgot_password(
    body: EmailRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailDispatcher = Depends(get_mailer),
):
    await users.request_password_reset(db, body.email, mailer)
    return MessageResponse(
        message="If an account with this email exists, a password reset link has been sent."
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await users.reset_password(db, body.token, body.password)
    return MessageResponse(message="Password has been reset successfully.")
