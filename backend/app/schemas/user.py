"""User and authentication schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator


class PasswordConfirmMixin(BaseModel):
    password: str = Field(..., min_length=8, max_length=72)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Password and confirmation do not match")
        return self


class UserRegister(PasswordConfirmMixin):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=50)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8, max_length=72)
    password_confirm: str | None = None

    @model_validator(mode="after")
    def passwords_match(self):
        if (self.password or self.password_confirm) and self.password != self.password_confirm:
            raise ValueError(
                "To change the password, provide both the new password and a matching confirmation"
            )
        return self


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(PasswordConfirmMixin):
    token: str = Field(..., min_length=1)
