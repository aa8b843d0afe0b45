# memberhub/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, constr


# ──────────────── Sign Up / Sign In ────────────────
class SignupPayload(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=200)
    email: EmailStr
    password: constr(min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# ──────────────── Account changes ────────────────
class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: constr(min_length=8, max_length=128)


class UpdateProfileRequest(BaseModel):
    username: constr(strip_whitespace=True, min_length=3, max_length=64)
    tier: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# ──────────────── Password reset ────────────────
class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: constr(strip_whitespace=True, min_length=1, max_length=256)
    new_password: constr(min_length=8, max_length=128) = Field(..., alias="newPassword")

    model_config = {"populate_by_name": True}
