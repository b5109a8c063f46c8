from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr

from models.auth import AuthUser
from models.profile import Profile
from services.validation import PasswordTier


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None
    full_name: str
    phone: str


class SignUpResponse(Token):
    user_id: str
    profile_found: bool
    profile: Optional[Profile] = None


class SessionDisplay(BaseModel):
    user: Optional[AuthUser] = None
    profile: Optional[Profile] = None
    is_admin: bool = False
    loading: bool = False


class PasswordStrengthRequest(BaseModel):
    password: str


class PasswordStrengthResponse(BaseModel):
    score: int
    tier: PasswordTier
    valid: bool
