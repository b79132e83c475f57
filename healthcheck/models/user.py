from pydantic import BaseModel, Field, EmailStr, field_validator, model_validator
from typing import Optional
import uuid
from datetime import datetime

BCRYPT_MAX_PASSWORD_BYTES = 72


class UserBase(BaseModel):
    """Base user model with common fields."""
    name: str = Field(..., min_length=2, max_length=255, description="User full name")
    email: EmailStr = Field(..., description="User email address")

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterForm(UserBase):
    """Registration form submitted to POST /register."""
    password: str = Field(..., min_length=6, description="User password")
    confirm_password: str = Field(..., description="Repeated password")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterForm":
        if self.confirm_password != self.password:
            raise ValueError("Password confirmation does not match")
        return self


class LoginForm(BaseModel):
    """Login form submitted to POST /login."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="User password")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class User(UserBase):
    """Registered user as returned after sign-up (no password material)."""
    id: uuid.UUID = Field(..., description="User unique identifier")
    created_at: datetime = Field(..., description="Account creation timestamp")


class AuthContext(BaseModel):
    """Authenticated session, decoded from the signed session cookie."""
    user_id: str = Field(..., description="User ID (standard JWT 'sub' claim)")
    user_name: str = Field(default="", description="Display name shown in the navigation")
    session_id: Optional[str] = Field(default=None, description="Session identifier (JWT 'jti' claim)")
