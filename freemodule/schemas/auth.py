"""
freemodule/schemas/auth.py
Signup, login and profile payloads
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from freemodule.schemas.common import CleanText, RequiredText

MIN_PASSWORD_LENGTH = 8


class UserRegister(BaseModel):
    name: RequiredText = Field(..., max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: CleanText
    email: CleanText
    created_at: Optional[datetime] = None


class LoginUser(BaseModel):
    id: int
    name: CleanText
    email: CleanText


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: LoginUser


class ProfileUpdate(BaseModel):
    name: Optional[RequiredText] = Field(None, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class AccountDeleted(BaseModel):
    message: str
    deleted: UserResponse
