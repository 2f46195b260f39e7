"""
Schemas for registration, login and the current-user endpoint.
"""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator

from stockroom.schemas.base import BaseSchema


class UserRegister(BaseSchema):
    username: str
    email: EmailStr
    password: str

    @field_validator('username', mode='before')
    @classmethod
    def validate_username(cls, v):
        if not isinstance(v, str) or len(v.strip()) < 3:
            raise ValueError('Username must be at least 3 characters')
        return v.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters')
        return v


class UserLogin(BaseSchema):
    identifier: str
    password: str

    @field_validator('identifier', mode='before')
    @classmethod
    def validate_identifier(cls, v):
        if not v:
            raise ValueError('Username or email is required')
        return v

    @field_validator('password', mode='before')
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError('Password is required')
        return v


class UserPublic(BaseSchema):
    """User as embedded in register/login responses"""
    id: int
    username: str
    email: str


class UserRead(UserPublic):
    created_at: Optional[datetime] = None
