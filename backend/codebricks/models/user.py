"""
User Model - Defines account records and the identity projection.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    """Base user model with common fields."""
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UserCreate(UserBase):
    """User creation model with password."""
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    username: str
    password: str


class User(UserBase):
    """User model with all fields."""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    created_at: datetime
    updated_at: datetime
    is_active: bool = True

    def to_identity(self) -> "UserIdentity":
        return UserIdentity(
            uid=self.user_id,
            display_name=self.display_name or self.username,
            email=self.email,
            photo_url=self.photo_url,
        )


class UserIdentity(BaseModel):
    """Read-only projection of the signed-in user held by a client session."""
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


class Token(BaseModel):
    """JWT token response model."""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Token payload data."""
    user_id: Optional[str] = None
    username: Optional[str] = None
