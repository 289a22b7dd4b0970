from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from debt_tracker.models.user import UserRole


class LoginRequest(BaseModel):
    """Schema for login. Clients leave the password out."""
    phone: str
    password: Optional[str] = None


class AdminCreate(BaseModel):
    """Schema for creating an administrator"""
    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    password: str = Field(..., min_length=8, max_length=100)


class UserResponse(BaseModel):
    id: str
    name: str
    phone: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
