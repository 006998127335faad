"""
Pydantic schemas for users.

This module defines the request and response schemas for staff/admin
accounts, tokens and password resets.
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

ALLOWED_ROLES = ("admin", "staff")


class UserBase(BaseModel):
    """Base schema for user data."""

    username: str = Field(..., min_length=3, max_length=50, description="Username must be 3-50 characters")
    email: EmailStr = Field(..., description="Valid email address")
    full_name: str = Field(..., min_length=2, max_length=100, description="Full name must be 2-100 characters")
    role: str = Field("staff", description="User role (admin, staff)")
    is_active: bool = Field(True, description="Whether the user account is active")

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in ALLOWED_ROLES:
            raise ValueError(f"Role must be one of {list(ALLOWED_ROLES)}")
        return v


class UserCreate(UserBase):
    """Schema for creating a new user."""

    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    department_ids: List[int] = Field(default_factory=list, description="Departments a staff member handles")


class User(UserBase):
    """Schema for user response data."""

    id: int
    department_ids: List[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StaffDepartments(BaseModel):
    """Department assignment set of one staff member."""

    user_id: int
    department_ids: List[int]


class StaffDepartmentsUpdate(BaseModel):
    department_ids: List[int]


class Token(BaseModel):
    """Schema for authentication token."""

    access_token: str
    token_type: str


class PasswordResetRequest(BaseModel):
    """Schema for password reset request."""

    email: EmailStr


class PasswordReset(BaseModel):
    """Schema for password reset."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)
