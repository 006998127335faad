"""
Pydantic schemas for departments.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DepartmentCreate(BaseModel):
    """Schema for creating (or reusing) a department."""

    name: str = Field(..., min_length=2, max_length=150)

    @field_validator("name")
    @classmethod
    def strip_artifacts(cls, v: str) -> str:
        cleaned = v.replace("\r", "").replace("\n", "").strip()
        if len(cleaned) < 2:
            raise ValueError("Department name must be at least 2 characters")
        return cleaned


class Department(BaseModel):
    """Schema for department response data."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

    @field_validator("name")
    @classmethod
    def display_name(cls, v: str) -> str:
        return v.replace("\r", "").replace("\n", "").strip()
