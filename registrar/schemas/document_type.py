"""
Pydantic schemas for document types.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentTypeCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=150)
    description: Optional[str] = None
    base_price: float = Field(..., ge=0)
    is_active: bool = True


class DocumentTypeUpdate(BaseModel):
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DocumentType(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    base_price: float
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
