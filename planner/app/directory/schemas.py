"""Pydantic schemas for directory entries created during an import."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContractedResourceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    salary: Optional[Decimal] = Field(default=None, ge=0)
    information: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("Name is required for a contracted resource")
        return name


class ResourceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    salary: Optional[Decimal] = None
    contracted: bool


class FinancingCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    financing_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    overhead_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    eti_value: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("Name is required for a financing")
        return name


class FinancingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    financing_rate: Decimal
    overhead_rate: Decimal
    eti_value: Decimal
