"""Pydantic schemas for the project import API."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .controller import ImportPhase
from .domain import Category


class AllocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    month: int
    year: int
    occupancy: Decimal = Field(..., description="Fraction of a full-time month, e.g. 0.5")


class MaterialRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    unit_price: Decimal
    quantity: Decimal
    usage_year: int
    category: Category


class WorkpackageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    start: Optional[date] = None
    end: Optional[date] = None
    allocations: List[AllocationRead] = Field(default_factory=list)
    materials: List[MaterialRead] = Field(default_factory=list)


class ProjectDraftRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    start: Optional[date] = None
    end: Optional[date] = None
    financing_id: Optional[int] = None
    eti_value: Optional[Decimal] = None
    workpackages: List[WorkpackageRead] = Field(default_factory=list)


class PendingResource(BaseModel):
    name: str
    inferred_salary: Optional[float] = Field(default=None, description="Base monthly salary derived from the loaded cost in the workbook")


class FinancingPrompt(BaseModel):
    name: str
    financing_rate: Optional[float] = None
    overhead_rate: Optional[float] = None
    eti_value: Optional[float] = None


class ImportSummary(BaseModel):
    workpackages: int
    allocations: int
    materials: int


class ImportSessionView(BaseModel):
    session_id: str
    filename: str
    phase: ImportPhase
    cancelled: bool = False
    message: str = Field(default="", description="Short text for a transient notification")
    pending_resource: Optional[PendingResource] = None
    remaining_resources: int = 0
    financing: Optional[FinancingPrompt] = None
    financing_skipped: bool = False
    summary: Optional[ImportSummary] = None
    draft: Optional[ProjectDraftRead] = None


class ResolveResourceRequest(BaseModel):
    name: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)


class CreateResourceRequest(BaseModel):
    name: str = Field(..., min_length=1)
    salary: Optional[Decimal] = Field(default=None, ge=0, description="Defaults to the inferred salary")
    information: Optional[str] = Field(default=None, max_length=500)


class CreateFinancingRequest(BaseModel):
    name: Optional[str] = Field(default=None, description="Defaults to the name found in the workbook")
    financing_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    overhead_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    eti_value: Optional[Decimal] = Field(default=None, ge=0)
