"""
Write-side DTOs (Data Transfer Objects) accepted by the services.

These carry only what a caller is allowed to supply. Ids, timestamps, version
tags and denormalized fields are filled in by the services and the store.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from .domain_models import Asset, Debt, DocumentType, Income, UserRole, USState

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


class UserCreate(BaseModel):
    """Registration payload. ``password`` is plain text and hashed by the service."""

    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.USER

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class PrenupCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    state: USState
    created_by: str = Field(..., min_length=1)


class FinancialDisclosureUpsert(BaseModel):
    """Full disclosure submitted by one party; replaces any earlier submission."""

    prenup_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    assets: List[Asset] = Field(default_factory=list)
    debts: List[Debt] = Field(default_factory=list)
    income: Income = Field(default_factory=Income)


class DocumentCreate(BaseModel):
    prenup_id: str = Field(..., min_length=1)
    type: DocumentType
    filename: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1)
    uploaded_by: str = Field(..., min_length=1)
