"""
Read-only models describing what each jurisdiction requires of a prenup.

These are never stored in the entity table; the requirement catalogue is static
and lives in ``services/compliance.py``.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DateTimeMixin
from .domain_models import USState


class StateRequirement(BaseModel):
    name: str
    description: str
    required: bool
    waiting_period_days: Optional[int] = Field(None, ge=0, description="Minimum days between execution and marriage")


class StateCompliance(BaseModel):
    """Everything the drafting wizard needs to know about one jurisdiction."""

    model_config = ConfigDict(frozen=True)

    state: USState
    display_name: str
    total_steps: int = Field(..., ge=1, description="Wizard steps for agreements under this state")
    requirements: List[StateRequirement]
    disclosure_requirements: List[str]
    notarization_required: bool = False
    witness_required: bool = False
    special_rules: List[str] = Field(default_factory=list)


class ExecutionDetails(DateTimeMixin, BaseModel):
    """
    Execution facts checked against a state's requirements.

    Usually built from ``Prenup.content``; unrelated keys are ignored and ISO
    date strings are accepted.
    """

    model_config = ConfigDict(extra='ignore')

    execution_date: Optional[datetime] = None
    marriage_date: Optional[datetime] = None
    notarized: bool = False


class ComplianceResult(BaseModel):
    valid: bool
    violations: List[str] = Field(default_factory=list)
