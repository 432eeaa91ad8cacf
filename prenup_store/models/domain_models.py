"""
Domain Models for the prenup entity store

Organized by entity kind:
1. Users
2. Prenups (agreements)
3. Financial disclosures
4. Documents
5. Signatures
6. Partner invitations

Each kind pins its ``entity_type`` so a record read back from the wide table
can be routed to the right model through ``ENTITY_MODELS``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field, field_validator

from ..utils import to_json_numbers
from .base import BaseEntity, EntityType


# =============================================================================
# User Domain
# =============================================================================

class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseEntity):
    """Registered account. ``password`` always holds a bcrypt hash."""

    entity_type: EntityType = EntityType.USER
    email: str = Field(..., min_length=3, description="Login e-mail address")
    password: str = Field(..., description="bcrypt password hash")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    role: UserRole = Field(default=UserRole.USER, description="Authorization role")


# =============================================================================
# Prenup Domain
# =============================================================================

class USState(str, Enum):
    """Jurisdictions the drafting wizard supports."""
    CALIFORNIA = "CALIFORNIA"
    WASHINGTON = "WASHINGTON"
    NEW_YORK = "NEW_YORK"
    WASHINGTON_DC = "WASHINGTON_DC"
    VIRGINIA = "VIRGINIA"


class PrenupStatus(str, Enum):
    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    READY_FOR_REVIEW = "READY_FOR_REVIEW"
    PENDING_SIGNATURES = "PENDING_SIGNATURES"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"


class Prenup(BaseEntity):
    """
    A prenuptial agreement being drafted by its creator and (optionally) a partner.

    ``created_by_email`` and ``partner_email`` are denormalized copies computed by
    the service at write time; the store never keeps them in sync.
    """

    entity_type: EntityType = EntityType.PRENUP
    title: str = Field(..., min_length=1, description="Agreement title")
    state: USState = Field(..., description="Governing jurisdiction")
    status: PrenupStatus = Field(default=PrenupStatus.DRAFT, description="Lifecycle status")
    created_by: str = Field(..., description="User id of the creator")
    partner_id: Optional[str] = Field(None, description="User id of the partner")
    progress: Dict[str, Any] = Field(default_factory=dict, description="Wizard progress")
    content: Dict[str, Any] = Field(default_factory=dict, description="Free-form agreement content")

    created_by_email: Optional[str] = None
    partner_email: Optional[str] = None

    @field_validator('progress', 'content', mode='before')
    @classmethod
    def plain_numbers(cls, v):
        # DynamoDB hands every number back as Decimal
        return to_json_numbers(v)


# =============================================================================
# Financial Disclosure Domain
# =============================================================================

class AssetType(str, Enum):
    REAL_ESTATE = "REAL_ESTATE"
    VEHICLE = "VEHICLE"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    INVESTMENT = "INVESTMENT"
    BUSINESS = "BUSINESS"
    PERSONAL_PROPERTY = "PERSONAL_PROPERTY"
    OTHER = "OTHER"


class Ownership(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    JOINT = "JOINT"
    SHARED = "SHARED"


class DebtType(str, Enum):
    MORTGAGE = "MORTGAGE"
    STUDENT_LOAN = "STUDENT_LOAN"
    CREDIT_CARD = "CREDIT_CARD"
    AUTO_LOAN = "AUTO_LOAN"
    BUSINESS_LOAN = "BUSINESS_LOAN"
    PERSONAL_LOAN = "PERSONAL_LOAN"
    OTHER = "OTHER"


class Asset(BaseModel):
    type: AssetType
    description: str = Field(..., min_length=1)
    value: Decimal = Field(..., ge=0)
    ownership: Ownership
    notes: Optional[str] = None


class Debt(BaseModel):
    type: DebtType
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    monthly_payment: Optional[Decimal] = Field(None, ge=0)
    creditor: str = Field(..., min_length=1)
    notes: Optional[str] = None


class Income(BaseModel):
    """Annual income broken down by source."""

    salary: Decimal = Field(default=Decimal("0"), ge=0)
    bonus: Decimal = Field(default=Decimal("0"), ge=0)
    investments: Decimal = Field(default=Decimal("0"), ge=0)
    business: Decimal = Field(default=Decimal("0"), ge=0)
    rental: Decimal = Field(default=Decimal("0"), ge=0)
    other: Decimal = Field(default=Decimal("0"), ge=0)
    other_description: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.salary + self.bonus + self.investments + self.business + self.rental + self.other


class FinancialDisclosure(BaseEntity):
    """One party's assets, debts and income for a given prenup."""

    entity_type: EntityType = EntityType.FINANCIAL_DISCLOSURE
    prenup_id: str
    user_id: str
    assets: List[Asset] = Field(default_factory=list)
    debts: List[Debt] = Field(default_factory=list)
    income: Income = Field(default_factory=Income)
    net_worth: Decimal = Field(default=Decimal("0"))
    user_email: Optional[str] = None

    @property
    def total_assets(self) -> Decimal:
        return sum((asset.value for asset in self.assets), Decimal("0"))

    @property
    def total_debts(self) -> Decimal:
        return sum((debt.amount for debt in self.debts), Decimal("0"))


# =============================================================================
# Document Domain
# =============================================================================

class DocumentType(str, Enum):
    PRENUP_DRAFT = "PRENUP_DRAFT"
    PRENUP_FINAL = "PRENUP_FINAL"
    FINANCIAL_STATEMENT = "FINANCIAL_STATEMENT"
    SUPPORTING_DOCUMENT = "SUPPORTING_DOCUMENT"


class Document(BaseEntity):
    """Metadata for an uploaded file; the bytes live on the filesystem at ``path``."""

    entity_type: EntityType = EntityType.DOCUMENT
    prenup_id: str
    type: DocumentType
    filename: str
    path: str
    size: int = Field(..., ge=0)
    mime_type: str
    uploaded_by: Optional[str] = None


# =============================================================================
# Signature Domain
# =============================================================================

class SignatureStatus(str, Enum):
    PENDING = "PENDING"
    SIGNED = "SIGNED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class Signature(BaseEntity):
    entity_type: EntityType = EntityType.SIGNATURE
    prenup_id: str
    user_id: str
    docusign_id: Optional[str] = None
    status: SignatureStatus = SignatureStatus.PENDING
    signed_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_email: Optional[str] = None


# =============================================================================
# Partner Invitation Domain
# =============================================================================

class InvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class PartnerInvitation(BaseEntity):
    entity_type: EntityType = EntityType.PARTNER_INVITATION
    email: str
    prenup_id: str
    invited_by: str
    token: str
    status: InvitationStatus = InvitationStatus.PENDING
    expires_at: datetime
    invited_by_email: Optional[str] = None


ENTITY_MODELS: Dict[EntityType, Type[BaseEntity]] = {
    EntityType.USER: User,
    EntityType.PRENUP: Prenup,
    EntityType.FINANCIAL_DISCLOSURE: FinancialDisclosure,
    EntityType.DOCUMENT: Document,
    EntityType.SIGNATURE: Signature,
    EntityType.PARTNER_INVITATION: PartnerInvitation,
}


def model_for(entity_type: EntityType) -> Type[BaseEntity]:
    """Return the model class registered for an entity kind."""
    return ENTITY_MODELS[EntityType(entity_type)]
