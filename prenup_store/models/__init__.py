# Base entity and bookkeeping
from .base import (
    LATEST_VERSION,
    BaseEntity,
    DateTimeMixin,
    EntityType,
    generate_entity_id,
)

# Entity kinds stored in the wide table
from .domain_models import (
    ENTITY_MODELS,
    model_for,
    # Users
    User,
    UserRole,
    # Prenups
    Prenup,
    PrenupStatus,
    USState,
    # Financial disclosures
    Asset,
    AssetType,
    Debt,
    DebtType,
    FinancialDisclosure,
    Income,
    Ownership,
    # Documents
    Document,
    DocumentType,
    # Signatures
    Signature,
    SignatureStatus,
    # Partner invitations
    InvitationStatus,
    PartnerInvitation,
)

# Jurisdiction requirements (not stored)
from .compliance import (
    ComplianceResult,
    ExecutionDetails,
    StateCompliance,
    StateRequirement,
)

# Write-side DTOs
from .dtos import (
    DocumentCreate,
    FinancialDisclosureUpsert,
    PrenupCreate,
    UserCreate,
)

__all__ = [
    "LATEST_VERSION",
    "BaseEntity",
    "DateTimeMixin",
    "EntityType",
    "generate_entity_id",

    "ENTITY_MODELS",
    "model_for",
    "User",
    "UserRole",
    "Prenup",
    "PrenupStatus",
    "USState",
    "Asset",
    "AssetType",
    "Debt",
    "DebtType",
    "FinancialDisclosure",
    "Income",
    "Ownership",
    "Document",
    "DocumentType",
    "Signature",
    "SignatureStatus",
    "InvitationStatus",
    "PartnerInvitation",

    "ComplianceResult",
    "ExecutionDetails",
    "StateCompliance",
    "StateRequirement",

    "DocumentCreate",
    "FinancialDisclosureUpsert",
    "PrenupCreate",
    "UserCreate",
]
