from .config import AuthConfig, DynamoDBConfig
from .exceptions import (
    AccessDeniedError,
    ConflictError,
    ConnectionError,
    EntityNotFoundError,
    NotFoundError,
    PrenupStoreError,
    RetryableError,
    ValidationError,
)
from .models import (
    # Bookkeeping
    LATEST_VERSION,
    BaseEntity,
    EntityType,
    # Entity kinds
    Document,
    FinancialDisclosure,
    PartnerInvitation,
    Prenup,
    Signature,
    User,
    # Enums
    DocumentType,
    InvitationStatus,
    PrenupStatus,
    SignatureStatus,
    USState,
    UserRole,
    # State requirements
    ComplianceResult,
    ExecutionDetails,
    StateCompliance,
    StateRequirement,
    # Write DTOs
    DocumentCreate,
    FinancialDisclosureUpsert,
    PrenupCreate,
    UserCreate,
)
from .core import (
    TableGateway,
    VersionedEntityStore,
    create_entity_store,
    create_table_gateway,
)
from .services import (
    DocumentService,
    FinancialService,
    PrenupService,
    StateComplianceService,
    UserService,
)

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "AuthConfig",
    "DynamoDBConfig",

    # Exceptions
    "AccessDeniedError",
    "ConflictError",
    "ConnectionError",
    "EntityNotFoundError",
    "NotFoundError",
    "PrenupStoreError",
    "RetryableError",
    "ValidationError",

    # Models
    "LATEST_VERSION",
    "BaseEntity",
    "EntityType",
    "Document",
    "FinancialDisclosure",
    "PartnerInvitation",
    "Prenup",
    "Signature",
    "User",
    "DocumentType",
    "InvitationStatus",
    "PrenupStatus",
    "SignatureStatus",
    "USState",
    "UserRole",
    "ComplianceResult",
    "ExecutionDetails",
    "StateCompliance",
    "StateRequirement",
    "DocumentCreate",
    "FinancialDisclosureUpsert",
    "PrenupCreate",
    "UserCreate",

    # Persistence
    "TableGateway",
    "VersionedEntityStore",
    "create_entity_store",
    "create_table_gateway",

    # Services
    "DocumentService",
    "FinancialService",
    "PrenupService",
    "StateComplianceService",
    "UserService",
]
