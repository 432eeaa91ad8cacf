"""
Domain services built on the versioned entity store.

Each service receives the store (and the services it depends on) through its
constructor:

    store = create_entity_store(DynamoDBConfig.from_env())
    users = UserService(store, AuthConfig())
    prenups = PrenupService(store, users, StateComplianceService())
    financial = FinancialService(store, prenups, users)
    documents = DocumentService(store, prenups)
"""

from .compliance import STATE_COMPLIANCE, StateComplianceService
from .documents import DocumentService
from .financial import FinancialService
from .prenups import PrenupService
from .users import UserService

__all__ = [
    "STATE_COMPLIANCE",
    "DocumentService",
    "FinancialService",
    "PrenupService",
    "StateComplianceService",
    "UserService",
]
