"""
Financial Service

Financial disclosures: one per (prenup, user). Re-submitting a disclosure is a
versioned update, so every earlier submission stays available as an archive
for the audit trail returned by ``list_disclosure_versions``.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core import VersionedEntityStore
from ..exceptions import EntityNotFoundError
from ..models import EntityType, FinancialDisclosure, FinancialDisclosureUpsert
from ..utils import utc_now
from .prenups import PrenupService
from .users import UserService

logger = logging.getLogger(__name__)


class FinancialService:

    def __init__(self, store: VersionedEntityStore, prenup_service: PrenupService, user_service: UserService):
        self.store = store
        self.prenup_service = prenup_service
        self.user_service = user_service

    def save_disclosure(self, data: FinancialDisclosureUpsert) -> FinancialDisclosure:
        """
        Create the user's disclosure for a prenup, or replace it.

        Net worth is recomputed as total assets minus total debts. An existing
        disclosure is updated with a new version; otherwise one is created.

        Raises:
            AccessDeniedError: The user is not a party to the prenup
            EntityNotFoundError: The user does not exist
        """
        self.prenup_service.require_access(data.prenup_id, data.user_id)

        user = self.user_service.get_user_by_id(data.user_id)
        if user is None:
            raise EntityNotFoundError(EntityType.USER, data.user_id)

        total_assets = sum((asset.value for asset in data.assets), Decimal("0"))
        total_debts = sum((debt.amount for debt in data.debts), Decimal("0"))
        net_worth = total_assets - total_debts

        existing = self.get_disclosure_for_user(data.prenup_id, data.user_id)
        if existing is not None:
            disclosure = self.store.update(
                EntityType.FINANCIAL_DISCLOSURE,
                existing.id,
                {
                    'assets': data.assets,
                    'debts': data.debts,
                    'income': data.income,
                    'net_worth': net_worth,
                    'user_email': user.email,
                },
                create_new_version=True
            )
        else:
            disclosure = self.store.create(FinancialDisclosure(
                prenup_id=data.prenup_id,
                user_id=data.user_id,
                assets=data.assets,
                debts=data.debts,
                income=data.income,
                net_worth=net_worth,
                user_email=user.email,
            ))

        logger.info(f"Financial disclosure saved for user {data.user_id} on prenup {data.prenup_id}")
        return disclosure

    def get_disclosure(self, disclosure_id: str) -> Optional[FinancialDisclosure]:
        return self.store.get_by_id(EntityType.FINANCIAL_DISCLOSURE, disclosure_id)

    def get_disclosure_for_user(self, prenup_id: str, user_id: str) -> Optional[FinancialDisclosure]:
        matches = self.store.scan_all_by_entity_type(
            EntityType.FINANCIAL_DISCLOSURE,
            filters={'prenup_id': prenup_id, 'user_id': user_id}
        )
        return matches[0] if matches else None

    def list_disclosures(self, prenup_id: str) -> List[FinancialDisclosure]:
        """Every disclosure for a prenup, oldest first."""
        disclosures = self.store.scan_all_by_entity_type(
            EntityType.FINANCIAL_DISCLOSURE,
            filters={'prenup_id': prenup_id}
        )
        return sorted(disclosures, key=lambda disclosure: disclosure.created_at)

    def delete_disclosure(self, disclosure_id: str) -> None:
        self.store.delete(EntityType.FINANCIAL_DISCLOSURE, disclosure_id)
        logger.info(f"Deleted financial disclosure: {disclosure_id}")

    def list_disclosure_versions(self, disclosure_id: str) -> List[FinancialDisclosure]:
        """Audit trail: the current disclosure followed by every earlier submission."""
        return self.store.list_versions(EntityType.FINANCIAL_DISCLOSURE, disclosure_id)

    # =========================================================================
    # Reporting
    # =========================================================================

    def get_summary(self, prenup_id: str) -> Dict[str, Any]:
        """
        Per-party and combined totals for a prenup.

        Returns:
            ``{'individual': [...], 'combined': {...}}`` where each individual
            entry holds the sanitized user, net worth, total assets, total debts
            and annual income
        """
        individual = []
        for disclosure in self.list_disclosures(prenup_id):
            user = self.user_service.get_user_by_id(disclosure.user_id)
            individual.append({
                'user': self.user_service.sanitize_user(user) if user else None,
                'net_worth': disclosure.net_worth,
                'total_assets': disclosure.total_assets,
                'total_debts': disclosure.total_debts,
                'annual_income': disclosure.income.total,
            })

        combined = {
            'total_net_worth': sum((entry['net_worth'] for entry in individual), Decimal("0")),
            'total_assets': sum((entry['total_assets'] for entry in individual), Decimal("0")),
            'total_debts': sum((entry['total_debts'] for entry in individual), Decimal("0")),
            'combined_income': sum((entry['annual_income'] for entry in individual), Decimal("0")),
        }

        return {'individual': individual, 'combined': combined}

    def generate_report(self, prenup_id: str) -> Dict[str, Any]:
        prenup = self.prenup_service.get_prenup(prenup_id)

        disclosures = []
        for disclosure in self.list_disclosures(prenup_id):
            user = self.user_service.get_user_by_id(disclosure.user_id)
            disclosures.append({
                'user': self.user_service.sanitize_user(user) if user else None,
                'submitted_at': disclosure.created_at,
                'last_updated': disclosure.updated_at,
                'net_worth': disclosure.net_worth,
                'assets': [asset.model_dump() for asset in disclosure.assets],
                'debts': [debt.model_dump() for debt in disclosure.debts],
                'income': disclosure.income.model_dump(),
            })

        return {
            'prenup_id': prenup_id,
            'prenup_title': prenup.title if prenup else None,
            'state': prenup.state.value if prenup else None,
            'generated_at': utc_now(),
            'disclosures': disclosures,
        }
