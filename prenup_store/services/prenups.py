"""
Prenup Service

Agreement lifecycle and partner management.

Access model: a prenup belongs to its creator and, once assigned, its partner.
Only the creator may invite a partner. Inviting an e-mail that already belongs
to a registered user assigns that user directly; otherwise a PENDING invitation
with a random token and a 7-day expiry is stored.
"""

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..core import VersionedEntityStore
from ..exceptions import AccessDeniedError, ConflictError, EntityNotFoundError, ValidationError
from ..models import (
    ComplianceResult,
    Document,
    EntityType,
    InvitationStatus,
    PartnerInvitation,
    Prenup,
    PrenupCreate,
    PrenupStatus,
    Signature,
)
from ..utils import utc_now
from .compliance import StateComplianceService
from .users import UserService

logger = logging.getLogger(__name__)

INVITATION_TTL = timedelta(days=7)
DIRECT_ASSIGNMENT_ID = 'direct-assignment'


def _default_progress(total_steps: int) -> Dict[str, Any]:
    return {'current_step': 1, 'completed_steps': [], 'total_steps': total_steps}


class PrenupService:
    """Prenup CRUD, partner assignment and invitations."""

    def __init__(
        self,
        store: VersionedEntityStore,
        user_service: UserService,
        compliance: Optional[StateComplianceService] = None
    ):
        self.store = store
        self.user_service = user_service
        self.compliance = compliance or StateComplianceService()

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_prenup(self, prenup_data: PrenupCreate) -> Prenup:
        """
        Create a DRAFT prenup owned by ``prenup_data.created_by``.

        The wizard step count comes from the requirements of ``prenup_data.state``.

        Raises:
            EntityNotFoundError: The creator does not exist
        """
        creator = self.user_service.get_user_by_id(prenup_data.created_by)
        if creator is None:
            raise EntityNotFoundError(EntityType.USER, prenup_data.created_by)

        prenup = Prenup(
            title=prenup_data.title,
            state=prenup_data.state,
            status=PrenupStatus.DRAFT,
            created_by=prenup_data.created_by,
            progress=_default_progress(self.compliance.get_state_requirements(prenup_data.state).total_steps),
            content={},
            created_by_email=creator.email,
        )

        created = self.store.create(prenup)
        logger.info(f"Created prenup: {created.title} by user {created.created_by}")
        return created

    def get_prenup(self, prenup_id: str) -> Optional[Prenup]:
        return self.store.get_by_id(EntityType.PRENUP, prenup_id)

    def update_prenup(self, prenup_id: str, updates: Dict[str, Any]) -> Prenup:
        """Versioned update; the previous state is archived."""
        return self.store.update(EntityType.PRENUP, prenup_id, updates, create_new_version=True)

    def delete_prenup(self, prenup_id: str) -> None:
        self.store.delete(EntityType.PRENUP, prenup_id)
        logger.info(f"Deleted prenup: {prenup_id}")

    def list_prenups_for_user(self, user_id: str) -> List[Prenup]:
        """Prenups the user created or is the partner on, most recently updated first."""
        prenups = self.store.scan_all_by_entity_type(
            EntityType.PRENUP,
            predicate=lambda prenup: prenup.created_by == user_id or prenup.partner_id == user_id
        )
        return sorted(prenups, key=lambda prenup: prenup.updated_at, reverse=True)

    def list_prenup_versions(self, prenup_id: str) -> List[Prenup]:
        return self.store.list_versions(EntityType.PRENUP, prenup_id)

    def validate_prenup_compliance(self, prenup_id: str) -> ComplianceResult:
        """
        Check the execution facts recorded in ``content`` (``execution_date``,
        ``marriage_date``, ``notarized``) against the prenup's state.

        Raises:
            EntityNotFoundError: The prenup does not exist
        """
        prenup = self.get_prenup(prenup_id)
        if prenup is None:
            raise EntityNotFoundError(EntityType.PRENUP, prenup_id)
        return self.compliance.validate_state_compliance(prenup.state, prenup.content or {})

    # =========================================================================
    # Access
    # =========================================================================

    def user_has_access(self, prenup_id: str, user_id: str) -> bool:
        prenup = self.get_prenup(prenup_id)
        if prenup is None:
            return False
        return user_id in (prenup.created_by, prenup.partner_id)

    def require_access(self, prenup_id: str, user_id: str) -> None:
        """
        Raises:
            AccessDeniedError: The user is neither creator nor partner (or the
                prenup does not exist)
        """
        if not self.user_has_access(prenup_id, user_id):
            raise AccessDeniedError("Access denied to prenup", user_id=user_id, resource_id=prenup_id)

    # =========================================================================
    # Partners and invitations
    # =========================================================================

    def add_partner(self, prenup_id: str, partner_id: str) -> Prenup:
        """
        Assign a registered user as partner (versioned update).

        Raises:
            EntityNotFoundError: Prenup or partner user does not exist
            ConflictError: The prenup already has a partner
        """
        prenup = self.get_prenup(prenup_id)
        if prenup is None:
            raise EntityNotFoundError(EntityType.PRENUP, prenup_id)

        if prenup.partner_id:
            raise ConflictError("Prenup already has a partner", resource_id=prenup_id)

        partner = self.user_service.get_user_by_id(partner_id)
        if partner is None:
            raise EntityNotFoundError(EntityType.USER, partner_id)

        updated = self.update_prenup(prenup_id, {'partner_id': partner_id, 'partner_email': partner.email})
        logger.info(f"Added partner {partner_id} to prenup {prenup_id}")
        return updated

    def invite_partner(self, prenup_id: str, invited_by: str, email: str) -> PartnerInvitation:
        """
        Invite a partner by e-mail.

        If the e-mail belongs to an existing user, that user is assigned
        immediately and an unsaved ACCEPTED invitation with id
        ``direct-assignment`` is returned. Otherwise a PENDING invitation is
        stored and returned.

        Raises:
            EntityNotFoundError: Prenup or inviter does not exist
            AccessDeniedError: ``invited_by`` is not the creator
            ConflictError: The prenup already has a partner
        """
        prenup = self.get_prenup(prenup_id)
        if prenup is None:
            raise EntityNotFoundError(EntityType.PRENUP, prenup_id)

        if prenup.created_by != invited_by:
            raise AccessDeniedError("Only prenup creator can invite partners", user_id=invited_by, resource_id=prenup_id)

        if prenup.partner_id:
            raise ConflictError("Prenup already has a partner", resource_id=prenup_id)

        email = email.strip().lower()
        existing_user = self.user_service.get_user_by_email(email)
        if existing_user is not None:
            self.add_partner(prenup_id, existing_user.id)
            now = utc_now()
            return PartnerInvitation(
                id=DIRECT_ASSIGNMENT_ID,
                email=email,
                prenup_id=prenup_id,
                invited_by=invited_by,
                token='',
                status=InvitationStatus.ACCEPTED,
                expires_at=now,
                created_at=now,
                updated_at=now,
            )

        inviter = self.user_service.get_user_by_id(invited_by)
        if inviter is None:
            raise EntityNotFoundError(EntityType.USER, invited_by)

        invitation = PartnerInvitation(
            email=email,
            prenup_id=prenup_id,
            invited_by=invited_by,
            token=secrets.token_hex(32),
            status=InvitationStatus.PENDING,
            expires_at=utc_now() + INVITATION_TTL,
            invited_by_email=inviter.email,
        )

        created = self.store.create(invitation)
        logger.info(f"Created partner invitation for {email} on prenup {prenup_id}")
        return created

    def get_invitation(self, token: str) -> Optional[PartnerInvitation]:
        """
        Look up an invitation by token.

        An invitation past its expiry is marked EXPIRED in place (no archive)
        and reported as absent.
        """
        matches = self.store.scan_all_by_entity_type(EntityType.PARTNER_INVITATION, filters={'token': token})
        if not matches:
            return None

        invitation = matches[0]
        if invitation.expires_at < utc_now():
            if invitation.status == InvitationStatus.PENDING:
                self._update_invitation(invitation.id, {'status': InvitationStatus.EXPIRED})
                logger.info(f"Partner invitation expired: {invitation.id}")
            return None

        return invitation

    def accept_invitation(self, token: str, accepting_user_id: str) -> Prenup:
        """
        Accept an invitation: assign the accepting user as partner.

        Raises:
            ValidationError: Unknown or expired token
            ConflictError: Invitation already processed, or prenup already has a partner
        """
        invitation = self.get_invitation(token)
        if invitation is None:
            raise ValidationError("Invalid or expired invitation")

        if invitation.status != InvitationStatus.PENDING:
            raise ConflictError("Invitation has already been processed", resource_id=invitation.id)

        prenup = self.add_partner(invitation.prenup_id, accepting_user_id)
        self._update_invitation(invitation.id, {'status': InvitationStatus.ACCEPTED})

        logger.info(f"Partner invitation accepted: {invitation.id}")
        return prenup

    def _update_invitation(self, invitation_id: str, updates: Dict[str, Any]) -> PartnerInvitation:
        return self.store.update(EntityType.PARTNER_INVITATION, invitation_id, updates, create_new_version=False)

    # =========================================================================
    # Aggregates
    # =========================================================================

    def get_prenup_with_users(self, prenup_id: str) -> Optional[Dict[str, Any]]:
        """
        The prenup as a dictionary with sanitized ``creator`` and ``partner``
        plus its ``documents``, ``signatures`` and ``state_requirements``.
        """
        prenup = self.get_prenup(prenup_id)
        if prenup is None:
            return None

        creator = self.user_service.get_user_by_id(prenup.created_by)
        partner = self.user_service.get_user_by_id(prenup.partner_id) if prenup.partner_id else None

        documents: List[Document] = self.store.scan_all_by_entity_type(
            EntityType.DOCUMENT, filters={'prenup_id': prenup_id}
        )
        signatures: List[Signature] = self.store.scan_all_by_entity_type(
            EntityType.SIGNATURE, filters={'prenup_id': prenup_id}
        )

        result = prenup.model_dump()
        result['creator'] = self.user_service.sanitize_user(creator) if creator else None
        result['partner'] = self.user_service.sanitize_user(partner) if partner else None
        result['documents'] = [document.model_dump() for document in documents]
        result['signatures'] = [signature.model_dump() for signature in signatures]
        result['state_requirements'] = self.compliance.get_state_requirements(prenup.state).model_dump()
        return result
