"""
User Service

Registration, lookup and authentication for application accounts.

- Passwords are bcrypt-hashed before they reach the store; the stored
  ``password`` attribute never holds plain text.
- E-mail lookups scan every current USER record (there is no e-mail index on
  the wide table), so ``create_user`` pays one full scan to enforce uniqueness.
- Access tokens are HS256 JWTs carrying the user id and e-mail.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

import bcrypt
import jwt

from ..config import AuthConfig
from ..core import VersionedEntityStore
from ..exceptions import ConflictError, ValidationError
from ..models import EntityType, User, UserCreate
from ..utils import utc_now

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the password
BCRYPT_MAX_BYTES = 72


class UserService:
    """Account management on top of the versioned entity store."""

    def __init__(self, store: VersionedEntityStore, auth_config: Optional[AuthConfig] = None):
        self.store = store
        self.auth_config = auth_config or AuthConfig()

    # =========================================================================
    # Password hashing
    # =========================================================================

    def hash_password(self, password: str) -> str:
        password_bytes = password.encode('utf-8')[:BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=self.auth_config.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode('utf-8')

    def verify_password(self, user: User, password: str) -> bool:
        """Check a plain-text password against the user's stored hash."""
        if not user.password:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8')[:BCRYPT_MAX_BYTES], user.password.encode('utf-8'))
        except ValueError as e:
            logger.warning(f"Stored password hash for user {user.id} is not a bcrypt hash: {e}")
            return False

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_user(self, user_data: UserCreate) -> User:
        """
        Register a new user.

        Raises:
            ConflictError: A user with the same e-mail already exists
        """
        if self.get_user_by_email(user_data.email):
            raise ConflictError("User already exists with this email", resource_id=user_data.email)

        user = User(
            email=user_data.email,
            password=self.hash_password(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            role=user_data.role,
        )

        created = self.store.create(user)
        logger.info(f"Created user: {created.email}")
        return created

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.store.get_by_id(EntityType.USER, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Find the current record of the user with this e-mail (full scan)."""
        matches = self.store.scan_all_by_entity_type(EntityType.USER, filters={'email': email.strip().lower()})
        if len(matches) > 1:
            logger.warning(f"Found {len(matches)} users sharing email {email}")
        return matches[0] if matches else None

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> User:
        """
        Versioned update of a user's profile.

        A ``password`` in ``updates`` is plain text and is hashed here. Changing
        ``email`` re-checks uniqueness.

        Raises:
            EntityNotFoundError: No such user
            ConflictError: The new e-mail belongs to another user
        """
        updates = dict(updates)

        if updates.get('password'):
            updates['password'] = self.hash_password(updates['password'])

        if updates.get('email'):
            updates['email'] = updates['email'].strip().lower()
            existing = self.get_user_by_email(updates['email'])
            if existing and existing.id != user_id:
                raise ConflictError("User already exists with this email", resource_id=updates['email'])

        return self.store.update(EntityType.USER, user_id, updates, create_new_version=True)

    def delete_user(self, user_id: str) -> None:
        self.store.delete(EntityType.USER, user_id)
        logger.info(f"Deleted user: {user_id}")

    def list_users(
        self,
        limit: Optional[int] = None,
        last_key: Optional[dict] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[dict]]:
        """One page of sanitized users plus the token for the next page."""
        users, next_key = self.store.query_by_entity_type(EntityType.USER, limit=limit, last_key=last_key)
        return [self.sanitize_user(user) for user in users], next_key

    def list_user_versions(self, user_id: str) -> List[User]:
        return self.store.list_versions(EntityType.USER, user_id)

    # =========================================================================
    # Tokens
    # =========================================================================

    def generate_token(self, user: User) -> str:
        """
        Issue an access token for ``user``.

        Raises:
            ValidationError: No JWT secret is configured
        """
        if not self.auth_config.jwt_secret:
            raise ValidationError("JWT secret not configured")

        payload = {
            'id': user.id,
            'email': user.email,
            'exp': utc_now() + timedelta(days=self.auth_config.jwt_expires_in_days),
        }
        return jwt.encode(payload, self.auth_config.jwt_secret, algorithm=self.auth_config.jwt_algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode a token; returns ``{'id', 'email'}`` or None if it is invalid or expired."""
        if not self.auth_config.jwt_secret:
            logger.warning("Token verification attempted without a configured JWT secret")
            return None

        try:
            payload = jwt.decode(token, self.auth_config.jwt_secret, algorithms=[self.auth_config.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired access token")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected invalid access token: {e}")
            return None

        return {'id': payload.get('id'), 'email': payload.get('email')}

    @staticmethod
    def sanitize_user(user: User) -> Dict[str, Any]:
        """Dictionary view of a user without the password hash."""
        return user.model_dump(exclude={'password'})
