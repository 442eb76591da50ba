"""
User Service

Business logic for user management operations.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from userhub.modules.errors import ClientInputError, ConflictError, UserHubError
from userhub.modules.users.domain.user import User, DEFAULT_ROLE
from userhub.modules.users.domain.validation import (
    validate_user_data,
    normalize_user_data,
)
from userhub.modules.users.repositories.user_repository import UserRepository

logger = logging.getLogger("userhub.users.service")


class UserService:
    """Service for user business logic."""

    def __init__(self, repository: Optional[UserRepository] = None):
        self.repository = repository or UserRepository()

    def _validated(self, data: Any, partial: bool) -> Dict[str, Any]:
        issue = validate_user_data(data, partial=partial)
        if issue:
            logger.debug(f"[UserService] validation failed: {issue.field} - {issue.message}")
            raise ClientInputError("Validation failed", details=[issue.to_dict()])
        return normalize_user_data(data)

    def list_users(
        self,
        role_filter: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Tuple[List[User], int]:
        """List users; returns the (possibly truncated) page and the filtered total."""
        logger.debug(f"[UserService.list_users] role_filter={role_filter}, limit={limit}")
        with self.repository.transaction():
            filtered = self.repository.list(role_filter=role_filter)
        page = filtered if limit is None else filtered[:limit]
        return page, len(filtered)

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        logger.debug(f"[UserService.get_user] user_id={user_id}")
        return self.repository.get_by_id(user_id)

    def create_user(self, data: Any) -> User:
        """Validate and create a new user account."""
        fields = self._validated(data, partial=False)
        logger.debug(f"[UserService.create_user] email={fields['email']}, role={fields.get('role', DEFAULT_ROLE)}")

        try:
            with self.repository.transaction():
                if self.repository.get_by_email(fields["email"]):
                    raise ConflictError("Email already exists")
                user = self.repository.create(
                    name=fields["name"],
                    email=fields["email"],
                    role=fields.get("role", DEFAULT_ROLE)
                )
        except UserHubError:
            raise
        except Exception as e:
            logger.error(f"[UserService.create_user] ERROR: {e}", exc_info=True)
            raise

        logger.info(f"Created user id={user.id} email={user.email}")
        return user

    def update_user(self, user_id: int, data: Any) -> Optional[User]:
        """Validate the supplied fields and merge them into an existing user."""
        updates = self._validated(data, partial=True)
        logger.debug(f"[UserService.update_user] user_id={user_id}, updates={list(updates.keys())}")

        try:
            with self.repository.transaction():
                current = self.repository.get_by_id(user_id)
                if current is None:
                    return None
                email = updates.get("email")
                if email is not None and email != current.email:
                    holder = self.repository.get_by_email(email)
                    if holder is not None and holder.id != user_id:
                        raise ConflictError("Email already exists")
                user = self.repository.update(user_id, updates)
        except UserHubError:
            raise
        except Exception as e:
            logger.error(f"[UserService.update_user] ERROR: {e}", exc_info=True)
            raise

        logger.info(f"Updated user id={user_id} fields={sorted(updates)}")
        return user

    def delete_user(self, user_id: int) -> Optional[User]:
        """Remove a user; the id is never handed out again."""
        logger.debug(f"[UserService.delete_user] user_id={user_id}")
        user = self.repository.delete(user_id)
        if user:
            logger.info(f"Deleted user id={user_id}")
        return user
