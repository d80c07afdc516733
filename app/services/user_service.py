# backend/app/services/user_service.py

import logging
from typing import Any, Dict, List

from app.core.errors import DuplicateKeyError, ForbiddenError, FormValidationError, NotFoundError
from app.db.store import DocumentStore, In, Not
from app.schemas.user import User, UserUpdate
from app.services.question_service import is_valid_id

logger = logging.getLogger(__name__)

USERS = "users"
ROLES = ("admin", "student", "teacher_analyst", "teacher_respondent")
RESPONDENT_ROLES = ("student", "teacher_respondent")
EMAIL_TAKEN = "Email already registered"


class UserService:
    """
    User records. Accounts are created by the authentication service; this
    side reads, edits and soft deletes them.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, user_id: str) -> Dict[str, Any]:
        user = self.store.find_one(USERS, {"id": user_id}) if is_valid_id(user_id) else None
        if not user:
            raise NotFoundError("User not found")
        return user

    def list(self) -> List[Dict[str, Any]]:
        return self.store.find(USERS, order_by="created_at", descending=True)

    def assignable(self) -> List[Dict[str, Any]]:
        return self.store.find(USERS, {"role": In(list(RESPONDENT_ROLES))}, order_by="name")

    def read_as(self, current_user: User, user_id: str) -> Dict[str, Any]:
        if current_user.role != "admin" and current_user.id != user_id:
            logger.warning(f"User {current_user.id} attempted to read user {user_id}")
            raise ForbiddenError("Access denied")
        return self.get(user_id)

    def update(self, current_user: User, user_id: str, data: UserUpdate) -> Dict[str, Any]:
        """
        Edit a profile. Users may edit their own record, admins any record;
        only admins may change a role.
        """
        self.get(user_id)
        if current_user.role != "admin" and current_user.id != user_id:
            logger.warning(f"User {current_user.id} attempted to edit user {user_id}")
            raise ForbiddenError("Access denied")

        patch: Dict[str, Any] = {}
        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise FormValidationError("Name must not be empty")
            patch["name"] = name

        if data.anonymous is not None:
            patch["anonymous"] = data.anonymous

        if data.email is not None:
            email = str(data.email)
            # deleted accounts keep their address
            taken = self.store.find_one(USERS, {"email": email, "id": Not(user_id)}, include_deleted=True)
            if taken:
                raise FormValidationError(EMAIL_TAKEN)
            patch["email"] = email

        if data.role is not None:
            if data.role not in ROLES:
                raise FormValidationError("Invalid role")
            if current_user.role != "admin":
                logger.warning(f"User {current_user.id} attempted to change the role of {user_id}")
                raise ForbiddenError("Access denied. Only administrators can change roles")
            patch["role"] = data.role

        for field in ("city", "state", "institution"):
            value = getattr(data, field)
            if value is not None:
                patch[field] = value.strip()

        if not patch:
            return self.get(user_id)

        try:
            self.store.update(USERS, {"id": user_id, "deleted": False}, patch)
        except DuplicateKeyError:
            raise FormValidationError(EMAIL_TAKEN)
        logger.info(f"User {user_id} updated by {current_user.id}: {sorted(patch)}")
        return self.get(user_id)

    def delete(self, current_user: User, user_id: str) -> None:
        self.get(user_id)
        self.store.update(USERS, {"id": user_id}, {"deleted": True})
        logger.info(f"User {user_id} soft deleted by {current_user.id}")
