from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buildops.models.enums import Role
from buildops.models.user import User

logger = logging.getLogger(__name__)


class IdentityProvisioningError(Exception):
    """Raised when a staff account cannot be created."""


class IdentityProvisioner:
    """Creates login accounts for approved staff registrations."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_account(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: Role,
        phone: Optional[str] = None,
        region: Optional[str] = None,
    ) -> int:
        normalized = (email or "").lower().strip()
        if not normalized:
            raise IdentityProvisioningError("Email is required")
        if not password_hash:
            raise IdentityProvisioningError("No credential on file for this registration")
        if self.db.query(User.id).filter(User.email == normalized).first():
            raise IdentityProvisioningError(f"A user with email {normalized} already exists")

        user = User(
            email=normalized,
            hashed_password=password_hash,
            full_name=name,
            phone=phone,
            region=region,
            role=role,
            roles=[role.value],
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise IdentityProvisioningError(f"A user with email {normalized} already exists") from exc
        logger.info("staff_account_created", extra={"user_id": user.id})
        return user.id
