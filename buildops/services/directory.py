from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from buildops.core import rbac
from buildops.models.enums import Role
from buildops.models.user import User


class UserDirectory:
    """Id-keyed user lookups used by the workflow services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            return None
        return self.db.get(User, user_id)

    def display_name(self, user_id: Optional[int], default: str = "Unassigned") -> str:
        user = self.get(user_id)
        if not user:
            return default
        return user.display_name

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower().strip()).first()

    def active_users_with_roles(self, roles: Iterable[Role]) -> list[User]:
        wanted = list(roles)
        if not wanted:
            return []
        # Secondary roles live in a JSON column, so the role match happens in Python.
        users = self.db.query(User).filter(User.is_active.is_(True)).order_by(User.id.asc()).all()
        return [user for user in users if rbac.user_has_any_role(user, wanted)]
