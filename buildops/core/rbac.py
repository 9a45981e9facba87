from __future__ import annotations

from typing import Iterable, Optional

from fastapi import HTTPException, status

from buildops.models.enums import Role


# Roles that may decide any workflow request regardless of category routing.
OVERSIGHT_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN})

PROCUREMENT_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.PROCUREMENT_TEAM, Role.PROJECT_HEAD})
ACCOUNTS_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.ACCOUNTS_TEAM})
VALIDATION_APPROVER_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.MANAGER})


def _coerce_role(value: Role | str | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        try:
            return Role[str(value)]
        except KeyError:
            return None


def roles_for_user(user) -> list[Role]:
    roles: list[Role] = []
    raw_roles = getattr(user, "roles", None)
    if raw_roles:
        for raw in raw_roles:
            role = _coerce_role(raw)
            if role and role not in roles:
                roles.append(role)
    primary = _coerce_role(getattr(user, "role", None))
    if primary and primary not in roles:
        roles.insert(0, primary)
    return roles


def user_has_role(user, role: Role) -> bool:
    return role in roles_for_user(user)


def user_has_any_role(user, roles: Iterable[Role]) -> bool:
    user_roles = set(roles_for_user(user))
    return any(role in user_roles for role in roles)


def require_roles(user, required_roles: Iterable[Role]) -> None:
    """
    Require that the user has at least one of the specified roles.
    Raises HTTPException with 403 status if user doesn't have required roles.
    """
    required = list(required_roles)
    if not user_has_any_role(user, required):
        role_names = ", ".join(role.value for role in required)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required roles: {role_names}",
        )
