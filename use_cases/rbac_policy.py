"""Centralized Role-Based Access Control logic."""

import logging
from typing import Optional

from use_cases.errors import PermissionDeniedError
from use_cases.session_models import AdminUser, Capability, Role, has_capability

log = logging.getLogger(__name__)


def resolve_role(profile_repo, identity_id: str) -> Role:
    """Load the role from the identity's profile; no profile means viewer."""
    raw_role = profile_repo.get_role(identity_id)
    if raw_role is None:
        log.info("No profile for identity %s, treating as viewer", identity_id)
        return Role.VIEWER
    return Role.parse(raw_role)


def enforce(user: Optional[AdminUser], capability: Capability) -> bool:
    """
    Evaluates if the user holds the capability.
    Returns True if authorized, False otherwise. Denials are logged.

    This is a rendering/UX check only: the store's row-level policies remain
    the authority for every write.
    """
    authorized = has_capability(user, capability)
    if not authorized:
        log.warning(
            "RBAC denied: actor=%s role=%s capability=%s",
            user.id if user else None,
            user.role.value if user else None,
            capability.value,
        )
    return authorized


def require(user: Optional[AdminUser], capability: Capability) -> None:
    if not enforce(user, capability):
        raise PermissionDeniedError("No tenés permisos para realizar esta acción.")
