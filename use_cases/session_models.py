"""Session DTOs and the role/capability table shared across application layers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from use_cases.errors import ValidationError


class Role(str, Enum):
    VIEWER = "viewer"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Role":
        """Unknown or missing role strings fall back to least privilege."""
        try:
            return cls(raw)
        except ValueError:
            return cls.VIEWER

    @classmethod
    def require(cls, raw: Any) -> "Role":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Rol desconocido: {raw!r}") from None

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]


class Capability(str, Enum):
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_AREAS = "MANAGE_AREAS"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.VIEWER: frozenset(),
    Role.ADMIN: frozenset({Capability.MANAGE_USERS}),
    Role.SUPERADMIN: frozenset({Capability.MANAGE_USERS, Capability.MANAGE_AREAS}),
}

ROLE_LABELS: Dict[Role, str] = {
    Role.VIEWER: "Visualizador",
    Role.ADMIN: "Administrador",
    Role.SUPERADMIN: "Superadmin",
}


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


@dataclass(frozen=True)
class AdminUser:
    id: str
    email: str
    role: Role


def _role_of(subject: Union[AdminUser, Role, None]) -> Role:
    if subject is None:
        return Role.VIEWER
    if isinstance(subject, Role):
        return subject
    return subject.role


def has_capability(subject: Union[AdminUser, Role, None], capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[_role_of(subject)]


def can_manage_users(subject: Union[AdminUser, Role, None]) -> bool:
    return has_capability(subject, Capability.MANAGE_USERS)


def can_manage_areas(subject: Union[AdminUser, Role, None]) -> bool:
    return has_capability(subject, Capability.MANAGE_AREAS)
