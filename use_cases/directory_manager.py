"""User directory administration: invite, role changes, resets and deletion.

Invite and delete touch two independent backends (Supabase Auth and the
``profiles`` table) with no shared transaction, so each is run as a short
sequential saga: steps execute in order, every step reports its own outcome,
and a later failure never rolls back an earlier success.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from use_cases import rbac_policy
from use_cases.domain_models import Profile
from use_cases.errors import BarrioError, UnknownBackendError, ValidationError
from use_cases.session_guard import UPDATE_PASSWORD_ROUTE
from use_cases.session_models import AdminUser, Capability, Role

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class StepResult:
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SagaResult:
    success: bool
    steps: Tuple[StepResult, ...] = ()
    error: Optional[BarrioError] = None
    identity_id: Optional[str] = None

    def step(self, name: str) -> Optional[StepResult]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    @property
    def partial_failures(self) -> Tuple[StepResult, ...]:
        return tuple(step for step in self.steps if not step.ok)


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if not EMAIL_RE.match(email):
        raise ValidationError("Ingresá un email válido.")
    return email


def _run_step(name: str, action: Callable[[], object]) -> Tuple[StepResult, Optional[BarrioError], object]:
    try:
        value = action()
    except BarrioError as exc:
        return StepResult(name=name, ok=False, error=str(exc)), exc, None
    except Exception as exc:
        log.exception("Step %s failed unexpectedly", name)
        return StepResult(name=name, ok=False, error=str(exc)), UnknownBackendError(str(exc)), None
    return StepResult(name=name, ok=True), None, value


class DirectoryManager:
    def __init__(self, identity, profiles, actor: Optional[AdminUser]):
        self.identity = identity
        self.profiles = profiles
        self.actor = actor

    def _denied(self) -> Optional[SagaResult]:
        try:
            rbac_policy.require(self.actor, Capability.MANAGE_USERS)
        except BarrioError as exc:
            return SagaResult(success=False, error=exc)
        return None

    def invite(self, email: str) -> SagaResult:
        denied = self._denied()
        if denied:
            return denied
        try:
            email = validate_email(email)
        except ValidationError as exc:
            return SagaResult(success=False, error=exc)

        redirect_to = self.identity.redirect_url(UPDATE_PASSWORD_ROUTE)
        provision, error, identity_id = _run_step(
            "provision_identity", lambda: self.identity.invite_identity(email, redirect_to)
        )
        if error is not None:
            log.error("Invite for %s failed: %s", email, error)
            return SagaResult(success=False, steps=(provision,), error=error)

        # Upsert keeps repeated invites idempotent at the profile level.
        upsert, upsert_error, _ = _run_step(
            "upsert_profile", lambda: self.profiles.upsert_profile(identity_id, Role.VIEWER.value, email)
        )
        if upsert_error is not None:
            log.error("Identity %s invited but profile upsert failed: %s", identity_id, upsert_error)
        else:
            log.info("Invited %s as viewer (identity %s)", email, identity_id)
        return SagaResult(success=True, steps=(provision, upsert), identity_id=identity_id)

    def update_role(self, identity_id: str, new_role: Role) -> SagaResult:
        denied = self._denied()
        if denied:
            return denied
        try:
            role = Role.require(new_role)
        except ValidationError as exc:
            return SagaResult(success=False, steps=(), error=exc, identity_id=identity_id)
        step, error, _ = _run_step("update_role", lambda: self.profiles.update_role(identity_id, role.value))
        if error is not None:
            log.error("Role update for %s failed: %s", identity_id, error)
            return SagaResult(success=False, steps=(step,), error=error, identity_id=identity_id)
        log.info("Identity %s now has role %s", identity_id, role.value)
        return SagaResult(success=True, steps=(step,), identity_id=identity_id)

    def reset_password(self, email: str) -> SagaResult:
        denied = self._denied()
        if denied:
            return denied
        redirect_to = self.identity.redirect_url(UPDATE_PASSWORD_ROUTE)
        step, error, _ = _run_step("send_reset", lambda: self.identity.send_password_reset(email, redirect_to))
        if error is not None:
            return SagaResult(success=False, steps=(step,), error=error)
        return SagaResult(success=True, steps=(step,))

    def delete_user(self, identity_id: str) -> SagaResult:
        denied = self._denied()
        if denied:
            return denied

        # Profile goes first: without ON DELETE CASCADE the identity delete
        # would fail on the foreign key.
        profile_step, profile_error, _ = _run_step(
            "delete_profile", lambda: self.profiles.delete_profile(identity_id)
        )
        if profile_error is not None:
            log.error("Profile delete for %s failed, still deleting identity: %s", identity_id, profile_error)

        identity_step, identity_error, _ = _run_step(
            "delete_identity", lambda: self.identity.delete_identity(identity_id)
        )
        steps = (profile_step, identity_step)
        if identity_error is not None:
            log.error("Identity delete for %s failed: %s", identity_id, identity_error)
            return SagaResult(success=False, steps=steps, error=identity_error, identity_id=identity_id)
        return SagaResult(success=True, steps=steps, identity_id=identity_id)

    def list_users(self) -> "DirectoryListing":
        profiles = self.profiles.list_profiles()
        try:
            identity_ids = self.identity.list_identity_ids()
        except BarrioError as exc:
            log.warning("Cannot cross-check profiles against identities: %s", exc)
            return DirectoryListing(users=profiles, orphans=[], verified=False)

        users = [p for p in profiles if p.id in identity_ids]
        orphans = [p for p in profiles if p.id not in identity_ids]
        if orphans:
            log.warning("%d orphaned profile(s) without identity", len(orphans))
        return DirectoryListing(users=users, orphans=orphans, verified=True)


@dataclass
class DirectoryListing:
    users: List[Profile] = field(default_factory=list)
    orphans: List[Profile] = field(default_factory=list)
    verified: bool = False


class DirectoryCache:
    """Local copy of the user list with optimistic role edits.

    A failed role change is compensated by re-reading the authoritative list.
    """

    def __init__(self, manager: DirectoryManager):
        self.manager = manager
        self.listing = DirectoryListing()
        self.loaded = False
        self.refresh_error: Optional[BarrioError] = None

    @property
    def users(self) -> List[Profile]:
        return self.listing.users

    def refresh(self) -> DirectoryListing:
        self.listing = self.manager.list_users()
        self.loaded = True
        self.refresh_error = None
        return self.listing

    def change_role(self, identity_id: str, new_role: Role) -> SagaResult:
        try:
            role = Role.require(new_role)
        except ValidationError as exc:
            return SagaResult(success=False, steps=(), error=exc, identity_id=identity_id)
        previous = list(self.listing.users)
        self.listing.users = [
            replace(u, role=role) if u.id == identity_id else u for u in self.listing.users
        ]
        result = self.manager.update_role(identity_id, role)
        if not result.success:
            self.listing.users = previous
            try:
                self.refresh()
            except BarrioError as exc:
                self.refresh_error = exc
                log.error("Could not re-read users after failed role change: %s", exc)
        return result

    def invite(self, email: str) -> SagaResult:
        result = self.manager.invite(email)
        if result.success:
            try:
                self.refresh()
            except BarrioError as exc:
                # The invite went out; the list is stale until the next refresh.
                self.refresh_error = exc
                log.error("Could not re-read users after invite: %s", exc)
        return result

    def delete(self, identity_id: str) -> SagaResult:
        result = self.manager.delete_user(identity_id)
        if result.success:
            self.listing.users = [u for u in self.listing.users if u.id != identity_id]
        return result
