"""Authentication flow orchestration (application layer)."""

import logging
from dataclasses import dataclass
from typing import List, Literal, Optional

import auth
from use_cases import rbac_policy, session_guard
from use_cases.errors import BarrioError
from use_cases.session_models import AdminUser, AuthSession, Role
from use_cases.session_store import SessionEvent
from utils import session_manager

log = logging.getLogger(__name__)

AuthFlowStatus = Literal["CONTINUE", "REDIRECT", "STOP"]


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth flow orchestration."""

    status: AuthFlowStatus
    reason: str
    user_id: Optional[str] = None
    redirect_to: Optional[str] = None


def _drain_events(store) -> List[SessionEvent]:
    events: List[SessionEvent] = []
    unsubscribe = store.subscribe(lambda event, _session: events.append(event))
    try:
        store.deliver_pending()
    finally:
        unsubscribe()
    return events


def resolve_admin_user(session: AuthSession) -> AdminUser:
    """Role lookup for the signed-in identity.

    Runs on every guarded rerun so a role change made by another admin, or a
    deleted profile, takes effect on the signed-in user's next interaction.
    """
    try:
        role = rbac_policy.resolve_role(auth.get_profile_repo(), session.user_id)
    except BarrioError as exc:
        log.warning("Role lookup failed for %s, using viewer: %s", session.user_id, exc)
        role = Role.VIEWER
    user = AdminUser(id=session.user_id, email=session.email, role=role)
    session_manager.st.session_state.admin_user = user
    return user


def ensure_authenticated_session(route: str) -> AuthFlowResult:
    """Run the route guard for an admin route and return a control-flow status."""
    session_manager.init_session_state()
    store = session_manager.restore_session()
    events = _drain_events(store)

    if SessionEvent.SIGNED_OUT in events:
        session_manager.st.session_state.admin_user = None
    if store.session is not None:
        session_manager.persist_refresh_token(store.session.refresh_token)

    decision = session_guard.evaluate(route, store.session is not None, events, store.initialized)
    if decision.loading:
        return AuthFlowResult(status="STOP", reason=decision.reason)
    if decision.redirect_to:
        return AuthFlowResult(status="REDIRECT", reason=decision.reason, redirect_to=decision.redirect_to)

    if store.session is None:
        return AuthFlowResult(status="CONTINUE", reason=decision.reason)

    user = resolve_admin_user(store.session)
    return AuthFlowResult(status="CONTINUE", reason=decision.reason, user_id=user.id)
