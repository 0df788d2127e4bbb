"""Route gate for the administrative surface."""

from dataclasses import dataclass
from typing import Iterable, Optional

from use_cases.session_store import SessionEvent

INTAKE_ROUTE = "/"
CALLBACK_ROUTE = "/auth/callback"
LOGIN_ROUTE = "/admin/login"
DASHBOARD_ROUTE = "/admin/dashboard"
UPDATE_PASSWORD_ROUTE = "/admin/update-password"

ADMIN_PREFIX = "/admin"
PUBLIC_ADMIN_ROUTES = frozenset({LOGIN_ROUTE})
ADMIN_ROUTES = frozenset({LOGIN_ROUTE, DASHBOARD_ROUTE, UPDATE_PASSWORD_ROUTE})


@dataclass(frozen=True)
class GuardDecision:
    loading: bool
    redirect_to: Optional[str]
    reason: str


def normalize_route(raw: Optional[str]) -> str:
    """Turn ``admin/login``, ``/admin/login/`` or ``None`` into a canonical path."""
    if not raw:
        return INTAKE_ROUTE
    path = "/" + str(raw).strip().strip("/")
    return path


def is_guarded(path: str) -> bool:
    return path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/")


def is_public(path: str) -> bool:
    return path in PUBLIC_ADMIN_ROUTES


def _event_override(events: Iterable[SessionEvent]) -> Optional[str]:
    # Later events win, like successive navigations.
    target = None
    for event in events:
        if event == SessionEvent.PASSWORD_RECOVERY:
            target = UPDATE_PASSWORD_ROUTE
        elif event == SessionEvent.SIGNED_OUT:
            target = LOGIN_ROUTE
    return target


def _redirect(path: str, target: str, reason: str) -> GuardDecision:
    if target == path:
        return GuardDecision(loading=False, redirect_to=None, reason=reason)
    return GuardDecision(loading=False, redirect_to=target, reason=reason)


def evaluate(
    path: str,
    has_session: bool,
    events: Iterable[SessionEvent] = (),
    checked: bool = True,
) -> GuardDecision:
    """Decide what a navigation to ``path`` should do.

    ``events`` are the session events received since the last evaluation;
    ``checked`` is False while the initial session check is still pending.
    """
    override = _event_override(events)
    if override == UPDATE_PASSWORD_ROUTE:
        return _redirect(path, override, "password_recovery")
    if override == LOGIN_ROUTE:
        return _redirect(path, override, "signed_out")

    if not checked:
        return GuardDecision(loading=True, redirect_to=None, reason="checking_session")

    if not has_session and not is_public(path):
        return GuardDecision(loading=False, redirect_to=LOGIN_ROUTE, reason="auth_required")
    if has_session and is_public(path):
        return GuardDecision(loading=False, redirect_to=DASHBOARD_ROUTE, reason="already_authenticated")

    return GuardDecision(loading=False, redirect_to=None, reason="allowed")
