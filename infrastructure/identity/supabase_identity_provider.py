import logging
from typing import Any, Callable, Dict, Optional, Set

from use_cases.errors import (
    AuthError,
    ExchangeError,
    NotAuthenticatedError,
    PermissionDeniedError,
    SendFailureError,
    UnknownBackendError,
    classify_backend_error,
)
from use_cases.session_models import AuthSession
from use_cases.session_store import SessionEvent

log = logging.getLogger(__name__)

# Email-link types that must end on the forced password update screen.
RECOVERY_LINK_TYPES = frozenset({"recovery", "invite"})


def _to_auth_session(payload: Any) -> Optional[AuthSession]:
    """Accept either an AuthResponse (``.session``) or a bare Session."""
    session = getattr(payload, "session", payload)
    if session is None or not getattr(session, "access_token", None):
        return None
    user = getattr(session, "user", None) or getattr(payload, "user", None)
    return AuthSession(
        user_id=str(user.id) if user is not None else "",
        email=(getattr(user, "email", None) or "") if user is not None else "",
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseIdentityProvider:
    """Identity gateway over Supabase Auth.

    ``client`` is the browser-scoped (anon key) client holding this context's
    session; ``admin_client`` is the service-role client used for invite,
    identity deletion and reset emails. Listeners registered with
    ``subscribe`` receive a ``SessionEvent`` after every lifecycle change.
    """

    def __init__(self, client, admin_client=None, app_url: str = "http://localhost:8501"):
        self.client = client
        self.admin_client = admin_client
        self.app_url = app_url.rstrip("/")
        self._listeners: Dict[int, Callable[[SessionEvent, Optional[AuthSession]], None]] = {}
        self._next_listener_id = 0

    def redirect_url(self, route: str) -> str:
        return f"{self.app_url}/?page={route.strip('/')}"

    def subscribe(self, listener: Callable[[SessionEvent, Optional[AuthSession]], None]) -> Callable[[], None]:
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    def _notify(self, event: SessionEvent, session: Optional[AuthSession] = None) -> None:
        for listener in list(self._listeners.values()):
            listener(event, session)

    def _require_session(self, response: Any, action: str) -> AuthSession:
        session = _to_auth_session(response)
        if session is None:
            raise AuthError(f"No se pudo iniciar la sesión ({action}).")
        return session

    # --- Sign-in flows ---

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password({"email": email.strip(), "password": password})
        except Exception as exc:
            raise classify_backend_error(exc, AuthError) from exc
        session = self._require_session(response, "password")
        log.info("Password sign-in for %s", session.email or email)
        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def sign_in_with_one_time_code(
        self,
        email: str,
        allow_new_identity: bool,
        redirect_to: Optional[str] = None,
    ) -> None:
        options: Dict[str, Any] = {"should_create_user": allow_new_identity}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        try:
            self.client.auth.sign_in_with_otp({"email": email.strip(), "options": options})
        except Exception as exc:
            raise classify_backend_error(exc, SendFailureError) from exc
        log.info("One-time code sent (new identities allowed: %s)", allow_new_identity)

    def verify_one_time_code(self, email: str, code: str) -> AuthSession:
        try:
            response = self.client.auth.verify_otp({"email": email.strip(), "token": code.strip(), "type": "email"})
        except Exception as exc:
            raise classify_backend_error(exc, AuthError) from exc
        session = self._require_session(response, "otp")
        self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def verify_email_link(self, token_hash: str, link_type: str) -> AuthSession:
        """Complete an invite / recovery / magic link carrying a token hash."""
        try:
            response = self.client.auth.verify_otp({"token_hash": token_hash, "type": link_type})
        except Exception as exc:
            raise classify_backend_error(exc, ExchangeError) from exc
        session = self._require_session(response, link_type)
        if link_type in RECOVERY_LINK_TYPES:
            self._notify(SessionEvent.PASSWORD_RECOVERY, session)
        else:
            self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def exchange_authorization_code(self, code: str) -> AuthSession:
        try:
            response = self.client.auth.exchange_code_for_session({"auth_code": code})
            session = self._require_session(response, "code")
        except Exception as exc:
            error = classify_backend_error(exc, ExchangeError)
            if not isinstance(error, ExchangeError):
                error = ExchangeError(str(error))
            log.warning("Authorization code exchange failed: %s", error)
            self._notify(SessionEvent.CODE_EXCHANGE_FAILED, None)
            raise error from exc
        self._notify(SessionEvent.CODE_EXCHANGED, session)
        return session

    # --- Session lifecycle ---

    def update_password(self, new_password: str) -> None:
        if self.get_active_session() is None:
            raise NotAuthenticatedError("Tu sesión expiró. Ingresá nuevamente para cambiar la contraseña.")
        try:
            self.client.auth.update_user({"password": new_password})
        except Exception as exc:
            raise classify_backend_error(exc, AuthError) from exc
        self._notify(SessionEvent.USER_UPDATED, self.get_active_session())

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as exc:
            # Local session is dropped regardless of the server-side revocation.
            log.warning("Server-side sign_out failed: %s", exc)
        self._notify(SessionEvent.SIGNED_OUT, None)

    def get_active_session(self) -> Optional[AuthSession]:
        try:
            return _to_auth_session(self.client.auth.get_session())
        except Exception as exc:
            raise classify_backend_error(exc, AuthError) from exc

    def restore_session(self, refresh_token: str) -> Optional[AuthSession]:
        try:
            response = self.client.auth.refresh_session(refresh_token)
        except Exception as exc:
            raise classify_backend_error(exc, AuthError) from exc
        session = _to_auth_session(response)
        if session is not None:
            self._notify(SessionEvent.TOKEN_REFRESHED, session)
        return session

    # --- Admin-scoped operations (service role) ---

    def _admin(self):
        if self.admin_client is None:
            raise PermissionDeniedError(
                "Falta SUPABASE_SERVICE_ROLE_KEY: las acciones administrativas no están disponibles."
            )
        return self.admin_client

    def invite_identity(self, email: str, redirect_to: str) -> str:
        admin = self._admin()
        try:
            response = admin.auth.admin.invite_user_by_email(email, {"redirect_to": redirect_to})
        except Exception as exc:
            raise classify_backend_error(exc, SendFailureError) from exc
        user = getattr(response, "user", None)
        if user is None:
            raise SendFailureError(f"La invitación a {email} no devolvió un usuario.")
        return str(user.id)

    def delete_identity(self, identity_id: str) -> None:
        admin = self._admin()
        try:
            admin.auth.admin.delete_user(identity_id)
        except Exception as exc:
            raise classify_backend_error(exc, UnknownBackendError) from exc

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        admin = self._admin()
        try:
            admin.auth.reset_password_for_email(email, {"redirect_to": redirect_to})
        except Exception as exc:
            raise classify_backend_error(exc, SendFailureError) from exc

    def list_identity_ids(self, per_page: int = 1000) -> Set[str]:
        admin = self._admin()
        identity_ids: Set[str] = set()
        page = 1
        try:
            while True:
                users = admin.auth.admin.list_users(page=page, per_page=per_page) or []
                identity_ids.update(str(u.id) for u in users)
                if len(users) < per_page:
                    break
                page += 1
        except Exception as exc:
            raise classify_backend_error(exc, UnknownBackendError) from exc
        return identity_ids
