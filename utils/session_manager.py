import logging
from contextlib import contextmanager
from urllib.parse import unquote

import streamlit as st
import streamlit.components.v1 as components

import auth
from use_cases.session_guard import normalize_route
from use_cases.session_store import SessionStore

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

Este archivo administra el estado de la sesión de Streamlit de cada navegador.

Claves de st.session_state:

session_store: SessionStore
    sesión admin activa y cola de eventos de sesión
    default: SessionStore()
    owner: session_manager

admin_user: AdminUser | None
    identidad admin con el rol resuelto
    default: None
    owner: auth_flow

route: str
    ruta actual (espejo de ?page=)
    default: "/"
    owner: session_manager

pending_action: str | None
    acción de red en curso; la marca el on_click del botón antes del rerun,
    así el control ya se dibuja deshabilitado mientras corre la llamada
    default: None
    owner: views

flash: list[tuple[str, str]]
    mensajes (nivel, texto) que se muestran una vez en el próximo rerun
    default: []
    owner: views

revoked_refresh_token: str | None
    token de la cookie invalidado por logout; la cookie del request no cambia
    hasta recargar la página
    default: None
    owner: session_manager

persisted_refresh_token: str | None
    último refresh token escrito en la cookie del navegador
    default: None
    owner: session_manager

supabase_client / intake_client / identity_provider / intake_provider
    clientes por navegador, creados a demanda
    owner: auth

intake_gate, intake_images, lifecycle, directory_cache
    estado de vistas
    owner: views
"""

REFRESH_COOKIE = "barrio_refresh_token"
COOKIE_MAX_AGE = 2592000  # 30 days


def init_session_state():
    if "session_store" not in st.session_state:
        st.session_state.session_store = SessionStore()
    if "admin_user" not in st.session_state:
        st.session_state.admin_user = None
    if "route" not in st.session_state:
        st.session_state.route = "/"
    if "pending_action" not in st.session_state:
        st.session_state.pending_action = None
    if "persisted_refresh_token" not in st.session_state:
        st.session_state.persisted_refresh_token = None
    if "flash" not in st.session_state:
        st.session_state.flash = []
    if "revoked_refresh_token" not in st.session_state:
        st.session_state.revoked_refresh_token = None


def get_session_store() -> SessionStore:
    init_session_state()
    return st.session_state.session_store


def _read_refresh_cookie():
    try:
        token = st.context.cookies.get(REFRESH_COOKIE)
    except Exception:
        # During some tests contexts might not be fully available
        token = None
    token = unquote(token) if token else None
    if token and token == st.session_state.get("revoked_refresh_token"):
        return None
    return token


def restore_session() -> SessionStore:
    """Hydrate the store once per browser session from the refresh cookie."""
    store = get_session_store()
    if not store.initialized:
        try:
            provider = auth.get_identity_provider()
        except Exception as exc:
            log.error(f"❌ Identity provider unavailable: {exc}")
            store.mark_checked(None)
            return store
        token = _read_refresh_cookie()
        session = store.hydrate(provider, refresh_token=token)
        if token and session is None:
            clear_browser_refresh_token()
    return store


def persist_refresh_token(refresh_token):
    if not refresh_token or refresh_token == st.session_state.get("persisted_refresh_token"):
        return
    components.html(
        f"""
        <script>
            var cookieStr = "{REFRESH_COOKIE}=" + encodeURIComponent("{refresh_token}") + "; path=/; max-age={COOKIE_MAX_AGE}; SameSite=Lax";
            document.cookie = cookieStr;
            try {{
                window.parent.document.cookie = cookieStr;
            }} catch (e) {{}}
        </script>
        """,
        height=0,
    )
    st.session_state.persisted_refresh_token = refresh_token


def clear_browser_refresh_token():
    components.html(
        f"""
        <script>
          document.cookie = "{REFRESH_COOKIE}=; path=/; max-age=0; SameSite=Lax";
          try {{ window.parent.document.cookie = "{REFRESH_COOKIE}=; path=/; max-age=0; SameSite=Lax"; }} catch (e) {{}}
        </script>
        """,
        height=0,
    )
    st.session_state.persisted_refresh_token = None


def current_route() -> str:
    page = st.query_params.get("page")
    if page:
        route = normalize_route(page)
    else:
        route = st.session_state.get("route", "/")
    st.session_state.route = route
    return route


def navigate(route: str, **params):
    route = normalize_route(route)
    st.session_state.route = route
    st.query_params.clear()
    if route != "/":
        st.query_params["page"] = route.strip("/")
    for key, value in params.items():
        st.query_params[key] = value
    st.rerun()


def is_pending(action=None) -> bool:
    pending = st.session_state.get("pending_action")
    if action is None:
        return pending is not None
    return pending == action


def begin_action(action: str):
    """``on_click`` callback: callbacks run before the script, so the button
    that triggered ``action`` is already drawn disabled while the call runs."""
    st.session_state.pending_action = action


@contextmanager
def pending_action(action: str, message: str = "Procesando..."):
    st.session_state.pending_action = action
    try:
        with st.spinner(message):
            yield
    finally:
        st.session_state.pending_action = None


def flash(message: str, level: str = "success"):
    """Message shown once on the next rerun."""
    messages = list(st.session_state.get("flash") or [])
    messages.append((level, message))
    st.session_state.flash = messages


def pop_flash():
    messages = list(st.session_state.get("flash") or [])
    st.session_state.flash = []
    return messages


def reset_admin_views():
    for key in ("lifecycle", "directory_cache", "area_catalog_cache"):
        st.session_state.pop(key, None)


def logout():
    provider = auth.get_identity_provider()
    provider.sign_out()
    store = get_session_store()
    store.teardown()
    # The request cookie keeps the old token until the page reloads.
    st.session_state.revoked_refresh_token = _read_refresh_cookie()
    clear_browser_refresh_token()
    st.session_state.admin_user = None
    reset_admin_views()
    st.rerun()
