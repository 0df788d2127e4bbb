"""Landing route for links sent by email (invite, recovery, magic link)."""

import logging

import streamlit as st

import auth
from use_cases.errors import BarrioError
from use_cases.session_guard import DASHBOARD_ROUTE, LOGIN_ROUTE, UPDATE_PASSWORD_ROUTE
from utils import session_manager

log = logging.getLogger(__name__)

CALLBACK_ERROR = "auth_callback_error"


def resolve_callback(provider, params) -> tuple:
    """Return ``(route, query_params)`` for the callback query string."""
    code = params.get("code")
    token_hash = params.get("token_hash")
    link_type = params.get("type")

    try:
        if code:
            provider.exchange_authorization_code(code)
            return DASHBOARD_ROUTE, {}
        if token_hash and link_type:
            provider.verify_email_link(token_hash, link_type)
            if link_type in ("recovery", "invite"):
                return UPDATE_PASSWORD_ROUTE, {}
            return DASHBOARD_ROUTE, {}
    except BarrioError as exc:
        log.warning("Auth callback failed: %s", exc)
        return LOGIN_ROUTE, {"error": CALLBACK_ERROR}

    # Nothing to exchange: the guard decides from the current session.
    return DASHBOARD_ROUTE, {}


def render_callback():
    with st.spinner("Verificando enlace..."):
        session_manager.restore_session()
        try:
            provider = auth.get_identity_provider()
        except BarrioError as exc:
            log.error("Auth callback without identity provider: %s", exc)
            session_manager.navigate(LOGIN_ROUTE, error=CALLBACK_ERROR)
            return
        route, params = resolve_callback(provider, st.query_params)
    session_manager.navigate(route, **params)
