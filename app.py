import streamlit as st
import streamlit.components.v1 as components
import os

from infrastructure.observability import setup_observability
setup_observability()

import sentry_sdk

import ui
from utils import session_manager
from use_cases import auth_flow, bootstrap
from use_cases.session_guard import (
    CALLBACK_ROUTE,
    DASHBOARD_ROUTE,
    LOGIN_ROUTE,
    UPDATE_PASSWORD_ROUTE,
    is_guarded,
)
from views import callback_view, dashboard_view, intake_view, login_view, update_password_view
from datetime import datetime

# --- CONFIGURACIÓN DE PÁGINA ---
st.set_page_config(page_title="Sugerencias del Barrio", page_icon="🏘️", layout="wide")

FORCE_HTTPS = os.getenv("FORCE_HTTPS", "False").lower() == "true"

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok", "version": "1.0", "uptime": datetime.utcnow().isoformat()})
    st.stop()

if FORCE_HTTPS:
    proto = st.context.headers.get("x-forwarded-proto", "http").lower()
    if proto != "https":
        st.error("🚨 Conexión insegura. Usá HTTPS.")
        st.stop()

components.html(
    """
    <script>
    var meta1 = document.createElement('meta');
    meta1.httpEquiv = "X-Content-Type-Options";
    meta1.content = "nosniff";
    document.getElementsByTagName('head')[0].appendChild(meta1);

    var meta2 = document.createElement('meta');
    meta2.name = "referrer";
    meta2.content = "no-referrer";
    document.getElementsByTagName('head')[0].appendChild(meta2);
    </script>
    """,
    height=0,
)

ui.setup_style()

# --- STARTUP ORCHESTRATION ---
startup_result = bootstrap.run_startup()
if startup_result.status == "STOP":
    st.stop()
for warning in startup_result.warnings:
    st.toast(warning, icon="⚠️")


def render_admin(route):
    auth_result = auth_flow.ensure_authenticated_session(route)

    if auth_result.status == "STOP":
        ui.show_loading_overlay()
        return
    if auth_result.status == "REDIRECT":
        session_manager.navigate(auth_result.redirect_to)
        return

    if route == LOGIN_ROUTE:
        login_view.render_auth_screen()
        return

    admin_user = st.session_state.admin_user

    # Build Sentry Context
    if sentry_sdk.get_client().is_active() and admin_user is not None:
        sentry_sdk.set_user({"id": admin_user.id, "role": admin_user.role.value})

    if route == UPDATE_PASSWORD_ROUTE:
        update_password_view.render_update_password()
    elif route == DASHBOARD_ROUTE and admin_user is not None:
        dashboard_view.render_dashboard(admin_user)
    else:
        session_manager.navigate(DASHBOARD_ROUTE)


# --- RUTEO ---
route = session_manager.current_route()

if route == CALLBACK_ROUTE:
    callback_view.render_callback()
elif not is_guarded(route):
    intake_view.render_intake()
else:
    render_admin(route)
