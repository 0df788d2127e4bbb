import streamlit as st

import auth
import ui
from use_cases.errors import BarrioError, ValidationError
from use_cases.session_guard import DASHBOARD_ROUTE
from utils import session_manager

CALLBACK_ERRORS = {
    "auth_callback_error": "No se pudo completar el ingreso desde el enlace. Pedí uno nuevo.",
}


def _render_password_form(provider):
    with st.form("login_form", clear_on_submit=False):
        email = st.text_input("Email")
        password = st.text_input("Contraseña", type="password")
        submitted = st.form_submit_button(
            "Ingresar",
            disabled=session_manager.is_pending("login"),
            on_click=session_manager.begin_action,
            args=("login",),
        )
        if submitted:
            try:
                with session_manager.pending_action("login", "Ingresando..."):
                    if not email.strip() or not password:
                        raise ValidationError("Completá email y contraseña.")
                    provider.sign_in_with_password(email, password)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
            st.rerun()


def _render_otp_form(provider):
    sent_to = st.session_state.get("login_otp_email")

    if not sent_to:
        with st.form("login_otp_request", clear_on_submit=False):
            email = st.text_input("Email")
            submitted = st.form_submit_button(
                "Enviar código",
                disabled=session_manager.is_pending("login_otp"),
                on_click=session_manager.begin_action,
                args=("login_otp",),
            )
            if submitted:
                try:
                    with session_manager.pending_action("login_otp", "Enviando código..."):
                        if not email.strip():
                            raise ValidationError("Ingresá tu email.")
                        # Only existing admins can sign in; unknown emails get no identity.
                        provider.sign_in_with_one_time_code(
                            email,
                            allow_new_identity=False,
                            redirect_to=provider.redirect_url(DASHBOARD_ROUTE),
                        )
                except BarrioError as e:
                    session_manager.flash(str(e), level="error")
                else:
                    st.session_state.login_otp_email = email.strip()
                st.rerun()
        return

    st.info(f"Enviamos un código a **{sent_to}**.")
    with st.form("login_otp_verify", clear_on_submit=False):
        code = st.text_input("Código", max_chars=6)
        submitted = st.form_submit_button(
            "Verificar",
            disabled=session_manager.is_pending("login_verify"),
            on_click=session_manager.begin_action,
            args=("login_verify",),
        )
        if submitted:
            try:
                with session_manager.pending_action("login_verify", "Verificando..."):
                    provider.verify_one_time_code(sent_to, code)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
            else:
                st.session_state.login_otp_email = None
            st.rerun()
    if st.button("Usar otro email", key="login_otp_change"):
        st.session_state.login_otp_email = None
        st.rerun()


def render_auth_screen():
    st.title("🔐 Acceso administradores")

    error_code = st.query_params.get("error")
    if error_code:
        st.error(CALLBACK_ERRORS.get(error_code, "Error de autenticación."))
    ui.render_flash()

    try:
        provider = auth.get_identity_provider()
    except BarrioError as e:
        st.error(str(e))
        return

    tab_password, tab_otp = st.tabs(["Contraseña", "Código por email"])
    with tab_password:
        _render_password_form(provider)
    with tab_otp:
        _render_otp_form(provider)
