import streamlit as st

import auth
import ui
from use_cases.errors import BarrioError, ValidationError
from use_cases.session_guard import DASHBOARD_ROUTE
from utils import session_manager

MIN_PASSWORD_LENGTH = 6


def validate_new_password(password: str, confirmation: str) -> None:
    if password != confirmation:
        raise ValidationError("Las contraseñas no coinciden.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres.")


def render_update_password():
    st.title("🔑 Elegí tu contraseña")
    st.caption("Definí una contraseña para ingresar al panel.")
    ui.render_flash()

    with st.form("update_password_form", clear_on_submit=False):
        password = st.text_input("Nueva contraseña", type="password")
        confirmation = st.text_input("Repetir contraseña", type="password")
        submitted = st.form_submit_button(
            "Guardar",
            disabled=session_manager.is_pending("update_password"),
            on_click=session_manager.begin_action,
            args=("update_password",),
        )
        if submitted:
            try:
                with session_manager.pending_action("update_password", "Guardando..."):
                    validate_new_password(password, confirmation)
                    auth.get_identity_provider().update_password(password)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
                st.rerun()
                return
            session_manager.flash("Contraseña actualizada.")
            session_manager.navigate(DASHBOARD_ROUTE)
