import logging

import streamlit as st

import auth
import ui
from use_cases.area_catalog import AreaCatalog
from use_cases.errors import BarrioError
from use_cases.intake_gate import STEP_EMAIL, PublicIntakeGate
from use_cases.submission_flow import (
    ALLOWED_EXTENSIONS,
    MAX_IMAGES,
    ImageFile,
    SubmissionService,
    SuggestionDraft,
    select_images,
)
from utils import session_manager

log = logging.getLogger(__name__)


def _get_gate() -> PublicIntakeGate:
    if st.session_state.get("intake_gate") is None:
        st.session_state.intake_gate = PublicIntakeGate(auth.get_intake_provider())
    return st.session_state.intake_gate


def _render_email_step(gate: PublicIntakeGate):
    st.write("Para enviar una sugerencia primero verificamos tu email.")
    with st.form("intake_email_form"):
        email = st.text_input("Email")
        if st.form_submit_button(
            "Enviar código",
            disabled=session_manager.is_pending("intake_code"),
            on_click=session_manager.begin_action,
            args=("intake_code",),
        ):
            try:
                with session_manager.pending_action("intake_code", "Enviando código..."):
                    gate.request_code(email)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
            st.rerun()


def _render_code_step(gate: PublicIntakeGate):
    st.info(f"Te enviamos un código a **{gate.email}**.")
    with st.form("intake_code_form"):
        code = st.text_input("Código de verificación", max_chars=6)
        if st.form_submit_button(
            "Verificar",
            disabled=session_manager.is_pending("intake_verify"),
            on_click=session_manager.begin_action,
            args=("intake_verify",),
        ):
            try:
                with session_manager.pending_action("intake_verify", "Verificando..."):
                    gate.verify_code(gate.email, code)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
            st.rerun()
    if st.button("Cambiar email", key="intake_change_email"):
        gate.change_email()
        st.rerun()


def _uploaded_images(uploaded) -> list:
    return [ImageFile(name=f.name, content=f.getvalue(), content_type=f.type or "image/jpeg") for f in uploaded or []]


def _render_form(gate: PublicIntakeGate):
    st.success(f"Email verificado: **{gate.verified_email}**")

    try:
        areas = AreaCatalog(auth.get_area_repo(public=True)).list_areas()
    except BarrioError as e:
        log.warning("Areas unavailable for the public form: %s", e)
        areas = []
    area_names = {a.id: a.name for a in areas}

    uploaded = st.file_uploader(
        f"Fotos (hasta {MAX_IMAGES}, 5MB cada una)",
        type=list(ALLOWED_EXTENSIONS),
        accept_multiple_files=True,
        key=f"intake_images_{st.session_state.get('intake_form_version', 0)}",
    )
    selection = select_images([], _uploaded_images(uploaded))
    for message in selection.errors:
        st.warning(message)

    with st.form("intake_suggestion_form"):
        st.text_input("Email", value=gate.verified_email, disabled=True)
        c1, c2 = st.columns(2)
        nombre = c1.text_input("Nombre *")
        apellido = c2.text_input("Apellido *")
        zona = st.text_input("Zona / dirección *")
        area_id = st.selectbox(
            "Área",
            [None] + list(area_names),
            format_func=lambda a: "Sin área" if a is None else area_names[a],
        )
        descripcion = st.text_area("Descripción *")
        submitted = st.form_submit_button(
            "Enviar sugerencia",
            disabled=session_manager.is_pending("intake_submit"),
            on_click=session_manager.begin_action,
            args=("intake_submit",),
        )

    if submitted:
        draft = SuggestionDraft(
            nombre=nombre,
            apellido=apellido,
            zona=zona,
            descripcion=descripcion,
            area_id=area_id,
            images=selection.accepted,
        )
        try:
            with session_manager.pending_action("intake_submit", "Enviando sugerencia..."):
                service = SubmissionService(auth.get_intake_suggestion_repo(), auth.get_image_storage())
                service.submit(gate.verified_email, draft)
        except BarrioError as e:
            session_manager.flash(str(e), level="error")
            st.rerun()
            return
        st.session_state.intake_form_version = st.session_state.get("intake_form_version", 0) + 1
        session_manager.flash("¡Gracias! Recibimos tu sugerencia.")
        st.rerun()


def render_intake():
    st.title("🏘️ Sugerencias del barrio")

    ui.render_flash()

    try:
        gate = _get_gate()
    except BarrioError as e:
        st.error(str(e))
        return

    if gate.verified:
        _render_form(gate)
    elif gate.step == STEP_EMAIL:
        _render_email_step(gate)
    else:
        _render_code_step(gate)
