import streamlit as st

import auth
import ui
from use_cases.domain_models import STATUS_LABELS, SuggestionStatus
from use_cases.errors import BarrioError
from use_cases.session_models import AdminUser, can_manage_users
from use_cases.suggestion_lifecycle import SuggestionLifecycleManager
from utils import session_manager
from views import admin_view, export_view

STATUS_OPTIONS = list(SuggestionStatus)


def _get_lifecycle(actor: AdminUser) -> SuggestionLifecycleManager:
    manager = st.session_state.get("lifecycle")
    if manager is None or manager.actor != actor:
        manager = SuggestionLifecycleManager(auth.get_suggestion_repo(), actor)
        manager.load()
        st.session_state.lifecycle = manager
    return manager


def _render_metrics(manager: SuggestionLifecycleManager):
    counts = manager.counts_by_status()
    cols = st.columns(len(STATUS_OPTIONS) + 1)
    cols[0].metric("Total", len(manager.suggestions))
    for col, status in zip(cols[1:], STATUS_OPTIONS):
        col.metric(status.label, counts[status])


def _render_detail(manager: SuggestionLifecycleManager, actor: AdminUser):
    suggestion = manager.selected
    c_title, c_close = st.columns([5, 1])
    c_title.subheader(f"📍 {suggestion.zona}")
    if c_close.button("✖ Cerrar", key="close_detail"):
        manager.close()
        st.rerun()

    st.markdown(ui.status_badge(suggestion.status), unsafe_allow_html=True)
    st.write(f"**Área:** {suggestion.area_name or '-'}")
    st.write(f"**Usuario:** {suggestion.reporter} · {suggestion.email}")
    st.write(f"**Fecha:** {(suggestion.created_at or '')[:10]}")
    st.write(suggestion.descripcion)

    if suggestion.images:
        st.image(list(suggestion.images), width=220)

    if can_manage_users(actor):
        c_status, c_save = st.columns([3, 1])
        new_status = c_status.selectbox(
            "Estado",
            STATUS_OPTIONS,
            index=STATUS_OPTIONS.index(suggestion.status),
            format_func=lambda s: STATUS_LABELS[s],
            key=f"status_{suggestion.id}",
        )
        if c_save.button(
            "💾 Guardar",
            key=f"save_status_{suggestion.id}",
            disabled=new_status == suggestion.status or session_manager.is_pending("transition"),
            on_click=session_manager.begin_action,
            args=("transition",),
        ):
            try:
                with session_manager.pending_action("transition", "Actualizando..."):
                    manager.transition(suggestion.id, new_status)
            except BarrioError as e:
                session_manager.flash(str(e), level="error")
            st.rerun()

        if st.session_state.get("suggestion_to_delete") == suggestion.id:
            st.warning("¿Eliminar esta sugerencia? Esta acción no se puede deshacer.")
            k1, k2 = st.columns(2)
            if k1.button(
                "Eliminar",
                key="confirm_delete_suggestion",
                type="primary",
                disabled=session_manager.is_pending("delete_suggestion"),
                on_click=session_manager.begin_action,
                args=("delete_suggestion",),
            ):
                st.session_state.suggestion_to_delete = None
                try:
                    with session_manager.pending_action("delete_suggestion", "Eliminando..."):
                        manager.delete_suggestion(suggestion.id)
                except BarrioError as e:
                    session_manager.flash(str(e), level="error")
                else:
                    session_manager.flash("Sugerencia eliminada.")
                st.rerun()
            if k2.button("Cancelar", key="cancel_delete_suggestion"):
                st.session_state.suggestion_to_delete = None
                st.rerun()
        elif st.button("🗑 Eliminar sugerencia", key=f"delete_suggestion_{suggestion.id}"):
            st.session_state.suggestion_to_delete = suggestion.id
            st.rerun()

    export_view.render_download_button(suggestion, auth.get_image_storage())


def _render_list(manager: SuggestionLifecycleManager):
    status_filter = st.pills(
        "Estado",
        options=STATUS_OPTIONS,
        format_func=lambda s: STATUS_LABELS[s],
        selection_mode="single",
        key="status_filter",
    )
    suggestions = manager.filtered(status=status_filter)
    if not suggestions:
        st.info("No hay sugerencias para mostrar.")
        return

    for suggestion in suggestions:
        c_card, c_open = st.columns([6, 1])
        with c_card:
            ui.render_suggestion_card(suggestion)
        if c_open.button("Ver", key=f"open_{suggestion.id}"):
            manager.open(suggestion.id)
            st.rerun()


def render_dashboard(actor: AdminUser):
    with st.sidebar:
        st.write(f"👤 {actor.email}")
        st.caption(actor.role.label)
        if st.button("Salir", key="logout_btn", type="secondary"):
            session_manager.logout()
        if can_manage_users(actor):
            st.toggle("⚙️ Administración", key="show_admin")

    ui.render_flash()

    if st.session_state.get("show_admin") and can_manage_users(actor):
        admin_view.render_admin_panel(actor)
        return

    st.title("📋 Sugerencias del barrio")
    try:
        manager = _get_lifecycle(actor)
    except BarrioError as e:
        st.error(str(e))
        ui.render_skeleton_cards()
        return

    c_metrics, c_refresh = st.columns([6, 1])
    with c_metrics:
        _render_metrics(manager)
    if c_refresh.button("🔄", key="reload_suggestions"):
        try:
            manager.load()
        except BarrioError as e:
            st.error(str(e))
        else:
            st.rerun()

    st.divider()
    if manager.selected is not None:
        _render_detail(manager, actor)
    else:
        _render_list(manager)
