import streamlit as st
import pandas as pd

import auth
from use_cases.area_catalog import AreaCatalog
from use_cases.directory_manager import DirectoryCache, DirectoryManager, SagaResult
from use_cases.errors import BarrioError
from use_cases.session_models import ROLE_LABELS, AdminUser, Role, can_manage_areas, can_manage_users
from utils import session_manager

ROLE_OPTIONS = [Role.VIEWER, Role.ADMIN, Role.SUPERADMIN]


def _get_directory_cache(actor: AdminUser) -> DirectoryCache:
    cache = st.session_state.get("directory_cache")
    if cache is None or cache.manager.actor != actor:
        manager = DirectoryManager(auth.get_identity_provider(), auth.get_directory_profile_repo(), actor)
        cache = DirectoryCache(manager)
        st.session_state.directory_cache = cache
    if not cache.loaded:
        cache.refresh()
    return cache


def _report(result: SagaResult, success_message: str):
    """Queue the outcome for the next rerun, one message per failed step."""
    if not result.success:
        session_manager.flash(str(result.error), level="error")
    else:
        session_manager.flash(success_message)
        for step in result.partial_failures:
            session_manager.flash(f"Paso '{step.name}' falló: {step.error}", level="warning")
    st.rerun()


def _render_invite(cache: DirectoryCache):
    with st.form("invite_form", clear_on_submit=True):
        email = st.text_input("Email", placeholder="usuario@ejemplo.com")
        submitted = st.form_submit_button(
            "✉️ Enviar invitación",
            disabled=session_manager.is_pending("invite"),
            on_click=session_manager.begin_action,
            args=("invite",),
        )
        if submitted:
            with session_manager.pending_action("invite", "Enviando..."):
                result = cache.invite(email)
            _report(result, "Invitación enviada correctamente.")


def _on_role_change(cache: DirectoryCache, profile_id: str, previous: Role):
    key = f"role_{profile_id}"
    result = cache.change_role(profile_id, st.session_state[key])
    if not result.success:
        # Widget snaps back to the role the store still holds.
        st.session_state[key] = previous
        session_manager.flash(f"Error al actualizar rol: {result.error}", level="error")


def _render_user_row(cache: DirectoryCache, profile, actor: AdminUser):
    c1, c2, c3, c4 = st.columns([3, 2, 1, 1])
    c1.markdown(f"**{profile.email or 'Email no visible'}**")
    c1.caption((profile.created_at or "")[:10])

    c2.selectbox(
        "Rol",
        ROLE_OPTIONS,
        index=ROLE_OPTIONS.index(profile.role),
        format_func=lambda r: ROLE_LABELS[r],
        key=f"role_{profile.id}",
        label_visibility="collapsed",
        on_change=_on_role_change,
        args=(cache, profile.id, profile.role),
    )

    with c3:
        reset_action = f"reset_{profile.id}"
        if st.button(
            "🔁",
            key=reset_action,
            help="Enviar reset de contraseña",
            disabled=not profile.email or session_manager.is_pending(reset_action),
            on_click=session_manager.begin_action,
            args=(reset_action,),
        ):
            with session_manager.pending_action(reset_action, "Enviando..."):
                result = cache.manager.reset_password(profile.email)
            _report(result, f"Correo enviado a {profile.email}.")
    with c4:
        if st.button("🗑", key=f"delete_{profile.id}", help="Eliminar usuario", disabled=profile.id == actor.id):
            st.session_state.user_to_delete = profile.id

    if st.session_state.get("user_to_delete") == profile.id:
        st.warning(f"¿Eliminar a {profile.email or profile.id}? Esta acción no se puede deshacer.")
        k1, k2 = st.columns(2)
        delete_action = f"delete_{profile.id}"
        if k1.button(
            "Eliminar",
            key=f"confirm_delete_{profile.id}",
            type="primary",
            disabled=session_manager.is_pending(delete_action),
            on_click=session_manager.begin_action,
            args=(delete_action,),
        ):
            st.session_state.user_to_delete = None
            with session_manager.pending_action(delete_action, "Eliminando..."):
                result = cache.delete(profile.id)
            _report(result, "Usuario eliminado.")
        if k2.button("Cancelar", key=f"cancel_delete_{profile.id}"):
            st.session_state.user_to_delete = None
            st.rerun()


def _render_users_tab(actor: AdminUser):
    try:
        cache = _get_directory_cache(actor)
    except BarrioError as e:
        st.error(str(e))
        return

    st.subheader("Invitar usuario")
    st.caption("Los usuarios invitados ingresan como Visualizador.")
    _render_invite(cache)

    if cache.refresh_error is not None:
        st.warning(f"La lista puede estar desactualizada: {cache.refresh_error}")
    c_title, c_refresh = st.columns([5, 1])
    c_title.subheader(f"Usuarios ({len(cache.users)})")
    if c_refresh.button("🔄", key="refresh_users"):
        try:
            cache.refresh()
        except BarrioError as e:
            session_manager.flash(f"No se pudo actualizar la lista: {e}", level="error")
        st.rerun()

    for profile in cache.users:
        _render_user_row(cache, profile, actor)
        st.divider()

    if cache.listing.orphans:
        with st.expander(f"⚠️ Perfiles sin usuario ({len(cache.listing.orphans)})"):
            orphans_df = pd.DataFrame(
                [{"id": p.id, "Email": p.email, "Rol": p.role.label} for p in cache.listing.orphans]
            )
            st.dataframe(orphans_df, use_container_width=True, hide_index=True)


def _render_areas_tab(actor: AdminUser):
    catalog = AreaCatalog(auth.get_area_repo(), actor)

    with st.form("add_area_form", clear_on_submit=True):
        name = st.text_input("Nueva área")
        if st.form_submit_button("➕ Agregar"):
            try:
                catalog.create_area(name)
            except BarrioError as e:
                st.error(str(e))
            else:
                st.success(f"Área creada: {name.strip()}")

    try:
        areas = catalog.list_areas()
    except BarrioError as e:
        st.error(str(e))
        return

    if not areas:
        st.info("Todavía no hay áreas.")
        return

    for area in areas:
        c1, c2 = st.columns([5, 1])
        c1.write(area.name)
        if c2.button("🗑", key=f"delete_area_{area.id}"):
            try:
                catalog.delete_area(area.id)
            except BarrioError as e:
                st.error(str(e))
            else:
                st.rerun()


def render_admin_panel(actor: AdminUser):
    st.header("⚙️ Administración")

    can_users = can_manage_users(actor)
    if not can_users:
        st.info("Tu rol no permite administrar usuarios.")
        return
    can_areas = can_manage_areas(actor)

    if can_areas:
        tab_users, tab_areas = st.tabs(["👥 Usuarios", "🏷 Áreas"])
        with tab_areas:
            _render_areas_tab(actor)
    else:
        (tab_users,) = st.tabs(["👥 Usuarios"])

    with tab_users:
        _render_users_tab(actor)
