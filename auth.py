"""Configuration and Supabase wiring.

Settings are read from ``st.secrets`` first and from the environment second.
The service-role client is shared by the whole server process; the anon-key
clients hold a browser context's session and therefore live in
``st.session_state``.
"""

import logging
import os
from typing import List, Optional

import streamlit as st
from supabase import create_client

from infrastructure.identity.supabase_identity_provider import SupabaseIdentityProvider
from infrastructure.repositories.supabase_area_repository import SupabaseAreaRepository
from infrastructure.repositories.supabase_profile_repository import SupabaseProfileRepository
from infrastructure.repositories.supabase_suggestion_repository import SupabaseSuggestionRepository
from infrastructure.storage.supabase_image_storage import DEFAULT_BUCKET, SupabaseImageStorage
from use_cases.errors import TransportError

log = logging.getLogger(__name__)

DEFAULT_APP_URL = "http://localhost:8501"
REQUIRED_SETTINGS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")
OPTIONAL_SETTINGS = ("SUPABASE_SERVICE_ROLE_KEY",)


def get_secret(key):
    try:
        return st.secrets.get(key)
    except FileNotFoundError:
        return None


def get_setting(key: str, default: Optional[str] = None) -> Optional[str]:
    return get_secret(key) or os.getenv(key) or default


def get_app_url() -> str:
    return get_setting("APP_URL", DEFAULT_APP_URL).rstrip("/")


def get_images_bucket() -> str:
    return get_setting("IMAGES_BUCKET", DEFAULT_BUCKET)


def missing_settings() -> List[str]:
    return [key for key in REQUIRED_SETTINGS + OPTIONAL_SETTINGS if not get_setting(key)]


def _create(key_name: str):
    url = get_setting("SUPABASE_URL")
    key = get_setting(key_name)
    if not url or not key:
        raise TransportError(f"Supabase no está configurado: falta SUPABASE_URL o {key_name}.")
    return create_client(url, key)


@st.cache_resource
def get_admin_client():
    """Service-role client, or None when the key is not configured."""
    if not get_setting("SUPABASE_SERVICE_ROLE_KEY"):
        log.warning("SUPABASE_SERVICE_ROLE_KEY not set: user administration disabled")
        return None
    return _create("SUPABASE_SERVICE_ROLE_KEY")


def get_browser_client():
    if st.session_state.get("supabase_client") is None:
        st.session_state.supabase_client = _create("SUPABASE_ANON_KEY")
    return st.session_state.supabase_client


def get_intake_client():
    # Kept apart so a resident's verified email never becomes the admin session.
    if st.session_state.get("intake_client") is None:
        st.session_state.intake_client = _create("SUPABASE_ANON_KEY")
    return st.session_state.intake_client


def get_identity_provider() -> SupabaseIdentityProvider:
    if st.session_state.get("identity_provider") is None:
        st.session_state.identity_provider = SupabaseIdentityProvider(
            get_browser_client(), admin_client=get_admin_client(), app_url=get_app_url()
        )
    return st.session_state.identity_provider


def get_intake_provider() -> SupabaseIdentityProvider:
    if st.session_state.get("intake_provider") is None:
        st.session_state.intake_provider = SupabaseIdentityProvider(get_intake_client(), app_url=get_app_url())
    return st.session_state.intake_provider


def get_profile_repo() -> SupabaseProfileRepository:
    return SupabaseProfileRepository(get_browser_client())


def get_directory_profile_repo() -> SupabaseProfileRepository:
    """Profile writes during invite/delete run with the service role when available."""
    return SupabaseProfileRepository(get_admin_client() or get_browser_client())


def get_suggestion_repo() -> SupabaseSuggestionRepository:
    return SupabaseSuggestionRepository(get_browser_client())


def get_intake_suggestion_repo() -> SupabaseSuggestionRepository:
    return SupabaseSuggestionRepository(get_intake_client())


def get_area_repo(public: bool = False) -> SupabaseAreaRepository:
    return SupabaseAreaRepository(get_intake_client() if public else get_browser_client())


def get_image_storage() -> SupabaseImageStorage:
    return SupabaseImageStorage(get_intake_client(), bucket=get_images_bucket())
