import logging
from typing import List, Optional

from use_cases.domain_models import Profile
from use_cases.errors import NotFoundError, classify_backend_error

log = logging.getLogger(__name__)


class SupabaseProfileRepository:
    TABLE = "profiles"

    def __init__(self, client):
        self.client = client

    def get_role(self, identity_id: str) -> Optional[str]:
        try:
            result = (
                self.client.table(self.TABLE)
                .select("role")
                .eq("id", identity_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        rows = result.data or []
        if not rows:
            return None
        return rows[0].get("role")

    def list_profiles(self) -> List[Profile]:
        try:
            result = self.client.table(self.TABLE).select("*").order("created_at", desc=True).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        return [Profile.from_row(row) for row in result.data or []]

    def upsert_profile(self, identity_id: str, role: str, email: Optional[str] = None) -> None:
        payload = {"id": identity_id, "role": role}
        if email:
            payload["email"] = email
        try:
            self.client.table(self.TABLE).upsert(payload).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        log.info("Profile %s upserted with role %s", identity_id, role)

    def update_role(self, identity_id: str, role: str) -> None:
        try:
            result = self.client.table(self.TABLE).update({"role": role}).eq("id", identity_id).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        if result.data is not None and len(result.data) == 0:
            raise NotFoundError(f"No existe un perfil para el usuario {identity_id}.")

    def delete_profile(self, identity_id: str) -> None:
        try:
            self.client.table(self.TABLE).delete().eq("id", identity_id).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
