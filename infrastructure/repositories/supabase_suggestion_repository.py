import logging
from typing import Any, Dict, List

from use_cases.domain_models import Suggestion, SuggestionStatus
from use_cases.errors import NotFoundError, classify_backend_error

log = logging.getLogger(__name__)


class SupabaseSuggestionRepository:
    TABLE = "sugerencias"
    JOINED_SELECT = "*, areas(name)"

    def __init__(self, client):
        self.client = client

    def _select(self, columns: str) -> List[Dict[str, Any]]:
        result = self.client.table(self.TABLE).select(columns).order("created_at", desc=True).execute()
        return result.data or []

    def list_suggestions(self) -> List[Suggestion]:
        try:
            rows = self._select(self.JOINED_SELECT)
        except Exception as exc:
            # Databases without the areas relationship still serve the plain rows.
            log.warning("Area join unavailable, falling back to plain select: %s", exc)
            try:
                rows = self._select("*")
            except Exception as fallback_exc:
                raise classify_backend_error(fallback_exc) from fallback_exc
        return [Suggestion.from_row(row) for row in rows]

    def insert_suggestion(self, payload: Dict[str, Any]) -> Suggestion:
        try:
            result = self.client.table(self.TABLE).insert(payload).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        rows = result.data or []
        if rows:
            return Suggestion.from_row(rows[0])
        # Insert policies may hide the created row from anonymous reporters.
        return Suggestion.from_row({"id": "", **payload})

    def update_status(self, suggestion_id: str, status: SuggestionStatus) -> None:
        try:
            result = (
                self.client.table(self.TABLE)
                .update({"status": status.value})
                .eq("id", suggestion_id)
                .execute()
            )
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        if result.data is not None and len(result.data) == 0:
            raise NotFoundError(f"La sugerencia {suggestion_id} no existe o no tenés permiso para editarla.")

    def delete_suggestion(self, suggestion_id: str) -> None:
        try:
            self.client.table(self.TABLE).delete().eq("id", suggestion_id).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
