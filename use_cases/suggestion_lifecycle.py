"""Suggestion triage state machine.

Statuses form a fully connected graph with no terminal state: any status can
move to any other, including back to ``pendiente``. The manager owns the
in-memory list shown on the dashboard and the currently opened record, and
keeps both in sync with the store after every successful write.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, List, Optional

from use_cases import rbac_policy
from use_cases.domain_models import Suggestion, SuggestionStatus
from use_cases.errors import BarrioError, DeleteError, UpdateError
from use_cases.session_models import AdminUser, Capability

log = logging.getLogger(__name__)


class SuggestionLifecycleManager:
    def __init__(self, repo, actor: Optional[AdminUser]):
        self.repo = repo
        self.actor = actor
        self.suggestions: List[Suggestion] = []
        self.selected: Optional[Suggestion] = None

    def load(self) -> List[Suggestion]:
        self.suggestions = self.repo.list_suggestions()
        if self.selected is not None:
            self.selected = self._find(self.selected.id)
        log.info("Loaded %d suggestions", len(self.suggestions))
        return self.suggestions

    def _find(self, suggestion_id: str) -> Optional[Suggestion]:
        for suggestion in self.suggestions:
            if suggestion.id == suggestion_id:
                return suggestion
        return None

    def open(self, suggestion_id: str) -> Optional[Suggestion]:
        self.selected = self._find(suggestion_id)
        return self.selected

    def close(self) -> None:
        self.selected = None

    def transition(self, suggestion_id: str, new_status) -> Suggestion:
        status = SuggestionStatus.require(new_status)
        try:
            rbac_policy.require(self.actor, Capability.MANAGE_USERS)
            self.repo.update_status(suggestion_id, status)
        except BarrioError as exc:
            log.error("Status change of %s to %s failed: %s", suggestion_id, status.value, exc)
            raise UpdateError(f"Error al actualizar el estado: {exc}") from exc

        updated = None
        for i, suggestion in enumerate(self.suggestions):
            if suggestion.id == suggestion_id:
                updated = replace(suggestion, status=status)
                self.suggestions[i] = updated
        if self.selected is not None and self.selected.id == suggestion_id:
            self.selected = replace(self.selected, status=status)
            updated = updated or self.selected

        log.info("Suggestion %s -> %s", suggestion_id, status.value)
        return updated

    def delete_suggestion(self, suggestion_id: str) -> None:
        try:
            rbac_policy.require(self.actor, Capability.MANAGE_USERS)
            self.repo.delete_suggestion(suggestion_id)
        except BarrioError as exc:
            log.error("Delete of suggestion %s failed: %s", suggestion_id, exc)
            raise DeleteError(f"Error al eliminar la sugerencia: {exc}") from exc

        self.suggestions = [s for s in self.suggestions if s.id != suggestion_id]
        if self.selected is not None and self.selected.id == suggestion_id:
            self.selected = None
        log.info("Suggestion %s deleted", suggestion_id)

    def counts_by_status(self) -> Dict[SuggestionStatus, int]:
        counts = Counter(s.status for s in self.suggestions)
        return {status: counts.get(status, 0) for status in SuggestionStatus}

    def filtered(self, status: Optional[SuggestionStatus] = None, area_id: Optional[str] = None) -> List[Suggestion]:
        result = self.suggestions
        if status is not None:
            result = [s for s in result if s.status == status]
        if area_id:
            result = [s for s in result if s.area_id == area_id]
        return result
