import logging
from typing import List, Optional

from use_cases import rbac_policy
from use_cases.domain_models import Area
from use_cases.errors import ValidationError
from use_cases.session_models import AdminUser, Capability

log = logging.getLogger(__name__)


class AreaCatalog:
    """Areas used to tag suggestions. Anyone may list, superadmins edit."""

    def __init__(self, repo, actor: Optional[AdminUser] = None):
        self.repo = repo
        self.actor = actor

    def list_areas(self) -> List[Area]:
        return self.repo.list_areas()

    def create_area(self, name: str) -> Area:
        name = (name or "").strip()
        if not name:
            raise ValidationError("El nombre del área no puede estar vacío.")
        rbac_policy.require(self.actor, Capability.MANAGE_AREAS)
        area = self.repo.create_area(name)
        log.info("Area created: %s", name)
        return area

    def delete_area(self, area_id: str) -> None:
        rbac_policy.require(self.actor, Capability.MANAGE_AREAS)
        self.repo.delete_area(area_id)
        log.info("Area %s deleted", area_id)
