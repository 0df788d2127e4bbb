from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from use_cases.errors import ValidationError
from use_cases.session_models import Role


class SuggestionStatus(str, Enum):
    PENDIENTE = "pendiente"
    EN_PROCESO = "en_proceso"
    FINALIZADO = "finalizado"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SuggestionStatus":
        """Rows written before the status column existed read as pending."""
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDIENTE

    @classmethod
    def require(cls, raw: Any) -> "SuggestionStatus":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Estado desconocido: {raw!r}") from None

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: Dict[SuggestionStatus, str] = {
    SuggestionStatus.PENDIENTE: "Pendiente",
    SuggestionStatus.EN_PROCESO: "En proceso",
    SuggestionStatus.FINALIZADO: "Finalizado",
}


@dataclass(frozen=True)
class Area:
    id: str
    name: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Area":
        return cls(id=str(row["id"]), name=row.get("name") or "", created_at=row.get("created_at"))


@dataclass(frozen=True)
class Profile:
    id: str
    role: Role
    email: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        return cls(
            id=str(row["id"]),
            role=Role.parse(row.get("role")),
            email=row.get("email"),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class Suggestion:
    """A resident report. Only ``status`` changes after creation."""

    id: str
    nombre: str
    apellido: str
    email: str
    zona: str
    descripcion: str
    status: SuggestionStatus = SuggestionStatus.PENDIENTE
    area_id: Optional[str] = None
    area_name: Optional[str] = None
    images: Tuple[str, ...] = field(default_factory=tuple)
    created_at: Optional[str] = None

    @property
    def reporter(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Suggestion":
        images = row.get("images") or []
        if not images and row.get("image_url"):
            # Legacy rows only carry a single image_url.
            images = [row["image_url"]]

        joined_area = row.get("areas")
        area_name = joined_area.get("name") if isinstance(joined_area, dict) else None
        area_id = row.get("area_id")

        return cls(
            id=str(row["id"]),
            nombre=row.get("nombre") or "",
            apellido=row.get("apellido") or "",
            email=row.get("email") or "",
            zona=row.get("zona") or "",
            descripcion=row.get("descripcion") or "",
            status=SuggestionStatus.parse(row.get("status")),
            area_id=str(area_id) if area_id else None,
            area_name=area_name,
            images=tuple(images),
            created_at=row.get("created_at"),
        )
