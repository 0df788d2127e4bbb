"""Public suggestion submission: draft validation, image limits and upload."""

import logging
import os
import random
import string
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from use_cases.domain_models import Suggestion, SuggestionStatus
from use_cases.errors import ValidationError

log = logging.getLogger(__name__)

MAX_IMAGES = 5
MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")

_NAME_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ImageFile:
    name: str
    content: bytes
    content_type: str = "image/jpeg"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        ext = os.path.splitext(self.name)[1].lstrip(".").lower()
        return ext or "jpg"


@dataclass
class ImageSelection:
    accepted: List[ImageFile] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def select_images(current: Sequence[ImageFile], incoming: Sequence[ImageFile]) -> ImageSelection:
    """Merge ``incoming`` into the ``current`` selection.

    Oversize files are rejected one by one; the rest of the batch is kept.
    Files beyond the total limit are dropped with a single message.
    """
    selection = ImageSelection(accepted=list(current))
    dropped = 0
    for image in incoming:
        if image.size > MAX_IMAGE_BYTES:
            selection.errors.append(f"La imagen {image.name} supera los 5MB y no se agregó.")
            continue
        if len(selection.accepted) >= MAX_IMAGES:
            dropped += 1
            continue
        selection.accepted.append(image)

    if dropped:
        selection.errors.append(
            f"Máximo {MAX_IMAGES} imágenes. Se descartaron {dropped} archivo(s)."
        )
    return selection


def validate_images(images: Sequence[ImageFile]) -> None:
    if len(images) > MAX_IMAGES:
        raise ValidationError(f"Máximo {MAX_IMAGES} imágenes.")
    for image in images:
        if image.size > MAX_IMAGE_BYTES:
            raise ValidationError(f"La imagen {image.name} supera los 5MB.")


def build_image_name(extension: str, now: Optional[Callable[[], float]] = None) -> str:
    """``{epoch_ms}-{7 random base36 chars}.{ext}``."""
    epoch_ms = int((now or time.time)() * 1000)
    suffix = "".join(random.choices(_NAME_ALPHABET, k=7))
    return f"{epoch_ms}-{suffix}.{extension}"


@dataclass
class SuggestionDraft:
    nombre: str = ""
    apellido: str = ""
    zona: str = ""
    descripcion: str = ""
    area_id: Optional[str] = None
    images: List[ImageFile] = field(default_factory=list)


REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("nombre", "Nombre"),
    ("apellido", "Apellido"),
    ("zona", "Zona"),
    ("descripcion", "Descripción"),
)


def validate_draft(draft: SuggestionDraft) -> None:
    missing = [label for attr, label in REQUIRED_FIELDS if not (getattr(draft, attr) or "").strip()]
    if missing:
        raise ValidationError("Completá los campos obligatorios: " + ", ".join(missing) + ".")
    validate_images(draft.images)


class SubmissionService:
    def __init__(self, repo, storage):
        self.repo = repo
        self.storage = storage

    def submit(self, verified_email: str, draft: SuggestionDraft) -> Suggestion:
        if not verified_email:
            raise ValidationError("Verificá tu email antes de enviar la sugerencia.")
        validate_draft(draft)

        urls = []
        for image in draft.images:
            name = build_image_name(image.extension)
            urls.append(self.storage.upload_image(name, image.content, image.content_type))

        payload = {
            "nombre": draft.nombre.strip(),
            "apellido": draft.apellido.strip(),
            # The reporter cannot edit the email; it is the verified one.
            "email": verified_email,
            "zona": draft.zona.strip(),
            "descripcion": draft.descripcion.strip(),
            "area_id": draft.area_id or None,
            "images": urls,
            "image_url": urls[0] if urls else None,
            "status": SuggestionStatus.PENDIENTE.value,
        }
        suggestion = self.repo.insert_suggestion(payload)
        log.info("New suggestion from %s with %d image(s)", verified_email, len(urls))
        return suggestion
