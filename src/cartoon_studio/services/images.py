"""Gallery persistence for generated images."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cartoon_studio.domain.errors import NoSession
from cartoon_studio.domain.images import GenerationResult, ImageRecord
from cartoon_studio.domain.sessions import Session

logger = logging.getLogger(__name__)


class ImageRepository(Protocol):
    """Persistence interface for gallery images.

    Implementations raise ``StoreError`` when the store cannot be reached or
    rejects the operation.
    """

    def create_image(
        self, owner_id: UUID, image_reference: str, prompt_text: str
    ) -> ImageRecord:
        """Insert an image row and return it."""

    def list_images(self, owner_id: UUID) -> list[ImageRecord]:
        """Return the owner's images, most recent first."""

    def get_image(self, owner_id: UUID, image_id: UUID) -> ImageRecord | None:
        """Return one of the owner's images by id, if present."""


@dataclass
class ImageService:
    """Writes and reads gallery records scoped to the signed-in user."""

    repository: ImageRepository

    def save(self, session: Session, result: GenerationResult) -> ImageRecord:
        """Persist exactly one record for a successful generation."""
        owner_id = _require_identity(session, "Please sign in to save images.")
        record = self.repository.create_image(
            owner_id=owner_id,
            image_reference=result.image_data,
            prompt_text=result.source_prompt,
        )
        logger.info("Saved image %s", record.id, extra={"user_id": str(owner_id)})
        return record

    def list_for_owner(self, session: Session) -> list[ImageRecord]:
        """Return the caller's images, most recent first."""
        owner_id = _require_identity(session, "Please sign in to view your gallery.")
        records = self.repository.list_images(owner_id)
        owned = [record for record in records if record.owner_id == owner_id]
        if len(owned) != len(records):
            logger.warning(
                "Dropped %s gallery rows owned by another user",
                len(records) - len(owned),
            )
        return sorted(owned, key=lambda record: record.created_at, reverse=True)

    def get_for_owner(self, session: Session, image_id: UUID) -> ImageRecord | None:
        """Return one of the caller's images, if it exists."""
        owner_id = _require_identity(session, "Please sign in to view your gallery.")
        record = self.repository.get_image(owner_id, image_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record


def _require_identity(session: Session, message: str) -> UUID:
    if session.identity is None:
        raise NoSession(message)
    return session.identity
