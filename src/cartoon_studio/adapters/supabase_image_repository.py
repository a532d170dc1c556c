"""Supabase-backed image repository."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from cartoon_studio.domain.errors import StoreError
from cartoon_studio.domain.images import ImageRecord
from cartoon_studio.services.images import ImageRepository

logger = logging.getLogger(__name__)

_COLUMNS = "id, user_id, image_url, prompt, created_at"


@dataclass
class SupabaseImageRepository(ImageRepository):
    """Supabase implementation for gallery images.

    Row isolation is enforced by the table's RLS policies; the client must
    carry the signed-in user's access token.
    """

    client: Client

    def create_image(
        self, owner_id: UUID, image_reference: str, prompt_text: str
    ) -> ImageRecord:
        """Insert an image row and return it."""
        try:
            response = (
                self.client.table("images")
                .insert(
                    {
                        "user_id": str(owner_id),
                        "image_url": image_reference,
                        "prompt": prompt_text,
                    }
                )
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            logger.exception("Failed to insert image row")
            raise StoreError("Failed to save image to your gallery.") from exc
        if not response.data:
            raise StoreError("Failed to save image to your gallery.")
        return _parse_row(response.data[0])

    def list_images(self, owner_id: UUID) -> list[ImageRecord]:
        """Return the owner's images, most recent first."""
        try:
            response = (
                self.client.table("images")
                .select(_COLUMNS)
                .eq("user_id", str(owner_id))
                .order("created_at", desc=True)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            logger.exception("Failed to load images")
            raise StoreError("Failed to load your gallery.") from exc
        return [_parse_row(row) for row in response.data or []]

    def get_image(self, owner_id: UUID, image_id: UUID) -> ImageRecord | None:
        """Return one of the owner's images by id, if present."""
        try:
            response = (
                self.client.table("images")
                .select(_COLUMNS)
                .eq("id", str(image_id))
                .eq("user_id", str(owner_id))
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            logger.exception("Failed to load image", extra={"image_id": str(image_id)})
            raise StoreError("Failed to load that image.") from exc
        if not response.data:
            return None
        return _parse_row(response.data[0])


def _parse_row(row: dict[str, object]) -> ImageRecord:
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else datetime.now(tz=UTC)
    )
    return ImageRecord(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["user_id"])),
        image_reference=str(row["image_url"]),
        prompt_text=str(row["prompt"]),
        created_at=created_at,
    )
