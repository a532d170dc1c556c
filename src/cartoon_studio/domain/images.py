"""Domain models for image generation and the gallery."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID


@dataclass(frozen=True)
class GenerationRequest:
    """One user submission, possibly spanning several upstream attempts."""

    prompt_text: str
    retry_count: int = 0
    deadline: timedelta = timedelta(seconds=30)


@dataclass(frozen=True)
class GenerationResult:
    """Generated image as a data URL with the prompt the user typed."""

    image_data: str
    source_prompt: str


@dataclass(frozen=True)
class ImageRecord:
    """Represents an image row stored in the gallery."""

    id: UUID
    owner_id: UUID
    image_reference: str
    prompt_text: str
    created_at: datetime


@dataclass(frozen=True)
class InferenceReply:
    """Status, headers and body of one inference HTTP response."""

    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        """Return a header value, matching the name case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None
