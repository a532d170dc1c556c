"""Pydantic models for the JSON API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from cartoon_studio.domain.images import ImageRecord
from cartoon_studio.domain.sessions import Credentials, Session


class CredentialsPayload(BaseModel):
    """Email/password form payload."""

    email: str = Field(min_length=3)
    password: str = Field(min_length=1)

    def to_domain(self) -> Credentials:
        return Credentials(email=self.email.strip(), password=self.password)


class GeneratePayload(BaseModel):
    """Prompt submitted from the generate form."""

    prompt: str = ""


class SessionResponse(BaseModel):
    """Current sign-in state."""

    authenticated: bool
    user_id: UUID | None = None
    email: str | None = None

    @classmethod
    def from_domain(cls, session: Session) -> "SessionResponse":
        return cls(
            authenticated=session.is_authenticated,
            user_id=session.identity,
            email=session.email,
        )


class GenerateResponse(BaseModel):
    """Generated image and whether it reached the gallery."""

    image: str
    prompt: str
    saved: bool
    image_id: UUID | None = None
    warning: str | None = None


class ImageResponse(BaseModel):
    """Gallery image."""

    id: UUID
    image_url: str
    prompt: str
    created_at: datetime

    @classmethod
    def from_domain(cls, record: ImageRecord) -> "ImageResponse":
        return cls(
            id=record.id,
            image_url=record.image_reference,
            prompt=record.prompt_text,
            created_at=record.created_at,
        )


class ImageListResponse(BaseModel):
    images: list[ImageResponse]


class ErrorResponse(BaseModel):
    """Error notification body."""

    error: str
    message: str
