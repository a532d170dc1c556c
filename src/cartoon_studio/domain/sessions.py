"""Domain models for the signed-in identity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class Credentials:
    """Email and password passed through to the identity provider."""

    email: str
    password: str


@dataclass(frozen=True)
class Session:
    """The current authenticated identity, or its absence."""

    identity: UUID | None = None
    email: str | None = None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None
