"""Sign-in state backed by the external identity provider."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from cartoon_studio.domain.sessions import Credentials, Session

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]


class IdentityProvider(Protocol):
    """Interface for credential-based authentication.

    Implementations raise ``AuthError`` when the provider rejects a request.
    """

    def sign_up(self, credentials: Credentials) -> Session:
        """Create an account and return the resulting session."""

    def sign_in(self, credentials: Credentials) -> Session:
        """Authenticate and return the resulting session."""

    def sign_out(self) -> None:
        """End the current session."""

    def current_session(self) -> Session:
        """Return the provider's current session."""


@dataclass
class IdentityService:
    """Proxies the identity provider and notifies listeners of changes."""

    provider: IdentityProvider
    listeners: list[SessionListener] = field(default_factory=list)

    def sign_up(self, credentials: Credentials) -> Session:
        session = self.provider.sign_up(credentials)
        self._notify(session)
        return session

    def sign_in(self, credentials: Credentials) -> Session:
        session = self.provider.sign_in(credentials)
        self._notify(session)
        return session

    def sign_out(self) -> None:
        self.provider.sign_out()
        self._notify(Session.anonymous())

    def current(self) -> Session:
        """Return the current session, anonymous when signed out."""
        return self.provider.current_session()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def _notify(self, session: Session) -> None:
        for listener in list(self.listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed")
