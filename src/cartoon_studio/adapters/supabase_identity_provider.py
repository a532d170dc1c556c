"""Supabase Auth identity provider."""

import logging
from dataclasses import dataclass
from uuid import UUID

import httpx
from supabase import Client
from supabase_auth.errors import AuthError as SupabaseAuthError

from cartoon_studio.domain.errors import AuthError
from cartoon_studio.domain.sessions import Credentials, Session
from cartoon_studio.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase email/password auth.

    The shared client keeps the signed-in session, so table queries made
    through the same client run under the user's row-level policies.
    """

    client: Client

    def sign_up(self, credentials: Credentials) -> Session:
        """Create an account; returns an anonymous session if confirmation is pending."""
        try:
            response = self.client.auth.sign_up(
                {"email": credentials.email, "password": credentials.password}
            )
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            logger.warning("Sign-up rejected: %s", exc)
            raise AuthError(_auth_message(exc, "Could not create account.")) from exc
        if response.session is None or response.user is None:
            return Session.anonymous()
        return _to_session(response.user)

    def sign_in(self, credentials: Credentials) -> Session:
        """Sign in with email and password."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": credentials.email, "password": credentials.password}
            )
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            logger.warning("Sign-in rejected: %s", exc)
            raise AuthError(_auth_message(exc, "Authentication failed.")) from exc
        if response.user is None:
            raise AuthError("Authentication failed.")
        return _to_session(response.user)

    def sign_out(self) -> None:
        """Sign out of the current session."""
        try:
            self.client.auth.sign_out()
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            logger.warning("Sign-out failed: %s", exc)
            raise AuthError("Failed to sign out.") from exc

    def current_session(self) -> Session:
        """Return the session held by the client, if any."""
        try:
            auth_session = self.client.auth.get_session()
        except (SupabaseAuthError, httpx.HTTPError):
            logger.exception("Failed to read current auth session")
            return Session.anonymous()
        if auth_session is None or auth_session.user is None:
            return Session.anonymous()
        return _to_session(auth_session.user)


def _to_session(user: object) -> Session:
    return Session(
        identity=UUID(str(user.id)),  # type: ignore[attr-defined]
        email=getattr(user, "email", None),
    )


def _auth_message(exc: Exception, fallback: str) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message.strip() or fallback
