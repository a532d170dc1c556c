"""Error taxonomy surfaced to users as notifications."""


class CartoonStudioError(Exception):
    """Base class for errors with a stable code and a user-facing message."""

    code = "error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(CartoonStudioError):
    """A required credential or setting is missing."""

    code = "configuration_error"
    default_message = "Image generation is not configured: API key is missing."


class NoSession(CartoonStudioError):
    """An action that needs an identity was attempted while signed out."""

    code = "no_session"
    default_message = "Please sign in to continue."


class EmptyPrompt(CartoonStudioError):
    code = "empty_prompt"
    default_message = "Please enter a prompt."


class GenerationTimeout(CartoonStudioError):
    """The inference endpoint did not answer within the allowed time."""

    code = "timeout"
    default_message = "The image service took too long to respond."


class UpstreamError(CartoonStudioError):
    """The inference endpoint failed and retrying did not help."""

    code = "upstream_error"
    default_message = "Failed to generate image. Please try again."


class StoreError(CartoonStudioError):
    code = "store_error"
    default_message = "Could not reach your gallery."


class AuthError(CartoonStudioError):
    code = "auth_error"
    default_message = "Authentication failed."


class GenerationInProgress(CartoonStudioError):
    code = "generation_in_progress"
    default_message = "An image is already being generated."
