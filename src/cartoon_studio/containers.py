"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from supabase import create_client

from cartoon_studio.adapters.inference_client import HttpxInferenceClient
from cartoon_studio.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from cartoon_studio.adapters.supabase_image_repository import SupabaseImageRepository
from cartoon_studio.config import Settings
from cartoon_studio.domain.errors import ConfigurationError
from cartoon_studio.services.gate import GenerationGate
from cartoon_studio.services.generation import GenerationService
from cartoon_studio.services.identity import IdentityService
from cartoon_studio.services.images import ImageService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_service: IdentityService
    image_service: ImageService
    generation_service: GenerationService | None
    close_resources: Callable[[], Awaitable[None]]
    configuration_error: ConfigurationError | None = None
    generation_gate: GenerationGate = field(default_factory=GenerationGate)

    def require_generation_service(self) -> GenerationService:
        """Return the generation service or raise the configuration error."""
        if self.generation_service is None:
            raise self.configuration_error or ConfigurationError()
        return self.generation_service


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    identity_service = IdentityService(SupabaseIdentityProvider(supabase_client))
    image_service = ImageService(SupabaseImageRepository(supabase_client))

    inference_client: HttpxInferenceClient | None = None
    generation_service: GenerationService | None = None
    configuration_error: ConfigurationError | None = None
    try:
        inference_client = HttpxInferenceClient.create(
            api_key=resolved_settings.huggingface_api_key,
            url=resolved_settings.inference_url,
        )
    except ConfigurationError as exc:
        logger.warning("Image generation disabled: %s", exc.message)
        configuration_error = exc
    else:
        generation_service = GenerationService(
            client=inference_client,
            timeout_seconds=resolved_settings.inference_timeout_seconds,
            max_retries=resolved_settings.max_retries,
            retry_delay_seconds=resolved_settings.retry_delay_seconds,
            default_retry_after_seconds=resolved_settings.default_retry_after_seconds,
            max_retry_after_seconds=resolved_settings.max_retry_after_seconds,
        )

    async def close_resources() -> None:
        if inference_client is not None:
            await inference_client.close()

    return AppContainer(
        settings=resolved_settings,
        identity_service=identity_service,
        image_service=image_service,
        generation_service=generation_service,
        close_resources=close_resources,
        configuration_error=configuration_error,
    )
