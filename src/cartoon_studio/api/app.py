"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse

from cartoon_studio.api.models import (
    CredentialsPayload,
    ErrorResponse,
    GeneratePayload,
    GenerateResponse,
    ImageListResponse,
    ImageResponse,
    SessionResponse,
)
from cartoon_studio.api.ui import STUDIO_UI_HTML
from cartoon_studio.app_logging import configure_logging
from cartoon_studio.containers import AppContainer
from cartoon_studio.domain.errors import (
    AuthError,
    CartoonStudioError,
    ConfigurationError,
    EmptyPrompt,
    GenerationInProgress,
    GenerationTimeout,
    NoSession,
    StoreError,
    UpstreamError,
)

_STATUS_CODES: dict[type[CartoonStudioError], int] = {
    ConfigurationError: status.HTTP_503_SERVICE_UNAVAILABLE,
    NoSession: status.HTTP_401_UNAUTHORIZED,
    EmptyPrompt: 422,
    GenerationTimeout: status.HTTP_504_GATEWAY_TIMEOUT,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
    StoreError: status.HTTP_502_BAD_GATEWAY,
    AuthError: status.HTTP_400_BAD_REQUEST,
    GenerationInProgress: status.HTTP_409_CONFLICT,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.container.configuration_error is not None:
            logger.warning(
                "Starting without image generation: %s",
                app.state.container.configuration_error.message,
            )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(CartoonStudioError)
    async def handle_studio_error(
        request: Request, exc: CartoonStudioError
    ) -> JSONResponse:
        body = ErrorResponse(error=exc.code, message=exc.message)
        return JSONResponse(
            status_code=_STATUS_CODES.get(
                type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            content=body.model_dump(),
        )

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        """Single-page studio UI."""
        return HTMLResponse(STUDIO_UI_HTML)

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        state_container: AppContainer = app.state.container
        return {
            "status": "ok",
            "generation_enabled": state_container.generation_service is not None,
        }

    @app.get("/api/auth/session")
    async def current_session(request: Request) -> SessionResponse:
        state_container: AppContainer = request.app.state.container
        return SessionResponse.from_domain(state_container.identity_service.current())

    @app.post("/api/auth/sign-in")
    async def sign_in(payload: CredentialsPayload, request: Request) -> SessionResponse:
        state_container: AppContainer = request.app.state.container
        session = state_container.identity_service.sign_in(payload.to_domain())
        logger.info("User signed in", extra={"user_id": str(session.identity)})
        return SessionResponse.from_domain(session)

    @app.post("/api/auth/sign-up")
    async def sign_up(payload: CredentialsPayload, request: Request) -> SessionResponse:
        state_container: AppContainer = request.app.state.container
        session = state_container.identity_service.sign_up(payload.to_domain())
        return SessionResponse.from_domain(session)

    @app.post("/api/auth/sign-out")
    async def sign_out(request: Request) -> SessionResponse:
        state_container: AppContainer = request.app.state.container
        state_container.identity_service.sign_out()
        return SessionResponse.from_domain(state_container.identity_service.current())

    @app.post("/api/generate")
    async def generate(payload: GeneratePayload, request: Request) -> GenerateResponse:
        """Generate an image and save it to the caller's gallery."""
        state_container: AppContainer = request.app.state.container
        session = state_container.identity_service.current()
        if not session.is_authenticated:
            raise NoSession("Please sign in to generate images.")
        generation_service = state_container.require_generation_service()

        async with state_container.generation_gate.hold():
            result = await generation_service.generate(payload.prompt, session)

        try:
            record = state_container.image_service.save(session, result)
        except StoreError as exc:
            logger.warning(
                "Generated image was not saved",
                extra={"user_id": str(session.identity)},
            )
            return GenerateResponse(
                image=result.image_data,
                prompt=result.source_prompt,
                saved=False,
                warning=_format_store_warning(state_container, exc),
            )
        return GenerateResponse(
            image=result.image_data,
            prompt=result.source_prompt,
            saved=True,
            image_id=record.id,
        )

    @app.get("/api/images")
    async def list_images(request: Request) -> ImageListResponse:
        """Return the caller's gallery, newest first."""
        state_container: AppContainer = request.app.state.container
        session = state_container.identity_service.current()
        records = state_container.image_service.list_for_owner(session)
        return ImageListResponse(
            images=[ImageResponse.from_domain(record) for record in records]
        )

    @app.get("/api/images/{image_id}")
    async def image_detail(image_id: UUID, request: Request) -> ImageResponse:
        state_container: AppContainer = request.app.state.container
        session = state_container.identity_service.current()
        record = state_container.image_service.get_for_owner(session, image_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return ImageResponse.from_domain(record)

    return app


def _format_store_warning(state_container: AppContainer, exc: StoreError) -> str:
    """Return a user-facing save warning with local debug info."""
    fallback = f"Image generated, but it could not be saved. {exc.message}"
    cause = exc.__cause__
    if state_container.settings.environment == "local" and cause is not None:
        return f"{fallback} (debug: {type(cause).__name__}: {cause})"
    return fallback
