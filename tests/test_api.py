"""Tests for the studio HTTP API."""

import asyncio
import logging
from dataclasses import replace

from conftest import (
    FakeIdentityProvider,
    InMemoryImageRepository,
    ScriptedInferenceClient,
    rate_limited_reply,
    timeout_error,
)
from fastapi.testclient import TestClient

from cartoon_studio.api.app import create_app
from cartoon_studio.domain.errors import ConfigurationError, StoreError
from cartoon_studio.services.gate import GenerationGate

CREDENTIALS = {"email": "artist@example.com", "password": "secret-pass"}


def _signed_in_client(container) -> TestClient:  # type: ignore[no-untyped-def]
    client = TestClient(create_app(container))
    response = client.post("/api/auth/sign-up", json=CREDENTIALS)
    assert response.status_code == 200
    return client


def test_health_reports_generation_enabled(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.json() == {"status": "ok", "generation_enabled": True}


def test_index_serves_studio_page(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/")

    assert response.status_code == 200
    assert "Create Your Cartoon" in response.text
    assert "document.createElement('img')" in response.text
    assert "src=\"' + data.image" not in response.text


def test_session_endpoints_roundtrip(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/api/auth/session").json()["authenticated"] is False

    signed_up = client.post("/api/auth/sign-up", json=CREDENTIALS).json()
    assert signed_up["authenticated"] is True
    assert signed_up["email"] == CREDENTIALS["email"]

    signed_out = client.post("/api/auth/sign-out").json()
    assert signed_out["authenticated"] is False

    signed_in = client.post("/api/auth/sign-in", json=CREDENTIALS).json()
    assert signed_in["user_id"] == signed_up["user_id"]


def test_sign_in_with_bad_password_returns_auth_error(container) -> None:
    client = TestClient(create_app(container))
    client.post("/api/auth/sign-up", json=CREDENTIALS)
    client.post("/api/auth/sign-out")

    response = client.post(
        "/api/auth/sign-in",
        json={"email": CREDENTIALS["email"], "password": "wrong"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "auth_error"


def test_generate_requires_session(
    container, inference_client: ScriptedInferenceClient
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 401
    assert response.json()["error"] == "no_session"
    assert inference_client.calls == 0


def test_generate_rejects_blank_prompt(
    container, inference_client: ScriptedInferenceClient
) -> None:
    client = _signed_in_client(container)

    response = client.post("/api/generate", json={"prompt": "   "})

    assert response.status_code == 422
    assert response.json()["error"] == "empty_prompt"
    assert inference_client.calls == 0


def test_generate_saves_record_for_signed_in_user(
    container,
    image_repository: InMemoryImageRepository,
    identity_provider: FakeIdentityProvider,
) -> None:
    client = _signed_in_client(container)

    response = client.post("/api/generate", json={"prompt": "a cat on a skateboard"})

    assert response.status_code == 200
    data = response.json()
    assert data["saved"] is True
    assert data["image"].startswith("data:image/png;base64,")
    assert len(image_repository.images) == 1
    record = image_repository.images[0]
    assert record.owner_id == identity_provider.session.identity
    assert record.prompt_text == "a cat on a skateboard"
    assert str(record.id) == data["image_id"]


def test_generate_returns_image_when_save_fails(
    container, image_repository: InMemoryImageRepository
) -> None:
    image_repository.fail_with = StoreError("Failed to save image to your gallery.")
    client = _signed_in_client(container)

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 200
    data = response.json()
    assert data["saved"] is False
    assert data["image"].startswith("data:image/png;base64,")
    assert "could not be saved" in data["warning"]


def test_generate_reports_missing_api_key_distinctly(container) -> None:
    unconfigured = replace(
        container,
        generation_service=None,
        configuration_error=ConfigurationError(),
    )
    client = _signed_in_client(unconfigured)

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 503
    assert response.json()["error"] == "configuration_error"


def test_generate_reports_upstream_exhaustion(
    container, inference_client: ScriptedInferenceClient
) -> None:
    inference_client.script = [rate_limited_reply("0")]
    client = _signed_in_client(container)

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 502
    assert response.json()["error"] == "upstream_error"
    assert inference_client.calls == 4


def test_generate_reports_timeout(
    container, inference_client: ScriptedInferenceClient
) -> None:
    inference_client.script = [timeout_error()]
    client = _signed_in_client(container)

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 504
    assert response.json()["error"] == "timeout"


def test_generate_rejects_concurrent_request(
    container, inference_client: ScriptedInferenceClient
) -> None:
    lock = asyncio.Lock()
    asyncio.run(lock.acquire())
    busy = replace(container, generation_gate=GenerationGate(_lock=lock))
    client = _signed_in_client(busy)

    response = client.post("/api/generate", json={"prompt": "a cat"})

    assert response.status_code == 409
    assert response.json()["error"] == "generation_in_progress"
    assert inference_client.calls == 0


def test_gallery_lists_only_own_images(container) -> None:
    client = _signed_in_client(container)
    client.post("/api/generate", json={"prompt": "first"})
    client.post("/api/generate", json={"prompt": "second"})

    client.post("/api/auth/sign-out")
    client.post(
        "/api/auth/sign-up", json={"email": "other@example.com", "password": "pw"}
    )
    client.post("/api/generate", json={"prompt": "someone else"})

    other = client.get("/api/images").json()["images"]
    assert [image["prompt"] for image in other] == ["someone else"]

    client.post("/api/auth/sign-out")
    client.post("/api/auth/sign-in", json=CREDENTIALS)
    mine = client.get("/api/images").json()["images"]
    assert [image["prompt"] for image in mine] == ["second", "first"]

    detail = client.get(f"/api/images/{mine[0]['id']}")
    assert detail.status_code == 200
    assert detail.json()["prompt"] == "second"


def test_gallery_requires_session(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/images")

    assert response.status_code == 401


def test_image_detail_hides_foreign_images(container) -> None:
    client = _signed_in_client(container)
    client.post("/api/generate", json={"prompt": "mine"})
    image_id = client.get("/api/images").json()["images"][0]["id"]

    client.post("/api/auth/sign-out")
    client.post(
        "/api/auth/sign-up", json={"email": "other@example.com", "password": "pw"}
    )

    assert client.get(f"/api/images/{image_id}").status_code == 404


def test_create_app_applies_configured_log_level(container) -> None:
    settings = container.settings.model_copy(update={"log_level": "debug"})

    create_app(replace(container, settings=settings))

    assert logging.getLogger("cartoon_studio").level == logging.DEBUG
    logging.getLogger("cartoon_studio").setLevel(logging.INFO)
