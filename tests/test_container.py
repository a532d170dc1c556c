"""Tests for container wiring."""

import asyncio

import pytest

from cartoon_studio.containers import build_container
from cartoon_studio.domain.errors import ConfigurationError


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.generation_service is not None
    assert container.configuration_error is None
    assert container.require_generation_service() is container.generation_service
    asyncio.run(container.close_resources())


def test_build_container_without_api_key_disables_generation(settings) -> None:
    unconfigured = settings.model_copy(update={"huggingface_api_key": None})

    container = build_container(unconfigured)

    assert container.generation_service is None
    assert isinstance(container.configuration_error, ConfigurationError)
    with pytest.raises(ConfigurationError):
        container.require_generation_service()
    asyncio.run(container.close_resources())
