"""Hugging Face inference API client."""

import asyncio
from dataclasses import dataclass

import httpx

from cartoon_studio.domain.errors import ConfigurationError
from cartoon_studio.domain.images import InferenceReply
from cartoon_studio.services.generation import (
    InferenceClient,
    InferenceTimeoutError,
    InferenceTransportError,
)


@dataclass
class HttpxInferenceClient(InferenceClient):
    """HTTPX-backed text-to-image client."""

    api_key: str
    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str | None, url: str) -> "HttpxInferenceClient":
        """Create an inference client with a managed httpx session.

        Raises ``ConfigurationError`` when no API key is configured.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "Hugging Face API key is not configured. "
                "Set HUGGINGFACE_API_KEY to enable image generation."
            )
        return cls(api_key=api_key.strip(), url=url, http_client=httpx.AsyncClient())

    async def text_to_image(
        self, payload: dict[str, object], timeout: float
    ) -> InferenceReply:
        """POST a generation payload and return the raw reply.

        ``timeout`` bounds the whole exchange, including reading the body.
        """
        try:
            async with asyncio.timeout(timeout):
                response = await self.http_client.post(
                    self.url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=payload,
                    timeout=timeout,
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise InferenceTimeoutError(
                f"No response from inference endpoint within {timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise InferenceTransportError(
                f"Inference endpoint unreachable: {type(exc).__name__}"
            ) from exc
        return InferenceReply(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
