"""Image generation against the hosted inference endpoint.

Each call to :meth:`GenerationService.generate` runs one bounded retry loop.
Failed attempts are classified and looked up in ``RETRY_RULES`` to decide
whether to retry and how long to wait first: rate limiting follows the
server's ``Retry-After`` hint, everything else retryable waits a fixed delay.
"""

import asyncio
import base64
import json
import logging
import random
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum
from typing import Protocol

from cartoon_studio.config import parse_retry_after
from cartoon_studio.domain.errors import (
    EmptyPrompt,
    GenerationTimeout,
    NoSession,
    UpstreamError,
)
from cartoon_studio.domain.images import (
    GenerationRequest,
    GenerationResult,
    InferenceReply,
)
from cartoon_studio.domain.sessions import Session

logger = logging.getLogger(__name__)

STYLE_SUFFIX = (
    ", high quality, detailed, cartoon style, digital art, vibrant colors, "
    "sharp focus, clean lines, professional illustration"
)

NEGATIVE_PROMPT = (
    "blurry, bad quality, noise, grain, distorted, deformed, disfigured, "
    "poorly drawn, bad anatomy, wrong anatomy, extra limb, missing limb, "
    "floating limbs, disconnected limbs, mutation, mutated, ugly, disgusting, "
    "out of frame, duplicate, morbid, mutilated, poorly drawn hands, "
    "poorly drawn feet, poorly drawn face, out of frame, extra limbs, "
    "bad anatomy, gross proportions, text, error, missing fingers, "
    "missing arms, missing legs, extra digits, fewer digits"
)

RESOURCE_EXHAUSTED_MARKER = "CUDA out of memory"
MAX_SEED = 2147483647
_IMAGE_MIME_TYPE = re.compile(r"image/[a-z0-9.+-]+")


class InferenceTransportError(Exception):
    """The inference request failed before any HTTP response arrived."""


class InferenceTimeoutError(InferenceTransportError):
    """No response arrived within the per-attempt bound."""


class InferenceClient(Protocol):
    """Interface for the text-to-image inference endpoint."""

    async def text_to_image(
        self, payload: dict[str, object], timeout: float
    ) -> InferenceReply:
        """Send one generation request and return the raw reply.

        Raises ``InferenceTimeoutError`` or ``InferenceTransportError`` when no
        response is received.
        """


class FailureKind(Enum):
    RATE_LIMITED = "rate_limited"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    TIMEOUT = "timeout"
    NETWORK = "network"
    REJECTED = "rejected"


@dataclass(frozen=True)
class RetryRule:
    """Whether a failure kind is retried and where its delay comes from."""

    retryable: bool
    server_directed: bool = False


RETRY_RULES: dict[FailureKind, RetryRule] = {
    FailureKind.RATE_LIMITED: RetryRule(retryable=True, server_directed=True),
    FailureKind.RESOURCE_EXHAUSTED: RetryRule(retryable=True),
    FailureKind.TIMEOUT: RetryRule(retryable=True),
    FailureKind.NETWORK: RetryRule(retryable=True),
    FailureKind.REJECTED: RetryRule(retryable=False),
}


@dataclass(frozen=True)
class AttemptFailure:
    """Classified outcome of a failed attempt."""

    kind: FailureKind
    detail: str
    reply: InferenceReply | None = None


def _random_seed() -> int:
    return random.randrange(MAX_SEED)  # noqa: S311


@dataclass
class GenerationService:
    """Owns the lifecycle of a single image-generation request."""

    client: InferenceClient
    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    default_retry_after_seconds: float = 5.0
    max_retry_after_seconds: float = 60.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    seed_factory: Callable[[], int] = _random_seed

    async def generate(self, prompt_text: str, session: Session) -> GenerationResult:
        """Generate an image for the prompt, retrying transient failures."""
        if not session.is_authenticated:
            raise NoSession("Please sign in to generate images.")
        if not prompt_text or not prompt_text.strip():
            raise EmptyPrompt()

        request = GenerationRequest(
            prompt_text=prompt_text,
            deadline=timedelta(seconds=self.timeout_seconds),
        )
        while True:
            outcome = await self._attempt(request)
            if isinstance(outcome, GenerationResult):
                if request.retry_count:
                    logger.info(
                        "Image generated after %s retries", request.retry_count
                    )
                return outcome

            rule = RETRY_RULES[outcome.kind]
            if not rule.retryable or request.retry_count >= self.max_retries:
                raise self._terminal_error(outcome, request)

            delay = self._retry_delay(outcome, rule)
            logger.warning(
                "Generation attempt %s/%s failed (%s), retrying in %ss",
                request.retry_count + 1,
                self.max_retries + 1,
                outcome.kind.value,
                delay,
            )
            await self.sleep(delay)
            request = replace(request, retry_count=request.retry_count + 1)

    def build_payload(self, prompt_text: str) -> dict[str, object]:
        """Return the inference payload for the prompt with a fresh seed."""
        return {
            "inputs": f"{prompt_text}{STYLE_SUFFIX}",
            "parameters": {
                "negative_prompt": NEGATIVE_PROMPT,
                "num_inference_steps": 50,
                "guidance_scale": 9.0,
                "height": 768,
                "width": 768,
                "seed": self.seed_factory(),
            },
        }

    async def _attempt(
        self, request: GenerationRequest
    ) -> GenerationResult | AttemptFailure:
        payload = self.build_payload(request.prompt_text)
        try:
            reply = await self.client.text_to_image(
                payload, timeout=request.deadline.total_seconds()
            )
        except InferenceTimeoutError as exc:
            return AttemptFailure(kind=FailureKind.TIMEOUT, detail=str(exc))
        except InferenceTransportError as exc:
            return AttemptFailure(kind=FailureKind.NETWORK, detail=str(exc))

        if reply.ok:
            return GenerationResult(
                image_data=_to_data_url(reply.content, reply.header("content-type")),
                source_prompt=request.prompt_text,
            )
        return classify_reply(reply)

    def _retry_delay(self, failure: AttemptFailure, rule: RetryRule) -> float:
        if rule.server_directed and failure.reply is not None:
            return parse_retry_after(
                failure.reply.header("retry-after"),
                self.default_retry_after_seconds,
                maximum=self.max_retry_after_seconds,
            )
        return self.retry_delay_seconds

    def _terminal_error(
        self, failure: AttemptFailure, request: GenerationRequest
    ) -> Exception:
        logger.error(
            "Image generation failed after %s attempts",
            request.retry_count + 1,
            extra={"failure": failure.kind.value, "detail": failure.detail},
        )
        if failure.kind is FailureKind.TIMEOUT:
            return GenerationTimeout(
                "The image service timed out. Please try again in a moment."
            )
        if failure.kind is FailureKind.NETWORK:
            return UpstreamError(
                "Could not reach the image service. Check your connection."
            )
        if failure.kind is FailureKind.RATE_LIMITED:
            return UpstreamError(
                "The image service is busy right now. Please try again later."
            )
        return UpstreamError(f"API request failed: {failure.detail}")


def classify_reply(reply: InferenceReply) -> AttemptFailure:
    """Classify a non-success reply from the inference endpoint."""
    body = _decode_body(reply.content)
    detail = json.dumps(body) if isinstance(body, dict | list) else str(body)
    if _is_resource_exhausted(body):
        return AttemptFailure(
            kind=FailureKind.RESOURCE_EXHAUSTED, detail=detail, reply=reply
        )
    if reply.status_code == 429:  # noqa: PLR2004
        return AttemptFailure(kind=FailureKind.RATE_LIMITED, detail=detail, reply=reply)
    return AttemptFailure(
        kind=FailureKind.REJECTED,
        detail=f"HTTP {reply.status_code} {detail}".strip(),
        reply=reply,
    )


def _decode_body(content: bytes) -> object:
    text = content.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def _is_resource_exhausted(body: object) -> bool:
    if not isinstance(body, dict) or not body.get("error"):
        return False
    warnings = body.get("warnings")
    if not isinstance(warnings, list):
        return False
    return any(
        isinstance(warning, str) and RESOURCE_EXHAUSTED_MARKER in warning
        for warning in warnings
    )


def _to_data_url(image_bytes: bytes, content_type: str | None = None) -> str:
    """Convert bytes to a base64 data URL for display and storage."""
    mime_type = _mime_from_header(content_type) or _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _mime_from_header(content_type: str | None) -> str | None:
    if not content_type:
        return None
    mime_type = content_type.split(";", maxsplit=1)[0].strip().lower()
    if _IMAGE_MIME_TYPE.fullmatch(mime_type):
        return mime_type
    return None


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
