"""Single-flight guard for generation requests."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from cartoon_studio.domain.errors import GenerationInProgress


@dataclass
class GenerationGate:
    """Rejects a new generation while another one is still running."""

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        """Hold the gate for the duration of one generation."""
        if self._lock.locked():
            raise GenerationInProgress()
        async with self._lock:
            yield
