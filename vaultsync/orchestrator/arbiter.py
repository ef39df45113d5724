"""Conflict arbiter - one conflict prompt on screen at a time."""
import asyncio
import inspect
import logging

from ..models import ConflictResolution
from ..protocols import IConflictPrompt

logger = logging.getLogger(__name__)


def fixed_resolution(resolution: ConflictResolution) -> IConflictPrompt:
    """Non-interactive prompt that answers every conflict the same way."""
    def prompt(filename: str) -> ConflictResolution:
        return resolution

    return prompt


class ConflictArbiter:
    """
    Serializes conflict prompts.

    Concurrent ``resolve`` calls queue on a single asyncio.Lock and are served
    in the order they arrived, so the user never sees two prompts at once.
    A dismissed prompt resolves to SKIP.
    """

    def __init__(self, prompt: IConflictPrompt):
        self._prompt = prompt
        self._lock = asyncio.Lock()
        self._prompts_shown = 0

    @property
    def prompts_shown(self) -> int:
        return self._prompts_shown

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def resolve(self, name: str) -> ConflictResolution:
        async with self._lock:
            self._prompts_shown += 1
            logger.info(f"Conflict: '{name}' already exists, waiting for decision")

            answer = self._prompt(name)
            if inspect.isawaitable(answer):
                answer = await answer

            resolution = ConflictResolution.parse(answer)
            logger.info(f"Conflict on '{name}' resolved: {resolution.value}")
            return resolution
