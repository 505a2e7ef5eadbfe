"""Shared claim on the microphone / audio session."""

from __future__ import annotations

import logging

from voice_pipeline.events import Publisher

logger = logging.getLogger(__name__)


class AudioSession(Publisher):
    """Tracks which components currently hold the audio session.

    ``active`` stays true while any owner holds a claim, so speech capture
    and the recorder can release in either order without one starving the
    other. Claims and releases are idempotent per owner.
    """

    source_name = "audio_session"

    def __init__(self) -> None:
        super().__init__()
        self._owners: set[str] = set()

    @property
    def active(self) -> bool:
        return bool(self._owners)

    @property
    def owners(self) -> frozenset[str]:
        return frozenset(self._owners)

    def claim(self, owner: str) -> None:
        was_active = self.active
        self._owners.add(owner)
        if not was_active:
            logger.debug("Audio session activated by %s", owner)
            self.publish("active", True)

    def release(self, owner: str) -> None:
        if owner not in self._owners:
            return
        self._owners.discard(owner)
        if not self._owners:
            logger.debug("Audio session deactivated by %s", owner)
            self.publish("active", False)
