"""Local durable storage for saved voice reminders."""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from voice_pipeline.models import VoiceReminder

logger = logging.getLogger(__name__)

_REMINDERS = TypeAdapter(list[VoiceReminder])


class LocalReminderStore:
    """A single JSON array of reminders, rewritten in full on every append.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written array behind.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> list[VoiceReminder]:
        """Every stored reminder in append order; empty if missing or unreadable."""
        try:
            return self._read()
        except OSError as exc:
            logger.warning("Could not read reminders from %s: %s", self.path, exc)
            return []
        except ValidationError as exc:
            logger.warning("Reminder store %s is corrupt, ignoring it: %s", self.path, exc)
            return []

    def append(self, reminder: VoiceReminder) -> None:
        """Insert or replace ``reminder``.

        An unreadable file raises ``OSError`` and is left untouched. A file that
        no longer decodes is renamed to ``<name>.corrupt-<timestamp>`` before
        the new array is written.
        """
        try:
            stored = self._read()
        except ValidationError as exc:
            moved = self._quarantine()
            logger.error("Reminder store %s is corrupt, moved it to %s: %s", self.path, moved, exc)
            stored = []
        reminders = [r for r in stored if r.id != reminder.id]
        reminders.append(reminder)
        self._write(reminders)
        logger.info("Saved reminder %s (%d stored)", reminder.id, len(reminders))

    def get(self, reminder_id: str) -> VoiceReminder | None:
        return next((r for r in self.load() if r.id == reminder_id), None)

    def for_day(self, day: date) -> list[VoiceReminder]:
        return [r for r in self.load() if r.created_at.date() == day]

    def _read(self) -> list[VoiceReminder]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        return _REMINDERS.validate_json(raw)

    def _quarantine(self) -> Path:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        os.replace(self.path, target)
        return target

    def _write(self, reminders: list[VoiceReminder]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(_REMINDERS.dump_json(reminders, indent=2))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
