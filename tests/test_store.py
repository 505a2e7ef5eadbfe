"""Tests for the local reminder store."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from voice_pipeline.dictation.store import LocalReminderStore
from voice_pipeline.models import ReminderCategory, ReminderPriority, ReminderStatus, VoiceReminder

from fakes import NOW


class TestLocalReminderStore:
    def test_missing_file_is_empty(self, tmp_path) -> None:
        assert LocalReminderStore(tmp_path / "none.json").load() == []

    def test_append_and_get(self, tmp_path) -> None:
        store = LocalReminderStore(tmp_path / "nested" / "reminders.json")
        reminder = VoiceReminder(
            transcription="Send CBT worksheet",
            client_id="c1",
            follow_ups=["Email worksheet"],
            category=ReminderCategory.HOMEWORK,
            priority=ReminderPriority.HIGH,
            status=ReminderStatus.READY,
        )

        store.append(reminder)

        loaded = store.get(reminder.id)
        assert loaded == reminder
        assert store.get("missing") is None

    def test_append_keeps_order(self, tmp_path) -> None:
        store = LocalReminderStore(tmp_path / "reminders.json")
        first = VoiceReminder(transcription="first")
        second = VoiceReminder(transcription="second")

        store.append(first)
        store.append(second)

        assert [r.transcription for r in store.load()] == ["first", "second"]

    def test_append_same_id_replaces(self, tmp_path) -> None:
        store = LocalReminderStore(tmp_path / "reminders.json")
        reminder = VoiceReminder(transcription="draft")
        store.append(reminder)

        reminder.status = ReminderStatus.COMPLETED
        store.append(reminder)

        stored = store.load()
        assert len(stored) == 1
        assert stored[0].status is ReminderStatus.COMPLETED

    def test_corrupt_file_reads_as_empty(self, tmp_path) -> None:
        path = tmp_path / "reminders.json"
        path.write_text("{not json")
        store = LocalReminderStore(path)

        assert store.load() == []
        assert store.get("anything") is None
        assert path.read_text() == "{not json"

    def test_append_moves_corrupt_file_aside(self, tmp_path) -> None:
        path = tmp_path / "reminders.json"
        path.write_text("{not json")
        store = LocalReminderStore(path)

        store.append(VoiceReminder(transcription="fresh start"))

        assert [r.transcription for r in store.load()] == ["fresh start"]
        moved = list(tmp_path.glob("reminders.json.corrupt-*"))
        assert len(moved) == 1
        assert moved[0].read_text() == "{not json"

    def test_one_bad_record_does_not_lose_earlier_reminders(self, tmp_path) -> None:
        path = tmp_path / "reminders.json"
        store = LocalReminderStore(path)
        for text in ("first", "second", "third"):
            store.append(VoiceReminder(transcription=text))
        records = json.loads(path.read_text())
        records[1]["status"] = "archived"
        path.write_text(json.dumps(records))

        store.append(VoiceReminder(transcription="new"))

        (moved,) = tmp_path.glob("reminders.json.corrupt-*")
        kept = [r["transcription"] for r in json.loads(moved.read_text())]
        assert kept == ["first", "second", "third"]
        assert [r.transcription for r in store.load()] == ["new"]

    def test_unreadable_file_blocks_append(self, tmp_path) -> None:
        path = tmp_path / "reminders.json"
        path.mkdir()
        store = LocalReminderStore(path)

        assert store.load() == []
        with pytest.raises(OSError):
            store.append(VoiceReminder(transcription="new"))
        assert path.is_dir()

    def test_no_temporary_files_left_behind(self, tmp_path) -> None:
        store = LocalReminderStore(tmp_path / "reminders.json")
        store.append(VoiceReminder(transcription="one"))
        assert [p.name for p in tmp_path.iterdir()] == ["reminders.json"]

    def test_for_day(self, tmp_path) -> None:
        store = LocalReminderStore(tmp_path / "reminders.json")
        today = VoiceReminder(transcription="today", created_at=NOW)
        yesterday = VoiceReminder(transcription="yesterday", created_at=NOW - timedelta(days=1))
        store.append(today)
        store.append(yesterday)

        assert [r.transcription for r in store.for_day(NOW.date())] == ["today"]
