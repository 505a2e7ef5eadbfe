"""Credential store interface and an in-process implementation.

The secure store itself lives outside this package; the pipeline only needs
get-or-none / set / delete keyed by logical name. A missing key means the
feature is unconfigured.
"""

from __future__ import annotations

from typing import Protocol

from voice_pipeline.config import Settings

ANTHROPIC_API_KEY = "anthropic_api_key"
OPENAI_API_KEY = "openai_api_key"
ELEVENLABS_API_KEY = "elevenlabs_api_key"
ELEVENLABS_VOICE_ID = "elevenlabs_voice_id"


class CredentialStore(Protocol):
    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None: ...


class InMemoryCredentialStore:
    """Dictionary-backed store; empty values are treated as absent."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = {k: v for k, v in (values or {}).items() if v}

    @classmethod
    def from_settings(cls, settings: Settings) -> InMemoryCredentialStore:
        return cls(
            {
                ANTHROPIC_API_KEY: settings.anthropic_api_key,
                OPENAI_API_KEY: settings.openai_api_key,
                ELEVENLABS_API_KEY: settings.elevenlabs_api_key,
            }
        )

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        if value:
            self._values[name] = value
        else:
            self._values.pop(name, None)

    def delete(self, name: str) -> None:
        self._values.pop(name, None)


def has_credential(store: CredentialStore, name: str) -> bool:
    return bool(store.get(name))
