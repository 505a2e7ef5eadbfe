from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    Provider keys found here only seed the credential store; the store is
    what the gateways consult at call time.
    """

    # API Keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    elevenlabs_api_key: str = ""  # Optional; on-device voice is used when absent

    # Supabase (data façade)
    supabase_url: str = ""
    supabase_key: str = ""

    # Language models
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_model: str = "gpt-4o"
    llm_max_tokens: int = 1024
    llm_timeout_seconds: float = 60.0

    # Speech synthesis
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    elevenlabs_model: str = "eleven_monolingual_v1"
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"  # Rachel
    elevenlabs_sample_rate: int = 22050
    system_voice_language: str = "en-US"
    system_voice_rate: int = 175

    # Capture
    sample_rate_hz: int = 16000
    whisper_model: str = "small.en"
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"
    recognizer_stride_seconds: float = 1.0
    max_utterance_seconds: float = 60.0
    level_interval_seconds: float = 0.1

    # Local storage
    recordings_dir: str = "VoiceRecordings"
    recording_retention_days: int = 30
    reminders_file: str = "VoiceReminders.json"

    # Assistant behaviour
    barge_in_enabled: bool = False
    conversation_mode_enabled: bool = False

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@dataclass(frozen=True)
class FallbackPolicy:
    """Retry policy for the language model provider chain.

    Providers are tried in declared order; a failed attempt moves to the
    next configured provider and at most ``max_attempts`` calls are made
    per prompt.
    """

    max_attempts: int = 2

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
