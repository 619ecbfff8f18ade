"""Application configuration with pydantic-settings + TOML."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, TomlConfigSettingsSource


def _default_config_dir() -> Path:
    return Path.home() / ".avatarcast"


def _default_output_dir() -> Path:
    return _default_config_dir() / "output"


class HeyGenSettings(BaseSettings):
    """Avatar/video provider configuration."""

    api_key: str = ""
    base_url: str = "https://api.heygen.com"
    upload_url: str = "https://upload.heygen.com"
    api_key_header: str = "X-Api-Key"


class VoiceSettings(BaseSettings):
    """Synthesis tuning passed with every text-to-speech request."""

    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=1.0, ge=0.0, le=1.0)
    speed: float = Field(default=0.8, gt=0.0)


class ElevenLabsSettings(BaseSettings):
    """Speech/voice-cloning provider configuration."""

    api_key: str = ""
    base_url: str = "https://api.elevenlabs.io"
    api_key_header: str = "xi-api-key"
    model_id: str = "eleven_monolingual_v1"
    voice: VoiceSettings = Field(default_factory=VoiceSettings)
    voice_retention_seconds: int = Field(default=3600, ge=0)
    list_page_size: int = Field(default=100, gt=0, le=100)


class PollingSettings(BaseSettings):
    """Polling cadence and bounds for long-running provider jobs."""

    interval_seconds: float = Field(default=5.0, ge=0.0)
    training_max_attempts: int = Field(default=120, gt=0)
    rendering_max_attempts: int = Field(default=180, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)


class ValidationSettings(BaseSettings):
    """Local checks applied to a submission before any network call."""

    min_audio_seconds: float = Field(default=15.0, ge=0.0)
    photo_formats: list[str] = Field(default_factory=lambda: ["JPEG", "PNG"])


class RelaySettings(BaseSettings):
    """CORS relay server configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default=8787, ge=1, le=65535)
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    allowed_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )
    max_age: int = Field(default=86400, ge=0)


class AppConfig(BaseSettings):
    """Root application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AVATARCAST_",
        env_nested_delimiter="__",
    )

    config_dir: Path = Field(default_factory=_default_config_dir)
    output_dir: Path = Field(default_factory=_default_output_dir)
    active_backend: str = "live"
    heygen: HeyGenSettings = Field(default_factory=HeyGenSettings)
    elevenlabs: ElevenLabsSettings = Field(default_factory=ElevenLabsSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)

    @classmethod
    def settings_customise_sources(cls, settings_cls, **kwargs):  # type: ignore[override]
        toml_path = _default_config_dir() / "config.toml"
        sources = (
            kwargs.get("init_settings"),
            kwargs.get("env_settings"),
        )
        if toml_path.exists():
            sources = (*sources, TomlConfigSettingsSource(settings_cls, toml_file=toml_path))
        return (*sources, kwargs.get("dotenv_settings"), kwargs.get("file_secret_settings"))

    def ensure_dirs(self) -> None:
        """Create config and output directories if they don't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load application config, creating defaults if needed."""
    config = AppConfig()
    config.ensure_dirs()
    return config
