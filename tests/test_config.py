"""Tests for configuration system."""

import pytest
from pydantic import ValidationError

from avatarcast.config import (
    AppConfig,
    ElevenLabsSettings,
    HeyGenSettings,
    PollingSettings,
    RelaySettings,
    ValidationSettings,
)


def test_heygen_settings_defaults():
    s = HeyGenSettings()
    assert s.api_key == ""
    assert s.base_url == "https://api.heygen.com"
    assert s.upload_url == "https://upload.heygen.com"
    assert s.api_key_header == "X-Api-Key"


def test_elevenlabs_settings_defaults():
    s = ElevenLabsSettings()
    assert s.api_key_header == "xi-api-key"
    assert s.voice_retention_seconds == 3600
    assert s.voice.stability == 0.5


def test_polling_settings_defaults():
    p = PollingSettings()
    assert p.interval_seconds == 5.0
    assert p.training_max_attempts > 0
    assert p.rendering_max_attempts > 0


def test_validation_settings_defaults():
    v = ValidationSettings()
    assert v.min_audio_seconds == 15.0
    assert v.photo_formats == ["JPEG", "PNG"]


def test_app_config_defaults():
    config = AppConfig()
    assert config.config_dir.name == ".avatarcast"
    assert config.output_dir.parent.name == ".avatarcast"
    assert config.active_backend == "live"


def test_app_config_reads_nested_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AVATARCAST_HEYGEN__API_KEY", "hg-key")
    monkeypatch.setenv("AVATARCAST_POLLING__INTERVAL_SECONDS", "1.5")
    config = AppConfig()
    assert config.heygen.api_key == "hg-key"
    assert config.polling.interval_seconds == 1.5


def test_ensure_dirs(tmp_path):
    config = AppConfig(config_dir=tmp_path / "cfg", output_dir=tmp_path / "out")
    config.ensure_dirs()
    assert (tmp_path / "cfg").is_dir()
    assert (tmp_path / "out").is_dir()


@pytest.mark.parametrize("bad", [0, -1, 65536])
def test_relay_port_rejected(bad: int) -> None:
    with pytest.raises(ValidationError):
        RelaySettings(port=bad)


@pytest.mark.parametrize("bad", [0, -3])
def test_polling_attempts_must_be_positive(bad: int) -> None:
    with pytest.raises(ValidationError):
        PollingSettings(training_max_attempts=bad)
