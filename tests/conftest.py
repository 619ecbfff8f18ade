"""Shared fixtures for avatarcast tests."""

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from avatarcast.config import AppConfig, PollingSettings
from avatarcast.models import MediaFile, Session


def _jpeg_bytes(size: tuple[int, int] = (64, 64)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (200, 150, 120)).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        config_dir=tmp_path / "config",
        output_dir=tmp_path / "output",
        polling=PollingSettings(
            interval_seconds=0,
            training_max_attempts=5,
            rendering_max_attempts=5,
        ),
    )


@pytest.fixture
def photo() -> MediaFile:
    return MediaFile(filename="face.jpg", content_type="image/jpeg", data=_jpeg_bytes())


@pytest.fixture
def audio() -> MediaFile:
    return MediaFile(
        filename="voice.webm",
        content_type="audio/webm",
        data=b"\x1aE\xdf\xa3" + b"\x00" * 256,
        duration_seconds=20.0,
    )


@pytest.fixture
def session(photo: MediaFile, audio: MediaFile) -> Session:
    return Session(photo=photo, audio=audio, script="Hello world")
