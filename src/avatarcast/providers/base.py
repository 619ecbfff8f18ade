"""Provider protocols and shared request/response types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

import httpx

from avatarcast.errors import ProviderError, ValidationError
from avatarcast.models.enums import Stage, VoiceMode

if TYPE_CHECKING:
    from avatarcast.models import AvatarGroup, MediaFile, VideoJob, VoiceRecord


@dataclass
class UploadedAsset:
    """What the avatar provider returns for an uploaded binary."""

    asset_id: str
    image_key: str | None = None
    url: str | None = None


@dataclass
class VideoRequest:
    """A request to render a talking-photo video.

    ``voice_id`` selects text-to-speech with a provider voice; otherwise the
    uploaded audio asset is used as the soundtrack.
    """

    talking_photo_id: str
    script: str
    voice_id: str | None = None
    audio_asset_id: str | None = None
    width: int = 1280
    height: int = 720

    def __post_init__(self) -> None:
        if not self.voice_id and not self.audio_asset_id:
            msg = "either voice_id or audio_asset_id must be provided"
            raise ValidationError(msg)

    @property
    def voice_mode(self) -> VoiceMode:
        return VoiceMode.TEXT if self.voice_id else VoiceMode.AUDIO


@runtime_checkable
class AvatarProvider(Protocol):
    """Avatar/video generation provider."""

    async def connect(self) -> None:
        """Open the underlying HTTP session."""
        ...

    async def disconnect(self) -> None:
        """Close the underlying HTTP session."""
        ...

    async def is_available(self) -> bool:
        """Check that credentials are configured and the API answers."""
        ...

    async def upload_asset(self, media: MediaFile) -> UploadedAsset:
        """Upload a photo or audio file."""
        ...

    async def create_avatar_group(self, image_key: str, name: str) -> AvatarGroup:
        """Create a trainable avatar group from an uploaded image."""
        ...

    async def train_avatar_group(self, group_id: str) -> None:
        """Start training an avatar group."""
        ...

    async def get_training_status(self, group_id: str) -> AvatarGroup:
        """Fetch the current training status of a group."""
        ...

    async def create_voice(self, audio_asset_id: str, *, source_voice_id: str | None = None) -> str:
        """Create a provider voice from an uploaded audio asset."""
        ...

    async def generate_video(self, request: VideoRequest) -> VideoJob:
        """Submit a video render."""
        ...

    async def get_video_status(self, video_id: str) -> VideoJob:
        """Fetch the current status of a video render."""
        ...


@runtime_checkable
class SpeechProvider(Protocol):
    """Text-to-speech and voice-cloning provider."""

    async def connect(self) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def is_available(self) -> bool:
        ...

    async def clone_voice(self, media: MediaFile, name: str) -> str:
        """Clone a voice from an audio sample and return its id."""
        ...

    async def list_voices(self) -> list[VoiceRecord]:
        """List personal voices, oldest first."""
        ...

    async def delete_voice(self, voice_id: str) -> None:
        ...

    async def synthesize(self, voice_id: str, text: str) -> bytes:
        """Render ``text`` with a voice and return the audio bytes."""
        ...


# Callback type for pipeline progress updates
ProgressCallback: TypeAlias = Callable[[Stage, int, str], None]  # (stage, percent, status)


def check_response(
    resp: httpx.Response,
    what: str,
    error_cls: type[ProviderError] = ProviderError,
) -> None:
    """Raise ``error_cls`` for any non-2xx response."""
    if resp.is_success:
        return
    body = resp.text
    msg = f"{what} failed: {resp.status_code} - {body[:200]}"
    raise error_cls(msg, status_code=resp.status_code, body=body)


def envelope_data(resp: httpx.Response, what: str) -> dict[str, Any]:
    """Return the ``data`` object of a ``{"data": {...}}`` response."""
    try:
        payload = resp.json()
    except ValueError:
        msg = f"{what} returned invalid JSON: {resp.text[:200]}"
        raise ProviderError(msg, status_code=resp.status_code, body=resp.text) from None
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        msg = f"{what} returned no data: {str(payload)[:200]}"
        raise ProviderError(msg, status_code=resp.status_code, body=resp.text)
    return data
