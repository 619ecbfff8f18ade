"""In-memory providers for testing and offline runs."""

from __future__ import annotations

import hashlib
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from avatarcast.errors import CleanupError, ProviderError, UploadError, VoiceCreationFailed
from avatarcast.models import AvatarGroup, JobStatus, TrainingStatus, VideoJob, VoiceRecord
from avatarcast.providers.base import UploadedAsset, VideoRequest

if TYPE_CHECKING:
    from avatarcast.models import MediaFile


class _Script:
    """Replays a sequence of statuses, repeating the last one forever."""

    def __init__(self, items: Iterable[str]) -> None:
        self._items = list(items)
        self._pos = 0

    def next(self) -> str:
        item = self._items[min(self._pos, len(self._items) - 1)]
        self._pos += 1
        return item


class MockAvatarProvider:
    """An avatar provider that answers from scripted statuses.

    Every call is appended to ``calls`` as ``(method, argument)`` so tests can
    assert on ordering and payloads.
    """

    def __init__(
        self,
        *,
        training_statuses: Iterable[str] = ("processing", "completed"),
        video_statuses: Iterable[str] = ("processing", "completed"),
        training_error: str = "",
        video_error: str = "",
        voice_error_status: int | None = None,
        upload_error_status: int | None = None,
        video_url: str = "https://mock.avatarcast.local/videos/result.mp4",
    ) -> None:
        self._training = _Script(training_statuses)
        self._video = _Script(video_statuses)
        self.training_error = training_error
        self.video_error = video_error
        self.voice_error_status = voice_error_status
        self.upload_error_status = upload_error_status
        self.video_url = video_url
        self.calls: list[tuple[str, object]] = []
        self.video_requests: list[VideoRequest] = []

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def is_available(self) -> bool:
        return True

    async def upload_asset(self, media: MediaFile) -> UploadedAsset:
        self.calls.append(("upload_asset", media.filename))
        if self.upload_error_status is not None:
            msg = f"upload of {media.filename} failed: {self.upload_error_status}"
            raise UploadError(msg, status_code=self.upload_error_status)
        asset_id = _digest(media.data)
        return UploadedAsset(asset_id=asset_id, url=f"https://mock.avatarcast.local/{asset_id}")

    async def create_avatar_group(self, image_key: str, name: str) -> AvatarGroup:
        self.calls.append(("create_avatar_group", image_key))
        return AvatarGroup(id=f"group-{_digest(image_key.encode())}")

    async def train_avatar_group(self, group_id: str) -> None:
        self.calls.append(("train_avatar_group", group_id))

    async def get_training_status(self, group_id: str) -> AvatarGroup:
        self.calls.append(("get_training_status", group_id))
        status = TrainingStatus(self._training.next())
        error = self.training_error if status == TrainingStatus.FAILED else None
        return AvatarGroup(id=group_id, status=status, error_msg=error or None)

    async def create_voice(self, audio_asset_id: str, *, source_voice_id: str | None = None) -> str:
        self.calls.append(("create_voice", audio_asset_id))
        if self.voice_error_status is not None:
            msg = f"voice creation failed: {self.voice_error_status}"
            raise VoiceCreationFailed(msg, status_code=self.voice_error_status)
        return source_voice_id or f"voice-{audio_asset_id}"

    async def generate_video(self, request: VideoRequest) -> VideoJob:
        self.calls.append(("generate_video", request))
        self.video_requests.append(request)
        return VideoJob(id=f"video-{_digest(request.script.encode())}")

    async def get_video_status(self, video_id: str) -> VideoJob:
        self.calls.append(("get_video_status", video_id))
        status = JobStatus(self._video.next())
        if status == JobStatus.COMPLETED:
            return VideoJob(id=video_id, status=status, video_url=self.video_url)
        error = self.video_error if status == JobStatus.FAILED else None
        return VideoJob(id=video_id, status=status, error_msg=error or None)


class MockSpeechProvider:
    """A speech provider with an in-memory voice library."""

    def __init__(
        self,
        *,
        voices: Iterable[VoiceRecord] = (),
        clone_error_status: int | None = None,
        undeletable: Iterable[str] = (),
        list_error: bool = False,
        audio: bytes = b"ID3mock-audio",
        content_type: str = "audio/mpeg",
    ) -> None:
        self.voices: dict[str, VoiceRecord] = {v.voice_id: v for v in voices}
        self.clone_error_status = clone_error_status
        self.undeletable = set(undeletable)
        self.list_error = list_error
        self.audio = audio
        self.content_type = content_type
        self.calls: list[tuple[str, object]] = []

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def is_available(self) -> bool:
        return True

    async def clone_voice(self, media: MediaFile, name: str) -> str:
        self.calls.append(("clone_voice", name))
        if self.clone_error_status is not None:
            msg = f"voice cloning failed: {self.clone_error_status}"
            raise VoiceCreationFailed(msg, status_code=self.clone_error_status)
        voice_id = f"cloned-{_digest(media.data)}"
        self.voices[voice_id] = VoiceRecord(
            voice_id=voice_id, name=name, created_at_unix=int(time.time()), is_owner=True,
        )
        return voice_id

    async def list_voices(self) -> list[VoiceRecord]:
        self.calls.append(("list_voices", None))
        if self.list_error:
            msg = "listing voices failed: 500"
            raise CleanupError(msg, status_code=500)
        return sorted(self.voices.values(), key=lambda v: v.created_at_unix)

    async def delete_voice(self, voice_id: str) -> None:
        self.calls.append(("delete_voice", voice_id))
        if voice_id in self.undeletable:
            msg = f"deleting voice {voice_id} failed: 403"
            raise CleanupError(msg, status_code=403)
        self.voices.pop(voice_id, None)

    async def synthesize(self, voice_id: str, text: str) -> bytes:
        self.calls.append(("synthesize", text))
        if not self.content_type.startswith("audio/"):
            msg = f"unexpected response type {self.content_type!r}"
            raise ProviderError(msg, status_code=200)
        return self.audio


def _digest(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()[:12]  # noqa: S324
