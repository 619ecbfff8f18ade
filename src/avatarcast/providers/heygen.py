"""HeyGen avatar/video provider client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from avatarcast.errors import ProviderError, UploadError, VoiceCreationFailed
from avatarcast.models import AvatarGroup, JobStatus, TrainingStatus, VideoJob
from avatarcast.providers.base import UploadedAsset, VideoRequest, check_response, envelope_data

if TYPE_CHECKING:
    from avatarcast.config import HeyGenSettings
    from avatarcast.models import MediaFile

logger = logging.getLogger(__name__)

# HeyGen reports queueing as "waiting"; everything unknown is still in flight.
_VIDEO_STATUS = {
    "waiting": JobStatus.PENDING,
    "pending": JobStatus.PENDING,
    "processing": JobStatus.PROCESSING,
    "completed": JobStatus.COMPLETED,
    "failed": JobStatus.FAILED,
}


class HeyGenClient:
    """Async client for the HeyGen photo-avatar and video APIs.

    Requests go to ``settings.base_url`` directly, or to a relay when the
    base URL points at one; the API key travels in ``settings.api_key_header``.
    """

    def __init__(
        self,
        settings: HeyGenSettings,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HeyGenClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                headers={self._settings.api_key_header: self._settings.api_key},
            )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "HeyGenClient is not connected"
            raise RuntimeError(msg)
        return self._client

    def _url(self, path: str) -> str:
        return f"{self._settings.base_url.rstrip('/')}{path}"

    async def is_available(self) -> bool:
        """Check that an API key is set and HeyGen accepts it."""
        if not self._settings.api_key:
            logger.warning("HeyGen API key not configured (set AVATARCAST_HEYGEN__API_KEY)")
            return False
        try:
            resp = await self.client.get(self._url("/v2/user/remaining_quota"))
        except (httpx.HTTPError, OSError):
            return False
        return resp.status_code not in (401, 403)

    async def upload_asset(self, media: MediaFile) -> UploadedAsset:
        url = f"{self._settings.upload_url.rstrip('/')}/v1/asset"
        logger.info("Uploading %s (%s, %d bytes)", media.filename, media.content_type, media.size)
        try:
            resp = await self.client.post(
                url, content=media.data, headers={"Content-Type": media.content_type},
            )
        except httpx.HTTPError as exc:
            msg = f"upload of {media.filename} failed: {exc}"
            raise UploadError(msg) from exc
        check_response(resp, f"upload of {media.filename}", UploadError)
        try:
            data = envelope_data(resp, "asset upload")
        except ProviderError as exc:
            raise UploadError(str(exc), status_code=exc.status_code, body=exc.body) from None

        asset_id = data.get("id") or data.get("asset_id")
        if not asset_id:
            msg = f"asset upload returned no id: {data}"
            raise UploadError(msg, status_code=resp.status_code, body=resp.text)
        return UploadedAsset(
            asset_id=str(asset_id),
            image_key=data.get("image_key"),
            url=data.get("url"),
        )

    async def create_avatar_group(self, image_key: str, name: str) -> AvatarGroup:
        resp = await self.client.post(
            self._url("/v2/photo_avatar/avatar_group/create"),
            json={"name": name, "image_key": image_key},
        )
        check_response(resp, "avatar group creation")
        data = envelope_data(resp, "avatar group creation")
        group_id = data.get("group_id") or data.get("id")
        if not group_id:
            msg = f"avatar group creation returned no group id: {data}"
            raise ProviderError(msg, status_code=resp.status_code, body=resp.text)
        logger.info("Created avatar group %s", group_id)
        return AvatarGroup(id=str(group_id))

    async def train_avatar_group(self, group_id: str) -> None:
        resp = await self.client.post(
            self._url("/v2/photo_avatar/train"), json={"group_id": group_id},
        )
        check_response(resp, f"training of {group_id}")
        logger.info("Training started for %s", group_id)

    async def get_training_status(self, group_id: str) -> AvatarGroup:
        resp = await self.client.get(self._url(f"/v2/photo_avatar/train/status/{group_id}"))
        check_response(resp, f"training status of {group_id}")
        data = envelope_data(resp, "training status")
        raw = str(data.get("status", "")).lower()
        try:
            status = TrainingStatus(raw)
        except ValueError:
            status = TrainingStatus.PROCESSING
        return AvatarGroup(id=group_id, status=status, error_msg=data.get("error_msg"))

    async def create_voice(self, audio_asset_id: str, *, source_voice_id: str | None = None) -> str:
        body: dict[str, Any] = {"audio_asset_id": audio_asset_id}
        if source_voice_id:
            body["voice_id"] = source_voice_id
        try:
            resp = await self.client.post(self._url("/v1/voice.add"), json=body)
        except httpx.HTTPError as exc:
            raise VoiceCreationFailed(f"voice creation failed: {exc}") from exc
        check_response(resp, "voice creation", VoiceCreationFailed)
        try:
            data = envelope_data(resp, "voice creation")
        except ProviderError as exc:
            raise VoiceCreationFailed(str(exc), status_code=exc.status_code) from None
        voice_id = data.get("voice_id")
        if not voice_id:
            msg = f"voice creation returned no voice id: {data}"
            raise VoiceCreationFailed(msg, status_code=resp.status_code, body=resp.text)
        return str(voice_id)

    async def generate_video(self, request: VideoRequest) -> VideoJob:
        resp = await self.client.post(
            self._url("/v2/video/generate"), json=build_video_payload(request),
        )
        check_response(resp, "video generation")
        data = envelope_data(resp, "video generation")
        video_id = data.get("video_id")
        if not video_id:
            msg = f"video generation returned no video id: {data}"
            raise ProviderError(msg, status_code=resp.status_code, body=resp.text)
        logger.info("Video %s submitted (%s voice)", video_id, request.voice_mode)
        return VideoJob(id=str(video_id))

    async def get_video_status(self, video_id: str) -> VideoJob:
        resp = await self.client.get(
            self._url("/v1/video_status.get"), params={"video_id": video_id},
        )
        check_response(resp, f"video status of {video_id}")
        data = envelope_data(resp, "video status")
        status = _VIDEO_STATUS.get(str(data.get("status", "")).lower(), JobStatus.PROCESSING)
        return VideoJob(
            id=video_id,
            status=status,
            video_url=data.get("video_url"),
            error_msg=_error_message(data),
        )


def build_video_payload(request: VideoRequest) -> dict[str, Any]:
    """Map a VideoRequest to HeyGen's ``/v2/video/generate`` body."""
    voice: dict[str, Any]
    if request.voice_id:
        voice = {"type": "text", "input_text": request.script, "voice_id": request.voice_id}
    else:
        voice = {"type": "audio", "audio_asset_id": request.audio_asset_id}
    return {
        "title": request.script[:100],
        "video_inputs": [
            {
                "character": {
                    "type": "talking_photo",
                    "talking_photo_id": request.talking_photo_id,
                },
                "voice": voice,
            },
        ],
        "dimension": {"width": request.width, "height": request.height},
    }


def _error_message(data: dict[str, Any]) -> str | None:
    if data.get("error_msg"):
        return str(data["error_msg"])
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("detail")
    return str(error) if error else None
