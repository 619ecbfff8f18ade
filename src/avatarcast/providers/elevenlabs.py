"""ElevenLabs speech/voice-cloning provider client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from avatarcast.errors import CleanupError, ProviderError, VoiceCreationFailed
from avatarcast.models import VoiceRecord
from avatarcast.providers.base import check_response

if TYPE_CHECKING:
    from avatarcast.config import ElevenLabsSettings
    from avatarcast.models import MediaFile

logger = logging.getLogger(__name__)


class ElevenLabsClient:
    """Async client for ElevenLabs voice cloning and text-to-speech."""

    def __init__(
        self,
        settings: ElevenLabsSettings,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ElevenLabsClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
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
            msg = "ElevenLabsClient is not connected"
            raise RuntimeError(msg)
        return self._client

    async def is_available(self) -> bool:
        if not self._settings.api_key:
            logger.warning(
                "ElevenLabs API key not configured (set AVATARCAST_ELEVENLABS__API_KEY)",
            )
            return False
        try:
            resp = await self.client.get("/v1/user")
        except (httpx.HTTPError, OSError):
            return False
        return resp.status_code not in (401, 403)

    async def clone_voice(self, media: MediaFile, name: str) -> str:
        logger.info("Cloning voice '%s' from %s", name, media.filename)
        try:
            resp = await self.client.post(
                "/v1/voices/add",
                data={"name": name},
                files=[("files", (media.filename, media.data, media.content_type))],
            )
        except httpx.HTTPError as exc:
            raise VoiceCreationFailed(f"voice cloning failed: {exc}") from exc
        check_response(resp, "voice cloning", VoiceCreationFailed)
        try:
            voice_id = resp.json().get("voice_id")
        except ValueError:
            voice_id = None
        if not voice_id:
            msg = f"voice cloning returned no voice id: {resp.text[:200]}"
            raise VoiceCreationFailed(msg, status_code=resp.status_code, body=resp.text)
        return str(voice_id)

    async def list_voices(self) -> list[VoiceRecord]:
        """List personal voices oldest first, following page tokens."""
        params: dict[str, Any] = {
            "voice_type": "personal",
            "sort": "created_at_unix",
            "sort_direction": "asc",
            "page_size": self._settings.list_page_size,
        }
        voices: list[VoiceRecord] = []
        while True:
            try:
                resp = await self.client.get("/v2/voices", params=params)
            except httpx.HTTPError as exc:
                raise CleanupError(f"listing voices failed: {exc}") from exc
            check_response(resp, "listing voices", CleanupError)
            # Non-JSON bodies, non-object payloads and malformed records.
            try:
                payload = resp.json()
                records = [VoiceRecord.model_validate(v) for v in payload.get("voices") or []]
            except (ValueError, AttributeError) as exc:
                msg = f"listing voices returned an unusable payload: {str(exc)[:200]}"
                raise CleanupError(msg, status_code=resp.status_code, body=resp.text) from exc
            voices.extend(records)
            token = payload.get("next_page_token")
            if not payload.get("has_more") or not token:
                break
            params["next_page_token"] = token
        logger.debug("Listed %d personal voices", len(voices))
        return voices

    async def delete_voice(self, voice_id: str) -> None:
        try:
            resp = await self.client.delete(f"/v1/voices/{voice_id}")
        except httpx.HTTPError as exc:
            raise CleanupError(f"deleting voice {voice_id} failed: {exc}") from exc
        check_response(resp, f"deleting voice {voice_id}", CleanupError)

    async def synthesize(self, voice_id: str, text: str) -> bytes:
        voice = self._settings.voice
        resp = await self.client.post(
            f"/v1/text-to-speech/{voice_id}",
            headers={"Accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": self._settings.model_id,
                "voice_settings": {
                    "stability": voice.stability,
                    "similarity_boost": voice.similarity_boost,
                    "speed": voice.speed,
                },
            },
        )
        check_response(resp, "speech synthesis")
        content_type = resp.headers.get("content-type", "")
        if not content_type.startswith("audio/"):
            msg = f"unexpected response type {content_type!r}: {resp.text[:200]}"
            raise ProviderError(msg, status_code=resp.status_code, body=resp.text)
        logger.debug("Synthesized %d bytes for voice %s", len(resp.content), voice_id)
        return resp.content
