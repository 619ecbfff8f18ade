"""Asset ingestion - turns user binaries into provider-side identifiers."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from avatarcast.errors import CleanupError, UploadError, VoiceCreationFailed
from avatarcast.models import AudioAssets, CleanupReport

if TYPE_CHECKING:
    from avatarcast.models import MediaFile
    from avatarcast.providers.base import AvatarProvider, SpeechProvider

logger = logging.getLogger(__name__)

VOICE_RETENTION_SECONDS = 3600


def _checkpoint(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError


async def ingest_image(avatar: AvatarProvider, photo: MediaFile) -> str:
    """Upload ``photo`` and return the image key used to create an avatar group.

    Raises
    ------
    UploadError
        If the file is not an image or the provider rejects the upload.
    """
    if not photo.is_image:
        msg = f"{photo.filename} has content type {photo.content_type}, expected an image"
        raise UploadError(msg)
    asset = await avatar.upload_asset(photo)
    image_key = asset.image_key or f"image/{asset.asset_id}/original"
    logger.info("Photo ingested as %s", image_key)
    return image_key


async def reclaim_stale_voices(
    speech: SpeechProvider,
    *,
    retention_seconds: int = VOICE_RETENTION_SECONDS,
    now: float | None = None,
    cancel_event: asyncio.Event | None = None,
) -> CleanupReport:
    """Delete owned voices older than ``retention_seconds``.

    Never raises: listing or deletion failures are collected into the report.
    Setting ``cancel_event`` stops before the next provider call with
    ``asyncio.CancelledError``.
    """
    cutoff = int(now if now is not None else time.time()) - retention_seconds
    report = CleanupReport()
    _checkpoint(cancel_event)
    try:
        voices = await speech.list_voices()
    except CleanupError as exc:
        logger.warning("Voice cleanup skipped: %s", exc)
        report.errors.append(str(exc))
        return report

    stale = [v for v in voices if v.is_owner and v.created_at_unix < cutoff]
    logger.info("Found %d of %d voices older than %ds", len(stale), len(voices), retention_seconds)
    for voice in stale:
        _checkpoint(cancel_event)
        try:
            await speech.delete_voice(voice.voice_id)
        except CleanupError as exc:
            logger.warning("Could not delete voice %s: %s", voice.voice_id, exc)
            report.errors.append(str(exc))
        else:
            report.deleted += 1
    if stale:
        logger.info("Voice cleanup: %d deleted, %d failed", report.deleted, report.failed)
    return report


async def ingest_audio(
    audio: MediaFile,
    *,
    speech: SpeechProvider | None = None,
    avatar: AvatarProvider | None = None,
    require_asset: bool = False,
    retention_seconds: int = VOICE_RETENTION_SECONDS,
    cancel_event: asyncio.Event | None = None,
) -> AudioAssets:
    """Turn a voice sample into a cloned voice id and/or an audio asset id.

    Cloning with ``speech`` is preferred. When there is no speech provider or
    cloning fails, the sample is uploaded to ``avatar`` as a raw asset
    instead. ``require_asset`` uploads the raw asset even after a successful
    clone, for callers that need it as a fallback later on. No provider
    call is made once ``cancel_event`` is set.

    Raises
    ------
    UploadError
        If neither a voice id nor an audio asset id could be obtained.
    """
    assets = AudioAssets()
    clone_error: VoiceCreationFailed | None = None

    if speech is not None:
        await reclaim_stale_voices(
            speech, retention_seconds=retention_seconds, cancel_event=cancel_event,
        )
        _checkpoint(cancel_event)
        try:
            assets.voice_id = await speech.clone_voice(audio, name=f"Voice {int(time.time() * 1000)}")
        except VoiceCreationFailed as exc:
            logger.warning("Voice cloning failed, falling back to raw audio asset: %s", exc)
            clone_error = exc
        else:
            logger.info("Voice cloned as %s", assets.voice_id)

    if avatar is not None and (require_asset or assets.voice_id is None):
        _checkpoint(cancel_event)
        uploaded = await avatar.upload_asset(audio)
        assets.audio_asset_id = uploaded.asset_id
        logger.info("Audio ingested as asset %s", assets.audio_asset_id)

    if not assets.voice_id and not assets.audio_asset_id:
        msg = "voice sample could not be ingested"
        if clone_error is not None:
            raise UploadError(
                f"{msg}: {clone_error}", status_code=clone_error.status_code, body=clone_error.body,
            ) from clone_error
        raise UploadError(msg)
    return assets
