"""Talking-photo video generation pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from avatarcast.errors import (
    PollTimeout,
    ProviderError,
    RenderingFailed,
    TrainingFailed,
)
from avatarcast.models import JobStatus, Stage, TrainingStatus
from avatarcast.pipeline.base import BasePipeline
from avatarcast.pipeline.ingestion import ingest_audio, ingest_image
from avatarcast.pipeline.polling import poll_until
from avatarcast.providers.base import VideoRequest
from avatarcast.validation import validate_audio, validate_photo, validate_script

if TYPE_CHECKING:
    import random

    from avatarcast.config import AppConfig
    from avatarcast.models import AvatarGroup, Session, VideoJob
    from avatarcast.providers.base import AvatarProvider, ProgressCallback, SpeechProvider

logger = logging.getLogger(__name__)


class VideoPipeline(BasePipeline):
    """Drive one session from uploaded photo and voice sample to a rendered video.

    Stages run strictly in order::

        uploading -> training -> voicing -> rendering -> done

    A failed voice creation is not an error: rendering then uses the raw
    audio asset as the soundtrack. Any other provider failure sends the
    session back to ``idle`` with ``session.error`` set.
    """

    def __init__(
        self,
        avatar: AvatarProvider,
        config: AppConfig,
        *,
        speech: SpeechProvider | None = None,
        progress_callback: ProgressCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(config, progress_callback=progress_callback, rng=rng)
        self.avatar = avatar
        self.speech = speech

    def validate(self, session: Session) -> None:
        """Reject incomplete submissions before any network call."""
        validate_photo(session.photo, self.config.validation)
        validate_audio(session.audio, self.config.validation)
        session.script = validate_script(session.script)

    async def run(self, session: Session) -> Session:
        self.validate(session)
        return await self._guard(session, self._run(session))

    async def _run(self, session: Session) -> Session:
        # 1. Upload photo and voice sample (0-25%).
        self._enter(session, Stage.UPLOADING, 5, "Uploading photo")
        session.image_key = await self._call(ingest_image(self.avatar, session.photo))
        self._report(session, 15, "Uploading voice sample")
        session.audio_assets = await self._call(ingest_audio(
            session.audio,
            speech=self.speech,
            avatar=self.avatar,
            require_asset=True,
            retention_seconds=self.config.elevenlabs.voice_retention_seconds,
            cancel_event=self._cancel_event,
        ))
        self._report(session, 25, "Uploads complete")

        # 2. Create and train the avatar (25-50%).
        self._enter(session, Stage.TRAINING, 30, "Creating avatar")
        group = await self._call(
            self.avatar.create_avatar_group(session.image_key, name=f"avatarcast-{session.id.hex[:8]}"),
        )
        session.avatar_group = group
        await self._call(self.avatar.train_avatar_group(group.id))
        self._report(session, 35, "Training avatar")
        session.avatar_group = await self._wait_for_training(session, group)
        self._report(session, 50, "Avatar ready")

        # 3. Derive a provider voice, falling back to the raw audio (50-75%).
        self._enter(session, Stage.VOICING, 55, "Creating voice")
        session.voice_id = await self._create_voice(session)
        if session.voice_id:
            self._report(session, 75, "Voice ready")

        # 4. Render and wait for the video (75-100%).
        self._enter(session, Stage.RENDERING, 80, "Rendering video")
        request = VideoRequest(
            talking_photo_id=session.avatar_group.talking_photo_id,
            script=session.script,
            voice_id=session.voice_id,
            audio_asset_id=session.audio_assets.audio_asset_id,
        )
        session.video_job = await self._call(self.avatar.generate_video(request))
        job = await self._wait_for_video(session, session.video_job)
        session.video_job = job

        self._ensure_live()
        session.complete(job.video_url or "")
        self._report(session, 100, "Done")
        logger.info("Session %s finished: %s", session.id, job.video_url)
        return session

    async def _wait_for_training(self, session: Session, group: AvatarGroup) -> AvatarGroup:
        polling = self.config.polling
        try:
            result = await poll_until(
                lambda: self.avatar.get_training_status(group.id),
                lambda g: g.status != TrainingStatus.PROCESSING,
                interval=polling.interval_seconds,
                max_attempts=polling.training_max_attempts,
                cancel_event=self._cancel_event,
                on_tick=lambda _n, _g: self._report(session, self._jitter(35, 49), "Training avatar"),
                label=f"training {group.id}",
            )
        except PollTimeout as exc:
            msg = f"Avatar training did not finish: {exc}"
            raise TrainingFailed(msg, job_id=group.id) from exc
        self._ensure_live()
        if result.status == TrainingStatus.FAILED:
            raise TrainingFailed(result.error_msg or "Training failed", job_id=group.id)
        return result

    async def _create_voice(self, session: Session) -> str | None:
        assets = session.audio_assets
        if not assets.audio_asset_id:
            return assets.voice_id
        try:
            return await self._call(self.avatar.create_voice(
                assets.audio_asset_id, source_voice_id=assets.voice_id,
            ))
        except ProviderError as exc:
            logger.warning(
                "Voice creation failed, rendering with audio asset %s: %s",
                assets.audio_asset_id, exc,
            )
            return None

    async def _wait_for_video(self, session: Session, job: VideoJob) -> VideoJob:
        polling = self.config.polling
        try:
            result = await poll_until(
                lambda: self.avatar.get_video_status(job.id),
                lambda j: j.status in (JobStatus.COMPLETED, JobStatus.FAILED),
                interval=polling.interval_seconds,
                max_attempts=polling.rendering_max_attempts,
                cancel_event=self._cancel_event,
                on_tick=lambda _n, _j: self._report(session, self._jitter(80, 98), "Rendering video"),
                label=f"video {job.id}",
            )
        except PollTimeout as exc:
            msg = f"Video rendering did not finish: {exc}"
            raise RenderingFailed(msg, job_id=job.id) from exc
        self._ensure_live()
        if result.status == JobStatus.FAILED:
            raise RenderingFailed(result.error_msg or "Video generation failed", job_id=job.id)
        if not result.video_url:
            raise RenderingFailed("Video completed without a URL", job_id=job.id)
        return result
