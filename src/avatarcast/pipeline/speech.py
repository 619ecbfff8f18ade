"""Speech pipeline - cloned-voice audio clips instead of a video."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from avatarcast.errors import ProviderError, RenderingFailed, UploadError, ValidationError
from avatarcast.models import JobStatus, SpeechJob, Stage
from avatarcast.pipeline.base import BasePipeline
from avatarcast.pipeline.ingestion import ingest_audio
from avatarcast.validation import validate_audio, validate_script

if TYPE_CHECKING:
    import random

    from avatarcast.config import AppConfig
    from avatarcast.models import Session
    from avatarcast.providers.base import ProgressCallback, SpeechProvider

logger = logging.getLogger(__name__)


class SpeechPipeline(BasePipeline):
    """Clone the session's voice sample and read each script with it.

    Runs ``uploading -> rendering -> done``. The clips land in ``output_dir``
    as ``<session>_<n>.mp3``; the session's result URL points at the first.
    """

    def __init__(
        self,
        speech: SpeechProvider,
        config: AppConfig,
        *,
        output_dir: Path | None = None,
        progress_callback: ProgressCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(config, progress_callback=progress_callback, rng=rng)
        self.speech = speech
        self.output_dir = output_dir or config.output_dir / "speech"

    def validate(self, session: Session, scripts: list[str]) -> list[str]:
        validate_audio(session.audio, self.config.validation)
        if not scripts:
            msg = "Please provide at least one script"
            raise ValidationError(msg)
        return [validate_script(s) for s in scripts]

    async def run(self, session: Session, scripts: list[str] | None = None) -> Session:
        texts = self.validate(session, scripts if scripts is not None else [session.script])
        session.script = texts[0]
        return await self._guard(session, self._run(session, texts))

    async def _run(self, session: Session, texts: list[str]) -> Session:
        self._enter(session, Stage.UPLOADING, 5, "Cloning voice")
        session.audio_assets = await self._call(ingest_audio(
            session.audio,
            speech=self.speech,
            retention_seconds=self.config.elevenlabs.voice_retention_seconds,
            cancel_event=self._cancel_event,
        ))
        voice_id = session.audio_assets.voice_id
        if voice_id is None:
            msg = "voice cloning returned no voice"
            raise UploadError(msg)
        session.voice_id = voice_id
        self._report(session, 25, "Voice ready")

        self._enter(session, Stage.RENDERING, 30, "Generating speech")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"could not create {self.output_dir}: {exc}"
            raise RenderingFailed(msg) from exc
        prefix = session.id.hex[:8]
        for idx, text in enumerate(texts, start=1):
            job = SpeechJob(id=f"{prefix}-{idx}", script=text, status=JobStatus.PROCESSING)
            session.speech_jobs.append(job)
            path = self.output_dir / f"{prefix}_{idx}.mp3"
            try:
                audio = await self._call(self.speech.synthesize(voice_id, text))
                path.write_bytes(audio)
            except ProviderError as exc:
                _fail_job(job, exc)
                raise RenderingFailed(str(exc), job_id=job.id) from exc
            except OSError as exc:
                _fail_job(job, exc)
                msg = f"could not save clip {idx}: {exc}"
                raise RenderingFailed(msg, job_id=job.id) from exc
            except httpx.HTTPError as exc:
                _fail_job(job, exc)
                raise
            job.audio_path = path
            job.status = JobStatus.COMPLETED
            logger.info("Clip %d/%d -> %s (%d bytes)", idx, len(texts), path, len(audio))
            self._report(session, 30 + (69 * idx) // len(texts), f"Generated clip {idx}/{len(texts)}")

        self._ensure_live()
        first = session.speech_jobs[0].audio_url
        session.complete(first or "")
        self._report(session, 100, "Done")
        return session


def _fail_job(job: SpeechJob, exc: Exception) -> None:
    job.status = JobStatus.FAILED
    job.error_msg = str(exc) or type(exc).__name__
