"""Session model - one user submission and its progress."""

from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from avatarcast.models.assets import AudioAssets, AvatarGroup, SpeechJob, VideoJob
from avatarcast.models.enums import Stage
from avatarcast.models.media import MediaFile

# Forward transitions; any stage may also fall back to IDLE.
TRANSITIONS: dict[Stage, frozenset[Stage]] = {
    Stage.IDLE: frozenset({Stage.UPLOADING}),
    Stage.UPLOADING: frozenset({Stage.TRAINING, Stage.RENDERING}),
    Stage.TRAINING: frozenset({Stage.VOICING}),
    Stage.VOICING: frozenset({Stage.RENDERING}),
    Stage.RENDERING: frozenset({Stage.DONE}),
    Stage.DONE: frozenset(),
}


class InvalidTransition(RuntimeError):
    """Raised when a stage change skips or reverses the pipeline order."""


class Session(BaseModel):
    """The end-to-end unit of work for one submission.

    Only the pipelines mutate a session. Progress never decreases between
    ``begin`` and ``reset``.
    """

    id: UUID = Field(default_factory=uuid4)
    photo: MediaFile | None = None
    audio: MediaFile | None = None
    script: str = ""
    stage: Stage = Stage.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    result_url: str | None = None
    error: str | None = None

    image_key: str | None = None
    audio_assets: AudioAssets = Field(default_factory=AudioAssets)
    avatar_group: AvatarGroup | None = None
    voice_id: str | None = None
    video_job: VideoJob | None = None
    speech_jobs: list[SpeechJob] = Field(default_factory=list)
    history: list[Stage] = Field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.stage not in (Stage.IDLE, Stage.DONE)

    def advance(self, stage: Stage) -> None:
        """Move to the next stage, enforcing the pipeline order."""
        if stage not in TRANSITIONS[self.stage]:
            msg = f"cannot move from {self.stage} to {stage}"
            raise InvalidTransition(msg)
        if stage == Stage.UPLOADING:
            self.progress = 0
            self.error = None
            self.result_url = None
        self.stage = stage
        self.history.append(stage)

    def set_progress(self, value: int) -> int:
        """Raise progress to ``value``; lower values are ignored."""
        self.progress = max(self.progress, min(100, max(0, value)))
        return self.progress

    def complete(self, result_url: str) -> None:
        self.result_url = result_url
        self.set_progress(100)
        self.advance(Stage.DONE)

    def fail(self, message: str) -> None:
        """Abort back to idle with an error the caller can show."""
        self.error = message
        self.stage = Stage.IDLE
        self.history.append(Stage.IDLE)

    def reset(self) -> None:
        """Discard results so the session can be resubmitted."""
        self.stage = Stage.IDLE
        self.progress = 0
        self.result_url = None
        self.error = None
        self.image_key = None
        self.audio_assets = AudioAssets()
        self.avatar_group = None
        self.voice_id = None
        self.video_job = None
        self.speech_jobs = []
        self.history = []
