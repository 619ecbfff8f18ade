"""Provider-side records produced while a session runs."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from avatarcast.models.enums import AssetKind, JobStatus, TrainingStatus


class AssetReference(BaseModel):
    """Opaque identifier handed back by a provider after an upload."""

    model_config = ConfigDict(frozen=True)

    kind: AssetKind
    id: str = Field(min_length=1)


class AudioAssets(BaseModel):
    """Identifiers produced by ingesting a voice sample.

    At least one of the two is set once ingestion succeeds.
    """

    voice_id: str | None = None
    audio_asset_id: str | None = None

    @property
    def references(self) -> list[AssetReference]:
        refs = []
        if self.voice_id:
            refs.append(AssetReference(kind=AssetKind.VOICE, id=self.voice_id))
        if self.audio_asset_id:
            refs.append(AssetReference(kind=AssetKind.AUDIO_ASSET, id=self.audio_asset_id))
        return refs


class AvatarGroup(BaseModel):
    """A talking-photo character being trained by the avatar provider."""

    id: str
    status: TrainingStatus = TrainingStatus.PROCESSING
    error_msg: str | None = None

    @property
    def talking_photo_id(self) -> str:
        return self.id


class VideoJob(BaseModel):
    id: str
    status: JobStatus = JobStatus.PENDING
    video_url: str | None = None
    error_msg: str | None = None


class SpeechJob(BaseModel):
    id: str
    script: str
    status: JobStatus = JobStatus.PENDING
    audio_path: Path | None = None
    error_msg: str | None = None

    @property
    def audio_url(self) -> str | None:
        return self.audio_path.resolve().as_uri() if self.audio_path else None


class VoiceRecord(BaseModel):
    """A voice as listed by the speech provider."""

    voice_id: str
    name: str = ""
    created_at_unix: int = 0
    is_owner: bool = False
    category: str = ""


class CleanupReport(BaseModel):
    """Outcome of stale-voice reclamation, for observability only."""

    deleted: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)
