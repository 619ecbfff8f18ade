"""Enumerations used throughout avatarcast."""

from enum import StrEnum


class Stage(StrEnum):
    IDLE = "idle"
    UPLOADING = "uploading"
    TRAINING = "training"
    VOICING = "voicing"
    RENDERING = "rendering"
    DONE = "done"


class TrainingStatus(StrEnum):
    PROCESSING = "processing"
    READY = "ready"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def succeeded(self) -> bool:
        return self in (TrainingStatus.READY, TrainingStatus.COMPLETED)


class JobStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AssetKind(StrEnum):
    IMAGE_KEY = "image_key"
    AUDIO_ASSET = "audio_asset"
    VOICE = "voice"


class VoiceMode(StrEnum):
    """How the rendered video gets its soundtrack."""

    TEXT = "text"
    AUDIO = "audio"
