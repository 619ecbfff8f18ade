"""avatarcast data models - pure Pydantic, no I/O."""

from avatarcast.models.assets import (
    AssetReference,
    AudioAssets,
    AvatarGroup,
    CleanupReport,
    SpeechJob,
    VideoJob,
    VoiceRecord,
)
from avatarcast.models.enums import AssetKind, JobStatus, Stage, TrainingStatus, VoiceMode
from avatarcast.models.media import MediaFile
from avatarcast.models.session import InvalidTransition, Session

__all__ = [
    "AssetKind",
    "AssetReference",
    "AudioAssets",
    "AvatarGroup",
    "CleanupReport",
    "InvalidTransition",
    "JobStatus",
    "MediaFile",
    "Session",
    "SpeechJob",
    "Stage",
    "TrainingStatus",
    "VideoJob",
    "VoiceMode",
    "VoiceRecord",
]
