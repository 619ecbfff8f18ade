"""Clients for the avatar/video and speech providers."""

from avatarcast.providers.base import (
    AvatarProvider,
    ProgressCallback,
    SpeechProvider,
    UploadedAsset,
    VideoRequest,
)
from avatarcast.providers.elevenlabs import ElevenLabsClient
from avatarcast.providers.heygen import HeyGenClient
from avatarcast.providers.mock import MockAvatarProvider, MockSpeechProvider

__all__ = [
    "AvatarProvider",
    "ElevenLabsClient",
    "HeyGenClient",
    "MockAvatarProvider",
    "MockSpeechProvider",
    "ProgressCallback",
    "SpeechProvider",
    "UploadedAsset",
    "VideoRequest",
]
