"""avatarcast - talking-photo videos and cloned-voice clips from a photo and a voice sample."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("avatarcast")
except PackageNotFoundError:
    __version__ = "unknown"
