"""Exception hierarchy for ingestion and generation failures."""

from __future__ import annotations

RETRY_PROMPT = "Something went wrong. Please try again."


class AvatarcastError(Exception):
    """Base class for all avatarcast errors."""

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person who submitted the form."""
        return str(self) or RETRY_PROMPT


class ValidationError(AvatarcastError, ValueError):
    """Missing or invalid user input, detected before any network call."""


class ProviderError(AvatarcastError):
    """A provider answered with a non-success status or an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def user_message(self) -> str:
        return RETRY_PROMPT


class UploadError(ProviderError):
    """An ingestion upload was rejected."""


class VoiceCreationFailed(ProviderError):
    """Voice cloning or provider voice creation failed; always recovered."""


class CleanupError(ProviderError):
    """A stale voice could not be listed or deleted; never fatal."""


class JobFailed(AvatarcastError):
    """A polled job reached a terminal failure."""

    def __init__(self, message: str, *, job_id: str = "") -> None:
        super().__init__(message)
        self.job_id = job_id


class TrainingFailed(JobFailed):
    """Avatar training ended in ``failed`` or never finished."""


class RenderingFailed(JobFailed):
    """Video or speech rendering ended in ``failed`` or never finished."""


class PollTimeout(AvatarcastError):
    """A poll loop hit its attempt bound without reaching a terminal status."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"gave up after {attempts} status checks")
        self.attempts = attempts
