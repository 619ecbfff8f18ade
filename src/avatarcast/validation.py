"""Validation of a submission before anything is sent to a provider."""

from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from avatarcast.errors import ValidationError

if TYPE_CHECKING:
    from avatarcast.config import ValidationSettings
    from avatarcast.models import MediaFile


def validate_photo(photo: MediaFile | None, settings: ValidationSettings) -> None:
    """Check that ``photo`` decodes as one of the allowed image formats.

    Raises
    ------
    ValidationError
        If the photo is missing, empty, unreadable or in another format.
    """
    if photo is None or not photo.data:
        msg = "Please upload a photo"
        raise ValidationError(msg)
    try:
        with Image.open(BytesIO(photo.data)) as img:
            fmt = img.format or ""
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        msg = f"{photo.filename} is not a readable image"
        raise ValidationError(msg) from None
    if fmt.upper() not in {f.upper() for f in settings.photo_formats}:
        allowed = " or ".join(settings.photo_formats)
        msg = f"Please upload a {allowed} image (got {fmt or 'unknown'})"
        raise ValidationError(msg)


def validate_audio(audio: MediaFile | None, settings: ValidationSettings) -> None:
    """Check that the voice sample exists and is long enough when its length is known."""
    if audio is None or not audio.data:
        msg = "Please record or upload a voice sample"
        raise ValidationError(msg)
    if not audio.is_audio:
        msg = f"{audio.filename} is not an audio file ({audio.content_type})"
        raise ValidationError(msg)
    if audio.duration_seconds is not None and audio.duration_seconds < settings.min_audio_seconds:
        msg = (
            f"Voice sample is {audio.duration_seconds:.1f}s long; "
            f"at least {settings.min_audio_seconds:.0f}s is needed"
        )
        raise ValidationError(msg)


def validate_script(script: str) -> str:
    """Return the stripped script, rejecting blank input."""
    text = script.strip()
    if not text:
        msg = "Please provide a script"
        raise ValidationError(msg)
    return text
