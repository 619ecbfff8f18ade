"""User-provided binaries (photo, voice sample)."""

from __future__ import annotations

import mimetypes
import wave
from pathlib import Path

from pydantic import BaseModel, Field

# Recorder formats that mimetypes maps to video/* or not at all.
_AUDIO_SUFFIXES = {".webm": "audio/webm", ".m4a": "audio/mp4", ".opus": "audio/ogg"}


class MediaFile(BaseModel):
    """An in-memory blob with enough metadata to upload it."""

    filename: str
    content_type: str
    data: bytes = Field(repr=False)
    duration_seconds: float | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @property
    def is_audio(self) -> bool:
        return self.content_type.startswith("audio/")

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> MediaFile:
        """Read a file from disk, guessing its content type from the suffix.

        WAV durations are read from the header; other formats leave
        ``duration_seconds`` unset.
        """
        guessed = _AUDIO_SUFFIXES.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0]
        ctype = content_type or guessed or "application/octet-stream"
        return cls(
            filename=path.name,
            content_type=ctype,
            data=path.read_bytes(),
            duration_seconds=_wav_duration(path) if path.suffix.lower() == ".wav" else None,
        )


def _wav_duration(path: Path) -> float | None:
    try:
        with wave.open(str(path), "rb") as wav:
            rate = wav.getframerate()
            return wav.getnframes() / rate if rate else None
    except (wave.Error, EOFError):
        return None
