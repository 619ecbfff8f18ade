"""avatarcast pipelines - ingestion, polling and stage orchestration."""

from avatarcast.pipeline.generation import VideoPipeline
from avatarcast.pipeline.ingestion import (
    VOICE_RETENTION_SECONDS,
    ingest_audio,
    ingest_image,
    reclaim_stale_voices,
)
from avatarcast.pipeline.polling import poll_until
from avatarcast.pipeline.scripts import SCRIPT_TEMPLATES, ScriptTemplate, get_template, render_script
from avatarcast.pipeline.speech import SpeechPipeline

__all__ = [
    "SCRIPT_TEMPLATES",
    "VOICE_RETENTION_SECONDS",
    "ScriptTemplate",
    "SpeechPipeline",
    "VideoPipeline",
    "get_template",
    "ingest_audio",
    "ingest_image",
    "poll_until",
    "reclaim_stale_voices",
    "render_script",
]
