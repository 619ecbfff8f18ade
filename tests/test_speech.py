"""Tests for the cloned-voice speech pipeline."""

from __future__ import annotations

import httpx
import pytest

from avatarcast.errors import RETRY_PROMPT, ValidationError
from avatarcast.models import JobStatus, Stage
from avatarcast.pipeline.speech import SpeechPipeline
from avatarcast.providers.mock import MockSpeechProvider


@pytest.mark.asyncio
async def test_generates_one_clip_per_script(config, session, tmp_path):
    speech = MockSpeechProvider(audio=b"ID3clip")
    pipeline = SpeechPipeline(speech, config, output_dir=tmp_path / "clips")

    result = await pipeline.run(session, ["First line", "  Second line  "])

    assert result.stage == Stage.DONE
    assert result.history == [Stage.UPLOADING, Stage.RENDERING, Stage.DONE]
    assert [job.script for job in result.speech_jobs] == ["First line", "Second line"]
    for job in result.speech_jobs:
        assert job.status == JobStatus.COMPLETED
        assert job.audio_path.parent == tmp_path / "clips"
        assert job.audio_path.read_bytes() == b"ID3clip"
    assert result.result_url == result.speech_jobs[0].audio_url
    assert result.result_url.startswith("file://")


@pytest.mark.asyncio
async def test_defaults_to_session_script(config, session):
    speech = MockSpeechProvider()
    result = await SpeechPipeline(speech, config).run(session)

    assert len(result.speech_jobs) == 1
    assert result.speech_jobs[0].script == "Hello world"
    assert result.speech_jobs[0].audio_path.parent == config.output_dir / "speech"


@pytest.mark.asyncio
async def test_clone_happens_before_synthesis(config, session):
    speech = MockSpeechProvider()
    await SpeechPipeline(speech, config).run(session, ["a", "b"])
    names = [name for name, _ in speech.calls]
    assert names.index("clone_voice") < names.index("synthesize")
    assert names.count("synthesize") == 2


@pytest.mark.asyncio
async def test_progress_reaches_100(config, session):
    percents: list[int] = []
    speech = MockSpeechProvider()
    pipeline = SpeechPipeline(
        speech, config, progress_callback=lambda _s, p, _m: percents.append(p),
    )
    await pipeline.run(session, ["a", "b", "c"])
    assert percents == sorted(percents)
    assert percents[-1] == 100


@pytest.mark.asyncio
async def test_clone_failure_aborts(config, session):
    speech = MockSpeechProvider(clone_error_status=403)
    result = await SpeechPipeline(speech, config).run(session, ["a"])
    assert result.stage == Stage.IDLE
    assert result.error == RETRY_PROMPT
    assert "synthesize" not in [name for name, _ in speech.calls]


@pytest.mark.asyncio
async def test_synthesis_failure_marks_job(config, session):
    speech = MockSpeechProvider(content_type="application/json")
    result = await SpeechPipeline(speech, config).run(session, ["a", "b"])

    assert result.stage == Stage.IDLE
    assert len(result.speech_jobs) == 1
    assert result.speech_jobs[0].status == JobStatus.FAILED
    assert "unexpected response type" in result.error


@pytest.mark.asyncio
async def test_empty_script_list_rejected(config, session):
    speech = MockSpeechProvider()
    with pytest.raises(ValidationError, match="at least one script"):
        await SpeechPipeline(speech, config).run(session, [])
    assert speech.calls == []


@pytest.mark.asyncio
async def test_blank_script_rejected(config, session):
    speech = MockSpeechProvider()
    with pytest.raises(ValidationError):
        await SpeechPipeline(speech, config).run(session, ["ok", "   "])
    assert speech.calls == []


class UnreachableSpeech(MockSpeechProvider):
    async def synthesize(self, voice_id: str, text: str) -> bytes:
        self.calls.append(("synthesize", text))
        raise httpx.ConnectError("connection reset")


@pytest.mark.asyncio
async def test_transport_failure_marks_job(config, session):
    result = await SpeechPipeline(UnreachableSpeech(), config).run(session, ["a"])

    assert result.stage == Stage.IDLE
    assert result.error == RETRY_PROMPT
    assert result.speech_jobs[0].status == JobStatus.FAILED
    assert result.speech_jobs[0].error_msg == "connection reset"


@pytest.mark.asyncio
async def test_unwritable_clip_marks_job(config, session, tmp_path):
    out = tmp_path / "clips"
    (out / f"{session.id.hex[:8]}_1.mp3").mkdir(parents=True)

    result = await SpeechPipeline(MockSpeechProvider(), config, output_dir=out).run(session, ["a"])

    assert result.stage == Stage.IDLE
    assert "could not save clip 1" in result.error
    assert result.speech_jobs[0].status == JobStatus.FAILED
    assert result.speech_jobs[0].audio_path is None


@pytest.mark.asyncio
async def test_output_dir_is_a_file(config, session, tmp_path):
    out = tmp_path / "clips"
    out.write_text("occupied")

    result = await SpeechPipeline(MockSpeechProvider(), config, output_dir=out).run(session, ["a"])

    assert result.stage == Stage.IDLE
    assert "could not create" in result.error
