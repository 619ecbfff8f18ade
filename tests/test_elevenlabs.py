"""Tests for the ElevenLabs speech client."""

from __future__ import annotations

import json

import httpx
import pytest

from avatarcast.config import ElevenLabsSettings
from avatarcast.errors import CleanupError, ProviderError, VoiceCreationFailed
from avatarcast.models import MediaFile
from avatarcast.providers.base import SpeechProvider
from avatarcast.providers.elevenlabs import ElevenLabsClient

SETTINGS = ElevenLabsSettings(api_key="el-key", base_url="https://el.test", list_page_size=2)


def _client(handler) -> ElevenLabsClient:
    return ElevenLabsClient(SETTINGS, transport=httpx.MockTransport(handler))


def test_client_implements_protocol() -> None:
    assert isinstance(ElevenLabsClient(SETTINGS), SpeechProvider)


@pytest.mark.asyncio
async def test_is_available() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"subscription": {}})

    async with _client(handler) as client:
        assert await client.is_available() is True
    assert seen[0].headers["xi-api-key"] == "el-key"
    assert seen[0].url.path == "/v1/user"


# ── Cloning ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_clone_voice_multipart(audio: MediaFile) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"voice_id": "el-1"})

    async with _client(handler) as client:
        voice_id = await client.clone_voice(audio, "Voice 123")

    assert voice_id == "el-1"
    request = seen[0]
    assert request.url.path == "/v1/voices/add"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="name"' in body
    assert b"Voice 123" in body
    assert b'name="files"; filename="voice.webm"' in body


@pytest.mark.asyncio
async def test_clone_voice_rejected(audio: MediaFile) -> None:
    async with _client(lambda req: httpx.Response(422, text="sample too short")) as client:
        with pytest.raises(VoiceCreationFailed) as excinfo:
            await client.clone_voice(audio, "v")
    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_clone_voice_non_json(audio: MediaFile) -> None:
    async with _client(lambda req: httpx.Response(200, text="ok")) as client:
        with pytest.raises(VoiceCreationFailed, match="no voice id"):
            await client.clone_voice(audio, "v")


# ── Listing and deletion ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_voices_follows_pages() -> None:
    pages = {
        None: {
            "voices": [
                {"voice_id": "a", "created_at_unix": 1, "is_owner": True},
                {"voice_id": "b", "created_at_unix": 2, "is_owner": True},
            ],
            "has_more": True,
            "next_page_token": "t2",
        },
        "t2": {
            "voices": [{"voice_id": "c", "created_at_unix": 3, "is_owner": False}],
            "has_more": False,
        },
    }
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=pages[request.url.params.get("next_page_token")])

    async with _client(handler) as client:
        voices = await client.list_voices()

    assert [v.voice_id for v in voices] == ["a", "b", "c"]
    assert voices[2].is_owner is False
    params = seen[0].url.params
    assert params["voice_type"] == "personal"
    assert params["sort"] == "created_at_unix"
    assert params["sort_direction"] == "asc"
    assert params["page_size"] == "2"
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_list_voices_failure() -> None:
    async with _client(lambda req: httpx.Response(500, text="down")) as client:
        with pytest.raises(CleanupError):
            await client.list_voices()


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"voices": [{"voice_id": "a", "created_at_unix": None}]}),
    ],
)
@pytest.mark.asyncio
async def test_list_voices_unusable_payload(response: httpx.Response) -> None:
    async with _client(lambda req: response) as client:
        with pytest.raises(CleanupError, match="unusable payload"):
            await client.list_voices()


@pytest.mark.asyncio
async def test_delete_voice() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "ok"})

    async with _client(handler) as client:
        await client.delete_voice("old-1")
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/v1/voices/old-1"


@pytest.mark.asyncio
async def test_delete_voice_failure() -> None:
    async with _client(lambda req: httpx.Response(404, text="missing")) as client:
        with pytest.raises(CleanupError) as excinfo:
            await client.delete_voice("gone")
    assert excinfo.value.status_code == 404


# ── Synthesis ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_synthesize() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ID3audio", headers={"content-type": "audio/mpeg"})

    async with _client(handler) as client:
        audio = await client.synthesize("el-1", "Hello")

    assert audio == b"ID3audio"
    assert seen[0].url.path == "/v1/text-to-speech/el-1"
    body = json.loads(seen[0].content)
    assert body["text"] == "Hello"
    assert body["model_id"] == "eleven_monolingual_v1"
    assert body["voice_settings"] == {"stability": 0.5, "similarity_boost": 1.0, "speed": 0.8}


@pytest.mark.asyncio
async def test_synthesize_rejects_non_audio() -> None:
    async with _client(lambda req: httpx.Response(200, json={"detail": "quota"})) as client:
        with pytest.raises(ProviderError, match="unexpected response type"):
            await client.synthesize("el-1", "Hello")


@pytest.mark.asyncio
async def test_synthesize_http_error() -> None:
    async with _client(lambda req: httpx.Response(401, text="bad key")) as client:
        with pytest.raises(ProviderError) as excinfo:
            await client.synthesize("el-1", "Hello")
    assert excinfo.value.status_code == 401
