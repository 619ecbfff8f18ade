"""CLI entry point using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

if TYPE_CHECKING:
    from avatarcast.config import AppConfig
    from avatarcast.models import Stage
    from avatarcast.providers.base import AvatarProvider, SpeechProvider

app = typer.Typer(
    name="avatarcast",
    help="Talking-photo videos and cloned-voice clips from a photo and a voice sample.",
    no_args_is_help=False,
)

BackendOption = Annotated[
    str | None,
    typer.Option("--backend", "-b", help="Backend: live or mock"),
]


def _providers(config: AppConfig, backend: str | None) -> tuple[AvatarProvider, SpeechProvider | None]:
    backend_name = backend or config.active_backend
    if backend_name == "mock":
        from avatarcast.providers.mock import MockAvatarProvider, MockSpeechProvider

        return MockAvatarProvider(), MockSpeechProvider()
    if backend_name != "live":
        typer.echo(f"Error: unknown backend '{backend_name}'.", err=True)
        raise typer.Exit(1)

    from avatarcast.providers.elevenlabs import ElevenLabsClient
    from avatarcast.providers.heygen import HeyGenClient

    timeout = config.polling.request_timeout_seconds
    speech = (
        ElevenLabsClient(config.elevenlabs, timeout=timeout) if config.elevenlabs.api_key else None
    )
    return HeyGenClient(config.heygen, timeout=timeout), speech


def _resolve_scripts(
    scripts: list[str], templates: list[str], child_name: str, age: str,
) -> list[str]:
    from avatarcast.errors import ValidationError
    from avatarcast.pipeline.scripts import render_script

    texts = list(scripts)
    for template_id in templates:
        try:
            texts.append(render_script(template_id, child_name=child_name, age=age))
        except ValidationError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
    return texts


def _echo_progress(stage: Stage, percent: int, status: str) -> None:
    typer.echo(f"  [{stage:<9}] {percent:3d}%  {status}")


@app.command()
def video(
    photo: Annotated[Path, typer.Argument(help="JPEG or PNG photo", exists=True, dir_okay=False)],
    audio: Annotated[Path, typer.Argument(help="Voice sample", exists=True, dir_okay=False)],
    script: Annotated[str, typer.Option("--script", "-s", help="Text to speak")] = "",
    template: Annotated[
        str | None, typer.Option("--template", "-t", help="Script template id"),
    ] = None,
    child_name: Annotated[str, typer.Option("--child-name", help="Template value")] = "",
    age: Annotated[str, typer.Option("--age", help="Template value")] = "",
    backend: BackendOption = None,
) -> None:
    """Render a talking-photo video from a photo, a voice sample and a script."""
    from avatarcast.config import load_config
    from avatarcast.errors import ValidationError
    from avatarcast.models import MediaFile, Session, Stage
    from avatarcast.pipeline.generation import VideoPipeline

    config = load_config()
    texts = _resolve_scripts([script] if script else [], [template] if template else [],
                             child_name, age)
    session = Session(
        photo=MediaFile.from_path(photo),
        audio=MediaFile.from_path(audio),
        script=texts[0] if texts else "",
    )
    avatar, speech = _providers(config, backend)

    async def _run() -> None:
        await avatar.connect()
        if speech is not None:
            await speech.connect()
        try:
            pipeline = VideoPipeline(
                avatar, config, speech=speech, progress_callback=_echo_progress,
            )
            await pipeline.run(session)
        finally:
            if speech is not None:
                await speech.disconnect()
            await avatar.disconnect()

    try:
        asyncio.run(_run())
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if session.stage != Stage.DONE:
        typer.echo(f"Error: {session.error}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Video: {session.result_url}")


@app.command()
def speak(
    audio: Annotated[Path, typer.Argument(help="Voice sample", exists=True, dir_okay=False)],
    script: Annotated[
        list[str] | None, typer.Option("--script", "-s", help="Text to speak (repeatable)"),
    ] = None,
    template: Annotated[
        list[str] | None, typer.Option("--template", "-t", help="Script template id (repeatable)"),
    ] = None,
    child_name: Annotated[str, typer.Option("--child-name", help="Template value")] = "",
    age: Annotated[str, typer.Option("--age", help="Template value")] = "",
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Output directory"),
    ] = None,
    backend: BackendOption = None,
) -> None:
    """Clone a voice and read one or more scripts with it."""
    from avatarcast.config import load_config
    from avatarcast.errors import ValidationError
    from avatarcast.models import MediaFile, Session, Stage
    from avatarcast.pipeline.speech import SpeechPipeline

    config = load_config()
    texts = _resolve_scripts(script or [], template or [], child_name, age)
    _, speech = _providers(config, backend)
    if speech is None:
        typer.echo("Error: speech provider not configured (set AVATARCAST_ELEVENLABS__API_KEY)",
                   err=True)
        raise typer.Exit(1)
    session = Session(audio=MediaFile.from_path(audio))

    async def _run() -> None:
        await speech.connect()
        try:
            pipeline = SpeechPipeline(
                speech, config, output_dir=output, progress_callback=_echo_progress,
            )
            await pipeline.run(session, texts)
        finally:
            await speech.disconnect()

    try:
        asyncio.run(_run())
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if session.stage != Stage.DONE:
        typer.echo(f"Error: {session.error}", err=True)
        raise typer.Exit(1)
    for job in session.speech_jobs:
        typer.echo(f"Saved: {job.audio_path}")


@app.command()
def scripts() -> None:
    """List the built-in script templates."""
    from avatarcast.pipeline.scripts import SCRIPT_TEMPLATES

    for tmpl in SCRIPT_TEMPLATES:
        typer.echo(f"{tmpl.id}: {tmpl.title} (fields: {', '.join(tmpl.fields)})")


@app.command()
def cleanup(
    retention: Annotated[
        int | None,
        typer.Option("--retention", "-r", help="Delete voices older than this many seconds"),
    ] = None,
    backend: BackendOption = None,
) -> None:
    """Delete cloned voices older than the retention window."""
    from avatarcast.config import load_config
    from avatarcast.pipeline.ingestion import reclaim_stale_voices

    config = load_config()
    _, speech = _providers(config, backend)
    if speech is None:
        typer.echo("Error: speech provider not configured (set AVATARCAST_ELEVENLABS__API_KEY)",
                   err=True)
        raise typer.Exit(1)
    window = retention if retention is not None else config.elevenlabs.voice_retention_seconds

    async def _run():
        await speech.connect()
        try:
            return await reclaim_stale_voices(speech, retention_seconds=window)
        finally:
            await speech.disconnect()

    report = asyncio.run(_run())
    typer.echo(f"Deleted: {report.deleted}")
    typer.echo(f"Failed: {report.failed}")
    for error in report.errors:
        typer.echo(f"  {error}")


@app.command()
def check(backend: BackendOption = None) -> None:
    """Check provider connectivity and report status."""
    from avatarcast.config import load_config

    config = load_config()
    avatar, speech = _providers(config, backend)

    async def _run() -> tuple[bool, bool | None]:
        await avatar.connect()
        try:
            avatar_ok = await avatar.is_available()
        finally:
            await avatar.disconnect()
        if speech is None:
            return avatar_ok, None
        await speech.connect()
        try:
            return avatar_ok, await speech.is_available()
        finally:
            await speech.disconnect()

    avatar_ok, speech_ok = asyncio.run(_run())
    typer.echo(f"Avatar provider: {'connected' if avatar_ok else 'unavailable'}")
    if speech_ok is None:
        typer.echo("Speech provider: not configured (videos use the raw voice sample)")
    else:
        typer.echo(f"Speech provider: {'connected' if speech_ok else 'unavailable'}")
    if not avatar_ok:
        typer.echo("Status: offline")
        raise typer.Exit(1)
    typer.echo("Status: ready")


@app.command()
def relay(
    target: Annotated[str, typer.Argument(help="Provider to relay: heygen or elevenlabs")],
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port number")] = None,
) -> None:
    """Serve a CORS relay in front of a provider API."""
    import uvicorn

    from avatarcast.config import load_config
    from avatarcast.relay import create_provider_relay

    config = load_config()
    try:
        relay_app = create_provider_relay(target, config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    bind_host = host or config.relay.host
    bind_port = port or config.relay.port
    typer.echo(f"Relaying {target} at http://{bind_host}:{bind_port}")
    uvicorn.run(relay_app, host=bind_host, port=bind_port)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", "-v", help="Show version", is_eager=True),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log provider calls")] = False,
) -> None:
    """avatarcast - talking-photo videos from a photo and a voice sample."""
    if version:
        from avatarcast import __version__

        typer.echo(f"avatarcast {__version__}")
        raise typer.Exit()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
