"""Shared plumbing for the video and speech pipelines."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

from avatarcast.errors import RETRY_PROMPT, AvatarcastError

if TYPE_CHECKING:
    from avatarcast.config import AppConfig
    from avatarcast.models import Session, Stage
    from avatarcast.providers.base import ProgressCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BasePipeline:
    """Cancellation, progress reporting and failure handling for a pipeline run."""

    def __init__(
        self,
        config: AppConfig,
        *,
        progress_callback: ProgressCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self._progress_callback = progress_callback
        self._rng = rng or random.Random()
        self._cancel_event = asyncio.Event()
        self._task: asyncio.Task[Session] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Tear down the run: stop polling and freeze the session."""
        if self.cancelled:
            return
        logger.info("Pipeline cancelled")
        self._cancel_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def start(self, session: Session, *args: Any) -> asyncio.Task[Session]:
        """Run the pipeline for ``session`` as a background task."""
        self._task = asyncio.create_task(self.run(session, *args))
        return self._task

    async def run(self, session: Session, *args: Any) -> Session:
        raise NotImplementedError

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await a provider call, then stop if the run was torn down meanwhile."""
        result = await awaitable
        self._ensure_live()
        return result

    def _ensure_live(self) -> None:
        if self.cancelled:
            raise asyncio.CancelledError

    def _enter(self, session: Session, stage: Stage, percent: int, status: str) -> None:
        self._ensure_live()
        session.advance(stage)
        logger.info("Session %s -> %s", session.id, stage)
        self._report(session, percent, status)

    def _report(self, session: Session, percent: int, status: str) -> None:
        if self.cancelled:
            return
        value = session.set_progress(percent)
        if self._progress_callback is not None:
            self._progress_callback(session.stage, value, status)

    def _jitter(self, low: int, high: int) -> int:
        """Heuristic intra-band progress while waiting on a provider."""
        return self._rng.randint(low, high)

    def _abort(self, session: Session, exc: AvatarcastError | httpx.HTTPError) -> Session:
        """Send the session back to idle with a user-facing error."""
        if self.cancelled:
            return session
        message = exc.user_message if isinstance(exc, AvatarcastError) else RETRY_PROMPT
        logger.error("Session %s failed during %s: %s", session.id, session.stage, exc)
        session.fail(message)
        if self._progress_callback is not None:
            self._progress_callback(session.stage, session.progress, message)
        return session

    async def _guard(self, session: Session, body: Awaitable[Session]) -> Session:
        try:
            return await body
        except asyncio.CancelledError:
            if self.cancelled:
                logger.info("Session %s stopped at %s", session.id, session.stage)
                return session
            raise
        except (AvatarcastError, httpx.HTTPError) as exc:
            return self._abort(session, exc)
