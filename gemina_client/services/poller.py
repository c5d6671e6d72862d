"""Upload → poll orchestration for Gemina predictions.

Flow:  Upload (file or URL) → classify → Fetch prediction → retry on 202/404 → Done / Failed

A 200 with an empty body raises DecodeError.
Polling has no attempt cap or deadline unless ``max_attempts`` or ``timeout``
is given; a bounded run that runs out ends in ``PollState.EXHAUSTED``.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Awaitable, Callable

from loguru import logger

from gemina_client.core.exceptions import DecodeError
from gemina_client.models.schemas import (
    Phase,
    PollEvent,
    PollResult,
    PollState,
    UploadOutcome,
    UpstreamFailure,
    WebResponse,
)
from gemina_client.services.gemina_client import GeminaClient
from gemina_client.utils.file_handler import is_remote, new_external_id

Observer = Callable[[PollEvent], None]
Sleeper = Callable[[float], Awaitable[None]]

_UPLOAD_OUTCOMES = {
    201: UploadOutcome.CREATED,
    202: UploadOutcome.ALREADY_QUEUED,
    409: UploadOutcome.ALREADY_EXISTS,
}

_POLL_STATES = {
    200: PollState.DONE,
    202: PollState.PROCESSING,
    404: PollState.NOT_FOUND,
}

_MESSAGES = {
    UploadOutcome.CREATED: "Upload accepted",
    UploadOutcome.ALREADY_QUEUED: "Image is already being processed. No need to upload again",
    UploadOutcome.ALREADY_EXISTS: "A prediction already exists for this image. No need to upload again",
    UploadOutcome.FAILED: "Server returned an error. Upload failed",
    PollState.PROCESSING: "Image is still being processed. Waiting before the next attempt",
    PollState.NOT_FOUND: "Can't find image yet. Waiting for it to be created before the next attempt",
    PollState.DONE: "Successfully retrieved prediction",
    PollState.FAILED: "Failed to retrieve prediction",
    PollState.EXHAUSTED: "Gave up waiting for prediction",
}


def classify_upload(status_code: int) -> UploadOutcome:
    """Map an upload status code to its outcome."""
    return _UPLOAD_OUTCOMES.get(status_code, UploadOutcome.FAILED)


def classify_poll(status_code: int) -> PollState:
    """Map a fetch-prediction status code to the next polling state."""
    return _POLL_STATES.get(status_code, PollState.FAILED)


def log_event(event: PollEvent) -> None:
    """Default observer: write poll progress to the log."""
    text = f"[{event.external_id}] {event.message} (HTTP {event.status_code})"
    if event.status_code in _POLL_STATES or event.status_code in _UPLOAD_OUTCOMES:
        logger.info(text)
    else:
        logger.warning(text)


class PredictionPoller:
    """Drives the two-phase upload → poll protocol against a GeminaClient."""

    def __init__(
        self,
        client: GeminaClient,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        timeout: float | None = None,
        observer: Observer | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        settings = client.settings
        self.client = client
        self.poll_interval = settings.poll_interval if poll_interval is None else poll_interval
        self.max_attempts = settings.max_poll_attempts if max_attempts is None else max_attempts
        self.timeout = settings.poll_timeout if timeout is None else timeout
        self.observer = observer or log_event
        self._sleep = sleep or asyncio.sleep

    def _notify(
        self,
        external_id: str,
        phase: Phase,
        response: WebResponse,
        message: str,
        attempt: int = 0,
    ) -> None:
        self.observer(PollEvent(
            external_id=external_id,
            phase=phase,
            status_code=response.status_code,
            message=message,
            attempt=attempt,
        ))

    async def upload(self, source: str | Path, external_id: str) -> WebResponse:
        """Upload a local path or an http(s) URL."""
        if is_remote(source):
            return await self.client.upload_by_url(str(source), external_id)
        return await self.client.upload_image(Path(source), external_id)

    async def run(self, source: str | Path, external_id: str | None = None) -> PollResult:
        """
        Upload ``source`` once, then poll until a terminal state.

        A rejected upload ends the run without polling.
        """
        external_id = external_id or new_external_id()

        response = await self.upload(source, external_id)
        outcome = classify_upload(response.status_code)
        self._notify(external_id, Phase.UPLOAD, response, _MESSAGES[outcome])

        if not outcome.proceeds:
            return PollResult(
                external_id=external_id,
                state=PollState.FAILED,
                response=response,
                failure=UpstreamFailure.from_response(Phase.UPLOAD, response),
            )

        return await self.poll(external_id)

    async def poll(self, external_id: str) -> PollResult:
        """Fetch the prediction until it is ready or the API reports an error."""
        started = time.monotonic()
        attempts = 0

        while True:
            response = await self.client.fetch_prediction(external_id)
            attempts += 1
            state = classify_poll(response.status_code)

            if not state.terminal and self._exhausted(attempts, started):
                state = PollState.EXHAUSTED

            if state is PollState.DONE and response.prediction is None:
                raise DecodeError("<root>", "a JSON object", "empty prediction body")

            self._notify(external_id, Phase.POLL, response, _MESSAGES[state], attempts)

            if state is PollState.DONE:
                return PollResult(
                    external_id=external_id,
                    state=state,
                    attempts=attempts,
                    prediction=response.prediction,
                    response=response,
                )
            if state is PollState.FAILED:
                return PollResult(
                    external_id=external_id,
                    state=state,
                    attempts=attempts,
                    response=response,
                    failure=UpstreamFailure.from_response(Phase.POLL, response),
                )
            if state is PollState.EXHAUSTED:
                return PollResult(
                    external_id=external_id,
                    state=state,
                    attempts=attempts,
                    response=response,
                )

            await self._sleep(self.poll_interval)

    def _exhausted(self, attempts: int, started: float) -> bool:
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        if self.timeout is not None and time.monotonic() - started >= self.timeout:
            return True
        return False
