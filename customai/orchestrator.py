"""Generation cycle: drain insights, stream the instructions, parse the result."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from .insights import InsightAnnotator
from .schemas import GenerationResult, GenerationRequest
from .state import (
    APPEND_STREAMED_TEXT,
    GENERATION_ERROR,
    GENERATION_SUCCESS,
    NEXT_STEP,
    SET_GENERATION_PHASE,
    START_GENERATING,
    Action,
    SessionState,
    SessionStore,
)
from .streamer import GenerationStreamError, ResultStreamer, coalesce
from .tracing import log_trace_event
from .utils import configure_logging, strip_code_fence

configure_logging()
logger = logging.getLogger(__name__)

PARSE_FAILED = "Failed to parse generation result. Please try again."
UNEXPECTED_ERROR = "An error occurred"


def build_generation_request(state: SessionState) -> GenerationRequest:
    """Blank raw answers that have a completed insight; forward every insight."""
    completed = {i.question_id for i in state.analyzed_insights if i.status == "complete"}
    answers = [
        answer.model_copy(update={"answer": ""}) if answer.question_id in completed else answer
        for answer in state.answers
    ]
    return GenerationRequest(
        selected_targets=list(state.selected_targets),
        answers=answers,
        analyzed_insights=list(state.analyzed_insights),
        writing_codex=state.writing_codex,
        personal_constitution=state.personal_constitution,
    )


def parse_result(text: str) -> GenerationResult:
    try:
        return GenerationResult.model_validate(json.loads(strip_code_fence(text)))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Unparseable generation result (%d chars): %s", len(text), exc)
        raise ValueError(PARSE_FAILED) from exc


class GenerationOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        annotator: InsightAnnotator,
        streamer: ResultStreamer,
        session_id: Optional[str] = None,
    ) -> None:
        self._store = store
        self._annotator = annotator
        self._streamer = streamer
        self._session_id = session_id

    def _phase(self, phase: str) -> None:
        self._store.dispatch(Action(SET_GENERATION_PHASE, phase))
        log_trace_event("orchestrator", phase, self._session_id)

    def begin(self, advance_step: bool = False) -> None:
        """Enter `waiting-for-insights`, clearing any previous result and error."""
        self._store.dispatch(Action(START_GENERATING))
        if advance_step:
            self._store.dispatch(Action(NEXT_STEP))
        log_trace_event("orchestrator", "waiting-for-insights", self._session_id)

    async def run_cycle(self) -> Optional[GenerationResult]:
        """Run drain, stream and parse. Failures end in `state.error`, never raise."""
        try:
            drained = await self._annotator.drain()
            if not drained:
                logger.warning("Proceeding without insights that did not finish in time")
            self._phase("generating")
            request = build_generation_request(self._store.state)
            raw_text = await self._stream(request)
            result = parse_result(raw_text)
        except (GenerationStreamError, ValueError) as exc:
            return self._fail(str(exc))
        except Exception:  # noqa: BLE001
            logger.exception("Generation cycle failed")
            return self._fail(UNEXPECTED_ERROR)

        self._store.dispatch(Action(GENERATION_SUCCESS, result))
        log_trace_event(
            "orchestrator",
            "complete",
            self._session_id,
            {"targets": list(result.sections()), "chars": len(raw_text)},
        )
        logger.info("Generated instructions for %s", ", ".join(result.sections()))
        return result

    async def _stream(self, request: GenerationRequest) -> str:
        parts = []
        fragments = self._streamer.stream(request, on_open=lambda: self._phase("streaming"))
        async for batch in coalesce(fragments):
            parts.append(batch)
            self._store.dispatch(Action(APPEND_STREAMED_TEXT, batch))
        return "".join(parts)

    def _fail(self, message: str) -> None:
        self._store.dispatch(Action(GENERATION_ERROR, message))
        log_trace_event("orchestrator", "error", self._session_id, {"error": message})
        return None

    async def generate(self, advance_step: bool = False) -> Optional[GenerationResult]:
        self.begin(advance_step=advance_step)
        return await self.run_cycle()
