"""Wizard session: owns the state store and wires the async collaborators together."""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from typing import List, Optional

import httpx

from .insights import InsightAnnotator
from .oracle import QuestionOracleClient
from .orchestrator import GenerationOrchestrator
from .persistence import SessionPersistence
from .schemas import Answer, GeneratedQuestion, GenerationResult, QAPair
from .state import (
    NEXT_STEP,
    PREV_STEP,
    RESET,
    RESTORE_STATE,
    SAVE_ANSWER,
    SET_PERSONAL_CONSTITUTION,
    SET_STEP,
    SET_WRITING_CODEX,
    TARGET_STEP,
    TOGGLE_TARGET,
    Action,
    SessionState,
    SessionStore,
)
from .streamer import ResultStreamer
from .targets import get_target
from .utils import configure_logging, now_ms

configure_logging()
logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("CUSTOMAI_API_URL", "http://127.0.0.1:8000")
MULTISELECT_SEPARATOR = ", "


def question_id_for(number: int) -> str:
    return f"q-{number}"


def join_options(options: List[str]) -> str:
    return MULTISELECT_SEPARATOR.join(options)


def split_options(answer: str) -> List[str]:
    return [part for part in answer.split(MULTISELECT_SEPARATOR) if part]


class WizardSession:
    """Public surface of the questionnaire.

    Must be used from a single event loop; every mutation is a dispatch on
    the same :class:`SessionStore`.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        persistence: Optional[SessionPersistence] = None,
        drain_timeout: Optional[float] = None,
    ) -> None:
        self.session_id = str(uuid.uuid4())
        self._client = client or httpx.AsyncClient(base_url=API_BASE_URL, timeout=None)
        self.persistence = persistence or SessionPersistence()
        self.store = SessionStore()
        self.store.subscribe(self.persistence.sync)
        self.annotator = InsightAnnotator(self.store, self._client)
        if drain_timeout is not None:
            self.annotator.drain_timeout = drain_timeout
        self.oracle = QuestionOracleClient(self._client)
        self.orchestrator = GenerationOrchestrator(
            self.store, self.annotator, ResultStreamer(self._client), self.session_id
        )
        self.generation_task: Optional[asyncio.Task] = None
        self._saved = self.persistence.load()

    @property
    def state(self) -> SessionState:
        return self.store.state

    # Navigation and setup

    def go_to_step(self, step: int) -> None:
        self.store.dispatch(Action(SET_STEP, step))

    def next_step(self) -> None:
        self.store.dispatch(Action(NEXT_STEP))

    def previous_step(self) -> None:
        self.store.dispatch(Action(PREV_STEP))

    def toggle_target(self, target_id: str) -> None:
        get_target(target_id)
        self.store.dispatch(Action(TOGGLE_TARGET, target_id))

    def set_writing_codex(self, text: Optional[str]) -> None:
        self.store.dispatch(Action(SET_WRITING_CODEX, text or None))

    def set_personal_constitution(self, text: Optional[str]) -> None:
        self.store.dispatch(Action(SET_PERSONAL_CONSTITUTION, text or None))

    def can_proceed(self) -> bool:
        if self.state.current_step == TARGET_STEP:
            return bool(self.state.selected_targets)
        return True

    # Answers

    def save_answer(self, answer: Answer) -> None:
        previous = self.state.find_answer(answer.question_id)
        changed = previous is None or previous.answer != answer.answer
        self.store.dispatch(Action(SAVE_ANSWER, answer))
        if changed:
            self.annotator.schedule(answer)

    def answer_current(self, question: str, text: str) -> Answer:
        """Save `text` for the current question slot and advance to the next one."""
        answer = Answer(
            question_id=question_id_for(self.state.question_number),
            question=question,
            answer=text.strip(),
            timestamp=now_ms(),
        )
        self.save_answer(answer)
        self.next_step()
        return answer

    def skip_current(self) -> None:
        self.next_step()

    def get_answer(self, question_id: str) -> Optional[Answer]:
        return self.state.find_answer(question_id)

    # Questions

    async def fetch_next_question(self) -> Optional[GeneratedQuestion]:
        """Return the question for the current slot, or None once the oracle is done.

        On completion the generation cycle is already running when this returns;
        await :attr:`generation_task` to follow it. Raises QuestionFetchError on
        failure, leaving saved answers untouched.
        """
        state = self.state
        history = [QAPair(question=a.question, answer=a.answer) for a in state.answers]
        question = await self.oracle.fetch_next_question(
            history,
            state.selected_targets,
            state.writing_codex,
            state.personal_constitution,
            question_count=max(0, state.question_number - 1),
        )
        if question.is_complete:
            self.start_generation(advance_step=True)
            return None
        return question

    # Generation

    def start_generation(self, advance_step: bool = False) -> asyncio.Task:
        """Begin a generation cycle in the background and return its task."""
        if self.generation_task is not None and not self.generation_task.done():
            logger.warning("Generation already running; not starting another stream")
            return self.generation_task
        self.orchestrator.begin(advance_step=advance_step)
        self.generation_task = asyncio.get_running_loop().create_task(
            self.orchestrator.run_cycle(), name="generation"
        )
        return self.generation_task

    async def generate(self) -> Optional[GenerationResult]:
        return await self.start_generation(advance_step=True)

    async def retry_generation(self) -> Optional[GenerationResult]:
        """Rerun drain and stream with the answers and insights already saved."""
        return await self.start_generation()

    # Persistence

    @property
    def has_saved_progress(self) -> bool:
        return self._saved is not None and bool(self._saved.answers)

    def resume(self) -> None:
        if self._saved is None:
            return
        self.store.dispatch(Action(RESTORE_STATE, self._saved))
        self._saved = None
        for insight in self.state.analyzed_insights:
            if insight.status in ("analyzing", "pending"):
                answer = self.state.find_answer(insight.question_id)
                if answer is not None:
                    self.annotator.schedule(answer)

    def clear_saved_progress(self) -> None:
        self.persistence.clear()
        self._saved = None

    def reset(self) -> None:
        self.annotator.cancel_all()
        if self.generation_task is not None and not self.generation_task.done():
            self.generation_task.cancel()
        self.generation_task = None
        self.clear_saved_progress()
        self.store.dispatch(Action(RESET))
        logger.info("Session %s reset", self.session_id)

    async def aclose(self) -> None:
        self.annotator.cancel_all()
        await self._client.aclose()
