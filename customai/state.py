"""Session state container: immutable state, reducer, and a serialized store.

Every mutation of the wizard session goes through :meth:`SessionStore.dispatch`,
which applies exactly one action at a time. Async completions (insight
analyses, streamed chunks) each dispatch a single action, so concurrent work
never observes a half-applied change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .schemas import Answer, GenerationPhase, GenerationResult, Insight, SessionSnapshot
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# Step layout: 0 intro, 1 targets, 2 foundation documents, 3+ questions.
INTRO_STEP = 0
TARGET_STEP = 1
FOUNDATION_STEP = 2
FIRST_QUESTION_STEP = 3

SET_STEP = "SET_STEP"
NEXT_STEP = "NEXT_STEP"
PREV_STEP = "PREV_STEP"
TOGGLE_TARGET = "TOGGLE_TARGET"
SET_WRITING_CODEX = "SET_WRITING_CODEX"
SET_PERSONAL_CONSTITUTION = "SET_PERSONAL_CONSTITUTION"
SAVE_ANSWER = "SAVE_ANSWER"
SET_INSIGHT = "SET_INSIGHT"
START_GENERATING = "START_GENERATING"
SET_GENERATION_PHASE = "SET_GENERATION_PHASE"
APPEND_STREAMED_TEXT = "APPEND_STREAMED_TEXT"
GENERATION_SUCCESS = "GENERATION_SUCCESS"
GENERATION_ERROR = "GENERATION_ERROR"
RESTORE_STATE = "RESTORE_STATE"
RESET = "RESET"


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


@dataclass(frozen=True)
class SessionState:
    current_step: int = INTRO_STEP
    selected_targets: Tuple[str, ...] = ()
    writing_codex: Optional[str] = None
    personal_constitution: Optional[str] = None
    answers: Tuple[Answer, ...] = ()
    analyzed_insights: Tuple[Insight, ...] = ()
    is_complete: bool = False
    is_generating: bool = False
    generation_phase: GenerationPhase = "idle"
    generation_result: Optional[GenerationResult] = None
    streamed_text: Optional[str] = None
    error: Optional[str] = None

    def find_answer(self, question_id: str) -> Optional[Answer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def find_insight(self, question_id: str) -> Optional[Insight]:
        for insight in self.analyzed_insights:
            if insight.question_id == question_id:
                return insight
        return None

    def analyzing_ids(self) -> List[str]:
        return [i.question_id for i in self.analyzed_insights if i.status == "analyzing"]

    @property
    def question_number(self) -> int:
        """1-based question slot for the current step (0 before questions start)."""
        return max(0, self.current_step - FOUNDATION_STEP)


INITIAL_STATE = SessionState()


def _upsert(items: Tuple[Any, ...], item: Any) -> Tuple[Any, ...]:
    """Replace the entry sharing `item.question_id`, or append it."""
    for idx, existing in enumerate(items):
        if existing.question_id == item.question_id:
            return items[:idx] + (item,) + items[idx + 1 :]
    return items + (item,)


def _toggle(targets: Tuple[str, ...], target_id: str) -> Tuple[str, ...]:
    if target_id in targets:
        return tuple(t for t in targets if t != target_id)
    return targets + (target_id,)


def _restore(state: SessionState, snapshot: SessionSnapshot) -> SessionState:
    return replace(
        INITIAL_STATE,
        current_step=snapshot.current_step,
        selected_targets=tuple(snapshot.selected_targets),
        writing_codex=snapshot.writing_codex,
        personal_constitution=snapshot.personal_constitution,
        answers=tuple(snapshot.answers),
        analyzed_insights=tuple(snapshot.analyzed_insights),
    )


_HANDLERS: Dict[str, Callable[[SessionState, Any], SessionState]] = {
    SET_STEP: lambda s, step: replace(s, current_step=step, error=None),
    NEXT_STEP: lambda s, _: replace(s, current_step=s.current_step + 1, error=None),
    PREV_STEP: lambda s, _: replace(s, current_step=max(0, s.current_step - 1), error=None),
    TOGGLE_TARGET: lambda s, target_id: replace(s, selected_targets=_toggle(s.selected_targets, target_id)),
    SET_WRITING_CODEX: lambda s, text: replace(s, writing_codex=text),
    SET_PERSONAL_CONSTITUTION: lambda s, text: replace(s, personal_constitution=text),
    SAVE_ANSWER: lambda s, answer: replace(s, answers=_upsert(s.answers, answer)),
    SET_INSIGHT: lambda s, insight: replace(s, analyzed_insights=_upsert(s.analyzed_insights, insight)),
    START_GENERATING: lambda s, _: replace(
        s,
        is_generating=True,
        generation_phase="waiting-for-insights",
        generation_result=None,
        streamed_text=None,
        error=None,
    ),
    SET_GENERATION_PHASE: lambda s, phase: replace(s, generation_phase=phase),
    APPEND_STREAMED_TEXT: lambda s, text: replace(s, streamed_text=(s.streamed_text or "") + text),
    GENERATION_SUCCESS: lambda s, result: replace(
        s,
        is_generating=False,
        is_complete=True,
        generation_phase="idle",
        generation_result=result,
    ),
    GENERATION_ERROR: lambda s, message: replace(
        s, is_generating=False, generation_phase="idle", error=message
    ),
    RESTORE_STATE: _restore,
    RESET: lambda s, _: INITIAL_STATE,
}


def reduce(state: SessionState, action: Action) -> SessionState:
    """Apply one action. Unknown action types leave the state untouched."""
    handler = _HANDLERS.get(action.type)
    if handler is None:
        logger.warning("Ignoring unknown action %s", action.type)
        return state
    return handler(state, action.payload)


def snapshot(state: SessionState) -> SessionSnapshot:
    """Project the durable part of the session; generation fields are dropped."""
    return SessionSnapshot(
        current_step=state.current_step,
        selected_targets=list(state.selected_targets),
        writing_codex=state.writing_codex,
        personal_constitution=state.personal_constitution,
        answers=list(state.answers),
        analyzed_insights=list(state.analyzed_insights),
    )


Listener = Callable[[SessionState, Action], None]


class SessionStore:
    """Single owner of the mutable session reference."""

    def __init__(self, state: SessionState = INITIAL_STATE) -> None:
        self._state = state
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: Action) -> SessionState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            try:
                listener(self._state, action)
            except Exception:  # noqa: BLE001
                logger.exception("Listener failed while handling %s", action.type)
        return self._state
