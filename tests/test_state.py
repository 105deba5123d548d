"""Reducer, snapshot projection, and persistence tests."""

from __future__ import annotations

from dataclasses import replace

from customai.persistence import SessionPersistence, should_persist
from customai.schemas import Answer, GenerationResult, Insight
from customai.state import (
    GENERATION_ERROR,
    GENERATION_SUCCESS,
    INITIAL_STATE,
    PREV_STEP,
    RESET,
    RESTORE_STATE,
    SAVE_ANSWER,
    SET_INSIGHT,
    START_GENERATING,
    TOGGLE_TARGET,
    Action,
    SessionStore,
    reduce,
    snapshot,
)


def _answer(qid: str, text: str, ts: int = 1) -> Answer:
    return Answer(question_id=qid, question=f"Question {qid}", answer=text, timestamp=ts)


def test_save_answer_upserts_in_first_insertion_order() -> None:
    state = INITIAL_STATE
    for action in (
        Action(SAVE_ANSWER, _answer("q-1", "first")),
        Action(SAVE_ANSWER, _answer("q-2", "second")),
        Action(SAVE_ANSWER, _answer("q-1", "changed", ts=5)),
        Action(SAVE_ANSWER, _answer("q-3", "third")),
        Action(SAVE_ANSWER, _answer("q-2", "again")),
    ):
        state = reduce(state, action)
    assert [a.question_id for a in state.answers] == ["q-1", "q-2", "q-3"]
    assert [a.answer for a in state.answers] == ["changed", "again", "third"]
    assert state.find_answer("q-1").timestamp == 5


def test_insights_are_unique_per_question() -> None:
    state = reduce(INITIAL_STATE, Action(SET_INSIGHT, Insight(question_id="q-1", status="analyzing")))
    state = reduce(state, Action(SET_INSIGHT, Insight(question_id="q-1", insight="short", status="complete")))
    assert len(state.analyzed_insights) == 1
    assert state.analyzed_insights[0].status == "complete"
    assert state.analyzing_ids() == []


def test_toggle_target_and_prev_step_floor() -> None:
    state = reduce(INITIAL_STATE, Action(TOGGLE_TARGET, "claude"))
    state = reduce(state, Action(TOGGLE_TARGET, "gemini"))
    state = reduce(state, Action(TOGGLE_TARGET, "claude"))
    assert state.selected_targets == ("gemini",)
    assert reduce(state, Action(PREV_STEP)).current_step == 0


def test_start_generating_clears_previous_cycle() -> None:
    state = replace(INITIAL_STATE, streamed_text="{", error="boom", generation_result=GenerationResult())
    state = reduce(state, Action(START_GENERATING))
    assert state.is_generating
    assert state.generation_phase == "waiting-for-insights"
    assert state.streamed_text is None and state.error is None and state.generation_result is None

    failed = reduce(state, Action(GENERATION_ERROR, "nope"))
    assert failed.generation_phase == "idle" and not failed.is_generating and failed.error == "nope"

    done = reduce(state, Action(GENERATION_SUCCESS, GenerationResult()))
    assert done.is_complete and done.generation_phase == "idle"


def test_reset_returns_initial_state() -> None:
    state = replace(
        INITIAL_STATE,
        current_step=6,
        answers=(_answer("q-1", "x"),),
        generation_phase="streaming",
        error="bad",
    )
    state = reduce(state, Action(RESET))
    assert state == INITIAL_STATE
    assert state.generation_result is None and state.error is None


def test_snapshot_round_trip_resets_generation_fields(persistence: SessionPersistence) -> None:
    state = replace(
        INITIAL_STATE,
        current_step=5,
        selected_targets=("chatgpt", "perplexity"),
        writing_codex="I write plainly.",
        answers=(_answer("q-1", "one"), _answer("q-2", "two")),
        analyzed_insights=(
            Insight(question_id="q-1", insight="likes brevity", status="complete"),
            Insight(question_id="q-2", insight="", status="error"),
        ),
        generation_phase="streaming",
        streamed_text='{"chat',
        error="stale",
    )
    persistence.save(snapshot(state))
    raw = persistence.path.read_text(encoding="utf-8")
    assert "foundationDocA" in raw and "questionId" in raw
    assert "streamedText" not in raw and "generationPhase" not in raw

    loaded = persistence.load()
    restored = reduce(INITIAL_STATE, Action(RESTORE_STATE, loaded))
    assert restored.answers == state.answers
    assert restored.analyzed_insights == state.analyzed_insights
    assert restored.selected_targets == state.selected_targets
    assert restored.generation_phase == "idle"
    assert restored.streamed_text is None and restored.error is None and restored.generation_result is None


def test_load_ignores_empty_or_corrupt_files(persistence: SessionPersistence) -> None:
    assert persistence.load() is None
    persistence.save(snapshot(replace(INITIAL_STATE, current_step=2)))
    assert persistence.load() is None
    persistence.path.write_text("{not json", encoding="utf-8")
    assert persistence.load() is None


def test_store_sync_persists_only_mid_flow(persistence: SessionPersistence) -> None:
    store = SessionStore()
    store.subscribe(persistence.sync)
    store.dispatch(Action(SAVE_ANSWER, _answer("q-1", "x")))
    assert not persistence.path.exists()  # step 0

    store.dispatch(Action("SET_STEP", 3))
    assert persistence.path.exists()

    store.dispatch(Action(START_GENERATING))
    assert not should_persist(store.state)
    store.dispatch(Action(GENERATION_SUCCESS, GenerationResult()))
    assert not persistence.path.exists()
