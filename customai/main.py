"""Streamlit UI for the Custom Instructions Wizard."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable

import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from customai.documents import DocumentError, extract_text  # noqa: E402
from customai.oracle import QuestionFetchError  # noqa: E402
from customai.session import WizardSession, join_options, question_id_for, split_options  # noqa: E402
from customai.state import FIRST_QUESTION_STEP, FOUNDATION_STEP, INTRO_STEP, TARGET_STEP  # noqa: E402
from customai.targets import TARGET_FIELDS, TARGETS, limit_warning, target_name  # noqa: E402
from customai.utils import configure_logging  # noqa: E402

configure_logging()
logger = logging.getLogger(__name__)

POLL_SECONDS = 0.1
PHASE_LABELS = {
    "waiting-for-insights": "Finishing the analysis of your answers…",
    "generating": "Writing your custom instructions…",
    "streaming": "Receiving your instructions…",
}


class _LoopRunner:
    """Runs the session's event loop on a daemon thread across Streamlit reruns."""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self.thread.start()
        self.session: WizardSession = self.call(WizardSession)

    def submit(self, coro):
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro) -> Any:
        return self.submit(coro).result()

    def call(self, fn: Callable[..., Any], *args: Any) -> Any:
        async def _invoke():
            return fn(*args)

        return self.run(_invoke())


def _runner() -> _LoopRunner:
    if "runner" not in st.session_state:
        st.session_state["runner"] = _LoopRunner()
    return st.session_state["runner"]


def _render_error_actions(runner: _LoopRunner, message: str) -> None:
    session = runner.session
    st.error(message)
    left, right = st.columns(2)
    if left.button("Try Again", key="retry-generation"):
        runner.call(session.start_generation)
        st.rerun()
    if right.button("Start Over", key="reset-after-error"):
        runner.call(session.reset)
        st.session_state.pop("question", None)
        st.rerun()


def _render_intro(runner: _LoopRunner) -> None:
    session = runner.session
    st.title("Custom Instructions Wizard")
    st.write(
        "Answer a few adaptive questions and get ready-to-paste custom instructions "
        "for ChatGPT, Claude, Gemini and Perplexity."
    )
    if session.has_saved_progress:
        st.info("You have saved progress. Pick up where you left off?")
        left, right = st.columns(2)
        if left.button("Resume"):
            runner.call(session.resume)
            st.rerun()
        if right.button("Start Fresh"):
            runner.call(session.clear_saved_progress)
            st.rerun()
    if st.button("Get Started", type="primary"):
        runner.call(session.next_step)
        st.rerun()


def _render_targets(runner: _LoopRunner) -> None:
    session = runner.session
    st.header("Which assistants do you use?")
    selected = set(session.state.selected_targets)
    for target in TARGETS:
        checked = st.checkbox(
            f"{target.name} ({target.company})",
            value=target.id in selected,
            help=target.description,
            key=f"target-{target.id}",
        )
        if checked != (target.id in selected):
            runner.call(session.toggle_target, target.id)
    _render_nav(runner, can_proceed=runner.call(session.can_proceed))


def _foundation_input(label: str, current: str | None, key: str) -> str:
    uploaded = st.file_uploader(f"Upload {label}", type=["txt", "md", "pdf"], key=f"{key}-file")
    if uploaded is not None:
        try:
            return extract_text(uploaded.name, uploaded.getvalue())
        except DocumentError as exc:
            st.warning(str(exc))
    return st.text_area(label, value=current or "", height=180, key=f"{key}-text")


def _render_foundation(runner: _LoopRunner) -> None:
    session = runner.session
    st.header("Foundation documents (optional)")
    codex = _foundation_input("Writing Codex", session.state.writing_codex, "codex")
    constitution = _foundation_input("Personal Constitution", session.state.personal_constitution, "constitution")
    if codex != (session.state.writing_codex or ""):
        runner.call(session.set_writing_codex, codex)
    if constitution != (session.state.personal_constitution or ""):
        runner.call(session.set_personal_constitution, constitution)
    _render_nav(runner)


def _render_nav(runner: _LoopRunner, can_proceed: bool = True) -> None:
    left, right = st.columns(2)
    if left.button("Back"):
        runner.call(runner.session.previous_step)
        st.rerun()
    if right.button("Continue", type="primary", disabled=not can_proceed):
        runner.call(runner.session.next_step)
        st.rerun()


def _load_question(runner: _LoopRunner):
    session = runner.session
    step = session.state.current_step
    cached = st.session_state.get("question")
    if cached and cached[0] == step:
        return cached[1]
    with st.spinner("Thinking of the next question…"):
        question = runner.run(session.fetch_next_question())
    if question is None:
        st.rerun()
    st.session_state["question"] = (step, question)
    return question


def _render_question(runner: _LoopRunner) -> None:
    session = runner.session
    number = session.state.question_number
    try:
        question = _load_question(runner)
    except QuestionFetchError as exc:
        st.error(str(exc))
        if st.button("Try Again"):
            st.rerun()
        return

    st.caption(f"Question {number}")
    st.subheader(question.question)
    if question.subtext:
        st.write(question.subtext)
    existing = runner.call(session.get_answer, question_id_for(number))
    if question.input_type == "multiselect":
        chosen = st.multiselect(
            "Choose all that apply",
            question.options or [],
            default=[o for o in split_options(existing.answer) if o in (question.options or [])] if existing else [],
            key=f"answer-{number}",
        )
        value = join_options(chosen)
    else:
        value = st.text_area("Your answer", value=existing.answer if existing else "", key=f"answer-{number}")

    back, skip, nxt = st.columns(3)
    if back.button("Back"):
        runner.call(session.previous_step)
        st.rerun()
    if skip.button("Skip"):
        runner.call(session.skip_current)
        st.rerun()
    if nxt.button("Next", type="primary"):
        runner.call(session.answer_current, question.question, value)
        st.rerun()


def _render_generating(runner: _LoopRunner) -> None:
    session = runner.session
    status = st.empty()
    preview = st.empty()
    while session.state.generation_phase != "idle":
        state = session.state
        status.info(PHASE_LABELS.get(state.generation_phase, "Working…"))
        if state.streamed_text:
            preview.code(state.streamed_text[-3000:], language="json")
        time.sleep(POLL_SECONDS)
    st.rerun()


def _render_results(runner: _LoopRunner) -> None:
    session = runner.session
    result = session.state.generation_result
    st.title("Your custom instructions")
    sections = result.sections() if result else {}
    tabs = st.tabs([target_name(t) for t in sections])
    for tab, (target_id, section) in zip(tabs, sections.items()):
        values = section.to_wire()
        with tab:
            for spec in TARGET_FIELDS.get(target_id, []):
                value = values.get(spec.id) or ""
                st.markdown(f"**{spec.label}**")
                st.caption(spec.navigation_path)
                st.code(value, language=None)
                warning = limit_warning(target_id, spec, value)
                if warning:
                    st.warning(warning)
            for extra in ("personalityReasoning", "characteristicsReasoning", "styleReasoning", "customStyleGuidance"):
                if values.get(extra):
                    st.markdown(f"*{extra}*: {values[extra]}")
    if st.button("Start Over"):
        runner.call(session.reset)
        st.session_state.pop("question", None)
        st.rerun()


def main() -> None:
    st.set_page_config(page_title="Custom Instructions Wizard", layout="centered")
    runner = _runner()
    state = runner.session.state

    with st.sidebar:
        st.subheader("Session")
        st.caption(f"Step {state.current_step} · {len(state.answers)} answers")
        analyzing = len(state.analyzing_ids())
        if analyzing:
            st.caption(f"Analysing {analyzing} answer(s) in the background")
        if st.button("Reset session"):
            runner.call(runner.session.reset)
            st.session_state.pop("question", None)
            st.rerun()

    if state.current_step == INTRO_STEP:
        _render_intro(runner)
    elif state.current_step == TARGET_STEP:
        _render_targets(runner)
    elif state.current_step == FOUNDATION_STEP:
        _render_foundation(runner)
    elif state.is_complete:
        _render_results(runner)
    elif state.is_generating or state.generation_phase != "idle":
        _render_generating(runner)
    elif state.error:
        _render_error_actions(runner, state.error)
    elif state.current_step >= FIRST_QUESTION_STEP:
        _render_question(runner)


if __name__ == "__main__":
    main()
