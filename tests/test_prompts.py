"""Prompt construction and foundation document tests."""

from __future__ import annotations

from dataclasses import replace

import pytest

from customai.documents import DocumentError, extract_text
from customai.orchestrator import build_generation_request, parse_result
from customai.prompts import (
    FOUNDATION_CHAR_LIMIT,
    build_generation_system_prompt,
    build_question_user_prompt,
    truncate_foundation,
)
from customai.schemas import Answer, Insight, QAPair
from customai.state import INITIAL_STATE
from customai.targets import TARGET_FIELDS, FieldSpec, limit_warning


def test_truncate_foundation_keeps_head() -> None:
    text = "a" * FOUNDATION_CHAR_LIMIT + "tail"
    truncated = truncate_foundation(text)
    assert truncated == "a" * FOUNDATION_CHAR_LIMIT + "\n[... truncated]"
    assert truncate_foundation("short") == "short"
    assert truncate_foundation(None) is None


def test_first_question_prompt() -> None:
    assert build_question_user_prompt([], 0) == "Start the conversation. Ask the first question."
    prompt = build_question_user_prompt([QAPair(question="Q", answer="A")], 1)
    assert "We've asked 1 questions so far." in prompt


def test_generation_schema_lists_selected_targets_only() -> None:
    prompt = build_generation_system_prompt(["chatgpt", "perplexity"])
    assert '"warm": "More | Default | Less"' in prompt
    assert '"personalityReasoning": "string"' in prompt
    assert '"preferredLanguage": "string"' in prompt
    assert '"profilePreferences"' not in prompt


def test_generation_request_blanks_only_completed_answers() -> None:
    state = replace(
        INITIAL_STATE,
        selected_targets=("claude",),
        answers=(
            Answer(question_id="q-1", question="A?", answer="raw one", timestamp=1),
            Answer(question_id="q-2", question="B?", answer="raw two", timestamp=2),
        ),
        analyzed_insights=(
            Insight(question_id="q-1", insight="distilled", status="complete"),
            Insight(question_id="q-2", insight="", status="error"),
        ),
    )
    wire = build_generation_request(state).to_wire()
    assert [a["answer"] for a in wire["answers"]] == ["", "raw two"]
    assert len(wire["analyzedInsights"]) == 2
    assert state.answers[0].answer == "raw one"


def test_parse_result_normalises_enums_and_rejects_garbage() -> None:
    result = parse_result('```json\n{"chatgpt": {"warm": "more", "personality": "friendly"}}\n```')
    assert result.chatgpt.warm == "More"
    assert result.chatgpt.personality == "Friendly"
    with pytest.raises(ValueError, match="Failed to parse"):
        parse_result('{"chatgpt": {')
    with pytest.raises(ValueError):
        parse_result('{"claude": {"recommendedStyle": "Shouty"}}')


def test_extract_text_plain_and_unsupported() -> None:
    text = extract_text("codex.md", b"Line one\r\n\r\n\r\n\r\nLine two is here")
    assert text == "Line one\n\nLine two is here"
    with pytest.raises(DocumentError):
        extract_text("tiny.txt", b"hi")
    with pytest.raises(DocumentError):
        extract_text("legacy.doc", b"\xd0\xcf\x11\xe0" * 10)


def test_limit_warning_reports_the_field_limit() -> None:
    know_about_you = next(spec for spec in TARGET_FIELDS["chatgpt"] if spec.id == "knowAboutYou")
    assert limit_warning("chatgpt", know_about_you, "x" * 1500) is None
    assert limit_warning("chatgpt", know_about_you, "x" * 1501) == "1501 characters; ChatGPT allows 1500."

    short_bio = FieldSpec("bio", "Bio", "textarea", char_limit=200)
    assert limit_warning("perplexity", short_bio, "y" * 250) == "250 characters; Perplexity allows 200."
    assert limit_warning("gemini", TARGET_FIELDS["gemini"][0], "z" * 5000) is None
