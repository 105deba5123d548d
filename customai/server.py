"""FastAPI endpoints backing the wizard: next question, answer insight, generation stream."""

from __future__ import annotations

import json
import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from . import llm
from .prompts import (
    build_generation_system_prompt,
    build_generation_user_prompt,
    build_insight_prompt,
    build_question_system_prompt,
    build_question_user_prompt,
)
from .schemas import (
    GeneratedQuestion,
    GenerationRequest,
    InsightRequest,
    QuestionRequest,
    QuestionResponse,
)
from .tracing import log_trace_event
from .utils import configure_logging, strip_code_fence

configure_logging()
logger = logging.getLogger(__name__)

QUESTION_FAILED = "Failed to generate question"

app = FastAPI(title="Custom Instructions Wizard API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


def parse_question_response(text: str) -> Optional[GeneratedQuestion]:
    """Interpret model text as a question, or None when it lacks the required shape."""
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict) or not parsed.get("question") or not parsed.get("inputType"):
        return None
    try:
        return GeneratedQuestion(
            question=parsed["question"],
            subtext=parsed.get("subtext") or None,
            input_type=parsed["inputType"],
            options=parsed.get("options") or None,
            is_complete=bool(parsed.get("isComplete")),
        )
    except ValidationError:
        return None


@app.post("/api/next-question")
def next_question(body: QuestionRequest):
    if not body.selected_targets:
        return JSONResponse(
            QuestionResponse(success=False, error="No models selected").to_wire(),
            status_code=400,
        )
    system_prompt = build_question_system_prompt(
        body.selected_targets, body.writing_codex, body.personal_constitution
    )
    user_prompt = build_question_user_prompt(body.previous_answers, body.question_count)
    try:
        text = llm.call_llm(system_prompt, user_prompt, model=llm.QUESTION_MODEL)
    except Exception:  # noqa: BLE001
        logger.exception("Next question call failed")
        return JSONResponse(QuestionResponse(success=False, error=QUESTION_FAILED).to_wire(), status_code=500)

    question = parse_question_response(text)
    if question is None:
        logger.error("Failed to parse question response: %s", text[:500])
        return JSONResponse(QuestionResponse(success=False, error=QUESTION_FAILED).to_wire(), status_code=500)
    log_trace_event(
        "server",
        "question",
        details={"question_count": body.question_count, "is_complete": question.is_complete},
    )
    return QuestionResponse(success=True, data=question).to_wire()


@app.post("/api/analyze-answer")
def analyze_answer(body: InsightRequest):
    if not body.question or not body.answer:
        return JSONResponse({"error": "Missing question or answer"}, status_code=400)
    try:
        insight = llm.call_llm(
            None,
            build_insight_prompt(body.question, body.answer),
            model=llm.INSIGHT_MODEL,
            max_output_tokens=1000,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Answer analysis failed")
        return JSONResponse({"error": str(exc) or "Analysis failed"}, status_code=500)
    return {"success": True, "insight": insight.strip()}


@app.post("/api/generate")
def generate(body: GenerationRequest):
    if not body.selected_targets:
        return JSONResponse({"error": "No models selected"}, status_code=400)
    if not body.answers:
        return JSONResponse({"error": "No answers provided"}, status_code=400)

    system_prompt = build_generation_system_prompt(body.selected_targets)
    user_prompt = build_generation_user_prompt(
        body.selected_targets,
        body.answers,
        body.analyzed_insights,
        body.writing_codex,
        body.personal_constitution,
    )
    try:
        deltas = llm.stream_llm(system_prompt, user_prompt, model=llm.GENERATION_MODEL)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error opening generation stream")
        return JSONResponse(
            {"error": f"API Error: {exc}" if str(exc) else "Failed to generate custom instructions"},
            status_code=500,
        )
    log_trace_event(
        "server",
        "generate",
        details={"targets": list(body.selected_targets), "answers": len(body.answers)},
    )
    return StreamingResponse(
        deltas,
        media_type="text/plain; charset=utf-8",
        headers={"Cache-Control": "no-cache"},
    )
