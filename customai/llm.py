"""Gemini LLM helper utilities."""

from __future__ import annotations

import logging
import os
from typing import Any, Iterator, Optional

import google.generativeai as genai

from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)


def _model_name(raw: str) -> str:
    if raw.startswith(("models/", "tunedModels/")):
        return raw
    return f"models/{raw}"


GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
QUESTION_MODEL = _model_name(os.getenv("QUESTION_MODEL", "gemini-2.0-flash"))
INSIGHT_MODEL = _model_name(os.getenv("INSIGHT_MODEL", "gemini-2.0-flash-lite"))
GENERATION_MODEL = _model_name(os.getenv("GENERATION_MODEL", "gemini-2.0-flash"))

if GEMINI_API_KEY:
    genai.configure(api_key=GEMINI_API_KEY)
else:
    logger.warning("GEMINI_API_KEY not set; LLM calls will fail.")


def _build_model(model_name: str, system_prompt: Optional[str]) -> genai.GenerativeModel:
    if not GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY is missing.")
    if system_prompt:
        return genai.GenerativeModel(model_name, system_instruction=system_prompt.strip())
    return genai.GenerativeModel(model_name)


def _chunk_text(response: Any) -> str:
    if not response.candidates:
        return ""
    parts = response.candidates[0].content.parts
    return "".join(getattr(part, "text", "") for part in parts)


def call_llm(
    system_prompt: Optional[str],
    user_prompt: str,
    model: str = QUESTION_MODEL,
    max_output_tokens: int = 1024,
    temperature: float = 0.7,
) -> str:
    """Call the Gemini model and return raw text."""
    response = _build_model(model, system_prompt).generate_content(
        user_prompt.strip(),
        generation_config=genai.types.GenerationConfig(
            temperature=temperature,
            top_p=0.9,
            max_output_tokens=max_output_tokens,
        ),
    )
    if not response.candidates:
        raise RuntimeError("No candidates returned from Gemini.")
    text = _chunk_text(response)
    if not text.strip():
        raise RuntimeError("Empty Gemini response.")
    return text


def stream_llm(
    system_prompt: Optional[str],
    user_prompt: str,
    model: str = GENERATION_MODEL,
    max_output_tokens: int = 8000,
) -> Iterator[str]:
    """Open a streamed Gemini call and return an iterator over text deltas.

    The request is issued before this function returns, so configuration and
    quota errors raise here rather than midway through the stream.
    """
    response = _build_model(model, system_prompt).generate_content(
        user_prompt.strip(),
        generation_config=genai.types.GenerationConfig(
            temperature=0.7,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        ),
        stream=True,
    )

    def _deltas() -> Iterator[str]:
        for chunk in response:
            text = _chunk_text(chunk)
            if text:
                yield text

    return _deltas()
