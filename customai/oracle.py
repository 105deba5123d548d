"""Client for the next-question endpoint."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError

from .schemas import GeneratedQuestion, QAPair, QuestionRequest, QuestionResponse
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

NEXT_QUESTION_PATH = "/api/next-question"
NETWORK_ERROR = "Network error. Please check your connection and try again."
QUESTION_FAILED = "Failed to generate question"


class QuestionFetchError(RuntimeError):
    """The next question could not be produced; the message is safe to show."""


class QuestionOracleClient:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_next_question(
        self,
        history: Sequence[QAPair],
        targets: Sequence[str],
        writing_codex: Optional[str] = None,
        personal_constitution: Optional[str] = None,
        question_count: int = 0,
    ) -> GeneratedQuestion:
        """Ask for one question. Every call is a fresh request; nothing is cached."""
        request = QuestionRequest(
            selected_targets=list(targets),
            writing_codex=writing_codex,
            personal_constitution=personal_constitution,
            previous_answers=list(history),
            question_count=question_count,
        )
        try:
            response = await self._client.post(NEXT_QUESTION_PATH, json=request.to_wire())
            envelope = QuestionResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            # ValueError covers undecodable JSON and pydantic ValidationError.
            if isinstance(exc, ValidationError):
                logger.error("Malformed question envelope: %s", exc)
            else:
                logger.warning("Question fetch failed: %s", exc)
            raise QuestionFetchError(NETWORK_ERROR) from exc

        if not envelope.success or envelope.data is None:
            logger.warning("Question service reported failure (%s): %s", response.status_code, envelope.error)
            raise QuestionFetchError(envelope.error or QUESTION_FAILED)
        logger.info(
            "Fetched question %d (complete=%s)", question_count + 1, envelope.data.is_complete
        )
        return envelope.data
