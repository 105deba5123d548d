"""Background analysis of saved answers.

Each non-empty answer gets one tracked asyncio task keyed by its question id.
Scheduling a newer analysis for the same id cancels the older one, and a
cancelled analysis never records a result, so the insight always belongs to
the latest saved text.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Dict, Optional

import httpx

from .schemas import Answer, Insight, InsightResponse
from .state import SET_INSIGHT, Action, SessionStore
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-answer"
INSIGHT_DRAIN_TIMEOUT = float(os.getenv("INSIGHT_DRAIN_TIMEOUT", "90"))


class InsightAnnotator:
    def __init__(
        self,
        store: SessionStore,
        client: httpx.AsyncClient,
        drain_timeout: float = INSIGHT_DRAIN_TIMEOUT,
    ) -> None:
        self._store = store
        self._client = client
        self.drain_timeout = drain_timeout
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def outstanding(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def _record(self, question_id: str, status: str, text: str = "") -> None:
        self._store.dispatch(Action(SET_INSIGHT, Insight(question_id=question_id, insight=text, status=status)))

    def _cancel(self, question_id: str) -> bool:
        task = self._tasks.pop(question_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Cancelled stale analysis for %s", question_id)
        return True

    def _forget(self, question_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(question_id) is task:
            del self._tasks[question_id]

    def schedule(self, answer: Answer) -> Optional[asyncio.Task]:
        """Start analysing `answer`; the insight reads `analyzing` before this returns."""
        question_id = answer.question_id
        if not answer.answer.strip():
            existing = self._store.state.find_insight(question_id)
            if self._cancel(question_id) or existing is not None:
                # The old distillation no longer describes the answer.
                self._record(question_id, "error")
            return None

        self._cancel(question_id)
        self._record(question_id, "analyzing")
        task = asyncio.get_running_loop().create_task(
            self._analyze(answer), name=f"insight-{question_id}"
        )
        self._tasks[question_id] = task
        task.add_done_callback(lambda done, qid=question_id: self._forget(qid, done))
        return task

    async def _analyze(self, answer: Answer) -> None:
        try:
            response = await self._client.post(
                ANALYZE_PATH, json={"question": answer.question, "answer": answer.answer}
            )
            data = InsightResponse.model_validate(response.json())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Insight analysis for %s failed: %s", answer.question_id, exc)
            self._record(answer.question_id, "error")
            return

        if response.is_success and data.success and data.insight:
            self._record(answer.question_id, "complete", data.insight)
        else:
            logger.warning(
                "Insight analysis for %s rejected (%s): %s",
                answer.question_id,
                response.status_code,
                data.error,
            )
            self._record(answer.question_id, "error")

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait until no analysis is in flight.

        Returns False when the bound expired; the stragglers are then cancelled
        and recorded as errors so callers fall back to raw answer text.
        """
        limit = self.drain_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit
        drained = True
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                break
            remaining = deadline - loop.time()
            if remaining <= 0:
                self._expire()
                drained = False
                break
            await asyncio.wait(pending, timeout=remaining)
        self._settle_orphans()
        return drained

    def _expire(self) -> None:
        for question_id in list(self._tasks):
            if self._cancel(question_id):
                logger.warning("Insight analysis for %s timed out", question_id)
                self._record(question_id, "error")

    def _settle_orphans(self) -> None:
        # Insights restored mid-analysis with no task behind them.
        for question_id in self._store.state.analyzing_ids():
            if question_id not in self._tasks:
                self._record(question_id, "error")

    def cancel_all(self) -> None:
        for question_id in list(self._tasks):
            self._cancel(question_id)
