"""Shared fixtures: isolated storage paths and a fake collaborator API."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from customai import tracing  # noqa: E402
from customai.persistence import SessionPersistence  # noqa: E402

RESULT_JSON = json.dumps(
    {
        "chatgpt": {
            "nickname": "Sam",
            "occupation": "Data engineer",
            "knowAboutYou": "Builds pipelines.",
            "howToRespond": "Be direct.",
            "personality": "Efficient",
            "personalityReasoning": "Prefers brevity.",
            "warm": "Less",
            "enthusiastic": "Default",
            "headersAndLists": "More",
            "emoji": "Less",
            "characteristicsReasoning": "Skims answers.",
        }
    }
)


@pytest.fixture(autouse=True)
def isolated_traces(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "traces.jsonl"
    monkeypatch.setattr(tracing, "TRACE_PATH", path)
    return path


@pytest.fixture()
def persistence(tmp_path: Path) -> SessionPersistence:
    return SessionPersistence(directory=tmp_path / "session")


class FakeApi:
    """Routes the three collaborator endpoints to configurable behaviour."""

    def __init__(self) -> None:
        self.questions: List[dict] = []
        self.question_calls: List[dict] = []
        self.insight_calls: List[dict] = []
        self.generation_calls: List[dict] = []
        self.insight_delay = 0.0
        self.failing_answers: set[str] = set()
        self.insight_gates: Dict[str, asyncio.Event] = {}
        self.generation_chunks: List[bytes] = [RESULT_JSON.encode("utf-8")]
        self.chunk_delay = 0.0
        self.generation_status = 200
        self.generation_error_body: Optional[bytes] = None
        self.on_generate: Optional[Callable[[dict], None]] = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        if request.url.path == "/api/next-question":
            self.question_calls.append(body)
            data = self.questions.pop(0) if self.questions else {"question": "Done?", "inputType": "textarea", "isComplete": True}
            return httpx.Response(200, json={"success": True, "data": data})
        if request.url.path == "/api/analyze-answer":
            self.insight_calls.append(body)
            gate = self.insight_gates.get(body["answer"])
            if gate is not None:
                await gate.wait()
            if self.insight_delay:
                await asyncio.sleep(self.insight_delay)
            if body["answer"] in self.failing_answers:
                raise httpx.ConnectError("simulated network error", request=request)
            return httpx.Response(200, json={"success": True, "insight": f"insight: {body['answer']}"})
        if request.url.path == "/api/generate":
            self.generation_calls.append(body)
            if self.on_generate is not None:
                self.on_generate(body)
            if self.generation_status != 200:
                return httpx.Response(self.generation_status, content=self.generation_error_body or b"")
            return httpx.Response(200, content=self._chunks())
        return httpx.Response(404, json={"error": "not found"})

    async def _chunks(self):
        for chunk in self.generation_chunks:
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            yield chunk

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url="http://test")


@pytest.fixture()
def fake_api() -> FakeApi:
    return FakeApi()
