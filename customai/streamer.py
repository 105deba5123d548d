"""Streaming client for the generation endpoint."""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
import os
from typing import AsyncIterator, Awaitable, Callable, List, Optional

import httpx

from .schemas import GenerationRequest
from .utils import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"
STREAM_COALESCE_MS = int(os.getenv("STREAM_COALESCE_MS", "80"))
TIMEOUT_STATUSES = {502, 504}
DEFAULT_ERROR = "Failed to generate instructions"
CONNECTION_LOST = "Connection lost while generating. Please try again."


class GenerationStreamError(RuntimeError):
    """The generation stream could not be opened or broke off; message is user facing."""


def interpret_error(status_code: int, body: bytes) -> str:
    """Turn a failed generation response into one user-facing message."""
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        data = None
    if isinstance(data, dict):
        return data.get("error") or DEFAULT_ERROR
    if status_code in TIMEOUT_STATUSES:
        return "Generation timed out. Click Try Again."
    return f"Server error ({status_code}). Please try again."


OnOpen = Callable[[], Optional[Awaitable[None]]]


class ResultStreamer:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def stream(self, request: GenerationRequest, on_open: Optional[OnOpen] = None) -> AsyncIterator[str]:
        """Yield decoded text fragments in arrival order.

        `on_open` fires once the response status is known to be a success,
        before any body bytes are read.
        """
        decoder = codecs.getincrementaldecoder("utf-8")()
        try:
            async with self._client.stream("POST", GENERATE_PATH, json=request.to_wire()) as response:
                if not response.is_success:
                    body = await response.aread()
                    message = interpret_error(response.status_code, body)
                    logger.error("Generation request failed (%s): %s", response.status_code, message)
                    raise GenerationStreamError(message)
                if on_open is not None:
                    maybe = on_open()
                    if maybe is not None:
                        await maybe
                async for raw in response.aiter_bytes():
                    text = decoder.decode(raw)
                    if text:
                        yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
        except httpx.HTTPError as exc:
            logger.error("Generation stream broke off: %s", exc)
            raise GenerationStreamError(CONNECTION_LOST) from exc
        except UnicodeDecodeError as exc:
            raise GenerationStreamError(CONNECTION_LOST) from exc


_END = object()


async def coalesce(
    fragments: AsyncIterator[str],
    interval_ms: int = STREAM_COALESCE_MS,
) -> AsyncIterator[str]:
    """Join fragments into batches released at most once per `interval_ms`.

    A fragment arriving inside the window is held until the window closes,
    not until the next fragment shows up, so a pause upstream never hides
    text already received. The joined batches always equal the joined
    fragments.
    """
    loop = asyncio.get_running_loop()
    interval = interval_ms / 1000
    source = fragments.__aiter__()
    pending: List[str] = []
    last_emit: Optional[float] = None

    async def pull() -> object:
        try:
            return await source.__anext__()
        except StopAsyncIteration:
            return _END

    next_fragment = asyncio.ensure_future(pull())
    try:
        while True:
            timeout = None
            if pending:
                timeout = max(0.0, last_emit + interval - loop.time())
            done, _ = await asyncio.wait({next_fragment}, timeout=timeout)
            if done:
                fragment = next_fragment.result()
                if fragment is _END:
                    break
                pending.append(fragment)
                next_fragment = asyncio.ensure_future(pull())
            now = loop.time()
            if pending and (last_emit is None or now - last_emit >= interval):
                yield "".join(pending)
                pending.clear()
                last_emit = now
    finally:
        if not next_fragment.done():
            next_fragment.cancel()
    if pending:
        yield "".join(pending)
