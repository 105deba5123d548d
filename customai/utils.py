"""Utility helpers for paths, logging, and text trimming."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Iterable, Optional

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$")


def ensure_dirs(*paths: str | Path | Iterable[str | Path]) -> None:
    """Create directories if they do not exist."""
    flat: list[str | Path] = []
    for item in paths:
        if isinstance(item, (list, tuple, set)):
            flat.extend(item)
        else:
            flat.append(item)
    for raw_path in flat:
        path = Path(raw_path).expanduser()
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)


def configure_logging() -> None:
    """Ensure logging has at least a basic configuration."""
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


def now_ms() -> int:
    return int(time.time() * 1000)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` or ```json fence, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```") or cleaned.endswith("```"):
        cleaned = _FENCE_PATTERN.sub("", cleaned)
    return cleaned.strip()


def truncate_text(text: Optional[str], limit: int, marker: str = "\n[... truncated]") -> Optional[str]:
    """Keep the head of `text` up to `limit` characters, appending `marker` when cut."""
    if text is None or len(text) <= limit:
        return text
    return text[:limit] + marker
