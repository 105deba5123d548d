"""Trace logging for generation cycles and collaborator calls."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .utils import ensure_dirs

TRACE_PATH = Path(os.getenv("TRACE_PATH", ".data/traces.jsonl")).expanduser()


def log_trace_event(
    component: str,
    stage: str,
    session_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Append a structured trace event as one JSON line."""
    payload: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "stage": stage,
        "session_id": session_id,
    }
    if details:
        payload["details"] = details
    ensure_dirs(TRACE_PATH.parent)
    with TRACE_PATH.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload) + "\n")
