"""Durable storage for in-progress wizard sessions."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .schemas import SessionSnapshot
from .state import Action, SessionState, snapshot
from .utils import configure_logging, ensure_dirs

configure_logging()
logger = logging.getLogger(__name__)

STORAGE_KEY = "customai-wizard-state"
SESSION_DIR = Path(os.getenv("SESSION_DIR", ".data/session")).expanduser()


def should_persist(state: SessionState) -> bool:
    """Only user-authored progress mid-flow is worth keeping."""
    return state.current_step > 0 and not state.is_complete and not state.is_generating


class SessionPersistence:
    """Reads and writes one session snapshot under a fixed key."""

    def __init__(self, directory: Optional[Path] = None, key: str = STORAGE_KEY) -> None:
        self.directory = Path(directory) if directory else SESSION_DIR
        self.path = self.directory / f"{key}.json"
        self._last_written: Optional[str] = None

    def load(self) -> Optional[SessionSnapshot]:
        """Return the saved snapshot, or None when there is nothing to resume."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            saved = SessionSnapshot.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return None
        if not saved.answers:
            return None
        return saved

    def save(self, saved: SessionSnapshot) -> None:
        payload = json.dumps(saved.to_wire(), indent=2)
        if payload == self._last_written and self.path.exists():
            return
        ensure_dirs(self.directory)
        self.path.write_text(payload, encoding="utf-8")
        self._last_written = payload
        logger.debug("Saved session snapshot (%d answers)", len(saved.answers))

    def clear(self) -> None:
        self._last_written = None
        if self.path.exists():
            self.path.unlink()
            logger.info("Removed saved session %s", self.path)

    def sync(self, state: SessionState, action: Optional[Action] = None) -> None:
        """Store listener: persist mid-flow progress, drop it once generation succeeds."""
        if state.is_complete:
            self.clear()
        elif should_persist(state):
            self.save(snapshot(state))
