"""Terminal wizard tests."""

from __future__ import annotations

import argparse
import asyncio

from customai.session import WizardSession
from scripts import run_wizard


def _args(**overrides) -> argparse.Namespace:
    values = {"targets": ["gemini"], "codex": None, "constitution": None, "fresh": True, "output": None}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_unreadable_codex_prints_message_and_exits(fake_api, persistence, tmp_path, capsys) -> None:
    codex = tmp_path / "codex.txt"
    codex.write_bytes(b"hi")

    async def scenario() -> int:
        session = WizardSession(client=fake_api.client(), persistence=persistence)
        return await run_wizard.run(_args(codex=codex), session=session)

    assert asyncio.run(scenario()) == 1
    out = capsys.readouterr().out
    assert "! Could not extract text from file" in out
    assert fake_api.question_calls == []


def test_missing_constitution_file_is_reported(fake_api, persistence, tmp_path, capsys) -> None:
    async def scenario() -> int:
        session = WizardSession(client=fake_api.client(), persistence=persistence)
        return await run_wizard.run(_args(constitution=tmp_path / "absent.md"), session=session)

    assert asyncio.run(scenario()) == 1
    assert "absent.md" in capsys.readouterr().out
