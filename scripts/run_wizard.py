"""CLI to run the questionnaire in a terminal and print the generated instructions."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from customai.documents import DocumentError, extract_text
from customai.oracle import QuestionFetchError
from customai.session import WizardSession, join_options
from customai.state import FIRST_QUESTION_STEP
from customai.targets import TARGETS
from customai.utils import configure_logging

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build custom instructions for AI assistants")
    parser.add_argument(
        "--targets",
        nargs="+",
        choices=[target.id for target in TARGETS],
        default=["chatgpt", "claude"],
        help="Platforms to generate instructions for",
    )
    parser.add_argument("--codex", type=Path, help="Writing codex file (.txt, .md, .pdf)")
    parser.add_argument("--constitution", type=Path, help="Personal constitution file")
    parser.add_argument("--fresh", action="store_true", help="Ignore saved progress")
    parser.add_argument("--output", type=Path, help="Write the result JSON here")
    return parser.parse_args()


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def _answer_question(session: WizardSession, question) -> None:
    print(f"\nQ{session.state.question_number}: {question.question}")
    if question.subtext:
        print(f"   {question.subtext}")
    if question.input_type == "multiselect" and question.options:
        for idx, option in enumerate(question.options, start=1):
            print(f"   {idx}. {option}")
        raw = await _ask("Pick numbers separated by spaces (blank to skip): ")
        picks = [question.options[int(n) - 1] for n in raw.split() if n.isdigit() and 0 < int(n) <= len(question.options)]
        text = join_options(picks)
    else:
        text = await _ask("> ")
    if text:
        session.answer_current(question.question, text)
    else:
        session.skip_current()


async def run(args: argparse.Namespace, session: Optional[WizardSession] = None) -> int:
    session = session or WizardSession()
    try:
        if session.has_saved_progress and not args.fresh:
            logger.info("Resuming saved session")
            session.resume()
        else:
            session.clear_saved_progress()
            for target_id in args.targets:
                session.toggle_target(target_id)
            try:
                if args.codex:
                    session.set_writing_codex(extract_text(args.codex.name, args.codex.read_bytes()))
                if args.constitution:
                    session.set_personal_constitution(
                        extract_text(args.constitution.name, args.constitution.read_bytes())
                    )
            except (DocumentError, OSError) as exc:
                print(f"! {exc}")
                return 1
            session.go_to_step(FIRST_QUESTION_STEP)

        while True:
            try:
                question = await session.fetch_next_question()
            except QuestionFetchError as exc:
                print(f"! {exc}")
                if (await _ask("Retry? [Y/n] ")).lower().startswith("n"):
                    return 1
                continue
            if question is None:
                break
            await _answer_question(session, question)

        print("\nGenerating…")
        result = await session.generation_task
        while result is None:
            print(f"! {session.state.error}")
            if (await _ask("Try again? [Y/n] ")).lower().startswith("n"):
                return 1
            result = await session.retry_generation()

        payload = json.dumps(result.to_wire(), indent=2, ensure_ascii=False)
        if args.output:
            args.output.write_text(payload, encoding="utf-8")
            print(f"Saved instructions to {args.output}")
        else:
            print(payload)
        return 0
    finally:
        await session.aclose()


def main() -> None:
    configure_logging()
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
