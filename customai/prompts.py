"""Prompt builders for question, insight, and instruction generation calls."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .schemas import Answer, Insight, QAPair
from .targets import EXTRA_RESULT_FIELDS, TARGET_FIELDS, target_name
from .utils import truncate_text

FOUNDATION_CHAR_LIMIT = 4000
MAX_QUESTIONS = 15

_QUESTION_SCHEMA = """{
  "question": "Your question here",
  "subtext": "Brief context about why this matters",
  "inputType": "textarea" or "multiselect",
  "options": ["only", "for", "multiselect"],
  "isComplete": false
}"""

_TOPICS = [
    "Role and identity: who they are and what they do",
    "AI use cases: writing, coding, research, brainstorming, and so on",
    "Communication style: formal or casual, verbose or concise",
    "Format preferences: bullets, paragraphs, headers, examples",
    "Personality and tone: warm, direct, humorous, no-nonsense",
    "Pet peeves: what the AI should never do",
    "Domain context: jargon, technical level, industry needs",
    "Platform specifics: emoji and formatting for ChatGPT, level of detail for Claude",
]

_FIELD_GUIDANCE = {
    "chatgpt": [
        '"nickname": short name for the user',
        '"occupation": job title or role',
        '"knowAboutYou": what ChatGPT should know about the user, under 1500 characters',
        '"howToRespond": how ChatGPT should respond, under 1500 characters',
        '"personality": one of Default, Professional, Friendly, Candid, Quirky, Efficient, Nerdy, Cynical',
        '"personalityReasoning": why that personality fits',
        '"warm", "enthusiastic", "headersAndLists", "emoji": each "More", "Default" or "Less"',
        '"characteristicsReasoning": why those characteristics fit',
    ],
    "claude": [
        '"profilePreferences": thorough free text for Claude profile preferences',
        '"recommendedStyle": one of Normal, Concise, Explanatory, Formal',
        '"styleReasoning": why that style fits',
        '"customStyleGuidance": optional guidance for a custom style',
    ],
    "gemini": ['"instructions": standing instructions for every Gemini chat'],
    "perplexity": [
        '"bio": profile bio covering role, interests, values and preferred style',
        '"preferredLanguage": response language, usually English',
    ],
}


def truncate_foundation(text: Optional[str]) -> Optional[str]:
    return truncate_text(text, FOUNDATION_CHAR_LIMIT)


def _foundation_section(label: str, text: Optional[str], note: str = "") -> str:
    if not text:
        return ""
    return f"\n{label}:{note}\n{truncate_foundation(text)}\n"


def build_question_system_prompt(
    targets: Sequence[str],
    writing_codex: Optional[str],
    personal_constitution: Optional[str],
) -> str:
    field_lines = []
    for target_id in targets:
        specs = TARGET_FIELDS.get(target_id, [])
        if not specs:
            continue
        listed = "\n".join(f"  - {spec.label}: {spec.help_text or spec.kind}" for spec in specs)
        field_lines.append(f"{target_id}:\n{listed}")

    prompt = (
        "You help a user write custom instructions for their AI assistants by asking "
        "ONE question at a time about their preferences.\n\n"
        f"Selected platforms: {', '.join(targets)}\n\n"
        "Fields to fill for each platform:\n" + "\n\n".join(field_lines) + "\n"
    )
    skip_note = " Do not ask what it already answers."
    prompt += _foundation_section("Writing Codex (the user's voice)", writing_codex, skip_note)
    prompt += _foundation_section("Personal Constitution (the user's values)", personal_constitution, skip_note)
    prompt += "\nCover these topics roughly in order:\n"
    prompt += "\n".join(f"{idx}. {topic}" for idx, topic in enumerate(_TOPICS, start=1))
    prompt += (
        "\n\nRules:\n"
        "- Ask exactly one conversational question, with a short subtext explaining why.\n"
        "- Prefer textarea; use multiselect with 4-8 options when choices are clear.\n"
        "- Set isComplete to true after 8-12 questions, or 6-8 when both documents were provided.\n"
        f"- Never ask more than {MAX_QUESTIONS} questions.\n\n"
        f"Return ONLY valid JSON matching:\n{_QUESTION_SCHEMA}"
    )
    return prompt


def build_question_user_prompt(previous_answers: Iterable[QAPair], question_count: int) -> str:
    if question_count == 0:
        return "Start the conversation. Ask the first question."
    history = "\n\n".join(
        f"Q{idx}: {pair.question}\nA{idx}: {pair.answer}"
        for idx, pair in enumerate(previous_answers, start=1)
    )
    return (
        f"Previous questions and answers:\n{history}\n\n"
        f"Ask the next question. We've asked {question_count} questions so far."
    )


def build_insight_prompt(question: str, answer: str) -> str:
    return (
        "Analyse this answer about how someone likes to work with AI assistants. "
        "Extract personality traits and preferences for communication, format and tone, "
        "plus any hard requirements. Be concise: 3-5 sentences. Reply with ONLY the analysis.\n\n"
        f"Question: {question}\n\nResponse: {answer}"
    )


def _result_schema(targets: Sequence[str]) -> str:
    blocks: List[str] = []
    for target_id in targets:
        specs = TARGET_FIELDS.get(target_id)
        if not specs:
            continue
        lines = [
            f'    "{spec.id}": "More | Default | Less"' if spec.kind == "three-way" else f'    "{spec.id}": "string"'
            for spec in specs
        ]
        lines.extend(f'    "{name}": "string"' for name in EXTRA_RESULT_FIELDS.get(target_id, []))
        blocks.append(f'  "{target_id}": {{\n' + ",\n".join(lines) + "\n  }")
    return "{\n" + ",\n".join(blocks) + "\n}"


def build_generation_system_prompt(targets: Sequence[str]) -> str:
    prompt = (
        "You write personalised custom instructions for AI platforms from what the user shared.\n"
        "Return ONLY valid JSON with no markdown and no code fences, matching:\n"
        f"{_result_schema(targets)}\n"
    )
    for target_id in targets:
        guidance = _FIELD_GUIDANCE.get(target_id)
        if guidance:
            prompt += f"\n## {target_name(target_id)} fields:\n" + "\n".join(f"- {line}" for line in guidance) + "\n"
    prompt += (
        "\nGuidelines:\n"
        "- Make each platform's content feel native to it and avoid repeating text verbatim.\n"
        "- Be specific and use the user's own words where possible.\n"
        "- Reflect the writing codex voice and constitution values when provided.\n"
    )
    return prompt


def build_generation_user_prompt(
    targets: Sequence[str],
    answers: Sequence[Answer],
    insights: Sequence[Insight],
    writing_codex: Optional[str],
    personal_constitution: Optional[str],
) -> str:
    """Use each answer's completed insight in place of its raw text."""
    completed = {i.question_id: i.insight for i in insights if i.status == "complete"}
    prompt = "Based on everything I've shared, generate my custom instructions.\n\n"
    prompt += f"Selected platforms: {', '.join(target_name(t) for t in targets)}\n\n"
    prompt += "My answers:\n"
    for answer in answers:
        text = completed.get(answer.question_id, answer.answer)
        prompt += f"Q: {answer.question}\nA: {text}\n\n"
    prompt += _foundation_section("My Writing Codex", writing_codex)
    prompt += _foundation_section("My Personal Constitution", personal_constitution)
    return prompt
