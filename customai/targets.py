"""Catalog of supported AI platforms and the settings fields we fill for each."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

THREE_WAY_OPTIONS = ["More", "Default", "Less"]
CHATGPT_TEXTAREA_LIMIT = 1500


@dataclass(frozen=True)
class Target:
    id: str
    name: str
    company: str
    description: str


@dataclass(frozen=True)
class FieldSpec:
    id: str
    label: str
    kind: str  # text | textarea | dropdown | three-way
    char_limit: Optional[int] = None
    options: List[str] = field(default_factory=list)
    help_text: str = ""
    navigation_path: str = ""


TARGETS: List[Target] = [
    Target("chatgpt", "ChatGPT", "OpenAI", "Custom Instructions, Personality & Characteristics"),
    Target("claude", "Claude", "Anthropic", "Profile Preferences & Style Selection"),
    Target("gemini", "Gemini", "Google", "Instructions for Gemini"),
    Target("perplexity", "Perplexity", "Perplexity AI", "AI Profile & Response Language"),
]

_CHATGPT_PATH = "Profile icon → Personalization"

TARGET_FIELDS: Dict[str, List[FieldSpec]] = {
    "chatgpt": [
        FieldSpec("nickname", "Nickname", "text", help_text="How ChatGPT should address you",
                  navigation_path=f"{_CHATGPT_PATH} → Nickname"),
        FieldSpec("occupation", "Occupation", "text", help_text="Your job or profession",
                  navigation_path=f"{_CHATGPT_PATH} → Occupation"),
        FieldSpec("knowAboutYou", "What would you like ChatGPT to know about you?", "textarea",
                  char_limit=CHATGPT_TEXTAREA_LIMIT, help_text="Your role, interests, context",
                  navigation_path=f"{_CHATGPT_PATH} → Custom Instructions"),
        FieldSpec("howToRespond", "How would you like ChatGPT to respond?", "textarea",
                  char_limit=CHATGPT_TEXTAREA_LIMIT, help_text="Tone, format, style preferences",
                  navigation_path=f"{_CHATGPT_PATH} → Custom Instructions"),
        FieldSpec("personality", "Base Style and Tone", "dropdown",
                  options=["Default", "Professional", "Friendly", "Candid", "Quirky", "Efficient", "Nerdy", "Cynical"],
                  navigation_path=f"{_CHATGPT_PATH} → Personality"),
        FieldSpec("warm", "Warm", "three-way", options=THREE_WAY_OPTIONS,
                  help_text="How sincere, kind, and friendly the tone sounds",
                  navigation_path=f"{_CHATGPT_PATH} → Characteristics"),
        FieldSpec("enthusiastic", "Enthusiastic", "three-way", options=THREE_WAY_OPTIONS,
                  help_text="Level of enthusiasm and energy in responses",
                  navigation_path=f"{_CHATGPT_PATH} → Characteristics"),
        FieldSpec("headersAndLists", "Headers & Lists", "three-way", options=THREE_WAY_OPTIONS,
                  help_text="Use of markdown formatting (headers, lists, tables)",
                  navigation_path=f"{_CHATGPT_PATH} → Characteristics"),
        FieldSpec("emoji", "Emoji", "three-way", options=THREE_WAY_OPTIONS,
                  help_text="Frequency of emoji use in responses",
                  navigation_path=f"{_CHATGPT_PATH} → Characteristics"),
    ],
    "claude": [
        FieldSpec("profilePreferences", "Profile Preferences", "textarea",
                  help_text="Who you are, what you do, how you want Claude to behave",
                  navigation_path="Initials (bottom-left) → Settings → Profile"),
        FieldSpec("recommendedStyle", "Recommended Style", "dropdown",
                  options=["Normal", "Concise", "Explanatory", "Formal"],
                  help_text="Or create a Custom Style with the guidance below",
                  navigation_path="Style selector (bottom of chat input)"),
    ],
    "gemini": [
        FieldSpec("instructions", "Instructions for Gemini", "textarea",
                  help_text="Standing instructions applied to every chat",
                  navigation_path="Settings & help → Personal Intelligence → Instructions for Gemini"),
    ],
    "perplexity": [
        FieldSpec("bio", "Bio", "textarea", help_text="Tell Perplexity about yourself",
                  navigation_path="Account icon → Settings → Profile → Bio"),
        FieldSpec("preferredLanguage", "Preferred Response Language", "dropdown",
                  options=["English", "Spanish", "French", "German", "Portuguese", "Italian", "Dutch",
                           "Japanese", "Korean", "Chinese (Simplified)", "Chinese (Traditional)",
                           "Arabic", "Hindi", "Russian"],
                  navigation_path="Account icon → Settings → Profile → Preferred response language"),
    ],
}

# Reasoning and guidance fields the generator adds beyond the paste-in settings.
EXTRA_RESULT_FIELDS: Dict[str, List[str]] = {
    "chatgpt": ["personalityReasoning", "characteristicsReasoning"],
    "claude": ["styleReasoning", "customStyleGuidance"],
}

_BY_ID = {target.id: target for target in TARGETS}


def get_target(target_id: str) -> Target:
    try:
        return _BY_ID[target_id]
    except KeyError:
        raise ValueError(f"Unknown target: {target_id}") from None


def target_name(target_id: str) -> str:
    target = _BY_ID.get(target_id)
    return target.name if target else target_id


def limit_warning(target_id: str, spec: FieldSpec, value: str) -> Optional[str]:
    """Message for a generated value longer than the field accepts, else None."""
    if spec.char_limit and len(value) > spec.char_limit:
        return f"{len(value)} characters; {target_name(target_id)} allows {spec.char_limit}."
    return None
