"""Data models for answers, insights, questions, and generated instructions."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TargetId = Literal["chatgpt", "claude", "gemini", "perplexity"]
InsightStatus = Literal["pending", "analyzing", "complete", "error"]
GenerationPhase = Literal["idle", "waiting-for-insights", "generating", "streaming"]
ThreeWay = Literal["More", "Default", "Less"]
InputType = Literal["textarea", "multiselect"]


class WireModel(BaseModel):
    """Base model serialised with camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Answer(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_id: str
    question: str
    answer: str
    timestamp: int


class Insight(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_id: str
    insight: str = ""
    status: InsightStatus = "pending"


class GeneratedQuestion(WireModel):
    question: str
    subtext: Optional[str] = None
    input_type: InputType
    options: Optional[List[str]] = None
    is_complete: bool = False


class QAPair(BaseModel):
    question: str
    answer: str


class QuestionRequest(WireModel):
    selected_targets: List[TargetId] = Field(default_factory=list)
    writing_codex: Optional[str] = Field(default=None, alias="foundationDocA")
    personal_constitution: Optional[str] = Field(default=None, alias="foundationDocB")
    previous_answers: List[QAPair] = Field(default_factory=list)
    question_count: int = 0


class QuestionResponse(WireModel):
    success: bool
    data: Optional[GeneratedQuestion] = None
    error: Optional[str] = None


class InsightRequest(BaseModel):
    question: str = ""
    answer: str = ""


class InsightResponse(BaseModel):
    success: bool = False
    insight: Optional[str] = None
    error: Optional[str] = None


class GenerationRequest(WireModel):
    selected_targets: List[TargetId] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    analyzed_insights: List[Insight] = Field(default_factory=list)
    writing_codex: Optional[str] = Field(default=None, alias="foundationDocA")
    personal_constitution: Optional[str] = Field(default=None, alias="foundationDocB")


class _ResultSection(WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ChatGPTInstructions(_ResultSection):
    nickname: str = ""
    occupation: str = ""
    know_about_you: str = ""
    how_to_respond: str = ""
    personality: Literal[
        "Default", "Professional", "Friendly", "Candid", "Quirky", "Efficient", "Nerdy", "Cynical"
    ] = "Default"
    personality_reasoning: str = ""
    warm: ThreeWay = "Default"
    enthusiastic: ThreeWay = "Default"
    headers_and_lists: ThreeWay = "Default"
    emoji: ThreeWay = "Default"
    characteristics_reasoning: str = ""

    @field_validator("warm", "enthusiastic", "headers_and_lists", "emoji", "personality", mode="before")
    @classmethod
    def _title_case(cls, value):
        if isinstance(value, str):
            return value.strip().title()
        return value


class ClaudeInstructions(_ResultSection):
    profile_preferences: str = ""
    recommended_style: Literal["Normal", "Concise", "Explanatory", "Formal"] = "Normal"
    style_reasoning: str = ""
    custom_style_guidance: Optional[str] = None

    @field_validator("recommended_style", mode="before")
    @classmethod
    def _title_case(cls, value):
        if isinstance(value, str):
            return value.strip().title()
        return value


class GeminiInstructions(_ResultSection):
    instructions: str = ""


class PerplexityInstructions(_ResultSection):
    bio: str = ""
    preferred_language: str = "English"


class GenerationResult(_ResultSection):
    chatgpt: Optional[ChatGPTInstructions] = None
    claude: Optional[ClaudeInstructions] = None
    gemini: Optional[GeminiInstructions] = None
    perplexity: Optional[PerplexityInstructions] = None

    def sections(self) -> Dict[str, _ResultSection]:
        """Return the populated target sections keyed by target id."""
        return {
            name: section
            for name in ("chatgpt", "claude", "gemini", "perplexity")
            if (section := getattr(self, name)) is not None
        }


class SessionSnapshot(WireModel):
    """Durable, user-authored progress. Never carries generation fields."""

    current_step: int = 0
    selected_targets: List[TargetId] = Field(default_factory=list)
    writing_codex: Optional[str] = Field(default=None, alias="foundationDocA")
    personal_constitution: Optional[str] = Field(default=None, alias="foundationDocB")
    answers: List[Answer] = Field(default_factory=list)
    analyzed_insights: List[Insight] = Field(default_factory=list)
