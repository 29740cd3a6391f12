"""
Data models for the Career Intelligence conversation engine.

Dataclasses hold the session state the controller owns; Pydantic models
validate what comes back from the language model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


TOTAL_STEPS = 5
ROUTED_STEPS = (1, 2)       # steps whose reply chooses the next question
BANK_STEPS = (1, 2, 3)      # steps with a pre-written question
INVITATION_OPTIONS = ("A", "B", "C")

Q4_QUESTION_SENTINEL = "(Prompted by Q3 reaction)"
Q5_QUESTION_SENTINEL = "(Prompted by Q4 synthesis)"


def step_key(step: int) -> str:
    """Map a step number to its state key: 3 → "q3"."""
    return f"q{step}"


# ─── Question bank entry ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Question:
    id:    str
    step:  int          # 1, 2 or 3
    text:  str
    fixed: bool = False


# ─── Model output ────────────────────────────────────────────────────────────

class RoutingDecision(BaseModel):
    """
    Parsed reply for turns 1–3.

    Extra keys the model volunteers are kept so a clean JSON reply survives a
    parse unchanged.
    """
    model_config = ConfigDict(extra="allow")

    student_reaction:  str
    next_question_id:  Optional[str] = None
    routing_rationale: Optional[str] = None

    @field_validator("student_reaction", "next_question_id", "routing_rationale", mode="before")
    @classmethod
    def _coerce_to_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


@dataclass
class DeliverableText:
    """Turn-5 body with the INVITATION_OPTION trailer removed."""
    text:              str
    invitation_option: str = "A"


class DiscussionResult(BaseModel):
    """Peer discussion questions for a partner to ask the author of a response."""
    questions:   list[str] = Field(description="Exactly the requested number of questions")
    observation: str       = Field(description="1–2 sentence opener for the partner")


# ─── Session state ───────────────────────────────────────────────────────────

@dataclass
class TokenUsage:
    input:  int = 0
    output: int = 0

    def add(self, usage: dict[str, Any] | None) -> None:
        usage = usage or {}
        self.input  += int(usage.get("input_tokens") or 0)
        self.output += int(usage.get("output_tokens") or 0)


@dataclass
class TurnRecord:
    """One completed exchange. Records are append-only."""
    step:             int
    question_id:      Optional[str]
    question_text:    str
    student_response: str
    ai_reaction:      str
    timestamp_submit: str
    routing:          Optional[dict[str, Any]] = None   # steps 1–2 only


@dataclass
class SessionState:
    """
    Everything accumulated over one five-turn conversation.

    Mutated only by ConversationController; presenters and the exporter read it.
    """
    current_step:       int = 1
    responses:          dict[str, str] = field(default_factory=dict)
    ai_reactions:       dict[str, str] = field(default_factory=dict)
    selected_questions: dict[str, Optional[str]] = field(
        default_factory=lambda: {"q1": "q1_situation", "q2": None, "q3": None}
    )
    routing_rationales: dict[str, str] = field(default_factory=dict)
    timestamps:         dict[str, str] = field(default_factory=dict)
    invitation_option:  Optional[str] = None
    token_usage:        TokenUsage = field(default_factory=TokenUsage)
    complete:           bool = False
    turns:              list[TurnRecord] = field(default_factory=list)

    def is_answered(self, step: int) -> bool:
        key = step_key(step)
        return key in self.responses and key in self.ai_reactions
