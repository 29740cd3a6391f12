"""
Question bank — the fixed opening question and the Q2 / Q3 branch options.

The bank is static; the engine only ever looks questions up by id. The set
of ids at each branch point is closed: the model may only route to an id
listed here, and the controller falls back to the step default otherwise.
"""

from __future__ import annotations

import logging
from typing import Optional

from career_intel.models import Question

logger = logging.getLogger(__name__)


OPENING_QUESTION_ID = "q1_situation"

# Routing defaults when the model's choice is missing or unknown
DEFAULT_NEXT_QUESTION = {
    2: "q2_active_unfocused",
    3: "q3_credentials_only",
}


_QUESTIONS: list[Question] = [
    # ── Step 1: fixed ──────────────────────────────────────────────────────
    Question(
        id="q1_situation",
        step=1,
        fixed=True,
        text=(
            "What's your current situation with what comes after graduation? "
            "Are you actively job searching, weighing options, or focused on "
            "something else? Whatever is true — there's no wrong answer here."
        ),
    ),

    # ── Step 2 branches ────────────────────────────────────────────────────
    Question(
        id="q2_active_unfocused",
        step=2,
        text=(
            "You mentioned you've been applying to things. Walk me through your "
            "last few applications — how did you choose those specific "
            "opportunities? What was your thinking?"
        ),
    ),
    Question(
        id="q2_alternative_path",
        step=2,
        text=(
            "You mentioned considering a different direction. I'm curious — what "
            "would the ideal version of that path look like for you? And is there "
            "anything that might make you reconsider?"
        ),
    ),
    Question(
        id="q2_paralyzed",
        step=2,
        text=(
            "It sounds like the job search feels heavy right now. When you think "
            "about it, what specifically feels hardest? Not the market in general "
            "— what's the thing that makes YOU feel stuck?"
        ),
    ),
    Question(
        id="q2_underemployed",
        step=2,
        text=(
            "You have something lined up, but it sounds like it's not quite where "
            "you want to be. If you could describe the right opportunity "
            "specifically — not just 'better' but what it actually looks like — "
            "what would you say?"
        ),
    ),
    Question(
        id="q2_strategic",
        step=2,
        text=(
            "It sounds like you have a clear direction. What's the biggest risk to "
            "this plan — the thing that could go wrong or that you're least "
            "certain about?"
        ),
    ),

    # ── Step 3 branches ────────────────────────────────────────────────────
    Question(
        id="q3_credentials_only",
        step=3,
        text=(
            "If an employer asked 'why should we hire you specifically, over other "
            "recent graduates with the same degree?' — what would you say right now?"
        ),
    ),
    Question(
        id="q3_has_experience_unframed",
        step=3,
        text=(
            "You've mentioned some real experiences — but I want to push you. "
            "Think about a specific moment in that work where YOU made a "
            "difference that someone else in your position might not have. "
            "What happened?"
        ),
    ),
    Question(
        id="q3_strong_self_knowledge",
        step=3,
        text=(
            "You have a good sense of who you are. Now let's flip it — from the "
            "employer's side: what problem would you be solving for them? Not your "
            "skills — their need. What's the pain point you're the answer to?"
        ),
    ),
    Question(
        id="q3_avoidant_needs_grounding",
        step=3,
        text=(
            "Let's try something concrete. Think about any experience — a class "
            "project, a part-time job, volunteering, even something personal — "
            "where you handled something complex or ambiguous and figured it out. "
            "What was it, and what did you actually do?"
        ),
    ),
    Question(
        id="q3_already_strategic",
        step=3,
        text=(
            "You seem to know your direction well. What's the thing about you "
            "that's hardest to communicate in a resume or interview — the thing "
            "that's real but doesn't fit neatly into bullet points?"
        ),
    ),
]


class QuestionBank:
    """Read-only lookup over a list of questions."""

    def __init__(self, questions: list[Question] | None = None) -> None:
        self._by_id: dict[str, Question] = {
            q.id: q for q in (questions if questions is not None else _QUESTIONS)
        }

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, question_id: Optional[str]) -> Optional[Question]:
        if question_id is None:
            return None
        return self._by_id.get(question_id)

    def all_at_step(self, step: int) -> list[Question]:
        return [q for q in self._by_id.values() if q.step == step]

    def ids_at_step(self, step: int) -> set[str]:
        return {q.id for q in self.all_at_step(step)}

    def text_for(self, question_id: Optional[str]) -> str:
        """Question text, or "" when the id is not in the bank (logged)."""
        question = self.get(question_id)
        if question is None:
            if question_id:
                logger.warning("Question id %r not found in bank", question_id)
            return ""
        return question.text

    def opening_question(self) -> Question:
        question = self.get(OPENING_QUESTION_ID)
        if question is None:
            raise LookupError(f"Question bank has no opening question {OPENING_QUESTION_ID!r}")
        return question

    def resolve_route(self, step: int, question_id: Optional[str]) -> tuple[str, bool]:
        """
        Validate a model-selected id for *step* (2 or 3).

        Returns (id, defaulted): the id itself when it belongs to the step's
        bank, otherwise the step default with defaulted=True.
        """
        if question_id in self.ids_at_step(step):
            return question_id, False
        return DEFAULT_NEXT_QUESTION[step], True


QUESTION_BANK = QuestionBank()
