"""
Presenter — view-model for the progressive-disclosure UI.

Three surfaces are derived from the controller on every render:

  * a five-step progress indicator (upcoming / active / done),
  * the active card for the current step, or the deliverable card once the
    conversation is complete,
  * a timeline of collapsed cards for finished steps.

Nothing here mutates session state. The Streamlit app and the terminal
runner both draw from these views.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from career_intel.controller import ConversationController, Phase, meets_min_length
from career_intel.models import TOTAL_STEPS, SessionState, step_key


EXCERPT_CHARS = 120

STEP_LABELS = (
    "Where you are",
    "Digging in",
    "What sets you apart",
    "Your story",
    "Your positioning",
)


class StepStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE   = "active"
    DONE     = "done"


# ─── Progress indicator ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ProgressStep:
    step:   int
    label:  str
    status: StepStatus


def progress_steps(current_step: int, complete: bool) -> list[ProgressStep]:
    """Exactly one ACTIVE step while in progress; all DONE once complete."""
    steps = []
    for n in range(1, TOTAL_STEPS + 1):
        if complete or n < current_step:
            status = StepStatus.DONE
        elif n == current_step:
            status = StepStatus.ACTIVE
        else:
            status = StepStatus.UPCOMING
        steps.append(ProgressStep(step=n, label=STEP_LABELS[n - 1], status=status))
    return steps


# ─── Text helpers ────────────────────────────────────────────────────────────

def excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


_RULE_RE = re.compile(r"^---+\s*$")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")


def render_markdown(text: str) -> str:
    """
    Light markdown → HTML: ``## heading``, ``**bold**``, ``---`` rules,
    everything else a paragraph. Untrusted text is escaped before any tag is added.
    """
    fragments = []
    for line in text.split("\n"):
        if _RULE_RE.match(line):
            fragments.append("<hr>")
        elif line.startswith("## "):
            fragments.append(f"<h2>{html.escape(line[3:])}</h2>")
        elif not line.strip():
            fragments.append("")
        else:
            escaped = _BOLD_RE.sub(r"<strong>\1</strong>", html.escape(line))
            fragments.append(f"<p>{escaped}</p>")
    return "\n".join(fragments)


# ─── Timeline ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TimelineCard:
    step:          int
    label:         str
    excerpt:       str
    question_text: str
    response:      str
    reaction:      str
    markdown:      bool     # steps 4–5 reply in markdown, earlier steps in prose


def _card(step: int, question_text: str, response: str, reaction: str) -> TimelineCard:
    return TimelineCard(
        step=step,
        label=STEP_LABELS[step - 1],
        excerpt=excerpt(response),
        question_text=question_text,
        response=response,
        reaction=reaction,
        markdown=step >= 4,
    )


def timeline_cards(state: SessionState) -> list[TimelineCard]:
    """One collapsed card per finished step, in step order."""
    return [
        _card(t.step, t.question_text, t.student_response, t.ai_reaction)
        for t in sorted(state.turns, key=lambda t: t.step)
    ]


def timeline_from_export(document: dict[str, Any]) -> list[TimelineCard]:
    """Timeline cards rebuilt from a downloaded export document."""
    return [
        _card(
            int(turn["step"]),
            turn.get("question_text") or "",
            turn.get("student_response") or "",
            turn.get("ai_reaction") or "",
        )
        for turn in document.get("conversation", [])
    ]


# ─── Active card ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActiveCard:
    step:           int
    question_text:  str            # blank for steps 4–5
    coach_message:  Optional[str]  # previous reply shown above the box
    placeholder:    str
    draft:          str
    submit_enabled: bool
    locked:         bool           # a model call is in flight
    error_message:  Optional[str]
    show_retry:     bool


def active_card(
    controller: ConversationController, draft: str = "", pending: bool = False
) -> Optional[ActiveCard]:
    """
    The card for the current step, or None once the deliverable replaces it.

    *pending* marks a submit the UI has accepted but not yet dispatched; the
    card is locked exactly as if the call were already in flight.
    """
    if controller.is_complete:
        return None

    locked = pending or controller.phase is Phase.AWAIT_MODEL
    error  = controller.last_error
    if error is not None and controller.pending_input is not None and not draft:
        draft = controller.pending_input

    return ActiveCard(
        step=controller.current_step,
        question_text=controller.current_question_text(),
        coach_message=controller.previous_reaction(),
        placeholder=controller.config.placeholder_text,
        draft=draft,
        submit_enabled=not locked and meets_min_length(draft),
        locked=locked,
        error_message=error.message if error is not None else None,
        show_retry=error is not None and not locked,
    )


# ─── Deliverable ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DeliverableCard:
    markdown_source:   str
    html:              str
    invitation_option: str


def clipboard_text(state: SessionState) -> str:
    """What copy-to-clipboard writes: the stored markdown source, verbatim."""
    return state.ai_reactions.get(step_key(TOTAL_STEPS), "")


def deliverable_card(state: SessionState) -> Optional[DeliverableCard]:
    if not state.complete:
        return None
    source = clipboard_text(state)
    return DeliverableCard(
        markdown_source=source,
        html=render_markdown(source),
        invitation_option=state.invitation_option or "A",
    )

