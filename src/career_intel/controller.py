"""
Conversation controller — the five-turn state machine.

States are S1 … S5 and DONE; each non-terminal step is either waiting for the
student (AWAIT_INPUT) or waiting for the model (AWAIT_MODEL). A step only
advances when its model call comes back usable. A failed call drops the step
back to AWAIT_INPUT with the student's text kept for a retry and the session
state untouched.

At most one model call is ever in flight. The in-flight flag is a
non-blocking lock, so a submit that arrives while a call is outstanding (a
double-click, a second browser rerun) is dropped rather than queued.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from career_intel.config import ModelConfig, get_config
from career_intel.export import build_export_document
from career_intel.model_client import EmptyResponseError, ModelCallError, ModelReply
from career_intel.models import (
    Q4_QUESTION_SENTINEL,
    Q5_QUESTION_SENTINEL,
    ROUTED_STEPS,
    TOTAL_STEPS,
    Question,
    SessionState,
    TurnRecord,
    step_key,
)
from career_intel.parsers import parse_q5_response, parse_routing_response
from career_intel.prompts import PROMPTS, assemble_prompt
from career_intel.question_bank import DEFAULT_NEXT_QUESTION, QUESTION_BANK, QuestionBank

logger = logging.getLogger(__name__)


MIN_RESPONSE_CHARS = 20


class Phase(str, Enum):
    AWAIT_INPUT = "await_input"
    AWAIT_MODEL = "await_model"
    DONE        = "done"


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def meets_min_length(text: Optional[str]) -> bool:
    """Submit gate: at least MIN_RESPONSE_CHARS characters once trimmed."""
    return text is not None and len(text.strip()) >= MIN_RESPONSE_CHARS


class ConversationController:
    """
    Drives one student through the five-turn protocol and owns all session state.

    The model client only needs a ``call(system_prompt, user_message)`` method
    returning a ModelReply and raising ModelCallError on failure.
    """

    def __init__(
        self,
        client,
        config: ModelConfig | None = None,
        *,
        bank: QuestionBank = QUESTION_BANK,
        templates: dict[str, str] = PROMPTS,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        if not callable(getattr(client, "call", None)):
            raise TypeError("client must have a callable call(system_prompt, user_message) method")

        self.client    = client
        self.config    = config or get_config()
        self.bank      = bank
        self.templates = templates
        self._clock    = clock

        self.state = SessionState()
        self.state.timestamps["start"] = self._clock()

        self.phase: Phase = Phase.AWAIT_INPUT
        self.pending_input: Optional[str] = None
        self.last_error: Optional[ModelCallError] = None
        self._in_flight = threading.Lock()

        logger.info("Conversation started (model=%s, form_version=%s)",
                    self.config.model, self.config.form_version)

    # ── Read-only views ──────────────────────────────────────────────────────

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def is_complete(self) -> bool:
        return self.state.complete

    @property
    def busy(self) -> bool:
        return self.phase is Phase.AWAIT_MODEL

    def can_submit(self, text: Optional[str]) -> bool:
        return self.phase is Phase.AWAIT_INPUT and meets_min_length(text)

    def current_question(self) -> Optional[Question]:
        """Bank question for the active step; None for steps 4–5 and after completion."""
        if self.is_complete or self.current_step > 3:
            return None
        return self.bank.get(self.state.selected_questions.get(step_key(self.current_step)))

    def current_question_text(self) -> str:
        question = self.current_question()
        return question.text if question else ""

    def previous_reaction(self) -> Optional[str]:
        """The model's reply to the last completed step (step 4's effective question)."""
        if self.current_step <= 1 and not self.is_complete:
            return None
        last = self.current_step if self.is_complete else self.current_step - 1
        return self.state.ai_reactions.get(step_key(last))

    def placeholder_values(self, step: int, response: str) -> dict[str, str]:
        """Prompt placeholders from the current state plus the response being sent."""
        state = self.state
        responses = dict(state.responses)
        responses[step_key(step)] = response

        values: dict[str, str] = {}
        for n in range(1, TOTAL_STEPS + 1):
            key = step_key(n)
            values[f"{key}_response"]    = responses.get(key, "")
            values[f"{key}_ai_reaction"] = state.ai_reactions.get(key, "")
        for n in (2, 3):
            key = step_key(n)
            question_id = state.selected_questions.get(key)
            values[f"{key}_question_id"]   = question_id or ""
            values[f"{key}_question_text"] = self.bank.text_for(question_id)
        return values

    def export(self) -> dict[str, Any]:
        return build_export_document(self.state, self.config, self.bank)

    # ── Transitions ──────────────────────────────────────────────────────────

    def submit(self, text: str) -> Optional[TurnRecord]:
        """
        Answer the active step.

        Returns the completed TurnRecord once the model reply has been
        recorded, or None when the submit is dropped (too short, a call is
        already in flight, or the conversation is finished).

        Raises:
            ModelCallError – the call failed; the step stays open and
                             ``retry()`` resends the same text.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("Dropped submit for step %d: a model call is already in flight",
                           self.current_step)
            return None
        try:
            if self.phase is not Phase.AWAIT_INPUT:
                logger.warning("Dropped submit in phase %s", self.phase.value)
                return None
            if not meets_min_length(text):
                logger.debug("Submit for step %d below %d characters", self.current_step, MIN_RESPONSE_CHARS)
                return None
            return self._dispatch(text.strip())
        finally:
            if self.phase is Phase.AWAIT_MODEL:
                self.phase = Phase.AWAIT_INPUT
            self._in_flight.release()

    def retry(self) -> Optional[TurnRecord]:
        """Resend the input preserved from the last failed call."""
        if self.pending_input is None or self.last_error is None:
            return None
        logger.info("Retrying step %d after: %s", self.current_step, self.last_error.message)
        return self.submit(self.pending_input)

    def _dispatch(self, response: str) -> TurnRecord:
        step = self.current_step
        key  = step_key(step)

        self.pending_input = response
        self.last_error    = None
        submitted_at       = self._clock()
        self.phase         = Phase.AWAIT_MODEL

        system_prompt = assemble_prompt(
            key,
            self.placeholder_values(step, response),
            dates_placeholder=self.config.dates_placeholder,
            link_placeholder=self.config.link_placeholder,
            templates=self.templates,
        )

        try:
            reply = self.client.call(system_prompt, response)
            record = self._complete_turn(step, response, submitted_at, reply)
        except ModelCallError as exc:
            self.last_error = exc
            self.phase = Phase.AWAIT_INPUT
            logger.error("Step %d model call failed: %s", step, exc.message)
            raise

        self.pending_input = None
        return record

    def _complete_turn(
        self, step: int, response: str, submitted_at: str, reply: ModelReply
    ) -> TurnRecord:
        """Parse the reply, then commit everything for this step in one go."""
        state = self.state
        key   = step_key(step)
        routing: Optional[dict[str, Any]] = None
        next_id: Optional[str] = None
        invitation: Optional[str] = None

        if step <= 3:
            default_next = DEFAULT_NEXT_QUESTION.get(step + 1)
            decision = parse_routing_response(reply.content, default_next)
            reaction = decision.student_reaction
            if not reaction.strip():
                raise EmptyResponseError("The AI reply was empty")
            if step in ROUTED_STEPS:
                next_id, defaulted = self.bank.resolve_route(step + 1, decision.next_question_id)
                if defaulted:
                    logger.warning("Step %d routed to unknown id %r; using default %r",
                                   step, decision.next_question_id, next_id)
                routing = {
                    "next_question_id": next_id,
                    "rationale":        decision.routing_rationale or "",
                }
        elif step == 4:
            reaction = reply.content
            if not reaction.strip():
                raise EmptyResponseError("The AI reply was empty")
        else:
            deliverable = parse_q5_response(reply.content)
            reaction   = deliverable.text
            if not reaction.strip():
                raise EmptyResponseError("The AI reply had no deliverable text")
            invitation = deliverable.invitation_option

        # Commit
        state.responses[key]    = response
        state.ai_reactions[key] = reaction
        state.timestamps[f"{key}_submit"] = submitted_at
        state.token_usage.add(reply.usage)

        if routing is not None:
            next_key = step_key(step + 1)
            state.selected_questions[next_key] = next_id
            state.routing_rationales[next_key] = routing["rationale"]
            logger.info("Step %d complete; routed to %s", step, next_id)

        question_id = state.selected_questions.get(key) if step <= 3 else None
        if step <= 3:
            question_text = self.bank.text_for(question_id)
        else:
            question_text = Q4_QUESTION_SENTINEL if step == 4 else Q5_QUESTION_SENTINEL

        record = TurnRecord(
            step=step,
            question_id=question_id,
            question_text=question_text,
            student_response=response,
            ai_reaction=reaction,
            timestamp_submit=submitted_at,
            routing=routing,
        )
        state.turns.append(record)

        if step == TOTAL_STEPS:
            state.invitation_option = invitation
            state.timestamps["end"] = self._clock()
            state.complete = True
            self.phase = Phase.DONE
            logger.info("Conversation complete (invitation option %s)", invitation)
        else:
            state.current_step = step + 1
            self.phase = Phase.AWAIT_INPUT
            if routing is None:
                logger.info("Step %d complete", step)
        return record
