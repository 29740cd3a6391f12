"""
Session export — the JSON document a student downloads at the end.

    timestamp_start, timestamp_end, duration_seconds,
    path_taken: {q1, q2, q3},
    conversation: [turn, …],
    invitation_option,
    metadata: {form_version, model_used, total_input_tokens, total_output_tokens}
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from career_intel.config import ModelConfig
from career_intel.models import (
    INVITATION_OPTIONS,
    Q4_QUESTION_SENTINEL,
    Q5_QUESTION_SENTINEL,
    ROUTED_STEPS,
    TOTAL_STEPS,
    SessionState,
    step_key,
)
from career_intel.question_bank import QUESTION_BANK, QuestionBank

logger = logging.getLogger(__name__)


EXPORT_KEYS = (
    "timestamp_start",
    "timestamp_end",
    "duration_seconds",
    "path_taken",
    "conversation",
    "invitation_option",
    "metadata",
)


class ExportFormatError(ValueError):
    """A document handed to load_export() is not a session export."""


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def duration_seconds(start: Optional[str], end: Optional[str]) -> Optional[int]:
    """Whole seconds between two ISO timestamps, rounded half up; None if either is missing."""
    if not start or not end:
        return None
    delta = (_parse_iso(end) - _parse_iso(start)).total_seconds()
    return int(math.floor(delta + 0.5))


def _turn_entries(state: SessionState, bank: QuestionBank) -> list[dict[str, Any]]:
    conversation = []
    for step in range(1, TOTAL_STEPS + 1):
        key = step_key(step)
        if key not in state.responses:
            continue

        question_id = state.selected_questions.get(key) if step <= 3 else None
        if question_id is not None:
            question_text = bank.text_for(question_id)
        else:
            question_text = Q4_QUESTION_SENTINEL if step == 4 else Q5_QUESTION_SENTINEL

        entry: dict[str, Any] = {
            "step":             step,
            "question_id":      question_id,
            "question_text":    question_text,
            "student_response": state.responses[key],
            "ai_reaction":      state.ai_reactions.get(key, ""),
            "timestamp":        state.timestamps.get(f"{key}_submit"),
        }
        if step in ROUTED_STEPS:
            next_key = step_key(step + 1)
            entry["routing"] = {
                "next_question_id": state.selected_questions.get(next_key),
                "rationale":        state.routing_rationales.get(next_key, ""),
            }
        conversation.append(entry)
    return conversation


def build_export_document(
    state: SessionState,
    config: ModelConfig,
    bank: QuestionBank = QUESTION_BANK,
) -> dict[str, Any]:
    """Build the export document from a session snapshot."""
    start = state.timestamps.get("start")
    end   = state.timestamps.get("end")
    return {
        "timestamp_start":  start,
        "timestamp_end":    end,
        "duration_seconds": duration_seconds(start, end),
        "path_taken": {
            "q1": state.selected_questions.get("q1"),
            "q2": state.selected_questions.get("q2"),
            "q3": state.selected_questions.get("q3"),
        },
        "conversation":      _turn_entries(state, bank),
        "invitation_option": state.invitation_option,
        "metadata": {
            "form_version":        config.form_version,
            "model_used":          config.model,
            "total_input_tokens":  state.token_usage.input,
            "total_output_tokens": state.token_usage.output,
        },
    }


def export_to_json(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_filename(now: datetime | None = None) -> str:
    """career-intelligence-YYYY-MM-DD.json (UTC date)."""
    now = now or datetime.now(timezone.utc)
    return f"career-intelligence-{now.strftime('%Y-%m-%d')}.json"


def load_export(text: str | bytes) -> dict[str, Any]:
    """
    Parse a downloaded export and check its shape.

    Raises:
        ExportFormatError – not JSON, or missing / malformed export fields.
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ExportFormatError(f"Not a JSON document: {exc}") from exc

    if not isinstance(document, dict):
        raise ExportFormatError("Export must be a JSON object")
    missing = [k for k in EXPORT_KEYS if k not in document]
    if missing:
        raise ExportFormatError(f"Export is missing fields: {', '.join(missing)}")

    conversation = document["conversation"]
    if not isinstance(conversation, list) or not all(isinstance(t, dict) for t in conversation):
        raise ExportFormatError("conversation must be a list of turn objects")
    steps = [t.get("step") for t in conversation]
    if steps != list(range(1, len(steps) + 1)):
        raise ExportFormatError(f"conversation steps out of order: {steps}")

    for key in ("path_taken", "metadata"):
        if not isinstance(document[key], dict):
            raise ExportFormatError(f"{key} must be a JSON object")

    option = document["invitation_option"]
    if option is not None and option not in INVITATION_OPTIONS:
        raise ExportFormatError(f"invitation_option must be one of A/B/C, got {option!r}")

    logger.debug("Loaded export with %d turns", len(conversation))
    return document
