"""
Parsers for language-model replies.

Routing replies (turns 1–3) are supposed to be a bare JSON object but often
arrive wrapped in code fences or prose, so extraction walks a three-step
ladder before giving up and treating the whole reply as the reaction text.

The turn-5 deliverable is plain text whose last line carries a hidden
INVITATION_OPTION tag; that line is stripped before display.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Optional

from pydantic import ValidationError

from career_intel.models import DeliverableText, RoutingDecision

logger = logging.getLogger(__name__)


FALLBACK_RATIONALE = "Fallback — could not parse JSON from AI response."
DEFAULT_INVITATION_OPTION = "A"

_LEADING_FENCE_RE  = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\s*```\s*$")
_INVITATION_RE     = re.compile(r"^INVITATION_OPTION:\s*([ABC])", re.IGNORECASE)


# ─── JSON extraction ladder ──────────────────────────────────────────────────

def _strip_fences(raw: str) -> str:
    text = _LEADING_FENCE_RE.sub("", raw, count=1)
    return _TRAILING_FENCE_RE.sub("", text, count=1)


def _outer_braces(raw: str) -> Optional[str]:
    first = raw.find("{")
    last  = raw.rfind("}")
    if first == -1 or last <= first:
        return None
    return raw[first:last + 1]


_ATTEMPTS: tuple[tuple[str, Callable[[str], Optional[str]]], ...] = (
    ("raw",          lambda raw: raw),
    ("fenced",       _strip_fences),
    ("outer braces", _outer_braces),
)


def extract_json_object(
    raw: str,
    accept: Callable[[dict[str, Any]], bool] = lambda obj: True,
) -> Optional[dict[str, Any]]:
    """
    Recover a JSON object from model output.

    Tries, in order: the whole body; the body with a leading ```/```json and
    a trailing ``` fence removed; the substring from the first "{" to the
    last "}". The first candidate that decodes to a dict and passes *accept*
    wins. Returns None when every attempt fails.
    """
    for name, candidate_of in _ATTEMPTS:
        candidate = candidate_of(raw)
        if candidate is None:
            continue
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            logger.debug("JSON attempt %r failed to decode", name)
            continue
        if isinstance(parsed, dict) and accept(parsed):
            logger.debug("JSON recovered via %r attempt", name)
            return parsed
        logger.debug("JSON attempt %r decoded but was rejected", name)
    return None


def _has_reaction(obj: dict[str, Any]) -> bool:
    reaction = obj.get("student_reaction")
    if isinstance(reaction, str):
        return bool(reaction.strip())
    return bool(reaction)


# ─── Turns 1–3 ───────────────────────────────────────────────────────────────

def parse_routing_response(raw: str, default_next_id: Optional[str]) -> RoutingDecision:
    """
    Parse a turn 1–3 reply into a RoutingDecision.

    A candidate is accepted only if it carries a non-empty student_reaction.
    When nothing is recoverable the whole reply (trimmed) becomes the
    reaction, the next question is *default_next_id* and the rationale is
    FALLBACK_RATIONALE.
    """
    obj = extract_json_object(raw, accept=_has_reaction)
    if obj is not None:
        try:
            return RoutingDecision.model_validate(obj)
        except ValidationError as exc:
            logger.warning("Routing JSON failed validation, using fallback: %s", exc)

    logger.warning("Could not parse routing JSON from model reply; falling back to %r", default_next_id)
    return RoutingDecision(
        student_reaction=raw.strip(),
        next_question_id=default_next_id,
        routing_rationale=FALLBACK_RATIONALE,
    )


# ─── Turn 5 ──────────────────────────────────────────────────────────────────

def parse_q5_response(raw: str) -> DeliverableText:
    """
    Split the deliverable text from its INVITATION_OPTION trailer.

    Every matching line is removed from the displayed text; the last one
    decides the option. Without a trailer the option is "A".
    """
    option = DEFAULT_INVITATION_OPTION
    kept: list[str] = []
    found = False
    for line in raw.split("\n"):
        match = _INVITATION_RE.match(line)
        if match:
            option = match.group(1).upper()
            found = True
            continue
        kept.append(line)

    if not found:
        logger.warning("Deliverable had no INVITATION_OPTION line; defaulting to %s", option)
    return DeliverableText(text="\n".join(kept).rstrip(), invitation_option=option)
