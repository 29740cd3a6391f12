"""
Peer discussion helper
======================
Given a student's written response to a course prompt, asks the model for
follow-up questions a PARTNER can put to the author face to face, plus a
short positive observation to open the conversation.

Stateless: one model call per request, using the same JSON-extraction
ladder as the conversation engine.
"""

from __future__ import annotations

import logging
import textwrap
from typing import Optional

from pydantic import ValidationError

from career_intel.config import Settings, get_settings
from career_intel.model_client import ModelClient
from career_intel.models import DiscussionResult
from career_intel.parsers import extract_json_object

logger = logging.getLogger(__name__)


MIN_QUESTIONS = 1
MAX_QUESTIONS = 5
FALLBACK_OBSERVATION = "Here are some thoughts on this response."


class DiscussionRequestError(ValueError):
    """The caller left out a required field (prompt or response)."""


class BadGatewayError(RuntimeError):
    """The model reply did not contain a usable list of questions."""


def clamp_question_count(requested: Optional[int], default: int = 3) -> int:
    """Missing or zero → *default*; everything else clamped to [1, 5]."""
    count = requested or default
    return min(max(int(count), MIN_QUESTIONS), MAX_QUESTIONS)


def build_system_prompt(question_count: int, course: Optional[str] = None) -> str:
    course_tag = f" ({course})" if course else ""
    return textwrap.dedent(f"""
        You are a peer discussion facilitator for a university course{course_tag}. Your role is to help students have deeper conversations about their reflections and work.

        Given a student's written response to a prompt, generate exactly {question_count} follow-up discussion questions. These questions will be used by a PARTNER who will ask them to the AUTHOR of the response in a face-to-face conversation.

        Guidelines for generating questions:
        - First, check if the response actually addresses the original prompt. If it doesn't, your observation should note this and at least one question should gently redirect — e.g., "The prompt asked about X, but your response focused on Y. Can you walk me through how those connect?"
        - Questions should probe deeper into the student's thinking, not quiz them
        - Ask "why" and "how" questions that encourage elaboration
        - Challenge assumptions gently — "What if..." or "Have you considered..."
        - Connect to concrete experiences — "Can you give me an example of..."
        - Avoid yes/no questions
        - Each question should explore a different angle of the response
        - Keep questions conversational and natural, not academic or stiff
        - Questions should be ones a thoughtful peer would ask, not a professor

        Also provide a brief observation (1-2 sentences) about a strength or interesting aspect of the response that the partner can use to open the conversation positively.

        Respond in this exact JSON format:
        {{
          "questions": ["Question 1?", "Question 2?", "Question 3?"],
          "observation": "Brief positive observation about the response."
        }}
    """).strip()


def build_user_message(
    prompt: str, response: str, question_count: int, context: Optional[str] = None
) -> str:
    context_block = f"Activity context: {context}\n\n" if context else ""
    return (
        f"Original prompt the student was responding to:\n\"{prompt}\"\n\n"
        f"{context_block}"
        f"Student's written response:\n\"{response}\"\n\n"
        f"Generate {question_count} discussion questions for the partner to ask."
    )


def parse_discussion_reply(raw: str, question_count: int) -> DiscussionResult:
    """
    Recover {questions, observation} from the model reply.

    Unparseable text becomes a single "question" with the stock observation.

    Raises:
        BadGatewayError – questions missing, not a list, empty, or not strings.
    """
    obj = extract_json_object(raw)
    if obj is None:
        logger.warning("Discussion reply was not JSON; returning raw text as one question")
        obj = {"questions": [raw.strip()], "observation": FALLBACK_OBSERVATION}

    questions = obj.get("questions")
    if not isinstance(questions, list) or not questions:
        raise BadGatewayError("Invalid response format from AI")

    try:
        result = DiscussionResult.model_validate({
            "questions":   questions,
            "observation": obj.get("observation") or FALLBACK_OBSERVATION,
        })
    except ValidationError as exc:
        raise BadGatewayError("Invalid response format from AI") from exc

    if len(result.questions) > question_count:
        result.questions = result.questions[:question_count]
    elif len(result.questions) < question_count:
        logger.warning("Asked for %d discussion questions, model returned %d",
                       question_count, len(result.questions))
    return result


def generate_discussion_questions(
    prompt: str,
    response: str,
    *,
    context: Optional[str] = None,
    course: Optional[str] = None,
    num_questions: Optional[int] = None,
    client=None,
    settings: Settings | None = None,
) -> DiscussionResult:
    """
    Produce partner discussion questions for one written response.

    Raises:
        DiscussionRequestError – prompt or response missing.
        ModelCallError         – the proxy call failed.
        BadGatewayError        – the reply had no usable questions.
    """
    if not prompt or not response:
        raise DiscussionRequestError("Missing required fields: response, prompt")

    settings = settings or get_settings()
    cfg      = settings.discussion
    count    = clamp_question_count(num_questions, cfg.default_questions)
    trimmed  = response[:cfg.max_response_chars]

    if client is None:
        client = ModelClient(settings.engine, model=cfg.model, max_tokens=cfg.max_tokens)

    reply = client.call(
        build_system_prompt(count, course),
        build_user_message(prompt, trimmed, count, context),
    )
    result = parse_discussion_reply(reply.content, count)
    logger.info("Generated %d discussion questions", len(result.questions))
    return result
