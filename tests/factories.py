"""
Factory helpers for building test objects.
Imported by conftest.py fixtures AND directly by test modules.
"""
import json
import sys
import os

# Ensure both src/ and tests/ are importable in all test files
_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Never talk to the real proxy from tests
os.environ["CAREER_INTEL_API_ENDPOINT"] = "https://proxy.test/ai-proxy"

from career_intel.config import ModelConfig
from career_intel.controller import ConversationController
from career_intel.model_client import ModelCallError, ModelReply


RESPONSE_Q1 = "I'm graduating in May with a marketing degree and applying everywhere."
RESPONSE_Q2 = "I apply to anything with 'marketing' in the title, maybe ten a week."
RESPONSE_Q3 = "I ran social media for the campus food pantry and doubled donations."
RESPONSE_Q4 = "The pantry campaign: I built a content calendar and tracked the numbers."
RESPONSE_Q5 = "That's right, though I'd add that I like the analytics side the most."

RESPONSES = (RESPONSE_Q1, RESPONSE_Q2, RESPONSE_Q3, RESPONSE_Q4, RESPONSE_Q5)

DELIVERABLE_BODY = (
    "## Your Positioning\n"
    "**You turn small budgets into measurable reach.**\n"
    "---\n"
    "## What's Next\n"
    "We're running two focused sessions on [DATES TBD]. Interested? [LINK TBD]"
)


def make_config(**overrides) -> ModelConfig:
    fields = dict(
        api_endpoint      = "https://proxy.test/ai-proxy",
        model             = "test-model",
        max_tokens        = 1024,
        form_version      = "1.0",
        dates_placeholder = "[DATES TBD]",
        link_placeholder  = "[LINK TBD]",
        placeholder_text  = "Take your time.",
    )
    fields.update(overrides)
    return ModelConfig(**fields)


def routing_json(reaction: str, next_id: str | None = None, rationale: str = "Fits best.") -> str:
    body = {"student_reaction": reaction, "routing_rationale": rationale}
    if next_id is not None:
        body["next_question_id"] = next_id
    return json.dumps(body)


def reply(content: str, input_tokens: int = 100, output_tokens: int = 50) -> ModelReply:
    return ModelReply(content=content,
                      usage={"input_tokens": input_tokens, "output_tokens": output_tokens})


def happy_path_replies(option: str = "B") -> list:
    return [
        reply(routing_json("You're casting a wide net.", "q2_active_unfocused")),
        reply(routing_json("Volume isn't strategy.", "q3_has_experience_unframed")),
        reply(routing_json("That pantry work is a real result.")),
        reply("Here's the pattern I see: you grow audiences on no budget."),
        reply(f"{DELIVERABLE_BODY}\nINVITATION_OPTION: {option}"),
    ]


class ScriptedClient:
    """
    Stand-in for ModelClient: hands back scripted replies in order.

    Script entries are ModelReply objects or exceptions to raise. Every call
    is recorded as (system_prompt, user_message).
    """

    def __init__(self, script=None):
        self.script = list(script or [])
        self.calls: list[tuple[str, str]] = []

    def call(self, system_prompt: str, user_message: str) -> ModelReply:
        self.calls.append((system_prompt, user_message))
        if not self.script:
            raise AssertionError("ScriptedClient ran out of replies")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FixedClock:
    """Monotonic fake clock: each call returns the next second after 2026-05-01T12:00:00Z."""

    def __init__(self, start_second: int = 0):
        self.second = start_second

    def __call__(self) -> str:
        value = f"2026-05-01T12:{self.second // 60:02d}:{self.second % 60:02d}.000Z"
        self.second += 1
        return value


def make_controller(script=None, config: ModelConfig | None = None, clock=None):
    client = ScriptedClient(script)
    ctl = ConversationController(client, config or make_config(), clock=clock or FixedClock())
    return ctl, client


def run_to_completion(ctl: ConversationController, responses=RESPONSES) -> None:
    for text in responses:
        assert ctl.submit(text) is not None


def fake_urlopen_response(body) -> "object":
    """Return a mock urlopen context manager whose read() yields *body*."""
    from unittest import mock

    if not isinstance(body, bytes):
        body = json.dumps(body).encode()
    ctx = mock.MagicMock()
    ctx.__enter__ = mock.Mock(return_value=ctx)
    ctx.__exit__  = mock.Mock(return_value=False)
    ctx.read      = mock.Mock(return_value=body)
    return ctx


def network_error(status: int = 503, message: str = "Service unavailable") -> ModelCallError:
    from career_intel.model_client import NetworkError
    return NetworkError(status, message)
