"""
End-to-end conversation scenarios driven through the controller with a
scripted model, checked against the resulting export document.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from factories import (
    DELIVERABLE_BODY,
    RESPONSES,
    happy_path_replies,
    make_controller,
    network_error,
    reply,
    routing_json,
)

from career_intel.model_client import ModelCallError
from career_intel.parsers import FALLBACK_RATIONALE
from career_intel.presenter import active_card, progress_steps, StepStatus


class TestHappyPath:
    def test_strategic_path(self):
        script = [
            reply(routing_json("You know where you're headed.", "q2_strategic")),
            reply(routing_json("That plan holds up.", "q3_already_strategic")),
            reply(routing_json("Good instinct.")),
            reply("You have a clear throughline from campus work to analytics."),
            reply(f"{DELIVERABLE_BODY}\nINVITATION_OPTION: B"),
        ]
        ctl, client = make_controller(script)
        steps_seen = []
        for text in RESPONSES:
            steps_seen.append(ctl.current_step)
            ctl.submit(text)

        doc = ctl.export()
        assert steps_seen == [1, 2, 3, 4, 5]
        assert doc["path_taken"] == {
            "q1": "q1_situation",
            "q2": "q2_strategic",
            "q3": "q3_already_strategic",
        }
        assert doc["invitation_option"] == "B"
        assert len(doc["conversation"]) == 5
        assert doc["duration_seconds"] >= 0
        assert len(client.calls) == 5


class TestFencedJson:
    def test_fenced_turn_one(self):
        fenced = ('```json\n{"student_reaction":"ok","next_question_id":"q2_paralyzed",'
                  '"routing_rationale":"x"}\n```')
        ctl, _ = make_controller([reply(fenced)])
        ctl.submit(RESPONSES[0])
        assert ctl.state.ai_reactions["q1"] == "ok"
        assert ctl.state.selected_questions["q2"] == "q2_paralyzed"


class TestUnparseableRouting:
    def test_turn_two_falls_back(self):
        script = [reply(routing_json("Noted.", "q2_paralyzed")), reply("sorry, I can't")]
        ctl, _ = make_controller(script)
        ctl.submit(RESPONSES[0])
        ctl.submit(RESPONSES[1])
        assert ctl.state.ai_reactions["q2"] == "sorry, I can't"
        assert ctl.state.selected_questions["q3"] == "q3_credentials_only"
        assert FALLBACK_RATIONALE in ctl.state.routing_rationales["q3"]
        assert ctl.current_step == 3


class TestMissingInvitationTag:
    def test_defaults_to_a(self):
        script = happy_path_replies()[:4] + [reply(DELIVERABLE_BODY)]
        ctl, _ = make_controller(script)
        for text in RESPONSES:
            ctl.submit(text)
        assert ctl.export()["invitation_option"] == "A"
        assert "INVITATION_OPTION" not in ctl.state.ai_reactions["q5"]


class TestTransientError:
    def test_retry_at_turn_three(self):
        script = happy_path_replies()
        script.insert(2, network_error(500, "Request failed (500)"))
        ctl, client = make_controller(script)
        ctl.submit(RESPONSES[0])
        ctl.submit(RESPONSES[1])
        with pytest.raises(ModelCallError):
            ctl.submit(RESPONSES[2])
        assert ctl.current_step == 3
        assert ctl.retry() is not None
        assert ctl.current_step == 4
        ctl.submit(RESPONSES[3])
        ctl.submit(RESPONSES[4])

        doc = ctl.export()
        assert [t["step"] for t in doc["conversation"]] == [1, 2, 3, 4, 5]
        assert doc["metadata"]["total_input_tokens"] == 500
        assert doc["metadata"]["total_output_tokens"] == 250
        assert len(client.calls) == 6


class TestShortInputGuard:
    @pytest.mark.parametrize("step", [1, 2, 3, 4, 5])
    def test_ten_characters_never_dispatch(self, step):
        ctl, client = make_controller(happy_path_replies())
        for text in RESPONSES[:step - 1]:
            ctl.submit(text)
        calls_before = len(client.calls)

        assert not active_card(ctl, "0123456789").submit_enabled
        assert ctl.submit("0123456789") is None
        assert len(client.calls) == calls_before
        assert ctl.current_step == step


class TestInvariantsAlongTheWay:
    def test_step_monotonic_and_single_active(self):
        script = happy_path_replies()
        script.insert(1, network_error())
        ctl, _ = make_controller(script)
        last_step = ctl.current_step
        for text in RESPONSES:
            try:
                ctl.submit(text)
            except ModelCallError:
                ctl.retry()
            assert ctl.current_step >= last_step
            last_step = ctl.current_step
            actives = [s for s in progress_steps(ctl.current_step, ctl.is_complete)
                       if s.status is StepStatus.ACTIVE]
            assert len(actives) == (0 if ctl.is_complete else 1)
        assert ctl.is_complete
