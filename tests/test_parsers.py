"""
Tests for model-reply parsing: the JSON ladder and the deliverable trailer.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from career_intel.parsers import (
    FALLBACK_RATIONALE,
    extract_json_object,
    parse_q5_response,
    parse_routing_response,
)

CLEAN = '{"student_reaction": "Fair point.", "next_question_id": "q2_paralyzed", "routing_rationale": "Anxious."}'


class TestExtractJsonObject:
    def test_raw(self):
        assert extract_json_object('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert extract_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_bare_fence(self):
        assert extract_json_object('```\n{"a": 1}\n```') == {"a": 1}

    def test_prose_around_object(self):
        assert extract_json_object('Sure! Here you go: {"a": {"b": 2}} Hope that helps.') == {"a": {"b": 2}}

    def test_nothing_recoverable(self):
        assert extract_json_object("no braces at all") is None

    def test_array_rejected(self):
        assert extract_json_object("[1, 2, 3]") is None

    def test_accept_predicate(self):
        assert extract_json_object('{"a": 1}', accept=lambda o: "b" in o) is None


class TestParseRoutingResponse:
    def test_clean_json(self):
        d = parse_routing_response(CLEAN, "q2_active_unfocused")
        assert d.student_reaction == "Fair point."
        assert d.next_question_id == "q2_paralyzed"
        assert d.routing_rationale == "Anxious."

    def test_fenced_json_same_as_clean(self):
        fenced = parse_routing_response(f"```json\n{CLEAN}\n```", "q2_active_unfocused")
        assert fenced == parse_routing_response(CLEAN, "q2_active_unfocused")

    def test_embedded_json(self):
        d = parse_routing_response(f"Okay.\n{CLEAN}\nThanks", "q2_active_unfocused")
        assert d.next_question_id == "q2_paralyzed"

    def test_plain_text_falls_back(self):
        d = parse_routing_response("  You sound stuck. Let's dig in.  ", "q3_credentials_only")
        assert d.student_reaction == "You sound stuck. Let's dig in."
        assert d.next_question_id == "q3_credentials_only"
        assert d.routing_rationale == FALLBACK_RATIONALE

    def test_empty_reaction_falls_back(self):
        raw = '{"student_reaction": "", "next_question_id": "q2_paralyzed"}'
        d = parse_routing_response(raw, "q2_active_unfocused")
        assert d.student_reaction == raw
        assert d.next_question_id == "q2_active_unfocused"
        assert d.routing_rationale == FALLBACK_RATIONALE

    def test_missing_next_id_is_none(self):
        d = parse_routing_response('{"student_reaction": "Good."}', None)
        assert d.student_reaction == "Good."
        assert d.next_question_id is None

    def test_extra_keys_kept(self):
        d = parse_routing_response('{"student_reaction": "Ok.", "confidence": 0.8}', None)
        assert d.model_extra == {"confidence": 0.8}


class TestParseQ5Response:
    def test_trailer_stripped(self):
        out = parse_q5_response("## Your Positioning\nBody text\nINVITATION_OPTION: B")
        assert out.text == "## Your Positioning\nBody text"
        assert out.invitation_option == "B"

    def test_case_insensitive(self):
        assert parse_q5_response("Body\ninvitation_option: c").invitation_option == "C"

    def test_no_trailer_defaults_to_a(self):
        out = parse_q5_response("Body only\n")
        assert out.text == "Body only"
        assert out.invitation_option == "A"

    def test_multiple_trailers_last_wins(self):
        out = parse_q5_response("INVITATION_OPTION: A\nBody\nINVITATION_OPTION: C")
        assert out.invitation_option == "C"
        assert "INVITATION_OPTION" not in out.text

    def test_mid_line_mention_kept(self):
        out = parse_q5_response("See INVITATION_OPTION: B above\nINVITATION_OPTION: A")
        assert out.text == "See INVITATION_OPTION: B above"
        assert out.invitation_option == "A"

    def test_idempotent(self):
        once = parse_q5_response("Body\n\nINVITATION_OPTION: B\n")
        twice = parse_q5_response(once.text)
        assert twice.text == once.text
        assert twice.invitation_option == "A"
