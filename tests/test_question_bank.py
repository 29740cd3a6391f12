"""
Tests for the question bank and next-question resolution.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from career_intel.question_bank import (
    DEFAULT_NEXT_QUESTION,
    OPENING_QUESTION_ID,
    QUESTION_BANK,
    QuestionBank,
)


class TestBankContents:
    def test_eleven_questions(self):
        assert len(QUESTION_BANK) == 11

    def test_step_counts(self):
        assert len(QUESTION_BANK.all_at_step(1)) == 1
        assert len(QUESTION_BANK.all_at_step(2)) == 5
        assert len(QUESTION_BANK.all_at_step(3)) == 5

    def test_ids_prefixed_by_step(self):
        for step in (1, 2, 3):
            for qid in QUESTION_BANK.ids_at_step(step):
                assert qid.startswith(f"q{step}_")

    def test_opening_question_is_fixed(self):
        q = QUESTION_BANK.opening_question()
        assert q.id == OPENING_QUESTION_ID == "q1_situation"
        assert q.fixed
        assert q.text

    def test_defaults_exist_in_bank(self):
        for step, qid in DEFAULT_NEXT_QUESTION.items():
            assert qid in QUESTION_BANK.ids_at_step(step)


class TestLookup:
    def test_get_unknown_returns_none(self):
        assert QUESTION_BANK.get("q2_nonexistent") is None
        assert QUESTION_BANK.get(None) is None

    def test_text_for_unknown_is_empty(self):
        assert QUESTION_BANK.text_for("q9_whatever") == ""
        assert QUESTION_BANK.text_for(None) == ""

    def test_contains(self):
        assert "q3_already_strategic" in QUESTION_BANK
        assert "q4_anything" not in QUESTION_BANK


class TestResolveRoute:
    def test_valid_id_kept(self):
        assert QUESTION_BANK.resolve_route(2, "q2_paralyzed") == ("q2_paralyzed", False)

    def test_unknown_id_defaults(self):
        assert QUESTION_BANK.resolve_route(2, "q2_bogus") == ("q2_active_unfocused", True)

    def test_wrong_step_id_defaults(self):
        """A Q3 id offered at the Q2 slot is not accepted."""
        assert QUESTION_BANK.resolve_route(2, "q3_credentials_only") == ("q2_active_unfocused", True)

    def test_missing_id_defaults(self):
        assert QUESTION_BANK.resolve_route(3, None) == ("q3_credentials_only", True)


class TestCustomBank:
    def test_empty_bank_stays_empty(self):
        bank = QuestionBank([])
        assert len(bank) == 0
        assert "q1_situation" not in bank

    def test_default_bank_when_none(self):
        assert len(QuestionBank()) == 11
