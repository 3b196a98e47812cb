"""
tests/test_scoring.py — Scoring, Skill Gaps & K-Factor Tests
=============================================================
"""

from __future__ import annotations

import pytest

from quizloop.engine.question_bank import (
    PRACTICE_TEST_IDS,
    QUESTION_BANK,
    Question,
    get_test_questions,
)
from quizloop.engine.scoring import Answer, calculate_score, identify_skill_gaps, k_factor


def _q(qid: str, skill: str, correct: int = 0) -> Question:
    return Question(id=qid, text=qid, options=("a", "b", "c", "d"), correct_answer=correct, skill=skill)


class TestQuestionBank:
    def test_three_skills_fifteen_questions_each(self):
        assert list(QUESTION_BANK) == ["Algebra", "Geometry", "Calculus"]
        assert all(len(qs) == 15 for qs in QUESTION_BANK.values())

    def test_practice_test_is_fixed(self):
        questions = get_test_questions()
        assert [q.id for q in questions] == list(PRACTICE_TEST_IDS)
        assert len(questions) == 10

    def test_every_question_has_four_options(self):
        for questions in QUESTION_BANK.values():
            for q in questions:
                assert len(q.options) == 4
                assert 0 <= q.correct_answer <= 3

    def test_question_dict_round_trip(self):
        q = QUESTION_BANK["Geometry"][0]
        assert Question.from_dict(q.to_dict()) == q


class TestCalculateScore:
    def test_empty_question_list_scores_zero(self):
        assert calculate_score([], [Answer("x", 0)]) == 0

    def test_all_correct(self):
        qs = [_q("a", "Algebra"), _q("b", "Algebra")]
        assert calculate_score(qs, [Answer("a", 0), Answer("b", 0)]) == 100

    def test_rounds_half_up(self):
        qs = [_q(str(i), "Algebra") for i in range(8)]
        # 1/8 = 12.5% rounds to 13
        assert calculate_score(qs, [Answer("0", 0)]) == 13

    def test_two_of_three_rounds_to_67(self):
        qs = [_q("a", "S"), _q("b", "S"), _q("c", "S")]
        assert calculate_score(qs, [Answer("a", 0), Answer("b", 0), Answer("c", 1)]) == 67

    def test_unknown_ids_count_as_incorrect(self):
        qs = [_q("a", "S"), _q("b", "S")]
        assert calculate_score(qs, [Answer("a", 0), Answer("zzz", 0)]) == 50


class TestSkillGaps:
    def test_unique_in_first_miss_order(self):
        qs = [_q("g1", "Geometry"), _q("a1", "Algebra"), _q("g2", "Geometry")]
        answers = [Answer("g1", 1), Answer("a1", 1), Answer("g2", 1)]
        assert identify_skill_gaps(qs, answers) == ["Geometry", "Algebra"]

    def test_no_gaps_when_all_correct(self):
        qs = [_q("a", "Algebra")]
        assert identify_skill_gaps(qs, [Answer("a", 0)]) == []

    def test_unknown_question_ignored(self):
        assert identify_skill_gaps([_q("a", "Algebra")], [Answer("nope", 3)]) == []


class TestKFactor:
    def test_reference_value(self):
        assert k_factor(25, 10, 14) == pytest.approx(1.4)

    @pytest.mark.parametrize("sent,users,fvm", [(0, 10, 0), (10, 0, 5), (0, 0, 0)])
    def test_zero_denominators(self, sent, users, fvm):
        assert k_factor(sent, users, fvm) == 0.0

    def test_below_one(self):
        assert k_factor(10, 10, 5) == pytest.approx(0.5)
