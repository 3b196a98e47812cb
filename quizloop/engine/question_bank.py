"""
quizloop.engine.question_bank — Static Question Catalog
========================================================

Read-only catalog of multiple-choice questions grouped by skill.  Skill
order and question order within a skill are significant: the challenge
generator picks the first questions of a skill, and falls back to the
first skill when a student has no gaps.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = ["Question", "QUESTION_BANK", "PRACTICE_TEST_IDS", "get_test_questions"]


@dataclass(frozen=True, slots=True)
class Question:
    """One multiple-choice question with four options."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: int  # index into options
    skill: str
    difficulty: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "skill": self.skill,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            options=tuple(str(o) for o in data["options"]),
            correct_answer=int(data["correct_answer"]),
            skill=str(data["skill"]),
            difficulty=data.get("difficulty"),
        )


def _skill(skill: str, rows: list[tuple[str, str, tuple[str, ...], int, str]]) -> tuple[Question, ...]:
    return tuple(
        Question(id=qid, text=text, options=options, correct_answer=correct,
                 skill=skill, difficulty=difficulty)
        for qid, text, options, correct, difficulty in rows
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
QUESTION_BANK: dict[str, tuple[Question, ...]] = {
    "Algebra": _skill("Algebra", [
        ("alg_1", "Solve for x: 2x + 5 = 13", ("x = 4", "x = 6", "x = 9", "x = 18"), 0, "easy"),
        ("alg_2", "Simplify: 3(x + 2) - 2x", ("x + 6", "x + 2", "3x + 6", "5x"), 0, "easy"),
        ("alg_3", "What is the value of y if 4y - 7 = 13?", ("y = 5", "y = 6", "y = 7", "y = 8"), 0, "easy"),
        ("alg_4", "Factor: x² + 5x + 6",
         ("(x + 2)(x + 3)", "(x + 1)(x + 6)", "(x - 2)(x - 3)", "(x + 5)(x + 1)"), 0, "medium"),
        ("alg_5", "Solve: |2x - 3| = 7",
         ("x = 5 or x = -2", "x = 5 or x = 2", "x = -5 or x = 2", "x = 5"), 0, "medium"),
        ("alg_6", "What is the slope of the line y = 3x - 2?", ("3", "-2", "2", "-3"), 0, "easy"),
        ("alg_7", "Solve the system: 2x + y = 8 and x - y = 1",
         ("x = 3, y = 2", "x = 2, y = 4", "x = 4, y = 0", "x = 3, y = 1"), 0, "medium"),
        ("alg_8", "What is the y-intercept of y = -2x + 5?", ("-2", "5", "2", "-5"), 1, "easy"),
        ("alg_9", "Expand: (x + 3)²", ("x² + 9", "x² + 6x + 9", "x² + 3x + 9", "x² + 6x + 6"), 1, "medium"),
        ("alg_10", "Solve: 3(x - 4) = 2x + 1", ("x = 13", "x = 11", "x = 9", "x = 7"), 0, "easy"),
        ("alg_11", "What is the solution to 5x - 3 = 2x + 9?", ("x = 4", "x = 3", "x = 5", "x = 6"), 0, "easy"),
        ("alg_12", "Factor: x² - 9", ("(x + 3)(x - 3)", "(x - 9)(x + 1)", "(x + 9)(x - 1)", "(x - 3)²"), 0, "medium"),
        ("alg_13", "Solve: x² - 5x + 6 = 0",
         ("x = 2 or x = 3", "x = 1 or x = 6", "x = -2 or x = -3", "x = 2 or x = -3"), 0, "medium"),
        ("alg_14", "What is the domain of f(x) = 1/(x - 3)?",
         ("All real numbers except x = 3", "All real numbers", "x > 3", "x < 3"), 0, "hard"),
        ("alg_15", "Simplify: (x³)(x⁴)", ("x⁷", "x¹²", "x", "x³⁴"), 0, "easy"),
    ]),
    "Geometry": _skill("Geometry", [
        ("geo_1", "What is the area of a rectangle with length 8 and width 5?", ("13", "26", "40", "45"), 2, "easy"),
        ("geo_2", "What is the perimeter of a square with side length 6?", ("12", "24", "36", "18"), 1, "easy"),
        ("geo_3", "What is the area of a circle with radius 4? (Use π = 3.14)",
         ("12.56", "25.12", "50.24", "16"), 2, "medium"),
        ("geo_4", "What is the volume of a cube with side length 3?", ("9", "18", "27", "12"), 2, "easy"),
        ("geo_5", "In a right triangle, if one leg is 3 and the other is 4, what is the hypotenuse?",
         ("5", "7", "12", "25"), 0, "medium"),
        ("geo_6", "What is the sum of interior angles of a triangle?", ("90°", "180°", "270°", "360°"), 1, "easy"),
        ("geo_7", "What is the area of a triangle with base 10 and height 6?", ("16", "30", "60", "32"), 1, "easy"),
        ("geo_8", "What is the circumference of a circle with diameter 10? (Use π = 3.14)",
         ("31.4", "15.7", "78.5", "314"), 0, "medium"),
        ("geo_9", "What is the volume of a cylinder with radius 2 and height 5? (Use π = 3.14)",
         ("31.4", "62.8", "20", "15.7"), 1, "hard"),
        ("geo_10", "What is the area of a parallelogram with base 7 and height 4?", ("11", "14", "28", "22"), 2, "easy"),
        ("geo_11", "How many degrees are in a right angle?", ("45°", "90°", "180°", "360°"), 1, "easy"),
        ("geo_12", "What is the sum of interior angles of a quadrilateral?",
         ("180°", "270°", "360°", "450°"), 2, "medium"),
        ("geo_13", "What is the surface area of a cube with side length 4?", ("16", "48", "64", "96"), 3, "medium"),
        ("geo_14", "What is the area of a trapezoid with bases 5 and 7, and height 4?",
         ("12", "24", "48", "20"), 1, "medium"),
        ("geo_15", "What is the volume of a rectangular prism with length 5, width 3, and height 4?",
         ("12", "24", "60", "72"), 2, "easy"),
    ]),
    "Calculus": _skill("Calculus", [
        ("calc_1", "What is the derivative of f(x) = x²?", ("x", "2x", "x²", "2"), 1, "easy"),
        ("calc_2", "What is the derivative of f(x) = 5x?", ("5x", "5", "x", "0"), 1, "easy"),
        ("calc_3", "What is the derivative of f(x) = x³?", ("3x²", "x²", "3x", "x³"), 0, "easy"),
        ("calc_4", "What is the derivative of f(x) = 4?", ("4", "4x", "0", "1"), 2, "easy"),
        ("calc_5", "What is the derivative of f(x) = 3x² + 2x?", ("6x + 2", "3x + 2", "6x² + 2x", "x + 1"), 0, "medium"),
        ("calc_6", "What is the derivative of f(x) = x⁴?", ("4x³", "x³", "4x", "x⁴"), 0, "easy"),
        ("calc_7", "What is the integral of f(x) = 2x?", ("x²", "2x²", "x² + C", "2x + C"), 2, "medium"),
        ("calc_8", "What is the derivative of f(x) = sin(x)?", ("cos(x)", "-cos(x)", "sin(x)", "-sin(x)"), 0, "medium"),
        ("calc_9", "What is the derivative of f(x) = e^x?", ("e^x", "xe^x", "ln(x)", "1"), 0, "hard"),
        ("calc_10", "What is the derivative of f(x) = 1/x?", ("-1/x²", "1/x²", "ln(x)", "x"), 0, "medium"),
        ("calc_11", "What is the integral of f(x) = 1?", ("x", "x + C", "1", "C"), 1, "easy"),
        ("calc_12", "What is the derivative of f(x) = x² + 3x + 2?",
         ("2x + 3", "x + 3", "2x² + 3x", "x² + 3"), 0, "medium"),
        ("calc_13", "What is the integral of f(x) = x?", ("x²", "x²/2 + C", "x + C", "1/2"), 1, "easy"),
        ("calc_14", "What is the derivative of f(x) = 5x³?", ("15x²", "5x²", "15x", "5x³"), 0, "easy"),
        ("calc_15", "What is the limit as x approaches 0 of sin(x)/x?", ("0", "1", "∞", "undefined"), 1, "hard"),
    ]),
}

# The fixed 10-question practice test (mix of skills and difficulties)
PRACTICE_TEST_IDS: tuple[str, ...] = (
    "alg_1", "alg_2", "alg_4",
    "geo_1", "geo_2", "geo_3",
    "calc_1", "calc_2", "calc_5",
    "alg_7",
)

_BY_ID: dict[str, Question] = {
    q.id: q for questions in QUESTION_BANK.values() for q in questions
}


def get_test_questions() -> list[Question]:
    """Return the practice test, always the same questions in the same order."""
    return [_BY_ID[qid] for qid in PRACTICE_TEST_IDS]
