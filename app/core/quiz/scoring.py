"""
Quiz scoring.

Comparison rules per question type:

- multiple choice (``qcm_multiple``, or a single-choice type whose correct
  answer is a list): both sides are turned into sorted lists and compared
  element by element, so selection order never matters.
- single choice: strict equality (``1`` matches ``1`` and ``1.0`` but never
  ``True`` or ``"1"``).
- true/false: both sides are stringified JavaScript-style and lower-cased, so
  ``True``, ``"true"`` and ``"TRUE"`` are all equivalent. This leniency is
  relied upon by stored data that mixes booleans and string tokens.
- anything else (free text): stringified, lower-cased and trimmed.

Nothing here raises on malformed input; unknown question IDs and null answers
simply do not count as correct.
"""
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.core.quiz.questions import QCM_MULTIPLE, SINGLE_CHOICE_TYPES, TRUE_FALSE

PASS_THRESHOLD = 70


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(a: Any, b: Any) -> bool:
    if _is_number(a) and _is_number(b):
        return a == b
    if _is_number(a) or _is_number(b):
        return False
    return type(a) is type(b) and a == b


def _js_string(value: Any) -> str:
    """Stringify a value the way JavaScript's ``String()`` does."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else _js_string(v) for v in value)
    return str(value)


def _sort_key(value: Any) -> Tuple[int, Any]:
    if _is_number(value):
        return (0, value)
    return (1, _js_string(value))


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is None:
        return []
    return [value]


def is_multiple_choice(question: Dict[str, Any]) -> bool:
    question_type = question.get("type")
    return question_type == QCM_MULTIPLE or (
        question_type in SINGLE_CHOICE_TYPES and isinstance(question.get("correctAnswer"), list)
    )


def is_answer_correct(question: Dict[str, Any], answer: Any) -> bool:
    """Grade a single answer against its question."""
    correct = question.get("correctAnswer")
    question_type = question.get("type")

    if is_multiple_choice(question):
        expected = sorted(_as_list(correct), key=_sort_key)
        given = sorted(_as_list(answer), key=_sort_key)
        return len(expected) == len(given) and all(
            _strict_equals(e, g) for e, g in zip(expected, given)
        )

    if question_type in SINGLE_CHOICE_TYPES:
        return _strict_equals(answer, correct)

    if question_type == TRUE_FALSE:
        return _js_string(answer).lower() == _js_string(correct).lower()

    return _js_string(answer).lower().strip() == _js_string(correct).lower().strip()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_score(
    answers: Iterable[Dict[str, Any]], questions: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Calculate the score of a set of answers.

    Args:
        answers: Iterable of ``{"questionId", "answer"}`` pairs
        questions: Full question set, each with ``id`` and ``correctAnswer``

    Returns:
        ``{"score", "total", "percentage", "passed"}``; ``total`` is the
        number of questions, not the number of answers
    """
    total = len(questions)
    questions_by_id = {q.get("id"): q for q in questions}

    correct_count = 0
    for item in answers:
        if not isinstance(item, dict):
            continue
        question_id = item.get("questionId")
        if not isinstance(question_id, (str, int)):
            continue
        question: Optional[Dict[str, Any]] = questions_by_id.get(question_id)
        if question is None:
            continue
        if is_answer_correct(question, item.get("answer")):
            correct_count += 1

    percentage = _round_half_up(correct_count * 100 / total) if total > 0 else 0

    return {
        "score": correct_count,
        "total": total,
        "percentage": percentage,
        "passed": percentage >= PASS_THRESHOLD,
    }


def calculate_score_from_attempt(answers: Any, questions: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Score a stored answer snapshot, tolerating a missing or malformed one."""
    if not isinstance(answers, list):
        return {"score": 0, "total": len(questions), "percentage": 0, "passed": False}
    return calculate_score(answers, questions)
