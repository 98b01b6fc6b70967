"""
Question normalization and validation.

Questions arrive from admin edits, JSON imports and the authoring script in
loosely-typed shapes. `normalize_question` fills defaults without rejecting
anything; `validate_question` reports every structural problem it finds.
"""
import random
import re
import string
import time
from typing import Any, Dict, List, Optional


# Question types
QCM = "qcm"                          # single choice
MULTIPLE_CHOICE = "multiple_choice"  # legacy alias of single choice
QCM_MULTIPLE = "qcm_multiple"        # several correct options
TRUE_FALSE = "true_false"
TEXT = "text"                        # free text, also any unknown type

SINGLE_CHOICE_TYPES = (QCM, MULTIPLE_CHOICE)
CHOICE_TYPES = (QCM, MULTIPLE_CHOICE, QCM_MULTIPLE)

_ID_ALPHABET = string.ascii_lowercase + string.digits

_TRUE_CHOICE = re.compile(r"vrai|true|oui", re.IGNORECASE)
_FALSE_CHOICE = re.compile(r"faux|false|non", re.IGNORECASE)


def generate_question_id() -> str:
    """Generate a unique question ID such as ``q_1718012345678_k3j9x0a1b``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"q_{int(time.time() * 1000)}_{suffix}"


def _first_present(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def normalize_question(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Canonicalize a raw question record.

    Accepts ``text`` as an alias of ``question`` and ``answer`` as an alias of
    ``correctAnswer``. A correct answer of ``0`` or ``False`` is kept as is.

    Args:
        raw: Question data as received

    Returns:
        Question dict with keys id, question, type, options, correctAnswer,
        order and explanation
    """
    options = raw.get("options")
    order = raw.get("order")

    return {
        "id": raw.get("id") or generate_question_id(),
        "question": raw.get("question") or raw.get("text") or "",
        "type": raw.get("type") or QCM,
        "options": list(options) if isinstance(options, (list, tuple)) else [],
        "correctAnswer": _first_present(raw, "correctAnswer", "correct_answer", "answer"),
        "order": order if isinstance(order, int) and not isinstance(order, bool) else 0,
        "explanation": raw.get("explanation") or None,
    }


def validate_question(question: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the structural requirements of a question.

    Args:
        question: Normalized question dict

    Returns:
        ``{"valid": bool, "errors": [str, ...]}`` listing every violated rule
    """
    errors: List[str] = []

    text = question.get("question")
    if not isinstance(text, str) or not text.strip():
        errors.append("Question text is required")

    question_type = question.get("type")
    if not question_type:
        errors.append("Question type is required")

    correct_answer = question.get("correctAnswer")

    if question_type in CHOICE_TYPES:
        options = question.get("options")
        if not isinstance(options, list) or len(options) < 2:
            errors.append("Choice questions need at least 2 options")
        if correct_answer is None:
            errors.append("A correct answer is required for choice questions")

    options = question.get("options")
    if isinstance(options, list) and not all(isinstance(o, str) for o in options):
        errors.append("Options must be text")

    if question_type == TRUE_FALSE and correct_answer is None:
        errors.append("A correct answer is required (true/false)")

    return {"valid": not errors, "errors": errors}


def convert_choice_question(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert an authoring-format question into a question record.

    The authoring format lists ``choices`` as ``{"text", "isCorrect"}`` pairs.
    A two-choice question whose choices read Vrai/Faux, True/False or Oui/Non
    becomes a true/false question; a question typed ``multiple`` or with more
    than one correct choice becomes ``qcm_multiple`` with a list of indices.
    """
    try:
        order = int(item.get("id"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        order = 0
    text = item.get("question") or ""
    choices = item.get("choices") or []

    is_true_false = (
        len(choices) == 2
        and any(_TRUE_CHOICE.search(c.get("text", "")) for c in choices)
        and any(_FALSE_CHOICE.search(c.get("text", "")) for c in choices)
    )
    if is_true_false:
        true_choice: Optional[Dict[str, Any]] = next(
            (c for c in choices if _TRUE_CHOICE.search(c.get("text", ""))), None
        )
        return {
            "question": text,
            "type": TRUE_FALSE,
            "options": [],
            "correctAnswer": bool(true_choice and true_choice.get("isCorrect")),
            "order": order,
        }

    options = [c.get("text", "") for c in choices]
    correct_indices = [i for i, c in enumerate(choices) if c.get("isCorrect")]
    is_multiple = (
        item.get("type") == "multiple"
        or len(item.get("correctChoiceIds") or []) > 1
        or len(correct_indices) > 1
    )

    if is_multiple:
        return {
            "question": text,
            "type": QCM_MULTIPLE,
            "options": options,
            "correctAnswer": correct_indices,
            "order": order,
        }

    return {
        "question": text,
        "type": QCM,
        "options": options,
        "correctAnswer": correct_indices[0] if correct_indices else 0,
        "order": order,
    }
