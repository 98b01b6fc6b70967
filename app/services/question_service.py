"""
Question persistence and bulk import.
"""
import logging
from typing import Any, Dict, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.quiz import convert_choice_question, generate_question_id, normalize_question, validate_question
from app.models.quiz import QuizQuestion

logger = logging.getLogger(__name__)


def save_question(db: Session, question_id: str, data: Dict[str, Any]) -> QuizQuestion:
    """Create or merge-update a question from a normalized question dict."""
    question = db.get(QuizQuestion, question_id)
    if question is None:
        question = QuizQuestion(id=question_id)
        db.add(question)

    question.question = data.get("question") or ""  # type: ignore
    question.type = data.get("type") or "qcm"  # type: ignore
    question.options = list(data.get("options") or [])  # type: ignore
    question.correct_answer = data.get("correctAnswer")  # type: ignore
    question.order = data.get("order") or 0  # type: ignore
    question.explanation = data.get("explanation")  # type: ignore

    db.commit()
    db.refresh(question)
    return question


def _label(raw: Any) -> str:
    text = raw.get("question") or raw.get("text") if isinstance(raw, dict) else None
    return str(text)[:50] if text else "Unknown"


def import_questions(db: Session, raw_questions: Iterable[Any]) -> Dict[str, Any]:
    """
    Normalize, validate and save each question independently.

    Returns:
        ``{"success": int, "failed": int, "errors": [{"question", "error"}]}``
    """
    results: Dict[str, Any] = {"success": 0, "failed": 0, "errors": []}

    for raw in raw_questions:
        if not isinstance(raw, dict):
            results["failed"] += 1
            results["errors"].append({"question": "Unknown", "error": "Question must be an object"})
            continue

        normalized = normalize_question(raw)
        validation = validate_question(normalized)
        if not validation["valid"]:
            results["failed"] += 1
            results["errors"].append({"question": _label(raw), "error": "; ".join(validation["errors"])})
            continue

        try:
            save_question(db, normalized["id"], normalized)
            results["success"] += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save question '{_label(raw)}': {e}")
            results["failed"] += 1
            results["errors"].append({"question": _label(raw), "error": str(e)})

    logger.info(f"Question import: {results['success']} imported, {results['failed']} failed")
    return results


def import_authoring_questions(db: Session, items: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Import questions written in the authoring format (``choices`` with ``isCorrect`` flags).

    Each item gets a fresh ID derived from its order; errors carry the source ``id``.
    """
    results: Dict[str, Any] = {"success": 0, "failed": 0, "errors": []}

    for item in items:
        source_id = item.get("id") if isinstance(item, dict) else None
        if not isinstance(item, dict):
            results["failed"] += 1
            results["errors"].append({"id": None, "question": "Unknown", "error": "Question must be an object"})
            continue

        converted = convert_choice_question(item)
        question_id = generate_question_id().replace("q_", f"q_{converted['order']}_", 1)
        normalized = normalize_question({**converted, "id": question_id})
        validation = validate_question(normalized)
        if not validation["valid"]:
            results["failed"] += 1
            results["errors"].append({"id": source_id, "question": _label(item), "error": "; ".join(validation["errors"])})
            continue

        try:
            save_question(db, question_id, normalized)
            results["success"] += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to import question {source_id}: {e}")
            results["failed"] += 1
            results["errors"].append({"id": source_id, "question": _label(item), "error": str(e)})

    logger.info(f"Authoring import: {results['success']} imported, {results['failed']} failed")
    return results
