"""
Script to import quiz questions from an authoring JSON file.

Usage: python import_questions.py questions.json [--dry-run]
"""
import argparse
import json
import sys
from pathlib import Path

from app.core.quiz import convert_choice_question
from app.db.base import SessionLocal, engine
from app.models import Base
from app.services.question_service import import_authoring_questions


def preview(questions: list, count: int = 3) -> None:
    print(f"Preview of first {count} questions:")
    for i, item in enumerate(questions[:count], start=1):
        converted = convert_choice_question(item)
        print(f"\n{i}. {converted['question']}")
        if converted["type"] == "true_false":
            print(f"   ✓ {'True' if converted['correctAnswer'] else 'False'}")
            continue
        correct = converted["correctAnswer"]
        correct = correct if isinstance(correct, list) else [correct]
        for idx, option in enumerate(converted["options"]):
            marker = "✓" if idx in correct else " "
            print(f"   {marker} {chr(65 + idx)}) {option}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Import quiz questions from a JSON file")
    parser.add_argument("path", type=Path, help="JSON file holding an array of questions")
    parser.add_argument("--dry-run", action="store_true", help="Only preview the converted questions")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"❌ File not found: {args.path}")
        return 1

    questions = json.loads(args.path.read_text(encoding="utf-8"))
    if not isinstance(questions, list) or not questions:
        print("❌ Invalid JSON format. Expected an array of questions.")
        return 1

    print(f"✅ Found {len(questions)} questions\n")
    preview(questions)

    if args.dry_run:
        return 0

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        results = import_authoring_questions(db, questions)
    finally:
        db.close()

    print(f"\n✅ Import complete: {results['success']} succeeded, {results['failed']} failed")
    for error in results["errors"]:
        print(f"  - Question {error['id']}: {error['error']}")
    return 0 if results["failed"] == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
