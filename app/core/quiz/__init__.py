"""
Quiz core: scoring, timing, question normalization and the eligibility gate.
"""
from .eligibility import EligibilityChecker, EligibilityDecision, can_start_attempt, next_attempt_number
from .questions import convert_choice_question, generate_question_id, normalize_question, validate_question
from .scoring import PASS_THRESHOLD, calculate_score, calculate_score_from_attempt
from .timer import format_time, is_time_expired, time_remaining, time_spent

__all__ = [
    "EligibilityChecker",
    "EligibilityDecision",
    "can_start_attempt",
    "next_attempt_number",
    "convert_choice_question",
    "generate_question_id",
    "normalize_question",
    "validate_question",
    "PASS_THRESHOLD",
    "calculate_score",
    "calculate_score_from_attempt",
    "format_time",
    "is_time_expired",
    "time_remaining",
    "time_spent",
]
