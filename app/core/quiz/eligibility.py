"""
Eligibility gate for starting a new quiz attempt.
Only completed attempts count against a participant's allowance.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ATTEMPTS = 1


def can_start_attempt(allowed_attempts: int, completed_attempts: int) -> bool:
    """The first attempt is always allowed; later ones need allowance left."""
    return not (completed_attempts > 0 and allowed_attempts <= completed_attempts)


def next_attempt_number(completed_attempts: int) -> int:
    return completed_attempts + 1


@dataclass
class EligibilityDecision:
    """Outcome of an eligibility check."""

    eligible: bool
    attempt_number: int
    completed_attempts: int
    allowed_attempts: int
    message: str


class EligibilityChecker:
    """
    Decides whether a participant may begin a new attempt.

    Attempts may be ORM rows or dicts; an attempt counts as completed when its
    completion instant is set.
    """

    @staticmethod
    def _is_completed(attempt: Any) -> bool:
        if isinstance(attempt, dict):
            return attempt.get("completed_at", attempt.get("completedAt")) is not None
        return getattr(attempt, "completed_at", None) is not None

    def check(self, allowed_attempts: Optional[int], attempts: Iterable[Any]) -> EligibilityDecision:
        """
        Check eligibility.

        Args:
            allowed_attempts: Participant allowance, ``None`` meaning the default of 1
            attempts: All prior attempts for the participant's email

        Returns:
            EligibilityDecision with the attempt number to use when eligible
        """
        allowed = allowed_attempts if allowed_attempts is not None else DEFAULT_ALLOWED_ATTEMPTS
        completed = sum(1 for a in attempts if self._is_completed(a))
        eligible = can_start_attempt(allowed, completed)

        if eligible:
            message = f"Attempt {next_attempt_number(completed)} of {max(allowed, 1)} may start."
        else:
            message = (
                "You have already taken this quiz. "
                "Contact the administrator to be granted another attempt."
            )
            logger.info(f"Attempt denied: {completed} completed, {allowed} allowed")

        return EligibilityDecision(
            eligible=eligible,
            attempt_number=next_attempt_number(completed),
            completed_attempts=completed,
            allowed_attempts=allowed,
            message=message,
        )
