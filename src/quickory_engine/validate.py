"""
Answer validation: letter prefix and category fit.
"""

from typing import Optional

from .constants import REASON_EMPTY
from .dictionary import lookup as lookup_rule


class AnswerValidation:
    """Result of validating one answer."""

    def __init__(
        self,
        answer: str,
        is_valid_letter: bool,
        is_valid_category: bool,
        failure_reason: Optional[str] = None,
        explanation: Optional[str] = None
    ):
        self.answer = answer
        self.is_valid_letter = is_valid_letter
        self.is_valid_category = is_valid_category
        self.failure_reason = failure_reason
        self.explanation = explanation

    @property
    def is_valid(self) -> bool:
        return self.is_valid_letter and self.is_valid_category

    @classmethod
    def empty(cls) -> 'AnswerValidation':
        """Create the result for a blank answer."""
        return cls(answer="", is_valid_letter=False, is_valid_category=False, failure_reason=REASON_EMPTY)

    def __repr__(self):
        return (f"AnswerValidation(answer={self.answer!r}, letter={self.is_valid_letter}, "
                f"category={self.is_valid_category}, reason={self.failure_reason!r})")


def starts_with_letter(answer: str, letter: str) -> bool:
    """Case-insensitive prefix check."""
    return bool(letter) and answer.lower().startswith(letter.lower())


def fits_category(answer: str, category: str, oracle=None):
    """
    Decide whether an answer fits a category.

    The content database (``oracle``) is consulted first; when it has no
    opinion the keyword rules decide, and categories with no rule at all
    accept any non-empty answer.

    Args:
        answer: Trimmed, non-empty answer
        category: Category name
        oracle: Object with ``lookup(answer, category)``, or None

    Returns:
        Tuple of (is_valid, explanation)
    """
    if oracle is not None:
        decision = oracle.lookup(answer.lower(), category.lower())
        if decision is not None:
            return decision.is_valid, decision.explanation

    rule = lookup_rule(category)
    if rule is None:
        return True, None
    return rule.matches(answer), None


def validate_answer(answer: Optional[str], category: str, letter: str, oracle=None) -> AnswerValidation:
    """
    Validate one answer for one category.

    Args:
        answer: Raw answer text (may be None or padded with whitespace)
        category: Category name
        letter: Round letter
        oracle: Optional content database

    Returns:
        AnswerValidation with both flags and a failure reason when invalid
    """
    trimmed = (answer or "").strip()
    if not trimmed:
        return AnswerValidation.empty()

    is_valid_letter = starts_with_letter(trimmed, letter)
    is_valid_category, explanation = fits_category(trimmed, category, oracle)

    failure_reason = None
    if not is_valid_letter:
        failure_reason = f"Doesn't start with '{letter}'"
    elif not is_valid_category:
        failure_reason = f"Doesn't fit category '{category}'"

    return AnswerValidation(
        answer=trimmed,
        is_valid_letter=is_valid_letter,
        is_valid_category=is_valid_category,
        failure_reason=failure_reason,
        explanation=explanation,
    )
