"""
Tests for answer validation and the keyword rules.
"""

from quickory_engine.content_db import ContentValidation, default_database
from quickory_engine.dictionary import lookup
from quickory_engine.validate import fits_category, starts_with_letter, validate_answer


class FixedOracle:
    """Oracle that gives the same decision for every known pair."""

    def __init__(self, decision):
        self.decision = decision
        self.calls = []

    def lookup(self, answer, category):
        self.calls.append((answer, category))
        return self.decision


def test_valid_answer():
    """Letter and category both match."""
    result = validate_answer("blue", "Colors", "B")
    assert result.is_valid_letter
    assert result.is_valid_category
    assert result.is_valid
    assert result.failure_reason is None


def test_empty_answer():
    """Blank answers are invalid with the empty reason."""
    for answer in ("", "   ", None):
        result = validate_answer(answer, "Colors", "B")
        assert not result.is_valid
        assert result.answer == ""
        assert result.failure_reason == "Empty answer"


def test_answer_is_trimmed():
    result = validate_answer("  blue \n", "Colors", "B")
    assert result.answer == "blue"
    assert result.is_valid


def test_letter_check_is_case_insensitive():
    assert starts_with_letter("Blue", "b")
    assert starts_with_letter("blue", "B")
    assert not starts_with_letter("green", "B")
    assert not starts_with_letter("green", "")


def test_wrong_letter_reason():
    result = validate_answer("green", "Colors", "B")
    assert not result.is_valid_letter
    assert result.is_valid_category
    assert result.failure_reason == "Doesn't start with 'B'"


def test_wrong_category_reason():
    result = validate_answer("banana", "Colors", "B")
    assert result.is_valid_letter
    assert not result.is_valid_category
    assert result.failure_reason == "Doesn't fit category 'Colors'"


def test_letter_failure_reported_first():
    """When both checks fail the letter reason wins."""
    result = validate_answer("dog", "Colors", "B")
    assert not result.is_valid_letter
    assert not result.is_valid_category
    assert result.failure_reason == "Doesn't start with 'B'"


def test_unknown_category_accepts_anything():
    """Categories without a rule must not block play."""
    assert lookup("Dance Moves") is None
    result = validate_answer("Moonwalk", "Dance Moves", "M")
    assert result.is_valid


def test_rejected_keyword_wins():
    """Rejection keywords beat a partial keyword match."""
    assert not lookup("Animals").matches("catfood")
    assert lookup("Animals").matches("cat")


def test_partial_match():
    """Answer and keyword may contain one another."""
    rule = lookup("animals")
    assert rule.matches("elephants")
    assert rule.matches("ape")


def test_custom_predicate():
    rule = lookup("Things That Are Red")
    assert rule.matches("ruby red slippers")
    assert rule.matches("crimson tide")
    assert not rule.matches("banana")


def test_oracle_decision_is_used_first():
    """A decision from the oracle overrides the keyword rules."""
    oracle = FixedOracle(ContentValidation(False, 0.1, "nope", "rejected"))
    is_valid, explanation = fits_category("Blue", "Colors", oracle)
    assert not is_valid
    assert explanation == "nope"
    assert oracle.calls == [("blue", "colors")]


def test_oracle_without_opinion_falls_back_to_rules():
    oracle = FixedOracle(None)
    assert fits_category("blue", "Colors", oracle) == (True, None)
    assert fits_category("Moonwalk", "Dance Moves", oracle) == (True, None)


def test_content_database_as_oracle():
    result = validate_answer("Cat", "Animals", "C", oracle=default_database)
    assert result.is_valid
    assert result.explanation == "Perfect match found in category database"

    result = validate_answer("Pizza", "Animals", "P", oracle=default_database)
    assert not result.is_valid_category
    assert result.explanation == "Word exists but in different category"


def test_content_database_silent_for_unknown_category():
    """Superheroes is not in the database, so the keyword rule decides."""
    result = validate_answer("Batman", "Superheroes", "B", oracle=default_database)
    assert result.is_valid
    assert result.explanation is None
