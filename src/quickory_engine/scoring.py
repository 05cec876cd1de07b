"""
Round scoring: per-category points, duplicate detection and speed bonus.
"""

import copy
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from .constants import REASON_DUPLICATE
from .models import CategoryScore, Player, ScoreBreakdown, Session, Submission
from .rules import GameConfig, default_config
from .validate import validate_answer

logger = logging.getLogger(__name__)


def score_category(
    answer: Optional[str],
    category: str,
    letter: str,
    config: GameConfig = default_config,
    oracle=None
) -> CategoryScore:
    """Score a single answer before duplicates are considered."""
    result = validate_answer(answer, category, letter, oracle)

    if result.is_valid:
        points = config.base_points_per_answer
    elif not result.answer:
        points = 0
    elif not result.is_valid_letter:
        points = config.invalid_letter_penalty
    else:
        points = config.invalid_category_penalty

    return CategoryScore(
        category=category,
        answer=result.answer,
        is_valid_letter=result.is_valid_letter,
        is_valid_category=result.is_valid_category,
        points=points,
        failure_reason=result.failure_reason,
    )


def mark_duplicates(breakdowns: List[ScoreBreakdown], config: GameConfig = default_config) -> None:
    """
    Zero out answers that two or more players gave for the same category.

    Matching is per category on trimmed, lower-cased text. Empty answers
    never count as duplicates. Mutates the breakdowns in place.
    """
    category_count = max((len(b.category_scores) for b in breakdowns), default=0)

    for index in range(category_count):
        holders: Dict[str, List[CategoryScore]] = defaultdict(list)
        for breakdown in breakdowns:
            if index >= len(breakdown.category_scores):
                continue
            category_score = breakdown.category_scores[index]
            key = category_score.answer.strip().lower()
            if key:
                holders[key].append(category_score)

        for key, scores in holders.items():
            if len(scores) < 2:
                continue
            for category_score in scores:
                category_score.is_duplicate = True
                category_score.points = config.duplicate_penalty
                if category_score.failure_reason:
                    category_score.failure_reason = f"{category_score.failure_reason}; {REASON_DUPLICATE}"
                else:
                    category_score.failure_reason = REASON_DUPLICATE


def award_speed_bonus(breakdowns: List[ScoreBreakdown], config: GameConfig = default_config) -> Optional[str]:
    """
    Give the speed bonus to the fastest player who answered every category.

    Ties on completion time go to the lexicographically smallest player id.

    Returns:
        The id of the player who got the bonus, or None
    """
    complete = [b for b in breakdowns if b.is_complete]
    if not complete:
        return None

    fastest = min(complete, key=lambda b: (b.completion_time, b.player_id))
    fastest.speed_bonus = config.speed_bonus_points
    logger.info(
        f"Speed bonus awarded to {fastest.player_name} "
        f"(completed in {fastest.completion_time:.1f}s)"
    )
    return fastest.player_id


def score_round(
    submissions: Dict[str, Submission],
    players: List[Player],
    letter: str,
    categories: List[str],
    round_started_at: float,
    config: GameConfig = default_config,
    oracle=None
) -> List[ScoreBreakdown]:
    """
    Score every submission of a round.

    Args:
        submissions: Player id -> submission
        players: Session players, in join order
        letter: Round letter
        categories: Round categories, in order
        round_started_at: Round start timestamp (seconds)
        config: Scoring tunables
        oracle: Optional content database consulted before keyword rules

    Returns:
        One ScoreBreakdown per submitting player, in join order
    """
    breakdowns: List[ScoreBreakdown] = []

    for player in players:
        submission = submissions.get(player.id)
        if submission is None:
            continue
        breakdown = ScoreBreakdown(
            player_id=player.id,
            player_name=player.name,
            submitted_at=submission.submitted_at,
            completion_time=submission.submitted_at - round_started_at,
        )
        for category in categories:
            breakdown.category_scores.append(
                score_category(submission.answers.get(category), category, letter, config, oracle)
            )
        breakdowns.append(breakdown)

    unknown = set(submissions) - {p.id for p in players}
    if unknown:
        logger.warning(f"Ignoring submissions from unknown players: {sorted(unknown)}")

    mark_duplicates(breakdowns, config)
    award_speed_bonus(breakdowns, config)

    for breakdown in breakdowns:
        breakdown.total_score = sum(cs.points for cs in breakdown.category_scores) + breakdown.speed_bonus

    return breakdowns


def apply_scores(state: Session, breakdowns: List[ScoreBreakdown]) -> Session:
    """
    Add each breakdown's total to the player's score and record the round.

    Args:
        state: Session being scored
        breakdowns: Output of score_round for the current round

    Returns:
        Updated copy of the session
    """
    new_state = copy.deepcopy(state)
    totals = {}
    speed_bonus_player = None

    for breakdown in breakdowns:
        player = new_state.get_player(breakdown.player_id)
        if player is None:
            continue
        player.score += breakdown.total_score
        totals[breakdown.player_id] = breakdown.total_score
        if breakdown.speed_bonus > 0:
            speed_bonus_player = breakdown.player_id

        logger.info(f"{breakdown.player_name} scored {breakdown.total_score} points this round")
        for category_score in breakdown.category_scores:
            logger.debug(
                f"  {category_score.category}: '{category_score.answer}' "
                f"({category_score.points} pts) {category_score.failure_reason or ''}"
            )

    new_state.round_history.append({
        'round_number': new_state.current_round,
        'letter': new_state.current_letter,
        'categories': list(new_state.current_categories),
        'totals': totals,
        'speed_bonus_player': speed_bonus_player,
    })
    return new_state
