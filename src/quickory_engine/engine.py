"""
Round lifecycle state machine.

Every operation takes a Session and returns an ActionResult holding a new
Session; the input is never mutated. Rejected operations return the
input state unchanged together with an error code.

    WAITING_FOR_PLAYERS -> READY                  start_game (host)
    READY / ROUND_ENDED -> ROUND_IN_PROGRESS      start_next_round (host)
    ROUND_IN_PROGRESS   -> WAITING_FOR_SUBMISSIONS first submission
    (either active)     -> ROUND_ENDED            countdown expiry or all submitted
    ROUND_ENDED         -> ROUND_ENDED (scored) or GAME_COMPLETED   process_round_results (host)
"""

import copy
import functools
import logging
import math
import random
import time
import uuid
from typing import Dict, Optional

from . import errors
from .constants import AVATARS, SUBMISSION_STATUSES, GameStatus
from .content_db import default_database
from .errors import GameError
from .models import ActionResult, Player, Session, Submission, clean_answers
from .rules import GameConfig, default_config
from .scoring import apply_scores, score_round
from .shuffle import draw_categories, draw_letter

logger = logging.getLogger(__name__)

REASON_TIMEOUT = "timeout"
REASON_ALL_SUBMITTED = "all_submitted"


def _new_id() -> str:
    return str(uuid.uuid4())


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def host_only(fn):
    """Reject the call unless ``actor_id`` is the session host."""
    @functools.wraps(fn)
    def wrapper(state: Optional[Session], actor_id: Optional[str], *args, **kwargs) -> ActionResult:
        if state is None:
            return ActionResult.fail(None, errors.NO_SESSION, "No active session")
        if not state.is_host(actor_id):
            logger.info(f"{fn.__name__} rejected: {actor_id} is not the host of {state.id}")
            return ActionResult.fail(state, errors.NOT_HOST, "Only the host can do that")
        return fn(state, actor_id, *args, **kwargs)
    return wrapper


def create_session(
    host_name: str,
    host_avatar: str,
    total_rounds: int,
    categories_per_round: int,
    round_duration_seconds: Optional[int] = None,
    config: GameConfig = default_config,
    session_id: Optional[str] = None,
    host_id: Optional[str] = None
) -> Session:
    """
    Create a session with the caller as host and only player.

    Raises:
        GameError: If rounds, categories or duration are not positive, or
            more categories per round are asked for than the config holds
    """
    duration = config.round_duration_seconds if round_duration_seconds is None else round_duration_seconds
    if total_rounds < 1:
        raise GameError(errors.INVALID_CONFIG, f"total_rounds must be >= 1 (got {total_rounds})")
    if categories_per_round < 1:
        raise GameError(errors.INVALID_CONFIG, f"categories_per_round must be >= 1 (got {categories_per_round})")
    available = len(set(config.categories))
    if categories_per_round > available:
        raise GameError(
            errors.INVALID_CONFIG,
            f"categories_per_round ({categories_per_round}) exceeds the {available} available categories"
        )
    if duration < 1:
        raise GameError(errors.INVALID_CONFIG, f"round_duration_seconds must be >= 1 (got {duration})")

    host = Player(id=host_id or _new_id(), name=host_name, avatar=host_avatar or AVATARS[0], is_host=True)
    state = Session(
        id=session_id or _new_id(),
        host_player_id=host.id,
        total_rounds=total_rounds,
        categories_per_round=categories_per_round,
        round_duration_seconds=duration,
        players=[host],
    )
    logger.info(f"New session created: {state.id} (host {host.name})")
    return state


def join_session(
    state: Optional[Session],
    name: str,
    avatar: str,
    config: GameConfig = default_config,
    player_id: Optional[str] = None
) -> ActionResult:
    """
    Add a player to a session.

    A name already present in the session is treated as a repeat join and
    returns the session unchanged.
    """
    if state is None:
        return ActionResult.fail(None, errors.NO_SESSION, "No session to join")
    if len(state.players) >= config.max_players:
        return ActionResult.fail(state, errors.SESSION_FULL, "Game is full")
    if state.find_player_by_name(name) is not None:
        logger.info(f"Player name '{name}' already in session {state.id}, ignoring join")
        return ActionResult.ok(state)

    new_state = copy.deepcopy(state)
    avatar = avatar or AVATARS[len(state.players) % len(AVATARS)]
    new_state.players.append(Player(id=player_id or _new_id(), name=name, avatar=avatar))
    new_state.increment_version()
    logger.info(f"Player joined session {state.id}: {name} ({len(new_state.players)} players)")
    return ActionResult.ok(new_state)


@host_only
def start_game(
    state: Session,
    actor_id: str,
    config: GameConfig = default_config,
    rng: Optional[random.Random] = None,
    now: Optional[float] = None,
    begin_first_round: bool = True
) -> ActionResult:
    """
    Leave the lobby and (by default) start round one.

    Args:
        state: Session in WAITING_FOR_PLAYERS
        actor_id: Calling player, must be the host
        config: Limits and content tables
        rng: Random source for letter/category draws
        now: Clock override (seconds)
        begin_first_round: Start round one immediately
    """
    if state.status != GameStatus.WAITING_FOR_PLAYERS:
        return ActionResult.fail(state, errors.INVALID_STATE, f"Game already started (status: {state.status.value})")
    if len(state.players) < config.min_players:
        return ActionResult.fail(
            state, errors.NOT_ENOUGH_PLAYERS, f"Need at least {config.min_players} players to start"
        )
    available = len(set(config.categories))
    if state.categories_per_round > available:
        return ActionResult.fail(
            state, errors.INVALID_CONFIG, f"Only {available} categories for {state.categories_per_round} per round"
        )

    new_state = copy.deepcopy(state)
    new_state.status = GameStatus.READY
    new_state.current_round = 1
    new_state.increment_version()
    logger.info(f"Game started: {state.id}")

    if not begin_first_round:
        return ActionResult.ok(new_state)
    return start_next_round(new_state, actor_id, config=config, rng=rng, now=now)


@host_only
def start_next_round(
    state: Session,
    actor_id: str,
    config: GameConfig = default_config,
    rng: Optional[random.Random] = None,
    now: Optional[float] = None
) -> ActionResult:
    """
    Begin the next round: draw a letter and categories, reset submissions.

    From READY this is round one; after a scored round the counter moves
    on. Ends the game instead when every round has been played.
    """
    if state.status == GameStatus.GAME_COMPLETED:
        return ActionResult.fail(state, errors.GAME_COMPLETED, "Game is over")
    if state.status not in (GameStatus.READY, GameStatus.ROUND_ENDED):
        return ActionResult.fail(
            state, errors.INVALID_STATE, f"Cannot start a round while {state.status.value}"
        )
    if state.needs_scoring:
        return ActionResult.fail(state, errors.INVALID_STATE, "Results for the last round have not been processed")

    new_state = copy.deepcopy(state)
    if state.status == GameStatus.ROUND_ENDED:
        new_state.current_round += 1
    if new_state.current_round > new_state.total_rounds:
        return ActionResult.ok(end_game(new_state))

    new_state.current_letter = draw_letter(config.letters, rng)
    new_state.current_categories = draw_categories(new_state.categories_per_round, config.categories, rng)
    new_state.round_started_at = _now(now)
    new_state.submissions = {}
    new_state.status = GameStatus.ROUND_IN_PROGRESS
    new_state.increment_version()
    logger.info(
        f"Round {new_state.current_round} started - letter {new_state.current_letter} "
        f"categories {new_state.current_categories}"
    )
    return ActionResult.ok(new_state)


def submit_answers(
    state: Optional[Session],
    player_id: str,
    answers: Dict[str, str],
    now: Optional[float] = None
) -> ActionResult:
    """
    Record a player's answers for the active round.

    The first submission moves the round to WAITING_FOR_SUBMISSIONS; the
    last one ends the round straight away.
    """
    if state is None:
        return ActionResult.fail(None, errors.NO_SESSION, "No active session")
    player = state.get_player(player_id)
    if player is None:
        return ActionResult.fail(state, errors.UNKNOWN_PLAYER, f"Unknown player {player_id}")
    if state.status not in SUBMISSION_STATUSES:
        return ActionResult.fail(state, errors.ROUND_NOT_ACTIVE, "No round is accepting answers")
    if player_id in state.submissions:
        logger.info(f"Player {player.name} already submitted for round {state.current_round}")
        return ActionResult.fail(state, errors.ALREADY_SUBMITTED, "Answers already submitted this round")

    new_state = copy.deepcopy(state)
    new_state.submissions[player_id] = Submission(
        player_id=player_id,
        answers=clean_answers(answers),
        submitted_at=_now(now),
    )
    if new_state.status == GameStatus.ROUND_IN_PROGRESS:
        new_state.status = GameStatus.WAITING_FOR_SUBMISSIONS
    new_state.increment_version()
    logger.info(
        f"Answers submitted by {player.name}: "
        f"{len(new_state.submissions)}/{len(new_state.players)} players"
    )

    if new_state.all_submitted:
        logger.info("All players have submitted, ending round")
        return end_round(new_state, REASON_ALL_SUBMITTED)
    return ActionResult.ok(new_state)


def end_round(state: Optional[Session], reason: str = REASON_TIMEOUT) -> ActionResult:
    """
    Close the active round. A second trigger after the round has ended is rejected.
    """
    if state is None:
        return ActionResult.fail(None, errors.NO_SESSION, "No active session")
    if state.status not in SUBMISSION_STATUSES:
        return ActionResult.fail(state, errors.ROUND_NOT_ACTIVE, f"No active round to end ({state.status.value})")

    new_state = copy.deepcopy(state)
    new_state.status = GameStatus.ROUND_ENDED
    new_state.increment_version()
    logger.info(f"Round {new_state.current_round} ended ({reason})")
    return ActionResult.ok(new_state)


@host_only
def process_round_results(
    state: Session,
    actor_id: str,
    config: GameConfig = default_config,
    oracle=None
) -> ActionResult:
    """
    Score the ended round and add totals to player scores.

    The session stays ROUND_ENDED while more rounds remain (start_next_round
    moves the round counter on), otherwise it becomes GAME_COMPLETED.
    """
    if not state.needs_scoring:
        return ActionResult.fail(state, errors.INVALID_STATE, f"No ended round to score ({state.status.value})")
    if state.current_letter is None or state.round_started_at is None:
        return ActionResult.fail(state, errors.INVALID_STATE, "Round was never started")

    if oracle is None and config.use_content_database:
        oracle = default_database

    breakdowns = score_round(
        submissions=state.submissions,
        players=state.players,
        letter=state.current_letter,
        categories=state.current_categories,
        round_started_at=state.round_started_at,
        config=config,
        oracle=oracle,
    )
    new_state = apply_scores(state, breakdowns)
    new_state.increment_version()

    if new_state.current_round >= new_state.total_rounds:
        return ActionResult.ok(end_game(new_state))
    return ActionResult.ok(new_state)


def end_game(state: Session) -> Session:
    """Mark the session completed. Terminal."""
    new_state = copy.deepcopy(state)
    new_state.status = GameStatus.GAME_COMPLETED
    new_state.increment_version()
    logger.info(f"Game completed: {state.id}")
    return new_state


def remaining_seconds(state: Session, now: Optional[float] = None) -> int:
    """Seconds left in the active round, clamped to zero."""
    if state.round_started_at is None:
        return 0
    elapsed = _now(now) - state.round_started_at
    return max(0, math.ceil(state.round_duration_seconds - elapsed))
