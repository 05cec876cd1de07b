"""
Reconcile a locally held session with one received from a peer.

The incoming session replaces the local one wholesale. The only guard is
the version counter: for the same session id, an update that is not
newer than what we already hold is discarded.
"""

import logging
from typing import List, Optional

from . import errors
from .models import ActionResult, Player, Session, Submission

logger = logging.getLogger(__name__)


def is_stale(local: Optional[Session], incoming: Session) -> bool:
    """True when ``incoming`` is an older or repeated copy of ``local``."""
    if local is None or local.id != incoming.id:
        return False
    return incoming.version <= local.version


def is_local_host(state: Optional[Session], local_player_id: Optional[str]) -> bool:
    """Whether this device's player is the host of ``state``."""
    return state is not None and state.is_host(local_player_id)


def receive_update(
    local: Optional[Session],
    incoming: Session,
    local_player_id: Optional[str] = None
) -> ActionResult:
    """
    Apply a peer's session to the local copy.

    Args:
        local: Session currently held on this device (None if none yet)
        incoming: Decoded session from a peer
        local_player_id: This device's player id, used to log the host role

    Returns:
        ActionResult with the incoming session on success, or the local
        session and STALE_UPDATE when the update is outdated
    """
    if is_stale(local, incoming):
        logger.info(
            f"Discarding stale update for session {incoming.id}: "
            f"version {incoming.version} <= local {local.version}"
        )
        return ActionResult.fail(
            local, errors.STALE_UPDATE,
            f"Update version {incoming.version} is not newer than {local.version}"
        )

    for player in incoming.players:
        player.is_host = player.id == incoming.host_player_id

    if local is not None and local.id != incoming.id:
        logger.info(f"Switching from session {local.id} to {incoming.id}")

    logger.debug(
        f"Applied update v{incoming.version} for session {incoming.id} "
        f"(status {incoming.status.value}, host={is_local_host(incoming, local_player_id)})"
    )
    return ActionResult.ok(incoming)



def pending_submissions(local: Optional[Session], incoming: Session) -> List[Submission]:
    """
    Submissions in ``incoming`` that the local copy of the same round lacks.

    Two players submitting at the same time both produce the same next
    version, so one of the two updates looks stale to the host. The host
    replays these submissions through the engine instead of dropping them.
    """
    if local is None or local.id != incoming.id or local.current_round != incoming.current_round:
        return []
    if not local.is_round_active:
        return []
    return [
        submission
        for player_id, submission in incoming.submissions.items()
        if player_id not in local.submissions and local.get_player(player_id) is not None
    ]


def pending_players(local: Optional[Session], incoming: Session) -> List[Player]:
    """Players in ``incoming`` that joined the same lobby concurrently with the local copy."""
    if local is None or local.id != incoming.id or not local.is_waiting_for_players:
        return []
    return [player for player in incoming.players if local.get_player(player.id) is None]
