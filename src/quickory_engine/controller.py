"""
Per-device session owner.

A controller holds the device's copy of the session and is the only
thing that mutates it. Every mutation goes through an asyncio lock, so
at most one engine call is in flight at a time. Listeners are told about
confirmed changes:

- ``on_state_changed(session)`` after every accepted change, local or remote
- ``on_broadcast(blob)`` after every local change that peers need to see
- ``on_tick(seconds_left)`` once per countdown tick

``GameController`` is the participant role: join, submit, receive updates.
``HostController`` adds the operations that move rounds forward and the
timer-driven round end, results delay and next-round delay.
"""

import asyncio
import logging
import random
import time
from typing import Callable, Dict, List, Optional

from . import engine, errors
from .errors import GameError
from .models import ActionResult, Session
from .rules import GameConfig
from .serialization import decode, encode
from .sync import is_local_host, pending_players, pending_submissions, receive_update

logger = logging.getLogger(__name__)

StateListener = Callable[[Session], None]
BroadcastListener = Callable[[bytes], None]
TickListener = Callable[[int], None]


def _subscribe(listeners: list, listener) -> Callable[[], None]:
    listeners.append(listener)

    def unsubscribe():
        if listener in listeners:
            listeners.remove(listener)
    return unsubscribe


class GameController:
    """Participant controller for one device."""

    def __init__(
        self,
        local_player_id: Optional[str] = None,
        config: Optional[GameConfig] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None
    ):
        self.local_player_id = local_player_id
        self.config = config or GameConfig.from_env()
        self.clock = clock
        self.rng = rng
        self.time_remaining = 0

        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()
        self._state_listeners: List[StateListener] = []
        self._broadcast_listeners: List[BroadcastListener] = []
        self._tick_listeners: List[TickListener] = []
        self._countdown_task: Optional[asyncio.Task] = None
        self._countdown_key = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_host(self) -> bool:
        return is_local_host(self._session, self.local_player_id)

    def on_state_changed(self, listener: StateListener) -> Callable[[], None]:
        return _subscribe(self._state_listeners, listener)

    def on_broadcast(self, listener: BroadcastListener) -> Callable[[], None]:
        return _subscribe(self._broadcast_listeners, listener)

    def on_tick(self, listener: TickListener) -> Callable[[], None]:
        return _subscribe(self._tick_listeners, listener)

    # State ownership

    def _publish(self, state: Session, broadcast: bool = True):
        self._session = state
        for listener in list(self._state_listeners):
            listener(state)
        if broadcast and self._broadcast_listeners:
            blob = encode(state)
            for listener in list(self._broadcast_listeners):
                listener(blob)

    def _apply(self, result: ActionResult, action: str) -> ActionResult:
        if not result.success:
            logger.info(f"{action} rejected: [{result.error_code}] {result.error_message}")
        elif result.state is not self._session:
            self._publish(result.state)
        return result

    # Participant operations

    async def join(self, name: str, avatar: str) -> ActionResult:
        """
        Join the session this device currently holds.

        When the name is already taken the device adopts that player.
        """
        async with self._lock:
            result = engine.join_session(self._session, name, avatar, self.config)
            if result.success:
                self.local_player_id = result.state.find_player_by_name(name).id
            self._apply(result, "join")
        return result

    async def submit(self, answers: Dict[str, str]) -> ActionResult:
        """Submit this device's answers for the active round."""
        async with self._lock:
            result = engine.submit_answers(self._session, self.local_player_id, answers, now=self.clock())
            self._apply(result, "submit")
        if result.success:
            await self._after_change()
        return result

    async def receive_remote_update(self, blob: bytes) -> ActionResult:
        """
        Apply a session blob received from a peer.

        Undecodable and stale blobs leave the local session untouched.
        """
        try:
            incoming = decode(blob)
        except GameError as e:
            logger.warning(f"Discarding undecodable update: {e.message}")
            return ActionResult.fail(self._session, e.code, e.message)

        async with self._lock:
            result = receive_update(self._session, incoming, self.local_player_id)
            if result.success:
                self._publish(result.state, broadcast=False)
            elif result.error_code == errors.STALE_UPDATE:
                result = self._handle_stale_update(incoming, result)
        await self._after_change()
        return result

    def _handle_stale_update(self, incoming: Session, result: ActionResult) -> ActionResult:
        return result

    async def _after_change(self):
        state = self._session
        if state is not None and state.is_round_active and state.round_started_at is not None:
            if self._countdown_key != (state.id, state.current_round) or self._countdown_task is None:
                self._restart_countdown(state)
        else:
            self._stop_countdown()

    # Countdown

    def _restart_countdown(self, state: Session):
        self._stop_countdown()
        self._countdown_key = (state.id, state.current_round)
        self._countdown_task = asyncio.create_task(self._run_countdown(state.id, state.current_round))
        logger.debug(f"Countdown started for round {state.current_round}")

    def _stop_countdown(self):
        task = self._countdown_task
        self._countdown_task = None
        self._countdown_key = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _run_countdown(self, session_id: str, round_number: int):
        while True:
            state = self._session
            if (state is None or state.id != session_id
                    or state.current_round != round_number or not state.is_round_active):
                return
            self.time_remaining = engine.remaining_seconds(state, self.clock())
            for listener in list(self._tick_listeners):
                listener(self.time_remaining)
            if self.time_remaining <= 0:
                await self._on_countdown_expired()
                return
            await asyncio.sleep(self.config.tick_seconds)

    async def _on_countdown_expired(self):
        """Participants only display the countdown; the host ends the round."""

    async def close(self):
        """Cancel background tasks."""
        task = self._countdown_task
        self._stop_countdown()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)


class HostController(GameController):
    """Controller for the device that owns round progression."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._results_task: Optional[asyncio.Task] = None

    async def create_session(
        self,
        host_name: str,
        host_avatar: str,
        total_rounds: int,
        categories_per_round: int,
        round_duration_seconds: Optional[int] = None
    ) -> Session:
        """
        Create a new session with this device's player as host.

        Raises:
            GameError: If the round settings are invalid
        """
        async with self._lock:
            state = engine.create_session(
                host_name,
                host_avatar,
                total_rounds,
                categories_per_round,
                round_duration_seconds=round_duration_seconds,
                config=self.config,
            )
            self.local_player_id = state.host_player_id
            self._publish(state)
        return state

    async def start_game(self) -> ActionResult:
        async with self._lock:
            result = engine.start_game(
                self._session, self.local_player_id, config=self.config, rng=self.rng, now=self.clock()
            )
            self._apply(result, "start_game")
        await self._after_change()
        return result

    async def start_next_round(self) -> ActionResult:
        async with self._lock:
            result = engine.start_next_round(
                self._session, self.local_player_id, config=self.config, rng=self.rng, now=self.clock()
            )
            self._apply(result, "start_next_round")
        await self._after_change()
        return result

    async def end_round(self, reason: str = engine.REASON_TIMEOUT) -> ActionResult:
        async with self._lock:
            result = engine.end_round(self._session, reason)
            self._apply(result, "end_round")
        await self._after_change()
        return result

    async def _on_countdown_expired(self):
        logger.info("Round time is up")
        await self.end_round(engine.REASON_TIMEOUT)

    def _handle_stale_update(self, incoming: Session, result: ActionResult) -> ActionResult:
        state = self._session
        merged = False
        for player in pending_players(state, incoming):
            joined = engine.join_session(state, player.name, player.avatar, self.config, player_id=player.id)
            if joined.success and joined.state is not state:
                state = joined.state
                merged = True
        for submission in pending_submissions(state, incoming):
            submitted = engine.submit_answers(
                state, submission.player_id, submission.answers, now=submission.submitted_at
            )
            if submitted.success:
                state = submitted.state
                merged = True
        if not merged:
            return result
        logger.info(f"Merged concurrent updates into session {state.id} v{state.version}")
        self._publish(state)
        return ActionResult.ok(state)

    async def _after_change(self):
        await super()._after_change()
        state = self._session
        if state is None or not self.is_host or not state.needs_scoring:
            return
        if self._results_task is not None and not self._results_task.done():
            return
        self._results_task = asyncio.create_task(self._finish_round())

    async def _finish_round(self):
        """Score the ended round after the results delay, then start the next one."""
        await asyncio.sleep(self.config.results_delay_seconds)
        async with self._lock:
            result = engine.process_round_results(self._session, self.local_player_id, config=self.config)
            self._apply(result, "process_round_results")
        if not result.success or result.state.is_game_complete:
            return
        await asyncio.sleep(self.config.next_round_delay_seconds)
        await self.start_next_round()

    async def wait_for_results(self):
        """Wait until pending scoring and round advance have run."""
        task = self._results_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def close(self):
        task = self._results_task
        self._results_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await super().close()
