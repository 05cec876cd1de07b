"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .constants import DEFAULT_ROUND_DURATION_SECONDS, STATUS_DISPLAY_TEXT, SUBMISSION_STATUSES, GameStatus


@dataclass
class Player:
    id: str
    name: str
    avatar: str = ""
    score: int = 0  # cumulative, only raised by scoring
    is_host: bool = False


@dataclass
class Submission:
    player_id: str
    answers: Dict[str, str] = field(default_factory=dict)  # category -> raw answer text
    submitted_at: float = 0.0


def clean_answers(answers) -> Dict[str, str]:
    """Answer map with text values. Unanswered categories (None) become empty."""
    return {str(k): "" if v is None else str(v) for k, v in (answers or {}).items()}


@dataclass
class Session:
    id: str
    host_player_id: str
    total_rounds: int
    categories_per_round: int
    round_duration_seconds: int = DEFAULT_ROUND_DURATION_SECONDS
    version: int = 0
    status: GameStatus = GameStatus.WAITING_FOR_PLAYERS
    players: List[Player] = field(default_factory=list)  # join order
    current_round: int = 0
    current_letter: Optional[str] = None
    current_categories: List[str] = field(default_factory=list)
    round_started_at: Optional[float] = None
    submissions: Dict[str, Submission] = field(default_factory=dict)
    round_history: List[dict] = field(default_factory=list)

    @property
    def submitted_player_ids(self) -> Set[str]:
        return set(self.submissions)

    def increment_version(self):
        self.version += 1

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_player_by_name(self, name: str) -> Optional[Player]:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def is_host(self, player_id: Optional[str]) -> bool:
        return player_id is not None and player_id == self.host_player_id

    def can_start(self, min_players: int) -> bool:
        return self.status == GameStatus.WAITING_FOR_PLAYERS and len(self.players) >= min_players

    @property
    def is_waiting_for_players(self) -> bool:
        return self.status == GameStatus.WAITING_FOR_PLAYERS

    @property
    def is_round_active(self) -> bool:
        return self.status in SUBMISSION_STATUSES

    @property
    def is_game_complete(self) -> bool:
        return self.status == GameStatus.GAME_COMPLETED

    @property
    def all_submitted(self) -> bool:
        return bool(self.players) and len(self.submissions) >= len(self.players)

    @property
    def needs_scoring(self) -> bool:
        """Round has ended but its results are not in ``round_history`` yet."""
        return (self.status == GameStatus.ROUND_ENDED
                and all(entry.get("round_number") != self.current_round for entry in self.round_history))

    @property
    def top_players(self) -> List[Player]:
        """Players by score, highest first. Ties keep join order."""
        return sorted(self.players, key=lambda p: -p.score)

    @property
    def winner(self) -> Optional[Player]:
        if not self.is_game_complete or not self.players:
            return None
        return self.top_players[0]

    @property
    def display_text(self) -> str:
        return STATUS_DISPLAY_TEXT[self.status]

    @staticmethod
    def format_time_remaining(seconds: int) -> str:
        seconds = max(0, int(seconds))
        return f"{seconds // 60}:{seconds % 60:02d}"


@dataclass
class CategoryScore:
    category: str
    answer: str
    is_valid_letter: bool = False
    is_valid_category: bool = False
    is_duplicate: bool = False
    points: int = 0
    failure_reason: Optional[str] = None


@dataclass
class ScoreBreakdown:
    player_id: str
    player_name: str
    submitted_at: float
    completion_time: float  # seconds since round start
    category_scores: List[CategoryScore] = field(default_factory=list)
    speed_bonus: int = 0
    total_score: int = 0

    @property
    def is_complete(self) -> bool:
        return bool(self.category_scores) and all(cs.answer for cs in self.category_scores)


@dataclass
class ActionResult:
    """Outcome of an engine operation. On failure ``state`` is the untouched input."""
    success: bool
    state: Optional[Session] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, state: Session) -> 'ActionResult':
        return cls(success=True, state=state)

    @classmethod
    def fail(cls, state: Optional[Session], error_code: str, error_message: str) -> 'ActionResult':
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)
