"""Game constants and content tables"""

from enum import Enum
from typing import List


class GameStatus(str, Enum):
    """Lifecycle states of a session. Values are the wire names."""
    WAITING_FOR_PLAYERS = "waiting"
    READY = "ready"
    ROUND_IN_PROGRESS = "playing"
    WAITING_FOR_SUBMISSIONS = "waitingForSubmissions"
    ROUND_ENDED = "roundEnded"
    GAME_COMPLETED = "completed"


STATUS_DISPLAY_TEXT = {
    GameStatus.WAITING_FOR_PLAYERS: "Waiting for players...",
    GameStatus.READY: "Ready to start!",
    GameStatus.ROUND_IN_PROGRESS: "Round in progress",
    GameStatus.WAITING_FOR_SUBMISSIONS: "Waiting for other players submissions...",
    GameStatus.ROUND_ENDED: "Round complete",
    GameStatus.GAME_COMPLETED: "Game finished!",
}

# Statuses in which answers are accepted
SUBMISSION_STATUSES = (GameStatus.ROUND_IN_PROGRESS, GameStatus.WAITING_FOR_SUBMISSIONS)

# Session limits and timing
DEFAULT_MIN_PLAYERS = 1
DEFAULT_MAX_PLAYERS = 8
DEFAULT_ROUND_DURATION_SECONDS = 120
DEFAULT_RESULTS_DELAY_SECONDS = 3.0
DEFAULT_NEXT_ROUND_DELAY_SECONDS = 2.0

# Scoring
BASE_POINTS_PER_ANSWER = 1
SPEED_BONUS_POINTS = 5
DUPLICATE_PENALTY = 0
INVALID_LETTER_PENALTY = 0
INVALID_CATEGORY_PENALTY = 0

# Failure reasons
REASON_EMPTY = "Empty answer"
REASON_DUPLICATE = "Duplicate answer (shared with other players)"

# Q, X and Z are left out, they have too few common words
GAME_LETTERS: List[str] = [
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L",
    "M", "N", "O", "P", "R", "S", "T", "U", "V", "W", "Y",
]

CATEGORIES: List[str] = [
    # Basic
    "Animals", "Food & Drinks", "Movies", "Countries", "Colors",
    "Sports", "Professions", "Things in a Kitchen", "Clothing",
    "School Subjects", "Musical Instruments", "Vehicles",
    # Fun
    "Things That Are Red", "Things You Find in a Park", "Superheroes",
    "Things That Make Noise", "Things in the Sky", "Board Games",
    "Ice Cream Flavors", "Pizza Toppings", "Cartoon Characters",
    # Creative
    "Things That Are Round", "Things You Take on Vacation",
    "Things in a Bathroom", "Things That Are Soft", "Video Games",
    "Things You Can Draw", "Things That Smell Good", "Breakfast Foods",
    # Advanced
    "Historical Figures", "Mythical Creatures", "Book Titles",
    "Things Made of Wood", "Things That Are Expensive",
    "Things You Do at Night", "Things That Are Scary",
    "Things You Collect", "Dance Moves", "Magic Spells",
]

AVATARS: List[str] = ["😀", "😎", "🤓", "🦊", "🐼", "🐸", "🦁", "🐙"]
