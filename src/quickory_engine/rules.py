"""
Game configuration and tunables.
"""

import os
from typing import List

from pydantic import BaseModel, Field, field_validator

from .constants import (
    BASE_POINTS_PER_ANSWER,
    CATEGORIES,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_MIN_PLAYERS,
    DEFAULT_NEXT_ROUND_DELAY_SECONDS,
    DEFAULT_RESULTS_DELAY_SECONDS,
    DEFAULT_ROUND_DURATION_SECONDS,
    DUPLICATE_PENALTY,
    GAME_LETTERS,
    INVALID_CATEGORY_PENALTY,
    INVALID_LETTER_PENALTY,
    SPEED_BONUS_POINTS,
)


class GameConfig(BaseModel):
    """Configuration for session limits, timing and scoring."""

    min_players: int = Field(
        default=DEFAULT_MIN_PLAYERS,
        ge=1,
        le=DEFAULT_MAX_PLAYERS,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=DEFAULT_MAX_PLAYERS,
        ge=1,
        le=DEFAULT_MAX_PLAYERS,
        description="Maximum number of players allowed in one session"
    )
    round_duration_seconds: int = Field(
        default=DEFAULT_ROUND_DURATION_SECONDS,
        ge=1,
        description="Time limit per round in seconds"
    )
    base_points_per_answer: int = Field(default=BASE_POINTS_PER_ANSWER, ge=0)
    speed_bonus_points: int = Field(default=SPEED_BONUS_POINTS, ge=0)
    duplicate_penalty: int = Field(default=DUPLICATE_PENALTY, ge=0)
    invalid_letter_penalty: int = Field(default=INVALID_LETTER_PENALTY, ge=0)
    invalid_category_penalty: int = Field(default=INVALID_CATEGORY_PENALTY, ge=0)
    results_delay_seconds: float = Field(
        default=DEFAULT_RESULTS_DELAY_SECONDS,
        ge=0,
        description="Pause between round end and scoring, for the results screen"
    )
    next_round_delay_seconds: float = Field(
        default=DEFAULT_NEXT_ROUND_DELAY_SECONDS,
        ge=0,
        description="Pause between scoring and the next round start"
    )
    tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Countdown tick interval"
    )
    letters: List[str] = Field(default_factory=lambda: list(GAME_LETTERS), min_length=1)
    categories: List[str] = Field(default_factory=lambda: list(CATEGORIES), min_length=1)
    use_content_database: bool = Field(
        default=True,
        description="Consult the content database before the keyword rules"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players is not below the minimum."""
        min_players = info.data.get('min_players', DEFAULT_MIN_PLAYERS)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    @field_validator('letters')
    @classmethod
    def validate_letters(cls, v):
        """Letters must be single characters, stored upper case."""
        for letter in v:
            if len(letter) != 1:
                raise ValueError(f'letter {letter!r} must be a single character')
        return [letter.upper() for letter in v]

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    @classmethod
    def from_env(cls, prefix: str = "QUICKORY_") -> 'GameConfig':
        """Build a config from ``QUICKORY_*`` environment variables."""
        overrides = {}
        for name in ("min_players", "max_players", "round_duration_seconds", "speed_bonus_points"):
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                overrides[name] = int(value)
        for name in ("results_delay_seconds", "next_round_delay_seconds", "tick_seconds"):
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                overrides[name] = float(value)
        use_db = os.getenv(f"{prefix}USE_CONTENT_DATABASE")
        if use_db is not None:
            overrides["use_content_database"] = use_db.lower() in ("1", "true", "yes")
        return create_config(**overrides)


# Default configuration instance
default_config = GameConfig()


def create_config(**overrides) -> GameConfig:
    """Create a GameConfig with optional overrides."""
    config_dict = default_config.model_dump()
    config_dict.update(overrides)
    return GameConfig(**config_dict)
