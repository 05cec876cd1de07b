"""
Random letter and category draws for a round.
"""

import random
from typing import List, Optional, Sequence

from .constants import CATEGORIES, GAME_LETTERS


def draw_letter(letters: Sequence[str] = GAME_LETTERS, rng: Optional[random.Random] = None) -> str:
    """
    Draw the round letter uniformly from the letter set.

    Args:
        letters: Candidate letters
        rng: Random source (system random if None)

    Returns:
        A single upper-case letter, "A" if the set is empty
    """
    if not letters:
        return "A"
    rng = rng or random.Random()
    return rng.choice(list(letters)).upper()


def draw_categories(
    count: int,
    categories: Sequence[str] = CATEGORIES,
    rng: Optional[random.Random] = None
) -> List[str]:
    """
    Draw ``count`` distinct categories without replacement.

    Args:
        count: Number of categories wanted
        categories: Category pool
        rng: Random source (system random if None)

    Returns:
        List of unique category names, at most ``len(categories)`` long
    """
    rng = rng or random.Random()
    pool = list(dict.fromkeys(categories))
    return rng.sample(pool, min(max(count, 0), len(pool)))
