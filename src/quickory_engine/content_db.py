"""
Word database used as the primary category validation source.

The database answers "is this word in this category" for the categories
it knows about, with fuzzy matching for near misses. For categories it
does not know it stays silent, and callers fall back to the keyword rules.
"""

import copy
import logging
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 0.7

SOURCE_DATABASE = "database"
SOURCE_FUZZY = "fuzzy_match"
SOURCE_REJECTED = "rejected"


@dataclass(frozen=True)
class ContentValidation:
    """Decision from the content database."""
    is_valid: bool
    confidence: float  # 0.0 to 1.0
    explanation: str
    source: str


DEFAULT_WORDS: Dict[str, Set[str]] = {
    "animals": {
        "cat", "dog", "bird", "fish", "lion", "tiger", "elephant", "giraffe",
        "monkey", "bear", "wolf", "fox", "rabbit", "mouse", "horse", "cow",
        "pig", "sheep", "goat", "chicken", "duck", "goose", "snake", "lizard",
        "turtle", "frog", "butterfly", "bee", "spider", "ant", "whale", "dolphin",
        "shark", "eagle", "hawk", "owl", "penguin", "kangaroo", "koala", "panda",
    },
    "food": {
        "apple", "banana", "orange", "grape", "strawberry", "pizza", "burger",
        "sandwich", "pasta", "rice", "bread", "cheese", "milk", "egg", "chicken",
        "beef", "pork", "fish", "salmon", "tuna", "carrot", "potato", "tomato",
        "lettuce", "onion", "garlic", "chocolate", "cake", "cookie", "ice cream",
        "coffee", "tea", "water", "juice", "wine", "beer", "soup", "salad",
    },
    "colors": {
        "red", "blue", "green", "yellow", "orange", "purple", "pink", "brown",
        "black", "white", "gray", "grey", "violet", "indigo", "cyan", "magenta",
        "maroon", "navy", "olive", "lime", "aqua", "silver", "gold", "beige",
        "turquoise", "crimson", "scarlet", "emerald", "amber", "ivory",
    },
    "sports": {
        "football", "basketball", "baseball", "soccer", "tennis", "golf",
        "swimming", "running", "cycling", "boxing", "wrestling", "hockey",
        "volleyball", "badminton", "cricket", "rugby", "skiing", "snowboarding",
        "surfing", "skateboarding", "gymnastics", "track", "field", "marathon",
        "triathlon", "weightlifting", "crossfit", "yoga", "pilates", "dancing",
    },
    "countries": {
        "usa", "canada", "mexico", "brazil", "argentina", "uk", "france",
        "germany", "italy", "spain", "russia", "china", "japan", "korea",
        "india", "australia", "egypt", "nigeria", "kenya", "south africa",
        "norway", "sweden", "denmark", "finland", "netherlands", "belgium",
        "switzerland", "austria", "poland", "czech republic", "hungary",
    },
    "jobs": {
        "doctor", "nurse", "teacher", "lawyer", "engineer", "programmer",
        "designer", "artist", "musician", "writer", "chef", "waiter", "pilot",
        "driver", "mechanic", "plumber", "electrician", "carpenter", "farmer",
        "scientist", "researcher", "manager", "accountant", "banker", "salesperson",
        "police", "firefighter", "soldier", "judge", "dentist", "veterinarian",
    },
    "transportation": {
        "car", "bus", "train", "plane", "boat", "ship", "bicycle", "motorcycle",
        "truck", "van", "taxi", "subway", "helicopter", "rocket", "scooter",
        "skateboard", "roller skates", "jet", "yacht", "canoe", "kayak",
        "ferry", "tram", "trolley", "ambulance", "fire truck", "police car",
    },
    "kitchen": {
        "stove", "oven", "refrigerator", "microwave", "dishwasher", "sink",
        "knife", "fork", "spoon", "plate", "bowl", "cup", "glass", "pot",
        "pan", "spatula", "whisk", "blender", "toaster", "kettle", "cutting board",
        "can opener", "bottle opener", "colander", "measuring cup", "timer",
    },
    "school subjects": {
        "math", "science", "english", "history", "geography", "art", "music",
        "physical education", "chemistry", "physics", "biology", "literature",
        "algebra", "geometry", "calculus", "economics", "psychology", "sociology",
        "philosophy", "computer science", "foreign language", "drama", "health",
    },
    "weather": {
        "sunny", "cloudy", "rainy", "snowy", "windy", "stormy", "foggy", "humid",
        "hot", "cold", "warm", "cool", "freezing", "thunder", "lightning",
        "hail", "drizzle", "mist", "blizzard", "tornado", "hurricane", "rainbow",
    },
}


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def similarity(s1: str, s2: str) -> float:
    """Normalized similarity, 1.0 for identical strings."""
    if not s1:
        return 1.0 if not s2 else 0.0
    if not s2:
        return 0.0
    return 1.0 - levenshtein_distance(s1, s2) / max(len(s1), len(s2))


def _normalize(text: str) -> str:
    return text.strip().lower()


class CategoryDatabase:
    """In-memory category -> word set table."""

    def __init__(self, words: Optional[Dict[str, Iterable[str]]] = None):
        source = DEFAULT_WORDS if words is None else words
        self._words: Dict[str, Set[str]] = {
            _normalize(category): {_normalize(w) for w in entries}
            for category, entries in source.items()
        }

    def lookup(self, answer: str, category: str) -> Optional[ContentValidation]:
        """
        Decide whether an answer belongs to a category.

        Args:
            answer: Answer text (normalized here)
            category: Category name (normalized here)

        Returns:
            ContentValidation, or None when the category is not in the database
        """
        normalized_answer = _normalize(answer)
        words = self._words.get(_normalize(category))
        if words is None:
            return None

        if normalized_answer in words:
            return ContentValidation(True, 1.0, "Perfect match found in category database", SOURCE_DATABASE)

        # Iterate sorted so the reported match is the same on every device
        for word in sorted(words):
            if word in normalized_answer or normalized_answer in word:
                score = similarity(word, normalized_answer)
                if score > FUZZY_THRESHOLD:
                    return ContentValidation(
                        True,
                        score,
                        f"Close match found: '{word}' is similar to '{normalized_answer}'",
                        SOURCE_FUZZY,
                    )

        for other_category, other_words in self._words.items():
            if other_words is not words and normalized_answer in other_words:
                return ContentValidation(False, 0.3, "Word exists but in different category", SOURCE_DATABASE)

        return ContentValidation(False, 0.1, "No match found in category database", SOURCE_REJECTED)

    def available_categories(self) -> List[str]:
        return sorted(self._words)

    def category_exists(self, category: str) -> bool:
        return _normalize(category) in self._words

    def sample_words(self, category: str, count: int = 3, rng: Optional[random.Random] = None) -> List[str]:
        """Get a few words from a category, for hints."""
        words = self._words.get(_normalize(category))
        if not words:
            return []
        rng = rng or random.Random()
        pool = sorted(words)
        return rng.sample(pool, min(count, len(pool)))

    def add_custom_words(self, words: Iterable[str], category: str) -> 'CategoryDatabase':
        """Return a copy of this database with extra words in one category."""
        extended = copy.deepcopy(self)
        key = _normalize(category)
        added = {_normalize(w) for w in words if _normalize(w)}
        extended._words.setdefault(key, set()).update(added)
        logger.info(f"Added {len(added)} custom words to category '{key}'")
        return extended

    def stats(self) -> Tuple[int, int]:
        """Return (category count, total word count)."""
        return len(self._words), sum(len(w) for w in self._words.values())


default_database = CategoryDatabase()
