"""
Keyword rules that decide whether an answer fits a category.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional


@dataclass(frozen=True)
class CategoryRule:
    """Keyword/predicate definition for one category."""
    keywords: FrozenSet[str]
    rejected_keywords: FrozenSet[str] = frozenset()
    allow_partial_match: bool = False
    custom_predicate: Optional[Callable[[str], bool]] = None

    def matches(self, answer: str) -> bool:
        """
        Check an answer against this rule.

        Args:
            answer: Trimmed answer text

        Returns:
            True if the answer fits the category
        """
        normalized = answer.lower()

        for rejected in self.rejected_keywords:
            if rejected in normalized:
                return False

        if self.custom_predicate is not None:
            return bool(self.custom_predicate(normalized))

        if self.allow_partial_match:
            return any(kw in normalized or normalized in kw for kw in self.keywords)

        return normalized in self.keywords


def _rule(keywords, rejected=(), partial=True, predicate=None) -> CategoryRule:
    return CategoryRule(
        keywords=frozenset(k.lower() for k in keywords),
        rejected_keywords=frozenset(r.lower() for r in rejected),
        allow_partial_match=partial,
        custom_predicate=predicate,
    )


def _looks_red(answer: str) -> bool:
    return "red" in answer or "crimson" in answer or "scarlet" in answer


RULES: Dict[str, CategoryRule] = {
    "animals": _rule(
        ["dog", "cat", "lion", "tiger", "elephant", "bird", "fish", "snake", "horse", "cow",
         "pig", "sheep", "goat", "chicken", "duck", "rabbit", "mouse", "rat", "bear", "wolf",
         "fox", "deer", "zebra", "giraffe", "monkey", "ape", "whale", "dolphin", "shark",
         "octopus", "spider", "ant", "bee", "butterfly", "eagle", "owl", "penguin", "kangaroo",
         "koala", "panda", "rhino", "hippo"],
        rejected=["person", "human", "car", "house", "food"],
    ),
    "food & drinks": _rule(
        ["pizza", "burger", "bread", "apple", "banana", "orange", "water", "juice", "coffee",
         "tea", "milk", "cheese", "meat", "chicken", "beef", "fish", "rice", "pasta", "salad",
         "soup", "cake", "cookie", "chocolate", "ice cream", "beer", "wine", "soda", "sandwich",
         "taco", "sushi", "noodles", "egg", "bacon", "cereal", "yogurt", "fruit", "vegetable"],
        rejected=["animal", "car", "house", "person"],
    ),
    "movies": _rule(
        ["avatar", "titanic", "avengers", "batman", "superman", "starwars", "indiana", "jurassic",
         "matrix", "terminator", "alien", "jaws", "rocky", "godfather", "casablanca", "psycho",
         "vertigo", "wizard", "schindler", "citizen", "sunset", "graduate", "chinatown",
         "goodfellas", "pulp", "apocalypse", "taxi", "unforgiven", "network", "amadeus",
         "tootsie", "bonnie", "midnight", "queen", "treasure", "bicycle", "thief"],
        rejected=["food", "animal", "car", "person"],
    ),
    "countries": _rule(
        ["usa", "america", "canada", "mexico", "brazil", "argentina", "chile", "colombia", "peru",
         "venezuela", "uk", "england", "france", "germany", "italy", "spain", "portugal",
         "netherlands", "belgium", "switzerland", "austria", "poland", "russia", "china", "japan",
         "india", "australia", "egypt", "south africa", "nigeria", "kenya", "morocco", "turkey",
         "greece", "sweden", "norway", "denmark", "finland", "iceland"],
        rejected=["food", "animal", "movie", "person"],
    ),
    "colors": _rule(
        ["red", "blue", "green", "yellow", "orange", "purple", "pink", "black", "white", "gray",
         "grey", "brown", "violet", "indigo", "cyan", "magenta", "maroon", "navy", "olive", "lime",
         "aqua", "silver", "gold", "beige", "tan", "coral", "salmon", "crimson", "scarlet",
         "turquoise", "teal"],
        rejected=["food", "animal", "movie", "person", "car", "house"],
    ),
    "things that are red": _rule(
        ["apple", "strawberry", "cherry", "tomato", "rose", "fire", "blood", "lipstick", "wine",
         "brick", "cardinal", "stop sign", "fire truck", "santa", "valentine", "mars", "ruby",
         "ladybug", "barn"],
        predicate=_looks_red,
    ),
    "things you find in a park": _rule(
        ["tree", "bench", "playground", "swing", "slide", "grass", "flower", "pond", "duck",
         "squirrel", "path", "trail", "picnic", "table", "fountain", "statue", "jogger", "dog",
         "frisbee", "ball", "children", "families"],
        rejected=["car", "house", "office", "kitchen"],
    ),
    "superheroes": _rule(
        ["superman", "batman", "spiderman", "wonderwoman", "hulk", "ironman", "captain", "thor",
         "flash", "aquaman", "green lantern", "wolverine", "deadpool", "punisher", "daredevil",
         "antman", "wasp", "hawkeye", "black widow", "falcon", "winter soldier", "scarlet witch",
         "vision", "doctor strange", "black panther"],
        rejected=["food", "animal", "car", "house"],
    ),
}


def lookup(category: str) -> Optional[CategoryRule]:
    """Get the rule for a category, matched case-insensitively."""
    return RULES.get(category.strip().lower())
