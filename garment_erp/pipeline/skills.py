"""Canonical skill levels for operations.

Older templates use ``beginner/medium/high`` and operator profiles use a
five step scale; everything is folded into ``easy/medium/hard``.
"""

from .errors import InvalidInputError

EASY = "easy"
MEDIUM = "medium"
HARD = "hard"

SKILL_LEVELS = (EASY, MEDIUM, HARD)

_ALIASES = {
    "trainee": EASY,
    "beginner": EASY,
    "intermediate": MEDIUM,
    "high": HARD,
    "advanced": HARD,
    "expert": HARD,
}


def normalize_skill_level(value) -> str:
    if value is None or str(value).strip() == "":
        return MEDIUM
    key = str(value).strip().lower()
    if key in SKILL_LEVELS:
        return key
    try:
        return _ALIASES[key]
    except KeyError:
        raise InvalidInputError("UNKNOWN_SKILL_LEVEL", skill_level=value) from None
