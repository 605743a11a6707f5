"""
Password strength heuristic.

Nine one-point checks scaled by ten, so the highest reachable score is 90.
This is not an entropy estimate; the thresholds in `label` depend on the
exact point rules below.
"""
from enum import Enum
from typing import Tuple
import re

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")
_ONLY_LETTERS = re.compile(r"[a-zA-Z]+")
_ONLY_DIGITS = re.compile(r"[0-9]+")


class Strength(str, Enum):
    WEAK = "Weak"
    MODERATE = "Moderate"
    STRONG = "Strong"
    VERY_STRONG = "Very Strong"


def score(password: str) -> int:
    """Return a heuristic strength score in [0, 100]."""
    if not password:
        return 0

    points = 0
    n = len(password.encode("utf-16-le", "surrogatepass")) // 2   # UTF-16 code units, so astral characters count twice
    points += (n >= 8) + (n >= 12) + (n >= 16)

    for pattern in (_UPPER, _LOWER, _DIGIT, _SYMBOL):
        if pattern.search(password):
            points += 1

    if not _ONLY_LETTERS.fullmatch(password):
        points += 1
    if not _ONLY_DIGITS.fullmatch(password):
        points += 1

    return min(points * 100 // 10, 100)


def label(value: int) -> Strength:
    if value < 30:
        return Strength.WEAK
    if value < 60:
        return Strength.MODERATE
    if value < 80:
        return Strength.STRONG
    return Strength.VERY_STRONG


def assess(password: str) -> Tuple[int, Strength]:
    value = score(password)
    return value, label(value)
