import secrets, string
from typing import List

from .errors import LengthTooShort
from .models import PasswordPolicy

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()_-+=<>?/"
DEFAULT_ALPHABET = LOWERCASE + DIGITS

# Worst realistic case (length 4, all four classes) succeeds ~7% per draw.
MAX_ATTEMPTS = 1000


def enabled_classes(policy: PasswordPolicy) -> List[str]:
    """Return the character classes switched on by `policy`, in a fixed order."""
    classes = []
    if policy.include_uppercase:
        classes.append(UPPERCASE)
    if policy.include_lowercase:
        classes.append(LOWERCASE)
    if policy.include_numbers:
        classes.append(DIGITS)
    if policy.include_symbols:
        classes.append(SYMBOLS)
    return classes


def _covers(candidate: str, classes: List[str]) -> bool:
    return all(any(ch in cls for ch in candidate) for cls in classes)


def generate(policy: PasswordPolicy) -> str:
    """Draw `policy.length` characters from the enabled classes using the OS CSPRNG.

    Every enabled class appears at least once. With no class enabled the
    lowercase+digits alphabet is used instead of failing.
    """
    classes = enabled_classes(policy)
    if policy.length < len(classes):
        raise LengthTooShort(
            f"length {policy.length} cannot hold one character from each of {len(classes)} enabled classes"
        )
    alphabet = "".join(classes) or DEFAULT_ALPHABET
    for _ in range(MAX_ATTEMPTS):
        candidate = "".join(secrets.choice(alphabet) for _ in range(policy.length))
        if _covers(candidate, classes):
            return candidate
    raise LengthTooShort(f"no password satisfying the policy after {MAX_ATTEMPTS} attempts")
