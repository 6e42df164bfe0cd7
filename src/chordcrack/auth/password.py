"""Password and username heuristics shown on the sign-up form."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

MIN_LENGTH = 8
STRONG_LENGTH = 12
SPECIAL_CHARACTERS = frozenset("!@#$%^&*()_+-=[]{}|;:,.<>?")

USERNAME_MIN = 3
USERNAME_MAX = 20

COMMON_PASSWORDS = frozenset(
    {
        "password", "123456", "123456789", "12345678", "12345",
        "1234567", "1234567890", "qwerty", "abc123", "million",
        "password1", "123123", "admin", "welcome", "login",
    }
)

STRENGTH_LABELS = ("Very Weak", "Weak", "Fair", "Good", "Strong", "Very Strong", "Excellent")


class PasswordProblem(str, Enum):
    TOO_SHORT = "too_short"
    COMMON_PASSWORD = "common_password"
    MISSING_UPPERCASE = "missing_uppercase"
    MISSING_LOWERCASE = "missing_lowercase"
    MISSING_NUMBER = "missing_number"
    MISSING_SPECIAL = "missing_special"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    PasswordProblem.TOO_SHORT: f"Password must be at least {MIN_LENGTH} characters long",
    PasswordProblem.COMMON_PASSWORD: "Please choose a less common password",
    PasswordProblem.MISSING_UPPERCASE: "Password must contain at least one uppercase letter",
    PasswordProblem.MISSING_LOWERCASE: "Password must contain at least one lowercase letter",
    PasswordProblem.MISSING_NUMBER: "Password must contain at least one number",
    PasswordProblem.MISSING_SPECIAL: "Password must contain at least one special character (!@#$%^&*)",
}


@dataclass(frozen=True)
class PasswordCheck:
    problem: PasswordProblem | None = None

    @property
    def is_valid(self) -> bool:
        return self.problem is None

    @property
    def message(self) -> str:
        return self.problem.message if self.problem else ""


def _has_special(password: str) -> bool:
    return any(ch in SPECIAL_CHARACTERS for ch in password)


def validate_password(password: str) -> PasswordCheck:
    """Return the first problem with ``password``, or a valid check.

    The common-password list is consulted right after the length check so
    that ``"password"`` is reported as common rather than as missing an
    uppercase letter.
    """
    if len(password) < MIN_LENGTH:
        return PasswordCheck(PasswordProblem.TOO_SHORT)
    if password.lower() in COMMON_PASSWORDS:
        return PasswordCheck(PasswordProblem.COMMON_PASSWORD)
    if not any(ch.isupper() for ch in password):
        return PasswordCheck(PasswordProblem.MISSING_UPPERCASE)
    if not any(ch.islower() for ch in password):
        return PasswordCheck(PasswordProblem.MISSING_LOWERCASE)
    if not any(ch.isdigit() for ch in password):
        return PasswordCheck(PasswordProblem.MISSING_NUMBER)
    if not _has_special(password):
        return PasswordCheck(PasswordProblem.MISSING_SPECIAL)
    return PasswordCheck()


def strength_score(password: str) -> Tuple[int, str]:
    """Score 0..6, one point per satisfied criterion, with its label."""
    criteria = (
        len(password) >= MIN_LENGTH,
        len(password) >= STRONG_LENGTH,
        any(ch.isupper() for ch in password),
        any(ch.islower() for ch in password),
        any(ch.isdigit() for ch in password),
        _has_special(password),
    )
    score = sum(criteria)
    return score, STRENGTH_LABELS[score]


def is_valid_username(username: str) -> bool:
    """3-20 characters of letters, digits, underscore or hyphen."""
    name = username.strip()
    return USERNAME_MIN <= len(name) <= USERNAME_MAX and all(
        ch.isalnum() or ch in "_-" for ch in name
    )
