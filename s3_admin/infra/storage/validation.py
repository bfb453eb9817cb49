"""Bucket name and object key validation.

Pure functions, safe to call from anywhere: they never raise and never touch
the network. A verdict reports the first rule the input breaks, checked in a
fixed order, so a name violating exactly one rule is always rejected with
that rule's reason.

Example:
    >>> validate_bucket_name("my..bucket").reason
    <NameRule.CONSECUTIVE_DOTS: 'consecutive_dots'>
    >>> validate_object_key("a/b/c.txt").ok
    True
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from .exceptions import InvalidNameError

BUCKET_NAME_MIN_LENGTH = 3
BUCKET_NAME_MAX_LENGTH = 63
OBJECT_KEY_MAX_LENGTH = 1024

_BUCKET_NAME_CHARS = re.compile(r"^[a-z0-9.-]+$")
_FORBIDDEN_KEY_CHARS = frozenset('<>:"|?*')


class NameRule(StrEnum):
    """Reason a bucket name or object key was rejected."""

    EMPTY = "empty"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    ILLEGAL_CHARACTER = "illegal_character"
    LEADING_OR_TRAILING_DOT = "leading_or_trailing_dot"
    CONSECUTIVE_DOTS = "consecutive_dots"
    DOT_ADJACENT_HYPHEN = "dot_adjacent_hyphen"


_BUCKET_MESSAGES = {
    NameRule.EMPTY: "Bucket name is required",
    NameRule.TOO_SHORT: "Bucket name must be between 3 and 63 characters",
    NameRule.TOO_LONG: "Bucket name must be between 3 and 63 characters",
    NameRule.ILLEGAL_CHARACTER: (
        "Bucket name can only contain lowercase letters, numbers, dots, and hyphens"
    ),
    NameRule.LEADING_OR_TRAILING_DOT: "Bucket name cannot start or end with a dot",
    NameRule.CONSECUTIVE_DOTS: "Bucket name cannot contain consecutive dots",
    NameRule.DOT_ADJACENT_HYPHEN: "Bucket name cannot contain dots adjacent to hyphens",
}

_KEY_MESSAGES = {
    NameRule.EMPTY: "Object key is required",
    NameRule.TOO_LONG: "Object key must be between 1 and 1024 characters",
    NameRule.ILLEGAL_CHARACTER: 'Object key cannot contain any of < > : " | ? *',
}


@dataclass(frozen=True, slots=True)
class NameVerdict:
    """Result of validating a bucket name or object key.

    Attributes:
        value: The validated input.
        reason: The first violated rule, or None when the input is valid.
        message: Human-readable explanation ("" when valid).
    """

    value: str | None
    reason: NameRule | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    def raise_for_invalid(self) -> None:
        """Raise InvalidNameError if the verdict is a rejection."""
        if self.reason is not None:
            raise InvalidNameError(
                self.message,
                metadata={"name": self.value, "rule": self.reason.value},
            )


def _bucket_rule(name: str | None) -> NameRule | None:
    if not name:
        return NameRule.EMPTY
    if len(name) < BUCKET_NAME_MIN_LENGTH:
        return NameRule.TOO_SHORT
    if len(name) > BUCKET_NAME_MAX_LENGTH:
        return NameRule.TOO_LONG
    if not _BUCKET_NAME_CHARS.match(name):
        return NameRule.ILLEGAL_CHARACTER
    if name.startswith(".") or name.endswith("."):
        return NameRule.LEADING_OR_TRAILING_DOT
    if ".." in name:
        return NameRule.CONSECUTIVE_DOTS
    if ".-" in name or "-." in name:
        return NameRule.DOT_ADJACENT_HYPHEN
    return None


def _key_rule(key: str | None) -> NameRule | None:
    if not key:
        return NameRule.EMPTY
    if len(key) > OBJECT_KEY_MAX_LENGTH:
        return NameRule.TOO_LONG
    if any(char in _FORBIDDEN_KEY_CHARS for char in key):
        return NameRule.ILLEGAL_CHARACTER
    return None


def validate_bucket_name(name: str | None) -> NameVerdict:
    """Validate a bucket name.

    Rules, checked in order:
        1. non-empty
        2. length between 3 and 63
        3. only lowercase letters, digits, dots and hyphens
        4. no leading or trailing dot
        5. no two consecutive dots
        6. no dot next to a hyphen (".-" or "-.")

    Args:
        name: Candidate bucket name.

    Returns:
        NameVerdict carrying the first violated rule, if any.
    """
    rule = _bucket_rule(name)
    if rule is None:
        return NameVerdict(value=name)
    return NameVerdict(value=name, reason=rule, message=_BUCKET_MESSAGES[rule])


def validate_object_key(key: str | None) -> NameVerdict:
    """Validate an object key.

    Keys are 1 to 1024 characters and may not contain any of
    ``< > : " | ? *``. Slashes are allowed and carry no special meaning.

    Args:
        key: Candidate object key.

    Returns:
        NameVerdict carrying the first violated rule, if any.
    """
    rule = _key_rule(key)
    if rule is None:
        return NameVerdict(value=key)
    return NameVerdict(value=key, reason=rule, message=_KEY_MESSAGES[rule])


def ensure_valid_bucket_name(name: str | None) -> str:
    """Return ``name`` unchanged or raise InvalidNameError."""
    validate_bucket_name(name).raise_for_invalid()
    return name  # type: ignore[return-value]


def ensure_valid_object_key(key: str | None) -> str:
    """Return ``key`` unchanged or raise InvalidNameError."""
    validate_object_key(key).raise_for_invalid()
    return key  # type: ignore[return-value]
