"""Unit tests for bucket name and object key validation."""

import pytest

from s3_admin.infra.storage.exceptions import InvalidNameError
from s3_admin.infra.storage.validation import (
    NameRule,
    ensure_valid_bucket_name,
    ensure_valid_object_key,
    validate_bucket_name,
    validate_object_key,
)


class TestBucketNameValidation:
    """Test the ordered bucket naming rules."""

    @pytest.mark.parametrize(
        "name",
        ["abc", "valid-bucket.name", "my-bucket-2024", "a" * 63, "1.2.3", "a-b-c"],
    )
    def test_accepts_valid_names(self, name: str):
        """Test that names satisfying every rule are accepted."""
        verdict = validate_bucket_name(name)

        assert verdict.ok
        assert verdict.reason is None
        assert verdict.message == ""

    @pytest.mark.parametrize(
        ("name", "rule"),
        [
            ("", NameRule.EMPTY),
            (None, NameRule.EMPTY),
            ("ab", NameRule.TOO_SHORT),
            ("a" * 64, NameRule.TOO_LONG),
            ("My-Bucket", NameRule.ILLEGAL_CHARACTER),
            ("my_bucket", NameRule.ILLEGAL_CHARACTER),
            ("my bucket", NameRule.ILLEGAL_CHARACTER),
            (".bucket", NameRule.LEADING_OR_TRAILING_DOT),
            ("bucket.", NameRule.LEADING_OR_TRAILING_DOT),
            ("my..bucket", NameRule.CONSECUTIVE_DOTS),
            ("my.-bucket", NameRule.DOT_ADJACENT_HYPHEN),
            ("my-.bucket", NameRule.DOT_ADJACENT_HYPHEN),
        ],
    )
    def test_rejects_single_rule_violation(self, name: str | None, rule: NameRule):
        """Test that a name breaking exactly one rule reports that rule."""
        verdict = validate_bucket_name(name)

        assert not verdict.ok
        assert verdict.reason is rule
        assert verdict.message

    def test_too_short_message(self):
        """Test the length message for a two-character name."""
        verdict = validate_bucket_name("ab")

        assert verdict.message == "Bucket name must be between 3 and 63 characters"

    def test_consecutive_dots_message(self):
        """Test the consecutive dots message."""
        verdict = validate_bucket_name("my..bucket")

        assert verdict.message == "Bucket name cannot contain consecutive dots"

    def test_length_checked_before_characters(self):
        """Test that rule order reports length before illegal characters."""
        assert validate_bucket_name("A_").reason is NameRule.TOO_SHORT

    def test_ensure_valid_returns_name(self):
        """Test that ensure_valid_bucket_name passes valid names through."""
        assert ensure_valid_bucket_name("reports") == "reports"

    def test_ensure_valid_raises_invalid_name(self):
        """Test that ensure_valid_bucket_name raises InvalidNameError with the rule."""
        with pytest.raises(InvalidNameError) as exc_info:
            ensure_valid_bucket_name("my..bucket")

        assert exc_info.value.status_code == 400
        assert exc_info.value.extra["rule"] == "consecutive_dots"
        assert exc_info.value.extra["name"] == "my..bucket"


class TestObjectKeyValidation:
    """Test object key rules."""

    @pytest.mark.parametrize("key", ["a/b/c.txt", "file.pdf", "x", "k" * 1024, "with space.txt"])
    def test_accepts_valid_keys(self, key: str):
        """Test that ordinary keys, including slashes, are accepted."""
        assert validate_object_key(key).ok

    @pytest.mark.parametrize("char", list('<>:"|?*'))
    def test_rejects_forbidden_characters(self, char: str):
        """Test that every forbidden character is rejected."""
        verdict = validate_object_key(f"bad{char}key")

        assert verdict.reason is NameRule.ILLEGAL_CHARACTER

    def test_rejects_pipe(self):
        """Test the documented bad|key example."""
        assert not validate_object_key("bad|key").ok

    def test_rejects_empty_key(self):
        """Test that an empty key is rejected."""
        assert validate_object_key("").reason is NameRule.EMPTY

    def test_rejects_overlong_key(self):
        """Test that keys over 1024 characters are rejected."""
        assert validate_object_key("k" * 1025).reason is NameRule.TOO_LONG

    def test_ensure_valid_object_key_raises(self):
        """Test that ensure_valid_object_key raises InvalidNameError."""
        with pytest.raises(InvalidNameError):
            ensure_valid_object_key("bad|key")
