"""Tests for the exception hierarchy."""

import pytest

from syncdiff import (
    LastAppliedConfigError,
    MalformedSecretError,
    NormalizationError,
    SchemaDecodeError,
    SyncDiffError,
)


class TestHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize(
        "exc",
        [
            MalformedSecretError("s", "bad"),
            SchemaDecodeError("apps/Deployment", "/spec", "bad"),
            LastAppliedConfigError("d", "bad"),
        ],
    )
    def test_normalization_errors(self, exc):
        """All input errors are normalization errors."""
        assert isinstance(exc, NormalizationError)
        assert isinstance(exc, SyncDiffError)


class TestMessages:
    """Tests for exception messages and attributes."""

    def test_malformed_secret_with_key(self):
        """The key is part of the message."""
        exc = MalformedSecretError("my-secret", "not a string", key="foo")
        assert str(exc) == "Malformed secret 'my-secret/foo': not a string"
        assert exc.key == "foo"

    def test_malformed_secret_without_key(self):
        """Without a key only the name is shown."""
        exc = MalformedSecretError("my-secret", "data must be a map")
        assert str(exc) == "Malformed secret 'my-secret': data must be a map"
        assert exc.key is None

    def test_schema_decode_root_path(self):
        """An empty path is shown as the root."""
        exc = SchemaDecodeError("Secret", "", "expected object, got list")
        assert str(exc) == "Cannot decode Secret at '/': expected object, got list"

    def test_last_applied(self):
        """The resource name is shown."""
        exc = LastAppliedConfigError("demo", "record is not a JSON object")
        assert str(exc) == "Invalid last-applied configuration on 'demo': record is not a JSON object"
        assert exc.reason == "record is not a JSON object"
