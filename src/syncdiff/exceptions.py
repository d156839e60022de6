"""Exceptions for syncdiff."""

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class SyncDiffError(Exception):
    """
    Base exception for all syncdiff errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class NormalizationError(SyncDiffError):
    """
    Base exception for malformed input found while normalizing a resource.

    A comparison that raises one of these produced no result at all; the
    resource is structurally invalid rather than different.
    """

    pass


# ---------------------------------------------------------------------------
# Normalization Exceptions
# ---------------------------------------------------------------------------


class MalformedSecretError(NormalizationError):
    """
    Raised when secret data cannot be reconciled with its opaque form.

    Attributes:
        name: Name of the secret (may be empty for unnamed documents)
        key: The offending data key, if the problem is key specific
        reason: Human readable description
    """

    def __init__(self, name: str, reason: str, key: str | None = None) -> None:
        self.name = name
        self.key = key
        self.reason = reason
        target = f"{name}/{key}" if key else name
        super().__init__(f"Malformed secret '{target}': {reason}")


class SchemaDecodeError(NormalizationError):
    """
    Raised when a document cannot be decoded against its typed schema.

    Attributes:
        kind: Kind identifier of the resource (e.g. "apps/Deployment")
        path: JSON pointer of the offending value
        reason: Human readable description
    """

    def __init__(self, kind: str, path: str, reason: str) -> None:
        self.kind = kind
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot decode {kind} at '{path or '/'}': {reason}")


class LastAppliedConfigError(NormalizationError):
    """
    Raised when the previously-applied configuration record is unreadable.

    The record lives in an annotation on the live object and must hold a
    JSON object.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid last-applied configuration on '{name}': {reason}")
