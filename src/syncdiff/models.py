"""Core models for syncdiff."""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .document import parse_pointer

LAST_APPLIED_CONFIG_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"
"""Annotation on live objects holding the full previously-applied manifest as JSON."""

WILDCARD_KIND = "*"
"""Overrides key that applies to every resource kind."""

IGNORE_AGGREGATED_ROLES_ENV_VAR = "SYNCDIFF_IGNORE_AGGREGATED_ROLES"
OPTIONS_FILE_ENV_VAR = "SYNCDIFF_OPTIONS_FILE"

_TRUTHY = ("1", "true", "yes", "on")


class Role(Enum):
    """Which side of a comparison a document is normalized for."""

    CONFIG = "config"
    LIVE = "live"


Overrides = Mapping[str, frozenset[str]]


def _coerce_overrides(raw: Mapping[str, Any]) -> dict[str, frozenset[str]]:
    """
    Build an overrides mapping from loosely-typed input.

    Each value may be a list of JSON pointers or a mapping holding one under
    ``jsonPointers``.

    Raises:
        ValueError: If a value is malformed or a pointer is invalid
    """
    overrides: dict[str, frozenset[str]] = {}
    for kind, value in raw.items():
        if isinstance(value, Mapping):
            value = value.get("jsonPointers", [])
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError(f"Overrides for '{kind}' must be a list of JSON pointers")
        for pointer in value:
            if not isinstance(pointer, str):
                raise ValueError(f"Invalid JSON pointer for '{kind}': {pointer!r}")
            parse_pointer(pointer)
        overrides[str(kind)] = frozenset(value)
    return overrides


@dataclass(frozen=True)
class DiffOptions:
    """
    Options that change what a comparison considers relevant.

    Attributes:
        ignore_aggregated_roles: Don't compare the ``rules`` of roles whose
            rules are filled in by the cluster's aggregation controller
        overrides: Kind identifier (``"apps/Deployment"``, ``"Secret"`` or
            ``"*"``) to JSON pointers whose values are never compared
    """

    ignore_aggregated_roles: bool = False
    overrides: Overrides = field(default_factory=dict)

    def paths_for(self, kind_identifier: str) -> frozenset[str]:
        """Return the excluded paths for a kind, including wildcard entries."""
        return self.overrides.get(WILDCARD_KIND, frozenset()) | self.overrides.get(
            kind_identifier, frozenset()
        )

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> DiffOptions:
        """Return a copy with ``overrides`` added on top of the existing ones."""
        if not overrides:
            return self
        merged = dict(self.overrides)
        for kind, paths in _coerce_overrides(overrides).items():
            merged[kind] = merged.get(kind, frozenset()) | paths
        return replace(self, overrides=merged)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> DiffOptions:
        """
        Create options from a mapping such as a parsed YAML settings file.

        Example:
            ignoreAggregatedRoles: true
            resourceOverrides:
              apps/Deployment:
                jsonPointers: [/spec/replicas]
        """
        ignore = d.get("ignoreAggregatedRoles", False)
        if not isinstance(ignore, bool):
            raise ValueError("'ignoreAggregatedRoles' must be a boolean")
        raw_overrides = d.get("resourceOverrides") or {}
        if not isinstance(raw_overrides, Mapping):
            raise ValueError("'resourceOverrides' must be a mapping")
        return cls(ignore_aggregated_roles=ignore, overrides=_coerce_overrides(raw_overrides))

    @classmethod
    def from_yaml(cls, yaml_str: str) -> DiffOptions:
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, Mapping):
            raise ValueError("Diff options must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_environment(cls) -> DiffOptions:
        """Create DiffOptions from environment variables."""
        options_file = os.environ.get(OPTIONS_FILE_ENV_VAR)
        if options_file:
            with open(options_file) as f:
                options = cls.from_yaml(f.read())
        else:
            options = cls()
        ignore = os.environ.get(IGNORE_AGGREGATED_ROLES_ENV_VAR)
        if ignore is not None:
            options = replace(options, ignore_aggregated_roles=ignore.strip().lower() in _TRUTHY)
        return options


def get_default_diff_options() -> DiffOptions:
    """Options used when a caller doesn't provide any."""
    return DiffOptions(ignore_aggregated_roles=False)


@dataclass(frozen=True)
class DiffResult:
    """
    Outcome of comparing one config/live pair.

    Attributes:
        modified: True if syncing the config would change the live object
        predicted_live: Canonical live object as it would look after a sync
        normalized_live: Canonical live object
        normalized_config: Canonical config object
    """

    modified: bool
    predicted_live: dict[str, Any] | None = None
    normalized_live: dict[str, Any] | None = None
    normalized_config: dict[str, Any] | None = None


@dataclass(frozen=True)
class DiffResultList:
    """Per-pair results in input order, plus the aggregate verdict."""

    results: list[DiffResult] = field(default_factory=list)

    @property
    def modified(self) -> bool:
        return any(result.modified for result in self.results)

    def __iter__(self) -> Iterator[DiffResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> DiffResult:
        return self.results[index]
