"""Canonical form normalization.

Turns a raw resource into a form that compares structurally against its
counterpart: identity noise is stripped, equivalent encodings are unified
and fields the diff must never see are removed.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from .document import deep_copy, nested_map, parse_pointer, remove_path
from .exceptions import MalformedSecretError
from .manifest import kind_identifier, resource_name
from .models import DiffOptions, Role, get_default_diff_options
from .schema import DEFAULT_REGISTRY, SchemaRegistry, split_api_version

logger = logging.getLogger(__name__)

RBAC_GROUP = "rbac.authorization.k8s.io"
AGGREGATION_RULE_FIELD = "aggregationRule"


def normalize(
    resource: dict[str, Any],
    role: Role,
    options: DiffOptions | None = None,
    registry: SchemaRegistry | None = None,
) -> dict[str, Any]:
    """
    Return the canonical form of ``resource``.

    The input is left untouched. Steps run in this order: namespace erasure,
    null creation timestamp removal, secret ``stringData`` folding, typed
    round-trip, aggregated-role rule suppression, override path removal.

    Args:
        resource: Raw resource document
        role: Whether this is the desired (config) or observed (live) side
        options: Diff options (defaults if omitted)
        registry: Typed-schema registry (built-in kinds if omitted)

    Raises:
        MalformedSecretError: If secret data cannot be folded
        SchemaDecodeError: If a registered kind fails to decode
    """
    options = options or get_default_diff_options()
    registry = registry or DEFAULT_REGISTRY

    result = deep_copy(resource)
    api_version, kind = result.get("apiVersion"), result.get("kind")

    # Namespace is identity, which the caller has already matched on
    if role is Role.CONFIG or registry.is_cluster_scoped(api_version, kind):
        remove_namespace_annotation(result)

    remove_null_creation_timestamp(result)

    if is_secret(result):
        fold_string_data(result)

    result = registry.round_trip(result)

    if options.ignore_aggregated_roles and is_aggregated_role(result):
        logger.debug("Ignoring rules of aggregated role %s", resource_name(result))
        result.pop("rules", None)

    # Highest list indices first, a deleted element shifts the ones after it
    paths = [parse_pointer(pointer) for pointer in options.paths_for(kind_identifier(result))]
    for tokens in sorted(paths, key=_removal_key, reverse=True):
        remove_path(result, tokens)

    return result


def remove_namespace_annotation(resource: dict[str, Any]) -> dict[str, Any]:
    """
    Clear ``metadata.namespace`` and drop empty annotations (in place).

    A null or empty annotations map must not register as a difference
    against an absent one.
    """
    metadata = nested_map(resource, "metadata")
    if metadata is None:
        return resource
    metadata.pop("namespace", None)
    if "annotations" in metadata and not metadata["annotations"]:
        del metadata["annotations"]
    return resource


def remove_null_creation_timestamp(resource: dict[str, Any]) -> dict[str, Any]:
    """Drop ``metadata.creationTimestamp: null`` as written by exported manifests (in place)."""
    metadata = nested_map(resource, "metadata")
    if metadata is not None and "creationTimestamp" in metadata:
        if metadata["creationTimestamp"] is None:
            del metadata["creationTimestamp"]
    return resource


def is_secret(resource: dict[str, Any]) -> bool:
    group, _ = split_api_version(resource.get("apiVersion"))
    return group == "" and resource.get("kind") == "Secret"


def fold_string_data(resource: dict[str, Any]) -> dict[str, Any]:
    """
    Merge a secret's plaintext ``stringData`` into base64 ``data`` (in place).

    Plaintext wins on key collisions, mirroring how the cluster applies it.

    Raises:
        MalformedSecretError: If ``stringData``/``data`` isn't a map, or a
            plaintext value isn't a string
    """
    if "stringData" not in resource:
        return resource
    name = resource_name(resource)
    string_data = resource.pop("stringData")
    if string_data is None:
        return resource
    if not isinstance(string_data, dict):
        raise MalformedSecretError(name, "stringData must be a map")

    data = resource.get("data")
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise MalformedSecretError(name, "data must be a map")

    for key, value in string_data.items():
        if not isinstance(value, str):
            raise MalformedSecretError(
                name, f"stringData value must be a string, got {type(value).__name__}", key=key
            )
        data[key] = base64.b64encode(value.encode("utf-8")).decode("ascii")
    resource["data"] = data
    return resource


def is_aggregated_role(resource: dict[str, Any]) -> bool:
    """True for roles whose rules are filled in by the aggregation controller."""
    group, _ = split_api_version(resource.get("apiVersion"))
    if group != RBAC_GROUP or resource.get("kind") not in ("ClusterRole", "Role"):
        return False
    return resource.get(AGGREGATION_RULE_FIELD) is not None


def _removal_key(tokens: list[str]) -> list[tuple[int, int | str]]:
    return [(0, int(token)) if token.isdigit() else (1, token) for token in tokens]
