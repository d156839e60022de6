"""JSON merge-patch computation and application.

A merge patch mirrors the shape of its target. A key set to ``None`` deletes
that key, a nested map patches recursively and anything else replaces the
value wholesale. Lists are always replaced atomically.

``None`` can't mean "set this field to null": a legitimately null field is
indistinguishable from a deletion. Route such fields through diff option
overrides instead.
"""

from __future__ import annotations

from typing import Any

from .document import deep_copy, documents_equal


def compute_patch(from_doc: dict[str, Any], to_doc: dict[str, Any]) -> dict[str, Any]:
    """
    Compute the merge patch that turns ``from_doc`` into ``to_doc``.

    Keys equal on both sides are omitted, so patching two equal documents
    yields an empty patch.
    """
    patch: dict[str, Any] = {}
    for key in from_doc:
        if key not in to_doc:
            patch[key] = None
    for key, value in to_doc.items():
        if key not in from_doc:
            patch[key] = deep_copy(value)
            continue
        previous = from_doc[key]
        if documents_equal(previous, value):
            continue
        if isinstance(previous, dict) and isinstance(value, dict):
            patch[key] = compute_patch(previous, value)
        else:
            patch[key] = deep_copy(value)
    return patch


def apply_patch(target: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """
    Apply a merge patch to ``target`` and return the result.

    ``target`` is not modified. A sub-patch landing on a missing or non-map
    value is applied to an empty map, so the result never contains ``None``
    deletion markers.
    """
    result = deep_copy(target)
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict):
            current = result.get(key)
            result[key] = apply_patch(current if isinstance(current, dict) else {}, value)
        else:
            result[key] = deep_copy(value)
    return result
