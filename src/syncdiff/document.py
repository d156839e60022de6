"""Generic document model shared by normalization, patching and pruning.

Resources travel through syncdiff as plain deserialized JSON/YAML trees.
``Document`` names the closed set of variants such a tree may hold; every
helper in this module is total over those variants.
"""

from __future__ import annotations

import copy
from typing import Any, TypeAlias

Scalar: TypeAlias = str | int | float | bool | None
Document: TypeAlias = dict[str, "Document"] | list["Document"] | Scalar
Resource: TypeAlias = dict[str, Any]


def deep_copy(doc: Document) -> Document:
    """Return an independent copy of a document tree."""
    return copy.deepcopy(doc)


def documents_equal(a: Any, b: Any) -> bool:
    """
    Structural equality over document trees.

    Map key order is irrelevant, list order is significant. Booleans never
    compare equal to numbers, while ``1`` and ``1.0`` do.
    """
    if isinstance(a, dict):
        if not isinstance(b, dict) or a.keys() != b.keys():
            return False
        return all(documents_equal(value, b[key]) for key, value in a.items())
    if isinstance(a, list):
        if not isinstance(b, list) or len(a) != len(b):
            return False
        return all(documents_equal(x, y) for x, y in zip(a, b, strict=True))
    if isinstance(b, (dict, list)):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return bool(a == b)


def nested_get(doc: Any, *keys: str, default: Any = None) -> Any:
    """Follow map keys into a document, returning ``default`` if any is missing."""
    current = doc
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def nested_map(doc: Any, *keys: str) -> dict[str, Any] | None:
    """Like :func:`nested_get` but only returns map values."""
    value = nested_get(doc, *keys)
    return value if isinstance(value, dict) else None


# ---------------------------------------------------------------------------
# JSON pointers (RFC 6901)
# ---------------------------------------------------------------------------


def parse_pointer(pointer: str) -> list[str]:
    """
    Split a JSON pointer into unescaped reference tokens.

    Raises:
        ValueError: If the pointer is neither empty nor starts with "/"
    """
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return [token.replace("~1", "/").replace("~0", "~") for token in pointer[1:].split("/")]


def format_pointer(tokens: list[str]) -> str:
    """Join reference tokens back into an escaped JSON pointer."""
    return "".join("/" + token.replace("~", "~0").replace("/", "~1") for token in tokens)


def remove_path(doc: Any, tokens: list[str]) -> bool:
    """
    Delete the value addressed by ``tokens`` in place.

    List elements are addressed by decimal index. Paths that do not exist
    are ignored.

    Returns:
        True if something was removed
    """
    if not tokens:
        return False
    parent = doc
    for token in tokens[:-1]:
        parent = _step(parent, token)
        if parent is None:
            return False
    last = tokens[-1]
    if isinstance(parent, dict):
        if last in parent:
            del parent[last]
            return True
        return False
    if isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        del parent[int(last)]
        return True
    return False


def _step(node: Any, token: str) -> Any:
    if isinstance(node, dict):
        return node.get(token)
    if isinstance(node, list) and token.isdigit() and int(token) < len(node):
        return node[int(token)]
    return None


# ---------------------------------------------------------------------------
# Presence pruning
# ---------------------------------------------------------------------------


def prune_to(doc: Any, shape: Any) -> Any:
    """
    Project ``doc`` onto the key tree of ``shape``.

    At every node where both sides are maps only the keys that also exist in
    ``shape`` are kept. Below that, lists and scalars are kept whole so they
    compare by full structural equality.
    """
    if isinstance(doc, dict) and isinstance(shape, dict):
        return {key: prune_to(value, shape[key]) for key, value in doc.items() if key in shape}
    return doc


def merge_shapes(a: Any, b: Any) -> Any:
    """
    Union of two key trees, for use as a :func:`prune_to` shape.

    Where either side is not a map the result keeps whole subtrees.
    """
    if isinstance(a, dict) and isinstance(b, dict):
        merged = dict(a)
        for key, value in b.items():
            merged[key] = merge_shapes(a[key], value) if key in a else value
        return merged
    return b if isinstance(a, dict) else a
