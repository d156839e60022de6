"""Secret value redaction for human-facing diffs.

Replaces every secret value with a placeholder of ``+`` characters. Within
one key, equal values share a placeholder and unequal values get different
ones (8, 12, then 16 characters, in order of first appearance), so a diff
still shows *whether* values differ without revealing them.
"""

from __future__ import annotations

from typing import Any

from .document import deep_copy
from .exceptions import MalformedSecretError
from .manifest import (
    get_last_applied_configuration,
    resource_name,
    set_last_applied_configuration,
)
from .normalizer import fold_string_data

PLACEHOLDER_CHAR = "+"
PLACEHOLDER_LENGTHS = (8, 12, 16)


def hide_secret_data(
    target: dict[str, Any] | None,
    live: dict[str, Any] | None,
) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """
    Return redacted copies of a target secret and its live counterpart.

    Values are scanned per key in source order: target, live, then the
    last-applied record embedded in ``live``. The redacted record replaces
    the original annotation in the returned live object. Plaintext
    ``stringData`` is folded into ``data`` first so it is never shown.

    Raises:
        MalformedSecretError: If any source's data isn't a map
        LastAppliedConfigError: If the last-applied record is unreadable
    """
    prior = get_last_applied_configuration(live)
    target = deep_copy(target) if target is not None else None
    live = deep_copy(live) if live is not None else None

    sources = [obj for obj in (target, live, prior) if obj is not None]
    datas = [_secret_data(obj) for obj in sources]

    # key -> ordered list of (value, placeholder)
    assignments: dict[str, list[tuple[Any, str]]] = {}
    for data in datas:
        for key, value in data.items():
            seen = assignments.setdefault(key, [])
            placeholder = next((p for v, p in seen if _same_value(v, value)), None)
            if placeholder is None:
                placeholder = _placeholder(len(seen))
                seen.append((value, placeholder))
            data[key] = placeholder

    for obj, data in zip(sources, datas, strict=True):
        if data or "data" in obj:
            obj["data"] = data

    if live is not None and prior is not None:
        set_last_applied_configuration(live, prior)
    return target, live


def _secret_data(resource: dict[str, Any]) -> dict[str, Any]:
    fold_string_data(resource)
    data = resource.get("data")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedSecretError(resource_name(resource), "data must be a map")
    return data


def _same_value(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


def _placeholder(rank: int) -> str:
    # Three sources means at most three distinct values per key
    length = PLACEHOLDER_LENGTHS[min(rank, len(PLACEHOLDER_LENGTHS) - 1)]
    return PLACEHOLDER_CHAR * length
