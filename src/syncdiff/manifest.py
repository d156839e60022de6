"""Resource manifest helpers: loading, identity and the last-applied record."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import yaml

from .document import nested_map
from .exceptions import LastAppliedConfigError
from .models import LAST_APPLIED_CONFIG_ANNOTATION
from .schema import split_api_version


@dataclass(frozen=True)
class ResourceKey:
    """Identity of a resource, used by callers to pair config and live objects."""

    group: str
    kind: str
    namespace: str
    name: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> ResourceKey:
        group, _ = split_api_version(resource.get("apiVersion"))
        metadata = nested_map(resource, "metadata") or {}
        return cls(
            group=group,
            kind=resource.get("kind") or "",
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name") or "",
        )

    def __str__(self) -> str:
        kind = f"{self.group}/{self.kind}" if self.group else self.kind
        if self.namespace:
            return f"{kind} {self.namespace}/{self.name}"
        return f"{kind} {self.name}"


def kind_identifier(resource: dict[str, Any]) -> str:
    """Return ``"<group>/<Kind>"``, or just ``"<Kind>"`` for the core group."""
    group, _ = split_api_version(resource.get("apiVersion"))
    kind = resource.get("kind") or ""
    return f"{group}/{kind}" if group else kind


def resource_name(resource: dict[str, Any] | None) -> str:
    if resource is None:
        return ""
    return (nested_map(resource, "metadata") or {}).get("name") or ""


def load_documents(text: str) -> list[dict[str, Any]]:
    """
    Parse a multi-document YAML (or JSON) stream into resources.

    Empty documents are skipped and ``kind: List`` documents are expanded
    into their items, preserving order.

    Raises:
        ValueError: If a document is not a mapping
    """
    resources: list[dict[str, Any]] = []
    for doc in yaml.safe_load_all(text):
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise ValueError(f"Resource documents must be mappings, got {type(doc).__name__}")
        if doc.get("kind") == "List" and isinstance(doc.get("items"), list):
            for item in doc["items"]:
                if not isinstance(item, dict):
                    raise ValueError("List items must be mappings")
                resources.append(item)
        else:
            resources.append(doc)
    return resources


def get_last_applied_configuration(live: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Decode the previously-applied manifest recorded on a live object.

    Returns:
        The prior manifest, or None if the annotation is absent

    Raises:
        LastAppliedConfigError: If the annotation is not a JSON object
    """
    if live is None:
        return None
    annotations = nested_map(live, "metadata", "annotations") or {}
    raw = annotations.get(LAST_APPLIED_CONFIG_ANNOTATION)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise LastAppliedConfigError(resource_name(live), "annotation value is not a string")
    try:
        prior = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LastAppliedConfigError(resource_name(live), str(e)) from e
    if not isinstance(prior, dict):
        raise LastAppliedConfigError(resource_name(live), "record is not a JSON object")
    return prior


def set_last_applied_configuration(resource: dict[str, Any], prior: dict[str, Any]) -> None:
    """Embed ``prior`` as the last-applied record of ``resource`` (in place)."""
    metadata = resource.setdefault("metadata", {})
    annotations = metadata.get("annotations")
    if not isinstance(annotations, dict):
        annotations = metadata["annotations"] = {}
    annotations[LAST_APPLIED_CONFIG_ANNOTATION] = json.dumps(prior, separators=(",", ":"))
