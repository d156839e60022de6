"""Typed-schema registry used for round-trip canonicalization.

A registered kind maps to a :class:`KindSchema`, a decode/encode capability
pair built from declarative field specs. Decoding validates a raw document
against the declared field types and converts values into typed Python
objects; encoding writes them back in canonical form, dropping fields that
are indistinguishable from their zero value. Kinds without an entry are
treated as opaque documents.

Only the fields that matter for canonicalization are declared. Anything not
declared passes through both directions untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .exceptions import SchemaDecodeError
from .quantity import Quantity

logger = logging.getLogger(__name__)


class FieldDecodeError(ValueError):
    """A value does not match its declared field type."""

    def __init__(self, path: list[str], reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(reason)


def _is_zero(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, dict)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


# ---------------------------------------------------------------------------
# Field specs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """
    Base field spec: an untyped value kept as-is.

    Attributes:
        omitempty: Drop the field on encode when it holds its zero value.
            Optional ("pointer") fields set this to False so an explicit
            ``0``/``false``/``{}`` survives; ``null`` is always dropped.
    """

    omitempty: bool = False

    def decode(self, raw: Any, path: list[str]) -> Any:
        return raw

    def encode(self, value: Any) -> Any:
        return value


@dataclass(frozen=True)
class Str(FieldSpec):
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None or isinstance(raw, str):
            return raw
        raise FieldDecodeError(path, f"expected string, got {_type_name(raw)}")


@dataclass(frozen=True)
class Int(FieldSpec):
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None:
            return None
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        # JSON decoders may hand integral numbers over as floats
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
        raise FieldDecodeError(path, f"expected integer, got {_type_name(raw)}")


@dataclass(frozen=True)
class Bool(FieldSpec):
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None or isinstance(raw, bool):
            return raw
        raise FieldDecodeError(path, f"expected boolean, got {_type_name(raw)}")


@dataclass(frozen=True)
class IntOrString(FieldSpec):
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if isinstance(raw, str):
            return raw
        return Int().decode(raw, path)


@dataclass(frozen=True)
class QuantityValue(FieldSpec):
    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None:
            return None
        try:
            return Quantity.parse(raw)
        except ValueError as e:
            raise FieldDecodeError(path, str(e)) from e

    def encode(self, value: Any) -> Any:
        return value.canonical() if isinstance(value, Quantity) else value


@dataclass(frozen=True)
class Time(FieldSpec):
    """RFC 3339 timestamp, written back in UTC with second precision."""

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None or isinstance(raw, datetime):
            return raw
        if isinstance(raw, str):
            try:
                return datetime.fromisoformat(raw)
            except ValueError as e:
                raise FieldDecodeError(path, f"invalid timestamp {raw!r}") from e
        raise FieldDecodeError(path, f"expected timestamp, got {_type_name(raw)}")

    def encode(self, value: Any) -> Any:
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class ListOf(FieldSpec):
    item: FieldSpec = field(default_factory=FieldSpec)
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise FieldDecodeError(path, f"expected list, got {_type_name(raw)}")
        return [self.item.decode(value, [*path, str(i)]) for i, value in enumerate(raw)]

    def encode(self, value: Any) -> Any:
        if value is None:
            return None
        return [self.item.encode(item) for item in value]


@dataclass(frozen=True)
class MapOf(FieldSpec):
    value: FieldSpec = field(default_factory=FieldSpec)
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise FieldDecodeError(path, f"expected map, got {_type_name(raw)}")
        return {key: self.value.decode(item, [*path, str(key)]) for key, item in raw.items()}

    def encode(self, value: Any) -> Any:
        if value is None:
            return None
        return {key: self.value.encode(item) for key, item in value.items()}


@dataclass(frozen=True)
class Obj(FieldSpec):
    """A structured object with declared fields; undeclared keys pass through."""

    fields: dict[str, FieldSpec] = field(default_factory=dict)
    omitempty: bool = True

    def decode(self, raw: Any, path: list[str]) -> Any:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise FieldDecodeError(path, f"expected object, got {_type_name(raw)}")
        decoded = {}
        for key, value in raw.items():
            spec = self.fields.get(key)
            decoded[key] = spec.decode(value, [*path, key]) if spec is not None else value
        return decoded

    def encode(self, value: Any) -> Any:
        if value is None:
            return None
        encoded = {}
        for key, item in value.items():
            spec = self.fields.get(key)
            if spec is None:
                encoded[key] = item
                continue
            out = spec.encode(item)
            if out is None or (spec.omitempty and _is_zero(out)):
                continue
            encoded[key] = out
        return encoded


# ---------------------------------------------------------------------------
# Kind schemas and registry
# ---------------------------------------------------------------------------


def split_api_version(api_version: str | None) -> tuple[str, str]:
    """Split ``apps/v1`` into ``("apps", "v1")``; the core group is ``""``."""
    if not api_version:
        return "", ""
    group, _, version = api_version.rpartition("/")
    return group, version


@dataclass(frozen=True)
class KindSchema:
    """Decode/encode capability for one resource kind."""

    group: str
    kind: str
    root: Obj
    namespaced: bool = True

    @property
    def identifier(self) -> str:
        return f"{self.group}/{self.kind}" if self.group else self.kind

    def decode(self, resource: dict[str, Any]) -> dict[str, Any]:
        """
        Decode a raw resource into typed values.

        Raises:
            SchemaDecodeError: If a declared field has the wrong type
        """
        try:
            return self.root.decode(resource, [])
        except FieldDecodeError as e:
            path = "".join(f"/{token}" for token in e.path)
            raise SchemaDecodeError(self.identifier, path, e.reason) from e

    def encode(self, decoded: dict[str, Any]) -> dict[str, Any]:
        """Encode typed values back into a canonical document."""
        return self.root.encode(decoded)

    def round_trip(self, resource: dict[str, Any]) -> dict[str, Any]:
        return self.encode(self.decode(resource))


class SchemaRegistry:
    """Lookup from (group, kind) to a :class:`KindSchema`."""

    def __init__(self, schemas: list[KindSchema] | None = None) -> None:
        self._schemas: dict[tuple[str, str], KindSchema] = {}
        for schema in schemas or []:
            self.register(schema)

    def register(self, schema: KindSchema) -> None:
        self._schemas[(schema.group, schema.kind)] = schema

    def lookup(self, api_version: str | None, kind: str | None) -> KindSchema | None:
        group, _ = split_api_version(api_version)
        return self._schemas.get((group, kind or ""))

    def is_cluster_scoped(self, api_version: str | None, kind: str | None) -> bool:
        """True only for registered kinds declared without namespace semantics."""
        schema = self.lookup(api_version, kind)
        return schema is not None and not schema.namespaced

    def round_trip(self, resource: dict[str, Any]) -> dict[str, Any]:
        """
        Canonicalize ``resource`` through its registered schema.

        Unregistered kinds are returned unchanged.
        """
        schema = self.lookup(resource.get("apiVersion"), resource.get("kind"))
        if schema is None:
            return resource
        logger.debug("Round-tripping %s through typed schema", schema.identifier)
        return schema.round_trip(resource)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


# ---------------------------------------------------------------------------
# Built-in kinds
# ---------------------------------------------------------------------------

STRING_LIST = ListOf(item=Str())
STRING_MAP = MapOf(value=Str())
POINTER_INT = Int(omitempty=False)
POINTER_BOOL = Bool(omitempty=False)

OBJECT_META = Obj(
    fields={
        "name": Str(),
        "generateName": Str(),
        "namespace": Str(),
        "selfLink": Str(),
        "uid": Str(),
        "resourceVersion": Str(),
        "generation": Int(),
        "creationTimestamp": Time(),
        "deletionTimestamp": Time(),
        "deletionGracePeriodSeconds": POINTER_INT,
        "labels": STRING_MAP,
        "annotations": STRING_MAP,
        "ownerReferences": ListOf(),
        "finalizers": STRING_LIST,
        "managedFields": ListOf(),
    }
)

LABEL_SELECTOR = Obj(
    fields={
        "matchLabels": STRING_MAP,
        "matchExpressions": ListOf(
            item=Obj(fields={"key": Str(), "operator": Str(), "values": STRING_LIST})
        ),
    }
)

RESOURCE_REQUIREMENTS = Obj(
    fields={
        "limits": MapOf(value=QuantityValue()),
        "requests": MapOf(value=QuantityValue()),
    }
)

LOCAL_OBJECT_REFERENCE = Obj(fields={"name": Str()})

CONTAINER = Obj(
    fields={
        "name": Str(),
        "image": Str(),
        "command": STRING_LIST,
        "args": STRING_LIST,
        "workingDir": Str(),
        "ports": ListOf(
            item=Obj(
                fields={
                    "name": Str(),
                    "hostPort": Int(),
                    "containerPort": Int(),
                    "protocol": Str(),
                    "hostIP": Str(),
                }
            )
        ),
        "env": ListOf(item=Obj(fields={"name": Str(), "value": Str()})),
        "envFrom": ListOf(),
        "resources": RESOURCE_REQUIREMENTS,
        "volumeMounts": ListOf(),
        "imagePullPolicy": Str(),
        "terminationMessagePath": Str(),
        "terminationMessagePolicy": Str(),
        "stdin": Bool(),
        "tty": Bool(),
    }
)

POD_SPEC = Obj(
    fields={
        "containers": ListOf(item=CONTAINER),
        "initContainers": ListOf(item=CONTAINER),
        "volumes": ListOf(),
        "restartPolicy": Str(),
        "terminationGracePeriodSeconds": POINTER_INT,
        "activeDeadlineSeconds": POINTER_INT,
        "dnsPolicy": Str(),
        "nodeSelector": STRING_MAP,
        "serviceAccountName": Str(),
        "serviceAccount": Str(),
        "automountServiceAccountToken": POINTER_BOOL,
        "nodeName": Str(),
        "hostNetwork": Bool(),
        "hostPID": Bool(),
        "hostIPC": Bool(),
        "imagePullSecrets": ListOf(item=LOCAL_OBJECT_REFERENCE),
        "hostname": Str(),
        "subdomain": Str(),
        "tolerations": ListOf(),
        "schedulerName": Str(),
        "priorityClassName": Str(),
        "priority": POINTER_INT,
    }
)

POD_TEMPLATE_SPEC = Obj(fields={"metadata": OBJECT_META, "spec": POD_SPEC})

TYPE_META = {"apiVersion": Str(), "kind": Str(), "metadata": OBJECT_META}


def _workload(**spec_fields: FieldSpec) -> Obj:
    spec = Obj(
        fields={
            "selector": Obj(fields=LABEL_SELECTOR.fields, omitempty=False),
            "template": POD_TEMPLATE_SPEC,
            "minReadySeconds": Int(),
            "revisionHistoryLimit": POINTER_INT,
            **spec_fields,
        }
    )
    return Obj(fields={**TYPE_META, "spec": spec})


POLICY_RULE = Obj(
    fields={
        "verbs": STRING_LIST,
        "apiGroups": STRING_LIST,
        "resources": STRING_LIST,
        "resourceNames": STRING_LIST,
        "nonResourceURLs": STRING_LIST,
    }
)

SUBJECT = Obj(fields={"kind": Str(), "apiGroup": Str(), "name": Str(), "namespace": Str()})
ROLE_REF = Obj(fields={"apiGroup": Str(), "kind": Str(), "name": Str()})

BUILTIN_SCHEMAS = [
    KindSchema(
        group="",
        kind="Pod",
        root=Obj(fields={**TYPE_META, "spec": POD_SPEC}),
    ),
    KindSchema(
        group="",
        kind="Service",
        root=Obj(
            fields={
                **TYPE_META,
                "spec": Obj(
                    fields={
                        "ports": ListOf(
                            item=Obj(
                                fields={
                                    "name": Str(),
                                    "protocol": Str(),
                                    "port": Int(),
                                    "targetPort": IntOrString(),
                                    "nodePort": Int(),
                                }
                            )
                        ),
                        "selector": STRING_MAP,
                        "clusterIP": Str(),
                        "type": Str(),
                        "externalIPs": STRING_LIST,
                        "sessionAffinity": Str(),
                        "loadBalancerIP": Str(),
                        "externalName": Str(),
                        "externalTrafficPolicy": Str(),
                    }
                ),
            }
        ),
    ),
    KindSchema(
        group="",
        kind="ServiceAccount",
        root=Obj(
            fields={
                **TYPE_META,
                "secrets": ListOf(),
                "imagePullSecrets": ListOf(item=LOCAL_OBJECT_REFERENCE),
                "automountServiceAccountToken": POINTER_BOOL,
            }
        ),
    ),
    KindSchema(
        group="",
        kind="Secret",
        root=Obj(
            fields={
                **TYPE_META,
                "data": STRING_MAP,
                "stringData": STRING_MAP,
                "type": Str(),
                "immutable": POINTER_BOOL,
            }
        ),
    ),
    KindSchema(
        group="",
        kind="ConfigMap",
        root=Obj(
            fields={
                **TYPE_META,
                "data": STRING_MAP,
                "binaryData": STRING_MAP,
                "immutable": POINTER_BOOL,
            }
        ),
    ),
    KindSchema(
        group="",
        kind="Namespace",
        root=Obj(fields={**TYPE_META, "spec": Obj(fields={"finalizers": STRING_LIST})}),
        namespaced=False,
    ),
    KindSchema(
        group="",
        kind="PersistentVolume",
        root=Obj(
            fields={
                **TYPE_META,
                "spec": Obj(
                    fields={
                        "capacity": MapOf(value=QuantityValue()),
                        "accessModes": STRING_LIST,
                        "persistentVolumeReclaimPolicy": Str(),
                        "storageClassName": Str(),
                        "mountOptions": STRING_LIST,
                        "volumeMode": Str(),
                    }
                ),
            }
        ),
        namespaced=False,
    ),
    KindSchema(
        group="apps",
        kind="Deployment",
        root=_workload(
            replicas=POINTER_INT,
            strategy=FieldSpec(),
            paused=Bool(),
            progressDeadlineSeconds=POINTER_INT,
        ),
    ),
    KindSchema(
        group="apps",
        kind="StatefulSet",
        root=_workload(
            replicas=POINTER_INT,
            serviceName=Str(),
            podManagementPolicy=Str(),
            updateStrategy=FieldSpec(),
            volumeClaimTemplates=ListOf(),
        ),
    ),
    KindSchema(
        group="apps",
        kind="DaemonSet",
        root=_workload(updateStrategy=FieldSpec()),
    ),
    KindSchema(
        group="apps",
        kind="ReplicaSet",
        root=_workload(replicas=POINTER_INT),
    ),
    KindSchema(
        group="batch",
        kind="Job",
        root=_workload(
            parallelism=POINTER_INT,
            completions=POINTER_INT,
            backoffLimit=POINTER_INT,
            activeDeadlineSeconds=POINTER_INT,
            ttlSecondsAfterFinished=POINTER_INT,
            manualSelector=POINTER_BOOL,
        ),
    ),
    KindSchema(
        group="rbac.authorization.k8s.io",
        kind="Role",
        root=Obj(fields={**TYPE_META, "rules": ListOf(item=POLICY_RULE)}),
    ),
    KindSchema(
        group="rbac.authorization.k8s.io",
        kind="ClusterRole",
        root=Obj(
            fields={
                **TYPE_META,
                "rules": ListOf(item=POLICY_RULE),
                "aggregationRule": Obj(
                    fields={"clusterRoleSelectors": ListOf(item=LABEL_SELECTOR)},
                    omitempty=False,
                ),
            }
        ),
        namespaced=False,
    ),
    KindSchema(
        group="rbac.authorization.k8s.io",
        kind="RoleBinding",
        root=Obj(fields={**TYPE_META, "subjects": ListOf(item=SUBJECT), "roleRef": ROLE_REF}),
    ),
    KindSchema(
        group="rbac.authorization.k8s.io",
        kind="ClusterRoleBinding",
        root=Obj(fields={**TYPE_META, "subjects": ListOf(item=SUBJECT), "roleRef": ROLE_REF}),
        namespaced=False,
    ),
]

DEFAULT_REGISTRY = SchemaRegistry(BUILTIN_SCHEMAS)
"""Registry with the built-in kinds, used when callers don't supply their own."""
