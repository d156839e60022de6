"""
syncdiff: diff engine for declarative resource reconciliation.

Decides whether a desired-state manifest (config) is in sync with the
object observed in a cluster (live), without contacting the cluster:

- Canonical normalization (namespace erasure, secret stringData folding,
  typed round-trip canonicalization, aggregated-role and override exclusions)
- Two-way comparison with presence pruning
- Three-way comparison replaying the last-applied merge patch
- Aggregation over index-paired resource lists
- Secret redaction for displaying diffs safely

Example:
    from syncdiff import DiffOptions, diff

    result = diff(config, live, options=DiffOptions(ignore_aggregated_roles=True))
    if result.modified:
        print("out of sync")
"""

from .differ import diff, diff_array, three_way_diff, two_way_diff
from .exceptions import (
    LastAppliedConfigError,
    MalformedSecretError,
    NormalizationError,
    SchemaDecodeError,
    SyncDiffError,
)
from .manifest import ResourceKey, get_last_applied_configuration, load_documents
from .models import (
    LAST_APPLIED_CONFIG_ANNOTATION,
    DiffOptions,
    DiffResult,
    DiffResultList,
    Role,
    get_default_diff_options,
)
from .normalizer import normalize, remove_namespace_annotation
from .patch import apply_patch, compute_patch
from .redact import hide_secret_data
from .schema import DEFAULT_REGISTRY, KindSchema, SchemaRegistry

__all__ = [
    # Diff
    "diff",
    "diff_array",
    "three_way_diff",
    "two_way_diff",
    # Normalization and patching
    "normalize",
    "remove_namespace_annotation",
    "compute_patch",
    "apply_patch",
    "hide_secret_data",
    # Models
    "DiffOptions",
    "DiffResult",
    "DiffResultList",
    "Role",
    "ResourceKey",
    "get_default_diff_options",
    "get_last_applied_configuration",
    "load_documents",
    "LAST_APPLIED_CONFIG_ANNOTATION",
    # Schemas
    "DEFAULT_REGISTRY",
    "KindSchema",
    "SchemaRegistry",
    # Exceptions
    "SyncDiffError",
    "NormalizationError",
    "MalformedSecretError",
    "SchemaDecodeError",
    "LastAppliedConfigError",
]
