"""Diff engine for declarative resource reconciliation.

Compares a desired-state manifest (config) against the observed object
(live) and reports whether a sync would change anything.

Two comparison modes exist:

- two-way: used when the live object carries no record of what was last
  applied. The live object is projected onto the paths present in the
  config, so fields the cluster defaults or manages never count as drift.
- three-way: used when the live object carries the last-applied record.
  The patch from that record to the current config is replayed against the
  live object; the config is in sync when that replay changes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .document import deep_copy, documents_equal, merge_shapes, prune_to
from .manifest import get_last_applied_configuration, resource_name
from .models import DiffOptions, DiffResult, DiffResultList, Role, get_default_diff_options
from .normalizer import normalize
from .patch import apply_patch, compute_patch
from .schema import SchemaRegistry

logger = logging.getLogger(__name__)


def diff(
    config: dict[str, Any] | None,
    live: dict[str, Any] | None,
    overrides: Mapping[str, Any] | None = None,
    options: DiffOptions | None = None,
    registry: SchemaRegistry | None = None,
) -> DiffResult:
    """
    Compare a config against its live counterpart.

    Three-way mode is selected when ``live`` carries a last-applied record,
    two-way mode otherwise.

    Args:
        config: Desired manifest, or None if there is none
        live: Observed object, or None if it doesn't exist
        overrides: Extra kind -> JSON pointer exclusions, merged over
            ``options.overrides``
        options: Diff options (defaults if omitted)
        registry: Typed-schema registry (built-in kinds if omitted)

    Returns:
        DiffResult for the pair

    Raises:
        NormalizationError: If either side (or the last-applied record) is
            malformed
    """
    if live is None or config is None:
        return _diff_missing(config, live)

    options = (options or get_default_diff_options()).with_overrides(overrides)
    prior = get_last_applied_configuration(live)
    if prior is None:
        logger.debug("Two-way diff for %s (no last-applied record)", resource_name(config))
        return _two_way(config, live, options, registry)

    logger.debug("Three-way diff for %s", resource_name(config))
    return three_way_diff(
        normalize(prior, Role.CONFIG, options, registry),
        normalize(config, Role.CONFIG, options, registry),
        normalize(live, Role.LIVE, options, registry),
    )


def two_way_diff(
    config: dict[str, Any] | None,
    live: dict[str, Any] | None,
    overrides: Mapping[str, Any] | None = None,
    options: DiffOptions | None = None,
    registry: SchemaRegistry | None = None,
) -> DiffResult:
    """Compare a config against its live counterpart, ignoring any last-applied record."""
    if live is None or config is None:
        return _diff_missing(config, live)
    options = (options or get_default_diff_options()).with_overrides(overrides)
    return _two_way(config, live, options, registry)


def three_way_diff(
    orig: dict[str, Any],
    config: dict[str, Any],
    live: dict[str, Any],
) -> DiffResult:
    """
    Three-way comparison over already-normalized documents.

    ``orig`` is the last-applied record. Paths present in the config, or
    present in ``orig`` and since withdrawn from the config, are compared;
    everything else in the live object is cluster-managed and ignored.
    """
    patch = compute_patch(orig, config)
    predicted_live = apply_patch(live, patch)
    shape = merge_shapes(config, orig)
    modified = not documents_equal(prune_to(predicted_live, shape), prune_to(live, shape))
    return DiffResult(
        modified=modified,
        predicted_live=predicted_live,
        normalized_live=live,
        normalized_config=config,
    )


def diff_array(
    configs: Sequence[dict[str, Any] | None],
    lives: Sequence[dict[str, Any] | None],
    overrides: Mapping[str, Any] | None = None,
    options: DiffOptions | None = None,
    registry: SchemaRegistry | None = None,
    two_way: bool = False,
) -> DiffResultList:
    """
    Diff index-paired configs and lives, in order.

    The first failing pair aborts the whole call. With ``two_way`` every pair
    is compared by :func:`two_way_diff`, ignoring last-applied records.

    Raises:
        ValueError: If the sequences differ in length
        NormalizationError: If any pair is malformed
    """
    if len(configs) != len(lives):
        raise ValueError(
            f"configs and lives must be paired: got {len(configs)} configs, {len(lives)} lives"
        )
    compare = two_way_diff if two_way else diff
    return DiffResultList(
        results=[
            compare(config, live, overrides, options, registry)
            for config, live in zip(configs, lives, strict=True)
        ]
    )


def _two_way(
    config: dict[str, Any],
    live: dict[str, Any],
    options: DiffOptions,
    registry: SchemaRegistry | None,
) -> DiffResult:
    normalized_config = normalize(config, Role.CONFIG, options, registry)
    normalized_live = normalize(live, Role.LIVE, options, registry)
    projected_live = prune_to(normalized_live, normalized_config)
    return DiffResult(
        modified=not documents_equal(normalized_config, projected_live),
        predicted_live=normalized_live,
        normalized_live=normalized_live,
        normalized_config=normalized_config,
    )


def _diff_missing(config: dict[str, Any] | None, live: dict[str, Any] | None) -> DiffResult:
    # A config without a live object would be created. A live object without
    # a config is an orphan, which is reported elsewhere.
    if live is None:
        return DiffResult(
            modified=config is not None,
            predicted_live=deep_copy(config),
            normalized_config=deep_copy(config),
        )
    return DiffResult(modified=False, normalized_live=deep_copy(live))
