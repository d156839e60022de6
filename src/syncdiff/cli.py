"""Command-line interface for syncdiff."""

from __future__ import annotations

import difflib
import logging
import sys
from typing import Any

import click
import yaml

from .differ import diff_array
from .document import documents_equal
from .exceptions import SyncDiffError
from .manifest import ResourceKey, load_documents
from .models import DiffOptions, DiffResult
from .normalizer import is_secret
from .patch import apply_patch
from .redact import hide_secret_data

EXIT_MODIFIED = 1
EXIT_ERROR = 2


@click.group()
@click.version_option(package_name="syncdiff")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """syncdiff: compare desired manifests against live cluster state."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )


@cli.command("diff")
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML/JSON file with desired manifests.",
)
@click.option(
    "--live",
    "-l",
    "live_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML/JSON file with live objects, paired with the config by position.",
)
@click.option(
    "--options",
    "options_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML diff options file (default: from environment).",
)
@click.option(
    "--ignore-aggregated-roles",
    is_flag=True,
    default=False,
    help="Don't compare rules of aggregated cluster roles.",
)
@click.option(
    "--two-way",
    is_flag=True,
    default=False,
    help="Ignore last-applied records and always run a two-way diff.",
)
@click.option(
    "--show/--no-show",
    default=True,
    help="Print a unified diff for every modified resource.",
)
def diff_command(
    config_path: str,
    live_path: str,
    options_path: str | None,
    ignore_aggregated_roles: bool,
    two_way: bool,
    show: bool,
) -> None:
    """Report which resources would change on sync (exit 1 if any)."""
    try:
        options = _load_options(options_path)
        if ignore_aggregated_roles:
            options = DiffOptions(ignore_aggregated_roles=True, overrides=options.overrides)
        configs = _load_file(config_path)
        lives = _load_file(live_path)
        results = diff_array(configs, lives, options=options, two_way=two_way)
    except (SyncDiffError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    for config, result in zip(configs, results, strict=True):
        symbol = "~" if result.modified else "="
        click.echo(f"  {symbol} {ResourceKey.from_resource(config)}")
        if result.modified and show:
            text = _render(result)
            if text:
                click.echo(text)

    if not results.modified:
        click.echo("No drift detected. Live state matches config.")
        return
    changed = sum(1 for result in results if result.modified)
    click.echo(f"\nDrift detected: {changed} of {len(results)} resource(s) would change.")
    sys.exit(EXIT_MODIFIED)


@cli.command("redact")
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML/JSON file with the desired secret.",
)
@click.option(
    "--live",
    "-l",
    "live_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML/JSON file with the live secret.",
)
def redact_command(config_path: str, live_path: str) -> None:
    """Print a secret and its live counterpart with values redacted."""
    try:
        target = _load_single(config_path)
        live = _load_single(live_path)
        redacted_target, redacted_live = hide_secret_data(target, live)
    except (SyncDiffError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    click.echo(
        yaml.safe_dump_all([redacted_target, redacted_live], default_flow_style=False),
        nl=False,
    )


def _load_options(options_path: str | None) -> DiffOptions:
    if options_path is None:
        return DiffOptions.from_environment()
    with open(options_path) as f:
        return DiffOptions.from_yaml(f.read())


def _load_file(file_path: str) -> list[dict[str, Any]]:
    """Load and parse a YAML/JSON manifest file."""
    with open(file_path) as f:
        return load_documents(f.read())


def _load_single(file_path: str) -> dict[str, Any] | None:
    docs = _load_file(file_path)
    if len(docs) > 1:
        raise ValueError(f"{file_path}: expected a single document, got {len(docs)}")
    return docs[0] if docs else None


def _render(result: DiffResult) -> str:
    """Unified diff of normalized live vs predicted live, secrets redacted."""
    live, predicted = result.normalized_live, result.predicted_live
    if live is not None and predicted is not None and documents_equal(live, predicted):
        # Two-way predicted live equals live, so overlay the config as a merge
        # patch. Keys the config sets to null are deleted from the result.
        predicted = apply_patch(live, result.normalized_config or {})
    if any(doc is not None and is_secret(doc) for doc in (live, predicted)):
        predicted, live = hide_secret_data(predicted, live)
    before = _dump(live).splitlines(keepends=True)
    after = _dump(predicted).splitlines(keepends=True)
    return "".join(difflib.unified_diff(before, after, fromfile="live", tofile="predicted"))


def _dump(doc: dict[str, Any] | None) -> str:
    if doc is None:
        return ""
    return yaml.safe_dump(doc, default_flow_style=False, sort_keys=True)


if __name__ == "__main__":
    cli()
