"""Tests for CLI commands."""

import copy
import json

import pytest
import yaml
from click.testing import CliRunner

from syncdiff.cli import cli
from syncdiff.models import IGNORE_AGGREGATED_ROLES_ENV_VAR, LAST_APPLIED_CONFIG_ANNOTATION
from tests.fixtures.resources import (
    SECRET_CONFIG,
    SECRET_INVALID_CONFIG,
    SECRET_LIVE,
    aggregated_cluster_role,
    b64,
    defaulted_deployment,
    make_secret,
    new_deployment,
    with_last_applied,
)

NODE_RULES = [{"apiGroups": [""], "resources": ["nodes"], "verbs": ["list"]}]
POD_RULES = [{"apiGroups": [""], "resources": ["pods"], "verbs": ["get"]}]


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def write(tmp_path):
    """Write documents to a YAML file and return its path."""

    def _write(name: str, *docs) -> str:
        path = tmp_path / name
        if len(docs) == 1 and isinstance(docs[0], str):
            path.write_text(docs[0])
        else:
            path.write_text(yaml.safe_dump_all(list(docs)))
        return str(path)

    return _write


class TestCLI:
    """Test CLI basics."""

    def test_cli_help(self, runner: CliRunner) -> None:
        """Test CLI help message."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "compare desired manifests against live cluster state" in result.output

    def test_diff_help(self, runner: CliRunner) -> None:
        """Test diff command help."""
        result = runner.invoke(cli, ["diff", "--help"])
        assert result.exit_code == 0
        assert "--config" in result.output
        assert "--live" in result.output
        assert "--two-way" in result.output

    def test_diff_requires_files(self, runner: CliRunner) -> None:
        """Test diff without arguments is a usage error."""
        result = runner.invoke(cli, ["diff"])
        assert result.exit_code == 2
        assert "Missing option" in result.output


class TestDiffCommand:
    """Test the diff command."""

    def test_in_sync(self, runner: CliRunner, write) -> None:
        """Test matching config and live exit 0."""
        config = write("config.yaml", SECRET_CONFIG)
        live = write("live.yaml", SECRET_LIVE)
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 0
        assert "  = Secret my-secret" in result.output
        assert "No drift detected" in result.output

    def test_drift_detected(self, runner: CliRunner, write) -> None:
        """Test drift exits 1 and shows a unified diff."""
        live_doc = defaulted_deployment()
        live_doc["spec"]["replicas"] = 10
        config = write("config.yaml", new_deployment(), make_secret({"a": "b"}))
        live = write("live.yaml", live_doc, make_secret({"a": "b"}))
        result = runner.invoke(cli, ["diff", "--config", config, "--live", live])
        assert result.exit_code == 1
        assert "  ~ apps/Deployment test/demo" in result.output
        assert "  = Secret my-secret" in result.output
        assert "--- live" in result.output
        assert "-  replicas: 10" in result.output
        assert "+  replicas: 2" in result.output
        assert "Drift detected: 1 of 2 resource(s) would change." in result.output

    def test_no_show(self, runner: CliRunner, write) -> None:
        """Test --no-show only lists resources."""
        live_doc = new_deployment()
        live_doc["spec"]["replicas"] = 10
        config = write("config.yaml", new_deployment())
        live = write("live.yaml", live_doc)
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live, "--no-show"])
        assert result.exit_code == 1
        assert "--- live" not in result.output

    def test_unpaired_files(self, runner: CliRunner, write) -> None:
        """Test files with different document counts exit 2."""
        config = write("config.yaml", new_deployment())
        live = write("live.yaml", "kind: List\nitems: []\n")
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 2
        assert "must be paired" in result.output

    def test_secret_values_redacted(self, runner: CliRunner, write) -> None:
        """Test secret values never appear in the rendered diff."""
        config = write("config.yaml", make_secret({"password": "hunter2"}))
        live = write("live.yaml", make_secret({"password": "hunter3"}))
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 1
        assert b64("hunter2") not in result.output
        assert b64("hunter3") not in result.output
        assert "+" * 12 in result.output

    def test_malformed_input(self, runner: CliRunner, write) -> None:
        """Test malformed resources exit 2."""
        config = write("config.yaml", SECRET_INVALID_CONFIG)
        live = write("live.yaml", make_secret({"foo": "1234"}))
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 2
        assert "Error: Malformed secret 'my-secret/foo'" in result.output

    def test_two_way_flag(self, runner: CliRunner, write) -> None:
        """Test --two-way ignores the last-applied record."""
        config_doc = new_deployment()
        prior = new_deployment()
        prior["metadata"]["labels"] = {"team": "core"}
        live_doc = with_last_applied(copy.deepcopy(prior), prior)
        config = write("config.yaml", config_doc)
        live = write("live.yaml", live_doc)

        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 1

        result = runner.invoke(cli, ["diff", "-c", config, "-l", live, "--two-way"])
        assert result.exit_code == 0

    def test_ignore_aggregated_roles_flag(self, runner: CliRunner, write) -> None:
        """Test --ignore-aggregated-roles suppresses rule drift."""
        config = write("config.yaml", aggregated_cluster_role(NODE_RULES))
        live = write("live.yaml", aggregated_cluster_role(POD_RULES))

        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 1

        result = runner.invoke(cli, ["diff", "-c", config, "-l", live, "--ignore-aggregated-roles"])
        assert result.exit_code == 0

    def test_ignore_aggregated_roles_from_environment(
        self, runner: CliRunner, write, monkeypatch
    ) -> None:
        """Test the aggregated roles flag is read from the environment."""
        config = write("config.yaml", aggregated_cluster_role(NODE_RULES))
        live = write("live.yaml", aggregated_cluster_role(POD_RULES))
        monkeypatch.setenv(IGNORE_AGGREGATED_ROLES_ENV_VAR, "true")
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 0

    def test_options_file(self, runner: CliRunner, write) -> None:
        """Test overrides from an options file."""
        live_doc = new_deployment()
        live_doc["spec"]["replicas"] = 10
        config = write("config.yaml", new_deployment())
        live = write("live.yaml", live_doc)
        options = write(
            "options.yaml",
            "resourceOverrides:\n  apps/Deployment:\n    jsonPointers: [/spec/replicas]\n",
        )
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live, "--options", options])
        assert result.exit_code == 0

    def test_invalid_options_file(self, runner: CliRunner, write) -> None:
        """Test an invalid options file exits 2."""
        config = write("config.yaml", new_deployment())
        live = write("live.yaml", new_deployment())
        options = write("options.yaml", "ignoreAggregatedRoles: maybe\n")
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live, "--options", options])
        assert result.exit_code == 2
        assert "must be a boolean" in result.output

    def test_two_way_render_deletes_null_config_keys(self, runner: CliRunner, write) -> None:
        """Test a key the config sets to null shows as removed in the rendered diff."""
        config_doc = {"apiVersion": "foo.io/v1", "kind": "Foo", "metadata": {"name": "f"}}
        config_doc["spec"] = {"foo": "bar", "extra": None}
        live_doc = copy.deepcopy(config_doc)
        live_doc["spec"]["extra"] = "x"
        config = write("config.yaml", config_doc)
        live = write("live.yaml", live_doc)
        result = runner.invoke(cli, ["diff", "-c", config, "-l", live])
        assert result.exit_code == 1
        assert "-  extra: x" in result.output
        assert "+  extra" not in result.output


class TestRedactCommand:
    """Test the redact command."""

    def test_redact(self, runner: CliRunner, write) -> None:
        """Test target and live secrets are printed redacted."""
        live_doc = with_last_applied(make_secret({"key1": "test3"}), make_secret({"key1": "test1"}))
        config = write("config.yaml", make_secret({"key1": "test2"}))
        live = write("live.yaml", live_doc)
        result = runner.invoke(cli, ["redact", "-c", config, "-l", live])
        assert result.exit_code == 0

        target, redacted_live = list(yaml.safe_load_all(result.output))
        assert target["data"] == {"key1": "+" * 8}
        assert redacted_live["data"] == {"key1": "+" * 12}
        annotation = redacted_live["metadata"]["annotations"][LAST_APPLIED_CONFIG_ANNOTATION]
        assert json.loads(annotation)["data"] == {"key1": "+" * 16}

    def test_redact_multiple_documents(self, runner: CliRunner, write) -> None:
        """Test more than one document per file is rejected."""
        config = write("config.yaml", make_secret(), make_secret())
        live = write("live.yaml", make_secret())
        result = runner.invoke(cli, ["redact", "-c", config, "-l", live])
        assert result.exit_code == 2
        assert "expected a single document" in result.output
