"""Tests for models."""

import pytest

from syncdiff.models import (
    IGNORE_AGGREGATED_ROLES_ENV_VAR,
    OPTIONS_FILE_ENV_VAR,
    DiffOptions,
    DiffResult,
    DiffResultList,
    get_default_diff_options,
)


class TestDiffOptions:
    """Tests for DiffOptions."""

    def test_defaults(self):
        """Default options compare everything."""
        options = get_default_diff_options()
        assert options.ignore_aggregated_roles is False
        assert options.overrides == {}

    def test_paths_for_includes_wildcard(self):
        """Wildcard paths apply to every kind."""
        options = DiffOptions(
            overrides={
                "*": frozenset({"/metadata/labels"}),
                "apps/Deployment": frozenset({"/spec/replicas"}),
            }
        )
        assert options.paths_for("apps/Deployment") == {"/metadata/labels", "/spec/replicas"}
        assert options.paths_for("Secret") == {"/metadata/labels"}

    def test_with_overrides_merges(self):
        """Call-site overrides are added to configured ones."""
        options = DiffOptions(overrides={"Secret": frozenset({"/data/a"})})
        merged = options.with_overrides(
            {"Secret": ["/data/b"], "ConfigMap": {"jsonPointers": ["/data"]}}
        )
        assert merged.paths_for("Secret") == {"/data/a", "/data/b"}
        assert merged.paths_for("ConfigMap") == {"/data"}
        assert options.paths_for("Secret") == {"/data/a"}

    def test_with_no_overrides_returns_self(self):
        """Empty overrides leave the options as they are."""
        options = DiffOptions()
        assert options.with_overrides(None) is options
        assert options.with_overrides({}) is options

    def test_invalid_pointer_rejected(self):
        """Overrides must hold valid JSON pointers."""
        with pytest.raises(ValueError, match="must start with"):
            DiffOptions().with_overrides({"Secret": ["data"]})

    def test_string_overrides_rejected(self):
        """A bare string is not a list of pointers."""
        with pytest.raises(ValueError, match="list of JSON pointers"):
            DiffOptions().with_overrides({"Secret": "/data"})

    def test_from_dict(self):
        """Options are read from a settings mapping."""
        options = DiffOptions.from_dict(
            {
                "ignoreAggregatedRoles": True,
                "resourceOverrides": {"apps/Deployment": {"jsonPointers": ["/spec/replicas"]}},
            }
        )
        assert options.ignore_aggregated_roles is True
        assert options.paths_for("apps/Deployment") == {"/spec/replicas"}

    def test_from_dict_bad_flag(self):
        """The aggregated roles flag must be a boolean."""
        with pytest.raises(ValueError, match="must be a boolean"):
            DiffOptions.from_dict({"ignoreAggregatedRoles": "yes"})

    def test_from_dict_bad_overrides(self):
        """resourceOverrides must be a mapping."""
        with pytest.raises(ValueError, match="must be a mapping"):
            DiffOptions.from_dict({"resourceOverrides": ["/spec"]})

    def test_from_yaml(self):
        """Options are read from YAML."""
        options = DiffOptions.from_yaml(
            """
ignoreAggregatedRoles: true
resourceOverrides:
  "*":
    jsonPointers:
      - /metadata/labels/build
"""
        )
        assert options.ignore_aggregated_roles is True
        assert options.paths_for("Anything") == {"/metadata/labels/build"}

    def test_from_yaml_empty(self):
        """An empty document yields defaults."""
        assert DiffOptions.from_yaml("") == DiffOptions()

    def test_from_yaml_not_mapping(self):
        """Non-mapping documents are rejected."""
        with pytest.raises(ValueError, match="must be a mapping"):
            DiffOptions.from_yaml("- a\n- b\n")

    def test_from_environment_defaults(self, monkeypatch):
        """Without environment variables options are defaults."""
        monkeypatch.delenv(IGNORE_AGGREGATED_ROLES_ENV_VAR, raising=False)
        monkeypatch.delenv(OPTIONS_FILE_ENV_VAR, raising=False)
        assert DiffOptions.from_environment() == DiffOptions()

    @pytest.mark.parametrize(("value", "expected"), [("true", True), ("1", True), ("no", False)])
    def test_from_environment_flag(self, monkeypatch, value, expected):
        """The aggregated roles flag is read from the environment."""
        monkeypatch.delenv(OPTIONS_FILE_ENV_VAR, raising=False)
        monkeypatch.setenv(IGNORE_AGGREGATED_ROLES_ENV_VAR, value)
        assert DiffOptions.from_environment().ignore_aggregated_roles is expected

    def test_from_environment_file(self, monkeypatch, tmp_path):
        """An options file named by the environment is loaded, and the flag overrides it."""
        path = tmp_path / "options.yaml"
        path.write_text("ignoreAggregatedRoles: true\nresourceOverrides:\n  Secret: [/data]\n")
        monkeypatch.setenv(OPTIONS_FILE_ENV_VAR, str(path))
        monkeypatch.setenv(IGNORE_AGGREGATED_ROLES_ENV_VAR, "false")
        options = DiffOptions.from_environment()
        assert options.ignore_aggregated_roles is False
        assert options.paths_for("Secret") == {"/data"}

    def test_frozen(self):
        """Options are immutable."""
        options = DiffOptions()
        with pytest.raises(AttributeError):
            options.ignore_aggregated_roles = True


class TestDiffResultList:
    """Tests for DiffResultList."""

    def test_modified_if_any(self):
        """The aggregate is modified if any element is."""
        results = DiffResultList(results=[DiffResult(modified=False), DiffResult(modified=True)])
        assert results.modified is True
        assert len(results) == 2
        assert results[1].modified is True
        assert [r.modified for r in results] == [False, True]

    def test_empty_not_modified(self):
        """An empty list is not modified."""
        assert DiffResultList().modified is False
