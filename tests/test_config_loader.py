"""Tests for readme_sync.config_loader: hierarchical config loading."""

import textwrap

import pytest

from readme_sync.config_loader import (
    _interpolate_tree,
    discover_config_files,
    interpolate_env_vars,
    load_hierarchical_config,
    load_yaml_file,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", "secret")
        assert interpolate_env_vars("${MY_KEY}") == "secret"

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}") == "fallback"

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("MY_VERSION", "2.0")
        assert interpolate_env_vars("${MY_VERSION:-1.0}") == "2.0"

    def test_multiple_vars_in_one_string(self, monkeypatch):
        monkeypatch.setenv("CDN_HOST", "cdn.example.com")
        monkeypatch.setenv("CDN_PATH", "docs")
        assert (
            interpolate_env_vars("https://${CDN_HOST}/${CDN_PATH}")
            == "https://cdn.example.com/docs"
        )

    def test_nested_tree_interpolation(self, monkeypatch):
        monkeypatch.setenv("CDN_URL", "https://cdn.example.com")
        data = {"sync": {"filters": {"hostedFiles": {"baseUrl": "${CDN_URL}"}}}, "n": 5}
        assert _interpolate_tree(data) == {
            "sync": {"filters": {"hostedFiles": {"baseUrl": "https://cdn.example.com"}}},
            "n": 5,
        }

    def test_lists_are_interpolated(self, monkeypatch):
        monkeypatch.setenv("CAT", "guides")
        assert _interpolate_tree(["${CAT}", 1]) == ["guides", 1]


# -------------------------------------------------------------------------
# !include
# -------------------------------------------------------------------------


class TestInclude:
    def test_include_relative_file(self, tmp_path):
        (tmp_path / "filters.yml").write_text("footer:\n  template: footer.md\n")
        main = tmp_path / "config.yml"
        main.write_text("sync:\n  filters: !include filters.yml\n")

        assert load_yaml_file(main) == {
            "sync": {"filters": {"footer": {"template": "footer.md"}}}
        }

    def test_nested_include(self, tmp_path):
        (tmp_path / "c.yml").write_text("value: 1\n")
        (tmp_path / "b.yml").write_text("inner: !include c.yml\n")
        main = tmp_path / "a.yml"
        main.write_text("outer: !include b.yml\n")

        assert load_yaml_file(main) == {"outer": {"inner": {"value": 1}}}

    def test_circular_include(self, tmp_path):
        (tmp_path / "a.yml").write_text("b: !include b.yml\n")
        (tmp_path / "b.yml").write_text("a: !include a.yml\n")

        with pytest.raises(ValueError, match="Circular include"):
            load_yaml_file(tmp_path / "a.yml")

    def test_missing_include(self, tmp_path):
        main = tmp_path / "config.yml"
        main.write_text("x: !include nope.yml\n")

        with pytest.raises(FileNotFoundError, match="Include file not found"):
            load_yaml_file(main)


# -------------------------------------------------------------------------
# Discovery and merge
# -------------------------------------------------------------------------


@pytest.fixture
def isolated_dirs(tmp_path, monkeypatch):
    """Run in an empty CWD with an empty HOME and no config env var."""
    cwd = tmp_path / "project"
    home = tmp_path / "home"
    cwd.mkdir()
    home.mkdir()
    monkeypatch.chdir(cwd)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("README_SYNC_CONFIG", raising=False)
    return cwd, home


class TestDiscovery:
    def test_nothing_found(self, isolated_dirs):
        assert discover_config_files() == []
        assert load_hierarchical_config() == {}

    def test_order(self, isolated_dirs, monkeypatch, tmp_path):
        cwd, home = isolated_dirs
        explicit = tmp_path / "explicit.yml"
        explicit.write_text("a: 1\n")
        monkeypatch.setenv("README_SYNC_CONFIG", str(explicit))
        (cwd / "config.yml").write_text("a: 2\n")
        (cwd / ".readme_sync").mkdir()
        (cwd / ".readme_sync" / "config.yml").write_text("a: 3\n")
        (home / ".config" / "readme_sync").mkdir(parents=True)
        (home / ".config" / "readme_sync" / "config.yml").write_text("a: 4\n")

        assert discover_config_files() == [
            explicit.resolve(),
            cwd / "config.yml",
            cwd / ".readme_sync" / "config.yml",
            home / ".config" / "readme_sync" / "config.yml",
        ]

    def test_project_wins_over_user(self, isolated_dirs):
        cwd, home = isolated_dirs
        (home / ".config" / "readme_sync").mkdir(parents=True)
        (home / ".config" / "readme_sync" / "config.yml").write_text(
            textwrap.dedent(
                """\
                readme:
                  api_key: user-key
                logging:
                  level: DEBUG
                """
            )
        )
        (cwd / "config.yml").write_text("readme:\n  docs_version: '2.0'\n")

        merged = load_hierarchical_config()

        # Top-level sections are replaced wholesale, not deep-merged.
        assert merged == {"readme": {"docs_version": "2.0"}, "logging": {"level": "DEBUG"}}

    def test_explicit_path_only(self, isolated_dirs, tmp_path):
        cwd, _ = isolated_dirs
        (cwd / "config.yml").write_text("a: 1\n")
        explicit = tmp_path / "other.yml"
        explicit.write_text("b: 2\n")

        assert load_hierarchical_config(explicit) == {"b": 2}

    def test_explicit_path_missing(self, isolated_dirs, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_hierarchical_config(tmp_path / "missing.yml")

    def test_non_dict_root_is_skipped(self, isolated_dirs):
        cwd, _ = isolated_dirs
        (cwd / "config.yml").write_text("- just\n- a list\n")
        assert load_hierarchical_config() == {}

    def test_values_are_interpolated(self, isolated_dirs, monkeypatch):
        cwd, _ = isolated_dirs
        monkeypatch.setenv("RDME_KEY", "from-env")
        (cwd / "config.yml").write_text("readme:\n  api_key: ${RDME_KEY}\n")

        assert load_hierarchical_config() == {"readme": {"api_key": "from-env"}}
