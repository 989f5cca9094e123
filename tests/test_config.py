"""Tests for the configuration module."""

from pathlib import Path

import pytest

from tracegraph._config import (
    ConfigError,
    TraceConfig,
    find_pyproject_toml,
    get_config_from_pyproject,
    load_config,
)


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml function."""

    def test_finds_in_current_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in current directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        assert find_pyproject_toml(tmp_path) == pyproject

    def test_finds_in_parent_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in parent directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        subdir = tmp_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        assert find_pyproject_toml(subdir) == pyproject

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        """Should return None when no pyproject.toml is found."""
        assert find_pyproject_toml(tmp_path) is None


class TestLoadConfig:
    """Tests for loading the [tool.tracegraph] table."""

    def test_defaults_without_section(self, tmp_path: Path) -> None:
        """Should return defaults when there is no [tool.tracegraph] section."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        assert load_config(pyproject) == TraceConfig()

    def test_all_keys(self, tmp_path: Path) -> None:
        """Should read every supported key."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.tracegraph]
capture_frames = true
max_frames = 3
shape_cache_size = 128
log_graph_changes = true
""",
        )

        assert load_config(pyproject) == TraceConfig(
            capture_frames=True,
            max_frames=3,
            shape_cache_size=128,
            log_graph_changes=True,
        )

    def test_partial_section_keeps_defaults(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.tracegraph]\ncapture_frames = true\n")

        config = load_config(pyproject)

        assert config.capture_frames
        assert config.max_frames == TraceConfig().max_frames

    @pytest.mark.parametrize("value", ["0", "-1", "true", '"8"', "1.5"])
    def test_invalid_positive_int(self, tmp_path: Path, value: str) -> None:
        """Should reject anything but a positive integer."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(f"[tool.tracegraph]\nmax_frames = {value}\n")

        with pytest.raises(ConfigError, match=r"max_frames: expected positive integer"):
            load_config(pyproject)

    def test_invalid_bool(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[tool.tracegraph]\ncapture_frames = "yes"\n')

        with pytest.raises(ConfigError, match=r"capture_frames: expected boolean"):
            load_config(pyproject)

    def test_unknown_keys(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.tracegraph]\ncapture_frame = true\nverbose = 1\n")

        with pytest.raises(ConfigError, match="Unknown \\[tool.tracegraph\\] keys: capture_frame, verbose"):
            load_config(pyproject)

    def test_section_must_be_table(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool]\ntracegraph = 1\n")

        with pytest.raises(ConfigError, match="expected a table"):
            load_config(pyproject)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.tracegraph\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(pyproject)


class TestGetConfigFromPyproject:
    def test_defaults_without_pyproject(self, tmp_path: Path) -> None:
        assert get_config_from_pyproject(tmp_path) == TraceConfig()

    def test_reads_parent_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.tracegraph]\nmax_frames = 2\n")
        subdir = tmp_path / "scripts"
        subdir.mkdir()

        assert get_config_from_pyproject(subdir).max_frames == 2
