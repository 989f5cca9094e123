"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Error in tracegraph configuration."""


@dataclass(slots=True, frozen=True)
class TraceConfig:
    """Tracing options, read from the ``[tool.tracegraph]`` table.

    Attributes:
        capture_frames: Record the call-site chain in every node's metadata.
        max_frames: Maximum number of frames recorded per node.
        shape_cache_size: Capacity of the process-wide shape cache.
        log_graph_changes: Log every node creation at INFO level.

    """

    capture_frames: bool = False
    max_frames: int = 8
    shape_cache_size: int = 4096
    log_graph_changes: bool = False


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_bool(section: dict[str, object], key: str, default: bool) -> bool:  # noqa: FBT001
    if key not in section:
        return default
    value = section[key]
    if not isinstance(value, bool):
        msg = f"Invalid [tool.tracegraph].{key}: expected boolean"
        raise ConfigError(msg)
    return value


def _parse_positive_int(section: dict[str, object], key: str, default: int) -> int:
    if key not in section:
        return default
    value = section[key]
    # bool is a subclass of int in Python
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"Invalid [tool.tracegraph].{key}: expected positive integer"
        raise ConfigError(msg)
    return value


def load_config(pyproject_path: Path) -> TraceConfig:
    """Load and validate [tool.tracegraph] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed TraceConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("tracegraph", {})
    if not isinstance(section, dict):
        msg = "Invalid [tool.tracegraph] configuration: expected a table"
        raise ConfigError(msg)

    unknown = set(section) - {"capture_frames", "max_frames", "shape_cache_size", "log_graph_changes"}
    if unknown:
        msg = f"Unknown [tool.tracegraph] keys: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    defaults = TraceConfig()
    return TraceConfig(
        capture_frames=_parse_bool(section, "capture_frames", defaults.capture_frames),
        max_frames=_parse_positive_int(section, "max_frames", defaults.max_frames),
        shape_cache_size=_parse_positive_int(section, "shape_cache_size", defaults.shape_cache_size),
        log_graph_changes=_parse_bool(section, "log_graph_changes", defaults.log_graph_changes),
    )


def get_config_from_pyproject(start_dir: Path | None = None) -> TraceConfig:
    """Get config from pyproject.toml in start_dir or its parents.

    Returns:
        TraceConfig (defaults if no pyproject.toml or no [tool.tracegraph] section)

    """
    pyproject_path = find_pyproject_toml(start_dir)
    if pyproject_path is None:
        return TraceConfig()
    return load_config(pyproject_path)
