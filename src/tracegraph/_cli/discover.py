"""Utilities to discover IR graphs defined in scripts and modules.

This module was adapted from `fastapi_cli.discover` of package `fastapi-cli` version 0.0.8 (77e6d1f).
"""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tracegraph._ir import Node, Value

if TYPE_CHECKING:
    from pathlib import Path
    from types import ModuleType

logger = logging.getLogger(__name__)

# Variable names looked up, in order, when none is given.
DEFAULT_ROOT_NAMES = ("roots", "root")


@dataclass
class ModuleData:
    """Module data for a Python module."""

    module_import_str: str
    extra_sys_path: Path
    module_paths: list[Path]


def get_module_data_from_path(path: Path) -> ModuleData:
    """Get module data from a file path.

    Args:
        path: Path to a Python file or package

    Returns:
        ModuleData containing module import information

    """
    use_path = path.resolve()
    module_path = use_path
    if use_path.is_file() and use_path.stem == "__init__":
        module_path = use_path.parent
    module_paths = [module_path]
    extra_sys_path = module_path.parent
    for parent in module_path.parents:
        init_path = parent / "__init__.py"
        if init_path.is_file():
            module_paths.insert(0, parent)
            extra_sys_path = parent.parent
        else:
            break

    module_str = ".".join(p.stem for p in module_paths)
    return ModuleData(
        module_import_str=module_str,
        extra_sys_path=extra_sys_path.resolve(),
        module_paths=module_paths,
    )


def coerce_roots(obj: object, name: str) -> list[Node | Value]:
    """Turn a node, a value or a sequence of them into a list of roots.

    Raises:
        TypeError: If obj holds anything else.

    """
    if isinstance(obj, (Node, Value)):
        return [obj]
    if isinstance(obj, (list, tuple)) and obj and all(isinstance(item, (Node, Value)) for item in obj):
        return list(obj)
    msg = f"'{name}' is not a Node, a Value or a non-empty sequence of them"
    raise TypeError(msg)


def _roots_from_module(module: ModuleType, roots_var: str | None) -> list[Node | Value]:
    if roots_var:
        if not hasattr(module, roots_var):
            msg = f"Could not find '{roots_var}' in {module.__name__}"
            raise ValueError(msg)
        return coerce_roots(getattr(module, roots_var), roots_var)

    for name in DEFAULT_ROOT_NAMES:
        if hasattr(module, name):
            logger.debug("Found graph roots: %s", name)
            return coerce_roots(getattr(module, name), name)

    msg = f"Could not find graph roots in {module.__name__}, try using --roots"
    raise ValueError(msg)


def load_roots_from_script(script_path: Path, roots_var: str | None = None) -> list[Node | Value]:
    """Load graph roots from a Python script path.

    Args:
        script_path: Path to the Python script building the graph
        roots_var: Name of the variable holding the roots. If None, looks for
            ``roots`` then ``root``.

    Returns:
        The graph roots

    Raises:
        ImportError: If the module cannot be imported
        ValueError: If no roots are found
        TypeError: If the variable does not hold nodes

    """
    module_data = get_module_data_from_path(script_path)
    sys.path.insert(0, str(module_data.extra_sys_path))

    try:
        module = importlib.import_module(module_data.module_import_str)
    except (ImportError, ValueError):
        logger.exception("Import error")
        logger.warning("Ensure all the package directories have an __init__.py file")
        raise

    return _roots_from_module(module, roots_var)


def load_roots_from_module_path(module_path: str) -> list[Node | Value]:
    """Load graph roots from a module path (e.g., 'examples.mlp:roots').

    Raises:
        ValueError: If module path format is invalid
        TypeError: If the variable does not hold nodes

    """
    if ":" not in module_path:
        msg = "Module path must be in format 'module.path:variable_name'"
        raise ValueError(msg)

    module_name, roots_var = module_path.split(":", 1)
    module = importlib.import_module(module_name)
    return _roots_from_module(module, roots_var)
