"""Workspace and module path resolution without importing anything.

Dotted names are resolved against a list of import roots (the workspace
root, ``src/`` when present, configured search paths). Installed packages
are found through importlib.util.find_spec on the top-level name only, which
locates the distribution without executing it.
"""

from __future__ import annotations

__all__ = [
    "classify_module",
    "find_workspace_root",
    "iter_package_modules",
    "module_name_for_path",
    "resolve_module_file",
    "split_module_and_symbol",
]

import importlib.util
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

ModuleKind = Literal["stdlib", "third_party", "internal"]

SKIP_DIRS = frozenset({"__pycache__", ".git", ".venv", "venv", "node_modules", ".tox", ".eyeball_cache"})


def find_workspace_root(start: Path | None = None) -> Path:
    """Nearest parent containing pyproject.toml or .git, else start itself."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return current


def _installed_search_root(top_level: str) -> Path | None:
    """Directory that contains an installed top-level module or package."""
    try:
        spec = importlib.util.find_spec(top_level)
    except (ImportError, ValueError):
        return None
    if spec is None or not spec.origin or spec.origin in ("built-in", "frozen"):
        return None
    origin = Path(spec.origin)
    if spec.submodule_search_locations:
        # package: <root>/<top_level>/__init__.py
        return origin.parent.parent
    return origin.parent


def resolve_module_file(module_name: str, roots: list[Path]) -> Path | None:
    """Resolve a dotted module name to its source file.

    Tries ``<root>/a/b.py`` then ``<root>/a/b/__init__.py`` for each root,
    then the location of an installed top-level distribution.
    """
    if not module_name or any(not part.isidentifier() for part in module_name.split(".")):
        return None

    parts = module_name.split(".")
    candidates = list(roots)
    installed = _installed_search_root(parts[0])
    if installed is not None and installed not in candidates:
        candidates.append(installed)

    for base in candidates:
        module_path = base.joinpath(*parts).with_suffix(".py")
        if module_path.is_file():
            return module_path
        package_path = base.joinpath(*parts, "__init__.py")
        if package_path.is_file():
            return package_path
    return None


def split_module_and_symbol(qualified_name: str, roots: list[Path]) -> tuple[str, Path, list[str]] | None:
    """Split "pkg.mod.Class.method" into ("pkg.mod", file, ["Class", "method"]).

    The longest locatable module prefix wins.
    """
    parts = qualified_name.split(".")
    for i in range(len(parts), 0, -1):
        module_name = ".".join(parts[:i])
        path = resolve_module_file(module_name, roots)
        if path is not None:
            return module_name, path, parts[i:]
    return None


def module_name_for_path(path: Path, root: Path) -> str:
    """Dotted module name of a file relative to an import root."""
    rel = path.resolve().relative_to(root.resolve()).with_suffix("")
    parts = list(rel.parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def iter_package_modules(package_dir: Path, package_name: str) -> Iterator[tuple[str, Path]]:
    """Yield (module name, file) for every .py file under a package directory."""
    for path in sorted(package_dir.rglob("*.py")):
        rel = path.relative_to(package_dir)
        if any(part in SKIP_DIRS or part.startswith(".") for part in rel.parts[:-1]):
            continue
        # Only descend through real packages
        if any(not (package_dir.joinpath(*rel.parts[: i + 1]) / "__init__.py").exists() for i in range(len(rel.parts) - 1)):
            continue
        mod_parts = [package_name, *rel.with_suffix("").parts]
        if mod_parts[-1] == "__init__":
            mod_parts.pop()
        yield ".".join(mod_parts), path


def classify_module(module_name: str, internal_prefixes: list[str]) -> ModuleKind:
    """stdlib / third_party / internal for an absolute module name."""
    top = module_name.split(".")[0]
    for prefix in internal_prefixes:
        if module_name == prefix or module_name.startswith(prefix + ".") or top == prefix:
            return "internal"
    if top in sys.stdlib_module_names or top == "__future__":
        return "stdlib"
    return "third_party"
