"""Import analysis for one module: what it imports, who imports it, cycles."""

from __future__ import annotations

__all__ = ["analyze_imports"]

import ast
import logging
from collections import Counter
from pathlib import Path
from typing import Any

from eyeball.components.analysis.module_index_comp import ModuleIndex
from eyeball.helpers.ast_helper import parse_source_file, resolve_relative_import
from eyeball.helpers.exceptions import ResolutionError
from eyeball.helpers.paths_helper import classify_module, resolve_module_file

logger = logging.getLogger(__name__)


def _is_type_checking(test: ast.expr) -> bool:
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    return isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"


def _collect(
    body: list[ast.stmt],
    module: str,
    is_package: bool,
    flags: dict[str, bool],
    out: list[dict[str, Any]],
) -> None:
    """Append one record per import statement, carrying guard flags down."""
    for node in body:
        if isinstance(node, ast.Import):
            for alias in node.names:
                out.append({
                    "module": alias.name,
                    "names": [],
                    "alias": alias.asname,
                    "line": node.lineno,
                    "statement": ast.unparse(node),
                    **flags,
                })
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                target = resolve_relative_import(module, node.level, node.module, is_package=is_package)
            else:
                target = node.module or ""
            out.append({
                "module": target,
                "names": [a.name if not a.asname else f"{a.name} as {a.asname}" for a in node.names],
                "relative": node.level > 0,
                "line": node.lineno,
                "statement": ast.unparse(node),
                **flags,
            })
        elif isinstance(node, ast.If):
            guarded = {**flags, "type_checking": flags["type_checking"] or _is_type_checking(node.test)}
            _collect(node.body, module, is_package, guarded, out)
            _collect(node.orelse, module, is_package, flags, out)
        elif isinstance(node, ast.Try):
            guarded = {**flags, "in_try": True}
            _collect(node.body, module, is_package, guarded, out)
            for handler in node.handlers:
                _collect(handler.body, module, is_package, guarded, out)
            _collect(node.orelse, module, is_package, guarded, out)
            _collect(node.finalbody, module, is_package, flags, out)
        elif isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
            _collect(node.body, module, is_package, {**flags, "in_function": True}, out)
        elif isinstance(node, ast.ClassDef):
            _collect(node.body, module, is_package, flags, out)
        elif isinstance(node, ast.With | ast.AsyncWith | ast.For | ast.AsyncFor | ast.While):
            _collect(node.body, module, is_package, flags, out)
            _collect(getattr(node, "orelse", []), module, is_package, flags, out)


def _targets(record: dict[str, Any], index: ModuleIndex | None) -> set[str]:
    """Internal modules an import record refers to."""
    if index is None:
        return set()
    found: set[str] = set()
    if index.has_module(record["module"]):
        found.add(record["module"])
    for name in record["names"]:
        sub = f"{record['module']}.{name.split(' as ')[0]}"
        if index.has_module(sub):
            found.add(sub)
    return found


def analyze_imports(module_name: str, roots: list[Path], index: ModuleIndex | None = None) -> dict[str, Any]:
    """Imports of one module, classified, with importers and direct cycles.

    `index` (the configured package) supplies `imported_by` and `cycles`;
    without it only the module's own imports are reported.

    Raises:
        ResolutionError: module not locatable
        SourceSyntaxError: module does not parse
    """
    path = resolve_module_file(module_name, roots)
    if path is None:
        msg = f"Could not find module file for: {module_name}"
        raise ResolutionError(msg, error_type="ModuleNotFound")

    is_package = path.name == "__init__.py"
    tree = parse_source_file(path)
    internal = [index.package] if index else [module_name.split(".")[0]]

    records: list[dict[str, Any]] = []
    _collect(tree.body, module_name, is_package, {"type_checking": False, "in_try": False, "in_function": False}, records)
    for record in records:
        record["kind"] = classify_module(record["module"], internal) if record["module"] else "internal"

    imported_by: list[dict[str, Any]] = []
    cycles: list[list[str]] = []
    if index is not None:
        own_targets: set[str] = set()
        for record in records:
            own_targets |= _targets(record, index)
        own_targets.discard(module_name)

        for other in index.module_names:
            if other == module_name:
                continue
            if module_name in index.imported_modules(other):
                imported_by.append({"module": other, "file": str(index.module_path(other))})
                if other in own_targets:
                    cycles.append([module_name, other, module_name])
        if index.skipped:
            logger.info("imported_by ignores %d unparsable modules", len(index.skipped))

    counts = Counter(r["kind"] for r in records)
    return {
        "module": module_name,
        "file": str(path),
        "imports": records,
        "counts": {kind: counts.get(kind, 0) for kind in ("stdlib", "third_party", "internal")},
        "imported_by": imported_by,
        "cycles": cycles,
    }
