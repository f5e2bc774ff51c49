"""Static module discovery (pure AST, never imports the target).

Reports classes (bases, fields, methods, inherited project methods),
functions, constants, __all__ and submodules of a module.
"""

from __future__ import annotations

__all__ = ["discover_module"]

import ast
import logging
from pathlib import Path
from typing import Any

from eyeball.helpers.ast_helper import (
    extract_imports,
    format_signature,
    get_docstring,
    parse_source_file,
    symbol_kind,
)
from eyeball.helpers.docstring_helper import summary_line
from eyeball.helpers.exceptions import ResolutionError, SourceSyntaxError
from eyeball.helpers.paths_helper import resolve_module_file

logger = logging.getLogger(__name__)

# Typing artifacts, not real constants
EXCLUDED_CONSTANTS = frozenset({"TYPE_CHECKING"})
MAX_CONSTANT_CHARS = 100
MAX_DEFAULT_CHARS = 50


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _is_visible(name: str, include_private: bool) -> bool:
    return include_private or not name.startswith("_") or (name.startswith("__") and name.endswith("__"))


def _doc_fields(node: ast.AST, include_docs: bool) -> dict[str, str]:
    doc = get_docstring(node)
    if not doc:
        return {}
    if include_docs:
        return {"doc": doc}
    return {"summary": summary_line(doc)}


def _extract_methods(class_node: ast.ClassDef, include_private: bool, include_docs: bool) -> dict[str, dict[str, Any]]:
    methods: dict[str, dict[str, Any]] = {}
    for item in class_node.body:
        if not isinstance(item, ast.FunctionDef | ast.AsyncFunctionDef):
            continue
        if not _is_visible(item.name, include_private):
            continue
        info: dict[str, Any] = {
            "signature": format_signature(item),
            "kind": symbol_kind(item, in_class=True),
            "line": item.lineno,
        }
        info.update(_doc_fields(item, include_docs))
        methods[item.name] = info
    return methods


def _extract_fields(class_node: ast.ClassDef) -> dict[str, dict[str, Any]]:
    """Annotated class attributes (dataclasses, pydantic models, TypedDicts)."""
    fields: dict[str, dict[str, Any]] = {}
    for item in class_node.body:
        if isinstance(item, ast.AnnAssign) and isinstance(item.target, ast.Name):
            info: dict[str, Any] = {"type": ast.unparse(item.annotation)}
            if item.value is not None:
                info["default"] = _truncate(ast.unparse(item.value), MAX_DEFAULT_CHARS)
            fields[item.target.id] = info
    return fields


def _base_reference(base: ast.expr, imports: dict[str, str], module_name: str) -> tuple[str, str] | None:
    """(module, class name) a base-class expression refers to, if resolvable."""
    if isinstance(base, ast.Name):
        if base.id in imports:
            target = imports[base.id]
            module, _, name = target.rpartition(".")
            return (module, name) if module else None
        return module_name, base.id
    if isinstance(base, ast.Attribute) and isinstance(base.value, ast.Name) and base.value.id in imports:
        return imports[base.value.id], base.attr
    return None


def _inherited_methods(
    class_node: ast.ClassDef,
    module_name: str,
    imports: dict[str, str],
    roots: list[Path],
    visited: set[str],
    include_private: bool,
) -> dict[str, dict[str, Any]]:
    """Methods from project base classes, nearest base first."""
    collected: dict[str, dict[str, Any]] = {}
    for base in class_node.bases:
        ref = _base_reference(base, imports, module_name)
        if ref is None:
            continue
        base_module, base_name = ref
        key = f"{base_module}.{base_name}"
        if key in visited:
            continue
        visited.add(key)

        path = resolve_module_file(base_module, roots)
        if path is None or not any(_is_relative_to(path, r) for r in roots):
            # stdlib and third-party bases are not expanded
            continue
        try:
            tree = parse_source_file(path)
        except SourceSyntaxError:
            logger.debug("Skipping unparsable base module %s", path)
            continue

        for node in tree.body:
            if isinstance(node, ast.ClassDef) and node.name == base_name:
                base_imports = extract_imports(tree, base_module, is_package=path.name == "__init__.py", walk=False)
                for name, info in _extract_methods(node, include_private, include_docs=False).items():
                    collected.setdefault(name, {**info, "inherited_from": key})
                parents = _inherited_methods(node, base_module, base_imports, roots, visited, include_private)
                for name, info in parents.items():
                    collected.setdefault(name, info)
                break
    return collected


def _is_relative_to(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _literal_all(node: ast.Assign) -> list[str] | None:
    if any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
        if isinstance(node.value, ast.List | ast.Tuple):
            return [e.value for e in node.value.elts if isinstance(e, ast.Constant) and isinstance(e.value, str)]
    return None


def _submodules(path: Path) -> list[str]:
    if path.name != "__init__.py":
        return []
    names: list[str] = []
    for item in sorted(path.parent.iterdir()):
        if item.suffix == ".py" and item.stem != "__init__":
            names.append(item.stem)
        elif item.is_dir() and (item / "__init__.py").exists():
            names.append(item.name)
    return names


def discover_module(
    module_name: str,
    roots: list[Path],
    *,
    include_private: bool = False,
    include_docs: bool = True,
    include_inherited: bool = True,
) -> dict[str, Any]:
    """Static API of one module.

    Raises:
        ResolutionError: the module file cannot be located
        SourceSyntaxError: the module does not parse
    """
    path = resolve_module_file(module_name, roots)
    if path is None:
        msg = f"Could not find module file for: {module_name}"
        raise ResolutionError(msg, error_type="ModuleNotFound")

    is_package = path.name == "__init__.py"
    tree = parse_source_file(path)
    imports = extract_imports(tree, module_name, is_package=is_package, walk=False)

    classes: dict[str, Any] = {}
    functions: dict[str, Any] = {}
    constants: dict[str, str] = {}
    exported: list[str] | None = None

    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            if not _is_visible(node.name, include_private):
                continue
            info: dict[str, Any] = {"line": node.lineno, "bases": [ast.unparse(b) for b in node.bases]}
            fields = _extract_fields(node)
            if fields:
                info["fields"] = fields
            methods = _extract_methods(node, include_private, include_docs)
            if include_inherited:
                inherited = _inherited_methods(node, module_name, imports, roots, {f"{module_name}.{node.name}"}, include_private)
                for name, method in inherited.items():
                    methods.setdefault(name, method)
            info["methods"] = methods
            info.update(_doc_fields(node, include_docs))
            classes[node.name] = info

        elif isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
            if not _is_visible(node.name, include_private):
                continue
            info = {"signature": format_signature(node), "kind": symbol_kind(node), "line": node.lineno}
            info.update(_doc_fields(node, include_docs))
            functions[node.name] = info

        elif isinstance(node, ast.Assign):
            exported = _literal_all(node) if exported is None else exported
            for target in node.targets:
                if isinstance(target, ast.Name) and target.id.isupper() and target.id not in EXCLUDED_CONSTANTS:
                    constants[target.id] = _truncate(ast.unparse(node.value), MAX_CONSTANT_CHARS)

        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            if node.target.id.isupper() and node.value is not None:
                constants[node.target.id] = _truncate(ast.unparse(node.value), MAX_CONSTANT_CHARS)

    result: dict[str, Any] = {
        "module": module_name,
        "file": str(path),
        "is_package": is_package,
        "classes": classes,
        "functions": functions,
        "constants": constants,
    }
    module_doc = get_docstring(tree)
    if module_doc:
        result["doc"] = module_doc if include_docs else summary_line(module_doc)
    if exported is not None:
        result["__all__"] = exported
    if is_package:
        result["submodules"] = _submodules(path)
    return result
