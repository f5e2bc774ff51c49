"""Keyword search over a module's (or package's) members.

Static scan of classes, functions, methods and constants. Scoring per
keyword: exact name match 3, name substring 2, docstring substring 1.
"""

from __future__ import annotations

__all__ = ["search_members"]

import ast
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from eyeball.helpers.ast_helper import get_docstring, parse_source_file, symbol_kind
from eyeball.helpers.docstring_helper import summary_line
from eyeball.helpers.exceptions import ResolutionError, SourceSyntaxError
from eyeball.helpers.paths_helper import iter_package_modules, resolve_module_file

logger = logging.getLogger(__name__)

SCORE_EXACT = 3
SCORE_NAME = 2
SCORE_DOC = 1


def _iter_members(tree: ast.Module, module_name: str, include_private: bool) -> Iterator[dict[str, Any]]:
    """Yield one record per class/function/method/constant in a module."""

    def visible(name: str) -> bool:
        return include_private or not name.startswith("_")

    for node in tree.body:
        if isinstance(node, ast.ClassDef) and visible(node.name):
            yield {"name": node.name, "qualname": f"{module_name}.{node.name}", "kind": "class",
                   "line": node.lineno, "doc": get_docstring(node)}
            for item in node.body:
                if isinstance(item, ast.FunctionDef | ast.AsyncFunctionDef) and visible(item.name):
                    yield {"name": item.name, "qualname": f"{module_name}.{node.name}.{item.name}",
                           "kind": symbol_kind(item, in_class=True), "line": item.lineno, "doc": get_docstring(item)}
        elif isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef) and visible(node.name):
            yield {"name": node.name, "qualname": f"{module_name}.{node.name}", "kind": symbol_kind(node),
                   "line": node.lineno, "doc": get_docstring(node)}
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name) and target.id.isupper():
                    yield {"name": target.id, "qualname": f"{module_name}.{target.id}", "kind": "constant",
                           "line": node.lineno, "doc": ""}


def _score(member: dict[str, Any], keywords: list[str]) -> tuple[int, list[str]]:
    name = member["name"].lower()
    doc = member["doc"].lower()
    score = 0
    matched: list[str] = []
    for keyword in keywords:
        if name == keyword:
            score += SCORE_EXACT
        elif keyword in name:
            score += SCORE_NAME
        elif keyword in doc:
            score += SCORE_DOC
        else:
            continue
        matched.append(keyword)
    return score, matched


def search_members(
    module_name: str,
    keywords: list[str],
    roots: list[Path],
    *,
    limit: int = 20,
    include_private: bool = False,
) -> dict[str, Any]:
    """Rank members of a module (recursively for packages) against keywords.

    Raises:
        ResolutionError: the module cannot be located or no keyword was given
    """
    terms = [k.strip().lower() for k in keywords if k.strip()]
    if not terms:
        msg = "search needs at least one non-empty keyword"
        raise ResolutionError(msg, error_type="UsageError")
    path = resolve_module_file(module_name, roots)
    if path is None:
        msg = f"Could not find module file for: {module_name}"
        raise ResolutionError(msg, error_type="ModuleNotFound")

    if path.name == "__init__.py":
        modules = list(iter_package_modules(path.parent, module_name))
    else:
        modules = [(module_name, path)]

    hits: list[dict[str, Any]] = []
    skipped: list[str] = []
    for mod_name, mod_path in modules:
        try:
            tree = parse_source_file(mod_path)
        except SourceSyntaxError as e:
            logger.warning("Skipping %s: %s", mod_path, e.message)
            skipped.append(str(mod_path))
            continue
        for member in _iter_members(tree, mod_name, include_private):
            score, matched = _score(member, terms)
            if not score:
                continue
            hits.append({
                "qualname": member["qualname"],
                "kind": member["kind"],
                "score": score,
                "matched": matched,
                "file": str(mod_path),
                "line": member["line"],
                "summary": summary_line(member["doc"]),
            })

    hits.sort(key=lambda h: (-h["score"], h["qualname"]))
    result: dict[str, Any] = {
        "module": module_name,
        "keywords": terms,
        "modules_scanned": len(modules),
        "total_hits": len(hits),
        "hits": hits[: max(1, limit)],
    }
    if skipped:
        result["skipped"] = skipped
    return result
