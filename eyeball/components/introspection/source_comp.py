"""Static source retrieval.

Finds classes, functions, methods and nested definitions by walking the
AST of the located module file. No code is executed.
"""

from __future__ import annotations

__all__ = ["get_static_source"]

from pathlib import Path
from typing import Any

from eyeball.helpers.ast_helper import find_symbol, parse_source_file, symbol_kind
from eyeball.helpers.exceptions import ResolutionError
from eyeball.helpers.file_lines import count_lines, read_line_range
from eyeball.helpers.paths_helper import split_module_and_symbol

MAX_CONTEXT_LINES = 50
DEFAULT_MAX_CHARS = 20000


def get_static_source(
    qualified_name: str, roots: list[Path], *, context: int = 0, max_chars: int = DEFAULT_MAX_CHARS
) -> dict[str, Any]:
    """Source text of a module or a symbol inside it.

    Args:
        qualified_name: "pkg.mod", "pkg.mod.func", "pkg.mod.Class.method", ...
        roots: Import roots to search
        context: Extra lines before and after the definition (capped at 50)
        max_chars: Longer source text is cut and flagged "truncated"

    Raises:
        ResolutionError: module not locatable, or symbol not defined statically
        SourceSyntaxError: the module file does not parse
    """
    split = split_module_and_symbol(qualified_name, roots)
    if split is None:
        msg = f"Could not find module file for: {qualified_name}"
        raise ResolutionError(msg, error_type="ModuleNotFound")
    module_name, path, symbol_path = split
    total = count_lines(path)

    if not symbol_path:
        return {
            "target": qualified_name,
            "kind": "package" if path.name == "__init__.py" else "module",
            "file": str(path),
            "line": 1,
            "end_line": total,
            "line_count": total,
            "static": True,
            **_capped(path.read_bytes().decode("utf-8", errors="replace"), max_chars),
        }

    tree = parse_source_file(path)
    node, parents = find_symbol(tree, symbol_path)
    if node is None:
        msg = f"Symbol not found: {'.'.join(symbol_path)} in {path}"
        raise ResolutionError(msg, error_type="SymbolNotFound", file=str(path))

    # Decorators belong to the definition
    start = min([node.lineno, *(d.lineno for d in node.decorator_list)])
    end = node.end_lineno or node.lineno
    context = max(0, min(context, MAX_CONTEXT_LINES))
    first = max(1, start - context)
    last = min(total, end + context)

    in_class = bool(parents) and parents[-1].__class__.__name__ == "ClassDef"
    return {
        "target": qualified_name,
        "module": module_name,
        "kind": symbol_kind(node, in_class=in_class),
        "file": str(path),
        "line": start,
        "end_line": end,
        "line_count": end - start + 1,
        "context": context,
        "static": True,
        **_capped(read_line_range(path, first, last), max_chars),
    }


def _capped(source: str, max_chars: int) -> dict[str, Any]:
    if len(source) <= max_chars:
        return {"source": source, "truncated": False}
    return {"source": source[:max_chars] + f"... [truncated {len(source) - max_chars} chars]", "truncated": True}
