"""AST helpers shared by the static operations.

Nothing here imports or executes the code being analysed.
"""

from __future__ import annotations

__all__ = [
    "FunctionNode",
    "SymbolNode",
    "call_to_string",
    "extract_imports",
    "find_symbol",
    "format_signature",
    "get_docstring",
    "iter_calls",
    "parse_source_file",
    "resolve_relative_import",
    "symbol_kind",
]

import ast
from collections.abc import Iterator
from pathlib import Path

from eyeball.helpers.exceptions import SourceSyntaxError

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef
SymbolNode = ast.ClassDef | ast.FunctionDef | ast.AsyncFunctionDef


def parse_source_file(path: Path) -> ast.Module:
    """Parse a Python file, raising SourceSyntaxError with the failing location."""
    try:
        source = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"{path} is not valid UTF-8: {e}"
        raise SourceSyntaxError(msg, file=str(path)) from e
    try:
        return ast.parse(source, filename=str(path))
    except SyntaxError as e:
        raise SourceSyntaxError(f"{e.msg}", file=str(path), line=e.lineno) from e


# ----------------------------------------------------------------------
# Signatures and docstrings
# ----------------------------------------------------------------------


def _format_arg(arg: ast.arg) -> str:
    if arg.annotation:
        return f"{arg.arg}: {ast.unparse(arg.annotation)}"
    return arg.arg


def format_arguments(args: ast.arguments) -> str:
    """Render an ast.arguments node the way inspect.signature would."""
    parts: list[str] = []
    positional = [*args.posonlyargs, *args.args]
    # Defaults align to the end of the positional parameters
    first_default = len(positional) - len(args.defaults)

    for i, arg in enumerate(positional):
        text = _format_arg(arg)
        if i >= first_default:
            text += f" = {ast.unparse(args.defaults[i - first_default])}"
        parts.append(text)
        if args.posonlyargs and i == len(args.posonlyargs) - 1:
            parts.append("/")

    if args.vararg:
        parts.append(f"*{_format_arg(args.vararg)}")
    elif args.kwonlyargs:
        parts.append("*")

    for arg, default in zip(args.kwonlyargs, args.kw_defaults, strict=True):
        text = _format_arg(arg)
        if default is not None:
            text += f" = {ast.unparse(default)}"
        parts.append(text)

    if args.kwarg:
        parts.append(f"**{_format_arg(args.kwarg)}")

    return ", ".join(parts)


def format_signature(node: FunctionNode) -> str:
    """Signature text such as "(x: int, *, y=2) -> str"."""
    text = f"({format_arguments(node.args)})"
    if node.returns:
        text += f" -> {ast.unparse(node.returns)}"
    return text


def get_docstring(node: ast.AST) -> str:
    """Full docstring of a module/class/function node, or ''."""
    if not isinstance(node, ast.Module | ast.ClassDef | ast.FunctionDef | ast.AsyncFunctionDef):
        return ""
    return ast.get_docstring(node, clean=True) or ""


def symbol_kind(node: ast.AST, *, in_class: bool = False) -> str:
    if isinstance(node, ast.ClassDef):
        return "class"
    if isinstance(node, ast.AsyncFunctionDef):
        return "async_method" if in_class else "async_function"
    if isinstance(node, ast.FunctionDef):
        decorators = {ast.unparse(d) for d in node.decorator_list}
        if in_class and "property" in decorators:
            return "property"
        if in_class and "staticmethod" in decorators:
            return "staticmethod"
        if in_class and "classmethod" in decorators:
            return "classmethod"
        return "method" if in_class else "function"
    return "unknown"


def find_symbol(tree: ast.Module, symbol_path: list[str]) -> tuple[SymbolNode | None, list[SymbolNode]]:
    """Walk classes/functions by name.

    Returns (node, parents) where parents are the enclosing class/function
    nodes, outermost first. Nested classes and nested functions are followed.
    """
    body: list[ast.stmt] = tree.body
    parents: list[SymbolNode] = []
    node: SymbolNode | None = None

    for name in symbol_path:
        node = None
        for item in body:
            if isinstance(item, ast.ClassDef | ast.FunctionDef | ast.AsyncFunctionDef) and item.name == name:
                node = item
        if node is None:
            return None, parents
        parents.append(node)
        body = node.body

    if node is not None:
        parents.pop()
    return node, parents


# ----------------------------------------------------------------------
# Imports and calls
# ----------------------------------------------------------------------


def resolve_relative_import(
    base_module: str,
    level: int,
    module: str | None,
    *,
    is_package: bool = False,
) -> str:
    """Resolve a relative import to an absolute module name.

    For packages (__init__.py), level=1 means "same package";
    for plain modules, level=1 means "parent package".
    """
    parts = base_module.split(".")
    effective_level = level - 1 if is_package else level

    base_parts = parts[:-effective_level] if effective_level > 0 else parts
    if effective_level > len(parts):
        base_parts = []

    if module:
        return ".".join([*base_parts, module])
    return ".".join(base_parts)


def extract_imports(
    tree: ast.Module,
    current_module: str,
    *,
    is_package: bool = False,
    walk: bool = True,
) -> dict[str, str]:
    """Map local names to absolute dotted paths.

    E.g. ``from .shapes import Circle as C`` in ``pkg.api`` gives
    ``{"C": "pkg.shapes.Circle"}``. With ``walk`` imports nested in
    functions and conditionals are included.
    """
    imports: dict[str, str] = {}
    nodes = ast.walk(tree) if walk else iter(tree.body)

    for node in nodes:
        if isinstance(node, ast.ImportFrom):
            if node.level:
                base = resolve_relative_import(current_module, node.level, node.module, is_package=is_package)
            else:
                base = node.module or ""
            for alias in node.names:
                if alias.name == "*":
                    continue
                local = alias.asname or alias.name
                imports[local] = f"{base}.{alias.name}" if base else alias.name
        elif isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    imports[alias.asname] = alias.name
                else:
                    # "import a.b" binds "a"
                    top = alias.name.split(".")[0]
                    imports[top] = top

    return imports


def call_to_string(node: ast.expr) -> str | None:
    """Render a call's func expression as a dotted name ("self.repo.save")."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        value = call_to_string(node.value)
        if value:
            return f"{value}.{node.attr}"
    return None


def iter_calls(node: ast.AST) -> Iterator[tuple[str, int]]:
    """Yield (dotted call expression, line) for calls inside node, in line order.

    Calls inside nested function or class definitions are skipped; those are
    attributed to the nested definition itself.
    """
    found: list[tuple[str, int]] = []
    stack: list[ast.AST] = list(ast.iter_child_nodes(node))
    while stack:
        child = stack.pop()
        if isinstance(child, ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef):
            continue
        if isinstance(child, ast.Call):
            text = call_to_string(child.func)
            if text:
                found.append((text, child.lineno))
        stack.extend(ast.iter_child_nodes(child))
    yield from sorted(found, key=lambda item: item[1])
