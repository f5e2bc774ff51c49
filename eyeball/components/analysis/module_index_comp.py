"""Static index of a package: modules, functions, classes and call resolution.

Call resolution is best-effort and purely syntactic:
- names imported into the module (absolute and relative imports)
- functions and classes defined in the same module
- `self.x()` / `cls.x()` inside a class (own methods, then project base classes)
- parameters annotated with a project class (`svc: LibraryService`)
- locals assigned from a project class constructor (`c = Circle(...)`)
Re-exports through package __init__ modules are followed.
"""

from __future__ import annotations

__all__ = ["FunctionInfo", "ModuleIndex"]

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path

from eyeball.helpers.ast_helper import extract_imports, iter_calls, parse_source_file
from eyeball.helpers.exceptions import AnalysisError, SourceSyntaxError
from eyeball.helpers.paths_helper import iter_package_modules, resolve_module_file

logger = logging.getLogger(__name__)

MODULE_SCOPE = "<module>"
MAX_REEXPORT_HOPS = 8


@dataclass
class FunctionInfo:
    """A function, method, or the module-level code of one module."""

    qualname: str
    module: str
    file: str
    line: int
    node: ast.AST
    class_qualname: str | None = None
    kind: str = "function"


@dataclass
class _ModuleEntry:
    name: str
    path: Path
    tree: ast.Module | None = None
    imports: dict[str, str] = field(default_factory=dict)
    parsed: bool = False


def _annotation_name(node: ast.expr | None) -> str | None:
    """Dotted name of an annotation; Optional[X] / X | None give X."""
    if node is None:
        return None
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    if isinstance(node, ast.Attribute):
        base = _annotation_name(node.value)
        return f"{base}.{node.attr}" if base else None
    if isinstance(node, ast.Subscript):
        return _annotation_name(node.slice) if _annotation_name(node.value) in ("Optional", "typing.Optional") else None
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        for side in (node.left, node.right):
            if not (isinstance(side, ast.Constant) and side.value is None):
                return _annotation_name(side)
    return None


class ModuleIndex:
    """Parsed view of every module under one package."""

    def __init__(self, package: str, roots: list[Path]) -> None:
        path = resolve_module_file(package, roots)
        if path is None:
            msg = f"Could not find package '{package}' under {', '.join(str(r) for r in roots)}"
            raise AnalysisError(msg)
        self.package = package
        self.roots = roots
        if path.name == "__init__.py":
            modules = iter_package_modules(path.parent, package)
        else:
            modules = iter([(package, path)])
        self._modules: dict[str, _ModuleEntry] = {name: _ModuleEntry(name, p) for name, p in modules}
        self.skipped: list[str] = []
        self._functions: dict[str, FunctionInfo] | None = None
        logger.debug("Indexed %d modules under %s", len(self._modules), package)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    @property
    def module_names(self) -> list[str]:
        return sorted(self._modules)

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def module_path(self, name: str) -> Path:
        return self._modules[name].path

    def is_internal(self, dotted: str) -> bool:
        return dotted == self.package or dotted.startswith(self.package + ".")

    def _entry(self, name: str) -> _ModuleEntry | None:
        entry = self._modules.get(name)
        if entry is None:
            return None
        if not entry.parsed:
            entry.parsed = True
            try:
                entry.tree = parse_source_file(entry.path)
            except SourceSyntaxError as e:
                logger.warning("Skipping %s: %s (line %s)", entry.path, e.message, e.line)
                self.skipped.append(str(entry.path))
                return entry
            entry.imports = extract_imports(entry.tree, name, is_package=entry.path.name == "__init__.py")
        return entry

    def tree(self, name: str) -> ast.Module | None:
        entry = self._entry(name)
        return entry.tree if entry else None

    def imports(self, name: str) -> dict[str, str]:
        entry = self._entry(name)
        return entry.imports if entry else {}

    def imported_modules(self, name: str) -> set[str]:
        """Internal modules a module imports (`from pkg import sub` counts as pkg.sub)."""
        found: set[str] = set()
        for target in self.imports(name).values():
            if self.has_module(target):
                found.add(target)
            else:
                parent = target.rpartition(".")[0]
                if self.has_module(parent):
                    found.add(parent)
        found.discard(name)
        return found

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def functions(self) -> dict[str, FunctionInfo]:
        """Every function, method and module scope in the package, by qualname."""
        if self._functions is None:
            self._functions = {}
            for name in self.module_names:
                tree = self.tree(name)
                if tree is None:
                    continue
                path = str(self.module_path(name))
                self._functions[f"{name}.{MODULE_SCOPE}"] = FunctionInfo(
                    f"{name}.{MODULE_SCOPE}", name, path, 1, tree, kind="module"
                )
                self._collect(self._functions, tree.body, name, name, path, None)
        return self._functions

    def _collect(
        self,
        found: dict[str, FunctionInfo],
        body: list[ast.stmt],
        module: str,
        prefix: str,
        path: str,
        class_qualname: str | None,
    ) -> None:
        for node in body:
            if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
                qualname = f"{prefix}.{node.name}"
                kind = "method" if class_qualname else "function"
                found[qualname] = FunctionInfo(qualname, module, path, node.lineno, node, class_qualname, kind)
            elif isinstance(node, ast.ClassDef):
                qualname = f"{prefix}.{node.name}"
                found[qualname] = FunctionInfo(qualname, module, path, node.lineno, node, None, "class")
                self._collect(found, node.body, module, qualname, path, qualname)

    def get(self, qualname: str) -> FunctionInfo | None:
        return self.functions().get(qualname)

    def methods_of(self, class_qualname: str) -> list[FunctionInfo]:
        return [f for f in self.functions().values() if f.class_qualname == class_qualname]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def canonical(self, dotted: str, hops: int = 0) -> str | None:
        """Follow re-exports until dotted names a definition in this package."""
        if hops > MAX_REEXPORT_HOPS or not self.is_internal(dotted):
            return None
        parts = dotted.split(".")
        for i in range(len(parts), 0, -1):
            module = ".".join(parts[:i])
            if not self.has_module(module):
                continue
            rest = parts[i:]
            if not rest:
                return module
            candidate = f"{module}.{'.'.join(rest)}"
            if candidate in self.functions():
                return candidate
            owner = f"{module}.{rest[0]}"
            if len(rest) == 2 and self._is_class(owner):
                return self.find_method(owner, rest[1])
            imported = self.imports(module).get(rest[0])
            if imported and imported != dotted:
                return self.canonical(".".join([imported, *rest[1:]]), hops + 1)
            return None
        return None

    def _class_bases(self, class_qualname: str) -> list[str]:
        info = self.get(class_qualname)
        if info is None or not isinstance(info.node, ast.ClassDef):
            return []
        bases: list[str] = []
        for base in info.node.bases:
            name = _annotation_name(base)
            resolved = self._resolve_name(name, info.module) if name else None
            if resolved:
                bases.append(resolved)
        return bases

    def find_method(self, class_qualname: str, method: str, seen: set[str] | None = None) -> str | None:
        """Qualname of `method` on a class or its project base classes (MRO-ish, depth first)."""
        seen = seen if seen is not None else set()
        if class_qualname in seen:
            return None
        seen.add(class_qualname)
        candidate = f"{class_qualname}.{method}"
        if candidate in self.functions():
            return candidate
        for base in self._class_bases(class_qualname):
            found = self.find_method(base, method, seen)
            if found:
                return found
        return None

    def _resolve_name(self, dotted: str, module: str) -> str | None:
        """Resolve a dotted name as seen from inside `module`."""
        parts = dotted.split(".")
        local = f"{module}.{parts[0]}"
        if local in self.functions():
            return self.canonical(".".join([local, *parts[1:]]))
        imported = self.imports(module).get(parts[0])
        if imported:
            return self.canonical(".".join([imported, *parts[1:]]))
        return None

    def local_types(self, func: FunctionInfo) -> dict[str, str]:
        """Variable name -> project class qualname, from annotations and constructor calls."""
        types: dict[str, str] = {}
        node = func.node
        if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
            args = node.args
            for arg in [*args.posonlyargs, *args.args, *args.kwonlyargs]:
                name = _annotation_name(arg.annotation)
                resolved = self._resolve_name(name, func.module) if name else None
                if resolved and self._is_class(resolved):
                    types[arg.arg] = resolved
            statements = ast.walk(node)
        elif isinstance(node, ast.Module):
            statements = iter(node.body)
        else:
            return types
        for stmt in statements:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                name = _annotation_name(stmt.annotation)
                resolved = self._resolve_name(name, func.module) if name else None
                if resolved and self._is_class(resolved):
                    types[stmt.target.id] = resolved
            elif (
                isinstance(stmt, ast.Assign)
                and len(stmt.targets) == 1
                and isinstance(stmt.targets[0], ast.Name)
                and isinstance(stmt.value, ast.Call)
            ):
                name = _annotation_name(stmt.value.func)
                resolved = self._resolve_name(name, func.module) if name else None
                if resolved and self._is_class(resolved):
                    types[stmt.targets[0].id] = resolved
        return types

    def _is_class(self, qualname: str) -> bool:
        info = self.get(qualname)
        return info is not None and info.kind == "class"

    def resolve_call(self, call_expr: str, func: FunctionInfo, local_types: dict[str, str] | None = None) -> str | None:
        """Qualname of the project definition a call expression refers to, if any."""
        parts = call_expr.split(".")
        if parts[0] in ("self", "cls") and len(parts) == 2 and func.class_qualname:
            return self.find_method(func.class_qualname, parts[1])
        if parts[0] == "super" or parts[0] in ("self", "cls"):
            return None

        types = local_types if local_types is not None else self.local_types(func)
        if parts[0] in types and len(parts) == 2:
            return self.find_method(types[parts[0]], parts[1])

        resolved = self._resolve_name(call_expr, func.module)
        if resolved is None or resolved not in self.functions():
            return None
        return resolved

    def calls_of(self, func: FunctionInfo) -> list[tuple[str, int, str | None]]:
        """(call expression, line, resolved qualname or None) for a function's direct calls."""
        if func.kind == "class":
            return []
        types = self.local_types(func)
        return [(expr, line, self.resolve_call(expr, func, types)) for expr, line in iter_calls(func.node)]

    def resolve_target(self, target: str) -> str:
        """Canonical qualname of a user-supplied target inside the package.

        Raises:
            AnalysisError: the target is outside the package or not defined in it
        """
        if not self.is_internal(target):
            msg = f"'{target}' is outside the analysed package '{self.package}'"
            raise AnalysisError(msg)
        resolved = self.canonical(target)
        if resolved is None:
            msg = f"'{target}' is not defined in package '{self.package}'"
            raise AnalysisError(msg)
        return resolved
