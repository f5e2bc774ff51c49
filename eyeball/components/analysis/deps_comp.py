"""Forward dependency trees and reverse caller search over a ModuleIndex."""

from __future__ import annotations

__all__ = ["MAX_DEPTH", "CallNode", "find_callers", "trace_dependencies"]

import logging
from collections import defaultdict, deque
from dataclasses import asdict, dataclass, field
from typing import Any

from eyeball.components.analysis.module_index_comp import FunctionInfo, ModuleIndex
from eyeball.helpers.exceptions import AnalysisError

logger = logging.getLogger(__name__)

# Hard ceiling on recursion for both directions
MAX_DEPTH = 8


@dataclass
class CallNode:
    """One resolved call inside a dependency tree."""

    call: str  # expression at the call site, e.g. "self.repo.save"
    resolved: str  # qualified name of the definition
    line: int  # call-site line
    file: str | None = None  # file of the definition
    def_line: int | None = None
    cycle: bool = False
    calls: list[CallNode] = field(default_factory=list)


def _clamp(depth: int) -> int:
    return max(1, min(depth, MAX_DEPTH))


def _trace(
    index: ModuleIndex,
    func: FunctionInfo,
    depth: int,
    path: tuple[str, ...],
    flat: list[dict[str, Any]],
    unresolved: set[str],
) -> list[CallNode]:
    nodes: list[CallNode] = []
    for expr, line, resolved in index.calls_of(func):
        if resolved is None:
            if len(path) == 1:
                unresolved.add(expr)
            continue
        callee = index.get(resolved)
        node = CallNode(
            call=expr,
            resolved=resolved,
            line=line,
            file=callee.file if callee else None,
            def_line=callee.line if callee else None,
        )
        flat.append({"caller": func.qualname, "callee": resolved, "file": func.file, "line": line})
        if resolved in path:
            node.cycle = True
        elif callee is not None and depth > 1:
            target = callee
            if callee.kind == "class":
                # Constructing a class runs its __init__
                init = index.find_method(callee.qualname, "__init__")
                target = index.get(init) if init else None
            if target is not None and target.kind != "class":
                node.calls = _trace(index, target, depth - 1, (*path, resolved), flat, unresolved)
        nodes.append(node)
    return nodes


def trace_dependencies(index: ModuleIndex, target: str, depth: int = 3) -> dict[str, Any]:
    """Forward dependencies of a function, method, class or module.

    Functions and methods yield a call tree; classes yield one subtree per
    method; modules yield the internal modules they import, recursively.

    Raises:
        AnalysisError: target not defined in the indexed package
    """
    depth = _clamp(depth)
    resolved = index.resolve_target(target)

    if index.has_module(resolved):
        return _module_dependencies(index, resolved, depth)

    func = index.get(resolved)
    if func is None:
        msg = f"Not a function, method or class: {resolved}"
        raise AnalysisError(msg)
    flat: list[dict[str, Any]] = []
    unresolved: set[str] = set()

    if func.kind == "class":
        tree = []
        for method in index.methods_of(func.qualname):
            children = _trace(index, method, depth, (method.qualname,), flat, unresolved)
            tree.append({
                "method": method.qualname,
                "line": method.line,
                "calls": [asdict(c) for c in children],
            })
    else:
        tree = [asdict(c) for c in _trace(index, func, depth, (func.qualname,), flat, unresolved)]

    logger.debug("deps %s: %d resolved calls", resolved, len(flat))
    return {
        "target": resolved,
        "kind": func.kind,
        "file": func.file,
        "line": func.line,
        "depth": depth,
        "tree": tree,
        "flat": flat,
        "call_count": len(flat),
        "unresolved": sorted(unresolved),
    }


def _module_dependencies(index: ModuleIndex, module: str, depth: int) -> dict[str, Any]:
    flat: list[dict[str, Any]] = []

    def walk(name: str, remaining: int, path: tuple[str, ...]) -> list[dict[str, Any]]:
        children = []
        for dep in sorted(index.imported_modules(name)):
            flat.append({"importer": name, "module": dep})
            node: dict[str, Any] = {"module": dep, "file": str(index.module_path(dep))}
            if dep in path:
                node["cycle"] = True
            elif remaining > 1:
                node["imports"] = walk(dep, remaining - 1, (*path, dep))
            children.append(node)
        return children

    tree = walk(module, depth, (module,))
    return {
        "target": module,
        "kind": "module",
        "file": str(index.module_path(module)),
        "depth": depth,
        "tree": tree,
        "flat": flat,
        "call_count": len(flat),
    }


def _reverse_edges(index: ModuleIndex) -> dict[str, list[dict[str, Any]]]:
    """callee qualname -> [{caller, file, line, call}]"""
    edges: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for func in index.functions().values():
        for expr, line, resolved in index.calls_of(func):
            if resolved is not None:
                edges[resolved].append({"caller": func.qualname, "file": func.file, "line": line, "call": expr})
    return edges


def _match_names(index: ModuleIndex, qualname: str) -> set[str]:
    """Qualnames whose calls count as calls of qualname."""
    names = {qualname}
    owner, _, method = qualname.rpartition(".")
    if method == "__init__":
        names.add(owner)
    func = index.get(qualname)
    if func is not None and func.kind == "class":
        init = index.find_method(qualname, "__init__")
        if init:
            names.add(init)
    return names


def find_callers(index: ModuleIndex, target: str, depth: int = 1) -> dict[str, Any]:
    """Every function (or module scope) whose calls resolve to target.

    Level 1 are direct callers; each further level adds the callers of the
    previous level, breadth first, until depth.

    Raises:
        AnalysisError: target not defined in the indexed package
    """
    depth = _clamp(depth)
    resolved = index.resolve_target(target)
    edges = _reverse_edges(index)

    found: list[dict[str, Any]] = []
    seen: set[tuple[str, str, int]] = set()
    visited = {resolved}
    queue: deque[tuple[str, int]] = deque([(resolved, 1)])
    has_callers: set[str] = set()

    while queue:
        current, level = queue.popleft()
        for name in _match_names(index, current):
            for edge in edges.get(name, []):
                key = (edge["caller"], name, edge["line"])
                if key in seen:
                    continue
                seen.add(key)
                has_callers.add(current)
                found.append({**edge, "callee": name, "level": level})
                if level < depth and edge["caller"] not in visited:
                    visited.add(edge["caller"])
                    queue.append((edge["caller"], level + 1))

    callers = {e["caller"] for e in found}
    # Outermost callers reached: nothing in the package calls them
    entrypoints = sorted(c for c in callers if c not in has_callers and not any(n in edges for n in _match_names(index, c)))
    found.sort(key=lambda e: (e["level"], e["caller"], e["line"]))
    return {
        "target": resolved,
        "depth": depth,
        "callers": found,
        "count": len(callers),
        "entrypoints": entrypoints,
    }
