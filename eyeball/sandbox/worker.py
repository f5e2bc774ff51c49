#!/usr/bin/env python3
"""Sandbox worker - runs one eyeball request in a fresh interpreter.

Invariants:
- **Standard library only**: this file is executed as a plain script by the
  target project's interpreter, which may not have eyeball installed.
- **One request, one answer**: a JSON request arrives on stdin; exactly one
  line starting with RESULT_SENTINEL is written to the real stdout.
- **User output is captured**: anything the target code prints goes to
  buffers returned in the answer, never onto the protocol channel.
- **Errors are data**: every exception raised by target code is reported as
  {"type", "message", "file", "line", "traceback"}; the worker itself exits 0.
"""

import ast
import asyncio
import builtins
import contextlib
import dataclasses
import importlib
import inspect
import io
import json
import operator
import os
import pkgutil
import sys
import traceback
from unittest import mock

RESULT_SENTINEL = "@@EYEBALL-RESULT@@"
FIXTURE_MARKER = "__eyeball_fixture__"
MAX_MEMBERS = 300
MAX_DEPTH = 6
WORKER_FILE = os.path.abspath(__file__)

COMPARE_OPS = {
    ast.Eq: (operator.eq, "=="),
    ast.NotEq: (operator.ne, "!="),
    ast.Lt: (operator.lt, "<"),
    ast.LtE: (operator.le, "<="),
    ast.Gt: (operator.gt, ">"),
    ast.GtE: (operator.ge, ">="),
    ast.Is: (operator.is_, "is"),
    ast.IsNot: (operator.is_not, "is not"),
    ast.In: (lambda a, b: a in b, "in"),
    ast.NotIn: (lambda a, b: a not in b, "not in"),
}


class PhaseError(Exception):
    """An exception raised while preparing or tearing down a probe."""

    def __init__(self, phase, cause, checks=None):
        super().__init__(str(cause))
        self.phase = phase
        self.cause = cause
        self.checks = checks or []


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def cap(text, max_chars):
    if text is None or len(text) <= max_chars:
        return text
    return text[:max_chars] + f"... [truncated {len(text) - max_chars} chars]"


def short_repr(value, max_chars=200):
    try:
        text = repr(value)
    except Exception as e:  # noqa: BLE001 - a broken __repr__ must not kill the worker
        text = f"<unrepresentable {type(value).__name__}: {e}>"
    return cap(text, max_chars)


def to_jsonable(value, depth=0):
    """Best-effort JSON-safe form of a value; falls back to repr."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if value == value and value not in (float("inf"), float("-inf")) else repr(value)
    if depth >= MAX_DEPTH:
        return short_repr(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v, depth + 1) for v in value[:MAX_MEMBERS]]
    if isinstance(value, (set, frozenset)):
        return sorted((to_jsonable(v, depth + 1) for v in list(value)[:MAX_MEMBERS]), key=repr)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v, depth + 1) for k, v in list(value.items())[:MAX_MEMBERS]}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name, None), depth + 1) for f in dataclasses.fields(value)}
    dump = getattr(value, "model_dump", None)
    if callable(dump) and not isinstance(value, type):
        try:
            return to_jsonable(dump(), depth + 1)
        except Exception:  # noqa: BLE001
            pass
    return short_repr(value)


def user_frame(tb):
    """Innermost traceback frame that belongs to target code."""
    frames = [
        f for f in traceback.extract_tb(tb)
        if os.path.abspath(f.filename) != WORKER_FILE
        and not f.filename.startswith("<frozen")
        and "importlib" not in f.filename.replace("\\", "/").split("/")[-2:-1]
    ]
    return frames[-1] if frames else None


def error_info(exc, max_chars, phase=None):
    file = line = None
    if isinstance(exc, SyntaxError):
        file, line = exc.filename, exc.lineno
    else:
        frame = user_frame(exc.__traceback__)
        if frame is not None:
            file, line = frame.filename, frame.lineno
    message = exc.msg if isinstance(exc, SyntaxError) and exc.msg else str(exc)
    info = {
        "type": type(exc).__name__,
        "message": message,
        "file": file,
        "line": line,
        "traceback": cap("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), max_chars),
    }
    if phase:
        info["phase"] = phase
    return info


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------


def import_longest_prefix(parts):
    """Import the longest importable prefix of parts; return (module, index)."""
    for i in range(len(parts), 0, -1):
        module_path = ".".join(parts[:i])
        try:
            return importlib.import_module(module_path), i
        except ModuleNotFoundError as e:
            # Only swallow "this module does not exist", not missing deps inside it
            missing = e.name or ""
            if missing == module_path or module_path.startswith(missing + "."):
                continue
            raise
    raise ModuleNotFoundError(f"No module named '{parts[0]}'", name=parts[0])


def resolve(dotted):
    """Resolve a dotted path to (obj, parent, attribute name)."""
    parts = [p for p in dotted.split(".") if p]
    if not parts:
        raise ValueError("empty target")
    obj, i = import_longest_prefix(parts)
    parent, name = None, parts[i - 1]
    walked = ".".join(parts[:i])
    for attr in parts[i:]:
        try:
            parent, obj = obj, getattr(obj, attr)
        except AttributeError:
            raise AttributeError(f"'{walked}' has no attribute '{attr}'") from None
        name = attr
        walked = f"{walked}.{attr}"
    return obj, parent, name


def import_module_or_none(name):
    return importlib.import_module(name) if name else None


# ----------------------------------------------------------------------
# Description
# ----------------------------------------------------------------------


def kind_of(obj, parent=None, name=None):
    if inspect.isclass(parent) and name is not None:
        try:
            static = inspect.getattr_static(parent, name)
        except AttributeError:
            static = None
        if isinstance(static, staticmethod):
            return "staticmethod"
        if isinstance(static, classmethod):
            return "classmethod"
        if isinstance(static, property):
            return "property"
        if inspect.isfunction(static):
            return "async_method" if inspect.iscoroutinefunction(static) else "method"
    if inspect.ismodule(obj):
        return "package" if hasattr(obj, "__path__") else "module"
    if inspect.isclass(obj):
        return "class"
    if inspect.ismethod(obj):
        return "method"
    if inspect.iscoroutinefunction(obj):
        return "async_function"
    if inspect.isfunction(obj):
        return "function"
    if inspect.isbuiltin(obj):
        return "builtin"
    if isinstance(obj, property):
        return "property"
    if inspect.ismethoddescriptor(obj) or inspect.isdatadescriptor(obj):
        return "descriptor"
    return "instance"


def signature_of(obj):
    if not callable(obj):
        return None
    try:
        return str(inspect.signature(obj))
    except (ValueError, TypeError):
        return None


def location_of(obj):
    target = inspect.unwrap(obj) if callable(obj) else obj
    if isinstance(target, property) and target.fget is not None:
        target = target.fget
    try:
        file = inspect.getsourcefile(target) or inspect.getfile(target)
    except TypeError:
        return None, None
    if inspect.ismodule(target):
        return file, 1
    try:
        _, line = inspect.getsourcelines(target)
    except (OSError, TypeError):
        line = None
    return file, line or None


def doc_summary(obj):
    doc = inspect.getdoc(obj) or ""
    lines = []
    for line in doc.strip().splitlines():
        if not line.strip():
            break
        lines.append(line.strip())
    return " ".join(lines)


def is_public(name, include_private):
    return include_private or not name.startswith("_") or name == "__init__"


def class_members(cls, include_private):
    members = []
    for attr in inspect.classify_class_attrs(cls):
        if attr.defining_class is object or not is_public(attr.name, include_private):
            continue
        if attr.name.startswith("__") and attr.name != "__init__" and not include_private:
            continue
        entry = {
            "name": attr.name,
            "kind": attr.kind,
            "defined_in": attr.defining_class.__qualname__,
        }
        value = getattr(cls, attr.name, None)
        sig = signature_of(value) if attr.kind in ("method", "class method", "static method") else None
        if sig:
            entry["signature"] = sig
        summary = doc_summary(value) if attr.kind != "data" else ""
        if summary:
            entry["summary"] = summary
        members.append(entry)
        if len(members) >= MAX_MEMBERS:
            break
    return members


def module_members(module, include_private):
    exported = getattr(module, "__all__", None)
    names = list(exported) if isinstance(exported, (list, tuple)) else sorted(dir(module))
    members = []
    for name in names:
        if not is_public(name, include_private) or name.startswith("__"):
            continue
        try:
            value = getattr(module, name)
        except AttributeError:
            continue
        if inspect.ismodule(value):
            continue
        entry = {"name": name, "kind": kind_of(value)}
        defined_in = getattr(value, "__module__", None)
        if defined_in and defined_in != module.__name__ and (inspect.isclass(value) or inspect.isroutine(value)):
            entry["imported_from"] = defined_in
        sig = signature_of(value) if inspect.isroutine(value) or inspect.isclass(value) else None
        if sig:
            entry["signature"] = sig
        members.append(entry)
        if len(members) >= MAX_MEMBERS:
            break
    return members


def submodules(module):
    path = getattr(module, "__path__", None)
    if not path:
        return []
    return sorted(info.name for info in pkgutil.iter_modules(path))


def describe(obj, parent, name, target, request):
    include_private = request.get("include_private", False)
    max_chars = request.get("max_chars", 20000)
    kind = kind_of(obj, parent, name)
    file, line = location_of(obj)
    info = {
        "target": target,
        "kind": kind,
        "name": getattr(obj, "__name__", name),
        "qualname": getattr(obj, "__qualname__", None),
        "module": getattr(obj, "__module__", None) if not inspect.ismodule(obj) else obj.__name__,
        "file": file,
        "line": line,
        "signature": signature_of(obj),
        "summary": doc_summary(obj),
    }
    if inspect.isclass(obj):
        info["bases"] = [f"{b.__module__}.{b.__qualname__}" for b in obj.__bases__]
        info["mro"] = [f"{c.__module__}.{c.__qualname__}" for c in obj.__mro__]
        info["members"] = class_members(obj, include_private)
        info["is_abstract"] = inspect.isabstract(obj)
    elif inspect.ismodule(obj):
        info["members"] = module_members(obj, include_private)
        info["submodules"] = submodules(obj)
    elif kind in ("method", "function", "async_function", "async_method", "classmethod", "staticmethod"):
        func = inspect.unwrap(obj)
        info["is_async"] = inspect.iscoroutinefunction(func)
        info["is_generator"] = inspect.isgeneratorfunction(func)
        info["decorated"] = func is not obj
    elif kind == "instance":
        info["type"] = f"{type(obj).__module__}.{type(obj).__qualname__}"
        info["repr"] = cap(short_repr(obj, max_chars), max_chars)
    return {k: v for k, v in info.items() if v is not None}


# ----------------------------------------------------------------------
# Operations
# ----------------------------------------------------------------------


def op_inspect(request):
    obj, parent, name = resolve(request["target"])
    return describe(obj, parent, name, request["target"], request), []


def op_doc(request):
    obj, parent, name = resolve(request["target"])
    max_chars = request.get("max_chars", 20000)
    doc = inspect.getdoc(obj)
    result = {
        "target": request["target"],
        "kind": kind_of(obj, parent, name),
        "signature": signature_of(obj),
        "has_doc": bool(doc),
        "doc": cap(doc, max_chars) if doc else None,
    }
    if inspect.isclass(obj):
        methods = {}
        for attr in inspect.classify_class_attrs(obj):
            if attr.defining_class is object or attr.kind == "data":
                continue
            if not is_public(attr.name, request.get("include_private", False)):
                continue
            if attr.name.startswith("__") and attr.name != "__init__":
                continue
            methods[attr.name] = doc_summary(getattr(obj, attr.name, None))
        result["methods"] = methods
    return {k: v for k, v in result.items() if v is not None}, []


def op_source(request):
    obj, _parent, _name = resolve(request["target"])
    max_chars = request.get("max_chars", 20000)
    target = obj.fget if isinstance(obj, property) and obj.fget else obj
    lines, start = inspect.getsourcelines(target)
    source = "".join(lines)
    return {
        "target": request["target"],
        "file": inspect.getsourcefile(target),
        "line": start or 1,
        "end_line": (start or 1) + len(lines) - 1,
        "line_count": len(lines),
        "source": cap(source, max_chars),
        "truncated": len(source) > max_chars,
    }, []


def op_members(request):
    module = importlib.import_module(request["target"])
    include_private = request.get("include_private", False)
    api = {"module": module.__name__, "file": getattr(module, "__file__", None),
           "classes": {}, "functions": {}, "constants": {}, "imported": {}}
    for entry in module_members(module, include_private):
        value = getattr(module, entry["name"])
        if "imported_from" in entry:
            api["imported"][entry["name"]] = entry["imported_from"]
        elif inspect.isclass(value):
            api["classes"][entry["name"]] = {
                "signature": entry.get("signature"),
                "summary": doc_summary(value),
                "methods": {m["name"]: m.get("signature") for m in class_members(value, include_private)
                            if m["kind"] != "data"},
            }
        elif inspect.isroutine(value):
            api["functions"][entry["name"]] = {"signature": entry.get("signature"), "summary": doc_summary(value)}
        elif entry["name"].isupper():
            api["constants"][entry["name"]] = short_repr(value, 100)
    api["submodules"] = submodules(module)
    return api, []


def await_if_needed(value):
    if inspect.isawaitable(value):
        async def _wait():
            return await value

        return asyncio.run(_wait())
    return value


def op_call(request):
    obj, parent, name = resolve(request["target"])
    if not callable(obj):
        raise TypeError(f"'{request['target']}' is not callable ({type(obj).__name__})")
    args = request.get("args", [])
    kwargs = request.get("kwargs", {})
    value = await_if_needed(obj(*args, **kwargs))
    max_chars = request.get("max_chars", 20000)
    result = {
        "target": request["target"],
        "kind": kind_of(obj, parent, name),
        "value": to_jsonable(value),
        "repr": short_repr(value, max_chars),
        "type": f"{type(value).__module__}.{type(value).__qualname__}",
    }
    if inspect.isclass(obj):
        result["constructed"] = True
        attributes = getattr(value, "__dict__", None)
        if isinstance(attributes, dict):
            result["attributes"] = {
                k: to_jsonable(v) for k, v in attributes.items()
                if is_public(k, request.get("include_private", False))
            }
    return result, []


def base_namespace(module_name):
    module = import_module_or_none(module_name)
    if module is not None:
        namespace = dict(vars(module))
    else:
        namespace = {"__name__": "__eyeball__", "__builtins__": builtins}
    return namespace


def run_code(code, namespace, filename):
    """exec code; if the last statement is an expression return its value."""
    tree = ast.parse(code, filename=filename, mode="exec")
    last = tree.body[-1] if tree.body else None
    if isinstance(last, ast.Expr):
        body = ast.Module(body=tree.body[:-1], type_ignores=[])
        exec(compile(body, filename, "exec"), namespace)
        return True, eval(compile(ast.Expression(body=last.value), filename, "eval"), namespace)
    exec(compile(tree, filename, "exec"), namespace)
    return False, None


def op_exec(request):
    namespace = base_namespace(request.get("module"))
    has_value, value = run_code(request["code"], namespace, "<exec>")
    value = await_if_needed(value)
    result = {"has_value": has_value}
    if has_value:
        result["value"] = to_jsonable(value)
        result["repr"] = short_repr(value, request.get("max_chars", 20000))
        result["type"] = f"{type(value).__module__}.{type(value).__qualname__}"
    return result, []


# ----------------------------------------------------------------------
# Probes
# ----------------------------------------------------------------------


def find_fixture(module, name):
    for attr in vars(module).values():
        if getattr(attr, FIXTURE_MARKER, None) == name:
            return attr
    if hasattr(module, name):
        return getattr(module, name)
    raise LookupError(f"Unknown fixture '{name}' in {module.__name__}")


def finish_generator(gen, name):
    try:
        next(gen)
    except StopIteration:
        return
    raise RuntimeError(f"fixture '{name}' yielded more than once")


def resolve_fixtures(names, module_name, stack):
    if not names:
        return {}
    if not module_name:
        raise LookupError("probe requests fixtures but no fixtures module is configured")
    module = importlib.import_module(module_name)
    values = {}

    def build(name, chain):
        if name in values:
            return values[name]
        if name in chain:
            raise RecursionError(f"fixture cycle: {' -> '.join([*chain, name])}")
        provider = find_fixture(module, name)
        if not inspect.isfunction(provider):
            values[name] = provider
            return provider
        deps = {
            param: build(param, [*chain, name])
            for param, spec in inspect.signature(provider).parameters.items()
            if spec.default is inspect.Parameter.empty
        }
        if inspect.isgeneratorfunction(provider):
            gen = provider(**deps)
            value = next(gen)
            stack.callback(finish_generator, gen, name)
        else:
            value = provider(**deps)
        values[name] = value
        return value

    for name in names:
        build(name, [])
    return values


def compile_assertion(assertion):
    """Return ("expr", tree) or ("exec", code); SyntaxError propagates."""
    source = assertion["expr"]
    try:
        tree = ast.parse(source, filename=f"<assert {assertion['name']}>", mode="eval")
        return "expr", tree
    except SyntaxError:
        return "exec", compile(source, f"<assert {assertion['name']}>", "exec")


def evaluate_assertion(assertion, compiled, namespace):
    name = assertion["name"]
    mode, payload = compiled
    filename = f"<assert {name}>"
    try:
        if mode == "exec":
            exec(payload, namespace)
            return {"name": name, "passed": True}
        body = payload.body
        if isinstance(body, ast.Compare) and len(body.ops) == 1 and type(body.ops[0]) in COMPARE_OPS:
            func, symbol = COMPARE_OPS[type(body.ops[0])]
            left = eval(compile(ast.Expression(body=body.left), filename, "eval"), namespace)
            right = eval(compile(ast.Expression(body=body.comparators[0]), filename, "eval"), namespace)
            if func(left, right):
                return {"name": name, "passed": True}
            return {"name": name, "passed": False,
                    "detail": f"{short_repr(left)} {symbol} {short_repr(right)} does not hold"}
        value = eval(compile(payload, filename, "eval"), namespace)
        if value:
            return {"name": name, "passed": True}
        return {"name": name, "passed": False, "detail": f"evaluated to {short_repr(value)}"}
    except AssertionError as e:
        return {"name": name, "passed": False, "detail": f"AssertionError: {e}" if str(e) else "assertion failed"}
    except Exception as e:  # noqa: BLE001 - a raising assertion is a failed check
        return {"name": name, "passed": False, "detail": f"raised {type(e).__name__}: {e}"}


def op_probe(request):
    assertions = request.get("assertions", [])
    try:
        compiled = [compile_assertion(a) for a in assertions]
    except SyntaxError as e:
        raise PhaseError("compile", e) from e

    checks = []
    with contextlib.ExitStack() as stack:
        try:
            namespace = base_namespace(request.get("module"))
        except Exception as e:
            raise PhaseError("module", e) from e
        try:
            namespace.update(resolve_fixtures(request.get("fixtures", []), request.get("fixtures_module"), stack))
        except Exception as e:
            raise PhaseError("fixtures", e) from e
        try:
            for patch in request.get("patches", []):
                value = eval(compile(patch["expr"], f"<patch {patch['target']}>", "eval"), namespace)
                stack.enter_context(mock.patch(patch["target"], value))
                owner, _, attr = patch["target"].rpartition(".")
                if owner == request.get("module"):
                    namespace[attr] = value
        except Exception as e:
            raise PhaseError("patches", e) from e
        if request.get("setup"):
            try:
                run_code(request["setup"], namespace, "<setup>")
            except Exception as e:
                raise PhaseError("setup", e) from e
        for assertion, code in zip(assertions, compiled):
            checks.append(evaluate_assertion(assertion, code, namespace))
        try:
            stack.close()
        except Exception as e:
            raise PhaseError("teardown", e, checks) from e

    return {"module": request.get("module"), "fixtures": request.get("fixtures", []),
            "patches": [p["target"] for p in request.get("patches", [])]}, checks


# ----------------------------------------------------------------------
# Reload snapshots
# ----------------------------------------------------------------------


def op_snapshot(request):
    module = importlib.import_module(request["target"])
    include_private = request.get("include_private", False)
    members = {}
    for entry in module_members(module, include_private):
        if "imported_from" in entry:
            continue
        members[entry["name"]] = {"kind": entry["kind"], "signature": entry.get("signature")}
        value = getattr(module, entry["name"])
        if inspect.isclass(value):
            for member in class_members(value, include_private):
                if member["defined_in"] != value.__qualname__:
                    continue
                members[f"{entry['name']}.{member['name']}"] = {
                    "kind": member["kind"],
                    "signature": member.get("signature"),
                }
    file = getattr(module, "__file__", None)
    return {
        "module": module.__name__,
        "file": file,
        "mtime": os.path.getmtime(file) if file and os.path.exists(file) else None,
        "members": members,
    }, []


OPS = {
    "inspect": op_inspect,
    "doc": op_doc,
    "source": op_source,
    "members": op_members,
    "call": op_call,
    "exec": op_exec,
    "probe": op_probe,
    "snapshot": op_snapshot,
}


def handle(request):
    max_chars = request.get("max_chars", 20000)
    for path in reversed(request.get("paths", [])):
        if path not in sys.path:
            sys.path.insert(0, path)

    handler = OPS.get(request.get("op", ""))
    if handler is None:
        return {"ok": False, "error": {"type": "UnknownOperation", "message": f"unknown op: {request.get('op')}"}}

    out, err = io.StringIO(), io.StringIO()
    try:
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            result, checks = handler(request)
        response = {"ok": True, "result": result, "checks": checks}
    except PhaseError as e:
        response = {"ok": False, "error": error_info(e.cause, max_chars, e.phase), "checks": e.checks}
    except (Exception, SystemExit) as e:  # noqa: BLE001 - reported back to the caller
        response = {"ok": False, "error": error_info(e, max_chars)}
    response["stdout"] = cap(out.getvalue(), max_chars)
    response["stderr"] = cap(err.getvalue(), max_chars)
    return response


def main():
    # Running as a script puts this directory first on sys.path; target code must not see it
    if sys.path and os.path.abspath(sys.path[0]) == os.path.dirname(WORKER_FILE):
        sys.path.pop(0)
    protocol_out = sys.stdout
    request = json.loads(sys.stdin.read())
    response = handle(request)
    protocol_out.write(RESULT_SENTINEL + json.dumps(response, default=short_repr) + "\n")
    protocol_out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
