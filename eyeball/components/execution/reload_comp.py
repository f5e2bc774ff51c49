"""Hot-reload: fresh import in the sandbox plus an API diff against the last snapshot."""

from __future__ import annotations

__all__ = ["diff_snapshots", "reload_module"]

import json
import logging
from pathlib import Path
from typing import Any

from eyeball.components.execution.runtime_comp import SandboxContext
from eyeball.sandbox.launcher import WorkerResponse

logger = logging.getLogger(__name__)

SNAPSHOT_DIR = "snapshots"


def _snapshot_path(cache_dir: Path, module: str) -> Path:
    return cache_dir / SNAPSHOT_DIR / f"{module}.json"


def _load_snapshot(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
        return None
    return data.get("members") if isinstance(data, dict) else None


def diff_snapshots(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """added / removed / changed member names between two snapshots."""
    added = sorted(set(after) - set(before))
    removed = sorted(set(before) - set(after))
    changed = [
        {"name": name, "before": before[name], "after": after[name]}
        for name in sorted(set(before) & set(after))
        if before[name] != after[name]
    ]
    return {"added": added, "removed": removed, "changed": changed}


def reload_module(ctx: SandboxContext, module: str, cache_dir: Path) -> WorkerResponse:
    """Import `module` fresh, diff its public API against the cached snapshot, store the new one.

    Failed imports leave the cached snapshot untouched.
    """
    response = ctx.run("snapshot", target=module)
    if not response.ok:
        return response

    snapshot = response.result
    path = _snapshot_path(cache_dir, snapshot["module"])
    previous = _load_snapshot(path)
    members = snapshot["members"]

    if previous is None:
        diff = {"added": sorted(members), "removed": [], "changed": []}
    else:
        diff = diff_snapshots(previous, members)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Stored snapshot for %s (%d members)", module, len(members))

    response.result = {
        "module": snapshot["module"],
        "file": snapshot.get("file"),
        "first_load": previous is None,
        "member_count": len(members),
        **diff,
    }
    return response
