#!/usr/bin/env python3
# ======================================================================
#  Config Service - Configuration loading for one invocation
#  - Loads defaults, pyproject [tool.eyeball], YAML files, env vars
#  - Applies CLI overrides last
#  - Auto-detects the root package when unset
# ======================================================================

from __future__ import annotations

import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from eyeball.helpers.dto.config_dto import ConfigReport, EyeballConfig
from eyeball.helpers.exceptions import ConfigError
from eyeball.helpers.paths_helper import find_workspace_root

logger = logging.getLogger(__name__)

YAML_CONFIG_NAMES = ("eyeball.yaml", ".eyeball.yaml")

# Environment variable -> config key
ENV_OVERRIDES = {
    "EYEBALL_PACKAGE": "package",
    "EYEBALL_TESTS_DIR": "tests_dir",
    "EYEBALL_FIXTURES_MODULE": "fixtures_module",
    "EYEBALL_TIMEOUT": "timeout",
    "EYEBALL_PYTHON": "python",
}

KNOWN_KEYS = frozenset(EyeballConfig.model_fields)


class ConfigService:
    """
    Service for composing the effective configuration.

    Loads config from multiple sources (defaults → pyproject → YAML → env → CLI),
    caches the result, and provides reload capability.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        config_path: Path | str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        self.root = Path(root).resolve() if root else find_workspace_root()
        self._config_path = Path(config_path) if config_path else None
        self._overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        self._report: ConfigReport | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_config(self, force_reload: bool = False) -> EyeballConfig:
        return self.get_report(force_reload).config

    def get_report(self, force_reload: bool = False) -> ConfigReport:
        if self._report is None or force_reload:
            self._report = self._compose()
        return self._report

    def reload(self) -> EyeballConfig:
        logger.info("Reloading configuration from all sources")
        return self.get_config(force_reload=True)

    def import_roots(self) -> list[Path]:
        """Directories that act as sys.path entries for the target project."""
        cfg = self.get_config()
        roots = [self.root]
        src = self.root / "src"
        if src.is_dir():
            roots.append(src)
        for extra in cfg.search_paths:
            path = (self.root / extra).resolve()
            if path not in roots:
                roots.append(path)
        return roots

    def python_executable(self) -> Path:
        """Interpreter for sandbox and test runs: configured, project venv, else our own."""
        cfg = self.get_config()
        if cfg.python:
            return Path(cfg.python)
        if sys.platform == "win32":
            candidate = self.root / ".venv" / "Scripts" / "python.exe"
        else:
            candidate = self.root / ".venv" / "bin" / "python"
        if candidate.exists():
            return candidate
        return Path(sys.executable)

    def cache_dir(self) -> Path:
        return self.root / self.get_config().cache_dir

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def _compose(self) -> ConfigReport:
        """
        Load final configuration from:
          1) Built-in defaults
          2) pyproject.toml [tool.eyeball]
          3) eyeball.yaml / .eyeball.yaml in the workspace root
          4) $EYEBALL_CONFIG or the --config path (YAML)
          5) Environment variables (EYEBALL_*)
          6) CLI overrides
        """
        merged: dict[str, Any] = {}
        sources: list[str] = ["defaults"]
        warnings: list[str] = []

        pyproject = self._load_pyproject(self.root / "pyproject.toml")
        if pyproject:
            merged.update(pyproject)
            sources.append("pyproject.toml [tool.eyeball]")

        for name in YAML_CONFIG_NAMES:
            data = self._load_yaml(self.root / name)
            if data:
                merged.update(data)
                sources.append(name)
                break

        explicit = self._config_path or (Path(os.environ["EYEBALL_CONFIG"]) if os.getenv("EYEBALL_CONFIG") else None)
        if explicit is not None:
            if not explicit.is_absolute():
                explicit = self.root / explicit
            if not explicit.exists():
                msg = f"Config file not found: {explicit}"
                raise ConfigError(msg, file=str(explicit))
            merged.update(self._load_yaml(explicit))
            sources.append(str(explicit))

        env = self._env_overrides()
        if env:
            merged.update(env)
            sources.append("environment")

        if self._overrides:
            merged.update(self._overrides)
            sources.append("command line")

        unknown = sorted(set(merged) - KNOWN_KEYS)
        for key in unknown:
            warnings.append(f"Unknown config key ignored: {key}")
            logger.warning("Unknown config key ignored: %s", key)
            merged.pop(key)

        try:
            config = EyeballConfig(**merged)
        except ValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigError(msg) from e

        if config.package is None:
            detected = self._detect_root_package()
            if detected:
                logger.debug("Auto-detected package: %s", detected)
                config = config.model_copy(update={"package": detected})

        logger.debug("Config composed from %s", ", ".join(sources))
        return ConfigReport(root=str(self.root), config=config, sources=sources, warnings=warnings)

    def _load_pyproject(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError) as e:
            msg = f"Invalid pyproject.toml: {e}"
            raise ConfigError(msg, file=str(path)) from e
        section = data.get("tool", {}).get("eyeball", {})
        if not isinstance(section, dict):
            msg = "[tool.eyeball] must be a table"
            raise ConfigError(msg, file=str(path))
        return self._normalise_keys(section)

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load a YAML mapping; {} when the file is absent or empty."""
        if not path.exists():
            return {}
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            msg = f"Invalid YAML config {path}: {e}"
            raise ConfigError(msg, file=str(path)) from e
        if not isinstance(data, dict):
            msg = f"Config file {path} must contain a mapping"
            raise ConfigError(msg, file=str(path))
        return self._normalise_keys(data)

    def _env_overrides(self) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                found[key] = value
        return found

    @staticmethod
    def _normalise_keys(data: dict[str, Any]) -> dict[str, Any]:
        # TOML/YAML users write "tests-dir" as often as "tests_dir"
        return {str(k).replace("-", "_"): v for k, v in data.items()}

    def _detect_root_package(self) -> str | None:
        """First directory with an __init__.py in the root, then in src/."""
        for base in (self.root, self.root / "src"):
            if not base.is_dir():
                continue
            for item in sorted(base.iterdir()):
                if item.name in ("tests", "test", "docs") or item.name.startswith("."):
                    continue
                if item.is_dir() and (item / "__init__.py").exists():
                    return item.name
        return None
