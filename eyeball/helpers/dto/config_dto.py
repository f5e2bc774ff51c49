"""Configuration DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EyeballConfig(BaseModel):
    """Effective, validated configuration for one invocation."""

    model_config = ConfigDict(extra="forbid")

    package: str | None = Field(default=None, description="Root package to analyse (auto-detected when unset)")
    tests_dir: str = Field(default="tests", description="Test directory, relative to the workspace root")
    fixtures_module: str | None = Field(default=None, description="Dotted module providing probe fixtures")
    timeout: float = Field(default=10.0, ge=0.5, le=600.0, description="Sandbox timeout in seconds")
    python: str | None = Field(default=None, description="Interpreter for the sandbox and test runner")
    search_paths: list[str] = Field(default_factory=list, description="Extra import roots, relative to the root")
    cache_dir: str = Field(default=".eyeball_cache", description="Where reload snapshots are stored")
    max_output_chars: int = Field(default=20000, ge=100, le=1_000_000)
    include_private: bool = False


class ConfigReport(BaseModel):
    """Effective configuration plus where it came from."""

    root: str
    config: EyeballConfig
    sources: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
