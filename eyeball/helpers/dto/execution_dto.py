"""Request DTOs for sandboxed execution (call, exec, probe)."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Label separator for named assertions: "positive::area(2) > 0"
ASSERTION_LABEL_SEP = "::"
# Labels are plain words; any other text before "::" belongs to the expression
ASSERTION_LABEL_RE = re.compile(r"[\w .\-]+")


class ProbeAssertion(BaseModel):
    """One named check inside a probe."""

    name: str
    expr: str

    @classmethod
    def parse(cls, raw: str) -> ProbeAssertion:
        """Parse "label::expr" or a bare expression (named after itself)."""
        label, sep, expr = raw.partition(ASSERTION_LABEL_SEP)
        if sep and ASSERTION_LABEL_RE.fullmatch(label.strip()) and expr.strip():
            return cls(name=label.strip(), expr=expr.strip())
        return cls(name=raw.strip(), expr=raw.strip())


class PatchSpec(BaseModel):
    """Replace a dotted attribute with the value of an expression for the probe's duration."""

    target: str = Field(description="Dotted attribute path, e.g. 'pkg.mod.CONSTANT'")
    expr: str = Field(description="Python expression evaluated in the probe namespace")

    @field_validator("target")
    @classmethod
    def _dotted(cls, value: str) -> str:
        if "." not in value:
            msg = f"patch target must be a dotted path (module.attribute), got '{value}'"
            raise ValueError(msg)
        return value

    @classmethod
    def parse(cls, raw: str) -> PatchSpec:
        """Parse "pkg.mod.attr=expr"."""
        target, sep, expr = raw.partition("=")
        if not sep or not target.strip() or not expr.strip():
            msg = f"patch must look like 'module.attr=expression', got '{raw}'"
            raise ValueError(msg)
        return cls(target=target.strip(), expr=expr.strip())


class ProbeRequest(BaseModel):
    """A probe: optional setup, fixtures and patches, then named assertions."""

    module: str | None = None
    setup: str | None = None
    assertions: list[ProbeAssertion] = Field(min_length=1)
    fixtures: list[str] = Field(default_factory=list)
    patches: list[PatchSpec] = Field(default_factory=list)
    timeout: float | None = Field(default=None, ge=0.5, le=600.0)


class CallRequest(BaseModel):
    """Call a function or construct a class with literal arguments."""

    target: str
    args: list[Any] = Field(default_factory=list)
    kwargs: dict[str, Any] = Field(default_factory=dict)
    timeout: float | None = Field(default=None, ge=0.5, le=600.0)


class ExecRequest(BaseModel):
    """Run arbitrary code, optionally inside a module's namespace."""

    code: str = Field(min_length=1)
    module: str | None = None
    timeout: float | None = Field(default=None, ge=0.5, le=600.0)
