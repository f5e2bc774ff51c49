"""Data transfer objects shared across layers."""

from eyeball.helpers.dto.config_dto import ConfigReport, EyeballConfig
from eyeball.helpers.dto.execution_dto import CallRequest, ExecRequest, PatchSpec, ProbeAssertion, ProbeRequest
from eyeball.helpers.dto.result_dto import (
    CheckOutcome,
    CheckSummary,
    ErrorInfo,
    ExitCode,
    EyeballResult,
    Location,
    ResultStatus,
)
from eyeball.helpers.dto.testing_dto import CoverageReport, TestCaseResult, TestRunRequest

__all__ = [
    "CallRequest",
    "CheckOutcome",
    "CheckSummary",
    "ConfigReport",
    "CoverageReport",
    "ErrorInfo",
    "ExecRequest",
    "ExitCode",
    "EyeballConfig",
    "EyeballResult",
    "Location",
    "PatchSpec",
    "ProbeAssertion",
    "ProbeRequest",
    "ResultStatus",
    "TestCaseResult",
    "TestRunRequest",
]
