"""
Project-level commands: test, config.
"""

from __future__ import annotations

import argparse

from eyeball.helpers.dto.result_dto import EyeballResult
from eyeball.helpers.dto.testing_dto import TestRunRequest
from eyeball.services.eyeball_svc import EyeballService


def cmd_test(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    request = TestRunRequest(
        selectors=args.selectors,
        keyword=args.keyword,
        markers=args.markers,
        coverage=args.cov,
        fail_fast=args.exitfirst,
        timeout=args.timeout,
    )
    return service.test(request)


def cmd_config(service: EyeballService, args: argparse.Namespace) -> EyeballResult:
    return service.config()
