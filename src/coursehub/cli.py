"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .config import AppConfig, load_config, missing_firebase_keys, retry_policy, warn_if_incomplete
from .errors import CourseHubError, ExitCode, user_facing_error
from .grades import GRADE_SYSTEM, calculate_gpa, gpa_tier
from .logging import LOG_LEVELS, configure_logging, default_log_path, normalize_level
from .models import StudyPlan

_VALID_LOG_LEVELS = tuple(LOG_LEVELS)


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coursehub")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)

    commands = parser.add_subparsers(dest="command", required=True)
    gpa = commands.add_parser("gpa", help="Summarise GPA for a study plan JSON file")
    gpa.add_argument("plan", type=Path)
    commands.add_parser("grades", help="List the grade scale")
    commands.add_parser("check-config", help="Verify Firebase settings are complete")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def run_gpa(plan_path: Path, out: TextIO) -> int:
    plan = StudyPlan.from_json_file(plan_path)
    summary = calculate_gpa(plan.courses)
    print(f"Student: {plan.student_id}", file=out)
    print(f"GPA: {summary.gpa:.2f} ({gpa_tier(summary.gpa)})", file=out)
    print(f"GPA credits: {summary.total_credits}", file=out)
    print(f"Grade points: {summary.total_grade_points:.2f}", file=out)
    print(f"Completed credits: {summary.completed_credits}", file=out)
    return int(ExitCode.SUCCESS)


def run_grades(out: TextIO) -> int:
    for item in GRADE_SYSTEM:
        print(f"{item.grade:<3} {item.grade_point:.1f}  {item.description}", file=out)
    return int(ExitCode.SUCCESS)


def run_check_config(config: AppConfig, out: TextIO) -> int:
    missing = missing_firebase_keys(config)
    if missing:
        raise CourseHubError(
            f"Firebase config is incomplete (missing: {', '.join(missing)})",
            code=ExitCode.CONFIG_ERROR,
            hint="Set them in config.toml under [firebase] or via COURSEHUB_FIREBASE_* variables.",
        )
    policy = retry_policy(config)
    print(f"Firebase config OK for project {config.firebase.project_id}", file=out)
    print(
        f"Retry policy: {policy.max_attempts} attempts, "
        f"{policy.initial_delay_ms:g} ms initial delay",
        file=out,
    )
    return int(ExitCode.SUCCESS)


def run_command(namespace: argparse.Namespace, config: AppConfig, out: TextIO) -> int:
    if namespace.command == "gpa":
        return run_gpa(namespace.plan, out)
    if namespace.command == "grades":
        return run_grades(out)
    return run_check_config(config, out)


def main(argv: Sequence[str] | None = None, *, out: TextIO | None = None) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=log_path)
    if namespace.command != "check-config":
        warn_if_incomplete(config)

    try:
        logger.debug("Running command %s", namespace.command)
        return run_command(namespace, config, out or sys.stdout)
    except CourseHubError as exc:
        logger.error(
            "Handled CourseHubError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        hint = f"Inspect logs: {log_path}"
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
