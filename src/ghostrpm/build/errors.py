# This file is part of ghostrpm, a tool for building Ghost RPM packages.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# ghostrpm is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# ghostrpm is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# ghostrpm. If not, see <http://www.gnu.org/licenses/>.

"""Severity-tagged reporting helpers for build phases.

Every message pairs a human-readable activity line on the error stream with
a structured event in the run log. Severities are distinguished by prefix:

    [phase] message             informational
    [phase] Notice: message     informational, something was skipped
    [phase] Warning: message    recoverable
    [phase] ERROR: message      recoverable, the run continues
    [phase] FATAL: message      the run aborts
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ghostrpm.run import activity

if TYPE_CHECKING:
    from ghostrpm.run import RunContext

EXIT_SUCCESS = 0
EXIT_FATAL = 1


def log_phase_event(
    run: RunContext | None,
    phase: str,
    message: str,
    event_key: str,
    **event_data: Any,
) -> None:
    """Log a phase activity message and structured event together.

    Args:
        run: RunContext for structured logging, or None to skip the event.
        phase: Phase name for activity logging (e.g., "srpm", "rpm").
        message: Human-readable message for activity output.
        event_key: Event key for structured logging (e.g., "srpm.built").
        **event_data: Additional data to include in the log event.
    """
    activity(phase, message)
    if run is not None:
        run.log_event({"event": event_key, **event_data})


def phase_notice(
    run: RunContext | None,
    phase: str,
    message: str,
    *,
    event_key: str | None = None,
    **event_data: Any,
) -> None:
    """Log a notice: expected, informational, no effect on exit status."""
    activity(phase, f"Notice: {message}")
    if run is not None:
        run.log_event({"event": event_key or f"{phase}.notice", "message": message, **event_data})


def phase_warning(
    run: RunContext | None,
    phase: str,
    message: str,
    *,
    event_key: str | None = None,
    **event_data: Any,
) -> None:
    """Log a phase warning without affecting exit status."""
    activity(phase, f"Warning: {message}")
    if run is not None:
        run.log_event({"event": event_key or f"{phase}.warning", "message": message, **event_data})


def phase_recoverable_error(
    run: RunContext | None,
    phase: str,
    message: str,
    *,
    event_key: str | None = None,
    **event_data: Any,
) -> None:
    """Log an error the run survives (e.g. signing or metadata failure)."""
    activity(phase, f"ERROR: {message}")
    if run is not None:
        run.log_event({"event": event_key or f"{phase}.error", "message": message, "fatal": False, **event_data})


def phase_error(
    run: RunContext | None,
    phase: str,
    message: str,
    exit_code: int,
    *,
    event_key: str | None = None,
    summary_error: str | None = None,
    **event_data: Any,
) -> int:
    """Log a fatal phase error and write summary, returning the exit code.

    Args:
        run: RunContext for logging.
        phase: Phase name for activity logging.
        message: Human-readable error message.
        exit_code: Exit code to return and include in summary.
        event_key: Custom event key (default: "{phase}.fatal").
        summary_error: Custom error for summary (default: message).
        **event_data: Additional data to include in the log event.

    Returns:
        The exit_code parameter, for use in `sys.exit(phase_error(...))`.
    """
    activity(phase, f"FATAL: {message}")

    if run is not None:
        run.log_event(
            {
                "event": event_key or f"{phase}.fatal",
                "message": message,
                "exit_code": exit_code,
                **event_data,
            }
        )
        run.write_summary(
            status="failed",
            error=summary_error or message,
            exit_code=exit_code,
        )

    return exit_code
