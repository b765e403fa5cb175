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


"""Tests for ghostrpm.build.errors module."""

from __future__ import annotations

from typing import Any
from unittest import mock

from ghostrpm.build import errors


class RecordingRun:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []
        self.summary: dict[str, Any] = {}

    def log_event(self, event: dict[str, Any]) -> None:
        self.events.append(event)

    def write_summary(self, **kwargs: Any) -> None:
        self.summary.update(kwargs)


def captured_activity(func, *args, **kwargs) -> str:
    output: list[str] = []
    with mock.patch("sys.__stderr__") as mock_stderr:
        mock_stderr.write = output.append
        func(*args, **kwargs)
    return "".join(output)


class TestPrefixes:
    """Severity prefixes on activity lines."""

    def test_plain(self) -> None:
        run = RecordingRun()
        out = captured_activity(errors.log_phase_event, run, "srpm", "Built x", "srpm.built", name="x")
        assert out == "[srpm] Built x\n"
        assert run.events == [{"event": "srpm.built", "name": "x"}]

    def test_notice(self) -> None:
        run = RecordingRun()
        out = captured_activity(errors.phase_notice, run, "rpm", "skipping")
        assert out == "[rpm] Notice: skipping\n"
        assert run.events[0]["event"] == "rpm.notice"

    def test_warning(self) -> None:
        run = RecordingRun()
        out = captured_activity(errors.phase_warning, run, "srpm", "odd name")
        assert out == "[srpm] Warning: odd name\n"
        assert run.events[0]["event"] == "srpm.warning"

    def test_recoverable_error(self) -> None:
        run = RecordingRun()
        out = captured_activity(errors.phase_recoverable_error, run, "rpm", "sign failed", event_key="rpm.sign.failed")
        assert out == "[rpm] ERROR: sign failed\n"
        assert run.events[0]["event"] == "rpm.sign.failed"
        assert run.events[0]["fatal"] is False
        assert run.summary == {}

    def test_no_run_still_prints(self) -> None:
        assert captured_activity(errors.phase_notice, None, "rpm", "x") == "[rpm] Notice: x\n"


class TestPhaseError:
    """Tests for phase_error."""

    def test_returns_exit_code_and_writes_summary(self) -> None:
        run = RecordingRun()
        output: list[str] = []
        with mock.patch("sys.__stderr__") as mock_stderr:
            mock_stderr.write = output.append
            code = errors.phase_error(run, "fetch", "404 Not Found", errors.EXIT_FATAL, error_type="SourceFetchError")

        assert code == 1
        assert "".join(output) == "[fetch] FATAL: 404 Not Found\n"
        assert run.events[0]["event"] == "fetch.fatal"
        assert run.events[0]["error_type"] == "SourceFetchError"
        assert run.summary == {"status": "failed", "error": "404 Not Found", "exit_code": 1}

    def test_without_run(self) -> None:
        with mock.patch("sys.__stderr__"):
            assert errors.phase_error(None, "version", "bad", 1) == 1
