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

"""Run context manager for ghostrpm CLI runs.

This module implements the run directory creation, stdout/stderr capture to
files, JSONL event logging, and summary.json generation. Activity lines are
user-facing status messages and must never go into the log files; they are
written to the real error stream (sys.__stderr__). Long-running steps show
the same line behind a spinner while they block.
"""

from __future__ import annotations

import contextlib
import datetime
import json
import logging
import sys
import uuid
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from ghostrpm.config import load_config


class RunContext:
    """Context manager that creates a run directory and captures runtime logs.

    Usage:
        with RunContext("build") as run:
            run.log_event({"event": "srpm.start"})
            ...
    """

    def __init__(self, command: str) -> None:
        self.command = command
        self.cfg = load_config()
        self.paths = {k: Path(v) for k, v in self.cfg.get("paths", {}).items()}
        self.runs_root = self.paths.get("runs_root", Path.home() / ".cache" / "ghostrpm" / "runs")
        now_utc = datetime.datetime.now(datetime.UTC)
        self.run_id = now_utc.strftime("%Y%m%dT%H%M%SZ") + f"-{command}-" + uuid.uuid4().hex[:8]
        self.run_path = self.runs_root / self.run_id
        self.logs_path = self.run_path / "logs"
        self.stdout_file: Any | None = None
        self.stderr_file: Any | None = None
        self.events_file: Any | None = None
        self._log_handler: logging.Handler | None = None
        self._orig_stdout = sys.stdout
        self._orig_stderr = sys.stderr
        self.summary: dict[str, Any] = {"command": command, "start_utc": now_utc.isoformat()}

    def __enter__(self) -> RunContext:
        self.logs_path.mkdir(parents=True, exist_ok=True)

        self.stdout_file = (self.logs_path / "stdout.log").open("w", encoding="utf-8")
        self.stderr_file = (self.logs_path / "stderr.log").open("w", encoding="utf-8")
        self.events_file = (self.logs_path / "events.jsonl").open("a", encoding="utf-8")

        # Module loggers (logging.getLogger(__name__)) land in the run log.
        self._log_handler = logging.FileHandler(self.logs_path / "ghostrpm.log", encoding="utf-8")
        self._log_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        pkg_logger = logging.getLogger("ghostrpm")
        pkg_logger.addHandler(self._log_handler)
        pkg_logger.setLevel(logging.DEBUG)

        sys.stdout = self.stdout_file
        sys.stderr = self.stderr_file

        self.log_event({"event": "run.start", "run_id": self.run_id})
        return self

    def log_event(self, event: dict[str, Any]) -> None:
        """Write a JSONL event with a timestamp."""
        if self.events_file is None:  # pragma: no cover
            return
        payload = {"timestamp": datetime.datetime.now(datetime.UTC).isoformat(), **event}
        self.events_file.write(json.dumps(payload, default=str) + "\n")
        self.events_file.flush()

    def write_summary(self, **kwargs: Any) -> None:
        self.summary.update(kwargs)
        (self.run_path / "summary.json").write_text(json.dumps(self.summary, indent=2))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: object,
    ) -> bool | None:
        # SystemExit(0) from typer.Exit paths is still a success.
        status = "success"
        if exc is not None and not (isinstance(exc, SystemExit) and exc.code in (0, None)):
            status = "failed"
            self.summary.setdefault("error", str(exc))
        if self.summary.get("status") == "failed":
            status = "failed"

        self.summary["end_utc"] = datetime.datetime.now(datetime.UTC).isoformat()
        self.summary["status"] = status
        self.write_summary()

        with contextlib.suppress(Exception):
            self.log_event({"event": "run.end", "status": status})

        try:
            for f in (self.stdout_file, self.stderr_file, self.events_file):
                if f:
                    f.close()
            if self._log_handler is not None:
                logging.getLogger("ghostrpm").removeHandler(self._log_handler)
                self._log_handler.close()
        finally:
            sys.stdout = self._orig_stdout
            sys.stderr = self._orig_stderr

        # Print report path only on failure so users can inspect logs.
        if status != "success":
            with contextlib.suppress(Exception):
                print(f"[report] Logs: {self.run_path}", file=sys.__stderr__)

        return None


# Activity lines must reach the terminal even while stdout/stderr are
# redirected to log files during a RunContext.

def format_activity(phase: str, description: str) -> str:
    return f"[{phase}] {description}"


def activity(phase: str, description: str) -> None:
    with contextlib.suppress(Exception):
        print(format_activity(phase, description), file=sys.__stderr__, flush=True)


def stderr_is_tty() -> bool:
    stream = sys.__stderr__
    return stream is not None and stream.isatty()


@contextlib.contextmanager
def activity_spinner(phase: str, description: str) -> Iterator[None]:
    """Animate an activity line while the wrapped block runs.

    On a TTY a Rich spinner runs beside the line until the block finishes;
    the line is then printed once as a plain activity line. Elsewhere only
    the plain line is printed, before the block starts.
    """
    if not stderr_is_tty():
        activity(phase, description)
        yield
        return

    console = Console(file=sys.__stderr__, force_terminal=True)
    with Live(Spinner("dots", text=format_activity(phase, description)), console=console, transient=True):
        yield
    activity(phase, description)
