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

"""Mock wrapper for clean-room source and binary RPM builds.

Mock runs every build inside a chroot selected by a profile (``-r``). This
module only assembles the command line, runs it with stdout/stderr captured
to log files, and reports which artifacts mock left in its result directory.
It never retries; interpreting a failure is the caller's job.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from ghostrpm.build.naming import binary_artifact_pattern, source_artifact_pattern

MODE_SRPM = "srpm"
MODE_REBUILD = "rebuild"

# Build-time definition carrying the upstream version into the spec file.
VERSION_MACRO = "ghost_version"

DEFAULT_BUILD_TIMEOUT = 7200


@dataclass
class MockConfig:
    """Configuration for one mock invocation.

    Attributes:
        profile: Mock build-root profile name (``-r``).
        result_dir: Private directory mock writes artifacts into.
        mode: MODE_SRPM (``--buildsrpm``) or MODE_REBUILD (``--rebuild``).
        defines: RPM macro definitions passed with ``--define``.
        spec_path: Spec file, MODE_SRPM only.
        sources_dir: Directory holding source archives, MODE_SRPM only.
        srpm_path: Source RPM to rebuild, MODE_REBUILD only.
        arch: Architecture override, MODE_REBUILD only.
        log_dir: Where mock.stdout.log/mock.stderr.log are written
            (defaults to result_dir).
    """

    profile: str
    result_dir: Path
    mode: str = MODE_SRPM
    defines: dict[str, str] = field(default_factory=dict)
    spec_path: Path | None = None
    sources_dir: Path | None = None
    srpm_path: Path | None = None
    arch: str = ""
    log_dir: Path | None = None


@dataclass
class MockResult:
    """Result of a mock invocation."""

    success: bool
    exit_code: int = -1
    output: str = ""
    artifacts: list[Path] = field(default_factory=list)
    stdout_log_path: Path | None = None
    stderr_log_path: Path | None = None
    command: list[str] = field(default_factory=list)
    validation_message: str = ""
    start_timestamp: str = ""
    duration_seconds: float = 0.0


def is_mock_available() -> bool:
    """Check if mock is installed and available."""
    return shutil.which("mock") is not None


def build_mock_command(config: MockConfig) -> list[str]:
    """Build the mock command line.

    Raises:
        ValueError: If the inputs required by the mode are missing.
    """
    cmd = ["mock", "-r", config.profile, "--resultdir", str(config.result_dir)]

    for name, value in config.defines.items():
        cmd.extend(["--define", f"{name} {value}"])

    if config.mode == MODE_SRPM:
        if config.spec_path is None or config.sources_dir is None:
            raise ValueError("srpm mode requires spec_path and sources_dir")
        cmd.extend(["--buildsrpm", "--spec", str(config.spec_path), "--sources", str(config.sources_dir)])
    elif config.mode == MODE_REBUILD:
        if config.srpm_path is None:
            raise ValueError("rebuild mode requires srpm_path")
        if config.arch:
            cmd.extend(["--arch", config.arch])
        # SRPM path must be last
        cmd.extend(["--rebuild", str(config.srpm_path)])
    else:
        raise ValueError(f"Unknown mock mode: {config.mode}")

    return cmd


def collect_artifacts(config: MockConfig) -> list[Path]:
    """Return the artifacts of the configured mode found in result_dir."""
    if config.mode == MODE_SRPM:
        pattern = source_artifact_pattern()
    else:
        pattern = binary_artifact_pattern(config.arch)
    if not config.result_dir.is_dir():
        return []
    return sorted(p for p in config.result_dir.glob(pattern) if p.is_file())


def prepare_result_dir(result_dir: Path) -> None:
    """Start every invocation from an empty result directory."""
    if result_dir.exists():
        shutil.rmtree(result_dir)
    result_dir.mkdir(parents=True)


def run_mock(config: MockConfig, timeout: int = DEFAULT_BUILD_TIMEOUT) -> MockResult:
    """Run mock and collect what it produced.

    This function:
    1. Empties the result directory
    2. Executes mock with stdout/stderr captured to log files
    3. Collects the artifacts of the requested mode from the result directory
    4. Fails validation when mock succeeded but produced no artifact

    Args:
        config: Mock configuration.
        timeout: Build timeout in seconds.

    Returns:
        MockResult with success status, artifact paths, and log locations.
    """
    if not is_mock_available():
        return MockResult(
            success=False,
            output="mock is not installed. Install with: sudo dnf install mock",
            validation_message="mock not available",
        )

    cmd = build_mock_command(config)
    prepare_result_dir(config.result_dir)

    log_dir = config.log_dir or config.result_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    stdout_log = log_dir / f"mock-{config.mode}.stdout.log"
    stderr_log = log_dir / f"mock-{config.mode}.stderr.log"

    start_time = time.monotonic()
    start_timestamp = datetime.now(UTC).isoformat()

    try:
        with stdout_log.open("w", encoding="utf-8") as stdout_f, stderr_log.open(
            "w", encoding="utf-8"
        ) as stderr_f:
            result = subprocess.run(
                cmd,
                stdout=stdout_f,
                stderr=stderr_f,
                text=True,
                timeout=timeout,
                check=False,
            )
    except subprocess.TimeoutExpired:
        return MockResult(
            success=False,
            output=f"mock timed out after {timeout} seconds",
            validation_message=f"Build timeout after {timeout} seconds",
            stdout_log_path=stdout_log,
            stderr_log_path=stderr_log,
            command=cmd,
            start_timestamp=start_timestamp,
            duration_seconds=time.monotonic() - start_time,
        )
    except OSError as e:
        return MockResult(
            success=False,
            output=str(e),
            validation_message=f"Exception: {e}",
            stdout_log_path=stdout_log,
            stderr_log_path=stderr_log,
            command=cmd,
            start_timestamp=start_timestamp,
            duration_seconds=time.monotonic() - start_time,
        )

    exit_code = result.returncode
    output = stdout_log.read_text(encoding="utf-8", errors="replace") + stderr_log.read_text(
        encoding="utf-8", errors="replace"
    )
    artifacts = collect_artifacts(config) if exit_code == 0 else []

    if exit_code != 0:
        success = False
        validation = f"mock exited with code {exit_code}"
    elif not artifacts:
        success = False
        validation = f"mock succeeded but left no {config.mode} artifacts in {config.result_dir}"
    else:
        success = True
        validation = f"{len(artifacts)} artifact(s) produced"

    return MockResult(
        success=success,
        exit_code=exit_code,
        output=output,
        artifacts=artifacts,
        stdout_log_path=stdout_log,
        stderr_log_path=stderr_log,
        command=cmd,
        validation_message=validation,
        start_timestamp=start_timestamp,
        duration_seconds=time.monotonic() - start_time,
    )


class MockBuilder:
    """Isolated builder used by the pipeline."""

    def __init__(self, timeout: int = DEFAULT_BUILD_TIMEOUT) -> None:
        self.timeout = timeout

    def build(self, config: MockConfig) -> MockResult:
        return run_mock(config, timeout=self.timeout)
