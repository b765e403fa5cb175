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

"""ghostrpm fatal error types with associated exit codes and phases.

Every error here aborts the run. They are raised deep inside the pipeline and
handled once, by the CLI command, which reports them and exits.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GhostrpmError(Exception):
    """Base class for ghostrpm errors with an exit code."""

    message: str = "An error occurred"
    exit_code: int = field(default=1)
    phase: str = field(default="ghostrpm")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (exit {self.exit_code})"


@dataclass
class ConfigError(GhostrpmError):
    phase: str = field(default="config")


@dataclass
class InvalidVersionError(GhostrpmError):
    """Error raised when a version is not MAJOR.MINOR.PATCH."""

    phase: str = field(default="version")
    version: str = ""


@dataclass
class UpstreamLookupError(GhostrpmError):
    """Error raised when the latest upstream release cannot be determined."""

    phase: str = field(default="version")
    url: str = ""


@dataclass
class SourceFetchError(GhostrpmError):
    phase: str = field(default="fetch")
    url: str = ""


@dataclass
class PreconditionError(GhostrpmError):
    phase: str = field(default="srpm")


@dataclass
class ToolMissingError(GhostrpmError):
    """Error raised when required external tools are not installed."""

    phase: str = field(default="tools")
    missing: list[str] = field(default_factory=list)


@dataclass
class BuildError(GhostrpmError):
    """Error raised when the isolated builder exits non-zero."""

    phase: str = field(default="build")
    builder_exit_code: int = -1
    log_path: str = ""


@dataclass
class PublishError(GhostrpmError):
    """Error raised when built artifacts cannot be moved into the repository."""

    phase: str = field(default="publish")
