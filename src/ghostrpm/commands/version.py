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

"""Implementation of `ghostrpm version`: print the release a build would use."""

from __future__ import annotations

import sys

import typer

from ghostrpm.build.errors import phase_error
from ghostrpm.commands.build import BuildRequest, cache_timeout_seconds
from ghostrpm.config import load_config
from ghostrpm.exceptions import GhostrpmError
from ghostrpm.upstream.version import resolve_version, resolver_from_config


def version(
    cache_timeout: str | None = typer.Option(
        None, "--cache-timeout", envvar="GHOSTRPM_CACHE_TIMEOUT", help="Version cache timeout (e.g. 42600, 12h)"
    ),
) -> None:
    """Print the latest upstream Ghost release, using the version cache."""
    cfg = load_config()
    try:
        max_age = cache_timeout_seconds(BuildRequest(cache_timeout=cache_timeout), cfg)
        resolved = resolve_version(None, resolver_from_config(cfg), max_age)
    except GhostrpmError as e:
        sys.exit(phase_error(None, e.phase, e.message, e.exit_code))

    typer.echo(resolved)
