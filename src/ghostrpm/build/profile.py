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

"""Mock build-root profile inspection.

A profile is a mock configuration file, ``<config_dir>/<name>.cfg``. Only two
declared values are read from it:

    config_opts['dist'] = 'el6'
    config_opts['target_arch'] = 'x86_64'

Newer mock releases keep these in templates pulled in with
``include('templates/epel-6.tpl')``; includes are followed relative to the
config directory. Later assignments win, as they do when mock executes the
file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MOCK_CONFIG_DIR = Path("/etc/mock")

# Include chains deeper than this are treated as a loop.
MAX_INCLUDE_DEPTH = 8

_OPT_RE = re.compile(r"""^\s*config_opts\[\s*['"](?P<key>[\w.-]+)['"]\s*\]\s*=\s*(?P<value>[^#\n]*)""")
_INCLUDE_RE = re.compile(r"""^\s*include\(\s*['"](?P<path>[^'"]+)['"]\s*\)""")


@dataclass(frozen=True)
class BuildProfile:
    """Facts about a mock build root that the pipeline consumes.

    Attributes:
        name: Profile name as passed to ``mock -r`` (e.g., "epel-6-x86_64").
        dist: Distribution tag (e.g., "el6").
        default_arch: Target architecture the profile builds for.
    """

    name: str
    dist: str
    default_arch: str


def profile_path(profile: str, config_dir: Path = DEFAULT_MOCK_CONFIG_DIR) -> Path:
    """Return the mock config path for a profile name."""
    return config_dir / f"{profile}.cfg"


def _strip_quotes(value: str) -> str:
    return value.strip().replace('"', "").replace("'", "")


def _read_options(path: Path, config_dir: Path, depth: int = 0) -> dict[str, str]:
    options: dict[str, str] = {}
    if depth > MAX_INCLUDE_DEPTH:
        logger.debug(f"Include depth exceeded at {path}")
        return options
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.debug(f"Cannot read mock profile {path}")
        return options

    for line in text.splitlines():
        include = _INCLUDE_RE.match(line)
        if include:
            target = Path(include.group("path"))
            if not target.is_absolute():
                target = config_dir / target
            options.update(_read_options(target, config_dir, depth + 1))
            continue
        opt = _OPT_RE.match(line)
        if opt:
            options[opt.group("key")] = _strip_quotes(opt.group("value"))
    return options


def read_profile_option(profile: str, key: str, config_dir: Path = DEFAULT_MOCK_CONFIG_DIR) -> str:
    """Return a declared config_opts value, or "" if the profile or key is missing."""
    options = _read_options(profile_path(profile, config_dir), config_dir)
    return options.get(key, "")


def dist_of(profile: str, config_dir: Path = DEFAULT_MOCK_CONFIG_DIR) -> str:
    """Return the profile's dist tag, or "" when it cannot be determined."""
    return read_profile_option(profile, "dist", config_dir)


def default_arch_of(profile: str, config_dir: Path = DEFAULT_MOCK_CONFIG_DIR) -> str:
    """Return the profile's default target architecture, or ""."""
    return read_profile_option(profile, "target_arch", config_dir)


def load_profile(profile: str, config_dir: Path = DEFAULT_MOCK_CONFIG_DIR) -> BuildProfile:
    """Read both facts of a profile in one pass. Missing values are ""."""
    options = _read_options(profile_path(profile, config_dir), config_dir)
    return BuildProfile(
        name=profile,
        dist=options.get("dist", ""),
        default_arch=options.get("target_arch", ""),
    )
