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

"""Configuration utilities for ghostrpm.

Values here sit below command-line flags and environment variables: the CLI
only falls back to the config file when neither was given.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {
        "install_dir": ".",
        "version_cache": "~/.cache/ghostrpm/version",
        "build_root": "~/.cache/ghostrpm/build",
        "runs_root": "~/.cache/ghostrpm/runs",
        "mock_config_dir": "/etc/mock",
    },
    "defaults": {
        "build_root": "epel-6-x86_64",
        "package_name": "ghost",
        "version_cache_ttl": "42600",
        "existence_check": "version",
        "build_timeout": 7200,
    },
    "upstream": {
        "latest_url": "https://ghost.org/zip/ghost-latest.zip",
        "archive_url": "https://ghost.org/zip/ghost-{version}.zip",
    },
    "behavior": {"skip_tool_check": False},
}

# Valid values for defaults.existence_check
EXISTENCE_CHECK_MODES = ("version", "release")


def get_config_path() -> Path:
    """Return the path to the config file."""
    return Path.home() / ".config" / "ghostrpm" / "config.yaml"


def ensure_config_exists() -> None:
    """Create the config file with defaults if it does not exist."""
    cfg_path = get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if not cfg_path.exists():
        cfg_path.write_text(yaml.safe_dump(DEFAULT_CONFIG))


def load_config() -> dict[str, Any]:
    """Load configuration from disk and merge with defaults.

    The returned dictionary is a per-section merge of DEFAULT_CONFIG and the
    values stored in the on-disk config file. Paths are expanded, and relative
    paths are resolved against the current working directory.
    """
    ensure_config_exists()
    cfg_path = get_config_path()
    try:
        raw = yaml.safe_load(cfg_path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        raw = {}

    merged: dict[str, Any] = {}
    for key, val in DEFAULT_CONFIG.items():
        if key in raw and isinstance(raw[key], dict):
            merged[key] = {**val, **raw[key]}
        elif isinstance(val, dict):
            merged[key] = dict(val)
        else:
            merged[key] = raw.get(key, val)

    for pkey, pval in merged["paths"].items():
        merged["paths"][pkey] = str(Path(str(pval)).expanduser().resolve())

    return merged


def resolve_paths(cfg: dict[str, Any]) -> dict[str, Path]:
    """Return Path objects for the configured paths."""
    return {key: Path(str(val)) for key, val in cfg.get("paths", {}).items()}
