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

"""Pytest fixtures and configuration for ghostrpm tests."""

from __future__ import annotations

import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest import mock

import pytest
import responses

SAMPLE_SPEC = """\
Name:           ghost
Version:        %{ghost_version}
Release:        3%{?dist}
Summary:        Just a blogging platform
License:        MIT
Source0:        ghost-%{ghost_version}.zip

%description
Ghost is a simple, powerful publishing platform.
"""

SAMPLE_MOCK_CFG = """\
config_opts['root'] = 'epel-6-x86_64'
config_opts['target_arch'] = 'x86_64'
config_opts['legal_host_arches'] = ('x86_64',)
config_opts['chroot_setup_cmd'] = 'install @buildsys-build'
config_opts['dist'] = 'el6'  # only useful for --resultdir variable subst
"""


@pytest.fixture
def temp_home(monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Create a temporary home directory and set HOME/XDG paths."""
    with tempfile.TemporaryDirectory() as tmpdir:
        home = Path(tmpdir)
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
        monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
        monkeypatch.setattr(Path, "home", lambda: home)
        for var in (
            "GHOSTRPM_ROOT",
            "GHOSTRPM_ARCH",
            "GHOSTRPM_REPO",
            "GHOSTRPM_SPEC",
            "GHOSTRPM_SOURCES",
            "GHOSTRPM_VERSION",
            "GHOSTRPM_SRPM_ONLY",
            "GHOSTRPM_CACHE_TIMEOUT",
            "GHOSTRPM_GPG_NAME",
        ):
            monkeypatch.delenv(var, raising=False)
        yield home


@pytest.fixture
def mock_config_dir(temp_home: Path) -> Path:
    """Create a mock config directory holding an epel-6-x86_64 profile."""
    cfg_dir = temp_home / "etc-mock"
    cfg_dir.mkdir(parents=True, exist_ok=True)
    (cfg_dir / "epel-6-x86_64.cfg").write_text(SAMPLE_MOCK_CFG)
    return cfg_dir


@pytest.fixture
def install_dir(temp_home: Path) -> Path:
    """Create an install directory with ghost.spec and an empty sources dir."""
    inst = temp_home / "ghost-rpm"
    (inst / "sources").mkdir(parents=True, exist_ok=True)
    (inst / "ghost.spec").write_text(SAMPLE_SPEC)
    return inst


@pytest.fixture
def mock_config(temp_home: Path, mock_config_dir: Path, install_dir: Path) -> Path:
    """Create a config file pointing every path into the temp home."""
    config_dir = temp_home / ".config" / "ghostrpm"
    config_dir.mkdir(parents=True, exist_ok=True)
    config_file = config_dir / "config.yaml"
    config_file.write_text(f"""
paths:
  install_dir: "{install_dir}"
  version_cache: "~/.cache/ghostrpm/version"
  build_root: "~/.cache/ghostrpm/build"
  runs_root: "~/.cache/ghostrpm/runs"
  mock_config_dir: "{mock_config_dir}"

defaults:
  build_root: "epel-6-x86_64"
  package_name: "ghost"
  version_cache_ttl: "42600"
  existence_check: "version"

upstream:
  latest_url: "https://ghost.org/zip/ghost-latest.zip"
  archive_url: "https://ghost.org/zip/ghost-{{version}}.zip"

behavior:
  skip_tool_check: true
""")
    return config_file


@pytest.fixture
def spec_file(install_dir: Path) -> Path:
    return install_dir / "ghost.spec"


@pytest.fixture
def mock_responses() -> Generator[responses.RequestsMock, None, None]:
    """Activate responses mock for HTTP requests."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def non_tty_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mock sys.__stderr__.isatty() to return False."""
    mock_stderr = mock.MagicMock()
    mock_stderr.isatty.return_value = False
    monkeypatch.setattr("sys.__stderr__", mock_stderr)
