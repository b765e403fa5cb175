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

"""Expected artifact filenames for source and binary RPMs."""

from __future__ import annotations

import re
from pathlib import Path

from ghostrpm.build.profile import BuildProfile

DEFAULT_PACKAGE_NAME = "ghost"
PACKAGE_EXT = "rpm"
SOURCE_MARKER = ".src."

_RELEASE_FIELD_RE = re.compile(r"^\s*Release\s*:\s*(?P<value>.*)$", re.IGNORECASE | re.MULTILINE)
_DIGITS_RE = re.compile(r"\d+")


def spec_release(spec_path: Path) -> str:
    """Return the first run of digits in the spec's Release: field.

    Returns "" if the field is missing or carries no digits, e.g. for
    ``Release: %{?dist}``.
    """
    text = spec_path.read_text(encoding="utf-8", errors="replace")
    field = _RELEASE_FIELD_RE.search(text)
    if not field:
        return ""
    digits = _DIGITS_RE.search(field.group("value"))
    return digits.group(0) if digits else ""


def source_package_name(
    profile: BuildProfile,
    version: str,
    spec_path: Path,
    package_name: str = DEFAULT_PACKAGE_NAME,
) -> str:
    """Return ``<name>-<version>-<release>.<dist>.src.rpm``."""
    release = spec_release(spec_path)
    return f"{package_name}-{version}-{release}.{profile.dist}{SOURCE_MARKER}{PACKAGE_EXT}"


def binary_package_name(source_name: str, arch: str) -> str:
    """Return the binary RPM name built from source_name for arch.

    >>> binary_package_name("ghost-5.2.0-3.el6.src.rpm", "x86_64")
    'ghost-5.2.0-3.el6.x86_64.rpm'
    """
    head, marker, tail = source_name.rpartition(SOURCE_MARKER)
    if not marker:
        raise ValueError(f"Not a source package name: {source_name}")
    return f"{head}.{arch}.{tail}"


def source_package_pattern(
    version: str,
    package_name: str = DEFAULT_PACKAGE_NAME,
    release: str | None = None,
    dist: str | None = None,
) -> str:
    """Return the glob that identifies an existing SRPM for version.

    Without release/dist this matches any spec release of the version, which
    is the coarse "version" existence check. With both it matches exactly one
    release-qualified name.
    """
    if release is not None and dist is not None:
        return f"{package_name}-{version}-{release}.{dist}{SOURCE_MARKER}{PACKAGE_EXT}"
    return f"{package_name}-{version}-*{SOURCE_MARKER}{PACKAGE_EXT}"


def binary_artifact_pattern(arch: str) -> str:
    """Return the glob for binary RPMs mock leaves in its result directory."""
    return f"*.{arch}.{PACKAGE_EXT}"


def source_artifact_pattern() -> str:
    """Return the glob for source RPMs mock leaves in its result directory."""
    return f"*{SOURCE_MARKER}{PACKAGE_EXT}"
