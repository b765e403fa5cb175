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

"""Artifact lookup in a repository subtree.

Matching rule: ``fnmatch`` (case-sensitive) of the pattern against the names
of regular files directly in the directory. Subdirectories such as
``repodata`` are never matched. When several files match, the highest one
wins, with digit runs compared as numbers, so ``ghost-5.2.0-10.el6.src.rpm``
beats ``ghost-5.2.0-9.el6.src.rpm``. A missing directory is an empty one.
"""

from __future__ import annotations

import re
from fnmatch import fnmatchcase
from pathlib import Path

_DIGITS = re.compile(r"(\d+)")


def release_sort_key(name: str) -> tuple[int | str, ...]:
    """Sort key comparing digit runs in name numerically."""
    parts = _DIGITS.split(name)
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


class ArtifactRegistry:
    """Directory-listing backed view of published artifacts."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def names(self) -> list[str]:
        """Return sorted names of regular files in the directory."""
        if not self.directory.is_dir():
            return []
        return sorted(p.name for p in self.directory.iterdir() if p.is_file())

    def matches(self, pattern: str) -> list[str]:
        return [name for name in self.names() if fnmatchcase(name, pattern)]

    def find(self, pattern: str) -> str | None:
        """Return the name of a file matching pattern, or None."""
        found = self.matches(pattern)
        return max(found, key=release_sort_key) if found else None

    def exists(self, pattern: str) -> bool:
        return self.find(pattern) is not None
