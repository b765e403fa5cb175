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

"""On-disk yum repository layout.

    <repo_root>/<version>/<dist>/SRPMS
    <repo_root>/<version>/<dist>/<arch>
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

SRPMS_DIR_NAME = "SRPMS"


@dataclass(frozen=True)
class RepoLayout:
    """Paths of one {version, dist} slice of the repository."""

    repo_root: Path
    version: str
    dist: str

    @property
    def base_dir(self) -> Path:
        return self.repo_root / self.version / self.dist

    @property
    def srpms_dir(self) -> Path:
        return self.base_dir / SRPMS_DIR_NAME

    def arch_dir(self, arch: str) -> Path:
        return self.base_dir / arch

    def ensure(self, arch: str | None = None) -> list[Path]:
        """Create the SRPMS subtree, and the arch subtree if given.

        Returns the directories that were ensured.
        """
        dirs = [self.srpms_dir]
        if arch:
            dirs.append(self.arch_dir(arch))
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)
        return dirs
