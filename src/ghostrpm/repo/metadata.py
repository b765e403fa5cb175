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

"""Yum repository publication and metadata regeneration.

Built artifacts are moved out of mock's result directory into a repository
subtree, after which ``createrepo`` rebuilds that subtree's ``repodata/``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_INDEXER = "createrepo"


@dataclass
class PublishResult:
    """Result of publishing artifacts into the repository."""

    success: bool
    published_paths: list[Path] = field(default_factory=list)
    error: str = ""


@dataclass
class IndexResult:
    """Result of regenerating repository metadata."""

    success: bool
    directory: Path | None = None
    repodata_dir: Path | None = None
    exit_code: int = -1
    error: str = ""
    command: list[str] = field(default_factory=list)


def publish_artifacts(artifact_paths: list[Path], dest_dir: Path) -> PublishResult:
    """Move artifacts into dest_dir.

    Stops at the first artifact that cannot be moved; files moved before
    that point stay published.

    Args:
        artifact_paths: Files to publish.
        dest_dir: Repository subtree to move them into.

    Returns:
        PublishResult with published paths, or the error that stopped it.
    """
    published: list[Path] = []
    if not artifact_paths:
        return PublishResult(success=False, error="no artifacts to publish")

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        for artifact in artifact_paths:
            if not artifact.is_file():
                return PublishResult(
                    success=False,
                    published_paths=published,
                    error=f"artifact is not a regular file: {artifact}",
                )
            dest = dest_dir / artifact.name
            shutil.move(str(artifact), str(dest))
            logger.debug("Published %s -> %s", artifact, dest)
            published.append(dest)
    except OSError as e:
        return PublishResult(success=False, published_paths=published, error=str(e))

    return PublishResult(success=True, published_paths=published)


class RepoIndexer:
    """Wrapper around createrepo for one repository subtree at a time."""

    def __init__(self, executable: str = DEFAULT_INDEXER, timeout: int = 600) -> None:
        self.executable = executable
        self.timeout = timeout

    def build_command(self, directory: Path) -> list[str]:
        cmd = [self.executable]
        # --update reuses metadata for unchanged packages.
        if (directory / "repodata").is_dir():
            cmd.append("--update")
        cmd.append(str(directory))
        return cmd

    def regenerate(self, directory: Path) -> IndexResult:
        """Regenerate repodata for directory.

        Failures are returned, not raised; a stale index does not make the
        published artifacts unreachable by direct path.
        """
        if shutil.which(self.executable) is None:
            return IndexResult(
                success=False,
                directory=directory,
                error=f"{self.executable} is not installed",
            )

        cmd = self.build_command(directory)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return IndexResult(
                success=False,
                directory=directory,
                error=f"{self.executable} timed out after {self.timeout} seconds",
                command=cmd,
            )
        except OSError as e:
            return IndexResult(success=False, directory=directory, error=str(e), command=cmd)

        if result.returncode != 0:
            err = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            return IndexResult(
                success=False,
                directory=directory,
                exit_code=result.returncode,
                error=err,
                command=cmd,
            )

        return IndexResult(
            success=True,
            directory=directory,
            repodata_dir=directory / "repodata",
            exit_code=0,
            command=cmd,
        )
