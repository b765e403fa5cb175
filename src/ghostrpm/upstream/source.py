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

"""Upstream source archive fetching."""

from __future__ import annotations

import contextlib
import hashlib
import logging
from pathlib import Path

import requests

from ghostrpm.exceptions import SourceFetchError

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_URL = "https://ghost.org/zip/ghost-{version}.zip"


def archive_name(version: str, package_name: str = "ghost") -> str:
    """Return the canonical upstream archive filename for a version."""
    return f"{package_name}-{version}.zip"


def compute_sha256(path: Path) -> str:
    """Compute the SHA-256 hash of a file."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


class SourceFetcher:
    """Download upstream archives into a sources directory, at most once."""

    def __init__(
        self,
        session: requests.Session | None = None,
        url_template: str = DEFAULT_ARCHIVE_URL,
        package_name: str = "ghost",
        timeout: int = 60,
    ) -> None:
        self.session = session or requests.Session()
        self.url_template = url_template
        self.package_name = package_name
        self.timeout = timeout

    def build_url(self, version: str) -> str:
        return self.url_template.format(version=version)

    def ensure_source(self, version: str, dest_dir: Path) -> Path:
        """Make sure the archive for version exists in dest_dir.

        Returns:
            Path to the archive.

        Raises:
            SourceFetchError: If the download fails for any reason. Nothing
                is left behind at the final path in that case.
        """
        dest = dest_dir / archive_name(version, self.package_name)
        if dest.exists():
            logger.debug(f"Source archive already present: {dest}")
            return dest

        url = self.build_url(version)
        partial = dest.with_name(dest.name + ".part")
        dest_dir.mkdir(parents=True, exist_ok=True)

        try:
            self._download(url, partial)
        except SourceFetchError:
            with contextlib.suppress(FileNotFoundError):
                partial.unlink()
            raise

        partial.replace(dest)
        logger.debug(f"Downloaded {url} to {dest} (sha256 {compute_sha256(dest)})")
        return dest

    def _download(self, url: str, partial: Path) -> None:
        try:
            resp = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise SourceFetchError(message=f"Failed to download {url}: {e}", url=url) from e

        with contextlib.closing(resp):
            if resp.status_code != 200:
                raise SourceFetchError(message=f"Failed to download {url}: HTTP {resp.status_code}", url=url)

            written = 0
            try:
                with partial.open("wb") as f:
                    for chunk in resp.iter_content(chunk_size=65536):
                        f.write(chunk)
                        written += len(chunk)
            except (requests.RequestException, OSError) as e:
                raise SourceFetchError(message=f"Failed to download {url}: {e}", url=url) from e

            expected = resp.headers.get("Content-Length")
            if expected is not None and expected.isdigit() and written != int(expected):
                raise SourceFetchError(
                    message=f"Incomplete download of {url}: got {written} of {expected} bytes",
                    url=url,
                )
