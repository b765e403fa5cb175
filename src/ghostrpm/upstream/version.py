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

"""Upstream release version resolution with a time-bounded cache.

The latest Ghost release is discovered by asking the "latest" download URL
where it redirects to and reading the version out of the redirect target.
The answer is cached as a two-line record (epoch timestamp, version) so that
repeated runs within the cache timeout make no network calls.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import requests

from ghostrpm.exceptions import InvalidVersionError, UpstreamLookupError

logger = logging.getLogger(__name__)

DEFAULT_LATEST_URL = "https://ghost.org/zip/ghost-latest.zip"

# Seconds after which a cached version is ignored.
DEFAULT_CACHE_TTL = 42600

CACHE_KEY = "version"

VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")
VERSION_SEARCH = re.compile(r"(\d+\.\d+\.\d+)")

REDIRECT_STATUSES = {301, 302, 303, 307, 308}


def is_valid_version(version: str) -> bool:
    """Return True if version is a MAJOR.MINOR.PATCH numeric triple."""
    return bool(VERSION_PATTERN.fullmatch(version))


def validate_version(version: str) -> str:
    """Return version unchanged, or raise InvalidVersionError."""
    if not is_valid_version(version):
        raise InvalidVersionError(
            message=f"Invalid version '{version}': expected MAJOR.MINOR.PATCH",
            version=version,
        )
    return version


class VersionStore(Protocol):
    """Key-value store for cached version lookups."""

    def get(self, key: str) -> tuple[float, str] | None: ...

    def put(self, key: str, timestamp: float, value: str) -> None: ...


class FileVersionStore:
    """Version store keeping one two-line file per key in a directory.

    File format:
        <epoch timestamp>
        <version>
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / key

    def get(self, key: str) -> tuple[float, str] | None:
        path = self.path_for(key)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError:
            return None
        if len(lines) < 2:
            logger.debug(f"Ignoring malformed version cache {path}")
            return None
        try:
            timestamp = float(lines[0].strip())
        except ValueError:
            logger.debug(f"Ignoring version cache {path} with bad timestamp {lines[0]!r}")
            return None
        value = lines[1].strip()
        if not is_valid_version(value):
            logger.debug(f"Ignoring version cache {path} with bad version {value!r}")
            return None
        return timestamp, value

    def put(self, key: str, timestamp: float, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{int(timestamp)}\n{value}\n", encoding="utf-8")


class VersionResolver:
    """Resolve the latest upstream release, consulting the cache first."""

    def __init__(
        self,
        store: VersionStore,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        latest_url: str = DEFAULT_LATEST_URL,
        key: str = CACHE_KEY,
        timeout: int = 30,
    ) -> None:
        self.store = store
        self.session = session or requests.Session()
        self.clock = clock
        self.latest_url = latest_url
        self.key = key
        self.timeout = timeout

    def cached(self, max_age: float) -> str | None:
        """Return the cached version if it is younger than max_age seconds.

        A timestamp in the future counts as fresh.
        """
        entry = self.store.get(self.key)
        if entry is None:
            return None
        timestamp, value = entry
        if self.clock() - timestamp < max_age:
            return value
        return None

    def lookup_latest(self) -> str:
        """Ask upstream for the latest release.

        Raises:
            UpstreamLookupError: On network failure, when upstream does not
                redirect, or when the redirect target has no version in it.
        """
        try:
            resp = self.session.head(self.latest_url, allow_redirects=False, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamLookupError(
                message=f"Failed to query {self.latest_url}: {e}",
                url=self.latest_url,
            ) from e

        if resp.status_code not in REDIRECT_STATUSES:
            raise UpstreamLookupError(
                message=f"Expected a redirect from {self.latest_url}, got HTTP {resp.status_code}",
                url=self.latest_url,
            )

        target = resp.headers.get("Location", "")
        match = VERSION_SEARCH.search(target)
        if not match:
            raise UpstreamLookupError(
                message=f"No version found in redirect target '{target}'",
                url=self.latest_url,
            )
        return match.group(1)

    def resolve(self, max_age: float = DEFAULT_CACHE_TTL) -> str:
        """Return the latest version, from cache when fresh, else from upstream.

        A successful lookup overwrites the cache entry. A failed lookup is
        fatal; there is no fallback to a stale entry.
        """
        cached = self.cached(max_age)
        if cached is not None:
            logger.debug(f"Using cached version {cached}")
            return cached

        version = self.lookup_latest()
        self.store.put(self.key, self.clock(), version)
        logger.debug(f"Resolved latest version {version} from {self.latest_url}")
        return version


def resolve_version(
    override: str | None,
    resolver: VersionResolver,
    max_age: float = DEFAULT_CACHE_TTL,
) -> str:
    """Return the version to build.

    An explicit override wins and is validated before anything else happens.
    Otherwise the resolver is consulted.
    """
    if override:
        return validate_version(override)
    return validate_version(resolver.resolve(max_age))


def resolver_from_config(cfg: dict[str, Any], session: requests.Session | None = None) -> VersionResolver:
    """Build a VersionResolver backed by the configured cache file."""
    cache_file = Path(cfg["paths"]["version_cache"])
    return VersionResolver(
        store=FileVersionStore(cache_file.parent),
        session=session,
        latest_url=cfg.get("upstream", {}).get("latest_url", DEFAULT_LATEST_URL),
        key=cache_file.name,
    )
