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

"""Tests for ghostrpm.upstream.version module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
import responses

from ghostrpm.exceptions import InvalidVersionError, UpstreamLookupError
from ghostrpm.upstream import version as version_mod
from ghostrpm.upstream.version import (
    DEFAULT_LATEST_URL,
    FileVersionStore,
    VersionResolver,
    is_valid_version,
    resolve_version,
    resolver_from_config,
    validate_version,
)

LATEST = DEFAULT_LATEST_URL


class MemoryStore:
    """In-memory VersionStore recording writes."""

    def __init__(self, entries: dict[str, tuple[float, str]] | None = None) -> None:
        self.entries = dict(entries or {})
        self.puts: list[tuple[str, float, str]] = []

    def get(self, key: str) -> tuple[float, str] | None:
        return self.entries.get(key)

    def put(self, key: str, timestamp: float, value: str) -> None:
        self.puts.append((key, timestamp, value))
        self.entries[key] = (timestamp, value)


def redirect_to(target: str, status: int = 302) -> None:
    responses.add(responses.HEAD, LATEST, status=status, headers={"Location": target})


class TestVersionValidation:
    """Tests for version format validation."""

    @pytest.mark.parametrize("value", ["0.0.0", "5.2.0", "10.20.30", "1.2.345"])
    def test_accepts_three_numeric_components(self, value: str) -> None:
        assert is_valid_version(value)
        assert validate_version(value) == value

    @pytest.mark.parametrize(
        "value",
        ["", "5", "5.2", "5.2.0.1", "v5.2.0", "5.2.0-rc1", "5.x.0", " 5.2.0", "5.2.0\n", "latest"],
    )
    def test_rejects_everything_else(self, value: str) -> None:
        assert not is_valid_version(value)
        with pytest.raises(InvalidVersionError) as excinfo:
            validate_version(value)
        assert excinfo.value.exit_code == 1
        assert excinfo.value.version == value


class TestFileVersionStore:
    """Tests for the two-line file store."""

    def test_missing_file_is_absent(self, tmp_path: Path) -> None:
        assert FileVersionStore(tmp_path).get("version") is None

    def test_put_writes_two_lines(self, tmp_path: Path) -> None:
        store = FileVersionStore(tmp_path / "cache")
        store.put("version", 1700000000.7, "5.2.0")

        lines = (tmp_path / "cache" / "version").read_text().splitlines()
        assert lines == ["1700000000", "5.2.0"]

    def test_get_reads_back(self, tmp_path: Path) -> None:
        store = FileVersionStore(tmp_path)
        store.put("version", 1700000000, "5.2.0")
        assert store.get("version") == (1700000000.0, "5.2.0")

    def test_put_overwrites(self, tmp_path: Path) -> None:
        store = FileVersionStore(tmp_path)
        store.put("version", 1, "5.1.0")
        store.put("version", 2, "5.2.0")
        assert store.get("version") == (2.0, "5.2.0")

    @pytest.mark.parametrize(
        "content",
        ["", "1700000000\n", "not-a-time\n5.2.0\n", "1700000000\n\n", "1700000000\nlatest\n", "1700000000\n5.2\n"],
    )
    def test_malformed_file_is_absent(self, tmp_path: Path, content: str) -> None:
        (tmp_path / "version").write_text(content)
        assert FileVersionStore(tmp_path).get("version") is None


class TestVersionResolverCache:
    """Tests for cache freshness handling."""

    def test_fresh_entry_skips_network(self) -> None:
        session = MagicMock()
        store = MemoryStore({"version": (1000.0, "5.1.0")})
        resolver = VersionResolver(store, session=session, clock=lambda: 1000.0 + 100)

        assert resolver.resolve(max_age=42600) == "5.1.0"
        session.head.assert_not_called()
        assert store.puts == []

    def test_future_timestamp_is_fresh(self) -> None:
        session = MagicMock()
        store = MemoryStore({"version": (5000.0, "5.1.0")})
        resolver = VersionResolver(store, session=session, clock=lambda: 1000.0)

        assert resolver.resolve(max_age=10) == "5.1.0"
        session.head.assert_not_called()

    def test_entry_at_exact_age_is_stale(self) -> None:
        store = MemoryStore({"version": (1000.0, "5.1.0")})
        resolver = VersionResolver(store, session=MagicMock(), clock=lambda: 1010.0)
        assert resolver.cached(max_age=10) is None

    @responses.activate
    def test_stale_entry_does_one_lookup_and_overwrites(self) -> None:
        redirect_to("https://ghost.org/zip/ghost-5.2.0.zip")
        store = MemoryStore({"version": (1000.0, "5.1.0")})
        resolver = VersionResolver(store, clock=lambda: 1000.0 + 42600)

        assert resolver.resolve(max_age=42600) == "5.2.0"
        assert len(responses.calls) == 1
        assert store.puts == [("version", 43600.0, "5.2.0")]

    @responses.activate
    def test_second_call_within_window_uses_cache(self, tmp_path: Path) -> None:
        redirect_to("https://ghost.org/zip/ghost-5.2.0.zip")
        now = [2000.0]
        resolver = VersionResolver(FileVersionStore(tmp_path), clock=lambda: now[0])

        first = resolver.resolve(max_age=42600)
        now[0] += 600
        second = resolver.resolve(max_age=42600)

        assert first == second == "5.2.0"
        assert len(responses.calls) == 1

    @responses.activate
    def test_fresh_entry_with_bad_version_is_replaced(self, tmp_path: Path) -> None:
        (tmp_path / "version").write_text("1999\nlatest\n")
        redirect_to("https://ghost.org/zip/ghost-5.2.0.zip")
        resolver = VersionResolver(FileVersionStore(tmp_path), clock=lambda: 2000.0)

        assert resolver.resolve(max_age=42600) == "5.2.0"
        assert len(responses.calls) == 1
        assert (tmp_path / "version").read_text().splitlines() == ["2000", "5.2.0"]


class TestVersionResolverLookup:
    """Tests for the upstream redirect lookup."""

    @responses.activate
    def test_uncached_lookup_writes_cache_file(self, tmp_path: Path) -> None:
        redirect_to("https://ghost.org/archives/ghost-5.2.0.zip")
        resolver = VersionResolver(FileVersionStore(tmp_path), clock=lambda: 1700000000.0)

        assert resolver.resolve() == "5.2.0"

        lines = (tmp_path / "version").read_text().splitlines()
        assert len(lines) == 2
        assert lines[1] == "5.2.0"

    @responses.activate
    def test_does_not_follow_redirect(self) -> None:
        redirect_to("https://ghost.org/zip/ghost-5.2.0.zip", status=301)
        resolver = VersionResolver(MemoryStore())
        resolver.lookup_latest()
        assert responses.calls[0].request.method == "HEAD"
        assert len(responses.calls) == 1

    @responses.activate
    def test_non_redirect_status_fails(self) -> None:
        responses.add(responses.HEAD, LATEST, status=200)
        store = MemoryStore()
        with pytest.raises(UpstreamLookupError) as excinfo:
            VersionResolver(store).resolve()
        assert "200" in excinfo.value.message
        assert store.puts == []

    @responses.activate
    def test_missing_version_in_target_fails(self) -> None:
        redirect_to("https://ghost.org/download/latest.zip")
        with pytest.raises(UpstreamLookupError):
            VersionResolver(MemoryStore()).resolve()

    @responses.activate
    def test_network_error_fails_without_stale_fallback(self) -> None:
        responses.add(responses.HEAD, LATEST, body=requests.ConnectionError("unreachable"))
        store = MemoryStore({"version": (0.0, "4.0.0")})
        resolver = VersionResolver(store, clock=lambda: 10**9)

        with pytest.raises(UpstreamLookupError) as excinfo:
            resolver.resolve(max_age=60)
        assert excinfo.value.url == LATEST
        assert store.entries["version"] == (0.0, "4.0.0")


class TestResolveVersion:
    """Tests for resolve_version()."""

    def test_override_wins_without_lookup(self) -> None:
        resolver = MagicMock()
        assert resolve_version("5.2.0", resolver) == "5.2.0"
        resolver.resolve.assert_not_called()

    def test_invalid_override_fails_before_lookup(self) -> None:
        resolver = MagicMock()
        with pytest.raises(InvalidVersionError):
            resolve_version("5.2", resolver)
        resolver.resolve.assert_not_called()

    def test_no_override_uses_resolver(self) -> None:
        resolver = MagicMock()
        resolver.resolve.return_value = "5.3.1"
        assert resolve_version(None, resolver, max_age=30) == "5.3.1"
        resolver.resolve.assert_called_once_with(30)


class TestResolverFromConfig:
    """Tests for resolver_from_config()."""

    def test_uses_cache_file_path(self, tmp_path: Path) -> None:
        cfg = {
            "paths": {"version_cache": str(tmp_path / "cache" / "latest-version")},
            "upstream": {"latest_url": "https://example.invalid/latest"},
        }
        resolver = resolver_from_config(cfg)
        assert isinstance(resolver.store, FileVersionStore)
        assert resolver.store.path_for(resolver.key) == tmp_path / "cache" / "latest-version"
        assert resolver.latest_url == "https://example.invalid/latest"

    def test_default_ttl(self) -> None:
        assert version_mod.DEFAULT_CACHE_TTL == 42600
