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

"""Tests for ghostrpm.build.naming module."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path

import pytest

from ghostrpm.build import naming
from ghostrpm.build.profile import BuildProfile

EL6 = BuildProfile(name="epel-6-x86_64", dist="el6", default_arch="x86_64")


class TestSpecRelease:
    def test_first_digits_of_release(self, spec_file: Path) -> None:
        assert naming.spec_release(spec_file) == "3"

    def test_multi_digit_release(self, tmp_path: Path) -> None:
        spec = tmp_path / "ghost.spec"
        spec.write_text("Name: ghost\nRelease: 12.beta2%{?dist}\n")
        assert naming.spec_release(spec) == "12"

    def test_missing_release(self, tmp_path: Path) -> None:
        spec = tmp_path / "ghost.spec"
        spec.write_text("Name: ghost\n")
        assert naming.spec_release(spec) == ""

    def test_ignores_changelog_mentions(self, tmp_path: Path) -> None:
        spec = tmp_path / "ghost.spec"
        spec.write_text("Name: ghost\nRelease: 4\n\n%changelog\n- bump Release: 9\n")
        assert naming.spec_release(spec) == "4"


class TestPackageNames:
    def test_source_package_name(self, spec_file: Path) -> None:
        assert naming.source_package_name(EL6, "5.2.0", spec_file) == "ghost-5.2.0-3.el6.src.rpm"

    def test_binary_package_name(self) -> None:
        assert naming.binary_package_name("ghost-5.2.0-3.el6.src.rpm", "x86_64") == "ghost-5.2.0-3.el6.x86_64.rpm"

    def test_binary_from_source(self, spec_file: Path) -> None:
        srpm = naming.source_package_name(EL6, "5.2.0", spec_file)
        assert naming.binary_package_name(srpm, "i686") == "ghost-5.2.0-3.el6.i686.rpm"

    def test_binary_name_rejects_non_source(self) -> None:
        with pytest.raises(ValueError):
            naming.binary_package_name("ghost-5.2.0-3.el6.x86_64.rpm", "x86_64")

    def test_custom_package_name(self, spec_file: Path) -> None:
        assert naming.source_package_name(EL6, "1.0.0", spec_file, "ghost-cli") == "ghost-cli-1.0.0-3.el6.src.rpm"


class TestPatterns:
    def test_version_pattern_matches_any_release(self) -> None:
        pattern = naming.source_package_pattern("5.2.0")
        assert fnmatchcase("ghost-5.2.0-3.el6.src.rpm", pattern)
        assert fnmatchcase("ghost-5.2.0-7.el6.src.rpm", pattern)
        assert not fnmatchcase("ghost-5.2.1-3.el6.src.rpm", pattern)
        assert not fnmatchcase("ghost-5.2.0-3.el6.x86_64.rpm", pattern)

    def test_release_pattern_is_exact(self) -> None:
        pattern = naming.source_package_pattern("5.2.0", release="3", dist="el6")
        assert pattern == "ghost-5.2.0-3.el6.src.rpm"

    def test_artifact_patterns(self) -> None:
        assert fnmatchcase("ghost-5.2.0-3.el6.x86_64.rpm", naming.binary_artifact_pattern("x86_64"))
        assert not fnmatchcase("ghost-5.2.0-3.el6.src.rpm", naming.binary_artifact_pattern("x86_64"))
        assert fnmatchcase("ghost-5.2.0-3.el6.src.rpm", naming.source_artifact_pattern())
