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

"""ghostrpm: build Ghost RPMs with mock into a versioned yum repository."""

__version__ = "0.1.0"
