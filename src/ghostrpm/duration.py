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

"""Duration string parsing for cache timeouts."""

from __future__ import annotations

import re

# A bare number of seconds, or a number followed by a unit.
DURATION_PATTERN = re.compile(r"^(\d+)\s*([smhdw]?)$", re.IGNORECASE)

UNIT_SECONDS: dict[str, int] = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(value: str | int) -> int:
    """Parse a duration into seconds.

    Supported formats:
        42600 -> 42600 seconds
        30s   -> 30 seconds
        30m   -> 30 minutes
        12h   -> 12 hours
        1d    -> 1 day
        2w    -> 2 weeks

    Args:
        value: Duration string, or an int already expressed in seconds.

    Returns:
        Duration in seconds.

    Raises:
        ValueError: If the format is invalid.
    """
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid duration: {value}. Must not be negative.")
        return value

    match = DURATION_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid duration format: '{value}'. Expected seconds or a form like '12h', '30m'.")

    amount = int(match.group(1))
    unit = match.group(2).lower()
    return amount * UNIT_SECONDS[unit]
