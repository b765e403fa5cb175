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

"""External tool validation for ghostrpm builds.

Only mock is indispensable, and only when something still needs building;
the pipeline raises ToolMissingError at that point. A missing createrepo or
rpmsign merely degrades the run: the pre-flight check warns about it and the
indexer or signer reports the failure when it is reached.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

BUILDER_TOOL = "mock"


@dataclass
class ToolCheck:
    """Which external tools were found on PATH."""

    tools: dict[str, Path | None] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)

    @property
    def has_builder(self) -> bool:
        return BUILDER_TOOL not in self.missing


REQUIRED_TOOLS = [BUILDER_TOOL, "createrepo"]

INSTALL_INSTRUCTIONS: dict[str, str] = {
    "mock": "dnf install mock && usermod -a -G mock $USER",
    "createrepo": "dnf install createrepo_c",
    "rpmsign": "dnf install rpm-sign",
}

TOOL_PACKAGES: dict[str, str] = {
    "mock": "mock",
    "createrepo": "createrepo_c",
    "rpmsign": "rpm-sign",
}

# What a run loses without each tool.
MISSING_TOOL_EFFECTS: dict[str, str] = {
    "mock": "packages that still need building cannot be built",
    "createrepo": "repository metadata will not be regenerated",
    "rpmsign": "packages will be published unsigned",
}


def find_tool(name: str) -> Path | None:
    """Return the PATH location of an executable, or None."""
    found = shutil.which(name)
    return Path(found) if found else None


def check_required_tools(need_signer: bool = False) -> ToolCheck:
    """Look up mock and createrepo, plus rpmsign when need_signer is set."""
    wanted = [*REQUIRED_TOOLS, "rpmsign"] if need_signer else REQUIRED_TOOLS
    tools = {name: find_tool(name) for name in wanted}
    return ToolCheck(tools=tools, missing=[name for name, path in tools.items() if path is None])


def missing_tool_warning(tool: str) -> str:
    """One-line warning for a tool the run can do without."""
    effect = MISSING_TOOL_EFFECTS.get(tool, "some steps will fail")
    hint = INSTALL_INSTRUCTIONS.get(tool, f"install {tool}")
    return f"{tool} not found; {effect} (install with: {hint})"


def get_missing_tools_message(missing: list[str]) -> str:
    """Installation instructions for the given tools, or "" if none."""
    if not missing:
        return ""

    lines = ["The following required tools are missing:"]
    lines.extend(f"  - {tool}: {INSTALL_INSTRUCTIONS.get(tool, f'Install {tool}')}" for tool in missing)

    packages = [TOOL_PACKAGES[t] for t in missing if t in TOOL_PACKAGES]
    if packages:
        lines += ["", "Quick install:", f"  sudo dnf install {' '.join(packages)}"]

    return "\n".join(lines)
