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

"""RPM signing via rpmsign."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

# Environment variable naming the GPG key used for signing.
GPG_NAME_ENV = "GHOSTRPM_GPG_NAME"


@dataclass
class SignResult:
    """Result of signing one artifact."""

    success: bool
    path: Path
    error: str = ""
    command: list[str] = field(default_factory=list)


def signing_key_from_env(environ: dict[str, str] | None = None) -> str | None:
    """Return the configured signing key name, or None when unset/empty."""
    env = os.environ if environ is None else environ
    key = env.get(GPG_NAME_ENV, "").strip()
    return key or None


class RpmSigner:
    """Sign RPMs in place with ``rpmsign --addsign``."""

    def __init__(self, gpg_name: str, executable: str = "rpmsign", timeout: int = 300) -> None:
        self.gpg_name = gpg_name
        self.executable = executable
        self.timeout = timeout

    def build_command(self, path: Path) -> list[str]:
        return [
            self.executable,
            "--addsign",
            "--define",
            f"_gpg_name {self.gpg_name}",
            str(path),
        ]

    def sign(self, path: Path) -> SignResult:
        if shutil.which(self.executable) is None:
            return SignResult(success=False, path=path, error=f"{self.executable} is not installed")

        cmd = self.build_command(path)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return SignResult(success=False, path=path, error="rpmsign timed out", command=cmd)
        except OSError as e:
            return SignResult(success=False, path=path, error=str(e), command=cmd)

        if result.returncode != 0:
            err = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            return SignResult(success=False, path=path, error=err, command=cmd)
        return SignResult(success=True, path=path, command=cmd)
