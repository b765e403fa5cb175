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

"""Build module for ghostrpm.

Provides the two-phase mock build pipeline and the helpers it consults:
profile inspection, artifact naming, signing, and tool checks.
"""

from ghostrpm.build.errors import (
    EXIT_FATAL,
    EXIT_SUCCESS,
    log_phase_event,
    phase_error,
    phase_notice,
    phase_recoverable_error,
    phase_warning,
)
from ghostrpm.build.mock import MockBuilder, MockConfig, MockResult, run_mock
from ghostrpm.build.naming import (
    binary_package_name,
    source_package_name,
    source_package_pattern,
    spec_release,
)
from ghostrpm.build.pipeline import (
    BinaryStatus,
    BuildPipeline,
    BuildSettings,
    PipelineOutcome,
)
from ghostrpm.build.profile import BuildProfile, default_arch_of, dist_of, load_profile
from ghostrpm.build.signer import RpmSigner, SignResult

__all__ = [
    "EXIT_FATAL",
    "EXIT_SUCCESS",
    "BinaryStatus",
    "BuildPipeline",
    "BuildProfile",
    "BuildSettings",
    "MockBuilder",
    "MockConfig",
    "MockResult",
    "PipelineOutcome",
    "RpmSigner",
    "SignResult",
    "binary_package_name",
    "default_arch_of",
    "dist_of",
    "load_profile",
    "log_phase_event",
    "phase_error",
    "phase_notice",
    "phase_recoverable_error",
    "phase_warning",
    "run_mock",
    "source_package_name",
    "source_package_pattern",
    "spec_release",
]
