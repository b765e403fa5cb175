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

"""Two-phase idempotent build pipeline.

Each phase (source RPM, then binary RPM) runs the same steps:

1. Existence check against the repository subtree; skip if already built
2. Precondition validation (source phase)
3. Source archive staging (source phase)
4. Mock invocation; a failure (or mock missing from PATH) is fatal and
   never retried
5. Signing, when a key is configured; a failure is reported, not fatal
6. Publication into the repository; a failure is fatal
7. createrepo on the affected subtree; a failure is reported, not fatal

Fatal conditions raise GhostrpmError subclasses and propagate unchanged to
the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ghostrpm.build.errors import (
    log_phase_event,
    phase_notice,
    phase_recoverable_error,
    phase_warning,
)
from ghostrpm.build.mock import (
    DEFAULT_BUILD_TIMEOUT,
    MODE_REBUILD,
    MODE_SRPM,
    VERSION_MACRO,
    MockBuilder,
    MockConfig,
    MockResult,
)
from ghostrpm.build.naming import (
    binary_package_name,
    source_package_name,
    source_package_pattern,
    spec_release,
)
from ghostrpm.build.profile import BuildProfile
from ghostrpm.build.signer import GPG_NAME_ENV, RpmSigner, SignResult
from ghostrpm.build.tools import BUILDER_TOOL, get_missing_tools_message
from ghostrpm.config import EXISTENCE_CHECK_MODES
from ghostrpm.exceptions import BuildError, PreconditionError, PublishError, ToolMissingError
from ghostrpm.repo.layout import RepoLayout
from ghostrpm.repo.metadata import IndexResult, RepoIndexer, publish_artifacts
from ghostrpm.repo.registry import ArtifactRegistry
from ghostrpm.run import activity_spinner
from ghostrpm.upstream.source import SourceFetcher

if TYPE_CHECKING:
    from ghostrpm.run import RunContext

logger = logging.getLogger(__name__)

PHASE_SOURCE = "srpm"
PHASE_BINARY = "rpm"


class Builder(Protocol):
    def build(self, config: MockConfig) -> MockResult: ...


class Signer(Protocol):
    def sign(self, path: Path) -> SignResult: ...


class Indexer(Protocol):
    def regenerate(self, directory: Path) -> IndexResult: ...


class Fetcher(Protocol):
    def ensure_source(self, version: str, dest_dir: Path) -> Path: ...


class BinaryStatus(IntEnum):
    """Outcome of the binary phase; values double as status codes."""

    BUILT = 0
    ALREADY_BUILT = 2


@dataclass(frozen=True)
class BuildSettings:
    """Immutable configuration for one run, fixed at startup.

    Attributes:
        profile: Mock build-root profile facts.
        arch: Binary-phase target architecture.
        version: Upstream release version being packaged.
        repo_root: Base of the published yum tree.
        spec_path: RPM spec file.
        sources_dir: Directory holding upstream source archives.
        work_dir: Private area for mock result directories.
        package_name: RPM name prefix of the artifacts.
        existence_check: "version" or "release" granularity for the SRPM check.
        gpg_name: Signing key name, or None to publish unsigned.
        log_dir: Where mock output logs go (defaults to the result directory).
        build_timeout: Seconds a single mock invocation may run.
    """

    profile: BuildProfile
    arch: str
    version: str
    repo_root: Path
    spec_path: Path
    sources_dir: Path
    work_dir: Path
    package_name: str = "ghost"
    existence_check: str = "version"
    gpg_name: str | None = None
    log_dir: Path | None = None
    build_timeout: int = DEFAULT_BUILD_TIMEOUT

    def __post_init__(self) -> None:
        if self.existence_check not in EXISTENCE_CHECK_MODES:
            raise ValueError(
                f"existence_check must be one of {', '.join(EXISTENCE_CHECK_MODES)}, got {self.existence_check!r}"
            )


@dataclass
class PipelineOutcome:
    """What a full run did."""

    version: str
    srpm_name: str
    srpm_built: bool
    binary_status: BinaryStatus | None = None
    binary_name: str | None = None


class BuildPipeline:
    """Drive mock through the source and binary phases for one version."""

    def __init__(
        self,
        settings: BuildSettings,
        builder: Builder | None = None,
        signer: Signer | None = None,
        indexer: Indexer | None = None,
        fetcher: Fetcher | None = None,
        run: RunContext | None = None,
        builder_available: bool = True,
    ) -> None:
        self.settings = settings
        self.builder = builder or MockBuilder(timeout=settings.build_timeout)
        self.builder_available = builder_available
        if signer is None and settings.gpg_name:
            signer = RpmSigner(settings.gpg_name)
        self.signer = signer
        self.indexer = indexer or RepoIndexer()
        self.fetcher = fetcher or SourceFetcher(package_name=settings.package_name)
        self.run_ctx = run
        self.layout = RepoLayout(settings.repo_root, settings.version, settings.profile.dist)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def build_source(self) -> str:
        """Run the source phase and return the SRPM filename."""
        name, _ = self._build_source()
        return name

    def build_binary(self, srpm_name: str, arch: str | None = None) -> BinaryStatus:
        """Run the binary phase for srpm_name.

        Returns:
            BinaryStatus.ALREADY_BUILT if the binary RPM was already published,
            BinaryStatus.BUILT if it was built in this call.
        """
        s = self.settings
        arch = arch or s.arch
        expected = binary_package_name(srpm_name, arch)
        arch_dir = self.layout.arch_dir(arch)

        existing = ArtifactRegistry(arch_dir).find(expected)
        if existing:
            log_phase_event(
                self.run_ctx, PHASE_BINARY, f"Already built: {existing}", "rpm.skip",
                name=existing, directory=str(arch_dir),
            )
            return BinaryStatus.ALREADY_BUILT

        srpm_path = self.layout.srpms_dir / srpm_name
        if not srpm_path.is_file():
            raise PreconditionError(message=f"Source package not found: {srpm_path}", phase=PHASE_BINARY)

        config = MockConfig(
            profile=s.profile.name,
            result_dir=s.work_dir / s.version / f"{PHASE_BINARY}-{arch}",
            mode=MODE_REBUILD,
            defines={VERSION_MACRO: s.version},
            srpm_path=srpm_path,
            arch=arch,
            log_dir=s.log_dir,
        )
        result = self._invoke_builder(PHASE_BINARY, config, f"Building {expected}")

        self._sign_all(PHASE_BINARY, result.artifacts)
        published = self._publish(PHASE_BINARY, result.artifacts, arch_dir)
        self._regenerate(PHASE_BINARY, arch_dir)

        names = [p.name for p in published]
        if expected not in names:
            phase_warning(
                self.run_ctx, PHASE_BINARY,
                f"Expected {expected} but mock produced {', '.join(names)}",
                expected=expected, produced=names,
            )
        log_phase_event(self.run_ctx, PHASE_BINARY, f"Built {expected}", "rpm.built", name=expected, arch=arch)
        return BinaryStatus.BUILT

    def run(self, source_only: bool = False) -> PipelineOutcome:
        """Run the source phase, then the binary phase unless source_only."""
        s = self.settings
        self.layout.ensure(None if source_only else s.arch)

        srpm_name, built = self._build_source()
        outcome = PipelineOutcome(version=s.version, srpm_name=srpm_name, srpm_built=built)

        if source_only:
            phase_notice(self.run_ctx, PHASE_BINARY, "Source-only run; skipping binary build")
            return outcome

        outcome.binary_status = self.build_binary(srpm_name, s.arch)
        outcome.binary_name = binary_package_name(srpm_name, s.arch)
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def source_pattern(self) -> str:
        """Return the existence-check glob for the SRPM."""
        s = self.settings
        if s.existence_check == "release":
            self._check_source_inputs()
            return source_package_pattern(
                s.version, s.package_name, release=spec_release(s.spec_path), dist=s.profile.dist
            )
        return source_package_pattern(s.version, s.package_name)

    def _build_source(self) -> tuple[str, bool]:
        s = self.settings
        srpms_dir = self.layout.srpms_dir

        existing = ArtifactRegistry(srpms_dir).find(self.source_pattern())
        if existing:
            log_phase_event(
                self.run_ctx, PHASE_SOURCE, f"Already built: {existing}", "srpm.skip",
                name=existing, directory=str(srpms_dir),
            )
            return existing, False

        self._check_source_inputs()

        with activity_spinner("fetch", f"Ensuring source archive for {s.version}"):
            archive = self.fetcher.ensure_source(s.version, s.sources_dir)
        log_phase_event(self.run_ctx, "fetch", f"Source archive: {archive}", "fetch.ready", path=str(archive))

        expected = source_package_name(s.profile, s.version, s.spec_path, s.package_name)
        config = MockConfig(
            profile=s.profile.name,
            result_dir=s.work_dir / s.version / PHASE_SOURCE,
            mode=MODE_SRPM,
            defines={VERSION_MACRO: s.version},
            spec_path=s.spec_path,
            sources_dir=s.sources_dir,
            log_dir=s.log_dir,
        )
        result = self._invoke_builder(PHASE_SOURCE, config, f"Building {expected}")

        self._sign_all(PHASE_SOURCE, result.artifacts)
        published = self._publish(PHASE_SOURCE, result.artifacts, srpms_dir)
        self._regenerate(PHASE_SOURCE, srpms_dir)

        names = [p.name for p in published]
        if expected in names:
            name = expected
        else:
            name = names[0]
            phase_warning(
                self.run_ctx, PHASE_SOURCE,
                f"Expected {expected} but mock produced {name}",
                expected=expected, produced=names,
            )
        log_phase_event(self.run_ctx, PHASE_SOURCE, f"Built {name}", "srpm.built", name=name)
        return name, True

    def _check_source_inputs(self) -> None:
        s = self.settings
        if not s.spec_path.is_file():
            raise PreconditionError(message=f"Spec file not found: {s.spec_path}", phase=PHASE_SOURCE)
        if not s.sources_dir.is_dir():
            raise PreconditionError(message=f"Sources directory not found: {s.sources_dir}", phase=PHASE_SOURCE)

    def _invoke_builder(self, phase: str, config: MockConfig, description: str) -> MockResult:
        if not self.builder_available:
            raise ToolMissingError(
                message=get_missing_tools_message([BUILDER_TOOL]),
                phase=phase,
                missing=[BUILDER_TOOL],
            )

        if self.run_ctx is not None:
            self.run_ctx.log_event({"event": f"{phase}.build.start", "profile": config.profile, "mode": config.mode})

        with activity_spinner(phase, f"{description} in {config.profile}"):
            result = self.builder.build(config)

        if self.run_ctx is not None:
            self.run_ctx.log_event(
                {
                    "event": f"{phase}.build.end",
                    "success": result.success,
                    "exit_code": result.exit_code,
                    "command": result.command,
                    "start_timestamp": result.start_timestamp,
                    "duration_seconds": round(result.duration_seconds, 3),
                    "artifacts": [str(a) for a in result.artifacts],
                    "stdout_log": str(result.stdout_log_path) if result.stdout_log_path else None,
                    "stderr_log": str(result.stderr_log_path) if result.stderr_log_path else None,
                }
            )

        if not result.success:
            log_path = str(result.stderr_log_path) if result.stderr_log_path else ""
            message = f"mock failed: {result.validation_message or result.output}"
            if log_path:
                message += f" (see {log_path})"
            raise BuildError(
                message=message,
                phase=phase,
                builder_exit_code=result.exit_code,
                log_path=log_path,
            )
        return result

    def _sign_all(self, phase: str, artifacts: list[Path]) -> None:
        if self.signer is None:
            phase_notice(
                self.run_ctx, phase, f"{GPG_NAME_ENV} not set; publishing unsigned",
                event_key=f"{phase}.sign.skipped",
            )
            return

        for artifact in artifacts:
            signed = self.signer.sign(artifact)
            if signed.success:
                log_phase_event(self.run_ctx, phase, f"Signed {artifact.name}", f"{phase}.sign", path=str(artifact))
            else:
                phase_recoverable_error(
                    self.run_ctx, phase, f"Signing {artifact.name} failed: {signed.error}",
                    event_key=f"{phase}.sign.failed", path=str(artifact),
                )

    def _publish(self, phase: str, artifacts: list[Path], dest_dir: Path) -> list[Path]:
        result = publish_artifacts(artifacts, dest_dir)
        if not result.success:
            raise PublishError(message=f"Failed to publish to {dest_dir}: {result.error}", phase=phase)
        log_phase_event(
            self.run_ctx, phase, f"Published {len(result.published_paths)} file(s) to {dest_dir}",
            f"{phase}.publish", published=[str(p) for p in result.published_paths],
        )
        return result.published_paths

    def _regenerate(self, phase: str, directory: Path) -> None:
        result = self.indexer.regenerate(directory)
        if result.success:
            log_phase_event(self.run_ctx, phase, f"Regenerated metadata in {directory}", f"{phase}.index")
        else:
            phase_recoverable_error(
                self.run_ctx, phase, f"Metadata regeneration failed for {directory}: {result.error}",
                event_key=f"{phase}.index.failed", directory=str(directory),
            )
