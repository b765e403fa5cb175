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

"""Implementation of `ghostrpm build`.

Each setting is taken from its command-line flag, else its GHOSTRPM_*
environment variable (both handled by Typer), else the config file, else a
built-in default. Settings are resolved once, before anything is built.

This is the only place fatal errors are handled: any GhostrpmError raised
while resolving or building is reported with a FATAL prefix and the process
exits with its exit code.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from ghostrpm.build.errors import EXIT_SUCCESS, log_phase_event, phase_error, phase_warning
from ghostrpm.build.pipeline import BinaryStatus, BuildPipeline, BuildSettings, PipelineOutcome
from ghostrpm.build.profile import load_profile
from ghostrpm.build.signer import signing_key_from_env
from ghostrpm.build.mock import DEFAULT_BUILD_TIMEOUT
from ghostrpm.build.tools import check_required_tools, missing_tool_warning
from ghostrpm.config import EXISTENCE_CHECK_MODES, resolve_paths
from ghostrpm.duration import parse_duration
from ghostrpm.exceptions import ConfigError, GhostrpmError
from ghostrpm.run import RunContext, activity
from ghostrpm.upstream.source import DEFAULT_ARCHIVE_URL, SourceFetcher
from ghostrpm.upstream.version import resolve_version, resolver_from_config


@dataclass
class BuildRequest:
    """Raw values collected from the command line and environment."""

    version: str | None = None
    root: str | None = None
    arch: str | None = None
    repo: Path | None = None
    spec: Path | None = None
    sources: Path | None = None
    srpm_only: bool = False
    cache_timeout: str | None = None
    skip_tool_check: bool = False


def cache_timeout_seconds(request: BuildRequest, cfg: dict[str, Any]) -> int:
    raw = request.cache_timeout or str(cfg["defaults"].get("version_cache_ttl", "42600"))
    try:
        return parse_duration(raw)
    except ValueError as e:
        raise ConfigError(message=f"Invalid cache timeout: {e}") from e


def resolve_settings(
    request: BuildRequest,
    cfg: dict[str, Any],
    version: str,
    log_dir: Path | None = None,
) -> BuildSettings:
    """Combine request, config and profile facts into BuildSettings.

    Raises:
        ConfigError: If the profile yields no dist tag or no architecture can
            be determined, or the config holds an invalid existence_check or
            build_timeout.
    """
    paths = resolve_paths(cfg)
    defaults = cfg["defaults"]
    install_dir = paths["install_dir"]

    profile_name = request.root or defaults["build_root"]
    profile = load_profile(profile_name, paths["mock_config_dir"])
    if not profile.dist:
        raise ConfigError(
            message=f"Build root '{profile_name}' declares no dist tag "
            f"(looked in {paths['mock_config_dir'] / (profile_name + '.cfg')})"
        )

    arch = request.arch or profile.default_arch
    if not arch:
        raise ConfigError(message=f"No architecture given and build root '{profile_name}' declares no target_arch")

    existence_check = defaults.get("existence_check", "version")
    if existence_check not in EXISTENCE_CHECK_MODES:
        raise ConfigError(message=f"Invalid existence_check '{existence_check}' in config")

    try:
        build_timeout = int(defaults.get("build_timeout", DEFAULT_BUILD_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(message=f"Invalid build_timeout '{defaults.get('build_timeout')}' in config") from e
    if build_timeout <= 0:
        raise ConfigError(message=f"build_timeout must be positive, got {build_timeout}")

    return BuildSettings(
        profile=profile,
        arch=arch,
        version=version,
        repo_root=(request.repo or install_dir / "yum").resolve(),
        spec_path=(request.spec or install_dir / "ghost.spec").resolve(),
        sources_dir=(request.sources or install_dir / "sources").resolve(),
        work_dir=paths["build_root"],
        package_name=defaults.get("package_name", "ghost"),
        existence_check=existence_check,
        gpg_name=signing_key_from_env(),
        log_dir=log_dir,
        build_timeout=build_timeout,
    )


def run_build(request: BuildRequest, run: RunContext) -> PipelineOutcome:
    """Resolve the version and settings, then run the pipeline.

    Raises:
        GhostrpmError: On any fatal condition.
    """
    cfg = run.cfg

    max_age = cache_timeout_seconds(request, cfg)
    version = resolve_version(request.version, resolver_from_config(cfg), max_age)
    log_phase_event(run, "version", f"Version: {version}", "version.resolved", version=version)

    settings = resolve_settings(request, cfg, version, log_dir=run.logs_path)
    run.log_event(
        {
            "event": "build.settings",
            "profile": settings.profile.name,
            "dist": settings.profile.dist,
            "arch": settings.arch,
            "repo_root": str(settings.repo_root),
            "spec": str(settings.spec_path),
            "sources": str(settings.sources_dir),
            "existence_check": settings.existence_check,
            "signing": settings.gpg_name is not None,
        }
    )

    builder_available = True
    skip_tools = request.skip_tool_check or bool(cfg["behavior"].get("skip_tool_check", False))
    if not skip_tools:
        check = check_required_tools(need_signer=settings.gpg_name is not None)
        for tool in check.missing:
            phase_warning(run, "tools", missing_tool_warning(tool), event_key="tools.missing", tool=tool)
        builder_available = check.has_builder

    fetcher = SourceFetcher(
        url_template=cfg["upstream"].get("archive_url", DEFAULT_ARCHIVE_URL),
        package_name=settings.package_name,
    )
    pipeline = BuildPipeline(settings, fetcher=fetcher, run=run, builder_available=builder_available)
    return pipeline.run(source_only=request.srpm_only)


def report_outcome(outcome: PipelineOutcome, run: RunContext) -> None:
    state = "built" if outcome.srpm_built else "already built"
    activity("build", f"Source package: {outcome.srpm_name} ({state})")
    if outcome.binary_status is not None:
        state = "built" if outcome.binary_status is BinaryStatus.BUILT else "already built"
        activity("build", f"Binary package: {outcome.binary_name} ({state})")
    run.write_summary(
        status="success",
        exit_code=EXIT_SUCCESS,
        version=outcome.version,
        srpm=outcome.srpm_name,
        srpm_built=outcome.srpm_built,
        rpm=outcome.binary_name,
        rpm_status=outcome.binary_status.name if outcome.binary_status is not None else None,
    )


def build(
    version: str | None = typer.Argument(
        None, envvar="GHOSTRPM_VERSION", help="Ghost release to build (default: latest upstream)"
    ),
    root: str | None = typer.Option(
        None, "--root", "-r", envvar="GHOSTRPM_ROOT", help="Mock build root profile (default: epel-6-x86_64)"
    ),
    arch: str | None = typer.Option(
        None, "--arch", "-a", envvar="GHOSTRPM_ARCH", help="Target architecture (default: the profile's)"
    ),
    repo: Path | None = typer.Option(None, "--repo", envvar="GHOSTRPM_REPO", help="Repository root"),
    spec: Path | None = typer.Option(None, "--spec", envvar="GHOSTRPM_SPEC", help="RPM spec file"),
    sources: Path | None = typer.Option(
        None, "--sources", envvar="GHOSTRPM_SOURCES", help="Directory for upstream source archives"
    ),
    srpm_only: bool = typer.Option(
        False, "--srpm-only", "-s", envvar="GHOSTRPM_SRPM_ONLY", help="Only build the source RPM"
    ),
    cache_timeout: str | None = typer.Option(
        None, "--cache-timeout", envvar="GHOSTRPM_CACHE_TIMEOUT", help="Version cache timeout (e.g. 42600, 12h)"
    ),
    skip_tool_check: bool = typer.Option(False, help="Do not check for mock/createrepo/rpmsign"),
) -> None:
    """Build the Ghost source RPM and binary RPM into the yum repository.

    Artifacts already present in the repository are not rebuilt.

    Exit codes:
      0 - Success (including when everything was already built)
      1 - Fatal error
    """
    request = BuildRequest(
        version=version,
        root=root,
        arch=arch,
        repo=repo,
        spec=spec,
        sources=sources,
        srpm_only=srpm_only,
        cache_timeout=cache_timeout,
        skip_tool_check=skip_tool_check,
    )

    with RunContext("build") as run:
        run.log_event({"event": "build.request", "version": version, "root": root, "arch": arch, "srpm_only": srpm_only})
        try:
            outcome = run_build(request, run)
        except GhostrpmError as e:
            sys.exit(phase_error(run, e.phase, e.message, e.exit_code, error_type=type(e).__name__))

        report_outcome(outcome, run)
