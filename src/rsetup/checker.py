"""
Ensure R packages are loadable, installing missing ones from a registry.

Two strategies are available.  `sequential` checks packages one at a time and
stops at the first package that cannot be made loadable.  `batch` asks R for
every missing package, installs them in a single call, and reports all that
remain missing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import pandas as pd

from .config import BATCH, SetupConfig, unique_packages
from .runtime import (
    INSTALL_PACKAGES_ROUTINE,
    INSTALL_PACKAGES_SOURCE,
    MISSING_PACKAGES_ROUTINE,
    MISSING_PACKAGES_SOURCE,
    LibraryPathError,
    MalformedResultError,
    RRuntime,
    RuntimeUnavailableError,
)

logger = logging.getLogger(__name__)


class PackageStatus(str, Enum):
    LOADABLE = "loadable"
    MISSING = "missing"
    INSTALLED = "installed"
    INSTALL_FAILED = "install-failed"


class FailureKind(str, Enum):
    RUNTIME_UNAVAILABLE = "runtime-unavailable"
    PATH_UNWRITABLE = "path-unwritable"
    PACKAGE_UNRESOLVABLE = "package-unresolvable"
    MALFORMED_RESULT = "malformed-result"
    UNEXPECTED = "unexpected"


def failure_kind(exc: Exception, default: FailureKind = FailureKind.UNEXPECTED) -> FailureKind:
    if isinstance(exc, RuntimeUnavailableError):
        return FailureKind.RUNTIME_UNAVAILABLE
    if isinstance(exc, MalformedResultError):
        return FailureKind.MALFORMED_RESULT
    if isinstance(exc, (LibraryPathError, OSError)):
        return FailureKind.PATH_UNWRITABLE
    return default


@dataclass
class CheckResult:
    """
    Outcome of a package check; truthy when every package is loadable.
    """

    ok: bool
    statuses: dict[str, PackageStatus] = field(default_factory=dict)
    failed_package: str | None = None
    failure: FailureKind | None = None
    error: str | None = None
    install_attempts: int = 0

    def __bool__(self) -> bool:
        return self.ok

    @property
    def missing(self) -> list[str]:
        return [
            name
            for name, status in self.statuses.items()
            if status in (PackageStatus.MISSING, PackageStatus.INSTALL_FAILED)
        ]

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                "package": list(self.statuses),
                "status": [status.value for status in self.statuses.values()],
            },
            columns=["package", "status"],
        )
        return frame


def query_package(runtime: RRuntime, package: str) -> PackageStatus:
    """
    Return whether ``package`` resolves through R's namespace loader.
    """
    if runtime.call_bool("requireNamespace", package, quietly=True):
        return PackageStatus.LOADABLE
    return PackageStatus.MISSING


def _require_writable(lib: str | None) -> None:
    if lib is None:
        return
    if not os.path.isdir(lib):
        raise LibraryPathError(f"Library path does not exist: {lib}")
    if not os.access(lib, os.W_OK):
        raise LibraryPathError(f"Library path is not writable: {lib}")


def install_package(runtime: RRuntime, package: str, repos: str, lib: str | None = None) -> None:
    _require_writable(lib)
    logger.info("Installing R package %s from %s", package, repos)
    runtime.call("install.packages", package, lib=lib, repos=repos)


def _ensure_sequential(
    runtime: RRuntime,
    packages: Sequence[str],
    repos: str,
    lib: str | None,
) -> CheckResult:
    result = CheckResult(ok=False)
    for package in packages:
        try:
            status = query_package(runtime, package)
            if status is PackageStatus.MISSING:
                result.install_attempts += 1
                install_package(runtime, package, repos, lib)
                if query_package(runtime, package) is PackageStatus.LOADABLE:
                    status = PackageStatus.INSTALLED
                else:
                    status = PackageStatus.INSTALL_FAILED
        except Exception as exc:
            logger.warning("Error while ensuring R package %s", package, exc_info=True)
            result.statuses[package] = PackageStatus.INSTALL_FAILED
            result.failed_package = package
            result.failure = failure_kind(exc, FailureKind.PACKAGE_UNRESOLVABLE)
            result.error = str(exc)
            return result

        result.statuses[package] = status
        if status is PackageStatus.INSTALL_FAILED:
            logger.warning("R package %s is not loadable after installation", package)
            result.failed_package = package
            result.failure = FailureKind.PACKAGE_UNRESOLVABLE
            return result

    result.ok = True
    return result


def _ensure_batch(
    runtime: RRuntime,
    packages: Sequence[str],
    repos: str,
    lib: str | None,
) -> CheckResult:
    runtime.evaluate(MISSING_PACKAGES_SOURCE)
    runtime.evaluate(INSTALL_PACKAGES_SOURCE)

    package_list = list(packages)
    result = CheckResult(ok=False)
    missing = set(runtime.call_strings(MISSING_PACKAGES_ROUTINE, package_list))
    still_missing: set[str] = set()
    if missing:
        logger.info("Missing R packages: %s", ", ".join(sorted(missing)))
        _require_writable(lib)
        result.install_attempts = len(missing)
        runtime.call(INSTALL_PACKAGES_ROUTINE, package_list, lib=lib, repos=repos)
        still_missing = set(runtime.call_strings(MISSING_PACKAGES_ROUTINE, package_list))

    for package in package_list:
        if package in still_missing:
            result.statuses[package] = PackageStatus.INSTALL_FAILED
        elif package in missing:
            result.statuses[package] = PackageStatus.INSTALLED
        else:
            result.statuses[package] = PackageStatus.LOADABLE

    if still_missing:
        result.failed_package = next(p for p in package_list if p in still_missing)
        result.failure = FailureKind.PACKAGE_UNRESOLVABLE
        logger.warning(
            "R packages not loadable after installation: %s", ", ".join(result.missing)
        )
        return result

    result.ok = True
    return result


def ensure_packages(
    runtime: RRuntime,
    packages: Sequence[str] | None = None,
    config: SetupConfig | None = None,
    lib: str | None = None,
) -> CheckResult:
    """
    Make every package in ``packages`` loadable, installing as needed.

    The bootstrap helper package is always (re)installed first.  Errors are
    logged and reported through the returned `CheckResult`; nothing raises.
    """
    config = config or SetupConfig()
    bootstrapping = None
    try:
        names = config.packages if packages is None else unique_packages(packages)
        if config.bootstrap_package:
            bootstrapping = config.bootstrap_package
            install_package(runtime, bootstrapping, config.repos, lib)
            bootstrapping = None
        if config.strategy == BATCH:
            result = _ensure_batch(runtime, names, config.repos, lib)
        else:
            result = _ensure_sequential(runtime, names, config.repos, lib)
    except Exception as exc:
        logger.warning("Failed to check R packages", exc_info=True)
        default = FailureKind.PACKAGE_UNRESOLVABLE if bootstrapping else FailureKind.UNEXPECTED
        return CheckResult(
            ok=False,
            failed_package=bootstrapping,
            failure=failure_kind(exc, default),
            error=str(exc),
        )

    if result:
        logger.info("All %d R packages are loadable", len(result.statuses))
    return result
