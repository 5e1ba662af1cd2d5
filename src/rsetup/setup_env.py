"""
R environment bootstrap mirroring the original `setup.R` step.

A `Session` discovers the R installation, chooses the library directory
packages are installed into, starts that directory from a clean slate when it
belongs to the user, and hands the package list to the checker.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from . import checker
from .checker import FailureKind, failure_kind
from .config import SetupConfig
from .runtime import (
    VERSION_SOURCE,
    LibraryPathError,
    MalformedResultError,
    RRuntime,
    Rpy2Runtime,
)

logger = logging.getLogger(__name__)


@dataclass
class SetupResult:
    """
    Outcome of `Session.initialize`; truthy on success.
    """

    ok: bool
    failure: FailureKind | None = None
    package: str | None = None
    library_path: str = ""
    check: checker.CheckResult | None = None

    def __bool__(self) -> bool:
        return self.ok


def is_user_library(path: str, markers: Iterable[str]) -> bool:
    posix = str(path).replace("\\", "/")
    return any(re.search(marker, posix) for marker in markers)


def select_library_path(paths: Sequence[str], markers: Iterable[str]) -> tuple[str, bool]:
    """
    Pick the install destination from R's library search paths.

    Returns the first user-scoped path and ``True``, or the first path
    (the system library) and ``False`` when none looks user-scoped.
    """
    if not paths:
        raise MalformedResultError(".libPaths() returned no library directories")
    markers = tuple(markers)
    for path in paths:
        if is_user_library(path, markers):
            return path, True
    return paths[0], False


def reset_library(path: Path | str) -> None:
    """
    Leave ``path`` as an existing, empty directory.
    """
    target = Path(path)
    try:
        if target.exists():
            logger.info("Removing previously installed packages from %s", target)
            shutil.rmtree(target)
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LibraryPathError(f"Unable to prepare library directory {target}: {exc}") from exc


@dataclass
class Session:
    """
    Provisioning state for one R runtime.

    ``setup_complete`` only ever flips to ``True``; a failed run leaves the
    previous value in place.
    """

    runtime: RRuntime
    config: SetupConfig = field(default_factory=SetupConfig)
    setup_complete: bool = False
    library_path: str = ""
    r_version: str | None = None
    r_home: str | None = None

    def _discover(self) -> bool:
        self.r_version = self.runtime.evaluate_string(VERSION_SOURCE)
        self.r_home = self.runtime.call_string("R.home")
        logger.info("Using %s at %s", self.r_version, self.r_home)

        paths = self.runtime.call_strings(".libPaths")
        self.library_path, user_scoped = select_library_path(
            paths, self.config.user_library_markers
        )
        logger.info(
            "Selected %s library path %s",
            "user" if user_scoped else "system",
            self.library_path,
        )
        return user_scoped

    def initialize(self, packages: Sequence[str] | None = None) -> SetupResult:
        """
        Prepare the R library and ensure ``packages`` are loadable.
        """
        try:
            self.runtime.load_base()
        except Exception:
            logger.warning("R runtime is unavailable", exc_info=True)
            return SetupResult(ok=False, failure=FailureKind.RUNTIME_UNAVAILABLE)

        try:
            user_scoped = self._discover()
            if user_scoped and self.config.clean_user_library:
                reset_library(self.library_path)
            result = self.ensure_packages(packages)
        except Exception as exc:
            logger.warning("Failed to set up R environment", exc_info=True)
            return SetupResult(
                ok=False, failure=failure_kind(exc), library_path=self.library_path
            )

        if not result:
            logger.warning("Failed to check/install R packages")
            return SetupResult(
                ok=False,
                failure=result.failure or FailureKind.PACKAGE_UNRESOLVABLE,
                package=result.failed_package,
                library_path=self.library_path,
                check=result,
            )

        self.setup_complete = True
        return SetupResult(ok=True, library_path=self.library_path, check=result)

    def ensure_packages(self, packages: Sequence[str] | None = None) -> checker.CheckResult:
        return checker.ensure_packages(
            self.runtime,
            packages,
            config=self.config,
            lib=self.library_path or None,
        )


def default_session(config: SetupConfig | None = None) -> Session:
    return Session(runtime=Rpy2Runtime(), config=config or SetupConfig())


def initialize(packages: Sequence[str] | None = None, session: Session | None = None) -> SetupResult:
    session = session or default_session()
    return session.initialize(packages)


def ensure_packages(
    packages: Sequence[str] | None = None, session: Session | None = None
) -> checker.CheckResult:
    session = session or default_session()
    return session.ensure_packages(packages)
