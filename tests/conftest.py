from __future__ import annotations

import os
import sys
from typing import Any, Iterable

import pytest


def pytest_configure():
    # Ensure `src/` is importable without installing the package.
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


class FakeRuntime:
    """In-memory R session recording every routine it is asked to run."""

    def __init__(
        self,
        *,
        installed: Iterable[str] = (),
        installable: Iterable[str] = (),
        failing_installs: Iterable[str] = (),
        lib_paths: Iterable[str] = ("/sys/R/library",),
        fail_base: bool = False,
        version: Any = "R version 4.3.2 (2023-10-31)",
        home: Any = "/usr/lib/R",
    ) -> None:
        self.installed = set(installed)
        self.installable = set(installable)
        self.failing_installs = set(failing_installs)
        self.lib_paths = list(lib_paths)
        self.fail_base = fail_base
        self.version = version
        self.home = home
        self.calls: list[tuple[str, tuple, dict]] = []
        self.installs: list[str] = []
        self.queries: list[str] = []
        self.evaluated: list[str] = []

    def _install(self, package: str) -> None:
        self.installs.append(package)
        if package in self.failing_installs:
            raise RuntimeError(f"download of package '{package}' failed")
        if package in self.installable:
            self.installed.add(package)

    def load_base(self) -> None:
        self.calls.append(("library", ("base",), {}))
        if self.fail_base:
            raise RuntimeError("R_HOME must be set")

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        from rsetup.runtime import INSTALL_PACKAGES_ROUTINE, MISSING_PACKAGES_ROUTINE

        self.calls.append((name, args, kwargs))
        if name == "requireNamespace":
            self.queries.append(args[0])
            return [args[0] in self.installed]
        if name == "install.packages":
            self._install(args[0])
            return None
        if name == "R.home":
            return self.home
        if name == ".libPaths":
            return list(self.lib_paths)
        if name == MISSING_PACKAGES_ROUTINE:
            return [p for p in args[0] if p not in self.installed]
        if name == INSTALL_PACKAGES_ROUTINE:
            for package in [p for p in args[0] if p not in self.installed]:
                self._install(package)
            return None
        raise RuntimeError(f"could not find function \"{name}\"")

    def evaluate(self, source: str) -> Any:
        from rsetup.runtime import VERSION_SOURCE

        self.evaluated.append(source)
        if source == VERSION_SOURCE:
            return self.version
        return None


def make_runtime(**kwargs: Any):
    from rsetup.runtime import RRuntime

    class _Runtime(FakeRuntime, RRuntime):
        pass

    return _Runtime(**kwargs)


@pytest.fixture
def fake_runtime():
    return make_runtime
