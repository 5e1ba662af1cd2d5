"""
Bridge to the embedded R runtime.

`RRuntime` defines the narrow interface the rest of the package relies on:
named routine calls with typed results, plus source evaluation reserved for
defining helper routines from the fixed constants below.  `Rpy2Runtime`
implements it on top of `rpy2`.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

VERSION_SOURCE = "R.version.string"

MISSING_PACKAGES_ROUTINE = "rsetup_missing_packages"
INSTALL_PACKAGES_ROUTINE = "rsetup_install_packages"

# Package names reach these helpers as arguments, never as interpolated source.
MISSING_PACKAGES_SOURCE = """
rsetup_missing_packages <- function(packages) {
    packages[!vapply(packages, requireNamespace, logical(1), quietly = TRUE)]
}
"""

INSTALL_PACKAGES_SOURCE = """
rsetup_install_packages <- function(packages, lib = NULL, repos) {
    missing <- rsetup_missing_packages(packages)
    if (length(missing) > 0) {
        message("Installing packages: ", paste(missing, collapse = ", "))
        if (is.null(lib)) {
            utils::install.packages(missing, repos = repos)
        } else {
            utils::install.packages(missing, lib = lib, repos = repos)
        }
    }
    invisible(length(missing))
}
"""


class RSetupError(RuntimeError):
    """Base class for provisioning failures."""


class RuntimeUnavailableError(RSetupError):
    """The embedded R runtime could not be started or reached."""


class MalformedResultError(RSetupError, ValueError):
    """R returned a value of an unexpected shape."""


class LibraryPathError(RSetupError):
    """The library directory cannot be created, cleaned, or written to."""


def _values(result: Any) -> list:
    if isinstance(result, (str, bytes, bool)) or not hasattr(result, "__iter__"):
        return [result]
    return list(result)


class RRuntime:
    """
    Call/evaluate interface to an R session.

    Subclasses implement `load_base`, `call` and `evaluate`; the typed helpers
    validate result shapes so callers never inspect raw R objects.
    """

    def load_base(self) -> None:
        raise NotImplementedError

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError

    def evaluate(self, source: str) -> Any:
        raise NotImplementedError

    def call_bool(self, name: str, *args: Any, **kwargs: Any) -> bool:
        values = _values(self.call(name, *args, **kwargs))
        if len(values) != 1 or not isinstance(values[0], bool):
            raise MalformedResultError(f"{name}() did not return a single logical: {values!r}")
        return values[0]

    def call_string(self, name: str, *args: Any, **kwargs: Any) -> str:
        values = _values(self.call(name, *args, **kwargs))
        if len(values) != 1 or not isinstance(values[0], str):
            raise MalformedResultError(f"{name}() did not return a single string: {values!r}")
        return values[0]

    def call_strings(self, name: str, *args: Any, **kwargs: Any) -> list[str]:
        values = _values(self.call(name, *args, **kwargs))
        if not all(isinstance(value, str) for value in values):
            raise MalformedResultError(f"{name}() did not return a character vector: {values!r}")
        return values

    def evaluate_string(self, source: str) -> str:
        values = _values(self.evaluate(source))
        if len(values) != 1 or not isinstance(values[0], str):
            raise MalformedResultError(f"Expression did not yield a single string: {values!r}")
        return values[0]


class Rpy2Runtime(RRuntime):
    """
    `RRuntime` backed by the R session embedded through rpy2.

    ``robjects`` may be supplied to reuse an already imported
    `rpy2.robjects` module; otherwise it is imported on first use, which is
    also when rpy2 starts R.
    """

    def __init__(self, robjects: Any = None) -> None:
        self._robjects = robjects

    @property
    def robjects(self) -> Any:
        if self._robjects is None:
            try:
                import rpy2.robjects as robjects
            except Exception as exc:
                raise RuntimeUnavailableError(f"Unable to start embedded R via rpy2: {exc}") from exc
            self._robjects = robjects
        return self._robjects

    def _convert(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return self.robjects.StrVector([str(item) for item in value])
        return value

    def load_base(self) -> None:
        try:
            self.robjects.r["library"]("base")
        except RuntimeUnavailableError:
            raise
        except Exception as exc:
            raise RuntimeUnavailableError(f"Unable to load R base package: {exc}") from exc

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        function = self.robjects.r[name]
        converted_args = [self._convert(arg) for arg in args]
        converted_kwargs = {
            key: self._convert(value) for key, value in kwargs.items() if value is not None
        }
        logger.debug("Calling R routine %s", name)
        return function(*converted_args, **converted_kwargs)

    def evaluate(self, source: str) -> Any:
        return self.robjects.r(source)
