"""
Provision R packages in an embedded R session from Python.
"""

from .checker import CheckResult, PackageStatus
from .config import SetupConfig
from .runtime import RRuntime, Rpy2Runtime
from .setup_env import FailureKind, Session, SetupResult, ensure_packages, initialize

__all__ = [
    "CheckResult",
    "FailureKind",
    "PackageStatus",
    "RRuntime",
    "Rpy2Runtime",
    "Session",
    "SetupConfig",
    "SetupResult",
    "ensure_packages",
    "initialize",
]
