"""
Python analogue of the top-level `master.R` script's setup stage.

Running the workflow provisions the R library and writes a package status
table alongside the other generated tables.
"""

from __future__ import annotations

import logging
from pathlib import Path

from . import setup_env
from .config import SetupConfig

logger = logging.getLogger(__name__)

REPORT_NAME = "r_packages.csv"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    )


def write_report(result: setup_env.SetupResult, output_dir: Path | str = "tables") -> Path | None:
    """
    Write the per-package status table, if the run got as far as checking packages.
    """
    if result.check is None:
        return None
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / REPORT_NAME
    result.check.to_frame().to_csv(target, index=False)
    logger.info("Wrote R package report to %s", target)
    return target


def run_setup(
    base_path: Path | str = ".",
    session: setup_env.Session | None = None,
) -> setup_env.SetupResult:
    """
    Mirror `setup.R`: provision the R library and record the outcome.
    """
    session = session or setup_env.default_session(SetupConfig())
    result = session.initialize()
    write_report(result, Path(base_path) / "tables")
    if result:
        logger.info("R environment ready (library: %s).", result.library_path)
    else:
        logger.warning(
            "R environment setup failed (%s%s).",
            result.failure.value if result.failure else "unknown",
            f", package {result.package}" if result.package else "",
        )
    return result


def run_all(base_path: Path | str = ".") -> bool:
    """
    Execute the staged workflow mirroring `master.R`.
    """
    configure_logging()
    logger.info("Starting stage: R environment setup")
    result = run_setup(base_path)
    logger.info("Setup workflow finished.")
    return bool(result)


if __name__ == "__main__":
    run_all()
