"""
Configuration for R package provisioning.

Defaults reproduce the package set the original `setup.R` workflow relied on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

DEFAULT_REPOS = "https://cloud.r-project.org/"

# Installed unconditionally before any other package.
BOOTSTRAP_PACKAGE = "remotes"

SEQUENTIAL = "sequential"
BATCH = "batch"
STRATEGIES = (SEQUENTIAL, BATCH)

# Regular expressions matched against the POSIX form of each library path.
# Only per-user layouts qualify: `~/R/<platform>-library/4.3` on Linux,
# `~/Library/R/<arch>/4.3/library` on macOS and `AppData/Local/R/...` on
# Windows.  A system library that happens to live under a home directory
# (conda, rig, source builds) ends in `lib/R/library` and matches none of them.
USER_LIBRARY_MARKERS = (
    r"/Library/R/",
    r"/R/[^/]+-library(/|$)",
    r"/AppData/Local/R/",
)

DEFAULT_PACKAGES = (
    "tidyverse",
    "ggplot2",
    "dplyr",
    "tidyr",
    "readr",
    "purrr",
    "tibble",
    "stringr",
    "forcats",
    "lubridate",
    "scales",
    "gridExtra",
    "viridis",
    "RColorBrewer",
    "ggthemes",
    "ggrepel",
    "ggridges",
    "ggmap",
    "sf",
    "rnaturalearth",
    "rnaturalearthdata",
    "sp",
    "maps",
    "mapdata",
    "leaflet",
    "htmlwidgets",
    "DT",
    "plotly",
    "htmltools",
    "webshot",
    "png",
    "jpeg",
    "tiff",
    "Cairo",
    "svglite",
    "ragg",
    "showtext",
    "sysfonts",
    "extrafont",
    "extrafontdb",
    "showtextdb",
    "Rttf2pt1",
    "RPostgreSQL",
    "DBI",
    "RSQLite",
    "jsonlite",
    "httr",
    "xml2",
    "rvest",
    "curl",
    "openssl",
    "digest",
    "memoise",
    "cachem",
    "fastmap",
    "later",
    "promises",
    "httpuv",
    "mime",
    "shiny",
    "miniUI",
    "manipulateWidget",
    "classInt",
)


def unique_packages(packages: Iterable[str]) -> tuple[str, ...]:
    """
    Drop repeated package names, keeping the first occurrence of each.

    A single string is treated as one package name.
    """
    if isinstance(packages, str):
        packages = (packages,)
    seen: set[str] = set()
    result = []
    for name in packages:
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Invalid R package name: {name!r}")
        name = name.strip()
        if name not in seen:
            seen.add(name)
            result.append(name)
    return tuple(result)


@dataclass(frozen=True)
class SetupConfig:
    """
    Settings shared by the initializer and the package checker.
    """

    repos: str = DEFAULT_REPOS
    packages: tuple[str, ...] = DEFAULT_PACKAGES
    bootstrap_package: str | None = BOOTSTRAP_PACKAGE
    user_library_markers: tuple[str, ...] = USER_LIBRARY_MARKERS
    clean_user_library: bool = True
    strategy: str = SEQUENTIAL

    def __post_init__(self) -> None:
        if not self.repos:
            raise ValueError("repos must be a non-empty registry URL")
        if self.strategy not in STRATEGIES:
            raise ValueError("strategy must be 'sequential' or 'batch'")
        object.__setattr__(self, "packages", unique_packages(self.packages))
        object.__setattr__(self, "user_library_markers", tuple(self.user_library_markers))
