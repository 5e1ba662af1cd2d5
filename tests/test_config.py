from __future__ import annotations

import pytest

from rsetup.config import DEFAULT_PACKAGES, DEFAULT_REPOS, SetupConfig, unique_packages


def test_defaults():
    config = SetupConfig()

    assert config.repos == DEFAULT_REPOS == "https://cloud.r-project.org/"
    assert config.bootstrap_package == "remotes"
    assert config.strategy == "sequential"
    assert config.packages == DEFAULT_PACKAGES


def test_default_packages_have_no_duplicates():
    assert len(DEFAULT_PACKAGES) == len(set(DEFAULT_PACKAGES))


def test_unique_packages_keeps_first_occurrence():
    assert unique_packages(["shiny", "DBI", "shiny", " DBI ", "png"]) == ("shiny", "DBI", "png")


@pytest.mark.parametrize("name", ["", "   ", None])
def test_invalid_package_names_rejected(name):
    with pytest.raises(ValueError):
        unique_packages(["ok", name])


def test_config_deduplicates_packages():
    assert SetupConfig(packages=["a", "b", "a"]).packages == ("a", "b")


def test_unknown_strategy_rejected():
    with pytest.raises(ValueError):
        SetupConfig(strategy="parallel")


def test_empty_registry_rejected():
    with pytest.raises(ValueError):
        SetupConfig(repos="")


def test_single_string_is_not_split_into_characters():
    assert unique_packages("ggplot2") == ("ggplot2",)
