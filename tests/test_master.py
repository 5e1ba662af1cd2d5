from __future__ import annotations

import logging

import pandas as pd

from rsetup import master
from rsetup.config import SetupConfig
from rsetup.setup_env import Session


def test_run_setup_writes_report(fake_runtime, tmp_path):
    site_library = tmp_path / "site-library"
    site_library.mkdir()
    runtime = fake_runtime(installed={"A"}, installable={"B"}, lib_paths=[str(site_library)])
    session = Session(runtime, SetupConfig(bootstrap_package=None, packages=("A", "B")))

    result = master.run_setup(tmp_path, session=session)

    assert result.ok
    report = pd.read_csv(tmp_path / "tables" / master.REPORT_NAME)
    assert report.to_dict("records") == [
        {"package": "A", "status": "loadable"},
        {"package": "B", "status": "installed"},
    ]


def test_run_setup_logs_failure_without_report(fake_runtime, tmp_path, caplog):
    session = Session(fake_runtime(fail_base=True), SetupConfig(bootstrap_package=None))

    with caplog.at_level(logging.WARNING):
        result = master.run_setup(tmp_path, session=session)

    assert not result.ok
    assert not (tmp_path / "tables").exists()
    assert "runtime-unavailable" in caplog.text
