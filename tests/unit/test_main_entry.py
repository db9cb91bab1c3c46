# SPDX-License-Identifier: Apache-2.0
"""
Tests for the command line entry point.
"""

import logging

import pytest

import main
from utils.logger import ROOT_LOGGER_NAME

USER_ID = "11111111-1111-4111-8111-111111111111"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("LEXCAL_USER_ID", raising=False)
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


def test_parse_args_defaults(monkeypatch):
    monkeypatch.setenv("LEXCAL_USER_ID", USER_ID)

    args = main.parse_args([])

    assert args.user == USER_ID
    assert args.days == 7
    assert not args.demo
    assert not args.watch


def test_demo_run_loads_agenda(tmp_path, caplog):
    caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)

    assert main.main(["--user", USER_ID, "--demo", "--days", "3"]) == 0

    assert (tmp_path / ".lexcal" / "data" / "lexcal.db").exists()
    assert "2 own calendar(s)" in caplog.text
    assert f"Logging to {tmp_path / '.lexcal' / 'logs' / 'lexcal.log'}" in caplog.text


def test_demo_requires_user():
    assert main.main(["--demo"]) == 2


def test_anonymous_run_reports_error():
    assert main.main([]) == 1
