"""Tests for the command line entry point."""

import asyncio

from main import run


def test_run_without_config_file_exits_nonzero(tmp_path):
    assert asyncio.run(run(str(tmp_path / "missing.yaml"))) == 1


def test_run_with_invalid_config_exits_nonzero(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("api:\n  port: 8000\n")
    assert asyncio.run(run(str(config))) == 1
