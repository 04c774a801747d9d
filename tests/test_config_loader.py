"""Tests for configuration loading and the zoned log formatter."""

import logging

import pytest
import yaml

from config_loader import ZonedFormatter, get_sample_config, load_config

DATABASE = {"host": "localhost", "port": 5432, "database": "soundhub_db",
            "username": "postgres", "password": "postgres"}


def _write(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_defaults_applied(tmp_path):
    config = load_config(_write(tmp_path, {"database": DATABASE}))

    assert config["soundtouch"]["port"] == 8090
    assert config["soundtouch"]["ping_timeout"] == 10
    assert config["soundtouch"]["key_sender"] == "Gabbo"
    assert config["network"]["network_mask"] is None
    assert config["network"]["scan_interval_minutes"] == 0
    assert config["stations"]["directory"] == "data/presets"
    assert config["api"]["port"] == 8000
    assert config["logging"]["timezone"] == "UTC"


def test_explicit_values_kept(tmp_path):
    config = load_config(_write(tmp_path, {
        "database": DATABASE,
        "network": {"network_mask": "10.0.0.0/24"},
        "soundtouch": {"request_timeout": 2},
    }))

    assert config["network"]["network_mask"] == "10.0.0.0/24"
    assert config["soundtouch"]["request_timeout"] == 2
    assert config["soundtouch"]["probe_timeout"] == 2


def test_missing_database_section(tmp_path):
    with pytest.raises(ValueError, match="database"):
        load_config(_write(tmp_path, {"api": {"port": 8000}}))


def test_missing_database_field(tmp_path):
    database = dict(DATABASE)
    del database["password"]
    with pytest.raises(ValueError, match="password"):
        load_config(_write(tmp_path, {"database": database}))


def test_invalid_network_mask(tmp_path):
    with pytest.raises(ValueError, match="network_mask"):
        load_config(_write(tmp_path, {"database": DATABASE, "network": {"network_mask": "10.0.0.0/40"}}))


def test_unknown_log_timezone(tmp_path):
    with pytest.raises(ValueError, match="timezone"):
        load_config(_write(tmp_path, {"database": DATABASE, "logging": {"timezone": "Mars/Olympus"}}))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_sample_config_is_loadable(tmp_path):
    config = load_config(_write(tmp_path, get_sample_config()))
    assert config["network"]["network_mask"] == "192.168.1.0/24"


def test_zoned_formatter_uses_configured_zone():
    formatter = ZonedFormatter("%(asctime)s %(message)s", "America/New_York")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
    record.created = 1700000000  # 2023-11-14 22:13:20 UTC

    assert formatter.format(record) == "2023-11-14 17:13:20 EST hello"
