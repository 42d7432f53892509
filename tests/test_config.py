"""
Tests for hl7_lab_parser.config
"""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest
import yaml

from hl7_lab_parser.config import AppConfig, load_config


def test_load_config_defaults_when_path_is_none():
    cfg = load_config(None)
    assert isinstance(cfg, AppConfig)
    assert cfg.host == "localhost"
    assert cfg.port == 3000
    assert cfg.data_dir == Path("data")
    assert cfg.save_path == ""
    assert cfg.collapse_repeats is True
    assert cfg.require_header is True


def test_load_config_reads_all_keys(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        "host: 0.0.0.0\n"
        "port: 2575\n"
        "data_dir: /srv/hl7\n"
        "save_path: lab/chemistry\n"
        "collapse_repeats: false\n"
        "require_header: false\n"
    )
    cfg = load_config(p)
    assert cfg == AppConfig(
        host="0.0.0.0",
        port=2575,
        data_dir=Path("/srv/hl7"),
        save_path="lab/chemistry",
        collapse_repeats=False,
        require_header=False,
    )


def test_load_config_partial_file_keeps_other_defaults(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("port: 4000\n")
    cfg = load_config(p)
    assert cfg.port == 4000
    assert cfg.host == "localhost"
    assert cfg.data_dir == Path("data")


def test_load_config_empty_file_uses_defaults(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("")
    assert load_config(p) == AppConfig()


def test_load_config_null_save_path_means_data_dir(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("save_path:\n")
    assert load_config(p).save_path == ""


def test_load_config_non_mapping_raises_type_error(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("- item1\n- item2\n")
    with pytest.raises(
        TypeError, match=r"^Config file must contain a mapping at top level"
    ):
        load_config(p)


@pytest.mark.parametrize("port", ["'3000'", "-1", "70000", "true"])
def test_load_config_rejects_bad_port(tmp_path, port):
    p = tmp_path / "config.yaml"
    p.write_text(f"port: {port}\n")
    with pytest.raises(ValueError, match=r"^port must be an integer in 0..65535"):
        load_config(p)


def test_load_config_invalid_yaml_raises_yaml_error(tmp_path):
    p = tmp_path / "invalid.yaml"
    p.write_text("host: [unclosed_list\n")
    with pytest.raises(yaml.YAMLError, match=r"^while parsing a flow sequence"):
        load_config(p)


def test_appconfig_is_immutable():
    cfg = AppConfig()
    with pytest.raises(FrozenInstanceError, match=r"^cannot assign to field"):
        cfg.port = 1
