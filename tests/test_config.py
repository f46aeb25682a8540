import yaml
import argparse
import pytest
from pathlib import Path
from cachesim.config import CacheGeometry, SimConfig, load_geometry, parse_geometry
from cachesim.errors import ConfigurationError


def test_geometry_derived_fields():
    geometry = CacheGeometry(total_size_bytes=1024, line_size_bytes=64, associativity=2, address_width=32)

    # 1KB cache, 64B lines -> 16 lines. 2-way assoc -> 8 sets.
    assert geometry.num_sets == 8
    assert geometry.offset_bits == 6
    assert geometry.index_bits == 3
    assert geometry.tag_bits == 32 - 3 - 6


def test_geometry_single_set_has_no_index_bits():
    geometry = CacheGeometry(total_size_bytes=256, line_size_bytes=16, associativity=16)
    assert geometry.num_sets == 1
    assert geometry.index_bits == 0


@pytest.mark.parametrize("total, line, assoc", [
    (0, 4, 1),      # zero total size
    (16, 0, 1),     # zero line size
    (16, 4, 0),     # zero associativity
    (48, 6, 1),     # line size not a power of two
    (48, 4, 1),     # 12 sets, not a power of two
    (20, 4, 2),     # not a multiple of line size * associativity
])
def test_geometry_rejects_invalid_shapes(total, line, assoc):
    with pytest.raises(ConfigurationError):
        CacheGeometry(total_size_bytes=total, line_size_bytes=line, associativity=assoc)


def test_geometry_rejects_narrow_address_width():
    with pytest.raises(ConfigurationError):
        CacheGeometry(total_size_bytes=16, line_size_bytes=4, associativity=1, address_width=16)


def test_geometry_is_immutable():
    geometry = CacheGeometry(total_size_bytes=16, line_size_bytes=4, associativity=1)
    with pytest.raises(AttributeError):
        geometry.associativity = 2


def test_parse_geometry_field_order():
    """Fields are associativity, line size, total size."""
    geometry = parse_geometry("2 16 256\n")
    assert geometry.associativity == 2
    assert geometry.line_size_bytes == 16
    assert geometry.total_size_bytes == 256
    assert geometry.num_sets == 8


@pytest.mark.parametrize("text", ["", "2 16", "2 16 256 4", "two 16 256", "1 4 1_6", "1 +4 16", "1 4.0 16"])
def test_parse_geometry_malformed(text):
    with pytest.raises(ConfigurationError):
        parse_geometry(text)


def test_load_geometry_plain_file(tmp_path: Path):
    config_file = tmp_path / "cache.cfg"
    config_file.write_text("1\n4\n16\n")

    geometry = load_geometry(config_file)

    assert geometry.num_sets == 4
    assert geometry.address_width == 64


def test_load_geometry_yaml_file(tmp_path: Path):
    yaml_file = tmp_path / "cache.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump({'associativity': 4, 'line_size': 32, 'total_size': 4096, 'address_width': 32}, f)

    geometry = load_geometry(yaml_file)

    assert geometry.associativity == 4
    assert geometry.num_sets == 32
    assert geometry.address_width == 32


def test_load_geometry_yaml_missing_key(tmp_path: Path):
    yaml_file = tmp_path / "cache.yml"
    yaml_file.write_text("associativity: 4\nline_size: 32\n")
    with pytest.raises(ConfigurationError, match="total_size"):
        load_geometry(yaml_file)


def test_load_geometry_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_geometry(tmp_path / "nope.cfg")


def test_config_yaml_loading(tmp_path: Path):
    """Tests that settings are loaded correctly from a YAML file."""
    yaml_file = tmp_path / "settings.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump({'strict': False, 'address_width': 32, 'report_dir': 'out/run1'}, f)

    args = argparse.Namespace(settings=str(yaml_file), cache_config="c.cfg", trace="t.trace",
                              report_dir=None, address_width=None, lenient=False, log_level=None)

    config = SimConfig.from_args(args)

    assert config.strict is False
    assert config.address_width == 32
    assert config.report_dir == 'out/run1'
    assert config.cache_config == "c.cfg"


def test_config_cli_override(tmp_path: Path):
    """Tests that CLI arguments override YAML settings."""
    yaml_file = tmp_path / "settings.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump({'address_width': 32, 'report_dir': 'out/run1'}, f)

    args = argparse.Namespace(settings=str(yaml_file), cache_config="c.cfg", trace="t.trace",
                              report_dir="out/override", address_width=48, lenient=True, log_level=None)

    config = SimConfig.from_args(args)

    assert config.address_width == 48
    assert config.report_dir == "out/override"
    assert config.strict is False


def test_config_missing_settings_file(tmp_path: Path):
    args = argparse.Namespace(settings=str(tmp_path / "missing.yaml"))
    with pytest.raises(ConfigurationError):
        SimConfig.from_args(args)


@pytest.mark.parametrize("content", [
    "associativity: 1\nline_size: 4.9\ntotal_size: 16\n",      # float is not truncated
    "associativity: true\nline_size: 4\ntotal_size: 16\n",     # bool is not 1
    "associativity: 1\nline_size: '4'\ntotal_size: 16\n",      # quoted number
])
def test_load_geometry_yaml_rejects_non_integers(tmp_path: Path, content):
    yaml_file = tmp_path / "cache.yaml"
    yaml_file.write_text(content)
    with pytest.raises(ConfigurationError, match="must be an integer"):
        load_geometry(yaml_file)


def test_geometry_rejects_bool_fields():
    with pytest.raises(ConfigurationError):
        CacheGeometry(total_size_bytes=16, line_size_bytes=4, associativity=True)


def test_load_geometry_invalid_utf8(tmp_path: Path):
    config_file = tmp_path / "cache.cfg"
    config_file.write_bytes(b"1 4 16\xff\n")
    with pytest.raises(ConfigurationError, match="UTF-8"):
        load_geometry(config_file)


@pytest.mark.parametrize("content, key", [
    ("address_width: wide\n", "address_width"),
    ("address_width: true\n", "address_width"),
    ("strict: 'false'\n", "strict"),
    ("strict: 0\n", "strict"),
    ("report_dir: 42\n", "report_dir"),
    ("log_level: [INFO]\n", "log_level"),
])
def test_config_yaml_rejects_wrong_types(tmp_path: Path, content, key):
    yaml_file = tmp_path / "settings.yaml"
    yaml_file.write_text(content)
    config = SimConfig()

    with pytest.raises(ConfigurationError, match=key):
        config.update_from_yaml(str(yaml_file))


def test_config_yaml_ignores_unknown_keys(tmp_path: Path):
    yaml_file = tmp_path / "settings.yaml"
    yaml_file.write_text("colour: blue\nreport_dir: null\n")
    config = SimConfig()

    config.update_from_yaml(str(yaml_file))

    assert config.report_dir is None
    assert not hasattr(config, "colour")


def test_config_settings_invalid_utf8(tmp_path: Path):
    yaml_file = tmp_path / "settings.yaml"
    yaml_file.write_bytes(b"strict: \xff\n")
    with pytest.raises(ConfigurationError, match="UTF-8"):
        SimConfig().update_from_yaml(str(yaml_file))
