from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import yaml

from .errors import ConfigurationError

DEFAULT_ADDRESS_WIDTH = 64
MIN_ADDRESS_WIDTH = 32


def is_power_of_two(n: int) -> bool:
    return (n > 0) and (n & (n - 1) == 0)


def _is_int(value) -> bool:
    # bool is an int subclass but never a valid size
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class CacheGeometry:
    """Shape of the simulated cache. Set once at startup, never changed."""
    total_size_bytes: int
    line_size_bytes: int
    associativity: int
    address_width: int = DEFAULT_ADDRESS_WIDTH

    # Derived properties
    num_sets: int = field(init=False)
    offset_bits: int = field(init=False)
    index_bits: int = field(init=False)
    tag_bits: int = field(init=False)

    def __post_init__(self):
        for name in ("total_size_bytes", "line_size_bytes", "associativity", "address_width"):
            value = getattr(self, name)
            if not _is_int(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}.")

        if not self.total_size_bytes > 0:
            raise ConfigurationError("Total cache size must be positive.")
        if not self.line_size_bytes > 0:
            raise ConfigurationError("Line size must be positive.")
        if not self.associativity > 0:
            raise ConfigurationError("Associativity must be positive.")
        if self.address_width < MIN_ADDRESS_WIDTH:
            raise ConfigurationError(f"Address width must be at least {MIN_ADDRESS_WIDTH} bits.")

        if not is_power_of_two(self.line_size_bytes):
            raise ConfigurationError("Line size must be a power of two for bitwise address decomposition.")

        set_bytes = self.line_size_bytes * self.associativity
        if self.total_size_bytes % set_bytes != 0:
            raise ConfigurationError("Cache size must be a multiple of line size times associativity.")

        num_sets = self.total_size_bytes // set_bytes
        if not is_power_of_two(num_sets):
            raise ConfigurationError("Number of sets must be a power of two for bitwise address decomposition.")

        offset_bits = self.line_size_bytes.bit_length() - 1
        index_bits = num_sets.bit_length() - 1
        tag_bits = self.address_width - index_bits - offset_bits
        if tag_bits < 0:
            raise ConfigurationError("Address width is too small for this cache geometry.")

        object.__setattr__(self, "num_sets", num_sets)
        object.__setattr__(self, "offset_bits", offset_bits)
        object.__setattr__(self, "index_bits", index_bits)
        object.__setattr__(self, "tag_bits", tag_bits)


def _geometry_from_mapping(data, address_width: int) -> CacheGeometry:
    if not isinstance(data, dict):
        raise ConfigurationError("YAML cache config must be a mapping.")
    missing = [k for k in ("associativity", "line_size", "total_size") if k not in data]
    if missing:
        raise ConfigurationError(f"YAML cache config is missing: {', '.join(missing)}")
    return CacheGeometry(
        total_size_bytes=data["total_size"],
        line_size_bytes=data["line_size"],
        associativity=data["associativity"],
        address_width=data.get("address_width", address_width),
    )


def parse_geometry(text: str, address_width: int = DEFAULT_ADDRESS_WIDTH) -> CacheGeometry:
    """Parses '<associativity> <line size> <total size>' into a CacheGeometry."""
    tokens = text.split()
    if len(tokens) != 3:
        raise ConfigurationError(
            f"Cache config needs 3 integers (associativity, line size, total size), got {len(tokens)}."
        )
    if not all(t.isascii() and t.isdigit() for t in tokens):
        raise ConfigurationError(f"Cache config values must be plain decimal integers: {text.strip()!r}")
    associativity, line_size, total_size = (int(t) for t in tokens)
    return CacheGeometry(
        total_size_bytes=total_size,
        line_size_bytes=line_size,
        associativity=associativity,
        address_width=address_width,
    )


def load_geometry(path: str | Path, address_width: int = DEFAULT_ADDRESS_WIDTH) -> CacheGeometry:
    """Loads a cache geometry from a plain three-integer file or a YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Cache config {path} is not valid UTF-8: {e}") from e
    if path.suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML cache config {path}: {e}") from e
        return _geometry_from_mapping(data, address_width)
    return parse_geometry(text, address_width)


# Accepted YAML types per SimConfig field
_SETTING_TYPES = {
    "cache_config": (str,),
    "trace": (str,),
    "settings_file": (str,),
    "strict": (bool,),
    "address_width": (int,),
    "report_dir": (str, type(None)),
    "log_level": (str,),
}


def _check_setting(key: str, value):
    expected = _SETTING_TYPES[key]
    if (bool not in expected and isinstance(value, bool)) or not isinstance(value, expected):
        names = " or ".join("null" if t is type(None) else t.__name__ for t in expected)
        raise ConfigurationError(f"Setting {key!r} must be {names}, got {value!r}.")


@dataclass
class SimConfig:
    """Run settings for one simulation."""
    # Inputs
    cache_config: str = ""
    trace: str = ""

    # Settings file
    settings_file: str = ""

    # Trace parsing policy: strict fails the run on the first malformed line
    strict: bool = True
    address_width: int = DEFAULT_ADDRESS_WIDTH

    # Reporting
    report_dir: str | None = None
    log_level: str = "INFO"

    def update_from_yaml(self, yaml_path: str):
        """Updates config fields from a YAML file."""
        try:
            with open(yaml_path, 'r', encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Settings file {yaml_path} is not valid UTF-8: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed settings file {yaml_path}: {e}") from e
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Settings file {yaml_path} must contain a mapping.")
        for key, value in yaml_config.items():
            if key in _SETTING_TYPES:
                _check_setting(key, value)
                setattr(self, key, value)

    @classmethod
    def from_args(cls, args) -> SimConfig:
        """Factory method to create a SimConfig from parsed argparse arguments."""
        config = cls()

        # 1. Load from YAML settings file if provided
        if getattr(args, 'settings', None):
            config.settings_file = args.settings
            if not Path(config.settings_file).exists():
                raise ConfigurationError(f"Settings file {config.settings_file} not found.")
            config.update_from_yaml(config.settings_file)

        # 2. Override with command-line arguments
        arg_dict = vars(args)
        for key, value in arg_dict.items():
            if value is not None and hasattr(config, key):
                setattr(config, key, value)

        # --lenient only ever relaxes the policy
        if getattr(args, 'lenient', False):
            config.strict = False
        return config
