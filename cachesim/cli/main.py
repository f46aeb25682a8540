from __future__ import annotations
import argparse
import logging
import sys
from ..config import SimConfig, load_geometry
from ..errors import CacheSimError, ConfigurationError
from ..trace.loader import load_trace
from ..runtime.simulator import run as run_sim
from ..utils.reporting import generate_report

USAGE = "Syntax: cachesim <cacheConfig> <memTrace>"


def _set_log_level(name: str):
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {name}")
    logging.getLogger().setLevel(level)


def cmd_run(config: SimConfig) -> int:
    """Loads the geometry and trace, replays the trace and prints the report."""
    geometry = load_geometry(config.cache_config, address_width=config.address_width)
    trace = load_trace(config.trace, strict=config.strict, address_width=geometry.address_width)

    result = run_sim(trace, geometry)

    generate_report(geometry, result, config.report_dir)
    return 0


def build_parser():
    p = argparse.ArgumentParser(
        prog="cachesim",
        description="Set-associative LRU cache simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    # Positionals are optional here so a missing one prints the usage line instead of argparse's error
    p.add_argument("cache_config", nargs='?', default=None,
                   help="Cache config: '<associativity> <line size> <total size>' or a YAML file")
    p.add_argument("trace", nargs='?', default=None,
                   help="Memory trace, one '<R|W>:<size>:<hexAddress>' record per line")

    p.add_argument("-s", "--settings", type=str, default=None,
                   help="Path to YAML settings file to override defaults")
    p.add_argument("--lenient", action="store_true",
                   help="Skip malformed trace lines instead of failing the run")
    p.add_argument("--report", type=str, default=None, dest="report_dir",
                   help="Directory to save report.json and report.html")
    p.add_argument("--address-width", type=int, default=None, dest="address_width",
                   help="Address width in bits, overrides the settings file")
    p.add_argument("-v", "--verbose", action="store_const", const="DEBUG", default=None,
                   dest="log_level", help="Enable debug logging")
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cache_config is None or args.trace is None:
        print(USAGE)
        return 1

    try:
        config = SimConfig.from_args(args)
        _set_log_level(config.log_level)
        return cmd_run(config)
    except (CacheSimError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
