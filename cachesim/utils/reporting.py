from __future__ import annotations
import json
from pathlib import Path
from typing import List, Dict, Any
from ..config import CacheGeometry
from ..runtime.decoder import AddressDecoder
from ..runtime.simulator import ReplayResult
from . import viz

TABLE_HEADER = (
    f"{'RefNum':<8}{'  R/W':<10}{'Address':<13}{'Tag':<6}{'Index':<8}{'Offset':<10}{'H/M':<8}"
)


def _format_rate(rate: float | None) -> str:
    return "n/a" if rate is None else f"{rate:.5g}"


def build_timeline(geometry: CacheGeometry, result: ReplayResult) -> List[Dict[str, Any]]:
    """One JSON-compatible entry per replayed access, in trace order."""
    decoder = AddressDecoder(geometry)
    timeline = []
    for outcome in result.outcomes:
        access, fields = outcome.access, outcome.fields
        timeline.append({
            'seq': access.sequence_number,
            'kind': access.kind.label,
            'size': access.size_bytes,
            'address': f"{access.address:08x}",
            'block': f"{decoder.block_address(fields.tag, fields.index):08x}",
            'tag': fields.tag,
            'index': fields.index,
            'offset': fields.offset,
            'hit': outcome.hit,
            'evicted_tag': outcome.evicted_tag,
        })
    return timeline


def format_report(geometry: CacheGeometry, result: ReplayResult) -> str:
    """Renders the per-access table and the simulation summary as text."""
    stats = result.stats
    lines = [
        "",
        f"Total Cache Size:  {geometry.total_size_bytes}B",
        f"Line Size:  {geometry.line_size_bytes}B",
        f"Set Size:  {geometry.associativity}",
        f"Number of Sets:  {geometry.num_sets}",
        "",
        TABLE_HEADER,
        "*" * 63,
    ]
    for outcome in result.outcomes:
        access, fields = outcome.access, outcome.fields
        lines.append(
            f"   {access.sequence_number:<5}"
            f"{access.kind.label:>5}   "
            f"  {access.address:08x}"
            f"{fields.tag:>7x}"
            f"{fields.index:>8}"
            f"{fields.offset:>8}"
            f"{'Hit' if outcome.hit else 'Miss':>10}"
        )

    lines += [
        "",
        "    Simulation Summary",
        "*" * 26,
        f"Total Hits:\t{stats.hits}",
        f"Total Misses:\t{stats.misses}",
        f"Hit Rate:\t{_format_rate(stats.hit_rate)}",
        f"Miss Rate:\t{_format_rate(stats.miss_rate)}",
    ]
    return "\n".join(lines)


def generate_report_json(geometry: CacheGeometry, result: ReplayResult) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary from the replay result."""
    stats = result.stats
    return {
        "geometry": {
            "total_size_bytes": geometry.total_size_bytes,
            "line_size_bytes": geometry.line_size_bytes,
            "associativity": geometry.associativity,
            "num_sets": geometry.num_sets,
            "address_width": geometry.address_width,
            "offset_bits": geometry.offset_bits,
            "index_bits": geometry.index_bits,
            "tag_bits": geometry.tag_bits,
        },
        "total_hits": stats.hits,
        "total_misses": stats.misses,
        "total_accesses": stats.accesses,
        "hit_rate": stats.hit_rate,
        "miss_rate": stats.miss_rate,
        # JSON object keys must be strings
        "sets": {str(index): counts for index, counts in stats.per_set.items()},
        "timeline": build_timeline(geometry, result),
    }


def generate_report(geometry: CacheGeometry, result: ReplayResult, report_dir: str | None = None):
    """Prints the text report and, given a directory, writes the JSON and HTML artifacts."""
    print(format_report(geometry, result))

    if report_dir is None:
        return

    report_data = generate_report_json(geometry, result)
    output_dir = Path(report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    viz.export_access_map(report_data['timeline'], str(output_dir / "report.html"))

    print()
    print(viz.export_set_usage_ascii(result.stats.per_set))
    print(f"\nReports generated in {output_dir.absolute()}")
