"""Operation statistics data structures and presentation utilities.

The editor keeps one OpStats per operation name so callers can see how
often edits were attempted, committed or rejected and how long they took.
"""
from __future__ import annotations
from dataclasses import dataclass
import sys
from typing import Dict, Any


@dataclass
class OpStats:
    attempts: int = 0
    success: int = 0
    fail: int = 0
    # Subset of fail: rejected by a topology or geometry guard (not bad arguments)
    topology_rejects: int = 0
    geometry_rejects: int = 0
    # Timing (seconds)
    time_total: float = 0.0
    time_max: float = 0.0
    time_min: float = 0.0  # 0 means uninitialized

    def record_time(self, duration: float) -> None:
        self.time_total += duration
        if duration > self.time_max:
            self.time_max = duration
        if self.time_min == 0.0 or duration < self.time_min:
            self.time_min = duration

    def reset(self) -> None:
        self.attempts = self.success = self.fail = 0
        self.topology_rejects = self.geometry_rejects = 0
        self.time_total = self.time_max = self.time_min = 0.0

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover - simple mapping
        return {
            'attempts': self.attempts,
            'success': self.success,
            'fail': self.fail,
            'topology_rejects': self.topology_rejects,
            'geometry_rejects': self.geometry_rejects,
            'success_rate': (self.success / self.attempts) if self.attempts else 0.0,
            'time_total': self.time_total,
            'time_max': self.time_max,
            'time_min': self.time_min,
            'time_avg': (self.time_total / self.attempts) if self.attempts else 0.0,
        }


def format_stats_table(stats_dict) -> str:
    """Render editor op stats, one row per op plus a totals row.

    Failures are split into topology rejects, geometry rejects and other
    errors (bad ids, capability mismatches).
    """
    if not stats_dict:
        return "<no stats>"
    header = ("op", "attempts", "ok", "rej_topo", "rej_geom", "errors", "ok%", "total_ms", "avg_ms", "max_ms")
    counts = ('attempts', 'success', 'topology_rejects', 'geometry_rejects')
    totals = dict.fromkeys(counts + ('errors',), 0)
    total_time = 0.0
    worst = 0.0

    def row(name, s_attempts, s_ok, s_topo, s_geom, s_err, t_total, t_max):
        pct = 100.0 * s_ok / s_attempts if s_attempts else 0.0
        avg = 1000.0 * t_total / s_attempts if s_attempts else 0.0
        return (name, str(s_attempts), str(s_ok), str(s_topo), str(s_geom), str(s_err),
                f"{pct:.1f}", f"{1000.0 * t_total:.3f}", f"{avg:.3f}", f"{1000.0 * t_max:.3f}")

    rows = []
    for op in sorted(stats_dict):
        s = stats_dict[op]
        errors = s['fail'] - s['topology_rejects'] - s['geometry_rejects']
        for k in counts:
            totals[k] += s[k]
        totals['errors'] += errors
        total_time += s['time_total']
        worst = max(worst, s['time_max'])
        rows.append(row(op, s['attempts'], s['success'], s['topology_rejects'], s['geometry_rejects'],
                        errors, s['time_total'], s['time_max']))
    footer = row("TOTAL", totals['attempts'], totals['success'], totals['topology_rejects'],
                 totals['geometry_rejects'], totals['errors'], total_time, worst)
    widths = [max(len(r[i]) for r in [header, footer] + rows) for i in range(len(header))]

    def fmt(r):
        return "  ".join([r[0].ljust(widths[0])] + [r[i].rjust(widths[i]) for i in range(1, len(r))])
    rule = "-" * len(fmt(header))
    return "\n".join([fmt(header), rule] + [fmt(r) for r in rows] + [rule, fmt(footer)])


def print_stats(stats_dict, file=None, pretty=True):  # pragma: no cover - formatting wrapper
    out = file or sys.stdout
    if not pretty:
        print(stats_dict, file=out)
        return
    print(format_stats_table(stats_dict), file=out)


__all__ = ["OpStats", "print_stats", "format_stats_table"]
