import io
import logging

import pytest

from tessera.core.config import CreaseConfig, PredicateConfig, TesseraConfig
from tessera.core.logging_utils import configure_logging, get_logger
from tessera.core.stats import OpStats, format_stats_table, print_stats


def test_default_config():
    cfg = TesseraConfig()
    assert cfg.predicates.mode == 'inexact'
    assert cfg.creases.threshold == 60.0
    assert cfg.kernel.backend == 'builtin'
    assert cfg.layout.regular_valence == 4
    assert cfg.editor.check_geometry
    with pytest.raises(ValueError):
        PredicateConfig(mode='fast')
    assert CreaseConfig(threshold=1.0, angle_unit='rad').threshold_rad() == 1.0


def test_get_logger_namespaces():
    assert get_logger('editor').name == 'tessera.editor'
    assert get_logger('tessera.kernel').name == 'tessera.kernel'
    assert get_logger('x', level='DEBUG').level == logging.DEBUG


def test_configure_logging_isolated_from_root():
    root = logging.getLogger('tessera')
    handlers, propagate, level = list(root.handlers), root.propagate, root.level
    try:
        out = configure_logging('WARNING')
        assert out is root
        assert out.level == logging.WARNING
        assert not out.propagate
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in handlers:
            root.addHandler(h)
        root.propagate = propagate
        root.setLevel(level)


def test_stats_table():
    s = OpStats()
    s.attempts = 2; s.success = 1; s.fail = 1
    s.record_time(0.002)
    s.record_time(0.001)
    assert s.time_min == pytest.approx(0.001)
    s.topology_rejects = 1
    table = format_stats_table({'split': s.to_dict(), 'compact': OpStats(attempts=1, success=1).to_dict()})
    lines = table.splitlines()
    assert lines[0].split()[:6] == ['op', 'attempts', 'ok', 'rej_topo', 'rej_geom', 'errors']
    # rows are sorted by op name
    assert lines[2].split()[:7] == ['compact', '1', '1', '0', '0', '0', '100.0']
    assert lines[3].split()[:7] == ['split', '2', '1', '1', '0', '0', '50.0']
    assert lines[-1].split()[:6] == ['TOTAL', '3', '2', '1', '0', '0']
    assert format_stats_table({}) == "<no stats>"
    s.reset()
    assert s.to_dict()['attempts'] == 0
    buf = io.StringIO()
    print_stats({'split': s.to_dict()}, file=buf, pretty=False)
    assert "'attempts': 0" in buf.getvalue()
