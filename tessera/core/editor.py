"""Topology editor: transactional structural edits on a :class:`~tessera.core.mesh.Mesh`."""
from __future__ import annotations

import time
from collections import defaultdict

from .config import EditorConfig
from .errors import TopologyInvariantViolation
from .logging_utils import get_logger
from .predicates import PredicateKernel, kernel_for
from .stats import OpStats, print_stats as _print_stats
from . import operations as ops


class MeshEditor:
    """Structural mutators over one mesh.

    Parameters
    ----------
    mesh : Mesh
        Edited in place. The editor assumes it is the only writer.
    predicates : PredicateKernel, optional
        Kernel used for every geometric decision (default: shared inexact kernel).
    config : EditorConfig, optional

    Every structural operation either completes, leaving adjacency consistent,
    or raises (``TopologyInvariantViolation``, ``MeshCapabilityError``,
    ``InvalidElementError``) with the mesh unchanged. Attempts, successes,
    failures and timings are kept per operation name.
    """

    def __init__(self, mesh, predicates: PredicateKernel = None, config: EditorConfig = None):
        self.logger = get_logger(f'tessera.editor.{self.__class__.__name__}')
        self.mesh = mesh
        self.predicates = predicates or kernel_for('inexact')
        self.config = config or EditorConfig()
        self._op_stats = defaultdict(OpStats)

    # --- Stats helpers ---
    def _get_op_stats(self, name: str) -> OpStats:
        return self._op_stats[name]

    def stats_summary(self):
        return {k: v.to_dict() for k, v in self._op_stats.items()}

    def print_stats(self, pretty: bool = True, file=None):
        _print_stats(self.stats_summary(), file=file, pretty=pretty)

    def reset_stats(self, drop_ops: bool = False):
        if drop_ops:
            self._op_stats.clear()
        else:
            for s in self._op_stats.values():
                s.reset()

    def _run(self, name, fn, *args, **kwargs):
        if not self.config.record_stats:
            return fn(self, *args, **kwargs)
        stats = self._op_stats[name]
        stats.attempts += 1
        t0 = time.perf_counter()
        try:
            result = fn(self, *args, **kwargs)
        except TopologyInvariantViolation as exc:
            stats.fail += 1
            if exc.reason == 'geometry':
                stats.geometry_rejects += 1
            else:
                stats.topology_rejects += 1
            self.logger.debug("%s rejected: %s", name, exc)
            raise
        except Exception:
            stats.fail += 1
            raise
        finally:
            stats.record_time(time.perf_counter() - t0)
        stats.success += 1
        return result

    # --- Structural edits ---
    def split(self, elem_id, point=None):
        """Split a face (surface mesh) or a poly (volume mesh) around a new vertex.

        Returns the new vertex id; the first child keeps ``elem_id``.
        """
        if self.mesh.is_volume:
            return self._run('split', ops.op_split_poly, elem_id, point)
        return self._run('split', ops.op_split_face, elem_id, point)

    def split_face(self, fid, point=None):
        return self._run('split', ops.op_split_face, fid, point)

    def split_poly(self, pid, point=None):
        return self._run('split', ops.op_split_poly, pid, point)

    def split_edge(self, eid, point=None):
        return self._run('split_edge', ops.op_split_edge, eid, point)

    def collapse_edge(self, eid, position: str = None):
        """Merge the endpoints of ``eid``; returns the IndexRemap of the renumbering."""
        return self._run('collapse_edge', ops.op_collapse_edge, eid, position)

    def switch_vert_id(self, v0, v1):
        return self._run('switch_id', ops.op_switch_vert_id, v0, v1)

    def switch_edge_id(self, e0, e1):
        return self._run('switch_id', ops.op_switch_edge_id, e0, e1)

    def switch_face_id(self, f0, f1):
        return self._run('switch_id', ops.op_switch_face_id, f0, f1)

    def switch_poly_id(self, p0, p1):
        return self._run('switch_id', ops.op_switch_poly_id, p0, p1)

    def remove_faces(self, fids):
        return self._run('remove_faces', ops.op_remove_faces, list(fids))

    def compact(self):
        return self._run('compact', ops.op_compact)

    # --- Marks (attribute only, idempotent) ---
    def mark_vert(self, vid):
        self.mesh._set_vert_mark(vid, True)

    def unmark_vert(self, vid):
        self.mesh._set_vert_mark(vid, False)

    def mark_edge(self, eid):
        self.mesh._set_edge_mark(eid, True)

    def unmark_edge(self, eid):
        self.mesh._set_edge_mark(eid, False)

    def mark_face(self, fid):
        self.mesh._set_face_mark(fid, True)

    def unmark_face(self, fid):
        self.mesh._set_face_mark(fid, False)

    mark = mark_edge
    unmark = unmark_edge

    def set_edges_marked(self, eids, flag: bool = True):
        for eid in eids:
            self.mesh._set_edge_mark(eid, flag)

    def unmark_all_edges(self):
        self.mesh._set_edge_marks([False] * self.mesh.num_edges())


__all__ = ['MeshEditor']
