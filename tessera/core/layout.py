"""Coarse quad layout: singular vertices, separatrix tracing and patch labelling."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .config import LayoutConfig
from .errors import MeshCapabilityError
from .logging_utils import get_logger

logger = get_logger('tessera.layout')


@dataclass
class QuadLayout:
    labels: np.ndarray
    separatrix_edges: List[int] = field(default_factory=list)
    singular_verts: List[int] = field(default_factory=list)
    num_patches: int = 0


def _require_quads(mesh):
    if mesh.is_volume:
        raise MeshCapabilityError("quad layouts are computed on surface meshes")
    bad = [fid for fid in range(mesh.num_faces()) if len(mesh.face_verts(fid)) != 4]
    if bad:
        raise MeshCapabilityError(f"quad layout needs a pure quad mesh (face {bad[0]} is not a quad)")


def singular_vertices(mesh, regular_valence: int = 4, boundary_regular_valence: int = 2) -> List[int]:
    """Vertices whose incident quad count differs from the regular one.

    Interior vertices are regular with ``regular_valence`` quads; boundary
    vertices are singular only when they carry more than
    ``boundary_regular_valence`` quads (concave corners and the like).
    """
    return [v for v in range(mesh.num_verts())
            if mesh.adj_v2f(v) and mesh.vert_is_singular(v, regular_valence, boundary_regular_valence)]


def _trace(mesh, start, eid, flags, singular, max_steps, regular_valence):
    """Follow the straight edge line leaving ``start`` through ``eid``."""
    curr = start
    steps = 0
    while True:
        if flags[eid]:
            return
        flags[eid] = True
        a, b = mesh.edge_verts(eid)
        nxt = b if a == curr else a
        steps += 1
        if nxt in singular or mesh.vert_is_boundary(nxt):
            return
        if max_steps is not None and steps >= max_steps:
            logger.debug("separatrix from %d truncated after %d steps", start, steps)
            return
        ring = mesh.vert_ordered_edge_ring(nxt)
        if len(ring) != regular_valence:
            return
        i = ring.index(eid)
        eid = ring[(i + regular_valence // 2) % regular_valence]
        curr = nxt


def compute_coarse_quad_layout(mesh, config: LayoutConfig = None) -> QuadLayout:
    """Trace separatrices from singular vertices and label the resulting patches.

    Boundary edges always act as patch borders. Patch labels are assigned
    by flood fill in ascending face order, so the first face gets label 0.
    The labels are written into ``mesh`` and the separatrix edges become the
    marked edges of the mesh.
    """
    config = config or LayoutConfig()
    _require_quads(mesh)
    singular = singular_vertices(mesh, config.regular_valence, config.boundary_regular_valence)
    singular_set = set(singular)
    flags = np.zeros(mesh.num_edges(), dtype=bool)
    for s in singular:
        boundary = mesh.vert_is_boundary(s)
        if boundary and not config.trace_from_boundary:
            continue
        for eid in mesh.vert_ordered_edge_ring(s):
            if mesh.edge_is_boundary(eid):
                continue
            _trace(mesh, s, eid, flags, singular_set, config.max_trace_steps, config.regular_valence)

    border = flags.copy()
    for eid in mesh.boundary_edges():
        border[eid] = True
    labels = np.full(mesh.num_faces(), -1, dtype=np.int64)
    num_patches = 0
    for seed in range(mesh.num_faces()):
        if labels[seed] >= 0:
            continue
        labels[seed] = num_patches
        dq = deque([seed])
        while dq:
            f = dq.popleft()
            for eid in mesh.adj_f2e(f):
                if border[eid]:
                    continue
                for g in mesh.adj_e2f(eid):
                    if labels[g] < 0:
                        labels[g] = num_patches
                        dq.append(g)
        num_patches += 1

    mesh.set_labels(labels)
    mesh._set_edge_marks(flags)
    separatrices = [int(e) for e in np.flatnonzero(flags)]
    logger.info("quad layout: %d singular vertices, %d separatrix edges, %d patches",
                len(singular), len(separatrices), num_patches)
    return QuadLayout(labels=labels.copy(), separatrix_edges=separatrices,
                      singular_verts=singular, num_patches=num_patches)


__all__ = ['QuadLayout', 'singular_vertices', 'compute_coarse_quad_layout']
