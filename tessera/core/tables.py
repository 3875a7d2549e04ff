"""Standard element tables and (de)serialization helpers for connectivity arrays.

Sub-simplex numbering used by the predicates (``ON_EDGEi``/``ON_FACEi``) and by
the mesh builders is defined here once.
"""
from __future__ import annotations

from typing import List, Sequence

import numpy as np

TRI_EDGES = ((0, 1), (1, 2), (2, 0))

TET_EDGES = ((0, 2), (2, 1), (1, 0), (1, 3), (3, 0), (3, 2))
# faces point outward for tets whose apex t3 sits above the CCW base (t0, t1, t2),
# i.e. orient3d(t0, t1, t2, t3) < 0 with the Shewchuk sign convention
TET_FACES = ((0, 2, 1), (0, 1, 3), (0, 3, 2), (1, 2, 3))

HEX_FACES = ((0, 3, 2, 1), (1, 2, 6, 5), (4, 5, 6, 7), (3, 0, 4, 7), (0, 1, 5, 4), (2, 3, 7, 6))


def polys_from_serialized_vids(vids: Sequence[int], verts_per_poly: int) -> List[List[int]]:
    """Split a flat index list into fixed-size polygons (e.g. STL style triangle soups)."""
    n = int(verts_per_poly)
    if n < 3:
        raise ValueError("verts_per_poly must be >= 3")
    flat = [int(v) for v in vids]
    if len(flat) % n != 0:
        raise ValueError(f"serialized list length {len(flat)} is not a multiple of {n}")
    return [flat[i:i + n] for i in range(0, len(flat), n)]


def serialized_xyz(points) -> np.ndarray:
    """Flatten an (N,d) coordinate array to x0,y0[,z0],x1,... (float64)."""
    return np.ascontiguousarray(np.asarray(points, dtype=np.float64)).reshape(-1)


def serialized_vids(polys: Sequence[Sequence[int]]) -> np.ndarray:
    """Flatten a list of polygons to a single index array (int64). Sizes are lost."""
    if not polys:
        return np.empty((0,), dtype=np.int64)
    return np.asarray([int(v) for p in polys for v in p], dtype=np.int64)


def normalize_edge(u, v):
    """Return the canonical (min, max) key for an undirected edge."""
    u = int(u); v = int(v)
    return (u, v) if u < v else (v, u)


__all__ = [
    'TRI_EDGES', 'TET_EDGES', 'TET_FACES', 'HEX_FACES',
    'polys_from_serialized_vids', 'serialized_xyz', 'serialized_vids', 'normalize_edge',
]
