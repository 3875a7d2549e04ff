"""Star-shaped kernel of a simple polygon by incremental half-plane intersection.

For every edge of the (CCW) polygon the half-plane on its left is
represented as a convex quad that extends the edge by a margin derived from
the bounding-box diagonal on both sides, and reaches that same distance
inwards. The quads are intersected one after the other; as soon as the
running intersection is empty the polygon has no kernel and ``(0.0, [])`` is
returned. That outcome is ordinary, not an error.

Convex clipping is delegated to a backend exposing ``clip_halfplane`` and
``intersect``:

- :class:`BuiltinClipBackend` (default): Sutherland-Hodgman with side tests
  through the predicate kernel.
- :class:`ScipyClipBackend`: ``scipy.spatial.HalfspaceIntersection`` plus
  ``ConvexHull``, interior point from a Chebyshev-center ``linprog``.
"""
from __future__ import annotations

import numpy as np
from scipy.optimize import linprog
from scipy.spatial import ConvexHull, HalfspaceIntersection
from scipy.spatial import QhullError

from .config import KernelConfig
from .constants import EPS_KERNEL_REL
from .errors import DegenerateInputError
from .geometry import polygon_signed_area
from .logging_utils import get_logger
from .predicates import PredicateKernel, kernel_for

logger = get_logger('tessera.kernel')

_EMPTY = np.empty((0, 2), dtype=np.float64)


def _cleanup(poly, tol):
    """Drop consecutive near-duplicates and collinear vertices of a convex polygon."""
    pts = [np.asarray(p, dtype=np.float64) for p in poly]
    changed = True
    while changed and len(pts) >= 3:
        changed = False
        n = len(pts)
        for i in range(n):
            a = pts[i - 1]; b = pts[i]; c = pts[(i + 1) % n]
            if np.linalg.norm(b - a) <= tol:
                del pts[i]; changed = True; break
            cross = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
            if abs(cross) <= tol * np.linalg.norm(c - a):
                del pts[i]; changed = True; break
    if len(pts) < 3:
        return _EMPTY
    return np.array(pts)


class BuiltinClipBackend:
    """Sutherland-Hodgman clipping of convex polygons (pure numpy)."""

    name = 'builtin'

    def __init__(self, predicates: PredicateKernel = None):
        self.predicates = predicates or kernel_for('inexact')

    def clip_halfplane(self, poly, a, b):
        """Part of ``poly`` left of the directed line a->b (boundary included)."""
        pts = np.asarray(poly, dtype=np.float64)
        if pts.shape[0] == 0:
            return _EMPTY
        a = np.asarray(a, dtype=np.float64); b = np.asarray(b, dtype=np.float64)
        side = [self.predicates.orient2d(a, b, p) for p in pts]
        out = []
        n = pts.shape[0]
        for i in range(n):
            j = (i + 1) % n
            si, sj = side[i], side[j]
            if si >= 0:
                out.append(pts[i])
            if (si > 0 and sj < 0) or (si < 0 and sj > 0):
                t = si / (si - sj)
                out.append(pts[i] + t * (pts[j] - pts[i]))
        if len(out) < 3:
            return _EMPTY
        return np.array(out)

    def intersect(self, poly, convex):
        """Intersection of ``poly`` with the CCW convex polygon ``convex``."""
        C = np.asarray(convex, dtype=np.float64)
        out = np.asarray(poly, dtype=np.float64)
        for i in range(C.shape[0]):
            out = self.clip_halfplane(out, C[i], C[(i + 1) % C.shape[0]])
            if out.shape[0] == 0:
                return _EMPTY
        return out


def _halfspace_row(A, B):
    """[nx, ny, c] with nx*x + ny*y + c <= 0 on the left of A->B."""
    u = B - A
    return [u[1], -u[0], u[0] * A[1] - u[1] * A[0]]


def _halfspaces(convex):
    """Half-space rows describing the interior of a CCW convex polygon."""
    C = np.asarray(convex, dtype=np.float64)
    rows = []
    for i in range(C.shape[0]):
        A = C[i]; B = C[(i + 1) % C.shape[0]]
        if np.linalg.norm(B - A) == 0.0:
            continue
        rows.append(_halfspace_row(A, B))
    return np.array(rows, dtype=np.float64).reshape(-1, 3)


class ScipyClipBackend:
    """Convex clipping through Qhull half-space intersection."""

    name = 'scipy'

    def __init__(self, predicates: PredicateKernel = None, min_radius: float = 0.0):
        self.predicates = predicates or kernel_for('inexact')
        self.min_radius = float(min_radius)

    def _solve(self, hs):
        if hs.shape[0] < 3:
            return _EMPTY
        norms = np.linalg.norm(hs[:, :2], axis=1)
        A_ub = np.hstack([hs[:, :2], norms[:, None]])
        res = linprog(c=[0.0, 0.0, -1.0], A_ub=A_ub, b_ub=-hs[:, 2],
                      bounds=[(None, None), (None, None), (0.0, None)], method='highs')
        if res.status != 0 or res.x[2] <= self.min_radius:
            return _EMPTY
        try:
            hsi = HalfspaceIntersection(hs, res.x[:2])
            hull = ConvexHull(hsi.intersections)
        except QhullError:
            logger.debug("qhull rejected a near degenerate intersection")
            return _EMPTY
        return hsi.intersections[hull.vertices]

    def clip_halfplane(self, poly, a, b):
        if np.asarray(poly).shape[0] == 0:
            return _EMPTY
        row = _halfspace_row(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))
        hs = np.vstack([_halfspaces(poly), [row]])
        return self._solve(hs)

    def intersect(self, poly, convex):
        if np.asarray(poly).shape[0] == 0:
            return _EMPTY
        return self._solve(np.vstack([_halfspaces(poly), _halfspaces(convex)]))


def make_backend(config: KernelConfig = None, predicates: PredicateKernel = None):
    config = config or KernelConfig()
    if config.backend == 'scipy':
        return ScipyClipBackend(predicates)
    return BuiltinClipBackend(predicates)


def _halfplane_quads(poly, delta):
    quads = []
    n = poly.shape[0]
    for i in range(n):
        A = poly[i]; B = poly[(i + 1) % n]
        length = float(np.linalg.norm(B - A))
        if length == 0.0:
            continue
        u = (B - A) / length
        v = np.array([-u[1], u[0]])
        a = A - u * delta
        b = B + u * delta
        quads.append(np.array([a, b, b + v * delta, a + v * delta]))
    return quads


def polygon_kernel(poly, config: KernelConfig = None, backend=None, predicates: PredicateKernel = None):
    """Kernel of a simple polygon given as (N,2) points (z of 3D input is discarded).

    Returns ``(area, kernel)`` where ``kernel`` is a (K,2) array ordered CCW
    starting at its lexicographically smallest vertex, or ``(0.0, empty)``
    when the polygon is not star-shaped. Clockwise input is reoriented first.
    """
    config = config or KernelConfig()
    backend = backend or make_backend(config, predicates)
    P = np.asarray(poly, dtype=np.float64)
    if P.ndim != 2 or P.shape[1] not in (2, 3):
        raise ValueError(f"polygon must have shape (N,2) or (N,3), got {P.shape}")
    P = P[:, :2]
    if P.shape[0] < 3:
        raise DegenerateInputError("a polygon needs at least 3 vertices")
    if polygon_signed_area(P) < 0.0:
        P = P[::-1].copy()
    lo = P.min(axis=0); hi = P.max(axis=0)
    delta = float(np.linalg.norm(hi - lo)) * config.margin_factor
    if delta == 0.0:
        raise DegenerateInputError("polygon has zero extent")
    # clip in a frame anchored at the bbox corner
    P = P - lo
    quads = _halfplane_quads(P, delta)
    kernel = quads[0]
    for quad in quads[1:]:
        kernel = backend.intersect(kernel, quad)
        if kernel.shape[0] == 0:
            logger.debug("polygon with %d vertices has no kernel", P.shape[0])
            return 0.0, _EMPTY.copy()
    kernel = _cleanup(kernel, EPS_KERNEL_REL * delta)
    if kernel.shape[0] == 0:
        return 0.0, _EMPTY.copy()
    if polygon_signed_area(kernel) < 0.0:
        kernel = kernel[::-1]
    start = min(range(kernel.shape[0]), key=lambda i: (kernel[i, 0], kernel[i, 1]))
    kernel = np.roll(kernel, -start, axis=0)
    area = polygon_signed_area(kernel)
    if area <= config.min_area:
        return 0.0, _EMPTY.copy()
    return float(area), kernel + lo


def polygon_kernel_3d(poly, config: KernelConfig = None, backend=None, predicates: PredicateKernel = None):
    """3D entry point: drops z, solves in 2D and lifts the kernel back with z = 0."""
    P = np.asarray(poly, dtype=np.float64)
    area, kernel2 = polygon_kernel(P[:, :2], config=config, backend=backend, predicates=predicates)
    if kernel2.shape[0] == 0:
        return 0.0, np.empty((0, 3), dtype=np.float64)
    return area, np.hstack([kernel2, np.zeros((kernel2.shape[0], 1))])


__all__ = ['BuiltinClipBackend', 'ScipyClipBackend', 'make_backend', 'polygon_kernel', 'polygon_kernel_3d']
