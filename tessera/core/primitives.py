"""Small mesh builders used by demos and tests."""
from __future__ import annotations

import itertools

import numpy as np
from scipy.spatial import Delaunay

from .mesh import Mesh


# unit cube sides as (origin, u, v); u x v points outwards
_CUBE_SIDES = (
    ((0, 0, 0), (0, 0, 1), (0, 1, 0)),  # -x
    ((1, 0, 0), (0, 1, 0), (0, 0, 1)),  # +x
    ((0, 0, 0), (1, 0, 0), (0, 0, 1)),  # -y
    ((0, 1, 0), (0, 0, 1), (1, 0, 0)),  # +y
    ((0, 0, 0), (0, 1, 0), (1, 0, 0)),  # -z
    ((0, 0, 1), (1, 0, 0), (0, 1, 0)),  # +z
)


def build_cube_quadmesh(n: int = 1) -> Mesh:
    """Closed quad mesh of the unit cube, each side subdivided n x n, faces CCW from outside."""
    if n < 1:
        raise ValueError("n must be >= 1")
    index = {}
    verts = []
    faces = []

    def vid(p):
        key = tuple(int(round(c * n)) for c in p)
        if key not in index:
            index[key] = len(verts)
            verts.append([k / n for k in key])
        return index[key]

    for o, u, v in _CUBE_SIDES:
        o = np.array(o, dtype=np.float64)
        u = np.array(u, dtype=np.float64) / n
        v = np.array(v, dtype=np.float64) / n
        for i in range(n):
            for j in range(n):
                p = o + i * u + j * v
                faces.append((vid(p), vid(p + u), vid(p + u + v), vid(p + v)))
    return Mesh(np.array(verts), faces)


def build_grid_quadmesh(nx: int = 2, ny: int = 2, size=(1.0, 1.0)) -> Mesh:
    """Planar (2D) nx x ny quad grid over [0,sx]x[0,sy], faces CCW."""
    xs = np.linspace(0.0, size[0], nx + 1)
    ys = np.linspace(0.0, size[1], ny + 1)
    verts = np.array([[x, y] for y in ys for x in xs])
    faces = []
    for j in range(ny):
        for i in range(nx):
            a = j * (nx + 1) + i
            faces.append((a, a + 1, a + nx + 2, a + nx + 1))
    return Mesh(verts, faces)


def build_grid_trimesh(nx: int = 2, ny: int = 2, size=(1.0, 1.0)) -> Mesh:
    """Same grid as :func:`build_grid_quadmesh`, each quad cut along its diagonal."""
    quads = build_grid_quadmesh(nx, ny, size)
    tris = []
    for a, b, c, d in quads.faces:
        tris.append((a, b, c))
        tris.append((a, c, d))
    return Mesh(quads.positions.copy(), tris)


def build_annulus_trimesh(n_around: int = 8, r_in: float = 0.5, r_out: float = 1.0) -> Mesh:
    """One layer of CCW triangles between two concentric circles.

    Every vertex lies on the boundary, so every radial edge is an interior
    edge joining two boundary vertices.
    """
    t = np.linspace(0.0, 2.0 * np.pi, n_around, endpoint=False)
    inner = np.stack([r_in * np.cos(t), r_in * np.sin(t)], axis=1)
    outer = np.stack([r_out * np.cos(t), r_out * np.sin(t)], axis=1)
    verts = np.vstack([inner, outer])
    tris = []
    for i in range(n_around):
        j = (i + 1) % n_around
        tris.append((i, n_around + i, n_around + j))
        tris.append((i, n_around + j, j))
    return Mesh(verts, tris)


def build_random_delaunay(npts=60, seed=0) -> Mesh:
    """Delaunay triangulation of random points in the unit square plus its corners."""
    rng = np.random.RandomState(seed)
    pts = rng.rand(npts, 2).astype(np.float64)
    corners = np.array([[0., 0.], [1., 0.], [1., 1.], [0., 1.]], dtype=np.float64)
    pts = np.vstack((pts, corners)).astype(np.float64)
    tri = Delaunay(pts)
    simplices = tri.simplices.copy().astype(np.int64)
    a = pts[simplices[:, 0]]; b = pts[simplices[:, 1]]; c = pts[simplices[:, 2]]
    cw = ((b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])) < 0
    simplices[cw] = simplices[cw][:, [0, 2, 1]]
    return Mesh(np.ascontiguousarray(pts), simplices.tolist())


def build_single_tet(predicates=None) -> Mesh:
    verts = np.array([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [0., 0., 1.]])
    return Mesh.from_tets(verts, [(0, 1, 2, 3)], predicates=predicates)


def _cube_corners():
    # corner (i,j,k) has index i + 2j + 4k
    return np.array([[i, j, k] for k in (0, 1) for j in (0, 1) for i in (0, 1)], dtype=np.float64)


def build_tet_block(predicates=None) -> Mesh:
    """Unit cube cut into six tetrahedra around the (0,0,0)-(1,1,1) diagonal."""
    tets = []
    for perm in itertools.permutations(range(3)):
        path = [0]
        cur = 0
        for axis in perm[:2]:
            cur += 1 << axis
            path.append(cur)
        path.append(7)
        tets.append(tuple(path))
    return Mesh.from_tets(_cube_corners(), tets, predicates=predicates)


def build_hex_block() -> Mesh:
    """Single unit hexahedron."""
    c = _cube_corners()
    # bottom quad 0-1-3-2, top quad 4-5-7-6 in cube corner numbering
    hexa = (0, 1, 3, 2, 4, 5, 7, 6)
    return Mesh.from_hexes(c, [hexa])


__all__ = [
    'build_cube_quadmesh', 'build_grid_quadmesh', 'build_grid_trimesh',
    'build_annulus_trimesh', 'build_random_delaunay', 'build_single_tet',
    'build_tet_block', 'build_hex_block',
]
