import itertools
from fractions import Fraction

import numpy as np
import pytest

from tessera.core.errors import DegenerateInputError
from tessera.core.predicates import (PointInSimplex, PredicateKernel, SimplexIntersection, kernel_for,
                                     orient2d, orient3d, incircle, insphere)
from tessera.core.tables import TRI_EDGES

TET = [(0., 0., 0.), (1., 0., 0.), (0., 1., 0.), (0., 0., 1.)]


def _orient2d_fraction(a, b, c):
    ax, ay = map(Fraction, a); bx, by = map(Fraction, b); cx, cy = map(Fraction, c)
    return (ax - cx) * (by - cy) - (ay - cy) * (bx - cx)


def test_orientation_signs():
    assert orient2d((0, 0), (1, 0), (0, 1)) > 0
    assert orient2d((0, 0), (0, 1), (1, 0)) < 0
    assert orient2d((0, 0), (1, 1), (2, 2)) == 0
    assert orient3d(*TET) == pytest.approx(-1.0)
    assert orient3d(TET[0], TET[2], TET[1], TET[3]) == pytest.approx(1.0)


def test_incircle_and_insphere():
    a, b, c = (0., 0.), (1., 0.), (0., 1.)
    assert incircle(a, b, c, (0.25, 0.25)) > 0
    assert incircle(a, b, c, (2.0, 2.0)) < 0
    assert incircle(a, b, c, (1.0, 1.0)) == 0
    pa, pb, pc, pd = (0., 0., 0.), (0., 1., 0.), (1., 0., 0.), (0., 0., 1.)
    assert orient3d(pa, pb, pc, pd) > 0
    assert insphere(pa, pb, pc, pd, (0.25, 0.25, 0.25)) > 0
    assert insphere(pa, pb, pc, pd, (5.0, 5.0, 5.0)) < 0


def test_exact_mode_matches_rational_sign():
    exact = PredicateKernel(mode='exact')
    rng = np.random.RandomState(3)
    for _ in range(200):
        a = rng.rand(2)
        b = a + rng.rand(2)
        t = rng.rand()
        # nearly colinear third point
        c = a + t * (b - a) + rng.randn(2) * 1e-17
        expected = _orient2d_fraction(a, b, c)
        got = exact.orient2d(a, b, c)
        assert np.sign(got) == np.sign(float(expected)) or (expected == 0 and got == 0)


def test_exact_colinear_is_zero():
    exact = kernel_for('exact')
    assert exact.orient2d((0.5, 0.5), (12.0, 12.0), (24.0, 24.0)) == 0.0
    assert exact.points_are_colinear_2d((0.5, 0.5), (12.0, 12.0), (24.0, 24.0))
    assert exact.exact and not kernel_for('inexact').exact


def test_kernels_are_shared_per_mode():
    assert kernel_for('exact') is kernel_for('exact')
    assert kernel_for('exact') is not kernel_for('inexact')
    with pytest.raises(ValueError):
        PredicateKernel(mode='approximate')


def test_batch_orient2d_matches_scalar():
    pk = kernel_for('exact')
    rng = np.random.RandomState(0)
    a = rng.rand(20, 2); b = rng.rand(20, 2); c = rng.rand(20, 2)
    batch = pk.orient2d_batch(a, b, c)
    scalar = np.array([pk.orient2d(a[i], b[i], c[i]) for i in range(20)])
    assert np.array_equal(np.sign(batch), np.sign(scalar))


def test_point_in_triangle_2d():
    pk = kernel_for('inexact')
    t = [(0., 0.), (1., 0.), (0., 1.)]
    assert pk.point_in_triangle_2d((0.2, 0.2), *t) == PointInSimplex.STRICTLY_INSIDE
    assert pk.point_in_triangle_2d((1.0, 1.0), *t) == PointInSimplex.STRICTLY_OUTSIDE
    assert pk.point_in_triangle_2d((0.0, 1.0), *t) == PointInSimplex.ON_VERT2
    loc = pk.point_in_triangle_2d((0.5, 0.0), *t)
    assert loc == PointInSimplex.ON_EDGE0
    assert loc.dimension == 1 and loc.index == 0


def test_point_in_segment_and_tet():
    pk = kernel_for('exact')
    assert pk.point_in_segment_2d((0.5, 0.5), (0, 0), (1, 1)) == PointInSimplex.STRICTLY_INSIDE
    assert pk.point_in_segment_2d((2.0, 2.0), (0, 0), (1, 1)) == PointInSimplex.STRICTLY_OUTSIDE
    assert pk.point_in_segment_3d((1, 1, 1), (0, 0, 0), (1, 1, 1)) == PointInSimplex.ON_VERT1
    assert pk.point_in_tet((0.1, 0.1, 0.1), *TET) == PointInSimplex.STRICTLY_INSIDE
    assert pk.point_in_tet((1.0, 1.0, 1.0), *TET) == PointInSimplex.STRICTLY_OUTSIDE
    assert pk.point_in_tet((0.0, 0.0, 1.0), *TET) == PointInSimplex.ON_VERT3
    # tet edge 2 joins vertices 1 and 0
    assert pk.point_in_tet((0.5, 0.0, 0.0), *TET) == PointInSimplex.ON_EDGE2
    # tet face 3 is (1, 2, 3)
    assert pk.point_in_tet((0.25, 0.25, 0.5), *TET) == PointInSimplex.ON_FACE3


def test_segment_segment_2d():
    pk = kernel_for('exact')
    assert pk.segment_segment_intersect_2d((0, 0), (1, 1), (0, 1), (1, 0)) == SimplexIntersection.INTERSECT
    assert pk.segment_segment_intersect_2d((0, 0), (1, 0), (1, 0), (2, 1)) == SimplexIntersection.SIMPLICIAL_COMPLEX
    assert pk.segment_segment_intersect_2d((0, 0), (2, 0), (1, 0), (3, 0)) == SimplexIntersection.OVERLAP
    assert pk.segment_segment_intersect_2d((0, 0), (1, 0), (0, 1), (1, 1)) == SimplexIntersection.DO_NOT_INTERSECT
    assert pk.segment_segment_intersect_2d((0, 0), (1, 0), (1, 0), (0, 0)) == SimplexIntersection.SIMPLICIAL_COMPLEX


def test_degenerate_input_raises():
    pk = kernel_for('inexact')
    with pytest.raises(DegenerateInputError):
        pk.segment_segment_intersect_2d((0, 0), (0, 0), (0, 1), (1, 0))
    with pytest.raises(DegenerateInputError):
        pk.segment_triangle_intersect_3d((0, 0, 0), (1, 1, 1), (0, 0, 0), (1, 0, 0), (2, 0, 0))
    assert pk.tet_is_degenerate((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))
    assert pk.segment_is_degenerate_3d((1, 2, 3), (1, 2, 3))


def test_segment_triangle_3d():
    pk = kernel_for('exact')
    t = [(0., 0., 0.), (1., 0., 0.), (0., 1., 0.)]
    assert pk.segment_triangle_intersect_3d((0.2, 0.2, -1), (0.2, 0.2, 1), *t) == SimplexIntersection.INTERSECT
    assert pk.segment_triangle_intersect_3d((5, 5, -1), (5, 5, 1), *t) == SimplexIntersection.DO_NOT_INTERSECT
    assert pk.segment_triangle_intersect_3d((0.2, 0.2, 1), (0.3, 0.3, 2), *t) == SimplexIntersection.DO_NOT_INTERSECT


def test_triangle_triangle_2d():
    pk = kernel_for('exact')
    shared_edge = pk.triangle_triangle_intersect_2d((0, 0), (1, 0), (0, 1), (0, 0), (1, 0), (0, -1))
    assert shared_edge == SimplexIntersection.SIMPLICIAL_COMPLEX
    overlap = pk.triangle_triangle_intersect_2d((0, 0), (2, 0), (0, 2), (0.5, 0.5), (3, 0.5), (0.5, 3))
    assert overlap == SimplexIntersection.INTERSECT
    apart = pk.triangle_triangle_intersect_2d((0, 0), (1, 0), (0, 1), (5, 5), (6, 5), (5, 6))
    assert apart == SimplexIntersection.DO_NOT_INTERSECT


def test_orient3d_batch_matches_scalar():
    pk = kernel_for('exact')
    rng = np.random.RandomState(5)
    a, b, c = rng.rand(15, 3), rng.rand(15, 3), rng.rand(15, 3)
    d = rng.rand(3)
    batch = pk.orient3d_batch(a, b, c, d)
    scalar = np.array([pk.orient3d(a[i], b[i], c[i], d) for i in range(15)])
    assert batch.shape == (15,)
    assert np.array_equal(np.sign(batch), np.sign(scalar))
    # exactly coplanar rows are resolved to zero
    flat = pk.orient3d_batch([[0, 0, 0]], [[1, 0, 0]], [[0, 1, 0]], [0.3, 0.7, 0.0])
    assert flat[0] == 0.0


def test_orient2d_antisymmetry_random():
    exact = kernel_for('exact')
    fast = kernel_for('inexact')
    rng = np.random.RandomState(11)
    for _ in range(300):
        scale = rng.choice([1e-3, 1.0, 1e3])
        a, b, c = rng.randn(3, 2) * scale
        s = np.sign(exact.orient2d(a, b, c))
        assert s == -np.sign(exact.orient2d(a, c, b))
        assert s == np.sign(float(_orient2d_fraction(a, b, c)))
        assert fast.orient2d(a, b, c) == pytest.approx(-fast.orient2d(a, c, b), rel=1e-9, abs=1e-12 * scale ** 2)


def _relabel(loc, perm):
    """Location of the same point once the triangle vertices are reordered by ``perm``."""
    if loc.dimension == 0:
        return PointInSimplex.on_vert(perm.index(loc.index))
    if loc.dimension == 1:
        a, b = TRI_EDGES[loc.index]
        pair = {perm.index(a), perm.index(b)}
        return PointInSimplex.on_edge(next(i for i, e in enumerate(TRI_EDGES) if set(e) == pair))
    return loc


def test_point_in_triangle_relabeling_invariance():
    pk = kernel_for('exact')
    rng = np.random.RandomState(7)
    seen = set()
    for _ in range(300):
        tri = [tuple(map(float, rng.randint(0, 7, size=2))) for _ in range(3)]
        if pk.triangle_is_degenerate_2d(*tri):
            continue
        # half-integer grid hits vertices, edges, interior and exterior
        p = tuple(rng.randint(0, 13, size=2) * 0.5)
        loc = pk.point_in_triangle_2d(p, *tri)
        seen.add(loc)
        for perm in itertools.permutations(range(3)):
            relabeled = [tri[i] for i in perm]
            assert pk.point_in_triangle_2d(p, *relabeled) == _relabel(loc, list(perm))
    assert any(loc.dimension == 0 for loc in seen)
    assert any(loc.dimension == 1 for loc in seen)
    assert PointInSimplex.STRICTLY_INSIDE in seen


def test_point_in_triangle_3d():
    pk = kernel_for('exact')
    t = [(0., 0., 0.), (1., 0., 0.), (0., 1., 0.)]
    assert pk.point_in_triangle_3d((0.2, 0.2, 0.0), *t) == PointInSimplex.STRICTLY_INSIDE
    assert pk.point_in_triangle_3d((0.2, 0.2, 0.1), *t) == PointInSimplex.STRICTLY_OUTSIDE
    assert pk.point_in_triangle_3d((0.5, 0.5, 0.0), *t) == PointInSimplex.ON_EDGE1
    assert pk.point_in_triangle_3d((0.0, 0.0, 0.0), *t) == PointInSimplex.ON_VERT0
    tilted = [(1., 0., 0.), (0., 1., 0.), (0., 0., 1.)]
    assert pk.point_in_triangle_3d((0.25, 0.25, 0.5), *tilted) == PointInSimplex.STRICTLY_INSIDE
    assert pk.point_in_triangle_3d((0.5, 0.5, 0.5), *tilted) == PointInSimplex.STRICTLY_OUTSIDE


def test_segment_segment_3d():
    pk = kernel_for('exact')
    assert pk.segment_segment_intersect_3d((0, 0, 0), (1, 1, 0), (0, 1, 0), (1, 0, 0)) == SimplexIntersection.INTERSECT
    skew = pk.segment_segment_intersect_3d((0, 0, 0), (1, 0, 0), (0.5, -1, 1), (0.5, 1, 1))
    assert skew == SimplexIntersection.DO_NOT_INTERSECT
    corner = pk.segment_segment_intersect_3d((0, 0, 0), (1, 0, 0), (1, 0, 0), (1, 1, 0))
    assert corner == SimplexIntersection.SIMPLICIAL_COMPLEX
    assert pk.segment_segment_intersect_3d((0, 0, 0), (2, 0, 0), (1, 0, 0), (3, 0, 0)) == SimplexIntersection.OVERLAP


def test_segment_triangle_2d():
    pk = kernel_for('exact')
    t = [(0., 0.), (1., 0.), (0., 1.)]
    assert pk.segment_triangle_intersect_2d((0.1, 0.1), (2, 2), *t) == SimplexIntersection.INTERSECT
    assert pk.segment_triangle_intersect_2d((-1, 0.2), (2, 0.2), *t) == SimplexIntersection.INTERSECT
    assert pk.segment_triangle_intersect_2d((2, 2), (3, 3), *t) == SimplexIntersection.DO_NOT_INTERSECT
    assert pk.segment_triangle_intersect_2d((0, 0), (-1, -1), *t) == SimplexIntersection.SIMPLICIAL_COMPLEX
    with pytest.raises(DegenerateInputError):
        pk.segment_triangle_intersect_2d((0, 0), (1, 1), (0, 0), (1, 1), (2, 2))


def test_segment_tet_3d():
    pk = kernel_for('exact')
    assert pk.segment_tet_intersect_3d((0.1, 0.1, 0.1), (2, 2, 2), *TET) == SimplexIntersection.INTERSECT
    assert pk.segment_tet_intersect_3d((-1, 0.1, 0.1), (2, 0.1, 0.1), *TET) == SimplexIntersection.INTERSECT
    assert pk.segment_tet_intersect_3d((5, 5, 5), (6, 6, 6), *TET) == SimplexIntersection.DO_NOT_INTERSECT
    assert pk.segment_tet_intersect_3d((0, 0, 0), (-1, -1, -1), *TET) == SimplexIntersection.SIMPLICIAL_COMPLEX
    with pytest.raises(DegenerateInputError):
        pk.segment_tet_intersect_3d((0, 0, 0), (1, 1, 1), (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))


def test_triangle_triangle_3d():
    pk = kernel_for('exact')
    t0 = [(0., 0., 0.), (1., 0., 0.), (0., 1., 0.)]
    piercing = [(0.2, 0.2, -1.0), (0.3, 0.2, 1.0), (0.2, 0.3, 1.0)]
    assert pk.triangle_triangle_intersect_3d(*t0, *piercing) == SimplexIntersection.INTERSECT
    above = [(0., 0., 1.), (1., 0., 1.), (0., 1., 1.)]
    assert pk.triangle_triangle_intersect_3d(*t0, *above) == SimplexIntersection.DO_NOT_INTERSECT
    hinge = [(0., 0., 0.), (1., 0., 0.), (0., 0., 1.)]
    assert pk.triangle_triangle_intersect_3d(*t0, *hinge) == SimplexIntersection.SIMPLICIAL_COMPLEX
    coplanar = [(0.2, 0.2, 0.), (2., 0.2, 0.), (0.2, 2., 0.)]
    assert pk.triangle_triangle_intersect_3d(*t0, *coplanar) == SimplexIntersection.INTERSECT
