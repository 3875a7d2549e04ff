"""Geometric predicates: orientation, in-circle/in-sphere and simplex classification.

Two interchangeable backends are provided through :class:`PredicateKernel`:

- ``inexact`` (default): plain binary64 arithmetic, equivalent to the "fast"
  Shewchuk predicates. Signs may be wrong only when the true value is within
  a few ulps of zero relative to the input magnitude. This is a documented
  precision trade-off, not a fault.
- ``exact``: the same floating point expression guarded by Shewchuk's static
  error bound. When the bound cannot certify the sign the determinant is
  re-evaluated with :class:`fractions.Fraction`, which represents every
  binary64 input exactly. Returned values are floats whose sign is exact.

Kernels are plain objects configured at construction time, so an exact and an
inexact kernel can be used side by side. The module level functions are bound
to a default inexact kernel.

Point-in-simplex results name the lowest dimensional sub-simplex containing
the query point. For degenerate simplices (zero length/area/volume) that
sub-simplex may not be unique; which one is returned is implementation
defined, but identical inputs always give identical answers (vertices are
tested in index order, then edges, then faces).

Intersection tests require non-degenerate simplices. With
``check_degenerate=True`` (default) a degenerate input raises
:class:`DegenerateInputError`; with checks disabled the result is undefined.
"""
from __future__ import annotations

import math
from enum import IntEnum
from fractions import Fraction

import numpy as np

from .config import PredicateConfig
from .constants import CCW_ERRBOUND_A, O3D_ERRBOUND_A, ICC_ERRBOUND_A, ISP_ERRBOUND_A
from .errors import DegenerateInputError
from .tables import TRI_EDGES, TET_EDGES, TET_FACES

__all__ = [
	'PointInSimplex', 'SimplexIntersection', 'PredicateKernel', 'kernel_for',
	'orient2d', 'orient3d', 'incircle', 'insphere',
	'points_are_colinear_2d', 'points_are_colinear_3d', 'points_are_coplanar_3d',
	'point_in_segment_2d', 'point_in_segment_3d', 'point_in_triangle_2d',
	'point_in_triangle_3d', 'point_in_tet',
	'segment_segment_intersect_2d', 'segment_segment_intersect_3d',
	'segment_triangle_intersect_2d', 'segment_triangle_intersect_3d',
	'segment_tet_intersect_3d', 'triangle_triangle_intersect_2d',
	'triangle_triangle_intersect_3d',
	'segment_is_degenerate_2d', 'segment_is_degenerate_3d',
	'triangle_is_degenerate_2d', 'triangle_is_degenerate_3d', 'tet_is_degenerate',
	'vec_equals_2d', 'vec_equals_3d',
]


class PointInSimplex(IntEnum):
	"""Location of a point w.r.t. a segment, triangle or tetrahedron."""
	STRICTLY_OUTSIDE = 0
	STRICTLY_INSIDE = 1
	ON_VERT0 = 2
	ON_VERT1 = 3
	ON_VERT2 = 4
	ON_VERT3 = 5
	ON_EDGE0 = 6
	ON_EDGE1 = 7
	ON_EDGE2 = 8
	ON_EDGE3 = 9
	ON_EDGE4 = 10
	ON_EDGE5 = 11
	ON_FACE0 = 12
	ON_FACE1 = 13
	ON_FACE2 = 14
	ON_FACE3 = 15

	@classmethod
	def on_vert(cls, i: int) -> 'PointInSimplex':
		if not 0 <= i < 4:
			raise ValueError(f"vertex offset out of range: {i}")
		return cls(cls.ON_VERT0 + i)

	@classmethod
	def on_edge(cls, i: int) -> 'PointInSimplex':
		if not 0 <= i < 6:
			raise ValueError(f"edge offset out of range: {i}")
		return cls(cls.ON_EDGE0 + i)

	@classmethod
	def on_face(cls, i: int) -> 'PointInSimplex':
		if not 0 <= i < 4:
			raise ValueError(f"face offset out of range: {i}")
		return cls(cls.ON_FACE0 + i)

	@property
	def dimension(self):
		"""Dimension of the sub-simplex (0 vertex, 1 edge, 2 face); None for inside/outside."""
		if self.ON_VERT0 <= self <= self.ON_VERT3:
			return 0
		if self.ON_EDGE0 <= self <= self.ON_EDGE5:
			return 1
		if self.ON_FACE0 <= self <= self.ON_FACE3:
			return 2
		return None

	@property
	def index(self):
		"""Offset of the sub-simplex in the element tables; None for inside/outside."""
		dim = self.dimension
		if dim is None:
			return None
		base = (self.ON_VERT0, self.ON_EDGE0, self.ON_FACE0)[dim]
		return int(self) - int(base)


class SimplexIntersection(IntEnum):
	"""Outcome of a simplex/simplex intersection test."""
	DO_NOT_INTERSECT = 0    # fully disjoint
	SIMPLICIAL_COMPLEX = 1  # coincident, or meeting exactly at a shared sub-simplex
	INTERSECT = 2           # intersecting in a non conforming way
	OVERLAP = 3             # colinear segments that partially overlap


_OUT = PointInSimplex.STRICTLY_OUTSIDE
_IN = PointInSimplex.STRICTLY_INSIDE
_DNI = SimplexIntersection.DO_NOT_INTERSECT
_SC = SimplexIntersection.SIMPLICIAL_COMPLEX
_INT = SimplexIntersection.INTERSECT
_OVL = SimplexIntersection.OVERLAP


# ----------------------------------------------------------------------------
# Coordinate coercion and small helpers
# ----------------------------------------------------------------------------

def _p2(p):
	return (float(p[0]), float(p[1]))


def _p3(p):
	if len(p) == 2:
		return (float(p[0]), float(p[1]), 0.0)
	return (float(p[0]), float(p[1]), float(p[2]))


def _sign(x) -> int:
	return (x > 0) - (x < 0)


def _drop(p, axis):
	"""Project a 3D point onto the coordinate plane orthogonal to ``axis``."""
	if axis == 0:
		return (p[1], p[2])
	if axis == 1:
		return (p[2], p[0])
	return (p[0], p[1])


def _to_float(value: Fraction) -> float:
	out = float(value)
	if out == 0.0 and value != 0:
		# keep the exact sign even if the magnitude underflows
		out = math.copysign(5e-324, value)
	return out


def vec_equals_2d(v0, v1) -> bool:
	return float(v0[0]) == float(v1[0]) and float(v0[1]) == float(v1[1])


def vec_equals_3d(v0, v1) -> bool:
	a = _p3(v0); b = _p3(v1)
	return a[0] == b[0] and a[1] == b[1] and a[2] == b[2]


def _strictly_between(p, s0, s1, dim) -> bool:
	for i in range(dim):
		lo = min(s0[i], s1[i]); hi = max(s0[i], s1[i])
		if lo < p[i] < hi:
			return True
	return False


# ----------------------------------------------------------------------------
# Raw determinants
# ----------------------------------------------------------------------------

def _orient2d_terms(a, b, c):
	detleft = (a[0] - c[0]) * (b[1] - c[1])
	detright = (a[1] - c[1]) * (b[0] - c[0])
	return detleft, detright


def _orient2d_exact(a, b, c) -> float:
	ax, ay = Fraction(a[0]), Fraction(a[1])
	bx, by = Fraction(b[0]), Fraction(b[1])
	cx, cy = Fraction(c[0]), Fraction(c[1])
	return _to_float((ax - cx) * (by - cy) - (ay - cy) * (bx - cx))


def _orient3d_parts(a, b, c, d):
	adx = a[0] - d[0]; bdx = b[0] - d[0]; cdx = c[0] - d[0]
	ady = a[1] - d[1]; bdy = b[1] - d[1]; cdy = c[1] - d[1]
	adz = a[2] - d[2]; bdz = b[2] - d[2]; cdz = c[2] - d[2]
	bdxcdy = bdx * cdy; cdxbdy = cdx * bdy
	cdxady = cdx * ady; adxcdy = adx * cdy
	adxbdy = adx * bdy; bdxady = bdx * ady
	det = adz * (bdxcdy - cdxbdy) + bdz * (cdxady - adxcdy) + cdz * (adxbdy - bdxady)
	permanent = ((abs(bdxcdy) + abs(cdxbdy)) * abs(adz)
				 + (abs(cdxady) + abs(adxcdy)) * abs(bdz)
				 + (abs(adxbdy) + abs(bdxady)) * abs(cdz))
	return det, permanent


def _orient3d_exact(a, b, c, d) -> float:
	A = [Fraction(x) for x in a]; B = [Fraction(x) for x in b]
	C = [Fraction(x) for x in c]; D = [Fraction(x) for x in d]
	adx, ady, adz = A[0] - D[0], A[1] - D[1], A[2] - D[2]
	bdx, bdy, bdz = B[0] - D[0], B[1] - D[1], B[2] - D[2]
	cdx, cdy, cdz = C[0] - D[0], C[1] - D[1], C[2] - D[2]
	det = (adz * (bdx * cdy - cdx * bdy)
		   + bdz * (cdx * ady - adx * cdy)
		   + cdz * (adx * bdy - bdx * ady))
	return _to_float(det)


def _incircle_parts(a, b, c, d):
	adx = a[0] - d[0]; bdx = b[0] - d[0]; cdx = c[0] - d[0]
	ady = a[1] - d[1]; bdy = b[1] - d[1]; cdy = c[1] - d[1]
	bdxcdy = bdx * cdy; cdxbdy = cdx * bdy
	alift = adx * adx + ady * ady
	cdxady = cdx * ady; adxcdy = adx * cdy
	blift = bdx * bdx + bdy * bdy
	adxbdy = adx * bdy; bdxady = bdx * ady
	clift = cdx * cdx + cdy * cdy
	det = alift * (bdxcdy - cdxbdy) + blift * (cdxady - adxcdy) + clift * (adxbdy - bdxady)
	permanent = ((abs(bdxcdy) + abs(cdxbdy)) * alift
				 + (abs(cdxady) + abs(adxcdy)) * blift
				 + (abs(adxbdy) + abs(bdxady)) * clift)
	return det, permanent


def _incircle_exact(a, b, c, d) -> float:
	A = [Fraction(x) for x in a]; B = [Fraction(x) for x in b]
	C = [Fraction(x) for x in c]; D = [Fraction(x) for x in d]
	adx, ady = A[0] - D[0], A[1] - D[1]
	bdx, bdy = B[0] - D[0], B[1] - D[1]
	cdx, cdy = C[0] - D[0], C[1] - D[1]
	alift = adx * adx + ady * ady
	blift = bdx * bdx + bdy * bdy
	clift = cdx * cdx + cdy * cdy
	det = (alift * (bdx * cdy - cdx * bdy)
		   + blift * (cdx * ady - adx * cdy)
		   + clift * (adx * bdy - bdx * ady))
	return _to_float(det)


def _insphere_terms(a, b, c, d, e, absolute=False):
	"""Evaluate Shewchuk's insphere expansion; with ``absolute`` returns the permanent."""
	f = abs if absolute else (lambda x: x)
	aex = a[0] - e[0]; bex = b[0] - e[0]; cex = c[0] - e[0]; dex = d[0] - e[0]
	aey = a[1] - e[1]; bey = b[1] - e[1]; cey = c[1] - e[1]; dey = d[1] - e[1]
	aez = a[2] - e[2]; bez = b[2] - e[2]; cez = c[2] - e[2]; dez = d[2] - e[2]
	alift = aex * aex + aey * aey + aez * aez
	blift = bex * bex + bey * bey + bez * bez
	clift = cex * cex + cey * cey + cez * cez
	dlift = dex * dex + dey * dey + dez * dez
	if not absolute:
		ab = aex * bey - bex * aey
		bc = bex * cey - cex * bey
		cd = cex * dey - dex * cey
		da = dex * aey - aex * dey
		ac = aex * cey - cex * aey
		bd = bex * dey - dex * bey
		abc = aez * bc - bez * ac + cez * ab
		bcd = bez * cd - cez * bd + dez * bc
		cda = cez * da + dez * ac + aez * cd
		dab = dez * ab + aez * bd + bez * da
		return (dlift * abc - clift * dab) + (blift * cda - alift * bcd)
	aexbey = f(aex * bey); bexaey = f(bex * aey)
	bexcey = f(bex * cey); cexbey = f(cex * bey)
	cexdey = f(cex * dey); dexcey = f(dex * cey)
	dexaey = f(dex * aey); aexdey = f(aex * dey)
	aexcey = f(aex * cey); cexaey = f(cex * aey)
	bexdey = f(bex * dey); dexbey = f(dex * bey)
	aez = f(aez); bez = f(bez); cez = f(cez); dez = f(dez)
	return (((cexdey + dexcey) * bez + (dexbey + bexdey) * cez + (bexcey + cexbey) * dez) * alift
			+ ((dexaey + aexdey) * cez + (aexcey + cexaey) * dez + (cexdey + dexcey) * aez) * blift
			+ ((aexbey + bexaey) * dez + (bexdey + dexbey) * aez + (dexaey + aexdey) * bez) * clift
			+ ((bexcey + cexbey) * aez + (cexaey + aexcey) * bez + (aexbey + bexaey) * cez) * dlift)


def _insphere_exact(a, b, c, d, e) -> float:
	pts = [[Fraction(x) for x in p] for p in (a, b, c, d, e)]
	return _to_float(_insphere_terms(*pts))


# ----------------------------------------------------------------------------
# Kernel
# ----------------------------------------------------------------------------

class PredicateKernel:
	"""Geometric predicates bound to one backend configuration.

	Parameters
	----------
	config : PredicateConfig, optional
	mode : str, optional
		Shortcut for ``PredicateConfig(mode=...)``; ignored when ``config`` is given.
	"""

	def __init__(self, config: PredicateConfig = None, *, mode: str = None):
		if config is None:
			config = PredicateConfig(mode=mode or 'inexact')
		self.config = config

	@property
	def mode(self) -> str:
		return self.config.mode

	@property
	def exact(self) -> bool:
		return self.config.mode == 'exact'

	def __repr__(self):
		return f"PredicateKernel(mode={self.mode!r}, check_degenerate={self.config.check_degenerate})"

	# ------------------------------------------------------------------
	# Basic predicates
	# ------------------------------------------------------------------
	def orient2d(self, a, b, c) -> float:
		"""Twice the signed area of (a, b, c); positive when counter-clockwise."""
		a = _p2(a); b = _p2(b); c = _p2(c)
		detleft, detright = _orient2d_terms(a, b, c)
		det = detleft - detright
		if not self.exact:
			return det
		if detleft > 0.0:
			if detright <= 0.0:
				return det
			detsum = detleft + detright
		elif detleft < 0.0:
			if detright >= 0.0:
				return det
			detsum = -detleft - detright
		else:
			return det
		errbound = CCW_ERRBOUND_A * detsum
		if det >= errbound or -det >= errbound:
			return det
		return _orient2d_exact(a, b, c)

	def orient3d(self, a, b, c, d) -> float:
		"""Six times the signed volume of (a, b, c, d).

		Positive when ``d`` lies below the plane through ``a, b, c``, where
		"below" means the triangle appears counter-clockwise seen from above.
		"""
		a = _p3(a); b = _p3(b); c = _p3(c); d = _p3(d)
		det, permanent = _orient3d_parts(a, b, c, d)
		if not self.exact:
			return det
		errbound = O3D_ERRBOUND_A * permanent
		if det > errbound or -det > errbound:
			return det
		return _orient3d_exact(a, b, c, d)

	def incircle(self, a, b, c, d) -> float:
		"""Positive if ``d`` lies inside the circle through CCW ``a, b, c``."""
		a = _p2(a); b = _p2(b); c = _p2(c); d = _p2(d)
		det, permanent = _incircle_parts(a, b, c, d)
		if not self.exact:
			return det
		errbound = ICC_ERRBOUND_A * permanent
		if det > errbound or -det > errbound:
			return det
		return _incircle_exact(a, b, c, d)

	def insphere(self, a, b, c, d, e) -> float:
		"""Positive if ``e`` lies inside the sphere through ``a, b, c, d`` (orient3d(a,b,c,d) > 0)."""
		a = _p3(a); b = _p3(b); c = _p3(c); d = _p3(d); e = _p3(e)
		det = _insphere_terms(a, b, c, d, e)
		if not self.exact:
			return det
		errbound = ISP_ERRBOUND_A * _insphere_terms(a, b, c, d, e, absolute=True)
		if det > errbound or -det > errbound:
			return det
		return _insphere_exact(a, b, c, d, e)

	def orient2d_batch(self, a, b, c) -> np.ndarray:
		"""Vectorized orient2d over (M,2) arrays (single points broadcast)."""
		a = np.asarray(a, dtype=np.float64); b = np.asarray(b, dtype=np.float64)
		c = np.asarray(c, dtype=np.float64)
		a, b, c = np.broadcast_arrays(np.atleast_2d(a), np.atleast_2d(b), np.atleast_2d(c))
		detleft = (a[:, 0] - c[:, 0]) * (b[:, 1] - c[:, 1])
		detright = (a[:, 1] - c[:, 1]) * (b[:, 0] - c[:, 0])
		det = detleft - detright
		if self.exact:
			errbound = CCW_ERRBOUND_A * (np.abs(detleft) + np.abs(detright))
			for i in np.flatnonzero(np.abs(det) <= errbound):
				det[i] = self.orient2d(a[i], b[i], c[i])
		return det

	def orient3d_batch(self, a, b, c, d) -> np.ndarray:
		"""Vectorized orient3d over (M,3) arrays (single points broadcast)."""
		arrs = [np.atleast_2d(np.asarray(x, dtype=np.float64)) for x in (a, b, c, d)]
		a, b, c, d = np.broadcast_arrays(*arrs)
		ad = a - d; bd = b - d; cd = c - d
		bdxcdy = bd[:, 0] * cd[:, 1]; cdxbdy = cd[:, 0] * bd[:, 1]
		cdxady = cd[:, 0] * ad[:, 1]; adxcdy = ad[:, 0] * cd[:, 1]
		adxbdy = ad[:, 0] * bd[:, 1]; bdxady = bd[:, 0] * ad[:, 1]
		det = (ad[:, 2] * (bdxcdy - cdxbdy) + bd[:, 2] * (cdxady - adxcdy)
			   + cd[:, 2] * (adxbdy - bdxady))
		if self.exact:
			permanent = ((np.abs(bdxcdy) + np.abs(cdxbdy)) * np.abs(ad[:, 2])
						 + (np.abs(cdxady) + np.abs(adxcdy)) * np.abs(bd[:, 2])
						 + (np.abs(adxbdy) + np.abs(bdxady)) * np.abs(cd[:, 2]))
			for i in np.flatnonzero(np.abs(det) <= O3D_ERRBOUND_A * permanent):
				det[i] = self.orient3d(a[i], b[i], c[i], d[i])
		return det

	# ------------------------------------------------------------------
	# Degeneracy tests
	# ------------------------------------------------------------------
	def points_are_colinear_2d(self, p0, p1, p2) -> bool:
		return self.orient2d(p0, p1, p2) == 0.0

	def points_are_colinear_3d(self, p0, p1, p2) -> bool:
		p0 = _p3(p0); p1 = _p3(p1); p2 = _p3(p2)
		for axis in (2, 0, 1):
			if self.orient2d(_drop(p0, axis), _drop(p1, axis), _drop(p2, axis)) != 0.0:
				return False
		return True

	def points_are_coplanar_3d(self, p0, p1, p2, p3) -> bool:
		return self.orient3d(p0, p1, p2, p3) == 0.0

	@staticmethod
	def segment_is_degenerate_2d(s0, s1) -> bool:
		return vec_equals_2d(s0, s1)

	@staticmethod
	def segment_is_degenerate_3d(s0, s1) -> bool:
		return vec_equals_3d(s0, s1)

	def triangle_is_degenerate_2d(self, t0, t1, t2) -> bool:
		return self.points_are_colinear_2d(t0, t1, t2)

	def triangle_is_degenerate_3d(self, t0, t1, t2) -> bool:
		return self.points_are_colinear_3d(t0, t1, t2)

	def tet_is_degenerate(self, t0, t1, t2, t3) -> bool:
		return self.points_are_coplanar_3d(t0, t1, t2, t3)

	vec_equals_2d = staticmethod(vec_equals_2d)
	vec_equals_3d = staticmethod(vec_equals_3d)

	def _require(self, degenerate: bool, what: str):
		if degenerate and self.config.check_degenerate:
			raise DegenerateInputError(f"degenerate {what} passed to an intersection test")

	def _dominant_axis(self, t0, t1, t2):
		"""Axis to drop so that the projected triangle keeps the largest area (None if degenerate)."""
		best_axis = None
		best = 0.0
		for axis in (2, 0, 1):
			area = abs(self.orient2d(_drop(t0, axis), _drop(t1, axis), _drop(t2, axis)))
			if area > best:
				best = area
				best_axis = axis
		return best_axis

	# ------------------------------------------------------------------
	# Point in simplex
	# ------------------------------------------------------------------
	def point_in_segment_2d(self, p, s0, s1) -> PointInSimplex:
		p = _p2(p); s0 = _p2(s0); s1 = _p2(s1)
		if vec_equals_2d(p, s0):
			return PointInSimplex.ON_VERT0
		if vec_equals_2d(p, s1):
			return PointInSimplex.ON_VERT1
		if not self.points_are_colinear_2d(s0, s1, p):
			return _OUT
		return _IN if _strictly_between(p, s0, s1, 2) else _OUT

	def point_in_segment_3d(self, p, s0, s1) -> PointInSimplex:
		p = _p3(p); s0 = _p3(s0); s1 = _p3(s1)
		if vec_equals_3d(p, s0):
			return PointInSimplex.ON_VERT0
		if vec_equals_3d(p, s1):
			return PointInSimplex.ON_VERT1
		if not self.points_are_colinear_3d(s0, s1, p):
			return _OUT
		return _IN if _strictly_between(p, s0, s1, 3) else _OUT

	def point_in_triangle_2d(self, p, t0, t1, t2) -> PointInSimplex:
		p = _p2(p)
		t = (_p2(t0), _p2(t1), _p2(t2))
		for i in range(3):
			if vec_equals_2d(p, t[i]):
				return PointInSimplex.on_vert(i)
		for i, (a, b) in enumerate(TRI_EDGES):
			if self.point_in_segment_2d(p, t[a], t[b]) == _IN:
				return PointInSimplex.on_edge(i)
		signs = [_sign(self.orient2d(t[a], t[b], p)) for a, b in TRI_EDGES]
		if signs[0] == signs[1] == signs[2] != 0:
			return _IN
		return _OUT

	def point_in_triangle_3d(self, p, t0, t1, t2) -> PointInSimplex:
		p = _p3(p)
		t = (_p3(t0), _p3(t1), _p3(t2))
		for i in range(3):
			if vec_equals_3d(p, t[i]):
				return PointInSimplex.on_vert(i)
		for i, (a, b) in enumerate(TRI_EDGES):
			if self.point_in_segment_3d(p, t[a], t[b]) == _IN:
				return PointInSimplex.on_edge(i)
		if not self.points_are_coplanar_3d(t[0], t[1], t[2], p):
			return _OUT
		axis = self._dominant_axis(*t)
		if axis is None:
			return _OUT
		q = _drop(p, axis)
		tp = [_drop(v, axis) for v in t]
		signs = [_sign(self.orient2d(tp[a], tp[b], q)) for a, b in TRI_EDGES]
		if signs[0] == signs[1] == signs[2] != 0:
			return _IN
		return _OUT

	def point_in_tet(self, p, t0, t1, t2, t3) -> PointInSimplex:
		p = _p3(p)
		t = (_p3(t0), _p3(t1), _p3(t2), _p3(t3))
		for i in range(4):
			if vec_equals_3d(p, t[i]):
				return PointInSimplex.on_vert(i)
		for i, (a, b) in enumerate(TET_EDGES):
			if self.point_in_segment_3d(p, t[a], t[b]) == _IN:
				return PointInSimplex.on_edge(i)
		for i, (a, b, c) in enumerate(TET_FACES):
			if self.point_in_triangle_3d(p, t[a], t[b], t[c]) == _IN:
				return PointInSimplex.on_face(i)
		signs = [_sign(self.orient3d(t[a], t[b], t[c], p)) for a, b, c in TET_FACES]
		if signs[0] == signs[1] == signs[2] == signs[3] != 0:
			return _IN
		return _OUT

	# ------------------------------------------------------------------
	# Segment / segment
	# ------------------------------------------------------------------
	def _colinear_segments(self, s00, s01, s10, s11, eq, in_seg):
		pairs = ((s00, s10, s01, s11), (s00, s11, s01, s10), (s01, s10, s00, s11), (s01, s11, s00, s10))
		for x, y, other0, other1 in pairs:
			if eq(x, y):
				if in_seg(other0, s10, s11) == _IN or in_seg(other1, s00, s01) == _IN:
					return _OVL
				return _SC
		if (in_seg(s00, s10, s11) == _IN or in_seg(s01, s10, s11) == _IN
				or in_seg(s10, s00, s01) == _IN or in_seg(s11, s00, s01) == _IN):
			return _OVL
		return _DNI

	def _segment_segment_2d(self, s00, s01, s10, s11) -> SimplexIntersection:
		if ((vec_equals_2d(s00, s10) and vec_equals_2d(s01, s11))
				or (vec_equals_2d(s00, s11) and vec_equals_2d(s01, s10))):
			return _SC
		d00 = _sign(self.orient2d(s10, s11, s00))
		d01 = _sign(self.orient2d(s10, s11, s01))
		d10 = _sign(self.orient2d(s00, s01, s10))
		d11 = _sign(self.orient2d(s00, s01, s11))
		if d00 * d01 > 0 or d10 * d11 > 0:
			return _DNI
		if d00 == 0 and d01 == 0:
			return self._colinear_segments(s00, s01, s10, s11, vec_equals_2d, self.point_in_segment_2d)
		shared = (vec_equals_2d(s00, s10) or vec_equals_2d(s00, s11)
				  or vec_equals_2d(s01, s10) or vec_equals_2d(s01, s11))
		return _SC if shared else _INT

	def segment_segment_intersect_2d(self, s00, s01, s10, s11) -> SimplexIntersection:
		s00 = _p2(s00); s01 = _p2(s01); s10 = _p2(s10); s11 = _p2(s11)
		self._require(vec_equals_2d(s00, s01) or vec_equals_2d(s10, s11), 'segment')
		return self._segment_segment_2d(s00, s01, s10, s11)

	def _segment_segment_3d(self, s00, s01, s10, s11) -> SimplexIntersection:
		if ((vec_equals_3d(s00, s10) and vec_equals_3d(s01, s11))
				or (vec_equals_3d(s00, s11) and vec_equals_3d(s01, s10))):
			return _SC
		if not self.points_are_coplanar_3d(s00, s01, s10, s11):
			return _DNI
		col10 = self.points_are_colinear_3d(s00, s01, s10)
		col11 = self.points_are_colinear_3d(s00, s01, s11)
		if col10 and col11:
			return self._colinear_segments(s00, s01, s10, s11, vec_equals_3d, self.point_in_segment_3d)
		axis = self._dominant_axis(s00, s01, s11 if col10 else s10)
		return self._segment_segment_2d(_drop(s00, axis), _drop(s01, axis),
										_drop(s10, axis), _drop(s11, axis))

	def segment_segment_intersect_3d(self, s00, s01, s10, s11) -> SimplexIntersection:
		s00 = _p3(s00); s01 = _p3(s01); s10 = _p3(s10); s11 = _p3(s11)
		self._require(vec_equals_3d(s00, s01) or vec_equals_3d(s10, s11), 'segment')
		return self._segment_segment_3d(s00, s01, s10, s11)

	# ------------------------------------------------------------------
	# Segment / triangle
	# ------------------------------------------------------------------
	def _segment_triangle_2d(self, s0, s1, t) -> SimplexIntersection:
		sh0 = any(vec_equals_2d(s0, v) for v in t)
		sh1 = any(vec_equals_2d(s1, v) for v in t)
		if sh0 and sh1:
			return _SC
		if sh0 or sh1:
			free = s1 if sh0 else s0
			if self.point_in_triangle_2d(free, *t) != _OUT:
				return _INT
			for a, b in TRI_EDGES:
				if self._segment_segment_2d(s0, s1, t[a], t[b]) in (_INT, _OVL):
					return _INT
			return _SC
		if self.point_in_triangle_2d(s0, *t) != _OUT or self.point_in_triangle_2d(s1, *t) != _OUT:
			return _INT
		for a, b in TRI_EDGES:
			if self._segment_segment_2d(s0, s1, t[a], t[b]) != _DNI:
				return _INT
		return _DNI

	def segment_triangle_intersect_2d(self, s0, s1, t0, t1, t2) -> SimplexIntersection:
		s0 = _p2(s0); s1 = _p2(s1)
		t = (_p2(t0), _p2(t1), _p2(t2))
		self._require(vec_equals_2d(s0, s1), 'segment')
		self._require(self.triangle_is_degenerate_2d(*t), 'triangle')
		return self._segment_triangle_2d(s0, s1, t)

	def _segment_triangle_3d(self, s0, s1, t) -> SimplexIntersection:
		sh0 = any(vec_equals_3d(s0, v) for v in t)
		sh1 = any(vec_equals_3d(s1, v) for v in t)
		if sh0 and sh1:
			return _SC
		o0 = _sign(self.orient3d(t[0], t[1], t[2], s0))
		o1 = _sign(self.orient3d(t[0], t[1], t[2], s1))
		if o0 * o1 > 0:
			return _DNI
		if o0 == 0 and o1 == 0:
			axis = self._dominant_axis(*t)
			return self._segment_triangle_2d(_drop(s0, axis), _drop(s1, axis),
											 tuple(_drop(v, axis) for v in t))
		if sh0 or sh1:
			# the segment leaves the plane right at the shared vertex
			return _SC
		if o0 == 0 or o1 == 0:
			on_plane = s0 if o0 == 0 else s1
			return _DNI if self.point_in_triangle_3d(on_plane, *t) == _OUT else _INT
		v = [_sign(self.orient3d(s0, s1, t[a], t[b])) for a, b in TRI_EDGES]
		if (1 in v) and (-1 in v):
			return _DNI
		return _INT

	def segment_triangle_intersect_3d(self, s0, s1, t0, t1, t2) -> SimplexIntersection:
		s0 = _p3(s0); s1 = _p3(s1)
		t = (_p3(t0), _p3(t1), _p3(t2))
		self._require(vec_equals_3d(s0, s1), 'segment')
		self._require(self.triangle_is_degenerate_3d(*t), 'triangle')
		return self._segment_triangle_3d(s0, s1, t)

	# ------------------------------------------------------------------
	# Segment / tet
	# ------------------------------------------------------------------
	def segment_tet_intersect_3d(self, s0, s1, t0, t1, t2, t3) -> SimplexIntersection:
		s0 = _p3(s0); s1 = _p3(s1)
		t = (_p3(t0), _p3(t1), _p3(t2), _p3(t3))
		self._require(vec_equals_3d(s0, s1), 'segment')
		self._require(self.tet_is_degenerate(*t), 'tetrahedron')
		sh0 = any(vec_equals_3d(s0, v) for v in t)
		sh1 = any(vec_equals_3d(s1, v) for v in t)
		if sh0 and sh1:
			return _SC
		for endpoint in (s0, s1):
			loc = self.point_in_tet(endpoint, *t)
			if loc == _IN or loc.dimension in (1, 2):
				return _INT
		touches = sh0 or sh1
		for a, b, c in TET_FACES:
			res = self._segment_triangle_3d(s0, s1, (t[a], t[b], t[c]))
			if res == _INT:
				return _INT
			if res == _SC:
				touches = True
		return _SC if touches else _DNI

	# ------------------------------------------------------------------
	# Triangle / triangle
	# ------------------------------------------------------------------
	@staticmethod
	def _shared_pairs(T0, T1, eq):
		return [(i, j) for i in range(3) for j in range(3) if eq(T0[i], T1[j])]

	def _triangle_triangle_2d(self, T0, T1) -> SimplexIntersection:
		shared = self._shared_pairs(T0, T1, vec_equals_2d)
		if len(shared) >= 3:
			return _SC
		if len(shared) == 2:
			i_free = ({0, 1, 2} - {i for i, _ in shared}).pop()
			j_free = ({0, 1, 2} - {j for _, j in shared}).pop()
			a = T0[shared[0][0]]; b = T0[shared[1][0]]
			o0 = _sign(self.orient2d(a, b, T0[i_free]))
			o1 = _sign(self.orient2d(a, b, T1[j_free]))
			return _SC if o0 * o1 < 0 else _INT
		if len(shared) == 1:
			i_s, j_s = shared[0]
			for i in range(3):
				if i != i_s and self.point_in_triangle_2d(T0[i], *T1) != _OUT:
					return _INT
			for j in range(3):
				if j != j_s and self.point_in_triangle_2d(T1[j], *T0) != _OUT:
					return _INT
			for a0, b0 in TRI_EDGES:
				for a1, b1 in TRI_EDGES:
					if self._segment_segment_2d(T0[a0], T0[b0], T1[a1], T1[b1]) in (_INT, _OVL):
						return _INT
			return _SC
		for v in T0:
			if self.point_in_triangle_2d(v, *T1) != _OUT:
				return _INT
		for v in T1:
			if self.point_in_triangle_2d(v, *T0) != _OUT:
				return _INT
		for a0, b0 in TRI_EDGES:
			for a1, b1 in TRI_EDGES:
				if self._segment_segment_2d(T0[a0], T0[b0], T1[a1], T1[b1]) != _DNI:
					return _INT
		return _DNI

	def triangle_triangle_intersect_2d(self, t00, t01, t02, t10, t11, t12) -> SimplexIntersection:
		T0 = (_p2(t00), _p2(t01), _p2(t02))
		T1 = (_p2(t10), _p2(t11), _p2(t12))
		self._require(self.triangle_is_degenerate_2d(*T0) or self.triangle_is_degenerate_2d(*T1), 'triangle')
		return self._triangle_triangle_2d(T0, T1)

	def triangle_triangle_intersect_3d(self, t00, t01, t02, t10, t11, t12) -> SimplexIntersection:
		T0 = (_p3(t00), _p3(t01), _p3(t02))
		T1 = (_p3(t10), _p3(t11), _p3(t12))
		self._require(self.triangle_is_degenerate_3d(*T0) or self.triangle_is_degenerate_3d(*T1), 'triangle')
		shared = self._shared_pairs(T0, T1, vec_equals_3d)
		if len(shared) >= 3:
			return _SC
		o1 = [_sign(self.orient3d(T0[0], T0[1], T0[2], v)) for v in T1]
		if o1[0] == o1[1] == o1[2] != 0:
			return _DNI
		o0 = [_sign(self.orient3d(T1[0], T1[1], T1[2], v)) for v in T0]
		if o0[0] == o0[1] == o0[2] != 0:
			return _DNI
		if o1 == [0, 0, 0]:
			axis = self._dominant_axis(*T0)
			return self._triangle_triangle_2d(tuple(_drop(v, axis) for v in T0),
											  tuple(_drop(v, axis) for v in T1))
		if len(shared) == 2:
			return _SC
		for a, b in TRI_EDGES:
			if self._segment_triangle_3d(T0[a], T0[b], T1) == _INT:
				return _INT
			if self._segment_triangle_3d(T1[a], T1[b], T0) == _INT:
				return _INT
		return _SC if shared else _DNI


# ----------------------------------------------------------------------------
# Default kernels and module level shortcuts
# ----------------------------------------------------------------------------

_KERNELS = {}


def kernel_for(mode: str = 'inexact') -> PredicateKernel:
	"""Return a shared kernel for ``mode`` (kernels are stateless, so sharing is safe)."""
	if mode not in _KERNELS:
		_KERNELS[mode] = PredicateKernel(PredicateConfig(mode=mode))
	return _KERNELS[mode]


_DEFAULT = kernel_for('inexact')

orient2d = _DEFAULT.orient2d
orient3d = _DEFAULT.orient3d
incircle = _DEFAULT.incircle
insphere = _DEFAULT.insphere
points_are_colinear_2d = _DEFAULT.points_are_colinear_2d
points_are_colinear_3d = _DEFAULT.points_are_colinear_3d
points_are_coplanar_3d = _DEFAULT.points_are_coplanar_3d
point_in_segment_2d = _DEFAULT.point_in_segment_2d
point_in_segment_3d = _DEFAULT.point_in_segment_3d
point_in_triangle_2d = _DEFAULT.point_in_triangle_2d
point_in_triangle_3d = _DEFAULT.point_in_triangle_3d
point_in_tet = _DEFAULT.point_in_tet
segment_segment_intersect_2d = _DEFAULT.segment_segment_intersect_2d
segment_segment_intersect_3d = _DEFAULT.segment_segment_intersect_3d
segment_triangle_intersect_2d = _DEFAULT.segment_triangle_intersect_2d
segment_triangle_intersect_3d = _DEFAULT.segment_triangle_intersect_3d
segment_tet_intersect_3d = _DEFAULT.segment_tet_intersect_3d
triangle_triangle_intersect_2d = _DEFAULT.triangle_triangle_intersect_2d
triangle_triangle_intersect_3d = _DEFAULT.triangle_triangle_intersect_3d
segment_is_degenerate_2d = PredicateKernel.segment_is_degenerate_2d
segment_is_degenerate_3d = PredicateKernel.segment_is_degenerate_3d
triangle_is_degenerate_2d = _DEFAULT.triangle_is_degenerate_2d
triangle_is_degenerate_3d = _DEFAULT.triangle_is_degenerate_3d
tet_is_degenerate = _DEFAULT.tet_is_degenerate
