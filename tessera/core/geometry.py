"""Vector geometry helpers and the Plane / Ray value types.

Everything here works on plain coordinate tuples or numpy arrays; nothing
depends on a mesh. Sign decisions that must be robust go through a
:class:`~tessera.core.predicates.PredicateKernel`.
"""
from __future__ import annotations
import math
import numpy as np

from .constants import EPS_LENGTH
from .errors import DegenerateInputError

__all__ = [
	'Plane', 'Ray', 'as_point3', 'triangle_area',
	'polygon_signed_area', 'newell_vector', 'polygon_normal', 'face_centroid', 'angle_between',
	'bbox', 'bbox_diagonal',
]


def as_point3(p):
	"""Return ``p`` as a float64 3-vector (2D input gets z = 0)."""
	arr = np.asarray(p, dtype=np.float64).reshape(-1)
	if arr.shape[0] == 2:
		return np.array([arr[0], arr[1], 0.0])
	if arr.shape[0] != 3:
		raise ValueError(f"expected a 2D or 3D point, got shape {np.shape(p)}")
	return arr


def _normalized(v, what):
	v = as_point3(v)
	n = float(np.linalg.norm(v))
	if n <= EPS_LENGTH:
		raise DegenerateInputError(f"{what} has zero length")
	return v / n


class Plane:
	"""Plane through ``point`` with unit ``normal``."""

	__slots__ = ('point', 'normal')

	def __init__(self, point, normal):
		self.point = as_point3(point)
		self.normal = _normalized(normal, 'plane normal')

	@classmethod
	def from_points(cls, a, b, c):
		a = as_point3(a); b = as_point3(b); c = as_point3(c)
		return cls(a, np.cross(b - a, c - a))

	@property
	def offset(self):
		"""Scalar d of the implicit form n.x = d."""
		return float(self.normal.dot(self.point))

	def signed_distance(self, p) -> float:
		return float(self.normal.dot(as_point3(p) - self.point))

	def project(self, p):
		p = as_point3(p)
		return p - self.signed_distance(p) * self.normal

	def _frame(self):
		# any two unit vectors spanning the plane
		n = self.normal
		helper = np.array([1.0, 0.0, 0.0]) if abs(n[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
		u = np.cross(n, helper)
		u /= np.linalg.norm(u)
		v = np.cross(n, u)
		return u, v

	def side(self, p, predicates=None) -> int:
		"""+1 if ``p`` is on the side the normal points to, -1 on the other, 0 on the plane.

		With a predicate kernel the decision is an orient3d on three plane points,
		so an exact kernel gives an exact answer for the stored plane points.
		"""
		if predicates is None:
			d = self.signed_distance(p)
			return (d > 0) - (d < 0)
		u, v = self._frame()
		a = self.point; b = self.point + u; c = self.point + v
		# orient3d(a,b,c,p) > 0 means p lies opposite to the normal of the CCW triangle (a,b,c)
		o = predicates.orient3d(a, b, c, as_point3(p))
		return (o < 0) - (o > 0)

	def __repr__(self):
		return f"Plane(point={self.point.tolist()}, normal={self.normal.tolist()})"


class Ray:
	"""Half-line starting at ``origin`` along the unit vector ``direction``."""

	__slots__ = ('origin', 'direction')

	def __init__(self, origin, direction):
		self.origin = as_point3(origin)
		self.direction = _normalized(direction, 'ray direction')

	def begin(self):
		return self.origin

	def dir(self):
		return self.direction

	def point_at(self, t: float):
		return self.origin + float(t) * self.direction

	def to_planes(self):
		"""Two planes whose intersection line supports the ray."""
		dx, dy, dz = self.direction
		candidates = (
			np.array([-dy, dx, 0.0]),
			np.array([-dz, 0.0, dx]),
			np.array([0.0, -dz, dy]),
		)
		planes = []
		for n in candidates:
			if np.linalg.norm(n) > 0.0:
				planes.append(Plane(self.origin, n))
			if len(planes) == 2:
				break
		return planes

	def on_positive_half_space(self, p) -> bool:
		return float((as_point3(p) - self.origin).dot(self.direction)) >= 0.0

	def dist_to_point(self, p) -> float:
		p = as_point3(p)
		t = float((p - self.origin).dot(self.direction))
		if t <= 0.0:
			return float(np.linalg.norm(p - self.origin))
		return float(np.linalg.norm(p - self.point_at(t)))

	def __repr__(self):
		return f"Ray(origin={self.origin.tolist()}, direction={self.direction.tolist()})"


def triangle_area(p0, p1, p2):
	"""Signed area for 2D input (positive when CCW), unsigned area in 3D."""
	p0 = np.asarray(p0, dtype=np.float64); p1 = np.asarray(p1, dtype=np.float64)
	p2 = np.asarray(p2, dtype=np.float64)
	if p0.shape[-1] == 2:
		e1 = p1 - p0; e2 = p2 - p0
		return 0.5 * float(e1[0] * e2[1] - e1[1] * e2[0])
	return 0.5 * float(np.linalg.norm(np.cross(p1 - p0, p2 - p0)))


def polygon_signed_area(poly):
	"""Shoelace area of a 2D polygon; positive for CCW."""
	P = np.asarray(poly, dtype=np.float64)
	if P.shape[0] < 3:
		return 0.0
	# local origin keeps the cross products small far from (0, 0)
	P = P[:, :2] - P[0, :2]
	x = P[:, 0]; y = P[:, 1]
	return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def newell_vector(poly):
	"""Unnormalized Newell vector; its length is twice the area of a planar polygon."""
	P = np.array([as_point3(p) for p in poly])
	if P.shape[0] == 0:
		return np.zeros(3)
	P = P - P[0]
	Q = np.roll(P, -1, axis=0)
	return np.array([
		np.sum((P[:, 1] - Q[:, 1]) * (P[:, 2] + Q[:, 2])),
		np.sum((P[:, 2] - Q[:, 2]) * (P[:, 0] + Q[:, 0])),
		np.sum((P[:, 0] - Q[:, 0]) * (P[:, 1] + Q[:, 1])),
	])


def polygon_normal(poly):
	"""Newell normal (unit length; zero vector for degenerate polygons)."""
	n = newell_vector(poly)
	length = float(np.linalg.norm(n))
	if length <= EPS_LENGTH:
		return np.zeros(3)
	return n / length


def face_centroid(poly):
	return np.asarray(poly, dtype=np.float64).mean(axis=0)


def angle_between(u, v) -> float:
	"""Angle in radians between two vectors (0 if either is null)."""
	u = as_point3(u); v = as_point3(v)
	nu = float(np.linalg.norm(u)); nv = float(np.linalg.norm(v))
	if nu <= EPS_LENGTH or nv <= EPS_LENGTH:
		return 0.0
	c = float(np.dot(u, v)) / (nu * nv)
	return math.acos(max(-1.0, min(1.0, c)))


def bbox(points):
	"""Axis aligned bounding box as (min_corner, max_corner)."""
	P = np.asarray(points, dtype=np.float64)
	if P.size == 0:
		raise ValueError("bounding box of an empty point set")
	return P.min(axis=0), P.max(axis=0)


def bbox_diagonal(points) -> float:
	lo, hi = bbox(points)
	return float(np.linalg.norm(hi - lo))
