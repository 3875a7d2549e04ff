import math

import numpy as np
import pytest

from tessera.core.errors import DegenerateInputError
from tessera.core.geometry import (Plane, Ray, angle_between, bbox_diagonal, newell_vector,
                                   polygon_normal, polygon_signed_area, triangle_area)
from tessera.core.predicates import kernel_for


def test_triangle_area_signed_in_2d():
    assert triangle_area((0, 0), (1, 0), (0, 1)) == pytest.approx(0.5)
    assert triangle_area((0, 0), (0, 1), (1, 0)) == pytest.approx(-0.5)
    assert triangle_area((0, 0, 0), (0, 1, 0), (1, 0, 0)) == pytest.approx(0.5)


def test_polygon_area_and_normal():
    square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float)
    assert polygon_signed_area(square) == pytest.approx(1.0)
    assert polygon_signed_area(square[::-1]) == pytest.approx(-1.0)
    quad3 = np.array([[0, 0, 2], [1, 0, 2], [1, 1, 2], [0, 1, 2]], dtype=float)
    assert np.allclose(polygon_normal(quad3), [0, 0, 1])
    assert np.linalg.norm(newell_vector(quad3)) == pytest.approx(2.0)


def test_polygon_area_far_from_origin():
    square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float) + 1e8
    assert polygon_signed_area(square) == pytest.approx(1.0)
    quad3 = np.array([[0, 0, 2], [1, 0, 2], [1, 1, 2], [0, 1, 2]], dtype=float) + 1e8
    assert np.linalg.norm(newell_vector(quad3)) == pytest.approx(2.0)
    assert np.allclose(polygon_normal(quad3), [0, 0, 1])


def test_angle_between():
    assert angle_between((1, 0, 0), (0, 1, 0)) == pytest.approx(math.pi / 2)
    assert angle_between((1, 0), (-1, 0)) == pytest.approx(math.pi)
    assert angle_between((0, 0, 0), (1, 0, 0)) == 0.0


def test_plane_side_and_projection():
    plane = Plane((0, 0, 1), (0, 0, 2))
    assert np.allclose(plane.normal, [0, 0, 1])
    assert plane.offset == pytest.approx(1.0)
    assert plane.side((0, 0, 3)) == 1
    assert plane.side((5, 5, 0)) == -1
    assert plane.side((7, -2, 1)) == 0
    pk = kernel_for('exact')
    assert plane.side((0, 0, 3), predicates=pk) == 1
    assert plane.side((5, 5, 0), predicates=pk) == -1
    assert np.allclose(plane.project((3, 4, 9)), [3, 4, 1])


def test_plane_from_points_follows_ccw_normal():
    plane = Plane.from_points((0, 0, 0), (1, 0, 0), (0, 1, 0))
    assert np.allclose(plane.normal, [0, 0, 1])
    with pytest.raises(DegenerateInputError):
        Plane.from_points((0, 0, 0), (1, 1, 1), (2, 2, 2))


def test_ray_queries():
    ray = Ray((0, 0, 0), (2, 0, 0))
    assert np.allclose(ray.dir(), [1, 0, 0])
    assert np.allclose(ray.point_at(3.0), [3, 0, 0])
    assert ray.on_positive_half_space((1, 5, 0))
    assert not ray.on_positive_half_space((-1, 0, 0))
    assert ray.dist_to_point((4, 3, 0)) == pytest.approx(3.0)
    assert ray.dist_to_point((-3, 4, 0)) == pytest.approx(5.0)
    planes = ray.to_planes()
    assert len(planes) == 2
    for plane in planes:
        assert plane.signed_distance(ray.point_at(7.0)) == pytest.approx(0.0)


def test_bbox_diagonal():
    assert bbox_diagonal([[0, 0, 0], [1, 2, 2]]) == pytest.approx(3.0)
