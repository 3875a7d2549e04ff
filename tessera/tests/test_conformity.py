import numpy as np

from tessera.core.conformity import (build_edge_to_face_map, count_boundary_loops, check_mesh_conformity,
                                     nonmanifold_vertices, simulate_compaction_and_check)
from tessera.core.primitives import build_annulus_trimesh, build_grid_trimesh


def test_grid_is_conforming():
    mesh = build_grid_trimesh(3, 3)
    ok, msgs = check_mesh_conformity(mesh.positions, mesh.faces)
    assert ok, msgs


def test_duplicate_and_nonmanifold_faces_detected():
    pts = np.array([[0, 0], [1, 0], [0, 1], [1, 1], [0.5, -1]], dtype=float)
    ok, msgs = check_mesh_conformity(pts, [(0, 1, 2), (1, 0, 2)])
    assert not ok
    assert any('Duplicate' in m for m in msgs)
    pts3 = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1]], dtype=float)
    ok, msgs = check_mesh_conformity(pts3, [(0, 1, 2), (1, 0, 3), (0, 1, 4)])
    assert not ok
    assert any('Non-manifold edge' in m for m in msgs)


def test_inconsistent_orientation_and_degenerate_faces():
    pts = np.array([[0, 0], [1, 0], [0, 1], [2, 0], [1, 1]], dtype=float)
    ok, msgs = check_mesh_conformity(pts, [(0, 1, 2), (1, 2, 4)])
    assert not ok and 'inconsistent orientation' in msgs[0]
    ok, msgs = check_mesh_conformity(pts, [(0, 1, 2), (2, 1, 4)])
    assert ok, msgs
    ok, msgs = check_mesh_conformity(pts, [(0, 1, 3)])
    assert not ok and 'near-zero area' in msgs[0]


def test_boundary_loops():
    annulus = build_annulus_trimesh(8)
    assert count_boundary_loops(build_edge_to_face_map(annulus.faces)) == 2
    ok, msgs = check_mesh_conformity(annulus.positions, annulus.faces, reject_boundary_loop_increase=1)
    assert not ok
    assert 'Boundary loops increased' in msgs[-1]


def test_bowtie_vertex():
    pts = np.array([[0, 0], [1, 0], [1, 1], [-1, 0], [-1, -1]], dtype=float)
    faces = [(0, 1, 2), (0, 3, 4)]
    assert nonmanifold_vertices(faces) == [0]


def test_simulated_compaction_drops_orphans():
    pts = np.array([[0, 0], [1, 0], [0, 1], [9, 9]], dtype=float)
    ok, msgs, old_to_new = simulate_compaction_and_check(pts, [(0, 1, 2)])
    assert ok, msgs
    assert list(old_to_new) == [0, 1, 2, -1]
