import numpy as np
import pytest

from tessera.core.config import EditorConfig
from tessera.core.editor import MeshEditor
from tessera.core.errors import InvalidElementError, MeshCapabilityError, TopologyInvariantViolation
from tessera.core.mesh import Mesh
from tessera.core.primitives import (build_annulus_trimesh, build_grid_quadmesh, build_grid_trimesh,
                                     build_random_delaunay, build_single_tet, build_tet_block)


def test_split_face_fans_around_new_vertex():
    mesh = build_grid_quadmesh(2, 2)
    editor = MeshEditor(mesh)
    nv, nf = mesh.num_verts(), mesh.num_faces()
    v = editor.split(0)
    assert v == nv
    assert mesh.num_faces() == nf + 3
    assert mesh.face_contains_vert(0, v)
    assert np.allclose(mesh.vert(v), [0.25, 0.25])
    assert sorted(mesh.adj_v2f(v)) == [0, nf, nf + 1, nf + 2]
    assert mesh.check_adjacency() == []
    assert editor.stats_summary()['split']['success'] == 1


def test_split_face_outside_point_is_rejected():
    mesh = build_grid_trimesh(1, 1)
    editor = MeshEditor(mesh)
    before = mesh.counts()
    faces_before = mesh.faces
    with pytest.raises(TopologyInvariantViolation) as info:
        editor.split_face(0, point=(2.0, 2.0))
    assert info.value.reason == 'geometry'
    assert mesh.counts() == before
    assert mesh.faces == faces_before
    stats = editor.stats_summary()['split']
    assert stats['attempts'] == 1 and stats['fail'] == 1 and stats['geometry_rejects'] == 1


def test_split_edge_keeps_marks_on_both_halves():
    mesh = build_grid_trimesh(2, 2)
    editor = MeshEditor(mesh)
    eid = mesh.edge_id(0, 1)
    editor.mark_edge(eid)
    editor.mark_edge(eid)
    nf = mesh.num_faces()
    m = editor.split_edge(eid)
    assert mesh.num_faces() == nf + 1
    assert mesh.edge_verts(eid) == (0, m)
    assert mesh.edge_is_marked(eid)
    assert mesh.edge_is_marked(mesh.edge_id(m, 1))
    assert len(mesh.marked_edge_ids()) == 2
    assert mesh.check_adjacency() == []


def test_split_edge_on_quads_inserts_vertex():
    mesh = build_grid_quadmesh(2, 2)
    editor = MeshEditor(mesh)
    eid = mesh.edge_id(1, 4)
    m = editor.split_edge(eid)
    assert mesh.num_faces() == 4
    assert len(mesh.face_verts(0)) == 5
    assert len(mesh.face_verts(1)) == 5
    assert np.allclose(mesh.vert(m), [0.5, 0.25])


def test_collapse_interior_edge():
    mesh = build_grid_trimesh(4, 4)
    editor = MeshEditor(mesh)
    eid = mesh.edge_id(6, 7)
    remap = editor.collapse_edge(eid)
    assert mesh.num_verts() == 24
    assert mesh.num_faces() == 30
    assert mesh.num_edges() == 53
    assert remap.verts[7] == -1
    assert remap.removed('verts') == [7]
    assert len(remap.removed('faces')) == 2
    assert np.allclose(mesh.vert(6), [0.375, 0.25])
    assert mesh.check_adjacency() == []


def test_collapse_rejected_on_annulus_leaves_mesh_untouched():
    mesh = build_annulus_trimesh(8)
    editor = MeshEditor(mesh)
    before = mesh.counts()
    faces_before = mesh.faces
    eid = mesh.edge_id(0, 8)
    with pytest.raises(TopologyInvariantViolation):
        editor.collapse_edge(eid)
    assert mesh.counts() == before
    assert mesh.faces == faces_before
    stats = editor.stats_summary()['collapse_edge']
    assert stats['fail'] == 1 and stats['topology_rejects'] == 1


def test_collapse_random_delaunay_keeps_conformity():
    mesh = build_random_delaunay(npts=40, seed=1)
    editor = MeshEditor(mesh)
    done = 0
    for eid in range(mesh.num_edges()):
        if eid >= mesh.num_edges():
            break
        if mesh.edge_is_boundary(eid):
            continue
        a, b = mesh.edge_verts(eid)
        if mesh.vert_is_boundary(a) or mesh.vert_is_boundary(b):
            continue
        try:
            editor.collapse_edge(eid)
            done += 1
        except TopologyInvariantViolation:
            pass
        if done == 3:
            break
    assert done > 0
    assert mesh.check_adjacency() == []
    s = editor.stats_summary()['collapse_edge']
    assert s['attempts'] == s['success'] + s['fail']


def test_collapse_is_surface_only():
    editor = MeshEditor(build_single_tet())
    with pytest.raises(MeshCapabilityError):
        editor.collapse_edge(0)


def test_split_tet_into_four():
    mesh = build_single_tet()
    editor = MeshEditor(mesh)
    v = editor.split(0)
    assert v == 4
    assert mesh.num_polys() == 4
    assert mesh.num_faces() == 10
    vols = [mesh.poly_volume(p) for p in range(4)]
    assert all(vol > 0 for vol in vols)
    assert sum(vols) == pytest.approx(1.0 / 6.0)
    assert mesh.check_adjacency() == []


def test_split_tet_outside_apex_rejected():
    mesh = build_tet_block()
    editor = MeshEditor(mesh)
    before = mesh.counts()
    with pytest.raises(TopologyInvariantViolation):
        editor.split_poly(0, point=(5.0, 5.0, 5.0))
    assert mesh.counts() == before


def test_switch_ids():
    mesh = build_grid_trimesh(2, 2)
    editor = MeshEditor(mesh)
    p0 = mesh.vert(0).copy(); p8 = mesh.vert(8).copy()
    remap = editor.switch_vert_id(0, 8)
    assert np.allclose(mesh.vert(0), p8) and np.allclose(mesh.vert(8), p0)
    assert remap.verts[0] == 8 and remap.verts[8] == 0
    f0, f5 = mesh.face_verts(0), mesh.face_verts(5)
    editor.switch_face_id(0, 5)
    assert mesh.face_verts(0) == f5 and mesh.face_verts(5) == f0
    e0, e3 = mesh.edge_verts(0), mesh.edge_verts(3)
    editor.switch_edge_id(0, 3)
    assert mesh.edge_verts(0) == e3 and mesh.edge_verts(3) == e0
    assert mesh.check_adjacency() == []
    assert editor.stats_summary()['switch_id']['success'] == 3


def test_remove_faces_and_orphans():
    mesh = build_grid_trimesh(2, 2)
    editor = MeshEditor(mesh)
    remap = editor.remove_faces([5])
    assert mesh.num_faces() == 7
    assert mesh.num_verts() == 8
    assert remap.verts[6] == -1
    assert mesh.check_adjacency() == []


def test_remove_faces_rejects_bowtie():
    mesh = build_grid_trimesh(2, 2)
    editor = MeshEditor(mesh)
    before = mesh.counts()
    with pytest.raises(TopologyInvariantViolation, match="removal rejected"):
        editor.remove_faces([0, 6])
    assert mesh.counts() == before


def test_invalid_ids_raise():
    editor = MeshEditor(build_grid_trimesh(1, 1))
    with pytest.raises(InvalidElementError):
        editor.split_face(7)
    with pytest.raises(InvalidElementError):
        editor.mark_edge(99)


def test_reset_stats_zeroes_counters():
    editor = MeshEditor(build_grid_trimesh(2, 2))
    editor.split(0)
    editor.split_edge(0)
    summary_before = editor.stats_summary()
    assert any(v['attempts'] > 0 for v in summary_before.values())
    editor.reset_stats()
    for op, stats in editor.stats_summary().items():
        assert stats['attempts'] == 0
        assert stats['success'] == 0
        assert stats['time_total'] == 0.0
    editor.reset_stats(drop_ops=True)
    assert editor.stats_summary() == {}


def test_stats_disabled():
    editor = MeshEditor(build_grid_trimesh(1, 1), config=EditorConfig(record_stats=False))
    editor.split(0)
    assert editor.stats_summary() == {}


def test_unmark_all_edges():
    mesh = build_grid_trimesh(1, 1)
    editor = MeshEditor(mesh)
    editor.set_edges_marked(range(mesh.num_edges()))
    assert len(mesh.marked_edge_ids()) == mesh.num_edges()
    editor.unmark_all_edges()
    assert mesh.marked_edge_ids() == []
    editor.mark_vert(2); editor.mark_face(1)
    assert mesh.vert_is_marked(2) and mesh.face_is_marked(1)
    editor.unmark_vert(2); editor.unmark_face(1)
    assert not mesh.vert_is_marked(2) and not mesh.face_is_marked(1)


def test_switch_poly_ids_keeps_volumes():
    mesh = build_tet_block()
    editor = MeshEditor(mesh)
    faces0, faces5 = mesh.poly_faces(0), mesh.poly_faces(5)
    vol0, vol5 = mesh.poly_volume(0), mesh.poly_volume(5)
    remap = editor.switch_poly_id(0, 5)
    assert mesh.poly_faces(0) == faces5 and mesh.poly_faces(5) == faces0
    assert mesh.poly_volume(0) == pytest.approx(vol5)
    assert mesh.poly_volume(5) == pytest.approx(vol0)
    assert remap.polys[0] == 5 and remap.polys[5] == 0
    assert mesh.check_adjacency() == []


def test_split_quad_far_from_origin():
    o = 1e8
    mesh = Mesh([(o, o), (o + 1, o), (o + 1, o + 1), (o, o + 1)], [(0, 1, 2, 3)])
    editor = MeshEditor(mesh)
    v = editor.split(0)
    assert mesh.num_faces() == 4
    assert np.allclose(mesh.vert(v), [o + 0.5, o + 0.5])
    assert sum(mesh.face_area(f) for f in range(4)) == pytest.approx(1.0)
    assert mesh.check_adjacency() == []


def test_split_children_areas_sum_to_parent():
    mesh = build_random_delaunay(npts=30, seed=4)
    editor = MeshEditor(mesh)
    rng = np.random.RandomState(2)
    for _ in range(20):
        fid = int(rng.randint(mesh.num_faces()))
        f = mesh.face_verts(fid)
        area = mesh.face_area(fid)
        w = rng.rand(len(f)) + 0.1
        point = (w[:, None] * mesh.positions[list(f)]).sum(axis=0) / w.sum()
        nv, nf = mesh.num_verts(), mesh.num_faces()
        editor.split_face(fid, point=point)
        assert mesh.num_verts() == nv + 1
        assert mesh.num_faces() == nf + len(f) - 1
        children = [fid] + list(range(nf, mesh.num_faces()))
        assert sum(mesh.face_area(c) for c in children) == pytest.approx(area, rel=1e-9)
    assert mesh.check_adjacency() == []


def test_split_edge_halves_keep_area():
    mesh = build_grid_trimesh(2, 2)
    editor = MeshEditor(mesh)
    eid = mesh.edge_id(4, 8)
    assert eid >= 0
    incident = list(mesh.adj_e2f(eid))
    before = sum(mesh.face_area(f) for f in incident)
    nf = mesh.num_faces()
    editor.split_edge(eid, point=None)
    after = sum(mesh.face_area(f) for f in incident + list(range(nf, mesh.num_faces())))
    assert mesh.num_faces() == nf + len(incident)
    assert after == pytest.approx(before)
