"""Local mesh operations (split, edge split, collapse, re-id, removal, compaction).

Every ``op_*`` function receives the editor, builds the candidate
connectivity in local arrays, validates it and only then hands it to
``Mesh._commit``. A rejected edit raises and leaves the mesh untouched.
"""
from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .conformity import (build_edge_to_face_map, check_mesh_conformity, count_boundary_loops,
                         simulate_compaction_and_check)
from .errors import MeshCapabilityError, TopologyInvariantViolation
from .geometry import newell_vector, polygon_signed_area
from .tables import normalize_edge


__all__ = [
    'IndexRemap',
    'op_split_face',
    'op_split_poly',
    'op_split_edge',
    'op_collapse_edge',
    'op_switch_vert_id',
    'op_switch_edge_id',
    'op_switch_face_id',
    'op_switch_poly_id',
    'op_remove_faces',
    'op_compact',
]


@dataclass
class IndexRemap:
    """Old-to-new id arrays produced by renumbering operations (-1 marks removed ids)."""
    verts: np.ndarray
    edges: np.ndarray
    faces: np.ndarray
    polys: np.ndarray

    @classmethod
    def identity(cls, mesh):
        return cls(np.arange(mesh.num_verts()), np.arange(mesh.num_edges()),
                   np.arange(mesh.num_faces()), np.arange(mesh.num_polys()))

    def removed(self, kind: str):
        return [int(i) for i in np.flatnonzero(getattr(self, kind) < 0)]


# ------------------------
# Internal helpers
# ------------------------
def _surface_only(mesh, op):
    if mesh.is_volume:
        raise MeshCapabilityError(f"{op} is only available on surface meshes")


def _point_for(mesh, point, default):
    if point is None:
        return np.asarray(default, dtype=np.float64)
    p = np.asarray(point, dtype=np.float64).reshape(-1)
    if p.shape[0] != mesh.dim:
        raise ValueError(f"point has {p.shape[0]} coordinates, mesh vertices have {mesh.dim}")
    return p


def _sign(x):
    return (x > 0) - (x < 0)


def _face_orientation(editor, pts):
    """Orientation witness of a face: a sign in 2D, a Newell vector in 3D."""
    if pts.shape[1] == 2:
        if len(pts) == 3:
            return _sign(editor.predicates.orient2d(pts[0], pts[1], pts[2]))
        return _sign(polygon_signed_area(pts))
    return newell_vector(pts)


def _same_orientation(ref, cur):
    if isinstance(ref, int):
        return ref != 0 and ref == cur
    return float(np.dot(ref, cur)) > 0.0


def _check_children(editor, verts, parent, children, op):
    """Reject children that are inverted w.r.t. ``parent`` or smaller than the area threshold."""
    if not editor.config.check_geometry:
        return
    ref = _face_orientation(editor, verts[list(parent)])
    for child in children:
        area = 0.5 * float(np.linalg.norm(newell_vector(verts[list(child)])))
        if area < editor.config.min_face_area:
            raise TopologyInvariantViolation(
                f"{op}: child face {tuple(child)} would be degenerate (area {area:.3e})",
                op=op, reason='geometry')
    if verts.shape[1] == 2:
        # children of splits are triangles: one batched orientation pass
        T = np.asarray(children, dtype=np.int64)
        signs = np.sign(editor.predicates.orient2d_batch(verts[T[:, 0]], verts[T[:, 1]], verts[T[:, 2]]))
        cur = [int(s) for s in signs]
    else:
        cur = [_face_orientation(editor, verts[list(child)]) for child in children]
    for child, orientation in zip(children, cur):
        if not _same_orientation(ref, orientation):
            raise TopologyInvariantViolation(
                f"{op}: child face {tuple(child)} would be inverted", op=op, reason='geometry')


def _same_cycle(f, g):
    if len(f) != len(g) or f[0] not in g:
        return False
    k = g.index(f[0])
    return tuple(g[k:] + g[:k]) == tuple(f)


def _remap_keys(keys, vmap):
    out = []
    for a, b in keys:
        na, nb = int(vmap[a]), int(vmap[b])
        if na < 0 or nb < 0 or na == nb:
            continue
        out.append(normalize_edge(na, nb))
    return out


def _edge_remap(old_edges, vmap, new_index):
    remap = np.full(len(old_edges), -1, dtype=np.int64)
    for i, (a, b) in enumerate(old_edges):
        na, nb = int(vmap[a]), int(vmap[b])
        if na < 0 or nb < 0 or na == nb:
            continue
        remap[i] = new_index.get(normalize_edge(na, nb), -1)
    return remap


# ------------------------
# Split
# ------------------------
def op_split_face(editor, fid, point=None):
    """Fan-split face ``fid`` around a new vertex (default: the face centroid).

    The first child keeps ``fid``; the others are appended. Returns the new
    vertex id. Boundary edges of the face keep their marks, the new spokes are
    unmarked; children inherit the face mark and label.
    """
    mesh = editor.mesh
    _surface_only(mesh, 'split_face')
    fid = mesh._fid(fid)
    f = mesh._faces[fid]
    n = len(f)
    V = mesh._verts
    p = _point_for(mesh, point, V[list(f)].mean(axis=0))
    new_v = V.shape[0]
    cand_verts = np.vstack([V, p[None, :]])
    children = [(f[k], f[(k + 1) % n], new_v) for k in range(n)]
    _check_children(editor, cand_verts, f, children, 'split')
    faces = list(mesh._faces)
    faces[fid] = children[0]
    faces.extend(children[1:])
    face_marks = np.concatenate([mesh._face_marks, np.full(n - 1, mesh._face_marks[fid])])
    face_labels = np.concatenate([mesh._face_labels, np.full(n - 1, mesh._face_labels[fid])])
    mesh._commit(cand_verts, faces, mesh._polys, mesh._winding,
                 face_marks=face_marks, face_labels=face_labels)
    editor.logger.debug("split face %d into %d faces (new vertex %d)", fid, n, new_v)
    return new_v


def op_split_poly(editor, pid, point=None):
    """Split poly ``pid`` into one pyramid per face, all sharing a new apex vertex."""
    mesh = editor.mesh
    pid = mesh._pid(pid)
    poly = mesh._polys[pid]
    wind = mesh._winding[pid]
    V = mesh._verts
    p = _point_for(mesh, point, V[mesh._adj['p2v'][pid]].mean(axis=0))
    pk = editor.predicates
    if editor.config.check_geometry:
        tri = np.array([mesh._faces[fid][:3] for fid in poly], dtype=np.int64)
        orient = pk.orient3d_batch(V[tri[:, 0]], V[tri[:, 1]], V[tri[:, 2]], p)
        # outward faces see interior points behind them (orient3d > 0)
        for fid, w, o in zip(poly, wind, orient):
            if o == 0 or (o > 0) != bool(w):
                raise TopologyInvariantViolation(
                    f"split: apex is not strictly inside poly {pid} (face {fid})",
                    op='split', reason='geometry')
    new_v = V.shape[0]
    cand_verts = np.vstack([V, p[None, :]])
    faces = list(mesh._faces)
    side_index = {}
    children = []
    windings = []
    for fid, w in zip(poly, wind):
        f = faces[fid]
        base = f if w else tuple(reversed(f))
        child = [fid]
        cw = [bool(w)]
        m = len(base)
        for k in range(m):
            a, b = base[k], base[(k + 1) % m]
            outward = (b, a, new_v)
            key = tuple(sorted(outward))
            sf = side_index.get(key)
            if sf is None:
                sf = len(faces)
                side_index[key] = sf
                faces.append(outward)
            child.append(sf)
            cw.append(_same_cycle(outward, faces[sf]))
        children.append(tuple(child))
        windings.append(tuple(cw))
    polys = list(mesh._polys)
    winding = list(mesh._winding)
    polys[pid] = children[0]
    winding[pid] = windings[0]
    polys.extend(children[1:])
    winding.extend(windings[1:])
    extra = len(children) - 1
    poly_labels = np.concatenate([mesh._poly_labels, np.full(extra, mesh._poly_labels[pid])])
    mesh._commit(cand_verts, faces, polys, winding, poly_labels=poly_labels)
    editor.logger.debug("split poly %d into %d polys (new vertex %d)", pid, len(children), new_v)
    return new_v


def op_split_edge(editor, eid, point=None):
    """Insert a vertex on edge ``eid`` (default: midpoint).

    Incident triangles are split in two (first half keeps the face id, second
    is appended); larger polygons just gain the vertex. The half ``(v0, new)``
    keeps the edge id, ``(new, v1)`` is appended; both inherit the edge mark.
    Returns the new vertex id.
    """
    mesh = editor.mesh
    _surface_only(mesh, 'split_edge')
    eid = mesh._eid(eid)
    a, b = mesh._edges[eid]
    V = mesh._verts
    p = _point_for(mesh, point, 0.5 * (V[a] + V[b]))
    m = V.shape[0]
    cand_verts = np.vstack([V, p[None, :]])
    faces = list(mesh._faces)
    face_marks = list(mesh._face_marks)
    face_labels = list(mesh._face_labels)
    for fid in mesh._adj['e2f'][eid]:
        f = faces[fid]
        n = len(f)
        k = next(i for i in range(n) if {f[i], f[(i + 1) % n]} == {a, b})
        u, w = f[k], f[(k + 1) % n]
        if n == 3:
            c = f[(k + 2) % n]
            halves = [(u, m, c), (m, w, c)]
            _check_children(editor, cand_verts, f, halves, 'split_edge')
            faces[fid] = halves[0]
            faces.append(halves[1])
            face_marks.append(mesh._face_marks[fid])
            face_labels.append(mesh._face_labels[fid])
        else:
            faces[fid] = f[:k + 1] + (m,) + f[k + 1:]
    marked = [e for e in mesh.marked_edges() if e != (a, b)]
    if mesh._edge_marks[eid]:
        marked += [normalize_edge(a, m), normalize_edge(m, b)]
    edge_order = list(mesh._edges)
    edge_order[eid] = normalize_edge(a, m)
    mesh._commit(cand_verts, faces, mesh._polys, mesh._winding, marked_edges=marked,
                 face_marks=face_marks, face_labels=face_labels, edge_order=edge_order)
    editor.logger.debug("split edge %d (%d,%d) at new vertex %d", eid, a, b, m)
    return m


# ------------------------
# Collapse
# ------------------------
def _collapse_target(editor, a, b, position):
    mesh = editor.mesh
    V = mesh._verts
    a_bd = mesh.vert_is_boundary(a)
    b_bd = mesh.vert_is_boundary(b)
    if position == 'midpoint':
        # a boundary endpoint keeps the boundary in place
        if a_bd and not b_bd:
            return a, b, V[a].copy()
        if b_bd and not a_bd:
            return b, a, V[b].copy()
        return a, b, 0.5 * (V[a] + V[b])
    if position == 'v0':
        return a, b, V[a].copy()
    if position == 'v1':
        return b, a, V[b].copy()
    raise ValueError(f"unsupported collapse position {position!r}; expected 'midpoint', 'v0' or 'v1'")


def op_collapse_edge(editor, eid, position=None):
    """Merge the endpoints of edge ``eid``.

    Rejected (TopologyInvariantViolation, mesh untouched) when the edge is
    non-manifold, fails the link condition, is an interior edge joining two
    boundary vertices, or when the candidate mesh would contain flipped,
    degenerate or non-manifold elements. The removed vertex is compacted away,
    so vertex, edge and face ids are renumbered; the returned IndexRemap
    documents the renumbering.
    """
    mesh = editor.mesh
    _surface_only(mesh, 'collapse_edge')
    eid = mesh._eid(eid)
    a, b = mesh._edges[eid]
    position = position or editor.config.collapse_position
    incident = mesh._adj['e2f'][eid]
    if len(incident) > 2:
        raise TopologyInvariantViolation(f"collapse: edge {eid} is non-manifold", op='collapse')
    common = set(mesh._adj['v2v'][a]) & set(mesh._adj['v2v'][b])
    expected = set()
    for fid in incident:
        f = mesh._faces[fid]
        if len(f) == 3:
            expected.update(v for v in f if v != a and v != b)
    if common != expected:
        raise TopologyInvariantViolation(
            f"collapse: edge {eid} violates the link condition (common neighbours {sorted(common)})",
            op='collapse', details=sorted(common - expected))
    if not mesh.edge_is_boundary(eid) and mesh.vert_is_boundary(a) and mesh.vert_is_boundary(b):
        raise TopologyInvariantViolation(
            f"collapse: interior edge {eid} joins two boundary vertices", op='collapse')
    keep, drop, p = _collapse_target(editor, a, b, position)

    V = mesh._verts.copy()
    V[keep] = p
    nv = V.shape[0]
    vmap = np.arange(nv, dtype=np.int64)
    vmap[drop] = -1
    vmap[drop + 1:] -= 1
    subst = vmap.copy()
    subst[drop] = vmap[keep]

    faces = []
    face_map = np.full(mesh.num_faces(), -1, dtype=np.int64)
    rewritten = []
    for fid, f in enumerate(mesh._faces):
        if drop in f or keep in f:
            g = [int(subst[v]) for v in f]
            g = [v for i, v in enumerate(g) if v != g[i - 1]]
            if len(g) < 3 or len(set(g)) != len(g):
                continue
            face_map[fid] = len(faces)
            rewritten.append((fid, len(faces)))
            faces.append(tuple(g))
        else:
            face_map[fid] = len(faces)
            faces.append(tuple(int(vmap[v]) for v in f))
    new_verts = np.delete(V, drop, axis=0)

    if editor.config.check_geometry:
        for old_fid, new_fid in rewritten:
            ref = _face_orientation(editor, mesh._verts[list(mesh._faces[old_fid])])
            pts = new_verts[list(faces[new_fid])]
            area = 0.5 * float(np.linalg.norm(newell_vector(pts)))
            if area < editor.config.min_face_area:
                raise TopologyInvariantViolation(
                    f"collapse: face {old_fid} would become degenerate", op='collapse', reason='geometry')
            if not _same_orientation(ref, _face_orientation(editor, pts)):
                raise TopologyInvariantViolation(
                    f"collapse: face {old_fid} would flip", op='collapse', reason='geometry')
    loops_before = count_boundary_loops(build_edge_to_face_map(mesh._faces))
    ok, msgs = check_mesh_conformity(new_verts, faces, min_area=0.0,
                                     reject_boundary_loop_increase=loops_before)
    if not ok:
        raise TopologyInvariantViolation(f"collapse: edge {eid} rejected: {msgs[0]}",
                                         op='collapse', details=msgs)

    vert_marks = mesh._vert_marks.copy()
    vert_marks[keep] |= vert_marks[drop]
    vert_marks = np.delete(vert_marks, drop)
    keep_faces = face_map >= 0
    old_edges = list(mesh._edges)
    mesh._commit(new_verts, faces,
                 vert_marks=vert_marks,
                 marked_edges=_remap_keys(mesh.marked_edges(), subst),
                 face_marks=mesh._face_marks[keep_faces],
                 face_labels=mesh._face_labels[keep_faces],
                 edge_order=_remap_keys(old_edges, subst))
    remap = IndexRemap(verts=vmap, edges=_edge_remap(old_edges, subst, mesh._edge_index),
                       faces=face_map, polys=np.zeros(0, dtype=np.int64))
    editor.logger.debug("collapsed edge %d (%d,%d) into vertex %d", eid, a, b, int(vmap[keep]))
    return remap


# ------------------------
# Re-id
# ------------------------
def _swap_perm(n, i, j):
    perm = np.arange(n, dtype=np.int64)
    perm[i], perm[j] = j, i
    return perm


def op_switch_vert_id(editor, v0, v1):
    mesh = editor.mesh
    v0 = mesh._vid(v0); v1 = mesh._vid(v1)
    perm = _swap_perm(mesh.num_verts(), v0, v1)
    V = mesh._verts.copy()
    V[[v0, v1]] = V[[v1, v0]]
    faces = [tuple(int(perm[v]) for v in f) for f in mesh._faces]
    marks = mesh._vert_marks.copy()
    marks[[v0, v1]] = marks[[v1, v0]]
    mesh._commit(V, faces, mesh._polys, mesh._winding, vert_marks=marks,
                 marked_edges=_remap_keys(mesh.marked_edges(), perm),
                 edge_order=_remap_keys(mesh._edges, perm))
    remap = IndexRemap.identity(mesh)
    remap.verts = perm
    return remap


def op_switch_edge_id(editor, e0, e1):
    mesh = editor.mesh
    e0 = mesh._eid(e0); e1 = mesh._eid(e1)
    order = list(mesh._edges)
    order[e0], order[e1] = order[e1], order[e0]
    mesh._commit(mesh._verts, mesh._faces, mesh._polys, mesh._winding, edge_order=order)
    remap = IndexRemap.identity(mesh)
    remap.edges = _swap_perm(mesh.num_edges(), e0, e1)
    return remap


def op_switch_face_id(editor, f0, f1):
    mesh = editor.mesh
    f0 = mesh._fid(f0); f1 = mesh._fid(f1)
    perm = _swap_perm(mesh.num_faces(), f0, f1)
    faces = list(mesh._faces)
    faces[f0], faces[f1] = faces[f1], faces[f0]
    polys = None
    if mesh.is_volume:
        polys = [tuple(int(perm[f]) for f in p) for p in mesh._polys]
    marks = mesh._face_marks.copy()
    marks[[f0, f1]] = marks[[f1, f0]]
    labels = mesh._face_labels.copy()
    labels[[f0, f1]] = labels[[f1, f0]]
    mesh._commit(mesh._verts, faces, polys, mesh._winding, face_marks=marks, face_labels=labels)
    remap = IndexRemap.identity(mesh)
    remap.faces = perm
    return remap


def op_switch_poly_id(editor, p0, p1):
    mesh = editor.mesh
    p0 = mesh._pid(p0); p1 = mesh._pid(p1)
    polys = list(mesh._polys)
    winding = list(mesh._winding)
    polys[p0], polys[p1] = polys[p1], polys[p0]
    winding[p0], winding[p1] = winding[p1], winding[p0]
    labels = mesh._poly_labels.copy()
    labels[[p0, p1]] = labels[[p1, p0]]
    mesh._commit(mesh._verts, mesh._faces, polys, winding, poly_labels=labels)
    remap = IndexRemap.identity(mesh)
    remap.polys = _swap_perm(mesh.num_polys(), p0, p1)
    return remap


# ------------------------
# Removal / compaction
# ------------------------
def _compact(editor, face_keep):
    mesh = editor.mesh
    nf = mesh.num_faces()
    kept = [i for i in range(nf) if face_keep[i]]
    face_map = np.full(nf, -1, dtype=np.int64)
    face_map[kept] = np.arange(len(kept))
    used = sorted({v for i in kept for v in mesh._faces[i]})
    vmap = np.full(mesh.num_verts(), -1, dtype=np.int64)
    vmap[used] = np.arange(len(used))
    faces = [tuple(int(vmap[v]) for v in mesh._faces[i]) for i in kept]
    polys = None
    if mesh.is_volume:
        polys = [tuple(int(face_map[f]) for f in p) for p in mesh._polys]
    old_edges = list(mesh._edges)
    mesh._commit(mesh._verts[used], faces, polys, mesh._winding,
                 vert_marks=mesh._vert_marks[used],
                 marked_edges=_remap_keys(mesh.marked_edges(), vmap),
                 face_marks=mesh._face_marks[kept],
                 face_labels=mesh._face_labels[kept],
                 edge_order=_remap_keys(old_edges, vmap))
    return IndexRemap(verts=vmap, edges=_edge_remap(old_edges, vmap, mesh._edge_index),
                      faces=face_map, polys=np.arange(mesh.num_polys()))


def op_remove_faces(editor, fids):
    """Delete faces and the vertices left unreferenced; returns the IndexRemap."""
    mesh = editor.mesh
    _surface_only(mesh, 'remove_faces')
    drop = {mesh._fid(f) for f in fids}
    keep = np.ones(mesh.num_faces(), dtype=bool)
    keep[list(drop)] = False
    kept_faces = [mesh._faces[i] for i in np.flatnonzero(keep)]
    if kept_faces:
        ok, msgs, _ = simulate_compaction_and_check(mesh._verts, kept_faces, min_area=0.0)
        if not ok:
            raise TopologyInvariantViolation(f"remove_faces: removal rejected: {msgs[0]}",
                                             op='remove_faces', details=msgs)
    remap = _compact(editor, keep)
    editor.logger.debug("removed %d faces", len(drop))
    return remap


def op_compact(editor):
    """Drop unreferenced vertices (and, for volume meshes, faces no poly uses)."""
    mesh = editor.mesh
    keep = np.ones(mesh.num_faces(), dtype=bool)
    if mesh.is_volume:
        keep[:] = [len(p) > 0 for p in mesh._adj['f2p']]
    nv_before, nf_before = mesh.num_verts(), mesh.num_faces()
    remap = _compact(editor, keep)
    editor.logger.info("compacted mesh: vertices %d->%d, faces %d->%d",
                       nv_before, mesh.num_verts(), nf_before, mesh.num_faces())
    return remap
