"""Index based mesh topology store for polygonal and polyhedral meshes.

A single :class:`Mesh` type covers both kinds:

- surface meshes: vertices + faces (ordered vertex lists of any size >= 3);
- volume meshes: additionally polys, each an ordered list of face ids with a
  per-incidence winding bit telling whether the stored face order is CCW seen
  from outside the poly.

Edges are derived from faces and stored as sorted vertex pairs. All adjacency
maps are rebuilt together with the primary connectivity in
:meth:`Mesh._commit`, which assembles the new state in locals and swaps it in
at the end, so a failed rebuild leaves the previous state untouched.

Index stability
---------------
Vertices, faces and polys keep their ids unless an operation documents a
renumbering. Edge ids follow the previous edge order: edges that survive an
edit keep their relative order, new edges are appended.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import (InvalidElementError, MeshCapabilityError, StructuralValidityError,
                     TopologyInvariantViolation)
from .geometry import angle_between, as_point3, newell_vector, polygon_normal
from .logging_utils import get_logger
from .tables import (HEX_FACES, TET_FACES, normalize_edge, serialized_vids as _serialized_vids,
                     serialized_xyz as _serialized_xyz)

logger = get_logger('tessera.mesh')

Edge = Tuple[int, int]


def _as_verts(verts) -> np.ndarray:
    arr = np.asarray(verts, dtype=np.float64)
    if arr.size == 0 and arr.ndim != 2:
        arr = arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise StructuralValidityError(f"verts must have shape (N,2) or (N,3), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise StructuralValidityError("verts contain non finite coordinates")
    return np.ascontiguousarray(arr)


def _as_index_lists(items, what: str) -> List[Tuple[int, ...]]:
    if items is None:
        return []
    out = []
    for i, item in enumerate(items):
        try:
            row = tuple(int(v) for v in item)
        except (TypeError, ValueError) as exc:
            raise StructuralValidityError(f"{what} {i} is not a sequence of integers") from exc
        out.append(row)
    return out


def _validate_faces(nv: int, faces: Sequence[Tuple[int, ...]]):
    for fid, f in enumerate(faces):
        if len(f) < 3:
            raise StructuralValidityError(f"face {fid} has {len(f)} vertices (at least 3 required)")
        for v in f:
            if v < 0 or v >= nv:
                raise StructuralValidityError(f"face {fid} references vertex {v} out of range [0,{nv})")
        if len(set(f)) != len(f):
            raise StructuralValidityError(f"face {fid} repeats a vertex: {f}")


def _validate_polys(nf: int, polys, winding):
    if winding is None:
        raise StructuralValidityError("volume meshes require per-face winding bits (polys_face_winding)")
    if len(winding) != len(polys):
        raise StructuralValidityError(
            f"winding data covers {len(winding)} polys but {len(polys)} polys were given")
    for pid, (p, w) in enumerate(zip(polys, winding)):
        if len(p) < 4:
            raise StructuralValidityError(f"poly {pid} has {len(p)} faces (at least 4 required)")
        if len(w) != len(p):
            raise StructuralValidityError(
                f"poly {pid} has {len(p)} faces but {len(w)} winding bits")
        for f in p:
            if f < 0 or f >= nf:
                raise StructuralValidityError(f"poly {pid} references face {f} out of range [0,{nf})")
        if len(set(p)) != len(p):
            raise StructuralValidityError(f"poly {pid} repeats a face: {p}")


def _ordered_edges(faces, previous: Sequence[Edge] = ()) -> List[Edge]:
    present = set()
    fresh = []
    for f in faces:
        n = len(f)
        for k in range(n):
            key = normalize_edge(f[k], f[(k + 1) % n])
            if key not in present:
                present.add(key)
                fresh.append(key)
    edges = []
    seen = set()
    for key in previous:
        if key in present and key not in seen:
            edges.append(key)
            seen.add(key)
    edges.extend(key for key in fresh if key not in seen)
    return edges


def _build_adjacency(nv: int, faces, polys, edges) -> Dict[str, list]:
    """All incidence maps for the given primary connectivity (lists of lists, ascending ids)."""
    eidx = {e: i for i, e in enumerate(edges)}
    v2e = [[] for _ in range(nv)]
    v2v = [[] for _ in range(nv)]
    v2f = [[] for _ in range(nv)]
    e2f = [[] for _ in range(len(edges))]
    f2e = []
    for eid, (a, b) in enumerate(edges):
        v2e[a].append(eid); v2e[b].append(eid)
        v2v[a].append(b); v2v[b].append(a)
    for fid, f in enumerate(faces):
        n = len(f)
        fe = []
        for k in range(n):
            eid = eidx[normalize_edge(f[k], f[(k + 1) % n])]
            fe.append(eid)
            e2f[eid].append(fid)
        f2e.append(fe)
        for v in f:
            v2f[v].append(fid)
    f2f = []
    for fid, fe in enumerate(f2e):
        nbrs = []
        for eid in fe:
            for g in e2f[eid]:
                if g != fid and g not in nbrs:
                    nbrs.append(g)
        f2f.append(nbrs)
    adj = dict(v2e=v2e, v2v=v2v, v2f=v2f, e2f=e2f, f2e=f2e, f2f=f2f)
    if polys is not None:
        f2p = [[] for _ in range(len(faces))]
        v2p = [[] for _ in range(nv)]
        e2p = [[] for _ in range(len(edges))]
        p2e = []
        p2v = []
        for pid, p in enumerate(polys):
            pe = []
            pv = []
            for fid in p:
                f2p[fid].append(pid)
                for eid in f2e[fid]:
                    if eid not in pe:
                        pe.append(eid)
                for v in faces[fid]:
                    if v not in pv:
                        pv.append(v)
            p2e.append(pe)
            p2v.append(pv)
            for eid in pe:
                e2p[eid].append(pid)
            for v in pv:
                v2p[v].append(pid)
        p2p = []
        for pid, p in enumerate(polys):
            nbrs = []
            for fid in p:
                for q in f2p[fid]:
                    if q != pid and q not in nbrs:
                        nbrs.append(q)
            p2p.append(nbrs)
        adj.update(f2p=f2p, v2p=v2p, e2p=e2p, p2e=p2e, p2v=p2v, p2p=p2p)
    return adj


class Mesh:
    """Polygonal (surface) or polyhedral (volume) mesh with derived adjacency.

    Parameters
    ----------
    verts : (N,2) or (N,3) float array-like
    faces : sequence of vertex index sequences
    polys : sequence of face index sequences, optional
        When given the mesh is volumetric and ``polys_face_winding`` is required.
    polys_face_winding : sequence of bool sequences, optional
        ``polys_face_winding[p][k]`` is True when face ``polys[p][k]`` is stored
        CCW as seen from outside poly ``p``.

    Raises
    ------
    StructuralValidityError
        Bad coordinate shape, out of range index, repeated vertex in a face,
        or missing / mis-shaped winding data.
    """

    def __init__(self, verts, faces, polys=None, polys_face_winding=None):
        verts = _as_verts(verts)
        faces = _as_index_lists(faces, 'face')
        _validate_faces(verts.shape[0], faces)
        if polys is not None:
            polys = _as_index_lists(polys, 'poly')
            winding = None
            if polys_face_winding is not None:
                winding = [tuple(bool(b) for b in w) for w in polys_face_winding]
            _validate_polys(len(faces), polys, winding)
        else:
            if polys_face_winding is not None:
                raise StructuralValidityError("winding bits given without polys")
            winding = None
        self._verts = np.empty((0, verts.shape[1]))
        self._faces: List[Tuple[int, ...]] = []
        self._polys: Optional[List[Tuple[int, ...]]] = None
        self._winding: Optional[List[Tuple[bool, ...]]] = None
        self._edges: List[Edge] = []
        self._edge_index: Dict[Edge, int] = {}
        self._adj: Dict[str, list] = {}
        self._vert_marks = np.zeros(0, dtype=bool)
        self._edge_marks = np.zeros(0, dtype=bool)
        self._face_marks = np.zeros(0, dtype=bool)
        self._face_labels = np.zeros(0, dtype=np.int64)
        self._poly_labels = np.zeros(0, dtype=np.int64)
        self._commit(verts, faces, polys, winding)
        logger.debug("mesh created: %s", self)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_tets(cls, verts, tets, predicates=None):
        """Volume mesh from (M,4) tetrahedra; shared faces are stored once."""
        from .predicates import kernel_for
        pk = predicates or kernel_for('inexact')
        verts = _as_verts(verts)
        if verts.shape[1] != 3:
            raise StructuralValidityError("tetrahedral meshes require 3D vertices")
        tets = _as_index_lists(tets, 'tet')
        faces: List[Tuple[int, ...]] = []
        face_index: Dict[Tuple[int, ...], int] = {}
        polys = []
        winding = []
        for tid, t in enumerate(tets):
            if len(t) != 4:
                raise StructuralValidityError(f"tet {tid} has {len(t)} vertices")
            for v in t:
                if v < 0 or v >= verts.shape[0]:
                    raise StructuralValidityError(f"tet {tid} references vertex {v} out of range")
            p = []
            w = []
            for a, b, c in TET_FACES:
                opp = ({0, 1, 2, 3} - {a, b, c}).pop()
                f = (t[a], t[b], t[c])
                key = tuple(sorted(f))
                fid = face_index.get(key)
                if fid is None:
                    fid = len(faces)
                    face_index[key] = fid
                    faces.append(f)
                stored = faces[fid]
                # orient3d > 0 means the opposite vertex lies behind the CCW side of the face
                w.append(pk.orient3d(verts[stored[0]], verts[stored[1]], verts[stored[2]], verts[t[opp]]) > 0)
                p.append(fid)
            polys.append(p)
            winding.append(w)
        return cls(verts, faces, polys, winding)

    @classmethod
    def from_hexes(cls, verts, hexes):
        """Volume mesh from (M,8) hexahedra in the usual bottom/top quad ordering."""
        verts = _as_verts(verts)
        if verts.shape[1] != 3:
            raise StructuralValidityError("hexahedral meshes require 3D vertices")
        hexes = _as_index_lists(hexes, 'hex')
        faces: List[Tuple[int, ...]] = []
        face_index: Dict[Tuple[int, ...], int] = {}
        polys = []
        winding = []
        for hid, h in enumerate(hexes):
            if len(h) != 8:
                raise StructuralValidityError(f"hex {hid} has {len(h)} vertices")
            for v in h:
                if v < 0 or v >= verts.shape[0]:
                    raise StructuralValidityError(f"hex {hid} references vertex {v} out of range")
            center = verts[list(h)].mean(axis=0)
            p = []
            w = []
            for quad in HEX_FACES:
                f = tuple(h[k] for k in quad)
                key = tuple(sorted(f))
                fid = face_index.get(key)
                if fid is None:
                    fid = len(faces)
                    face_index[key] = fid
                    faces.append(f)
                stored = faces[fid]
                pts = verts[list(stored)]
                w.append(float(np.dot(newell_vector(pts), pts.mean(axis=0) - center)) > 0.0)
                p.append(fid)
            polys.append(p)
            winding.append(w)
        return cls(verts, faces, polys, winding)

    # ------------------------------------------------------------------
    # Commit: the only place primary connectivity changes
    # ------------------------------------------------------------------
    def _commit(self, verts, faces, polys=None, winding=None, *,
                vert_marks=None, marked_edges: Optional[Iterable[Edge]] = None,
                face_marks=None, face_labels=None, poly_labels=None,
                edge_order: Optional[Sequence[Edge]] = None, validate: bool = False):
        """Install new connectivity and rebuild every adjacency map.

        Edge marks are carried by vertex pair: ``marked_edges`` (keys) defaults
        to the currently marked edges that still exist. Returns an old-to-new
        edge id array (-1 for edges that disappeared).
        """
        verts = np.ascontiguousarray(np.array(verts, dtype=np.float64))
        faces = [tuple(int(v) for v in f) for f in faces]
        if polys is not None:
            polys = [tuple(int(f) for f in p) for p in polys]
            winding = [tuple(bool(b) for b in w) for w in winding]
        if validate:
            _validate_faces(verts.shape[0], faces)
            if polys is not None:
                _validate_polys(len(faces), polys, winding)
        previous = list(self._edges) if edge_order is None else [normalize_edge(*e) for e in edge_order]
        edges = _ordered_edges(faces, previous)
        edge_index = {e: i for i, e in enumerate(edges)}
        adj = _build_adjacency(verts.shape[0], faces, polys, edges)

        if marked_edges is None:
            marked_edges = self.marked_edges()
        edge_marks = np.zeros(len(edges), dtype=bool)
        for key in marked_edges:
            eid = edge_index.get(normalize_edge(*key))
            if eid is not None:
                edge_marks[eid] = True

        def _fit(arr, n, dtype, old):
            if arr is None:
                arr = old
            arr = np.asarray(arr, dtype=dtype).reshape(-1)
            out = np.zeros(n, dtype=dtype)
            k = min(n, arr.shape[0])
            out[:k] = arr[:k]
            return out

        new_vert_marks = _fit(vert_marks, verts.shape[0], bool, self._vert_marks)
        new_face_marks = _fit(face_marks, len(faces), bool, self._face_marks)
        new_face_labels = _fit(face_labels, len(faces), np.int64, self._face_labels)
        npolys = len(polys) if polys is not None else 0
        new_poly_labels = _fit(poly_labels, npolys, np.int64, self._poly_labels)

        old_edges = self._edges
        edge_map = np.array([edge_index.get(e, -1) for e in old_edges], dtype=np.int64)

        # swap in
        self._verts = verts
        self._faces = faces
        self._polys = polys
        self._winding = winding
        self._edges = edges
        self._edge_index = edge_index
        self._adj = adj
        self._vert_marks = new_vert_marks
        self._edge_marks = edge_marks
        self._face_marks = new_face_marks
        self._face_labels = new_face_labels
        self._poly_labels = new_poly_labels
        return edge_map

    # ------------------------------------------------------------------
    # Capabilities and counts
    # ------------------------------------------------------------------
    @property
    def is_volume(self) -> bool:
        return self._polys is not None

    @property
    def is_surface(self) -> bool:
        return self._polys is None

    @property
    def dim(self) -> int:
        """Coordinate dimension (2 or 3)."""
        return int(self._verts.shape[1])

    def _require_surface(self, what: str):
        if self._polys is not None:
            raise MeshCapabilityError(f"{what} is only available on surface meshes")

    def _require_volume(self, what: str):
        if self._polys is None:
            raise MeshCapabilityError(f"{what} is only available on volume meshes")

    def num_verts(self) -> int:
        return int(self._verts.shape[0])

    def num_edges(self) -> int:
        return len(self._edges)

    def num_faces(self) -> int:
        return len(self._faces)

    def num_polys(self) -> int:
        return len(self._polys) if self._polys is not None else 0

    def num_elements(self) -> int:
        """Top dimensional elements: polys for volume meshes, faces otherwise."""
        return self.num_polys() if self.is_volume else self.num_faces()

    def counts(self) -> Dict[str, int]:
        return {'verts': self.num_verts(), 'edges': self.num_edges(),
                'faces': self.num_faces(), 'polys': self.num_polys()}

    def __repr__(self):
        kind = 'volume' if self.is_volume else 'surface'
        c = self.counts()
        return (f"Mesh({kind}, verts={c['verts']}, edges={c['edges']}, "
                f"faces={c['faces']}, polys={c['polys']})")

    # ------------------------------------------------------------------
    # Id checks
    # ------------------------------------------------------------------
    def _check(self, idx, n, what):
        i = int(idx)
        if i < 0 or i >= n:
            raise InvalidElementError(f"{what} id {idx} out of range [0,{n})")
        return i

    def _vid(self, vid):
        return self._check(vid, self.num_verts(), 'vertex')

    def _eid(self, eid):
        return self._check(eid, self.num_edges(), 'edge')

    def _fid(self, fid):
        return self._check(fid, self.num_faces(), 'face')

    def _pid(self, pid):
        self._require_volume('poly access')
        return self._check(pid, self.num_polys(), 'poly')

    # ------------------------------------------------------------------
    # Primary data accessors (export side)
    # ------------------------------------------------------------------
    @property
    def positions(self) -> np.ndarray:
        view = self._verts.view()
        view.flags.writeable = False
        return view

    @property
    def faces(self) -> List[Tuple[int, ...]]:
        return list(self._faces)

    @property
    def polys(self) -> List[Tuple[int, ...]]:
        return list(self._polys) if self._polys is not None else []

    @property
    def polys_face_winding(self) -> List[Tuple[bool, ...]]:
        return list(self._winding) if self._winding is not None else []

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    @property
    def labels(self) -> np.ndarray:
        """Per-element integer labels (polys for volume meshes, faces otherwise)."""
        return (self._poly_labels if self.is_volume else self._face_labels).copy()

    def set_labels(self, labels):
        arr = np.asarray(labels, dtype=np.int64).reshape(-1)
        if arr.shape[0] != self.num_elements():
            raise ValueError(f"expected {self.num_elements()} labels, got {arr.shape[0]}")
        if self.is_volume:
            self._poly_labels = arr.copy()
        else:
            self._face_labels = arr.copy()

    def face_label(self, fid) -> int:
        return int(self._face_labels[self._fid(fid)])

    def poly_label(self, pid) -> int:
        return int(self._poly_labels[self._pid(pid)])

    def vert(self, vid) -> np.ndarray:
        return self._verts[self._vid(vid)].copy()

    def vert_xyz(self, vid) -> np.ndarray:
        return as_point3(self._verts[self._vid(vid)])

    def edge_verts(self, eid) -> Edge:
        return self._edges[self._eid(eid)]

    def edge_vert(self, eid, k: int) -> int:
        return self._edges[self._eid(eid)][k]

    def face_verts(self, fid) -> Tuple[int, ...]:
        return self._faces[self._fid(fid)]

    def face_coords(self, fid) -> np.ndarray:
        return self._verts[list(self._faces[self._fid(fid)])]

    def poly_faces(self, pid) -> Tuple[int, ...]:
        return self._polys[self._pid(pid)]

    def poly_face_winding(self, pid, fid) -> bool:
        p = self._polys[self._pid(pid)]
        fid = int(fid)
        if fid not in p:
            raise InvalidElementError(f"face {fid} is not a face of poly {pid}")
        return self._winding[pid][p.index(fid)]

    def serialized_xyz(self) -> np.ndarray:
        return _serialized_xyz(self._verts)

    def serialized_vids(self) -> np.ndarray:
        return _serialized_vids(self._faces)

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------
    def adj_v2e(self, vid) -> List[int]:
        return list(self._adj['v2e'][self._vid(vid)])

    def adj_v2v(self, vid) -> List[int]:
        return list(self._adj['v2v'][self._vid(vid)])

    def adj_v2f(self, vid) -> List[int]:
        return list(self._adj['v2f'][self._vid(vid)])

    def adj_e2f(self, eid) -> List[int]:
        return list(self._adj['e2f'][self._eid(eid)])

    def adj_f2e(self, fid) -> List[int]:
        return list(self._adj['f2e'][self._fid(fid)])

    def adj_f2f(self, fid) -> List[int]:
        return list(self._adj['f2f'][self._fid(fid)])

    def adj_f2p(self, fid) -> List[int]:
        self._require_volume('adj_f2p')
        return list(self._adj['f2p'][self._fid(fid)])

    def adj_p2f(self, pid) -> List[int]:
        return list(self._polys[self._pid(pid)])

    def adj_p2e(self, pid) -> List[int]:
        return list(self._adj['p2e'][self._pid(pid)])

    def adj_p2v(self, pid) -> List[int]:
        return list(self._adj['p2v'][self._pid(pid)])

    def adj_p2p(self, pid) -> List[int]:
        return list(self._adj['p2p'][self._pid(pid)])

    def adj_v2p(self, vid) -> List[int]:
        self._require_volume('adj_v2p')
        return list(self._adj['v2p'][self._vid(vid)])

    def adj_e2p(self, eid) -> List[int]:
        self._require_volume('adj_e2p')
        return list(self._adj['e2p'][self._eid(eid)])

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def edge_id(self, v0, v1) -> int:
        """Id of the edge joining ``v0`` and ``v1``, or -1."""
        return self._edge_index.get(normalize_edge(v0, v1), -1)

    def face_id(self, vids) -> int:
        """Id of the face with exactly this vertex set, or -1."""
        key = sorted(int(v) for v in vids)
        if not key:
            return -1
        for fid in self._adj['v2f'][self._vid(key[0])]:
            if sorted(self._faces[fid]) == key:
                return fid
        return -1

    def face_contains_vert(self, fid, vid) -> bool:
        return int(vid) in self._faces[self._fid(fid)]

    def face_edge_id(self, fid, offset: int) -> int:
        """Edge between the ``offset``-th vertex of the face and the next one."""
        f = self._faces[self._fid(fid)]
        k = int(offset) % len(f)
        return self._edge_index[normalize_edge(f[k], f[(k + 1) % len(f)])]

    def _require_triangle(self, fid):
        f = self._faces[self._fid(fid)]
        if len(f) != 3:
            raise MeshCapabilityError(f"face {fid} is not a triangle")
        return f

    def vert_opposite_to(self, fid, v0, v1) -> int:
        f = self._require_triangle(fid)
        if int(v0) not in f or int(v1) not in f or int(v0) == int(v1):
            raise InvalidElementError(f"({v0},{v1}) is not an edge of face {fid}")
        return next(v for v in f if v != int(v0) and v != int(v1))

    def edge_opposite_to(self, fid, vid) -> int:
        f = self._require_triangle(fid)
        vid = int(vid)
        if vid not in f:
            raise InvalidElementError(f"vertex {vid} is not in face {fid}")
        a, b = [v for v in f if v != vid]
        return self._edge_index[normalize_edge(a, b)]

    def edges_share_face(self, e0, e1) -> bool:
        return self.face_shared(e0, e1) >= 0

    def face_shared(self, e0, e1) -> int:
        """A face incident to both edges, or -1."""
        f1 = set(self._adj['e2f'][self._eid(e1)])
        for fid in self._adj['e2f'][self._eid(e0)]:
            if fid in f1:
                return fid
        return -1

    def edge_shared(self, f0, f1) -> int:
        """An edge common to both faces, or -1."""
        e1 = set(self._adj['f2e'][self._fid(f1)])
        for eid in self._adj['f2e'][self._fid(f0)]:
            if eid in e1:
                return eid
        return -1

    def verts_are_ordered_ccw(self, fid, curr, prev) -> bool:
        """True if ``curr`` immediately follows ``prev`` in the stored face order."""
        f = self._faces[self._fid(fid)]
        curr = int(curr); prev = int(prev)
        if curr not in f or prev not in f:
            return False
        k = f.index(prev)
        return f[(k + 1) % len(f)] == curr

    # ------------------------------------------------------------------
    # Boundary / manifold queries
    # ------------------------------------------------------------------
    def edge_is_boundary(self, eid) -> bool:
        eid = self._eid(eid)
        if self.is_volume:
            f2p = self._adj['f2p']
            return any(len(f2p[f]) == 1 for f in self._adj['e2f'][eid])
        return len(self._adj['e2f'][eid]) == 1

    def face_is_boundary(self, fid) -> bool:
        """Volume: face on the outer skin; surface: face touching a boundary edge."""
        fid = self._fid(fid)
        if self.is_volume:
            return len(self._adj['f2p'][fid]) == 1
        e2f = self._adj['e2f']
        return any(len(e2f[e]) == 1 for e in self._adj['f2e'][fid])

    def poly_is_boundary(self, pid) -> bool:
        f2p = self._adj['f2p']
        return any(len(f2p[f]) == 1 for f in self._polys[self._pid(pid)])

    def vert_is_boundary(self, vid) -> bool:
        return any(self.edge_is_boundary(e) for e in self._adj['v2e'][self._vid(vid)])

    def boundary_edges(self) -> List[int]:
        return [e for e in range(self.num_edges()) if self.edge_is_boundary(e)]

    def vert_boundary_edges(self, vid) -> List[int]:
        return [e for e in self._adj['v2e'][self._vid(vid)] if self.edge_is_boundary(e)]

    def edge_is_manifold(self, eid) -> bool:
        eid = self._eid(eid)
        if self.is_volume:
            f2p = self._adj['f2p']
            nb = sum(1 for f in self._adj['e2f'][eid] if len(f2p[f]) == 1)
            return nb in (0, 2)
        return len(self._adj['e2f'][eid]) <= 2

    def vert_is_manifold(self, vid) -> bool:
        """Incident edges are manifold and (surface) the incident faces form one fan."""
        vid = self._vid(vid)
        if not all(self.edge_is_manifold(e) for e in self._adj['v2e'][vid]):
            return False
        if self.is_volume:
            return True
        faces = self._adj['v2f'][vid]
        if len(faces) <= 1:
            return True
        # faces around vid connected through edges incident to vid
        e2f = self._adj['e2f']
        seen = {faces[0]}
        stack = [faces[0]]
        while stack:
            f = stack.pop()
            for e in self._adj['f2e'][f]:
                if vid not in self._edges[e]:
                    continue
                for g in e2f[e]:
                    if g not in seen:
                        seen.add(g)
                        stack.append(g)
        return len(seen) == len(faces)

    def vert_valence(self, vid) -> int:
        return len(self._adj['v2v'][self._vid(vid)])

    def vert_is_singular(self, vid, regular_valence: int = 4, boundary_regular_valence: int = 2) -> bool:
        """Incident element count differs from the regular count (interior vs boundary)."""
        vid = self._vid(vid)
        n = len(self._adj['v2p'][vid]) if self.is_volume else len(self._adj['v2f'][vid])
        if self.vert_is_boundary(vid):
            return n > boundary_regular_valence
        return n != regular_valence

    # ------------------------------------------------------------------
    # Ordered one-ring (surface meshes)
    # ------------------------------------------------------------------
    def vert_ordered_one_ring(self, vid):
        """CCW ordered star of a manifold surface vertex.

        Returns ``(v_ring, f_ring, e_ring, e_link)``: the edge-adjacent
        vertices, the incident faces, the incident edges (aligned with
        ``v_ring``) and the edges of the incident faces not touching ``vid``.
        For a boundary vertex the walk starts at the boundary edge that has the
        mesh on its left and ``v_ring`` has one more entry than ``f_ring``.
        """
        self._require_surface('vert_ordered_one_ring')
        vid = self._vid(vid)
        faces = self._adj['v2f'][vid]
        if not faces:
            return [], [], [], []
        info = {}
        by_next: Dict[int, List[int]] = {}
        for fid in faces:
            f = self._faces[fid]
            k = f.index(vid)
            nxt = f[(k + 1) % len(f)]
            prv = f[k - 1]
            info[fid] = (k, nxt, prv)
            by_next.setdefault(nxt, []).append(fid)
        for e in self._adj['v2e'][vid]:
            if len(self._adj['e2f'][e]) > 2:
                raise TopologyInvariantViolation(
                    f"vertex {vid} has non-manifold edge {self._edges[e]}", op='one_ring')
        if any(len(v) > 1 for v in by_next.values()):
            raise TopologyInvariantViolation(
                f"inconsistent face orientation around vertex {vid}", op='one_ring')
        prv_set = {info[f][2] for f in faces}
        starts = [f for f in faces if info[f][1] not in prv_set]
        if len(starts) > 1:
            raise TopologyInvariantViolation(f"vertex {vid} is non-manifold (several fans)", op='one_ring')
        start = starts[0] if starts else faces[0]
        v_ring, f_ring, e_ring, e_link = [], [], [], []
        fid = start
        while True:
            k, nxt, prv = info[fid]
            f = self._faces[fid]
            f_ring.append(fid)
            v_ring.append(nxt)
            e_ring.append(self._edge_index[normalize_edge(vid, nxt)])
            n = len(f)
            for j in range(1, n - 1):
                a = f[(k + j) % n]; b = f[(k + j + 1) % n]
                e_link.append(self._edge_index[normalize_edge(a, b)])
            following = by_next.get(prv)
            if not following:
                v_ring.append(prv)
                e_ring.append(self._edge_index[normalize_edge(vid, prv)])
                break
            fid = following[0]
            if fid == start:
                break
            if fid in f_ring:
                raise TopologyInvariantViolation(f"vertex {vid} has a broken fan", op='one_ring')
        if len(f_ring) != len(faces):
            raise TopologyInvariantViolation(
                f"vertex {vid} is non-manifold ({len(faces)} faces, one fan covers {len(f_ring)})",
                op='one_ring')
        return v_ring, f_ring, e_ring, e_link

    def vert_ordered_vert_ring(self, vid) -> List[int]:
        return self.vert_ordered_one_ring(vid)[0]

    def vert_ordered_face_ring(self, vid) -> List[int]:
        return self.vert_ordered_one_ring(vid)[1]

    def vert_ordered_edge_ring(self, vid) -> List[int]:
        return self.vert_ordered_one_ring(vid)[2]

    def vert_ordered_edge_link(self, vid) -> List[int]:
        return self.vert_ordered_one_ring(vid)[3]

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def face_normal(self, fid) -> np.ndarray:
        return polygon_normal(self.face_coords(fid))

    def face_area(self, fid) -> float:
        return 0.5 * float(np.linalg.norm(newell_vector(self.face_coords(fid))))

    def face_centroid(self, fid) -> np.ndarray:
        return self.face_coords(fid).mean(axis=0)

    def poly_centroid(self, pid) -> np.ndarray:
        return self._verts[self._adj['p2v'][self._pid(pid)]].mean(axis=0)

    def poly_volume(self, pid) -> float:
        """Divergence theorem volume using the stored winding bits."""
        pid = self._pid(pid)
        c = as_point3(self.poly_centroid(pid))
        vol = 0.0
        for fid, outward in zip(self._polys[pid], self._winding[pid]):
            pts = [as_point3(p) for p in self.face_coords(fid)]
            for j in range(1, len(pts) - 1):
                tet = np.dot(pts[0] - c, np.cross(pts[j] - c, pts[j + 1] - c)) / 6.0
                vol += tet if outward else -tet
        return float(vol)

    def edge_length(self, eid) -> float:
        a, b = self._edges[self._eid(eid)]
        return float(np.linalg.norm(self._verts[a] - self._verts[b]))

    def edge_dihedral_angle(self, eid) -> float:
        """Angle (radians) between the normals of the faces sharing the edge.

        0 for boundary edges; for non-manifold edges the largest pairwise angle.
        """
        self._require_surface('edge_dihedral_angle')
        fids = self._adj['e2f'][self._eid(eid)]
        if len(fids) < 2:
            return 0.0
        normals = [self.face_normal(f) for f in fids]
        best = 0.0
        for i in range(len(normals)):
            for j in range(i + 1, len(normals)):
                best = max(best, angle_between(normals[i], normals[j]))
        return best

    def bbox(self):
        if self.num_verts() == 0:
            raise ValueError("bounding box of an empty mesh")
        return self._verts.min(axis=0), self._verts.max(axis=0)

    def bbox_diagonal(self) -> float:
        lo, hi = self.bbox()
        return float(np.linalg.norm(hi - lo))

    def mean_edge_length(self) -> float:
        if not self._edges:
            return 0.0
        E = np.asarray(self._edges)
        return float(np.linalg.norm(self._verts[E[:, 0]] - self._verts[E[:, 1]], axis=1).mean())

    # ------------------------------------------------------------------
    # Marks (pure attributes; the editor exposes the public mark/unmark API)
    # ------------------------------------------------------------------
    def vert_is_marked(self, vid) -> bool:
        return bool(self._vert_marks[self._vid(vid)])

    def edge_is_marked(self, eid) -> bool:
        return bool(self._edge_marks[self._eid(eid)])

    def face_is_marked(self, fid) -> bool:
        return bool(self._face_marks[self._fid(fid)])

    def marked_edge_ids(self) -> List[int]:
        return [int(e) for e in np.flatnonzero(self._edge_marks)]

    def marked_edges(self) -> List[Edge]:
        """Marked edges as vertex pairs (stable across edge renumbering)."""
        return [self._edges[e] for e in np.flatnonzero(self._edge_marks)]

    def face_marked_edges(self, fid) -> List[int]:
        return [e for e in self._adj['f2e'][self._fid(fid)] if self._edge_marks[e]]

    def _set_vert_mark(self, vid, flag: bool):
        self._vert_marks[self._vid(vid)] = bool(flag)

    def _set_edge_mark(self, eid, flag: bool):
        self._edge_marks[self._eid(eid)] = bool(flag)

    def _set_face_mark(self, fid, flag: bool):
        self._face_marks[self._fid(fid)] = bool(flag)

    def _set_edge_marks(self, flags):
        arr = np.asarray(flags, dtype=bool).reshape(-1)
        if arr.shape[0] != self.num_edges():
            raise ValueError(f"expected {self.num_edges()} edge flags, got {arr.shape[0]}")
        self._edge_marks = arr.copy()

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------
    def check_adjacency(self) -> List[str]:
        """Rebuild the maps from scratch and report differences (empty when consistent)."""
        fresh = _build_adjacency(self.num_verts(), self._faces, self._polys, self._edges)
        issues = []
        for key, value in fresh.items():
            if value != self._adj.get(key):
                issues.append(f"adjacency map {key} is stale")
        if _ordered_edges(self._faces, self._edges) != self._edges:
            issues.append("edge list does not match faces")
        for e, (a, b) in enumerate(self._edges):
            if a >= b:
                issues.append(f"edge {e} is not canonical: {(a, b)}")
        return issues

    def copy(self) -> 'Mesh':
        out = Mesh.__new__(Mesh)
        out._verts = self._verts.copy()
        out._faces = list(self._faces)
        out._polys = list(self._polys) if self._polys is not None else None
        out._winding = list(self._winding) if self._winding is not None else None
        out._edges = list(self._edges)
        out._edge_index = dict(self._edge_index)
        out._adj = {k: [list(x) for x in v] for k, v in self._adj.items()}
        out._vert_marks = self._vert_marks.copy()
        out._edge_marks = self._edge_marks.copy()
        out._face_marks = self._face_marks.copy()
        out._face_labels = self._face_labels.copy()
        out._poly_labels = self._poly_labels.copy()
        return out


def mesh_is_closed(mesh: Mesh) -> bool:
    return not mesh.boundary_edges()


__all__ = ['Mesh', 'mesh_is_closed']
