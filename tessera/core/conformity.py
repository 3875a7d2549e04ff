"""Conformity and structural checks on raw (verts, faces) arrays.

Editor operations build candidate connectivity first and run these checks
before anything is committed to the mesh.
"""
from __future__ import annotations
import numpy as np
from collections import defaultdict, deque

from .constants import EPS_AREA
from .geometry import newell_vector
from .logging_utils import get_logger
from .tables import normalize_edge

__all__ = [
	'build_edge_to_face_map', 'build_vertex_to_face_map', 'boundary_edges_from_map',
	'count_boundary_loops', 'nonmanifold_vertices', 'check_mesh_conformity',
	'simulate_compaction_and_check',
]

logger = get_logger('tessera.conformity')


def build_edge_to_face_map(faces):
	edge_map = {}
	for f_idx, f in enumerate(faces):
		n = len(f)
		for i in range(n):
			key = normalize_edge(f[i], f[(i + 1) % n])
			edge_map.setdefault(key, set()).add(f_idx)
	return edge_map


def build_vertex_to_face_map(faces):
	v_map = {}
	for f_idx, f in enumerate(faces):
		for v in f:
			v_map.setdefault(int(v), set()).add(f_idx)
	return v_map


def boundary_edges_from_map(edge_map):
	return {e for e, s in edge_map.items() if len(s) == 1}


def count_boundary_loops(edge_map):
	"""Number of connected components formed by boundary edges."""
	adj = defaultdict(list)
	for a, b in boundary_edges_from_map(edge_map):
		adj[a].append(b); adj[b].append(a)
	visited = set(); loops = 0
	for v in adj:
		if v in visited:
			continue
		loops += 1
		dq = deque([v]); visited.add(v)
		while dq:
			u = dq.popleft()
			for w in adj[u]:
				if w not in visited:
					visited.add(w); dq.append(w)
	return loops


def nonmanifold_vertices(faces, v_map=None):
	"""Vertices whose incident faces do not form a single edge-connected fan."""
	if v_map is None:
		v_map = build_vertex_to_face_map(faces)
	bad = []
	for v, fset in v_map.items():
		if len(fset) <= 1:
			continue
		# neighbours of v in each face, used to glue faces sharing an edge through v
		by_nbr = defaultdict(list)
		for fi in fset:
			f = faces[fi]; n = len(f)
			k = list(f).index(v)
			by_nbr[int(f[(k + 1) % n])].append(fi)
			by_nbr[int(f[k - 1])].append(fi)
		start = next(iter(fset))
		seen = {start}; dq = deque([start])
		while dq:
			fi = dq.popleft()
			f = faces[fi]; n = len(f)
			k = list(f).index(v)
			for w in (int(f[(k + 1) % n]), int(f[k - 1])):
				for g in by_nbr[w]:
					if g not in seen:
						seen.add(g); dq.append(g)
		if len(seen) != len(fset):
			bad.append(int(v))
	return sorted(bad)


def check_mesh_conformity(verts, faces, verbose=False, min_area=EPS_AREA, reject_boundary_loop_increase=None):
	"""Validate a candidate surface: indices, areas, duplicates, manifoldness, orientation consistency.

	Parameters
	----------
	reject_boundary_loop_increase : int, optional
		Reject when the candidate has more boundary loops than this number.

	Returns (ok, msgs).
	"""
	V = np.ascontiguousarray(np.asarray(verts, dtype=np.float64))
	msgs = []
	ok = True
	if len(faces) == 0:
		return False, ["No faces."]
	nv = V.shape[0]
	for fi, f in enumerate(faces):
		if len(f) < 3:
			msgs.append(f"Face {fi} has fewer than 3 vertices.")
			ok = False
		elif min(f) < 0 or max(f) >= nv:
			msgs.append(f"Face {fi} indices out of range.")
			ok = False
		elif len(set(f)) != len(f):
			msgs.append(f"Face {fi} repeats a vertex.")
			ok = False
	if not ok:
		return ok, msgs
	for fi, f in enumerate(faces):
		pts = V[list(f)]
		area = 0.5 * float(np.linalg.norm(newell_vector(pts)))
		if area < min_area:
			msgs.append(f"Face {fi} has near-zero area ({area:.3e}).")
			ok = False
	keys = [tuple(sorted(int(v) for v in f)) for f in faces]
	if len(set(keys)) != len(keys):
		msgs.append("Duplicate faces detected.")
		ok = False
	directed = defaultdict(int)
	for f in faces:
		n = len(f)
		for i in range(n):
			directed[(int(f[i]), int(f[(i + 1) % n]))] += 1
	edge_map = build_edge_to_face_map(faces)
	for e, s in edge_map.items():
		if len(s) > 2:
			msgs.append(f"Non-manifold edge {e} shared by {len(s)} faces.")
			ok = False
		elif directed.get(e, 0) > 1 or directed.get((e[1], e[0]), 0) > 1:
			msgs.append(f"Edge {e} is traversed twice in the same direction (inconsistent orientation).")
			ok = False
	bad_verts = nonmanifold_vertices(faces)
	for v in bad_verts[:10]:
		msgs.append(f"Non-manifold vertex {v} (incident faces form several fans).")
	if bad_verts:
		ok = False
	if reject_boundary_loop_increase is not None:
		loops = count_boundary_loops(edge_map)
		if loops > int(reject_boundary_loop_increase):
			msgs.append(f"Boundary loops increased: {loops} > {int(reject_boundary_loop_increase)}")
			ok = False
	if verbose:
		for m in msgs:
			logger.info("Conformity: %s", m)
	return ok, msgs


def simulate_compaction_and_check(verts, faces, **kwargs):
	"""Drop unreferenced vertices from a candidate, then run :func:`check_mesh_conformity`.

	Returns (ok, msgs, old_to_new) where ``old_to_new`` maps candidate vertex
	ids to compacted ids (-1 for dropped vertices).
	"""
	V = np.ascontiguousarray(np.asarray(verts, dtype=np.float64))
	used = sorted({int(v) for f in faces for v in f})
	old_to_new = np.full(V.shape[0], -1, dtype=np.int64)
	if used and (used[0] < 0 or used[-1] >= V.shape[0]):
		return False, ['face index out of range during simulation'], old_to_new
	old_to_new[used] = np.arange(len(used))
	remapped = [tuple(int(old_to_new[v]) for v in f) for f in faces]
	ok, msgs = check_mesh_conformity(V[used] if used else V[:0], remapped, **kwargs)
	return ok, msgs, old_to_new
