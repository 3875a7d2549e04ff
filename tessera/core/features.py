"""Sharp crease detection and crease padding."""
from __future__ import annotations

import math
from typing import List

import numpy as np

from .config import CreaseConfig
from .constants import EPS_ANGLE_DEG
from .errors import MeshCapabilityError
from .logging_utils import get_logger

logger = get_logger('tessera.features')


def mark_sharp_creases(mesh, threshold: float = None, angle_unit: str = None,
                       include_boundary: bool = None, config: CreaseConfig = None) -> List[int]:
    """Mark every edge whose incident face normals differ by at least ``threshold``.

    Existing edge marks are replaced: edges below the threshold end up
    unmarked. Boundary edges are marked only with ``include_boundary``.
    For edges shared by more than two faces the largest pairwise angle is
    used. Returns the ids of the marked edges.
    """
    if mesh.is_volume:
        raise MeshCapabilityError("sharp crease detection works on surface meshes")
    config = config or CreaseConfig()
    cfg = CreaseConfig(
        threshold=config.threshold if threshold is None else threshold,
        angle_unit=config.angle_unit if angle_unit is None else angle_unit,
        include_boundary=config.include_boundary if include_boundary is None else include_boundary,
    )
    thr = cfg.threshold_rad() - math.radians(EPS_ANGLE_DEG)
    flags = np.zeros(mesh.num_edges(), dtype=bool)
    for eid in range(mesh.num_edges()):
        if len(mesh.adj_e2f(eid)) < 2:
            flags[eid] = bool(cfg.include_boundary)
            continue
        flags[eid] = mesh.edge_dihedral_angle(eid) >= thr
    mesh._set_edge_marks(flags)
    marked = [int(e) for e in np.flatnonzero(flags)]
    logger.info("marked %d sharp creases (threshold %.3f %s)", len(marked), cfg.threshold, cfg.angle_unit)
    return marked


def faces_needing_padding(mesh) -> List[int]:
    return [fid for fid in range(mesh.num_faces()) if len(mesh.face_marked_edges(fid)) > 1]


def pad_creases(editor) -> List[int]:
    """Split (at the centroid) every face touching more than one marked edge.

    Faces are processed in ascending id order. Children keep the marks of
    the parent face boundary and the new spokes are unmarked, so afterwards
    every face touches at most one marked edge and a second call does nothing.
    Returns the ids of the faces that were split.
    """
    mesh = editor.mesh
    todo = faces_needing_padding(mesh)
    for fid in todo:
        editor.split_face(fid)
    logger.info("padding sharp creases (%d faces split)", len(todo))
    return todo


__all__ = ['mark_sharp_creases', 'faces_needing_padding', 'pad_creases']
