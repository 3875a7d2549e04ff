"""Central numerical tolerances and small geometry constants.

This module centralizes tiny numeric thresholds used across the codebase so
they can be tuned consistently and referenced without scattering literals.
Predicates never use these: their sign decisions are either plain floating
point (inexact backend) or certified (exact backend). Tolerances only gate
mesh-level quality checks and the polygon kernel clean-up.
"""
from __future__ import annotations

# Geometry tolerances
EPS_AREA: float = 1e-12           # minimum positive (absolute) face area
EPS_ANGLE_DEG: float = 1e-9       # tolerance for angle threshold comparisons (degrees)
EPS_LENGTH: float = 1e-14         # below this an edge is treated as zero length

# Polygon kernel clean-up, relative to the bounding-box diagonal
EPS_KERNEL_REL: float = 1e-9

# Machine epsilon as used by Shewchuk's error bounds (half ulp of 1.0)
MACHINE_EPSILON: float = 2.0 ** -53

# Static error bound coefficients for the floating point filters
CCW_ERRBOUND_A: float = (3.0 + 16.0 * MACHINE_EPSILON) * MACHINE_EPSILON
O3D_ERRBOUND_A: float = (7.0 + 56.0 * MACHINE_EPSILON) * MACHINE_EPSILON
ICC_ERRBOUND_A: float = (10.0 + 96.0 * MACHINE_EPSILON) * MACHINE_EPSILON
ISP_ERRBOUND_A: float = (16.0 + 224.0 * MACHINE_EPSILON) * MACHINE_EPSILON

__all__ = [
    'EPS_AREA',
    'EPS_ANGLE_DEG',
    'EPS_LENGTH',
    'EPS_KERNEL_REL',
    'MACHINE_EPSILON',
    'CCW_ERRBOUND_A',
    'O3D_ERRBOUND_A',
    'ICC_ERRBOUND_A',
    'ISP_ERRBOUND_A',
]
