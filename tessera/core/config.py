"""Configuration objects for the predicate kernel, the editor and the derived algorithms."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .constants import EPS_AREA

PREDICATE_MODES = ('inexact', 'exact')
KERNEL_BACKENDS = ('builtin', 'scipy')
ANGLE_UNITS = ('deg', 'rad')


@dataclass(frozen=True)
class PredicateConfig:
    """Backend selection for the predicate kernel.

    mode : 'inexact' (native floating point, may mis-classify within ~eps of zero)
           or 'exact' (filtered floating point with exact rational fallback).
    check_degenerate : raise DegenerateInputError when an intersection test
           receives a degenerate simplex.
    """
    mode: str = 'inexact'
    check_degenerate: bool = True

    def __post_init__(self):
        if self.mode not in PREDICATE_MODES:
            raise ValueError(f"unknown predicate mode {self.mode!r}; expected one of {PREDICATE_MODES}")


@dataclass
class EditorConfig:
    check_geometry: bool = True
    min_face_area: float = EPS_AREA
    collapse_position: str = 'midpoint'
    record_stats: bool = True


@dataclass
class CreaseConfig:
    threshold: float = 60.0
    angle_unit: str = 'deg'
    include_boundary: bool = False

    def threshold_rad(self) -> float:
        if self.angle_unit not in ANGLE_UNITS:
            raise ValueError(f"unknown angle unit {self.angle_unit!r}")
        return math.radians(self.threshold) if self.angle_unit == 'deg' else float(self.threshold)


@dataclass
class KernelConfig:
    backend: str = 'builtin'
    margin_factor: float = 1.0
    min_area: float = EPS_AREA

    def __post_init__(self):
        if self.backend not in KERNEL_BACKENDS:
            raise ValueError(f"unknown kernel backend {self.backend!r}; expected one of {KERNEL_BACKENDS}")


@dataclass
class LayoutConfig:
    regular_valence: int = 4
    boundary_regular_valence: int = 2
    trace_from_boundary: bool = True
    max_trace_steps: Optional[int] = None


@dataclass
class TesseraConfig:
    """Unified configuration.

    Attributes
    ----------
    predicates : PredicateConfig
    editor : EditorConfig
    creases : CreaseConfig
    kernel : KernelConfig
    layout : LayoutConfig
    extras : dict
        Free-form dictionary for caller specific knobs.
    """
    predicates: PredicateConfig = field(default_factory=PredicateConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    creases: CreaseConfig = field(default_factory=CreaseConfig)
    kernel: KernelConfig = field(default_factory=KernelConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    extras: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    'PredicateConfig', 'EditorConfig', 'CreaseConfig', 'KernelConfig',
    'LayoutConfig', 'TesseraConfig', 'PREDICATE_MODES', 'KERNEL_BACKENDS',
]
