"""Public package API for the tessera mesh toolkit.

This facade provides a flat import surface on top of the internal
implementation package ``tessera.core``. The scipy-backed modules (the
polygon kernel solver and the mesh builders in ``primitives``) are loaded on
first use, so ``import tessera`` only needs numpy.

Example
-------
    from tessera import Mesh, MeshEditor, mark_sharp_creases, pad_creases

The deeper modules (``tessera.core.*``) are considered internal and may
change; rely on this layer for public symbols.
"""
from importlib import import_module as _imp
import logging as _logging

try:  # Python 3.8+ runtime version export
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("tessera-mesh")  # populated when installed
except Exception:  # pragma: no cover - editable / unknown state
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

# Eager light-weight submodules
_const = _imp('tessera.core.constants')
_conf = _imp('tessera.core.conformity')
_config = _imp('tessera.core.config')
_errors = _imp('tessera.core.errors')
_geom = _imp('tessera.core.geometry')
_pred = _imp('tessera.core.predicates')
_mesh = _imp('tessera.core.mesh')
_ops = _imp('tessera.core.operations')
_editor = _imp('tessera.core.editor')
_features = _imp('tessera.core.features')
_layout = _imp('tessera.core.layout')
_stats = _imp('tessera.core.stats')
_log = _imp('tessera.core.logging_utils')


def _lazy_module(mod_name):
    class _ModuleProxy:
        __slots__ = ('_m',)

        def _load(self):  # type: ignore
            if hasattr(self, '_m'):
                return self._m  # type: ignore
            self._m = _imp(mod_name)  # type: ignore
            return self._m  # type: ignore

        def __getattr__(self, item):  # type: ignore
            if item == '_m':
                raise AttributeError(item)
            return getattr(self._load(), item)

        def __dir__(self):  # type: ignore
            return dir(self._load())
    return _ModuleProxy()


def _lazy_kernel_attr(name):
    def _wrapper(*args, **kwargs):
        return getattr(_imp('tessera.core.kernel'), name)(*args, **kwargs)
    _wrapper.__name__ = name
    return _wrapper


# Lazily loaded scipy-backed modules
kernel = _lazy_module('tessera.core.kernel')
primitives = _lazy_module('tessera.core.primitives')
polygon_kernel = _lazy_kernel_attr('polygon_kernel')
polygon_kernel_3d = _lazy_kernel_attr('polygon_kernel_3d')

# Predicates
PredicateKernel = _pred.PredicateKernel
PointInSimplex = _pred.PointInSimplex
SimplexIntersection = _pred.SimplexIntersection
kernel_for = _pred.kernel_for
orient2d = _pred.orient2d
orient3d = _pred.orient3d
incircle = _pred.incircle
insphere = _pred.insphere

# Geometry
Plane = _geom.Plane
Ray = _geom.Ray
triangle_area = _geom.triangle_area
polygon_signed_area = _geom.polygon_signed_area

# Tolerances
EPS_AREA = _const.EPS_AREA
EPS_ANGLE_DEG = _const.EPS_ANGLE_DEG

# Mesh store, editor and derived algorithms
Mesh = _mesh.Mesh
MeshEditor = _editor.MeshEditor
IndexRemap = _ops.IndexRemap
mark_sharp_creases = _features.mark_sharp_creases
pad_creases = _features.pad_creases
QuadLayout = _layout.QuadLayout
compute_coarse_quad_layout = _layout.compute_coarse_quad_layout
singular_vertices = _layout.singular_vertices
check_mesh_conformity = _conf.check_mesh_conformity

# Configuration, errors, logging
TesseraConfig = _config.TesseraConfig
PredicateConfig = _config.PredicateConfig
EditorConfig = _config.EditorConfig
CreaseConfig = _config.CreaseConfig
KernelConfig = _config.KernelConfig
LayoutConfig = _config.LayoutConfig
TesseraError = _errors.TesseraError
StructuralValidityError = _errors.StructuralValidityError
DegenerateInputError = _errors.DegenerateInputError
TopologyInvariantViolation = _errors.TopologyInvariantViolation
MeshCapabilityError = _errors.MeshCapabilityError
InvalidElementError = _errors.InvalidElementError
get_logger = _log.get_logger
configure_logging = _log.configure_logging

# Namespace submodules for exploratory users
predicates = _pred
geometry = _geom
conformity = _conf
operations = _ops
features = _features
layout = _layout
stats = _stats
constants = _const

__all__ = [
    '__version__',
    # predicates
    'PredicateKernel', 'PointInSimplex', 'SimplexIntersection', 'kernel_for',
    'orient2d', 'orient3d', 'incircle', 'insphere',
    # geometry primitives
    'Plane', 'Ray', 'triangle_area', 'polygon_signed_area',
    # tolerances
    'EPS_AREA', 'EPS_ANGLE_DEG',
    # mesh, editor and algorithms
    'Mesh', 'MeshEditor', 'IndexRemap', 'mark_sharp_creases', 'pad_creases',
    'QuadLayout', 'compute_coarse_quad_layout', 'singular_vertices',
    'polygon_kernel', 'polygon_kernel_3d', 'check_mesh_conformity',
    # configuration and errors
    'TesseraConfig', 'PredicateConfig', 'EditorConfig', 'CreaseConfig', 'KernelConfig', 'LayoutConfig',
    'TesseraError', 'StructuralValidityError', 'DegenerateInputError', 'TopologyInvariantViolation',
    'MeshCapabilityError', 'InvalidElementError',
    'get_logger', 'configure_logging',
    # submodules / namespaces
    'predicates', 'geometry', 'conformity', 'operations', 'features', 'layout',
    'primitives', 'stats', 'constants', 'kernel',
]
