"""Exception hierarchy raised by the mesh store, the editor and the predicates."""
from __future__ import annotations


class TesseraError(Exception):
    """Base class for every error raised by tessera."""


class StructuralValidityError(TesseraError, ValueError):
    """Malformed input connectivity: out-of-range index, missing winding data, bad shapes.

    Raised at construction time; no mesh is created.
    """


class DegenerateInputError(TesseraError, ValueError):
    """A predicate precondition was violated (zero length/area/volume simplex).

    Callers are expected to pre-filter with the ``*_is_degenerate`` predicates.
    """


class TopologyInvariantViolation(TesseraError):
    """An edit would break manifoldness, orientation or adjacency consistency.

    The mesh is left exactly as it was before the call.
    """

    def __init__(self, message, op=None, details=None, reason='topology'):
        super().__init__(message)
        self.op = op
        self.details = list(details or [])
        # 'topology' or 'geometry' (inverted or collapsed element)
        self.reason = reason


class MeshCapabilityError(TesseraError, TypeError):
    """Method not available for this kind of mesh (e.g. surface-only query on a volume mesh)."""


class InvalidElementError(TesseraError, IndexError):
    """A vertex/edge/face/poly id that does not exist in the mesh."""


__all__ = [
    'TesseraError',
    'StructuralValidityError',
    'DegenerateInputError',
    'TopologyInvariantViolation',
    'MeshCapabilityError',
    'InvalidElementError',
]
