"""
Remote drawing API constants and parsed response types.

Only the fields this client reads are modelled; everything else in the
service's JSON is ignored.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from onshape_drafter.errors import DrafterError


class DrawingObjectType:
    """Annotation ``type`` tags accepted by onshapeCreateAnnotations."""
    NOTE = "Onshape::Note"
    DIMENSION_DIAMETER = "Onshape::Dimension::Diametric"


class SnapPointType:
    """Snap modes for referenced points."""
    MODE_NEAR = "ModeNear"


class SingleRequestResultStatus:
    """Per-annotation outcome in a modify job's output."""
    REQUEST_SUCCESS = "OK"


class RequestState:
    """Lifecycle of translation and modify jobs."""
    ACTIVE = "ACTIVE"
    DONE = "DONE"
    FAILED = "FAILED"


REFERENCE_POINT = "Onshape::Reference::Point"
DIMENSION_FORMATTING = "Onshape::Formatting::Dimension"
CREATE_ANNOTATIONS_MESSAGE = "onshapeCreateAnnotations"
CREATE_ANNOTATIONS_FORMAT_VERSION = "2021-01-01"
CIRCLE_EDGE = "circle"


@dataclass(frozen=True)
class DocumentRef:
    """Document / workspace / element triple addressing a drawing."""
    document_id: str
    workspace_id: str
    element_id: str

    @property
    def path(self) -> str:
        return f"d/{self.document_id}/w/{self.workspace_id}/e/{self.element_id}"


@dataclass(frozen=True)
class View:
    """Drawing view on a sheet."""
    view_id: str
    name: str = ""
    view_to_paper: Tuple[float, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'View':
        matrix = data.get('viewToPaperMatrix') or {}
        items = matrix.get('items', []) if isinstance(matrix, dict) else matrix
        return cls(view_id=str(data['viewId']),
                   name=str(data.get('name', '')),
                   view_to_paper=tuple(float(v) for v in items))


class GeometryPayloadError(DrafterError):
    """A view geometry response that cannot be decoded into edges."""


@dataclass(frozen=True)
class Edge:
    """Geometric edge of a view's exported geometry."""
    deterministic_id: str
    unique_id: str
    type: str
    center: Optional[Tuple[float, float, float]] = None
    radius: Optional[float] = None

    @property
    def is_circle(self) -> bool:
        return self.type == CIRCLE_EDGE

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Edge':
        geom = data.get('data') or {}
        center = geom.get('center')
        radius = geom.get('radius')
        if center:
            center = tuple(float(c) for c in center)
            if len(center) != 3:
                raise ValueError(f"center must have 3 coordinates, got {len(center)}")
        return cls(
            deterministic_id=str(data.get('deterministicId', '')),
            unique_id=str(data.get('uniqueId', '')),
            type=str(data.get('type', '')),
            center=center or None,
            radius=float(radius) if radius is not None else None,
        )


@dataclass(frozen=True)
class ViewGeometry:
    """Edges of one view, as returned by the jsongeometry endpoint."""
    view_id: str
    edges: Tuple[Edge, ...] = ()

    def find_edge(self, deterministic_id: str) -> Optional[Edge]:
        """First edge with this deterministic id, or None."""
        for edge in self.edges:
            if edge.deterministic_id == deterministic_id:
                return edge
        return None

    @classmethod
    def from_json(cls, view_id: str, data: Dict[str, Any]) -> 'ViewGeometry':
        """Decode a jsongeometry response.

        Raises:
            GeometryPayloadError: if the body or one of its edges is malformed
        """
        try:
            edges = tuple(Edge.from_json(e) for e in data.get('bodyData', []))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise GeometryPayloadError(f"Malformed geometry for view {view_id}: {exc}") from exc
        return cls(view_id=view_id, edges=edges)


@dataclass(frozen=True)
class SingleRequestResult:
    """Outcome of one annotation inside a modify job."""
    status: str
    logical_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SingleRequestResultStatus.REQUEST_SUCCESS


@dataclass
class ModifyStatusOutput:
    """Terminal output of a modify job."""
    status_code: Optional[int] = None
    results: List[SingleRequestResult] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> 'ModifyStatusOutput':
        """Parse the ``output`` field, which the service sends as a JSON string."""
        if isinstance(data, str):
            data = json.loads(data) if data else {}
        results = [SingleRequestResult(status=str(r.get('status', '')),
                                       logical_id=r.get('logicalId'))
                   for r in data.get('results', [])]
        return cls(status_code=data.get('statusCode'), results=results)
