"""
Builders of remote annotation payloads (onshapeCreateAnnotations format).

Each builder takes already-resolved numbers and returns a plain dict ready
for JSON encoding. No lookups or validation happen here.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence

from onshape_drafter.api.types import (
    DIMENSION_FORMATTING,
    REFERENCE_POINT,
    DrawingObjectType,
    SnapPointType,
)

DEFAULT_TEXT_HEIGHT = 0.12


@dataclass(frozen=True)
class DimensionFormatting:
    """``Onshape::Formatting::Dimension`` block.

    Field names follow the AutoCAD DIM* system variables used by the service:
    dimdec (decimal places), dimlim (limits), dimpost (text template, ``<>`` is
    the measured value), dimtol (tolerance) with dimtp/dimtm (plus/minus).
    """
    decimals: int = 2
    postfix: str = "R<>"
    limits: bool = False
    tolerance: bool = False
    tolerance_plus: float = 0.0
    tolerance_minus: float = 0.0

    def to_json(self) -> Dict[str, Any]:
        return {
            'dimdec': self.decimals,
            'dimlim': self.limits,
            'dimpost': self.postfix,
            'dimtm': self.tolerance_minus,
            'dimtol': self.tolerance,
            'dimtp': self.tolerance_plus,
            'type': DIMENSION_FORMATTING,
        }


def _coordinate(point: Sequence[float]) -> list:
    return [float(v) for v in point]


def reference_point(point: Sequence[float]) -> Dict[str, Any]:
    """Free point (paper space)."""
    return {'type': REFERENCE_POINT, 'coordinate': _coordinate(point)}


def snapped_point(point: Sequence[float], unique_id: str, view_id: str,
                  snap_point_type: str = SnapPointType.MODE_NEAR) -> Dict[str, Any]:
    """Point attached to an edge of a view (view space)."""
    return {
        'coordinate': _coordinate(point),
        'type': REFERENCE_POINT,
        'uniqueId': unique_id,
        'viewId': view_id,
        'snapPointType': snap_point_type,
    }


def build_note(x: float, y: float, contents: str,
               text_height: float = DEFAULT_TEXT_HEIGHT) -> Dict[str, Any]:
    """``Onshape::Note`` at paper position (x, y, 0)."""
    return {
        'type': DrawingObjectType.NOTE,
        'note': {
            'position': reference_point((x, y, 0.0)),
            'contents': contents,
            'textHeight': text_height,
        },
    }


def build_diameter_dimension(
    unique_id: str,
    view_id: str,
    chord_point: Sequence[float],
    far_chord_point: Sequence[float],
    text_position: Sequence[float],
    formatting: DimensionFormatting = DimensionFormatting(),
) -> Dict[str, Any]:
    """``Onshape::Dimension::Diametric`` between two snapped circle points."""
    return {
        'type': DrawingObjectType.DIMENSION_DIAMETER,
        'diametricDimension': {
            'chordPoint': snapped_point(chord_point, unique_id, view_id),
            'farChordPoint': snapped_point(far_chord_point, unique_id, view_id),
            'formatting': formatting.to_json(),
            'textOverride': '',
            'textPosition': reference_point(text_position),
        },
    }
