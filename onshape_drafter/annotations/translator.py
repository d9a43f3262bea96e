"""
Translation of drafter elements into remote annotations.

- Notes pass their coordinates through (parsed as finite floats).
- Diameter dimensions are located by deterministic id in every searched
  view; each match yields one dimension with two chord points in view space
  and a label point projected to paper space.
- Unsupported elements are logged and skipped.

Whether an unmatched diameter dimension aborts the batch is decided by a
single explicit :class:`ResolutionPolicy`.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from onshape_drafter.annotations.builders import (
    DimensionFormatting,
    build_diameter_dimension,
    build_note,
)
from onshape_drafter.annotations.symbols import substitute_symbols
from onshape_drafter.api.types import View, ViewGeometry
from onshape_drafter.errors import DrafterError
from onshape_drafter.geometry.circle import chord_points, label_location
from onshape_drafter.geometry.transform import convert_point_view_to_paper, identity_matrix_items
from onshape_drafter.io.drafter_data import (
    DrafterDataError,
    DrafterDiameterDimension,
    DrafterElement,
    DrafterNote,
)
from onshape_drafter.project_config import AnnotationsConfig

logger = logging.getLogger(__name__)


class InvalidCoordinatesError(DrafterDataError):
    """Note position does not parse as finite numbers."""


class GeometryResolutionError(DrafterError):
    """A diameter dimension matched no circular edge (strict policy)."""


class ResolutionPolicy(Enum):
    """What to do with a diameter dimension that matches no view."""
    LENIENT = "lenient"  # warn, contribute nothing
    STRICT = "strict"    # fail the whole batch

    @classmethod
    def from_string(cls, value: Union[str, 'ResolutionPolicy']) -> 'ResolutionPolicy':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown resolution policy: {value!r}") from None


def parse_coordinate(value: Any) -> float:
    """Parse a note coordinate (number or numeric string) as a finite float.

    Raises:
        ValueError: for booleans, non-numeric strings, NaN and infinities
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except TypeError:
        raise ValueError(f"not a number: {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


@dataclass(frozen=True)
class ResolvedDiameter:
    """Placement of one diameter dimension in one view."""
    unique_id: str
    view_id: str
    chord_point: np.ndarray = field(compare=False)
    far_chord_point: np.ndarray = field(compare=False)
    text_location: np.ndarray = field(compare=False)  # paper space


@dataclass
class TranslationResult:
    """Flat annotation list plus per-element bookkeeping."""
    annotations: List[Dict[str, Any]] = field(default_factory=list)
    notes: int = 0
    dimensions: int = 0
    skipped_types: List[str] = field(default_factory=list)
    unresolved_ids: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.annotations)


def convert_note(note: DrafterNote, config: Optional[AnnotationsConfig] = None) -> Dict[str, Any]:
    """Remote note for a local one.

    Raises:
        InvalidCoordinatesError: if x or y is not a finite number
    """
    config = config or AnnotationsConfig()
    try:
        x = parse_coordinate(note.x)
        y = parse_coordinate(note.y)
    except ValueError:
        raise InvalidCoordinatesError(f"Invalid coordinates: x={note.x}, y={note.y}") from None
    return build_note(x, y, substitute_symbols(note.contents), text_height=config.text_height)


def resolve_diameter_in_view(
    dimension: DrafterDiameterDimension,
    geometry: ViewGeometry,
    view: View,
    config: Optional[AnnotationsConfig] = None,
) -> Optional[ResolvedDiameter]:
    """Place a diameter dimension on its edge in one view.

    Returns:
        None when the view has no circular edge with the dimension's id, or
        the edge lacks a center or radius.
    """
    config = config or AnnotationsConfig()
    edge = geometry.find_edge(dimension.deterministic_id)
    if edge is None or not edge.is_circle:
        return None
    if edge.center is None or not edge.radius:
        logger.debug("Edge %s in view %s has no center/radius", edge.deterministic_id, view.view_id)
        return None

    chord, far_chord = chord_points(edge.center, edge.radius,
                                    config.chord_angle_deg, config.far_chord_angle_deg)
    label_view = label_location(edge.center, chord, config.label_offset_factor)
    matrix = view.view_to_paper
    if not matrix:
        logger.warning("View %s has no view-to-paper matrix, using identity", view.view_id)
        matrix = identity_matrix_items()
    label_paper = convert_point_view_to_paper(label_view, matrix)

    return ResolvedDiameter(
        unique_id=edge.unique_id,
        view_id=view.view_id,
        chord_point=chord,
        far_chord_point=far_chord,
        text_location=label_paper,
    )


def convert_diameter_dimension(resolved: ResolvedDiameter,
                               config: Optional[AnnotationsConfig] = None) -> Dict[str, Any]:
    """Remote diametric dimension for a resolved placement."""
    config = config or AnnotationsConfig()
    formatting = DimensionFormatting(decimals=config.dimension_decimals,
                                     postfix=config.dimension_postfix)
    return build_diameter_dimension(
        unique_id=resolved.unique_id,
        view_id=resolved.view_id,
        chord_point=resolved.chord_point,
        far_chord_point=resolved.far_chord_point,
        text_position=resolved.text_location,
        formatting=formatting,
    )


def resolve_diameter(
    dimension: DrafterDiameterDimension,
    views: Sequence[View],
    geometries: Mapping[str, ViewGeometry],
    config: Optional[AnnotationsConfig] = None,
) -> List[ResolvedDiameter]:
    """Placements of a diameter dimension in every view where its edge appears.

    Views without fetched geometry count as "no match".
    """
    matches: List[ResolvedDiameter] = []
    for view in views:
        geometry = geometries.get(view.view_id)
        if geometry is None:
            continue
        resolved = resolve_diameter_in_view(dimension, geometry, view, config)
        if resolved is not None:
            matches.append(resolved)
    return matches


def translate_elements(
    elements: Sequence[DrafterElement],
    views: Sequence[View] = (),
    geometries: Optional[Mapping[str, ViewGeometry]] = None,
    policy: Union[str, ResolutionPolicy] = ResolutionPolicy.LENIENT,
    config: Optional[AnnotationsConfig] = None,
) -> TranslationResult:
    """Translate all elements, in input order.

    Raises:
        InvalidCoordinatesError: for a note with non-numeric coordinates
        GeometryResolutionError: under the strict policy, for a diameter
            dimension that matched no view
    """
    config = config or AnnotationsConfig()
    policy = ResolutionPolicy.from_string(policy)
    geometries = geometries or {}
    result = TranslationResult()

    for element in elements:
        if isinstance(element, DrafterNote):
            result.annotations.append(convert_note(element, config))
            result.notes += 1
            continue

        if isinstance(element, DrafterDiameterDimension):
            matches = resolve_diameter(element, views, geometries, config)
            if not matches:
                message = f"No valid circle edge found for deterministicId: {element.deterministic_id}"
                if policy is ResolutionPolicy.STRICT:
                    raise GeometryResolutionError(message)
                logger.warning("%s (searched %d views)", message, len(views))
                result.unresolved_ids.append(element.deterministic_id)
                continue
            for resolved in matches:
                result.annotations.append(convert_diameter_dimension(resolved, config))
                result.dimensions += 1
            logger.debug("Edge %s dimensioned in %d views", element.deterministic_id, len(matches))
            continue

        logger.warning("Unsupported element type: %s", element.type)
        result.skipped_types.append(str(element.type))

    logger.info("Translated %d annotations (%d notes, %d dimensions)",
                result.total, result.notes, result.dimensions,
                extra={"skipped": len(result.skipped_types), "unresolved": len(result.unresolved_ids)})
    return result
