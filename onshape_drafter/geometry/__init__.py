"""Geometric placement: circle points and view-to-paper projection."""

from onshape_drafter.geometry.circle import (
    CHORD_ANGLE_DEG,
    FAR_CHORD_ANGLE_DEG,
    chord_points,
    label_location,
    point_on_circle,
)
from onshape_drafter.geometry.transform import (
    convert_point_view_to_paper,
    identity_matrix_items,
    matrix_from_items,
)

__all__ = [
    "CHORD_ANGLE_DEG",
    "FAR_CHORD_ANGLE_DEG",
    "chord_points",
    "label_location",
    "point_on_circle",
    "convert_point_view_to_paper",
    "identity_matrix_items",
    "matrix_from_items",
]
