"""
Points on circular edges of a drawing view.

View-space coordinates are (x, y, z) where x/y lie in the view plane and z
carries depth. Circles are evaluated in the x/y plane; z is copied from the
center.
"""

from typing import Sequence, Tuple

import numpy as np

CHORD_ANGLE_DEG = 45.0
FAR_CHORD_ANGLE_DEG = 225.0


def point_on_circle(center: Sequence[float], radius: float, angle_degrees: float) -> np.ndarray:
    """Point on the circumference at ``angle_degrees`` from the +x axis.

    Args:
        center: circle center [x, y, z].
        radius: circle radius.
        angle_degrees: angle measured counter-clockwise in the x/y plane.

    Returns:
        Array [x, y, z] with z equal to the center's z.
    """
    c = np.asarray(center, dtype=np.float64)
    theta = np.radians(angle_degrees)
    return np.array([
        c[0] + radius * np.cos(theta),
        c[1] + radius * np.sin(theta),
        c[2],
    ])


def chord_points(
    center: Sequence[float],
    radius: float,
    chord_angle_deg: float = CHORD_ANGLE_DEG,
    far_chord_angle_deg: float = FAR_CHORD_ANGLE_DEG,
) -> Tuple[np.ndarray, np.ndarray]:
    """Dimension-line anchors on the circle.

    With the default 45°/225° pair the two points are diametrically opposite,
    so their distance is exactly ``2 * radius``.
    """
    return (point_on_circle(center, radius, chord_angle_deg),
            point_on_circle(center, radius, far_chord_angle_deg))


def label_location(
    center: Sequence[float],
    chord_point: Sequence[float],
    offset_factor: float = 2.0,
) -> np.ndarray:
    """Text placement pushed outward past the chord point.

    The label sits on the ray from the center through the chord point at
    ``offset_factor`` times the radius, in the x/y plane, at the center's depth.
    """
    c = np.asarray(center, dtype=np.float64)
    p = np.asarray(chord_point, dtype=np.float64)
    direction = p[:2] - c[:2]
    xy = c[:2] + offset_factor * direction
    return np.array([xy[0], xy[1], c[2]])
