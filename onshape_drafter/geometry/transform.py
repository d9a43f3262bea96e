"""
View-space to paper-space projection.

Drawing views carry a ``viewToPaperMatrix`` whose ``items`` are the
row-major entries of the transform. Onshape emits a 3x4 affine matrix
(12 items); 4x4 homogeneous (16) and 3x3 linear (9) forms are accepted too.
"""

from typing import List, Sequence

import numpy as np


def matrix_from_items(items: Sequence[float]) -> np.ndarray:
    """Reshape flat row-major matrix items.

    Returns:
        Array of shape (3, 3), (3, 4) or (4, 4).

    Raises:
        ValueError: for any other number of items.
    """
    m = np.asarray(items, dtype=np.float64).ravel()
    if m.size == 9:
        return m.reshape(3, 3)
    if m.size == 12:
        return m.reshape(3, 4)
    if m.size == 16:
        return m.reshape(4, 4)
    raise ValueError(f"Unsupported view-to-paper matrix with {m.size} items (expected 9, 12 or 16)")


def convert_point_view_to_paper(point: Sequence[float], matrix_items: Sequence[float]) -> np.ndarray:
    """Map a view-space point [x, y, z] into paper space.

    Args:
        point: view-space point (2 or 3 components; missing z is 0).
        matrix_items: flat row-major transform as emitted by the service.

    Returns:
        Paper-space point [x, y, z].
    """
    p = np.zeros(3)
    coords = np.asarray(point, dtype=np.float64).ravel()
    p[:coords.size] = coords[:3]

    m = matrix_from_items(matrix_items)
    if m.shape == (3, 3):
        return m @ p

    homogeneous = np.append(p, 1.0)
    result = m @ homogeneous
    if m.shape == (4, 4):
        w = result[3]
        if abs(w) < 1e-12:
            raise ValueError("View-to-paper matrix maps point to infinity")
        return result[:3] / w
    return result


def identity_matrix_items() -> List[float]:
    """Items of the 3x4 identity transform."""
    return np.hstack([np.eye(3), np.zeros((3, 1))]).ravel().tolist()
