"""
Translation of local drafter elements into remote annotations.

Modules:
  - builders:    payload dicts for notes and diametric dimensions
  - translator:  element dispatch, edge lookup, resolution policy
  - symbols:     drafting symbols for note text
"""

from onshape_drafter.annotations.builders import (
    DimensionFormatting,
    build_diameter_dimension,
    build_note,
)
from onshape_drafter.annotations.translator import (
    GeometryResolutionError,
    InvalidCoordinatesError,
    ResolutionPolicy,
    TranslationResult,
    translate_elements,
)

__all__ = [
    'DimensionFormatting',
    'build_diameter_dimension',
    'build_note',
    'GeometryResolutionError',
    'InvalidCoordinatesError',
    'ResolutionPolicy',
    'TranslationResult',
    'translate_elements',
]
