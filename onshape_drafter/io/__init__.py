"""Reading and validating local drafter data files."""

from onshape_drafter.io.drafter_data import (
    DrafterData,
    DrafterDataError,
    DrafterDiameterDimension,
    DrafterElementType,
    DrafterNote,
    UnsupportedElement,
    load_drafter_data,
    parse_drafter_data,
)

__all__ = [
    "DrafterData",
    "DrafterDataError",
    "DrafterDiameterDimension",
    "DrafterElementType",
    "DrafterNote",
    "UnsupportedElement",
    "load_drafter_data",
    "parse_drafter_data",
]
