"""
Loading of local drafter data files (drafterData.json).

File format:
    {
      "elements": [
        {"type": "note", "position": {"x": 1.5, "y": 2}, "contents": "Deburr all edges"},
        {"type": "dimension-diameter", "deterministicId": "JHD"}
      ]
    }

Elements are parsed into a closed set of frozen dataclasses. Elements with an
unknown ``type`` are kept as :class:`UnsupportedElement` so translation can
report and skip them; coordinate values are kept exactly as read and parsed
during translation.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from onshape_drafter.errors import DrafterError

logger = logging.getLogger(__name__)

Coordinate = Union[int, float, str]


class DrafterElementType(Enum):
    """Element ``type`` tags of the drafter data file."""
    NOTE = "note"
    DIMENSION_DIAMETER = "dimension-diameter"


class DrafterDataError(DrafterError):
    """Missing, unreadable or structurally malformed drafter data."""


@dataclass(frozen=True)
class DrafterNote:
    """Text note at a paper-space position."""
    position: Tuple[Coordinate, Coordinate]
    contents: str = ""
    type: DrafterElementType = field(default=DrafterElementType.NOTE, init=False)

    @property
    def x(self) -> Coordinate:
        return self.position[0]

    @property
    def y(self) -> Coordinate:
        return self.position[1]


@dataclass(frozen=True)
class DrafterDiameterDimension:
    """Diameter dimension on the circular edge with this deterministic id."""
    deterministic_id: str
    type: DrafterElementType = field(default=DrafterElementType.DIMENSION_DIAMETER, init=False)


@dataclass(frozen=True)
class UnsupportedElement:
    """Element whose type tag is not recognised."""
    type: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


DrafterElement = Union[DrafterNote, DrafterDiameterDimension, UnsupportedElement]


@dataclass(frozen=True)
class DrafterData:
    """Parsed contents of a drafter data file."""
    elements: Tuple[DrafterElement, ...] = ()
    source: Optional[Path] = None

    def __len__(self) -> int:
        return len(self.elements)

    def count_by_type(self) -> Dict[str, int]:
        """Number of elements per type tag."""
        counts: Dict[str, int] = {}
        for element in self.elements:
            key = element.type.value if isinstance(element.type, DrafterElementType) else element.type
            counts[key] = counts.get(key, 0) + 1
        return counts


def parse_element(raw: Any, index: int = 0) -> DrafterElement:
    """Convert one raw JSON element into its dataclass.

    Raises:
        DrafterDataError: if the element is not an object or misses fields
            required by its type
    """
    if not isinstance(raw, dict):
        raise DrafterDataError(f"Element {index} is not an object: {raw!r}")

    element_type = raw.get('type')

    if element_type == DrafterElementType.NOTE.value:
        position = raw.get('position')
        if not isinstance(position, dict) or 'x' not in position or 'y' not in position:
            raise DrafterDataError(f"Note element {index} has no position.x/position.y")
        return DrafterNote(position=(position['x'], position['y']),
                           contents=str(raw.get('contents', '')))

    if element_type == DrafterElementType.DIMENSION_DIAMETER.value:
        deterministic_id = raw.get('deterministicId')
        if not deterministic_id:
            raise DrafterDataError(f"Diameter dimension element {index} has no deterministicId")
        return DrafterDiameterDimension(deterministic_id=str(deterministic_id))

    return UnsupportedElement(type=str(element_type), raw=raw)


def parse_drafter_data(data: Any, source: Optional[Path] = None) -> DrafterData:
    """Parse an already-decoded drafter data document.

    Raises:
        DrafterDataError: if the document has no ``elements`` list
    """
    if not isinstance(data, dict) or not isinstance(data.get('elements'), list):
        raise DrafterDataError("Drafter data must be an object with an 'elements' list")

    elements = tuple(parse_element(raw, i) for i, raw in enumerate(data['elements']))
    return DrafterData(elements=elements, source=source)


def load_drafter_data(filepath: Union[str, Path]) -> DrafterData:
    """Read and parse a drafter data file.

    Raises:
        DrafterDataError: if the file is missing, unreadable or malformed
    """
    path = Path(filepath)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise DrafterDataError(f"Drafter data file not found: {str(path)!r}")
    except json.JSONDecodeError as exc:
        raise DrafterDataError(f"Drafter data file {str(path)!r} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise DrafterDataError(f"Cannot read drafter data file {str(path)!r}: {exc}") from exc

    drafter_data = parse_drafter_data(data, source=path)
    logger.info("Loaded %d elements from %s", len(drafter_data), path,
                extra={"element_types": drafter_data.count_by_type()})
    return drafter_data
