"""
Drafting symbols usable in note contents.

Note text may reference symbols by name in braces; they are replaced before
submission:

    "{diameter}12 THRU, {position} 0.1 {maximum_material_condition}"
    -> "⌀12 THRU, ⌖ 0.1 Ⓜ"

Unknown names are left untouched so that literal braces survive.
"""

import re
from typing import Dict

# Geometric characteristic symbols (ASME Y14.5 / ISO 1101)
GEOMETRIC_TOLERANCE_SYMBOLS = {
    'position': '⌖',
    'concentricity': '◎',
    'symmetry': '≡',
    'parallelism': '∥',
    'perpendicularity': '⊥',
    'angularity': '∠',
    'cylindricity': '⌀',
    'flatness': '▱',
    'roundness': '◯',
    'straightness': '―',
    'profile_surface': '︵',
    'profile_line': '︶',
    'circular_runout': '↗',
    'total_runout': '↗↱',
}

MATERIAL_CONDITION_SYMBOLS = {
    'maximum_material_condition': 'Ⓜ',
    'least_material_condition': 'Ⓛ',
    'regardless_of_feature_size': 'Ⓢ',
}

ADDITIONAL_SYMBOLS = {
    'diameter': '⌀',
    'spherical_diameter': 'S⌀',
    'spherical_radius': 'SR',
    'controlled_radius': 'CR',
    'radius': 'R',
    'continuous_feature': '⌯CF',
    'statistical_tolerance': '⌯ST',
    'square': '□',
    'independency': 'ⓘ',
    'translation': '▷',
    'spot_face': '⏐SF⏐',
}

ALL_SYMBOLS: Dict[str, str] = {
    **GEOMETRIC_TOLERANCE_SYMBOLS,
    **MATERIAL_CONDITION_SYMBOLS,
    **ADDITIONAL_SYMBOLS,
}

_PLACEHOLDER_RE = re.compile(r"\{([a-z_]+)\}")


def substitute_symbols(text: str) -> str:
    """Replace ``{name}`` placeholders with their symbols."""
    return _PLACEHOLDER_RE.sub(lambda m: ALL_SYMBOLS.get(m.group(1), m.group(0)), text)
