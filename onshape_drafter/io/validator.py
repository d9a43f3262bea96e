"""
Drafter data validation.

Performs offline checks on a loaded drafter data file:
- Note coordinates parse as finite numbers
- Notes have non-empty contents
- Element types are supported
- Diameter dimensions are not requested twice for the same edge

Non-critical findings are reported as warnings and don't block processing.
Only errors make the report invalid.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from onshape_drafter.annotations.translator import parse_coordinate
from onshape_drafter.io.drafter_data import (
    DrafterData,
    DrafterDiameterDimension,
    DrafterNote,
    UnsupportedElement,
)

logger = logging.getLogger(__name__)


class ValidationSeverity(Enum):
    """Severity level of validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationIssue:
    """A single validation issue found in the data file."""
    code: str
    severity: ValidationSeverity
    message: str
    count: int = 1
    details: List[int] = field(default_factory=list)  # element indices

    def __str__(self) -> str:
        if self.count > 1:
            return f"[{self.severity.value.upper()}] {self.code}: {self.message} ({self.count} occurrences)"
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}"


@dataclass
class ValidationReport:
    """Complete validation report for a drafter data file."""
    n_elements: int
    n_notes: int
    n_diameter_dimensions: int
    n_unsupported: int
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Drafter Data Validation Report",
            "=" * 40,
            f"Elements: {self.n_elements}",
            f"Notes: {self.n_notes}",
            f"Diameter dimensions: {self.n_diameter_dimensions}",
            f"Unsupported: {self.n_unsupported}",
        ]

        if self.issues:
            lines.append("")
            lines.append("Issues:")
            for issue in self.issues:
                lines.append(f"  - {issue}")

        lines.append("")
        lines.append(f"Overall: {'VALID' if self.is_valid else 'INVALID'}")

        return "\n".join(lines)


def _is_number(value) -> bool:
    try:
        parse_coordinate(value)
    except ValueError:
        return False
    return True


def validate_drafter_data(data: DrafterData) -> ValidationReport:
    """Validate a parsed drafter data file.

    Returns:
        ValidationReport with all findings
    """
    issues: List[ValidationIssue] = []

    bad_coordinates: List[int] = []
    empty_notes: List[int] = []
    unsupported: List[int] = []
    edge_ids: Counter = Counter()
    n_notes = n_dimensions = 0

    for index, element in enumerate(data.elements):
        if isinstance(element, DrafterNote):
            n_notes += 1
            if not (_is_number(element.x) and _is_number(element.y)):
                bad_coordinates.append(index)
            if not element.contents.strip():
                empty_notes.append(index)
        elif isinstance(element, DrafterDiameterDimension):
            n_dimensions += 1
            edge_ids[element.deterministic_id] += 1
        elif isinstance(element, UnsupportedElement):
            unsupported.append(index)

    if bad_coordinates:
        issues.append(ValidationIssue(
            code="INVALID_COORDINATES",
            severity=ValidationSeverity.ERROR,
            message=f"{len(bad_coordinates)} notes have non-numeric coordinates",
            count=len(bad_coordinates),
            details=bad_coordinates[:10],
        ))
        logger.error("%d notes have non-numeric coordinates", len(bad_coordinates))

    if empty_notes:
        issues.append(ValidationIssue(
            code="EMPTY_NOTE",
            severity=ValidationSeverity.WARNING,
            message=f"{len(empty_notes)} notes have no contents",
            count=len(empty_notes),
            details=empty_notes[:10],
        ))
        logger.warning("%d notes have no contents", len(empty_notes))

    if unsupported:
        types = sorted({data.elements[i].type for i in unsupported})
        issues.append(ValidationIssue(
            code="UNSUPPORTED_TYPE",
            severity=ValidationSeverity.WARNING,
            message=f"Unsupported element types will be skipped: {', '.join(types)}",
            count=len(unsupported),
            details=unsupported[:10],
        ))
        logger.warning("%d elements have unsupported types", len(unsupported))

    duplicates = sorted(edge_id for edge_id, n in edge_ids.items() if n > 1)
    if duplicates:
        issues.append(ValidationIssue(
            code="DUPLICATE_DIMENSION",
            severity=ValidationSeverity.INFO,
            message=f"Edges dimensioned more than once: {', '.join(duplicates)}",
            count=len(duplicates),
        ))

    report = ValidationReport(
        n_elements=len(data.elements),
        n_notes=n_notes,
        n_diameter_dimensions=n_dimensions,
        n_unsupported=len(unsupported),
        issues=issues,
    )

    logger.info("Validation complete: %s", "VALID" if report.is_valid else "INVALID")
    return report


def validate_drafter_file(filepath: str) -> ValidationReport:
    """Load and validate a drafter data file."""
    from onshape_drafter.io.drafter_data import load_drafter_data

    return validate_drafter_data(load_drafter_data(filepath))
