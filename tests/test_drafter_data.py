"""
Unit tests for onshape_drafter.io.drafter_data and onshape_drafter.io.validator.

Tests:
- Element type tags
- Parsing of notes, diameter dimensions and unknown elements
- File loading errors
- Validation report
"""

import json
from pathlib import Path

import pytest

from onshape_drafter.io.drafter_data import (
    DrafterData,
    DrafterDataError,
    DrafterDiameterDimension,
    DrafterElementType,
    DrafterNote,
    UnsupportedElement,
    load_drafter_data,
    parse_drafter_data,
    parse_element,
)
from onshape_drafter.io.validator import (
    ValidationSeverity,
    validate_drafter_data,
    validate_drafter_file,
)
from tests.conftest import dump_elements


class TestDrafterElementType:
    """Tests for element type tags."""

    def test_type_values(self):
        """Test tag strings match the file format."""
        assert DrafterElementType.NOTE.value == "note"
        assert DrafterElementType.DIMENSION_DIAMETER.value == "dimension-diameter"

    def test_dataclass_types(self):
        """Test each element dataclass carries its tag."""
        assert DrafterNote(position=(1, 2)).type is DrafterElementType.NOTE
        assert DrafterDiameterDimension("E1").type is DrafterElementType.DIMENSION_DIAMETER


class TestParseElement:
    """Tests for parse_element."""

    def test_note(self):
        """Test note parsing keeps raw coordinates."""
        element = parse_element({'type': 'note', 'position': {'x': "3.5", 'y': 2}, 'contents': 'Hi'})
        assert isinstance(element, DrafterNote)
        assert element.x == "3.5"
        assert element.y == 2
        assert element.contents == 'Hi'

    def test_note_without_contents(self):
        """Test missing contents default to empty string."""
        element = parse_element({'type': 'note', 'position': {'x': 0, 'y': 0}})
        assert element.contents == ''

    def test_note_without_position(self):
        """Test note without position is a data error."""
        with pytest.raises(DrafterDataError, match="position"):
            parse_element({'type': 'note', 'contents': 'Hi'})

    def test_diameter_dimension(self):
        """Test diameter dimension parsing."""
        element = parse_element({'type': 'dimension-diameter', 'deterministicId': 'JHD'})
        assert element == DrafterDiameterDimension('JHD')

    def test_diameter_without_id(self):
        """Test diameter dimension without id is a data error."""
        with pytest.raises(DrafterDataError, match="deterministicId"):
            parse_element({'type': 'dimension-diameter'})

    def test_unknown_type_kept(self):
        """Test unknown types become UnsupportedElement."""
        raw = {'type': 'dimension-linear', 'deterministicId': 'E2'}
        element = parse_element(raw)
        assert isinstance(element, UnsupportedElement)
        assert element.type == 'dimension-linear'
        assert element.raw == raw

    def test_non_object(self):
        """Test non-object element is rejected."""
        with pytest.raises(DrafterDataError):
            parse_element(["note"], index=4)


class TestParseDrafterData:
    """Tests for parse_drafter_data."""

    def test_elements_in_order(self, sample_elements):
        """Test elements are parsed in file order."""
        data = parse_drafter_data({'elements': sample_elements})
        assert len(data) == 3
        assert isinstance(data.elements[0], DrafterNote)
        assert isinstance(data.elements[1], DrafterDiameterDimension)
        assert isinstance(data.elements[2], UnsupportedElement)

    def test_count_by_type(self, sample_elements):
        """Test per-type counts."""
        data = parse_drafter_data({'elements': sample_elements})
        assert data.count_by_type() == {
            'note': 1, 'dimension-diameter': 1, 'dimension-linear': 1,
        }

    def test_missing_elements(self):
        """Test document without elements list."""
        with pytest.raises(DrafterDataError, match="elements"):
            parse_drafter_data({'items': []})

    def test_empty_elements(self):
        """Test empty element list is valid."""
        assert len(parse_drafter_data({'elements': []})) == 0


class TestLoadDrafterData:
    """Tests for load_drafter_data."""

    def test_load(self, drafter_data_path: Path):
        """Test loading a written file."""
        data = load_drafter_data(drafter_data_path)
        assert len(data) == 2
        assert data.source == drafter_data_path

    def test_missing_file(self, tmp_path: Path):
        """Test missing file raises DrafterDataError."""
        with pytest.raises(DrafterDataError, match="not found"):
            load_drafter_data(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path):
        """Test invalid JSON raises DrafterDataError."""
        path = tmp_path / "bad.json"
        path.write_text("{elements: ", encoding='utf-8')
        with pytest.raises(DrafterDataError, match="not valid JSON"):
            load_drafter_data(path)

    def test_dump_round_trip(self, tmp_path: Path, sample_elements):
        """Test dump_elements writes a loadable file."""
        data = parse_drafter_data({'elements': sample_elements})
        path = tmp_path / "out.json"
        path.write_text(json.dumps(dump_elements(list(data.elements))), encoding='utf-8')
        assert load_drafter_data(path).elements == data.elements


class TestValidator:
    """Tests for validate_drafter_data."""

    def test_valid_file(self, drafter_data_path: Path):
        """Test clean data validates."""
        report = validate_drafter_file(str(drafter_data_path))
        assert report.is_valid
        assert report.n_notes == 1
        assert report.n_diameter_dimensions == 1
        assert not report.issues

    def test_invalid_coordinates_is_error(self):
        """Test non-numeric coordinates make the report invalid."""
        data = DrafterData(elements=(DrafterNote(position=("abc", 1), contents="x"),))
        report = validate_drafter_data(data)
        assert not report.is_valid
        assert report.errors[0].code == "INVALID_COORDINATES"
        assert report.errors[0].details == [0]

    def test_unsupported_is_warning(self, sample_elements):
        """Test unsupported types only warn."""
        report = validate_drafter_data(parse_drafter_data({'elements': sample_elements}))
        assert report.is_valid
        assert [w.code for w in report.warnings] == ["UNSUPPORTED_TYPE"]
        assert report.n_unsupported == 1

    def test_empty_note_warning(self):
        """Test empty note contents warn."""
        data = DrafterData(elements=(DrafterNote(position=(1, 1), contents="  "),))
        report = validate_drafter_data(data)
        assert report.warnings[0].code == "EMPTY_NOTE"

    def test_duplicate_dimension_info(self):
        """Test repeated edge ids are reported as info."""
        data = DrafterData(elements=(DrafterDiameterDimension("E1"), DrafterDiameterDimension("E1")))
        report = validate_drafter_data(data)
        assert report.is_valid
        assert report.issues[0].severity == ValidationSeverity.INFO

    def test_summary(self):
        """Test summary mentions overall status."""
        data = DrafterData(elements=(DrafterNote(position=("x", "y")),))
        summary = validate_drafter_data(data).summary()
        assert "INVALID" in summary
        assert "INVALID_COORDINATES" in summary
