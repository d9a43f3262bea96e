"""
Pytest configuration and fixtures for onshape_drafter.

Provides:
- Drafter data fixtures (elements and files)
- Drawing export / view geometry payloads shaped like the remote API
- A fake API client that routes paths to canned responses
- A fake clock for polling loops
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple, Union

import pytest

from onshape_drafter.api.types import DocumentRef
from onshape_drafter.io.drafter_data import DrafterDiameterDimension, DrafterElement, DrafterNote
from onshape_drafter.logging_config import PACKAGE_LOGGER

DOC_ID = "0123456789abcdef01234567"
WS_ID = "89abcdef0123456789abcdef"
EL_ID = "fedcba9876543210fedcba98"
BASE_URL = "https://cad.onshape.com/"
DOCUMENT_URL = f"https://cad.onshape.com/documents/{DOC_ID}/w/{WS_ID}/e/{EL_ID}"

# 3x4 row-major: scale 0.5, translate (1, 2, 0)
SCALED_MATRIX = [0.5, 0.0, 0.0, 1.0,
                 0.0, 0.5, 0.0, 2.0,
                 0.0, 0.0, 1.0, 0.0]
IDENTITY_MATRIX = [1.0, 0.0, 0.0, 0.0,
                   0.0, 1.0, 0.0, 0.0,
                   0.0, 0.0, 1.0, 0.0]


# ============================================================================
# Fake remote
# ============================================================================

Response = Union[Any, Callable[[], Any], Exception]


class FakeOnshapeClient:
    """Stands in for OnshapeClient; routes ``(method, path)`` to responses.

    A response may be a value, a callable producing a value, an exception
    instance to raise, or a list consumed one item per call.
    """

    def __init__(self, routes: Dict[Tuple[str, str], Response], base_url: str = BASE_URL):
        self.routes = dict(routes)
        self.base_url = base_url
        self.calls: List[Tuple[str, str, Any]] = []

    def _respond(self, method: str, path: str, body: Any = None) -> Any:
        self.calls.append((method, path, body))
        key = (method, path)
        if key not in self.routes:
            raise AssertionError(f"Unexpected request {method} {path}")
        response = self.routes[key]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response

    def get(self, path: str, params: Any = None) -> Any:
        return self._respond('GET', path)

    def post(self, path: str, body: Any) -> Any:
        return self._respond('POST', path, body)

    def posted(self, path: str) -> Any:
        """Body of the last POST to ``path``."""
        bodies = [b for m, p, b in self.calls if m == 'POST' and p == path]
        assert bodies, f"No POST to {path}"
        return bodies[-1]

    def close(self) -> None:
        pass

    def __enter__(self) -> 'FakeOnshapeClient':
        return self

    def __exit__(self, *exc: Any) -> None:
        pass


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# ============================================================================
# Payload builders
# ============================================================================

def dump_elements(elements: List[DrafterElement]) -> Dict[str, Any]:
    """Drafter data document holding the given elements."""
    out: List[Dict[str, Any]] = []
    for element in elements:
        if isinstance(element, DrafterNote):
            out.append({'type': element.type.value,
                        'position': {'x': element.x, 'y': element.y},
                        'contents': element.contents})
        elif isinstance(element, DrafterDiameterDimension):
            out.append({'type': element.type.value,
                        'deterministicId': element.deterministic_id})
        else:
            out.append(dict(element.raw) or {'type': element.type})
    return {'elements': out}


def circle_edge(deterministic_id: str, center=(0.0, 0.0, 0.0), radius: float = 10.0,
                unique_id: str = None) -> Dict[str, Any]:
    """bodyData entry for a circular edge."""
    return {
        'deterministicId': deterministic_id,
        'uniqueId': unique_id or f"U-{deterministic_id}",
        'type': 'circle',
        'data': {'center': list(center), 'radius': radius},
    }


def line_edge(deterministic_id: str) -> Dict[str, Any]:
    """bodyData entry for a straight edge."""
    return {
        'deterministicId': deterministic_id,
        'uniqueId': f"U-{deterministic_id}",
        'type': 'line',
        'data': {'start': [0, 0, 0], 'end': [1, 0, 0]},
    }


def export_with_views(*views: Tuple[str, List[float]], active: bool = True) -> Dict[str, Any]:
    """Drawing JSON export with one sheet holding the given views."""
    return {
        'sheets': [
            {'name': 'Sheet0', 'active': False, 'views': [
                {'viewId': 'other-sheet-view', 'name': 'Other',
                 'viewToPaperMatrix': {'items': IDENTITY_MATRIX}},
            ]},
            {'name': 'Sheet1', 'active': active, 'views': [
                {'viewId': view_id, 'name': f"View {view_id}",
                 'viewToPaperMatrix': {'items': matrix}}
                for view_id, matrix in views
            ]},
        ],
    }


def remote_routes(
    ref: DocumentRef,
    export: Dict[str, Any],
    geometries: Dict[str, Response],
    modify_output: Dict[str, Any],
    modify_state: str = "DONE",
) -> Dict[Tuple[str, str], Response]:
    """Routes for a complete run against the fake client."""
    routes: Dict[Tuple[str, str], Response] = {
        ('POST', f"api/drawings/{ref.path}/translations"): {'id': 'tr-1'},
        ('GET', "api/translations/tr-1"): [
            {'id': 'tr-1', 'requestState': 'ACTIVE'},
            {'id': 'tr-1', 'requestState': 'DONE', 'resultExternalDataIds': ['ext-1']},
        ],
        ('GET', f"api/documents/d/{ref.document_id}/externaldata/ext-1"): export,
        ('POST', f"api/v6/drawings/{ref.path}/modify"): {'id': 'job-1'},
        ('GET', "api/drawings/modify/status/job-1"): [
            {'id': 'job-1', 'requestState': 'ACTIVE'},
            {'id': 'job-1', 'requestState': modify_state, 'output': json.dumps(modify_output)},
        ],
    }
    for view_id, response in geometries.items():
        routes[('GET', f"api/appelements/{ref.path}/views/{view_id}/jsongeometry")] = response
    return routes


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def doc_ref() -> DocumentRef:
    return DocumentRef(DOC_ID, WS_ID, EL_ID)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def note_element() -> DrafterNote:
    return DrafterNote(position=("3.5", "2"), contents="Deburr all edges")


@pytest.fixture
def diameter_element() -> DrafterDiameterDimension:
    return DrafterDiameterDimension(deterministic_id="E1")


@pytest.fixture
def sample_elements() -> List[Dict[str, Any]]:
    """Raw drafter data elements: one note, one dimension, one unsupported."""
    return [
        {'type': 'note', 'position': {'x': 1.5, 'y': 2}, 'contents': 'Break sharp edges'},
        {'type': 'dimension-diameter', 'deterministicId': 'E1'},
        {'type': 'dimension-linear', 'deterministicId': 'E2'},
    ]


@pytest.fixture
def drafter_data_path(tmp_path: Path, note_element, diameter_element) -> Path:
    """drafterData.json with one note and one diameter dimension."""
    path = tmp_path / "drafterData.json"
    path.write_text(json.dumps(dump_elements([note_element, diameter_element])), encoding='utf-8')
    return path


@pytest.fixture
def single_view_routes(doc_ref):
    """Routes for one view 'v1' with circle E1 and a two-success modify job."""
    return remote_routes(
        doc_ref,
        export_with_views(('v1', SCALED_MATRIX)),
        {'v1': {'bodyData': [line_edge('L1'), circle_edge('E1')]}},
        {'statusCode': 200, 'results': [
            {'status': 'OK', 'logicalId': 'h:10000001'},
            {'status': 'OK', 'logicalId': 'h:10000002'},
        ]},
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so later tests see records through caplog."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()
    package_logger.filters.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
