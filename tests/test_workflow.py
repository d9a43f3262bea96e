"""
End-to-end tests for onshape_drafter.workflow against a fake remote.
"""

import json
import random

import pytest

from onshape_drafter.annotations.translator import GeometryResolutionError
from onshape_drafter.api.client import ApiError
from onshape_drafter.io.drafter_data import DrafterData, DrafterDiameterDimension, DrafterNote
from onshape_drafter.project_config import ProjectConfig
from onshape_drafter.workflow import ModifyReport, RunStatus, apply_annotations, select_views
from tests.conftest import (
    IDENTITY_MATRIX,
    SCALED_MATRIX,
    FakeOnshapeClient,
    circle_edge,
    export_with_views,
    line_edge,
    remote_routes,
)


def _run(client, ref, elements, fake_clock, config=None, rng=None):
    return apply_annotations(client, ref, DrafterData(elements=tuple(elements)), config,
                             sleep=fake_clock.sleep, clock=fake_clock, rng=rng)


class TestApplyAnnotations:
    """Tests for apply_annotations."""

    def test_note_and_dimension(self, doc_ref, single_view_routes, fake_clock,
                                note_element, diameter_element):
        """Test full run creates both annotations."""
        client = FakeOnshapeClient(single_view_routes)
        report = _run(client, doc_ref, [note_element, diameter_element], fake_clock)

        assert report.status is RunStatus.SUCCESS
        assert report.job_id == 'job-1'
        assert report.logical_ids == ['h:10000001', 'h:10000002']
        assert report.summary_lines() == [
            "Successfully created 2 notes",
            "Note 1 has logicalId: h:10000001",
            "Note 2 has logicalId: h:10000002",
        ]

        body = client.posted(f"api/v6/drawings/{doc_ref.path}/modify")
        annotations = body['jsonRequests'][0]['annotations']
        assert annotations[0]['note']['position']['coordinate'] == [3.5, 2.0, 0.0]
        dimension = annotations[1]['diametricDimension']
        assert dimension['chordPoint']['uniqueId'] == 'U-E1'
        assert dimension['chordPoint']['viewId'] == 'v1'

    def test_notes_only_skip_export(self, doc_ref, single_view_routes, fake_clock, note_element):
        """Test no export or geometry request without dimensions."""
        client = FakeOnshapeClient(single_view_routes)
        _run(client, doc_ref, [note_element], fake_clock)
        paths = [path for _, path, _ in client.calls]
        assert not any('translations' in p or 'jsongeometry' in p for p in paths)

    def test_dimension_in_every_view(self, doc_ref, fake_clock, diameter_element):
        """Test the edge is dimensioned in each view that shows it."""
        routes = remote_routes(
            doc_ref,
            export_with_views(('v1', SCALED_MATRIX), ('v2', IDENTITY_MATRIX), ('v3', IDENTITY_MATRIX)),
            {
                'v1': {'bodyData': [circle_edge('E1')]},
                'v2': ApiError("geometry unavailable", status_code=500),
                'v3': {'bodyData': [line_edge('L1'), circle_edge('E1')]},
            },
            {'statusCode': 200, 'results': [{'status': 'OK', 'logicalId': 'a'},
                                             {'status': 'OK', 'logicalId': 'b'}]},
        )
        client = FakeOnshapeClient(routes)
        report = _run(client, doc_ref, [diameter_element], fake_clock)

        assert report.translation.dimensions == 2
        annotations = client.posted(f"api/v6/drawings/{doc_ref.path}/modify")['jsonRequests'][0]['annotations']
        assert [a['diametricDimension']['chordPoint']['viewId'] for a in annotations] == ['v1', 'v3']

    def test_random_view_selection(self, doc_ref, fake_clock, diameter_element):
        """Test random mode searches exactly one view."""
        routes = remote_routes(
            doc_ref,
            export_with_views(('v1', IDENTITY_MATRIX), ('v2', IDENTITY_MATRIX)),
            {'v1': {'bodyData': [circle_edge('E1')]}, 'v2': {'bodyData': [circle_edge('E1')]}},
            {'statusCode': 200, 'results': [{'status': 'OK', 'logicalId': 'a'}]},
        )
        client = FakeOnshapeClient(routes)
        config = ProjectConfig.from_dict({'annotations': {'view_selection': 'random'}})
        report = _run(client, doc_ref, [diameter_element], fake_clock, config, rng=random.Random(1))

        assert report.translation.dimensions == 1
        geometry_calls = [p for _, p, _ in client.calls if p.endswith('jsongeometry')]
        assert len(geometry_calls) == 1

    def test_partial_failure(self, doc_ref, fake_clock, note_element):
        """Test some failed results give a partial report."""
        routes = remote_routes(doc_ref, {}, {}, {'statusCode': 207, 'results': [
            {'status': 'OK', 'logicalId': 'h:1'}, {'status': 'Failed'},
        ]})
        report = _run(FakeOnshapeClient(routes), doc_ref, [note_element, note_element], fake_clock)

        assert report.status is RunStatus.PARTIAL
        assert report.summary_lines() == [
            "Some notes failed to create. Response status code: 207.",
            "Created 1 of 2 annotations.",
        ]

    def test_job_failed(self, doc_ref, fake_clock, note_element):
        """Test a FAILED job gives a failed report."""
        routes = remote_routes(doc_ref, {}, {}, {}, modify_state="FAILED")
        report = _run(FakeOnshapeClient(routes), doc_ref, [note_element], fake_clock)
        assert report.status is RunStatus.FAILED
        assert report.summary() == "Create notes failed waiting for modify to finish."

    def test_nothing_to_submit(self, doc_ref, single_view_routes, fake_clock):
        """Test no modify request when every element was skipped."""
        client = FakeOnshapeClient(single_view_routes)
        report = _run(client, doc_ref, [DrafterDiameterDimension('missing')], fake_clock)

        assert report.status is RunStatus.NOTHING_TO_DO
        assert report.summary() == "No annotations to create."
        assert report.translation.unresolved_ids == ['missing']
        assert not any('modify' in p for _, p, _ in client.calls)

    def test_strict_aborts_before_modify(self, doc_ref, single_view_routes, fake_clock, note_element):
        """Test strict policy raises and submits nothing."""
        client = FakeOnshapeClient(single_view_routes)
        config = ProjectConfig.from_dict({'annotations': {'policy': 'strict'}})
        with pytest.raises(GeometryResolutionError):
            _run(client, doc_ref, [note_element, DrafterDiameterDimension('missing')], fake_clock, config)
        assert not any('modify' in p for _, p, _ in client.calls)

    def test_report_to_dict(self, doc_ref, single_view_routes, fake_clock, note_element, diameter_element):
        """Test report serializes to JSON."""
        report = _run(FakeOnshapeClient(single_view_routes), doc_ref,
                      [note_element, diameter_element], fake_clock)
        data = json.loads(json.dumps(report.to_dict()))
        assert data['status'] == 'success'
        assert data['annotations'] == 2
        assert data['succeeded'] == 2
        assert data['logical_ids'] == ['h:10000001', 'h:10000002']


class TestSelectViews:
    """Tests for select_views."""

    def test_all(self):
        """Test all views of the active sheet."""
        export = export_with_views(('v1', IDENTITY_MATRIX), ('v2', IDENTITY_MATRIX))
        assert [v.view_id for v in select_views(export)] == ['v1', 'v2']

    def test_random_empty(self):
        """Test random mode without views."""
        assert select_views({'sheets': []}, 'random') == []


class TestModifyReport:
    """Tests for ModifyReport status rules."""

    def test_empty_report(self):
        """Test a report without job is nothing-to-do."""
        report = ModifyReport()
        assert report.status is RunStatus.NOTHING_TO_DO
        assert report.results == []
        assert report.logical_ids == []

    def test_job_without_output(self):
        """Test missing output means failure."""
        assert ModifyReport(job_id='job-1').status is RunStatus.FAILED
