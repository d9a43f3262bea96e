"""
End-to-end run: drafter data -> remote annotations -> modify job -> report.

Usage:
    from onshape_drafter.workflow import apply_annotations

    report = apply_annotations(client, ref, load_drafter_data("drafterData.json"), config)
    print(report.summary())
"""

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from onshape_drafter.annotations.translator import TranslationResult, translate_elements
from onshape_drafter.api.client import OnshapeClient
from onshape_drafter.api.drawing import (
    ClockFn,
    SleepFn,
    build_modify_request,
    fetch_view_geometries,
    get_drawing_json_export,
    random_view_on_active_sheet,
    submit_modify,
    views_on_active_sheet,
    wait_for_modify_to_finish,
)
from onshape_drafter.api.types import DocumentRef, ModifyStatusOutput, SingleRequestResult, View
from onshape_drafter.io.drafter_data import DrafterData, DrafterDiameterDimension
from onshape_drafter.logging_config import LogContext
from onshape_drafter.project_config import ProjectConfig

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """Overall outcome of a run."""
    SUCCESS = "success"
    PARTIAL = "partial"    # job finished, some annotations failed
    FAILED = "failed"      # job failed or timed out
    NOTHING_TO_DO = "nothing_to_do"


@dataclass
class ModifyReport:
    """Result of one run."""
    translation: TranslationResult = field(default_factory=TranslationResult)
    job_id: Optional[str] = None
    output: Optional[ModifyStatusOutput] = None
    duration_seconds: float = 0.0

    @property
    def results(self) -> List[SingleRequestResult]:
        return self.output.results if self.output else []

    @property
    def succeeded(self) -> List[SingleRequestResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[SingleRequestResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def logical_ids(self) -> List[str]:
        """Remote ids of the created annotations."""
        return [r.logical_id for r in self.succeeded if r.logical_id]

    @property
    def status(self) -> RunStatus:
        if self.job_id is None:
            return RunStatus.NOTHING_TO_DO
        if self.output is None:
            return RunStatus.FAILED
        if self.failed:
            return RunStatus.PARTIAL
        return RunStatus.SUCCESS

    def summary_lines(self) -> List[str]:
        """Console report lines."""
        status = self.status
        if status is RunStatus.NOTHING_TO_DO:
            return ["No annotations to create."]
        if status is RunStatus.FAILED:
            return ["Create notes failed waiting for modify to finish."]
        if status is RunStatus.PARTIAL:
            return [
                f"Some notes failed to create. Response status code: {self.output.status_code}.",
                f"Created {len(self.succeeded)} of {len(self.results)} annotations.",
            ]

        lines = [f"Successfully created {len(self.results)} notes"]
        for index, result in enumerate(self.results, 1):
            lines.append(f"Note {index} has logicalId: {result.logical_id}")
        return lines

    def summary(self) -> str:
        return "\n".join(self.summary_lines())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'status': self.status.value,
            'job_id': self.job_id,
            'status_code': self.output.status_code if self.output else None,
            'annotations': self.translation.total,
            'succeeded': len(self.succeeded),
            'failed': len(self.failed),
            'logical_ids': self.logical_ids,
            'skipped_types': list(self.translation.skipped_types),
            'unresolved_ids': list(self.translation.unresolved_ids),
            'duration_seconds': self.duration_seconds,
        }


def select_views(export_data: Dict[str, Any], view_selection: str = "all",
                 rng: Optional[random.Random] = None) -> List[View]:
    """Views to search for dimensioned edges.

    ``"all"`` searches every view of the active sheet, ``"random"`` one of them.
    """
    if view_selection == "random":
        view = random_view_on_active_sheet(export_data, rng)
        return [view] if view else []
    return views_on_active_sheet(export_data)


def _needs_geometry(data: DrafterData) -> bool:
    return any(isinstance(e, DrafterDiameterDimension) for e in data.elements)


def apply_annotations(
    client: OnshapeClient,
    ref: DocumentRef,
    data: DrafterData,
    config: Optional[ProjectConfig] = None,
    sleep: SleepFn = time.sleep,
    clock: ClockFn = time.monotonic,
    rng: Optional[random.Random] = None,
) -> ModifyReport:
    """Translate drafter data and create the annotations in the drawing.

    Steps:
      1. Drawing JSON export and view geometry (only when dimensions are present).
      2. Translation of every element.
      3. One modify request, then polling until it finishes.

    Raises:
        InvalidCoordinatesError, GeometryResolutionError: from translation
        ApiError, TranslationFailedError: from the remote calls
    """
    config = config or ProjectConfig()
    start_time = time.perf_counter()
    report = ModifyReport()

    with LogContext(document_id=ref.document_id, element_id=ref.element_id):
        logger.info("documentId=%s, workspaceId=%s, elementId=%s",
                    ref.document_id, ref.workspace_id, ref.element_id)

        views: List[View] = []
        geometries = {}
        if _needs_geometry(data):
            export_data = get_drawing_json_export(client, ref, config.poll, sleep, clock)
            views = select_views(export_data, config.annotations.view_selection, rng)
            if not views:
                logger.warning("Active sheet has no views; diameter dimensions cannot be placed")
            geometries = fetch_view_geometries(client, ref, views, config.api.max_workers)

        report.translation = translate_elements(
            data.elements, views, geometries,
            policy=config.annotations.policy,
            config=config.annotations,
        )

        if not report.translation.annotations:
            logger.warning("Nothing to submit")
            report.duration_seconds = time.perf_counter() - start_time
            return report

        body = build_modify_request(report.translation.annotations, config.input.description)
        report.job_id = submit_modify(client, ref, body)
        report.output = wait_for_modify_to_finish(client, report.job_id, config.poll, sleep, clock)

        if report.output is None:
            logger.info("Create notes failed waiting for modify to finish.")
        elif report.failed:
            logger.error("%d of %d annotations failed (status code %s)",
                         len(report.failed), len(report.results), report.output.status_code)
        else:
            logger.info("Created %d annotations", len(report.results),
                        extra={"logical_ids": report.logical_ids})

    report.duration_seconds = time.perf_counter() - start_time
    return report
