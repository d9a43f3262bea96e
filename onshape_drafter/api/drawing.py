"""
Drawing endpoints: JSON export, view geometry, modify and job polling.

Polling loops sleep between requests and stop after a configured timeout.
Sleep and clock functions are injectable so tests never wait.
"""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence

from onshape_drafter.api.client import ApiError, OnshapeClient
from onshape_drafter.api.types import (
    CREATE_ANNOTATIONS_FORMAT_VERSION,
    CREATE_ANNOTATIONS_MESSAGE,
    DocumentRef,
    GeometryPayloadError,
    ModifyStatusOutput,
    RequestState,
    View,
    ViewGeometry,
)
from onshape_drafter.errors import DrafterError
from onshape_drafter.logging_config import log_timing, timed
from onshape_drafter.project_config import PollConfig

logger = logging.getLogger(__name__)

DRAWING_JSON_FORMAT = "DRAWING_JSON"

SleepFn = Callable[[float], None]
ClockFn = Callable[[], float]


class TranslationFailedError(DrafterError):
    """Drawing export job failed or did not finish in time."""


def _poll_until_terminal(
    fetch: Callable[[], Dict[str, Any]],
    poll: PollConfig,
    what: str,
    sleep: SleepFn = time.sleep,
    clock: ClockFn = time.monotonic,
) -> Optional[Dict[str, Any]]:
    """Call ``fetch`` until its ``requestState`` leaves ACTIVE.

    Returns:
        The terminal status payload, or None on timeout.
    """
    deadline = clock() + poll.timeout_seconds
    attempt = 0
    while True:
        attempt += 1
        status = fetch() or {}
        state = status.get('requestState', RequestState.ACTIVE)
        logger.debug("%s state=%s (attempt %d)", what, state, attempt)
        if state != RequestState.ACTIVE:
            return status
        if clock() + poll.interval_seconds > deadline:
            logger.warning("%s still %s after %.0fs, giving up", what, state, poll.timeout_seconds)
            return None
        sleep(poll.interval_seconds)


# ---------------------------------------------------------------------------
# Drawing export
# ---------------------------------------------------------------------------

def get_drawing_json_export(
    client: OnshapeClient,
    ref: DocumentRef,
    poll: Optional[PollConfig] = None,
    sleep: SleepFn = time.sleep,
    clock: ClockFn = time.monotonic,
) -> Dict[str, Any]:
    """Export the drawing as JSON (sheets, views, transforms).

    Starts a DRAWING_JSON translation, waits for it and downloads the result.

    Raises:
        TranslationFailedError: if the translation fails or times out
        ApiError: on HTTP failures
    """
    poll = poll or PollConfig()
    body = {
        'formatName': DRAWING_JSON_FORMAT,
        'level': 'full',
        'storeInDocument': False,
    }
    with log_timing(logger, "Drawing JSON export", level=logging.INFO):
        translation = client.post(f"api/drawings/{ref.path}/translations", body)
        translation_id = translation['id']

        status = _poll_until_terminal(
            lambda: client.get(f"api/translations/{translation_id}"),
            poll, f"Translation {translation_id}", sleep, clock,
        )
        if status is None:
            raise TranslationFailedError(f"Drawing export {translation_id} timed out")
        if status.get('requestState') != RequestState.DONE:
            raise TranslationFailedError(
                f"Drawing export {translation_id} failed: {status.get('failureReason', 'unknown reason')}")

        external_ids = status.get('resultExternalDataIds') or []
        if not external_ids:
            raise TranslationFailedError(f"Drawing export {translation_id} produced no data")
        return client.get(f"api/documents/d/{ref.document_id}/externaldata/{external_ids[0]}")


def views_on_active_sheet(export_data: Dict[str, Any]) -> List[View]:
    """Views of the active sheet (the first sheet when none is flagged)."""
    sheets = export_data.get('sheets') or []
    if not sheets:
        return []
    sheet = next((s for s in sheets if s.get('active')), sheets[0])
    return [View.from_json(v) for v in sheet.get('views', [])]


def random_view_on_active_sheet(export_data: Dict[str, Any],
                                rng: Optional[random.Random] = None) -> Optional[View]:
    """One view picked at random from the active sheet, or None."""
    views = views_on_active_sheet(export_data)
    if not views:
        return None
    return (rng or random).choice(views)


# ---------------------------------------------------------------------------
# View geometry
# ---------------------------------------------------------------------------

@timed()
def get_view_geometry(client: OnshapeClient, ref: DocumentRef, view_id: str) -> ViewGeometry:
    """Edges of one view (``bodyData`` of the jsongeometry endpoint)."""
    data = client.get(f"api/appelements/{ref.path}/views/{view_id}/jsongeometry")
    return ViewGeometry.from_json(view_id, data or {})


def fetch_view_geometries(
    client: OnshapeClient,
    ref: DocumentRef,
    views: Sequence[View],
    max_workers: int = 4,
) -> Dict[str, ViewGeometry]:
    """Fetch geometry of several views concurrently.

    A view whose fetch fails, or whose response cannot be decoded, is logged
    and left out of the result, which the translator treats as "no match in
    that view".

    Returns:
        Mapping view id -> ViewGeometry
    """
    geometries: Dict[str, ViewGeometry] = {}
    if not views:
        return geometries

    with log_timing(logger, "Fetching view geometry", level=logging.INFO, views=len(views)):
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(get_view_geometry, client, ref, view.view_id): view.view_id
                for view in views
            }
            for future in as_completed(futures):
                view_id = futures[future]
                try:
                    geometries[view_id] = future.result()
                except (ApiError, GeometryPayloadError) as exc:
                    logger.warning("Skipping view %s: geometry fetch failed: %s", view_id, exc)
                    continue
                logger.debug("View %s has %d edges", view_id, len(geometries[view_id].edges))

    return geometries


# ---------------------------------------------------------------------------
# Modify
# ---------------------------------------------------------------------------

def build_modify_request(annotations: List[Dict[str, Any]],
                         description: str = "Drafter annotations") -> Dict[str, Any]:
    """Wrap annotations into one onshapeCreateAnnotations request."""
    return {
        'description': description,
        'jsonRequests': [
            {
                'messageName': CREATE_ANNOTATIONS_MESSAGE,
                'formatVersion': CREATE_ANNOTATIONS_FORMAT_VERSION,
                'annotations': annotations,
            }
        ],
    }


def submit_modify(client: OnshapeClient, ref: DocumentRef, body: Dict[str, Any]) -> str:
    """Start a modify job and return its id."""
    response = client.post(f"api/v6/drawings/{ref.path}/modify", body)
    if not response or 'id' not in response:
        raise ApiError("Modify request returned no job id")
    logger.info("Modify job %s started", response['id'])
    return response['id']


def wait_for_modify_to_finish(
    client: OnshapeClient,
    job_id: str,
    poll: Optional[PollConfig] = None,
    sleep: SleepFn = time.sleep,
    clock: ClockFn = time.monotonic,
) -> Optional[ModifyStatusOutput]:
    """Poll a modify job until it is no longer active.

    Returns:
        Parsed output when the job is DONE; None when it FAILED or timed out.
    """
    poll = poll or PollConfig()
    with log_timing(logger, "Waiting for modify", level=logging.INFO, job_id=job_id):
        status = _poll_until_terminal(
            lambda: client.get(f"api/drawings/modify/status/{job_id}"),
            poll, f"Modify {job_id}", sleep, clock,
        )

    if status is None:
        return None
    if status.get('requestState') != RequestState.DONE:
        logger.error("Modify job %s ended in state %s", job_id, status.get('requestState'))
        return None
    return ModifyStatusOutput.from_json(status.get('output') or {})
