"""Onshape REST access: client, response types and drawing endpoints."""

from onshape_drafter.api.client import (
    ApiError,
    OnshapeClient,
    parse_document_url,
    validate_base_urls,
)
from onshape_drafter.api.types import (
    DocumentRef,
    Edge,
    ModifyStatusOutput,
    SingleRequestResult,
    View,
    ViewGeometry,
)

__all__ = [
    "ApiError",
    "OnshapeClient",
    "parse_document_url",
    "validate_base_urls",
    "DocumentRef",
    "Edge",
    "ModifyStatusOutput",
    "SingleRequestResult",
    "View",
    "ViewGeometry",
]
