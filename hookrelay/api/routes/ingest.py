# ============================================================================
# SCOPE: GLOBAL (public)
# Description: Inbound webhook capture endpoint. No authentication; the
#              sender always gets the same acknowledgement.
# ============================================================================
"""
Webhook Ingestion Endpoint.

ENDPOINTS:
  - GET|POST|PUT|PATCH|DELETE /webhook/{webhook_id} → capture and forward
"""

import logging

from fastapi import APIRouter, Depends, Request

from hookrelay.core.exceptions import ClientInputError
from hookrelay.models.webhook import IngestAck
from hookrelay.services.id_generator import is_valid_id
from hookrelay.services.webhook.ingestion_service import IngestionPipeline

from ..dependencies import get_ingestion_pipeline

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)

INGEST_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/webhook/{webhook_id}", methods=INGEST_METHODS, response_model=IngestAck)
async def receive_webhook(
    webhook_id: str,
    request: Request,
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),  # noqa: B008
) -> IngestAck:
    """
    Capture an inbound webhook call.

    Returns 200 with a fixed acknowledgement whatever happens to storage
    or forwarding; only a malformed id is rejected (400).
    """
    if not is_valid_id(webhook_id):
        raise ClientInputError("Invalid webhook ID", field="webhook_id")

    body = await request.body()
    return await pipeline.ingest(
        webhook_id=webhook_id,
        method=request.method,
        # One pair per occurrence, repeated names included
        headers=request.headers.items(),
        body=body,
    )
