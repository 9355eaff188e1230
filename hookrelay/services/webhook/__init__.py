# ============================================================================
# SCOPE: GLOBAL
# Description: Webhook services for capture, forwarding and management.
# ============================================================================
"""
Webhook Services Module.

Provides:
- IngestionPipeline: capture path for inbound calls
- WebhookForwarder: fire-and-forget relay to forward targets
- WebhookService: owner-scoped management operations
"""

from hookrelay.services.webhook.forwarder import WebhookForwarder
from hookrelay.services.webhook.ingestion_service import InboundCall, IngestionPipeline
from hookrelay.services.webhook.webhook_service import WebhookService

__all__ = [
    "InboundCall",
    "IngestionPipeline",
    "WebhookForwarder",
    "WebhookService",
]
