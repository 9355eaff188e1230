"""
Request/response schemas for webhook management, inspection and ingestion.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookCreate(BaseModel):
    """Payload for creating a webhook. Presence of both fields is checked by the service."""

    name: str = ""
    source_type: str = Field("", max_length=50)


class WebhookUpdate(BaseModel):
    """
    Partial update. Omitted fields keep their value; an empty forward_url
    disables forwarding.
    """

    forward_url: Optional[str] = None
    name: Optional[str] = None


class WebhookCreatedResponse(BaseModel):
    id: str
    webhook_url: str
    inspect_url: str


class WebhookResponse(BaseModel):
    """Webhook as returned to its owner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    forward_url: str = ""
    name: Optional[str] = None
    source_type: Optional[str] = None
    created_at: datetime


class CapturedRequestResponse(BaseModel):
    """One captured inbound call."""

    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime = Field(validation_alias="received_at")
    method: str
    headers: dict[str, list[str]]
    body: str


class IngestAck(BaseModel):
    """Fixed acknowledgement returned to every webhook sender."""

    status: str = "Webhook received"


class MessageResponse(BaseModel):
    message: str
