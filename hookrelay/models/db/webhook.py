"""
Webhook configuration and captured request models.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base, CreatedAtMixin, utcnow

# JSONB on PostgreSQL, plain JSON elsewhere
HeadersType = JSON().with_variant(JSONB(), "postgresql")


class Webhook(Base, CreatedAtMixin):
    """
    Named inbound endpoint.

    Attributes:
        id: Generated opaque identifier, immutable
        user_id: Owner; the sole basis for access control
        forward_url: Destination for forwarded calls, empty disables forwarding
        name: Display name
        source_type: Free-text category (e.g. "stripe", "github")
    """

    __tablename__ = "webhooks"

    id = Column(String(255), primary_key=True)
    user_id = Column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    forward_url = Column(Text, nullable=False, default="")
    name = Column(String(255), nullable=True)
    source_type = Column(String(50), nullable=True)

    __table_args__ = (Index("idx_webhooks_user_id_created_at", "user_id", "created_at"),)

    def __repr__(self):
        return f"<Webhook(id='{self.id}', user_id='{self.user_id}', name='{self.name}')>"


class CapturedRequest(Base):
    """
    One inbound call recorded for a webhook. Never mutated after insert.
    """

    __tablename__ = "requests"

    request_id = Column(Integer, primary_key=True, autoincrement=True)
    webhook_id = Column(
        String(255),
        ForeignKey("webhooks.id", ondelete="CASCADE"),
        nullable=False,
    )
    method = Column(String(10), nullable=False)
    # {lower-case header name: [values...]}
    headers = Column(HeadersType, nullable=False, default=dict)
    body = Column(Text, nullable=False, default="")
    received_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (Index("idx_requests_webhook_id_received_at", "webhook_id", "received_at"),)

    def __repr__(self):
        return f"<CapturedRequest(id={self.request_id}, webhook_id='{self.webhook_id}', method='{self.method}')>"
