from hookrelay.repositories.captured_request_repository import CapturedRequestRepository
from hookrelay.repositories.user_repository import UserRepository
from hookrelay.repositories.webhook_repository import WebhookRepository

__all__ = [
    "CapturedRequestRepository",
    "UserRepository",
    "WebhookRepository",
]
