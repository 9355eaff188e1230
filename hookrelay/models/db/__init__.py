from .base import Base, CreatedAtMixin
from .user import UserDB
from .webhook import CapturedRequest, Webhook

__all__ = [
    "Base",
    "CreatedAtMixin",
    "UserDB",
    "Webhook",
    "CapturedRequest",
]
