"""
User model. Users are created on login and own webhooks.
"""

from sqlalchemy import Column, String

from .base import Base, CreatedAtMixin


class UserDB(Base, CreatedAtMixin):
    """
    Account that owns webhooks.

    Attributes:
        id: Opaque user identifier (the token subject)
        email: Unique email, nullable until a login event supplies one
    """

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)

    def __repr__(self):
        return f"<UserDB(id='{self.id}', email='{self.email}')>"
