"""
User model for MongoDB (Beanie ODM).

Identity is issued elsewhere (Supabase JWT); this is only a local mirror
created on the first authenticated request. `str(user.id)` is the owner id
stamped on documents and reminders.
"""

from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """User document keyed by the token subject."""

    subject: Indexed(str, unique=True)  # From JWT "sub" claim
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
        use_state_management = True

    @property
    def user_id(self) -> str:
        return str(self.id)
