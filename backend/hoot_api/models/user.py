"""
Hoot API Backend: User SQLAlchemy Model
========================================

What:  Local directory of the external identities that authored content.
How:   Rows are upserted from the verified bearer token whenever an identity
       creates a hoot or a comment. Nothing else writes here.
Who:   Referenced by Hoot.author and Comment.author so responses can resolve
       an author id to a display name.

The identity service owns accounts; this table only mirrors what the token
said the last time the user wrote something.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hoot_api.database import Base


class User(Base):
    __tablename__ = "users"

    # Opaque id issued by the identity service (ObjectId hex, subject, ...)
    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Identity id from the bearer token",
    )

    username: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Display name as last seen in a token",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this identity was first seen (UTC)",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
