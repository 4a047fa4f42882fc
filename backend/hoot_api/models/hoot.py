"""
Hoot API Backend: Hoot Aggregate Models
========================================

What:  ORM models for the `hoots` table and its owned `comments` table.
How:   Hoot is the aggregate root. Comment rows exist only inside
       `Hoot.comments`, an ordered collection managed by the ORM:
       appending to it inserts a row, removing from it deletes the row
       (delete-orphan), and deleting the hoot deletes all of its comments.
Who:   Used by HootService for every read and write, and by Alembic.

Table Design:
    - UUID primary keys generated in Python (portable across PostgreSQL
      and SQLite)
    - category: short string constrained to the Category enumeration
    - author_id: opaque identity id, never changed after insert
    - comments.position: insertion order within the parent, maintained by
      `ordering_list`

    Index on hoots.created_at DESC serves the list query (newest first).
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hoot_api.database import Base
from hoot_api.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, enum.Enum):
    """The fixed set of hoot categories."""

    NEWS = "News"
    SPORTS = "Sports"
    GAMES = "Games"
    MOVIES = "Movies"
    MUSIC = "Music"
    TELEVISION = "Television"


class Comment(Base):
    """
    A reply embedded in exactly one Hoot.

    Never queried on its own: the service loads the parent hoot and finds
    the comment inside `hoot.comments`.
    """

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    hoot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("hoots.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Zero-based index within the parent's comment sequence
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    author: Mapped[User] = relationship()

    __table_args__ = (
        Index("idx_comments_hoot_position", "hoot_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, hoot_id={self.hoot_id}, position={self.position})>"


class Hoot(Base):
    """
    A user post together with its comments.

    Lifecycle:
        1. Created by its author with comments = []
        2. Title/text/category replaced by the author's updates; author_id
           never changes
        3. Comments appended, edited and removed through `comments`
        4. Deleted by its author; comments go with it
    """

    __tablename__ = "hoots"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)

    # native_enum=False stores the value as VARCHAR with a CHECK constraint
    category: Mapped[Category] = mapped_column(
        Enum(
            Category,
            native_enum=False,
            length=20,
            create_constraint=True,
            values_callable=lambda members: [m.value for m in members],
            name="hoot_category",
        ),
        nullable=False,
    )

    author_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    author: Mapped[User] = relationship()

    comments: Mapped[List[Comment]] = relationship(
        order_by=Comment.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_hoots_created_at", created_at.desc()),
    )

    def find_comment(self, comment_id: uuid.UUID) -> Comment | None:
        """Locate a comment in this hoot's sequence, or None."""
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def __repr__(self) -> str:
        return f"<Hoot(id={self.id}, category='{self.category}', author_id={self.author_id})>"
