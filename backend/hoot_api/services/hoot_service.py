"""
Hoot API Backend: Hoot Service (Business Logic)
================================================

What:  Create/read/update/delete for hoots and their embedded comments,
       with the authorship rules applied.
How:   Every operation runs against the request's AsyncSession. Mutations
       load the whole aggregate (hoot + comments + authors), change it in
       memory, and `flush()`; the session dependency commits.
Who:   Called by routes/hoots.py through the `get_hoot_service` dependency.

Authorization rules:
    - Only a hoot's author may update or delete the hoot.
    - Any authenticated caller may comment on any hoot.
    - Comment edit/delete follows `comment_edit_policy`:
        any_user       → no ownership check (non-author edits are logged)
        comment_author → only the comment's author

Aggregate flow (comments):
    ┌─────────────┐    ┌──────────────────────┐    ┌─────────────┐
    │ Load hoot + │───▶│ append / edit /      │───▶│ flush hoot  │
    │ comments    │    │ remove in .comments  │    │ (one unit)  │
    └─────────────┘    └──────────────────────┘    └─────────────┘

    Two concurrent requests changing the same hoot's comments are not
    serialized here; the later flush wins for the rows it touches.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hoot_api.config import (
    COMMENT_POLICY_ANY_USER,
    COMMENT_POLICY_COMMENT_AUTHOR,
    settings,
)
from hoot_api.exceptions import (
    DatabaseError,
    ForbiddenError,
    HootAPIError,
    NotFoundError,
)
from hoot_api.models.hoot import Comment, Hoot
from hoot_api.models.user import User
from hoot_api.schemas.hoot import (
    AuthorResponse,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    HootCreate,
    HootResponse,
    HootUpdate,
    MessageResponse,
)
from hoot_api.security import Identity

logger = logging.getLogger(__name__)


# ── Serialization helpers ─────────────────────────────────────────────────
# Built by hand instead of from_attributes: touching an unloaded
# relationship on an AsyncSession raises instead of lazy loading.

def _author_response(author_id: str, author: Optional[User]) -> AuthorResponse:
    return AuthorResponse(
        id=author_id,
        username=author.username if author is not None else None,
    )


def _identity_response(identity: Identity) -> AuthorResponse:
    return AuthorResponse(id=identity.id, username=identity.username)


def _comment_response(
    comment: Comment, author: Optional[AuthorResponse] = None
) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        text=comment.text,
        author=author or _author_response(comment.author_id, comment.author),
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def _hoot_response(
    hoot: Hoot, author: Optional[AuthorResponse] = None
) -> HootResponse:
    return HootResponse(
        id=hoot.id,
        title=hoot.title,
        text=hoot.text,
        category=hoot.category,
        author=author or _author_response(hoot.author_id, hoot.author),
        comments=[_comment_response(c) for c in hoot.comments],
        created_at=hoot.created_at,
        updated_at=hoot.updated_at,
    )


def _aggregate_query():
    """SELECT hoots with authors and ordered comments (and their authors)."""
    return select(Hoot).options(
        selectinload(Hoot.author),
        selectinload(Hoot.comments).selectinload(Comment.author),
    )


class HootService:
    """
    Business logic layer for hoots and comments.

    Error Handling Strategy:
        Application errors (NotFoundError, ForbiddenError) propagate as-is.
        SQLAlchemy errors are logged and wrapped in DatabaseError so the
        client only ever sees a generic 500.
    """

    def __init__(self, comment_edit_policy: str = COMMENT_POLICY_ANY_USER):
        self.comment_edit_policy = comment_edit_policy

    # ── Hoots ─────────────────────────────────────────────────────────────

    async def create_hoot(
        self, db: AsyncSession, caller: Identity, payload: HootCreate
    ) -> HootResponse:
        """
        Create a hoot authored by `caller` with no comments.

        The returned author is the caller's identity as verified for this
        request, not a fresh read of the users table.
        """
        try:
            await self._remember_author(db, caller)
            hoot = Hoot(
                title=payload.title,
                text=payload.text,
                category=payload.category,
                author_id=caller.id,
                comments=[],
            )
            db.add(hoot)
            await db.flush()
            logger.info("Hoot %s created by %s", hoot.id, caller.id)
            return _hoot_response(hoot, author=_identity_response(caller))

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating hoot: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the hoot. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def list_hoots(self, db: AsyncSession) -> List[HootResponse]:
        """
        All hoots, newest first, with authors resolved.

        Query plan:
            SELECT * FROM hoots ORDER BY created_at DESC
            → idx_hoots_created_at; comments and users fetched with
              two SELECT ... IN (...) follow-ups
        """
        try:
            result = await db.execute(
                _aggregate_query().order_by(Hoot.created_at.desc())
            )
            return [_hoot_response(hoot) for hoot in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Database error listing hoots: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve hoots. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

    async def get_hoot(self, db: AsyncSession, hoot_id: UUID) -> HootResponse:
        """
        A single hoot with author resolved.

        Raises:
            NotFoundError: no hoot with this id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            return _hoot_response(hoot)

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching hoot %s: %s", hoot_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the hoot. Please try again.",
                context={"hoot_id": str(hoot_id)},
            ) from e

    async def update_hoot(
        self,
        db: AsyncSession,
        caller: Identity,
        hoot_id: UUID,
        payload: HootUpdate,
    ) -> HootResponse:
        """
        Apply the submitted fields to a hoot the caller authored.

        Only fields present in the request body are written
        (`exclude_unset`). HootUpdate has no author field, so authorship
        cannot change here.

        Raises:
            NotFoundError:  hoot absent (→ 404)
            ForbiddenError: caller is not the author (→ 403); nothing is written
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            self._ensure_hoot_author(hoot, caller, action="update")

            changes = payload.model_dump(exclude_unset=True)
            for field, value in changes.items():
                setattr(hoot, field, value)

            await db.flush()
            logger.info(
                "Hoot %s updated by %s (fields: %s)",
                hoot.id, caller.id, ", ".join(sorted(changes)) or "none",
            )
            return _hoot_response(hoot, author=_identity_response(caller))

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating hoot %s: %s", hoot_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the hoot. Please try again.",
                context={"hoot_id": str(hoot_id), "error_type": type(e).__name__},
            ) from e

    async def delete_hoot(
        self, db: AsyncSession, caller: Identity, hoot_id: UUID
    ) -> HootResponse:
        """
        Permanently delete a hoot the caller authored, with its comments.

        Returns the hoot as it was just before deletion.
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            self._ensure_hoot_author(hoot, caller, action="delete")

            removed = _hoot_response(hoot)
            await db.delete(hoot)
            await db.flush()
            logger.info(
                "Hoot %s deleted by %s (%d comments removed)",
                hoot_id, caller.id, len(removed.comments),
            )
            return removed

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting hoot %s: %s", hoot_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the hoot. Please try again.",
                context={"hoot_id": str(hoot_id), "error_type": type(e).__name__},
            ) from e

    # ── Comments ──────────────────────────────────────────────────────────

    async def add_comment(
        self,
        db: AsyncSession,
        caller: Identity,
        hoot_id: UUID,
        payload: CommentCreate,
    ) -> CommentResponse:
        """
        Append a comment by `caller` to the end of the hoot's comments.

        Always appends: the same text twice yields two comments.
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            await self._remember_author(db, caller)

            comment = Comment(text=payload.text, author_id=caller.id)
            hoot.comments.append(comment)
            await db.flush()
            logger.info(
                "Comment %s added to hoot %s by %s (position %d)",
                comment.id, hoot.id, caller.id, comment.position,
            )
            return _comment_response(comment, author=_identity_response(caller))

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error adding comment to hoot %s: %s", hoot_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not add the comment. Please try again.",
                context={"hoot_id": str(hoot_id), "error_type": type(e).__name__},
            ) from e

    async def update_comment(
        self,
        db: AsyncSession,
        caller: Identity,
        hoot_id: UUID,
        comment_id: UUID,
        payload: CommentUpdate,
    ) -> MessageResponse:
        """
        Replace a comment's text in place.

        Raises:
            NotFoundError:  hoot absent, or comment not in its sequence
            ForbiddenError: only under the comment_author policy
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            comment = self._find_comment(hoot, comment_id)
            self._check_comment_policy(comment, caller, action="update")

            comment.text = payload.text
            await db.flush()
            logger.info("Comment %s on hoot %s updated by %s", comment_id, hoot_id, caller.id)
            return MessageResponse(message="Ok")

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating comment %s: %s", comment_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the comment. Please try again.",
                context={"hoot_id": str(hoot_id), "comment_id": str(comment_id)},
            ) from e

    async def delete_comment(
        self,
        db: AsyncSession,
        caller: Identity,
        hoot_id: UUID,
        comment_id: UUID,
    ) -> MessageResponse:
        """
        Remove exactly one comment from the hoot's sequence.

        The remaining comments keep their relative order; `ordering_list`
        renumbers their positions on removal.
        """
        try:
            hoot = await self._load_hoot(db, hoot_id)
            comment = self._find_comment(hoot, comment_id)
            self._check_comment_policy(comment, caller, action="delete")

            hoot.comments.remove(comment)
            await db.flush()
            logger.info("Comment %s removed from hoot %s by %s", comment_id, hoot_id, caller.id)
            return MessageResponse(message="Ok")

        except HootAPIError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting comment %s: %s", comment_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the comment. Please try again.",
                context={"hoot_id": str(hoot_id), "comment_id": str(comment_id)},
            ) from e

    # ── Internals ─────────────────────────────────────────────────────────

    async def _load_hoot(self, db: AsyncSession, hoot_id: UUID) -> Hoot:
        result = await db.execute(_aggregate_query().where(Hoot.id == hoot_id))
        hoot = result.scalar_one_or_none()
        if hoot is None:
            raise NotFoundError(resource="hoot", resource_id=str(hoot_id))
        return hoot

    @staticmethod
    def _find_comment(hoot: Hoot, comment_id: UUID) -> Comment:
        comment = hoot.find_comment(comment_id)
        if comment is None:
            raise NotFoundError(
                resource="comment",
                resource_id=str(comment_id),
                context={"hoot_id": str(hoot.id)},
            )
        return comment

    @staticmethod
    def _ensure_hoot_author(hoot: Hoot, caller: Identity, action: str) -> None:
        if hoot.author_id != caller.id:
            logger.warning(
                "Forbidden: %s tried to %s hoot %s owned by %s",
                caller.id, action, hoot.id, hoot.author_id,
            )
            raise ForbiddenError(context={"hoot_id": str(hoot.id), "action": action})

    def _check_comment_policy(
        self, comment: Comment, caller: Identity, action: str
    ) -> None:
        if comment.author_id == caller.id:
            return

        if self.comment_edit_policy == COMMENT_POLICY_COMMENT_AUTHOR:
            logger.warning(
                "Forbidden: %s tried to %s comment %s owned by %s",
                caller.id, action, comment.id, comment.author_id,
            )
            raise ForbiddenError(
                context={"comment_id": str(comment.id), "action": action}
            )

        # any_user policy: allowed, but leave a trace
        logger.warning(
            "Comment %s (author %s) %s by non-author %s under '%s' policy",
            comment.id, comment.author_id, action + "d", caller.id,
            self.comment_edit_policy,
        )

    @staticmethod
    async def _remember_author(db: AsyncSession, caller: Identity) -> None:
        """Upsert the caller into the local users directory."""
        user = await db.get(User, caller.id)
        if user is None:
            db.add(User(id=caller.id, username=caller.username))
        elif caller.username is not None and user.username != caller.username:
            user.username = caller.username


# ── Service Instance & Dependency ─────────────────────────────────────────
hoot_service = HootService(comment_edit_policy=settings.comment_edit_policy)


def get_hoot_service() -> HootService:
    """FastAPI dependency returning the configured HootService."""
    return hoot_service
