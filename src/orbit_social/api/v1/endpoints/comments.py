# src/orbit_social/api/v1/endpoints/comments.py
"""Comment endpoints that are addressed by comment id."""

import uuid

from fastapi import APIRouter, HTTPException, status

from orbit_social.models import Comment
from orbit_social.schemas.common import MessageResponse
from orbit_social.services import counters

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: uuid.UUID,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Delete one of the caller's comments."""
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments",
        )

    post_id = comment.post_id
    db.delete(comment)
    db.flush()
    counters.decrement_comment_count(db, post_id)
    db.commit()
    return MessageResponse(message="Comment deleted successfully")
