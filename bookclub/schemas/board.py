"""Pydantic schemas for the free-form board."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class BoardPostCreate(BaseModel):
    """Request to create a board post."""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=20000)


class BoardCommentCreate(BaseModel):
    """Request to comment on a board post."""
    content: str = Field(..., min_length=1, max_length=4000)


class BoardPostRead(BaseModel):
    """Board post response."""
    id: UUID
    user_id: UUID
    author_name: str
    title: str
    content: str
    comment_count: int = 0
    created_at: datetime


class BoardCommentRead(BaseModel):
    """Board comment response."""
    id: UUID
    post_id: UUID
    user_id: UUID
    author_name: str
    content: str
    created_at: datetime


class BoardPostDetail(BaseModel):
    """Post with its comments, oldest first."""
    post: BoardPostRead
    comments: list[BoardCommentRead]
