from datetime import datetime
from typing import List, TypedDict


class CommentDocument(TypedDict, total=False):
    _id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime


class ShareEntry(TypedDict):
    user_id: str
    shared_at: datetime


class PostDocument(TypedDict, total=False):
    # written by the post service; only `shares` is touched here
    _id: str
    author_id: str
    title: str
    shares: List[ShareEntry]


class StoryViewer(TypedDict):
    user_id: str
    viewed_at: datetime


class StoryDocument(TypedDict, total=False):
    _id: str
    author_id: str
    viewers: List[StoryViewer]
    expires_at: datetime
