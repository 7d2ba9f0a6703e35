"""
models/post.py
--------------
Domain model for blog posts stored in tbl_posts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Union


def _to_datetime(value: Union[datetime, str, None]) -> Optional[datetime]:
    """SQLite hands timestamps back as text; PostgreSQL as datetime."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass
class Post:
    """
    Represents a single post.

    Attributes:
        title: Post headline.
        content: Post body.
        image: Image file name.
        posts_categories_id: Category foreign key.
        is_archive: 1 if archived, else 0.
        status: 1 if published, else 0.
        id: Database primary key (None for new records).
        created_at: Timestamp when the record was created.
        modify_at: Timestamp of the last update.
    """
    title: str
    content: str
    image: str = "default.jpg"
    posts_categories_id: int = 1
    is_archive: int = 0
    status: int = 1
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    modify_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Post":
        """Build a Post from a column-name row."""
        return cls(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            image=row["image"],
            posts_categories_id=row["posts_categories_id"],
            is_archive=row["is_archive"],
            status=row["status"],
            created_at=_to_datetime(row.get("created_at")),
            modify_at=_to_datetime(row.get("modify_at")),
        )

    def insert_params(self) -> dict:
        """Values for the INSERT placeholders."""
        return {
            "title": self.title,
            "content": self.content,
            "image": self.image,
            "posts_categories_id": self.posts_categories_id,
            "is_archive": self.is_archive,
            "status": self.status,
        }

    def __str__(self) -> str:
        return f"#{self.id} | {self.title} | category {self.posts_categories_id} | status {self.status}"
