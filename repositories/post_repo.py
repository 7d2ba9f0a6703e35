"""
repositories/post_repo.py
-------------------------
Data access layer for posts.
All SQL queries related to the `tbl_posts` table live here.
"""

from typing import Optional

from config import RECENT_POSTS_LIMIT
from db.database import Database
from db.executor import Outcome
from models.post import Post
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, title, content, image, posts_categories_id, created_at, modify_at, is_archive, status"

INSERT_SQL = """
    INSERT INTO tbl_posts (title, content, image, posts_categories_id, is_archive, status)
    VALUES (:title, :content, :image, :posts_categories_id, :is_archive, :status)
"""
SELECT_ONE_SQL = f"SELECT {_COLUMNS} FROM tbl_posts WHERE id = :id"
SELECT_RECENT_SQL = f"SELECT {_COLUMNS} FROM tbl_posts ORDER BY created_at DESC, id DESC LIMIT {int(RECENT_POSTS_LIMIT)}"
EXISTS_SQL = "SELECT id FROM tbl_posts WHERE id = :id"
UPDATE_SQL = """
    UPDATE tbl_posts
    SET title = :title, content = :content, modify_at = CURRENT_TIMESTAMP
    WHERE id = :id
"""
DELETE_SQL = "DELETE FROM tbl_posts WHERE id = :id"


class PostRepository:
    """Repository for CRUD operations on the tbl_posts table."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def add(self, post: Post) -> Post:
        """
        Insert a new post.

        Args:
            post: The Post domain object to persist.

        Returns:
            The same Post with its `id` populated.

        Raises:
            QueryError: If the insert fails.
        """
        result = self.db.execute(INSERT_SQL, post.insert_params())
        post.id = result.last_inserted_id
        logger.info(f"Added post #{post.id}")
        return post

    def try_add(self, post: Post) -> Outcome:
        """
        Insert a new post, reporting failure as a value instead of raising.

        On success the Post's `id` is populated.
        """
        outcome = self.db.try_execute(INSERT_SQL, post.insert_params())
        if outcome.ok:
            post.id = outcome.result.last_inserted_id
        return outcome

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, post_id: int) -> Optional[Post]:
        """Fetch a single post by ID, or None if not found."""
        row = self.db.execute(SELECT_ONE_SQL, {"id": post_id}).row
        return Post.from_row(row) if row else None

    def list_recent(self) -> list[Post]:
        """Fetch the newest posts, most recent first."""
        return [Post.from_row(row) for row in self.db.query_all(SELECT_RECENT_SQL)]

    def exists(self, post_id: int) -> bool:
        return self.db.execute(EXISTS_SQL, {"id": post_id}).row is not None

    # ── UPDATE ────────────────────────────────────────────

    def update(self, post_id: int, title: str, content: str) -> int:
        """
        Update a post's title and content.

        Returns:
            Number of rows updated (0 if the post does not exist).
        """
        result = self.db.execute(UPDATE_SQL, {"id": post_id, "title": title, "content": content})
        return result.affected_row_count

    # ── DELETE ────────────────────────────────────────────

    def delete(self, post_id: int) -> int:
        """
        Delete a post by ID.

        Returns:
            Number of rows deleted.
        """
        deleted = self.db.execute(DELETE_SQL, {"id": post_id}).affected_row_count
        if deleted:
            logger.info(f"Deleted post #{post_id}")
        return deleted
