"""
services/post_service.py
------------------------
Business logic behind the post actions (ping, CRUD, transaction demos,
query log). Orchestrates the PostRepository and the Database.

Every method returns a dict with at least 'success' and 'message' keys;
database errors are logged and turned into messages at this boundary.
"""

from typing import Any, Mapping, Optional

from db.database import Database
from db.errors import DatabaseError
from models.post import Post
from repositories.post_repo import PostRepository
from utils.logger import get_logger

logger = get_logger(__name__)

_POST_DEFAULTS = {
    "title": "Default Title",
    "content": "Default Content",
    "image": "default.jpg",
    "posts_categories_id": 1,
    "is_archive": 0,
    "status": 1,
}


def _value(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


class PostService:
    """
    Handles every user-facing action on posts.

    Workflow:
        1. Receive already-filtered input from the caller.
        2. Fill in defaults.
        3. Persist or fetch via the repository.
        4. Return a result dict with a user-friendly message.
    """

    def __init__(self, db: Database):
        self.db = db
        self.repo = PostRepository(db)

    # ── Connection ────────────────────────────────────────

    def ping_database(self) -> dict:
        """Check that the connection is alive."""
        if self.db.ping():
            return {"success": True, "message": "Database ping successful. Connection is active."}
        return {"success": False, "message": "Database ping failed."}

    # ── CRUD ──────────────────────────────────────────────

    def insert_new_post(self, data: Mapping[str, Any]) -> dict:
        """
        Insert a new post, filling missing fields with defaults.

        Args:
            data: title, content, image, posts_categories_id, is_archive, status.

        Returns:
            Dict with 'success', 'message' and 'post_id'.
        """
        post = Post(
            title=str(_value(data, "title", _POST_DEFAULTS["title"])),
            content=str(_value(data, "content", _POST_DEFAULTS["content"])),
            image=str(_value(data, "image", _POST_DEFAULTS["image"])),
            posts_categories_id=int(_value(data, "posts_categories_id", _POST_DEFAULTS["posts_categories_id"])),
            is_archive=int(_value(data, "is_archive", _POST_DEFAULTS["is_archive"])),
            status=int(_value(data, "status", _POST_DEFAULTS["status"])),
        )
        try:
            saved = self.repo.add(post)
        except DatabaseError as e:
            logger.error(f"Failed to insert post: {e}")
            return {"success": False, "message": f"Error inserting post: {e}", "post_id": None}
        return {
            "success": True,
            "message": f"Post inserted successfully. New Post ID: {saved.id}",
            "post_id": saved.id,
        }

    def select_all_posts(self) -> dict:
        """Fetch the most recent posts."""
        try:
            posts = self.repo.list_recent()
        except DatabaseError as e:
            logger.error(f"Failed to select posts: {e}")
            return {"success": False, "message": f"Error selecting all posts: {e}", "posts": []}
        if not posts:
            return {"success": True, "message": "No posts found.", "posts": []}
        return {"success": True, "message": f"Found {len(posts)} posts.", "posts": posts}

    def select_single_post(self, post_id: int) -> dict:
        """Fetch one post by ID."""
        try:
            post = self.repo.get_by_id(post_id)
        except DatabaseError as e:
            logger.error(f"Failed to select post #{post_id}: {e}")
            return {"success": False, "message": f"Error selecting single post: {e}", "post": None}
        if post is None:
            return {"success": False, "message": f"No post found with ID: {post_id}", "post": None}
        return {"success": True, "message": "Post found.", "post": post}

    def update_existing_post(self, post_id: int, data: Mapping[str, Any]) -> dict:
        """Update a post's title and content."""
        title = str(_value(data, "title", "Default Updated Title"))
        content = str(_value(data, "content", "Default Updated Content"))
        try:
            updated = self.repo.update(post_id, title, content)
            if updated > 0:
                return {
                    "success": True,
                    "message": f"Post with ID: {post_id} updated successfully. Rows affected: {updated}",
                }
            if not self.repo.exists(post_id):
                return {"success": False, "message": f"Post update failed. Post with ID: {post_id} not found."}
            return {
                "success": False,
                "message": f"Post with ID: {post_id} was not updated. Rows affected: {updated}",
            }
        except DatabaseError as e:
            logger.error(f"Failed to update post #{post_id}: {e}")
            return {"success": False, "message": f"Error updating post: {e}"}

    def delete_existing_post(self, post_id: int) -> dict:
        """Delete a post after checking that it exists."""
        try:
            if not self.repo.exists(post_id):
                return {"success": False, "message": f"Cannot delete. Post with ID: {post_id} not found."}
            deleted = self.repo.delete(post_id)
        except DatabaseError as e:
            logger.error(f"Failed to delete post #{post_id}: {e}")
            return {"success": False, "message": f"Error deleting post: {e}"}
        if deleted > 0:
            return {
                "success": True,
                "message": f"Post with ID: {post_id} deleted successfully. Rows affected: {deleted}",
            }
        return {
            "success": False,
            "message": f"Post deletion failed or no rows affected for ID: {post_id}.",
        }

    # ── Transactions ──────────────────────────────────────

    def run_successful_transaction(self) -> dict:
        """
        Insert two posts inside one transaction and commit.

        Returns:
            Dict with 'success', 'message' (one line per step) and 'data'
            holding both post IDs.
        """
        messages: list[str] = []
        try:
            self.db.begin_transaction()
            messages.append("Transaction started.")

            first = self.repo.add(Post(title="TX Commit Post 1", content="Content TX1", image="txc1.jpg"))
            messages.append(f"First post (ID: {first.id}) inserted within transaction.")

            second = self.repo.add(Post(title="TX Commit Post 2", content="Content TX2", image="txc2.jpg"))
            messages.append(f"Second post (ID: {second.id}) inserted within transaction.")

            self.db.commit()
            messages.append(f"Transaction committed successfully. Both posts (IDs: {first.id}, {second.id}) saved.")
            return {
                "success": True,
                "message": "\n".join(messages),
                "data": {"post1_id": first.id, "post2_id": second.id},
            }
        except DatabaseError as e:
            logger.error(f"Transaction failed: {e}")
            if self.db.in_transaction():
                if self._rollback(messages):
                    messages.append(f"Error during transaction: {e}. Transaction rolled back.")
                else:
                    messages.append(f"Error during transaction: {e}.")
            else:
                messages.append(f"Error during transaction (not in transaction state): {e}")
            return {"success": False, "message": "\n".join(messages), "data": {}}

    def run_failed_transaction(self) -> dict:
        """
        Insert a post, then run a statement that is bound to fail, roll back
        and verify the first post is gone.

        The flow is driven by the statement outcomes rather than by exceptions.

        Returns:
            Dict whose 'success' is True when the rollback behaved as expected.
        """
        messages: list[str] = []
        try:
            self.db.begin_transaction()
        except DatabaseError as e:
            return {"success": False, "message": f"Could not start transaction: {e}", "data": {}}
        messages.append("Transaction started for rollback scenario.")

        attempt = Post(title="TX Rollback Post 3", content="Content TX3 (should rollback)", image="txr3.jpg")
        inserted = self.repo.try_add(attempt)
        if not inserted.ok:
            messages.append(f"Initial insert failed: {inserted.error}.")
            if self._rollback(messages):
                messages.append("Transaction rolled back.")
            return {"success": False, "message": "\n".join(messages), "data": {}}
        messages.append(f"First post (potential ID: {attempt.id}) inserted (will attempt rollback).")

        messages.append("Simulating an error with an insert that violates NOT NULL on title...")
        failing = self.repo.try_add(Post(title=None, content="Content TX3b", image="txr3b.jpg"))
        if not self._rollback(messages):
            return {"success": False, "message": "\n".join(messages), "data": {}}
        if failing.ok:
            messages.append("Failing statement unexpectedly succeeded. Transaction rolled back anyway.")
            return {"success": False, "message": "\n".join(messages), "data": {}}
        messages.append(f"Statement failed: {failing.error}. Transaction rolled back as expected.")

        verified = self._verify_absent(attempt.id, messages)
        return {
            "success": verified,
            "message": "\n".join(messages),
            "data": {"rolled_back_attempted_id": attempt.id},
        }

    def _rollback(self, messages: list[str]) -> bool:
        """Roll back, turning a failed ROLLBACK into a message. Returns True on success."""
        try:
            self.db.rollback()
        except DatabaseError as e:
            messages.append(f"Rollback failed: {e}")
            return False
        return True

    def _verify_absent(self, post_id: Optional[int], messages: list[str]) -> bool:
        if post_id is None:
            messages.append("No identifier was generated, nothing to verify.")
            return True
        try:
            present = self.repo.exists(post_id)
        except DatabaseError as e:
            messages.append(f"Could not verify rollback: {e}")
            return False
        if present:
            messages.append(f"VERIFICATION FAILED: Post with (attempted) ID {post_id} was NOT rolled back.")
            return False
        messages.append(f"Verified: Post with (attempted) ID {post_id} was rolled back.")
        return True

    # ── Query log ─────────────────────────────────────────

    def get_query_log_data(self) -> list[dict]:
        """Return the connection's query log as plain dicts."""
        return [entry.to_dict() for entry in self.db.get_query_log()]
