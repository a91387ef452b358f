"""
Tests for Comment functionality.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import AuthorizationError, CommentsDisabledError, PostNotFoundError, ValidationError
from blog.models.comment import Comment
from blog.models.post import Post
from blog.models.user import User
from blog.services.comment_service import CommentService


class TestCommentService:
    """Tests for CommentService."""

    @pytest.mark.asyncio
    async def test_create_comment(self, test_db: AsyncSession, test_user: User, test_post: Post):
        """Test creating a new comment."""
        comment = await CommentService(test_db).create_comment(
            post_id=test_post.id,
            author_id=test_user.id,
            body="  This is a test comment.  ",
        )

        assert comment.id is not None
        assert comment.body == "This is a test comment."
        assert comment.post_id == test_post.id
        assert comment.author.username == "testuser"
        assert comment.is_active is True
        assert comment.is_edited is False

    @pytest.mark.asyncio
    async def test_create_comment_unknown_post(self, test_db: AsyncSession, test_user: User):
        with pytest.raises(PostNotFoundError):
            await CommentService(test_db).create_comment(post_id=999, author_id=test_user.id, body="Hi")

    @pytest.mark.asyncio
    async def test_comments_closed(self, test_db: AsyncSession, test_user: User, test_post: Post):
        test_post.allow_comments = False
        await test_db.commit()

        with pytest.raises(CommentsDisabledError):
            await CommentService(test_db).create_comment(post_id=test_post.id, author_id=test_user.id, body="Hi")

    @pytest.mark.asyncio
    async def test_replies_are_one_level_deep(self, test_db: AsyncSession, test_user: User, test_post: Post):
        service = CommentService(test_db)
        parent = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Parent")
        reply = await service.create_comment(
            post_id=test_post.id, author_id=test_user.id, body="Reply", parent_id=parent.id
        )

        assert reply.parent_id == parent.id
        with pytest.raises(ValidationError):
            await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Deep", parent_id=reply.id)

    @pytest.mark.asyncio
    async def test_parent_must_be_on_same_post(
        self, test_db: AsyncSession, test_user: User, test_post: Post, draft_post: Post
    ):
        service = CommentService(test_db)
        parent = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Parent")

        with pytest.raises(ValidationError):
            await service.create_comment(
                post_id=draft_post.id, author_id=test_user.id, body="Elsewhere", parent_id=parent.id
            )

    @pytest.mark.asyncio
    async def test_list_attaches_active_replies(self, test_db: AsyncSession, test_user: User, test_post: Post):
        service = CommentService(test_db)
        first = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="First")
        second = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Second")
        await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Reply 1", parent_id=first.id)
        hidden = await service.create_comment(
            post_id=test_post.id, author_id=test_user.id, body="Reply 2", parent_id=first.id
        )
        await service.set_active(hidden.id, False)

        comments, total = await service.list_for_post(test_post.id)

        assert total == 2
        assert [c.id for c in comments] == [second.id, first.id]
        assert [r.body for r in comments[1].replies] == ["Reply 1"]
        assert comments[0].replies == []

    @pytest.mark.asyncio
    async def test_update_by_author_marks_edited(self, test_db: AsyncSession, test_user: User, test_post: Post):
        service = CommentService(test_db)
        comment = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Original")

        updated = await service.update_comment(comment.id, test_user.id, "Changed")

        assert updated.body == "Changed"
        assert updated.is_edited is True

    @pytest.mark.asyncio
    async def test_update_by_other_user_refused(
        self, test_db: AsyncSession, test_user: User, other_user: User, test_post: Post
    ):
        service = CommentService(test_db)
        comment = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Mine")

        with pytest.raises(AuthorizationError):
            await service.update_comment(comment.id, other_user.id, "Hijacked")

    @pytest.mark.asyncio
    async def test_admin_can_delete_any_comment(
        self, test_db: AsyncSession, test_user: User, test_admin: User, test_post: Post
    ):
        service = CommentService(test_db)
        comment = await service.create_comment(post_id=test_post.id, author_id=test_user.id, body="Spam")

        await service.delete_comment(comment.id, test_admin.id, is_admin=True)

        assert await test_db.get(Comment, comment.id) is None


class TestCommentRoutes:
    @pytest.mark.asyncio
    async def test_create_and_list(self, user_client, test_post: Post):
        response = await user_client.post("/api/comments", json={"postId": test_post.id, "body": "Nice post"})

        assert response.status_code == 201
        created = response.json()
        assert created["body"] == "Nice post"
        assert created["author"]["username"] == "testuser"

        response = await user_client.get("/api/comments", params={"postId": test_post.id})
        data = response.json()
        assert data["pagination"]["total"] == 1
        assert data["comments"][0]["id"] == created["id"]
        assert data["comments"][0]["replies"] == []

    @pytest.mark.asyncio
    async def test_create_requires_session(self, client, test_post: Post):
        response = await client.post("/api/comments", json={"postId": test_post.id, "body": "Hello"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_body_length_limit(self, user_client, test_post: Post):
        response = await user_client.post("/api/comments", json={"postId": test_post.id, "body": "x" * 501})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_edit_and_delete_own_comment(self, user_client, test_post: Post):
        created = (await user_client.post("/api/comments", json={"postId": test_post.id, "body": "Draft"})).json()

        response = await user_client.put(f"/api/comments/{created['id']}", json={"body": "Final"})
        assert response.status_code == 200
        assert response.json()["isEdited"] is True

        response = await user_client.delete(f"/api/comments/{created['id']}")
        assert response.status_code == 204

        response = await user_client.get("/api/comments", params={"postId": test_post.id})
        assert response.json()["comments"] == []

    @pytest.mark.asyncio
    async def test_list_for_unknown_post(self, client):
        response = await client.get("/api/comments", params={"postId": 424242})

        assert response.status_code == 404
