"""
Tests for the admin API: dashboard stats and management endpoints.
"""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models.comment import Comment
from blog.models.like import Like, LikeType
from blog.models.post import Post
from blog.models.user import User
from blog.models.view import View
from blog.utils.dates import utcnow


class TestDashboardStats:
    @pytest.mark.asyncio
    async def test_stats(
        self, admin_client, test_db: AsyncSession, test_post: Post, draft_post: Post, test_user: User
    ):
        test_db.add_all(
            [
                View(post_id=test_post.id, ip_address="1.1.1.1"),
                View(post_id=test_post.id, ip_address="2.2.2.2", created_at=utcnow() - timedelta(days=30)),
                Like(post_id=test_post.id, user_id=test_user.id, type=LikeType.LIKE),
                Comment(post_id=test_post.id, author_id=test_user.id, body="Active"),
                Comment(post_id=test_post.id, author_id=test_user.id, body="Hidden", is_active=False),
            ]
        )
        await test_db.commit()

        response = await admin_client.get("/api/admin/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalPosts"] == 2
        assert data["publishedPosts"] == 1
        assert data["draftPosts"] == 1
        assert data["totalUsers"] == 2
        assert data["weeklyUsers"] == 2
        assert data["totalComments"] == 1
        assert data["totalViews"] == 2
        assert data["weeklyViews"] == 1
        assert data["totalLikes"] == 1
        assert data["topCategories"][0]["slug"] == "essays"
        assert data["topCategories"][0]["postCount"] == 1
        assert {p["slug"] for p in data["recentPosts"]} == {"hello-world", "work-in-progress"}


class TestAdminPosts:
    @pytest.mark.asyncio
    async def test_create_post(self, admin_client, test_category):
        response = await admin_client.post(
            "/api/admin/posts",
            json={
                "title": "Fresh Thoughts",
                "body": " ".join(["word"] * 450),
                "status": "PUBLISHED",
                "categoryId": test_category.id,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "fresh-thoughts"
        assert data["readingTime"] == 3
        assert data["wordCount"] == 450
        assert data["publishedAt"] is not None
        assert data["author"]["username"] == "testadmin"

    @pytest.mark.asyncio
    async def test_slug_collision_gets_suffix(self, admin_client, test_post: Post):
        response = await admin_client.post("/api/admin/posts", json={"title": "Hello World", "body": "Again"})

        assert response.json()["slug"] == "hello-world-2"
        assert response.json()["status"] == "DRAFT"
        assert response.json()["publishedAt"] is None

    @pytest.mark.asyncio
    async def test_publish_draft_sets_published_at(self, admin_client, draft_post: Post):
        response = await admin_client.put(f"/api/admin/posts/{draft_post.id}", json={"status": "PUBLISHED"})

        assert response.status_code == 200
        assert response.json()["status"] == "PUBLISHED"
        assert response.json()["publishedAt"] is not None
        assert response.json()["slug"] == "work-in-progress"

    @pytest.mark.asyncio
    async def test_replace_tags(self, admin_client, test_post: Post):
        tag = (await admin_client.post("/api/admin/tags", json={"name": "Python"})).json()

        response = await admin_client.put(f"/api/admin/posts/{test_post.id}", json={"tagIds": [tag["id"]]})

        assert [t["slug"] for t in response.json()["tags"]] == ["python"]

    @pytest.mark.asyncio
    async def test_unknown_tag(self, admin_client, test_post: Post):
        response = await admin_client.put(f"/api/admin/posts/{test_post.id}", json={"tagIds": [999]})

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "body", "status", "postType", "allowComments", "isPinned"])
    async def test_null_for_required_field_is_rejected(self, admin_client, test_post: Post, field: str):
        response = await admin_client.put(f"/api/admin/posts/{test_post.id}", json={field: None})

        assert response.status_code == 422
        assert response.json()["errorCode"] == "VALIDATION_FAILED"

        response = await admin_client.get(f"/api/admin/posts/{test_post.id}")
        assert response.json()["title"] == "Hello World"

    @pytest.mark.asyncio
    async def test_null_for_optional_field_clears_it(self, admin_client, test_post: Post):
        response = await admin_client.put(f"/api/admin/posts/{test_post.id}", json={"excerpt": None})

        assert response.status_code == 200
        assert response.json()["excerpt"] is None

    @pytest.mark.asyncio
    async def test_list_all_includes_drafts(self, admin_client, test_post: Post, draft_post: Post):
        response = await admin_client.get("/api/admin/posts")
        assert response.json()["pagination"]["total"] == 2

        response = await admin_client.get("/api/admin/posts", params={"status": "DRAFT"})
        assert [p["slug"] for p in response.json()["data"]] == ["work-in-progress"]

    @pytest.mark.asyncio
    async def test_delete_post_removes_engagement(self, admin_client, test_db: AsyncSession, test_post: Post):
        await admin_client.post("/api/posts/hello-world/view")

        response = await admin_client.delete(f"/api/admin/posts/{test_post.id}")
        assert response.status_code == 204

        response = await admin_client.get(f"/api/admin/posts/{test_post.id}")
        assert response.status_code == 404


class TestAdminTaxonomy:
    @pytest.mark.asyncio
    async def test_category_crud(self, admin_client):
        created = await admin_client.post("/api/admin/categories", json={"name": "Reviews", "icon": "star"})
        assert created.status_code == 201
        category_id = created.json()["id"]

        duplicate = await admin_client.post("/api/admin/categories", json={"name": "Reviews"})
        assert duplicate.status_code == 409

        updated = await admin_client.put(f"/api/admin/categories/{category_id}", json={"isActive": False})
        assert updated.json()["isActive"] is False

        listing = await admin_client.get("/api/admin/categories")
        assert [c["slug"] for c in listing.json()] == ["reviews"]

        deleted = await admin_client.delete(f"/api/admin/categories/{category_id}")
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_category_in_use_cannot_be_deleted(self, admin_client, test_post: Post):
        response = await admin_client.delete(f"/api/admin/categories/{test_post.category_id}")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_tag_crud(self, admin_client):
        created = await admin_client.post("/api/admin/tags", json={"name": "Async IO", "color": "#ff0000"})
        assert created.json()["slug"] == "async-io"
        tag_id = created.json()["id"]

        updated = await admin_client.put(f"/api/admin/tags/{tag_id}", json={"slug": "asyncio"})
        assert updated.json()["slug"] == "asyncio"

        assert (await admin_client.delete(f"/api/admin/tags/{tag_id}")).status_code == 204
        assert (await admin_client.get("/api/admin/tags")).json() == []

    @pytest.mark.asyncio
    async def test_null_names_are_rejected(self, admin_client, test_category):
        response = await admin_client.put(f"/api/admin/categories/{test_category.id}", json={"name": None})
        assert response.status_code == 422

        tag_id = (await admin_client.post("/api/admin/tags", json={"name": "Python"})).json()["id"]
        response = await admin_client.put(f"/api/admin/tags/{tag_id}", json={"color": None})
        assert response.status_code == 422


class TestAdminComments:
    @pytest.mark.asyncio
    async def test_moderate_and_filter(self, admin_client, test_db: AsyncSession, test_post: Post, test_user: User):
        comment = Comment(post_id=test_post.id, author_id=test_user.id, body="Borderline")
        test_db.add(comment)
        await test_db.commit()

        response = await admin_client.patch(f"/api/admin/comments/{comment.id}", json={"isActive": False})
        assert response.status_code == 200
        assert response.json()["isActive"] is False
        assert response.json()["post"]["slug"] == "hello-world"

        hidden = await admin_client.get("/api/admin/comments", params={"active": "false"})
        assert [c["id"] for c in hidden.json()["comments"]] == [comment.id]

        public = await admin_client.get("/api/comments", params={"postId": test_post.id})
        assert public.json()["comments"] == []

    @pytest.mark.asyncio
    async def test_delete_comment(self, admin_client, test_db: AsyncSession, test_post: Post, test_user: User):
        comment = Comment(post_id=test_post.id, author_id=test_user.id, body="Spam")
        test_db.add(comment)
        await test_db.commit()

        response = await admin_client.delete(f"/api/admin/comments/{comment.id}")

        assert response.status_code == 204
        assert (await admin_client.get("/api/admin/comments")).json()["pagination"]["total"] == 0


class TestAdminUsers:
    @pytest.mark.asyncio
    async def test_search_users(self, admin_client, test_user: User):
        response = await admin_client.get("/api/admin/users", params={"search": "testuser"})

        assert response.json()["total"] == 1
        assert response.json()["users"][0]["email"] == "testuser@example.com"

    @pytest.mark.asyncio
    async def test_ban_user_ends_their_sessions(self, admin_client, sessions, test_user: User):
        user_session = await sessions.create_session(test_user.id, test_user.email, "user")

        response = await admin_client.patch(f"/api/admin/users/{test_user.id}", json={"isBanned": True})

        assert response.status_code == 200
        assert response.json()["isBanned"] is True
        assert await sessions.get_session(user_session) is None

    @pytest.mark.asyncio
    async def test_promote_user(self, admin_client, test_user: User):
        response = await admin_client.patch(f"/api/admin/users/{test_user.id}", json={"role": "admin"})

        assert response.json()["role"] == "admin"

    @pytest.mark.asyncio
    async def test_admin_cannot_ban_or_demote_self(self, admin_client, test_admin: User):
        banned = await admin_client.patch(f"/api/admin/users/{test_admin.id}", json={"isBanned": True})
        demoted = await admin_client.patch(f"/api/admin/users/{test_admin.id}", json={"role": "user"})

        assert banned.status_code == 403
        assert demoted.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_role_rejected(self, admin_client, test_user: User):
        response = await admin_client.patch(f"/api/admin/users/{test_user.id}", json={"role": "editor"})

        assert response.status_code == 422
