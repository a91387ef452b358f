"""
Tests for registration, login, sessions and profiles.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from blog.auth import hash_password, verify_password
from blog.exceptions import DuplicateResourceError, InvalidCredentialsError, UserBannedError
from blog.models.comment import Comment
from blog.models.like import Like, LikeType
from blog.models.post import Post
from blog.models.user import User
from blog.services import user_service


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)


class TestUserService:
    @pytest.mark.asyncio
    async def test_register_assigns_default_role(self, test_db: AsyncSession):
        user = await user_service.register_user("New@Example.com", "newbie", "password123", test_db)

        assert user.email == "new@example.com"
        assert user.role_name == "user"
        assert user.is_banned is False

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, test_db: AsyncSession, test_user: User):
        with pytest.raises(DuplicateResourceError):
            await user_service.register_user("TESTUSER@example.com", "again", "password123", test_db)

    @pytest.mark.asyncio
    async def test_authenticate(self, test_db: AsyncSession, test_user: User):
        user = await user_service.authenticate_user("testuser@example.com", "testpassword", test_db)
        assert user.id == test_user.id

        with pytest.raises(InvalidCredentialsError):
            await user_service.authenticate_user("testuser@example.com", "nope", test_db)

    @pytest.mark.asyncio
    async def test_banned_user_cannot_authenticate(self, test_db: AsyncSession, test_user: User):
        test_user.is_banned = True
        await test_db.commit()

        with pytest.raises(UserBannedError):
            await user_service.authenticate_user("testuser@example.com", "testpassword", test_db)

    @pytest.mark.asyncio
    async def test_user_stats(self, test_db: AsyncSession, test_user: User, test_post: Post):
        test_db.add_all(
            [
                Comment(post_id=test_post.id, author_id=test_user.id, body="One"),
                Comment(post_id=test_post.id, author_id=test_user.id, body="Two", is_active=False),
                Like(post_id=test_post.id, user_id=test_user.id, type=LikeType.LIKE),
            ]
        )
        await test_db.commit()

        stats = await user_service.get_user_stats(test_db, test_user.id)

        assert stats.post_count == 0
        assert stats.comment_count == 1
        assert stats.like_count == 1


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_register(self, client, test_db: AsyncSession):
        response = await client.post(
            "/api/auth/register",
            json={"username": "reader", "email": "reader@example.com", "password": "longenough"},
        )

        assert response.status_code == 201
        assert response.json()["email"] == "reader@example.com"
        assert response.json()["role"] == "user"
        assert "hashedPassword" not in response.json()

    @pytest.mark.asyncio
    async def test_register_validation(self, client, test_db: AsyncSession):
        response = await client.post(
            "/api/auth/register",
            json={"username": "r", "email": "not-an-email", "password": "short"},
        )

        assert response.status_code == 422
        fields = {e["field"] for e in response.json()["details"]["validation_errors"]}
        assert {"username", "email", "password"} <= fields

    @pytest.mark.asyncio
    async def test_login_sets_cookie_and_session(self, client, test_user: User):
        response = await client.post(
            "/api/auth/login", json={"email": "testuser@example.com", "password": "testpassword"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "testuser"
        assert "session_token" in response.cookies

        response = await client.get("/api/auth/session")
        assert response.json()["user"]["email"] == "testuser@example.com"
        assert response.json()["user"]["role"] == "user"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, test_user: User):
        response = await client.post("/api/auth/login", json={"email": "testuser@example.com", "password": "bad"})

        assert response.status_code == 401
        assert response.json()["errorCode"] == "AUTH_INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, user_client, sessions):
        session_id = user_client.cookies.get("session_token")

        response = await user_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert await sessions.get_session(session_id) is None

    @pytest.mark.asyncio
    async def test_anonymous_session(self, client, test_db: AsyncSession):
        response = await client.get("/api/auth/session")

        assert response.status_code == 200
        assert response.json() == {"user": None}

    @pytest.mark.asyncio
    async def test_banned_user_is_rejected(self, user_client, test_db: AsyncSession, test_user: User, test_post: Post):
        test_user.is_banned = True
        await test_db.commit()

        response = await user_client.post("/api/comments", json={"postId": test_post.id, "body": "Let me in"})

        assert response.status_code == 403
        assert response.json()["errorCode"] == "AUTH_USER_BANNED"


class TestProfileRoutes:
    @pytest.mark.asyncio
    async def test_public_profile(self, client, test_admin: User, test_post: Post):
        response = await client.get(f"/api/users/{test_admin.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "testadmin"
        assert data["stats"] == {"postCount": 1, "commentCount": 0, "likeCount": 0}
        assert "email" not in data

    @pytest.mark.asyncio
    async def test_unknown_profile(self, client, test_db: AsyncSession):
        response = await client.get("/api/users/999")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_profile(self, user_client):
        response = await user_client.put("/api/users/me", json={"bio": "I read things", "username": "reader2"})

        assert response.status_code == 200
        assert response.json()["username"] == "reader2"

    @pytest.mark.asyncio
    async def test_null_username_is_rejected(self, user_client):
        response = await user_client.put("/api/users/me", json={"username": None})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_change_password(self, user_client, test_db: AsyncSession, test_user: User):
        response = await user_client.put(
            "/api/users/me/password",
            json={"currentPassword": "wrong", "newPassword": "brand-new-pass"},
        )
        assert response.status_code == 400

        response = await user_client.put(
            "/api/users/me/password",
            json={"currentPassword": "testpassword", "newPassword": "brand-new-pass"},
        )
        assert response.status_code == 200

        test_db.expire_all()
        user = await user_service.authenticate_user("testuser@example.com", "brand-new-pass", test_db)
        assert user.username == "testuser"
