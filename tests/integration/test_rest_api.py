"""End-to-end tests for the REST API over the in-memory store."""

import asyncio

import pytest
from bson import ObjectId

from inkpost.api.common.auth import TokenService
from inkpost.storage import COMMENTS, POSTS

pytestmark = pytest.mark.integration


def register_and_login(client, username: str, password: str = "pw") -> dict:
    credentials = {"username": username, "password": password}
    assert client.post("/register", json=credentials).status_code == 200
    token = client.post("/login", json=credentials).json()["token"]
    return {"Authorization": f"Bearer {token}"}


def create_post(client, headers, title="Title", content="Content") -> str:
    response = client.post("/posts", json={"title": title, "content": content}, headers=headers)
    assert response.status_code == 200
    return response.json()["message"].rsplit(" ", 1)[-1]


def snapshot(store) -> tuple:
    """Every post and comment currently in the store."""

    async def read():
        return await store.find(POSTS), await store.find(COMMENTS)

    return asyncio.run(read())


class TestAccounts:
    """Test /register and /login."""

    def test_register(self, rest_client):
        response = rest_client.post("/register", json={"username": "alice", "password": "pw"})

        assert response.status_code == 200
        assert response.json() == {"message": "User registered successfully"}

    def test_register_duplicate(self, rest_client):
        rest_client.post("/register", json={"username": "alice", "password": "pw"})

        response = rest_client.post("/register", json={"username": "alice", "password": "other"})

        assert response.status_code == 400
        assert response.json() == {"message": "User already exists"}

    def test_login(self, rest_client, service):
        rest_client.post("/register", json={"username": "alice", "password": "pw"})

        response = rest_client.post("/login", json={"username": "alice", "password": "pw"})

        assert response.status_code == 200
        assert service.token_service.verify(response.json()["token"])

    def test_login_failures_match(self, rest_client):
        """Test unknown user and wrong password are indistinguishable."""
        rest_client.post("/register", json={"username": "alice", "password": "pw"})

        wrong = rest_client.post("/login", json={"username": "alice", "password": "nope"})
        unknown = rest_client.post("/login", json={"username": "bob", "password": "pw"})

        assert wrong.status_code == unknown.status_code == 400
        assert wrong.json() == unknown.json() == {"message": "Invalid username or password"}

    @pytest.mark.parametrize(
        "body", [{}, {"username": "alice"}, {"username": "", "password": "pw"}]
    )
    def test_register_invalid_body(self, rest_client, body):
        response = rest_client.post("/register", json=body)

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid request")


class TestAuthentication:
    """Test the bearer-token guard on protected routes."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/posts"),
            ("get", "/posts/abc"),
            ("post", "/posts"),
            ("put", "/posts/abc"),
            ("delete", "/posts/abc"),
            ("get", "/posts/abc/comments"),
            ("post", "/posts/abc/comments"),
        ],
    )
    def test_missing_token(self, rest_client, method, path):
        response = rest_client.request(method, path)

        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}

    def test_non_bearer_scheme(self, rest_client):
        response = rest_client.get("/posts", headers={"Authorization": "Basic YWxpY2U6cHc="})

        assert response.status_code == 401

    def test_invalid_token(self, rest_client):
        response = rest_client.get("/posts", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}

    def test_token_from_other_secret(self, rest_client):
        forged = TokenService("attacker-secret").issue(str(ObjectId()))

        response = rest_client.get("/posts", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 403

    def test_health_is_public(self, rest_client):
        response = rest_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"



class TestRejectedWrites:
    """Test that refused writes leave posts and comments untouched."""

    WRITES = [
        ("post", "/posts", {"title": "t", "content": "c"}),
        ("put", "/posts/{id}", {"title": "changed"}),
        ("delete", "/posts/{id}", None),
        ("post", "/posts/{id}/comments", {"content": "spam"}),
    ]

    @pytest.fixture
    def seeded(self, rest_client):
        headers = register_and_login(rest_client, "owner")
        post_id = create_post(rest_client, headers, title="Kept", content="Body")
        rest_client.post(f"/posts/{post_id}/comments", json={"content": "first"}, headers=headers)
        return post_id

    @pytest.mark.parametrize("method, path, body", WRITES)
    @pytest.mark.parametrize(
        "authorization, status",
        [(None, 401), ("Basic YWxpY2U6cHc=", 401), ("Bearer not-a-jwt", 403)],
    )
    def test_bad_credentials(
        self, rest_client, store, seeded, method, path, body, authorization, status
    ):
        headers = {"Authorization": authorization} if authorization else {}
        before = snapshot(store)

        response = rest_client.request(
            method, path.format(id=seeded), json=body, headers=headers
        )

        assert response.status_code == status
        assert snapshot(store) == before

    def test_forged_token(self, rest_client, store, seeded):
        forged = TokenService("attacker-secret").issue(str(ObjectId()))
        before = snapshot(store)

        response = rest_client.post(
            "/posts",
            json={"title": "t", "content": "c"},
            headers={"Authorization": f"Bearer {forged}"},
        )

        assert response.status_code == 403
        assert snapshot(store) == before

    @pytest.mark.parametrize("method, path, body", WRITES[1:3])
    def test_non_owner(self, rest_client, store, seeded, method, path, body):
        intruder = register_and_login(rest_client, "intruder")
        before = snapshot(store)

        response = rest_client.request(
            method, path.format(id=seeded), json=body, headers=intruder
        )

        assert response.status_code == 403
        assert snapshot(store) == before

class TestPosts:
    """Test post CRUD."""

    def test_create_and_fetch(self, rest_client):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.post(
            "/posts", json={"title": "Hello", "content": "World"}, headers=headers
        )
        assert response.json()["message"].startswith("Post created successfully with id ")
        post_id = response.json()["message"].rsplit(" ", 1)[-1]

        fetched = rest_client.get(f"/posts/{post_id}", headers=headers)

        assert fetched.status_code == 200
        body = fetched.json()
        assert body["id"] == post_id
        assert (body["title"], body["content"]) == ("Hello", "World")
        assert body["author"]["username"] == "alice"

    def test_list_posts(self, rest_client):
        alice = register_and_login(rest_client, "alice")
        bob = register_and_login(rest_client, "bob")
        create_post(rest_client, alice, title="A")
        create_post(rest_client, bob, title="B")

        posts = rest_client.get("/posts", headers=alice).json()

        assert [(p["title"], p["author"]["username"]) for p in posts] == [
            ("A", "alice"),
            ("B", "bob"),
        ]

    @pytest.mark.parametrize("post_id", ["not-an-id", str(ObjectId())])
    def test_missing_post(self, rest_client, post_id):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.get(f"/posts/{post_id}", headers=headers)

        assert response.status_code == 404
        assert response.json() == {"message": "Post not found"}

    def test_partial_update(self, rest_client):
        headers = register_and_login(rest_client, "alice")
        post_id = create_post(rest_client, headers, title="Old", content="Body")

        response = rest_client.put(f"/posts/{post_id}", json={"title": "New"}, headers=headers)

        assert response.json() == {"message": "Post updated successfully"}
        body = rest_client.get(f"/posts/{post_id}", headers=headers).json()
        assert (body["title"], body["content"]) == ("New", "Body")

    def test_update_by_non_owner(self, rest_client):
        """Test another user's update is Forbidden and changes nothing."""
        alice = register_and_login(rest_client, "alice")
        bob = register_and_login(rest_client, "bob")
        post_id = create_post(rest_client, bob, title="Bob's")

        response = rest_client.put(f"/posts/{post_id}", json={"title": "Mine"}, headers=alice)

        assert response.status_code == 403
        assert response.json() == {"message": "Forbidden"}
        assert rest_client.get(f"/posts/{post_id}", headers=bob).json()["title"] == "Bob's"

    def test_delete_by_non_owner(self, rest_client):
        alice = register_and_login(rest_client, "alice")
        bob = register_and_login(rest_client, "bob")
        post_id = create_post(rest_client, bob)

        response = rest_client.delete(f"/posts/{post_id}", headers=alice)

        assert response.status_code == 403
        assert rest_client.get(f"/posts/{post_id}", headers=bob).status_code == 200

    def test_delete(self, rest_client):
        headers = register_and_login(rest_client, "alice")
        post_id = create_post(rest_client, headers)

        response = rest_client.delete(f"/posts/{post_id}", headers=headers)

        assert response.json() == {"message": "Post deleted successfully"}
        assert rest_client.get(f"/posts/{post_id}", headers=headers).status_code == 404
        assert rest_client.delete(f"/posts/{post_id}", headers=headers).status_code == 404

    def test_create_requires_fields(self, rest_client):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.post("/posts", json={"title": "only"}, headers=headers)

        assert response.status_code == 400


class TestComments:
    """Test comments and pagination."""

    def test_add_comment(self, rest_client):
        alice = register_and_login(rest_client, "alice")
        bob = register_and_login(rest_client, "bob")
        post_id = create_post(rest_client, alice)

        response = rest_client.post(
            f"/posts/{post_id}/comments", json={"content": "Nice"}, headers=bob
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Comment added successfully"}
        page = rest_client.get(f"/posts/{post_id}/comments", headers=alice).json()
        assert page["totalComments"] == 1
        assert page["comments"][0]["author"]["username"] == "bob"
        assert page["comments"][0]["post"] == post_id

    def test_comment_on_missing_post(self, rest_client):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.post(
            f"/posts/{ObjectId()}/comments", json={"content": "x"}, headers=headers
        )

        assert response.status_code == 404

    def test_pagination(self, rest_client):
        """Test page 2 with limit 10 over 25 comments."""
        headers = register_and_login(rest_client, "alice")
        post_id = create_post(rest_client, headers)
        for i in range(25):
            rest_client.post(
                f"/posts/{post_id}/comments", json={"content": f"c{i}"}, headers=headers
            )

        response = rest_client.get(
            f"/posts/{post_id}/comments", params={"page": 2, "limit": 10}, headers=headers
        )

        body = response.json()
        assert response.status_code == 200
        assert [c["content"] for c in body["comments"]] == [f"c{i}" for i in range(10, 20)]
        assert body["totalComments"] == 25

    @pytest.mark.parametrize(
        "params", [{"page": 0}, {"limit": 0}, {"page": "two"}, {"page": 2**62}]
    )
    def test_invalid_paging(self, rest_client, params):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.get(f"/posts/{ObjectId()}/comments", params=params, headers=headers)

        assert response.status_code == 400
        assert "message" in response.json()

    def test_unknown_post_has_empty_page(self, rest_client):
        headers = register_and_login(rest_client, "alice")

        response = rest_client.get("/posts/not-an-id/comments", headers=headers)

        assert response.json() == {"comments": [], "totalComments": 0}
