from tests.conftest import PASSWORD, create_user


async def test_signup_then_login(client):
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": "Dana@Example.com", "username": "dana_1", "password": PASSWORD},
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/v1/auth/login", json={"email": "dana@example.com", "password": PASSWORD}
    )
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "dana_1"
    assert response.json()["user"]["email"] == "dana@example.com"

    set_cookie = response.headers["set-cookie"].lower()
    assert "daybook_session=" in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "max-age=604800" in set_cookie
    assert "secure" not in set_cookie

    response = await client.get("/api/v1/users/me")
    assert response.status_code == 200
    assert response.json()["username"] == "dana_1"


async def test_signup_duplicates_conflict(client, alice):
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": alice.email, "username": "someone", "password": PASSWORD},
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": "other@example.com", "username": "ALICE", "password": PASSWORD},
    )
    assert response.status_code == 409


async def test_signup_validation(client):
    bad_payloads = [
        {"email": "e@example.com", "username": "ab", "password": PASSWORD},
        {"email": "e@example.com", "username": "has space", "password": PASSWORD},
        {"email": "e@example.com", "username": "valid_name", "password": "short"},
        {"email": "not-an-email", "username": "valid_name", "password": PASSWORD},
    ]
    for payload in bad_payloads:
        response = await client.post("/api/v1/auth/signup", json=payload)
        assert response.status_code == 400, payload


async def test_login_wrong_password(client, alice):
    response = await client.post(
        "/api/v1/auth/login", json={"email": alice.email, "password": "nope-nope-nope"}
    )
    assert response.status_code == 401


async def test_requires_session(client):
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


async def test_logout_ends_session(alice_client):
    response = await alice_client.post("/api/v1/auth/logout")
    assert response.status_code == 200

    response = await alice_client.get("/api/v1/users/me")
    assert response.status_code == 401


async def test_stale_cookie_is_rejected(client):
    response = await client.get(
        "/api/v1/users/me", headers={"Cookie": "daybook_session=" + "f" * 64}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Session expired"


async def test_user_search_excludes_self(alice_client, bob, db):
    await create_user(db, "bobby")
    response = await alice_client.get("/api/v1/users/search", params={"q": "bob"})
    assert response.status_code == 200
    assert sorted(user["username"] for user in response.json()) == ["bob", "bobby"]

    response = await alice_client.get("/api/v1/users/search", params={"q": "ali"})
    assert response.json() == []


async def test_admin_users_requires_admin(alice_client, make_client, db):
    response = await alice_client.get("/api/v1/admin/users")
    assert response.status_code == 403

    admin = await create_user(db, "root", is_admin=True)
    async with make_client() as client:
        response = await client.post(
            "/api/v1/auth/login", json={"email": admin.email, "password": PASSWORD}
        )
        assert response.status_code == 200
        response = await client.get("/api/v1/admin/users", params={"search": "ali"})
        assert response.status_code == 200
        assert [user["username"] for user in response.json()] == ["alice"]
