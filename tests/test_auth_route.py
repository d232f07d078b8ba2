from fastapi.testclient import TestClient
from sqlmodel import Session, select

from estatedesk.core.security import hash_token
from estatedesk.models.auth_session import AuthSession, RevocationReason
from estatedesk.models.revoked_token import RevokedToken, TokenType
from estatedesk.services import password_reset

EMAIL = "owner@estatedesk.dev"
PASSWORD = "Str0ng!Pass"


def _auth(tokens: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def test_register_and_login(client: TestClient) -> None:
    register_response = client.post(
        "/auth/register",
        json={"email": "New.User@EstateDesk.dev", "fullName": "New User", "password": PASSWORD},
    )
    assert register_response.status_code == 201
    assert register_response.json()["email"] == "new.user@estatedesk.dev"
    assert register_response.json()["role"] == "TENANT"

    login_response = client.post("/auth/login", json={"email": "new.user@estatedesk.dev", "password": PASSWORD})
    assert login_response.status_code == 200
    body = login_response.json()
    assert body["tokenType"] == "bearer"
    assert body["sessionId"]

    me_response = client.get("/auth/me", headers=_auth(body))
    assert me_response.status_code == 200
    assert me_response.json()["fullName"] == "New User"


def test_register_rejects_weak_password(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"email": "weak@estatedesk.dev", "fullName": "Weak", "password": "short"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["errors"]["password"]


def test_register_duplicate_email_conflicts(client: TestClient, make_user) -> None:
    make_user(EMAIL)

    response = client.post(
        "/auth/register",
        json={"email": EMAIL.upper(), "fullName": "Again", "password": PASSWORD},
    )

    assert response.status_code == 409


def test_login_rate_limited_after_repeated_failures(client: TestClient, make_user) -> None:
    make_user(EMAIL)

    for _ in range(5):
        response = client.post("/auth/login", json={"email": EMAIL, "password": "Wr0ng!Pass"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    blocked = client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert blocked.status_code == 429
    assert int(blocked.headers["Retry-After"]) > 0
    assert blocked.json()["code"] == "rate_limited"


def test_unknown_email_gets_same_error_as_wrong_password(client: TestClient, make_user) -> None:
    make_user(EMAIL)

    unknown = client.post("/auth/login", json={"email": "ghost@estatedesk.dev", "password": PASSWORD})
    wrong = client.post("/auth/login", json={"email": EMAIL, "password": "Wr0ng!Pass"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_fourth_login_evicts_oldest_session(client: TestClient, make_user, login) -> None:
    make_user(EMAIL)

    first, second, third, fourth = (login(EMAIL) for _ in range(4))

    assert client.get("/auth/me", headers=_auth(first)).status_code == 401
    for tokens in (second, third, fourth):
        assert client.get("/auth/me", headers=_auth(tokens)).status_code == 200

    sessions_response = client.get("/auth/sessions", headers=_auth(fourth))
    assert sessions_response.status_code == 200
    listed = sessions_response.json()
    assert len(listed) == 3
    assert first["sessionId"] not in {item["sessionId"] for item in listed}
    assert [item["sessionId"] for item in listed if item["isCurrent"]] == [fourth["sessionId"]]


def test_logout_revokes_both_tokens(client: TestClient, db: Session, make_user, login) -> None:
    make_user(EMAIL)
    tokens = login(EMAIL)

    response = client.post("/auth/logout", headers=_auth(tokens))
    assert response.status_code == 200
    assert response.json() == {"success": True, "revokedSessions": 1}

    revoked = db.exec(select(RevokedToken)).all()
    assert {(entry.token_hash, entry.token_type) for entry in revoked} == {
        (hash_token(tokens["accessToken"]), TokenType.access),
        (hash_token(tokens["refreshToken"]), TokenType.refresh),
    }
    assert {entry.reason for entry in revoked} == {RevocationReason.logout}

    assert client.get("/auth/me", headers=_auth(tokens)).status_code == 401
    refresh_response = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refresh_response.status_code == 401


def test_refresh_rotates_token_pair(client: TestClient, make_user, login) -> None:
    make_user(EMAIL)
    tokens = login(EMAIL)

    refresh_response = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert refresh_response.status_code == 200
    rotated = refresh_response.json()
    assert rotated["sessionId"] == tokens["sessionId"]
    assert rotated["accessToken"] != tokens["accessToken"]

    assert client.get("/auth/me", headers=_auth(rotated)).status_code == 200
    assert client.get("/auth/me", headers=_auth(tokens)).status_code == 401
    reuse = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert reuse.status_code == 401


def test_logout_all_can_keep_current_session(client: TestClient, db: Session, make_user, login) -> None:
    make_user(EMAIL)
    first = login(EMAIL)
    second = login(EMAIL)
    current = login(EMAIL)

    response = client.post("/auth/logout-all", params={"keepCurrent": "true"}, headers=_auth(current))

    assert response.status_code == 200
    assert response.json()["revokedSessions"] == 2
    assert client.get("/auth/me", headers=_auth(current)).status_code == 200
    for tokens in (first, second):
        assert client.get("/auth/me", headers=_auth(tokens)).status_code == 401

    active = db.exec(select(AuthSession).where(AuthSession.is_active == True)).all()  # noqa: E712
    assert [item.session_id for item in active] == [current["sessionId"]]


def test_delete_session_only_for_own_sessions(client: TestClient, make_user, login) -> None:
    make_user(EMAIL)
    make_user("other@estatedesk.dev")
    mine = login(EMAIL)
    spare = login(EMAIL)
    other = login("other@estatedesk.dev")

    foreign = client.delete(f"/auth/sessions/{other['sessionId']}", headers=_auth(mine))
    assert foreign.status_code == 404

    own = client.delete(f"/auth/sessions/{spare['sessionId']}", headers=_auth(mine))
    assert own.status_code == 204
    assert client.get("/auth/me", headers=_auth(spare)).status_code == 401
    assert client.get("/auth/me", headers=_auth(other)).status_code == 200


def test_password_reset_flow_revokes_sessions(client: TestClient, db: Session, make_user, login) -> None:
    make_user(EMAIL)
    tokens = login(EMAIL)

    token = password_reset.request_reset(db, EMAIL)
    assert token is not None

    validate_response = client.get("/auth/password-reset/validate", params={"token": token})
    assert validate_response.status_code == 200
    assert validate_response.json()["valid"] is True
    assert validate_response.json()["remainingMinutes"] == 15

    new_password = "N3w!Passw0rd"
    confirm_response = client.post(
        "/auth/password-reset/confirm",
        json={"token": token, "newPassword": new_password},
    )
    assert confirm_response.status_code == 200

    assert client.get("/auth/me", headers=_auth(tokens)).status_code == 401
    assert client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD}).status_code == 401
    assert client.post("/auth/login", json={"email": EMAIL, "password": new_password}).status_code == 200

    reuse = client.post("/auth/password-reset/confirm", json={"token": token, "newPassword": new_password})
    assert reuse.status_code == 422


def test_password_reset_request_does_not_reveal_accounts(client: TestClient, make_user) -> None:
    make_user(EMAIL)

    known = client.post("/auth/password-reset/request", json={"email": EMAIL})
    unknown = client.post("/auth/password-reset/request", json={"email": "ghost@estatedesk.dev"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_protected_route_requires_token(client: TestClient) -> None:
    response = client.get("/auth/me")

    assert response.status_code == 401
