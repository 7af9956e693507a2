"""End-to-end session flows over the HTTP API."""

import pytest

from conftest import DEVICE_ID, auth_header, login
from models.enums import Role
from utils.exceptions import AuthenticationError

REGISTRATION = {
    "email": "a@x.com",
    "display_name": "logger",
    "password": "pw",
    "preferences": {"languages": ["JA", "DE", "ZH", "KR"], "public_profile": False},
}


def register(client, **overrides):
    return client.post("/api/register", json={**REGISTRATION, **overrides})


class TestRegister:
    def test_register_then_login(self, client):
        """Scenario A"""
        resp = register(client)
        assert resp.status_code == 201
        assert resp.get_json() == {"success": True}

        resp = login(client, "a@x.com", "pw")
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["token"]
        assert body["refresh_token"]
        assert body["user"]["email"] == "a@x.com"
        assert body["user"]["display_name"] == "logger"
        assert body["user"]["role"] == "USER"
        assert body["user"]["password"] == ""
        assert "password_hash" not in body["user"]
        assert body["user"]["preferences"] == {"languages": ["JA", "DE", "ZH", "KR"], "public_profile": False}

    def test_register_cannot_choose_a_role(self, client, session_service):
        resp = register(client, role="ADMIN")

        assert resp.status_code == 400
        assert session_service.store.find_by_email("a@x.com") is None

    def test_registered_users_are_plain_users(self, client, session_service):
        register(client)

        assert session_service.store.find_by_email("a@x.com").role == Role.USER

    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "register_test@invalid##"},
            {"email": ""},
            {"display_name": ""},
            {"password": ""},
            {"preferences": {"languages": ["XX"]}},
        ],
    )
    def test_invalid_registration_is_400(self, client, overrides):
        resp = register(client, **overrides)

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "VALIDATION_ERROR"
        assert resp.get_json()["details"]

    def test_duplicate_email_is_409(self, client):
        register(client)

        resp = register(client, email="A@X.com")

        assert resp.status_code == 409


class TestLogin:
    def test_wrong_password_is_401_without_tokens(self, client, make_user):
        """Scenario B"""
        make_user("login_test@example.com", "password")

        resp = login(client, "login_test@example.com", "wrong")
        body = resp.get_json()

        assert resp.status_code == 401
        assert "token" not in body
        assert "refresh_token" not in body

    def test_unknown_user_and_wrong_password_look_the_same(self, client, make_user):
        make_user("login_test@example.com", "password")

        wrong_password = login(client, "login_test@example.com", "wrong")
        unknown_user = login(client, "nobody@example.com", "password")

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.get_json() == unknown_user.get_json()

    def test_disabled_user_cannot_log_in(self, client, make_user):
        make_user("off@example.com", role=Role.DISABLED)

        assert login(client, "off@example.com").status_code == 401

    def test_email_is_case_insensitive(self, client, make_user):
        make_user("login_test@example.com")

        assert login(client, "Login_Test@Example.com ").status_code == 200

    def test_device_id_is_required(self, client, make_user):
        make_user("login_test@example.com")

        resp = client.post("/api/login", json={"email": "login_test@example.com", "password": "password"})

        assert resp.status_code == 400
        assert "device_id" in resp.get_json()["details"]

    def test_second_login_on_same_device_invalidates_the_first(self, client, make_user, refresh_manager, guard):
        """Scenario C"""
        user = make_user("login_test@example.com")

        first = login(client, "login_test@example.com").get_json()["refresh_token"]
        second = login(client, "login_test@example.com").get_json()["refresh_token"]

        assert len(refresh_manager.active_for(user.id, DEVICE_ID)) == 1
        with pytest.raises(AuthenticationError):
            refresh_manager.verify(guard.refresh.verify(first), first)
        assert refresh_manager.verify(guard.refresh.verify(second), second)

    def test_access_token_references_the_refresh_token_row(self, client, make_user, refresh_manager, guard):
        user = make_user("login_test@example.com")

        token = login(client, "login_test@example.com").get_json()["token"]

        identity = guard.authenticate(f"Bearer {token}")
        assert identity.refresh_token_id == refresh_manager.active_for(user.id, DEVICE_ID)[0].id


class TestRefresh:
    def test_refresh_with_access_token(self, client, make_user):
        make_user("refresh@example.com")
        token = login(client, "refresh@example.com").get_json()["token"]

        resp = client.post("/api/session/refresh", headers=auth_header(token))
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["token"]
        assert "refresh_token" not in body
        assert body["user"]["email"] == "refresh@example.com"

    def test_refresh_does_not_touch_refresh_token_state(self, client, make_user, refresh_manager):
        user = make_user("refresh@example.com")
        token = login(client, "refresh@example.com").get_json()["token"]
        before = [r.id for r in refresh_manager.active_for(user.id, DEVICE_ID)]

        client.post("/api/session/refresh", headers=auth_header(token))

        assert [r.id for r in refresh_manager.active_for(user.id, DEVICE_ID)] == before

    def test_refreshed_token_picks_up_profile_changes(self, client, make_user, guard):
        make_user("refresh@example.com", display_name="before")
        login_body = login(client, "refresh@example.com").get_json()
        client.put(
            f"/api/users/{login_body['user']['id']}",
            json={"display_name": "after"},
            headers=auth_header(login_body["token"]),
        )

        token = client.post("/api/session/refresh", headers=auth_header(login_body["token"])).get_json()["token"]

        assert guard.authenticate(f"Bearer {token}").display_name == "after"

    def test_stale_session_is_denied(self, client, make_user):
        make_user("refresh@example.com")
        stale = login(client, "refresh@example.com").get_json()["token"]
        login(client, "refresh@example.com")  # rotates the device's refresh token

        resp = client.post("/api/session/refresh", headers=auth_header(stale))

        assert resp.status_code == 401

    def test_missing_or_garbage_token_is_401(self, client):
        assert client.post("/api/session/refresh").status_code == 401
        assert client.post("/api/session/refresh", headers=auth_header("garbage")).status_code == 401

    def test_refresh_token_is_not_accepted_as_access_token(self, client, make_user):
        make_user("refresh@example.com")
        refresh_token = login(client, "refresh@example.com").get_json()["refresh_token"]

        assert client.post("/api/session/refresh", headers=auth_header(refresh_token)).status_code == 401

    def test_disabled_user_cannot_refresh(self, client, make_user, session_service):
        user = make_user("refresh@example.com")
        token = login(client, "refresh@example.com").get_json()["token"]
        user = session_service.store.get(user.id)
        user.role = Role.DISABLED
        session_service.store.update(user)

        assert client.post("/api/session/refresh", headers=auth_header(token)).status_code == 401


class TestReauthenticate:
    def test_refresh_token_yields_new_pair(self, client, make_user, guard):
        make_user("reauth@example.com")
        first = login(client, "reauth@example.com").get_json()

        resp = client.post("/api/session/authenticate", headers=auth_header(first["refresh_token"]))
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["token"]
        assert body["refresh_token"] and body["refresh_token"] != first["refresh_token"]
        assert body["user"]["password"] == ""
        assert guard.authenticate(f"Bearer {body['token']}").email == "reauth@example.com"

    def test_rotated_out_refresh_token_is_401(self, client, make_user):
        """Scenario D"""
        make_user("reauth@example.com")
        old = login(client, "reauth@example.com").get_json()["refresh_token"]
        client.post("/api/session/authenticate", headers=auth_header(old))

        resp = client.post("/api/session/authenticate", headers=auth_header(old))

        assert resp.status_code == 401
        assert "token" not in resp.get_json()

    def test_access_token_is_not_accepted_as_refresh_token(self, client, make_user):
        make_user("reauth@example.com")
        token = login(client, "reauth@example.com").get_json()["token"]

        assert client.post("/api/session/authenticate", headers=auth_header(token)).status_code == 401

    def test_all_refresh_failures_share_one_response(self, client, make_user):
        make_user("reauth@example.com")
        old = login(client, "reauth@example.com").get_json()["refresh_token"]
        login(client, "reauth@example.com")

        invalidated = client.post("/api/session/authenticate", headers=auth_header(old))
        forged = client.post("/api/session/authenticate", headers=auth_header(old[:-4] + "AAAA"))

        assert invalidated.status_code == forged.status_code == 401
        assert invalidated.get_json() == forged.get_json()

    def test_without_rotation_the_refresh_token_stays_valid(self, app, client, make_user):
        app.extensions["session"].rotate_on_reauth = False
        make_user("reauth@example.com")
        refresh_token = login(client, "reauth@example.com").get_json()["refresh_token"]

        first = client.post("/api/session/authenticate", headers=auth_header(refresh_token))
        second = client.post("/api/session/authenticate", headers=auth_header(refresh_token))

        assert first.status_code == second.status_code == 200
        assert "refresh_token" not in first.get_json()


class TestDeviceSessions:
    def test_new_creates_a_refresh_token_for_another_device(self, client, make_user, refresh_manager):
        user = make_user("devices@example.com")
        token = login(client, "devices@example.com").get_json()["token"]

        resp = client.post("/api/session/new", json={"device_id": "tablet"}, headers=auth_header(token))

        assert resp.status_code == 200
        assert resp.get_json()["refresh_token"]
        assert len(refresh_manager.active_for(user.id, "tablet")) == 1
        assert len(refresh_manager.active_for(user.id, DEVICE_ID)) == 1

    def test_logout_invalidates_the_device(self, client, make_user):
        make_user("devices@example.com")
        body = login(client, "devices@example.com").get_json()

        resp = client.post("/api/session/logout", json={"device_id": DEVICE_ID}, headers=auth_header(body["token"]))

        assert resp.status_code == 200
        assert client.post("/api/session/authenticate", headers=auth_header(body["refresh_token"])).status_code == 401
        assert client.post("/api/session/refresh", headers=auth_header(body["token"])).status_code == 401
