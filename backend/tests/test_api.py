"""HTTP and WebSocket tests through the full FastAPI app."""
from datetime import timedelta

from tests.conftest import auth_headers

ADMIN = auth_headers("slack|admin", "admin@example.com", "Ada Admin")
MEMBER = auth_headers("slack|member", "coach@example.com", "Cam Coach")
OTHER = auth_headers("slack|other", "other@example.com", "Oli Other")


def _setup_member_on_team(client, team=114):
    """Admin registers first, then adds a house team the member claims."""
    assert client.get("/api/users/me", headers=ADMIN).json()["teams"] == "admin"
    assert client.post("/api/users/house-teams", json={"team": team}, headers=ADMIN).status_code == 201
    resp = client.post("/api/users/me/teams", json={"team": team}, headers=MEMBER)
    assert resp.status_code == 200
    return resp.json()


class TestHealthAndAuth:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_missing_identity_forbidden(self, client):
        resp = client.get("/api/users/me")
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Not authenticated"}

    def test_feed_is_public(self, client):
        assert client.get("/api/feed").json() == {
            "reservations": [], "blackouts": [], "site_events": [], "holidays": [],
        }
        assert client.get("/api/logs").status_code == 403

    def test_first_user_is_admin(self, client):
        me = client.get("/api/users/me", headers=ADMIN).json()
        assert me["teams"] == "admin"
        assert me["name"] == "Ada Admin"
        assert me["email"] == "admin@example.com"
        assert client.get("/api/users/me", headers=MEMBER).json()["teams"] == []

    def test_user_list_admin_only(self, client):
        client.get("/api/users/me", headers=ADMIN)
        assert client.get("/api/users/", headers=MEMBER).status_code == 403
        assert len(client.get("/api/users/", headers=ADMIN).json()) == 2


class TestTeamsApi:
    def test_join_house_team(self, client):
        user = _setup_member_on_team(client)
        assert user["teams"] == [114]

        resp = client.post("/api/users/me/teams", json={"team": 114}, headers=OTHER)
        assert resp.status_code == 403

    def test_admin_disables_user(self, client):
        user = _setup_member_on_team(client)
        resp = client.patch(f"/api/users/{user['id']}", json={"disabled": True}, headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["disabled"] is True

        resp = client.get("/api/users/me", headers=MEMBER)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "User disabled"


class TestReservationsApi:
    def test_add_list_remove(self, client, today):
        _setup_member_on_team(client)
        body = {"date": today.isoformat(), "slot": "10:00am", "team": 114, "notes": "batting"}

        resp = client.post("/api/reservations/", json=body, headers=MEMBER)
        assert resp.status_code == 201
        created = resp.json()
        assert created["team"] == 114
        assert "userId" in created
        assert "abandoned" not in created

        assert client.post("/api/reservations/", json=body, headers=MEMBER).status_code == 409

        listed = client.get("/api/reservations/", params={"date": today.isoformat()}, headers=OTHER).json()
        assert [r["id"] for r in listed] == [created["id"]]

        resp = client.post(f"/api/reservations/{created['id']}/remove", json={"reason": "rain"}, headers=MEMBER)
        assert resp.status_code == 200
        assert "abandoned" in resp.json()
        assert client.get("/api/reservations/", params={"date": today.isoformat()}, headers=MEMBER).json() == []

        resp = client.post(f"/api/reservations/{created['id']}/remove", json={}, headers=MEMBER)
        assert resp.status_code == 404

    def test_team_as_number_or_string_is_one_booking(self, client, today):
        _setup_member_on_team(client)
        body = {"date": today.isoformat(), "slot": "10:00am", "team": 114}
        assert client.post("/api/reservations/", json=body, headers=MEMBER).status_code == 201

        body["team"] = "114"
        assert client.post("/api/reservations/", json=body, headers=MEMBER).status_code == 409
        listed = client.get("/api/reservations/", params={"date": today.isoformat()}, headers=MEMBER).json()
        assert [r["team"] for r in listed] == [114]

    def test_non_member_forbidden(self, client, today):
        _setup_member_on_team(client)
        body = {"date": today.isoformat(), "slot": "10:00am", "team": 114}
        resp = client.post("/api/reservations/", json=body, headers=OTHER)
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Only team members can add reservations"

    def test_outside_window_forbidden(self, client, today):
        _setup_member_on_team(client)
        body = {"date": (today + timedelta(days=30)).isoformat(), "slot": "10:00am", "team": 114}
        assert client.post("/api/reservations/", json=body, headers=MEMBER).status_code == 403

    def test_invalid_team_rejected(self, client, today):
        client.get("/api/users/me", headers=ADMIN)
        body = {"date": today.isoformat(), "slot": "10:00am", "team": 0}
        assert client.post("/api/reservations/", json=body, headers=ADMIN).status_code == 422
        body["team"] = "Backup"
        assert client.post("/api/reservations/", json=body, headers=ADMIN).status_code == 422


class TestAdminRecordsApi:
    def test_blackout_and_holiday(self, client, today):
        client.get("/api/users/me", headers=ADMIN)
        day = today.isoformat()

        resp = client.post("/api/blackouts/", json={"date": day, "slot": "10:00am"}, headers=ADMIN)
        assert resp.status_code == 201
        assert client.post("/api/blackouts/", json={"date": day, "slot": "10:00am"}, headers=MEMBER).status_code == 403

        resp = client.post(
            "/api/holidays/", json={"name": "Field Day", "date": day, "icon": "⚾"}, headers=ADMIN
        )
        assert resp.status_code == 201
        holiday_id = resp.json()["id"]
        assert [h["id"] for h in client.get("/api/holidays/", headers=MEMBER).json()] == [holiday_id]

        feed = client.get("/api/feed").json()
        assert len(feed["blackouts"]) == 1
        assert feed["holidays"][0]["name"] == "Field Day"
        assert feed["reservations"] == []

        logs = client.get("/api/logs", headers=ADMIN).json()
        # The member's rejected blackout still registered them on first contact.
        assert [entry["type"] for entry in logs] == ["userAdd", "blackoutAdd", "userAdd", "holidayAdd"]
        assert client.get("/api/logs", headers=MEMBER).status_code == 403


class TestUpdatesSocket:
    def test_reservation_pushed_to_clients(self, client, today):
        _setup_member_on_team(client)
        with client.websocket_connect("/ws", headers=OTHER) as ws:
            body = {"date": today.isoformat(), "slot": "1:00pm", "team": 114}
            created = client.post("/api/reservations/", json=body, headers=MEMBER).json()
            message = ws.receive_json()
        assert message["reservation"]["id"] == created["id"]
        assert message["reservation"]["slot"] == "1:00pm"
