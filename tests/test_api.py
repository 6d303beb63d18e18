"""HTTP smoke tests for the JSON blueprints and the management commands."""

from __future__ import annotations

import base64

import pytest
from sqlalchemy.exc import OperationalError

from lifeos import create_app
from lifeos.services.auth import create_user

from tests.conftest import DAY

PASSWORD = "correct horse"


@pytest.fixture
def app(config):
    app = create_app(config=config)
    create_user(
        username="ada",
        password=PASSWORD,
        session_factory=app.extensions["lifeos"].session_factory,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def basic_auth(username: str = "ada", password: str = PASSWORD) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


class TestAuthentication:
    def test_missing_credentials(self, client):
        response = client.get("/api/tasks/")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"].startswith("Basic")
        assert response.get_json() == {
            "data": None,
            "error": {"kind": "Unauthenticated", "message": "Missing credentials"},
        }

    def test_wrong_password(self, client):
        response = client.get("/api/tasks/", headers=basic_auth(password="wrong"))

        assert response.status_code == 401
        assert response.get_json()["error"]["message"] == "Invalid credentials"

    def test_datastore_failure_during_login(self, client, monkeypatch):
        def _fail(**_kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr("lifeos.blueprints.api.authenticate", _fail)

        response = client.get("/api/tasks/", headers=basic_auth())

        assert response.status_code == 503
        body = response.get_json()
        assert body["data"] is None
        assert body["error"]["kind"] == "Unavailable"


class TestTaskRoutes:
    def test_create_and_list(self, client):
        created = client.post("/api/tasks/", json={"title": "File taxes", "due_date": "2030-03-04"}, headers=basic_auth())

        assert created.status_code == 201
        body = created.get_json()
        assert body["error"] is None
        assert body["data"]["title"] == "File taxes"

        listed = client.get("/api/tasks/?q=taxes", headers=basic_auth())
        assert [t["title"] for t in listed.get_json()["data"]] == ["File taxes"]

    def test_validation_error(self, client):
        response = client.post("/api/tasks/", json={"title": ""}, headers=basic_auth())

        assert response.status_code == 422
        assert response.get_json()["error"]["kind"] == "ValidationError"

    def test_illegal_status_change(self, client):
        task_id = client.post("/api/tasks/", json={"title": "Ship"}, headers=basic_auth()).get_json()["data"]["id"]

        response = client.post(f"/api/tasks/{task_id}/status", json={"status": "done"}, headers=basic_auth())

        assert response.status_code == 409
        assert response.get_json()["error"]["kind"] == "InvalidState"

    def test_add_time_rejects_non_integer(self, client):
        task_id = client.post("/api/tasks/", json={"title": "Read"}, headers=basic_auth()).get_json()["data"]["id"]

        response = client.post(f"/api/tasks/{task_id}/time", json={"minutes": "lots"}, headers=basic_auth())

        assert response.status_code == 422

    def test_timer_conflict(self, client):
        task_id = client.post("/api/tasks/", json={"title": "Focus"}, headers=basic_auth()).get_json()["data"]["id"]

        assert client.post(f"/api/tasks/{task_id}/timer/start", headers=basic_auth()).status_code == 200
        response = client.post(f"/api/tasks/{task_id}/timer/start", headers=basic_auth())

        assert response.status_code == 409
        assert response.get_json()["error"]["kind"] == "AlreadyRunning"

    def test_unknown_task(self, client):
        assert client.delete("/api/tasks/999", headers=basic_auth()).status_code == 404


class TestPlanRoutes:
    def test_generate_lifecycle(self, client):
        day = DAY.isoformat()
        assert client.get(f"/api/plans/{day}", headers=basic_auth()).get_json() == {"data": None, "error": None}

        generated = client.post(f"/api/plans/{day}/generate", json={}, headers=basic_auth())
        assert generated.status_code == 201
        assert generated.get_json()["data"]["date"] == day

        again = client.post(f"/api/plans/{day}/generate", json={}, headers=basic_auth())
        assert again.status_code == 409
        assert again.get_json()["error"]["kind"] == "AlreadyExists"

        regenerated = client.post(f"/api/plans/{day}/generate", json={"regenerate": True}, headers=basic_auth())
        assert regenerated.status_code == 201

    def test_bad_date(self, client):
        response = client.get("/api/plans/not-a-date", headers=basic_auth())

        assert response.status_code == 422

    def test_preferences(self, client):
        response = client.patch("/api/plans/preferences", json={"auto_position_tasks": True}, headers=basic_auth())

        assert response.status_code == 200
        assert response.get_json()["data"]["auto_position_tasks"] is True


class TestOtherRoutes:
    def test_seed_domains_and_overview(self, client):
        seeded = client.post("/api/domains/seed", headers=basic_auth())
        assert len(seeded.get_json()["data"]) == 8

        overview = client.get("/api/insights/overview", headers=basic_auth())
        assert overview.status_code == 200
        assert overview.get_json()["data"]["total_routines"] == 0

    def test_routine_template_round(self, client):
        created = client.post(
            "/api/routines/templates",
            json={"name": "Stretch", "recurrence_config": {"type": "weekly", "daysOfWeek": [1]}},
            headers=basic_auth(),
        )
        assert created.status_code == 201
        assert created.get_json()["data"]["recurrence_rule"] == "FREQ=WEEKLY;BYDAY=MO"

        expanded = client.get(f"/api/routines/instances?date={DAY.isoformat()}", headers=basic_auth())
        assert expanded.status_code == 200


class TestCli:
    def test_create_user_and_seed(self, app):
        runner = app.test_cli_runner()

        created = runner.invoke(args=["lifeos-create-user", "--username", "grace", "--password", "pw"])
        assert created.exit_code == 0, created.output
        assert "Created user grace" in created.output

        seeded = runner.invoke(args=["lifeos-seed-domains", "--username", "grace"])
        assert "Seeded 8 domains" in seeded.output

        expanded = runner.invoke(args=["lifeos-expand", "--username", "grace", "--date", "2030-03-04", "--days", "3"])
        assert "Created 0 routine instances from 2030-03-04" in expanded.output

    def test_unknown_user(self, app):
        result = app.test_cli_runner().invoke(args=["lifeos-seed-domains", "--username", "nobody"])

        assert result.exit_code != 0
        assert "Unknown user" in result.output

    def test_sweep_everyone(self, app):
        result = app.test_cli_runner().invoke(args=["lifeos-sweep", "--today", "2030-03-05"])

        assert result.exit_code == 0
        assert "Marked 0 instances as missed (users checked: 1)" in result.output
