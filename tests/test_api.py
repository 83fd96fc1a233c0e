import pytest
from fastapi.testclient import TestClient

from agenda import api_main
from agenda.api_main import DB_ERROR_DETAIL, create_app
from agenda.config import Settings
from agenda.errors import MigrationError
from agenda.models import Appointment
from agenda.services import AppointmentStore


@pytest.fixture
def client(bare_store: AppointmentStore):
    with TestClient(create_app(bare_store)) as c:
        yield c


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"ok": True}


def test_create_then_list_in_range(client: TestClient) -> None:
    r = client.post(
        "/api/appointments",
        json={"client_name": "John Doe", "date_time": "2026-01-14T10:30:00", "description": "Meeting with client"},
    )
    assert r.status_code == 201
    appointment_id = r.json()["id"]

    client.post(
        "/api/appointments",
        json={"client_name": "Jane Smith", "date_time": "2026-02-14T10:30:00", "description": "Lunch", "confirmed": True},
    )

    r = client.get("/api/appointments", params={"start": "2026-01-14T10:30:00", "end": "2026-01-31T00:00:00"})
    assert r.status_code == 200
    [appt] = r.json()
    assert appt["id"] == appointment_id
    assert appt["client_name"] == "John Doe"
    assert appt["confirmed"] is False
    assert appt["date_time"].startswith("2026-01-14T10:30:00")

    assert len(client.get("/api/appointments").json()) == 2


def test_list_requires_both_range_ends(client: TestClient) -> None:
    r = client.get("/api/appointments", params={"start": "2026-01-14T10:30:00"})

    assert r.status_code == 400


def test_create_rejects_missing_fields(client: TestClient) -> None:
    r = client.post("/api/appointments", json={"client_name": "John Doe"})

    assert r.status_code == 422


def test_store_errors_return_500_without_driver_details(client: TestClient, bare_store: AppointmentStore) -> None:
    Appointment.__table__.drop(bare_store.engine)

    r = client.post(
        "/api/appointments",
        json={"client_name": "John Doe", "date_time": "2026-01-14T10:30:00", "description": "Meeting with client"},
    )
    assert r.status_code == 500
    assert r.json() == {"detail": DB_ERROR_DETAIL}

    r = client.get("/api/appointments")
    assert r.status_code == 500
    assert r.json() == {"detail": DB_ERROR_DETAIL}

    r = client.get("/api/appointments", params={"start": "2026-01-01T00:00:00", "end": "2026-02-01T00:00:00"})
    assert r.status_code == 500
    assert r.json() == {"detail": DB_ERROR_DETAIL}


def test_owned_store_is_closed_when_startup_migration_fails(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    closed = []

    def failing_migrate(self: AppointmentStore) -> int:
        raise MigrationError("migrazione dello schema fallita")

    original_close = AppointmentStore.close

    def tracking_close(self: AppointmentStore) -> None:
        closed.append(self)
        original_close(self)

    monkeypatch.setattr(api_main, "load_settings", lambda: Settings(database_url="sqlite://", seed_file=tmp_path / "seed.json"))
    monkeypatch.setattr(AppointmentStore, "migrate", failing_migrate)
    monkeypatch.setattr(AppointmentStore, "close", tracking_close)

    app = create_app()
    with pytest.raises(MigrationError):
        with TestClient(app):
            pass

    assert len(closed) == 1
    assert app.state.store is None
