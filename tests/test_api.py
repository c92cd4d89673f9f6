import asyncio
import pytest
from fastapi.testclient import TestClient

from clinicdesk.application.services.scheduling_service import CONFLICT_MESSAGE, DUPLICATE_SLOT_ERROR
from clinicdesk.database import get_records_store
from clinicdesk.exceptions import StoreError
from clinicdesk.infrastructure.persistence.memory.records_store_memory import InMemoryRecordsStore
from clinicdesk.main import app


class UnreachableStore(InMemoryRecordsStore):
    async def find(self, collection, filters=(), options=None):
        raise StoreError("records store unreachable")


def client_for(store) -> TestClient:
    app.dependency_overrides[get_records_store] = lambda: store
    return TestClient(app)


@pytest.fixture
def store():
    store = InMemoryRecordsStore()
    asyncio.run(store.insert("users", {"id": "D1", "name": "Dr. Mehta", "role": "dentist"}))
    asyncio.run(store.insert("users", {"id": "P1", "name": "Asha Rao", "email": "asha@example.com", "role": "patient", "status": "active"}))
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return client_for(store)


def booking(**overrides):
    body = {
        "appointment_date": "2024-06-01",
        "appointment_time": "10:00",
        "dentist_id": "D1",
        "patient_id": "P1",
        "appointment_type": "",
        "notes": "Type: Root Canal, patient anxious",
    }
    body.update(overrides)
    return body


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"
    assert res.headers["X-Content-Type-Options"] == "nosniff"


def test_create_then_read_appointment(client):
    res = client.post("/appointments/", json=booking())
    assert res.status_code == 201
    created = res.json()
    assert created["appointment_type"] == "Root Canal"
    assert created["notes"] == "patient anxious"

    row = client.get(f"/appointments/{created['id']}").json()
    assert row["display_type"] == "Root Canal"
    assert row["patient_display"] == "Asha Rao"
    assert row["dentist_display"] == "Dr. Mehta"


def test_duplicate_slot_is_rejected(client):
    assert client.post("/appointments/", json=booking()).status_code == 201
    res = client.post("/appointments/", json=booking(notes=""))
    assert res.status_code == 409
    assert res.json() == {"success": False, "data": None, "error": DUPLICATE_SLOT_ERROR}


def test_validation_error_envelope(client):
    res = client.post("/appointments/", json=booking(dentist_id=""))
    assert res.status_code == 400
    assert res.json()["error"] == "Please select date, time, and dentist"


def test_conflict_check_echoes_sequence(client):
    created = client.post("/appointments/", json=booking()).json()
    slot = {"appointment_date": "2024-06-01", "appointment_time": "10:00", "dentist_id": "D1"}

    res = client.post("/appointments/conflicts", params={"seq": 7}, json=slot)
    assert res.json() == {"conflict": True, "message": CONFLICT_MESSAGE, "seq": 7}

    res = client.post("/appointments/conflicts", json={**slot, "id": created["id"]})
    assert res.json()["conflict"] is False

    res = client.post("/appointments/conflicts", json={"appointment_date": "2024-06-01", "dentist_id": "D1"})
    assert res.json() == {"conflict": False, "message": "", "seq": None}


def test_conflict_check_accepts_practitioner_id(client):
    client.post("/appointments/", json=booking())
    body = {"appointment_date": "2024-06-01", "appointment_time": "10:00", "practitioner_id": "D1"}

    res = client.post("/appointments/conflicts", json=body)
    assert res.json()["conflict"] is True
    assert res.json()["message"] == CONFLICT_MESSAGE

    res = client.post("/appointments/", json={**body, "patient_id": "P1"})
    assert res.status_code == 409


def test_reschedule_own_appointment(client):
    created = client.post("/appointments/", json=booking()).json()
    res = client.put(f"/appointments/{created['id']}", json=booking(appointment_time="11:30", notes=""))
    assert res.status_code == 200
    assert res.json()["appointment_time"] == "11:30"


def test_edit_form_and_listing(client):
    created = client.post("/appointments/", json=booking(appointment_type="checkup", notes="Type: crown")).json()
    client.post("/appointments/", json=booking(appointment_date="2024-06-02", notes=""))

    form = client.get(f"/appointments/{created['id']}/form").json()
    assert form["appointment_type"] == "checkup"
    assert form["notes"] == ""

    listing = client.get("/appointments/", params={"from_date": "2024-06-01", "to_date": "2024-06-07", "page_size": 1}).json()
    assert listing["total"] == 2
    assert listing["total_pages"] == 2
    assert listing["items"][0]["appointment_date"] == "2024-06-02"


def test_missing_appointment_is_404(client):
    res = client.get("/appointments/nope")
    assert res.status_code == 404
    assert res.json()["error"] == "Appointment not found"


def test_calendar_window(client):
    res = client.get("/appointments/window", params={"view": "week", "calendar_date": "2024-06-05"})
    assert res.json() == {"view": "week", "from_date": "2024-06-03", "to_date": "2024-06-09", "page": 1}

    res = client.get("/appointments/window", params={"view": "list", "calendar_date": "2024-06-05"})
    assert (res.json()["from_date"], res.json()["to_date"]) == ("2024-05-29", "2024-06-12")

    assert client.get("/appointments/window", params={"calendar_date": "05/06/2024"}).status_code == 400


def test_lookup_lists(client):
    assert client.get("/appointments/dentists").json() == [{"id": "D1", "name": "Dr. Mehta", "role": "dentist"}]
    types = client.get("/appointments/types").json()
    assert {"value": "root_canal", "label": "Root Canal"} in types


def test_store_outage_blocks_save_but_not_advisory_check(store):
    client = client_for(UnreachableStore())
    slot = {"appointment_date": "2024-06-01", "appointment_time": "10:00", "dentist_id": "D1"}

    res = client.post("/appointments/conflicts", json=slot)
    assert res.status_code == 200
    assert res.json()["conflict"] is False

    res = client.post("/appointments/", json=booking())
    assert res.status_code == 502
    assert res.json()["success"] is False


def test_patient_registration_flow(client):
    res = client.post("/patients/", json={"name": "Asha R", "email": "asha@example.com"})
    assert res.json()["created"] is False
    assert res.json()["notice"] == "Existing patient found and selected."

    res = client.post("/patients/", json={"name": "Kiran", "phone": "9000000009"})
    assert res.json()["created"] is True
    kiran_id = res.json()["patient"]["id"]

    assert [p["id"] for p in client.get("/patients/search", params={"q": "kir"}).json()] == [kiran_id]
    assert client.get("/patients/search", params={"q": "k"}).json() == []

    res = client.post("/patients/", json={"name": "No Contact"})
    assert res.status_code == 400
    assert res.json()["error"] == "Email or Phone is required"


def test_patient_directory_and_stats(client):
    client.post("/appointments/", json=booking())

    directory = client.get("/patients/", params={"search": "asha"}).json()
    assert [p["id"] for p in directory["items"]] == ["P1"]

    stats = client.get("/patients/stats", params={"ids": ["P1"]}).json()
    assert stats["P1"]["count"] == 1
    assert stats["P1"]["last_at"] == "2024-06-01T10:00:00"
    assert stats["P1"]["balance_display"] == "Fully PAID"

    assert client.post("/patients/P1/toggle-status").json()["status"] == "inactive"
    assert client.post("/patients/missing/toggle-status").status_code == 404


def test_appointment_type_catalog(client):
    res = client.post("/appointment-types/", json={"name": "Whitening", "duration_minutes": 45}, headers={"X-User-Id": "D1"})
    assert res.status_code == 201
    created = res.json()
    assert created["created_by"] == "D1"

    res = client.post("/appointment-types/", json={"name": "Scaling", "duration_minutes": 0})
    assert res.status_code == 400
    assert res.json()["error"] == "Duration must be greater than 0"

    assert client.post(f"/appointment-types/{created['id']}/toggle").json()["is_active"] is False
    assert client.post("/appointment-types/missing/toggle").status_code == 404

    listing = client.get("/appointment-types/", params={"status": "inactive"}).json()
    assert [t["name"] for t in listing["items"]] == ["Whitening"]
