from datetime import datetime
import pytest

from clinicdesk.application.services.patients_service import (
    CREATED_PATIENT_NOTICE,
    EXISTING_PATIENT_NOTICE,
    PatientsService,
    balance_display,
    is_valid_email,
)
from clinicdesk.application.view_models import DirectoryFilters, PageState
from clinicdesk.exceptions import RecordNotFound, StoreError, ValidationError
from clinicdesk.infrastructure.persistence.memory.records_store_memory import InMemoryRecordsStore


class FakeStore(InMemoryRecordsStore):
    def __init__(self):
        super().__init__()
        self.finds = 0
        self.fail = False

    async def find(self, collection, filters=(), options=None):
        self.finds += 1
        if self.fail:
            raise StoreError("timeout")
        return await super().find(collection, filters, options)


async def seed_patients(store):
    rows = [
        ("P1", "Asha Rao", "asha@example.com", "9000000001", "active", "2024-01-01T09:00:00"),
        ("P2", "Ravi Kumar", "ravi@example.com", None, "inactive", "2024-02-01T09:00:00"),
        ("P3", "Meena Iyer", None, "9000000003", "active", "2024-03-01T09:00:00"),
    ]
    for pid, name, email, phone, status, created in rows:
        await store.insert("users", {
            "id": pid, "name": name, "email": email, "phone": phone,
            "status": status, "role": "patient", "created_at": created,
        })
    await store.insert("users", {"id": "D1", "name": "Dr. Asha Mehta", "role": "dentist", "status": "active"})


@pytest.mark.asyncio
@pytest.mark.parametrize("term", [None, "", " ", "a", " r "])
async def test_short_search_terms_do_not_query(term):
    store = FakeStore()
    svc = PatientsService(store=store)
    assert await svc.search(term) == []
    assert store.finds == 0


@pytest.mark.asyncio
async def test_search_matches_patients_only():
    store = FakeStore()
    await seed_patients(store)
    out = await PatientsService(store=store).search("ASHA")
    assert [p["id"] for p in out] == ["P1"]
    assert set(out[0]) == {"id", "name", "email", "phone", "role"}


@pytest.mark.asyncio
async def test_search_failure_returns_empty_list():
    store = FakeStore()
    store.fail = True
    assert await PatientsService(store=store).search("asha") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data, message",
    [
        ({"name": " ", "email": "x@example.com"}, "Name is required for new patient"),
        ({"name": "New Person"}, "Email or Phone is required"),
        ({"name": "New Person", "email": "not-an-email"}, "Please enter a valid email"),
    ],
)
async def test_register_validation(data, message):
    store = FakeStore()
    with pytest.raises(ValidationError) as exc:
        await PatientsService(store=store).register(data)
    assert exc.value.detail == message
    assert store.finds == 0


@pytest.mark.asyncio
async def test_register_selects_existing_by_email():
    store = FakeStore()
    await seed_patients(store)
    out = await PatientsService(store=store).register({"name": "Asha R", "email": "asha@example.com"})
    assert out["created"] is False
    assert out["patient"]["id"] == "P1"
    assert out["notice"] == EXISTING_PATIENT_NOTICE


@pytest.mark.asyncio
async def test_register_selects_existing_by_phone():
    store = FakeStore()
    await seed_patients(store)
    out = await PatientsService(store=store).register({"name": "Meena", "email": "new@example.com", "phone": "9000000003"})
    assert out["created"] is False
    assert out["patient"]["id"] == "P3"


@pytest.mark.asyncio
async def test_register_creates_active_patient():
    store = FakeStore()
    await seed_patients(store)
    out = await PatientsService(store=store).register({"name": "  Kiran  ", "phone": "9000000009", "email": ""})
    assert out["created"] is True
    assert out["notice"] == CREATED_PATIENT_NOTICE
    patient = out["patient"]
    assert patient["name"] == "Kiran"
    assert patient["role"] == "patient"
    assert patient["status"] == "active"
    assert "email" not in patient


@pytest.mark.asyncio
async def test_directory_search_spans_name_email_and_phone():
    store = FakeStore()
    await seed_patients(store)
    svc = PatientsService(store=store)

    by_email = await svc.list(DirectoryFilters(search="ravi@"), PageState(page_size=10))
    assert [p["id"] for p in by_email["items"]] == ["P2"]

    by_phone = await svc.list(DirectoryFilters(search="0003"), PageState(page_size=10))
    assert [p["id"] for p in by_phone["items"]] == ["P3"]


@pytest.mark.asyncio
async def test_directory_status_filter_and_order():
    store = FakeStore()
    await seed_patients(store)
    svc = PatientsService(store=store)

    everyone = await svc.list(DirectoryFilters(), PageState(page_size=2))
    assert [p["id"] for p in everyone["items"]] == ["P3", "P2"]
    assert everyone["total"] == 3
    assert everyone["total_pages"] == 2

    active = await svc.list(DirectoryFilters(status="active"), PageState(page_size=10))
    assert sorted(p["id"] for p in active["items"]) == ["P1", "P3"]


@pytest.mark.asyncio
async def test_toggle_status_flips():
    store = FakeStore()
    await seed_patients(store)
    svc = PatientsService(store=store)
    patient = await svc.get("P1")
    assert (await svc.toggle_status(patient))["status"] == "inactive"
    assert (await svc.toggle_status(await svc.get("P1")))["status"] == "active"


@pytest.mark.asyncio
async def test_get_ignores_non_patients():
    store = FakeStore()
    await seed_patients(store)
    assert await PatientsService(store=store).get("D1") is None


@pytest.mark.asyncio
async def test_update_profile():
    store = FakeStore()
    await seed_patients(store)
    svc = PatientsService(store=store)
    with pytest.raises(ValidationError):
        await svc.update_profile("P1", {"name": ""})
    out = await svc.update_profile("P1", {"name": "Asha Rao", "address": " 12 MG Road ", "status": "inactive"})
    assert out["address"] == "12 MG Road"
    assert out["status"] == "inactive"
    with pytest.raises(RecordNotFound):
        await svc.update_profile("missing", {"name": "X"})


@pytest.mark.asyncio
async def test_visit_stats():
    store = FakeStore()
    for appt_id, d, t, pid, balance in [
        ("A1", "2024-05-01", "09:00", "P1", 500),
        ("A2", "2024-06-01", "10:30", "P1", "250.5"),
        ("A3", "2024-06-02", "11:00", "P2", 0),
    ]:
        await store.insert("appointments", {
            "id": appt_id, "appointment_date": d, "appointment_time": t, "patient_id": pid, "balance": balance,
        })

    stats = await PatientsService(store=store).visit_stats(["P1", "P2", "P3"])

    assert stats["P1"]["count"] == 2
    assert stats["P1"]["last_at"] == datetime(2024, 6, 1, 10, 30)
    assert stats["P1"]["total_balance"] == 750.5
    assert stats["P1"]["balance_display"] == "₹750.50"
    assert stats["P2"]["balance_display"] == "Fully PAID"
    assert "P3" not in stats


@pytest.mark.asyncio
async def test_visit_stats_without_ids_skips_query():
    store = FakeStore()
    assert await PatientsService(store=store).visit_stats([]) == {}
    assert store.finds == 0


def test_balance_display():
    assert balance_display(None) == "-"
    assert balance_display(0) == "Fully PAID"
    assert balance_display(12.5, currency="$") == "$12.50"


def test_email_check():
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a b@c.de")
    assert not is_valid_email("missing-at.example.com")


@pytest.mark.asyncio
async def test_visit_stats_failure_renders_without_stats():
    store = FakeStore()
    store.fail = True
    assert await PatientsService(store=store).visit_stats(["P1"]) == {}
