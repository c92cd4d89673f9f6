import pytest

from clinicdesk.application.services.appointment_types_service import (
    DEFAULT_COLOR,
    DEFAULT_DURATION_MINUTES,
    AppointmentTypesService,
)
from clinicdesk.application.view_models import DirectoryFilters, PageState
from clinicdesk.exceptions import RecordNotFound, ValidationError
from clinicdesk.infrastructure.persistence.memory.records_store_memory import InMemoryRecordsStore


@pytest.fixture
def service():
    return AppointmentTypesService(store=InMemoryRecordsStore())


@pytest.mark.asyncio
async def test_create_applies_defaults_and_creator(service):
    created = await service.save({"name": " Whitening "}, acting_user_id="U9")
    assert created["name"] == "Whitening"
    assert created["duration_minutes"] == DEFAULT_DURATION_MINUTES
    assert created["color"] == DEFAULT_COLOR
    assert created["is_active"] is True
    assert created["created_by"] == "U9"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data, message",
    [
        ({"name": ""}, "Name is required"),
        ({"name": "Scaling", "duration_minutes": 0}, "Duration must be greater than 0"),
        ({"name": "Scaling", "duration_minutes": None}, "Duration must be greater than 0"),
    ],
)
async def test_save_validation(service, data, message):
    with pytest.raises(ValidationError) as exc:
        await service.save(data)
    assert exc.value.detail == message


@pytest.mark.asyncio
async def test_update_existing_type(service):
    created = await service.save({"name": "Scaling", "duration_minutes": 30})
    updated = await service.save({"name": "Deep Scaling", "duration_minutes": 45, "color": "#000000"}, type_id=created["id"])
    assert updated["id"] == created["id"]
    assert updated["duration_minutes"] == 45
    assert updated["color"] == "#000000"


@pytest.mark.asyncio
async def test_toggle_active(service):
    created = await service.save({"name": "Scaling"})
    assert (await service.toggle_active(created["id"]))["is_active"] is False
    assert (await service.toggle_active(created["id"]))["is_active"] is True


@pytest.mark.asyncio
async def test_toggle_missing_type(service):
    with pytest.raises(RecordNotFound):
        await service.toggle_active("nope")


@pytest.mark.asyncio
async def test_list_filters_and_sorts_by_name(service):
    await service.save({"name": "Scaling", "description": "gum care"})
    await service.save({"name": "Braces", "description": "orthodontic"})
    implant = await service.save({"name": "Implant", "description": "surgical"})
    await service.toggle_active(implant["id"])

    everything = await service.list(DirectoryFilters(), PageState(page_size=10))
    assert [t["name"] for t in everything["items"]] == ["Braces", "Implant", "Scaling"]

    active = await service.list(DirectoryFilters(status="active"), PageState(page_size=10))
    assert [t["name"] for t in active["items"]] == ["Braces", "Scaling"]

    inactive = await service.list(DirectoryFilters(status="inactive"), PageState(page_size=10))
    assert [t["name"] for t in inactive["items"]] == ["Implant"]

    by_description = await service.list(DirectoryFilters(search="GUM"), PageState(page_size=10))
    assert [t["name"] for t in by_description["items"]] == ["Scaling"]
