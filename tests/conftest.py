"""
Shared fixtures: a store over a throw-away JSON file and an HTTP client
bound to the FastAPI app with that store injected.
"""

import os

# Keep test runs from writing a log file into the working tree
os.environ.setdefault("LOG_FILE", "")

import pytest
from httpx import AsyncClient, ASGITransport

from iot_hierarchy.domain.interfaces import StorageError
from iot_hierarchy.domain.models import Kind, SensorType
from iot_hierarchy.services.store import HierarchyStore
from iot_hierarchy.storage.json_repo import JsonFileRepository


class FlakyRepository(JsonFileRepository):
    """JSON repository whose saves can be made to fail on demand."""

    def __init__(self, path):
        super().__init__(path)
        self.fail_saves = False
        self.saves = 0

    async def save(self, document):
        if self.fail_saves:
            raise StorageError("disk full")
        self.saves += 1
        await super().save(document)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "data" / "database.json"


@pytest.fixture
def repo(db_path):
    return FlakyRepository(str(db_path))


@pytest.fixture
async def store(repo):
    s = HierarchyStore(repo)
    await s.open()
    return s


@pytest.fixture
async def tree(store):
    """Acme -> Barcelona -> Pier -> board -> temperature sensor."""
    org = (await store.create(Kind.ORGANIZATION, {"name": "Acme"})).entity
    site = (await store.create(
        Kind.SITE, {"name": "Barcelona", "organization_id": org.id, "location": "X"}
    )).entity
    mp = (await store.create(
        Kind.MEASURING_POINT,
        {"name": "Pier", "site_id": site.id, "latitude": 41.38, "longitude": 2.17},
    )).entity
    board = (await store.create(
        Kind.BOARD,
        {
            "name": "Main board",
            "measuring_point_id": mp.id,
            "serial_number": "SN-001",
            "firmware_version": "1.0.0",
        },
    )).entity
    sensor = (await store.create(
        Kind.SENSOR,
        {
            "name": "Water temp",
            "board_id": board.id,
            "type": SensorType.TEMPERATURE,
            "unit": "°C",
            "min_value": -10,
            "max_value": 50,
        },
    )).entity
    return {"org": org, "site": site, "mp": mp, "board": board, "sensor": sensor}


@pytest.fixture
async def client(store):
    from iot_hierarchy.main import app
    import iot_hierarchy.api.routes as routes_module

    previous = app.dependency_overrides.get(routes_module.get_store)
    app.dependency_overrides[routes_module.get_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides[routes_module.get_store] = previous
