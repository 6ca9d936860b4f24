"""Tests for the /api/v1/sync endpoints."""

from __future__ import annotations

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import MAIN_WORKBOOK
from judstats.database import get_db
from judstats.main import app
from judstats.routers.sync import get_sync_service
from judstats.services.sync_service import SyncService

CONSOLIDATED = [
    ["Dependencia", "Periodo", "Cantidad de Ingresos"],
    ["JUZGADO X", "02/2024", 50],
    ["SALA II", "03/2024", 12],
]

DOCUMENT = [
    ["I. EXPEDIENTES EXISTENTES", 1500],
    ["II. EXPEDIENTES RECIBIDOS", 300],
]


@pytest.fixture
def client(session_factory, sheets_client, fake_service):
    fake_service.workbooks = {
        MAIN_WORKBOOK: {"Datos": CONSOLIDATED},
        "doc-1": {"Hoja 1": DOCUMENT},
    }

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    def override_get_sync_service(db: AsyncSession = Depends(get_db)) -> SyncService:
        return SyncService(sheets_client, db, MAIN_WORKBOOK)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_service] = override_get_sync_service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSyncEndpoints:
    """Envelope and status of every sync endpoint."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_run(self, client):
        response = client.post("/api/v1/sync/run", json={"sheet_names": ["Datos"]})
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["inserted"] == 2
        assert body["data"]["errors"] == []
        assert body["meta"] == {"state": "completed"}

    def test_run_without_body_discovers_sheets(self, client):
        body = client.post("/api/v1/sync/run").json()
        assert body["success"] is True
        assert body["data"]["processed"] == 2

    def test_run_failure_uses_envelope(self, client, fake_service):
        from conftest import make_http_error

        fake_service.fail_next(make_http_error(401))
        body = client.post("/api/v1/sync/run").json()

        assert body["success"] is False
        assert body["error"].startswith("Sync failed:")

    def test_run_api_error_uses_envelope(self, client, fake_service):
        """A missing workbook during discovery still answers with the envelope."""
        from conftest import make_http_error

        fake_service.fail_next(make_http_error(404))
        response = client.post("/api/v1/sync/run")
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is False
        assert body["error"].startswith("Sync failed:")

    def test_history(self, client):
        client.post("/api/v1/sync/run", json={"sheet_names": ["Datos"]})
        client.post("/api/v1/sync/run", json={"sheet_names": ["Nope"]})

        body = client.get("/api/v1/sync/history").json()

        assert body["success"] is True
        assert [log["status"] for log in body["data"]] == ["failed", "success"]
        assert body["data"][0]["error_count"] == 1
        assert body["data"][1]["inserted"] == 2

    def test_single_sheet_and_status(self, client):
        payload = {"source_id": "doc-1", "period": "202402", "dependency_name": "Sala III"}

        before = client.get("/api/v1/sync/sheet/doc-1/status").json()
        created = client.post("/api/v1/sync/sheet", json=payload).json()
        after = client.get("/api/v1/sync/sheet/doc-1/status").json()
        repeated = client.post("/api/v1/sync/sheet", json=payload).json()

        assert before["data"] == {"source_id": "doc-1", "synced": False}
        assert created["success"] is True
        assert created["data"]["inserted"] == 1
        assert after["data"]["synced"] is True
        assert repeated["success"] is False
        assert repeated["error"] == "This sheet is already synced"

    def test_single_sheet_rejects_malformed_period(self, client):
        payload = {"source_id": "doc-1", "period": "2024-02", "dependency_name": "Sala III"}
        assert client.post("/api/v1/sync/sheet", json=payload).status_code == 422

    def test_single_sheet_out_of_range_period(self, client):
        payload = {"source_id": "doc-1", "period": "202413", "dependency_name": "Sala III"}
        body = client.post("/api/v1/sync/sheet", json=payload).json()
        assert body["success"] is False
        assert "YYYYMM" in body["error"]

    def test_connection(self, client):
        body = client.get("/api/v1/sync/connection").json()
        assert body["data"] == {"connected": True, "workbook_id": MAIN_WORKBOOK}
