"""
Training Record Backend: Endpoint Tests
========================================

What:  End-to-end tests through the ASGI app: dispatch, envelope, CORS.
How:   HTTPX AsyncClient over ASGITransport against an app built on the
       in-memory test engine.

What we test:
    ✅ The last path segment selects the handler; query strings are ignored
    ✅ OPTIONS on any path → 200 "ok" with the CORS header set
    ✅ Unknown handler → 404 {"error": "Not Found"}
    ✅ Insert → fetch scenarios for menus and records
    ✅ Malformed bodies → 400, nothing written
    ✅ Store failures → 500 with the failing stage
"""

import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.exceptions import DatabaseError
from app.main import create_app
from app.models import Record, SetDetail
from app.routes.training_record import HANDLERS, resolve_route_name

from conftest import count_rows

PREFIX = "/functions/v1/training_record"

RECORD = {
    "partId": 1,
    "menuName": "Bench Press",
    "setCount": 3,
    "createDate": "2024-01-15",
    "note": "",
    "weight": [100, 110, 120],
    "reps": [10, 8, 6],
}


@asynccontextmanager
async def client_for(app, raise_app_exceptions=True):
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestRouteResolution:

    @pytest.mark.parametrize("path,expected", [
        ("/functions/v1/training_record/fetchPart", "fetchPart"),
        ("/fetchPart", "fetchPart"),
        ("/fetchPart/", "fetchPart"),
        ("/a//fetchMenu", "fetchMenu"),
        ("/", ""),
    ])
    def test_last_non_empty_segment(self, path, expected):
        assert resolve_route_name(path) == expected

    def test_handler_table(self):
        assert sorted(HANDLERS) == sorted([
            "fetchPart", "fetchMenu", "fetchRecords", "insertRecord",
            "insertMenu", "deleteRecord", "fetchOldPart", "fetchOldMenu",
            "fetchOldRecords",
        ])


class TestPreflightAndNotFound:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [f"{PREFIX}/insertRecord", "/anything/at/all"])
    async def test_options_answers_ok(self, test_client, path):
        response = await test_client.options(path)

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == (
            "authorization, x-client-info, apikey, content-type"
        )
        assert response.headers["access-control-allow-methods"] == "POST, GET, OPTIONS"
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.asyncio
    async def test_unknown_handler(self, test_client):
        response = await test_client.get(f"{PREFIX}/fetchEverything")

        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_handler_names_are_case_sensitive(self, test_client):
        response = await test_client.get(f"{PREFIX}/fetchpart")
        assert response.status_code == 404


class TestFetches:

    @pytest.mark.asyncio
    async def test_fetch_part(self, seeded, test_client):
        response = await test_client.get(f"{PREFIX}/fetchPart")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.json() == [
            {"partId": 1, "partName": "Chest", "partColor": "#e53935"},
            {"partId": 2, "partName": "Back", "partColor": "#1e88e5"},
            {"partId": 3, "partName": "Legs", "partColor": "#43a047"},
        ]

    @pytest.mark.asyncio
    async def test_query_string_ignored(self, seeded, test_client):
        response = await test_client.get(f"{PREFIX}/fetchMenu?partId=3&x=fetchPart")

        assert response.status_code == 200
        assert [m["menuName"] for m in response.json()] == ["Bench Press", "Squat"]

    @pytest.mark.asyncio
    async def test_method_does_not_matter(self, seeded, test_client):
        response = await test_client.post(f"{PREFIX}/fetchOldPart")

        assert response.status_code == 200
        assert response.json() == [{"partId": 1, "partName": "Arms", "partColor": "#fdd835"}]

    @pytest.mark.asyncio
    async def test_head_is_dispatched(self, seeded, test_client):
        response = await test_client.head(f"{PREFIX}/fetchPart")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_fetch_old_records(self, seeded, test_client):
        response = await test_client.get(f"{PREFIX}/fetchOldRecords")

        record = response.json()[0]
        assert record["recordId"] == 7
        assert record["menu"] == {"menuName": "Curl"}
        assert record["createDate"] == "2023-05-01"
        assert [s["setIndex"] for s in record["setDetails"]] == [1, 2]

    @pytest.mark.asyncio
    async def test_empty_table(self, test_client):
        response = await test_client.get(f"{PREFIX}/fetchRecords")
        assert response.status_code == 200
        assert response.json() == []


class TestWrites:

    @pytest.mark.asyncio
    async def test_insert_menu_then_fetch(self, seeded, test_client):
        response = await test_client.post(
            f"{PREFIX}/insertMenu",
            json={"partId": "2", "menuName": json.dumps("Bench Press")},
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Data inserted successfully"}

        menus = (await test_client.get(f"{PREFIX}/fetchMenu")).json()
        assert {"menuId": 3, "partId": 2, "menuName": "Bench Press"} in menus

    @pytest.mark.asyncio
    async def test_insert_record_legacy_body_then_fetch(self, seeded, test_client):
        response = await test_client.post(
            f"{PREFIX}/insertRecord", json={"record": json.dumps(RECORD)}
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Data inserted successfully"}

        records = (await test_client.get(f"{PREFIX}/fetchRecords")).json()
        assert len(records) == 1
        record = records[0]
        assert record["partId"] == 1
        assert record["menuId"] == 1
        assert record["part"] == {"partName": "Chest", "partColor": "#e53935"}
        assert record["menu"] == {"menuName": "Bench Press"}
        assert record["setDetails"] == [
            {"setIndex": 1, "weight": 100.0, "reps": 10},
            {"setIndex": 2, "weight": 110.0, "reps": 8},
            {"setIndex": 3, "weight": 120.0, "reps": 6},
        ]

    @pytest.mark.asyncio
    async def test_length_mismatch_writes_nothing(self, seeded, test_client, engine):
        body = dict(RECORD, reps=[10, 8])
        response = await test_client.post(f"{PREFIX}/insertRecord", json=body)

        assert response.status_code == 400
        assert "same length" in response.json()["error"]
        assert await count_rows(engine, Record) == 0
        assert await count_rows(engine, SetDetail) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("weight", [b"1e999", b"NaN", b"-Infinity"])
    async def test_non_finite_weight_writes_nothing(self, seeded, test_client, engine, weight):
        body = (
            b'{"partId": 1, "menuName": "Bench Press", "setCount": 1, '
            b'"createDate": "2024-01-15", "weight": [' + weight + b'], "reps": [5]}'
        )
        response = await test_client.post(
            f"{PREFIX}/insertRecord",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "finite" in response.json()["error"]
        assert await count_rows(engine, Record) == 0

        records = await test_client.get(f"{PREFIX}/fetchRecords")
        assert records.status_code == 200
        assert records.json() == []

    @pytest.mark.asyncio
    async def test_invalid_json(self, test_client):
        response = await test_client.post(
            f"{PREFIX}/insertMenu",
            content=b"{partId: 2",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"].startswith("Request body is not valid JSON")
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_empty_body(self, test_client):
        response = await test_client.post(f"{PREFIX}/deleteRecord")

        assert response.status_code == 400
        assert response.json()["error"] == "Request body is required"

    @pytest.mark.asyncio
    async def test_unknown_menu_rejected_by_policy(self, seeded, engine):
        config = Settings(
            database_url="sqlite+aiosqlite://",
            log_level="WARNING",
            unknown_menu_policy="reject",
        )
        async with client_for(create_app(config, engine=engine)) as client:
            response = await client.post(
                f"{PREFIX}/insertRecord", json=dict(RECORD, menuName="Deadlift")
            )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Unknown menu name 'Deadlift'"
        assert body["details"] == {"field": "menuName"}
        assert await count_rows(engine, Record) == 0

    @pytest.mark.asyncio
    async def test_delete_then_fetch(self, seeded, test_client, engine):
        await test_client.post(f"{PREFIX}/insertRecord", json=RECORD)
        await test_client.post(f"{PREFIX}/insertRecord", json=dict(RECORD, menuName="Squat"))

        response = await test_client.post(f"{PREFIX}/deleteRecord", json={"recordId": "1"})

        assert response.status_code == 200
        assert response.json() == {"message": "Record deleted successfully"}
        records = (await test_client.get(f"{PREFIX}/fetchRecords")).json()
        assert [r["recordId"] for r in records] == [2]
        assert await count_rows(engine, SetDetail, SetDetail.record_id == 1) == 0


class TestErrorsAndHeaders:

    @pytest.mark.asyncio
    async def test_store_failure_reports_stage(self, test_settings, engine):
        app = create_app(test_settings, engine=engine)
        failing = MagicMock()
        failing.list_parts = AsyncMock(
            side_effect=DatabaseError(
                'part_select: relation "part_master" does not exist',
                stage="part_select",
            )
        )
        app.state.reference_service = failing

        async with client_for(app) as client:
            response = await client.get(f"{PREFIX}/fetchPart")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == 'part_select: relation "part_master" does not exist'
        assert body["stage"] == "part_select"
        assert body["request_id"]
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_unexpected_error_gets_generic_envelope(
        self, test_settings, engine, monkeypatch
    ):
        async def broken(request, db):
            raise RuntimeError("serializer exploded")

        monkeypatch.setitem(HANDLERS, "fetchPart", broken)
        app = create_app(test_settings, engine=engine)

        async with client_for(app, raise_app_exceptions=False) as client:
            response = await client.get(f"{PREFIX}/fetchPart")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == (
            "An unexpected error occurred. Please try again or contact support."
        )
        assert "serializer exploded" not in response.text
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get(
            f"{PREFIX}/fetchPart", headers={"X-Request-ID": "trace-42"}
        )
        assert response.headers["x-request-id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get(f"{PREFIX}/fetchPart")
        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
