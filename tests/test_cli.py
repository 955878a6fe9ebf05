"""Tests for the command-line entry point."""

from __future__ import annotations

import httpx
import pytest

from airfacts.cli import build_parser, execute, run
from airfacts.persistence.repositories.airport_cache_repo import AirportCacheRepository
from airfacts.services.airport_cache import AirportCacheService
from airfacts.services.airport_service import AirportService
from airfacts.services.airportdb.client import AirportDBClient
from tests.persistence.fake_firestore import FakeFirestoreClient
from tests.services.airportdb.samples import gatwick


@pytest.fixture
def service() -> AirportService:
    def upstream(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/airport/EGKK"):
            return httpx.Response(200, json=gatwick())
        if request.url.path.endswith("/airport/search"):
            return httpx.Response(200, json={"airports": [gatwick()]})
        return httpx.Response(404)

    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    client = AirportDBClient("test-key", http)
    return AirportService(client, AirportCacheService(AirportCacheRepository(FakeFirestoreClient())))


class TestParser:
    def test_lookup(self):
        args = build_parser().parse_args(["lookup", "EGKK", "--refresh"])
        assert args.command == "lookup"
        assert args.icao == "EGKK"
        assert args.refresh is True

    def test_search_defaults(self):
        args = build_parser().parse_args(["search", "gatwick"])
        assert args.limit == 10
        assert args.type == "all"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRun:
    async def test_lookup(self, service):
        output = await run(build_parser().parse_args(["lookup", "EGKK"]), service)
        assert output["source"] == "api"
        assert output["data"]["icao"] == "EGKK"

    async def test_search_then_stats(self, service):
        results = await run(build_parser().parse_args(["search", "gatwick", "--limit", "3"]), service)
        stats = await run(build_parser().parse_args(["stats"]), service)

        assert [r["icao"] for r in results] == ["EGKK"]
        assert stats["cache"]["total_airports"] == 1
        assert stats["rate_limit"] is None

    async def test_cleanup(self, service):
        output = await run(build_parser().parse_args(["cleanup"]), service)
        assert output == {"removed": 0}


class TestExecute:
    async def test_prints_json(self, service, capsys):
        status = await execute(build_parser().parse_args(["lookup", "EGKK"]), service)

        assert status == 0
        assert '"icao": "EGKK"' in capsys.readouterr().out

    async def test_invalid_refresh_reported_cleanly(self, service, capsys):
        status = await execute(build_parser().parse_args(["lookup", "12", "--refresh"]), service)

        captured = capsys.readouterr()
        assert status == 2
        assert captured.out == ""
        assert captured.err.startswith("error: ")
        assert "Traceback" not in captured.err

    async def test_empty_search_reported_cleanly(self, service, capsys):
        status = await execute(build_parser().parse_args(["search", " "]), service)

        assert status == 2
        assert "error: " in capsys.readouterr().err
