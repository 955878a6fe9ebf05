"""Tests for the bundled fallback dataset."""

from __future__ import annotations

import pytest

from airfacts.services.airportdb.data_processor import AirportDataProcessor
from airfacts.services.airportdb.fallback_dataset import (
    UNKNOWN_REGION,
    FallbackDataset,
    SeedRecord,
    load_seed,
    region_for_prefix,
    resolve_country,
    synthesize_record,
)


@pytest.fixture(scope="module")
def dataset() -> FallbackDataset:
    return FallbackDataset()


class TestSeed:
    def test_seed_loads(self, dataset):
        records = load_seed()
        assert len(records) == len(dataset) >= 30
        assert len({r.icao for r in records}) == len(records)

    def test_known_airport(self, dataset):
        raw = dataset.get("kjfk")
        assert raw is not None
        assert raw.identifier == "KJFK"
        assert raw.iata_code == "JFK"
        assert raw.origin == "fallback"
        assert raw.iso_country == "US"
        assert raw.iso_region == "US-NY"
        assert raw.runways == [] and raw.freqs == [] and raw.navaids == []

    def test_membership(self, dataset):
        assert "egll" in dataset
        assert "EGZZ" not in dataset

    def test_every_seed_record_processes(self, dataset):
        processor = AirportDataProcessor()
        for record in load_seed():
            airport = processor.process(dataset.get(record.icao))
            assert airport.icao == record.icao
            assert airport.data_quality.source == "fallback"


class TestSynthesis:
    def test_two_letter_prefix(self, dataset):
        raw = dataset.get("EGZZ")
        assert raw.name == "EGZZ Fallback Airport"
        assert raw.iso_country == "GB"
        assert raw.latitude_deg == 54.0
        assert raw.type == "small_airport"

    def test_one_letter_prefix(self):
        assert region_for_prefix("KXYZ").country == "United States"
        assert region_for_prefix("YXYZ").country == "Australia"

    def test_unknown_prefix(self):
        assert region_for_prefix("XXXX") == UNKNOWN_REGION
        record = synthesize_record("XXXX")
        assert record.latitude == 0.0 and record.longitude == 0.0

    def test_synthesis_is_deterministic(self):
        assert synthesize_record("LFQQ") == synthesize_record("LFQQ")

    def test_disabled(self):
        strict = FallbackDataset(synthesize=False)
        assert strict.get("EGZZ") is None
        assert strict.get("EGLL") is not None

    def test_blank_identifier(self, dataset):
        assert dataset.get("") is None


class TestCountries:
    def test_known(self):
        assert resolve_country("France") == ("FR", "EU", "France")

    def test_unknown(self):
        assert resolve_country("Atlantis") == ("AT", "UN", "Atlantis")
        assert resolve_country(None) == ("ZZ", "UN", "Unknown")


class TestBatchAndSearch:
    def test_batch_reports_unresolved(self):
        strict = FallbackDataset(synthesize=False)
        response = strict.get_batch(["KJFK", "QQQQ"])
        assert [a.identifier for a in response.airports] == ["KJFK"]
        assert [e.icao for e in response.errors] == ["QQQQ"]

    def test_search_by_city(self, dataset):
        icaos = [a.identifier for a in dataset.search("london")]
        assert icaos == ["EGLL", "EGKK"]

    def test_search_exact_icao_first(self, dataset):
        assert dataset.search("lfpo")[0].identifier == "LFPO"

    def test_search_limit(self, dataset):
        assert len(dataset.search("paris", limit=1)) == 1

    def test_search_miss(self, dataset):
        assert dataset.search("nowhere-at-all") == []
        assert dataset.search("   ") == []

    def test_custom_records(self):
        custom = FallbackDataset([SeedRecord(icao="LFXX", name="Custom Field", country="France")])
        assert len(custom) == 1
        assert custom.search("custom")[0].identifier == "LFXX"
