"""Tests for frequency grouping and communication scoring."""

from __future__ import annotations

import pytest

from airfacts.contracts.airportdb import RawFrequency
from airfacts.services.airportdb.frequency_organizer import (
    analyze_frequencies,
    complexity_rating,
    format_frequency,
    is_valid_aviation_frequency,
    normalize_frequency_type,
    organize_frequencies,
)
from tests.services.airportdb.samples import gatwick


def _freqs(*rows: tuple[str, str]) -> list[RawFrequency]:
    return [RawFrequency(type=t, description=t, frequency_mhz=f) for t, f in rows]


class TestTypeNormalization:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("twr", "TWR"),
            ("Tower", "TWR"),
            ("GROUND CONTROL", "GND"),
            ("London Approach", "APP"),
            ("D-ATIS", "ATIS"),
            ("Clearance Delivery", "CLD"),
            ("CLNC DEL", "CLD"),
            ("UNICOM", "UNICOM"),
        ],
    )
    def test_normalize(self, value, expected):
        assert normalize_frequency_type(value) == expected


class TestOrganize:
    def test_gatwick(self):
        comms = organize_frequencies([RawFrequency.model_validate(f) for f in gatwick()["freqs"]])

        assert comms.has_tower and comms.has_ground and comms.has_approach
        assert comms.has_atis and comms.has_clearance
        assert len(comms.frequencies_by_type["TWR"]) == 2
        assert comms.primary_frequencies.tower == pytest.approx(124.225)
        assert comms.primary_frequencies.clearance == pytest.approx(121.955)
        assert comms.complexity_score == 80

    def test_primary_is_first_in_provider_order(self):
        comms = organize_frequencies(_freqs(("TWR", "119.1"), ("TWR", "118.7")))
        assert comms.primary_frequencies.tower == pytest.approx(119.1)

    def test_unparsable_frequencies_dropped(self):
        comms = organize_frequencies(_freqs(("TWR", ""), ("GND", "0"), ("ATIS", "127.4")))
        assert list(comms.frequencies_by_type) == ["ATIS"]
        assert not comms.has_tower

    def test_empty(self):
        comms = organize_frequencies(None)
        assert comms.frequencies_by_type == {}
        assert comms.complexity_score == 0
        assert comms.primary_frequencies.tower is None

    def test_uncontrolled_field_keeps_baseline(self):
        comms = organize_frequencies(_freqs(("CTAF", "122.8")))
        assert comms.complexity_score == 10
        assert comms.frequencies_by_type["CTAF"][0].frequency_mhz == pytest.approx(122.8)


class TestAnalysis:
    def test_full_service(self):
        comms = organize_frequencies(_freqs(("TWR", "118.3"), ("GND", "121.9"), ("ATIS", "128.0")))
        analysis = analyze_frequencies(comms)
        assert analysis.total_frequencies == 3
        assert analysis.controlled_airport
        assert analysis.full_service
        assert not analysis.approach_controlled
        assert analysis.unusual == []

    def test_out_of_band_frequency_reported(self):
        comms = organize_frequencies(_freqs(("TWR", "250.0")))
        analysis = analyze_frequencies(comms)
        assert [r.frequency_mhz for r in analysis.unusual] == [250.0]

    def test_band_and_formatting(self):
        assert is_valid_aviation_frequency(118.0)
        assert not is_valid_aviation_frequency(243.0)
        assert format_frequency(124.2) == "124.200"

    @pytest.mark.parametrize("score, rating", [(85, "Very High"), (60, "High"), (45, "Medium"), (20, "Low"), (0, "Very Low")])
    def test_rating(self, score, rating):
        assert complexity_rating(score) == rating
