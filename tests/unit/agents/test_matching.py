"""Unit tests for bursary matching, scoring and references."""

from types import SimpleNamespace

import pytest

from app.agents.application.matching import (
    calculate_score,
    format_matches,
    format_matches_early,
    generate_reference,
    match_bursaries,
)


def applicant(**overrides):
    data = {
        "is_sa_citizen": True,
        "field_of_study": "STEM",
        "household_income": 200_000,
        "academic_average": 65,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestMatchBursaries:
    """Tests for match_bursaries."""

    def test_stem_strong_average(self):
        names = [m["name"] for m in match_bursaries(applicant(academic_average=75))]
        assert names == ["Siemens Bursary", "Bureau Veritas Bursary"]

    def test_stem_default_average(self):
        names = [m["name"] for m in match_bursaries(applicant(academic_average=None))]
        assert names == ["Siemens Bursary"]

    def test_commerce(self):
        names = [m["name"] for m in match_bursaries(applicant(field_of_study="Commerce"))]
        assert names == ["Momentum Bursary"]

    def test_health_needs_65(self):
        assert match_bursaries(applicant(field_of_study="Health Sciences", academic_average=64, household_income=700_000)) == []
        names = [m["name"] for m in match_bursaries(applicant(field_of_study="Health Sciences"))]
        assert names == ["Metropolitan Health Bursary"]

    def test_general_aid_only_when_nothing_else(self):
        """Test: Low income with no other match gets the general fund."""
        names = [m["name"] for m in match_bursaries(applicant(field_of_study="Humanities"))]
        assert names == ["General Financial Aid"]

    def test_no_general_aid_for_high_income(self):
        assert match_bursaries(applicant(field_of_study="Other", household_income=475_000)) == []

    def test_matches_are_copies(self):
        match = match_bursaries(applicant())[0]
        match["name"] = "changed"
        assert match_bursaries(applicant())[0]["name"] == "Siemens Bursary"


class TestCalculateScore:
    """Tests for calculate_score."""

    def test_maximum_is_capped(self):
        assert calculate_score(applicant(academic_average=80)) == 100

    def test_mid_average(self):
        # 50 + 10 citizen + 15 average + 15 income + 5 STEM
        assert calculate_score(applicant(academic_average=65)) == 95

    def test_low_profile(self):
        score = calculate_score(applicant(
            is_sa_citizen=False,
            field_of_study="Other",
            household_income=700_000,
            academic_average=50,
        ))
        assert score == 50


class TestReference:
    """Tests for generate_reference."""

    def test_format(self):
        assert generate_reference("Thabo Nkosi", now_ms=36) == "FME-TN-10"

    def test_base36_timestamp(self):
        assert generate_reference("Lerato Palesa Dlamini", now_ms=1_700_000_000_000) == "FME-LPD-LOYW3V28"

    def test_missing_name(self):
        assert generate_reference("", now_ms=0) == "FME-XX-0"

    def test_uses_current_time(self):
        ref = generate_reference("Thabo Nkosi")
        assert ref.startswith("FME-TN-")
        assert len(ref) > len("FME-TN-")


class TestFormatting:
    """Tests for match formatting."""

    def test_early_format_emojis(self):
        matches = match_bursaries(applicant(academic_average=75))
        text = format_matches_early(matches)

        assert "1. 🏆 *Siemens Bursary* (92% match)" in text
        assert "2. 🏆 *Bureau Veritas Bursary* (90% match)" in text
        assert "📅 Closes: 31 December 2025" in text

    def test_early_format_star(self):
        text = format_matches_early(match_bursaries(applicant(field_of_study="Commerce")))
        assert "⭐ *Momentum Bursary* (85% match)" in text

    @pytest.mark.parametrize("matches", [None, []])
    def test_empty(self, matches):
        assert format_matches_early(matches) == "• We're finding matches for you..."
        assert format_matches(matches) == "• No matches found"

    def test_compact_format(self):
        text = format_matches(match_bursaries(applicant(field_of_study="Humanities")))
        assert text == "1. General Financial Aid (70% match)"
