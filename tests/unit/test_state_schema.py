"""
Tests for building DomainFacts from JSON facts.

Validates that:
1. camelCase and snake_case keys both parse
2. A missing required field is rejected as InvalidSubmission naming the field
3. A malformed date is rejected as InvalidSubmission, never a raw ValueError
4. The CLI loader turns unreadable JSON into InvalidSubmission
"""

import json
from datetime import date

import pytest

from agent.state_schema import DomainFacts, InvalidSubmission
from main import load_facts


def claim_data(**overrides):
    data = {
        "id": "claim-001",
        "claimNumber": "CLM-2024-0001",
        "type": "International Premium",
        "amount": 125,
        "submittedDate": "2024-03-12T09:30:00Z",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


class TestFromDict:
    def test_camel_case_facts(self):
        facts = DomainFacts.from_dict(
            {
                "claim": claim_data(),
                "trip": {"id": "trip-777", "date": "2024-03-10", "isInternational": True},
                "historicalData": {"similarClaims": 4, "approvalRate": 0.75},
            }
        )

        assert facts.claim.id == "claim-001"
        assert facts.claim.submitted_date == date(2024, 3, 12)
        assert facts.trip.is_international is True
        assert facts.crew is None
        assert facts.historical.similar_claims == 4

    def test_claim_section_is_optional_when_parsing(self):
        assert DomainFacts.from_dict({}).claim is None

    def test_missing_claim_id(self):
        with pytest.raises(InvalidSubmission, match=r"claim\.id is required"):
            DomainFacts.from_dict({"claim": claim_data(id=None)})

    def test_missing_submitted_date(self):
        with pytest.raises(InvalidSubmission, match=r"claim\.submitted_date is required"):
            DomainFacts.from_dict({"claim": claim_data(submittedDate=None)})

    @pytest.mark.parametrize("bad_date", ["12/03/2024", "yesterday", "2024-13-40"])
    def test_non_iso_submitted_date(self, bad_date):
        with pytest.raises(InvalidSubmission, match="submitted_date is not an ISO date"):
            DomainFacts.from_dict({"claim": claim_data(submittedDate=bad_date)})

    def test_non_iso_trip_date(self):
        with pytest.raises(InvalidSubmission, match="trip is malformed: date"):
            DomainFacts.from_dict({"claim": claim_data(), "trip": {"id": "trip-777", "date": "soon"}})

    def test_non_numeric_amount(self):
        with pytest.raises(InvalidSubmission, match="claim is malformed"):
            DomainFacts.from_dict({"claim": claim_data(amount="a lot")})

    @pytest.mark.parametrize("data", [[], "claim", {"claim": ["claim-001"]}])
    def test_non_object_input(self, data):
        with pytest.raises(InvalidSubmission, match="must be a JSON object"):
            DomainFacts.from_dict(data)


class TestLoadFacts:
    def test_loads_file(self, tmp_path):
        path = tmp_path / "claim.json"
        path.write_text(json.dumps({"claim": claim_data()}), encoding="utf-8")

        assert load_facts(path).claim.id == "claim-001"

    def test_missing_field_in_file(self, tmp_path):
        path = tmp_path / "claim.json"
        path.write_text(json.dumps({"claim": claim_data(submittedDate=None)}), encoding="utf-8")

        with pytest.raises(InvalidSubmission, match="submitted_date"):
            load_facts(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "claim.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidSubmission, match="not valid JSON"):
            load_facts(path)
