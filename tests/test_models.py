import pytest
from pydantic import ValidationError

from models.base import normalize_id, normalize_risk_level, try_normalize_id, UNKNOWN_RISK
from models.model import (
    HazardRecord,
    FilterState,
    RenderFeature,
    Selection,
    SelectionKind,
    LakeReportUpload,
    FeatureClickRequest,
    OfficialProfile,
)


class TestNormalizeId:
    def test_numeric_and_string_ids_agree(self):
        assert normalize_id(42) == normalize_id("42") == normalize_id(42.0) == 42

    def test_whitespace_and_float_strings(self):
        assert normalize_id(" 7 ") == 7
        assert normalize_id("7.0") == 7

    @pytest.mark.parametrize("value", [None, True, "abc", 1.5, "1.5", ""])
    def test_rejects_non_integral(self, value):
        with pytest.raises(ValueError):
            normalize_id(value)

    def test_try_normalize_returns_none(self):
        assert try_normalize_id("lake") is None
        assert try_normalize_id("12") == 12


class TestRiskLevel:
    def test_canonical_uppercase(self):
        assert normalize_risk_level("high") == "HIGH"
        assert normalize_risk_level(" Medium ") == "MEDIUM"

    def test_unknown_values_are_kept(self):
        assert normalize_risk_level("severe") == "SEVERE"
        assert normalize_risk_level(None) == UNKNOWN_RISK
        assert normalize_risk_level("") == UNKNOWN_RISK


class TestHazardRecord:
    def test_parses_wire_row(self, rows):
        record = HazardRecord.model_validate(rows[0])

        assert record.id == 1
        assert record.lake_name == "Imja Tsho"
        assert record.risk_level == "HIGH"
        assert record.lake_area_km2 == 1.28
        assert record.observation_year == 2023
        assert record.uploaded_by.name == "Pema Sherpa"
        assert record.is_known_risk

    def test_string_id_and_lowercase_risk(self, rows):
        record = HazardRecord.model_validate(rows[1])

        assert record.id == 2
        assert record.risk_level == "LOW"

    def test_missing_fields_get_defaults(self):
        record = HazardRecord.model_validate({"id": 5, "latitude": None, "observationDate": ""})

        assert record.latitude == 0.0
        assert record.observation_date is None
        assert record.risk_level == UNKNOWN_RISK
        assert record.uploaded_by == OfficialProfile()
        assert not record.has_position

    def test_records_are_immutable(self, records):
        with pytest.raises(ValidationError):
            records[0].lake_name = "Renamed"

    def test_stub_carries_only_feature_properties(self):
        stub = HazardRecord.stub(42, risk_level="high", confidence=55.0)

        assert stub.id == 42
        assert stub.risk_level == "HIGH"
        assert stub.confidence == 55.0
        assert stub.lake_name == ""
        assert stub.verification_status == ""
        assert not stub.has_position

    def test_to_wire_uses_service_names(self, records):
        wire = records[0].to_wire()

        assert wire["lakeName"] == "Imja Tsho"
        assert wire["riskLevel"] == "HIGH"
        assert "Lake_Area_km2" in wire


class TestFilterState:
    def test_default_shows_every_known_level(self):
        state = FilterState()

        assert state.risk_levels == frozenset({"HIGH", "MEDIUM", "LOW"})
        assert state.search_query == ""
        assert state.year_range is None

    def test_rejects_reversed_year_range(self):
        with pytest.raises(ValidationError):
            FilterState(year_range=(2024, 2018))

    def test_updated_returns_new_state(self):
        state = FilterState(risk_levels=["HIGH"])
        updated = state.updated(search_query="tsho")

        assert updated is not state
        assert updated.risk_levels == frozenset({"HIGH"})
        assert updated.search_query == "tsho"
        assert state.search_query == ""

    def test_comma_separated_levels(self):
        assert FilterState(risk_levels="HIGH, low").risk_levels == frozenset({"HIGH", "low"})


class TestRenderFeature:
    def test_geojson_uses_lon_lat_order(self, records):
        feature = RenderFeature.from_record(records[0]).to_geojson()

        assert feature["geometry"]["coordinates"] == [86.925, 27.898]
        assert feature["properties"] == {
            "id": 1,
            "riskLevel": "HIGH",
            "name": "Imja Tsho",
            "confidence": 87.5,
        }


class TestSelection:
    def test_empty_selection(self):
        selection = Selection()

        assert selection.kind == SelectionKind.NONE
        assert selection.record_id is None

    def test_record_required_for_active_kind(self):
        with pytest.raises(ValidationError):
            Selection(kind=SelectionKind.STUB)

    def test_none_kind_cannot_carry_record(self, records):
        with pytest.raises(ValidationError):
            Selection(kind=SelectionKind.NONE, record=records[0])


class TestRequests:
    def test_upload_accepts_aliases_and_defaults_region(self):
        upload = LakeReportUpload(lakeName=" Dig Tsho ", latitude=27.87, longitude=86.58, region="")

        assert upload.lake_name == "Dig Tsho"
        assert upload.region == "Unknown"
        assert upload.model_dump(by_alias=True)["lakeName"] == "Dig Tsho"

    def test_upload_rejects_bad_latitude(self):
        with pytest.raises(ValidationError):
            LakeReportUpload(lakeName="Dig Tsho", latitude=95.0, longitude=86.58)

    def test_feature_click_requires_id(self):
        with pytest.raises(ValidationError):
            FeatureClickRequest(properties={"riskLevel": "HIGH"})
