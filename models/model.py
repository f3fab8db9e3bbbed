from pydantic import BaseModel, field_validator, model_validator, Field, ConfigDict
from typing import List, Optional, Dict, Any, FrozenSet, Tuple
from datetime import datetime
from enum import Enum

# Import shared base models
from .base import RiskLevel, UNKNOWN_RISK, normalize_id, normalize_risk_level


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class OfficialProfile(BaseModel):
    """Staff member who uploads or reviews lake reports"""
    id: int = 0
    name: str = ""
    email: str = ""
    position: str = ""
    department: str = ""
    photo: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator('id', mode='before')
    @classmethod
    def parse_id(cls, v):
        if v is None or v == "":
            return 0
        return normalize_id(v)

    @field_validator('name', 'email', 'position', 'department', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class HazardRecord(BaseModel):
    """
    One glacier lake with its position, classification and provenance.

    Immutable once fetched; a refresh replaces records wholesale. Field
    aliases follow the lake-report service's wire names.
    """
    id: int
    lake_name: str = Field("", alias="lakeName")
    latitude: float = 0.0
    longitude: float = 0.0
    region: str = ""
    risk_level: str = Field(UNKNOWN_RISK, alias="riskLevel")

    lake_area_km2: float = Field(0.0, alias="Lake_Area_km2")
    dam_slope_deg: float = Field(0.0, alias="Dam_Slope_deg")
    lake_temp_c: float = Field(0.0, alias="Lake_Temp_C")
    elevation_m: float = Field(0.0, alias="Elevation_m")

    observation_date: Optional[datetime] = Field(None, alias="observationDate")
    confidence: float = 0.0
    assessed_at: Optional[datetime] = Field(None, alias="assessedAt")

    verification_status: str = Field("", alias="verificationStatus")
    verified_by_id: Optional[int] = Field(None, alias="verifiedById")
    verified_at: Optional[datetime] = Field(None, alias="verifiedAt")
    decline_by_id: Optional[int] = Field(None, alias="declineById")
    declined_at: Optional[datetime] = Field(None, alias="declinedAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    uploaded_by: OfficialProfile = Field(default_factory=OfficialProfile, alias="uploadedBy")
    verified_by: Optional[OfficialProfile] = Field(None, alias="verifiedBy")

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": 1,
                "lakeName": "Imja Tsho",
                "latitude": 27.898,
                "longitude": 86.925,
                "region": "Khumbu",
                "riskLevel": "HIGH",
                "Lake_Area_km2": 1.28,
                "Dam_Slope_deg": 14.2,
                "Lake_Temp_C": 2.1,
                "Elevation_m": 5010,
                "observationDate": "2024-05-01T00:00:00Z",
                "confidence": 87.5,
                "verificationStatus": "PENDING"
            }
        }
    )

    @field_validator('id', 'verified_by_id', 'decline_by_id', mode='before')
    @classmethod
    def parse_ids(cls, v, info):
        if v is None or (info.field_name != 'id' and v == ""):
            return None
        return normalize_id(v)

    @field_validator('risk_level', mode='before')
    @classmethod
    def canonical_risk(cls, v):
        return normalize_risk_level(v)

    @field_validator('verification_status', mode='before')
    @classmethod
    def canonical_status(cls, v):
        if v is None:
            return ""
        return str(v).strip().upper()

    @field_validator(
        'observation_date', 'assessed_at', 'verified_at', 'declined_at', 'created_at',
        mode='before'
    )
    @classmethod
    def blank_timestamps(cls, v):
        return _blank_to_none(v)

    @field_validator(
        'latitude', 'longitude', 'lake_area_km2', 'dam_slope_deg',
        'lake_temp_c', 'elevation_m', 'confidence',
        mode='before'
    )
    @classmethod
    def missing_numbers(cls, v):
        return 0.0 if _blank_to_none(v) is None else v

    @field_validator('lake_name', 'region', mode='before')
    @classmethod
    def missing_text(cls, v):
        return "" if v is None else v

    @field_validator('uploaded_by', mode='before')
    @classmethod
    def missing_uploader(cls, v):
        return OfficialProfile() if v is None else v

    @classmethod
    def stub(
        cls,
        record_id: Any,
        risk_level: Optional[str] = None,
        confidence: Optional[float] = None
    ) -> "HazardRecord":
        """Placeholder for a clicked feature whose full record is not loaded yet"""
        return cls(
            id=record_id,
            risk_level=risk_level if risk_level else UNKNOWN_RISK,
            confidence=confidence or 0.0,
        )

    @property
    def is_known_risk(self) -> bool:
        return self.risk_level in RiskLevel.__members__

    @property
    def observation_year(self) -> Optional[int]:
        return self.observation_date.year if self.observation_date else None

    @property
    def has_position(self) -> bool:
        return not (self.latitude == 0.0 and self.longitude == 0.0)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using the lake-report service field names"""
        return self.model_dump(by_alias=True, mode="json")


_DEFAULT_RISK_LEVELS = frozenset(level.value for level in RiskLevel)


class FilterState(BaseModel):
    """
    Operator filter selection, owned by the sidebar / API client.

    risk_levels may use any case; the predicate normalizes both sides.
    """
    risk_levels: FrozenSet[str] = Field(default=_DEFAULT_RISK_LEVELS)
    search_query: str = ""
    year_range: Optional[Tuple[int, int]] = None

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "risk_levels": ["HIGH", "MEDIUM"],
                "search_query": "tsho",
                "year_range": [2018, 2024]
            }
        }
    )

    @field_validator('risk_levels', mode='before')
    @classmethod
    def parse_levels(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.split(',')
        return frozenset(str(level).strip() for level in v if str(level).strip())

    @field_validator('search_query', mode='before')
    @classmethod
    def none_query(cls, v):
        return "" if v is None else v

    @field_validator('year_range')
    @classmethod
    def ordered_range(cls, v):
        if v is not None and v[0] > v[1]:
            raise ValueError("year_range start must not be after end")
        return v

    def updated(self, **changes) -> "FilterState":
        """Return a new validated state with the given fields replaced"""
        return FilterState(**{**self.model_dump(), **changes})


class RenderFeature(BaseModel):
    """Narrow projection of a HazardRecord used for map-layer payloads"""
    id: int
    risk_level: str
    name: str
    confidence: float
    longitude: float
    latitude: float

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, record: HazardRecord) -> "RenderFeature":
        return cls(
            id=record.id,
            risk_level=record.risk_level,
            name=record.lake_name,
            confidence=record.confidence,
            longitude=record.longitude,
            latitude=record.latitude,
        )

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {
                "id": self.id,
                "riskLevel": self.risk_level,
                "name": self.name,
                "confidence": self.confidence,
            },
            "geometry": {
                "type": "Point",
                "coordinates": [self.longitude, self.latitude],
            },
        }


class LayerStatus(str, Enum):
    """What the map overlay should tell the operator"""
    LOADING = "loading"
    NO_MATCHES = "no_matches"
    READY = "ready"


class SelectionKind(str, Enum):
    NONE = "none"
    STUB = "stub"
    RESOLVED = "resolved"


class Selection(BaseModel):
    """The single active selection; version identifies the click that made it"""
    kind: SelectionKind = SelectionKind.NONE
    record: Optional[HazardRecord] = None
    version: int = 0

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def record_matches_kind(self):
        if (self.kind == SelectionKind.NONE) != (self.record is None):
            raise ValueError("record must be set exactly when a selection is active")
        return self

    @property
    def record_id(self) -> Optional[int]:
        return self.record.id if self.record else None


# --- Upload / geocoding models ---

class LakeReportUpload(BaseModel):
    """Payload for submitting a new lake report"""
    lake_name: str = Field(..., min_length=1, max_length=300, alias="lakeName")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    region: str = "Unknown"
    lake_area_km2: float = Field(0.0, ge=0.0, alias="Lake_Area_km2")
    dam_slope_deg: float = Field(0.0, ge=0.0, le=90.0, alias="Dam_Slope_deg")
    lake_temp_c: float = Field(0.0, alias="Lake_Temp_C")
    elevation_m: float = Field(0.0, ge=-500, le=9000, alias="Elevation_m")

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="forbid",
    )

    @field_validator('region', mode='before')
    @classmethod
    def default_region(cls, v):
        return "Unknown" if not v else v


class GeocodeResult(BaseModel):
    """One forward-geocoding suggestion"""
    formatted: str
    latitude: float = Field(..., alias="lat")
    longitude: float = Field(..., alias="lon")
    address_line2: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- API request models ---

class ClickRequest(BaseModel):
    longitude: float = Field(..., ge=-180.0, le=180.0)
    latitude: float = Field(..., ge=-90.0, le=90.0)


class FeatureClickRequest(BaseModel):
    """Properties of the topmost feature under the pointer"""
    properties: Dict[str, Any]

    @field_validator('properties')
    @classmethod
    def requires_id(cls, v):
        if v.get("id") is None:
            raise ValueError("feature properties must include an id")
        return v


class FilterUpdate(BaseModel):
    """Partial filter update; omitted fields keep their current value"""
    risk_levels: Optional[List[str]] = None
    search_query: Optional[str] = None
    year_range: Optional[Tuple[int, int]] = None
    clear_year_range: bool = False


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)
