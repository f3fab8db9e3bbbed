"""
Glacier Watch Data Models
Centralized export of all Pydantic models
"""

# Base enums and helpers
from .base import (
    RiskLevel,
    VerificationStatus,
    UNKNOWN_RISK,
    normalize_id,
    normalize_risk_level,
    try_normalize_id,
    validate_coordinates
)

# Records, map payloads and requests
from .model import (
    OfficialProfile,
    HazardRecord,
    FilterState,
    RenderFeature,
    LayerStatus,
    SelectionKind,
    Selection,
    LakeReportUpload,
    GeocodeResult,
    ClickRequest,
    FeatureClickRequest,
    FilterUpdate,
    SignInRequest
)

__all__ = [
    # Base
    "RiskLevel",
    "VerificationStatus",
    "UNKNOWN_RISK",
    "normalize_id",
    "normalize_risk_level",
    "try_normalize_id",
    "validate_coordinates",

    # Records and map
    "OfficialProfile",
    "HazardRecord",
    "FilterState",
    "RenderFeature",
    "LayerStatus",
    "SelectionKind",
    "Selection",

    # Requests
    "LakeReportUpload",
    "GeocodeResult",
    "ClickRequest",
    "FeatureClickRequest",
    "FilterUpdate",
    "SignInRequest",
]
