"""
Shared base models and enums for Glacier Watch
Used by the hazard records, the map layer and the triage flow
"""

from typing import Any, Optional
from enum import Enum


# ============= Enums =============

class RiskLevel(str, Enum):
    """Glacier lake flood-risk classification"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class VerificationStatus(str, Enum):
    """Review state of an uploaded lake report"""
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


UNKNOWN_RISK = "UNKNOWN"


# ============= Normalization Helpers =============

def normalize_risk_level(value: Any) -> str:
    """Canonical uppercase classification; unknown values are kept, not rejected"""
    if value is None:
        return UNKNOWN_RISK
    if isinstance(value, RiskLevel):
        return value.value
    text = str(value).strip().upper()
    return text or UNKNOWN_RISK


def normalize_id(value: Any) -> int:
    """
    Normalize a record identity to int.

    Map feature properties and the lake-report service disagree on whether
    ids are numbers or strings; everything past ingestion uses int.

    Raises:
        ValueError: If the value is not an integral number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid record id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Invalid record id: {value!r}")
        return int(value)
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        try:
            as_float = float(text)
        except ValueError:
            raise ValueError(f"Invalid record id: {value!r}") from None
        if not as_float.is_integer():
            raise ValueError(f"Invalid record id: {value!r}")
        return int(as_float)


def try_normalize_id(value: Any) -> Optional[int]:
    """Like normalize_id but returns None instead of raising"""
    try:
        return normalize_id(value)
    except ValueError:
        return None


def validate_coordinates(lat: float, lon: float) -> bool:
    """Validate coordinate ranges"""
    return -90 <= lat <= 90 and -180 <= lon <= 180
