"""Common types and enums shared across all models."""

from enum import Enum

from pydantic import BaseModel, Field


class Geo(BaseModel):
    """Geographic coordinates (WGS84)."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class _CaseInsensitiveEnum(str, Enum):
    """Accept "PUBLIC_TRANSPORT", "public_transport" and "Public_Transport" alike."""

    @classmethod
    def _missing_(cls, value: object) -> "_CaseInsensitiveEnum | None":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class TransportMode(_CaseInsensitiveEnum):
    """How the traveller moves between stops."""

    walk = "walk"
    public_transport = "public_transport"
    car = "car"
    mixed = "mixed"


class OptimizationMode(_CaseInsensitiveEnum):
    """Criterion used to re-sequence the points of a day."""

    time = "time"
    distance = "distance"
    scenic = "scenic"
    rating = "rating"
