"""POI catalog records and the enriched read model built from them."""

from pydantic import AliasChoices, BaseModel, Field

from route_planner.models.common import Geo
from route_planner.models.route import PoiSnapshot, Route, RoutePoint


class Poi(BaseModel):
    """POI as returned by the external catalog."""

    id: int
    name: str
    address: str | None = None
    lat: float | None = Field(None, validation_alias=AliasChoices("lat", "latitude"))
    lon: float | None = Field(None, validation_alias=AliasChoices("lon", "longitude", "lng"))
    category: str | None = Field(None, validation_alias=AliasChoices("category", "type"))
    average_rating: float | None = None
    price_level: int | None = None
    verified: bool = Field(False, validation_alias=AliasChoices("verified", "is_verified"))
    closed: bool = Field(False, validation_alias=AliasChoices("closed", "is_closed"))
    city_id: int | None = None

    @property
    def geo(self) -> Geo | None:
        if self.lat is None or self.lon is None:
            return None
        return Geo(lat=self.lat, lon=self.lon)

    def to_snapshot(self) -> PoiSnapshot:
        return PoiSnapshot(
            name=self.name,
            address=self.address,
            geo=self.geo,
            category=self.category,
            average_rating=self.average_rating,
        )


class EnrichedPoint(BaseModel):
    """A persisted point paired with whatever catalog data could be resolved."""

    point: RoutePoint
    poi: Poi | None = None

    @property
    def display(self) -> PoiSnapshot | None:
        if self.poi is not None:
            return self.poi.to_snapshot()
        return self.point.snapshot


class EnrichedDay(BaseModel):
    """Day view for exporters."""

    day_number: int
    points: list[EnrichedPoint]


class EnrichedRoute(BaseModel):
    """Route plus fresh catalog details, owned by the caller and never persisted.

    ``from_snapshot`` is set when the catalog could not be reached and the
    display data comes from the snapshots cached on each point.
    """

    route: Route
    days: list[EnrichedDay]
    from_snapshot: bool = False
