from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class ResolutionKind(str, Enum):
    CITY = "city"
    COUNTRY = "country"
    UNKNOWN = "unknown"


class Resolution(BaseModel):
    """How a destination token was understood; drives the hotel query strategy."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ResolutionKind
    label: str
    query_text: str = Field(alias="queryText")
    city_code: Optional[str] = None
    country_code: Optional[str] = None
    country_label: Optional[str] = None
    # Hotel column matched against ``label`` instead of ``city_code``
    match_column: Optional[str] = Field(default=None, exclude=True)
    # Set only for the "all" destination: no filtering at all
    unfiltered: bool = Field(default=False, exclude=True)


class HotelRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    sabre_id: Union[int, str]
    slug: Optional[str] = None
    property_name_ko: Optional[str] = None
    property_name_en: Optional[str] = None
    property_address: Optional[str] = None
    city_code: Optional[str] = None
    city_ko: Optional[str] = None
    city_en: Optional[str] = None
    city_slug: Optional[str] = None
    area_ko: Optional[str] = None
    area_en: Optional[str] = None
    country_code: Optional[str] = None
    country_ko: Optional[str] = None
    country_en: Optional[str] = None
    publish: Optional[bool] = None
    badge: Optional[str] = None
    image: Optional[str] = None

    @property
    def key(self) -> str:
        return str(self.sabre_id)

    @property
    def display_name(self) -> str:
        return self.property_name_ko or self.property_name_en or f"Hotel {self.sabre_id}"


class Marker(BaseModel):
    sabre_id: Union[int, str]
    slug: Optional[str] = None
    name: str
    property_name_ko: Optional[str] = None
    property_name_en: Optional[str] = None
    property_address: str
    location: LatLng
    benefits: List[str] = []
    badges: List[str] = []
    image: Optional[str] = None
    city_ko: Optional[str] = None
    city_en: Optional[str] = None
    area_ko: Optional[str] = None
    area_en: Optional[str] = None
    country_ko: Optional[str] = None
    country_en: Optional[str] = None


class AreaDescriptor(BaseModel):
    id: Union[int, str]
    area_ko: str
    area_en: Optional[str] = None


class CacheStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hits: int = 0
    misses: int = 0
    hit_rate: float = Field(default=0.0, alias="hitRate")


class MapMarkersData(BaseModel):
    destination: str
    resolved: Resolution
    center: LatLng
    count: int
    requested: int
    markers: List[Marker]
    areas: List[AreaDescriptor] = []
    cache: CacheStats
