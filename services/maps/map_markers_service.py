import math
from typing import List, Optional, Sequence

import structlog

from config.map_config import MapConfig
from exceptions.custom_exceptions import RepositoryQueryError
from models.map_model import (
    AreaDescriptor,
    LatLng,
    MapMarkersData,
    Marker,
    Resolution,
    ResolutionKind,
)
from services.maps.area_reconciliation import reconcile_areas
from services.maps.destination_resolver import DestinationResolver
from services.maps.geocode_cache import GeocodeCache
from services.maps.hotel_query_engine import HotelQueryEngine
from services.maps.hotel_repository import HotelRepository
from services.maps.marker_assembler import Geocoder, MarkerAssembler
from services.maps.region_classifier import RegionClassifier

logger = structlog.get_logger(__name__)

DEFAULT_CENTER = LatLng(lat=MapConfig.DEFAULT_CENTER_LAT, lng=MapConfig.DEFAULT_CENTER_LNG)


def parse_limit(raw: Optional[str]) -> int:
    """Clamp a raw ``limit`` parameter to [1, MAX_LIMIT]; junk means default."""
    value: float = MapConfig.DEFAULT_LIMIT
    if raw is not None and str(raw).strip():
        try:
            parsed = float(str(raw).strip())
            if math.isfinite(parsed):
                value = parsed
        except ValueError:
            pass
    return int(min(max(value, 1), MapConfig.MAX_LIMIT))


def mean_center(markers: Sequence[Marker]) -> Optional[LatLng]:
    if not markers:
        return None
    lat = sum(m.location.lat for m in markers) / len(markers)
    lng = sum(m.location.lng for m in markers) / len(markers)
    return LatLng(lat=lat, lng=lng)


class HotelMapMarkersService:
    """Destination token in, map markers with area filters out."""

    def __init__(
        self,
        repository: HotelRepository,
        geocoder: Geocoder,
        cache: Optional[GeocodeCache] = None,
        resolver: Optional[DestinationResolver] = None,
        query_engine: Optional[HotelQueryEngine] = None,
        assembler: Optional[MarkerAssembler] = None,
    ):
        self.repository = repository
        self.geocoder = geocoder
        self.cache = cache
        self.resolver = resolver or DestinationResolver(RegionClassifier(repository))
        self.query_engine = query_engine or HotelQueryEngine(repository)
        self.assembler = assembler or MarkerAssembler(
            geocoder, extras=repository, cache=cache
        )

    async def build(self, destination: Optional[str], limit: int) -> MapMarkersData:
        destination = (destination or "").strip() or MapConfig.ALL_DESTINATION
        resolution = await self.resolver.resolve(destination)

        hotels = await self.query_engine.fetch(resolution, limit)

        # Sequential so the hotel pool stays the only source of concurrent provider calls
        center_hint = await self._destination_center(resolution)
        assembly = await self.assembler.assemble(hotels, resolution)
        markers = assembly.markers
        center = center_hint or mean_center(markers) or DEFAULT_CENTER

        areas = await self._areas(resolution)

        logger.info(
            "map_markers_built",
            destination=destination,
            kind=resolution.kind.value,
            requested=len(hotels),
            markers=len(markers),
            areas=len(areas),
        )
        return MapMarkersData(
            destination=destination,
            resolved=resolution,
            center=center,
            count=len(markers),
            requested=len(hotels),
            markers=markers,
            areas=areas,
            cache=assembly.stats.cache_stats(),
        )

    async def _destination_center(self, resolution: Resolution) -> Optional[LatLng]:
        if resolution.unfiltered:
            return None
        if self.cache is not None:
            cached = self.cache.get(resolution.query_text)
            if cached is not None:
                return cached
        location = await self.geocoder.geocode(resolution.query_text)
        if location is not None and self.cache is not None:
            self.cache.set(resolution.query_text, location)
        return location

    async def _areas(self, resolution: Resolution) -> List[AreaDescriptor]:
        if resolution.kind != ResolutionKind.CITY or not resolution.city_code:
            return []

        if resolution.match_column:
            column, value = resolution.match_column, resolution.label
        else:
            column, value = "city_code", resolution.city_code

        curated, observed = [], []
        try:
            curated = await self.repository.select_curated_areas(resolution.city_code)
        except RepositoryQueryError as e:
            logger.warning("curated_areas_failed", city_code=resolution.city_code, error=str(e))
        try:
            observed = await self.repository.select_hotel_areas(column, value)
        except RepositoryQueryError as e:
            logger.warning("hotel_areas_failed", column=column, error=str(e))

        return reconcile_areas(curated, observed)
