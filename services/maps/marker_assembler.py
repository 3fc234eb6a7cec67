import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

import structlog

from config.map_config import MapConfig
from exceptions.custom_exceptions import RepositoryQueryError
from models.map_model import CacheStats, HotelRecord, LatLng, Marker, Resolution
from services.maps.geocode_cache import GeocodeCache
from services.maps.media_urls import resolve_marker_image
from utils.concurrency import run_with_concurrency

logger = structlog.get_logger(__name__)


class Geocoder(Protocol):
    async def geocode(self, query: str) -> Optional[LatLng]: ...


class HotelExtrasSource(Protocol):
    async def select_first_media(self, sabre_ids: Sequence) -> Dict[str, str]: ...

    async def select_benefits(self, sabre_ids: Sequence) -> Dict[str, List[str]]: ...


@dataclass
class AssemblyStats:
    attempted: int = 0
    skipped_no_address: int = 0
    not_found: int = 0
    deadline_skipped: int = 0
    cache_hits: int = 0
    cache_misses: int = 0

    def cache_stats(self) -> CacheStats:
        lookups = self.cache_hits + self.cache_misses
        rate = (self.cache_hits / lookups) * 100 if lookups else 0.0
        return CacheStats(hits=self.cache_hits, misses=self.cache_misses, hit_rate=round(rate, 2))


@dataclass
class AssemblyResult:
    markers: List[Marker]
    stats: AssemblyStats


def geocode_query(hotel: HotelRecord, resolution: Resolution) -> str:
    address = (hotel.property_address or "").strip()
    country = (hotel.country_en or hotel.country_ko or resolution.country_label or "").strip()
    return ", ".join(part for part in (address, country) if part)


class MarkerAssembler:
    """Geocodes hotels under a worker pool and builds the map markers."""

    def __init__(
        self,
        geocoder: Geocoder,
        extras: Optional[HotelExtrasSource] = None,
        cache: Optional[GeocodeCache] = None,
        concurrency: int = MapConfig.GEOCODE_CONCURRENCY,
        deadline_seconds: Optional[float] = MapConfig.REQUEST_DEADLINE_SECONDS,
    ):
        self.geocoder = geocoder
        self.extras = extras
        self.cache = cache
        self.concurrency = concurrency
        self.deadline_seconds = deadline_seconds

    async def assemble(
        self, hotels: Sequence[HotelRecord], resolution: Resolution
    ) -> AssemblyResult:
        stats = AssemblyStats()
        media, benefits = await self._load_extras(hotels)

        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + self.deadline_seconds if self.deadline_seconds else None
        )

        async def build(hotel: HotelRecord) -> Optional[Marker]:
            address = (hotel.property_address or "").strip()
            if not address:
                stats.skipped_no_address += 1
                return None

            location = await self._locate(
                geocode_query(hotel, resolution), stats, loop, deadline
            )
            if location is None:
                return None

            return Marker(
                sabre_id=hotel.sabre_id,
                slug=hotel.slug,
                name=hotel.display_name,
                property_name_ko=hotel.property_name_ko,
                property_name_en=hotel.property_name_en,
                property_address=address,
                location=location,
                benefits=benefits.get(hotel.key, []),
                badges=[hotel.badge.strip()] if hotel.badge and hotel.badge.strip() else [],
                image=resolve_marker_image(hotel, media.get(hotel.key)),
                city_ko=hotel.city_ko,
                city_en=hotel.city_en,
                area_ko=hotel.area_ko,
                area_en=hotel.area_en,
                country_ko=hotel.country_ko,
                country_en=hotel.country_en,
            )

        results = await run_with_concurrency(list(hotels), self.concurrency, build)
        markers = [m for m in results if m is not None]

        logger.info(
            "markers_assembled",
            hotels=len(hotels),
            markers=len(markers),
            geocode_attempts=stats.attempted,
            no_address=stats.skipped_no_address,
            not_found=stats.not_found,
            deadline_skipped=stats.deadline_skipped,
            cache_hits=stats.cache_hits,
        )
        return AssemblyResult(markers=markers, stats=stats)

    async def _locate(
        self,
        query: str,
        stats: AssemblyStats,
        loop: asyncio.AbstractEventLoop,
        deadline: Optional[float],
    ) -> Optional[LatLng]:
        if self.cache is not None:
            cached = self.cache.get(query)
            if cached is not None:
                stats.cache_hits += 1
                return cached

        remaining = None
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                stats.deadline_skipped += 1
                return None

        stats.cache_misses += 1
        stats.attempted += 1
        try:
            location = await asyncio.wait_for(self.geocoder.geocode(query), remaining)
        except asyncio.TimeoutError:
            logger.warning("geocode_deadline_exceeded", query=query)
            stats.deadline_skipped += 1
            return None

        if location is None:
            stats.not_found += 1
            return None
        if self.cache is not None:
            self.cache.set(query, location)
        return location

    async def _load_extras(self, hotels: Sequence[HotelRecord]):
        if self.extras is None or not hotels:
            return {}, {}
        ids = [h.sabre_id for h in hotels]
        media: Dict[str, str] = {}
        benefits: Dict[str, List[str]] = {}
        try:
            media = await self.extras.select_first_media(ids)
        except RepositoryQueryError as e:
            logger.warning("hotel_media_lookup_failed", error=str(e))
        try:
            benefits = await self.extras.select_benefits(ids)
        except RepositoryQueryError as e:
            logger.warning("hotel_benefits_lookup_failed", error=str(e))
        return media, benefits
