"""
Shared fixtures for the hotel map pipeline tests.
An in-memory repository and a scripted geocoder stand in for the database
and the geocoding provider; nothing here touches the network.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest

from models.map_model import HotelRecord, LatLng
from services.maps.hotel_repository import HotelFilter


def _matches(row: Dict[str, Any], f: HotelFilter) -> bool:
    value = row.get(f.column)
    if f.op == "eq":
        return value == f.value
    if f.op == "in":
        return value in f.value
    return value is not None and str(f.value).lower() in str(value).lower()


class FakeHotelRepository:
    def __init__(
        self,
        hotels: Optional[List[Dict[str, Any]]] = None,
        regions: Optional[List[Dict[str, Any]]] = None,
        media: Optional[List[Dict[str, Any]]] = None,
        benefits: Optional[Dict[str, List[str]]] = None,
        failures: Optional[Dict[str, Exception]] = None,
    ):
        self.hotels = hotels or []
        self.regions = regions or []
        self.media = media or []
        self.benefits = benefits or {}
        # column name -> exception raised by any hotel query filtering on it
        self.failures = failures or {}
        self.hotel_queries: List[Sequence[HotelFilter]] = []
        self.region_lookups: List[tuple] = []
        self.area_queries: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def select_hotels(self, filters: Sequence[HotelFilter], limit: int) -> List[HotelRecord]:
        self.hotel_queries.append(list(filters))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            for f in filters:
                if f.column in self.failures:
                    raise self.failures[f.column]
            rows = [
                r
                for r in self.hotels
                if r.get("publish") is not False and all(_matches(r, f) for f in filters)
            ]
            rows.sort(key=lambda r: r.get("property_name_en") or "")
            return [HotelRecord.model_validate(r) for r in rows[:limit]]
        finally:
            self.in_flight -= 1

    async def select_first_media(self, sabre_ids: Sequence[Any]) -> Dict[str, str]:
        wanted = {str(i) for i in sabre_ids}
        best: Dict[str, tuple] = {}
        for row in self.media:
            key = str(row["sabre_id"])
            if key in wanted and (key not in best or row["image_seq"] < best[key][0]):
                best[key] = (row["image_seq"], row["public_url"])
        return {k: url for k, (_, url) in best.items()}

    async def select_benefits(self, sabre_ids: Sequence[Any]) -> Dict[str, List[str]]:
        wanted = {str(i) for i in sabre_ids}
        return {k: v for k, v in self.benefits.items() if k in wanted}

    async def find_region(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        self.region_lookups.append((column, value))
        for row in self.regions:
            if row.get(column) == value and row.get("status", "active") == "active":
                return row
        return None

    async def select_curated_areas(self, city_code: str) -> List[Dict[str, Any]]:
        self.area_queries.append(("curated", city_code))
        return [
            r
            for r in self.regions
            if r.get("region_type") == "area" and r.get("city_code") == city_code
        ]

    async def select_hotel_areas(self, column: str, value: str) -> List[tuple]:
        self.area_queries.append(("observed", column, value))
        pairs = []
        for r in self.hotels:
            if r.get(column) == value and r.get("publish") is not False and r.get("area_ko"):
                pair = (r["area_ko"], r.get("area_en"))
                if pair not in pairs:
                    pairs.append(pair)
        return pairs


class ScriptedGeocoder:
    """Answers from a fixed table; tracks calls and peak concurrency."""

    def __init__(self, answers: Optional[Dict[str, Optional[LatLng]]] = None, default=None, delay=0.0):
        self.answers = answers or {}
        self.default = default
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def geocode(self, query: str) -> Optional[LatLng]:
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if query in self.answers:
                return self.answers[query]
            return self.default
        finally:
            self.in_flight -= 1


def make_hotel(sabre_id, **overrides) -> Dict[str, Any]:
    row = {
        "sabre_id": sabre_id,
        "slug": f"hotel-{sabre_id}",
        "property_name_ko": f"호텔 {sabre_id}",
        "property_name_en": f"Hotel {sabre_id:03d}" if isinstance(sabre_id, int) else f"Hotel {sabre_id}",
        "property_address": f"{sabre_id} Beach Road",
        "city_code": "DAD",
        "city_ko": "다낭",
        "city_en": "Da Nang",
        "city_slug": "danang",
        "area_ko": None,
        "area_en": None,
        "country_code": "VN",
        "country_ko": "베트남",
        "country_en": "Vietnam",
        "publish": True,
    }
    row.update(overrides)
    return row


@pytest.fixture
def seoul() -> LatLng:
    return LatLng(lat=37.5665, lng=126.978)


@pytest.fixture
def hotel_factory():
    return make_hotel


@pytest.fixture
def fake_repository_factory():
    return FakeHotelRepository


@pytest.fixture
def scripted_geocoder_factory():
    return ScriptedGeocoder
