"""Hotel lookup per destination resolution.

Each resolution kind routes to one query strategy. The label fallback fans
out exact, case-variant and partial matches over several columns under a
concurrency bound, then everything is merged, de-duplicated by
``sabre_id`` (first occurrence wins) and cut to the requested limit.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

import structlog

from config.map_config import MapConfig
from exceptions.custom_exceptions import (
    HotelsQueryException,
    MissingColumnError,
    RepositoryQueryError,
)
from models.map_model import HotelRecord, Resolution, ResolutionKind
from services.maps.hotel_repository import HotelFilter
from utils.concurrency import with_bounded_concurrency

logger = structlog.get_logger(__name__)

EXACT_MATCH_COLUMNS = ("city_ko", "city_slug", "area_ko", "area_en", "country_en")
CASE_VARIANT_COLUMN = "city_en"
CONTAINS_COLUMNS = ("city_ko", "city_en", "city_slug", "area_ko", "area_en", "country_en")


class HotelSource(Protocol):
    async def select_hotels(
        self, filters: Sequence[HotelFilter], limit: int
    ) -> List[HotelRecord]: ...


@dataclass
class StageOutcome:
    name: str
    hotels: List[HotelRecord] = field(default_factory=list)
    error: Optional[RepositoryQueryError] = None
    missing_column: bool = False


@dataclass
class HotelQueryResult:
    hotels: List[HotelRecord]
    errors: List[RepositoryQueryError]
    stages: List[StageOutcome]

    @property
    def failed(self) -> bool:
        return not self.hotels and bool(self.errors)


def case_variants(label: str) -> tuple:
    """Original, lowercase and first-letter-uppercased spellings, without repeats."""
    return tuple(dict.fromkeys([label, label.lower(), label[:1].upper() + label[1:]]))


def merge_hotels(batches: Sequence[Sequence[HotelRecord]], limit: int) -> List[HotelRecord]:
    seen = set()
    merged: List[HotelRecord] = []
    for batch in batches:
        for hotel in batch:
            if hotel.publish is False or hotel.key in seen:
                continue
            seen.add(hotel.key)
            merged.append(hotel)
    return merged[:limit]


class HotelQueryEngine:
    def __init__(
        self,
        source: HotelSource,
        query_concurrency: int = MapConfig.QUERY_CONCURRENCY,
    ):
        self.source = source
        self.query_concurrency = query_concurrency

    def plan(self, resolution: Resolution) -> List[tuple]:
        """(stage name, filters) pairs for a resolution, in merge order."""
        if resolution.unfiltered:
            return [("all", [])]

        if resolution.kind == ResolutionKind.CITY:
            if resolution.match_column:
                column, value = resolution.match_column, resolution.label
            elif resolution.city_code:
                column, value = "city_code", resolution.city_code
            else:
                column, value = "city_ko", resolution.label
            return [(f"city:{column}", [HotelFilter(column, "eq", value)])]

        if resolution.kind == ResolutionKind.COUNTRY and resolution.country_code:
            return [
                ("country:country_code", [HotelFilter("country_code", "eq", resolution.country_code)])
            ]

        label = resolution.label
        stages = [(f"exact:{c}", [HotelFilter(c, "eq", label)]) for c in EXACT_MATCH_COLUMNS]
        stages.append(
            (
                f"variants:{CASE_VARIANT_COLUMN}",
                [HotelFilter(CASE_VARIANT_COLUMN, "in", case_variants(label))],
            )
        )
        stages.extend(
            (f"contains:{c}", [HotelFilter(c, "contains", label)]) for c in CONTAINS_COLUMNS
        )
        return stages

    async def collect(self, resolution: Resolution, limit: int) -> HotelQueryResult:
        stages = self.plan(resolution)
        tasks: List[Callable[[], Awaitable[StageOutcome]]] = [
            self._stage(name, filters, limit) for name, filters in stages
        ]
        outcomes = await with_bounded_concurrency(tasks, self.query_concurrency)

        hotels = merge_hotels([o.hotels for o in outcomes], limit)
        errors = [o.error for o in outcomes if o.error is not None and not o.missing_column]
        logger.info(
            "hotel_query_merged",
            stages=len(outcomes),
            raw=sum(len(o.hotels) for o in outcomes),
            merged=len(hotels),
            errors=len(errors),
        )
        return HotelQueryResult(hotels=hotels, errors=errors, stages=outcomes)

    async def fetch(self, resolution: Resolution, limit: int) -> List[HotelRecord]:
        result = await self.collect(resolution, limit)
        if result.failed:
            raise HotelsQueryException(
                details={"errors": [str(e) for e in result.errors]}
            )
        return result.hotels

    def _stage(self, name: str, filters: List[HotelFilter], limit: int):
        async def run() -> StageOutcome:
            try:
                hotels = await self.source.select_hotels(filters, limit)
            except MissingColumnError as e:
                logger.warning("hotel_stage_missing_column", stage=name, error=str(e))
                return StageOutcome(name=name, error=e, missing_column=True)
            except RepositoryQueryError as e:
                logger.error("hotel_stage_failed", stage=name, error=str(e))
                return StageOutcome(name=name, error=e)
            logger.debug("hotel_stage_done", stage=name, rows=len(hotels))
            return StageOutcome(name=name, hotels=hotels)

        return run
