"""Read-only access to the hotel, media, benefit and region tables.

Every query opens its own pooled connection so independent queries can run
concurrently. Driver errors are translated into ``RepositoryQueryError``;
an undefined column becomes ``MissingColumnError`` so callers can treat
schema drift as "no rows" without inspecting error text.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog
from pydantic import ValidationError
from sqlalchemy import bindparam, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from exceptions.custom_exceptions import MissingColumnError, RepositoryQueryError
from models.map_model import HotelRecord

logger = structlog.get_logger(__name__)

HOTELS_TABLE = "select_hotels"
MEDIA_TABLE = "select_hotel_media"
BENEFITS_MAP_TABLE = "select_hotel_benefits_map"
BENEFITS_TABLE = "select_hotel_benefits"
REGIONS_TABLE = "select_regions"

HOTEL_COLUMNS = (
    "sabre_id",
    "slug",
    "property_name_ko",
    "property_name_en",
    "property_address",
    "city_code",
    "city_ko",
    "city_en",
    "city_slug",
    "area_ko",
    "area_en",
    "country_code",
    "country_ko",
    "country_en",
    "publish",
    "badge",
    "image",
)

REGION_LOOKUP_COLUMNS = frozenset(
    {
        "city_slug",
        "country_slug",
        "area_slug",
        "city_ko",
        "city_en",
        "country_ko",
        "country_en",
        "area_ko",
        "area_en",
    }
)

PUBLISHED_CLAUSE = "(publish IS NULL OR publish = TRUE)"

UNDEFINED_COLUMN_SQLSTATE = "42703"

FILTER_OPS = ("eq", "in", "contains")


@dataclass(frozen=True)
class HotelFilter:
    column: str
    op: str
    value: Union[str, Tuple[str, ...]]

    def __post_init__(self):
        if self.column not in HOTEL_COLUMNS:
            raise ValueError(f"Unsupported hotel column: {self.column}")
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _looks_like_missing_column(message: str) -> bool:
    lowered = message.lower()
    return ("column" in lowered and "does not exist" in lowered) or (
        "no such column" in lowered
    )


def translate_error(exc: SQLAlchemyError, table: str) -> RepositoryQueryError:
    message = str(exc.orig) if isinstance(exc, DBAPIError) else str(exc)
    if isinstance(exc, DBAPIError):
        code = _sqlstate(exc)
        if code == UNDEFINED_COLUMN_SQLSTATE:
            return MissingColumnError(message, table=table)
        if code is None and _looks_like_missing_column(message):
            # Drivers without SQLSTATE only leave the message to go on
            logger.warning("missing_column_detected_by_message", table=table)
            return MissingColumnError(message, table=table)
    return RepositoryQueryError(message, table=table)


def _build_where(filters: Sequence[HotelFilter]) -> Tuple[str, Dict[str, Any], List[str]]:
    clauses = [PUBLISHED_CLAUSE]
    params: Dict[str, Any] = {}
    expanding: List[str] = []
    for index, f in enumerate(filters):
        name = f"p{index}"
        if f.op == "eq":
            clauses.append(f"{f.column} = :{name}")
            params[name] = f.value
        elif f.op == "in":
            clauses.append(f"{f.column} IN :{name}")
            params[name] = list(f.value)
            expanding.append(name)
        else:
            clauses.append(f"{f.column} ILIKE :{name} ESCAPE '\\'")
            params[name] = f"%{escape_like(str(f.value))}%"
    return " AND ".join(clauses), params, expanding


class HotelRepository:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def _fetch(self, table: str, sql, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(sql, params)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise translate_error(e, table) from e

    async def select_hotels(
        self, filters: Sequence[HotelFilter], limit: int
    ) -> List[HotelRecord]:
        """Published hotels matching every filter, ordered by english name."""
        where, params, expanding = _build_where(filters)
        params["limit"] = limit
        sql = text(
            f"SELECT {', '.join(HOTEL_COLUMNS)} FROM {HOTELS_TABLE} "
            f"WHERE {where} ORDER BY property_name_en LIMIT :limit"
        )
        if expanding:
            sql = sql.bindparams(*(bindparam(name, expanding=True) for name in expanding))

        rows = await self._fetch(HOTELS_TABLE, sql, params)
        hotels: List[HotelRecord] = []
        for row in rows:
            try:
                hotels.append(HotelRecord.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "hotel_row_invalid", sabre_id=row.get("sabre_id"), error=str(e)
                )
        return hotels

    async def select_first_media(self, sabre_ids: Sequence[Any]) -> Dict[str, str]:
        """First image per hotel by ``image_seq``; non-numeric sequences sort last."""
        if not sabre_ids:
            return {}
        sql = text(
            f"SELECT sabre_id, image_seq, public_url, storage_path FROM {MEDIA_TABLE} "
            "WHERE sabre_id IN :ids"
        ).bindparams(bindparam("ids", expanding=True))
        rows = await self._fetch(MEDIA_TABLE, sql, {"ids": list(sabre_ids)})

        best: Dict[str, Tuple[int, str]] = {}
        for row in rows:
            url = row.get("public_url") or row.get("storage_path")
            if not url:
                continue
            seq = _seq(row.get("image_seq"))
            key = str(row["sabre_id"])
            if key not in best or seq < best[key][0]:
                best[key] = (seq, url)
        return {key: url for key, (_, url) in best.items()}

    async def select_benefits(self, sabre_ids: Sequence[Any]) -> Dict[str, List[str]]:
        if not sabre_ids:
            return {}
        sql = text(
            f"SELECT m.sabre_id, b.benefit FROM {BENEFITS_MAP_TABLE} m "
            f"JOIN {BENEFITS_TABLE} b ON b.benefit_id = m.benefit_id "
            "WHERE m.sabre_id IN :ids ORDER BY m.sabre_id, m.sort"
        ).bindparams(bindparam("ids", expanding=True))
        rows = await self._fetch(BENEFITS_MAP_TABLE, sql, {"ids": list(sabre_ids)})

        benefits: Dict[str, List[str]] = {}
        for row in rows:
            label = (row.get("benefit") or "").strip()
            if label:
                benefits.setdefault(str(row["sabre_id"]), []).append(label)
        return benefits

    async def find_region(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        """One active region row whose ``column`` equals ``value``."""
        if column not in REGION_LOOKUP_COLUMNS:
            raise ValueError(f"Unsupported region column: {column}")
        sql = text(
            f"SELECT * FROM {REGIONS_TABLE} "
            f"WHERE {column} = :value AND status = 'active' LIMIT 1"
        )
        rows = await self._fetch(REGIONS_TABLE, sql, {"value": value})
        return rows[0] if rows else None

    async def select_curated_areas(self, city_code: str) -> List[Dict[str, Any]]:
        sql = text(
            f"SELECT id, area_ko, area_en FROM {REGIONS_TABLE} "
            "WHERE region_type = 'area' AND status = 'active' AND city_code = :city_code"
        )
        return await self._fetch(REGIONS_TABLE, sql, {"city_code": city_code})

    async def select_hotel_areas(
        self, column: str, value: str
    ) -> List[Tuple[str, Optional[str]]]:
        """Distinct ``(area_ko, area_en)`` pairs observed on published hotels."""
        if column not in HOTEL_COLUMNS:
            raise ValueError(f"Unsupported hotel column: {column}")
        sql = text(
            f"SELECT DISTINCT area_ko, area_en FROM {HOTELS_TABLE} "
            f"WHERE {column} = :value AND {PUBLISHED_CLAUSE} AND area_ko IS NOT NULL"
        )
        rows = await self._fetch(HOTELS_TABLE, sql, {"value": value})
        return [(row["area_ko"], row.get("area_en")) for row in rows]


def _seq(value: Any) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 999
