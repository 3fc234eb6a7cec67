from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import structlog

from exceptions.custom_exceptions import MissingColumnError, RepositoryQueryError
from services.maps.hotel_repository import HotelRepository

logger = structlog.get_logger(__name__)

CITY_LABEL_KEYS = ["city_ko", "city_en", "city", "city_name"]
COUNTRY_LABEL_KEYS = ["country_ko", "country_en", "country", "country_name"]
AREA_LABEL_KEYS = ["area_ko", "area_en", "area", "area_name"]

# (region column, kind, label keys, country label keys), tried in order
LOOKUP_ORDER: List[Tuple[str, str, List[str], List[str]]] = [
    ("city_slug", "city", CITY_LABEL_KEYS, COUNTRY_LABEL_KEYS),
    ("country_slug", "country", COUNTRY_LABEL_KEYS, COUNTRY_LABEL_KEYS),
    ("area_slug", "area", AREA_LABEL_KEYS, COUNTRY_LABEL_KEYS),
    ("city_ko", "city", ["city_ko"], ["country_ko", "country_en"]),
    ("city_en", "city", ["city_en"], ["country_ko", "country_en"]),
    ("country_ko", "country", ["country_ko"], ["country_ko"]),
    ("country_en", "country", ["country_en"], ["country_en"]),
    ("area_ko", "area", ["area_ko"], ["country_ko", "country_en"]),
    ("area_en", "area", ["area_en"], ["country_ko", "country_en"]),
]


@dataclass(frozen=True)
class RegionMatch:
    kind: str  # city | country | area | unknown
    label: str
    query_text: str
    city_code: Optional[str] = None
    country_code: Optional[str] = None
    country_label: Optional[str] = None


def pick_first_string(row: Dict[str, Any], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _code(row: Dict[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    return str(value) if value not in (None, "") else None


class RegionClassifier:
    """Classifies a destination token against the curated regions table."""

    def __init__(self, repository: HotelRepository):
        self.repository = repository

    async def classify(self, token: str) -> RegionMatch:
        for column, kind, label_keys, country_keys in LOOKUP_ORDER:
            row = await self._lookup(column, token)
            if row is None:
                continue

            label = pick_first_string(row, label_keys) or token
            country_label = pick_first_string(row, country_keys)
            if kind == "country":
                query_text = label
                country_label = country_label or label
            else:
                query_text = ", ".join(p for p in (label, country_label) if p) or label

            match = RegionMatch(
                kind=kind,
                label=label,
                query_text=query_text,
                city_code=_code(row, "city_code") if kind == "city" else None,
                country_code=_code(row, "country_code"),
                country_label=country_label,
            )
            logger.info("region_classified", token=token, column=column, kind=kind)
            return match

        logger.info("region_unclassified", token=token)
        return RegionMatch(kind="unknown", label=token, query_text=token)

    async def _lookup(self, column: str, token: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.repository.find_region(column, token)
        except MissingColumnError:
            logger.debug("region_column_missing", column=column)
            return None
        except RepositoryQueryError as e:
            # An unresolvable destination is a normal outcome, keep trying
            logger.warning("region_lookup_failed", column=column, error=str(e))
            return None
