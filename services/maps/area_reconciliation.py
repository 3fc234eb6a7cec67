import unicodedata
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from models.map_model import AreaDescriptor


def korean_sort_key(value: str) -> str:
    # Precomposed Hangul syllables are laid out in dictionary order, so NFC
    # code-point order matches Korean collation for Hangul text.
    return unicodedata.normalize("NFC", value).casefold()


def reconcile_areas(
    curated: Iterable[Mapping[str, Any]],
    observed: Iterable[Tuple[Optional[str], Optional[str]]],
) -> List[AreaDescriptor]:
    """Curated areas plus hotel-observed ones, unique by ``area_ko``.

    Curated rows keep their id and english name; an observed area is only
    added when its ``area_ko`` is not curated, with id ``ext-<area_ko>``.
    """
    areas: Dict[str, AreaDescriptor] = {}

    for row in curated:
        area_ko = (row.get("area_ko") or "").strip()
        if not area_ko or area_ko in areas:
            continue
        areas[area_ko] = AreaDescriptor(
            id=row.get("id") if row.get("id") is not None else f"ext-{area_ko}",
            area_ko=area_ko,
            area_en=row.get("area_en"),
        )

    for area_ko, area_en in observed:
        area_ko = (area_ko or "").strip()
        if not area_ko or area_ko in areas:
            continue
        areas[area_ko] = AreaDescriptor(id=f"ext-{area_ko}", area_ko=area_ko, area_en=area_en)

    return sorted(areas.values(), key=lambda a: korean_sort_key(a.area_ko))
