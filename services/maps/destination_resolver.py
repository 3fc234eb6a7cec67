from typing import Dict, Optional, Protocol
from urllib.parse import unquote

import structlog

from config.map_config import MapConfig
from models.map_model import Resolution, ResolutionKind
from services.maps.region_classifier import RegionMatch

logger = structlog.get_logger(__name__)


class Classifier(Protocol):
    async def classify(self, token: str) -> RegionMatch: ...


# Tokens resolved without consulting the classifier, keyed case-insensitively
DESTINATION_ALIASES: Dict[str, Resolution] = {
    "bali": Resolution(
        kind=ResolutionKind.CITY,
        label="발리",
        query_text="발리, 인도네시아",
        city_code="BALI",
        country_code="ID",
        country_label="인도네시아",
        match_column="city_ko",
    ),
}

ALL_RESOLUTION = Resolution(
    kind=ResolutionKind.UNKNOWN,
    label=MapConfig.ALL_LABEL,
    query_text=MapConfig.ALL_LABEL,
    unfiltered=True,
)


def normalize_token(raw: Optional[str]) -> str:
    return unquote((raw or "").strip()).strip()


class DestinationResolver:
    """Turns a destination token into a Resolution. Never raises."""

    def __init__(
        self,
        classifier: Classifier,
        aliases: Optional[Dict[str, Resolution]] = None,
    ):
        self.classifier = classifier
        self.aliases = DESTINATION_ALIASES if aliases is None else aliases

    async def resolve(self, raw_token: Optional[str]) -> Resolution:
        token = normalize_token(raw_token)
        if not token or token == MapConfig.ALL_DESTINATION:
            return ALL_RESOLUTION

        alias = self.aliases.get(token.lower())
        if alias is not None:
            logger.info("destination_alias", token=token, city_code=alias.city_code)
            return alias

        try:
            match = await self.classifier.classify(token)
        except Exception as e:
            logger.warning("destination_classify_failed", token=token, error=str(e))
            match = RegionMatch(kind="unknown", label=token, query_text=token)

        resolution = self._from_match(token, match)
        logger.info(
            "destination_resolved",
            token=token,
            kind=resolution.kind.value,
            label=resolution.label,
            city_code=resolution.city_code,
            country_code=resolution.country_code,
        )
        return resolution

    @staticmethod
    def _from_match(token: str, match: RegionMatch) -> Resolution:
        if match.kind == "city":
            return Resolution(
                kind=ResolutionKind.CITY,
                label=match.label,
                query_text=match.query_text or match.label,
                city_code=match.city_code,
                country_code=match.country_code,
                country_label=match.country_label,
            )
        if match.kind == "country":
            return Resolution(
                kind=ResolutionKind.COUNTRY,
                label=match.label,
                query_text=match.query_text or match.label,
                country_code=match.country_code,
                country_label=match.country_label,
            )
        if match.kind == "area":
            # Areas go through the fallback cascade, which matches area_ko/area_en
            return Resolution(
                kind=ResolutionKind.UNKNOWN,
                label=match.label,
                query_text=match.query_text or match.label,
                country_code=match.country_code,
                country_label=match.country_label,
            )
        return Resolution(kind=ResolutionKind.UNKNOWN, label=token, query_text=token)
