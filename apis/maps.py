from typing import Optional

from fastapi import APIRouter, Depends, Query

from config.map_config import MapConfig
from core.metadata import SERVICE_NAME, VERSION
from dependencies.map_dependencies import get_map_markers_service
from services.maps.map_markers_service import HotelMapMarkersService, parse_limit
from utils.response_helpers import NO_STORE_HEADERS, success_response

router = APIRouter(prefix="/api", tags=["Maps"])


@router.get("/hotel-map-markers")
async def get_hotel_map_markers(
    destination: Optional[str] = Query(MapConfig.ALL_DESTINATION),
    limit: Optional[str] = Query(None),
    service: HotelMapMarkersService = Depends(get_map_markers_service),
):
    data = await service.build(destination, parse_limit(limit))
    return success_response(data, headers=NO_STORE_HEADERS)


@router.get("/health")
async def health():
    return success_response({"status": "ok", "service": SERVICE_NAME, "version": VERSION})
