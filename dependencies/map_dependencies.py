from fastapi import Depends, Request

from config.map_config import MapConfig
from exceptions.custom_exceptions import ConfigurationException
from services.maps.geocode_cache import GeocodeCache
from services.maps.geocoding_client import GeocodingClient
from services.maps.hotel_repository import HotelRepository
from services.maps.map_markers_service import HotelMapMarkersService

# Process-wide: coordinates outlive a single request
_geocode_cache = GeocodeCache()


def get_geocode_cache() -> GeocodeCache:
    return _geocode_cache


def get_hotel_repository(request: Request) -> HotelRepository:
    return HotelRepository(request.app.state.engine)


async def get_map_markers_service(
    request: Request,
    cache: GeocodeCache = Depends(get_geocode_cache),
) -> HotelMapMarkersService:
    api_key = MapConfig.google_maps_api_key()
    if not api_key:
        raise ConfigurationException("GOOGLE_MAPS_API_KEY is missing")
    return HotelMapMarkersService(
        repository=get_hotel_repository(request),
        geocoder=GeocodingClient(api_key),
        cache=cache,
    )
