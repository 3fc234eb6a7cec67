from typing import Optional
from urllib.parse import quote, unquote

from config.map_config import MapConfig
from models.map_model import HotelRecord


def is_absolute_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "//"))


def build_storage_url(
    slug: str,
    filename: str,
    base_url: str = MapConfig.MEDIA_STORAGE_BASE_URL,
    bucket: str = MapConfig.MEDIA_BUCKET,
) -> str:
    """Public object-storage URL for a hotel media file. No network access."""
    slug_part = quote(unquote(slug.strip("/")), safe="")
    file_part = quote(filename.strip("/"), safe="/")
    return f"{base_url}/storage/v1/object/public/{bucket}/public/{slug_part}/{file_part}"


def resolve_marker_image(
    hotel: HotelRecord, media_url: Optional[str] = None
) -> Optional[str]:
    """Media table image first, then the record's own image field."""
    if media_url:
        return media_url
    image = (hotel.image or "").strip()
    if not image:
        return None
    if is_absolute_url(image):
        return image
    if hotel.slug:
        return build_storage_url(hotel.slug, image)
    return image
