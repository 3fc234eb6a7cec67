import os


class MapConfig:
    # ===== PROVIDERS =====
    GEOCODING_API_URL: str = os.getenv(
        "GEOCODING_API_URL", "https://maps.googleapis.com/maps/api/geocode/json"
    )
    MEDIA_STORAGE_BASE_URL: str = os.getenv(
        "MEDIA_STORAGE_BASE_URL", "https://bnnuekzyfuvgeefmhmnp.supabase.co"
    ).rstrip("/")
    MEDIA_BUCKET: str = os.getenv("MEDIA_BUCKET", "hotel-media")

    # ===== LIMITS =====
    DEFAULT_LIMIT: int = int(os.getenv("MAP_DEFAULT_LIMIT", "200"))
    MAX_LIMIT: int = int(os.getenv("MAP_MAX_LIMIT", "500"))

    # ===== CONCURRENCY =====
    GEOCODE_CONCURRENCY: int = int(os.getenv("MAP_GEOCODE_CONCURRENCY", "5"))
    QUERY_CONCURRENCY: int = int(os.getenv("MAP_QUERY_CONCURRENCY", "4"))

    # ===== TIMEOUTS (seconds) =====
    GEOCODE_TIMEOUT_SECONDS: float = float(
        os.getenv("MAP_GEOCODE_TIMEOUT_SECONDS", "8")
    )
    GEOCODE_RETRIES: int = int(os.getenv("MAP_GEOCODE_RETRIES", "1"))
    REQUEST_DEADLINE_SECONDS: float = float(
        os.getenv("MAP_REQUEST_DEADLINE_SECONDS", "25")
    )

    # ===== COORDINATE CACHE =====
    GEOCODE_CACHE_TTL_SECONDS: float = float(
        os.getenv("MAP_GEOCODE_CACHE_TTL_SECONDS", "86400")
    )
    GEOCODE_CACHE_MAX_ENTRIES: int = int(
        os.getenv("MAP_GEOCODE_CACHE_MAX_ENTRIES", "5000")
    )

    # ===== DEFAULTS =====
    ALL_DESTINATION: str = "all"
    ALL_LABEL: str = "전체"
    DEFAULT_CENTER_LAT: float = 37.5665
    DEFAULT_CENTER_LNG: float = 126.9780

    @staticmethod
    def google_maps_api_key() -> str:
        """Read at call time so a missing key surfaces per request, not at import."""
        return os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv(
            "NEXT_PUBLIC_GOOGLE_MAPS_API_KEY", ""
        )
