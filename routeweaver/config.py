"""Configuration settings for the application."""
from pydantic_settings import BaseSettings
from typing import Optional

from routeweaver.utils.geo import RegionBounds


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Generative text model (place suggestions, cost estimates, geocoding)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash-lite"

    # Google Maps Platform (geocoding, places, photos, directions)
    google_places_api_key: Optional[str] = None

    # Routing provider: "osrm" or "google"
    routing_provider: str = "osrm"
    osrm_base_url: str = "http://router.project-osrm.org"

    # OpenStreetMap Nominatim
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "RouteWeaver App"

    # Timeout applied to every outbound call
    http_timeout_seconds: float = 10.0

    # Deployment region used to validate suggested coordinates
    region_name: str = "Kerala, India"
    region_min_lat: float = 8.2
    region_max_lat: float = 12.8
    region_min_lon: float = 74.8
    region_max_lon: float = 77.8
    bounds_clamp_tolerance_deg: float = 0.5

    # Along-route suggestions farther than this from the route line are dropped
    route_corridor_km: float = 25.0

    # Cache configuration ("memory" or "redis")
    cache_backend: str = "memory"
    cache_ttl_seconds: int = 24 * 60 * 60
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None

    # Fixed-window rate limiting
    rate_limit_window_seconds: float = 1.0
    rate_limit_max_requests: int = 10

    # Auth0 Configuration (saved routes)
    auth0_domain: Optional[str] = None
    auth0_audience: str = "https://routeweaver-api"

    # FastAPI Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    api_reload: bool = True

    # CORS Configuration
    frontend_url: str = "http://localhost:5173"

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./routeweaver.db"

    @property
    def region_bounds(self) -> RegionBounds:
        return RegionBounds(
            name=self.region_name,
            min_lat=self.region_min_lat,
            max_lat=self.region_max_lat,
            min_lon=self.region_min_lon,
            max_lon=self.region_max_lon,
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
