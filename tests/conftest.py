"""Shared fixtures and fakes."""
import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from routeweaver.config import Settings
from routeweaver.dependencies import get_current_user
from routeweaver.errors import ErrorKind, Result
from routeweaver.main import create_app
from routeweaver.models.places import Coordinates
from routeweaver.services.cache import MemoryCache
from routeweaver.services.destinations import PopularDestinationService
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.nominatim import NominatimClient
from routeweaver.services.routing import RoutingResponse
from routeweaver.services.suggestions import SuggestionEngine
from routeweaver.utils.geo import RegionBounds
from routeweaver.utils.normalizers import CoordinateArrayGeometry

TEST_USER = "traveler@example.com"

KERALA = RegionBounds(
    name="Kerala, India",
    min_lat=8.2,
    max_lat=12.8,
    min_lon=74.8,
    max_lon=77.8,
)

KOCHI = Coordinates(latitude=9.9312, longitude=76.2673)
MUNNAR = Coordinates(latitude=10.0889, longitude=77.0595)

Scripted = Union[str, ErrorKind]


class FakeTextGenerator:
    """Returns scripted answers in order and records every prompt."""

    def __init__(self, responses: Optional[Sequence[Scripted]] = None) -> None:
        self.responses: List[Scripted] = list(responses or [])
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> Result[str]:
        self.prompts.append(prompt)
        if not self.responses:
            return Result.failure(ErrorKind.EMPTY, "no scripted response")
        item = self.responses.pop(0)
        if isinstance(item, ErrorKind):
            return Result.failure(item, "scripted failure")
        return Result.success(item)


class FakeRoutingProvider:
    """Routing provider returning a fixed result and recording its calls."""

    def __init__(self, result: Optional[Result[RoutingResponse]] = None) -> None:
        self.result = result or Result.failure(ErrorKind.NETWORK, "offline")
        self.calls: List[Dict[str, Any]] = []

    async def route(self, origin, destination, waypoints):
        self.calls.append({"origin": origin, "destination": destination, "waypoints": list(waypoints)})
        return self.result


def routing_success(points, distance=1000.0, duration=60.0) -> Result[RoutingResponse]:
    return Result.success(RoutingResponse(
        geometry=CoordinateArrayGeometry(points=points),
        distance_meters=distance,
        duration_seconds=duration,
    ))


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def json_transport(handler: Callable[[httpx.Request], Any]) -> httpx.MockTransport:
    """MockTransport whose handler returns a JSON-serializable body (or a Response)."""

    def respond(request: httpx.Request) -> httpx.Response:
        body = handler(request)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, content=json.dumps(body), headers={"content-type": "application/json"})

    return httpx.MockTransport(respond)


def nominatim_stub(places: Dict[str, Coordinates], display_name: str = "Kochi, Kerala, India") -> NominatimClient:
    """Nominatim client answering from a fixed name table."""

    def handler(request: httpx.Request):
        if request.url.path.endswith("/search"):
            query = request.url.params.get("q", "")
            coordinates = places.get(query)
            if coordinates is None:
                return []
            return [{"lat": str(coordinates.latitude), "lon": str(coordinates.longitude)}]
        if request.url.path.endswith("/reverse"):
            return {"display_name": display_name}
        return httpx.Response(404)

    return NominatimClient("https://nominatim.test", "RouteWeaver Tests", transport=json_transport(handler))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def text_generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def routing_provider() -> FakeRoutingProvider:
    return FakeRoutingProvider()


@pytest.fixture
def engine(text_generator) -> SuggestionEngine:
    return SuggestionEngine(text_generator, KERALA, clamp_tolerance_deg=0.5, corridor_km=25.0)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        google_places_api_key=None,
        auth0_domain=None,
        database_url="sqlite+aiosqlite://",
        environment="test",
        cache_backend="memory",
        rate_limit_max_requests=3,
        rate_limit_window_seconds=60.0,
    )


@pytest.fixture
def app(test_settings, text_generator, routing_provider):
    application = create_app(test_settings)
    state = application.state

    google = GooglePlacesClient(api_key=None)
    nominatim = nominatim_stub({"Kochi": KOCHI, "Munnar": MUNNAR})
    geocoder = Geocoder(google, nominatim, text_generator, KERALA)

    state.text_generator = text_generator
    state.google = google
    state.nominatim = nominatim
    state.geocoder = geocoder
    state.routing_provider = routing_provider
    state.cache = MemoryCache(default_ttl=test_settings.cache_ttl_seconds)
    state.suggestion_engine = SuggestionEngine(text_generator, KERALA)
    state.destinations = PopularDestinationService(google, geocoder, state.cache)

    application.dependency_overrides[get_current_user] = lambda: TEST_USER
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
