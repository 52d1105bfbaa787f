import random

import httpx

from routeweaver.errors import ErrorKind
from routeweaver.services.cache import MemoryCache
from routeweaver.services.destinations import MAX_SEARCH_RADIUS_METERS, PopularDestinationService, search_radii
from routeweaver.services.geocoder import Geocoder
from routeweaver.services.google_places import GooglePlacesClient
from tests.conftest import KERALA, FakeTextGenerator, json_transport, nominatim_stub

NEARBY_RESULTS = [
    {
        "place_id": "thattekad",
        "name": "Thattekad Bird Sanctuary",
        "geometry": {"location": {"lat": 10.1017, "lng": 76.7431}},
        "rating": 4.5,
        "types": ["park"],
    },
    {
        "place_id": "munnar",
        "name": "Munnar",
        "geometry": {"location": {"lat": 10.0889, "lng": 77.0595}},
        "rating": 4.7,
        "types": ["natural_feature"],
        "photos": [{"photo_reference": "munnar-photo"}],
    },
    {
        "place_id": "fort-kochi",
        "name": "Fort Kochi",
        "geometry": {"location": {"lat": 9.9658, "lng": 76.2421}},
        "rating": 4.6,
        "types": ["tourist_attraction"],
    },
    {
        "place_id": "tired-park",
        "name": "Tired Park",
        "geometry": {"location": {"lat": 10.1, "lng": 76.75}},
        "rating": 3.1,
        "types": ["park"],
    },
]


class GoogleStub:
    def __init__(self, geocode_status="OK"):
        self.geocode_status = geocode_status
        self.nearby_calls = 0

    def __call__(self, request: httpx.Request):
        if request.url.path.endswith("/geocode/json"):
            if self.geocode_status != "OK":
                return {"status": self.geocode_status, "results": []}
            return {"status": "OK", "results": [{"geometry": {"location": {"lat": 9.9312, "lng": 76.2673}}}]}
        if request.url.path.endswith("/place/nearbysearch/json"):
            self.nearby_calls += 1
            return {"status": "OK", "results": NEARBY_RESULTS}
        return httpx.Response(404)


def _service(stub, generator=None):
    google = GooglePlacesClient("key-123", transport=json_transport(stub))
    geocoder = Geocoder(google, nominatim_stub({}), generator or FakeTextGenerator(), KERALA)
    return PopularDestinationService(google, geocoder, MemoryCache(), rng=random.Random(3))


def test_search_radii_are_capped():
    radii = search_radii(30, 150)

    assert len(radii) == 5
    assert radii[0] == 30_000
    assert max(radii) == MAX_SEARCH_RADIUS_METERS


def test_cache_key_format():
    assert PopularDestinationService.cache_key("Kochi", 50, 100.0) == "Kochi-50-100"


async def test_find_filters_by_band_and_rating():
    stub = GoogleStub()

    destinations = await _service(stub).find("Kochi", 30, 100, limit=10)

    assert sorted(d.name for d in destinations) == ["Munnar", "Thattekad Bird Sanctuary"]
    munnar = next(d for d in destinations if d.name == "Munnar")
    assert 85 <= munnar.distance_km <= 92
    assert munnar.photo_reference == "munnar-photo"


async def test_find_respects_limit():
    destinations = await _service(GoogleStub()).find("Kochi", 30, 100, limit=1)

    assert len(destinations) == 1


async def test_second_lookup_is_served_from_cache():
    stub = GoogleStub()
    service = _service(stub)

    first = await service.find("Kochi", 30, 100, limit=10)
    calls = stub.nearby_calls
    second = await service.find("Kochi", 30, 100, limit=10)

    assert calls > 0
    assert stub.nearby_calls == calls
    assert [d.place_id for d in second] == [d.place_id for d in first]


async def test_unknown_origin_returns_none():
    stub = GoogleStub(geocode_status="ZERO_RESULTS")

    result = await _service(stub, FakeTextGenerator([ErrorKind.EMPTY])).find("Atlantis", 30, 100, limit=10)

    assert result is None
    assert stub.nearby_calls == 0
