import httpx

from routeweaver.models.places import Coordinates, Place
from routeweaver.services.google_places import GooglePlacesClient
from routeweaver.services.photos import attach_photos, photo_proxy_url
from tests.conftest import json_transport


def _place(name):
    return Place(name=name, coordinates=Coordinates(latitude=10.0, longitude=76.5))


class FlakyGoogle:
    configured = True

    async def photo_reference(self, name, latitude, longitude):
        if name == "Broken":
            raise RuntimeError("boom")
        return f"ref-{name}"


def test_photo_proxy_url():
    assert photo_proxy_url("abc", 400) == "/api/v1/geocoding/photo-proxy?photo_reference=abc&maxwidth=400"


async def test_one_failed_lookup_does_not_affect_others():
    places = [_place("Munnar"), _place("Broken"), _place("Vagamon")]

    await attach_photos(places, FlakyGoogle())

    assert places[0].photo_reference == "ref-Munnar"
    assert places[0].image_url == photo_proxy_url("ref-Munnar")
    assert places[1].photo_reference is None
    assert places[2].photo_reference == "ref-Vagamon"


async def test_text_search_then_nearby_search():
    def handler(request: httpx.Request):
        if request.url.path.endswith("/place/textsearch/json"):
            if request.url.params["query"] == "Munnar":
                return {"status": "OK", "results": [{"photos": [{"photo_reference": "text-ref"}]}]}
            return {"status": "ZERO_RESULTS", "results": []}
        return {"status": "OK", "results": [{"photos": [{"photo_reference": "nearby-ref"}]}]}

    google = GooglePlacesClient("key-123", transport=json_transport(handler))
    places = [_place("Munnar"), _place("Hidden Falls")]

    await attach_photos(places, google)

    assert [p.photo_reference for p in places] == ["text-ref", "nearby-ref"]


async def test_unconfigured_client_leaves_places_alone():
    places = [_place("Munnar")]

    await attach_photos(places, GooglePlacesClient(None))

    assert places[0].photo_reference is None
    assert places[0].image_url is None


async def test_garbled_search_results_give_no_photo():
    def handler(request: httpx.Request):
        if request.url.path.endswith("/place/textsearch/json"):
            return [{"photos": "none"}]
        return {"status": "OK", "results": [{"photos": [None]}, "junk"]}

    google = GooglePlacesClient("key-123", transport=json_transport(handler))

    assert await google.photo_reference("Munnar", 10.0889, 77.0595) is None
