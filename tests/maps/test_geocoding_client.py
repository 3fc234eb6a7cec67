import json

import httpx
import pytest

from models.map_model import LatLng
from services.maps.geocoding_client import GeocodingClient, extract_location, to_lat_lng

ENDPOINT = "https://geocode.test/json"


def _ok(lat=16.05, lng=108.2):
    return {"status": "OK", "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}]}


def _client(handler, retries=1) -> GeocodingClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    geocoder = GeocodingClient("test-key", client=http, endpoint=ENDPOINT, retries=retries)
    geocoder.RETRY_BASE_DELAY = 0
    return geocoder


@pytest.mark.asyncio
async def test_geocode_returns_first_result_location():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return httpx.Response(200, json=_ok())

    location = await _client(handler).geocode("12 Vo Nguyen Giap, Vietnam")

    assert location == LatLng(lat=16.05, lng=108.2)
    assert seen[0].url.params["address"] == "12 Vo Nguyen Giap, Vietnam"
    assert seen[0].url.params["key"] == "test-key"


@pytest.mark.asyncio
async def test_malformed_json_yields_none():
    def handler(request):
        return httpx.Response(200, content=b"<html>not json</html>")

    assert await _client(handler).geocode("somewhere") is None


@pytest.mark.asyncio
async def test_empty_results_yield_none():
    def handler(request):
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    assert await _client(handler).geocode("nowhere") is None


@pytest.mark.asyncio
async def test_client_error_yields_none_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, json={"error_message": "denied"})

    assert await _client(handler).geocode("somewhere") is None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_server_error_is_retried_once():
    responses = [httpx.Response(503), httpx.Response(200, json=_ok(1.0, 2.0))]

    def handler(request):
        return responses.pop(0)

    assert await _client(handler).geocode("somewhere") == LatLng(lat=1.0, lng=2.0)


@pytest.mark.asyncio
async def test_timeouts_and_network_errors_yield_none():
    def timeout(request):
        raise httpx.ReadTimeout("slow", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    assert await _client(timeout).geocode("somewhere") is None
    assert await _client(refused, retries=0).geocode("somewhere") is None


@pytest.mark.asyncio
async def test_blank_query_skips_provider():
    def handler(request):
        raise AssertionError("provider should not be called")

    assert await _client(handler).geocode("   ") is None


def test_to_lat_lng_rejects_non_numeric_coordinates():
    assert to_lat_lng({"lat": "1", "lng": 2}) is None
    assert to_lat_lng({"lat": True, "lng": 2}) is None
    assert to_lat_lng([1, 2]) is None
    assert to_lat_lng({"lat": 1, "lng": 2.5}) == LatLng(lat=1.0, lng=2.5)


def test_extract_location_tolerates_odd_shapes():
    assert extract_location(None) is None
    assert extract_location({"results": "nope"}) is None
    assert extract_location({"results": [{"geometry": None}]}) is None
    assert extract_location(json.loads(json.dumps(_ok(3, 4)))) == LatLng(lat=3, lng=4)
