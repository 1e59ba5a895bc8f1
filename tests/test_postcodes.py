import json

import httpx
import pytest

from propsearch.schemas.property import Geo
from propsearch.services.postcodes import PostcodeResolver, normalise_postcode


def make_resolver(handler):
    return PostcodeResolver("https://api.postcodes.io/", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_normalise_postcode():
    assert normalise_postcode(" sw1a   2aa ") == "SW1A 2AA"


@pytest.mark.asyncio
async def test_known_postcode_resolves():
    def handler(request):
        assert request.url.path == "/postcodes/SW1A 2AA"
        return httpx.Response(200, json={"status": 200, "result": {"latitude": 51.5033, "longitude": -0.1276}})

    resolver = make_resolver(handler)
    assert await resolver.try_get_geo("sw1a 2aa") == Geo(lat=51.5033, long=-0.1276)


@pytest.mark.asyncio
async def test_unknown_postcode_is_none():
    def handler(request):
        return httpx.Response(404, json={"status": 404, "error": "Postcode not found"})

    resolver = make_resolver(handler)
    assert await resolver.try_get_geo("ZZ99 9ZZ") is None


@pytest.mark.asyncio
async def test_postcode_without_coordinates_is_none():
    def handler(request):
        return httpx.Response(200, json={"status": 200, "result": {"latitude": None, "longitude": None}})

    resolver = make_resolver(handler)
    assert await resolver.try_get_geo("GY1 1AA") is None


@pytest.mark.asyncio
async def test_server_errors_propagate():
    def handler(request):
        return httpx.Response(500, json={"status": 500})

    resolver = make_resolver(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await resolver.try_get_geo("SW1A 2AA")


@pytest.mark.asyncio
async def test_bulk_lookup_batches_and_skips_unknown():
    batches = []

    def handler(request):
        postcodes = json.loads(request.content)["postcodes"]
        batches.append(postcodes)
        result = [
            {"query": p, "result": None if p.endswith("9ZZ") else {"latitude": 51.0, "longitude": -1.0}}
            for p in postcodes
        ]
        return httpx.Response(200, json={"status": 200, "result": result})

    postcodes = [f"AB{i} 1CD" for i in range(150)] + ["ab0 1cd", "ZZ99 9ZZ", ""]
    resolver = make_resolver(handler)
    found = await resolver.lookup_many(postcodes)
    assert [len(batch) for batch in batches] == [100, 51]
    assert len(found) == 150
    assert found["AB0 1CD"] == Geo(lat=51.0, long=-1.0)
    assert "ZZ99 9ZZ" not in found


@pytest.mark.asyncio
async def test_resolved_postcodes_are_remembered():
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == "POST":
            postcodes = json.loads(request.content)["postcodes"]
            result = [{"query": p, "result": {"latitude": 53.8, "longitude": -1.5}} for p in postcodes]
            return httpx.Response(200, json={"status": 200, "result": result})
        return httpx.Response(200, json={"status": 200, "result": {"latitude": 51.5033, "longitude": -0.1276}})

    resolver = make_resolver(handler)
    assert resolver.known_count == 0
    await resolver.try_get_geo("SW1A 2AA")
    await resolver.try_get_geo("sw1a 2aa")
    found = await resolver.lookup_many(["SW1A 2AA", "LS1 1AA"])
    assert resolver.known_count == 2
    assert found["SW1A 2AA"] == Geo(lat=51.5033, long=-0.1276)
    assert [request.method for request in requests] == ["GET", "POST"]
    assert json.loads(requests[1].content) == {"postcodes": ["LS1 1AA"]}
