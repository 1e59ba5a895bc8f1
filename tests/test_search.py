from datetime import datetime

import pytest

from propsearch.schemas.index import INDEX_NAME, SUGGESTER_NAME, SearchableProperty
from propsearch.schemas.property import (
    BuildType,
    ContractType,
    Facets,
    FindGenericRequest,
    FindNearestRequest,
    FindPropertiesResponse,
    Geo,
    PropertyFilter,
    PropertyType,
    Sort,
    SortDirection,
)
from propsearch.services.search import (
    FACET_FIELDS,
    find_by_postcode,
    find_generic,
    suggest,
    to_property_result,
)
from tests.fakes import FakeSearchClient

HIT = {
    "@search.score": 1.0,
    "TransactionId": "0A1B2C3D",
    "Price": 250000,
    "DateOfTransfer": "2018-05-04T00:00:00Z",
    "PostCode": "SW1A 2AA",
    "PropertyType": "Terraced",
    "Build": "OldBuild",
    "Contract": "Freehold",
    "Building": "10",
    "Street": "DOWNING STREET",
    "Locality": None,
    "Town": "LONDON",
    "District": "CITY OF WESTMINSTER",
    "County": "GREATER LONDON",
    "Geo": {"type": "Point", "coordinates": [-0.1276, 51.5033], "crs": {"type": "name"}},
}


@pytest.mark.asyncio
@pytest.mark.parametrize("page", [0, 1, 7])
async def test_paging_requests_twenty_per_page(page):
    client = FakeSearchClient()
    await find_generic(client, FindGenericRequest(text="x", page=page))
    index, body = client.searches[0]
    assert index == INDEX_NAME
    assert body["skip"] == 20 * page
    assert body["top"] == 20
    assert body["count"] is True
    assert body["facets"] == FACET_FIELDS


@pytest.mark.asyncio
async def test_generic_search_builds_query():
    client = FakeSearchClient()
    request = FindGenericRequest(
        text="kens",
        page=0,
        filter=PropertyFilter(town="London"),
        sort=Sort(sort_column="Street", sort_direction=SortDirection.DESCENDING),
    )
    await find_generic(client, request)
    _, body = client.searches[0]
    assert body["search"] == "kens*"
    assert body["filter"] == "(Town eq 'LONDON')"
    assert body["orderby"] == "Building desc,Street desc"


@pytest.mark.asyncio
async def test_generic_search_maps_results_and_facets():
    client = FakeSearchClient(
        search_response={
            "@odata.count": 41,
            "@search.facets": {
                "Town": [{"value": "LONDON", "count": 40}, {"value": "LEEDS", "count": 1}],
                "Price": [{"value": 250000, "count": 1}],
            },
            "value": [HIT],
        }
    )
    response = await find_generic(client, FindGenericRequest(text="downing", page=2))
    assert response.total_transactions == 41
    assert response.page == 2
    assert response.facets.towns == ["LONDON", "LEEDS"]
    assert response.facets.prices == ["250000"]
    assert response.facets.counties == []
    result = response.results[0]
    assert result.price == 250000
    assert result.address.street == "DOWNING STREET"
    assert result.address.locality is None
    assert result.address.geo_location == Geo(lat=51.5033, long=-0.1276)
    assert result.build_details.property_type == PropertyType.TERRACED
    assert result.build_details.build == BuildType.OLD_BUILD
    assert result.build_details.contract == ContractType.FREEHOLD


@pytest.mark.asyncio
async def test_missing_count_maps_to_none():
    client = FakeSearchClient(search_response={"value": []})
    response = await find_generic(client, FindGenericRequest())
    assert response.total_transactions is None


def test_null_price_and_date_map_to_defaults():
    document = SearchableProperty.model_validate({"TransactionId": "x", "Price": None, "DateOfTransfer": None})
    result = to_property_result(document)
    assert result.price == 0
    assert result.date_of_transfer == datetime.min
    assert result.address.street is None
    assert result.address.post_code is None
    assert result.address.geo_location is None
    assert result.build_details.property_type is None


@pytest.mark.asyncio
async def test_unresolvable_postcode_skips_the_search():
    client = FakeSearchClient()

    async def no_geo(postcode):
        return None

    request = FindNearestRequest(postcode="ZZ99 9ZZ", max_distance=5, page=3, filter=PropertyFilter(town="x"))
    response = await find_by_postcode(client, no_geo, request)
    assert client.searches == []
    assert response == FindPropertiesResponse(results=[], total_transactions=None, facets=Facets(), page=0)


@pytest.mark.asyncio
async def test_postcode_search_uses_distance_filter():
    client = FakeSearchClient()
    origin = Geo(lat=51.5033, long=-0.1276)

    async def resolve(postcode):
        assert postcode == "SW1A 2AA"
        return origin

    request = FindNearestRequest(
        postcode="SW1A 2AA", max_distance=2, page=1, filter=PropertyFilter(county="Greater London")
    )
    response = await find_by_postcode(client, resolve, request)
    _, body = client.searches[0]
    assert body["search"] == "*"
    assert body["filter"] == (
        "geo.distance(Geo, geography'POINT(-0.127600 51.503300)') le 2 and (County eq 'GREATER LONDON')"
    )
    assert body["orderby"] == "geo.distance(Geo, geography'POINT(-0.127600 51.503300)')"
    assert body["skip"] == 20
    assert response.origin == origin
    assert response.page == 1


@pytest.mark.asyncio
async def test_suggest_deduplicates_in_order():
    client = FakeSearchClient(
        suggest_response={
            "value": [
                {"@search.text": "LONDON ROAD"},
                {"@search.text": "LONDON"},
                {"@search.text": "LONDON ROAD"},
            ]
        }
    )
    response = await suggest(client, "lon")
    assert response.suggestions == ["LONDON ROAD", "LONDON"]
    _, body = client.suggestions[0]
    assert body == {"search": "lon", "suggesterName": SUGGESTER_NAME, "top": 10}
