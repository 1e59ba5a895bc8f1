from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from structlog import get_logger

from propsearch.schemas.index import INDEX_NAME, INDEXER_NAME, SUGGESTER_NAME, SearchableProperty
from propsearch.schemas.property import (
    PAGE_SIZE,
    Address,
    BuildDetails,
    BuildType,
    ContractType,
    Facets,
    FindGenericRequest,
    FindNearestRequest,
    FindPropertiesResponse,
    Geo,
    PropertyResult,
    PropertyType,
    SuggestResponse,
)
from propsearch.services.index_manager import InitializationMode, initialize
from propsearch.services.query_builder import (
    SearchParameters,
    apply_filters,
    find_by_distance,
    order_by,
    search_text,
)
from propsearch.services.search_client import SearchServiceClient
from propsearch.services.storage import TransactionStore

logger = get_logger(__name__)

FACET_FIELDS = ["Town", "Locality", "District", "County", "Price"]
SUGGESTION_LIMIT = 10

TryGetGeo = Callable[[str], Awaitable[Optional[Geo]]]
FacetLookup = Dict[str, List[str]]


def page_parameters(parameters: SearchParameters, page: int) -> SearchParameters:
    return parameters.model_copy(
        update={
            "facets": list(FACET_FIELDS),
            "skip": page * PAGE_SIZE,
            "top": PAGE_SIZE,
            "include_total_count": True,
        }
    )


def _facet_values(raw: dict) -> FacetLookup:
    return {
        name: [str(entry.get("value")) for entry in entries]
        for name, entries in (raw.get("@search.facets") or {}).items()
    }


async def do_search(
    client: SearchServiceClient, page: int, text: Optional[str], parameters: SearchParameters
) -> Tuple[FacetLookup, List[SearchableProperty], Optional[int]]:
    parameters = page_parameters(parameters, page)
    raw = await client.search(INDEX_NAME, parameters.to_body(search_text(text)))
    documents = [SearchableProperty.model_validate(hit) for hit in raw.get("value") or []]
    count = raw.get("@odata.count")
    return _facet_values(raw), documents, int(count) if count is not None else None


def to_property_result(document: SearchableProperty) -> PropertyResult:
    geo = document.geo
    return PropertyResult(
        build_details=BuildDetails(
            property_type=PropertyType.parse(document.property_type),
            build=BuildType.parse(document.build),
            contract=ContractType.parse(document.contract),
        ),
        address=Address(
            building=document.building,
            street=document.street or None,
            locality=document.locality or None,
            town_city=document.town,
            district=document.district,
            county=document.county,
            post_code=document.post_code or None,
            geo_location=Geo(lat=geo.latitude, long=geo.longitude) if geo is not None else None,
        ),
        price=document.price if document.price is not None else 0,
        date_of_transfer=document.date_of_transfer if document.date_of_transfer is not None else datetime.min,
    )


def to_find_properties_response(
    facets: FacetLookup,
    count: Optional[int],
    page: int,
    documents: List[SearchableProperty],
    origin: Optional[Geo] = None,
) -> FindPropertiesResponse:
    return FindPropertiesResponse(
        results=[to_property_result(document) for document in documents],
        total_transactions=count,
        facets=Facets(
            towns=facets.get("Town", []),
            localities=facets.get("Locality", []),
            districts=facets.get("District", []),
            counties=facets.get("County", []),
            prices=facets.get("Price", []),
        ),
        page=page,
        origin=origin,
    )


async def find_generic(client: SearchServiceClient, request: FindGenericRequest) -> FindPropertiesResponse:
    parameters = order_by(request.sort, apply_filters(request.filter, SearchParameters()))
    facets, documents, count = await do_search(client, request.page, request.text, parameters)
    return to_find_properties_response(facets, count, request.page, documents)


async def find_by_postcode(
    client: SearchServiceClient, try_get_geo: TryGetGeo, request: FindNearestRequest
) -> FindPropertiesResponse:
    geo = await try_get_geo(request.postcode)
    if geo is None:
        logger.info("Postcode has no location, skipping search", postcode=request.postcode)
        return to_find_properties_response({}, None, 0, [])
    parameters = apply_filters(request.filter, find_by_distance(geo, request.max_distance))
    facets, documents, count = await do_search(client, request.page, None, parameters)
    return to_find_properties_response(facets, count, request.page, documents, origin=geo)


async def suggest(client: SearchServiceClient, text: str) -> SuggestResponse:
    raw = await client.suggest(
        INDEX_NAME, {"search": text, "suggesterName": SUGGESTER_NAME, "top": SUGGESTION_LIMIT}
    )
    suggestions = [entry.get("@search.text") for entry in raw.get("value") or []]
    # dict keeps first-seen order
    return SuggestResponse(suggestions=list(dict.fromkeys(s for s in suggestions if s)))


async def get_document_size(client: SearchServiceClient) -> int:
    return await client.count(INDEX_NAME)


class Searcher:
    """Search operations over one injected search client, blob store and postcode lookup."""

    def __init__(self, client: SearchServiceClient, store: TransactionStore, try_get_geo: TryGetGeo):
        self.client = client
        self.store = store
        self.try_get_geo = try_get_geo

    async def generic_search(self, request: FindGenericRequest) -> FindPropertiesResponse:
        return await find_generic(self.client, request)

    async def postcode_search(self, request: FindNearestRequest) -> FindPropertiesResponse:
        return await find_by_postcode(self.client, self.try_get_geo, request)

    async def suggest(self, text: str) -> SuggestResponse:
        return await suggest(self.client, text)

    async def documents(self) -> int:
        return await get_document_size(self.client)

    async def indexer_running(self) -> bool:
        status = await self.client.indexer_status(INDEXER_NAME)
        last_result = status.get("lastResult") or {}
        return last_result.get("status") == "inProgress"

    async def initialize(self, mode: InitializationMode = InitializationMode.ONLY_IF_NON_EXISTENT) -> bool:
        return await initialize(mode, self.client, self.store)

    async def clear(self) -> bool:
        return await self.initialize(InitializationMode.FORCE_RESET)
