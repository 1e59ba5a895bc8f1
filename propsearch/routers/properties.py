from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from structlog import get_logger

from propsearch.dependencies.search import get_searcher
from propsearch.schemas.property import (
    FindGenericRequest,
    FindNearestRequest,
    FindPropertiesResponse,
    PropertyFilter,
    Sort,
    SortDirection,
    SuggestResponse,
)
from propsearch.services.search import Searcher
from propsearch.services.search_client import SearchServiceError

logger = get_logger(__name__)
router = APIRouter(prefix="/api/property", tags=["property"])


def get_property_filter(
    town: Optional[str] = Query(None, alias="Town"),
    county: Optional[str] = Query(None, alias="County"),
    locality: Optional[str] = Query(None, alias="Locality"),
    district: Optional[str] = Query(None, alias="District"),
) -> PropertyFilter:
    return PropertyFilter(town=town, county=county, locality=locality, district=district)


def get_sort(
    sort_column: Optional[str] = Query(None, alias="SortColumn"),
    sort_direction: Optional[str] = Query(None, alias="SortDirection"),
) -> Sort:
    direction = None
    if sort_direction:
        try:
            direction = SortDirection(sort_direction)
        except ValueError:
            raise HTTPException(status_code=422, detail=f"Unknown sort direction: {sort_direction}")
    return Sort(sort_column=sort_column, sort_direction=direction)


def _search_failed(error: Exception, **context) -> HTTPException:
    if isinstance(error, SearchServiceError):
        logger.error("Search service rejected query", status_code=error.status_code, error=error.message, **context)
        return HTTPException(status_code=502, detail=f"Search service error ({error.status_code})")
    logger.error("Property search failed", error=str(error), **context)
    return HTTPException(status_code=500, detail="Property search failed")


@router.get("/find/{text}/{page}", response_model=FindPropertiesResponse)
async def find_properties(
    text: str,
    page: int = Path(..., ge=0),
    sort: Sort = Depends(get_sort),
    property_filter: PropertyFilter = Depends(get_property_filter),
    searcher: Searcher = Depends(get_searcher),
):
    request = FindGenericRequest(text=text, page=page, filter=property_filter, sort=sort)
    try:
        response = await searcher.generic_search(request)
    except Exception as e:
        raise _search_failed(e, text=text, page=page)
    logger.info("Property search executed", text=text, page=page, result_count=len(response.results))
    return response


@router.get("/suggest/{text}", response_model=SuggestResponse)
async def suggest_properties(text: str, searcher: Searcher = Depends(get_searcher)):
    try:
        return await searcher.suggest(text)
    except Exception as e:
        raise _search_failed(e, text=text)


@router.get("/{postcode}/{distance}/{page}", response_model=FindPropertiesResponse)
async def find_nearest_properties(
    postcode: str,
    distance: int = Path(..., ge=0),
    page: int = Path(..., ge=0),
    property_filter: PropertyFilter = Depends(get_property_filter),
    searcher: Searcher = Depends(get_searcher),
):
    request = FindNearestRequest(postcode=postcode, max_distance=distance, page=page, filter=property_filter)
    try:
        response = await searcher.postcode_search(request)
    except Exception as e:
        raise _search_failed(e, postcode=postcode, distance=distance, page=page)
    logger.info(
        "Postcode search executed",
        postcode=postcode,
        distance=distance,
        page=page,
        result_count=len(response.results),
    )
    return response
