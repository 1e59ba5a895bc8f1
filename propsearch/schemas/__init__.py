from .index import GeoPoint, SearchableProperty, INDEX_FIELDS, INDEX_NAME, SUGGESTER_NAME
from .property import (
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
    IndexName,
    IndexStats,
    IndexStatus,
    PropertyFilter,
    PropertyResult,
    PropertyType,
    Sort,
    SortDirection,
    SuggestResponse,
)

__all__ = [
    "GeoPoint",
    "SearchableProperty",
    "INDEX_FIELDS",
    "INDEX_NAME",
    "SUGGESTER_NAME",
    "PAGE_SIZE",
    "Address",
    "BuildDetails",
    "BuildType",
    "ContractType",
    "Facets",
    "FindGenericRequest",
    "FindNearestRequest",
    "FindPropertiesResponse",
    "Geo",
    "IndexName",
    "IndexStats",
    "IndexStatus",
    "PropertyFilter",
    "PropertyResult",
    "PropertyType",
    "Sort",
    "SortDirection",
    "SuggestResponse",
]
