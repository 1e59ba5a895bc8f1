"""Translate domain search requests into the search service's query parameters.

Filters are held as a small expression tree and only rendered to the OData
filter language when the request body is built, so literal values are always
quoted and escaped in one place.
"""
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel

from propsearch.schemas.property import Geo, PropertyFilter, Sort, SortDirection

GEO_FIELD = "Geo"

# logical table column -> sortable index fields, in tie-break order
SORT_COLUMNS = {
    "street": ["Building", "Street"],
    "town": ["Town"],
    "postcode": ["PostCode"],
    "date": ["DateOfTransfer"],
    "price": ["Price"],
}

FILTER_FIELDS = [
    ("Town", "town"),
    ("County", "county"),
    ("Locality", "locality"),
    ("District", "district"),
]


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def geography_point(geo: Geo) -> str:
    return f"geography'POINT({geo.long:f} {geo.lat:f})'"


class Comparison(BaseModel):
    kind: Literal["eq"] = "eq"
    field: str
    value: str

    class Config:
        frozen = True

    def render(self) -> str:
        return f"({self.field} eq {quote_literal(self.value)})"


class GeoDistanceWithin(BaseModel):
    kind: Literal["geo_within"] = "geo_within"
    field: str = GEO_FIELD
    origin: Geo
    max_distance: int

    class Config:
        frozen = True

    def render(self) -> str:
        return f"geo.distance({self.field}, {geography_point(self.origin)}) le {self.max_distance}"


class Conjunction(BaseModel):
    kind: Literal["and"] = "and"
    clauses: Tuple[Union[Comparison, GeoDistanceWithin], ...]

    class Config:
        frozen = True

    def render(self) -> str:
        return " and ".join(clause.render() for clause in self.clauses)


FilterExpression = Union[Comparison, GeoDistanceWithin, Conjunction]


def conjoin(left: Optional[FilterExpression], right: FilterExpression) -> FilterExpression:
    if left is None:
        return right
    left_clauses = left.clauses if isinstance(left, Conjunction) else (left,)
    right_clauses = right.clauses if isinstance(right, Conjunction) else (right,)
    return Conjunction(clauses=left_clauses + right_clauses)


class SearchParameters(BaseModel):
    filter: Optional[FilterExpression] = None
    order_by: List[str] = []
    facets: List[str] = []
    skip: Optional[int] = None
    top: Optional[int] = None
    include_total_count: bool = False

    class Config:
        frozen = True

    @property
    def filter_text(self) -> str:
        return self.filter.render() if self.filter is not None else ""

    def to_body(self, search: str) -> dict:
        body = {"search": search, "queryType": "simple"}
        if self.filter is not None:
            body["filter"] = self.filter_text
        if self.order_by:
            body["orderby"] = ",".join(self.order_by)
        if self.facets:
            body["facets"] = list(self.facets)
        if self.skip is not None:
            body["skip"] = self.skip
        if self.top is not None:
            body["top"] = self.top
        if self.include_total_count:
            body["count"] = True
        return body


def search_text(text: Optional[str]) -> str:
    """Free text with a trailing wildcard for prefix matching; nothing matches everything."""
    if text is None or not text.strip():
        return "*"
    return text.strip() + "*"


def find_by_distance(geo: Geo, max_distance: int) -> SearchParameters:
    return SearchParameters(
        filter=GeoDistanceWithin(origin=geo, max_distance=max_distance),
        order_by=[f"geo.distance({GEO_FIELD}, {geography_point(geo)})"],
    )


def with_filter(parameters: SearchParameters, field: str, value: Optional[str]) -> SearchParameters:
    if value is None or not value.strip():
        return parameters
    clause = Comparison(field=field, value=value.strip().upper())
    return parameters.model_copy(update={"filter": conjoin(parameters.filter, clause)})


def apply_filters(property_filter: PropertyFilter, parameters: SearchParameters) -> SearchParameters:
    for field, attribute in FILTER_FIELDS:
        parameters = with_filter(parameters, field, getattr(property_filter, attribute))
    return parameters


def to_search_columns(column: Optional[str]) -> List[str]:
    if not column:
        return []
    return list(SORT_COLUMNS.get(column.strip().lower(), []))


def order_by(sort: Sort, parameters: SearchParameters) -> SearchParameters:
    columns = to_search_columns(sort.sort_column)
    if not columns:
        return parameters
    direction = "desc" if sort.sort_direction == SortDirection.DESCENDING else "asc"
    return parameters.model_copy(update={"order_by": [f"{col} {direction}" for col in columns]})
