from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, Field

PAGE_SIZE = 20

# Land Registry single-letter codes, keyed to enum values
PROPERTY_TYPE_CODES = {"D": "Detached", "S": "SemiDetached", "T": "Terraced", "F": "FlatsMaisonettes", "O": "Other"}
BUILD_TYPE_CODES = {"Y": "NewBuild", "N": "OldBuild"}
CONTRACT_TYPE_CODES = {"F": "Freehold", "L": "Leasehold"}


def _parse_coded(enum_cls: Type[Enum], value: Optional[str], codes: Dict[str, str]):
    """Parse an enum from its value or its register code, ignoring case and spacing; None if unknown."""
    if value is None:
        return None
    key = value.strip().replace(" ", "").replace("_", "").replace("-", "").lower()
    if not key:
        return None
    for code, name in codes.items():
        if key in (code.lower(), name.lower()):
            return enum_cls(name)
    return None


class PropertyType(str, Enum):
    DETACHED = "Detached"
    SEMI_DETACHED = "SemiDetached"
    TERRACED = "Terraced"
    FLATS_MAISONETTES = "FlatsMaisonettes"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PropertyType"]:
        return _parse_coded(cls, value, PROPERTY_TYPE_CODES)


class BuildType(str, Enum):
    NEW_BUILD = "NewBuild"
    OLD_BUILD = "OldBuild"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["BuildType"]:
        return _parse_coded(cls, value, BUILD_TYPE_CODES)


class ContractType(str, Enum):
    FREEHOLD = "Freehold"
    LEASEHOLD = "Leasehold"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ContractType"]:
        return _parse_coded(cls, value, CONTRACT_TYPE_CODES)


class SortDirection(str, Enum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"

    @classmethod
    def _missing_(cls, value):
        # query strings arrive in any case
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class Geo(BaseModel):
    lat: float
    long: float

    class Config:
        frozen = True


class Address(BaseModel):
    building: Optional[str] = None
    street: Optional[str] = None
    locality: Optional[str] = None
    town_city: Optional[str] = None
    district: Optional[str] = None
    county: Optional[str] = None
    post_code: Optional[str] = None
    geo_location: Optional[Geo] = None

    class Config:
        frozen = True


class BuildDetails(BaseModel):
    property_type: Optional[PropertyType] = None
    build: Optional[BuildType] = None
    contract: Optional[ContractType] = None

    class Config:
        frozen = True


class PropertyResult(BaseModel):
    build_details: BuildDetails
    address: Address
    price: int
    date_of_transfer: datetime

    class Config:
        frozen = True


class Facets(BaseModel):
    towns: List[str] = []
    localities: List[str] = []
    districts: List[str] = []
    counties: List[str] = []
    prices: List[str] = []

    class Config:
        frozen = True


class FindPropertiesResponse(BaseModel):
    results: List[PropertyResult] = []
    total_transactions: Optional[int] = None
    facets: Facets = Facets()
    page: int = 0
    origin: Optional[Geo] = None

    class Config:
        frozen = True


class PropertyFilter(BaseModel):
    town: Optional[str] = None
    county: Optional[str] = None
    locality: Optional[str] = None
    district: Optional[str] = None

    class Config:
        frozen = True


class Sort(BaseModel):
    sort_column: Optional[str] = None
    sort_direction: Optional[SortDirection] = None

    class Config:
        frozen = True


class FindGenericRequest(BaseModel):
    text: Optional[str] = None
    page: int = Field(0, ge=0)
    filter: PropertyFilter = PropertyFilter()
    sort: Sort = Sort()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "text": "Kensington",
                "page": 0,
                "filter": {"town": "London"},
                "sort": {"sort_column": "Price", "sort_direction": "Descending"},
            }
        }


class FindNearestRequest(BaseModel):
    postcode: str
    max_distance: int = Field(..., ge=0)
    page: int = Field(0, ge=0)
    filter: PropertyFilter = PropertyFilter()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {"postcode": "EC2A 4NE", "max_distance": 1, "page": 0, "filter": {}}
        }


class SuggestResponse(BaseModel):
    suggestions: List[str] = []


class IndexName(str, Enum):
    POSTCODES = "postcodes"
    TRANSACTIONS = "transactions"


class IndexStatus(str, Enum):
    IDLE = "Idle"
    INDEXING = "Indexing"


class IndexStats(BaseModel):
    document_count: int = 0
    status: IndexStatus = IndexStatus.IDLE
    percentage: Optional[int] = None
