"""Search index schema for flattened price-paid transactions.

``SearchableProperty`` is the document shape both written by the importer and
read back from search hits; ``INDEX_FIELDS`` declares what the search service
may do with each field.
"""
from datetime import datetime
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, Field

INDEX_NAME = "properties"
SUGGESTER_NAME = "suggester"
SUGGESTER_FIELDS = ["Street", "Locality", "Town", "District", "County"]
CONTAINER_NAME = "properties"
DATASOURCE_NAME = "blob-transactions"
INDEXER_NAME = "properties-indexer"
INDEXER_INTERVAL = "PT5M"


class GeoPoint(BaseModel):
    """GeoJSON point as stored by the search service; coordinates are ``[longitude, latitude]``."""

    type: str = "Point"
    coordinates: List[float]

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    @classmethod
    def create(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(coordinates=[longitude, latitude])


class SearchableProperty(BaseModel):
    transaction_id: str = Field(alias="TransactionId")
    price: Optional[int] = Field(None, alias="Price")
    date_of_transfer: Optional[datetime] = Field(None, alias="DateOfTransfer")
    post_code: Optional[str] = Field(None, alias="PostCode")
    property_type: Optional[str] = Field(None, alias="PropertyType")
    build: Optional[str] = Field(None, alias="Build")
    contract: Optional[str] = Field(None, alias="Contract")
    building: Optional[str] = Field(None, alias="Building")
    street: Optional[str] = Field(None, alias="Street")
    locality: Optional[str] = Field(None, alias="Locality")
    town: Optional[str] = Field(None, alias="Town")
    district: Optional[str] = Field(None, alias="District")
    county: Optional[str] = Field(None, alias="County")
    geo: Optional[GeoPoint] = Field(None, alias="Geo")

    class Config:
        populate_by_name = True


class IndexField(NamedTuple):
    name: str
    type: str
    key: bool = False
    searchable: bool = False
    filterable: bool = False
    sortable: bool = False
    facetable: bool = False

    def to_definition(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "key": self.key,
            "searchable": self.searchable,
            "filterable": self.filterable,
            "sortable": self.sortable,
            "facetable": self.facetable,
            "retrievable": True,
        }


INDEX_FIELDS = [
    IndexField("TransactionId", "Edm.String", key=True, filterable=True),
    IndexField("Price", "Edm.Int32", facetable=True, sortable=True),
    IndexField("DateOfTransfer", "Edm.DateTimeOffset", filterable=True, sortable=True),
    IndexField("PostCode", "Edm.String", searchable=True, sortable=True),
    IndexField("PropertyType", "Edm.String", facetable=True, filterable=True),
    IndexField("Build", "Edm.String", facetable=True, filterable=True),
    IndexField("Contract", "Edm.String", facetable=True, filterable=True),
    IndexField("Building", "Edm.String", sortable=True),
    IndexField("Street", "Edm.String", searchable=True, sortable=True),
    IndexField("Locality", "Edm.String", facetable=True, filterable=True, searchable=True),
    IndexField("Town", "Edm.String", facetable=True, filterable=True, searchable=True, sortable=True),
    IndexField("District", "Edm.String", facetable=True, filterable=True, searchable=True),
    IndexField("County", "Edm.String", facetable=True, filterable=True, searchable=True),
    IndexField("Geo", "Edm.GeographyPoint", filterable=True, sortable=True),
]


def index_definition() -> dict:
    return {
        "name": INDEX_NAME,
        "fields": [field.to_definition() for field in INDEX_FIELDS],
        "suggesters": [
            {
                "name": SUGGESTER_NAME,
                "searchMode": "analyzingInfixMatching",
                "sourceFields": list(SUGGESTER_FIELDS),
            }
        ],
    }


def datasource_definition(storage_connection_string: str) -> dict:
    return {
        "name": DATASOURCE_NAME,
        "type": "azureblob",
        "credentials": {"connectionString": storage_connection_string},
        "container": {"name": CONTAINER_NAME},
    }


def indexer_definition() -> dict:
    return {
        "name": INDEXER_NAME,
        "dataSourceName": DATASOURCE_NAME,
        "targetIndexName": INDEX_NAME,
        "schedule": {"interval": INDEXER_INTERVAL},
        "parameters": {"configuration": {"parsingMode": "jsonArray"}},
    }
