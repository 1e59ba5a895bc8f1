from fastapi import Request

from propsearch.services.importer import ImportTracker, TransactionImporter
from propsearch.services.postcodes import PostcodeResolver
from propsearch.services.search import Searcher


# Handles are built once at startup and owned by the application
def get_searcher(request: Request) -> Searcher:
    return request.app.state.searcher


def get_importer(request: Request) -> TransactionImporter:
    return request.app.state.importer


def get_import_tracker(request: Request) -> ImportTracker:
    return request.app.state.import_tracker


def get_resolver(request: Request) -> PostcodeResolver:
    return request.app.state.resolver

