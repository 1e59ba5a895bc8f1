import pytest
from httpx import ASGITransport, AsyncClient

from propsearch.dependencies.search import get_import_tracker, get_importer, get_resolver, get_searcher
from propsearch.main import app
from propsearch.services.importer import ImportTracker
from tests.fakes import FakeImporter, FakeResolver, FakeSearcher


@pytest.fixture
def fake_searcher():
    return FakeSearcher()


@pytest.fixture
def fake_importer():
    return FakeImporter()


@pytest.fixture
def import_tracker():
    return ImportTracker()


@pytest.fixture
def fake_resolver():
    return FakeResolver()


@pytest.fixture
async def client(fake_searcher, fake_importer, import_tracker, fake_resolver):
    app.dependency_overrides[get_searcher] = lambda: fake_searcher
    app.dependency_overrides[get_importer] = lambda: fake_importer
    app.dependency_overrides[get_import_tracker] = lambda: import_tracker
    app.dependency_overrides[get_resolver] = lambda: fake_resolver
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
