from propsearch.schemas.property import FindPropertiesResponse, Geo, SuggestResponse


class FakeSearchClient:
    """Records request bodies and replays canned search service responses."""

    def __init__(self, search_response=None, suggest_response=None, count=0):
        self.search_response = search_response or {"value": [], "@odata.count": 0}
        self.suggest_response = suggest_response or {"value": []}
        self.document_count = count
        self.searches = []
        self.suggestions = []

    async def search(self, index, body):
        self.searches.append((index, body))
        return self.search_response

    async def suggest(self, index, body):
        self.suggestions.append((index, body))
        return self.suggest_response

    async def count(self, index):
        return self.document_count


class FakeSearcher:
    def __init__(self):
        self.generic_requests = []
        self.postcode_requests = []
        self.response = FindPropertiesResponse()
        self.error = None
        self.document_count = 0
        self.running = False

    async def generic_search(self, request):
        self.generic_requests.append(request)
        if self.error:
            raise self.error
        return self.response

    async def postcode_search(self, request):
        self.postcode_requests.append(request)
        if self.error:
            raise self.error
        return self.response.model_copy(update={"origin": Geo(lat=51.5, long=-0.12)})

    async def suggest(self, text):
        if self.error:
            raise self.error
        return SuggestResponse(suggestions=[text.upper(), text.upper() + " ROAD"])

    async def documents(self):
        if self.error:
            raise self.error
        return self.document_count

    async def indexer_running(self):
        return self.running


class FakeImporter:
    def __init__(self, rows=3):
        self.rows = rows
        self.ingested = []

    async def download(self):
        return list(range(self.rows))

    async def ingest(self, frame, tracker=None):
        self.ingested.append((frame, tracker))
        return 1



class FakeResolver:
    def __init__(self, known_count=0):
        self.known_count = known_count
