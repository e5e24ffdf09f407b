from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ingestion.base import CatalogClient
from ingestion.nlb import NLBCatalogClient
from main import app
from models.catalog import CatalogPage, MaturityRating, NormalizedItem
from routers.catalog_deps import get_catalog_clients
from services.catalog_search import CatalogClients


class StaticClient(CatalogClient):
    """One page of fixed items for every expression."""

    source = "google_books"
    page_size = 40

    def __init__(self, items=None, error=None, kids_safe=None):
        super().__init__()
        self.items = items or []
        self.error = error
        self.kids_safe = kids_safe or set()
        self.calls = 0

    async def fetch_page(self, expression, cursor=None, **options):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return CatalogPage(items=list(self.items), next_cursor=None, approx_total=len(self.items))

    async def fetch_kids_safe_ids(self, video_ids):
        return {vid for vid in video_ids if vid in self.kids_safe}


def _books(count):
    return [
        NormalizedItem(
            id=f"b{index}",
            title=f"Book {index}",
            categories=["Juvenile Fiction"],
            maturity_rating=MaturityRating.NOT_MATURE,
            thumbnail=f"http://covers/b{index}.jpg",
            source="google_books",
        )
        for index in range(count)
    ]


def _nlb_client(handler, api_key="nlb-key"):
    return NLBCatalogClient(
        api_key=api_key,
        min_interval_seconds=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _nlb_ok(request):
    return httpx.Response(
        200,
        json={
            "totalRecords": 1,
            "hasMore": False,
            "titles": [{"BID": "77", "Title": "Stories of the sea", "Subjects": ["Sea -- Juvenile fiction"]}],
        },
    )


@pytest.fixture
def catalog_clients():
    clients = CatalogClients(
        books=StaticClient(_books(45)),
        videos=StaticClient(
            [
                NormalizedItem(
                    id="v1",
                    title="Counting with blocks",
                    maturity_rating=MaturityRating.NOT_MATURE,
                    source="youtube",
                    extra={"categoryHint": 27, "channelId": "UCx"},
                )
            ],
            kids_safe={"v1"},
        ),
        library=_nlb_client(_nlb_ok),
    )
    app.dependency_overrides[get_catalog_clients] = lambda: clients
    yield clients
    app.dependency_overrides.pop(get_catalog_clients, None)


@pytest_asyncio.fixture
async def api_client(catalog_clients):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_books_endpoint_clamps_page_size(api_client):
    response = await api_client.get("/api/books", params={"q": "cats", "pageSize": "500", "page": "-2"})

    assert response.status_code == 200
    body = response.json()
    assert body["page"] == 1
    assert body["pageSize"] == 40
    assert len(body["items"]) == 40
    assert body["hasMore"] is True
    assert body["items"][0]["bestLink"] is None
    assert response.headers["cache-control"] == "public, max-age=60"


@pytest.mark.asyncio
async def test_books_endpoint_serves_repeat_requests_from_cache(api_client, catalog_clients):
    first = await api_client.get("/api/books", params={"q": "owls", "pageSize": "5"})
    calls_after_first = catalog_clients.books.calls
    second = await api_client.get("/api/books", params={"q": "owls", "pageSize": "5"})

    assert first.status_code == 200
    assert "x-cache" not in first.headers
    assert second.headers["x-cache"] == "HIT"
    assert second.json() == first.json()
    assert catalog_clients.books.calls == calls_after_first


@pytest.mark.asyncio
async def test_debug_responses_are_not_cached(api_client):
    first = await api_client.get("/api/books", params={"q": "owls", "debug": "1"})
    second = await api_client.get("/api/books", params={"q": "owls", "debug": "1"})

    assert "debug" in first.json()
    assert first.json()["debug"]["poolSize"] == 45
    assert "x-cache" not in second.headers


@pytest.mark.asyncio
async def test_books_endpoint_reports_pipeline_failure(api_client, catalog_clients):
    catalog_clients.books.error = RuntimeError("serializer exploded")

    response = await api_client.get("/api/books", params={"q": "cats"})

    assert response.status_code == 500
    assert response.json() == {"error": "Books fetch failed", "details": "serializer exploded"}


@pytest.mark.asyncio
async def test_videos_endpoint_accepts_bucket_alias(api_client):
    response = await api_client.get("/api/videos", params={"bucket": "learning", "pageSize": "99"})

    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "learning"
    assert body["pageSize"] == 20
    assert [item["id"] for item in body["items"]] == ["v1"]
    assert body["items"][0]["madeForKids"] is True


@pytest.mark.asyncio
async def test_library_search_requires_query(api_client):
    response = await api_client.get("/api/nlb/search", params={"q": "  "})

    assert response.status_code == 400
    assert response.json() == {"error": "Search query is required"}


@pytest.mark.asyncio
async def test_library_search_returns_items(api_client):
    response = await api_client.get("/api/nlb/search", params={"q": "sea", "pageSize": "1000"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "nlb"
    assert body["pageSize"] == 100
    assert body["count"] == 1
    assert body["hasMore"] is False
    assert body["items"][0]["id"] == "nlb-77"
    assert "juvenile_fiction" in body["items"][0]["buckets"]


@pytest.mark.asyncio
async def test_library_search_without_key_is_unavailable(api_client, catalog_clients):
    catalog_clients.library = _nlb_client(_nlb_ok, api_key="")

    response = await api_client.get("/api/nlb/search", params={"q": "sea"})

    assert response.status_code == 503
    assert "NLB_API_KEY" in response.json()["error"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "upstream_status, expected_status",
    [(401, 401), (429, 429), (502, 500)],
)
async def test_library_search_maps_upstream_errors(api_client, catalog_clients, upstream_status, expected_status):
    catalog_clients.library = _nlb_client(lambda request: httpx.Response(upstream_status))

    response = await api_client.get("/api/nlb/search", params={"q": "sea"})

    assert response.status_code == expected_status
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_library_search_timeout_maps_to_gateway_timeout(api_client, catalog_clients):
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    catalog_clients.library = _nlb_client(handler)

    response = await api_client.get("/api/nlb/search", params={"q": "sea"})

    assert response.status_code == 504


@pytest.mark.asyncio
async def test_request_scoped_clients_are_closed_after_the_response():
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
    dependency = get_catalog_clients(request)

    clients = await dependency.__anext__()
    http = clients.books.http
    with pytest.raises(StopAsyncIteration):
        await dependency.__anext__()

    assert http.is_closed
    assert clients.books._http is None


@pytest.mark.asyncio
async def test_lifespan_clients_are_shared_and_left_open():
    shared = object()
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(catalog_clients=shared)))
    dependency = get_catalog_clients(request)

    assert await dependency.__anext__() is shared
    with pytest.raises(StopAsyncIteration):
        await dependency.__anext__()
