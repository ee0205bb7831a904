"""
Unit tests for the catalog search API endpoints.

The embedding provider is faked; the index, merger and routes are real.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from catalog_search.api.app import create_app, rebuild_from_catalog
from catalog_search.api.dependencies import ServiceContainer, build_services
from catalog_search.core.config import Settings
from catalog_search.search.catalog import StaticCatalogLoader, demo_catalog
from catalog_search.search.rewrite import QueryRewrite
from tests.fakes import (
    ConstantEmbeddingService,
    FailingEmbeddingService,
    SlowEmbeddingService,
)

# ==============================================================================
# Fixtures
# ==============================================================================


class BrokenDriverLoader:
    """Loader whose backing store fails outside the service error hierarchy."""

    async def load(self) -> list:
        raise OSError("connection reset by catalog database")


class CancelledLoader:
    """Loader cancelled while waiting on its backing store."""

    async def load(self) -> list:
        raise asyncio.CancelledError


class FixedRewriter:
    """Rewriter returning a canned rewrite."""

    def __init__(self, rewrite: QueryRewrite) -> None:
        self._rewrite = rewrite

    async def rewrite(self, raw: str) -> QueryRewrite:
        return self._rewrite


@pytest.fixture
def services(settings: Settings) -> ServiceContainer:
    """Services with a neutral embedder and the demo catalog loader."""
    return build_services(
        settings,
        embedding_service=ConstantEmbeddingService(),
        catalog_loader=StaticCatalogLoader(demo_catalog()),
    )


@pytest.fixture
def client(services: ServiceContainer) -> Iterator[TestClient]:
    """Test client with lifespan (start-up rebuild) enabled."""
    app = create_app(services=services)
    with TestClient(app) as test_client:
        yield test_client


# ==============================================================================
# Health
# ==============================================================================


class TestHealth:
    """Tests for GET /health."""

    def test_reports_corpus_after_startup_rebuild(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["documents"] == 4
        assert data["embedding_model"] == "fake-model"
        assert data["last_rebuilt_at"] is not None

    def test_degraded_without_catalog(self, settings: Settings) -> None:
        services = build_services(settings, embedding_service=ConstantEmbeddingService())
        with TestClient(create_app(services=services)) as client:
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["documents"] == 0

    def test_failed_startup_rebuild_is_not_fatal(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=FailingEmbeddingService(),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["documents"] == 0

    def test_loader_os_error_at_startup_is_not_fatal(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=ConstantEmbeddingService(),
            catalog_loader=BrokenDriverLoader(),
        )
        with TestClient(create_app(services=services)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["documents"] == 0

    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.headers["X-Request-ID"]


class TestStartupRebuild:
    """Tests for the lifespan rebuild helper."""

    @pytest.mark.asyncio
    async def test_logs_unexpected_loader_errors(
        self, settings: Settings, caplog: pytest.LogCaptureFixture
    ) -> None:
        services = build_services(
            settings,
            embedding_service=ConstantEmbeddingService(),
            catalog_loader=BrokenDriverLoader(),
        )

        with caplog.at_level("ERROR", logger="catalog_search.api.app"):
            await rebuild_from_catalog(services)

        assert services.index.size == 0
        record = next(r for r in caplog.records if "Initial rebuild failed" in r.getMessage())
        assert record.exc_info is not None
        assert isinstance(record.exc_info[1], OSError)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=ConstantEmbeddingService(),
            catalog_loader=CancelledLoader(),
        )

        with pytest.raises(asyncio.CancelledError):
            await rebuild_from_catalog(services)


# ==============================================================================
# Search
# ==============================================================================


class TestSearch:
    """Tests for POST /v1/search."""

    def test_ranks_matching_item_first(self, client: TestClient) -> None:
        response = client.post(
            "/v1/search",
            json={"query": "iphone 14", "alternatives": ["apple iphone"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "iphone 14"
        assert data["normalized"] == {"primary": "iphone 14", "alternatives": ["apple iphone"]}
        assert data["results"][0]["item"]["title"] == "Apple iPhone 14 Pro"
        assert data["total"] == len(data["results"])

    def test_result_shape(self, client: TestClient) -> None:
        data = client.post("/v1/search", json={"query": "google", "limit": 1}).json()

        result = data["results"][0]
        assert set(result) == {"item", "score", "why"}
        assert set(result["why"]) == {"semantic", "fuzzy"}
        assert result["item"]["id"] == 3

    def test_limit(self, client: TestClient) -> None:
        data = client.post("/v1/search", json={"query": "phone", "limit": 2}).json()

        assert len(data["results"]) == 2

    def test_zero_limit_returns_everything(self, client: TestClient) -> None:
        data = client.post("/v1/search", json={"query": "phone", "limit": 0}).json()

        assert len(data["results"]) == 4

    def test_default_limit_from_settings(self, settings: Settings) -> None:
        settings.default_limit = 1
        services = build_services(
            settings,
            embedding_service=ConstantEmbeddingService(),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            data = client.post("/v1/search", json={"query": "phone"}).json()

        assert len(data["results"]) == 1

    def test_empty_query_returns_no_results(self, client: TestClient) -> None:
        response = client.post("/v1/search", json={"query": "   "})

        assert response.status_code == 200
        assert response.json()["results"] == []

    def test_rewriter_consulted_without_explicit_alternatives(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=ConstantEmbeddingService(),
            rewriter=FixedRewriter(QueryRewrite("samsung", ("galaxy",))),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            data = client.post("/v1/search", json={"query": "samsng"}).json()

        assert data["normalized"] == {"primary": "samsung", "alternatives": ["galaxy"]}
        assert data["results"][0]["item"]["id"] == 2

    def test_failed_alternative_absorbed(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=FailingEmbeddingService(fail_texts={"broken"}),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            response = client.post(
                "/v1/search",
                json={"query": "nokia", "alternatives": ["broken"]},
            )

        assert response.status_code == 200
        assert response.json()["results"]

    def test_all_variants_failed_returns_502(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=FailingEmbeddingService(fail_texts={"nokia", "lumia"}),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            response = client.post(
                "/v1/search",
                json={"query": "nokia", "alternatives": ["lumia"]},
            )

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "embedding_unavailable"

    def test_timeout_returns_504(self, settings: Settings) -> None:
        settings.search_timeout_seconds = 0.01
        services = build_services(settings, embedding_service=SlowEmbeddingService(delay=1.0))
        with TestClient(create_app(services=services)) as client:
            response = client.post("/v1/search", json={"query": "nokia"})

        assert response.status_code == 504

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"query": "x", "limit": -1},
            {"query": "x", "limit": 101},
            {"query": "x", "unknown": True},
        ],
    )
    def test_validation_errors(self, client: TestClient, body: dict) -> None:
        response = client.post("/v1/search", json=body)

        assert response.status_code == 422


# ==============================================================================
# Reindex
# ==============================================================================


class TestReindex:
    """Tests for POST /v1/reindex."""

    def test_reindex_with_items(self, client: TestClient) -> None:
        response = client.post(
            "/v1/reindex",
            json={
                "items": [
                    {"id": 10, "title": "Fairphone 5", "brand": "Fairphone"},
                    {"id": 11, "title": "", "brand": "", "description": ""},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["indexed"] == 1
        assert response.json()["skipped"] == 1

        results = client.post("/v1/search", json={"query": "fairphone", "limit": 0}).json()["results"]
        assert [r["item"]["id"] for r in results] == [10]

    def test_reindex_from_loader(self, client: TestClient, services: ServiceContainer) -> None:
        services.catalog_loader.set_items(demo_catalog()[:2])  # type: ignore[union-attr]

        response = client.post("/v1/reindex", json={})

        assert response.status_code == 200
        assert response.json()["indexed"] == 2
        assert client.get("/health").json()["documents"] == 2

    def test_reindex_without_loader_returns_503(self, settings: Settings) -> None:
        services = build_services(settings, embedding_service=ConstantEmbeddingService())
        with TestClient(create_app(services=services)) as client:
            response = client.post("/v1/reindex", json={})

        assert response.status_code == 503

    def test_failed_reindex_keeps_corpus(self, settings: Settings) -> None:
        services = build_services(
            settings,
            embedding_service=FailingEmbeddingService(fail_texts={"Broken phone"}),
            catalog_loader=StaticCatalogLoader(demo_catalog()),
        )
        with TestClient(create_app(services=services)) as client:
            response = client.post(
                "/v1/reindex",
                json={"items": [{"id": 50, "title": "Broken phone"}]},
            )
            documents = client.get("/health").json()["documents"]

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "rebuild_error"
        assert response.json()["detail"]["item_id"] == 50
        assert documents == 4
