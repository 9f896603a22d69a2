"""Shared fixtures: a small fixed cosmetics catalog and a frozen clock."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from storefront.application.tracking_service import EventLog, reset_event_log
from storefront.application.query_service import QueryService
from storefront.catalog.store import InMemoryCatalogStore, set_catalog_store
from storefront.domain.entities import Product, ProductStatus, Rating
from storefront.infrastructure.config import Settings
from storefront.recommendation.history import InMemoryHistoryStore, set_history_store
from storefront.search.ranking import Ranker, RankingWeights

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def build_product(product_id: str, **overrides: Any) -> Product:
    """Build a product with sensible defaults."""
    published = overrides.pop("published_at", days_ago(10))
    fields: dict[str, Any] = {
        "id": product_id,
        "name": f"Product {product_id}",
        "price": 10000,
        "category": "스킨케어",
        "brand": "MICOZ",
        "created_at": published,
        "published_at": published,
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level stores before and after each test."""
    set_catalog_store(None)
    set_history_store(None)
    reset_event_log()
    yield
    set_catalog_store(None)
    set_history_store(None)
    reset_event_log()


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Factory for ad-hoc products."""
    return build_product


@pytest.fixture
def now() -> datetime:
    """The frozen current time."""
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Frozen clock."""
    return lambda: NOW


@pytest.fixture
def config() -> Settings:
    """Default settings."""
    return Settings()


@pytest.fixture
def ranker(config: Settings, clock: Callable[[], datetime]) -> Ranker:
    """Ranker with default weights and a frozen clock."""
    return Ranker(RankingWeights.from_settings(config), clock=clock)


@pytest.fixture
def catalog_products() -> list[Product]:
    """Fixed catalog covering every category and flag."""
    return [
        build_product(
            "srm-1",
            name="Vitamin C Serum",
            description="Brightening vitamin serum",
            price=68000,
            sub_category="세럼",
            is_new=True,
            ingredients=("비타민 C", "히알루론산"),
            skin_types=("NORMAL", "DRY"),
            rating=Rating(average=4.6, count=120),
            wishlist_count=80,
            published_at=days_ago(5),
        ),
        build_product(
            "srm-2",
            name="Retinol Serum",
            description="Anti-aging night serum",
            price=85000,
            sub_category="세럼",
            brand="더마랩",
            is_bestseller=True,
            ingredients=("레티놀", "세라마이드"),
            skin_types=("DRY",),
            rating=Rating(average=4.4, count=300),
            wishlist_count=150,
            published_at=days_ago(90),
        ),
        build_product(
            "cln-1",
            name="Gentle Cleansing Foam",
            description="Low pH daily cleanser",
            price=18000,
            sub_category="클렌저",
            is_bestseller=True,
            ingredients=("판테놀", "센텔라"),
            rating=Rating(average=4.2, count=50),
            wishlist_count=20,
            published_at=days_ago(40),
        ),
        build_product(
            "tnr-1",
            name="Hydra Toner",
            description="Hyaluronic hydrating toner",
            price=25000,
            sub_category="토너",
            brand="라온뷰티",
            is_new=True,
            ingredients=("히알루론산",),
            skin_types=("DRY", "SENSITIVE"),
            wishlist_count=5,
            published_at=days_ago(2),
        ),
        build_product(
            "lip-1",
            name="Velvet Lipstick",
            description="Matte lip color",
            price=28000,
            category="메이크업",
            sub_category="립",
            brand="루미에르",
            featured=True,
            ingredients=("호호바 오일",),
            rating=Rating(average=4.8, count=10),
            wishlist_count=60,
            published_at=days_ago(20),
        ),
        build_product(
            "bse-1",
            name="Cover Foundation",
            description="Serum infused long wear foundation",
            price=45000,
            category="메이크업",
            sub_category="베이스",
            brand="오르시아",
            published_at=days_ago(400),
        ),
        build_product(
            "edt-1",
            name="Signature Perfume",
            description="White floral musk",
            price=95000,
            category="향수",
            sub_category="오드 뚜왈렛",
            ingredients=("알코올", "향료"),
            rating=Rating(average=4.5, count=40),
            wishlist_count=90,
            published_at=days_ago(200),
        ),
        build_product(
            "drf-1",
            name="Draft Serum",
            price=30000,
            status=ProductStatus.DRAFT,
        ),
    ]


@pytest.fixture
def catalog(catalog_products: list[Product]) -> InMemoryCatalogStore:
    """In-memory catalog over the fixed products."""
    return InMemoryCatalogStore(catalog_products)


@pytest.fixture
def history() -> InMemoryHistoryStore:
    """Empty history store."""
    return InMemoryHistoryStore()


@pytest.fixture
def event_log() -> EventLog:
    """Empty event log."""
    return EventLog()


@pytest.fixture
def service(
    catalog: InMemoryCatalogStore,
    history: InMemoryHistoryStore,
    event_log: EventLog,
    config: Settings,
    clock: Callable[[], datetime],
) -> QueryService:
    """Query service over the fixture catalog with a frozen clock."""
    return QueryService(
        catalog=catalog,
        history=history,
        event_log=event_log,
        config=config,
        clock=clock,
        request_id="test-request",
    )
