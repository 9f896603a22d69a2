"""Application configuration.

Loads settings from environment variables with sensible defaults.
Ranking weights, windows and mappings live here so they can be tuned
without code changes.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


DEFAULT_POPULAR_SEARCHES = [
    "스킨케어",
    "메이크업",
    "선크림",
    "토너",
    "세럼",
    "클렌저",
    "마스크팩",
    "립스틱",
    "파운데이션",
    "아이크림",
]

# Ingredients that suit ("favor") or irritate ("avoid") each skin type.
DEFAULT_SKIN_TYPE_INGREDIENTS: dict[str, dict[str, list[str]]] = {
    "DRY": {
        "favor": ["히알루론산", "세라마이드", "스쿠알란", "시어버터", "판테놀", "호호바 오일"],
        "avoid": ["살리실산"],
    },
    "OILY": {
        "favor": ["나이아신아마이드", "살리실산", "티트리", "녹차", "알로에 베라"],
        "avoid": ["시어버터", "올리브 오일"],
    },
    "COMBINATION": {
        "favor": ["나이아신아마이드", "히알루론산", "베타글루칸"],
        "avoid": [],
    },
    "SENSITIVE": {
        "favor": ["판테놀", "알란토인", "알로에 베라", "세라마이드", "센텔라"],
        "avoid": ["레티놀", "향료", "알코올"],
    },
    "NORMAL": {
        "favor": ["히알루론산", "비타민 C", "비타민 E", "베타글루칸"],
        "avoid": [],
    },
}

DEFAULT_COMPLEMENTARY_SUB_CATEGORIES: dict[str, list[str]] = {
    "클렌저": ["토너", "세럼"],
    "토너": ["세럼", "모이스처라이저"],
    "세럼": ["모이스처라이저", "토너"],
    "모이스처라이저": ["세럼", "선케어"],
    "선케어": ["클렌저", "베이스"],
    "베이스": ["립", "클렌저"],
    "립": ["베이스"],
    "로션": ["바디워시"],
    "바디워시": ["로션"],
    "오드 뚜왈렛": ["로션"],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Catalog data source
    catalog_backend: str = "memory"  # "memory" or "database"
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    seed_mode: str = "small"
    seed: int = 42

    # Relevance ranking
    ranking_text_weight: float = 0.6
    ranking_recency_weight: float = 0.15
    ranking_popularity_weight: float = 0.25
    text_match_exact: float = 1.0
    text_match_name: float = 0.6
    text_match_other: float = 0.25
    recency_half_life_days: float = Field(default=30.0, gt=0)
    recency_floor: float = Field(default=0.1, ge=0, le=1)
    popularity_saturation: float = Field(default=10.0, gt=0)
    popularity_wishlist_weight: float = 0.5

    # Pagination
    default_page_size: int = Field(default=20, gt=0)
    max_page_size: int = Field(default=100, gt=0)

    # Suggestions
    suggestion_limit: int = 5
    suggestion_max_attempts: int = 8
    low_result_threshold: int = 0
    autocomplete_default_limit: int = 10
    autocomplete_max_limit: int = 20
    popular_searches: list[str] = Field(
        default_factory=lambda: list(DEFAULT_POPULAR_SEARCHES)
    )
    event_log_max_events: int = Field(default=10_000, gt=0)

    # Recommendations
    recommendation_default_limit: int = 10
    recommendation_max_limit: int = 50
    trending_window_days: int = Field(default=30, gt=0)
    trending_popularity_weight: float = 0.1
    new_arrival_days: int = 30
    history_depth: int = Field(default=50, gt=0)
    history_recent_items: int = Field(default=5, gt=0)
    history_half_life_days: float = Field(default=14.0, gt=0)
    purchase_signal_weight: float = 1.0
    browsing_signal_weight: float = 0.5
    collaborative_signal_weight: float = 0.6
    collaborative_neighbors: int = Field(default=20, gt=0)
    skin_type_ingredients: dict[str, dict[str, list[str]]] = Field(
        default_factory=lambda: {
            k: {kind: list(v) for kind, v in m.items()}
            for k, m in DEFAULT_SKIN_TYPE_INGREDIENTS.items()
        }
    )
    complementary_sub_categories: dict[str, list[str]] = Field(
        default_factory=lambda: {
            k: list(v) for k, v in DEFAULT_COMPLEMENTARY_SUB_CATEGORIES.items()
        }
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
