"""Deterministic cosmetics catalog generator.

Builds a reproducible catalog of skincare, makeup, body care and
fragrance products so the service can run without a database and tests
get a stable data set.
"""

import hashlib
import random
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from storefront.domain.entities import Product, Rating, SkinType

# ============================================================================
# Catalog Data
# ============================================================================

HOUSE_BRAND = "MICOZ"

BRANDS = [
    HOUSE_BRAND,
    "라온뷰티",
    "그린테라피",
    "더마랩",
    "오르시아",
    "루미에르",
]

# Category -> sub-category -> sub-category code
CATEGORIES: dict[str, dict[str, str]] = {
    "스킨케어": {
        "클렌저": "cln",
        "토너": "tnr",
        "세럼": "srm",
        "모이스처라이저": "mst",
        "선케어": "sun",
    },
    "메이크업": {
        "베이스": "bse",
        "립": "lip",
    },
    "바디케어": {
        "로션": "lot",
        "바디워시": "bdw",
    },
    "향수": {
        "오드 뚜왈렛": "edt",
    },
}

# Price ranges in KRW by sub-category
PRICE_RANGES: dict[str, tuple[int, int]] = {
    "클렌저": (12000, 32000),
    "토너": (18000, 42000),
    "세럼": (35000, 89000),
    "모이스처라이저": (28000, 72000),
    "선케어": (15000, 35000),
    "베이스": (25000, 58000),
    "립": (15000, 38000),
    "로션": (14000, 36000),
    "바디워시": (9000, 24000),
    "오드 뚜왈렛": (55000, 98000),
    "default": (10000, 50000),
}

PRODUCT_TEMPLATES: dict[str, list[str]] = {
    "클렌저": ["{adj} 클렌징 폼", "{adj} 클렌징 오일", "{adj} 젤 클렌저"],
    "토너": ["{adj} 토너", "{adj} 스킨 토너", "{adj} 밸런싱 토너"],
    "세럼": ["{adj} 세럼", "{adj} 앰플", "{adj} 에센스"],
    "모이스처라이저": ["{adj} 크림", "{adj} 수분 크림", "{adj} 젤 크림"],
    "선케어": ["{adj} 선크림", "{adj} 선 에센스", "{adj} 톤업 선크림"],
    "베이스": ["{adj} 파운데이션", "{adj} 쿠션", "{adj} 프라이머"],
    "립": ["{adj} 립스틱", "{adj} 립 틴트", "{adj} 립밤"],
    "로션": ["{adj} 바디 로션", "{adj} 바디 크림"],
    "바디워시": ["{adj} 바디 워시", "{adj} 샤워 젤"],
    "오드 뚜왈렛": ["{adj} 오드 뚜왈렛", "{adj} 퍼퓸"],
    "default": ["{adj} 에센셜"],
}

ADJECTIVES = [
    "수분",
    "진정",
    "브라이트닝",
    "히알루론",
    "시카",
    "비타민",
    "모이스트",
    "퓨어",
    "데일리",
    "프레시",
    "벨벳",
    "글로우",
]

INGREDIENTS: dict[str, list[str]] = {
    "스킨케어": [
        "히알루론산",
        "나이아신아마이드",
        "세라마이드",
        "판테놀",
        "센텔라",
        "티트리",
        "녹차",
        "비타민 C",
        "레티놀",
        "살리실산",
        "알로에 베라",
        "스쿠알란",
        "베타글루칸",
    ],
    "메이크업": ["비타민 E", "호호바 오일", "시어버터", "향료"],
    "바디케어": ["시어버터", "세라마이드", "알란토인", "올리브 오일", "향료"],
    "향수": ["알코올", "향료"],
}

# Hand-written flagship products, always present.
SAMPLE_PRODUCTS: list[dict] = [
    {
        "id": "prd-srm-001",
        "name": "비타민 C 브라이트닝 세럼",
        "description": "순수 비타민 C 15%가 칙칙한 피부 톤을 맑고 환하게 밝혀주는 세럼",
        "short_description": "맑고 환한 피부 톤을 위한 비타민 C 세럼",
        "price": 68000,
        "compare_at_price": 78000,
        "category": "스킨케어",
        "sub_category": "세럼",
        "ingredients": ("비타민 C", "비타민 E", "히알루론산"),
        "skin_types": (SkinType.NORMAL.value, SkinType.DRY.value, SkinType.COMBINATION.value),
        "is_bestseller": True,
        "featured": True,
    },
    {
        "id": "prd-srm-002",
        "name": "레티놀 안티에이징 세럼",
        "description": "저자극 레티놀이 잔주름과 탄력을 집중 케어하는 안티에이징 세럼",
        "short_description": "탄력 집중 케어 레티놀 세럼",
        "price": 85000,
        "category": "스킨케어",
        "sub_category": "세럼",
        "ingredients": ("레티놀", "세라마이드", "스쿠알란"),
        "skin_types": (SkinType.NORMAL.value, SkinType.DRY.value),
        "featured": True,
    },
    {
        "id": "prd-cln-001",
        "name": "젠틀 약산성 클렌징 폼",
        "description": "피부 장벽을 지키며 노폐물을 부드럽게 씻어내는 약산성 클렌저",
        "short_description": "순한 약산성 데일리 클렌저",
        "price": 18000,
        "category": "스킨케어",
        "sub_category": "클렌저",
        "ingredients": ("판테놀", "센텔라", "녹차"),
        "skin_types": (),
        "is_bestseller": True,
    },
    {
        "id": "prd-tnr-001",
        "name": "히알루론 수분 토너",
        "description": "5중 히알루론산이 속건조까지 채워주는 수분 토너",
        "short_description": "속건조 해결 수분 토너",
        "price": 25000,
        "category": "스킨케어",
        "sub_category": "토너",
        "ingredients": ("히알루론산", "판테놀"),
        "skin_types": (SkinType.DRY.value, SkinType.SENSITIVE.value),
        "is_bestseller": True,
    },
    {
        "id": "prd-mst-001",
        "name": "세라마이드 장벽 크림",
        "description": "세라마이드 캡슐이 무너진 피부 장벽을 촘촘하게 채워주는 보습 크림",
        "short_description": "장벽 강화 보습 크림",
        "price": 42000,
        "category": "스킨케어",
        "sub_category": "모이스처라이저",
        "ingredients": ("세라마이드", "스쿠알란", "시어버터"),
        "skin_types": (SkinType.DRY.value,),
    },
    {
        "id": "prd-bse-001",
        "name": "롱웨어 커버 파운데이션",
        "description": "24시간 무너짐 없이 지속되는 세미 매트 파운데이션",
        "short_description": "세미 매트 롱웨어 파운데이션",
        "price": 45000,
        "category": "메이크업",
        "sub_category": "베이스",
        "ingredients": ("비타민 E",),
        "skin_types": (SkinType.OILY.value, SkinType.COMBINATION.value),
    },
    {
        "id": "prd-lip-001",
        "name": "벨벳 매트 립스틱",
        "description": "한 번의 터치로 선명하게 발색되는 벨벳 매트 립스틱",
        "short_description": "선명한 발색 매트 립스틱",
        "price": 28000,
        "category": "메이크업",
        "sub_category": "립",
        "ingredients": ("호호바 오일", "비타민 E"),
        "skin_types": (),
        "is_new": True,
    },
    {
        "id": "prd-lot-001",
        "name": "시어버터 바디 로션",
        "description": "시어버터가 거친 바디 피부를 하루 종일 촉촉하게 지켜주는 로션",
        "short_description": "하루 종일 촉촉한 바디 로션",
        "price": 22000,
        "category": "바디케어",
        "sub_category": "로션",
        "ingredients": ("시어버터", "알란토인"),
        "skin_types": (),
    },
    {
        "id": "prd-edt-001",
        "name": "시그니처 퍼퓸",
        "description": "화이트 플로럴과 머스크가 어우러진 MICOZ 시그니처 향",
        "short_description": "화이트 플로럴 머스크 향수",
        "price": 95000,
        "category": "향수",
        "sub_category": "오드 뚜왈렛",
        "ingredients": ("알코올", "향료"),
        "skin_types": (),
        "featured": True,
    },
]


# ============================================================================
# Generator Configuration
# ============================================================================


@dataclass
class GeneratorConfig:
    """Configuration for catalog generation.

    Attributes:
        seed: Random seed for reproducibility.
        products_per_sub_category: Generated products per sub-category.
        include_samples: Whether to include the flagship sample products.
        reference_time: Timestamps are spread backwards from this instant
            (defaults to generation time).
        max_age_days: Oldest generated product age.
    """

    seed: int = 42
    products_per_sub_category: int = 4
    include_samples: bool = True
    reference_time: datetime | None = None
    max_age_days: int = 180
    brands: list[str] = field(default_factory=lambda: list(BRANDS))

    @classmethod
    def small(cls, seed: int = 42) -> "GeneratorConfig":
        """Create config for a small catalog (~50 products).

        Args:
            seed: Random seed.

        Returns:
            Config for small catalog.
        """
        return cls(seed=seed, products_per_sub_category=4)

    @classmethod
    def full(cls, seed: int = 42) -> "GeneratorConfig":
        """Create config for a full catalog (~250 products).

        Args:
            seed: Random seed.

        Returns:
            Config for full catalog.
        """
        return cls(seed=seed, products_per_sub_category=24, max_age_days=365)


# ============================================================================
# Product Generator
# ============================================================================


class ProductGenerator:
    """Generates cosmetics catalogs with deterministic seeding.

    The same config always yields the same products, except for
    timestamps when no reference time is given.

    Example usage:
        generator = ProductGenerator(GeneratorConfig.small())
        for product in generator.generate():
            print(product.name)
    """

    def __init__(self, config: GeneratorConfig) -> None:
        """Initialize generator with configuration.

        Args:
            config: Generator configuration.
        """
        self.config = config
        self.reference_time = config.reference_time or datetime.now(timezone.utc)

    def _deterministic_seed(self, *args: str | int) -> int:
        """Create deterministic seed from arguments.

        Args:
            args: Values to include in seed.

        Returns:
            Deterministic integer seed.
        """
        data = "|".join(str(a) for a in [self.config.seed, *args])
        hash_bytes = hashlib.md5(data.encode()).digest()
        return int.from_bytes(hash_bytes[:4], "big")

    def _rng(self, *args: str | int) -> random.Random:
        return random.Random(self._deterministic_seed(*args))

    def _timestamps(self, rng: random.Random) -> tuple[datetime, datetime | None]:
        """Pick created/published timestamps relative to the reference time."""
        age_days = rng.randint(0, self.config.max_age_days)
        created_at = self.reference_time - timedelta(days=age_days, hours=rng.randint(0, 23))
        if rng.random() < 0.1:
            return created_at, None
        published_at = created_at + timedelta(hours=rng.randint(1, 48))
        published_at = min(published_at, self.reference_time)
        return created_at, published_at

    def _rating(self, rng: random.Random) -> Rating:
        if rng.random() < 0.15:
            return Rating()
        return Rating(
            average=round(rng.uniform(3.2, 5.0), 1),
            count=rng.randint(1, 600),
        )

    def _generate_sample(self, data: dict) -> Product:
        """Build a flagship product.

        Args:
            data: Sample product fields.

        Returns:
            Product with deterministic popularity and timestamps.
        """
        rng = self._rng("sample", data["id"])
        created_at, published_at = self._timestamps(rng)
        if data.get("is_new"):
            created_at = self.reference_time - timedelta(days=rng.randint(1, 7))
            published_at = created_at
        return Product(
            brand=HOUSE_BRAND,
            inventory=rng.randint(20, 300),
            rating=Rating(average=round(rng.uniform(4.2, 4.9), 1), count=rng.randint(120, 900)),
            wishlist_count=rng.randint(50, 500),
            created_at=created_at,
            published_at=published_at,
            slug=data["id"],
            images=(f"/images/products/{data['id']}.jpg",),
            **data,
        )

    def _generate_product(self, category: str, sub_category: str, code: str, index: int) -> Product:
        """Generate a single product.

        Args:
            category: Top-level category.
            sub_category: Sub-category.
            code: Sub-category code used in ids.
            index: Product index within the sub-category.

        Returns:
            Generated product.
        """
        rng = self._rng(category, sub_category, index)

        brand = rng.choice(self.config.brands)
        templates = PRODUCT_TEMPLATES.get(sub_category, PRODUCT_TEMPLATES["default"])
        adjective = rng.choice(ADJECTIVES)
        name = rng.choice(templates).format(adj=adjective)
        if brand != HOUSE_BRAND:
            name = f"{brand} {name}"

        min_price, max_price = PRICE_RANGES.get(sub_category, PRICE_RANGES["default"])
        price = rng.randrange(min_price, max_price + 1, 1000)
        compare_at_price = None
        if rng.random() < 0.25:
            compare_at_price = price + rng.randrange(2000, 15000, 1000)

        pool = INGREDIENTS.get(category, [])
        ingredients = tuple(rng.sample(pool, k=min(len(pool), rng.randint(1, 3))))

        skin_types: tuple[str, ...] = ()
        if category == "스킨케어" and rng.random() < 0.6:
            choices = [s.value for s in SkinType]
            skin_types = tuple(sorted(rng.sample(choices, k=rng.randint(1, 3))))

        created_at, published_at = self._timestamps(rng)
        is_new = (self.reference_time - created_at).days <= 14 and rng.random() < 0.7
        product_id = f"prd-{code}-{index + 100:03d}"

        return Product(
            id=product_id,
            name=name,
            description=f"{adjective} 케어를 위한 {brand}의 {sub_category} 제품. "
            f"주요 성분: {', '.join(ingredients) or '없음'}.",
            short_description=f"{adjective} {sub_category}",
            price=price,
            compare_at_price=compare_at_price,
            category=category,
            sub_category=sub_category,
            brand=brand,
            inventory=rng.randint(0, 250),
            is_new=is_new,
            is_bestseller=rng.random() < 0.15,
            featured=rng.random() < 0.1,
            rating=self._rating(rng),
            wishlist_count=rng.randint(0, 400),
            created_at=created_at,
            published_at=published_at,
            slug=product_id,
            images=(f"/images/products/{product_id}.jpg",),
            ingredients=ingredients,
            skin_types=skin_types,
        )

    def generate(self) -> Iterator[Product]:
        """Generate products.

        Yields:
            Products in a stable order.
        """
        if self.config.include_samples:
            for data in SAMPLE_PRODUCTS:
                yield self._generate_sample(data)

        for category, sub_categories in CATEGORIES.items():
            for sub_category, code in sub_categories.items():
                for index in range(self.config.products_per_sub_category):
                    yield self._generate_product(category, sub_category, code, index)

    def generate_list(self) -> list[Product]:
        """Generate all products as a list.

        Returns:
            List of all generated products.
        """
        return list(self.generate())

    @property
    def expected_count(self) -> int:
        """Number of products ``generate`` yields."""
        sub_category_count = sum(len(subs) for subs in CATEGORIES.values())
        samples = len(SAMPLE_PRODUCTS) if self.config.include_samples else 0
        return samples + sub_category_count * self.config.products_per_sub_category
