"""Tests for the catalog generator."""

from datetime import datetime, timezone

from storefront.catalog.generator import (
    CATEGORIES,
    HOUSE_BRAND,
    SAMPLE_PRODUCTS,
    GeneratorConfig,
    ProductGenerator,
)
from storefront.domain.entities import Product

REFERENCE = datetime(2026, 1, 15, tzinfo=timezone.utc)


def generate(**kwargs) -> list[Product]:
    config = GeneratorConfig(reference_time=REFERENCE, **kwargs)
    return ProductGenerator(config).generate_list()


class TestProductGenerator:
    """Tests for ProductGenerator."""

    def test_deterministic(self) -> None:
        """Same seed and reference time produce identical catalogs."""
        assert generate(seed=7) == generate(seed=7)

    def test_seed_changes_catalog(self) -> None:
        """Different seeds produce different generated products."""
        first = [p.name for p in generate(seed=1, include_samples=False)]
        second = [p.name for p in generate(seed=2, include_samples=False)]
        assert first != second

    def test_expected_count(self) -> None:
        """Count matches samples plus generated products."""
        generator = ProductGenerator(GeneratorConfig.small())
        products = generator.generate_list()
        sub_categories = sum(len(subs) for subs in CATEGORIES.values())

        assert len(products) == generator.expected_count
        assert generator.expected_count == len(SAMPLE_PRODUCTS) + 4 * sub_categories

    def test_full_is_larger(self) -> None:
        """Full mode generates more products per sub-category."""
        small = ProductGenerator(GeneratorConfig.small()).expected_count
        full = ProductGenerator(GeneratorConfig.full()).expected_count
        assert full > small

    def test_ids_are_unique(self) -> None:
        """Every product id is distinct."""
        products = generate(products_per_sub_category=10)
        assert len({p.id for p in products}) == len(products)

    def test_samples_are_house_brand(self) -> None:
        """Flagship samples keep their ids and the house brand."""
        products = {p.id: p for p in generate()}
        serum = products["prd-srm-001"]
        assert serum.brand == HOUSE_BRAND
        assert serum.price == 68000
        assert serum.rating.is_rated

    def test_generated_fields_are_valid(self) -> None:
        """Generated products are internally consistent."""
        for product in generate(include_samples=False):
            assert product.price > 0
            assert product.category in CATEGORIES
            assert product.sub_category in CATEGORIES[product.category]
            assert product.created_at <= REFERENCE
            if product.published_at is not None:
                assert product.created_at <= product.published_at <= REFERENCE
            if product.compare_at_price is not None:
                assert product.compare_at_price > product.price
            assert 0.0 <= product.rating.average <= 5.0
            assert product.is_active

    def test_timestamps_within_max_age(self) -> None:
        """No product is older than the configured maximum age."""
        for product in generate(max_age_days=30, include_samples=False):
            assert (REFERENCE - product.created_at).days <= 31
