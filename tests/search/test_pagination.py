"""Tests for page slicing."""

import itertools

import pytest

from storefront.domain.value_objects import RankedCandidate
from storefront.search.pagination import paginate, total_pages


@pytest.fixture
def ranked_factory(make_product):
    """Build a ranked sequence of the given length."""

    def build(count: int) -> list[RankedCandidate]:
        return [
            RankedCandidate(make_product(f"p-{i:03d}"), float(count - i)) for i in range(count)
        ]

    return build


class TestPaginate:
    """Tests for paginate."""

    def test_first_page(self, ranked_factory) -> None:
        """First page slice and metadata."""
        page = paginate(ranked_factory(45), page=1, page_size=20)
        assert len(page.items) == 20
        assert page.meta.total_count == 45
        assert page.meta.total_pages == 3
        assert page.meta.has_next_page
        assert not page.meta.has_prev_page

    def test_last_partial_page(self, ranked_factory) -> None:
        """Last page holds the remainder."""
        page = paginate(ranked_factory(45), page=3, page_size=20)
        assert [c.product_id for c in page.items] == [f"p-{i:03d}" for i in range(40, 45)]
        assert not page.meta.has_next_page
        assert page.meta.has_prev_page

    def test_empty_sequence(self, ranked_factory) -> None:
        """Zero results have zero pages."""
        page = paginate(ranked_factory(0), page=1, page_size=20)
        assert page.items == ()
        assert page.meta.total_pages == 0
        assert not page.meta.has_next_page
        assert not page.meta.has_prev_page

    def test_total_pages(self) -> None:
        """Ceiling division."""
        assert total_pages(0, 10) == 0
        assert total_pages(1, 10) == 1
        assert total_pages(10, 10) == 1
        assert total_pages(11, 10) == 2

    def test_beyond_range_is_empty_with_metadata(self, ranked_factory) -> None:
        """Pages past the end are empty, never an error."""
        for count, size in itertools.product(range(0, 26), (1, 3, 7, 20)):
            ranked = ranked_factory(count)
            pages = total_pages(count, size)
            for page_number in range(pages + 1, pages + 4):
                page = paginate(ranked, page=page_number, page_size=size)
                assert page.items == ()
                assert page.meta.total_count == count
                assert page.meta.total_pages == pages
                assert page.meta.has_next_page is False
                assert page.meta.has_prev_page is (page_number > 1)

    def test_pages_partition_the_sequence(self, ranked_factory) -> None:
        """Concatenated pages equal the ranked sequence exactly."""
        for count, size in itertools.product(range(0, 26), (1, 2, 5, 9, 25, 100)):
            ranked = ranked_factory(count)
            pages = total_pages(count, size)
            collected: list[RankedCandidate] = []
            for page_number in range(1, pages + 1):
                collected.extend(paginate(ranked, page_number, size).items)
            assert sum(
                len(paginate(ranked, n, size).items) for n in range(1, pages + 1)
            ) == count
            assert collected == ranked
