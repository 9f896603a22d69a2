"""Page slicing over a ranked sequence."""

from collections.abc import Sequence

from storefront.domain.value_objects import Page, PaginationMeta, RankedCandidate


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed for ``total_count`` items (0 when empty)."""
    return (total_count + page_size - 1) // page_size


def paginate(ranked: Sequence[RankedCandidate], page: int, page_size: int) -> Page:
    """Slice one page out of a ranked sequence.

    A page beyond the last one is an empty slice with correct metadata.

    Args:
        ranked: Totally ordered candidates.
        page: 1-indexed page number (>= 1).
        page_size: Items per page (>= 1).

    Returns:
        Page of candidates.
    """
    total_count = len(ranked)
    start = (page - 1) * page_size
    items = tuple(ranked[start : start + page_size])

    return Page(
        items=items,
        meta=PaginationMeta(
            current_page=page,
            total_pages=total_pages(total_count, page_size),
            total_count=total_count,
            page_size=page_size,
        ),
    )
