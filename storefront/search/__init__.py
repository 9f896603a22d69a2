"""Search module.

Query normalization, structured filtering with facets, ranking and
pagination.
"""

from storefront.search.filters import FilterEvaluator, FilterOutcome, SkinTypeMatcher
from storefront.search.normalizer import QueryNormalizer
from storefront.search.pagination import paginate
from storefront.search.ranking import Ranker, RankingWeights

__all__ = [
    "FilterEvaluator",
    "FilterOutcome",
    "QueryNormalizer",
    "Ranker",
    "RankingWeights",
    "SkinTypeMatcher",
    "paginate",
]
