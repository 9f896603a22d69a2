"""Application services.

The query facade and best-effort tracking.
"""

from storefront.application.query_service import (
    QueryService,
    SearchSuggestions,
    TermList,
    get_query_service,
)
from storefront.application.tracking_service import (
    EventLog,
    TrackingService,
    get_event_log,
    get_tracking_service,
)

__all__ = [
    "EventLog",
    "QueryService",
    "SearchSuggestions",
    "TermList",
    "TrackingService",
    "get_event_log",
    "get_query_service",
    "get_tracking_service",
]
