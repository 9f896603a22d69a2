"""Recommendation API endpoints.

Provides typed recommendations and fire-and-forget tracking.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from storefront.api.schemas import (
    ErrorResponse,
    RecommendationResponse,
    TrackInteractionRequest,
    TrackRecommendationRequest,
    TrackResponse,
    recommendation_to_schema,
)
from storefront.application.query_service import QueryService, get_query_service
from storefront.application.tracking_service import TrackingService, get_tracking_service
from storefront.domain.value_objects import RecommendationRequest
from storefront.recommendation.engine import resolve_type
from storefront.search.normalizer import parse_int

logger = structlog.get_logger()

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> QueryService:
    """Get query service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_query_service(request_id=request_id)


def get_tracker(request: Request) -> TrackingService:
    """Get tracking service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_tracking_service(request_id=request_id)


def parse_exclude(raw: str | None) -> frozenset[str]:
    """Parse a comma-separated exclusion list."""
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


# ============================================================================
# Tracking Endpoints
# ============================================================================


@router.post(
    "/track",
    response_model=TrackResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Track recommendation impression",
)
async def track_recommendation(
    body: TrackRecommendationRequest,
    tracker: Annotated[TrackingService, Depends(get_tracker)],
    background_tasks: BackgroundTasks,
) -> TrackResponse:
    """Accept an impression event; it is recorded after the response.

    Args:
        body: Impression event.
        tracker: Tracking service.
        background_tasks: Scheduler for the tracking call.

    Returns:
        Acknowledgement.
    """
    background_tasks.add_task(
        tracker.track_recommendation,
        recommendation_type=body.recommendation_type,
        product_ids=body.product_ids,
        user_id=body.user_id,
        context=body.context,
    )
    return TrackResponse()


@router.post(
    "/track-interaction",
    response_model=TrackResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Track recommendation interaction",
)
async def track_interaction(
    body: TrackInteractionRequest,
    tracker: Annotated[TrackingService, Depends(get_tracker)],
    background_tasks: BackgroundTasks,
) -> TrackResponse:
    """Accept an interaction event; it is recorded after the response.

    Args:
        body: Interaction event.
        tracker: Tracking service.
        background_tasks: Scheduler for the tracking call.

    Returns:
        Acknowledgement.
    """
    background_tasks.add_task(
        tracker.track_interaction,
        product_id=body.product_id,
        action=body.action,
        user_id=body.user_id,
        recommendation_type=body.recommendation_type,
        session_id=body.session_id,
        order_id=body.order_id,
        metadata=body.metadata,
    )
    return TrackResponse()


# ============================================================================
# Recommendation Endpoint
# ============================================================================


@router.get(
    "/{type_tag}",
    response_model=RecommendationResponse,
    responses={
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Get recommendations",
    description=(
        "Recommendations of the given type. Missing signals (no history, no "
        "declared skin type) fall back to a more general type."
    ),
)
async def get_recommendations(
    type_tag: str,
    service: Annotated[QueryService, Depends(get_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    product_id: Annotated[str | None, Query(alias="productId")] = None,
    category: str | None = None,
    limit: str | None = None,
    exclude: str | None = None,
) -> RecommendationResponse:
    """Get recommendations.

    Args:
        type_tag: Recommendation type (e.g. "similar", "skin-type").
        service: Query service.
        user_id: Subject user.
        product_id: Subject product.
        category: Category constraint.
        limit: Requested count.
        exclude: Comma-separated product ids to omit.

    Returns:
        Recommended products with reason and confidence.

    Raises:
        UnknownRecommendationTypeError: If the type is not known (404).
    """
    request = RecommendationRequest(
        type=resolve_type(type_tag),
        user_id=user_id or None,
        product_id=product_id or None,
        category=(category or "").strip() or None,
        limit=parse_int(limit) or service.config.recommendation_default_limit,
        exclude=parse_exclude(exclude),
    )
    result = await service.recommend(request)
    return recommendation_to_schema(result)
