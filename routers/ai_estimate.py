# routers/ai_estimate.py

from fastapi import APIRouter

from routers.comparable import calculate_payload, http_error
from schemas import AiCalculateRequest, AiEstimateRequest
from services.errors import ComparableError
from services.metric_estimator import estimate_artist_metrics


router = APIRouter(
    prefix="/api/ai",
    tags=["AI Metric Estimation"],
)


@router.post("/estimate")
def estimate_metrics(req: AiEstimateRequest):
    """
    Infer the artist's engagement metrics with the language model.
    """
    try:
        estimate = estimate_artist_metrics(req.artistName)
    except ComparableError as e:
        raise http_error(e)

    return {"success": True, **estimate.to_dict()}


@router.post("/calculate")
def estimate_and_calculate(req: AiCalculateRequest):
    """
    Infer metrics, then run the Comparable calculation on them.
    """
    try:
        estimate = estimate_artist_metrics(req.artistName)
        payload = calculate_payload(estimate.metrics, req.customParams, req.targetTier)
    except ComparableError as e:
        raise http_error(e)

    return {**payload, "estimate": estimate.to_dict()}
