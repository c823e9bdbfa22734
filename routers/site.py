import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from schemas import ContactRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Site"])


@router.get("/health")
def api_health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.post("/contact")
def contact(req: ContactRequest):
    # Acknowledged only; submissions are not stored.
    logger.info(
        "Contact form received name=%r company=%r has_message=%s",
        req.name, req.company, bool(req.message),
    )
    return {"success": True, "message": "Thank you for your interest!"}
