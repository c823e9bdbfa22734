from pydantic import BaseModel, Field
from typing import Any, Optional


# ============================================================
# CALCULATE
# ============================================================
class CalculateRequest(BaseModel):
    """
    Body of POST /api/calculate.

    artistData and customParams stay loosely typed here: they are
    validated by services.config_loader so that bad values are answered
    with a 400 invalid_input error instead of a schema error.
    """

    artistData: Any = None
    customParams: Any = None
    targetTier: Optional[str] = None


# ============================================================
# AI ESTIMATION
# ============================================================
class AiEstimateRequest(BaseModel):
    artistName: str = Field(default="", description="Artist to estimate metrics for.")


class AiCalculateRequest(AiEstimateRequest):
    customParams: Any = None
    targetTier: Optional[str] = None


# ============================================================
# CONTACT FORM
# ============================================================
class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    message: Optional[str] = None
