# services/errors.py
from __future__ import annotations

from typing import Any, Dict


class ComparableError(Exception):
    """
    Base error for the Comparable forecasting service.

    status_code is the HTTP status the routers answer with.
    """

    status_code: int = 500
    kind: str = "comparable_error"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class InvalidInput(ComparableError, ValueError):
    """Missing or malformed caller input (artist metrics, config overrides)."""

    status_code = 400
    kind = "invalid_input"


class UpstreamFailure(ComparableError):
    """
    The external estimation service could not be used.

    400 when credentials are missing, 500 for transport failures
    and unparseable responses.
    """

    status_code = 500
    kind = "upstream_failure"


class ComputationFailure(ComparableError):
    status_code = 500
    kind = "computation_failure"
