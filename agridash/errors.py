"""
Error types surfaced by the AgriDash request boundary.

Provider-level failures never escape a chain; only these do. Each carries the
HTTP status it maps to and renders to the `{error, detail?, suggestions?}`
JSON body returned to callers.
"""

from typing import Dict, List, Optional


class AgriDashError(Exception):
    """Base class for errors returned to API callers."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)

    def to_dict(self) -> Dict:
        body = {"error": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class ValidationError(AgriDashError):
    """Missing or invalid caller input (e.g. no lat/lon, latitude 123)."""

    status_code = 400


class NotFoundError(AgriDashError):
    """Geocoding matched nothing; may carry alternate place suggestions."""

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
        detail: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message, detail)
        self.suggestions = list(suggestions or [])

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["suggestions"] = self.suggestions
        return body


class ChainExhaustedError(AgriDashError):
    """
    Every provider in a category's chain failed.

    `attempts` holds the internal ProviderAttempt records for logging; they
    are never rendered into the response body.
    """

    status_code = 500

    def __init__(
        self,
        category: str,
        detail: Optional[str] = None,
        attempts: Optional[list] = None,
    ):
        self.category = category
        self.attempts = list(attempts or [])
        super().__init__(f"All {category} providers failed", detail)
