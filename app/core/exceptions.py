"""
Application error taxonomy

Every error carries the HTTP status it maps to. The handlers registered in
app.main render them as {"error": ..., "detalle": ...}.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors rendered as JSON error bodies"""

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.detail:
            body["detalle"] = self.detail
        return body


class ValidationError(AppError):
    """Missing or malformed required fields"""

    status_code = 400


class NotFoundError(AppError):
    """Slug or configuration key not found"""

    status_code = 404


class ConfigurationError(AppError):
    """Environment-provided data missing or unusable"""

    status_code = 500


class StoreError(AppError):
    """Persistence failure; the underlying message is only logged"""

    status_code = 500
