# stamp_service/errors.py
from __future__ import annotations


class StampError(Exception):
    """Base class for failures raised while stamping a document."""


class ValidationError(StampError):
    pass


class FetchError(StampError):
    pass


class ParseError(StampError):
    pass


class UploadError(StampError):
    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ResponseShapeError(StampError):
    pass
