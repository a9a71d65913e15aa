from __future__ import annotations
"""Exceptions raised by the S3 REST client."""
from typing import Any, Optional


class S3RestError(Exception):
    """Base class for every error raised by this package."""


class S3ClientError(S3RestError):
    """Raised when a request is rejected, either locally or by the service.

    ``status_code`` is None when the request never left the client.
    ``body`` holds the raw response text for service rejections.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: str = "",
        code: Optional[str] = None,
        service_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.code = code
        self.service_message = service_message


class NormalizationError(S3RestError):
    """Raised when an XML tree cannot be normalized to completion.

    ``partial`` is the value built before the failure.
    """

    def __init__(self, message: str, partial: Any = None):
        super().__init__(message)
        self.partial = partial


class BindingError(S3RestError):
    """Raised when a normalized value does not fit the requested record."""

    def __init__(self, message: str, *, record: str, field: str, value: Any = None):
        super().__init__(message)
        self.record = record
        self.field = field
        self.value = value
