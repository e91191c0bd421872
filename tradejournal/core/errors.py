"""
Error Taxonomy
==============
Validation errors are raised by the normalizer. Upstream failures are
classified into a small set of kinds that callers may retry; nothing here
retries on its own.
"""
import asyncio
from typing import Optional

import httpx
import psycopg

from tradejournal.core.constants import LOAD_ERROR_MESSAGES


class JournalError(Exception):
    """Base class for all trade journal errors."""


class TradeValidationError(JournalError):
    """A raw trade record is malformed and cannot be normalized."""

    def __init__(self, message: str, record: Optional[dict] = None):
        super().__init__(message)
        self.record = record


class TradeSourceError(JournalError):
    kind = "unknown"

    def __init__(self, detail: str = "", cause: Optional[BaseException] = None):
        super().__init__(detail or self.message)
        self.detail = detail
        self.cause = cause

    @property
    def message(self) -> str:
        """User-facing message for this kind of failure."""
        return LOAD_ERROR_MESSAGES[self.kind]


class RateLimitedError(TradeSourceError):
    kind = "rate_limited"


class UpstreamUnavailableError(TradeSourceError):
    kind = "upstream_unavailable"


class UpstreamAuthError(TradeSourceError):
    kind = "authentication"


class UpstreamTimeoutError(TradeSourceError):
    kind = "timeout"


class UnknownUpstreamError(TradeSourceError):
    kind = "unknown"


def _classify_status(status: int) -> Optional[type]:
    if status == 429:
        return RateLimitedError
    if status in (401, 403):
        return UpstreamAuthError
    if status in (408, 504):
        return UpstreamTimeoutError
    if status >= 500:
        return UpstreamUnavailableError
    return None


def _classify_text(text: str) -> Optional[type]:
    lowered = text.lower()
    if "429" in text or "too many requests" in lowered or "rate limit" in lowered:
        return RateLimitedError
    if "timeout" in lowered or "timed out" in lowered or "econnaborted" in lowered:
        return UpstreamTimeoutError
    if "api key" in lowered or "401" in text or "403" in text or "unauthorized" in lowered:
        return UpstreamAuthError
    if "503" in text or "service unavailable" in lowered or "connection refused" in lowered:
        return UpstreamUnavailableError
    return None


def classify_error(exc: BaseException) -> TradeSourceError:
    """
    Map any exception raised by an upstream collaborator onto the taxonomy.
    Already-classified errors pass through unchanged.
    """
    if isinstance(exc, TradeSourceError):
        return exc

    detail = str(exc) or exc.__class__.__name__
    error_cls = None

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        error_cls = UpstreamTimeoutError
    elif isinstance(exc, httpx.HTTPStatusError):
        error_cls = _classify_status(exc.response.status_code)
    elif isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
        error_cls = UpstreamUnavailableError
    elif isinstance(exc, psycopg.OperationalError):
        error_cls = _classify_text(detail) or UpstreamUnavailableError

    if error_cls is None:
        error_cls = _classify_text(detail) or UnknownUpstreamError

    return error_cls(detail, cause=exc)
