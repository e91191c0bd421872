"""Classification of upstream failures."""
import asyncio

import httpx
import pytest

from tradejournal.core.constants import LOAD_ERROR_MESSAGES
from tradejournal.core.errors import (
    RateLimitedError,
    TradeSourceError,
    UpstreamAuthError,
    classify_error,
)

REQUEST = httpx.Request("GET", "https://upstream.test/trades")


def status_error(status):
    return httpx.HTTPStatusError("error", request=REQUEST, response=httpx.Response(status, request=REQUEST))


@pytest.mark.parametrize("exc, kind", [
    (httpx.ReadTimeout("timed out", request=REQUEST), "timeout"),
    (asyncio.TimeoutError(), "timeout"),
    (status_error(429), "rate_limited"),
    (status_error(401), "authentication"),
    (status_error(403), "authentication"),
    (status_error(503), "upstream_unavailable"),
    (status_error(500), "upstream_unavailable"),
    (status_error(504), "timeout"),
    (status_error(404), "unknown"),
    (httpx.ConnectError("connection refused", request=REQUEST), "upstream_unavailable"),
    (RuntimeError("429 Too Many Requests"), "rate_limited"),
    (RuntimeError("Invalid API key"), "authentication"),
    (RuntimeError("Service Unavailable"), "upstream_unavailable"),
    (RuntimeError("ECONNABORTED"), "timeout"),
    (RuntimeError("something odd"), "unknown"),
])
def test_classification(exc, kind):
    error = classify_error(exc)
    assert isinstance(error, TradeSourceError)
    assert error.kind == kind
    assert error.cause is exc


def test_classified_errors_pass_through():
    original = UpstreamAuthError("bad key")
    assert classify_error(original) is original


def test_each_kind_has_a_distinct_message():
    assert len(set(LOAD_ERROR_MESSAGES.values())) == len(LOAD_ERROR_MESSAGES) == 5
    assert RateLimitedError().message == LOAD_ERROR_MESSAGES["rate_limited"]
    assert str(RateLimitedError()) == LOAD_ERROR_MESSAGES["rate_limited"]
