"""Tests for error classification."""

import httpx
import pytest

from roadgraph.core.advisor import ErrorCategory, classify_error
from roadgraph.core.exceptions import (
    AllEndpointsFailedError,
    InputError,
    RasterAnalysisError,
    UpstreamFetchError,
)


def failed(*messages, status=None):
    return AllEndpointsFailedError(
        [UpstreamFetchError(m, endpoint="https://e", status_code=status) for m in messages]
    )


class TestClassifyError:
    def test_input(self):
        advice = classify_error(InputError("No valid coordinates found"))
        assert advice.category is ErrorCategory.INPUT
        assert advice.title == "Invalid region"

    def test_network(self):
        advice = classify_error(failed("Network error contacting https://e: refused"))
        assert advice.category is ErrorCategory.NETWORK

    def test_timeout(self):
        advice = classify_error(failed("Request to https://e timed out after 30s"))
        assert advice.category is ErrorCategory.TIMEOUT
        assert "smaller region" in advice.hint

    def test_status_is_upstream(self):
        advice = classify_error(failed("https://e returned status 504", status=504))
        assert advice.category is ErrorCategory.UPSTREAM
        assert "raster analysis" in advice.hint

    def test_parse(self):
        advice = classify_error(failed("Invalid JSON from https://e: Expecting value"))
        assert advice.category is ErrorCategory.PARSE

    def test_cors(self):
        assert classify_error(RuntimeError("Blocked by CORS policy")).category is ErrorCategory.CORS

    def test_foreign_exception_names_count(self):
        request = httpx.Request("POST", "https://e")
        assert classify_error(httpx.ConnectError("x", request=request)).category is ErrorCategory.NETWORK

    def test_cause_chain(self):
        try:
            try:
                raise TimeoutError("slow")
            except TimeoutError as exc:
                raise RasterAnalysisError("Image analysis failed") from exc
        except RasterAnalysisError as exc:
            err = exc
        assert classify_error(err).category is ErrorCategory.TIMEOUT

    def test_bare_upstream_error(self):
        advice = classify_error(UpstreamFetchError("something odd"))
        assert advice.category is ErrorCategory.UPSTREAM

    @pytest.mark.parametrize("exc", [RuntimeError("boom"), RasterAnalysisError("bad pixels")])
    def test_unknown(self, exc):
        advice = classify_error(exc)
        assert advice.category is ErrorCategory.UNKNOWN
        assert advice.title == "Analysis failed"
        assert advice.hint == str(exc)
