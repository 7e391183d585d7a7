"""Error advisor — turns analysis failures into a user-facing title and remedy.

Classifies an exception by keyword sniffing over its message chain:
  network  → check connectivity
  timeout  → shrink the region
  upstream → retry later or use the image path
  cors     → reload the page
  parse    → try the other analysis method
  input    → fix the region
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from roadgraph.core.exceptions import InputError, RoadGraphError, UpstreamFetchError

logger = logging.getLogger("roadgraph.core.advisor")


class ErrorCategory(Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    UPSTREAM = "upstream"
    CORS = "cors"
    PARSE = "parse"
    INPUT = "input"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorAdvice:
    category: ErrorCategory
    title: str
    hint: str


# Checked in order; first match wins.
_PATTERNS: list[tuple[ErrorCategory, str]] = [
    (ErrorCategory.NETWORK, r"(fetch|network|connect|dns|unreachable)"),
    (ErrorCategory.TIMEOUT, r"(timeout|timed out|abort)"),
    (ErrorCategory.CORS, r"cors"),
    (ErrorCategory.PARSE, r"(json|parse|decode)"),
    (ErrorCategory.UPSTREAM, r"(overpass|api|endpoint|status \d{3})"),
]

_ADVICE = {
    ErrorCategory.NETWORK: (
        "Network error",
        "Check your internet connection and try again. Disable any VPN.",
    ),
    ErrorCategory.TIMEOUT: (
        "Request timed out",
        "The region may be too large or the server is not responding. "
        "Try a smaller region.",
    ),
    ErrorCategory.UPSTREAM: (
        "Overpass API error",
        "The OpenStreetMap server has a temporary problem. Retry later "
        "or try the raster analysis path instead.",
    ),
    ErrorCategory.CORS: (
        "CORS error",
        "The request was blocked by a browser security policy. Reload and try again.",
    ),
    ErrorCategory.PARSE: (
        "Data parsing error",
        "The server response could not be processed. Try the other analysis method.",
    ),
    ErrorCategory.INPUT: (
        "Invalid region",
        "Supply a GeoJSON FeatureCollection with at least one Polygon or Point.",
    ),
}


def _message_chain(exc: BaseException) -> str:
    parts = []
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        # Our own class names contain "fetch"; only foreign ones are informative.
        if isinstance(current, RoadGraphError):
            parts.append(str(current))
        else:
            parts.append(f"{type(current).__name__} {current}")
        current = current.__cause__ or current.__context__
    return " ".join(parts).lower()


def classify_error(exc: BaseException) -> ErrorAdvice:
    """Classify an exception into an advisory category."""
    if isinstance(exc, InputError):
        category = ErrorCategory.INPUT
    else:
        text = _message_chain(exc)
        category = ErrorCategory.UNKNOWN
        for candidate, pattern in _PATTERNS:
            if re.search(pattern, text):
                category = candidate
                break
        if category is ErrorCategory.UNKNOWN and isinstance(exc, UpstreamFetchError):
            category = ErrorCategory.UPSTREAM

    if category is ErrorCategory.UNKNOWN:
        advice = ErrorAdvice(category, "Analysis failed", str(exc) or type(exc).__name__)
    else:
        title, hint = _ADVICE[category]
        advice = ErrorAdvice(category, title, hint)

    logger.debug("Advisor: %s → %s", type(exc).__name__, category.value)
    return advice
