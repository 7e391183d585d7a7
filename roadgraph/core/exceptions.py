"""RoadGraph custom exceptions."""

from __future__ import annotations

from typing import Optional


class RoadGraphError(Exception):
    """Base exception for all RoadGraph errors."""


class InputError(RoadGraphError):
    """Raised when the region or other caller input is absent or malformed."""


class UpstreamFetchError(RoadGraphError):
    """Raised when a single upstream endpoint fails (network, status, parse)."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class AllEndpointsFailedError(UpstreamFetchError):
    """Raised once every configured upstream endpoint has failed."""

    def __init__(self, errors: list[UpstreamFetchError]):
        last = errors[-1] if errors else None
        detail = f": {last}" if last else ""
        super().__init__(
            f"All {len(errors)} Overpass endpoints failed{detail}",
            endpoint=last.endpoint if last else None,
            status_code=last.status_code if last else None,
        )
        self.errors = errors


class DataIntegrityError(RoadGraphError):
    """Raised for a malformed individual way or feature; callers skip it."""


class RasterAnalysisError(RoadGraphError):
    """Raised when the raster extraction pipeline fails."""


class GeometryWarning(UserWarning):
    """Emitted for non-fatal geometry concerns such as an oversized bounding box."""
