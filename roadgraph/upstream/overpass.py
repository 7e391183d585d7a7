"""Overpass API client — query construction and endpoint failover.

Each query is POSTed as ``text/plain`` to the configured endpoints in
priority order. A failing endpoint (transport error, timeout, non-2xx
status, unparseable body) is logged and the next one is tried after a
fixed backoff. Only when every endpoint has failed is an error raised.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from roadgraph.core.cache import ResponseCache
from roadgraph.core.config import DEFAULT_CONFIG, CacheConfig, OverpassConfig
from roadgraph.core.exceptions import AllEndpointsFailedError, UpstreamFetchError
from roadgraph.core.models import BoundingBox

logger = logging.getLogger("roadgraph.upstream.overpass")

QUERY_TEMPLATE = """\
[out:json][timeout:{timeout}][maxsize:{maxsize}];
(
  way["highway"]({bbox});
  way["aeroway"~"^(runway|taxiway)$"]({bbox});
  way["railway"~"^(rail|light_rail|subway|tram)$"]({bbox});
  way["waterway"~"^(river|stream|canal)$"]({bbox});
);
out geom;
"""


def build_overpass_query(
    bbox: BoundingBox,
    server_timeout: int = DEFAULT_CONFIG.overpass.server_timeout_s,
    maxsize: int = DEFAULT_CONFIG.overpass.maxsize,
) -> str:
    """Build the Overpass QL query for highway, aeroway, railway and waterway ways."""
    return QUERY_TEMPLATE.format(
        timeout=server_timeout,
        maxsize=maxsize,
        bbox=bbox.as_query_bbox(),
    )


class OverpassClient:
    """Submits Overpass queries with endpoint failover.

    Usage::

        client = OverpassClient()
        data = client.fetch(build_overpass_query(bbox))
        elements = data["elements"]

    Parameters
    ----------
    config : OverpassConfig
        Endpoints, timeouts and backoff.
    http_client : httpx.Client, optional
        Injected client (tests pass one backed by ``httpx.MockTransport``).
    sleep : callable
        Used for the inter-endpoint backoff.
    cache : ResponseCache, optional
        Decoded responses keyed by query text.
    """

    def __init__(
        self,
        config: OverpassConfig = DEFAULT_CONFIG.overpass,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        cache: Optional[ResponseCache] = None,
    ):
        if not config.endpoints:
            raise ValueError("OverpassConfig.endpoints must not be empty")
        self.config = config
        self._client = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self.cache = cache

    @classmethod
    def with_cache(
        cls,
        config: OverpassConfig = DEFAULT_CONFIG.overpass,
        cache_config: CacheConfig = DEFAULT_CONFIG.cache,
        **kwargs: Any,
    ) -> "OverpassClient":
        cache = None
        if cache_config.enabled:
            cache = ResponseCache(cache_config.max_size, cache_config.ttl_seconds)
        return cls(config, cache=cache, **kwargs)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"User-Agent": self.config.user_agent},
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "OverpassClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def fetch(self, query: str) -> dict[str, Any]:
        """Return the decoded JSON of the first endpoint that answers.

        Raises
        ------
        AllEndpointsFailedError
            After every endpoint failed; ``errors`` holds each attempt's
            error and the last one is chained as ``__cause__``.
        """
        if self.cache is not None:
            cached = self.cache.get(query)
            if cached is not None:
                return cached

        errors: list[UpstreamFetchError] = []
        endpoints = self.config.endpoints
        for attempt, endpoint in enumerate(endpoints):
            if attempt > 0:
                logger.info("Retrying with next endpoint in %.1fs", self.config.backoff_s)
                self._sleep(self.config.backoff_s)
            try:
                data = self._post(endpoint, query)
            except UpstreamFetchError as exc:
                logger.warning(
                    "Overpass endpoint %d/%d failed: %s", attempt + 1, len(endpoints), exc
                )
                errors.append(exc)
                continue

            logger.info(
                "Overpass endpoint %s returned %d elements",
                endpoint,
                len(data.get("elements") or []),
            )
            if self.cache is not None:
                self.cache.put(query, data)
            return data

        raise AllEndpointsFailedError(errors) from errors[-1]

    def _post(self, endpoint: str, query: str) -> dict[str, Any]:
        try:
            response = self.client.post(
                endpoint,
                content=query.encode("utf-8"),
                headers={"Content-Type": "text/plain"},
                timeout=self.config.request_timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamFetchError(
                f"Request to {endpoint} timed out after {self.config.request_timeout_s:g}s",
                endpoint=endpoint,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                f"Network error contacting {endpoint}: {exc}",
                endpoint=endpoint,
            ) from exc

        if not response.is_success:
            raise UpstreamFetchError(
                f"{endpoint} returned status {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamFetchError(
                f"Invalid JSON from {endpoint}: {exc}",
                endpoint=endpoint,
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamFetchError(
                f"Invalid JSON from {endpoint}: expected an object",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        return data
