"""RoadGraph configuration — upstream, geometry, raster, cache and server settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from roadgraph.core.models import ScanMode


@dataclass(frozen=True)
class OverpassConfig:
    """Upstream road-data service settings.

    Endpoints are tried in order; each attempt is bounded by
    ``request_timeout_s`` on the client side, independent of the
    ``server_timeout_s`` embedded in the query text.
    """

    endpoints: tuple[str, ...] = (
        "https://overpass-api.de/api/interpreter",
        "https://overpass.kumi.systems/api/interpreter",
        "https://overpass.openstreetmap.ru/api/interpreter",
    )
    request_timeout_s: float = 30.0
    backoff_s: float = 2.0
    server_timeout_s: int = 60
    maxsize: int = 1_073_741_824
    user_agent: str = "roadgraph/0.3"


@dataclass(frozen=True)
class GeometryConfig:
    """Tolerances used by the geometry kernel and graph builder."""

    parallel_epsilon: float = 1e-10
    vertex_tolerance: float = 1e-5
    key_precision: int = 6
    large_area_sq_deg: float = 0.01


@dataclass(frozen=True)
class RasterConfig:
    """Raster extraction pipeline settings."""

    image_width: int = 1024
    image_height: int = 1024
    min_component_pixels: int = 6
    meters_per_degree: float = 111_000.0
    primary_min_m: float = 1000.0
    secondary_min_m: float = 500.0
    tertiary_min_m: float = 200.0
    intersection_scan: ScanMode = ScanMode.FULL


@dataclass(frozen=True)
class CacheConfig:
    """Upstream response cache settings."""

    enabled: bool = True
    max_size: int = 64
    ttl_seconds: int = 900


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(frozen=True)
class RoadGraphConfig:
    """Top-level RoadGraph configuration."""

    overpass: OverpassConfig = field(default_factory=OverpassConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    raster: RasterConfig = field(default_factory=RasterConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Base-map tiles for map front-ends; the analysis core never reads it.
    tile_url: str = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"


DEFAULT_CONFIG = RoadGraphConfig()
