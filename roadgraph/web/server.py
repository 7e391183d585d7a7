"""FastAPI backend for RoadGraph.

Provides:
  - GET  /health             — liveness check
  - POST /api/analyze        — Overpass road network + intersections
  - POST /api/analyze/image  — raster road extraction
  - POST /api/stats          — feature / road / intersection counts
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from roadgraph import __version__
from roadgraph.analysis.image import ImageRoadAnalyzer
from roadgraph.analysis.vector import VectorRoadAnalyzer
from roadgraph.core.advisor import classify_error
from roadgraph.core.config import DEFAULT_CONFIG, RoadGraphConfig
from roadgraph.core.exceptions import InputError, RoadGraphError, UpstreamFetchError
from roadgraph.core.models import AnalysisOutcome, ImageAnalysisOptions
from roadgraph.editing.session import network_stats
from roadgraph.raster.source import SyntheticImageSource

logger = logging.getLogger("roadgraph.web.server")


def load_config() -> RoadGraphConfig:
    """DEFAULT_CONFIG with overrides from the environment."""
    config = DEFAULT_CONFIG
    raw = os.getenv("ROADGRAPH_OVERPASS_ENDPOINTS", "")
    endpoints = tuple(e.strip() for e in raw.split(",") if e.strip())
    if endpoints:
        overpass = dataclasses.replace(config.overpass, endpoints=endpoints)
        config = dataclasses.replace(config, overpass=overpass)
        logger.info("Using %d Overpass endpoint(s) from environment", len(endpoints))
    return config


# ── Shared State ───────────────────────────────────────────────

_config = load_config()
_vector_analyzer: Optional[VectorRoadAnalyzer] = None


def get_vector_analyzer() -> VectorRoadAnalyzer:
    """Shared analyzer so the Overpass response cache survives across requests."""
    global _vector_analyzer
    if _vector_analyzer is None:
        _vector_analyzer = VectorRoadAnalyzer(_config)
    return _vector_analyzer


def get_config() -> RoadGraphConfig:
    return _config


# ── FastAPI App ────────────────────────────────────────────────

app = FastAPI(title="RoadGraph", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RoadGraphError)
async def roadgraph_error_handler(request: Request, exc: RoadGraphError):
    if isinstance(exc, InputError):
        status = 400
    elif isinstance(exc, UpstreamFetchError):
        status = 502
    else:
        status = 500
    advice = classify_error(exc)
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "category": advice.category.value, "hint": advice.hint},
    )


class AnalyzeBody(BaseModel):
    region: dict[str, Any]
    clip: bool = False
    mode: str = "intersections"


class ImageAnalyzeBody(BaseModel):
    region: dict[str, Any]
    options: Optional[dict[str, Any]] = None
    clip: bool = False
    seed: Optional[int] = None


class NetworkBody(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]] = []


def _outcome_response(outcome: AnalysisOutcome) -> dict:
    return {
        **outcome.to_geojson(),
        "bbox": outcome.bbox.to_dict(),
        "source": outcome.source,
        "warnings": outcome.warnings,
        "stats": network_stats(outcome.to_geojson()),
    }


# ── REST API ───────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@app.post("/api/analyze")
def analyze(body: AnalyzeBody, analyzer: VectorRoadAnalyzer = Depends(get_vector_analyzer)):
    """Fetch roads for the region and build the intersection graph."""
    outcome = analyzer.analyze(body.region, clip=body.clip, mode=body.mode)
    return _outcome_response(outcome)


@app.post("/api/analyze/image")
def analyze_image(body: ImageAnalyzeBody, config: RoadGraphConfig = Depends(get_config)):
    """Extract roads for the region from a synthetic scene."""
    options = ImageAnalysisOptions.from_dict(body.options)
    source = SyntheticImageSource(
        config.raster.image_width, config.raster.image_height, seed=body.seed
    )
    analyzer = ImageRoadAnalyzer(config, image_source=source)
    outcome = analyzer.analyze(body.region, options, clip=body.clip)
    return _outcome_response(outcome)


@app.post("/api/stats")
async def stats(body: NetworkBody):
    """Count features, roads and intersections in a network."""
    return network_stats({"features": body.features})


def run(host: str = DEFAULT_CONFIG.server.host, port: int = DEFAULT_CONFIG.server.port):
    """CLI entry point."""
    import uvicorn

    uvicorn.run(
        "roadgraph.web.server:app",
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    run()
