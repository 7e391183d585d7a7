"""RoadGraph — road-network extraction and intersection analysis for a region.

One-liner API::

    import roadgraph

    region = roadgraph.load_region("area.geojson")
    network = roadgraph.analyze(region, clip=True)
    network = roadgraph.analyze_image(region, options={"sensitivity": 0.8})
    roadgraph.save_result(network, "network.geojson")
"""

__version__ = "0.3.0"

from roadgraph.api import NetworkResult, analyze, analyze_image, load_region, save_result

__all__ = [
    "analyze",
    "analyze_image",
    "load_region",
    "save_result",
    "NetworkResult",
    "__version__",
]
