"""Tests for the boundary clipper."""

from roadgraph.geometry.clipper import clip_to_boundary


def line(coords, **props):
    return {"type": "Feature", "geometry": {"type": "LineString", "coordinates": coords},
            "properties": props}


def point(coords, **props):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": coords},
            "properties": props}


class TestClipToBoundary:
    def test_inside_kept_outside_dropped(self, region):
        inside = line([[0.002, 0.002], [0.004, 0.004]], name="in")
        outside = line([[0.02, 0.02], [0.03, 0.03]], name="out")
        kept = clip_to_boundary([inside, outside], region)
        assert [f["properties"]["name"] for f in kept] == ["in"]

    def test_partially_inside_kept_whole(self, region):
        crossing = line([[0.005, 0.005], [0.05, 0.005]])
        kept = clip_to_boundary([crossing], region)
        assert kept[0]["geometry"]["coordinates"] == [[0.005, 0.005], [0.05, 0.005]]

    def test_line_spanning_without_inside_vertex_dropped(self, region):
        spanning = line([[-0.01, 0.005], [0.02, 0.005]])
        assert clip_to_boundary([spanning], region) == []

    def test_points(self, region):
        kept = clip_to_boundary([point([0.005, 0.005]), point([1, 1])], region)
        assert len(kept) == 1
        assert kept[0]["geometry"]["coordinates"] == [0.005, 0.005]

    def test_other_types_dropped(self, region):
        poly = {"type": "Feature", "properties": {},
                "geometry": {"type": "Polygon", "coordinates": [[[0.001, 0.001], [0.002, 0.001], [0.002, 0.002]]]}}
        assert clip_to_boundary([poly], region) == []

    def test_no_polygon_returns_input(self):
        features = [line([[5, 5], [6, 6]])]
        region = {"type": "FeatureCollection", "features": [point([0, 0])]}
        assert clip_to_boundary(features, region) == features

    def test_any_polygon_counts(self, make_region):
        region = make_region()
        region["features"] += make_region(1.0, 1.0, 1.01, 1.01)["features"]
        far = line([[1.005, 1.005], [1.006, 1.006]])
        assert len(clip_to_boundary([far], region)) == 1

    def test_result_is_a_copy(self, region):
        inside = line([[0.002, 0.002], [0.004, 0.004]], name="in")
        kept = clip_to_boundary([inside], region)
        kept[0]["properties"]["name"] = "changed"
        assert inside["properties"]["name"] == "in"

    def test_malformed_feature_skipped(self, region):
        assert clip_to_boundary([{"type": "Feature"}, line([[0.005, 0.005], [0.006, 0.006]])], region)
