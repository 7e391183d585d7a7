"""Tests for network editing."""

import copy

import pytest

from roadgraph.core.exceptions import InputError
from roadgraph.editing.session import EditSession, feature_identifier, network_stats, split_network


@pytest.fixture
def network():
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "id": 1,
             "geometry": {"type": "LineString", "coordinates": [[0, 0.005], [0.005, 0.005], [0.01, 0.005]]},
             "properties": {"highway": "residential"}},
            {"type": "Feature", "id": 2,
             "geometry": {"type": "LineString", "coordinates": [[0.005, 0], [0.005, 0.005], [0.005, 0.01]]},
             "properties": {"highway": "primary"}},
            {"type": "Feature",
             "geometry": {"type": "Point", "coordinates": [0.005, 0.005]},
             "properties": {"isIntersection": True, "connectedRoads": [1, 2]}},
        ],
    }


class TestIdentifiers:
    def test_by_id(self, network):
        assert feature_identifier(network["features"][0]) == "id-1"

    def test_by_coordinates(self, network):
        assert feature_identifier(network["features"][2]) == "coords-0.005-0.005-0.005-0.005-1"

    def test_by_index(self):
        assert feature_identifier({"type": "Feature", "geometry": None}, 4) == "idx-4"

    def test_none(self):
        assert feature_identifier(None) is None


class TestStats:
    def test_counts(self, network):
        assert network_stats(network) == {"total": 3, "roads": 2, "intersections": 1}

    def test_empty(self):
        assert network_stats({}) == {"total": 0, "roads": 0, "intersections": 0}

    def test_split(self, network):
        roads, points = split_network(network)
        assert len(roads["features"]) == 2
        assert len(points["features"]) == 1


class TestEditSession:
    def test_requires_collection(self):
        with pytest.raises(InputError):
            EditSession({"type": "Feature"})

    def test_input_never_modified(self, network):
        before = copy.deepcopy(network)
        session = EditSession(network)
        session.delete_feature("id-1")
        session.move_intersection(session.identifiers()[-1], 1, 1)
        assert network == before

    def test_toggle_selection(self, network):
        session = EditSession(network)
        road = network["features"][0]
        assert session.toggle_selection(road) == "id-1"
        assert session.toggle_selection(road) is None
        session.toggle_selection(road)
        session.toggle_selection(network["features"][1])
        assert session.selected_id == "id-2"
        session.clear_selection()
        assert session.selected_id is None

    def test_delete_clears_selection(self, network):
        session = EditSession(network)
        session.toggle_selection(network["features"][0])
        assert session.delete_feature("id-1")
        assert session.selected_id is None
        assert session.stats() == {"total": 2, "roads": 1, "intersections": 1}

    def test_delete_unknown(self, network):
        session = EditSession(network)
        assert not session.delete_feature("id-99")
        assert session.stats()["total"] == 3

    def test_move_intersection(self, network):
        session = EditSession(network)
        point_id = session.identifiers()[2]
        moved = session.move_intersection(point_id, 0.006, 0.004)
        assert moved["geometry"]["coordinates"] == [0.006, 0.004]
        assert moved["properties"]["connectedRoads"] == [1, 2]

    def test_move_rejects_roads(self, network):
        with pytest.raises(InputError):
            EditSession(network).move_intersection("id-1", 0, 0)

    def test_update_road_coordinates(self, network):
        session = EditSession(network)
        updated = session.update_road_coordinates("id-2", [[0, 0], [1, 1]])
        assert updated["geometry"]["coordinates"] == [[0.0, 0.0], [1.0, 1.0]]
        assert session.collection["features"][1]["geometry"]["coordinates"] == [[0.0, 0.0], [1.0, 1.0]]

    @pytest.mark.parametrize("coords", [[[0, 0]], [[0, 0], ["x", 1]], [[0, 0], [1]]])
    def test_update_rejects_bad_coordinates(self, network, coords):
        with pytest.raises(InputError):
            EditSession(network).update_road_coordinates("id-1", coords)

    def test_collection_is_a_copy(self, network):
        session = EditSession(network)
        session.collection["features"].clear()
        assert session.stats()["total"] == 3
