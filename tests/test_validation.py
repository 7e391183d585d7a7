"""Tests for region validation."""

import pytest

from roadgraph.core.exceptions import InputError
from roadgraph.validation.validator import RegionValidator


def feature(geometry):
    return {"type": "Feature", "properties": {}, "geometry": geometry}


class TestRegionValidator:
    def test_valid_region(self, region):
        result = RegionValidator().validate(region)
        assert result.passed
        assert result.checks_run == ["type_check", "features_check", "geometry_check", "ring_check"]
        assert result.failures == []

    def test_not_a_collection(self):
        result = RegionValidator().validate({"type": "Feature"})
        assert not result.passed
        assert result.checks_run == ["type_check"]

    def test_missing_features(self):
        result = RegionValidator().validate({"type": "FeatureCollection"})
        assert not result.passed
        assert "features" in result.failures[0]

    def test_empty_features(self):
        result = RegionValidator().validate({"type": "FeatureCollection", "features": []})
        assert not result.passed
        assert "no features" in result.failures[0]

    def test_short_ring(self):
        obj = {"type": "FeatureCollection",
               "features": [feature({"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]})]}
        result = RegionValidator().validate(obj)
        assert not result.passed
        assert "2 coordinate pair" in result.failures[0]

    def test_malformed_geometry(self):
        obj = {"type": "FeatureCollection",
               "features": [feature({"type": "LineString", "coordinates": [[0, 0]]})]}
        assert not RegionValidator().validate(obj).passed

    def test_feature_without_geometry(self):
        obj = {"type": "FeatureCollection", "features": [{"type": "Feature"}]}
        result = RegionValidator().validate(obj)
        assert "no geometry" in result.failures[0]

    def test_points_allowed_unless_area_required(self):
        obj = {"type": "FeatureCollection",
               "features": [feature({"type": "Point", "coordinates": [1, 2]})]}
        assert RegionValidator().validate(obj).passed
        assert not RegionValidator(require_area=True).validate(obj).passed

    def test_ensure_valid(self, region):
        assert RegionValidator().ensure_valid(region) is region
        with pytest.raises(InputError, match="Invalid region"):
            RegionValidator().ensure_valid([])
