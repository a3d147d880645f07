"""Tests for terrain domain services: lattice, slopes and color ramp.

Domain tests build samples directly; no elevation provider is involved.
"""

from __future__ import annotations

import pytest
from pyproj import Geod

from domain.geometry.services import point_in_polygon
from domain.geometry.value_objects import Vertex
from domain.terrain.services import (
    ELEVATION_COLOR_STOPS,
    batched,
    build_analysis_grid,
    elevation_color,
    geodesic_distance,
    interpolate_color,
    slope_percentages,
    summarize_slopes,
)
from domain.terrain.value_objects import ElevationSample
from tests.support import make_polygon

_geod = Geod(ellps="WGS84")


def sample(lat: float, lng: float, elevation: float) -> ElevationSample:
    return ElevationSample(location=Vertex(lat=lat, lng=lng), elevation_m=elevation)


# ===========================================================================
# Analysis grid
# ===========================================================================
class TestBuildAnalysisGrid:
    def test_points_match_scalar_containment(self, field_polygon):
        grid = build_analysis_grid(field_polygon, 20)
        assert grid.resolution == 20
        assert grid.candidate_count == 400
        assert 0 < len(grid.points) <= 400
        for point in grid.points:
            assert point_in_polygon(point, field_polygon.vertices)

    def test_points_in_lattice_order(self, field_polygon):
        grid = build_analysis_grid(field_polygon, 10)
        keys = [(p.lat, p.lng) for p in grid.points]
        assert keys == sorted(keys)

    def test_lattice_spans_bounding_box(self):
        diamond = make_polygon((0.0, 1.0), (1.0, 2.0), (2.0, 1.0), (1.0, 0.0))
        grid = build_analysis_grid(diamond, 3)
        # Lattice over [0, 2] x [0, 2]; the center is the only strictly inner point
        assert Vertex(lat=1.0, lng=1.0) in grid.points
        assert Vertex(lat=0.0, lng=0.0) not in grid.points
        assert (grid.bounds.south, grid.bounds.north) == (0.0, 2.0)
        assert grid.coverage_ratio() == pytest.approx(len(grid.points) / 9)

    def test_diamond_corners_only_gives_empty_grid(self):
        diamond = make_polygon((0.0, 1.0), (1.0, 2.0), (2.0, 1.0), (1.0, 0.0))
        assert build_analysis_grid(diamond, 2).points == ()

    def test_resolution_below_two_rejected(self, field_polygon):
        with pytest.raises(ValueError, match="resolution"):
            build_analysis_grid(field_polygon, 1)


def test_batched_splits_into_consecutive_slices():
    assert list(batched(list(range(7)), 3)) == [[0, 1, 2], [3, 4, 5], [6]]
    assert list(batched([], 3)) == []
    with pytest.raises(ValueError):
        list(batched([1], 0))


# ===========================================================================
# Slopes
# ===========================================================================
class TestSlopes:
    def test_rise_over_run_as_percentage(self):
        lng, lat, _ = _geod.fwd(0.0, 0.0, 90.0, 100.0)
        slopes = slope_percentages([sample(0.0, 0.0, 50.0), sample(lat, lng, 60.0)])
        assert slopes == [pytest.approx(10.0, rel=1e-6)]

    def test_descent_is_positive(self):
        lng, lat, _ = _geod.fwd(0.0, 0.0, 0.0, 200.0)
        slopes = slope_percentages([sample(0.0, 0.0, 80.0), sample(lat, lng, 60.0)])
        assert slopes == [pytest.approx(10.0, rel=1e-6)]

    def test_duplicate_locations_skipped(self):
        lng, lat, _ = _geod.fwd(0.0, 0.0, 90.0, 100.0)
        slopes = slope_percentages(
            [sample(0.0, 0.0, 0.0), sample(0.0, 0.0, 5.0), sample(lat, lng, 15.0)]
        )
        assert slopes == [pytest.approx(10.0, rel=1e-6)]

    def test_fewer_than_two_samples(self):
        assert slope_percentages([]) == []
        assert slope_percentages([sample(0.0, 0.0, 1.0)]) == []

    def test_summary(self):
        summary = summarize_slopes([2.0, 4.0, 9.0])
        assert (summary.min, summary.max, summary.count) == (2.0, 9.0, 3)
        assert summary.average == pytest.approx(5.0)

    def test_empty_summary_is_zero(self):
        summary = summarize_slopes([])
        assert (summary.min, summary.max, summary.average, summary.count) == (0, 0, 0, 0)

    def test_equal_slopes_summary(self):
        summary = summarize_slopes([0.1] * 7)
        assert summary.min == summary.average == summary.max

    def test_geodesic_distance_symmetric(self):
        a = Vertex(lat=45.0, lng=7.0)
        b = Vertex(lat=45.01, lng=7.02)
        assert geodesic_distance(a, b) == pytest.approx(geodesic_distance(b, a))
        assert geodesic_distance(a, a) == 0.0


# ===========================================================================
# Color ramp
# ===========================================================================
class TestColors:
    def test_interpolate_midpoint_rounds_half_up(self):
        assert interpolate_color("#000000", "#ffffff", 0.5) == "#808080"

    def test_interpolate_endpoints(self):
        assert interpolate_color("#2b83ba", "#abdda4", 0.0) == "#2b83ba"
        assert interpolate_color("#2b83ba", "#abdda4", 1.0) == "#abdda4"

    def test_invalid_hex_rejected(self):
        with pytest.raises(ValueError, match="rrggbb"):
            interpolate_color("#fff", "#000000", 0.5)

    @pytest.mark.parametrize(
        "elevation,expected",
        [
            (100.0, ELEVATION_COLOR_STOPS[0]),
            (125.0, ELEVATION_COLOR_STOPS[1]),
            (150.0, ELEVATION_COLOR_STOPS[2]),
            (175.0, ELEVATION_COLOR_STOPS[3]),
            (200.0, ELEVATION_COLOR_STOPS[4]),
        ],
    )
    def test_stops_hit_exactly(self, elevation, expected):
        assert elevation_color(elevation, 100.0, 200.0) == expected

    def test_out_of_range_clamped(self):
        assert elevation_color(50.0, 100.0, 200.0) == ELEVATION_COLOR_STOPS[0]
        assert elevation_color(250.0, 100.0, 200.0) == ELEVATION_COLOR_STOPS[-1]

    def test_flat_range_uses_lowest_stop(self):
        assert elevation_color(120.0, 120.0, 120.0) == ELEVATION_COLOR_STOPS[0]

    def test_between_stops_is_blend(self):
        color = elevation_color(112.5, 100.0, 200.0)
        assert color == interpolate_color(
            ELEVATION_COLOR_STOPS[0], ELEVATION_COLOR_STOPS[1], 0.5
        )
