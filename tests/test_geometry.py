"""Unit tests for the chart geometry mapper."""

from __future__ import annotations

import pytest

from models.records import GeometryPoint
from services.geometry import (
    Domain,
    Padding,
    Viewport,
    auto_domain,
    axis_ticks,
    band_path,
    map_points,
    polyline,
    x_positions,
)

FORECAST = Viewport(width=260, height=140, padding=Padding(left=32, right=10, top=30, bottom=24))


def test_x_positions_are_evenly_spaced_across_usable_width() -> None:
    assert FORECAST.usable_width == 218
    assert x_positions(5, FORECAST) == [32, 86.5, 141, 195.5, 250]


def test_single_point_maps_to_left_edge() -> None:
    points = map_points([20.0], FORECAST, Domain(15, 30))

    assert len(points) == 1
    assert points[0].x == 32
    assert points[0].y == pytest.approx(30 + (1 - 5 / 15) * 86)


def test_y_is_inverted_and_clamped_to_domain() -> None:
    domain = Domain(15, 30)

    top, bottom, above, below = map_points([30, 15, 45, -10], FORECAST, domain)

    assert top.y == 30
    assert bottom.y == 116
    assert above.y == top.y
    assert below.y == bottom.y


@pytest.mark.parametrize("value", [-1000.0, -0.1, 0.0, 12.5, 100.0, 250.0])
def test_normalized_position_stays_within_unit_interval(value: float) -> None:
    percent = Domain(0, 100).normalize(value)

    assert 0 <= percent <= 1


def test_auto_domain_snaps_outward_to_multiples_of_five() -> None:
    assert auto_domain([19.0, 26.5]) == Domain(15, 30)
    assert auto_domain([-3.0, 2.0]) == Domain(-5, 5)


def test_auto_domain_enforces_minimum_span() -> None:
    assert auto_domain([21.0, 22.0]) == Domain(20, 30)
    assert auto_domain([40.0, 40.0]) == Domain(40, 50)


def test_empty_series_is_rejected() -> None:
    with pytest.raises(ValueError):
        map_points([], FORECAST, Domain(0, 10))
    with pytest.raises(ValueError):
        auto_domain([])


def test_degenerate_domain_is_rejected() -> None:
    with pytest.raises(ValueError):
        Domain(5, 5)


def test_band_path_walks_upper_forward_and_lower_backward() -> None:
    upper = [GeometryPoint(0, 0), GeometryPoint(10, 5)]
    lower = [GeometryPoint(0, 20), GeometryPoint(10, 25.5)]

    assert band_path(upper, lower) == "M 0 0 L 10 5 L 10 25.5 L 0 20 Z"


def test_polyline_formats_coordinates_compactly() -> None:
    assert polyline([GeometryPoint(86.5, 30.0), GeometryPoint(1 / 3, 2)]) == "86.5,30 0.33,2"


def test_axis_ticks_step_depends_on_span() -> None:
    assert axis_ticks(Domain(15, 30)) == [15, 20, 25, 30]
    assert axis_ticks(Domain(0, 40)) == [0, 10, 20, 30, 40]
