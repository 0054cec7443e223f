"""Map numeric series onto SVG plot coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from models.records import GeometryPoint


@dataclass(frozen=True)
class Padding:
    left: float
    right: float
    top: float
    bottom: float

    @classmethod
    def uniform(cls, value: float) -> "Padding":
        return cls(left=value, right=value, top=value, bottom=value)


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    padding: Padding

    @property
    def usable_width(self) -> float:
        return self.width - self.padding.left - self.padding.right

    @property
    def usable_height(self) -> float:
        return self.height - self.padding.top - self.padding.bottom

    @property
    def bottom(self) -> float:
        return self.height - self.padding.bottom

    @property
    def right(self) -> float:
        return self.width - self.padding.right


@dataclass(frozen=True)
class Domain:
    """Closed value range of a chart axis."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if not self.high > self.low:
            raise ValueError(f"Domain high ({self.high}) must exceed low ({self.low}).")

    @property
    def span(self) -> float:
        return self.high - self.low

    def clamp(self, value: float) -> float:
        return max(self.low, min(self.high, value))

    def normalize(self, value: float) -> float:
        """Position of ``value`` within the domain, always in ``[0, 1]``."""
        return (self.clamp(value) - self.low) / self.span


def auto_domain(values: Iterable[float], step: float = 5, min_span: float = 10) -> Domain:
    """Derive a domain from data, snapped outward to multiples of ``step``."""
    collected = list(values)
    if not collected:
        raise ValueError("Cannot derive a domain from an empty series.")
    low = math.floor(min(collected) / step) * step
    high = math.ceil(max(collected) / step) * step
    if high - low < min_span:
        high = low + min_span
    return Domain(low=low, high=high)


def x_positions(count: int, viewport: Viewport) -> List[float]:
    # A lone point sits on the left edge.
    divisor = max(1, count - 1)
    return [
        viewport.padding.left + (index / divisor) * viewport.usable_width
        for index in range(count)
    ]


def y_position(value: float, viewport: Viewport, domain: Domain) -> float:
    return viewport.padding.top + (1 - domain.normalize(value)) * viewport.usable_height


def map_points(
    values: Sequence[float], viewport: Viewport, domain: Domain
) -> List[GeometryPoint]:
    if not values:
        raise ValueError("Cannot map an empty series; render a placeholder instead.")
    return [
        GeometryPoint(x=x, y=y_position(value, viewport, domain))
        for x, value in zip(x_positions(len(values), viewport), values)
    ]


def axis_ticks(domain: Domain) -> List[float]:
    step = 5 if domain.span <= 20 else 10
    ticks: List[float] = []
    tick = domain.low
    while tick <= domain.high + 0.1:
        ticks.append(tick)
        tick += step
    return ticks


def format_coordinate(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def polyline(points: Sequence[GeometryPoint]) -> str:
    return " ".join(f"{format_coordinate(p.x)},{format_coordinate(p.y)}" for p in points)


def band_path(upper: Sequence[GeometryPoint], lower: Sequence[GeometryPoint]) -> str:
    """Closed SVG path shading the area between two lines.

    Walks ``upper`` forward and ``lower`` in reverse.
    """
    if not upper or not lower:
        raise ValueError("Both band edges need at least one point.")
    first, *rest = upper
    commands = [f"M {format_coordinate(first.x)} {format_coordinate(first.y)}"]
    commands.extend(
        f"L {format_coordinate(p.x)} {format_coordinate(p.y)}"
        for p in [*rest, *reversed(lower)]
    )
    commands.append("Z")
    return " ".join(commands)
