"""Geometry providers for lanes.

A geometry provider is anything with `point_at(t)`, `tangent_at(t)` and
`length()`, where `t` is a normalized arc-length parameter from 0.0 at the
start of the path to 1.0 at the end. Lanes only depend on this contract.

The providers implemented here are built from segments. The segment kinds
(`LineSegment`, `ArcSegment` and `BezierSegment`) are plain immutable values
and the `segment_*` functions dispatch on their type, so a `ShapePath` is just
an ordered tuple of segments with cumulative lengths.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass
from functools import singledispatch
from itertools import accumulate
from math import atan2, cos, pi, sin, sqrt
from typing import Iterable, Sequence, Tuple, Union

import bezier
import numpy
from dataslots import with_slots

from lanesim.model.geometry import (EPSILON, Point3, Vector3, clamp,
                                    euclidean_modulo)
from lanesim.utils.iterators import drop_duplicates, window_iter

TWO_PI = 2.0 * pi
BEZIER_SAMPLES = 64
CLOSED_THRESHOLD = 0.001


class GeometryProvider(ABC):
    """Abstract base for the path of a lane.

    Concrete providers must map a normalized parameter `t` in [0.0, 1.0] to a
    point and a unit tangent, with `t` proportional to arc length.
    """

    closed: bool = False

    @abstractmethod
    def point_at(self, t: float) -> Point3:
        """Get the point at normalized arc-length parameter `t`."""

    @abstractmethod
    def tangent_at(self, t: float) -> Vector3:
        """Get the unit tangent at normalized arc-length parameter `t`."""

    @abstractmethod
    def length(self) -> float:
        """Get the total length of the path in meters."""


@with_slots
@dataclass(frozen=True)
class LineSegment:
    """Straight segment from `start` to `end`."""

    start: Point3
    end: Point3


@with_slots
@dataclass(frozen=True)
class ArcSegment:
    """Circular arc in the XZ plane, at the height of `start`.

    The arc goes around `center` from `start` to the direction of `end`,
    counterclockwise in the XZ plane unless `clockwise` is set. The radius is
    the distance from `center` to `start`.
    """

    start: Point3
    end: Point3
    center: Point3
    clockwise: bool = False

    @property
    def radius(self) -> float:
        """Get the arc radius."""
        return sqrt((self.start.x - self.center.x) ** 2
                    + (self.start.z - self.center.z) ** 2)

    @property
    def start_angle(self) -> float:
        """Get the angle of the start point around the center."""
        return atan2(self.start.z - self.center.z, self.start.x - self.center.x)

    @property
    def angle_span(self) -> float:
        """Get the unsigned angle covered by the arc."""
        end_angle = atan2(self.end.z - self.center.z,
                          self.end.x - self.center.x)
        span = end_angle - self.start_angle
        if self.clockwise:
            if span > 0.0:
                span -= TWO_PI
            return abs(span)
        if span < 0.0:
            span += TWO_PI
        return span

    def angle_at(self, t: float) -> float:
        """Get the angle around the center at parameter `t`."""
        direction = -1.0 if self.clockwise else 1.0
        return self.start_angle + direction * self.angle_span * clamp(t, 0.0,
                                                                       1.0)


@with_slots
@dataclass(frozen=True, eq=False)
class BezierSegment:
    """Bezier curve segment, reparameterized by arc length.

    `curve` is the `bezier.Curve` and the lookup table maps fractions of the
    arc length (`fractions`) to curve parameters (`params`). Use `build` to
    create instances.
    """

    curve: bezier.Curve
    length: float
    fractions: numpy.ndarray
    params: numpy.ndarray

    @staticmethod
    def build(points: Sequence[Point3],
              samples: int = BEZIER_SAMPLES) -> BezierSegment:
        """Create a bezier segment with the given control points."""
        if len(points) < 2:
            raise ValueError('A bezier segment needs at least two points.')
        nodes = numpy.asfortranarray([[p.x for p in points],
                                      [p.y for p in points],
                                      [p.z for p in points]], dtype=float)
        curve = bezier.Curve(nodes, degree=len(points) - 1)

        params = numpy.linspace(0.0, 1.0, samples + 1)
        evaluated = curve.evaluate_multi(params)
        steps = numpy.linalg.norm(numpy.diff(evaluated, axis=1), axis=0)
        cumulative = numpy.concatenate(([0.0], numpy.cumsum(steps)))
        total = cumulative[-1]
        if total < EPSILON:
            fractions = params.copy()
        else:
            fractions = cumulative / total

        return BezierSegment(curve, max(float(curve.length), EPSILON),
                             fractions, params)

    @property
    def nodes(self) -> Tuple[Point3, ...]:
        """Get the control points of the curve."""
        nodes = self.curve.nodes
        return tuple(Vector3(*map(float, nodes[:, i]))
                     for i in range(nodes.shape[1]))

    def param_at(self, t: float) -> float:
        """Get the curve parameter at normalized arc length `t`."""
        return float(numpy.interp(clamp(t, 0.0, 1.0),
                                  self.fractions, self.params))


Segment = Union[LineSegment, ArcSegment, BezierSegment]


def _vector(array: numpy.ndarray) -> Vector3:
    return Vector3(*(float(v) for v in array[:, 0]))


@singledispatch
def segment_length(segment) -> float:
    """Get the length of a segment."""
    raise TypeError(f'Unknown segment type: {type(segment).__name__}.')


@segment_length.register(LineSegment)
def _(segment: LineSegment) -> float:
    return segment.start.distance(segment.end)


@segment_length.register(ArcSegment)
def _(segment: ArcSegment) -> float:
    return segment.radius * segment.angle_span


@segment_length.register(BezierSegment)
def _(segment: BezierSegment) -> float:
    return segment.length


@singledispatch
def segment_point(segment, t: float) -> Point3:
    """Get the point of a segment at normalized arc-length parameter `t`."""
    raise TypeError(f'Unknown segment type: {type(segment).__name__}.')


@segment_point.register(LineSegment)
def _(segment: LineSegment, t: float) -> Point3:
    return segment.start.lerp(segment.end, clamp(t, 0.0, 1.0))


@segment_point.register(ArcSegment)
def _(segment: ArcSegment, t: float) -> Point3:
    angle = segment.angle_at(t)
    radius = segment.radius
    return Vector3(segment.center.x + radius * cos(angle), segment.start.y,
                   segment.center.z + radius * sin(angle))


@segment_point.register(BezierSegment)
def _(segment: BezierSegment, t: float) -> Point3:
    return _vector(segment.curve.evaluate(segment.param_at(t)))


@singledispatch
def segment_tangent(segment, t: float) -> Vector3:
    """Get the unit tangent of a segment at normalized parameter `t`."""
    raise TypeError(f'Unknown segment type: {type(segment).__name__}.')


@segment_tangent.register(LineSegment)
def _(segment: LineSegment, _t: float) -> Vector3:
    return (segment.end - segment.start).normalized(Vector3(1.0, 0.0, 0.0))


@segment_tangent.register(ArcSegment)
def _(segment: ArcSegment, t: float) -> Vector3:
    direction = -1.0 if segment.clockwise else 1.0
    angle = segment.angle_at(t)
    return Vector3(-sin(angle) * direction, 0.0, cos(angle) * direction)


@segment_tangent.register(BezierSegment)
def _(segment: BezierSegment, t: float) -> Vector3:
    hodograph = _vector(segment.curve.evaluate_hodograph(segment.param_at(t)))
    nodes = segment.nodes
    chord = (nodes[-1] - nodes[0]).normalized(Vector3(1.0, 0.0, 0.0))
    return hodograph.normalized(chord)


def segment_start(segment: Segment) -> Point3:
    """Get the first point of a segment."""
    return segment_point(segment, 0.0)


def segment_end(segment: Segment) -> Point3:
    """Get the last point of a segment."""
    return segment_point(segment, 1.0)


class ShapePath(GeometryProvider):
    """Geometry provider made of an ordered sequence of segments.

    The parameter `t` is distributed over the segments in proportion to their
    lengths, so the lengths of the segments sum to the path length. If
    `closed` is not given, the path is closed when its last point coincides
    with its first point.
    """

    __slots__ = ('segments', 'closed', '_ends', '_length')

    segments: Tuple[Segment, ...]
    closed: bool
    _ends: Tuple[float, ...]
    _length: float

    def __init__(self, segments: Iterable[Segment], closed: bool = None):
        self.segments = tuple(segments)
        if not self.segments:
            raise ValueError('A shape path needs at least one segment.')
        self._ends = tuple(accumulate(segment_length(s)
                                      for s in self.segments))
        self._length = self._ends[-1]
        if closed is None:
            closed = segment_end(self.segments[-1]).close_to(
                segment_start(self.segments[0]), CLOSED_THRESHOLD)
        self.closed = bool(closed)

    def length(self) -> float:
        """Get the total length of the path in meters."""
        return self._length

    def locate(self, t: float) -> Tuple[Segment, float]:
        """Get the segment at `t` and the normalized parameter inside it."""
        if self.closed:
            t = euclidean_modulo(t, 1.0) if t != 1.0 else 1.0
        distance = clamp(t, 0.0, 1.0) * self._length
        index = min(bisect_right(self._ends, distance),
                    len(self.segments) - 1)
        start = self._ends[index - 1] if index > 0 else 0.0
        segment_length_ = self._ends[index] - start
        if segment_length_ < EPSILON:
            return self.segments[index], 0.0
        return self.segments[index], (distance - start) / segment_length_

    def point_at(self, t: float) -> Point3:
        """Get the point at normalized arc-length parameter `t`."""
        return segment_point(*self.locate(t))

    def tangent_at(self, t: float) -> Vector3:
        """Get the unit tangent at normalized arc-length parameter `t`."""
        return segment_tangent(*self.locate(t))

    def __iter__(self):
        return iter(self.segments)

    def __len__(self):
        return len(self.segments)

    def __repr__(self):
        return (f'{type(self).__name__}(segments={len(self.segments)}, '
                f'length={self._length:.2f}, closed={self.closed})')


class SplinePath(ShapePath):
    """Uniform Catmull-Rom spline through the given points.

    Each span between consecutive points is converted to an equivalent cubic
    bezier segment. Consecutive duplicate points are dropped, as well as a
    last point repeating the first one on closed splines.
    """

    __slots__ = ('points',)

    points: Tuple[Point3, ...]

    def __init__(self, points: Iterable[Point3], closed: bool = True):
        points = list(drop_duplicates(points, Vector3.close_to))
        if closed and len(points) > 1 and points[-1].close_to(points[0]):
            points.pop()
        if len(points) < (3 if closed else 2):
            raise ValueError('Not enough distinct points for a spline.')
        self.points = tuple(points)

        if closed:
            windows = window_iter(points[-1:] + points[:-1], 4, extend=True)
        else:
            windows = window_iter([points[0], *points, points[-1]], 4)

        segments = (BezierSegment.build((p1, p1 + (p2 - p0) * (1.0 / 6.0),
                                         p2 - (p3 - p1) * (1.0 / 6.0), p2))
                    for p0, p1, p2, p3 in windows)
        super().__init__(segments, closed)


def running_track(total_length: float = 400.0, straight_length: float = 100.0,
                  base_height: float = 12.0, offset: float = 0.0) -> ShapePath:
    """Create a closed running track with two straights and two bends.

    The straights run along the x axis and the bends turn clockwise around
    centers at the ends of the straights. `offset` moves the whole track
    outwards, which is useful to build parallel lanes, and makes it longer
    than `total_length` by `2 * pi * offset`.
    """
    radius = (total_length - 2.0 * straight_length) / TWO_PI + offset
    half = straight_length / 2.0
    y = base_height

    top_left = Vector3(-half, y, radius)
    top_right = Vector3(half, y, radius)
    bottom_right = Vector3(half, y, -radius)
    bottom_left = Vector3(-half, y, -radius)

    return ShapePath((
        LineSegment(top_left, top_right),
        ArcSegment(top_right, bottom_right, Vector3(half, y, 0.0),
                   clockwise=True),
        LineSegment(bottom_right, bottom_left),
        ArcSegment(bottom_left, top_left, Vector3(-half, y, 0.0),
                   clockwise=True),
    ), closed=True)
