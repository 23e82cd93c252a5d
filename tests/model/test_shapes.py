"""Unit test for shapes."""
import unittest
from math import pi, sqrt

from lanesim.model.geometry import Vector3
from lanesim.model.shapes import (ArcSegment, BezierSegment, LineSegment,
                                  ShapePath, SplinePath, running_track,
                                  segment_end, segment_length, segment_point,
                                  segment_start, segment_tangent)


class ShapesTest(unittest.TestCase):
    """Unit test for shapes."""

    def assertVectorAlmostEqual(self, first, second, places=7):
        """Assert vectors are equal up to `places` decimal places."""
        for value_a, value_b in zip(first, second):
            self.assertAlmostEqual(value_a, value_b, places=places)

    def test_line_segment(self):
        """Unit test for line segments."""
        line = LineSegment(Vector3(0.0, 0.0, 0.0), Vector3(6.0, 0.0, 8.0))
        self.assertAlmostEqual(segment_length(line), 10.0)
        self.assertVectorAlmostEqual(segment_point(line, 0.5), (3.0, 0.0, 4.0))
        self.assertVectorAlmostEqual(segment_tangent(line, 0.2),
                                     (0.6, 0.0, 0.8))
        self.assertEqual(segment_start(line), line.start)
        self.assertEqual(segment_end(line), line.end)

    def test_arc_segment(self):
        """Unit test for arc segments."""
        arc = ArcSegment(Vector3(1.0, 2.0, 0.0), Vector3(0.0, 2.0, 1.0),
                         Vector3(0.0, 2.0, 0.0))
        self.assertAlmostEqual(segment_length(arc), pi / 2)
        self.assertVectorAlmostEqual(segment_point(arc, 0.5),
                                     (sqrt(0.5), 2.0, sqrt(0.5)))
        self.assertVectorAlmostEqual(segment_tangent(arc, 0.0),
                                     (0.0, 0.0, 1.0))
        self.assertVectorAlmostEqual(segment_end(arc), (0.0, 2.0, 1.0))

        clockwise = ArcSegment(Vector3(1.0, 0.0, 0.0), Vector3(0.0, 0.0, 1.0),
                               Vector3(0.0, 0.0, 0.0), clockwise=True)
        self.assertAlmostEqual(segment_length(clockwise), 3 * pi / 2)
        self.assertVectorAlmostEqual(segment_point(clockwise, 1 / 3),
                                     (0.0, 0.0, -1.0))
        self.assertVectorAlmostEqual(segment_tangent(clockwise, 0.0),
                                     (0.0, 0.0, -1.0))

    def test_bezier_segment(self):
        """Unit test for bezier segments."""
        straight = BezierSegment.build([Vector3(float(i), 0.0, 0.0)
                                        for i in range(4)])
        self.assertAlmostEqual(segment_length(straight), 3.0)
        self.assertVectorAlmostEqual(segment_point(straight, 0.5),
                                     (1.5, 0.0, 0.0))
        self.assertVectorAlmostEqual(segment_tangent(straight, 0.5),
                                     (1.0, 0.0, 0.0))

        uneven = BezierSegment.build((Vector3(0.0, 0.0, 0.0),
                                      Vector3(0.1, 0.0, 0.0),
                                      Vector3(0.2, 0.0, 0.0),
                                      Vector3(3.0, 0.0, 0.0)))
        for t in (0.25, 0.5, 0.75):
            self.assertAlmostEqual(segment_point(uneven, t).x, 3.0 * t,
                                   delta=0.05)
        self.assertVectorAlmostEqual(segment_end(uneven), (3.0, 0.0, 0.0))

        quarter = BezierSegment.build((Vector3(0.0, 0.0, 0.0),
                                       Vector3(1.0, 0.0, 0.0),
                                       Vector3(1.0, 0.0, 1.0)))
        self.assertVectorAlmostEqual(segment_tangent(quarter, 0.0),
                                     (1.0, 0.0, 0.0))
        self.assertVectorAlmostEqual(segment_tangent(quarter, 1.0),
                                     (0.0, 0.0, 1.0))

        with self.assertRaises(ValueError):
            BezierSegment.build([Vector3(0.0, 0.0, 0.0)])

    def test_unknown_segment(self):
        """Unit test for dispatch on unknown segment types."""
        with self.assertRaises(TypeError):
            segment_length(object())
        with self.assertRaises(TypeError):
            segment_point('segment', 0.5)

    def test_shape_path(self):
        """Unit test for ShapePath."""
        corners = [Vector3(0.0, 0.0, 0.0), Vector3(10.0, 0.0, 0.0),
                   Vector3(10.0, 0.0, 10.0), Vector3(0.0, 0.0, 10.0)]
        square = ShapePath(LineSegment(a, b) for a, b in
                           zip(corners, corners[1:] + corners[:1]))
        self.assertTrue(square.closed)
        self.assertEqual(len(square), 4)
        self.assertAlmostEqual(square.length(), 40.0)
        self.assertVectorAlmostEqual(square.point_at(0.375), (10.0, 0.0, 5.0))
        self.assertVectorAlmostEqual(square.tangent_at(0.375),
                                     (0.0, 0.0, 1.0))
        self.assertVectorAlmostEqual(square.point_at(1.0), corners[0])
        self.assertVectorAlmostEqual(square.point_at(1.125), (5.0, 0.0, 0.0))

        open_path = ShapePath([LineSegment(corners[0], corners[1]),
                               LineSegment(corners[1], corners[2])])
        self.assertFalse(open_path.closed)
        self.assertVectorAlmostEqual(open_path.point_at(1.0), corners[2])
        self.assertVectorAlmostEqual(open_path.point_at(2.0), corners[2])
        self.assertVectorAlmostEqual(open_path.point_at(-1.0), corners[0])

        self.assertFalse(ShapePath(square.segments, closed=False).closed)

        with self.assertRaises(ValueError):
            ShapePath([])

    def test_spline_path(self):
        """Unit test for SplinePath."""
        points = [Vector3(0.0, 0.0, 0.0), Vector3(20.0, 0.0, 0.0),
                  Vector3(20.0, 0.0, 20.0), Vector3(0.0, 0.0, 20.0)]
        spline = SplinePath(points + points[:1])
        self.assertTrue(spline.closed)
        self.assertEqual(len(spline), 4)
        for point, segment in zip(points, spline):
            self.assertVectorAlmostEqual(segment_start(segment), point)
        self.assertVectorAlmostEqual(segment_end(spline.segments[-1]),
                                     points[0])
        self.assertGreater(spline.length(), 2 * pi * 10)
        self.assertVectorAlmostEqual(spline.point_at(0.0),
                                     spline.point_at(1.0), places=5)

        open_spline = SplinePath([points[0], points[1], points[1], points[2]],
                                 closed=False)
        self.assertFalse(open_spline.closed)
        self.assertEqual(len(open_spline), 2)
        self.assertVectorAlmostEqual(open_spline.point_at(1.0), points[2])

        with self.assertRaises(ValueError):
            SplinePath(points[:2])

    def test_running_track(self):
        """Unit test for running_track."""
        track = running_track()
        radius = 200.0 / (2 * pi)
        self.assertTrue(track.closed)
        self.assertAlmostEqual(track.length(), 400.0)
        self.assertVectorAlmostEqual(track.point_at(0.0),
                                     (-50.0, 12.0, radius))
        self.assertVectorAlmostEqual(track.point_at(1.0), track.point_at(0.0))
        self.assertVectorAlmostEqual(track.tangent_at(0.0), (1.0, 0.0, 0.0))
        self.assertVectorAlmostEqual(track.tangent_at(0.5), (-1.0, 0.0, 0.0))

        arc_middle = (100.0 + radius * pi / 2) / 400.0
        self.assertVectorAlmostEqual(track.point_at(arc_middle),
                                     (50.0 + radius, 12.0, 0.0))

        outer = running_track(offset=4.0)
        self.assertAlmostEqual(outer.length(), 400.0 + 2 * pi * 4.0)

        for i in range(100):
            t = i / 100
            self.assertAlmostEqual(track.tangent_at(t).norm(), 1.0)
            point = track.point_at(t)
            self.assertAlmostEqual(point.y, 12.0)
            if abs(point.x) < 50.0:
                self.assertAlmostEqual(abs(point.z), radius)
            else:
                center_x = 50.0 if point.x > 0 else -50.0
                self.assertAlmostEqual(
                    sqrt((point.x - center_x) ** 2 + point.z ** 2), radius)
