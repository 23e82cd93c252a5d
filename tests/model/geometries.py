"""Geometry providers shared by the model unit tests."""

from lanesim.model.geometry import Vector3
from lanesim.model.shapes import GeometryProvider


class StraightRing(GeometryProvider):
    """Closed geometry stretched along the x axis, for exact distances."""

    closed = True

    def __init__(self, length: float = 100.0, z: float = 0.0):
        self._length = length
        self._z = z

    def point_at(self, t):
        return Vector3(t * self._length, 0.0, self._z)

    def tangent_at(self, t):
        return Vector3(1.0, 0.0, 0.0)

    def length(self):
        return self._length


class Stretchable(StraightRing):
    """Ring whose length can be changed between updates."""

    def resize(self, length: float):
        """Set a new length."""
        self._length = length


class DuckRing:
    """Ring geometry that doesn't derive from `GeometryProvider`."""

    def point_at(self, t):
        return Vector3(t * 100.0, 0.0, 0.0)

    def tangent_at(self, t):
        return Vector3(1.0, 0.0, 0.0)

    def length(self):
        return 100.0
