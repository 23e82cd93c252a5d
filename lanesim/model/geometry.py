"""Geometry related classes and functions for lanesim."""

from __future__ import annotations

from dataclasses import dataclass
from math import atan2, isfinite, sin, sqrt
from typing import Optional, Tuple

from dataslots import with_slots

EPSILON = 1e-6


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp `value` to the closed interval [minimum, maximum]."""
    return max(minimum, min(value, maximum))


def euclidean_modulo(value: float, divisor: float) -> float:
    """Get the always non-negative remainder of `value` by `divisor`.

    The result is in the range 0.0 <= result < divisor, even when floating
    point rounding would make `value % divisor` equal to `divisor`.
    """
    result = value % divisor
    if result >= divisor:
        return 0.0
    return result


def distance(point_a: Point3, point_b: Point3) -> float:
    """Euclidean distance between two points."""
    return sqrt((point_b.x - point_a.x) ** 2 + (point_b.y - point_a.y) ** 2
                + (point_b.z - point_a.z) ** 2)


def midpoint(point_a: Point3, point_b: Point3) -> Point3:
    """Get the midpoint of two points."""
    return point_a + (point_b - point_a) * 0.5


@with_slots
@dataclass(frozen=True)
class Vector3:
    """A vector in space, that doubles as a point."""

    x: float
    y: float
    z: float = 0.0

    def norm(self) -> float:
        """Calculate norm of the vector."""
        return sqrt(self.x ** 2.0 + self.y ** 2.0 + self.z ** 2.0)

    def norm_squared(self) -> float:
        """Calculate norm of the vector squared."""
        return self.x ** 2.0 + self.y ** 2.0 + self.z ** 2.0

    def normalized(self, default: Optional[Vector3] = None) -> Vector3:
        """Get this vector normalized.

        Vectors with norm below `EPSILON` can't be normalized. For those,
        `default` is returned, or the unit z vector if no default is given.
        """
        norm = self.norm()
        if norm < EPSILON or not isfinite(norm):
            return default if default is not None else Vector3(0.0, 0.0, 1.0)
        return Vector3(self.x / norm, self.y / norm, self.z / norm)

    def add(self, other: Vector3) -> Vector3:
        """Sum of this vector and another."""
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def subtract(self, other: Vector3) -> Vector3:
        """Difference of this vector by another."""
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def multiply(self, scalar: float) -> Vector3:
        """Multiplication by scalar."""
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def dot_product(self, other: Vector3) -> float:
        """Dot product of this vector by another."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross_product(self, other: Vector3) -> Vector3:
        """Cross product of this vector by another."""
        return Vector3(self.y * other.z - self.z * other.y,
                       self.z * other.x - self.x * other.z,
                       self.x * other.y - self.y * other.x)

    def lerp(self, other: Vector3, alpha: float) -> Vector3:
        """Linear interpolation from this vector to `other`."""
        return self + (other - self) * alpha

    def close_to(self, other: Vector3, threshold: float = 0.001) -> bool:
        """Test for proximity to another point."""
        return (abs(self.x - other.x) < threshold and
                abs(self.y - other.y) < threshold and
                abs(self.z - other.z) < threshold)

    def is_finite(self) -> bool:
        """Check that no coordinate is NaN or infinite."""
        return isfinite(self.x) and isfinite(self.y) and isfinite(self.z)

    def __neg__(self):
        return Vector3(-self.x, -self.y, -self.z)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    distance = distance
    midpoint = midpoint

    __abs__ = norm
    __add__ = add
    __mul__ = multiply
    __rmul__ = multiply
    __sub__ = subtract


Point3 = Vector3

WORLD_UP = Vector3(0.0, 1.0, 0.0)
FORWARD = Vector3(0.0, 0.0, 1.0)


def orientation_basis(direction: Vector3, world_up: Vector3 = WORLD_UP) \
        -> Tuple[Vector3, Vector3, Vector3]:
    """Build an orthonormal (right, up, forward) basis facing `direction`.

    Forward is the normalized direction, right is `world_up` crossed with
    forward and up completes the basis. When the direction is parallel to
    `world_up`, the unit x vector is used to find the right axis instead.
    """
    forward = direction.normalized(FORWARD)
    right = world_up.cross_product(forward)
    if right.norm_squared() < EPSILON:
        right = Vector3(1.0, 0.0, 0.0).cross_product(forward)
    right = right.normalized(Vector3(1.0, 0.0, 0.0))
    up = forward.cross_product(right).normalized(world_up)
    return right, up, forward


@with_slots
@dataclass(frozen=True)
class Quaternion:
    """A rotation quaternion, with `w` as the scalar part."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @staticmethod
    def from_basis(right: Vector3, up: Vector3,
                   forward: Vector3) -> Quaternion:
        """Create quaternion from the columns of a rotation matrix.

        The basis vectors are the images of the x, y and z axes, so the
        rotation takes +z to `forward` and +y to `up`.
        """
        m11, m12, m13 = right.x, up.x, forward.x
        m21, m22, m23 = right.y, up.y, forward.y
        m31, m32, m33 = right.z, up.z, forward.z
        trace = m11 + m22 + m33

        if trace > 0.0:
            scale = 0.5 / sqrt(trace + 1.0)
            quaternion = Quaternion(0.25 / scale, (m32 - m23) * scale,
                                    (m13 - m31) * scale, (m21 - m12) * scale)
        elif m11 > m22 and m11 > m33:
            scale = 2.0 * sqrt(1.0 + m11 - m22 - m33)
            quaternion = Quaternion((m32 - m23) / scale, 0.25 * scale,
                                    (m12 + m21) / scale, (m13 + m31) / scale)
        elif m22 > m33:
            scale = 2.0 * sqrt(1.0 + m22 - m11 - m33)
            quaternion = Quaternion((m13 - m31) / scale, (m12 + m21) / scale,
                                    0.25 * scale, (m23 + m32) / scale)
        else:
            scale = 2.0 * sqrt(1.0 + m33 - m11 - m22)
            quaternion = Quaternion((m21 - m12) / scale, (m13 + m31) / scale,
                                    (m23 + m32) / scale, 0.25 * scale)
        return quaternion.normalized()

    def norm(self) -> float:
        """Calculate norm of the quaternion."""
        return sqrt(self.w ** 2 + self.x ** 2 + self.y ** 2 + self.z ** 2)

    def normalized(self) -> Quaternion:
        """Get unit quaternion, or the identity if norm is too small."""
        norm = self.norm()
        if norm < EPSILON or not isfinite(norm):
            return Quaternion()
        return Quaternion(self.w / norm, self.x / norm,
                          self.y / norm, self.z / norm)

    def dot_product(self, other: Quaternion) -> float:
        """Dot product of this quaternion by another."""
        return (self.w * other.w + self.x * other.x
                + self.y * other.y + self.z * other.z)

    def slerp(self, other: Quaternion, alpha: float) -> Quaternion:
        """Spherical linear interpolation from this quaternion to `other`.

        Always takes the shortest arc. Falls back to normalized linear
        interpolation when the quaternions are almost the same.
        """
        if alpha <= 0.0:
            return self
        if alpha >= 1.0:
            return other

        cos_half = self.dot_product(other)
        if cos_half < 0.0:
            other = Quaternion(-other.w, -other.x, -other.y, -other.z)
            cos_half = -cos_half
        if cos_half >= 1.0:
            return self

        sin_half_squared = 1.0 - cos_half * cos_half
        if sin_half_squared <= EPSILON:
            beta = 1.0 - alpha
            return Quaternion(beta * self.w + alpha * other.w,
                              beta * self.x + alpha * other.x,
                              beta * self.y + alpha * other.y,
                              beta * self.z + alpha * other.z).normalized()

        sin_half = sqrt(sin_half_squared)
        half_angle = atan2(sin_half, cos_half)
        ratio_a = sin((1.0 - alpha) * half_angle) / sin_half
        ratio_b = sin(alpha * half_angle) / sin_half
        return Quaternion(self.w * ratio_a + other.w * ratio_b,
                          self.x * ratio_a + other.x * ratio_b,
                          self.y * ratio_a + other.y * ratio_b,
                          self.z * ratio_a + other.z * ratio_b)

    def rotate(self, vector: Vector3) -> Vector3:
        """Rotate `vector` by this quaternion."""
        axis = Vector3(self.x, self.y, self.z)
        twice_cross = axis.cross_product(vector) * 2.0
        return (vector + twice_cross * self.w
                + axis.cross_product(twice_cross))

    def angle_to(self, other: Quaternion) -> float:
        """Get the rotation angle between this quaternion and `other`."""
        return 2.0 * atan2(sqrt(max(0.0, 1.0 - self.dot_product(other) ** 2)),
                           abs(self.dot_product(other)))

    @property
    def forward(self) -> Vector3:
        """Get the image of the +z axis, the facing direction."""
        return self.rotate(FORWARD)

    def __iter__(self):
        yield self.w
        yield self.x
        yield self.y
        yield self.z

    __abs__ = norm
