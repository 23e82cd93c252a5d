"""Lane change transitions and the lane change safety check."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Optional

from dataslots import with_slots

from lanesim.model.geometry import EPSILON, Point3, Vector3, clamp
from lanesim.model.shapes import (BezierSegment, segment_point,
                                  segment_tangent)

if TYPE_CHECKING:
    from lanesim.model.lane import Lane, Neighbor
    from lanesim.model.vehicle import Vehicle

COMPLETION_EPSILON = 1e-3
FORWARD_TRAVEL_LENGTH_FACTOR = 3.0
FORWARD_TRAVEL_LANE_FACTOR = 0.05
CONTROL_OFFSET_FACTOR = 0.5
CONTROL_OFFSET_LANE_FACTOR = 0.25
LATERAL_FACTOR = 0.5
MAINTAIN_SPEED_TOLERANCE = 0.5


class LaneChangeSafety(NamedTuple):
    """Result of a lane change safety check."""

    allowed: bool
    maintain_speed: bool


@with_slots
@dataclass(eq=False)
class LaneChangeTransition:
    """Transitional path of a vehicle moving from one lane to another.

    The path is a cubic bezier from the vehicle's point on the source lane to
    the end point on the target lane. Progress goes from 0.0 to 1.0, driven by
    the distance traveled over `length`, or by the elapsed time over
    `duration` when a duration is given.

    Attributes:
        source_lane: The lane the vehicle is leaving.
        source_position: Position on the source lane where the change began.
        target_lane: The lane the vehicle is moving to.
        end_position: Position on the target lane where the change ends.
        path: The bezier segment followed during the change.
        length: Distance budget for distance based progress.
        duration: Time budget for time based progress, or `None`.
        retain_speed: Whether the vehicle speed is frozen during the change.
        frozen_speed: The speed held while `retain_speed` is set.
        progress: Normalized progress along the path.
        traveled: Distance traveled since the change began.
        elapsed: Time elapsed since the change began.
        completed: Whether progress reached the end.
    """

    source_lane: Lane
    source_position: float
    target_lane: Lane
    end_position: float
    path: BezierSegment
    length: float
    duration: Optional[float] = None
    retain_speed: bool = False
    frozen_speed: float = 0.0
    progress: float = 0.0
    traveled: float = 0.0
    elapsed: float = 0.0
    completed: bool = False

    @property
    def time_based(self) -> bool:
        """Whether progress is driven by elapsed time."""
        return self.duration is not None

    @property
    def overshoot(self) -> float:
        """Distance traveled beyond the transition length."""
        if self.time_based:
            return 0.0
        return max(0.0, self.traveled - self.length)

    def advance(self, distance: float, dt: float) -> bool:
        """Advance the transition by `distance` meters and `dt` seconds.

        Returns `True` only on the call that completes the transition.
        """
        if self.completed:
            return False
        self.traveled += max(distance, 0.0)
        self.elapsed += max(dt, 0.0)
        if self.time_based:
            progress = self.elapsed / self.duration
        else:
            progress = self.traveled / self.length
        self.progress = clamp(progress, 0.0, 1.0)
        if self.progress >= 1.0 - COMPLETION_EPSILON:
            self.progress = 1.0
            self.completed = True
            return True
        return False

    def point(self) -> Point3:
        """Get the point on the transition path at the current progress."""
        return segment_point(self.path, self.progress)

    def tangent(self) -> Vector3:
        """Get the tangent of the transition path at the current progress."""
        return segment_tangent(self.path, self.progress)


def build_transition(vehicle: Vehicle, source_lane: Lane, source_t: float,
                     target_lane: Lane, target_t: float = None,
                     target_distance: float = None, duration: float = None,
                     retain_speed: bool = False) -> LaneChangeTransition:
    """Build the transition for `vehicle` from `source_lane` to `target_lane`.

    `source_t` is the normalized parameter of the start on the source lane.
    When `target_t` is not given, the end is the same normalized parameter
    projected on the target lane and moved forward by `target_distance`, or
    by a default forward travel based on the vehicle and lane lengths. A
    positive `duration` makes the progress time based.
    """
    source_length = source_lane.length
    target_length = target_lane.length

    if target_distance is not None and target_distance > 0.0:
        forward = target_distance
    else:
        target_distance = None
        forward = max(FORWARD_TRAVEL_LENGTH_FACTOR * vehicle.length,
                      FORWARD_TRAVEL_LANE_FACTOR * source_length)

    source_position = clamp(source_t, 0.0, 1.0) * source_length
    if target_t is None:
        end_position = clamp(source_t, 0.0, 1.0) * target_length + forward
    else:
        end_position = clamp(target_t, 0.0, 1.0) * target_length
    end_position = target_lane.normalize_position(end_position)

    start = source_lane.point_at_position(source_position)
    start_tangent = source_lane.tangent_at_position(source_position)
    end = target_lane.point_at_position(end_position)
    end_tangent = target_lane.tangent_at_position(end_position)

    control_offset = min(max(CONTROL_OFFSET_FACTOR * forward, vehicle.length),
                         CONTROL_OFFSET_LANE_FACTOR * target_length)
    lateral = end - start
    path = BezierSegment.build((
        start,
        start + start_tangent * control_offset + lateral * LATERAL_FACTOR,
        end - end_tangent * control_offset - lateral * LATERAL_FACTOR,
        end))

    length = target_distance if target_distance is not None else path.length
    if duration is not None and duration <= 0.0:
        duration = None

    return LaneChangeTransition(
        source_lane=source_lane, source_position=source_position,
        target_lane=target_lane, end_position=end_position, path=path,
        length=max(length, EPSILON), duration=duration,
        retain_speed=retain_speed, frozen_speed=vehicle.speed)


def is_lane_change_safe(vehicle: Vehicle, front: Optional[Neighbor],
                        back: Optional[Neighbor]) -> LaneChangeSafety:
    """Check if `vehicle` can merge between `front` and `back`.

    The neighbors are the vehicles ahead of and behind the merge point on the
    target lane, with their center distances to it. The merge is allowed when
    the vehicle keeps its own desired gap to the front neighbor and the back
    neighbor keeps its desired gap to the vehicle. Speed should be maintained
    during the change when, besides, the front neighbor is not much slower.
    """
    front_clear = True
    if front is not None:
        required = (vehicle.distance_gap
                    + vehicle.safe_time_headway * vehicle.speed
                    + vehicle.length)
        front_clear = front.distance > required

    back_clear = True
    if back is not None:
        follower = back.vehicle
        required = (vehicle.length / 2.0 + follower.distance_gap
                    + follower.safe_time_headway * follower.speed
                    + follower.length)
        back_clear = back.distance > required

    allowed = front_clear and back_clear
    maintain_speed = allowed and (
        front is None
        or front.vehicle.speed >= vehicle.speed - MAINTAIN_SPEED_TOLERANCE)
    return LaneChangeSafety(allowed, maintain_speed)
