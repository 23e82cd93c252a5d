"""Vehicle class and related types."""

from __future__ import annotations

import logging as log
from dataclasses import dataclass, fields
from enum import Enum
from itertools import count
from math import isfinite, sqrt
from random import Random
from typing import TYPE_CHECKING, Callable, Optional, Union

from dataslots import with_slots

from lanesim.model.geometry import (EPSILON, WORLD_UP, Point3, Quaternion,
                                    Vector3, clamp, euclidean_modulo,
                                    orientation_basis)
from lanesim.model.transition import (LaneChangeTransition, build_transition,
                                      is_lane_change_safe)
from lanesim.model.units import mps_to_kph

if TYPE_CHECKING:
    from lanesim.model.lane import Lane

MIN_MAX_SPEED = 0.1
FREE_ROAD_EXPONENT = 4
ORIENTATION_DAMPING = 0.25
LANE_CHANGE_INTERVAL = (3.0, 8.0)

_ids = count()


class State(Enum):
    """States of the vehicle lane change state machine."""

    DRIVING = 0
    MERGING = 1


@with_slots
@dataclass(frozen=True)
class VehicleParameters:
    """Dimensions and behavior parameters of a vehicle.

    Distances are in meters, speeds in meters per second, accelerations in
    meters per second squared and `safe_time_headway` in seconds.
    """

    length: float = 4.0
    width: float = 2.0
    height: float = 1.0
    max_speed: float = 12.0
    max_acceleration: float = 3.0
    comfortable_deceleration: float = 2.0
    safe_time_headway: float = 1.5
    min_gap: float = 1.0
    distance_gap: float = 3.0
    autonomous_lane_change: bool = False


@with_slots
@dataclass(frozen=True)
class Driving:
    """Membership of a vehicle driving in a lane."""

    lane: Lane


@with_slots
@dataclass(frozen=True)
class Merging:
    """Membership of a vehicle changing from `source_lane` to `target_lane`.

    The vehicle stays in the source lane, which updates it, until the
    transition is committed.
    """

    source_lane: Lane
    target_lane: Lane
    transition: LaneChangeTransition


Membership = Union[Driving, Merging]


def _is_number(value) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and isfinite(value))


def _positive(value: float) -> bool:
    return value > 0.0


def _non_negative(value: float) -> bool:
    return value >= 0.0


def _parameter(name: str, accept: Callable[[float], bool], doc: str):
    """Create property for a parameter that ignores invalid values."""
    attribute = f'_{name}'

    def getter(self) -> float:
        return getattr(self, attribute)

    def setter(self, value: float):
        if _is_number(value) and accept(value):
            setattr(self, attribute, float(value))
        else:
            log.debug('[%s] ignoring invalid %s: %r', self, name, value)

    return property(getter, setter, doc=doc)


class Vehicle:
    """A vehicle driving along lanes.

    The vehicle is created in a lane and from then on it's updated by the lane
    it belongs to. Its acceleration is given by the Intelligent Driver Model,
    from the gap to its leader and the speed difference between them. The
    lane change state is held in `membership`, which is either `Driving` in a
    lane or `Merging` from one lane to another. A vehicle taken out of all
    lanes has no membership.

    Attributes:
        id: Unique identifier of the vehicle.
        speed: Current speed, always between 0 and `max_speed`.
        acceleration: The acceleration used in the last integration.
        position: Distance from the start of the lane, in meters.
        path_length: Length of the lane the vehicle is in.
        lane_index: Index of the lane of the vehicle in its road.
        membership: The lane membership of the vehicle.
        point: Current world position of the vehicle, on the path.
        direction: Unit vector pointing where the vehicle moves.
        orientation: Current world rotation of the vehicle.
        autonomous_lane_change: Whether the vehicle changes lanes by itself.
        rng: Random generator used for autonomous lane changes.
        lane_change_timer: Time since the last autonomous lane change attempt.
        lane_change_interval: Time between autonomous lane change attempts.
    """

    __slots__ = ('id', '_length', '_width', '_height', '_max_speed',
                 '_max_acceleration', '_comfortable_deceleration',
                 '_safe_time_headway', '_min_gap', '_distance_gap', '_speed',
                 'acceleration', 'position', 'path_length', 'lane_index',
                 'membership', 'point', 'direction', 'orientation',
                 'autonomous_lane_change', 'rng', 'lane_change_timer',
                 'lane_change_interval')

    id: int
    acceleration: float
    position: float
    path_length: float
    lane_index: int
    membership: Optional[Membership]
    point: Optional[Point3]
    direction: Optional[Vector3]
    orientation: Optional[Quaternion]
    autonomous_lane_change: bool
    rng: Random
    lane_change_timer: float
    lane_change_interval: float

    length = _parameter('length', _positive, 'Vehicle length.')
    width = _parameter('width', _positive, 'Vehicle width.')
    height = _parameter('height', _positive, 'Vehicle height.')
    max_acceleration = _parameter('max_acceleration', _positive,
                                  'Maximum acceleration.')
    comfortable_deceleration = _parameter('comfortable_deceleration',
                                          _positive,
                                          'Comfortable deceleration.')
    safe_time_headway = _parameter('safe_time_headway', _non_negative,
                                   'Desired time headway to the leader.')
    min_gap = _parameter('min_gap', _non_negative,
                         'Minimum gap used by the acceleration law.')
    distance_gap = _parameter('distance_gap', _non_negative,
                              'Desired standstill gap to the leader.')

    def __init__(self, lane: Lane, position: float = 0.0, speed: float = 0.0,
                 parameters: VehicleParameters = None, rng: Random = None):
        if lane is None or getattr(lane, 'geometry', None) is None:
            raise ValueError('A vehicle needs a lane with geometry.')
        if parameters is None:
            parameters = VehicleParameters()

        self.id = next(_ids)
        self._length = 1.0
        self._width = 1.0
        self._height = 1.0
        self._max_speed = MIN_MAX_SPEED
        self._max_acceleration = 1.0
        self._comfortable_deceleration = 1.0
        self._safe_time_headway = 0.0
        self._min_gap = 0.0
        self._distance_gap = 0.0
        self._speed = 0.0
        self.acceleration = 0.0
        self.position = 0.0
        self.path_length = lane.length
        self.lane_index = lane.index
        self.membership = None
        self.point = None
        self.direction = None
        self.orientation = None
        self.rng = rng if rng is not None else Random()
        self.lane_change_timer = 0.0
        self.lane_change_interval = self.rng.uniform(*LANE_CHANGE_INTERVAL)

        self.configure(**{f.name: getattr(parameters, f.name)
                          for f in fields(parameters)})
        self.speed = speed
        lane.add_vehicle(self, position)

    def configure(self, **kwargs):
        """Set several parameters at once, with the same validation."""
        names = {f.name for f in fields(VehicleParameters)}
        for name, value in kwargs.items():
            if name not in names:
                raise TypeError(f'Unknown vehicle parameter: {name!r}.')
            setattr(self, name, value)

    @property
    def parameters(self) -> VehicleParameters:
        """Get the current parameters of the vehicle."""
        return VehicleParameters(**{f.name: getattr(self, f.name)
                                    for f in fields(VehicleParameters)})

    @property
    def max_speed(self) -> float:
        """Maximum speed, never lower than `MIN_MAX_SPEED`."""
        return self._max_speed

    @max_speed.setter
    def max_speed(self, value: float):
        if not _is_number(value):
            log.debug('[%s] ignoring invalid max_speed: %r', self, value)
            return
        self._max_speed = max(MIN_MAX_SPEED, float(value))
        self._speed = min(self._speed, self._max_speed)

    @property
    def speed(self) -> float:
        """Current speed, clamped between 0 and `max_speed`."""
        return self._speed

    @speed.setter
    def speed(self, value: float):
        if not _is_number(value):
            log.debug('[%s] ignoring invalid speed: %r', self, value)
            return
        self._speed = clamp(float(value), 0.0, self._max_speed)

    @property
    def half_length(self) -> float:
        """Half of the vehicle length."""
        return 0.5 * self._length

    @property
    def state(self) -> State:
        """Get the lane change state of the vehicle."""
        if isinstance(self.membership, Merging):
            return State.MERGING
        return State.DRIVING

    @property
    def lane(self) -> Optional[Lane]:
        """Get the lane that owns and updates the vehicle."""
        if isinstance(self.membership, Merging):
            return self.membership.source_lane
        if isinstance(self.membership, Driving):
            return self.membership.lane
        return None

    @property
    def target_lane(self) -> Optional[Lane]:
        """Get the lane the vehicle is moving to, if merging."""
        if isinstance(self.membership, Merging):
            return self.membership.target_lane
        return None

    @property
    def transition(self) -> Optional[LaneChangeTransition]:
        """Get the lane change transition in progress, if any."""
        if isinstance(self.membership, Merging):
            return self.membership.transition
        return None

    @property
    def retaining_speed(self) -> bool:
        """Whether speed is frozen by the lane change in progress."""
        transition = self.transition
        return transition is not None and transition.retain_speed

    def attach(self, lane: Lane, position: float):
        """Set `lane` as the vehicle lane, at `position`.

        Called by the lane when the vehicle is added to it.
        """
        self.membership = Driving(lane)
        self.path_length = lane.length
        self.lane_index = lane.index
        self.position = position
        self.update_pose()

    def detach(self):
        """Clear the lane membership of the vehicle.

        Called by the lane when the vehicle is removed from it.
        """
        self.membership = None

    def compute_acceleration(self, gap: float, delta_speed: float) -> float:
        """Get acceleration from the Intelligent Driver Model.

        The `gap` is the bumper to bumper distance to the leader, infinite if
        there's no leader, and `delta_speed` is the speed of this vehicle
        minus the speed of the leader, positive when approaching it.
        """
        if self.retaining_speed:
            return 0.0

        free_road = (self._speed / max(self._max_speed, 1e-3)) \
            ** FREE_ROAD_EXPONENT

        desired_gap = max(self._min_gap, self._distance_gap
                          + self._speed * self._safe_time_headway)
        if delta_speed > 0.0:
            braking = (self._speed * delta_speed
                       / (2.0 * sqrt(self._max_acceleration
                                     * self._comfortable_deceleration)))
            desired_gap += max(0.0, braking)

        interaction = 0.0
        if isfinite(gap):
            interaction = (desired_gap / max(self._min_gap, gap, EPSILON)) ** 2

        return self._max_acceleration * (1.0 - free_road - interaction)

    def integrate(self, acceleration: float, dt: float, path_length: float):
        """Integrate speed and position over `dt` seconds.

        Uses semi-implicit Euler: the speed is updated first and then used to
        update the position. On closed lanes the position wraps around
        `path_length`. On open lanes a vehicle reaching the end stays there
        and leaves the lane when the lane is flushed. A lane change in
        progress is advanced by the distance traveled.
        """
        self.acceleration = acceleration
        transition = self.transition
        if transition is not None and transition.retain_speed:
            self._speed = min(transition.frozen_speed, self._max_speed)
        else:
            self._speed = clamp(self._speed + acceleration * dt,
                                0.0, self._max_speed)

        self.path_length = max(path_length, EPSILON)
        lane = self.lane
        traveled = self._speed * dt
        position = self.position + traveled
        if lane is None or lane.closed:
            self.position = euclidean_modulo(position, self.path_length)
        elif position >= self.path_length:
            self.position = self.path_length
            lane.enqueue(lane.exit_vehicle, (self,))
        else:
            self.position = position

        if transition is not None and transition.advance(traveled, dt):
            lane.enqueue(self.commit_lane_change, (transition,))

        self.update_pose()

    def step(self, acceleration: float, dt: float):
        """Integrate and then run the autonomous lane change behavior."""
        self.integrate(acceleration, dt, self.path_length)
        self.update_lane_change_timer(dt)

    def update_pose(self):
        """Update world point and orientation from the current position.

        While merging, the pose comes from the lane change transition path.
        The orientation is smoothed by interpolating from the previous one,
        except the first time, when it's set directly.
        """
        transition = self.transition
        if transition is not None:
            point = transition.point()
            tangent = transition.tangent()
        elif self.lane is not None:
            point = self.lane.point_at_position(self.position)
            tangent = self.lane.tangent_at_position(self.position)
        else:
            return

        if point.is_finite():
            self.point = point
        right, up, forward = orientation_basis(
            tangent.normalized(self.direction), WORLD_UP)
        target = Quaternion.from_basis(right, up, forward)

        if self.orientation is None:
            self.orientation = target
        else:
            self.orientation = self.orientation.slerp(target,
                                                      ORIENTATION_DAMPING)
        self.direction = forward

    def start_lane_change(self, source_lane: Lane, source_t: float,
                          target_lane: Lane, target_t: float = None,
                          target_distance: float = None,
                          duration: float = None,
                          retain_speed: bool = False) -> bool:
        """Start changing from `source_lane` to `target_lane`.

        Returns `False` without doing anything if the vehicle is already
        merging, is not in `source_lane` or if `target_lane` is the source
        lane. See `build_transition` for the meaning of the other arguments.
        """
        if self.state is State.MERGING:
            return False
        if (target_lane is None or target_lane is source_lane
                or source_lane is not self.lane):
            return False

        transition = build_transition(
            self, source_lane, source_t, target_lane, target_t,
            target_distance, duration, retain_speed)
        self.membership = Merging(source_lane, target_lane, transition)
        log.debug('[%s] changing from lane %d to lane %d, %.2f m',
                  self, source_lane.index, target_lane.index,
                  transition.length)
        source_lane.raise_event('lane_change_started', self, source_lane,
                                target_lane)
        return True

    def commit_lane_change(self, transition: LaneChangeTransition):
        """Move the vehicle to the target lane of a completed transition.

        Does nothing if `transition` is no longer the one in progress.
        """
        if self.transition is not transition:
            return
        source = transition.source_lane
        target = transition.target_lane
        target.add_vehicle(self, transition.end_position
                           + transition.overshoot)
        log.debug('[%s] now in lane %d at %.2f', self, target.index,
                  self.position)
        target.raise_event('lane_change_committed', self, source, target)

    def try_change_lane(self, direction: int,
                        check_safety: bool = True) -> bool:
        """Try to change to the adjacent lane in `direction`.

        Negative directions go to the left and positive to the right. When
        `check_safety` is set the change only starts if the gaps in the target
        lane are safe. Returns whether the change started.
        """
        lane = self.lane
        if not direction or self.state is State.MERGING or lane is None:
            return False
        if lane.road is None:
            return False
        target = lane.road.get_lane(lane.index + (1 if direction > 0 else -1))
        if target is None:
            return False

        source_t = lane.param_at_position(self.position)
        retain_speed = False
        if check_safety:
            front, back = target.neighbors_at(source_t * target.length,
                                              exclude=self)
            safety = is_lane_change_safe(self, front, back)
            if not safety.allowed:
                log.debug('[%s] unsafe to change to lane %d', self,
                          target.index)
                return False
            retain_speed = safety.maintain_speed

        return self.start_lane_change(lane, source_t, target,
                                      retain_speed=retain_speed)

    def update_lane_change_timer(self, dt: float):
        """Attempt autonomous lane changes at random intervals."""
        if not self.autonomous_lane_change:
            return
        self.lane_change_timer += dt
        if self.lane_change_timer < self.lane_change_interval:
            return
        self.lane_change_timer = 0.0
        self.lane_change_interval = self.rng.uniform(*LANE_CHANGE_INTERVAL)
        direction = self.rng.choice((-1, 1))
        self.try_change_lane(direction)

    def debug_str(self) -> str:
        """Get detailed debug string for the vehicle."""
        speed = mps_to_kph(self._speed)
        max_speed = mps_to_kph(self._max_speed)
        target = self.target_lane
        merging = (f', merging to {target.index}: '
                   f'{self.transition.progress:.0%}'
                   if target is not None else '')
        return (f'{self!r}, lane={self.lane_index}, '
                f'position={self.position:.2f}, '
                f'speed={speed:.1f}/{max_speed:.1f} kph, '
                f'acceleration={self.acceleration:.2f}{merging}')

    def __repr__(self):
        return f'{Vehicle.__name__}(id={self.id})'
