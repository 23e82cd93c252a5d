"""Lane and related classes."""

from __future__ import annotations

import logging as log
from collections import deque
from math import inf as INF
from typing import (TYPE_CHECKING, Any, Callable, Deque, Iterable, Iterator,
                    List, NamedTuple, Optional, Tuple)

from lanesim.model.geometry import (EPSILON, Point3, Vector3, clamp,
                                    euclidean_modulo)
from lanesim.model.shapes import GeometryProvider, Segment, ShapePath

if TYPE_CHECKING:
    from lanesim.model.road import Road
    from lanesim.model.vehicle import Vehicle


class Neighbor(NamedTuple):
    """A vehicle near a position of a lane, with its center distance to it."""

    vehicle: Vehicle
    distance: float


class Lane:
    """A line of traffic along a geometry provider.

    The lane owns the vehicles on it, kept in a list that is sorted by
    position before each update. The leader of a vehicle is the next one in
    this list and the follower is the previous one. On closed lanes these
    relations wrap around, so the last vehicle follows the first one. On open
    lanes the last vehicle has no leader and vehicles exit the lane when they
    reach its end.

    The update is done in two phases, so that the result doesn't depend on the
    order of the vehicles: first the accelerations of all vehicles are
    computed from the state before the update, then all vehicles are
    integrated. Operations that change the vehicles of the lane during the
    update, like committing a lane change, are enqueued and only run when
    `flush` is called.

    Attributes:
        geometry: The path of the lane.
        length: Cached length of the geometry, refreshed on every update.
        closed: Whether the lane is a loop.
        index: Index of the lane in its road, with 0 being the leftmost.
        road: The road containing this lane, if any.
        vehicles: The vehicles in the lane, sorted by position.
    """

    __slots__ = ('geometry', 'length', 'closed', 'index', 'road', 'vehicles',
                 '_queue')

    geometry: GeometryProvider
    length: float
    closed: bool
    index: int
    road: Optional[Road]
    vehicles: List[Vehicle]
    _queue: Deque[Tuple[Callable, Tuple]]

    def __init__(self, geometry: GeometryProvider, index: int = 0,
                 closed: bool = None):
        if geometry is None:
            raise ValueError('A lane needs a geometry provider.')
        self.geometry = geometry
        self.closed = (bool(getattr(geometry, 'closed', False))
                       if closed is None else closed)
        self.length = max(geometry.length(), EPSILON)
        self.index = index
        self.road = None
        self.vehicles = []
        self._queue = deque()

    @staticmethod
    def from_segments(segments: Iterable[Segment], index: int = 0,
                      closed: bool = None) -> Lane:
        """Create lane with a `ShapePath` made of the given segments."""
        return Lane(ShapePath(segments, closed), index)

    def refresh_length(self):
        """Read the length from the geometry and propagate it to vehicles.

        When the length changed, the positions of the vehicles are brought
        back to the valid range of the new length.
        """
        length = max(self.geometry.length(), EPSILON)
        changed = length != self.length
        if changed:
            log.debug('[lane %d] length changed from %.2f to %.2f',
                      self.index, self.length, length)
        self.length = length
        for vehicle in self.vehicles:
            if vehicle.lane is self:
                vehicle.path_length = length
                if changed:
                    vehicle.position = self.normalize_position(
                        vehicle.position)

    def normalize_position(self, position: float) -> float:
        """Bring `position` to the valid range of positions of the lane.

        Positions wrap around on closed lanes and are clamped on open lanes.
        """
        if self.closed:
            return euclidean_modulo(position, self.length)
        return clamp(position, 0.0, self.length)

    def param_at_position(self, position: float) -> float:
        """Get the normalized parameter of the geometry at `position`."""
        if self.closed:
            return euclidean_modulo(position / self.length, 1.0)
        return clamp(position / self.length, 0.0, 1.0)

    def point_at_position(self, position: float) -> Point3:
        """Get the world point at `position` meters from the lane start."""
        return self.geometry.point_at(self.param_at_position(position))

    def tangent_at_position(self, position: float) -> Vector3:
        """Get the unit tangent at `position` meters from the lane start."""
        return self.geometry.tangent_at(self.param_at_position(position))

    def sort(self):
        """Sort vehicles by position."""
        self.vehicles.sort(key=lambda v: v.position)

    def add_vehicle(self, vehicle: Vehicle, position: float = 0.0):
        """Put `vehicle` in this lane at `position`.

        The vehicle is taken out of its previous lane, if it is in one, and
        any lane change in progress is dropped.
        """
        previous = vehicle.lane
        if previous is not None:
            previous.remove_vehicle(vehicle)
        self.refresh_length()
        vehicle.attach(self, self.normalize_position(position))
        self.vehicles.append(vehicle)
        self.sort()
        log.debug('[lane %d] %s added at %.2f', self.index, vehicle,
                  vehicle.position)

    def remove_vehicle(self, vehicle: Vehicle) -> bool:
        """Take `vehicle` out of this lane.

        Returns `False` if the vehicle was not in the lane.
        """
        try:
            self.vehicles.remove(vehicle)
        except ValueError:
            return False
        if vehicle.lane is self:
            vehicle.detach()
        self.sort()
        log.debug('[lane %d] %s removed', self.index, vehicle)
        return True

    def exit_vehicle(self, vehicle: Vehicle):
        """Remove `vehicle` that reached the end of an open lane."""
        if vehicle.lane is not self:
            return
        self.remove_vehicle(vehicle)
        self.raise_event('vehicle_exited', vehicle, self)

    def _adjacent(self, vehicle: Vehicle, offset: int) -> Optional[Vehicle]:
        count = len(self.vehicles)
        try:
            index = self.vehicles.index(vehicle)
        except ValueError:
            return None
        if count < 2:
            return None
        index += offset
        if self.closed:
            return self.vehicles[index % count]
        if 0 <= index < count:
            return self.vehicles[index]
        return None

    def leader(self, vehicle: Vehicle) -> Optional[Vehicle]:
        """Get the vehicle ahead of `vehicle`."""
        return self._adjacent(vehicle, 1)

    def follower(self, vehicle: Vehicle) -> Optional[Vehicle]:
        """Get the vehicle behind `vehicle`."""
        return self._adjacent(vehicle, -1)

    def gap(self, vehicle: Vehicle, leader: Vehicle) -> float:
        """Get the bumper to bumper distance from `vehicle` to `leader`."""
        distance = leader.position - vehicle.position
        if self.closed and distance <= 0.0:
            distance += self.length
        return max(0.0, distance - vehicle.half_length - leader.half_length)

    def gap_to_leader(self, vehicle: Vehicle) -> float:
        """Get the gap from `vehicle` to its leader, infinite if no leader."""
        leader = self.leader(vehicle)
        if leader is None:
            return INF
        return self.gap(vehicle, leader)

    def neighbors_at(self, position: float, exclude: Vehicle = None) \
            -> Tuple[Optional[Neighbor], Optional[Neighbor]]:
        """Get the nearest vehicles in front of and behind `position`.

        Distances are measured between `position` and the vehicle centers. A
        vehicle exactly at `position` counts as the front neighbor.
        """
        position = self.normalize_position(position)
        front = back = None
        for vehicle in self.vehicles:
            if vehicle is exclude:
                continue
            ahead = vehicle.position - position
            if self.closed:
                ahead = euclidean_modulo(ahead, self.length)
                behind = euclidean_modulo(-ahead, self.length)
                if front is None or ahead < front.distance:
                    front = Neighbor(vehicle, ahead)
                if behind > 0.0 and (back is None or behind < back.distance):
                    back = Neighbor(vehicle, behind)
            elif ahead >= 0.0:
                if front is None or ahead < front.distance:
                    front = Neighbor(vehicle, ahead)
            elif back is None or -ahead < back.distance:
                back = Neighbor(vehicle, -ahead)
        return front, back

    def _leader_terms(self, index: int) -> Tuple[float, float]:
        vehicle = self.vehicles[index]
        count = len(self.vehicles)
        if count == 1 or (not self.closed and index == count - 1):
            return INF, 0.0
        leader = self.vehicles[(index + 1) % count]
        return self.gap(vehicle, leader), vehicle.speed - leader.speed

    def step(self, dt: float):
        """Update all vehicles in the lane, without flushing the queue."""
        if not self.vehicles:
            return

        self.refresh_length()
        self.sort()

        vehicles = tuple(self.vehicles)
        accelerations = [v.compute_acceleration(*self._leader_terms(i))
                         for i, v in enumerate(vehicles)]

        for vehicle, acceleration in zip(vehicles, accelerations):
            vehicle.step(acceleration, dt)

    def update(self, dt: float):
        """Update all vehicles in the lane and run enqueued operations."""
        self.step(dt)
        self.flush()

    def enqueue(self, callable_: Callable, args: Tuple = ()):
        """Enqueue function to be called when the lane is flushed."""
        self._queue.append((callable_, args))

    def flush(self):
        """Run all enqueued operations."""
        while self._queue:
            callable_, args = self._queue.popleft()
            callable_(*args)

    def raise_event(self, name: str, *args: Any):
        """Raise event through the road containing this lane."""
        if self.road is not None:
            self.road.raise_event(name, *args)

    def __contains__(self, vehicle: Vehicle) -> bool:
        return vehicle in self.vehicles

    def __iter__(self) -> Iterator[Vehicle]:
        return iter(self.vehicles)

    def __len__(self) -> int:
        return len(self.vehicles)

    def __repr__(self):
        return (f'{Lane.__name__}(index={self.index}, '
                f'length={self.length:.2f}, closed={self.closed}, '
                f'vehicles={len(self.vehicles)})')
