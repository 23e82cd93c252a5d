"""Road class."""

from __future__ import annotations

import logging as log
from typing import Any, Callable, Iterable, Iterator, List, Optional

from lanesim.model.lane import Lane
from lanesim.model.vehicle import Vehicle

Listener = Callable[..., None]


class Road:
    """A group of parallel lanes going in the same direction.

    Lanes are indexed from 0, the leftmost lane, to `n - 1`. Adding or
    removing lanes updates the index of all lanes and of the vehicles in
    them. The road updates its lanes in two steps: first all lanes are
    stepped, then all their queues are flushed, so a vehicle that changes
    lanes is never updated twice in the same step.
    """

    __slots__ = ('lanes', 'current_lane_index', '_listeners')

    lanes: List[Lane]
    current_lane_index: int
    _listeners: List[Listener]

    def __init__(self, lanes: Iterable[Lane] = ()):
        self.lanes = []
        self.current_lane_index = 0
        self._listeners = []
        for lane in lanes:
            self.add_lane(lane)

    def _reindex(self):
        for index, lane in enumerate(self.lanes):
            lane.index = index
            for vehicle in lane.vehicles:
                vehicle.lane_index = index
        if self.current_lane_index >= len(self.lanes):
            self.current_lane_index = max(0, len(self.lanes) - 1)

    def add_lane(self, lane: Lane, index: int = None) -> Lane:
        """Insert lane at `index`, or after the last lane if not given.

        A lane that is already in a road, this one included, is removed from
        it first.
        """
        if lane.road is not None:
            lane.road.remove_lane(lane.road.lanes.index(lane))
        if index is None:
            index = len(self.lanes)
        index = max(0, min(index, len(self.lanes)))
        self.lanes.insert(index, lane)
        lane.road = self
        self._reindex()
        log.debug('[road] lane added at %d, %d lanes', index, len(self.lanes))
        return lane

    def remove_lane(self, index: int) -> Optional[Lane]:
        """Remove lane at `index`. Returns `None` if out of range."""
        if not 0 <= index < len(self.lanes):
            return None
        lane = self.lanes.pop(index)
        lane.road = None
        self._reindex()
        log.debug('[road] lane %d removed, %d lanes', index, len(self.lanes))
        return lane

    def get_lane(self, index: int) -> Optional[Lane]:
        """Get lane at `index`, or `None` if out of range."""
        if 0 <= index < len(self.lanes):
            return self.lanes[index]
        return None

    def get_lane_count(self) -> int:
        """Get the number of lanes."""
        return len(self.lanes)

    @property
    def current_lane(self) -> Optional[Lane]:
        """Get the lane selected with `set_current_lane`."""
        return self.get_lane(self.current_lane_index)

    def set_current_lane(self, index: int) -> Optional[Lane]:
        """Select the lane at `index`. Returns `None` if out of range."""
        if not 0 <= index < len(self.lanes):
            return None
        self.current_lane_index = index
        return self.lanes[index]

    def vehicles(self) -> Iterator[Vehicle]:
        """Iterate over the vehicles in all lanes."""
        for lane in self.lanes:
            yield from lane.vehicles

    def update(self, dt: float):
        """Step all lanes and then flush their queues."""
        for lane in self.lanes:
            lane.step(dt)
        for lane in self.lanes:
            lane.flush()

    def register_listener(self, listener: Listener):
        """Register listener to receive raised events."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def raise_event(self, name: str, *args: Any):
        """Raise event to all registered listeners."""
        for listener in self._listeners:
            listener(name, *args)

    def __iter__(self) -> Iterator[Lane]:
        return iter(self.lanes)

    def __len__(self) -> int:
        return len(self.lanes)

    def __repr__(self):
        return f'{Road.__name__}(lanes={len(self.lanes)})'
