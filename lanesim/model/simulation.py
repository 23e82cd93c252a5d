"""Simulation class."""

from __future__ import annotations

import logging as log
from math import ceil, isfinite
from typing import Any, Callable, Iterable, Iterator, List

from lanesim.model.road import Road
from lanesim.model.units import Duration, Timestamp, time_string
from lanesim.model.vehicle import Vehicle

Listener = Callable[..., None]

MAX_STEP = 0.05


class Simulation:
    """Traffic simulation over a set of roads.

    Each call to `update` advances the simulation time, splitting the time
    step into sub-steps no longer than `max_step`, so that large frame times
    don't make the integration unstable. Events raised by the roads, like
    lane changes, are forwarded to the listeners of the simulation.
    """

    time: Timestamp
    max_step: Duration
    roads: List[Road]
    _listeners: List[Listener]

    def __init__(self, roads: Iterable[Road] = (),
                 max_step: Duration = MAX_STEP):
        if not max_step > 0.0:
            raise ValueError('Maximum step must be positive.')
        self.time = 0.0
        self.max_step = max_step
        self.roads = []
        self._listeners = []
        for road in roads:
            self.add_road(road)

    def add_road(self, road: Road):
        """Add road to the simulation."""
        if road in self.roads:
            return
        self.roads.append(road)
        road.register_listener(self.raise_event)
        self.raise_event('road_added', road)

    def remove_road(self, road: Road) -> bool:
        """Remove road from the simulation."""
        try:
            self.roads.remove(road)
        except ValueError:
            return False
        self.raise_event('road_removed', road)
        return True

    def vehicles(self) -> Iterator[Vehicle]:
        """Iterate over the vehicles in all roads."""
        for road in self.roads:
            yield from road.vehicles()

    def update(self, dt: Duration) -> int:
        """Update the simulation with time step of `dt`.

        Returns the number of sub-steps used. Steps that are not positive or
        not finite are ignored.
        """
        if not isfinite(dt) or dt <= 0.0:
            log.debug('[%s] ignoring time step %r', time_string(self.time), dt)
            return 0

        steps = max(1, ceil(dt / self.max_step))
        sub_step = dt / steps
        for _ in range(steps):
            for road in self.roads:
                road.update(sub_step)
            self.time += sub_step
        return steps

    def register_listener(self, listener: Listener):
        """Register listener to receive raised events."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def raise_event(self, name: str, *args: Any):
        """Raise event to all registered listeners."""
        log.debug('[%s] %s %s', time_string(self.time), name,
                  ', '.join(map(str, args)))
        for listener in self._listeners:
            listener(name, *args)
