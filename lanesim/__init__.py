"""Definition of module main funcion."""

import logging as log
import sys
from random import Random
from typing import List

from lanesim.model.lane import Lane
from lanesim.model.road import Road
from lanesim.model.shapes import running_track
from lanesim.model.simulation import Simulation
from lanesim.model.units import mps_to_kph, time_string
from lanesim.model.vehicle import Vehicle, VehicleParameters

DEFAULT_DURATION = 60.0
FRAME_TIME = 1.0 / 60.0
LANE_SPACING = 4.0
INITIAL_SPACING = 8.0
TIME_EPSILON = 1e-9

PRESETS = (
    (VehicleParameters(max_speed=10.0, safe_time_headway=0.3, min_gap=1.0,
                       distance_gap=1.0, autonomous_lane_change=True), 5.0),
    (VehicleParameters(max_speed=18.0, safe_time_headway=0.3, min_gap=1.0,
                       distance_gap=2.5, autonomous_lane_change=True), 12.0),
    (VehicleParameters(max_speed=25.0, safe_time_headway=0.3, min_gap=1.0,
                       distance_gap=2.5, autonomous_lane_change=True), 15.0),
)


def main():
    """Lanesim entry point."""
    args = [a for a in sys.argv[1:] if a not in ('-v', '--verbose')]
    verbose = len(args) < len(sys.argv) - 1
    log_config(verbose)
    try:
        duration = float(args[0]) if args else DEFAULT_DURATION
    except ValueError:
        log.error('Invalid duration: %s', args[0])
        return 2
    run(duration)
    return 0


def log_config(verbose: bool = False):
    """Initialize log configuration."""
    log.basicConfig(format='%(levelname)s: %(message)s',
                    level=log.DEBUG if verbose else log.INFO)


def build_demo(seed: int = None) -> Simulation:
    """Create a two lane running track with three vehicles."""
    rng = Random(seed)
    road = Road(Lane(running_track(offset=i * LANE_SPACING))
                for i in range(2))
    lane = road.get_lane(0)
    for index, (parameters, speed) in enumerate(PRESETS):
        Vehicle(lane, INITIAL_SPACING * index, speed, parameters,
                Random(rng.random()))
    return Simulation((road,))


def run(duration: float, seed: int = None) -> Simulation:
    """Run the demo for `duration` simulated seconds, without rendering."""
    simulation = build_demo(seed)
    next_report = 1.0
    while duration - simulation.time > TIME_EPSILON:
        simulation.update(min(FRAME_TIME, duration - simulation.time))
        if simulation.time >= next_report:
            log.info('[%s] %s', time_string(simulation.time),
                     summary(list(simulation.vehicles())))
            next_report += 1.0
    return simulation


def summary(vehicles: List[Vehicle]) -> str:
    """Get a one line summary of lane, position and speed of `vehicles`."""
    return ' | '.join(f'{v.id}: lane {v.lane_index} '
                      f'{v.position:6.1f} m {mps_to_kph(v.speed):5.1f} kph'
                      for v in vehicles)
