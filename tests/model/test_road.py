"""Unit test for roads."""
import unittest

from lanesim.model.lane import Lane
from lanesim.model.road import Road
from lanesim.model.vehicle import State, Vehicle

from geometries import StraightRing


class RoadTest(unittest.TestCase):
    """Unit test for roads."""

    def test_get_lane(self):
        """Unit test for lane lookup."""
        lanes = [Lane(StraightRing(z=4.0 * i)) for i in range(3)]
        road = Road(lanes)
        self.assertEqual(road.get_lane_count(), 3)
        self.assertEqual(len(road), 3)
        self.assertEqual(list(road), lanes)
        for index, lane in enumerate(lanes):
            self.assertIs(road.get_lane(index), lane)
            self.assertEqual(lane.index, index)
            self.assertIs(lane.road, road)
        self.assertIsNone(road.get_lane(3))
        self.assertIsNone(road.get_lane(-1))
        self.assertEqual(Road().get_lane_count(), 0)
        self.assertIsNone(Road().get_lane(0))

    def test_add_and_remove_lane(self):
        """Unit test for lane insertion and removal."""
        lane_a = Lane(StraightRing())
        lane_b = Lane(StraightRing(z=4.0))
        road = Road([lane_a, lane_b])
        vehicle_a = Vehicle(lane_a)
        vehicle_b = Vehicle(lane_b)
        self.assertEqual((vehicle_a.lane_index, vehicle_b.lane_index), (0, 1))

        lane_c = road.add_lane(Lane(StraightRing(z=-4.0)), 0)
        self.assertEqual(road.lanes, [lane_c, lane_a, lane_b])
        self.assertEqual((lane_a.index, lane_b.index), (1, 2))
        self.assertEqual((vehicle_a.lane_index, vehicle_b.lane_index), (1, 2))

        lane_d = road.add_lane(Lane(StraightRing(z=8.0)))
        self.assertEqual(lane_d.index, 3)

        self.assertIsNone(road.remove_lane(4))
        self.assertIsNone(road.remove_lane(-1))
        self.assertIs(road.remove_lane(0), lane_c)
        self.assertIsNone(lane_c.road)
        self.assertEqual((vehicle_a.lane_index, vehicle_b.lane_index), (0, 1))
        self.assertEqual(road.get_lane_count(), 3)

    def test_add_lane_from_other_road(self):
        """Unit test for lanes moved between roads and within a road."""
        lane_a = Lane(StraightRing())
        lane_b = Lane(StraightRing(z=4.0))
        first = Road([lane_a, lane_b])
        vehicle = Vehicle(lane_b)
        second = Road([Lane(StraightRing(z=8.0))])

        second.add_lane(lane_b, 0)
        self.assertIs(lane_b.road, second)
        self.assertEqual(first.lanes, [lane_a])
        self.assertEqual(second.get_lane_count(), 2)
        self.assertEqual((lane_b.index, vehicle.lane_index), (0, 0))

        second.add_lane(lane_b)
        self.assertEqual(second.get_lane_count(), 2)
        self.assertIs(second.get_lane(1), lane_b)
        self.assertEqual((lane_b.index, vehicle.lane_index), (1, 1))

        first.add_lane(lane_a)
        self.assertEqual(first.lanes, [lane_a])
        self.assertEqual(lane_a.index, 0)

    def test_current_lane(self):
        """Unit test for lane selection."""
        road = Road([Lane(StraightRing(z=4.0 * i)) for i in range(3)])
        self.assertIs(road.current_lane, road.get_lane(0))
        self.assertIs(road.set_current_lane(2), road.get_lane(2))
        self.assertIsNone(road.set_current_lane(3))
        self.assertEqual(road.current_lane_index, 2)
        road.remove_lane(2)
        self.assertEqual(road.current_lane_index, 1)
        self.assertIs(road.current_lane, road.get_lane(1))
        self.assertIsNone(Road().current_lane)

    def test_vehicles(self):
        """Unit test for iteration over vehicles."""
        road = Road([Lane(StraightRing(z=4.0 * i)) for i in range(2)])
        vehicles = [Vehicle(road.get_lane(i % 2), position=10.0 * i)
                    for i in range(4)]
        self.assertEqual(set(road.vehicles()), set(vehicles))

    def test_update_commits_after_all_lanes(self):
        """Unit test for a vehicle being updated once in a lane change step.

        The vehicle changes to a lane that is updated after its source lane in
        the same road update, so if the change was committed right away it
        would be integrated twice.
        """
        source = Lane(StraightRing())
        target = Lane(StraightRing(z=4.0))
        road = Road([source, target])
        vehicle = Vehicle(source, position=50.0, speed=10.0)
        vehicle.start_lane_change(source, 0.5, target, target_distance=2.0)
        transition = vehicle.transition

        road.update(0.5)
        self.assertIs(vehicle.state, State.DRIVING)
        self.assertIs(vehicle.lane, target)
        self.assertGreater(transition.overshoot, 0.0)
        self.assertAlmostEqual(vehicle.position,
                               transition.end_position + transition.overshoot)
        self.assertAlmostEqual(vehicle.position, 50.0 + transition.traveled)

    def test_listeners(self):
        """Unit test for event listeners."""
        road = Road([Lane(StraightRing()), Lane(StraightRing(z=4.0))])
        events = []

        def listener(name, *args):
            events.append(name)

        road.register_listener(listener)
        road.register_listener(listener)
        vehicle = Vehicle(road.get_lane(0), speed=10.0)
        vehicle.try_change_lane(1)
        for _ in range(100):
            road.update(0.05)
        self.assertEqual(events, ['lane_change_started',
                                  'lane_change_committed'])
