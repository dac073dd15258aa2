import pytest

from edge_dispatch.base_station import BaseStation, can_admit
from edge_dispatch.edge_device import EdgeDevice, EdgeDeviceContainer
from edge_dispatch.models import Task


def make_station(*resources):
    bs = BaseStation()
    bs.connect_device(EdgeDeviceContainer(EdgeDevice(*r) for r in resources))
    return bs


TASK = Task(id="t", cpu_need=2.0, mem_need=1.0, budget=5.0)


def test_device_with_spare_resources_within_budget_is_admitted():
    assert can_admit(EdgeDevice(3.0, 2.0, 4.0), TASK)


def test_cpu_exactly_equal_to_need_is_rejected():
    assert not can_admit(EdgeDevice(2.0, 2.0, 4.0), TASK)


def test_memory_exactly_equal_to_need_is_rejected():
    assert not can_admit(EdgeDevice(3.0, 1.0, 4.0), TASK)


def test_price_exactly_at_budget_is_admitted():
    assert can_admit(EdgeDevice(3.0, 2.0, 5.0), TASK)


def test_price_over_budget_is_rejected():
    assert not can_admit(EdgeDevice(3.0, 2.0, 5.01), TASK)


@pytest.mark.parametrize("resources, expected", [
    ([], False),
    ([(1.0, 8.0, 1.0), (8.0, 0.5, 1.0), (8.0, 8.0, 9.0)], False),
    ([(1.0, 8.0, 1.0), (3.0, 2.0, 4.0)], True),
])
def test_try_local_admit_matches_any_eligible_device(resources, expected):
    assert make_station(*resources).try_local_admit(TASK) is expected


def test_find_device_is_first_fit_in_pool_order():
    bs = make_station((2.0, 2.0, 1.0), (9.0, 9.0, 5.0), (3.0, 2.0, 1.0))
    chosen = bs.find_device(TASK)
    assert chosen is bs.get_edge_devices().get_device(1)


def test_admission_does_not_reserve_the_device():
    bs = make_station((3.0, 2.0, 4.0))
    device = bs.get_edge_devices().get_device(0)
    assert bs.try_local_admit(TASK)
    assert bs.try_local_admit(TASK)
    assert device.free_cpu() == 3.0
    assert device.free_memory() == 2.0


def test_station_without_pool_admits_nothing():
    assert not BaseStation().try_local_admit(TASK)
