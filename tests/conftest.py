from types import SimpleNamespace

import pytest

from edge_dispatch.base_station import BaseStationContainer
from edge_dispatch.cloud import CloudServer
from edge_dispatch.edge_device import EdgeDevice, EdgeDeviceContainer
from edge_dispatch.transport import Transport


def build_network(pools):
    """
    One cloud plus a station per entry of `pools`; each entry is a list of
    (cpu, memory, price) triples for that station's devices.
    """
    transport = Transport()
    cloud = CloudServer()
    cloud.install(transport)

    stations = BaseStationContainer(len(pools))
    stations.install(transport)
    for bs, resources in zip(stations, pools):
        pool = EdgeDeviceContainer(EdgeDevice(*r) for r in resources)
        pool.install(transport)
        bs.connect_device(pool)
    stations.link_cloud(cloud)

    deliveries = []
    transport.add_tap(lambda msg, src, dst: deliveries.append((msg.kind, src.address, dst.address, msg.task.id)))
    return SimpleNamespace(transport=transport, cloud=cloud, stations=stations, deliveries=deliveries)


@pytest.fixture
def network():
    return build_network
