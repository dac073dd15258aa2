import pytest

from edge_dispatch.models import Message, MessageKind, Task

OFFLOAD = MessageKind.OFFLOAD_REQUEST
HANDLE = MessageKind.HANDLE_REQUEST

NO_FIT = [(1.0, 1.0, 1.0)]


def station_hops(net, task_id):
    return [dst for kind, _, dst, tid in net.deliveries
            if tid == task_id and kind in (MessageKind.DISPATCH_REQUEST, OFFLOAD)]


# ----------------------------------------------------------
# peer cascade
# ----------------------------------------------------------
def test_offload_moves_to_first_sibling_with_room_and_clears_record(network):
    net = network([NO_FIT, [(3.0, 2.0, 4.0)], [(9.0, 9.0, 1.0)]])
    a, b, c = net.stations
    t1 = Task(id="T1", cpu_need=2.0, mem_need=1.0, budget=5.0)

    net.cloud.offload(t1, a)
    net.transport.run()

    assert station_hops(net, "T1") == [a.get_address(), b.get_address()]
    assert b.get_edge_devices().get_device(0).executed == ["T1"]
    assert c.tasks == []
    assert "T1" not in net.stations.registry
    assert net.cloud.executed == []


def test_sibling_receives_the_envelope_still_as_offload_request(network):
    net = network([NO_FIT, [(3.0, 2.0, 4.0)]])
    a, b = net.stations
    net.cloud.offload(Task("T1", 2.0, 1.0, 5.0), a)
    net.transport.run()

    hop = [d for d in net.deliveries if d[1] == a.get_address() and d[2] == b.get_address()]
    assert [kind for kind, *_ in hop] == [OFFLOAD]


def test_offload_exhaustion_ends_in_cloud_and_clears_record(network):
    net = network([NO_FIT, NO_FIT])
    a, b = net.stations
    t2 = Task(id="T2", cpu_need=2.0, mem_need=1.0, budget=5.0)

    net.cloud.offload(t2, a)
    net.transport.run()

    assert station_hops(net, "T2") == [a.get_address(), b.get_address()]
    last_kind, last_src, last_dst, _ = net.deliveries[-1]
    assert (last_kind, last_src, last_dst) == (HANDLE, b.get_address(), net.cloud.get_address())
    assert net.cloud.executed == ["T2"]
    assert "T2" not in net.stations.registry
    assert not any(net.stations.has_failed("T2", bs.get_address()) for bs in net.stations)


def test_station_local_fit_skips_the_registry(network):
    net = network([[(3.0, 2.0, 4.0)], NO_FIT])
    a, _ = net.stations
    net.cloud.offload(Task("T3", 2.0, 1.0, 5.0), a)
    net.transport.run()

    assert station_hops(net, "T3") == [a.get_address()]
    assert len(net.stations.registry) == 0


def test_siblings_that_already_failed_are_skipped(network):
    net = network([NO_FIT, NO_FIT, [(3.0, 2.0, 4.0)]])
    a, b, c = net.stations
    net.stations.record_failure("T4", b.get_address())

    net.cloud.offload(Task("T4", 2.0, 1.0, 5.0), a)
    net.transport.run()

    assert station_hops(net, "T4") == [a.get_address(), c.get_address()]
    assert b.tasks == []
    assert "T4" not in net.stations.registry


@pytest.mark.parametrize("n", [1, 2, 5, 8])
def test_unplaceable_task_visits_each_station_at_most_once(network, n):
    net = network([NO_FIT] * n)
    net.cloud.offload(Task("T5", 2.0, 1.0, 5.0), net.stations[n // 2])
    net.transport.run()

    hops = station_hops(net, "T5")
    assert len(hops) <= n
    assert len(set(hops)) == len(hops)
    assert sorted(hops) == sorted(bs.get_address() for bs in net.stations)
    assert net.deliveries[-1][0] is HANDLE
    assert net.deliveries[-1][2] == net.cloud.get_address()
    assert len(net.stations.registry) == 0


def test_many_tasks_in_flight_keep_separate_records(network):
    net = network([NO_FIT, [(10.0, 10.0, 1.0)], NO_FIT])
    a, b, c = net.stations
    tasks = [Task(f"T{i}", 2.0, 1.0, 5.0) for i in range(4)]
    for t in tasks:
        net.cloud.offload(t, c)
    net.transport.run()

    assert b.get_edge_devices().get_device(0).executed == [t.id for t in tasks]
    assert len(net.stations.registry) == 0


# ----------------------------------------------------------
# primary dispatch
# ----------------------------------------------------------
def test_dispatch_success_hands_to_device_and_notifies_cloud(network):
    net = network([[(1.0, 1.0, 1.0), (3.0, 2.0, 4.0)]])
    bs = net.stations[0]
    t = Task("D1", 2.0, 1.0, 5.0)

    net.cloud.dispatch(t, bs)
    assert "D1" in net.cloud.pending
    net.transport.run()

    device = bs.get_edge_devices().get_device(1)
    kinds = [(kind, dst) for kind, _, dst, _ in net.deliveries]
    assert kinds == [
        (MessageKind.DISPATCH_REQUEST, bs.get_address()),
        (HANDLE, device.get_address()),
        (MessageKind.DISPATCH_SUCCEEDED, net.cloud.get_address()),
    ]
    assert device.executed == ["D1"]
    assert net.cloud.pending == {}


def test_dispatch_failure_goes_straight_to_cloud_not_to_siblings(network):
    net = network([NO_FIT, [(3.0, 2.0, 4.0)]])
    a, b = net.stations
    failures = []
    net.cloud.app.set_request_handler(
        MessageKind.DISPATCH_FAILED,
        lambda packet, remote: failures.append((Message.from_packet(packet).task.id, remote.address)),
    )

    net.cloud.dispatch(Task("D2", 2.0, 1.0, 5.0), a)
    net.transport.run()

    assert failures == [("D2", a.get_address())]
    assert b.tasks == []
    assert len(net.stations.registry) == 0


def test_cloud_reroutes_dispatch_failure_into_peer_cascade(network):
    net = network([NO_FIT, [(3.0, 2.0, 4.0)]])
    a, b = net.stations
    net.cloud.dispatch(Task("D3", 2.0, 1.0, 5.0), a)
    net.transport.run()

    kinds = [kind for kind, *_ in net.deliveries]
    assert kinds == [
        MessageKind.DISPATCH_REQUEST,
        MessageKind.DISPATCH_FAILED,
        OFFLOAD,
        OFFLOAD,
        HANDLE,
    ]
    assert b.get_edge_devices().get_device(0).executed == ["D3"]
    assert net.cloud.pending == {}
    assert len(net.stations.registry) == 0


def test_dispatch_with_no_room_anywhere_ends_in_cloud(network):
    net = network([NO_FIT, NO_FIT, NO_FIT])
    net.cloud.dispatch(Task("D4", 2.0, 1.0, 5.0), net.stations[1])
    net.transport.run()

    assert net.cloud.executed == ["D4"]
    assert net.cloud.pending == {}
    assert len(net.stations.registry) == 0


def test_failure_is_logged_with_reason(network, caplog):
    net = network([NO_FIT])
    with caplog.at_level("INFO", logger="edge_dispatch.base_station"):
        net.cloud.dispatch(Task("D5", 2.0, 1.0, 5.0), net.stations[0])
        net.transport.run()
    assert "lacking resource" in caplog.text


def test_rerouted_dispatch_placed_by_sibling_leaves_no_bookkeeping(network):
    net = network([NO_FIT, [(3.0, 2.0, 4.0)], NO_FIT])
    a, b, _ = net.stations
    net.cloud.dispatch(Task("D6", 2.0, 1.0, 5.0), a)
    net.transport.run()

    assert b.get_edge_devices().get_device(0).executed == ["D6"]
    assert net.cloud.executed == []
    assert net.cloud.pending == {}
    assert "D6" not in net.stations.registry
    assert not any(net.stations.has_failed("D6", bs.get_address()) for bs in net.stations)
