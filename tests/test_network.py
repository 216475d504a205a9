# tests/test_network.py

"""
Tests for the overflow/move network model: admission, routing, the event
rules, and whole-run properties (conservation, capacity, FIFO, determinism).
"""

import pytest

from qnet import md1
from qnet.arrivals import ArrivalEvent, initial_arrival
from qnet.entities import Job
from qnet.errors import InvariantViolation
from qnet.metrics import TimeAverage, mm1_mean_queue_length
from qnet.network import (DiscreteState, LeaveEvent, MoveEvent, OverflowEvent,
                          ServedEvent, add_job)
from qnet.params import NetworkParameters, zeros
from qnet.queues import simulate


class RecordingState(DiscreteState):
    """Keeps the ids of departed jobs in departure order."""
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.left_ids = []

    def leave(self, job):
        super().leave(job)
        self.left_ids.append(job.unique_id)


def test_state_is_built_from_parameters(busy_network):
    state = DiscreteState(busy_network, seed=0)
    assert len(state.servers) == 3
    assert [s.max_buffer_size for s in state.servers] == [2, 3, 1]
    assert state.servers[1].move_weights == (0.2, 0.0, 0.5)
    assert state.servers[1].overflow_weights == (0.3, 0.0, 0.3)
    assert state.servers[2].service_rate == 0.8
    assert (state.jobs_in_system, state.moving_jobs_num, state.last_job) == (0, 0, 1)

def test_unbounded_server_is_never_full(single_server):
    server = DiscreteState(single_server).servers[0]
    for i in range(1000):
        server.enqueue(Job(i))
    assert server.max_buffer_size is None
    assert not server.is_full()

def test_capacity_counts_the_job_in_service(overflow_pair):
    server = DiscreteState(overflow_pair).servers[0]
    assert server.enqueue(Job(1)) is True
    assert server.is_full()
    with pytest.raises(InvariantViolation):
        server.enqueue(Job(2))

def test_servers_keep_their_routing_row_sums(busy_network):
    server = DiscreteState(busy_network).servers[1]
    assert server.move_total == pytest.approx(0.7)
    assert server.overflow_total == pytest.approx(0.6)

def test_routing_draws_do_not_recheck_rows(busy_network, monkeypatch):
    state = DiscreteState(busy_network, seed=0)

    def fail(*args, **kwargs):
        raise AssertionError("row re-validated during a run")

    monkeypatch.setattr("qnet.sampling.check_sub_distribution", fail)
    simulate(state, initial_arrival(state), max_time=50.0)
    assert state.arrivals > 0

def test_dequeue_on_idle_server_aborts(single_server):
    with pytest.raises(InvariantViolation):
        DiscreteState(single_server).servers[0].dequeue()


def test_add_job_to_idle_server_schedules_service(single_server):
    state = DiscreteState(single_server, seed=0)
    server = state.servers[0]
    te = add_job(1.0, state, server, Job(1))
    assert isinstance(te.event, ServedEvent) and te.event.server is server
    assert te.time > 1.0
    assert list(server.buffer) == [Job(1)]

def test_add_job_to_busy_server_just_queues(single_server):
    state = DiscreteState(single_server, seed=0)
    server = state.servers[0]
    add_job(0.0, state, server, Job(1))
    assert add_job(0.5, state, server, Job(2)) is None
    assert [j.unique_id for j in server.buffer] == [1, 2]
    assert server.in_service == Job(1)

def test_overflow_goes_to_the_other_server_not_out(overflow_pair):
    state = DiscreteState(overflow_pair, seed=0)
    a, b = state.servers
    state.jobs_in_system = 2
    a.enqueue(Job(1))

    te = add_job(0.0, state, a, Job(2))
    assert isinstance(te.event, OverflowEvent)
    assert te.event.transfer_to is b and te.event.job == Job(2)
    assert te.time > 0.0
    assert state.moving_jobs_num == 1
    assert a.rejected_count == 1

    follow = te.event.process(te.time, state)
    assert list(b.buffer) == [Job(2)]
    assert [type(f.event) for f in follow] == [ServedEvent]
    assert follow[0].event.server is b
    assert state.moving_jobs_num == 0
    assert state.left_jobs_num == 0
    assert state.jobs_in_system == 2

def test_overflow_without_destination_leaves():
    params = NetworkParameters(L=1, gamma_scv=1.0, lam=1.0, eta=1.0, mu_vector=[1.0],
                               P=[[0.0]], Q=[[0.0]], p_e=[1.0], K=[1])
    state = DiscreteState(params, seed=0)
    state.jobs_in_system = 2
    state.servers[0].enqueue(Job(1))
    assert add_job(0.0, state, state.servers[0], Job(2)) is None
    assert state.jobs_in_system == 1
    assert state.left_jobs_num == 1
    assert state.moving_jobs_num == 0

def test_zero_capacity_server_rejects_everything():
    params = NetworkParameters(L=2, gamma_scv=1.0, lam=1.0, eta=1.0, mu_vector=[1.0, 1.0],
                               P=zeros(2), Q=[[0.0, 1.0], [0.0, 0.0]], p_e=[1.0, 0.0], K=[0, -1])
    state = DiscreteState(params, seed=0)
    te = add_job(0.0, state, state.servers[0], Job(1))
    assert isinstance(te.event, OverflowEvent)
    assert not state.servers[0].buffer


def test_arrival_books_next_arrival_and_enters_a_server(single_server):
    state = DiscreteState(single_server, seed=3)
    first = initial_arrival(state)
    assert isinstance(first.event, ArrivalEvent) and first.event.job == Job(1)

    new = first.event.process(first.time, state)
    assert (state.jobs_in_system, state.arrivals, state.last_job) == (1, 1, 2)
    kinds = [type(te.event) for te in new]
    assert kinds == [ArrivalEvent, ServedEvent]
    assert new[0].event.job == Job(2)
    assert all(te.time > first.time for te in new)
    assert list(state.servers[0].buffer) == [Job(1)]

def test_service_completion_serves_next_and_routes_finished_job():
    params = NetworkParameters(L=2, gamma_scv=1.0, lam=1.0, eta=2.0, mu_vector=[1.0, 1.0],
                               P=[[0.0, 1.0], [0.0, 0.0]], Q=zeros(2), p_e=[1.0, 0.0], K=[-1, -1])
    state = DiscreteState(params, seed=0)
    a, b = state.servers
    state.jobs_in_system = 2
    a.enqueue(Job(1)); a.enqueue(Job(2))

    new = ServedEvent(a).process(5.0, state)
    assert [type(te.event) for te in new] == [ServedEvent, MoveEvent]
    move = new[1].event
    assert move.transfer_to is b and move.job == Job(1)
    assert list(a.buffer) == [Job(2)]
    assert a.served_count == 1
    assert state.moving_jobs_num == 1
    assert state.jobs_in_system == 2

    follow = move.process(new[1].time, state)
    assert list(b.buffer) == [Job(1)]
    assert [type(te.event) for te in follow] == [ServedEvent]
    assert state.moving_jobs_num == 0

def test_leave_after_service_is_terminal(single_server):
    state = DiscreteState(single_server, seed=0)
    state.jobs_in_system = 1
    state.servers[0].enqueue(Job(1))
    assert ServedEvent(state.servers[0]).process(1.0, state) == []
    assert state.jobs_in_system == 0
    assert state.left_jobs_num == 1

def test_leave_event_decrements_once(single_server):
    state = DiscreteState(single_server)
    state.jobs_in_system = 3
    assert LeaveEvent(Job(9)).process(0.0, state) == []
    assert state.jobs_in_system == 2
    assert state.left_jobs_num == 1

def test_negative_population_aborts(single_server):
    state = DiscreteState(single_server)
    with pytest.raises(InvariantViolation):
        LeaveEvent(Job(1)).process(0.0, state)

def test_event_for_another_model_aborts(single_server):
    with pytest.raises(InvariantViolation):
        ArrivalEvent(Job(1)).process(0.0, md1.QueueState(1.0, 2.0))
    with pytest.raises(InvariantViolation):
        md1.ArrivalEvent().process(0.0, DiscreteState(single_server))


def test_conservation_and_capacity_hold_throughout_a_run(busy_network):
    state = DiscreteState(busy_network, seed=11)
    checked = []

    def check(t, s):
        assert s.jobs_in_system >= 0 and s.moving_jobs_num >= 0
        assert s.arrivals - s.left_jobs_num == s.jobs_in_system
        assert sum(s.queue_lengths()) == s.jobs_in_system - s.moving_jobs_num
        assert sum(s.queue_lengths()) == s.jobs_in_buffers()
        for server in s.servers:
            assert len(server.buffer) <= server.max_buffer_size
        checked.append(t)

    simulate(state, initial_arrival(state), max_time=500.0, callback=check)
    assert len(checked) > 1000
    assert state.arrivals - state.left_jobs_num == state.jobs_in_system
    assert sum(s.rejected_count for s in state.servers) > 0

def test_job_ids_are_unique_and_increasing(busy_network):
    state = DiscreteState(busy_network, seed=5)
    seen = []

    def collect(t, s):
        ids = [job.unique_id for server in s.servers for job in server.buffer]
        assert len(ids) == len(set(ids))
        seen.extend(ids)

    simulate(state, initial_arrival(state), max_time=100.0, callback=collect)
    assert state.last_job == state.arrivals + 1
    assert max(seen) <= state.arrivals

def test_single_server_is_fifo(single_server):
    state = RecordingState(single_server, seed=2)

    def in_arrival_order(t, s):
        ids = [j.unique_id for j in s.servers[0].buffer]
        assert ids == sorted(ids)

    simulate(state, initial_arrival(state), max_time=300.0, callback=in_arrival_order)
    assert state.left_ids == list(range(1, len(state.left_ids) + 1))
    assert len(state.left_ids) > 100

def _trace(params, seed):
    state = DiscreteState(params, seed=seed)
    trace = []
    simulate(state, initial_arrival(state), max_time=200.0,
             callback=lambda t, s: trace.append((t, tuple(s.queue_lengths()), s.moving_jobs_num)))
    final = state.snapshot()
    return trace, [list(s.buffer) for s in final["servers"]], final["left_jobs_num"]

def test_identical_seeds_give_identical_runs(busy_network):
    assert _trace(busy_network, 42) == _trace(busy_network, 42)

def test_different_seeds_give_different_runs(busy_network):
    assert _trace(busy_network, 1)[0] != _trace(busy_network, 2)[0]

def test_log_times_capture_network_snapshots(busy_network):
    state = DiscreteState(busy_network, seed=8)
    records = simulate(state, initial_arrival(state), max_time=50.0, log_times=[10.0, 20.0, 30.0])
    assert [t for t, _ in records] == [10.0, 20.0, 30.0]
    for _, snap in records:
        assert "params" not in snap
        assert snap["arrivals"] - snap["left_jobs_num"] == snap["jobs_in_system"]
        assert snap["servers"][0] is not state.servers[0]

def test_single_server_network_matches_mm1(single_server):
    # gamma_scv = 1 makes every delay exponential
    T = 20000.0
    state = DiscreteState(single_server, seed=2024)
    avg = TimeAverage(lambda s: s.jobs_in_system)
    simulate(state, initial_arrival(state), max_time=T, callback=avg)
    expected = mm1_mean_queue_length(single_server.lam, single_server.mu_vector[0])
    assert avg.mean(T, state) == pytest.approx(expected, abs=0.15)
