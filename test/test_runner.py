"""
Tests for the benchmark runner, driven by canned tool output.
"""

import itertools
import logging

import pytest

from netbench.core.runner import BenchmarkRunner
from netbench.errors import ExecutionError, InvalidResultError
from netbench.infra.executor import ExecResult
from netbench.models.topology import Topology, TrafficPath


def test_iperf_constant_output(make_session, make_pair, fake_executor, caplog):
    """Three rounds of 937.00 report 937.00 for pod and svc."""
    caplog.set_level(logging.INFO, logger="netbench.core.aggregator")
    executor = fake_executor(lambda pipeline: "937.00")
    runner = BenchmarkRunner(make_session(executor))

    results = runner.run_iperf(make_pair("iperf", Topology.INTRA_NODE))

    assert [r.path for r in results] == [TrafficPath.POD, TrafficPath.SERVICE]
    assert all(r.value == pytest.approx(937.0) for r in results)
    assert all(r.valid for r in results)
    assert len(executor.calls) == 6
    assert "Intra node pod to pod UDP bandwidth: 937.00 Mbits/sec" in caplog.messages
    assert "Intra node pod to svc UDP bandwidth: 937.00 Mbits/sec" in caplog.messages


def test_iperf_commands_target_pod_then_service(make_session, make_pair, fake_executor):
    executor = fake_executor(lambda pipeline: "900")
    runner = BenchmarkRunner(make_session(executor))

    runner.run_iperf(make_pair("iperf", Topology.INTER_NODE))

    namespace, pod, container, command = executor.calls[0]
    assert namespace == "netbench-test"
    assert pod == "iperf-local-client"
    assert container == "iperf3"
    assert command == [
        "bash", "-c",
        "iperf3 -u -b 0 -f m -w 256K -O 1 -c 10.244.1.5 | grep receiver | awk '{print $7}'",
    ]
    assert all("-c 10.244.1.5" in call[3][-1] for call in executor.calls[:3])
    assert all("-c 10.96.0.11" in call[3][-1] for call in executor.calls[3:])


def test_mean_of_distinct_rounds(make_session, make_pair, fake_executor):
    values = itertools.cycle(["100", "200", "300"])
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: next(values))))

    pod, svc = runner.run_iperf(make_pair("iperf", Topology.INTRA_NODE))

    assert pod.samples == [100.0, 200.0, 300.0]
    assert pod.value == pytest.approx(200.0)
    assert svc.value == pytest.approx(200.0)


def test_netperf_sums_ports_and_divides_by_rounds(make_session, make_pair, fake_executor, caplog):
    """150.0 per port per round is reported as 450.00."""
    caplog.set_level(logging.INFO, logger="netbench.core.aggregator")
    executor = fake_executor(lambda pipeline: "150.0")
    runner = BenchmarkRunner(make_session(executor))

    results = runner.run_netperf_tcp_stream(make_pair("netperf", Topology.INTER_NODE))

    assert [r.value for r in results] == [pytest.approx(450.0), pytest.approx(450.0)]
    assert results[0].samples == [450.0, 450.0, 450.0]
    # 3 rounds x 3 ports x 2 paths
    assert len(executor.calls) == 18
    for port in (10000, 10001, 10002):
        assert sum(f"-P {port} " in call[3][-1] for call in executor.calls) == 6
    assert "Inter node pod to pod TCP bandwidth: 450.00 Mbits/sec" in caplog.messages


def test_netperf_rr_and_crr_units(make_session, make_pair, fake_executor, caplog):
    caplog.set_level(logging.INFO, logger="netbench.core.aggregator")
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: "1000")))
    pair = make_pair("netperf", Topology.INTRA_NODE)

    rr = runner.run_netperf_tcp_rr(pair)
    crr = runner.run_netperf_tcp_crr(pair)

    assert rr[0].value == pytest.approx(3000.0)
    assert crr[1].value == pytest.approx(3000.0)
    assert "Intra node pod to svc TCP_RR: 3000.00 trans/sec" in caplog.messages
    assert "Intra node pod to pod TCP_CRR: 3000.00 trans/sec" in caplog.messages


def test_hey_runs_through_sh(make_session, make_pair, fake_executor):
    executor = fake_executor(lambda pipeline: "1234.5")
    runner = BenchmarkRunner(make_session(executor))

    results = runner.run_hey(make_pair("nginx", Topology.INTRA_NODE))

    assert results[1].unit == "reqs/sec"
    assert results[1].value == pytest.approx(1234.5)
    assert executor.calls[0][2] == "hey"
    assert executor.calls[0][3][:2] == ["sh", "-c"]
    assert "http://10.244.0.5 |" in executor.calls[0][3][-1]


def test_runs_are_idempotent(make_session, make_pair, fake_executor):
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: "42.5")))
    pair = make_pair("netperf", Topology.INTRA_NODE)

    first = [r.to_dict() for r in runner.run_netperf_tcp_rr(pair)]
    second = [r.to_dict() for r in runner.run_netperf_tcp_rr(pair)]

    assert first == second


def test_parse_failure_is_reported_and_flagged(make_session, make_pair, fake_executor, caplog):
    caplog.set_level(logging.INFO, logger="netbench.core.aggregator")
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: "not-a-number")))

    with pytest.raises(InvalidResultError) as excinfo:
        runner.run_iperf(make_pair("iperf", Topology.INTRA_NODE))

    results = excinfo.value.results
    assert len(results) == 2
    assert not results[0].valid
    assert results[0].value == 0.0
    assert "Error parsing tool output" in results[0].errors[0]
    # The report line is still produced
    assert "Intra node pod to pod UDP bandwidth: 0.00 Mbits/sec" in caplog.messages


def test_hey_parse_failure_carries_stderr(make_session, make_pair, fake_executor):
    reply = ExecResult(stdout="", stderr="dial tcp 10.96.0.10:80: connect: connection refused")
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: reply)))

    with pytest.raises(InvalidResultError) as excinfo:
        runner.run_hey(make_pair("nginx", Topology.INTRA_NODE))

    assert "STDERR: dial tcp" in excinfo.value.results[0].errors[0]


def test_iperf_stderr_flags_result(make_session, make_pair, fake_executor):
    reply = ExecResult(stdout="937.00", stderr="iperf3: error - unable to set window")
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: reply)))

    with pytest.raises(InvalidResultError) as excinfo:
        runner.run_iperf(make_pair("iperf", Topology.INTRA_NODE))

    pod = excinfo.value.results[0]
    assert pod.value == pytest.approx(937.0)
    assert "Wrong results from iperf_udp client" in pod.errors[0]


def test_netperf_stderr_fails_case(make_session, make_pair, fake_executor):
    reply = ExecResult(stdout="150.0", stderr="netperf: send_omni: connection refused")
    runner = BenchmarkRunner(make_session(fake_executor(lambda pipeline: reply)))

    with pytest.raises(ExecutionError) as excinfo:
        runner.run_netperf_tcp_stream(make_pair("netperf", Topology.INTRA_NODE))

    assert "connection refused" in excinfo.value.stderr


def test_exec_error_fails_case(make_session, make_pair, fake_executor):
    error = ExecutionError("command in pod exited with code 1", stderr="boom", return_code=1)
    executor = fake_executor(lambda pipeline: ExecResult(stdout="", stderr="boom", error=error))
    runner = BenchmarkRunner(make_session(executor))

    with pytest.raises(ExecutionError):
        runner.run_iperf(make_pair("iperf", Topology.INTRA_NODE))
    assert len(executor.calls) == 1


def test_unknown_tool_rejected(make_session, make_pair):
    runner = BenchmarkRunner(make_session())
    with pytest.raises(ValueError):
        runner.run_tool("ping", make_pair("iperf", Topology.INTRA_NODE))
