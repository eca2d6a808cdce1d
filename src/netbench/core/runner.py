#!/usr/bin/env python3
"""
Benchmark runner for the pod network benchmark harness.

For each tool the runner measures the target pod address and then the
service address. Every measurement repeats ROUND_NUM rounds; in a round the
tool runs once, or once per data port for multi-port tools with the port
values summed. Rounds and ports run strictly one after another since they
share the driver process and fixed data ports.
"""

import logging
from typing import List, Optional

from netbench.builders.command_builders import (
    ROUND_NUM,
    STDERR_ATTACH,
    STDERR_FAIL,
    STDERR_FLAG,
    ToolSpec,
    get_tool,
)
from netbench.core.aggregator import AggregateResult, ResultAggregator
from netbench.core.session import Session
from netbench.errors import ExecutionError, InvalidResultError
from netbench.models.topology import TrafficPath, topology_from_value
from netbench.models.workload import Workload, WorkloadPair

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """Runs benchmark tools from a driver pod against a workload pair."""

    def __init__(self, session: Session, round_num: int = ROUND_NUM):
        self.session = session
        self.round_num = round_num

    def _invoke(self, tool: ToolSpec, driver: Workload, pipeline: str, aggregator: ResultAggregator) -> float:
        """
        Run one pipeline in the driver and parse its output.

        Raises:
            ExecutionError: If the command failed, or wrote to stderr for tools
                where that is fatal
        """
        result = self.session.run_command_from_pod(driver.name, driver.container_name, tool.shell_args(pipeline))
        if result.error is not None:
            logger.error(f"Error when running {tool.name} client: {result.error}")
            raise result.error

        stderr = result.stderr
        if stderr and tool.stderr_policy == STDERR_FAIL:
            raise ExecutionError(f"Wrong results from {tool.name} client", stderr=stderr)
        if stderr and tool.stderr_policy == STDERR_FLAG:
            aggregator.record_error(f"Wrong results from {tool.name} client: {stderr}")

        return aggregator.parse_output(result.stdout, stderr if tool.stderr_policy == STDERR_ATTACH else "")

    def measure(self, tool: ToolSpec, pair: WorkloadPair, path: TrafficPath,
                address: Optional[str] = None) -> AggregateResult:
        """
        Measure one tool against one address of a pair.

        Args:
            tool: Tool to run
            pair: Driver/target pair
            path: Pod or service path
            address: Address override; defaults to the pair's address for path

        Returns:
            Aggregate over the rounds, already logged
        """
        topology = topology_from_value(pair.topology)
        if address is None:
            if pair.addresses is None:
                raise ValueError(f"{pair} has no resolved addresses")
            address = pair.addresses.address_for(path)

        aggregator = ResultAggregator(topology, path, tool.description, tool.unit, round_num=self.round_num)
        for round_idx in range(self.round_num):
            round_total = 0.0
            for port in tool.invocation_ports():
                round_total += self._invoke(tool, pair.driver, tool.build_pipeline(address, port), aggregator)
            logger.debug(f"{tool.name} {topology.label}/{path.label} round {round_idx + 1}: {round_total}")
            aggregator.add(round_total)
        return aggregator.finalize()

    def run_tool(self, tool_name: str, pair: WorkloadPair) -> List[AggregateResult]:
        """
        Measure a tool against the pod address, then the service address.

        Returns:
            [pod result, service result]

        Raises:
            ExecutionError: If a command fails
            InvalidResultError: If a result is flagged invalid; both results
                are attached to the exception
        """
        tool = get_tool(tool_name)
        if pair.addresses is None:
            raise ValueError(f"{pair} has no resolved addresses")
        results = [self.measure(tool, pair, path, address) for path, address in pair.addresses.targets()]
        invalid = [r for r in results if not r.valid]
        if invalid:
            errors = "; ".join(e for r in invalid for e in r.errors)
            raise InvalidResultError(f"{tool.name} produced invalid results: {errors}", results=results)
        return results

    def run_iperf(self, pair: WorkloadPair) -> List[AggregateResult]:
        return self.run_tool("iperf_udp", pair)

    def run_netperf_tcp_stream(self, pair: WorkloadPair) -> List[AggregateResult]:
        return self.run_tool("netperf_tcp_stream", pair)

    def run_netperf_tcp_rr(self, pair: WorkloadPair) -> List[AggregateResult]:
        return self.run_tool("netperf_tcp_rr", pair)

    def run_netperf_tcp_crr(self, pair: WorkloadPair) -> List[AggregateResult]:
        return self.run_tool("netperf_tcp_crr", pair)

    def run_hey(self, pair: WorkloadPair) -> List[AggregateResult]:
        return self.run_tool("hey_rps", pair)
