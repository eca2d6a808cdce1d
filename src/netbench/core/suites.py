#!/usr/bin/env python3
"""
Benchmark suites.

A suite provisions one family (iperf, netperf or nginx) and runs each of its
tools against the intra-node and inter-node pairs as separate cases. A case
failure is recorded and the next case runs; a provisioning failure aborts
the suite.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from netbench.builders.command_builders import get_family, get_supported_families
from netbench.core.aggregator import AggregateResult
from netbench.core.provisioner import TopologyProvisioner
from netbench.core.runner import BenchmarkRunner
from netbench.core.session import Session
from netbench.errors import BenchmarkError, InvalidResultError, ProvisioningError
from netbench.models.topology import Scenario, Topology

logger = logging.getLogger(__name__)


@dataclass
class CaseResult:
    """Outcome of one tool on one topology."""
    name: str
    results: List[AggregateResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.error is None


@dataclass
class SuiteReport:
    """Cases run by a suite, or the reason it did not run."""
    family: str
    cases: List[CaseResult] = field(default_factory=list)
    skipped: Optional[str] = None
    aborted: Optional[str] = None

    @property
    def failures(self) -> List[CaseResult]:
        return [case for case in self.cases if not case.passed]

    @property
    def passed(self) -> bool:
        return self.aborted is None and not self.failures

    @property
    def results(self) -> List[AggregateResult]:
        return [result for case in self.cases for result in case.results]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "skipped": self.skipped,
            "aborted": self.aborted,
            "cases": [
                {
                    "name": case.name,
                    "passed": case.passed,
                    "error": case.error,
                    "results": [r.to_dict() for r in case.results],
                }
                for case in self.cases
            ],
        }


def skip_reason(session: Session) -> Optional[str]:
    """
    Check whether the cluster can run the benchmarks.

    Returns:
        A reason to skip, or None when the cluster is suitable
    """
    info = session.cluster_info
    if info is None:
        return None
    if not info.has_ipv4:
        return "cluster does not support IPv4"
    if info.windows_nodes:
        return f"cluster has Windows nodes: {', '.join(info.windows_nodes)}"
    nodes_pinned = session.config.control_plane_node and session.config.worker_node
    if info.node_count < 2 and not nodes_pinned:
        return f"need at least 2 nodes, cluster has {info.node_count}"
    try:
        session.secondary_node()
    except ProvisioningError as e:
        return str(e)
    return None


def run_case(runner: BenchmarkRunner, tool_name: str, pair) -> CaseResult:
    """Run one tool against one pair, turning benchmark errors into a failed case."""
    case = CaseResult(name=str(Scenario(tool_name, pair.topology)))
    logger.info(f"=== RUN {case.name}")
    try:
        case.results = runner.run_tool(tool_name, pair)
    except InvalidResultError as e:
        case.results = e.results
        case.error = str(e)
    except BenchmarkError as e:
        case.error = str(e)

    if case.passed:
        logger.info(f"--- PASS {case.name}")
    else:
        logger.error(f"--- FAIL {case.name}: {case.error}")
    return case


def run_suite(
    session: Session,
    family: str,
    provisioner: Optional[TopologyProvisioner] = None,
    runner: Optional[BenchmarkRunner] = None
) -> SuiteReport:
    """
    Provision a family and run its tools on both topologies.

    Args:
        session: Set-up session
        family: "iperf", "netperf" or "nginx"

    Returns:
        SuiteReport with one case per tool and topology
    """
    spec = get_family(family)
    report = SuiteReport(family=family)

    reason = skip_reason(session)
    if reason:
        logger.warning(f"Skipping {family} suite: {reason}")
        report.skipped = reason
        return report

    provisioner = provisioner or TopologyProvisioner(session)
    runner = runner or BenchmarkRunner(session)

    try:
        pairs = provisioner.provision(family)
    except ProvisioningError as e:
        logger.error(f"Provisioning {family} failed: {e}")
        report.aborted = str(e)
        return report

    for tool_name in spec.tools:
        for topology in Topology:
            report.cases.append(run_case(runner, tool_name, pairs[topology]))
    return report


def run_suites(session: Session, families: Optional[Iterable[str]] = None) -> List[SuiteReport]:
    """Run the given suites (all of them by default) in order."""
    families = list(families) if families else get_supported_families()
    return [run_suite(session, family) for family in families]
