"""
Shared fixtures: a canned-output executor and sessions wired to mocks.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from netbench.builders.command_builders import get_family
from netbench.config import ClusterConfig
from netbench.core.session import Session
from netbench.infra.executor import ExecResult
from netbench.infra.kubectl import ClusterInfo
from netbench.models.topology import Topology
from netbench.models.workload import AddressSet, ServiceEndpoint, Workload, WorkloadPair


class FakeExecutor:
    """
    Stands in for RemoteExecutor.

    The responder gets the shell pipeline and returns either a stdout string
    or a full ExecResult.
    """

    def __init__(self, responder):
        self.responder = responder
        self.calls = []

    def run_command_from_pod(self, namespace, pod, container, command):
        self.calls.append((namespace, pod, container, list(command)))
        reply = self.responder(command[-1])
        if isinstance(reply, ExecResult):
            return reply
        return ExecResult(stdout=reply, stderr="")


def build_pair(family: str, topology: Topology) -> WorkloadPair:
    spec = get_family(family)
    driver = Workload(
        name=f"{family}-local-client",
        node_name="cp",
        image=spec.driver_image,
        container_name=spec.driver_container,
    )
    suffix = "local-server" if topology is Topology.INTRA_NODE else "remote-server"
    target = Workload(
        name=f"{family}-{suffix}",
        node_name="cp" if topology is Topology.INTRA_NODE else "worker-1",
        image=spec.server_image,
        container_name=spec.server_container,
    )
    pod_ip = "10.244.0.5" if topology is Topology.INTRA_NODE else "10.244.1.5"
    service_ip = "10.96.0.10" if topology is Topology.INTRA_NODE else "10.96.0.11"
    service = ServiceEndpoint(name=target.name, ports=list(spec.service_ports), selector={}, cluster_ip=service_ip)
    return WorkloadPair(
        driver=driver,
        target=target,
        service=service,
        topology=topology,
        addresses=AddressSet(pod_ipv4=pod_ip, service_ip=service_ip),
    )


@pytest.fixture
def make_pair():
    return build_pair


@pytest.fixture
def make_session():
    """Build a set-up Session around mocks and an optional FakeExecutor."""

    def _make(executor=None, cluster_info=None, config=None):
        session = Session(
            config or ClusterConfig(),
            communicator=MagicMock(),
            kube=MagicMock(),
            executor=executor or FakeExecutor(lambda pipeline: ""),
            namespace="netbench-test",
        )
        session.cluster_info = cluster_info or ClusterInfo(control_plane_node="cp", worker_nodes=["worker-1"])
        return session

    return _make


@pytest.fixture
def fake_executor():
    return FakeExecutor
