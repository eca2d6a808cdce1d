#!/usr/bin/env python3
"""
Workload module for the pod network benchmark harness.

Data containers for the cluster objects a benchmark creates: pods, the
ClusterIP services fronting them, and the addresses resolved once they are
ready. They are populated by the KubeClient and the TopologyProvisioner.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from netbench.models.topology import Topology, TrafficPath


@dataclass(frozen=True)
class PortSpec:
    """A container or service port."""

    port: int
    protocol: str = "TCP"   # TCP or UDP
    target_port: Optional[int] = None

    @property
    def name(self) -> str:
        """Service port name, e.g. "5201-udp"."""
        return f"{self.target_port or self.port}-{self.protocol.lower()}"


@dataclass
class Workload:
    """
    Represents a pod created for a benchmark.

    The driver pod issues benchmark client commands; the target pod runs the
    server process being measured.
    """

    name: str                           # Pod name
    node_name: str                      # Node the pod is pinned to
    image: str                          # Container image
    container_name: str                 # Container the tool runs in
    command: Optional[List[str]] = None
    ports: List[PortSpec] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    # Populated from the cluster once the pod is up
    phase: Optional[str] = None
    pod_ips: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Workload({self.name} @ {self.node_name})"


@dataclass
class ServiceEndpoint:
    """A ClusterIP service load balancing to the target pod."""

    name: str
    ports: List[PortSpec]
    selector: Dict[str, str]
    service_type: str = "ClusterIP"
    cluster_ip: Optional[str] = None

    def __str__(self) -> str:
        return f"ServiceEndpoint({self.name} @ {self.cluster_ip or 'N/A'})"


@dataclass(frozen=True)
class AddressSet:
    """Addresses of a target pod and of the service in front of it."""

    pod_ipv4: str
    service_ip: str
    pod_ipv6: Optional[str] = None

    def address_for(self, path: TrafficPath) -> str:
        """Return the address a client should target for the given path."""
        if path is TrafficPath.POD:
            return self.pod_ipv4
        return self.service_ip

    def targets(self) -> List[Tuple[TrafficPath, str]]:
        """Pod address first, then the service address."""
        return [(TrafficPath.POD, self.pod_ipv4), (TrafficPath.SERVICE, self.service_ip)]


@dataclass
class WorkloadPair:
    """A driver pod and a target pod placed according to a topology."""

    driver: Workload
    target: Workload
    service: ServiceEndpoint
    topology: Topology
    addresses: Optional[AddressSet] = None

    def __str__(self) -> str:
        return (
            f"WorkloadPair({self.topology.label}: {self.driver.name}@{self.driver.node_name}"
            f" -> {self.target.name}@{self.target.node_name})"
        )
