#!/usr/bin/env python3
"""
Topology provisioner for the pod network benchmark harness.

For a benchmark family the provisioner creates:
- one driver pod on the reference node, shared by every scenario
- for each topology, a target pod (on the reference node for intra-node,
  on a second node for inter-node) and a ClusterIP service selecting it

It blocks until pods are running and the target has addresses. There is no
rollback and no retry: the first failure aborts, and the session teardown
removes whatever was created.
"""

import logging
from typing import Dict, Optional

from netbench.builders.command_builders import FamilySpec, get_family
from netbench.core.session import Session
from netbench.errors import ProvisioningError
from netbench.models.topology import Topology, topology_from_value
from netbench.models.workload import AddressSet, ServiceEndpoint, Workload, WorkloadPair

logger = logging.getLogger(__name__)

LABEL_KEY = "netbench-e2e"

TARGET_SUFFIXES = {
    Topology.INTRA_NODE: "local-server",
    Topology.INTER_NODE: "remote-server",
}


class TopologyProvisioner:
    """Creates driver and target pods for a benchmark family."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def driver_name(family: str) -> str:
        return f"{family}-local-client"

    @staticmethod
    def target_name(family: str, topology: Topology) -> str:
        return f"{family}-{TARGET_SUFFIXES[topology_from_value(topology)]}"

    def node_for(self, topology: Topology) -> str:
        """Node the target pod is pinned to for a topology."""
        topology = topology_from_value(topology)
        if topology is Topology.INTRA_NODE:
            return self.session.reference_node()
        return self.session.secondary_node()

    def provision_driver(self, family: str) -> Workload:
        """
        Create the driver pod on the reference node and wait until it runs.

        Raises:
            ProvisioningError: If creation or the readiness wait fails
        """
        spec = get_family(family)
        name = self.driver_name(family)
        driver = Workload(
            name=name,
            node_name=self.session.reference_node(),
            image=spec.driver_image,
            container_name=spec.driver_container,
            command=spec.driver_command,
            labels={LABEL_KEY: name},
        )
        self.session.kube.create_pod_on_node(driver, self.session.namespace)
        pod = self.session.kube.wait_for_running(name, self.session.namespace, timeout=self.session.config.timeout)
        driver.phase = pod.get("status", {}).get("phase")
        return driver

    def _create_service(self, spec: FamilySpec, name: str) -> ServiceEndpoint:
        service = ServiceEndpoint(
            name=name,
            ports=list(spec.service_ports),
            selector={LABEL_KEY: name},
        )
        return self.session.kube.create_service(service, self.session.namespace)

    def provision_target(self, family: str, topology: Topology, driver: Workload) -> WorkloadPair:
        """
        Create the service and target pod for one topology.

        Args:
            family: Benchmark family ("iperf", "netperf", "nginx")
            topology: Target placement relative to the driver
            driver: Driver pod returned by provision_driver()

        Returns:
            WorkloadPair with resolved addresses

        Raises:
            ProvisioningError: If any step fails
        """
        topology = topology_from_value(topology)
        spec = get_family(family)
        name = self.target_name(family, topology)

        service = self._create_service(spec, name)
        target = Workload(
            name=name,
            node_name=self.node_for(topology),
            image=spec.server_image,
            container_name=spec.server_container,
            command=spec.server_command,
            ports=list(spec.server_ports),
            labels={LABEL_KEY: name},
        )
        self.session.kube.create_pod_on_node(target, self.session.namespace)
        pod_ips = self.session.kube.wait_for_ips(name, self.session.namespace, timeout=self.session.config.timeout)
        if not pod_ips.ipv4:
            raise ProvisioningError(f"Pod {name} has no IPv4 address")
        target.phase = "Running"
        target.pod_ips = [ip for ip in (pod_ips.ipv4, pod_ips.ipv6) if ip]

        pair = WorkloadPair(
            driver=driver,
            target=target,
            service=service,
            topology=topology,
            addresses=AddressSet(pod_ipv4=pod_ips.ipv4, service_ip=service.cluster_ip, pod_ipv6=pod_ips.ipv6),
        )
        logger.info(f"Provisioned {pair}: pod {pod_ips.ipv4}, svc {service.cluster_ip}")
        return pair

    def provision(self, family: str, driver: Optional[Workload] = None) -> Dict[Topology, WorkloadPair]:
        """
        Provision a driver and one workload pair per topology.

        Returns:
            Mapping from topology to its workload pair; pairs share the driver
        """
        driver = driver or self.provision_driver(family)
        return {topology: self.provision_target(family, topology, driver) for topology in Topology}
