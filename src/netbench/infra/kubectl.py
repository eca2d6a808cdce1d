#!/usr/bin/env python3
"""
Cluster control client for the pod network benchmark harness.

KubeClient drives kubectl through a Communicator. It creates namespaces,
pods pinned to nodes and ClusterIP services from rendered manifests, and
polls pod state until pods are running and have addresses.
"""

import ipaddress
import json
import logging
import shlex
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from netbench.builders.manifests import ManifestRenderer
from netbench.errors import ProvisioningError
from netbench.infra.communicator import CommandResult, Communicator
from netbench.models.workload import ServiceEndpoint, Workload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300
POLL_INTERVAL = 1.0

CONTROL_PLANE_LABELS = ("node-role.kubernetes.io/control-plane", "node-role.kubernetes.io/master")


@dataclass
class PodIPs:
    """Addresses assigned to a pod."""
    ipv4: Optional[str] = None
    ipv6: Optional[str] = None
    others: List[str] = field(default_factory=list)

    @classmethod
    def from_strings(cls, ips: List[str]) -> "PodIPs":
        pod_ips = cls()
        for ip in ips:
            try:
                parsed = ipaddress.ip_address(ip)
            except ValueError:
                pod_ips.others.append(ip)
                continue
            if parsed.version == 4 and pod_ips.ipv4 is None:
                pod_ips.ipv4 = ip
            elif parsed.version == 6 and pod_ips.ipv6 is None:
                pod_ips.ipv6 = ip
            else:
                pod_ips.others.append(ip)
        return pod_ips

    def has_ip(self) -> bool:
        return bool(self.ipv4 or self.ipv6)


@dataclass
class ClusterInfo:
    """Node layout of the cluster, read once per session."""
    control_plane_node: Optional[str] = None
    worker_nodes: List[str] = field(default_factory=list)
    windows_nodes: List[str] = field(default_factory=list)
    pod_cidrs: List[str] = field(default_factory=list)

    @property
    def node_names(self) -> List[str]:
        """Control plane node first, then workers."""
        return ([self.control_plane_node] if self.control_plane_node else []) + list(self.worker_nodes)

    @property
    def node_count(self) -> int:
        return len(self.worker_nodes) + (1 if self.control_plane_node else 0)

    @property
    def has_ipv4(self) -> bool:
        if not self.pod_cidrs:
            return True
        return any(ipaddress.ip_network(cidr, strict=False).version == 4 for cidr in self.pod_cidrs)

    def worker_node_name(self, idx: int) -> str:
        """
        Name of the idx-th node, counting the control plane node as 0.

        Raises:
            ProvisioningError: If the cluster has no such node
        """
        if idx == 0:
            if not self.control_plane_node:
                raise ProvisioningError("Cluster has no control plane node")
            return self.control_plane_node
        if idx - 1 >= len(self.worker_nodes):
            raise ProvisioningError(f"Cluster has no worker node {idx} ({len(self.worker_nodes)} workers)")
        return self.worker_nodes[idx - 1]


class KubeClient:
    """
    kubectl-backed client for the cluster objects a benchmark needs.

    Every method raises ProvisioningError on failure; nothing is retried.
    """

    def __init__(
        self,
        communicator: Communicator,
        kubectl: str = "kubectl",
        context: Optional[str] = None,
        renderer: Optional[ManifestRenderer] = None,
        poll_interval: float = POLL_INTERVAL
    ):
        self.communicator = communicator
        self.kubectl = kubectl
        self.context = context
        self.renderer = renderer or ManifestRenderer()
        self.poll_interval = poll_interval

    def kubectl_command(self, *args: str) -> str:
        """Build a kubectl command line with the configured context."""
        parts = [self.kubectl]
        if self.context:
            parts += ["--context", self.context]
        parts += list(args)
        return " ".join(shlex.quote(p) for p in parts)

    def _kubectl(self, *args: str, timeout: Optional[int] = None) -> CommandResult:
        return self.communicator.execute_command(self.kubectl_command(*args), timeout=timeout)

    def _get_json(self, *args: str) -> Dict[str, Any]:
        result = self._kubectl("get", *args, "-o", "json")
        if not result.success:
            raise ProvisioningError(f"kubectl get {' '.join(args)} failed: {result.stderr}")
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError:
            raise ProvisioningError(f"Failed to parse kubectl get {' '.join(args)} output") from None

    def apply_manifest(self, manifest: str) -> None:
        """Create or update objects from a YAML manifest via kubectl apply."""
        command = f"printf '%s' {shlex.quote(manifest)} | {self.kubectl_command('apply', '-f', '-')}"
        result = self.communicator.execute_command(command)
        if not result.success:
            raise ProvisioningError(f"kubectl apply failed: {result.stderr}")
        logger.debug(result.stdout)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def create_namespace(self, name: str) -> None:
        logger.info(f"Creating namespace {name}")
        self.apply_manifest(self.renderer.render_namespace(name))

    def delete_namespace(self, name: str, timeout: int = DEFAULT_TIMEOUT) -> None:
        """Delete a namespace and wait for its objects to go away."""
        logger.info(f"Deleting namespace {name}")
        result = self._kubectl(
            "delete", "namespace", name, "--ignore-not-found", "--wait=true", f"--timeout={timeout}s"
        )
        if not result.success:
            raise ProvisioningError(f"Failed to delete namespace {name}: {result.stderr}")

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def get_cluster_info(self) -> ClusterInfo:
        """Read node roles, operating systems and pod CIDRs."""
        data = self._get_json("nodes")
        info = ClusterInfo()
        for node in sorted(data.get("items", []), key=lambda n: n["metadata"]["name"]):
            name = node["metadata"]["name"]
            labels = node["metadata"].get("labels", {})
            spec = node.get("spec", {})

            if labels.get("kubernetes.io/os", "linux") == "windows":
                info.windows_nodes.append(name)
            info.pod_cidrs.extend(spec.get("podCIDRs") or ([spec["podCIDR"]] if spec.get("podCIDR") else []))

            if info.control_plane_node is None and any(lbl in labels for lbl in CONTROL_PLANE_LABELS):
                info.control_plane_node = name
            else:
                info.worker_nodes.append(name)

        # Clusters without a labelled control plane: use the first node as reference
        if info.control_plane_node is None and info.worker_nodes:
            info.control_plane_node = info.worker_nodes.pop(0)
        return info

    # ------------------------------------------------------------------
    # Pods and services
    # ------------------------------------------------------------------

    def create_pod_on_node(self, workload: Workload, namespace: str) -> Workload:
        """
        Create a pod pinned to workload.node_name.

        Args:
            workload: Pod description
            namespace: Namespace to create it in

        Returns:
            The same workload, for chaining
        """
        logger.info(f"Creating pod {workload.name} on node {workload.node_name} ({workload.image})")
        self.apply_manifest(self.renderer.render_pod(workload, namespace))
        return workload

    def create_service(self, service: ServiceEndpoint, namespace: str, affinity: bool = False,
                       ip_family: Optional[str] = "IPv4") -> ServiceEndpoint:
        """
        Create a service and record its cluster IP on the endpoint.

        Returns:
            The endpoint with cluster_ip filled in
        """
        ports = ", ".join(p.name for p in service.ports)
        logger.info(f"Creating service {service.name} ({ports})")
        self.apply_manifest(self.renderer.render_service(service, namespace, affinity=affinity, ip_family=ip_family))

        data = self._get_json("service", service.name, "-n", namespace)
        cluster_ip = data.get("spec", {}).get("clusterIP")
        if not cluster_ip or cluster_ip == "None":
            raise ProvisioningError(f"Service {service.name} has no cluster IP")
        service.cluster_ip = cluster_ip
        return service

    def get_pod(self, name: str, namespace: str) -> Dict[str, Any]:
        return self._get_json("pod", name, "-n", namespace)

    def wait_for_pod_condition(self, name: str, namespace: str, condition, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
        """
        Poll a pod until condition(pod) is true.

        Raises:
            ProvisioningError: On timeout, or when the pod terminates
        """
        start_time = time.time()
        while True:
            pod = self.get_pod(name, namespace)
            phase = pod.get("status", {}).get("phase")
            if condition(pod):
                return pod
            if phase in ("Succeeded", "Failed"):
                raise ProvisioningError(f"Pod {name} terminated with phase {phase}")
            if time.time() - start_time > timeout:
                raise ProvisioningError(f"Timed out after {timeout}s waiting for pod {name} (phase: {phase})")
            time.sleep(self.poll_interval)

    def wait_for_running(self, name: str, namespace: str, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
        """Wait until a pod is in phase Running."""
        logger.info(f"Waiting for pod {name} to be running")
        return self.wait_for_pod_condition(
            name, namespace, lambda pod: pod.get("status", {}).get("phase") == "Running", timeout
        )

    def wait_for_ips(self, name: str, namespace: str, timeout: float = DEFAULT_TIMEOUT) -> PodIPs:
        """Wait until a pod is running and has IP addresses, then return them."""
        logger.info(f"Waiting for pod {name} IPs")

        def ready(pod: Dict[str, Any]) -> bool:
            status = pod.get("status", {})
            return status.get("phase") == "Running" and bool(_pod_ip_strings(status))

        pod = self.wait_for_pod_condition(name, namespace, ready, timeout)
        pod_ips = PodIPs.from_strings(_pod_ip_strings(pod["status"]))
        if not pod_ips.has_ip():
            raise ProvisioningError(f"Pod {name} has no usable IP: {pod_ips.others}")
        return pod_ips


def _pod_ip_strings(status: Dict[str, Any]) -> List[str]:
    ips = [entry.get("ip") for entry in status.get("podIPs") or [] if entry.get("ip")]
    if not ips and status.get("podIP"):
        ips = [status["podIP"]]
    return ips
