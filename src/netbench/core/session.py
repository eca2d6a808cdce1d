#!/usr/bin/env python3
"""
Session module for the pod network benchmark harness.

A Session is the explicit handle every component receives: it owns the
test namespace, the cluster control client and the remote executor. Test
objects live in the session namespace and are removed together with it on
teardown.
"""

import logging
import secrets
from typing import Optional

from netbench.config import ClusterConfig
from netbench.errors import ProvisioningError
from netbench.infra.communicator import Communicator, create_communicator
from netbench.infra.executor import ExecResult, RemoteExecutor
from netbench.infra.kubectl import ClusterInfo, KubeClient

logger = logging.getLogger(__name__)


class Session:
    """
    Cluster access for one benchmark run.

    Lifecycle:
    1. connect() opens the transport
    2. setup() reads the node layout and creates the test namespace
    3. components create pods/services in session.namespace
    4. teardown() deletes the namespace
    """

    def __init__(
        self,
        config: ClusterConfig,
        communicator: Optional[Communicator] = None,
        kube: Optional[KubeClient] = None,
        executor: Optional[RemoteExecutor] = None,
        namespace: Optional[str] = None,
        keep_namespace: bool = False
    ):
        self.config = config
        self.communicator = communicator or create_communicator(
            config.target, user=config.ssh_user, port=config.ssh_port
        )
        self.kube = kube or KubeClient(self.communicator, kubectl=config.kubectl, context=config.context)
        self.executor = executor or RemoteExecutor(
            self.communicator, kubectl=config.kubectl, context=config.context, timeout=config.command_timeout
        )
        self.namespace = namespace or f"{config.namespace_prefix}-{secrets.token_hex(4)}"
        self.keep_namespace = keep_namespace
        self.cluster_info: Optional[ClusterInfo] = None
        self._namespace_created = False

    def connect(self) -> bool:
        return self.communicator.connect()

    def disconnect(self) -> None:
        self.communicator.disconnect()

    def setup(self) -> None:
        """
        Read the cluster layout and create the namespace.

        Raises:
            ProvisioningError: If the transport is unreachable or kubectl fails
        """
        if not self.connect():
            raise ProvisioningError(f"Could not connect to {self.config.target}")
        try:
            self.cluster_info = self.kube.get_cluster_info()
            logger.info(
                f"Cluster nodes: control plane {self.cluster_info.control_plane_node}, "
                f"workers {self.cluster_info.worker_nodes}"
            )
            self.kube.create_namespace(self.namespace)
            self._namespace_created = True
        except BaseException:
            # __exit__ does not run when __enter__ raises
            self.disconnect()
            raise

    def teardown(self) -> None:
        """Delete the namespace unless asked to keep it."""
        try:
            if self._namespace_created:
                if self.keep_namespace:
                    logger.info(f"Keeping namespace {self.namespace}")
                else:
                    self.kube.delete_namespace(self.namespace, timeout=self.config.timeout)
                self._namespace_created = False
        finally:
            self.disconnect()

    def reference_node(self) -> str:
        """Node hosting the driver pod and, for intra-node runs, the target."""
        if self.config.control_plane_node:
            return self.config.control_plane_node
        return self._require_cluster_info().worker_node_name(0)

    def secondary_node(self) -> str:
        """
        Node hosting the target for inter-node runs.

        Defaults to the first cluster node other than the reference node.

        Raises:
            ProvisioningError: If no node distinct from the reference node exists
        """
        reference = self.reference_node()
        if self.config.worker_node:
            node = self.config.worker_node
        else:
            others = [n for n in self._require_cluster_info().node_names if n != reference]
            if not others:
                raise ProvisioningError(f"No node other than {reference} for inter-node placement")
            node = others[0]
        if node == reference:
            raise ProvisioningError(f"Inter-node target and driver both resolve to node {node}")
        return node

    def _require_cluster_info(self) -> ClusterInfo:
        if self.cluster_info is None:
            raise RuntimeError("Session is not set up. Call setup() first.")
        return self.cluster_info

    def run_command_from_pod(self, pod: str, container: str, command) -> ExecResult:
        """Run a command in a pod of this session's namespace."""
        return self.executor.run_command_from_pod(self.namespace, pod, container, command)

    def __enter__(self) -> "Session":
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.teardown()
        return False
