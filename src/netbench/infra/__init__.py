"""
Infrastructure for the benchmark harness.

Contains:
- communicator: Local and SSH command execution
- kubectl: Cluster control client (namespaces, pods, services, readiness)
- executor: Command execution inside pods
"""

from .communicator import CommandResult, Communicator, LocalCommunicator, SSHCommunicator, create_communicator
from .executor import ExecResult, RemoteExecutor
from .kubectl import DEFAULT_TIMEOUT, ClusterInfo, KubeClient, PodIPs
