"""
Remote execution of commands inside pods.

RemoteExecutor is a transport only: it runs a command in a container via
kubectl exec and hands back stdout, stderr and an error, without looking at
the output.
"""

import logging
import shlex
from dataclasses import dataclass
from typing import List, Optional

from netbench.errors import ExecutionError
from netbench.infra.communicator import Communicator

logger = logging.getLogger(__name__)


@dataclass
class ExecResult:
    """Outcome of one command run inside a pod."""
    stdout: str
    stderr: str
    return_code: int = 0
    error: Optional[ExecutionError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class RemoteExecutor:
    """Runs commands inside pod containers through kubectl exec."""

    def __init__(self, communicator: Communicator, kubectl: str = "kubectl",
                 context: Optional[str] = None, timeout: Optional[int] = None):
        """
        Args:
            communicator: Where kubectl runs
            kubectl: kubectl binary
            context: Optional kubeconfig context
            timeout: Per-command timeout in seconds; None waits for the command to finish
        """
        self.communicator = communicator
        self.kubectl = kubectl
        self.context = context
        self.timeout = timeout

    def build_exec_command(self, namespace: str, pod: str, container: str, command: List[str]) -> str:
        parts = [self.kubectl]
        if self.context:
            parts += ["--context", self.context]
        parts += ["exec", "-n", namespace, pod, "-c", container, "--"] + list(command)
        return " ".join(shlex.quote(p) for p in parts)

    def run_command_from_pod(self, namespace: str, pod: str, container: str, command: List[str]) -> ExecResult:
        """
        Run a command in a container and capture its output.

        Args:
            namespace: Pod namespace
            pod: Pod name
            container: Container name inside the pod
            command: Argument vector, e.g. ["bash", "-c", "iperf3 ... | grep ..."]

        Returns:
            ExecResult; error is set when kubectl could not run the command or it
            exited non-zero
        """
        logger.debug(f"[{pod}/{container}] {command}")
        result = self.communicator.execute_command(
            self.build_exec_command(namespace, pod, container, command), timeout=self.timeout
        )
        error = None
        if not result.success:
            error = ExecutionError(
                f"command in pod {pod} (container {container}) exited with code {result.return_code}",
                stderr=result.stderr,
                return_code=result.return_code,
            )
        return ExecResult(stdout=result.stdout, stderr=result.stderr, return_code=result.return_code, error=error)
