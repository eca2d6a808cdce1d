#!/usr/bin/env python3
"""
Communicator module for the pod network benchmark harness.

This module provides abstract and concrete implementations for running
shell commands on the machine that holds cluster credentials: either the
local machine, or a bastion host reached over SSH. Every kubectl call the
harness makes goes through a Communicator.

Uses Invoke for local execution and Fabric for SSH, which share the same
run() API and result objects.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from fabric import Connection
from invoke import Context
from invoke.exceptions import CommandTimedOut, UnexpectedExit
from paramiko.ssh_exception import SSHException

LOCAL_TARGET = "local"


@dataclass
class CommandResult:
    """Result of a command execution."""
    stdout: str
    stderr: str
    return_code: int

    @property
    def success(self) -> bool:
        """Check if the command executed successfully."""
        return self.return_code == 0

    def __str__(self) -> str:
        status = "SUCCESS" if self.success else f"FAILED (code: {self.return_code})"
        return f"CommandResult({status})\nstdout: {self.stdout}\nstderr: {self.stderr}"


class Communicator(ABC):
    """
    Abstract base class for command execution.

    Concrete implementations provide the actual mechanism (local shell,
    SSH, ...). Commands are run through a shell, so pipelines and here
    documents work.
    """

    def __init__(self, target: str, command_timeout: Optional[int] = None):
        """
        Initialize the communicator.

        Args:
            target: Where commands run ("local" or an SSH alias/hostname)
            command_timeout: Default timeout for commands in seconds, None for no limit
        """
        self.target = target
        self.command_timeout = command_timeout

    @abstractmethod
    def connect(self) -> bool:
        """
        Prepare the communicator for use.

        Returns:
            True if the target is reachable, False otherwise
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release any open connection."""
        pass

    @abstractmethod
    def _run(self, command: str, timeout: Optional[int]):
        """Run a command and return an Invoke Result."""
        pass

    def execute_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        """
        Execute a shell command.

        Args:
            command: The command to execute
            timeout: Optional timeout override in seconds

        Returns:
            CommandResult containing stdout, stderr, and return code. Transport
            failures are reported with return code -1 and the error in stderr.
        """
        timeout = timeout if timeout is not None else self.command_timeout

        try:
            result = self._run(command, timeout)
            return CommandResult(
                stdout=result.stdout.strip() if result.stdout else "",
                stderr=result.stderr.strip() if result.stderr else "",
                return_code=result.return_code
            )
        except UnexpectedExit as e:
            return CommandResult(
                stdout=e.result.stdout.strip() if e.result.stdout else "",
                stderr=e.result.stderr.strip() if e.result.stderr else "",
                return_code=e.result.return_code
            )
        except CommandTimedOut as e:
            return CommandResult(
                stdout="",
                stderr=f"command timed out after {e.timeout}s",
                return_code=-1
            )
        except (SSHException, OSError) as e:
            return CommandResult(
                stdout="",
                stderr=str(e),
                return_code=-1
            )

    def __enter__(self) -> "Communicator":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


class LocalCommunicator(Communicator):
    """Runs commands on the local machine through Invoke."""

    def __init__(self, command_timeout: Optional[int] = None):
        super().__init__(LOCAL_TARGET, command_timeout=command_timeout)
        self._context = Context()

    def connect(self) -> bool:
        return True

    def disconnect(self) -> None:
        pass

    def _run(self, command: str, timeout: Optional[int]):
        return self._context.run(
            command,
            hide=True,  # Don't print output to console
            warn=True,  # Don't raise exception on non-zero exit
            in_stream=False,
            timeout=timeout
        )


class SSHCommunicator(Communicator):
    """
    SSH-based communicator using Fabric.

    Used when kubectl and its kubeconfig live on a bastion host. SSH config
    files are honoured, so aliases from ~/.ssh/config work as targets.
    """

    def __init__(
        self,
        target: str,
        user: Optional[str] = None,
        port: Optional[int] = None,
        connect_timeout: int = 30,
        command_timeout: Optional[int] = None
    ):
        """
        Initialize the SSH communicator with Fabric.

        Args:
            target: SSH alias or hostname
            user: Optional username for SSH connection (if not in SSH config)
            port: SSH port (if not in SSH config, defaults to 22)
            connect_timeout: Timeout for establishing connection (seconds)
            command_timeout: Default timeout for command execution (seconds)
        """
        super().__init__(target, command_timeout=command_timeout)
        self.user = user
        self.port = port
        self.connect_timeout = connect_timeout
        self._connection: Optional[Connection] = None

    def _create_connection(self) -> Connection:
        """Create a new Fabric connection with the configured parameters."""
        return Connection(
            host=self.target,
            user=self.user,
            port=self.port,
            connect_timeout=self.connect_timeout
        )

    def connect(self) -> bool:
        try:
            self._connection = self._create_connection()
            self._connection.open()
            return True
        except (SSHException, OSError):
            self._connection = None
            return False

    def disconnect(self) -> None:
        """Close the SSH connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    @property
    def connection(self) -> Connection:
        """Get the active connection, creating one if necessary."""
        if self._connection is None or not self._connection.is_connected:
            self._connection = self._create_connection()
        return self._connection

    def _run(self, command: str, timeout: Optional[int]):
        return self.connection.run(
            command,
            hide=True,
            warn=True,
            in_stream=False,
            timeout=timeout
        )


def create_communicator(target: str = LOCAL_TARGET, **kwargs) -> Communicator:
    """
    Factory function to create a communicator instance.

    Args:
        target: "local" to run kubectl on this machine, anything else is an SSH target
        **kwargs: Additional arguments passed to the communicator constructor

    Returns:
        Communicator instance
    """
    if not target or target == LOCAL_TARGET:
        # user/port only apply to SSH
        return LocalCommunicator(command_timeout=kwargs.get("command_timeout"))
    return SSHCommunicator(target, **kwargs)
