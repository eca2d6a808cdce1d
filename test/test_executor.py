"""
Tests for running commands inside pods.
"""

from unittest.mock import MagicMock

from netbench.infra.communicator import CommandResult
from netbench.infra.executor import RemoteExecutor


def test_build_exec_command():
    executor = RemoteExecutor(MagicMock())
    command = executor.build_exec_command(
        "netbench-test", "iperf-local-client", "iperf3", ["bash", "-c", "iperf3 -c 10.0.0.1 | grep receiver"]
    )
    assert command == (
        "kubectl exec -n netbench-test iperf-local-client -c iperf3 -- "
        "bash -c 'iperf3 -c 10.0.0.1 | grep receiver'"
    )


def test_build_exec_command_with_context():
    executor = RemoteExecutor(MagicMock(), kubectl="/usr/local/bin/kubectl", context="prod")
    command = executor.build_exec_command("ns", "pod", "c", ["true"])
    assert command == "/usr/local/bin/kubectl --context prod exec -n ns pod -c c -- true"


def test_run_command_success():
    communicator = MagicMock()
    communicator.execute_command.return_value = CommandResult("937", "", 0)
    executor = RemoteExecutor(communicator, timeout=120)

    result = executor.run_command_from_pod("ns", "pod", "c", ["sh", "-c", "echo 937"])

    assert result.success
    assert result.stdout == "937"
    assert result.return_code == 0
    assert communicator.execute_command.call_args[1] == {"timeout": 120}


def test_run_command_failure_sets_error():
    communicator = MagicMock()
    communicator.execute_command.return_value = CommandResult("", 'container "c" not found', 1)
    executor = RemoteExecutor(communicator)

    result = executor.run_command_from_pod("ns", "pod", "c", ["true"])

    assert not result.success
    assert result.return_code == 1
    assert result.error.return_code == 1
    assert result.error.stderr == 'container "c" not found'
    assert "exited with code 1" in str(result.error)


def test_stderr_alone_is_not_an_error():
    communicator = MagicMock()
    communicator.execute_command.return_value = CommandResult("150.0", "warning", 0)

    result = RemoteExecutor(communicator).run_command_from_pod("ns", "pod", "c", ["true"])

    assert result.success
    assert result.stderr == "warning"
