"""
Tests for the session lifecycle.
"""

import re
from unittest.mock import MagicMock

import pytest

from netbench.config import ClusterConfig
from netbench.core.session import Session
from netbench.errors import ProvisioningError
from netbench.infra.kubectl import ClusterInfo


def new_session(config=None, **kwargs):
    communicator = MagicMock()
    communicator.connect.return_value = True
    kube = MagicMock()
    kube.get_cluster_info.return_value = ClusterInfo(control_plane_node="cp", worker_nodes=["w1", "w2"])
    return Session(config or ClusterConfig(), communicator=communicator, kube=kube, executor=MagicMock(), **kwargs)


def test_namespace_name():
    session = new_session(ClusterConfig(namespace_prefix="perf"))
    assert re.fullmatch(r"perf-[0-9a-f]{8}", session.namespace)
    assert new_session().namespace != new_session().namespace


def test_context_manager_creates_and_deletes_namespace():
    session = new_session(namespace="netbench-abc")

    with session as s:
        assert s is session
        session.kube.create_namespace.assert_called_once_with("netbench-abc")
        assert session.reference_node() == "cp"
        assert session.secondary_node() == "w1"

    session.kube.delete_namespace.assert_called_once_with("netbench-abc", timeout=300)
    session.communicator.disconnect.assert_called_once()


def test_keep_namespace():
    session = new_session(keep_namespace=True)
    session.setup()
    session.teardown()
    session.kube.delete_namespace.assert_not_called()


def test_teardown_before_setup_only_disconnects():
    session = new_session()
    session.teardown()
    session.kube.delete_namespace.assert_not_called()
    session.communicator.disconnect.assert_called_once()


def test_unreachable_target():
    session = new_session(ClusterConfig(target="bastion"))
    session.communicator.connect.return_value = False
    with pytest.raises(ProvisioningError, match="bastion"):
        session.setup()
    session.kube.create_namespace.assert_not_called()


def test_node_overrides():
    session = new_session(ClusterConfig(control_plane_node="n1", worker_node="n2"))
    # No cluster info needed when both nodes are pinned
    assert session.reference_node() == "n1"
    assert session.secondary_node() == "n2"


def test_nodes_require_setup():
    with pytest.raises(RuntimeError):
        new_session().reference_node()


def test_run_command_uses_session_namespace():
    session = new_session(namespace="netbench-abc")
    session.run_command_from_pod("pod", "c", ["true"])
    session.executor.run_command_from_pod.assert_called_once_with("netbench-abc", "pod", "c", ["true"])


@pytest.mark.parametrize("failing_call", ["get_cluster_info", "create_namespace"])
def test_failed_setup_disconnects(failing_call):
    session = new_session()
    getattr(session.kube, failing_call).side_effect = ProvisioningError("kubectl get nodes failed")

    with pytest.raises(ProvisioningError):
        with session:
            pass

    session.communicator.disconnect.assert_called_once()
    session.kube.delete_namespace.assert_not_called()


def test_secondary_node_differs_from_pinned_reference():
    session = new_session(ClusterConfig(control_plane_node="w1"))
    session.setup()

    assert session.reference_node() == "w1"
    assert session.secondary_node() == "cp"


def test_pins_on_same_node_rejected():
    session = new_session(ClusterConfig(control_plane_node="w1", worker_node="w1"))
    with pytest.raises(ProvisioningError, match="w1"):
        session.secondary_node()


def test_single_node_has_no_secondary():
    session = new_session()
    session.kube.get_cluster_info.return_value = ClusterInfo(control_plane_node="cp")
    session.setup()
    with pytest.raises(ProvisioningError):
        session.secondary_node()
