#!/usr/bin/env python3
"""
Topology module for the pod network benchmark harness.

A benchmark compares traffic between two pods on the same node (intra-node)
with traffic between pods on different nodes (inter-node), each over the
direct pod address and over a ClusterIP service.
"""

from dataclasses import dataclass
from enum import Enum

from netbench.errors import InvalidTopologyError


class Topology(Enum):
    """Placement of the driver pod relative to the target pod."""

    INTRA_NODE = 0
    INTER_NODE = 1

    @property
    def label(self) -> str:
        """Label used in report lines ("Intra" or "Inter")."""
        return "Intra" if self is Topology.INTRA_NODE else "Inter"

    @property
    def case_suffix(self) -> str:
        """Suffix used in case names, e.g. "IntraNode"."""
        return f"{self.label}Node"


class TrafficPath(Enum):
    """Address kind a benchmark client targets."""

    POD = "pod"
    SERVICE = "svc"

    @property
    def label(self) -> str:
        return self.value


def topology_from_value(value: int) -> Topology:
    """
    Convert a raw topology value into a Topology.

    Args:
        value: 0 for intra-node, 1 for inter-node

    Returns:
        The matching Topology

    Raises:
        InvalidTopologyError: For any other value
    """
    if isinstance(value, Topology):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTopologyError(f"Get wrong test type: {value!r}")
    try:
        return Topology(value)
    except ValueError:
        raise InvalidTopologyError(f"Get wrong test type: {value!r}") from None


def topology_label(value: int) -> str:
    """Return "Intra" or "Inter" for a raw topology value."""
    return topology_from_value(value).label


@dataclass(frozen=True)
class Scenario:
    """A benchmark tool family measured under one topology."""

    family: str          # Tool family ("iperf", "netperf", "nginx")
    topology: Topology

    def __str__(self) -> str:
        return f"{self.family}, {self.topology.case_suffix}"
