"""
Data models for the benchmark harness.

Contains:
- topology: Topology and traffic path enums, scenarios
- workload: Pods, services and resolved addresses
"""

from .topology import Scenario, Topology, TrafficPath, topology_from_value, topology_label
from .workload import AddressSet, PortSpec, ServiceEndpoint, Workload, WorkloadPair
