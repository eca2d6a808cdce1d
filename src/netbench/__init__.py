"""
netbench - Pod Network Benchmark Harness

Measures pod-to-pod and pod-to-service network performance on a Kubernetes
cluster, for pods placed on the same node (intra-node) and on different
nodes (inter-node).

Package structure:
- core/: Benchmark orchestration (session, provisioner, runner, aggregator, suites)
- models/: Data models (topology, workloads, services, addresses)
- builders/: Tool command builders and manifest templates
- infra/: Infrastructure (communicator, kubectl client, remote executor)
- config: Cluster configuration loading
- logs: Logging setup
- frontend: Command line interface
"""

__version__ = "1.0.0"
