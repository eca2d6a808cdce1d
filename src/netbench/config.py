#!/usr/bin/env python3
"""
Cluster configuration for the pod network benchmark harness.

Only cluster access is configurable: where kubectl runs, which context it
uses, node overrides and timeouts. Benchmark parameters (ports, images,
round count, request counts) are fixed in builders.command_builders.

Example cluster.yaml:

    target: local            # or an SSH alias of a host with kubectl
    context: kind-kind
    namespace_prefix: netbench
    timeout: 300
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from netbench.errors import ConfigError

# =============================================================================
# Environment overrides
# =============================================================================

ENV_OVERRIDES = {
    "NETBENCH_TARGET": "target",
    "NETBENCH_KUBECTL": "kubectl",
    "NETBENCH_CONTEXT": "context",
    "NETBENCH_NAMESPACE_PREFIX": "namespace_prefix",
}


@dataclass
class ClusterConfig:
    """How to reach the cluster under test."""
    target: str = "local"                       # "local" or SSH alias/hostname
    kubectl: str = "kubectl"                    # kubectl binary on the target
    context: Optional[str] = None               # kubeconfig context
    namespace_prefix: str = "netbench"          # Test namespace gets a random suffix
    timeout: int = 300                          # Pod readiness timeout (seconds)
    command_timeout: Optional[int] = None       # Benchmark command timeout, None = wait
    control_plane_node: Optional[str] = None    # Reference node override
    worker_node: Optional[str] = None           # Secondary node override
    ssh_user: Optional[str] = None
    ssh_port: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusterConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        config = cls(**data)
        config.validate()
        return config

    def validate(self) -> None:
        if not self.target:
            raise ConfigError("'target' must not be empty")
        if not self.namespace_prefix:
            raise ConfigError("'namespace_prefix' must not be empty")
        for name in ("timeout", "command_timeout", "ssh_port"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value <= 0):
                raise ConfigError(f"'{name}' must be a positive integer, got {value!r}")


def parse(path: Path) -> Dict[str, Any]:
    """Parse a YAML configuration file into a dictionary."""
    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in {path}: {e}") from None
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def load_config(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> ClusterConfig:
    """
    Load cluster configuration.

    Args:
        path: Optional YAML file; defaults apply when omitted
        environ: Environment to read overrides from (defaults to os.environ)

    Returns:
        Validated ClusterConfig
    """
    data = parse(path) if path else {}
    environ = os.environ if environ is None else environ
    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[key] = environ[env_name]
    return ClusterConfig.from_dict(data)
