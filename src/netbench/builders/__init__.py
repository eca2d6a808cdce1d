"""
Command and manifest builders for the benchmark harness.

Contains:
- command_builders: Tool pipelines, output extraction rules, suite constants
- manifests: Jinja2 rendering of Pod, Service and Namespace manifests
"""

from .command_builders import (
    CLIENT_BUILDERS,
    FAMILIES,
    ROUND_NUM,
    FamilySpec,
    OutputExtraction,
    ToolSpec,
    get_family,
    get_tool,
    validate_tool_name,
)
from .manifests import ManifestRenderer
