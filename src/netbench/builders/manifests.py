"""
Kubernetes manifest rendering.

Pod, Service and Namespace manifests are rendered from Jinja2 templates
shipped next to this module, then checked with PyYAML before being handed
to kubectl.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from netbench.models.workload import ServiceEndpoint, Workload

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


class ManifestRenderer:
    """Renders cluster object manifests from the bundled templates."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def _render(self, template_name: str, **context: Any) -> str:
        rendered = self.jinja_env.get_template(template_name).render(**context)
        # Fail here rather than in kubectl if a template produced invalid YAML
        document = load_manifest(rendered)
        if not isinstance(document, dict) or "kind" not in document:
            raise ValueError(f"Template {template_name} did not render a Kubernetes object")
        return rendered

    def render_namespace(self, name: str) -> str:
        return self._render("namespace.yaml.j2", name=name)

    def render_pod(self, workload: Workload, namespace: str) -> str:
        """
        Render a Pod pinned to the workload's node.

        Args:
            workload: Pod description
            namespace: Namespace to create the pod in

        Returns:
            YAML manifest
        """
        return self._render(
            "pod.yaml.j2",
            name=workload.name,
            namespace=namespace,
            labels=workload.labels,
            node_name=workload.node_name,
            container_name=workload.container_name,
            image=workload.image,
            command=workload.command,
            ports=workload.ports,
        )

    def render_service(
        self,
        service: ServiceEndpoint,
        namespace: str,
        affinity: bool = False,
        ip_family: Optional[str] = "IPv4",
    ) -> str:
        """Render a multi-port Service selecting the target pod."""
        return self._render(
            "service.yaml.j2",
            name=service.name,
            namespace=namespace,
            service_type=service.service_type,
            affinity=affinity,
            ip_family=ip_family,
            selector=service.selector,
            ports=service.ports,
        )


def load_manifest(text: str) -> Dict[str, Any]:
    """Parse a rendered manifest back into a dictionary."""
    return yaml.safe_load(text)

