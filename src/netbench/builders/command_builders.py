"""
Command builders for the benchmark tools.

This module generates the shell pipelines run inside the driver pod. Each
pipeline is the tool invocation followed by a text filtering stage, so that
the only thing coming back from the pod is a single numeric token. The
filtering stage is kept as data (OutputExtraction) so it can be checked
without a cluster.

Benchmark parameters here are fixed constants of the suite, not settings.
"""

import shlex
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from netbench.models.workload import PortSpec


# =============================================================================
# SUITE CONSTANTS
# =============================================================================

ROUND_NUM = 3

IPERF_PORT = 5201
NETPERF_CONTROL_PORT = 12865
NETPERF_DATA_PORTS: Tuple[int, ...] = (10000, 10001, 10002)
HTTP_PORT = 80

HEY_CONCURRENCY = 1
HEY_REQUESTS = 5000

IPERF_IMAGE = "networkstatic/iperf3"
NETPERF_IMAGE = "sirot/netperf-latest"
HEY_IMAGE = "ricoli/hey"
NGINX_IMAGE = "nginx:1.21.6-alpine"

# stderr handling per tool
STDERR_FAIL = "fail"        # non-empty stderr fails the case
STDERR_FLAG = "flag"        # non-empty stderr marks the result invalid
STDERR_ATTACH = "attach"    # stderr is only reported alongside parse errors


def container_name_for(image: str) -> str:
    """Container name derived from an image, e.g. "sirot/netperf-latest" -> "netperf-latest"."""
    return image.rsplit("/", 1)[-1].split(":", 1)[0]


# =============================================================================
# OUTPUT EXTRACTION
# =============================================================================


@dataclass(frozen=True)
class OutputExtraction:
    """
    Rule reducing tool output to one numeric token.

    Equivalent to ``grep <pattern> | awk '{print $<field>}'``.
    """

    pattern: str
    field: int  # 1-based, as in awk

    def to_shell(self) -> str:
        """Render the rule as the filtering stage of a shell pipeline."""
        return f"grep {shlex.quote(self.pattern)} | awk '{{print ${self.field}}}'"

    def extract(self, output: str) -> str:
        """
        Apply the rule locally to raw tool output.

        Args:
            output: Raw stdout of the benchmark tool

        Returns:
            One line per matching input line, holding the selected field
            (empty when the line is too short), joined by newlines
        """
        tokens = []
        for line in output.splitlines():
            if self.pattern not in line:
                continue
            fields = line.split()
            tokens.append(fields[self.field - 1] if len(fields) >= self.field else "")
        return "\n".join(tokens)


# =============================================================================
# CLIENT COMMAND BUILDERS
# =============================================================================


def build_iperf_udp_command(address: str, port: Optional[int] = None) -> str:
    """Build an iperf3 UDP bandwidth client command (unlimited rate, 256K window, 1s omit)."""
    cmd = f"iperf3 -u -b 0 -f m -w 256K -O 1 -c {address}"
    if port is not None and port != IPERF_PORT:
        cmd += f" -p {port}"
    return cmd


def build_netperf_command(test: str, address: str, port: int) -> str:
    """Build a netperf client command for one data port."""
    return f"netperf -H {address} -t {test} -- -P {port}"


def build_netperf_stream_command(address: str, port: Optional[int] = None) -> str:
    return build_netperf_command("TCP_STREAM", address, port or NETPERF_DATA_PORTS[0])


def build_netperf_rr_command(address: str, port: Optional[int] = None) -> str:
    return build_netperf_command("TCP_RR", address, port or NETPERF_DATA_PORTS[0])


def build_netperf_crr_command(address: str, port: Optional[int] = None) -> str:
    return build_netperf_command("TCP_CRR", address, port or NETPERF_DATA_PORTS[0])


def build_hey_command(address: str, port: Optional[int] = None) -> str:
    """Build a hey HTTP load command with keep-alive disabled."""
    host = address if port in (None, HTTP_PORT) else f"{address}:{port}"
    return f"hey -c {HEY_CONCURRENCY} -n {HEY_REQUESTS} -disable-keepalive http://{host}"


# =============================================================================
# TOOL AND FAMILY REGISTRY
# =============================================================================


@dataclass(frozen=True)
class ToolSpec:
    """A benchmark tool run from the driver pod and how to read its output."""

    name: str
    family: str
    description: str                    # Metric description in report lines
    unit: str
    builder: Callable[..., str]
    extraction: OutputExtraction
    shell: str = "bash"
    data_ports: Tuple[int, ...] = ()    # One invocation per port, summed per round
    stderr_policy: str = STDERR_FAIL

    def build_command(self, address: str, port: Optional[int] = None) -> str:
        """Tool invocation without the filtering stage."""
        return self.builder(address, port)

    def build_pipeline(self, address: str, port: Optional[int] = None) -> str:
        """Tool invocation piped through its extraction rule."""
        return f"{self.build_command(address, port)} | {self.extraction.to_shell()}"

    def invocation_ports(self) -> List[Optional[int]]:
        """Ports to invoke per round; [None] for single-invocation tools."""
        return list(self.data_ports) or [None]

    def shell_args(self, pipeline: str) -> List[str]:
        return [self.shell, "-c", pipeline]


@dataclass(frozen=True)
class FamilySpec:
    """Pods and service shape shared by the tools of one family."""

    name: str
    driver_image: str
    driver_command: Optional[List[str]]
    server_image: str
    server_command: Optional[List[str]]
    service_ports: Tuple[PortSpec, ...]
    server_ports: Tuple[PortSpec, ...] = ()
    tools: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def driver_container(self) -> str:
        return container_name_for(self.driver_image)

    @property
    def server_container(self) -> str:
        return container_name_for(self.server_image)


def _tcp_udp(*ports: int) -> Tuple[PortSpec, ...]:
    return tuple(PortSpec(port=p, protocol=proto, target_port=p) for p in ports for proto in ("TCP", "UDP"))


CLIENT_BUILDERS: Dict[str, ToolSpec] = {
    "iperf_udp": ToolSpec(
        name="iperf_udp",
        family="iperf",
        description="UDP bandwidth",
        unit="Mbits/sec",
        builder=build_iperf_udp_command,
        extraction=OutputExtraction("receiver", 7),
        stderr_policy=STDERR_FLAG,
    ),
    "netperf_tcp_stream": ToolSpec(
        name="netperf_tcp_stream",
        family="netperf",
        description="TCP bandwidth",
        unit="Mbits/sec",
        builder=build_netperf_stream_command,
        extraction=OutputExtraction("16384", 5),
        data_ports=NETPERF_DATA_PORTS,
    ),
    "netperf_tcp_rr": ToolSpec(
        name="netperf_tcp_rr",
        family="netperf",
        description="TCP_RR",
        unit="trans/sec",
        builder=build_netperf_rr_command,
        extraction=OutputExtraction("131072 1", 6),
        data_ports=NETPERF_DATA_PORTS,
    ),
    "netperf_tcp_crr": ToolSpec(
        name="netperf_tcp_crr",
        family="netperf",
        description="TCP_CRR",
        unit="trans/sec",
        builder=build_netperf_crr_command,
        extraction=OutputExtraction("131072 1", 6),
        data_ports=NETPERF_DATA_PORTS,
    ),
    "hey_rps": ToolSpec(
        name="hey_rps",
        family="nginx",
        description="hey test",
        unit="reqs/sec",
        builder=build_hey_command,
        extraction=OutputExtraction("Requests/sec:", 2),
        shell="sh",
        stderr_policy=STDERR_ATTACH,
    ),
}

FAMILIES: Dict[str, FamilySpec] = {
    "iperf": FamilySpec(
        name="iperf",
        driver_image=IPERF_IMAGE,
        driver_command=["iperf3", "-s"],
        server_image=IPERF_IMAGE,
        server_command=["iperf3", "-s"],
        service_ports=_tcp_udp(IPERF_PORT),
        server_ports=_tcp_udp(IPERF_PORT),
        tools=("iperf_udp",),
    ),
    "netperf": FamilySpec(
        name="netperf",
        driver_image=NETPERF_IMAGE,
        driver_command=["netserver", "-D"],
        server_image=NETPERF_IMAGE,
        server_command=["netserver", "-D"],
        service_ports=_tcp_udp(NETPERF_CONTROL_PORT, *NETPERF_DATA_PORTS),
        tools=("netperf_tcp_stream", "netperf_tcp_rr", "netperf_tcp_crr"),
    ),
    "nginx": FamilySpec(
        name="nginx",
        driver_image=HEY_IMAGE,
        driver_command=["sleep", "7d"],
        server_image=NGINX_IMAGE,
        server_command=None,
        service_ports=(PortSpec(port=HTTP_PORT, protocol="TCP", target_port=HTTP_PORT),),
        tools=("hey_rps",),
    ),
}


def get_tool(tool_name: str) -> ToolSpec:
    """Look up a tool, raising ValueError for unknown names."""
    validate_tool_name(tool_name)
    return CLIENT_BUILDERS[tool_name]


def get_family(family: str) -> FamilySpec:
    """Look up a family, raising ValueError for unknown names."""
    if family not in FAMILIES:
        supported = ", ".join(sorted(FAMILIES.keys()))
        raise ValueError(f"Unknown benchmark family '{family}'. Supported families: {supported}")
    return FAMILIES[family]


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================


def validate_tool_name(tool_name: str) -> None:
    """Validate that a tool is registered."""
    if tool_name not in CLIENT_BUILDERS:
        supported = ", ".join(sorted(CLIENT_BUILDERS.keys()))
        raise ValueError(f"Unknown tool '{tool_name}'. Supported tools: {supported}")


def get_supported_families() -> list:
    """Return list of supported benchmark families."""
    return list(FAMILIES.keys())
