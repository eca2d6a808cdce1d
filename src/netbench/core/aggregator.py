"""
Aggregator module for turning per-round tool output into reported metrics.

Each round produces one sample (for multi-port tools, the sum over ports).
The aggregate is the sum of the samples divided by the round count, logged
as one line per (topology, traffic path, metric).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from netbench.builders.command_builders import ROUND_NUM
from netbench.errors import AggregationError, SampleParseError
from netbench.models.topology import Topology, TrafficPath, topology_from_value, topology_label

logger = logging.getLogger(__name__)


def parse_sample(output: str, stderr: str = "") -> float:
    """
    Parse one measurement from filtered tool output.

    Args:
        output: Text returned by the pipeline, expected to be a single number
        stderr: Tool stderr, attached to the error for reporting

    Returns:
        The parsed value

    Raises:
        SampleParseError: If the trimmed text is not a float
    """
    text = output.strip()
    try:
        return float(text)
    except ValueError:
        raise SampleParseError(output, stderr=stderr) from None


def format_report_line(topology: Topology, path: TrafficPath, description: str, value: float, unit: str) -> str:
    """Build e.g. "Intra node pod to svc UDP bandwidth: 937.00 Mbits/sec"."""
    return f"{topology_label(topology)} node pod to {path.label} {description}: {value:.2f} {unit}"


@dataclass
class AggregateResult:
    """Mean of the round samples for one scenario and traffic path."""
    topology: Topology
    path: TrafficPath
    description: str
    unit: str
    value: float
    samples: List[float]
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def report_line(self) -> str:
        return format_report_line(self.topology, self.path, self.description, self.value, self.unit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topology": self.topology.label,
            "path": self.path.label,
            "description": self.description,
            "unit": self.unit,
            "value": self.value,
            "samples": list(self.samples),
            "valid": self.valid,
            "errors": list(self.errors),
        }


class ResultAggregator:
    """
    Running sum of round samples for one (topology, path, metric).

    Parse failures do not stop accumulation: the failed sample counts as 0.0
    and the error is kept, so the mean is still produced but flagged invalid.
    """

    def __init__(
        self,
        topology: Topology,
        path: TrafficPath,
        description: str,
        unit: str,
        round_num: int = ROUND_NUM
    ):
        self.topology = topology_from_value(topology)
        self.path = path
        self.description = description
        self.unit = unit
        self.round_num = round_num
        self.samples: List[float] = []
        self.errors: List[str] = []
        self._acc = 0.0

    def add(self, sample: float) -> None:
        """Add one round sample."""
        self.samples.append(sample)
        self._acc += sample

    def record_error(self, message: str) -> None:
        """Flag the aggregate as invalid without changing the sum."""
        logger.error(f"{self.topology.label} node pod to {self.path.label} {self.description}: {message}")
        self.errors.append(message)

    def parse_output(self, output: str, stderr: str = "") -> float:
        """
        Parse tool output for one invocation, flagging the aggregate on failure.

        The value is not added; callers add the per-round total with add().

        Returns:
            The parsed value, or 0.0 when the output did not parse
        """
        try:
            sample = parse_sample(output, stderr)
        except SampleParseError as e:
            message = f"Error parsing tool output: {e}"
            if stderr:
                message += f"; STDERR: {stderr}"
            self.record_error(message)
            sample = 0.0
        return sample

    @property
    def total(self) -> float:
        return self._acc

    def finalize(self, report: bool = True) -> AggregateResult:
        """
        Compute the mean over the round count and log the report line.

        Raises:
            AggregationError: If the number of samples is not the round count
        """
        if len(self.samples) != self.round_num:
            raise AggregationError(
                f"{self.description}: expected {self.round_num} samples, got {len(self.samples)}"
            )
        result = AggregateResult(
            topology=self.topology,
            path=self.path,
            description=self.description,
            unit=self.unit,
            value=self._acc / self.round_num,
            samples=list(self.samples),
            errors=list(self.errors),
        )
        if report:
            logger.info(result.report_line)
        return result
