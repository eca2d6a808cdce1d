"""
Core benchmark logic.

Contains:
- session: Namespace and cluster access for one run
- provisioner: Driver and target pods per topology
- runner: Tool invocation over rounds and ports
- aggregator: Sample parsing and report lines
- suites: iperf, netperf and nginx suites
"""

from .aggregator import AggregateResult, ResultAggregator, format_report_line, parse_sample
from .provisioner import TopologyProvisioner
from .runner import BenchmarkRunner
from .session import Session
from .suites import CaseResult, SuiteReport, run_suite, run_suites
