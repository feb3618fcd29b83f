"""Run orchestration — concurrent probes aggregated into a RunSummary."""

from .run import RunCounts, RunSummary, Trigger, run_once, summarize
from .service import KeepaliveRunner
