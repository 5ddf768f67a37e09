"""
Orchestration package for batch exports.

The batch runner drives the job ledger and the object exporter; the run
report summarizes a batch for the console and as JSON.
"""

from .batch_runner import BatchReport, BatchRunner
from .run_report import RunReport

__all__ = [
    'BatchReport',
    'BatchRunner',
    'RunReport'
]
