"""Persistent job ledger tracking per-object export status."""

from .models import Job
from .job_ledger import JobLedger

__all__ = [
    'Job',
    'JobLedger'
]
