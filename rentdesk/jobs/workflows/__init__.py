"""Scheduled workflows."""

from rentdesk.jobs.workflows.reconciliation import (
    DetectIdentityDriftInput,
    DetectIdentityDriftOutput,
    DetectIdentityDriftWorkflow,
    register_workflow,
)

__all__ = [
    "DetectIdentityDriftInput",
    "DetectIdentityDriftOutput",
    "DetectIdentityDriftWorkflow",
    "register_workflow",
]
