"""Identity drift detection workflow.

Scheduled job that scans tenant, earnings and activity records for agent
identity copies that disagree with the agents collection, which is how a
partially applied edit batch shows up. Runs hourly by default.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from rentdesk.identity.reconciliation import find_inconsistencies
from rentdesk.identity.store import AgentDirectoryStore
from rentdesk.observability.logging import get_logger
from rentdesk.observability.metrics import WORKFLOW_EXECUTIONS

logger = get_logger(__name__)


@dataclass
class DetectIdentityDriftInput:
    """Input for identity drift detection workflow."""

    sample_size: int = 20  # Issues echoed in the output for operators


@dataclass
class DetectIdentityDriftOutput:
    """Output from identity drift detection workflow."""

    issue_count: int
    success: bool
    by_type: dict[str, int] = field(default_factory=dict)
    sample: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None


class DetectIdentityDriftWorkflow:
    """Workflow to report denormalized copies out of line with their agent.

    Read-only, so running it repeatedly is harmless.
    """

    WORKFLOW_NAME = "detect-identity-drift"
    CRON_SCHEDULE = "15 * * * *"  # Hourly

    def __init__(self, store: AgentDirectoryStore) -> None:
        """Initialize workflow.

        Args:
            store: Store holding agents and their denormalized copies
        """
        self._store = store

    async def run(self, input_data: DetectIdentityDriftInput) -> DetectIdentityDriftOutput:
        """Execute the drift scan."""
        try:
            issues = await find_inconsistencies(self._store)
        except Exception as e:
            WORKFLOW_EXECUTIONS.labels(workflow_name=self.WORKFLOW_NAME, status="failed").inc()
            logger.error("detect_identity_drift_failed", error=str(e))
            return DetectIdentityDriftOutput(issue_count=0, success=False, error=str(e))

        by_type = Counter(issue.issue.value for issue in issues)
        WORKFLOW_EXECUTIONS.labels(workflow_name=self.WORKFLOW_NAME, status="success").inc()
        if issues:
            logger.warning("identity_drift_detected", issue_count=len(issues), **by_type)
        else:
            logger.info("identity_drift_clean")

        return DetectIdentityDriftOutput(
            issue_count=len(issues),
            success=True,
            by_type=dict(by_type),
            sample=[
                issue.model_dump(mode="json")
                for issue in issues[: input_data.sample_size]
            ],
        )


def register_workflow(hatchet: Any, store: AgentDirectoryStore) -> Any:
    """Register the drift detection workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        store: Store holding agents and their denormalized copies

    Returns:
        Registered workflow
    """
    workflow_instance = DetectIdentityDriftWorkflow(store)

    @hatchet.workflow(
        name=DetectIdentityDriftWorkflow.WORKFLOW_NAME,
        on_crons=[DetectIdentityDriftWorkflow.CRON_SCHEDULE],
    )
    class HatchetDetectIdentityDriftWorkflow:
        """Hatchet workflow wrapper for identity drift detection."""

        @hatchet.step(retries=2, retry_delay="60s")
        async def detect_drift(self, context: Any) -> dict:
            """Execute the drift detection step."""
            input_data = context.workflow_input() or {}
            result = await workflow_instance.run(
                DetectIdentityDriftInput(
                    sample_size=input_data.get("sample_size", 20),
                )
            )
            return {
                "issue_count": result.issue_count,
                "success": result.success,
                "by_type": result.by_type,
                "sample": result.sample,
                "error": result.error,
            }

    return HatchetDetectIdentityDriftWorkflow
