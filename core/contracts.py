# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# STATUS: Foundation - Core enums shared by handlers and the worker engine
# PURPOSE: Job states, outcome kinds, value kinds and response kinds
# CREATED: 17 OCT 2026
# EXPORTS: JobState, OutcomeKind, FinalFailureKind, ValueKind, ResponseKind
# ============================================================================
"""
Base contracts for the external task worker.

These enums cross every boundary inside the worker:
- Engine REST payloads (variable type tags)
- Handler results (outcome kinds)
- Logging (job states)
"""

from enum import Enum


# ============================================================================
# STATUS ENUMS
# ============================================================================

class JobState(str, Enum):
    """
    Per-attempt job states as seen by this worker.

    State transitions:
        ACQUIRED -> PROCESSING -> COMPLETED
                               -> RETRY_SCHEDULED
                               -> INCIDENT
                               -> BPMN_ERROR_RAISED
                               -> CANCELLED (shutdown)
        ACQUIRED -> SKIPPED (lock already expired)
    """
    ACQUIRED = "acquired"
    PROCESSING = "processing"
    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"
    INCIDENT = "incident"
    BPMN_ERROR_RAISED = "bpmn_error_raised"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        """Check if this attempt is finished from the worker's side."""
        return self not in (JobState.ACQUIRED, JobState.PROCESSING)


class OutcomeKind(str, Enum):
    """Discriminator for JobOutcome."""
    SUCCESS = "success"
    RETRY = "retry"
    FINAL_FAILURE = "final_failure"


class FinalFailureKind(str, Enum):
    """Discriminator for FinalFailureAction."""
    INCIDENT = "incident"
    COMPLETE = "complete"
    BPMN_ERROR = "bpmn_error"


class ValueKind(str, Enum):
    """Closed set of variable value kinds."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
    NULL = "null"


class ResponseKind(str, Enum):
    """
    Classification of an HTTP response body.

    Values are the strings written to the `<elementId>_response_type`
    process variable.
    """
    JSON = "json"
    XML = "xml"
    TEXT = "string"


__all__ = [
    "JobState",
    "OutcomeKind",
    "FinalFailureKind",
    "ValueKind",
    "ResponseKind",
]
