# ============================================================================
# JOB OUTCOME MODEL
# ============================================================================
# STATUS: Core model - Result of one handler invocation
# PURPOSE: Tagged variants the worker engine maps onto engine REST calls
# CREATED: 17 OCT 2026
# EXPORTS: JobOutcome, Success, Retry, FinalFailure, FinalFailureAction,
#          Incident, Complete, BpmnError
# ============================================================================
"""
Job Outcome

Handlers return exactly one JobOutcome per job per attempt. The worker
engine switches on `kind`:

    Success(variables)                 -> complete
    Retry(message, retry_after?)       -> fail with retries - 1 (or incident)
    FinalFailure(action, message)      -> handled per action:
        Incident(message, variables)   -> fail with retries = 0
        Complete(variables)            -> complete
        BpmnError(code, message, vars) -> bpmnError

Usage:
    return Success([Variable.integer("task_statusCode", 200)])
    return Retry("Call to http://svc timed out")
    return FinalFailure(BpmnError("INVALID_INPUT", "bad"), "Business validation failed")
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional, Union

from core.contracts import FinalFailureKind, OutcomeKind
from core.models.variable import Variable


# ============================================================================
# FINAL FAILURE ACTIONS
# ============================================================================

@dataclass(frozen=True)
class Incident:
    """Unrecoverable technical fault; the engine records an incident."""
    message: Optional[str] = None
    variables: List[Variable] = field(default_factory=list)
    kind: FinalFailureKind = field(default=FinalFailureKind.INCIDENT, init=False)


@dataclass(frozen=True)
class Complete:
    """Give up on the call but complete the job with the given variables."""
    variables: List[Variable] = field(default_factory=list)
    message: Optional[str] = None
    kind: FinalFailureKind = field(default=FinalFailureKind.COMPLETE, init=False)


@dataclass(frozen=True)
class BpmnError:
    """Modeled business exception; routes the process to an error boundary."""
    code: str
    message: Optional[str] = None
    variables: List[Variable] = field(default_factory=list)
    kind: FinalFailureKind = field(default=FinalFailureKind.BPMN_ERROR, init=False)


FinalFailureAction = Union[Incident, Complete, BpmnError]


# ============================================================================
# OUTCOMES
# ============================================================================

@dataclass(frozen=True)
class Success:
    """Handler finished; variables are written back on completion."""
    variables: List[Variable] = field(default_factory=list)
    local_variables: Optional[List[Variable]] = None
    kind: OutcomeKind = field(default=OutcomeKind.SUCCESS, init=False)


@dataclass(frozen=True)
class Retry:
    """Transient failure. retry_after overrides the computed backoff."""
    message: str
    retry_after: Optional[timedelta] = None
    kind: OutcomeKind = field(default=OutcomeKind.RETRY, init=False)


@dataclass(frozen=True)
class FinalFailure:
    """No further attempts; the action decides what the engine is told."""
    action: FinalFailureAction
    message: str = ""
    kind: OutcomeKind = field(default=OutcomeKind.FINAL_FAILURE, init=False)


JobOutcome = Union[Success, Retry, FinalFailure]


__all__ = [
    "Incident",
    "Complete",
    "BpmnError",
    "FinalFailureAction",
    "Success",
    "Retry",
    "FinalFailure",
    "JobOutcome",
]
