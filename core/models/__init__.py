# ============================================================================
# MODELS MODULE
# ============================================================================
# STATUS: Model exports
# PURPOSE: Central export point for worker models
# CREATED: 17 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

- variable: Variable records and the TypedValue union
- job: EngineJob as returned by acquisition
- outcome: JobOutcome / FinalFailureAction variants returned by handlers
"""

from core.models.variable import TypedValue, Variable
from core.models.job import EngineJob
from core.models.outcome import (
    BpmnError,
    Complete,
    FinalFailure,
    FinalFailureAction,
    Incident,
    JobOutcome,
    Retry,
    Success,
)

__all__ = [
    # Variables
    "TypedValue",
    "Variable",
    # Job
    "EngineJob",
    # Outcomes
    "JobOutcome",
    "Success",
    "Retry",
    "FinalFailure",
    "FinalFailureAction",
    "Incident",
    "Complete",
    "BpmnError",
]
