# ============================================================================
# CORE MODULE
# ============================================================================
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models and serialization options
# CREATED: 17 OCT 2026
# ============================================================================

from core.contracts import FinalFailureKind, JobState, OutcomeKind, ResponseKind, ValueKind
from core.models import (
    EngineJob,
    FinalFailure,
    JobOutcome,
    Retry,
    Success,
    TypedValue,
    Variable,
)
from core.serialization import SerializationConfig

__all__ = [
    # Enums
    "JobState",
    "OutcomeKind",
    "FinalFailureKind",
    "ValueKind",
    "ResponseKind",
    # Models
    "EngineJob",
    "Variable",
    "TypedValue",
    "JobOutcome",
    "Success",
    "Retry",
    "FinalFailure",
    # Serialization
    "SerializationConfig",
]
