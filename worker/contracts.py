# ============================================================================
# ENGINE REST CONTRACTS
# ============================================================================
# STATUS: Worker - Request bodies for the engine's external job API
# PURPOSE: Define acquire / complete / fail / bpmnError payloads
# CREATED: 17 OCT 2026
# ============================================================================
"""
Engine REST Contracts

Request bodies sent by the worker. Field names on the wire are camelCase;
None-valued top-level fields are dropped when the serialization config has
ignore_none set.

    POST acquire/jobs
    {"workerId": "w1", "maxJobs": 5, "lockDuration": "PT30S",
     "topic": "invoice-export", "fetchVariables": true}

    POST acquire/jobs/{id}/complete
    {"workerId": "w1", "variables": [...], "localVariables": [...]}

    POST acquire/jobs/{id}/fail
    {"workerId": "w1", "retries": 2, "retryTimeout": "PT60S",
     "errorMessage": "Call to http://svc failed with 503"}

    POST acquire/jobs/{id}/bpmnError
    {"workerId": "w1", "errorCode": "INVALID_INPUT",
     "errorMessage": "...", "variables": [...]}
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.models import Variable
from core.serialization import SerializationConfig


class EngineRequest(BaseModel):
    """Base for engine request bodies."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_dict(self, serialization: SerializationConfig) -> Dict[str, Any]:
        """Wire representation (camelCase, None pruned per config)."""
        data: Dict[str, Any] = {}
        for name, field in type(self).model_fields.items():
            value = getattr(self, name)
            if isinstance(value, list):
                # Variable values stay, even when null
                value = [item.to_dict() if isinstance(item, Variable) else item for item in value]
            data[field.alias or name] = value
        return serialization.prune(data)


class AcquireRequest(EngineRequest):
    worker_id: str = Field(..., alias="workerId")
    max_jobs: int = Field(..., alias="maxJobs", ge=1)
    lock_duration: str = Field(..., alias="lockDuration")
    topic: str
    fetch_variables: bool = Field(default=True, alias="fetchVariables")


class CompleteRequest(EngineRequest):
    worker_id: str = Field(..., alias="workerId")
    variables: List[Variable] = Field(default_factory=list)
    local_variables: Optional[List[Variable]] = Field(default=None, alias="localVariables")


class FailRequest(EngineRequest):
    worker_id: str = Field(..., alias="workerId")
    retries: int = Field(..., ge=0)
    retry_timeout: str = Field(..., alias="retryTimeout")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")


class BpmnErrorRequest(EngineRequest):
    worker_id: str = Field(..., alias="workerId")
    error_code: str = Field(..., alias="errorCode")
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    variables: List[Variable] = Field(default_factory=list)


__all__ = [
    "EngineRequest",
    "AcquireRequest",
    "CompleteRequest",
    "FailRequest",
    "BpmnErrorRequest",
]
