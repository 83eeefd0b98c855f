# ============================================================================
# ENGINE JOB MODEL
# ============================================================================
# STATUS: Core model - External job acquired from the workflow engine
# PURPOSE: Parse acquired jobs and expose lock / variable helpers
# CREATED: 17 OCT 2026
# EXPORTS: EngineJob
# DEPENDENCIES: pydantic
# ============================================================================
"""
Engine Job Model

An EngineJob is one external job handed to this worker by `POST acquire/jobs`.
The engine owns its state; the worker only reads it and requests transitions
(complete / fail / bpmnError).

Lifecycle (engine side):
    1. Created by the engine when the process reaches an external task
    2. Locked for this worker on acquisition (lockExpirationTime)
    3. Completed, failed or errored through the worker's report call
    4. Lock expiry makes it available for re-acquisition
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.models.variable import TypedValue, Variable


class EngineJob(BaseModel):
    """An acquired external job (engine REST representation)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Identity
    id: str = Field(..., min_length=1)
    url: Optional[str] = None
    correlation_id: Optional[str] = Field(default=None, alias="correlationId")

    # Process coordinates
    process_instance_id: Optional[str] = Field(default=None, alias="processInstanceId")
    process_definition_id: Optional[str] = Field(default=None, alias="processDefinitionId")
    execution_id: Optional[str] = Field(default=None, alias="executionId")
    scope_id: Optional[str] = Field(default=None, alias="scopeId")
    sub_scope_id: Optional[str] = Field(default=None, alias="subScopeId")
    scope_definition_id: Optional[str] = Field(default=None, alias="scopeDefinitionId")
    scope_type: Optional[str] = Field(default=None, alias="scopeType")

    # Workflow node that spawned the job
    element_id: str = Field(default="", alias="elementId")
    element_name: Optional[str] = Field(default=None, alias="elementName")

    # Retry / lock bookkeeping
    retries: int = Field(default=0)
    exception_message: Optional[str] = Field(default=None, alias="exceptionMessage")
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    create_time: Optional[str] = Field(default=None, alias="createTime")
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    lock_owner: Optional[str] = Field(default=None, alias="lockOwner")
    lock_expiration_time: Optional[str] = Field(default=None, alias="lockExpirationTime")

    variables: List[Variable] = Field(default_factory=list)

    def variables_map(self) -> Dict[str, TypedValue]:
        """Variables by name. Duplicate names: last one wins."""
        result: Dict[str, TypedValue] = {}
        for variable in self.variables:
            result[variable.name] = variable.typed()
        return result

    def lock_expiration(self) -> Optional[datetime]:
        """Parsed lock expiration (UTC-aware), or None if absent/unparseable."""
        if not self.lock_expiration_time:
            return None
        try:
            parsed = datetime.fromisoformat(self.lock_expiration_time.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def is_locked(self, now: datetime) -> bool:
        """
        True while `now` is before the lock expiration.

        An unknown expiration counts as locked; the engine decides.
        """
        expiration = self.lock_expiration()
        if expiration is None:
            return True
        return now < expiration

    def correlation_fields(self) -> Dict[str, Any]:
        """Job identifiers bound into the log context while the job is processed."""
        return {
            "job_id": self.id,
            "process_instance_id": self.process_instance_id,
            "execution_id": self.execution_id,
        }


__all__ = ["EngineJob"]
