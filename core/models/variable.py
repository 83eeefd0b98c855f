# ============================================================================
# VARIABLE MODEL
# ============================================================================
# STATUS: Core model - Process variables exchanged with the engine
# PURPOSE: Variable record and the closed value union used by handlers
# CREATED: 17 OCT 2026
# EXPORTS: Variable, TypedValue
# DEPENDENCIES: pydantic
# ============================================================================
"""
Variable Model

Engine variables arrive as (name, value, type) triples where the value is
whatever the engine's JSON serializer produced. Handlers never inspect raw
values directly; they go through TypedValue, a closed union of
{string, number, boolean, json, null} with explicit conversion functions.

Type tags accepted from the engine:
    string              -> STRING
    integer/long/short  -> NUMBER
    double              -> NUMBER
    boolean             -> BOOLEAN
    json                -> JSON
    null                -> NULL
Anything else is inferred from the decoded value.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import ValueKind


_TAG_KINDS: Dict[str, ValueKind] = {
    "string": ValueKind.STRING,
    "integer": ValueKind.NUMBER,
    "long": ValueKind.NUMBER,
    "short": ValueKind.NUMBER,
    "double": ValueKind.NUMBER,
    "boolean": ValueKind.BOOLEAN,
    "json": ValueKind.JSON,
    "null": ValueKind.NULL,
}


# ============================================================================
# TYPED VALUE
# ============================================================================

@dataclass(frozen=True)
class TypedValue:
    """A variable value tagged with its kind."""

    kind: ValueKind
    value: Any = None

    @classmethod
    def from_raw(cls, value: Any, type_tag: Optional[str] = None) -> "TypedValue":
        """
        Build a TypedValue from an engine value and optional type tag.

        A tag that disagrees with the value (e.g. "integer" carrying text)
        falls back to inference from the value itself.
        """
        if value is None:
            return cls(ValueKind.NULL)

        kind = _TAG_KINDS.get((type_tag or "").lower())

        if kind == ValueKind.STRING:
            return cls.text(value if isinstance(value, str) else json.dumps(value))
        if kind == ValueKind.JSON:
            return cls(ValueKind.JSON, value)
        if kind == ValueKind.NUMBER and _is_number(value):
            return cls(ValueKind.NUMBER, value)
        if kind == ValueKind.BOOLEAN and isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)

        return cls.infer(value)

    @classmethod
    def infer(cls, value: Any) -> "TypedValue":
        """Infer the kind from a decoded JSON value."""
        if value is None:
            return cls(ValueKind.NULL)
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if _is_number(value):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, str):
            return cls(ValueKind.STRING, value)
        if isinstance(value, (dict, list)):
            return cls(ValueKind.JSON, value)
        # Opaque objects become their text form
        return cls(ValueKind.STRING, str(value))

    @classmethod
    def text(cls, value: str) -> "TypedValue":
        return cls(ValueKind.STRING, value)

    @property
    def is_null(self) -> bool:
        return self.kind == ValueKind.NULL

    def as_text(self) -> Optional[str]:
        """Text form: strings as-is, everything else JSON-encoded, null -> None."""
        if self.kind == ValueKind.NULL:
            return None
        if self.kind == ValueKind.STRING:
            return self.value
        return json.dumps(self.value, ensure_ascii=False, separators=(",", ":"))

    def as_tree(self) -> Any:
        """The plain JSON-compatible value (strings are not parsed)."""
        return self.value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================================================
# VARIABLE
# ============================================================================

class Variable(BaseModel):
    """
    A process variable as exchanged with the engine REST API.

    Names are not unique on the engine side; lookups built from a list
    apply last-write-wins.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    value: Any = None
    type: Optional[str] = Field(default=None, description="Engine type tag")

    @classmethod
    def integer(cls, name: str, value: int) -> "Variable":
        return cls(name=name, value=value, type="integer")

    @classmethod
    def string(cls, name: str, value: Optional[str]) -> "Variable":
        return cls(name=name, value=value, type="string")

    @classmethod
    def json_value(cls, name: str, value: Any) -> "Variable":
        return cls(name=name, value=value, type="json")

    def typed(self) -> TypedValue:
        """Value as a TypedValue."""
        return TypedValue.from_raw(self.value, self.type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for the engine REST API."""
        result: Dict[str, Any] = {"name": self.name, "value": self.value}
        if self.type is not None:
            result["type"] = self.type
        return result


__all__ = [
    "TypedValue",
    "Variable",
]
